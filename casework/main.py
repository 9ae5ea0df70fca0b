"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from casework.core.config import settings
from casework.core.container import ServiceContainer
from casework.core.exceptions import (
    CaseworkError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from casework.core.structured_logging import build_log_context
from casework.db.session import SessionLocal
from casework.routers import case_managers, cases, dashboard, nda, workspace

logger = logging.getLogger(__name__)

# Most specific first; anything else derived from CaseworkError is a 500
ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (DependencyError, 503),
)


def error_status(exc: CaseworkError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def casework_error_handler(request: Request, exc: CaseworkError) -> JSONResponse:
    status_code = error_status(exc)
    context = build_log_context(
        case_manager_pin=request.headers.get("X-Case-Manager-Pin"),
        route=request.url.path,
        method=request.method,
    )
    if status_code >= 500:
        logger.warning("Request failed: %s (%s)", exc.message, exc.code, extra=context)
    else:
        logger.info("Request rejected: %s (%s)", exc.message, exc.code, extra=context)

    body = {"success": False, "error": exc.code, "detail": exc.message}
    step = getattr(exc, "step", None)
    if step is not None:
        body["step"] = step
    return JSONResponse(status_code=status_code, content=body)


# ============================================================================
# FastAPI App
# ============================================================================


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Build the application. Services default to the configured database and NDA storage."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container: ServiceContainer = app.state.services
        container.sweeper.start()
        logger.info("NDA preview sweeper started")
        try:
            yield
        finally:
            container.sweeper.stop()
            logger.info("NDA preview sweeper stopped")

    app = FastAPI(
        title="Casework API",
        description="Case manager assignment, worklists, and NDA signing",
        version=settings.VERSION,
        docs_url="/docs" if settings.ENV == "dev" else None,
        redoc_url="/redoc" if settings.ENV == "dev" else None,
        lifespan=lifespan,
    )
    app.state.services = services or ServiceContainer.build(SessionLocal)

    app.add_exception_handler(CaseworkError, casework_error_handler)

    # CORS middleware - must be added before routers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Case-Manager-Pin", "X-Requested-With"],
        expose_headers=["Content-Disposition", "X-Nda-Hash-Verified"],
    )

    # ========================================================================
    # Routers
    # ========================================================================

    app.include_router(cases.router)
    app.include_router(dashboard.router)
    app.include_router(workspace.router)
    app.include_router(nda.router)
    app.include_router(case_managers.router)

    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health")
    def health():
        """
        Health check endpoint.

        Verifies database connectivity and returns environment info.
        """
        with app.state.services.session_factory() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}

    return app


app = create_app()
