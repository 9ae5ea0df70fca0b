"""FastAPI dependencies for database access, the caller's pin, and services."""

from typing import Generator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from casework.core.container import ServiceContainer
from casework.services.assignment_service import WorkloadBalancer
from casework.services.badge_service import BadgeAggregator
from casework.services.case_service import CaseQueryEngine
from casework.services.nda_service import SigningWorkflow
from casework.services.registration_service import RegistrationVerifier

# Set by the authentication gateway in front of this service
CASE_MANAGER_PIN_HEADER = "X-Case-Manager-Pin"


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_db(
    services: ServiceContainer = Depends(get_services),
) -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = services.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_current_case_manager_pin(
    case_manager_pin: str | None = Header(None, alias=CASE_MANAGER_PIN_HEADER),
) -> str:
    """Pin of the authenticated case manager."""
    pin = (case_manager_pin or "").strip()
    if not pin:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return pin


def get_balancer(services: ServiceContainer = Depends(get_services)) -> WorkloadBalancer:
    return services.balancer


def get_case_engine(services: ServiceContainer = Depends(get_services)) -> CaseQueryEngine:
    return services.cases


def get_badge_aggregator(services: ServiceContainer = Depends(get_services)) -> BadgeAggregator:
    return services.badges


def get_signing_workflow(services: ServiceContainer = Depends(get_services)) -> SigningWorkflow:
    return services.signing


def get_registration_verifier(
    services: ServiceContainer = Depends(get_services),
) -> RegistrationVerifier:
    return services.registration
