"""
Test configuration and fixtures.

Provides:
- A fresh in-memory SQLite database per test
- A controllable clock
- Case manager / case factories
- An NDA documents double writing plain files under tmp_path
- HTTPX AsyncClient bound to an app built on the test services
"""
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator, Generator

# Settings require a database URL at import time
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from casework.core.container import ServiceContainer
from casework.db.base import Base
from casework.db.enums import CaseStatus
from casework.db.models import Case, CaseManager
from casework.main import create_app
from casework.services.nda_documents import (
    ArtifactNotFoundError,
    FlatteningError,
    signed_filename,
)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


def add_case_manager(
    db: Session,
    pin: str,
    name: str | None = None,
    *,
    created_at: datetime | None = None,
    is_active: bool = True,
    compliance_approved: bool = False,
    status: str = "active",
) -> CaseManager:
    manager = CaseManager(
        pin=pin,
        name=name or f"Manager {pin}",
        is_active=is_active,
        compliance_approved=compliance_approved,
        status=status,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    db.add(manager)
    db.commit()
    return manager


def add_case(
    db: Session,
    case_pin: str,
    manager_pin: str | None,
    *,
    stage: int = 1,
    status: CaseStatus = CaseStatus.PENDING_CONTACT,
    stage_updated_at: datetime,
    client_name: str = "Jane Client",
) -> Case:
    case = Case(
        case_pin=case_pin,
        lawyer_pin="LAW-1",
        lawyer_name="Lee Lawyer",
        client_name=client_name,
        case_type="personal injury",
        assigned_cm_pin=manager_pin,
        assigned_cm_name=f"Manager {manager_pin}" if manager_pin else None,
        assigned_at=stage_updated_at,
        case_status=status.value,
        workflow_stage=stage,
        stage_updated_at=stage_updated_at,
        created_at=stage_updated_at,
        updated_at=stage_updated_at,
    )
    db.add(case)
    db.commit()
    return case


@pytest.fixture
def make_manager(db: Session):
    def _make(pin: str, name: str | None = None, **kwargs) -> CaseManager:
        return add_case_manager(db, pin, name, **kwargs)

    return _make


@pytest.fixture
def make_case(db: Session, clock: FakeClock):
    def _make(case_pin: str, manager_pin: str | None, *, days_ago: float = 0, **kwargs) -> Case:
        kwargs.setdefault("stage_updated_at", clock.now - timedelta(days=days_ago))
        return add_case(db, case_pin, manager_pin, **kwargs)

    return _make


# =============================================================================
# NDA documents double
# =============================================================================


class FakeNdaDocuments:
    """
    Files on disk with trivial contents so signing tests don't depend on a
    real template. Each stamp gets its own file, like the PDF implementation.
    """

    def __init__(self, root: Path):
        self.preview_dir = root / "previews"
        self.signed_dir = root / "signed"
        self.preview_dir.mkdir(parents=True)
        self.signed_dir.mkdir(parents=True)
        self.stamp_count = 0
        self.store_count = 0
        self.fail_flatten = False
        self.discarded: list[Path] = []

    def stamp_signatures(self, case_manager_pin: str, signer_image: bytes) -> Path:
        self.stamp_count += 1
        path = self.preview_dir / f"ndaPreview{case_manager_pin}-{self.stamp_count}.pdf"
        path.write_bytes(b"%PDF-preview-" + str(self.stamp_count).encode() + b"-" + signer_image)
        return path

    def flatten(self, stamped_path: Path) -> bytes:
        if self.fail_flatten:
            raise FlatteningError("Failed to flatten NDA")
        return b"%PDF-final-" + Path(stamped_path).read_bytes()

    def store_signed(self, case_manager_pin: str, content: bytes) -> Path:
        self.store_count += 1
        stem = Path(signed_filename(case_manager_pin)).stem
        path = self.signed_dir / f"{stem}-{self.store_count}.pdf"
        path.write_bytes(content)
        return path

    def read(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError("NDA file not found") from exc

    def discard(self, path: Path) -> None:
        self.discarded.append(Path(path))
        Path(path).unlink(missing_ok=True)


@pytest.fixture
def nda_documents(tmp_path) -> FakeNdaDocuments:
    return FakeNdaDocuments(tmp_path / "nda")


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def services(session_factory, nda_documents, clock) -> ServiceContainer:
    return ServiceContainer.build(
        session_factory,
        documents=nda_documents,
        clock=clock,
        preview_ttl=timedelta(minutes=10),
        sweep_interval_seconds=60,
    )


@pytest.fixture
async def client(services: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient for an app wired to the test database and documents."""
    app = create_app(services)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
