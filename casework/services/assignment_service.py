"""Workload-balanced case assignment with audit logging."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from casework.core.exceptions import (
    CaseworkError,
    ConflictError,
    DependencyError,
    ValidationError,
)
from casework.core.stage_definitions import FIRST_STAGE, get_stage_info
from casework.db.enums import CaseStatus
from casework.db.models import Case
from casework.services import activity_service
from casework.services.roster_service import RosterEntry, RosterService
from casework.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

UNKNOWN_LAWYER_NAME = "Unknown"


class DuplicateCaseError(ConflictError):
    """Case pin already exists."""

    code = "duplicate_case"


class NoAvailableManagerError(CaseworkError):
    """Roster returned no active case managers."""

    code = "no_available_manager"


class AssignmentError(DependencyError):
    """Roster or store failure during assignment. Retryable."""

    code = "assignment_failed"


@dataclass
class CaseReferral:
    case_pin: str
    lawyer_pin: str
    client_name: str
    case_type: str
    lawyer_name: str | None = None
    referral_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ManagerWorkload:
    pin: str
    name: str
    active_count: int


@dataclass(frozen=True)
class AssignmentResult:
    manager: ManagerWorkload
    case_id: uuid.UUID
    case_pin: str
    case_status: str
    workflow_stage: int
    stage_label: str
    assigned_at: datetime

    @property
    def message(self) -> str:
        return f"Case successfully assigned to {self.manager.name}"


def select_least_loaded(workloads: list[ManagerWorkload]) -> ManagerWorkload:
    """Lowest active count wins; ties go to the first manager in roster order."""
    return min(workloads, key=lambda w: w.active_count)


def _validate_referral(referral: CaseReferral) -> CaseReferral:
    required = {
        "case_pin": referral.case_pin,
        "lawyer_pin": referral.lawyer_pin,
        "client_name": referral.client_name,
        "case_type": referral.case_type,
    }
    missing = [name for name, value in required.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(
            "Case PIN, lawyer PIN, client name, and case type are required "
            f"(missing: {', '.join(missing)})",
            code="missing_fields",
        )
    return CaseReferral(
        case_pin=referral.case_pin.strip(),
        lawyer_pin=referral.lawyer_pin.strip(),
        client_name=referral.client_name.strip(),
        case_type=referral.case_type.strip(),
        lawyer_name=(referral.lawyer_name or "").strip() or UNKNOWN_LAWYER_NAME,
        referral_data=dict(referral.referral_data or {}),
    )


def count_active_cases(db: Session, manager_pin: str) -> int:
    """Active (non-terminal) cases assigned to one manager."""
    return db.scalar(
        select(func.count())
        .select_from(Case)
        .where(
            Case.assigned_cm_pin == manager_pin,
            Case.case_status.not_in(CaseStatus.terminal()),
        )
    ) or 0


class WorkloadBalancer:
    """
    Assigns new cases to the case manager with the fewest active cases.

    Count-then-insert is serialised within this process. Separate processes
    can still race and both pick the same manager; balance is approximate
    across a multi-process deployment.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        roster: RosterService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._roster = roster
        self._clock = clock
        self._assign_lock = threading.Lock()

    def calculate_workloads(self) -> list[ManagerWorkload]:
        """Active case count per roster entry, in roster order."""
        try:
            entries: list[RosterEntry] = self._roster.list_active_case_managers()
        except Exception as exc:
            logger.exception("Roster lookup failed")
            raise AssignmentError("Case manager roster is unavailable") from exc

        try:
            with self._session_factory() as db:
                return [
                    ManagerWorkload(
                        pin=entry.pin,
                        name=entry.name,
                        active_count=count_active_cases(db, entry.pin),
                    )
                    for entry in entries
                ]
        except SQLAlchemyError as exc:
            logger.exception("Workload query failed")
            raise AssignmentError("Failed to calculate case manager workload") from exc

    def _case_exists(self, case_pin: str) -> bool:
        try:
            with self._session_factory() as db:
                return db.scalar(select(Case.id).where(Case.case_pin == case_pin)) is not None
        except SQLAlchemyError:
            logger.exception("Duplicate check failed for case %s", case_pin)
            return False

    def assign_case(self, referral: CaseReferral) -> AssignmentResult:
        """
        Create a case assigned to the least-loaded case manager.

        The case row and its audit entry are written in one transaction.

        Raises:
            ValidationError: a mandatory referral field is missing
            DuplicateCaseError: case pin already exists
            NoAvailableManagerError: roster is empty
            AssignmentError: roster or store failure
        """
        referral = _validate_referral(referral)
        logger.info("Auto-assigning case %s", referral.case_pin)

        with self._assign_lock:
            workloads = self.calculate_workloads()
            if not workloads:
                logger.error("No available case managers for case %s", referral.case_pin)
                raise NoAvailableManagerError("No available case managers")

            selected = select_least_loaded(workloads)
            now = self._clock()

            try:
                with self._session_factory() as db, db.begin():
                    existing = db.scalar(select(Case.id).where(Case.case_pin == referral.case_pin))
                    if existing is not None:
                        raise DuplicateCaseError(
                            "This case PIN already exists in the system"
                        )

                    case = Case(
                        case_pin=referral.case_pin,
                        lawyer_pin=referral.lawyer_pin,
                        lawyer_name=referral.lawyer_name,
                        client_name=referral.client_name,
                        case_type=referral.case_type,
                        assigned_cm_pin=selected.pin,
                        assigned_cm_name=selected.name,
                        assigned_at=now,
                        case_status=CaseStatus.PENDING_CONTACT.value,
                        workflow_stage=FIRST_STAGE,
                        stage_updated_at=now,
                        referral_data=referral.referral_data,
                        created_at=now,
                        updated_at=now,
                    )
                    db.add(case)
                    db.flush()
                    case_id = case.id

                    activity_service.log_case_assigned(
                        db=db,
                        case_pin=referral.case_pin,
                        manager_pin=selected.pin,
                        manager_name=selected.name,
                        workload=selected.active_count,
                        performed_at=now,
                    )
            except IntegrityError as exc:
                if self._case_exists(referral.case_pin):
                    # Unique constraint caught a concurrent insert of the same pin
                    raise DuplicateCaseError(
                        "This case PIN already exists in the system"
                    ) from exc
                logger.exception("Constraint violation assigning case %s", referral.case_pin)
                raise AssignmentError("Failed to assign case. Please try again.") from exc
            except SQLAlchemyError as exc:
                logger.exception("Failed to persist assignment for case %s", referral.case_pin)
                raise AssignmentError("Failed to assign case. Please try again.") from exc

        logger.info(
            "Case %s assigned to %s (workload before assignment: %d)",
            referral.case_pin,
            selected.pin,
            selected.active_count,
        )
        return AssignmentResult(
            manager=selected,
            case_id=case_id,
            case_pin=referral.case_pin,
            case_status=CaseStatus.PENDING_CONTACT.value,
            workflow_stage=FIRST_STAGE,
            stage_label=get_stage_info(FIRST_STAGE).label,
            assigned_at=now,
        )
