"""Activity logging service - centralized case audit trail."""

from datetime import datetime

from sqlalchemy.orm import Session

from casework.db.enums import SYSTEM_ACTOR, CaseActivityType
from casework.db.models import CaseActivityLog


def log_activity(
    db: Session,
    case_pin: str,
    activity_type: CaseActivityType,
    description: str,
    performed_at: datetime,
    performed_by: str = SYSTEM_ACTOR,
    details: dict | None = None,
) -> CaseActivityLog:
    """
    Append a case activity entry.

    Args:
        db: Database session
        case_pin: The case this activity is for
        activity_type: Type of activity (from CaseActivityType enum)
        description: Human-readable summary for reporting
        performed_at: Event time (UTC)
        performed_by: Actor identity ("system" for automatic actions)
        details: Type-specific details as JSON

    Returns:
        The created activity log entry
    """
    activity = CaseActivityLog(
        case_pin=case_pin,
        activity_type=activity_type.value,
        activity_description=description,
        performed_by=performed_by,
        details=details,
        performed_at=performed_at,
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def log_case_assigned(
    db: Session,
    case_pin: str,
    manager_pin: str,
    manager_name: str,
    workload: int,
    performed_at: datetime,
) -> CaseActivityLog:
    """Log automatic assignment. Only the winner and their pre-assignment count are recorded."""
    return log_activity(
        db=db,
        case_pin=case_pin,
        activity_type=CaseActivityType.CASE_ASSIGNED,
        description=(
            f"Case automatically assigned to {manager_name} "
            f"(lowest workload: {workload} cases)"
        ),
        performed_at=performed_at,
        details={"to_cm_pin": manager_pin, "workload": workload},
    )


def log_stage_advanced(
    db: Session,
    case_pin: str,
    from_stage: int,
    to_stage: int,
    performed_at: datetime,
    performed_by: str,
) -> CaseActivityLog:
    return log_activity(
        db=db,
        case_pin=case_pin,
        activity_type=CaseActivityType.STAGE_ADVANCED,
        description=f"Workflow stage advanced from {from_stage} to {to_stage}",
        performed_at=performed_at,
        performed_by=performed_by,
        details={"from_stage": from_stage, "to_stage": to_stage},
    )


def log_status_changed(
    db: Session,
    case_pin: str,
    from_status: str,
    to_status: str,
    performed_at: datetime,
    performed_by: str,
) -> CaseActivityLog:
    return log_activity(
        db=db,
        case_pin=case_pin,
        activity_type=CaseActivityType.STATUS_CHANGED,
        description=f"Case status changed from {from_status} to {to_status}",
        performed_at=performed_at,
        performed_by=performed_by,
        details={"from_status": from_status, "to_status": to_status},
    )
