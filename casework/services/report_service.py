"""Read access to INA report records (owned by the readers dashboards)."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from casework.db.enums import PaymentStatus
from casework.db.models import Case, InaReport


def first_reader_missing() -> ColumnElement[bool]:
    """Correlated predicate: the case has a report with no first reader."""
    return (
        select(InaReport.id)
        .where(
            InaReport.case_pin == Case.case_pin,
            InaReport.first_reader_pin.is_(None),
        )
        .exists()
    )


def count_pending_payment_approvals(db: Session) -> int:
    return db.scalar(
        select(func.count())
        .select_from(InaReport)
        .where(InaReport.payment_status == PaymentStatus.PENDING_APPROVAL.value)
    ) or 0
