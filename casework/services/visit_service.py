"""Read access to the INA visit schedule."""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from casework.db.enums import VisitStatus
from casework.db.models import Case, InaVisit
from casework.utils.datetime_utils import day_bounds


def visit_on_day(day: date) -> ColumnElement[bool]:
    """Correlated predicate: the case has a visit dated on `day` (UTC)."""
    start, end = day_bounds(day)
    return (
        select(InaVisit.id)
        .where(
            InaVisit.case_pin == Case.case_pin,
            InaVisit.visit_date >= start,
            InaVisit.visit_date < end,
        )
        .exists()
    )


def count_scheduled_visits_on(db: Session, day: date) -> int:
    start, end = day_bounds(day)
    return db.scalar(
        select(func.count())
        .select_from(InaVisit)
        .where(
            InaVisit.visit_date >= start,
            InaVisit.visit_date < end,
            InaVisit.visit_status == VisitStatus.SCHEDULED.value,
        )
    ) or 0
