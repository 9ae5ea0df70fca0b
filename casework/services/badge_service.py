"""Action Center badge counts for the case managers dashboard."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from casework.db.enums import CaseStatus
from casework.db.models import Case
from casework.services import report_service, visit_service
from casework.services.case_service import (
    active_case,
    awaiting_reader_assignment,
    ready_to_contact,
    stuck_in_stage,
)
from casework.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

DEGRADED_MESSAGE = "Failed to calculate accurate counts"


@dataclass(frozen=True)
class BadgeCounts:
    urgent: int = 0
    today: int = 0
    ready: int = 0
    pending: int = 0
    approval_queue: int = 0
    degraded: bool = False
    error: str | None = None
    calculated_at: datetime | None = None

    def counts(self) -> dict[str, int]:
        data = asdict(self)
        return {
            "urgent": data["urgent"],
            "today": data["today"],
            "ready": data["ready"],
            "pending": data["pending"],
            "approvalQueue": data["approval_queue"],
        }


def _count_cases(db: Session, *predicates) -> int:
    return db.scalar(select(func.count()).select_from(Case).where(*predicates)) or 0


class BadgeAggregator:
    """
    Computes the five Action Center counts.

    Badges are advisory: if any count fails, every count is reported as zero
    with degraded=True so the dashboard never shows a partial set.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def get_badge_counts(self) -> BadgeCounts:
        now = self._clock()
        try:
            with self._session_factory() as db:
                urgent = _count_cases(db, active_case(), stuck_in_stage(now))
                today = visit_service.count_scheduled_visits_on(db, now.date())
                ready = _count_cases(db, *ready_to_contact())
                pending = _count_cases(db, *awaiting_reader_assignment())
                approval_queue = report_service.count_pending_payment_approvals(
                    db
                ) + _count_cases(
                    db, Case.case_status == CaseStatus.AWAITING_CLOSURE_APPROVAL.value
                )
        except Exception:
            logger.exception("Badge counts failed; returning zeroed counts")
            return BadgeCounts(degraded=True, error=DEGRADED_MESSAGE, calculated_at=now)

        counts = BadgeCounts(
            urgent=urgent,
            today=today,
            ready=ready,
            pending=pending,
            approval_queue=approval_queue,
            calculated_at=now,
        )
        logger.info("Badge counts calculated: %s", counts.counts())
        return counts
