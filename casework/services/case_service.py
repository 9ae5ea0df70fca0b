"""Case queries with priority decoration, Action Center filters, and stage transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from casework.core.exceptions import DependencyError, NotFoundError, ValidationError
from casework.core.priority import (
    URGENT_AFTER_DAYS,
    Priority,
    classify_priority,
    days_in_stage,
)
from casework.core.stage_definitions import (
    CONSENT_RECEIVED_STAGE,
    INTERNAL_REVIEW_STAGE,
    get_stage_info,
    is_valid_stage,
)
from casework.db.enums import SYSTEM_ACTOR, ActionFilter, CaseStatus
from casework.db.models import Case
from casework.services import activity_service, report_service, visit_service
from casework.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class CaseNotFoundError(NotFoundError):
    code = "case_not_found"


class StageRegressionError(ValidationError):
    """Workflow stage may not move backwards."""

    code = "stage_regression"


@dataclass(frozen=True)
class CaseWithPriority:
    case_pin: str
    client_name: str
    case_type: str
    assigned_cm_pin: str | None
    assigned_cm_name: str | None
    status: str
    workflow_stage: int
    stage_label: str
    progress_percent: int
    priority: Priority
    days_in_stage: int
    stage_updated_at: datetime
    created_at: datetime | None
    assigned_at: datetime | None
    consent_received_at: datetime | None


@dataclass
class CaseListResult:
    """Case list plus a failure indicator. An empty list alone never means failure."""

    cases: list[CaseWithPriority] = field(default_factory=list)
    ok: bool = True
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.cases)


# =============================================================================
# Predicates (shared with the badge aggregator)
# =============================================================================


def active_case() -> ColumnElement[bool]:
    return Case.case_status.not_in(CaseStatus.terminal())


def stuck_in_stage(now: datetime) -> ColumnElement[bool]:
    """Elapsed time since the last stage change exceeds the urgent threshold."""
    return Case.stage_updated_at < now - timedelta(days=URGENT_AFTER_DAYS)


def ready_to_contact() -> list[ColumnElement[bool]]:
    return [
        Case.case_status == CaseStatus.CONSENT_RECEIVED.value,
        Case.workflow_stage == CONSENT_RECEIVED_STAGE,
    ]


def awaiting_reader_assignment() -> list[ColumnElement[bool]]:
    return [
        Case.workflow_stage == INTERNAL_REVIEW_STAGE,
        Case.case_status == CaseStatus.INTERNAL_REVIEW_COMPLETE.value,
        report_service.first_reader_missing(),
    ]


def action_filter_predicates(action_filter: ActionFilter, now: datetime) -> list[ColumnElement[bool]]:
    if action_filter == ActionFilter.URGENT:
        return [stuck_in_stage(now)]
    if action_filter == ActionFilter.TODAY:
        return [visit_service.visit_on_day(now.date())]
    if action_filter == ActionFilter.READY:
        return ready_to_contact()
    if action_filter == ActionFilter.PENDING:
        return awaiting_reader_assignment()
    raise ValidationError(f"Unknown action filter: {action_filter}", code="invalid_filter")


def parse_action_filter(value: ActionFilter | str | None) -> ActionFilter | None:
    if value is None or value == "":
        return None
    if isinstance(value, ActionFilter):
        return value
    try:
        return ActionFilter(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown action filter '{value}'. Expected one of: "
            + ", ".join(f.value for f in ActionFilter),
            code="invalid_filter",
        ) from exc


def decorate_case(case: Case, now: datetime) -> CaseWithPriority:
    """Attach computed priority and stage metadata to a case row."""
    days = days_in_stage(case.stage_updated_at, now)
    stage = get_stage_info(case.workflow_stage)
    return CaseWithPriority(
        case_pin=case.case_pin,
        client_name=case.client_name,
        case_type=case.case_type,
        assigned_cm_pin=case.assigned_cm_pin,
        assigned_cm_name=case.assigned_cm_name,
        status=case.case_status,
        workflow_stage=case.workflow_stage,
        stage_label=stage.label,
        progress_percent=stage.percent,
        priority=classify_priority(days),
        days_in_stage=days,
        stage_updated_at=case.stage_updated_at,
        created_at=case.created_at,
        assigned_at=case.assigned_at,
        consent_received_at=case.consent_received_at,
    )


# =============================================================================
# Query engine
# =============================================================================


class CaseQueryEngine:
    """Reads cases for case-manager worklists and applies stage transitions."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def list_cases_with_priority(
        self,
        manager_pin: str | None = None,
        action_filter: ActionFilter | str | None = None,
    ) -> CaseListResult:
        """
        List active cases, oldest stage change first, each with its priority.

        Store failures return an empty result with ok=False instead of raising.
        An unknown action filter is a ValidationError.
        """
        parsed_filter = parse_action_filter(action_filter)
        now = self._clock()

        query = select(Case).where(active_case())
        if manager_pin:
            query = query.where(Case.assigned_cm_pin == manager_pin)
        if parsed_filter is not None:
            query = query.where(*action_filter_predicates(parsed_filter, now))
        query = query.order_by(Case.stage_updated_at.asc(), Case.case_pin.asc())

        try:
            with self._session_factory() as db:
                rows = list(db.execute(query).scalars().all())
        except SQLAlchemyError:
            logger.exception(
                "Failed to fetch cases (manager=%s, filter=%s)",
                manager_pin,
                parsed_filter.value if parsed_filter else None,
            )
            return CaseListResult(cases=[], ok=False, error="Failed to fetch cases")

        cases = [decorate_case(case, now) for case in rows]
        logger.info("Retrieved %d cases with priority calculations", len(cases))
        return CaseListResult(cases=cases)

    def get_case(self, case_pin: str) -> CaseWithPriority:
        try:
            with self._session_factory() as db:
                case = db.scalar(select(Case).where(Case.case_pin == case_pin))
        except SQLAlchemyError as exc:
            logger.exception("Failed to load case %s", case_pin)
            raise DependencyError("Failed to load case") from exc
        if case is None:
            raise CaseNotFoundError(f"Case {case_pin} not found")
        return decorate_case(case, self._clock())

    def transition_case(
        self,
        case_pin: str,
        *,
        workflow_stage: int | None = None,
        case_status: CaseStatus | str | None = None,
        performed_by: str = SYSTEM_ACTOR,
    ) -> CaseWithPriority:
        """
        Advance the workflow stage and/or change status.

        - Stage must stay within 1..14 and never decrease
        - stage_updated_at resets only when the stage actually changes
        - closed/cancelled cases accept no further transitions
        - one activity entry per changed field, in the same transaction
        """
        if workflow_stage is None and case_status is None:
            raise ValidationError("Nothing to change", code="empty_transition")
        if workflow_stage is not None and not is_valid_stage(workflow_stage):
            raise ValidationError(
                f"Workflow stage must be between 1 and 14, got {workflow_stage}",
                code="invalid_stage",
            )
        new_status: str | None = None
        if case_status is not None:
            try:
                new_status = CaseStatus(case_status).value
            except ValueError as exc:
                raise ValidationError(
                    f"Unknown case status '{case_status}'", code="invalid_status"
                ) from exc

        now = self._clock()
        try:
            with self._session_factory() as db, db.begin():
                case = db.scalar(
                    select(Case).where(Case.case_pin == case_pin).with_for_update()
                )
                if case is None:
                    raise CaseNotFoundError(f"Case {case_pin} not found")
                if case.case_status in CaseStatus.terminal():
                    raise ValidationError(
                        f"Case {case_pin} is {case.case_status} and cannot change",
                        code="case_closed",
                    )

                if workflow_stage is not None and workflow_stage != case.workflow_stage:
                    if workflow_stage < case.workflow_stage:
                        raise StageRegressionError(
                            f"Case {case_pin} is at stage {case.workflow_stage}; "
                            f"cannot move back to {workflow_stage}"
                        )
                    activity_service.log_stage_advanced(
                        db=db,
                        case_pin=case_pin,
                        from_stage=case.workflow_stage,
                        to_stage=workflow_stage,
                        performed_at=now,
                        performed_by=performed_by,
                    )
                    case.workflow_stage = workflow_stage
                    case.stage_updated_at = now

                if new_status is not None and new_status != case.case_status:
                    activity_service.log_status_changed(
                        db=db,
                        case_pin=case_pin,
                        from_status=case.case_status,
                        to_status=new_status,
                        performed_at=now,
                        performed_by=performed_by,
                    )
                    case.case_status = new_status
                    if (
                        new_status == CaseStatus.CONSENT_RECEIVED.value
                        and case.consent_received_at is None
                    ):
                        case.consent_received_at = now

                case.updated_at = now
                db.flush()
                result = decorate_case(case, now)
        except SQLAlchemyError as exc:
            logger.exception("Failed to transition case %s", case_pin)
            raise DependencyError("Failed to update case") from exc

        return result
