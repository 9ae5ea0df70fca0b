"""Tests for case listing, Action Center filters, and stage transitions."""

from datetime import timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from casework.core.exceptions import DependencyError, NotFoundError, ValidationError
from casework.db.enums import ActionFilter, CaseActivityType, CaseStatus, PriorityLevel
from casework.db.models import CaseActivityLog, InaReport, InaVisit
from casework.services.case_service import (
    CaseQueryEngine,
    StageRegressionError,
    parse_action_filter,
)


@pytest.fixture
def engine_under_test(session_factory, clock) -> CaseQueryEngine:
    return CaseQueryEngine(session_factory, clock=clock)


# =============================================================================
# Listing
# =============================================================================


def test_list_orders_by_oldest_stage_change_and_decorates(engine_under_test, make_case):
    make_case("C-NEW", "CM-1", days_ago=1)
    make_case("C-OLD", "CM-1", days_ago=6, stage=4)
    make_case("C-MID", "CM-1", days_ago=3)

    result = engine_under_test.list_cases_with_priority(manager_pin="CM-1")

    assert result.ok
    assert [c.case_pin for c in result.cases] == ["C-OLD", "C-MID", "C-NEW"]
    oldest = result.cases[0]
    assert oldest.days_in_stage == 6
    assert oldest.priority.level == PriorityLevel.URGENT
    assert oldest.stage_label == "Stage 4: Consent Received"
    assert oldest.progress_percent == 28
    assert result.cases[1].priority.level == PriorityLevel.ATTENTION
    assert result.cases[2].priority.level == PriorityLevel.ON_TRACK


def test_list_excludes_terminal_and_other_managers(engine_under_test, make_case):
    make_case("C-1", "CM-1")
    make_case("C-2", "CM-1", status=CaseStatus.CLOSED)
    make_case("C-3", "CM-1", status=CaseStatus.CANCELLED)
    make_case("C-4", "CM-2")

    result = engine_under_test.list_cases_with_priority(manager_pin="CM-1")

    assert [c.case_pin for c in result.cases] == ["C-1"]
    assert result.count == 1


def test_list_without_manager_returns_all_active(engine_under_test, make_case):
    make_case("C-1", "CM-1")
    make_case("C-2", "CM-2")

    assert engine_under_test.list_cases_with_priority().count == 2


def test_empty_result_is_not_a_failure(engine_under_test):
    result = engine_under_test.list_cases_with_priority(manager_pin="NOBODY")

    assert result.ok
    assert result.cases == []


def test_store_failure_sets_failure_indicator(engine_under_test, session_factory, monkeypatch):
    def broken_execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr("sqlalchemy.orm.Session.execute", broken_execute)

    result = engine_under_test.list_cases_with_priority(manager_pin="CM-1")

    assert not result.ok
    assert result.cases == []
    assert result.error == "Failed to fetch cases"


# =============================================================================
# Action Center filters
# =============================================================================


def test_urgent_filter_matches_stuck_cases(engine_under_test, make_case):
    make_case("C-STUCK", "CM-1", days_ago=6)
    make_case("C-FRESH", "CM-1", days_ago=2)
    make_case("C-CLOSED", "CM-1", days_ago=9, status=CaseStatus.CLOSED)

    result = engine_under_test.list_cases_with_priority("CM-1", ActionFilter.URGENT)

    assert [c.case_pin for c in result.cases] == ["C-STUCK"]
    assert result.cases[0].priority.level == PriorityLevel.URGENT
    assert result.cases[0].days_in_stage == 6


def test_urgent_filter_uses_elapsed_time_not_whole_days(engine_under_test, make_case):
    # 5.5 days: past the urgent cutoff, but the floored day count is still 5
    make_case("C-EDGE", "CM-1", days_ago=5.5)

    result = engine_under_test.list_cases_with_priority("CM-1", "urgent")

    assert [c.case_pin for c in result.cases] == ["C-EDGE"]
    assert result.cases[0].days_in_stage == 5
    assert result.cases[0].priority.level == PriorityLevel.ATTENTION


def test_ready_filter_requires_consent_received_at_stage_four(engine_under_test, make_case):
    make_case("C-READY", "CM-1", stage=4, status=CaseStatus.CONSENT_RECEIVED)
    make_case("C-WRONG-STAGE", "CM-1", stage=5, status=CaseStatus.CONSENT_RECEIVED)
    make_case("C-WRONG-STATUS", "CM-1", stage=4, status=CaseStatus.CONSENT_SENT)

    result = engine_under_test.list_cases_with_priority("CM-1", "ready")

    assert [c.case_pin for c in result.cases] == ["C-READY"]


def test_pending_filter_requires_report_without_first_reader(engine_under_test, make_case, db):
    review = CaseStatus.INTERNAL_REVIEW_COMPLETE
    make_case("C-PENDING", "CM-1", stage=9, status=review)
    make_case("C-HAS-READER", "CM-1", stage=9, status=review)
    make_case("C-NO-REPORT", "CM-1", stage=9, status=review)
    db.add_all(
        [
            InaReport(case_pin="C-PENDING", first_reader_pin=None),
            InaReport(case_pin="C-HAS-READER", first_reader_pin="RD-1"),
        ]
    )
    db.commit()

    result = engine_under_test.list_cases_with_priority("CM-1", ActionFilter.PENDING)

    assert [c.case_pin for c in result.cases] == ["C-PENDING"]


def test_today_filter_matches_visits_on_current_utc_day(engine_under_test, make_case, db, clock):
    make_case("C-TODAY", "CM-1")
    make_case("C-TOMORROW", "CM-1")
    make_case("C-NONE", "CM-1")
    db.add_all(
        [
            InaVisit(case_pin="C-TODAY", visit_date=clock.now + timedelta(hours=3)),
            InaVisit(case_pin="C-TOMORROW", visit_date=clock.now + timedelta(days=1)),
        ]
    )
    db.commit()

    result = engine_under_test.list_cases_with_priority("CM-1", "today")

    assert [c.case_pin for c in result.cases] == ["C-TODAY"]


def test_unknown_filter_is_validation_error(engine_under_test):
    with pytest.raises(ValidationError) as exc_info:
        engine_under_test.list_cases_with_priority("CM-1", "someday")

    assert exc_info.value.code == "invalid_filter"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_parse_action_filter_accepts_empty():
    assert parse_action_filter(None) is None
    assert parse_action_filter("") is None
    assert parse_action_filter("ready") == ActionFilter.READY


# =============================================================================
# Single case
# =============================================================================


def test_get_case(engine_under_test, make_case):
    make_case("C-1", "CM-1", days_ago=4, stage=2)

    case = engine_under_test.get_case("C-1")

    assert case.stage_label == "Stage 2: Client Contacted"
    assert case.priority.level == PriorityLevel.ATTENTION


def test_get_case_not_found(engine_under_test):
    with pytest.raises(NotFoundError):
        engine_under_test.get_case("NOPE")


# =============================================================================
# Transitions
# =============================================================================


def test_advancing_stage_resets_stage_clock_and_logs(engine_under_test, make_case, session_factory, clock):
    make_case("C-1", "CM-1", days_ago=7, stage=3, status=CaseStatus.CONSENT_SENT)

    case = engine_under_test.transition_case(
        "C-1", workflow_stage=4, case_status=CaseStatus.CONSENT_RECEIVED, performed_by="CM-1"
    )

    assert case.workflow_stage == 4
    assert case.status == CaseStatus.CONSENT_RECEIVED.value
    assert case.days_in_stage == 0
    assert case.priority.level == PriorityLevel.ON_TRACK
    assert case.consent_received_at == clock.now

    with session_factory() as db:
        entries = db.scalars(
            select(CaseActivityLog)
            .where(CaseActivityLog.case_pin == "C-1")
            .order_by(CaseActivityLog.activity_type)
        ).all()
        assert [e.activity_type for e in entries] == [
            CaseActivityType.STAGE_ADVANCED.value,
            CaseActivityType.STATUS_CHANGED.value,
        ]
        assert all(e.performed_by == "CM-1" for e in entries)


def test_status_change_without_stage_change_keeps_stage_clock(engine_under_test, make_case, clock):
    original = make_case("C-1", "CM-1", days_ago=4, stage=2)

    case = engine_under_test.transition_case("C-1", case_status="clientContacted")

    assert case.workflow_stage == 2
    assert case.days_in_stage == 4
    assert case.stage_updated_at.replace(tzinfo=timezone.utc) == original.stage_updated_at


def test_stage_cannot_move_backwards(engine_under_test, make_case):
    make_case("C-1", "CM-1", stage=5)

    with pytest.raises(StageRegressionError):
        engine_under_test.transition_case("C-1", workflow_stage=4)


@pytest.mark.parametrize("stage", [0, 15])
def test_stage_must_stay_in_range(engine_under_test, make_case, stage):
    make_case("C-1", "CM-1")

    with pytest.raises(ValidationError) as exc_info:
        engine_under_test.transition_case("C-1", workflow_stage=stage)

    assert exc_info.value.code == "invalid_stage"


def test_terminal_case_rejects_transitions(engine_under_test, make_case):
    make_case("C-1", "CM-1", stage=14, status=CaseStatus.CLOSED)

    with pytest.raises(ValidationError) as exc_info:
        engine_under_test.transition_case("C-1", case_status=CaseStatus.PENDING_CONTACT)

    assert exc_info.value.code == "case_closed"


def test_transition_requires_a_change(engine_under_test, make_case):
    make_case("C-1", "CM-1")

    with pytest.raises(ValidationError):
        engine_under_test.transition_case("C-1")


def test_transition_unknown_case(engine_under_test):
    with pytest.raises(NotFoundError):
        engine_under_test.transition_case("NOPE", workflow_stage=2)


def test_transition_store_failure_is_dependency_error(engine_under_test, make_case, monkeypatch):
    make_case("C-1", "CM-1")

    def broken_scalar(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr("sqlalchemy.orm.Session.scalar", broken_scalar)

    with pytest.raises(DependencyError):
        engine_under_test.transition_case("C-1", workflow_stage=2)


def test_stuck_case_scenario_appears_as_urgent(engine_under_test, make_case):
    make_case("CASE-STUCK", "CM-1", days_ago=6, stage=2, status=CaseStatus.CONSENT_RECEIVED)

    result = engine_under_test.list_cases_with_priority("CM-1", ActionFilter.URGENT)

    assert [c.case_pin for c in result.cases] == ["CASE-STUCK"]
    assert result.cases[0].priority.level == PriorityLevel.URGENT
    assert result.cases[0].priority.days == 6
