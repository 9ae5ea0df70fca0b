"""Dashboard router - Action Center badges and the stage table."""

from fastapi import APIRouter, Depends

from casework.core.deps import get_badge_aggregator, get_current_case_manager_pin
from casework.core.stage_definitions import get_stage_defs
from casework.schemas.dashboard import (
    BadgeCountsRead,
    BadgeCountsResponse,
    StageListResponse,
    StageRead,
)
from casework.services.badge_service import BadgeAggregator

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/badges", response_model=BadgeCountsResponse)
def get_badges(
    _: str = Depends(get_current_case_manager_pin),
    aggregator: BadgeAggregator = Depends(get_badge_aggregator),
) -> BadgeCountsResponse:
    """
    Counts for the Action Center.

    Badges are advisory, so a failed count still answers 200 with all counts
    zeroed and success=False.
    """
    counts = aggregator.get_badge_counts()
    return BadgeCountsResponse(
        success=not counts.degraded,
        counts=BadgeCountsRead(**counts.counts()),
        error=counts.error,
        calculated_at=counts.calculated_at,
    )


@router.get("/stages", response_model=StageListResponse)
def get_stages(
    _: str = Depends(get_current_case_manager_pin),
) -> StageListResponse:
    """Workflow stages in pipeline order, for progress bars."""
    return StageListResponse(stages=[StageRead(**info) for info in get_stage_defs()])
