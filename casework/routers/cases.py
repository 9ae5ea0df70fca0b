"""Cases router - assignment, worklists, and stage transitions."""

from fastapi import APIRouter, Depends, Query, Response

from casework.core.deps import (
    get_balancer,
    get_case_engine,
    get_current_case_manager_pin,
)
from casework.schemas.case import (
    AssignedManager,
    CaseAssignRequest,
    CaseAssignResponse,
    CaseListResponse,
    CaseRead,
    CaseTransitionRequest,
)
from casework.services.assignment_service import CaseReferral, WorkloadBalancer
from casework.services.case_service import CaseQueryEngine

router = APIRouter(prefix="/cases", tags=["Cases"])


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/assign", response_model=CaseAssignResponse, status_code=201)
def assign_case(
    data: CaseAssignRequest,
    balancer: WorkloadBalancer = Depends(get_balancer),
) -> CaseAssignResponse:
    """
    Create a case from a lawyer referral and assign it to the case manager
    with the fewest active cases.
    """
    result = balancer.assign_case(
        CaseReferral(
            case_pin=data.case_pin,
            lawyer_pin=data.lawyer_pin,
            client_name=data.client_name,
            case_type=data.case_type,
            lawyer_name=data.lawyer_name,
            referral_data=data.referral_data,
        )
    )
    return CaseAssignResponse(
        message=result.message,
        case_id=result.case_id,
        case_pin=result.case_pin,
        case_status=result.case_status,
        workflow_stage=result.workflow_stage,
        stage_label=result.stage_label,
        assigned_at=result.assigned_at,
        assigned_manager=AssignedManager(
            pin=result.manager.pin,
            name=result.manager.name,
            workload_before=result.manager.active_count,
        ),
    )


@router.get("", response_model=CaseListResponse)
def list_cases(
    response: Response,
    action_filter: str | None = Query(
        None, alias="filter", description="urgent, today, ready, or pending"
    ),
    manager_pin: str | None = Query(
        None, alias="cmPin", description="Only cases assigned to this case manager"
    ),
    _: str = Depends(get_current_case_manager_pin),
    engine: CaseQueryEngine = Depends(get_case_engine),
) -> CaseListResponse:
    """
    Active cases, oldest stage change first.

    Without cmPin every active case is listed, so an Action Center filter
    returns the same set its badge counts.
    """
    result = engine.list_cases_with_priority(
        manager_pin=(manager_pin or "").strip() or None, action_filter=action_filter
    )
    if not result.ok:
        response.status_code = 503
    return CaseListResponse(
        success=result.ok,
        cases=[CaseRead.model_validate(case) for case in result.cases],
        count=result.count,
        error=result.error,
    )


@router.get("/{case_pin}", response_model=CaseRead)
def get_case(
    case_pin: str,
    _: str = Depends(get_current_case_manager_pin),
    engine: CaseQueryEngine = Depends(get_case_engine),
) -> CaseRead:
    return CaseRead.model_validate(engine.get_case(case_pin))


@router.post("/{case_pin}/transition", response_model=CaseRead)
def transition_case(
    case_pin: str,
    data: CaseTransitionRequest,
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    engine: CaseQueryEngine = Depends(get_case_engine),
) -> CaseRead:
    """Advance the workflow stage and/or change the case status."""
    case = engine.transition_case(
        case_pin,
        workflow_stage=data.workflow_stage,
        case_status=data.case_status,
        performed_by=case_manager_pin,
    )
    return CaseRead.model_validate(case)
