"""Workspace router - feature access for the case manager workspace."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casework.core.container import ServiceContainer
from casework.core.deps import get_current_case_manager_pin, get_db, get_services
from casework.schemas.dashboard import WorkspaceFeaturesResponse
from casework.services import workspace_service

router = APIRouter(prefix="/workspace", tags=["Workspace"])


@router.get("/features", response_model=WorkspaceFeaturesResponse)
def get_features(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    db: Session = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> WorkspaceFeaturesResponse:
    """Everything except viewing cases is locked until compliance approval."""
    result = workspace_service.get_workspace_features(
        db=db, pin=case_manager_pin, now=services.clock()
    )
    return WorkspaceFeaturesResponse(
        features=result.features,
        access_level=result.access_level,
        compliance_approved=result.compliance_approved,
        status=result.status,
        timestamp=result.timestamp,
    )
