"""Pydantic schemas for API request/response models."""

from casework.schemas.case import (
    AssignedManager,
    CaseAssignRequest,
    CaseAssignResponse,
    CaseListResponse,
    CaseRead,
    CaseTransitionRequest,
    PriorityRead,
)
from casework.schemas.dashboard import (
    BadgeCountsRead,
    BadgeCountsResponse,
    StageListResponse,
    StageRead,
    WorkspaceFeaturesResponse,
)
from casework.schemas.nda import (
    NdaPreviewRequest,
    NdaSignedResponse,
    NdaSignRequest,
    NdaStepResponse,
)

__all__ = [
    "AssignedManager",
    "BadgeCountsRead",
    "BadgeCountsResponse",
    "CaseAssignRequest",
    "CaseAssignResponse",
    "CaseListResponse",
    "CaseRead",
    "CaseTransitionRequest",
    "NdaPreviewRequest",
    "NdaSignRequest",
    "NdaSignedResponse",
    "NdaStepResponse",
    "PriorityRead",
    "StageListResponse",
    "StageRead",
    "WorkspaceFeaturesResponse",
]
