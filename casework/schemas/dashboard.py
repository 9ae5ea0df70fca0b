"""Pydantic schemas for the case managers dashboard."""

from datetime import datetime

from pydantic import BaseModel, Field


class BadgeCountsRead(BaseModel):
    urgent: int
    today: int
    ready: int
    pending: int
    approval_queue: int = Field(..., alias="approvalQueue")

    model_config = {"populate_by_name": True}


class BadgeCountsResponse(BaseModel):
    """Action Center badges. Zeroed with success=False when any count failed."""

    success: bool
    counts: BadgeCountsRead
    error: str | None = None
    calculated_at: datetime | None = None


class WorkspaceFeaturesResponse(BaseModel):
    success: bool = True
    features: dict[str, bool]
    access_level: str = Field(..., alias="accessLevel")
    compliance_approved: bool = Field(..., alias="complianceApproved")
    status: str
    timestamp: datetime | None = None

    model_config = {"populate_by_name": True}


class StageRead(BaseModel):
    stage: int
    label: str
    percent: int


class StageListResponse(BaseModel):
    success: bool = True
    stages: list[StageRead]
