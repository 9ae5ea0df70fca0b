"""Pydantic schemas for cases."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from casework.db.enums import CaseStatus, PriorityLevel


class CaseAssignRequest(BaseModel):
    """Request schema for auto-assigning a new referral."""

    case_pin: str = Field(..., min_length=1, max_length=50)
    lawyer_pin: str = Field(..., min_length=1, max_length=50)
    client_name: str = Field(..., min_length=1, max_length=255)
    case_type: str = Field(..., min_length=1, max_length=100)
    lawyer_name: str | None = Field(None, max_length=255)
    referral_data: dict[str, Any] = Field(default_factory=dict)


class AssignedManager(BaseModel):
    pin: str
    name: str
    workload_before: int


class CaseAssignResponse(BaseModel):
    """Response for a successful assignment."""

    success: bool = True
    message: str
    case_id: UUID
    case_pin: str
    case_status: str
    workflow_stage: int
    stage_label: str
    assigned_at: datetime
    assigned_manager: AssignedManager


class PriorityRead(BaseModel):
    level: PriorityLevel
    label: str
    color: str
    emoji: str
    days: int

    model_config = {"from_attributes": True}


class CaseRead(BaseModel):
    """Case with computed priority and stage metadata."""

    case_pin: str
    client_name: str
    case_type: str
    assigned_cm_pin: str | None
    assigned_cm_name: str | None
    status: str
    workflow_stage: int
    stage_label: str
    progress_percent: int
    priority: PriorityRead
    days_in_stage: int
    stage_updated_at: datetime
    created_at: datetime | None
    assigned_at: datetime | None
    consent_received_at: datetime | None

    model_config = {"from_attributes": True}


class CaseListResponse(BaseModel):
    """Case list. success=False means the store failed, not that there are no cases."""

    success: bool
    cases: list[CaseRead]
    count: int
    error: str | None = None


class CaseTransitionRequest(BaseModel):
    """Stage advance and/or status change (at least one required)."""

    workflow_stage: int | None = Field(None, ge=1, le=14)
    case_status: CaseStatus | None = None
