"""Case and case activity models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from casework.db.base import Base
from casework.db.enums import CaseStatus


class Case(Base):
    """
    A referred legal case.

    Workflow:
    - workflow_stage runs 1..14 and never decreases
    - stage_updated_at resets whenever workflow_stage changes
    - closed/cancelled are terminal; rows are never deleted (audit retention)
    """

    __tablename__ = "cases"
    __table_args__ = (
        UniqueConstraint("case_pin", name="uq_cases_case_pin"),
        CheckConstraint(
            "workflow_stage BETWEEN 1 AND 14", name="ck_cases_workflow_stage_range"
        ),
        Index("idx_cases_assigned_status", "assigned_cm_pin", "case_status"),
        Index("idx_cases_stage_updated", "stage_updated_at"),
        Index("idx_cases_status_stage", "case_status", "workflow_stage"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_pin: Mapped[str] = mapped_column(String(50), nullable=False)

    lawyer_pin: Mapped[str] = mapped_column(String(50), nullable=False)
    lawyer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    case_type: Mapped[str] = mapped_column(String(100), nullable=False)

    assigned_cm_pin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    assigned_cm_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(nullable=True)

    case_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=CaseStatus.PENDING_CONTACT.value
    )
    workflow_stage: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    stage_updated_at: Mapped[datetime] = mapped_column(nullable=False)
    consent_received_at: Mapped[datetime | None] = mapped_column(nullable=True)

    referral_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class CaseActivityLog(Base):
    """
    Append-only audit trail for case events.

    Written by this service, read only by external reporting.
    """

    __tablename__ = "case_activity_log"
    __table_args__ = (Index("idx_case_activity_case_time", "case_pin", "performed_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_pin: Mapped[str] = mapped_column(String(50), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    activity_description: Mapped[str] = mapped_column(Text, nullable=False)
    performed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    performed_at: Mapped[datetime] = mapped_column(nullable=False)
