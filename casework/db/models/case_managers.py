"""Case manager model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, Text, UniqueConstraint, Uuid, false, func, true
from sqlalchemy.orm import Mapped, mapped_column

from casework.db.base import Base


class CaseManager(Base):
    """
    A case manager.

    Onboarding is handled elsewhere. This service only writes the NDA fields;
    once nda_signed is set the stored hash matches the flattened artifact bytes.
    """

    __tablename__ = "case_managers"
    __table_args__ = (UniqueConstraint("pin", name="uq_case_managers_pin"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pin: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="active")
    is_active: Mapped[bool] = mapped_column(
        Boolean, server_default=true(), default=True, nullable=False
    )
    compliance_approved: Mapped[bool] = mapped_column(
        Boolean, server_default=false(), default=False, nullable=False
    )

    # NDA
    nda_signed: Mapped[bool] = mapped_column(
        Boolean, server_default=false(), default=False, nullable=False
    )
    nda_signed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    nda_pdf_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    nda_blockchain_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    nda_blockchain_timestamp: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
