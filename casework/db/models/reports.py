"""INA report and visit models (owned by other dashboards, read here)."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from casework.db.base import Base
from casework.db.enums import PaymentStatus, VisitStatus


class InaReport(Base):
    __tablename__ = "ina_reports"
    __table_args__ = (
        Index("idx_ina_reports_case", "case_pin"),
        Index("idx_ina_reports_payment_status", "payment_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_pin: Mapped[str] = mapped_column(String(50), nullable=False)
    first_reader_pin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    second_reader_pin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PaymentStatus.NOT_REQUESTED.value
    )


class InaVisit(Base):
    __tablename__ = "ina_visits"
    __table_args__ = (Index("idx_ina_visits_date_status", "visit_date", "visit_status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_pin: Mapped[str] = mapped_column(String(50), nullable=False)
    visit_date: Mapped[datetime] = mapped_column(nullable=False)
    visit_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=VisitStatus.SCHEDULED.value
    )
