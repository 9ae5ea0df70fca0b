"""Workspace feature access, gated on compliance approval."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casework.core.exceptions import DependencyError, NotFoundError, ValidationError
from casework.db.models import CaseManager

logger = logging.getLogger(__name__)

# Features unlocked only after compliance approval
GATED_FEATURES = (
    "canCreateCases",
    "canEditCases",
    "canViewReports",
    "canGenerateReports",
    "canAssignReaders",
    "canViewFinances",
    "canAccessSettings",
)


@dataclass(frozen=True)
class WorkspaceFeatures:
    case_manager_pin: str
    compliance_approved: bool
    status: str
    features: dict[str, bool] = field(default_factory=dict)
    timestamp: datetime | None = None

    @property
    def access_level(self) -> str:
        return "full" if self.compliance_approved else "limited"


def build_features(compliance_approved: bool) -> dict[str, bool]:
    features = {"canViewCases": True}
    features.update({name: compliance_approved for name in GATED_FEATURES})
    return features


def get_workspace_features(db: Session, pin: str, now: datetime) -> WorkspaceFeatures:
    pin = (pin or "").strip()
    if not pin:
        raise ValidationError("Case Manager PIN required", code="pin")

    try:
        row = db.execute(
            select(CaseManager.compliance_approved, CaseManager.status).where(
                CaseManager.pin == pin
            )
        ).first()
    except SQLAlchemyError as exc:
        logger.exception("Workspace features lookup failed for %s", pin)
        raise DependencyError("Failed to retrieve workspace features") from exc

    if row is None:
        logger.warning("Case manager not found for pin %s", pin)
        raise NotFoundError("Case manager not found", code="case_manager_not_found")

    approved = bool(row.compliance_approved)
    logger.info("Workspace features for %s (approved: %s)", pin, approved)
    return WorkspaceFeatures(
        case_manager_pin=pin,
        compliance_approved=approved,
        status=row.status,
        features=build_features(approved),
        timestamp=now,
    )
