"""SQLAlchemy ORM models."""

from casework.db.models.case_managers import CaseManager
from casework.db.models.cases import Case, CaseActivityLog
from casework.db.models.reports import InaReport, InaVisit

__all__ = [
    "Case",
    "CaseActivityLog",
    "CaseManager",
    "InaReport",
    "InaVisit",
]
