"""Case manager roster collaborators.

The workload balancer only needs a pin and a display name per manager, in a
stable order. The roster itself belongs to onboarding; these adapters expose
it behind one small interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from casework.db.models import CaseManager


@dataclass(frozen=True)
class RosterEntry:
    pin: str
    name: str


class RosterService(Protocol):
    def list_active_case_managers(self) -> list[RosterEntry]: ...


class DatabaseRoster:
    """Active case managers from the case_managers table, oldest first."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def list_active_case_managers(self) -> list[RosterEntry]:
        with self._session_factory() as db:
            rows = db.execute(
                select(CaseManager.pin, CaseManager.name)
                .where(CaseManager.is_active.is_(True))
                .order_by(CaseManager.created_at, CaseManager.pin)
            ).all()
        return [RosterEntry(pin=pin, name=name) for pin, name in rows]


class StaticRoster:
    """Fixed roster, in the order given. Used for fixtures and local setups."""

    def __init__(self, entries: Sequence[RosterEntry]):
        self._entries = list(entries)

    def list_active_case_managers(self) -> list[RosterEntry]:
        return list(self._entries)
