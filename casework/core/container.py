"""Wiring of the case-management services for one application instance."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from casework.core.config import settings
from casework.services.assignment_service import WorkloadBalancer
from casework.services.badge_service import BadgeAggregator
from casework.services.case_service import CaseQueryEngine
from casework.services.nda_documents import NdaDocuments, PdfNdaDocuments
from casework.services.nda_service import SigningWorkflow
from casework.services.preview_cache import PreviewCache, PreviewSweeper
from casework.services.registration_service import (
    RegistrationVerifier,
    StaticRegistrationVerifier,
)
from casework.services.roster_service import DatabaseRoster, RosterService
from casework.utils.datetime_utils import utc_now


@dataclass
class ServiceContainer:
    session_factory: sessionmaker[Session]
    balancer: WorkloadBalancer
    cases: CaseQueryEngine
    badges: BadgeAggregator
    signing: SigningWorkflow
    sweeper: PreviewSweeper
    registration: RegistrationVerifier
    clock: Callable[[], datetime] = utc_now

    @classmethod
    def build(
        cls,
        session_factory: sessionmaker[Session],
        *,
        documents: NdaDocuments | None = None,
        roster: RosterService | None = None,
        registration: RegistrationVerifier | None = None,
        clock: Callable[[], datetime] = utc_now,
        preview_ttl: timedelta | None = None,
        sweep_interval_seconds: float | None = None,
    ) -> "ServiceContainer":
        documents = documents or PdfNdaDocuments.from_settings()
        roster = roster or DatabaseRoster(session_factory)
        cache = PreviewCache(
            ttl=preview_ttl or timedelta(seconds=settings.NDA_PREVIEW_TTL_SECONDS),
            on_evict=lambda session: documents.discard(session.preview_path),
        )
        return cls(
            session_factory=session_factory,
            balancer=WorkloadBalancer(session_factory, roster, clock=clock),
            cases=CaseQueryEngine(session_factory, clock=clock),
            badges=BadgeAggregator(session_factory, clock=clock),
            signing=SigningWorkflow(session_factory, documents, cache, clock=clock),
            sweeper=PreviewSweeper(
                cache,
                interval_seconds=(
                    sweep_interval_seconds or settings.NDA_PREVIEW_SWEEP_INTERVAL_SECONDS
                ),
                clock=clock,
            ),
            registration=registration or StaticRegistrationVerifier(),
            clock=clock,
        )
