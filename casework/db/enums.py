"""Enum definitions for case-management constants."""

from enum import Enum


class CaseStatus(str, Enum):
    """
    Case status.

    Terminal statuses (closed, cancelled) drop a case out of workload counts,
    priority queues and the Action Center. Cases are never deleted.
    """

    PENDING_CONTACT = "pendingContact"
    CLIENT_CONTACTED = "clientContacted"
    CONSENT_SENT = "consentSent"
    CONSENT_RECEIVED = "consentReceived"
    INA_SCHEDULED = "inaScheduled"
    INA_COMPLETED = "inaCompleted"
    REPORT_IN_PROGRESS = "reportInProgress"
    INTERNAL_REVIEW_COMPLETE = "internalReviewComplete"
    READER_REVIEW = "readerReview"
    AWAITING_CLOSURE_APPROVAL = "awaitingClosureApproval"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    @classmethod
    def terminal(cls) -> list[str]:
        return [cls.CLOSED.value, cls.CANCELLED.value]


class CaseActivityType(str, Enum):
    CASE_ASSIGNED = "caseAssigned"
    STAGE_ADVANCED = "stageAdvanced"
    STATUS_CHANGED = "statusChanged"


class PriorityLevel(str, Enum):
    URGENT = "urgent"
    ATTENTION = "attention"
    ON_TRACK = "on-track"


class ActionFilter(str, Enum):
    """Action Center categories."""

    URGENT = "urgent"
    TODAY = "today"
    READY = "ready"
    PENDING = "pending"


class VisitStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    NOT_REQUESTED = "notRequested"
    PENDING_APPROVAL = "pendingApproval"
    APPROVED = "approved"
    PAID = "paid"


class SigningState(str, Enum):
    """NDA signing steps 1-4."""

    INITIATED = "initiated"
    AWAITING_SIGNATURE = "awaitingSignature"
    PREVIEW_READY = "previewReady"
    SIGNED = "signed"

    @property
    def step(self) -> int:
        return _SIGNING_STEPS[self]


_SIGNING_STEPS = {
    SigningState.INITIATED: 1,
    SigningState.AWAITING_SIGNATURE: 2,
    SigningState.PREVIEW_READY: 3,
    SigningState.SIGNED: 4,
}

SYSTEM_ACTOR = "system"
