"""
NDA signing workflow for case managers.

Four steps:
    1. Initiated          -> continue_to_sign  -> 2. AwaitingSignature
    2. AwaitingSignature  -> generate_preview  -> 3. PreviewReady (cached session)
    3. PreviewReady       -> finalize_sign     -> 4. Signed (persisted)

Steps 1-3 live only in the preview cache. Failures leave the caller on the
step they were on, except an expired/missing session which sends them back
to step 2.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from casework.core.exceptions import (
    DependencyError,
    NotFoundError,
    ValidationError,
)
from casework.core.structured_logging import hash_prefix
from casework.db.enums import SigningState
from casework.db.models import CaseManager
from casework.services.nda_documents import (
    ArtifactNotFoundError,
    NdaDocuments,
    signed_filename,
)
from casework.services.preview_cache import PreviewCache, SigningSession
from casework.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

SIGNATURE_PLACEHOLDER = "data:image/png;base64,"
PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I"}


class MissingPinError(ValidationError):
    code = "pin"
    step = 1


class MissingAcknowledgmentError(ValidationError):
    code = "acknowledgment"
    step = 2


class InvalidSignatureError(ValidationError):
    code = "signature"
    step = 2


class ConfirmationRequiredError(ValidationError):
    code = "confirm"
    step = 3


class CaseManagerNotFoundError(NotFoundError):
    code = "case_manager_not_found"
    step = 1


class SigningSessionNotFoundError(NotFoundError):
    """No live preview: never generated, already finalized, or expired."""

    code = "expired"
    step = 2


class SigningPersistenceError(DependencyError):
    code = "server"
    step = 3


class SignedDocumentNotFoundError(NotFoundError):
    code = "signed_nda_not_found"
    step = 4


@dataclass(frozen=True)
class SigningStep:
    case_manager_pin: str
    state: SigningState

    @property
    def step(self) -> int:
        return self.state.step


@dataclass(frozen=True)
class SignedNda:
    case_manager_pin: str
    pdf_path: Path
    blockchain_hash: str
    signed_at: datetime


@dataclass(frozen=True)
class SignedDocument:
    case_manager_pin: str
    filename: str
    content: bytes
    blockchain_hash: str | None
    hash_verified: bool


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def decode_signature_payload(payload: str | bytes | None) -> bytes:
    """
    Accept a base64 image data URL (drawn signature) or raw uploaded image
    bytes, and return PNG bytes. Empty data and the bare data-URL prefix are
    rejected.
    """
    if payload is None:
        raise InvalidSignatureError("Signature is required")

    if isinstance(payload, str):
        value = payload.strip()
        if not value or value == SIGNATURE_PLACEHOLDER:
            raise InvalidSignatureError("Signature is required")
        if not value.startswith("data:image") or "," not in value:
            raise InvalidSignatureError("Signature must be an image data URL")
        try:
            raw = base64.b64decode(value.split(",", 1)[1], validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidSignatureError("Signature data is not valid base64") from exc
    else:
        raw = bytes(payload)

    if not raw:
        raise InvalidSignatureError("Signature is required")

    try:
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
            if image.mode not in PNG_MODES:
                image = image.convert("RGBA")
            output = io.BytesIO()
            image.save(output, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidSignatureError("Signature is not a readable image") from exc
    return output.getvalue()


class SigningWorkflow:
    """NDA signing state machine. Owns the preview cache."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        documents: NdaDocuments,
        cache: PreviewCache,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._documents = documents
        self._cache = cache
        self._clock = clock

    @property
    def cache(self) -> PreviewCache:
        return self._cache

    def sweep_expired(self, now: datetime | None = None) -> int:
        return self._cache.sweep_expired(now or self._clock())

    # -------------------------------------------------------------------------
    # Step 1 -> 2
    # -------------------------------------------------------------------------

    def continue_to_sign(self, case_manager_pin: str) -> SigningStep:
        """Idempotent; only the pin is required."""
        pin = _require_pin(case_manager_pin)
        logger.info("[NDA] Step 1 -> 2: case manager %s continuing to sign", pin)
        return SigningStep(pin, SigningState.AWAITING_SIGNATURE)

    # -------------------------------------------------------------------------
    # Step 2 -> 3
    # -------------------------------------------------------------------------

    def generate_preview(
        self,
        case_manager_pin: str,
        signature_payload: str | bytes | None,
        acknowledged: bool,
    ) -> SigningStep:
        """
        Stamp signatures onto the NDA template and cache the preview.

        Raises:
            MissingAcknowledgmentError: acknowledgment box not ticked
            InvalidSignatureError: signature missing, placeholder, or unreadable
            CaseManagerNotFoundError: unknown pin
            SignatureEmbeddingError: stamping failed
        """
        pin = _require_pin(case_manager_pin)
        if not acknowledged:
            logger.info("[NDA] Preview rejected - acknowledgment not confirmed for %s", pin)
            raise MissingAcknowledgmentError("Please confirm you have read the NDA")

        try:
            signature = decode_signature_payload(signature_payload)
        except InvalidSignatureError:
            logger.info("[NDA] Preview rejected - no valid signature provided for %s", pin)
            raise

        manager = self._load_case_manager(pin)

        logger.info("[NDA] Step 2 -> 3: generating preview for %s", pin)
        preview_path = self._documents.stamp_signatures(pin, signature)

        self._cache.put(
            SigningSession(
                case_manager_pin=pin,
                case_manager_name=manager.name,
                preview_path=preview_path,
                signature_data=signature,
                created_at=self._clock(),
            )
        )
        logger.info("[NDA] Preview cached for %s", pin)
        return SigningStep(pin, SigningState.PREVIEW_READY)

    def serve_preview(self, case_manager_pin: str) -> bytes:
        """Bytes of the live preview; any missing or expired session is not found."""
        pin = _require_pin(case_manager_pin)
        session = self._cache.get(pin, self._clock())
        if session is None:
            logger.info("[NDA] Preview not found in cache for %s", pin)
            raise SigningSessionNotFoundError(
                "Preview not found. Please restart the signing process."
            )
        try:
            return self._documents.read(session.preview_path)
        except ArtifactNotFoundError as exc:
            logger.error("[NDA] Preview PDF file missing for %s", pin)
            self._cache.delete(pin, expected=session)
            raise SigningSessionNotFoundError(
                "Preview not found. Please restart the signing process."
            ) from exc

    # -------------------------------------------------------------------------
    # Step 3 -> 4
    # -------------------------------------------------------------------------

    def finalize_sign(self, case_manager_pin: str, confirmed: bool) -> SignedNda:
        """
        Flatten, hash and persist the signed NDA, then drop the session.

        The session is only removed after the database commit, so any failure
        before that point can be retried from step 3. Each cycle stores its
        artifact under a new path; a previously signed artifact is removed
        only once the record points at the new one.
        """
        pin = _require_pin(case_manager_pin)
        if not confirmed:
            raise ConfirmationRequiredError("Please confirm the preview before signing")

        session = self._cache.get(pin, self._clock())
        if session is None:
            logger.info("[NDA] No cached preview for %s, back to step 2", pin)
            raise SigningSessionNotFoundError(
                "Your preview has expired. Please sign again."
            )

        logger.info("[NDA] Step 3 -> 4: finalizing NDA for %s", pin)
        final_bytes = self._documents.flatten(session.preview_path)
        digest = content_hash(final_bytes)
        final_path = self._documents.store_signed(pin, final_bytes)
        signed_at = self._clock()

        try:
            with self._session_factory() as db, db.begin():
                manager = db.scalar(
                    select(CaseManager).where(CaseManager.pin == pin).with_for_update()
                )
                if manager is None:
                    raise CaseManagerNotFoundError(f"Case manager {pin} not found")
                previous_path = manager.nda_pdf_path
                manager.nda_signed = True
                manager.nda_signed_at = signed_at
                manager.nda_pdf_path = str(final_path)
                manager.nda_blockchain_hash = digest
                manager.nda_blockchain_timestamp = signed_at
        except CaseManagerNotFoundError:
            self._documents.discard(final_path)
            raise
        except SQLAlchemyError as exc:
            logger.exception("[NDA] Failed to record signed NDA for %s", pin)
            self._documents.discard(final_path)
            raise SigningPersistenceError("Failed to record signed NDA. Please try again.") from exc

        if previous_path and Path(previous_path) != final_path:
            self._documents.discard(Path(previous_path))
        self._cache.delete(pin, expected=session)
        logger.info(
            "[NDA] NDA signed for %s (hash %s)", pin, hash_prefix(digest)
        )
        return SignedNda(
            case_manager_pin=pin,
            pdf_path=final_path,
            blockchain_hash=digest,
            signed_at=signed_at,
        )

    # -------------------------------------------------------------------------
    # Read-only
    # -------------------------------------------------------------------------

    def current_state(self, case_manager_pin: str) -> SigningStep:
        pin = _require_pin(case_manager_pin)
        manager = self._load_case_manager(pin)
        if manager.nda_signed:
            return SigningStep(pin, SigningState.SIGNED)
        if self._cache.get(pin, self._clock()) is not None:
            return SigningStep(pin, SigningState.PREVIEW_READY)
        return SigningStep(pin, SigningState.INITIATED)

    def get_signed_document(self, case_manager_pin: str) -> SignedDocument:
        """The finalized NDA, with a check that it still matches the stored hash."""
        pin = _require_pin(case_manager_pin)
        manager = self._load_case_manager(pin)
        if not manager.nda_signed or not manager.nda_pdf_path:
            raise SignedDocumentNotFoundError("Signed NDA not found")

        try:
            content = self._documents.read(Path(manager.nda_pdf_path))
        except ArtifactNotFoundError as exc:
            logger.error("[NDA] Signed NDA file missing for %s", pin)
            raise SignedDocumentNotFoundError("Signed NDA file not found") from exc

        verified = manager.nda_blockchain_hash == content_hash(content)
        if not verified:
            logger.warning("[NDA] Signed NDA for %s does not match its stored hash", pin)
        return SignedDocument(
            case_manager_pin=pin,
            filename=signed_filename(pin),
            content=content,
            blockchain_hash=manager.nda_blockchain_hash,
            hash_verified=verified,
        )

    def _load_case_manager(self, pin: str) -> CaseManager:
        try:
            with self._session_factory() as db:
                manager = db.scalar(select(CaseManager).where(CaseManager.pin == pin))
        except SQLAlchemyError as exc:
            logger.exception("[NDA] Case manager lookup failed for %s", pin)
            raise DependencyError("Failed to load case manager") from exc
        if manager is None:
            raise CaseManagerNotFoundError("Case Manager not found")
        return manager


def _require_pin(case_manager_pin: str | None) -> str:
    pin = (case_manager_pin or "").strip()
    if not pin:
        raise MissingPinError("Case Manager PIN required")
    return pin
