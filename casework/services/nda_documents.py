"""
NDA document rendering.

Stamps the case manager's signature and the fixed counter-signature onto the
per-manager NDA template (reportlab overlay merged with pypdf), flattens the
stamped document so nothing stays editable, and stores the final artifact.
"""

from __future__ import annotations

import io
import logging
import os
import uuid
from pathlib import Path
from typing import Protocol

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from casework.core.config import settings
from casework.core.exceptions import DependencyError, NotFoundError

logger = logging.getLogger(__name__)

# Signature boxes on the last page, in points from the bottom-left corner
SIGNATURE_WIDTH = 180
SIGNATURE_HEIGHT = 60
SIGNER_BOX = (72, 96)
COUNTER_SIGNER_BOX = (340, 96)


class SignatureEmbeddingError(DependencyError):
    code = "pdf"
    step = 2


class FlatteningError(DependencyError):
    code = "flatten"
    step = 3


class ArtifactStorageError(DependencyError):
    code = "storage"
    step = 3


class ArtifactNotFoundError(NotFoundError):
    code = "artifact_not_found"


class NdaDocuments(Protocol):
    def stamp_signatures(self, case_manager_pin: str, signer_image: bytes) -> Path: ...

    def flatten(self, stamped_path: Path) -> bytes: ...

    def store_signed(self, case_manager_pin: str, content: bytes) -> Path: ...

    def read(self, path: Path) -> bytes: ...

    def discard(self, path: Path) -> None: ...


def template_filename(case_manager_pin: str) -> str:
    return f"caseManagersNda{case_manager_pin}.pdf"


def signed_filename(case_manager_pin: str) -> str:
    return f"signedCaseManagersNda{case_manager_pin}.pdf"


def _signature_overlay(
    width: float,
    height: float,
    signer_image: bytes,
    counter_signer_image: bytes | None,
) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(width, height))
    for image, (x, y) in (
        (signer_image, SIGNER_BOX),
        (counter_signer_image, COUNTER_SIGNER_BOX),
    ):
        if image is None:
            continue
        pdf.drawImage(
            ImageReader(io.BytesIO(image)),
            x,
            y,
            width=SIGNATURE_WIDTH,
            height=SIGNATURE_HEIGHT,
            preserveAspectRatio=True,
            mask="auto",
        )
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def flatten_pdf(content: bytes) -> bytes:
    """Burn form field values into page content and drop the interactive form."""
    reader = PdfReader(io.BytesIO(content))
    writer = PdfWriter(clone_from=reader)

    fields = reader.get_fields() or {}
    text_values = {
        name: str(field.get("/V", ""))
        for name, field in fields.items()
        if field.get("/FT") == "/Tx"
    }
    if text_values:
        for page in writer.pages:
            writer.update_page_form_field_values(
                page, text_values, auto_regenerate=False, flatten=True
            )
    if fields:
        writer.remove_annotations(subtypes="/Widget")
    writer.root_object.pop("/AcroForm", None)

    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


class PdfNdaDocuments:
    """Filesystem-backed NDA documents."""

    def __init__(
        self,
        template_dir: str | Path,
        preview_dir: str | Path,
        signed_dir: str | Path,
        counter_signature_path: str | Path | None,
    ):
        self._template_dir = Path(template_dir)
        self._preview_dir = Path(preview_dir)
        self._signed_dir = Path(signed_dir)
        self._counter_signature_path = (
            Path(counter_signature_path) if counter_signature_path else None
        )

    @classmethod
    def from_settings(cls) -> "PdfNdaDocuments":
        return cls(
            template_dir=settings.NDA_TEMPLATE_DIR,
            preview_dir=settings.NDA_PREVIEW_DIR,
            signed_dir=settings.NDA_SIGNED_DIR,
            counter_signature_path=settings.counter_signature_path,
        )

    def template_path(self, case_manager_pin: str) -> Path:
        return self._template_dir / template_filename(case_manager_pin)

    def signed_path(self, case_manager_pin: str) -> Path:
        """A fresh path per signing cycle; a previous artifact is never overwritten."""
        stem = Path(signed_filename(case_manager_pin)).stem
        return self._signed_dir / f"{stem}-{uuid.uuid4().hex}.pdf"

    def _counter_signature(self) -> bytes | None:
        path = self._counter_signature_path
        if path is None or not path.exists():
            logger.warning("Counter-signature image not found at %s; stamping signer only", path)
            return None
        return path.read_bytes()

    def stamp_signatures(self, case_manager_pin: str, signer_image: bytes) -> Path:
        """Write a stamped (still editable) copy of the template and return its path.

        Every call writes a new file, so concurrent previews for one pin never
        share an output path.
        """
        template = self.template_path(case_manager_pin)
        if not template.exists():
            raise SignatureEmbeddingError(f"NDA template not found for {case_manager_pin}")

        try:
            writer = PdfWriter(clone_from=PdfReader(template))
            page = writer.pages[-1]
            overlay = _signature_overlay(
                float(page.mediabox.width),
                float(page.mediabox.height),
                signer_image,
                self._counter_signature(),
            )
            page.merge_page(PdfReader(io.BytesIO(overlay)).pages[0])

            self._preview_dir.mkdir(parents=True, exist_ok=True)
            output = self._preview_dir / f"ndaPreview{case_manager_pin}-{uuid.uuid4().hex}.pdf"
            with output.open("wb") as fh:
                writer.write(fh)
        except (PyPdfError, OSError, ValueError) as exc:
            logger.exception("Signature insertion failed for %s", case_manager_pin)
            raise SignatureEmbeddingError("Failed to insert signatures into NDA") from exc

        logger.info("Signatures inserted into NDA preview for %s", case_manager_pin)
        return output

    def flatten(self, stamped_path: Path) -> bytes:
        try:
            return flatten_pdf(Path(stamped_path).read_bytes())
        except (PyPdfError, OSError, ValueError, KeyError) as exc:
            logger.exception("Flattening failed for %s", stamped_path)
            raise FlatteningError("Failed to flatten NDA") from exc

    def store_signed(self, case_manager_pin: str, content: bytes) -> Path:
        path = self.signed_path(case_manager_pin)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            self._signed_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            logger.exception("Failed to store signed NDA for %s", case_manager_pin)
            raise ArtifactStorageError("Failed to store signed NDA") from exc
        return path

    def read(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError("NDA file not found") from exc

    def discard(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)
