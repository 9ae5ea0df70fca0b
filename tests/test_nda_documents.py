"""Tests for NDA stamping, flattening, and storage against real PDFs."""

from io import BytesIO

import pytest
from PIL import Image
from pypdf import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from casework.services.nda_documents import (
    ArtifactNotFoundError,
    PdfNdaDocuments,
    SignatureEmbeddingError,
    flatten_pdf,
    signed_filename,
    template_filename,
)


def _png_bytes(color=(0, 0, 0, 255)) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (60, 20), color=color).save(buf, format="PNG")
    return buf.getvalue()


def _template_with_form() -> bytes:
    """Two-page NDA with a fillable text field on the last page."""
    buf = BytesIO()
    pdf = canvas.Canvas(buf, pagesize=letter)
    pdf.drawString(72, 720, "Confidentiality Agreement")
    pdf.showPage()
    pdf.drawString(72, 720, "Signatures")
    pdf.acroForm.textfield(name="signer_name", x=72, y=600, width=200, height=20, value="Casey Manager")
    pdf.showPage()
    pdf.save()
    return buf.getvalue()


@pytest.fixture
def documents(tmp_path) -> PdfNdaDocuments:
    template_dir = tmp_path / "templates"
    template_dir.mkdir()
    (template_dir / template_filename("NS-1")).write_bytes(_template_with_form())

    signatures_dir = tmp_path / "signatures"
    signatures_dir.mkdir()
    counter = signatures_dir / "counter-signature.png"
    counter.write_bytes(_png_bytes((0, 0, 255, 255)))

    return PdfNdaDocuments(
        template_dir=template_dir,
        preview_dir=tmp_path / "previews",
        signed_dir=tmp_path / "signed",
        counter_signature_path=counter,
    )


def test_filenames():
    assert template_filename("NS-1") == "caseManagersNdaNS-1.pdf"
    assert signed_filename("NS-1") == "signedCaseManagersNdaNS-1.pdf"


def test_stamp_writes_unique_preview_per_call(documents):
    first = documents.stamp_signatures("NS-1", _png_bytes())
    second = documents.stamp_signatures("NS-1", _png_bytes())

    assert first != second
    assert first.exists() and second.exists()
    reader = PdfReader(second)
    assert len(reader.pages) == 2
    assert "/XObject" in reader.pages[-1]["/Resources"]


def test_stamp_without_counter_signature_still_works(tmp_path, documents):
    no_counter = PdfNdaDocuments(
        template_dir=documents.template_path("NS-1").parent,
        preview_dir=tmp_path / "previews-2",
        signed_dir=tmp_path / "signed-2",
        counter_signature_path=tmp_path / "missing.png",
    )

    assert no_counter.stamp_signatures("NS-1", _png_bytes()).exists()


def test_stamp_missing_template(documents):
    with pytest.raises(SignatureEmbeddingError) as exc_info:
        documents.stamp_signatures("NS-404", _png_bytes())

    assert exc_info.value.code == "pdf"


def test_flatten_removes_interactive_form(documents):
    stamped = documents.stamp_signatures("NS-1", _png_bytes())
    assert PdfReader(stamped).get_fields()

    flattened = documents.flatten(stamped)

    reader = PdfReader(BytesIO(flattened))
    assert not reader.get_fields()
    assert "/AcroForm" not in reader.trailer["/Root"]
    assert len(reader.pages) == 2


def test_flatten_pdf_without_form_is_passthrough():
    buf = BytesIO()
    pdf = canvas.Canvas(buf)
    pdf.drawString(72, 720, "plain")
    pdf.save()

    reader = PdfReader(BytesIO(flatten_pdf(buf.getvalue())))
    assert len(reader.pages) == 1


def test_store_signed_and_read_back(documents):
    path = documents.store_signed("NS-1", b"%PDF-final")

    assert path.name.startswith("signedCaseManagersNdaNS-1-")
    assert path.suffix == ".pdf"
    assert documents.read(path) == b"%PDF-final"
    assert list(path.parent.glob("*.tmp")) == []


def test_store_signed_never_overwrites_previous_artifact(documents):
    first = documents.store_signed("NS-1", b"%PDF-one")
    second = documents.store_signed("NS-1", b"%PDF-two")

    assert first != second
    assert documents.read(first) == b"%PDF-one"
    assert documents.read(second) == b"%PDF-two"


def test_read_missing_artifact(documents, tmp_path):
    with pytest.raises(ArtifactNotFoundError):
        documents.read(tmp_path / "nope.pdf")


def test_discard_is_quiet_for_missing_files(documents, tmp_path):
    documents.discard(tmp_path / "nope.pdf")
