"""NDA router - four-step signing flow and signed document access."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from casework.core.deps import get_current_case_manager_pin, get_signing_workflow
from casework.schemas.nda import (
    NdaPreviewRequest,
    NdaSignedResponse,
    NdaSignRequest,
    NdaStepResponse,
)
from casework.services.nda_service import SigningStep, SigningWorkflow

router = APIRouter(prefix="/nda", tags=["NDA"])

PDF_MEDIA_TYPE = "application/pdf"
HASH_VERIFIED_HEADER = "X-Nda-Hash-Verified"


def _step_response(step: SigningStep) -> NdaStepResponse:
    return NdaStepResponse(state=step.state, step=step.step)


def _pdf_response(content: bytes, filename: str, disposition: str) -> Response:
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'{disposition}; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )


# =============================================================================
# Signing steps
# =============================================================================


@router.post("/continue", response_model=NdaStepResponse)
def continue_to_sign(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> NdaStepResponse:
    return _step_response(workflow.continue_to_sign(case_manager_pin))


@router.post("/preview", response_model=NdaStepResponse)
def generate_preview(
    data: NdaPreviewRequest,
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> NdaStepResponse:
    """Stamp a drawn signature (image data URL) onto the NDA."""
    step = workflow.generate_preview(
        case_manager_pin, data.signature_data, data.acknowledged
    )
    return _step_response(step)


@router.post("/preview/upload", response_model=NdaStepResponse)
def generate_preview_from_upload(
    signature: Annotated[UploadFile, File()],
    acknowledged: Annotated[bool, Form()] = False,
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> NdaStepResponse:
    """Stamp an uploaded signature image onto the NDA."""
    step = workflow.generate_preview(
        case_manager_pin, signature.file.read(), acknowledged
    )
    return _step_response(step)


@router.get("/preview")
def serve_preview(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> Response:
    content = workflow.serve_preview(case_manager_pin)
    return _pdf_response(content, f"ndaPreview{case_manager_pin}.pdf", "inline")


@router.post("/sign", response_model=NdaSignedResponse)
def finalize_sign(
    data: NdaSignRequest,
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> NdaSignedResponse:
    signed = workflow.finalize_sign(case_manager_pin, data.confirmed)
    return NdaSignedResponse(
        blockchain_hash=signed.blockchain_hash,
        signed_at=signed.signed_at,
    )


# =============================================================================
# State and signed document
# =============================================================================


@router.get("/state", response_model=NdaStepResponse)
def get_state(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> NdaStepResponse:
    return _step_response(workflow.current_state(case_manager_pin))


@router.get("/view")
def view_signed(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> Response:
    document = workflow.get_signed_document(case_manager_pin)
    response = _pdf_response(document.content, document.filename, "inline")
    response.headers[HASH_VERIFIED_HEADER] = str(document.hash_verified).lower()
    return response


@router.get("/download")
def download_signed(
    case_manager_pin: str = Depends(get_current_case_manager_pin),
    workflow: SigningWorkflow = Depends(get_signing_workflow),
) -> Response:
    document = workflow.get_signed_document(case_manager_pin)
    response = _pdf_response(document.content, document.filename, "attachment")
    response.headers[HASH_VERIFIED_HEADER] = str(document.hash_verified).lower()
    return response
