"""Case managers router - professional registration checks."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from casework.core.deps import get_current_case_manager_pin, get_registration_verifier
from casework.services import registration_service
from casework.services.registration_service import RegistrationBody, RegistrationVerifier

router = APIRouter(prefix="/case-managers", tags=["Case Managers"])


# =============================================================================
# Schemas
# =============================================================================


class RegistrationCheckRequest(BaseModel):
    registration_body: RegistrationBody = Field(..., alias="registrationBody")
    registration_number: str = Field(..., alias="registrationNumber", max_length=50)

    model_config = {"populate_by_name": True}


class RegistrationCheckResponse(BaseModel):
    success: bool = True
    verified: bool
    name: str | None = None
    status: str | None = None


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/verify-medical-registration", response_model=RegistrationCheckResponse)
def verify_medical_registration(
    data: RegistrationCheckRequest,
    _: str = Depends(get_current_case_manager_pin),
    verifier: RegistrationVerifier = Depends(get_registration_verifier),
) -> RegistrationCheckResponse:
    """Check an NMC/GMC number against the register before reader onboarding."""
    check = registration_service.verify_registration(
        verifier, data.registration_body, data.registration_number
    )
    return RegistrationCheckResponse(
        verified=check.verified, name=check.name, status=check.status
    )
