"""Pydantic schemas for the NDA signing flow."""

from datetime import datetime

from pydantic import BaseModel, Field

from casework.db.enums import SigningState


class NdaPreviewRequest(BaseModel):
    """Drawn signature as an image data URL plus the read acknowledgment."""

    signature_data: str | None = Field(None, alias="signatureData")
    acknowledged: bool = False

    model_config = {"populate_by_name": True}


class NdaSignRequest(BaseModel):
    confirmed: bool = False


class NdaStepResponse(BaseModel):
    success: bool = True
    state: SigningState
    step: int


class NdaSignedResponse(BaseModel):
    success: bool = True
    state: SigningState = SigningState.SIGNED
    step: int = 4
    blockchain_hash: str
    signed_at: datetime
