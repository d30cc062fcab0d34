"""Medical record schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MedicalRecordCreate(BaseModel):
    """Schema for recording the outcome of a completed visit."""

    diagnosis: str = Field(..., min_length=1, max_length=2000)
    treatment_plan: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=4000)


class MedicalRecordResponse(BaseModel):
    """Schema for medical record response."""

    id: UUID
    appointment_id: UUID
    patient_id: UUID
    diagnosis: str
    treatment_plan: str | None = None
    notes: str | None = None
    created_by: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
