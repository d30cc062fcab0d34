"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    SCHEDULED = "scheduled"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    patient_id: UUID
    service_id: UUID
    doctor_id: UUID | None = None
    appointment_date: date | None = None


class AppointmentTransitionRequest(BaseModel):
    """Schema for moving an appointment forward in its lifecycle."""

    status: AppointmentStatus
    reason: str | None = Field(None, max_length=1000)
    expected_version: int | None = Field(
        None,
        ge=1,
        description="Version the caller last read; rejected with a conflict if stale",
    )


class AppointmentRevertRequest(BaseModel):
    """Schema for undoing the last status change."""

    history_entry_id: int = Field(..., ge=1)
    # Blank reasons are rejected by the lifecycle engine as MissingReason
    reason: str = Field("", max_length=1000)
    expected_version: int | None = Field(None, ge=1)


class DoctorAssignmentRequest(BaseModel):
    """Schema for assigning or unassigning a doctor. ``None`` unassigns."""

    doctor_id: UUID | None
    expected_version: int | None = Field(None, ge=1)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    service_id: UUID
    doctor_id: UUID | None = None
    appointment_date: date | None = None
    status: AppointmentStatus
    checked_in_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentMutationResponse(BaseModel):
    """Updated appointment plus the ledger entry recording the change."""

    appointment: AppointmentResponse
    history_entry_id: int


class AppointmentRevertResponse(AppointmentMutationResponse):
    """Revert result, disclosing the milestone timestamps it cleared."""

    cleared_timestamps: list[str] = Field(default_factory=list)


class DoctorEligibilityResponse(BaseModel):
    """Whether the doctor on an appointment can still be changed."""

    appointment_id: UUID
    can_assign: bool
    reason: str | None = None
