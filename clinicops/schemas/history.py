"""Status history schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel

from clinicops.schemas.appointments import AppointmentStatus


class ChangeType(str, Enum):
    """Kind of ledger entry."""

    STATUS_CHANGE = "status_change"
    STATUS_REVERSION = "status_reversion"
    DOCTOR_ASSIGNMENT = "doctor_assignment"


class StatusHistoryEntry(BaseModel):
    """A single immutable ledger entry."""

    id: int
    appointment_id: UUID
    change_type: ChangeType
    from_status: AppointmentStatus | None = None
    to_status: AppointmentStatus | None = None
    reason: str | None = None
    actor_id: UUID | None = None
    reverted_entry_id: int | None = None
    previous_doctor_id: UUID | None = None
    new_doctor_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusHistoryResponse(BaseModel):
    """Full history of an appointment, oldest first."""

    appointment_id: UUID
    total: int
    items: list[StatusHistoryEntry]
