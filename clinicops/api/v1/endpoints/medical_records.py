"""Medical record endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from clinicops.dependencies import CurrentOperator, DatabaseSession
from clinicops.schemas.medical_records import MedicalRecordCreate, MedicalRecordResponse
from clinicops.services.medical_record_service import MedicalRecordService

router = APIRouter()


@router.post(
    "/{appointment_id}/medical-records",
    response_model=MedicalRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the medical record for a completed appointment",
)
async def create_medical_record(
    appointment_id: UUID,
    data: MedicalRecordCreate,
    operator_id: CurrentOperator,
    db: DatabaseSession,
) -> MedicalRecordResponse:
    """
    Record the outcome of a completed visit.

    Once a record exists the appointment can no longer be reverted out of
    ``completed``.
    """
    service = MedicalRecordService(db)
    return await service.create_record(appointment_id, data, created_by=operator_id)


@router.get(
    "/{appointment_id}/medical-records",
    response_model=MedicalRecordResponse,
    status_code=status.HTTP_200_OK,
    summary="Get the medical record for an appointment",
)
async def get_medical_record(
    appointment_id: UUID,
    operator_id: CurrentOperator,
    db: DatabaseSession,
) -> MedicalRecordResponse:
    service = MedicalRecordService(db)
    return await service.get_record(appointment_id)
