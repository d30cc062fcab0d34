"""Medical record service.

The lifecycle engine consumes only :meth:`MedicalRecordService.has_record`.
Record creation is chained by the caller after a successful completion.
"""

from uuid import UUID

import structlog
from sqlalchemy import and_, exists, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinicops.core.exceptions import ConflictException, NotFoundException
from clinicops.models.appointments import appointments
from clinicops.models.medical_records import medical_records
from clinicops.schemas.appointments import AppointmentStatus
from clinicops.schemas.medical_records import MedicalRecordCreate, MedicalRecordResponse

logger = structlog.get_logger(__name__)


class MedicalRecordService:
    """Service for medical records attached to appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def has_record(self, appointment_id: UUID) -> bool:
        """Check whether any medical record references the appointment."""
        stmt = select(exists().where(medical_records.c.appointment_id == appointment_id))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def get_record(self, appointment_id: UUID) -> MedicalRecordResponse:
        """
        Get the medical record for an appointment.

        Raises:
            NotFoundException: If no record exists
        """
        stmt = select(medical_records).where(medical_records.c.appointment_id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Medical record not found")

        return MedicalRecordResponse.model_validate(dict(row))

    async def create_record(
        self,
        appointment_id: UUID,
        data: MedicalRecordCreate,
        created_by: UUID | None,
    ) -> MedicalRecordResponse:
        """
        Create the medical record for a completed appointment.

        Args:
            appointment_id: Appointment the record documents
            data: Record contents
            created_by: Acting operator

        Returns:
            Created record

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the appointment is not completed or
                already has a record
        """
        # Version bump: a revert that read the appointment before this record
        # fails its compare-and-swap
        claim = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == AppointmentStatus.COMPLETED.value,
                )
            )
            .values(version=appointments.c.version + 1)
            .returning(appointments.c.patient_id)
        )

        try:
            result = await self.db.execute(claim)
            patient_id = result.scalar()

            if patient_id is None:
                await self._raise_not_recordable(appointment_id)

            result = await self.db.execute(
                insert(medical_records)
                .values(
                    appointment_id=appointment_id,
                    patient_id=patient_id,
                    diagnosis=data.diagnosis,
                    treatment_plan=data.treatment_plan,
                    notes=data.notes,
                    created_by=created_by,
                )
                .returning(medical_records)
            )
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Appointment already has a medical record")
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "medical_record_created",
            appointment_id=str(appointment_id),
            record_id=str(row["id"]),
        )

        return MedicalRecordResponse.model_validate(dict(row))

    async def _raise_not_recordable(self, appointment_id: UUID) -> None:
        stmt = select(appointments.c.status).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        status = result.scalar()

        if status is None:
            raise NotFoundException("Appointment not found")

        raise ConflictException(
            f"Medical records can only be created for completed appointments "
            f"(current status: '{status}')"
        )
