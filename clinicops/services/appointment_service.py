"""Appointment lifecycle service.

Orchestrates the transition table, milestone timestamps, doctor assignment
policy and reversion guard over the appointments table and its status
history ledger. Every mutation writes the appointment row and exactly one
ledger entry in a single transaction, guarded by a compare-and-swap on the
row ``version``.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinicops.config import settings
from clinicops.core.exceptions import (
    AppException,
    ConcurrentModificationException,
    ConsultationAlreadyInProgressException,
    DoctorAssignmentNotAllowedException,
    InvalidTransitionException,
    MissingReasonException,
    NotFoundException,
    ReversionBlockedException,
)
from clinicops.lifecycle.decision import Decision, DenialKind
from clinicops.lifecycle.doctor_policy import check_doctor_assignment
from clinicops.lifecycle.reversion import (
    check_downstream_record,
    check_reversion_reason,
    check_reversion_target,
    requires_record_check,
)
from clinicops.lifecycle.timestamps import milestone_updates, milestones_beyond, reversion_clears
from clinicops.lifecycle.transitions import INITIAL_STATUS, default_reason, validate_transition
from clinicops.models.appointments import appointments
from clinicops.schemas.appointments import (
    AppointmentCreate,
    AppointmentMutationResponse,
    AppointmentResponse,
    AppointmentRevertResponse,
    AppointmentStatus,
    DoctorEligibilityResponse,
)
from clinicops.schemas.history import ChangeType, StatusHistoryEntry, StatusHistoryResponse
from clinicops.services.doctor_service import DoctorService
from clinicops.services.history_service import StatusHistoryService
from clinicops.services.medical_record_service import MedicalRecordService

logger = structlog.get_logger(__name__)

DENIAL_EXCEPTIONS: dict[DenialKind, type[AppException]] = {
    DenialKind.INVALID_TRANSITION: InvalidTransitionException,
    DenialKind.MISSING_REASON: MissingReasonException,
    DenialKind.REVERSION_BLOCKED: ReversionBlockedException,
    DenialKind.DOCTOR_ASSIGNMENT_NOT_ALLOWED: DoctorAssignmentNotAllowedException,
}


class AppointmentService:
    """Service for the appointment lifecycle."""

    def __init__(
        self,
        db: AsyncSession,
        doctor_service: DoctorService | None = None,
        medical_records: MedicalRecordService | None = None,
        enforce_sequential_consultation: bool | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.history = StatusHistoryService(db)
        self.doctors = doctor_service or DoctorService()
        self.medical_records = medical_records or MedicalRecordService(db)
        if enforce_sequential_consultation is None:
            enforce_sequential_consultation = settings.enforce_sequential_consultation
        self.enforce_sequential_consultation = enforce_sequential_consultation

    async def create_appointment(
        self,
        data: AppointmentCreate,
        actor_id: UUID | None,
    ) -> AppointmentMutationResponse:
        """
        Create a new appointment in the initial status.

        The creation itself is recorded as the first ledger entry, with no
        ``from_status``, so the ledger explains the status from the start.

        Raises:
            NotFoundException: If the requested doctor does not exist
        """
        if data.doctor_id is not None and not await self.doctors.is_assignable(
            self.db, data.doctor_id
        ):
            raise NotFoundException("Doctor not found")

        now = datetime.now(UTC)
        appointment_id = uuid4()
        values = {
            "id": appointment_id,
            "patient_id": data.patient_id,
            "service_id": data.service_id,
            "doctor_id": data.doctor_id,
            "appointment_date": data.appointment_date,
            "status": INITIAL_STATUS.value,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.db.execute(
                insert(appointments).values(**values).returning(appointments)
            )
            row = result.mappings().one()
            entry_id = await self.history.append(
                appointment_id,
                ChangeType.STATUS_CHANGE,
                to_status=INITIAL_STATUS,
                reason=default_reason(INITIAL_STATUS),
                actor_id=actor_id,
                created_at=now,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_created",
            appointment_id=str(appointment_id),
            history_entry_id=entry_id,
        )

        return AppointmentMutationResponse(
            appointment=AppointmentResponse.model_validate(dict(row)),
            history_entry_id=entry_id,
        )

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        row = await self._load(appointment_id)
        return AppointmentResponse.model_validate(row)

    async def apply_transition(
        self,
        appointment_id: UUID,
        target: AppointmentStatus,
        actor_id: UUID | None,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> AppointmentMutationResponse:
        """
        Move an appointment forward along the transition table.

        Args:
            appointment_id: Appointment ID
            target: Requested status
            actor_id: Operator performing the change
            reason: Optional justification; a default is recorded when absent
            expected_version: Version the caller last read, if pinned

        Returns:
            Updated appointment and the new ledger entry id

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the table does not allow the change
            ConsultationAlreadyInProgressException: If starting would run two
                consultations for the same service and date at once
            ConcurrentModificationException: If the appointment changed under us
        """
        appointment = await self._load(appointment_id, expected_version)
        current = AppointmentStatus(appointment["status"])

        self._enforce(validate_transition(current, target), appointment_id, "transition")

        if target == AppointmentStatus.IN_PROGRESS:
            await self._ensure_no_consultation_in_progress(appointment)

        now = datetime.now(UTC)
        values: dict[str, Any] = {
            "status": target.value,
            "updated_at": now,
            **milestone_updates(target, now),
        }

        updated, entry_id = await self._commit(
            appointment,
            values,
            change_type=ChangeType.STATUS_CHANGE,
            from_status=current,
            to_status=target,
            reason=_clean(reason) or default_reason(target),
            actor_id=actor_id,
        )

        logger.info(
            "appointment_transition_applied",
            appointment_id=str(appointment_id),
            from_status=current.value,
            to_status=target.value,
            history_entry_id=entry_id,
        )

        return AppointmentMutationResponse(appointment=updated, history_entry_id=entry_id)

    async def revert(
        self,
        appointment_id: UUID,
        history_entry_id: int,
        reason: str | None,
        actor_id: UUID | None,
        expected_version: int | None = None,
    ) -> AppointmentRevertResponse:
        """
        Undo the most recent status change.

        The appointment returns to the ``from_status`` of the given entry,
        every milestone timestamp past that status is cleared, and a
        ``status_reversion`` entry referencing the undone entry is appended.

        Raises:
            NotFoundException: If appointment or history entry not found
            InvalidTransitionException: If the entry is not the current undo candidate
            ReversionBlockedException: If a completed visit already has a medical record
            MissingReasonException: If no reason is given
            ConcurrentModificationException: If the appointment changed under us
        """
        appointment = await self._load(appointment_id, expected_version)
        current = AppointmentStatus(appointment["status"])

        entry = await self.history.get_entry(appointment_id, history_entry_id)
        if entry is None:
            raise NotFoundException("History entry not found for this appointment")

        candidate = await self.history.last_status_change(appointment_id)
        self._enforce(check_reversion_target(current, entry, candidate), appointment_id, "reversion")

        if requires_record_check(current):
            has_record = await self.medical_records.has_record(appointment_id)
            self._enforce(check_downstream_record(current, has_record), appointment_id, "reversion")

        self._enforce(check_reversion_reason(reason), appointment_id, "reversion")

        target = entry.from_status
        if target is None:
            raise InvalidTransitionException("The creation entry cannot be reverted")

        cleared = reversion_clears(target, appointment)
        now = datetime.now(UTC)
        values: dict[str, Any] = {
            "status": target.value,
            "updated_at": now,
            **{column: None for column in milestones_beyond(target)},
        }

        updated, entry_id = await self._commit(
            appointment,
            values,
            change_type=ChangeType.STATUS_REVERSION,
            from_status=current,
            to_status=target,
            reason=_clean(reason),
            actor_id=actor_id,
            reverted_entry_id=entry.id,
        )

        logger.info(
            "appointment_status_reverted",
            appointment_id=str(appointment_id),
            from_status=current.value,
            to_status=target.value,
            reverted_entry_id=entry.id,
            cleared_timestamps=cleared,
            history_entry_id=entry_id,
        )

        return AppointmentRevertResponse(
            appointment=updated,
            history_entry_id=entry_id,
            cleared_timestamps=cleared,
        )

    async def assign_doctor(
        self,
        appointment_id: UUID,
        doctor_id: UUID | None,
        actor_id: UUID | None,
        expected_version: int | None = None,
    ) -> AppointmentMutationResponse:
        """
        Assign, reassign or unassign (``doctor_id=None``) the doctor.

        Raises:
            NotFoundException: If appointment or doctor not found
            DoctorAssignmentNotAllowedException: If the doctor is frozen
            InvalidTransitionException: If the doctor is already assigned
            ConcurrentModificationException: If the appointment changed under us
        """
        appointment = await self._load(appointment_id, expected_version)

        self._enforce(check_doctor_assignment(appointment), appointment_id, "doctor_assignment")

        previous_doctor_id = appointment["doctor_id"]
        if doctor_id == previous_doctor_id:
            raise InvalidTransitionException(
                "Doctor is already assigned" if doctor_id else "No doctor is assigned"
            )

        if doctor_id is not None and not await self.doctors.is_assignable(self.db, doctor_id):
            raise NotFoundException("Doctor not found")

        now = datetime.now(UTC)
        updated, entry_id = await self._commit(
            appointment,
            {"doctor_id": doctor_id, "updated_at": now},
            change_type=ChangeType.DOCTOR_ASSIGNMENT,
            reason="Doctor assigned" if doctor_id else "Doctor unassigned",
            actor_id=actor_id,
            previous_doctor_id=previous_doctor_id,
            new_doctor_id=doctor_id,
        )

        logger.info(
            "appointment_doctor_assigned",
            appointment_id=str(appointment_id),
            previous_doctor_id=str(previous_doctor_id) if previous_doctor_id else None,
            new_doctor_id=str(doctor_id) if doctor_id else None,
            history_entry_id=entry_id,
        )

        return AppointmentMutationResponse(appointment=updated, history_entry_id=entry_id)

    async def check_doctor_eligibility(self, appointment_id: UUID) -> DoctorEligibilityResponse:
        """Report whether the doctor can still be changed, and why not."""
        appointment = await self._load(appointment_id)
        decision = check_doctor_assignment(appointment)
        return DoctorEligibilityResponse(
            appointment_id=appointment_id,
            can_assign=decision.allowed,
            reason=decision.reason,
        )

    async def can_assign_doctor(self, appointment_id: UUID) -> bool:
        eligibility = await self.check_doctor_eligibility(appointment_id)
        return eligibility.can_assign

    async def list_history(self, appointment_id: UUID) -> StatusHistoryResponse:
        """
        Get the full ledger for an appointment, oldest first.

        Raises:
            NotFoundException: If appointment not found
        """
        await self._load(appointment_id)
        items = await self.history.list_history(appointment_id)
        return StatusHistoryResponse(appointment_id=appointment_id, total=len(items), items=items)

    async def last_undo_candidate(self, appointment_id: UUID) -> StatusHistoryEntry | None:
        """
        Get the ledger entry a one-click undo would revert, if any.

        Raises:
            NotFoundException: If appointment not found
        """
        await self._load(appointment_id)
        return await self.history.last_status_change(appointment_id)

    async def _load(
        self,
        appointment_id: UUID,
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        if expected_version is not None and row["version"] != expected_version:
            logger.info(
                "appointment_version_mismatch",
                appointment_id=str(appointment_id),
                expected_version=expected_version,
                current_version=row["version"],
            )
            raise ConcurrentModificationException(
                f"Appointment is at version {row['version']}, not {expected_version}. "
                "Reload and retry."
            )

        return dict(row)

    async def _ensure_no_consultation_in_progress(self, appointment: dict[str, Any]) -> None:
        if not self.enforce_sequential_consultation or appointment["appointment_date"] is None:
            return

        stmt = (
            select(appointments.c.id)
            .where(
                and_(
                    appointments.c.service_id == appointment["service_id"],
                    appointments.c.appointment_date == appointment["appointment_date"],
                    appointments.c.status == AppointmentStatus.IN_PROGRESS.value,
                    appointments.c.id != appointment["id"],
                )
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        busy_id = result.scalar()

        if busy_id is not None:
            logger.info(
                "appointment_consultation_busy",
                appointment_id=str(appointment["id"]),
                in_progress_appointment_id=str(busy_id),
            )
            raise ConsultationAlreadyInProgressException(
                f"Appointment {busy_id} is currently being consulted for this service. "
                "Complete it before starting a new consultation."
            )

    async def _commit(
        self,
        appointment: dict[str, Any],
        values: dict[str, Any],
        **entry: Any,
    ) -> tuple[AppointmentResponse, int]:
        """Compare-and-swap the row, append the ledger entry, commit both."""
        appointment_id = appointment["id"]

        if "status" in values:
            values["active_consultation"] = self._claims_consultation_slot(values["status"])

        try:
            stmt = (
                update(appointments)
                .where(
                    and_(
                        appointments.c.id == appointment_id,
                        appointments.c.version == appointment["version"],
                    )
                )
                .values(**values, version=appointments.c.version + 1)
                .returning(appointments)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().first()

            if row is None:
                logger.info(
                    "appointment_concurrent_modification",
                    appointment_id=str(appointment_id),
                    read_version=appointment["version"],
                )
                raise ConcurrentModificationException()

            entry_id = await self.history.append(
                appointment_id,
                created_at=values["updated_at"],
                **entry,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if not values.get("active_consultation"):
                raise
            # Another appointment took the slot after our pre-check
            logger.info(
                "appointment_consultation_busy",
                appointment_id=str(appointment_id),
            )
            raise ConsultationAlreadyInProgressException(
                "Another appointment is currently being consulted for this service. "
                "Complete it before starting a new consultation."
            )
        except Exception:
            await self.db.rollback()
            raise

        return AppointmentResponse.model_validate(dict(row)), entry_id

    def _claims_consultation_slot(self, status: str) -> bool | None:
        """Slot marker for a row written with ``status``; NULL when not held."""
        if self.enforce_sequential_consultation and status == AppointmentStatus.IN_PROGRESS.value:
            return True
        return None

    @staticmethod
    def _enforce(decision: Decision, appointment_id: UUID, operation: str) -> None:
        if decision.allowed:
            return

        kind = decision.kind or DenialKind.INVALID_TRANSITION
        logger.info(
            "appointment_change_denied",
            appointment_id=str(appointment_id),
            operation=operation,
            kind=kind.value,
            reason=decision.reason,
        )
        exception = DENIAL_EXCEPTIONS[kind]
        raise exception(decision.reason) if decision.reason else exception()


def _clean(reason: str | None) -> str | None:
    if reason is None:
        return None
    return reason.strip() or None
