"""Appointment lifecycle endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from clinicops.dependencies import CurrentOperator, LifecycleService
from clinicops.schemas.appointments import (
    AppointmentCreate,
    AppointmentMutationResponse,
    AppointmentResponse,
    AppointmentRevertRequest,
    AppointmentRevertResponse,
    AppointmentTransitionRequest,
    DoctorAssignmentRequest,
    DoctorEligibilityResponse,
)
from clinicops.schemas.history import StatusHistoryEntry, StatusHistoryResponse

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> AppointmentMutationResponse:
    """
    Create a new appointment in the pending status.

    Args:
        data: Appointment creation data
        operator_id: Acting operator
        service: Lifecycle service

    Returns:
        Created appointment and its creation ledger entry
    """
    return await service.create_appointment(data, operator_id)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.post(
    "/{appointment_id}/transitions",
    response_model=AppointmentMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Apply a status transition",
)
async def apply_transition(
    appointment_id: UUID,
    data: AppointmentTransitionRequest,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> AppointmentMutationResponse:
    """
    Move an appointment to its next status (schedule, check in, start,
    complete, cancel, mark no-show).

    A successful move to ``completed`` is the caller's cue to create the
    visit's medical record.
    """
    return await service.apply_transition(
        appointment_id,
        data.status,
        actor_id=operator_id,
        reason=data.reason,
        expected_version=data.expected_version,
    )


@router.post(
    "/{appointment_id}/revert",
    response_model=AppointmentRevertResponse,
    status_code=status.HTTP_200_OK,
    summary="Revert the last status change",
)
async def revert_status(
    appointment_id: UUID,
    data: AppointmentRevertRequest,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> AppointmentRevertResponse:
    """
    Undo the most recent status change.

    The response lists the milestone timestamps the revert cleared so the
    caller can warn about lost wait-time analytics.
    """
    return await service.revert(
        appointment_id,
        data.history_entry_id,
        data.reason,
        actor_id=operator_id,
        expected_version=data.expected_version,
    )


@router.put(
    "/{appointment_id}/doctor",
    response_model=AppointmentMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Assign or unassign the doctor",
)
async def assign_doctor(
    appointment_id: UUID,
    data: DoctorAssignmentRequest,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> AppointmentMutationResponse:
    """Assign a doctor, or unassign with ``doctor_id: null``."""
    return await service.assign_doctor(
        appointment_id,
        data.doctor_id,
        actor_id=operator_id,
        expected_version=data.expected_version,
    )


@router.get(
    "/{appointment_id}/doctor/eligibility",
    response_model=DoctorEligibilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Check whether the doctor can be changed",
)
async def doctor_eligibility(
    appointment_id: UUID,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> DoctorEligibilityResponse:
    return await service.check_doctor_eligibility(appointment_id)


@router.get(
    "/{appointment_id}/history",
    response_model=StatusHistoryResponse,
    status_code=status.HTTP_200_OK,
    summary="Get status history",
)
async def get_history(
    appointment_id: UUID,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> StatusHistoryResponse:
    """Get every ledger entry for an appointment, oldest first."""
    return await service.list_history(appointment_id)


@router.get(
    "/{appointment_id}/history/undo-candidate",
    response_model=StatusHistoryEntry,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_204_NO_CONTENT: {"description": "Nothing to undo"}},
    summary="Get the status change an undo would revert",
)
async def get_undo_candidate(
    appointment_id: UUID,
    operator_id: CurrentOperator,
    service: LifecycleService,
) -> StatusHistoryEntry | Response:
    """
    Get the ledger entry a one-click undo would revert.

    Returns 204 when there is nothing to undo.
    """
    candidate = await service.last_undo_candidate(appointment_id)
    if candidate is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return candidate
