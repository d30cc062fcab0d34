"""Doctor assignment eligibility."""

from typing import Any

from clinicops.lifecycle.decision import Decision, DenialKind
from clinicops.schemas.appointments import AppointmentStatus

ASSIGNABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED})


def check_doctor_assignment(appointment: dict[str, Any]) -> Decision:
    """Decide whether the doctor on ``appointment`` may be (re)assigned.

    Once the patient has checked in the doctor is frozen for the rest of the
    visit, even if the status was later reverted to scheduled without the
    check-in being cleared.
    """
    status = AppointmentStatus(appointment["status"])

    if status not in ASSIGNABLE_STATUSES:
        return Decision.deny(
            DenialKind.DOCTOR_ASSIGNMENT_NOT_ALLOWED,
            f"Doctor cannot be changed while the appointment is '{status.value}'",
        )

    if appointment.get("checked_in_at") is not None:
        return Decision.deny(
            DenialKind.DOCTOR_ASSIGNMENT_NOT_ALLOWED,
            "Doctor cannot be changed after the patient has checked in",
        )

    return Decision.allow()


def can_assign_doctor(appointment: dict[str, Any]) -> bool:
    return check_doctor_assignment(appointment).allowed
