"""Appointment status transition table and validator."""

from clinicops.lifecycle.decision import Decision, DenialKind
from clinicops.schemas.appointments import AppointmentStatus

S = AppointmentStatus

# Forward edges only. Terminal states have none; the only way back from
# them is an explicit reversion.
TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.PENDING: frozenset({S.SCHEDULED, S.CANCELLED}),
    S.SCHEDULED: frozenset({S.CHECKED_IN, S.CANCELLED, S.NO_SHOW}),
    S.CHECKED_IN: frozenset({S.IN_PROGRESS, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

INITIAL_STATUS = S.PENDING

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Recorded on the ledger when the caller does not supply a reason
DEFAULT_REASONS: dict[AppointmentStatus, str] = {
    S.PENDING: "Appointment created",
    S.SCHEDULED: "Appointment scheduled",
    S.CHECKED_IN: "Patient checked in",
    S.IN_PROGRESS: "Appointment started",
    S.COMPLETED: "Appointment completed",
    S.CANCELLED: "Appointment cancelled",
    S.NO_SHOW: "Patient marked as no-show",
}


def allowed_targets(current: AppointmentStatus) -> list[AppointmentStatus]:
    """Statuses reachable from ``current`` in table order."""
    return [status for status in AppointmentStatus if status in TRANSITIONS[current]]


def validate_transition(current: AppointmentStatus, requested: AppointmentStatus) -> Decision:
    """Check a forward status change against the transition table."""
    if current == requested:
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"Cannot transition to the same status. Appointment is already '{current.value}'.",
        )

    if current in TERMINAL_STATUSES:
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"Appointment is '{current.value}', which is a terminal status",
        )

    if requested not in TRANSITIONS[current]:
        allowed = ", ".join(status.value for status in allowed_targets(current))
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"Invalid status transition from '{current.value}' to '{requested.value}' "
            f"(allowed: {allowed})",
        )

    return Decision.allow()


def default_reason(target: AppointmentStatus) -> str:
    return DEFAULT_REASONS[target]
