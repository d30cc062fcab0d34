"""Reversion (undo) rules.

A reversion always undoes the most recent un-reverted forward status change
and moves the appointment back to that change's ``from_status``. Undoing a
completed visit is blocked for good once a medical record references it.
"""

from clinicops.lifecycle.decision import Decision, DenialKind
from clinicops.schemas.appointments import AppointmentStatus
from clinicops.schemas.history import ChangeType, StatusHistoryEntry


def check_reversion_target(
    current: AppointmentStatus,
    entry: StatusHistoryEntry,
    undo_candidate: StatusHistoryEntry | None,
) -> Decision:
    """Validate that ``entry`` is the change a revert may undo right now."""
    if entry.change_type != ChangeType.STATUS_CHANGE or entry.from_status is None:
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"History entry {entry.id} is not a revertible status change",
        )

    if undo_candidate is None or undo_candidate.id != entry.id:
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"History entry {entry.id} is not the most recent status change; "
            "only the last change can be reverted",
        )

    if entry.to_status != current:
        to_status = entry.to_status.value if entry.to_status else None
        return Decision.deny(
            DenialKind.INVALID_TRANSITION,
            f"History entry {entry.id} moved the appointment to '{to_status}' "
            f"but it is currently '{current.value}'",
        )

    return Decision.allow()


def requires_record_check(current: AppointmentStatus) -> bool:
    """Only leaving ``completed`` can orphan a medical record."""
    return current == AppointmentStatus.COMPLETED


def check_downstream_record(current: AppointmentStatus, has_record: bool) -> Decision:
    # No override: a justification does not unblock this
    if requires_record_check(current) and has_record:
        return Decision.deny(
            DenialKind.REVERSION_BLOCKED,
            "Cannot revert a completed appointment that already has a medical record",
        )
    return Decision.allow()


def check_reversion_reason(reason: str | None) -> Decision:
    if not reason or not reason.strip():
        return Decision.deny(
            DenialKind.MISSING_REASON,
            "A reason is required to revert an appointment status",
        )
    return Decision.allow()
