"""Milestone timestamp bookkeeping.

Each milestone status owns one timestamp column. Reaching the status stamps
it; reverting to any status before it on the forward path clears it.
"""

from datetime import datetime

from clinicops.schemas.appointments import AppointmentStatus

S = AppointmentStatus

MILESTONE_COLUMNS: dict[AppointmentStatus, str] = {
    S.CHECKED_IN: "checked_in_at",
    S.IN_PROGRESS: "started_at",
    S.COMPLETED: "completed_at",
}

# Happy path; cancelled/no_show branch off it and carry no milestone
FORWARD_PATH: tuple[AppointmentStatus, ...] = (
    S.PENDING,
    S.SCHEDULED,
    S.CHECKED_IN,
    S.IN_PROGRESS,
    S.COMPLETED,
)


def milestone_updates(target: AppointmentStatus, now: datetime) -> dict[str, datetime]:
    """Column values to set when a transition reaches ``target``."""
    column = MILESTONE_COLUMNS.get(target)
    if column is None:
        return {}
    return {column: now}


def milestones_beyond(target: AppointmentStatus) -> list[str]:
    """Milestone columns that lie strictly after ``target`` on the forward path."""
    if target not in FORWARD_PATH:
        # Terminal side branches: everything past scheduled is unreachable
        return list(MILESTONE_COLUMNS.values())

    position = FORWARD_PATH.index(target)
    return [
        MILESTONE_COLUMNS[status]
        for status in FORWARD_PATH[position + 1 :]
        if status in MILESTONE_COLUMNS
    ]


def reversion_clears(target: AppointmentStatus, appointment: dict) -> list[str]:
    """Columns a reversion to ``target`` must null out, given the current row.

    Only columns that are currently set are returned, so the list doubles as
    the disclosure of which analytics timestamps the revert destroys.
    """
    return [column for column in milestones_beyond(target) if appointment.get(column) is not None]
