"""Status history ledger."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicops.models.appointments import appointment_status_history
from clinicops.schemas.appointments import AppointmentStatus
from clinicops.schemas.history import ChangeType, StatusHistoryEntry

history = appointment_status_history


class StatusHistoryService:
    """Append-only ledger of status changes, reversions and doctor assignments.

    ``append`` never commits. The caller owns the transaction so that the
    ledger entry and the appointment row update land together or not at all.
    """

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def append(
        self,
        appointment_id: UUID,
        change_type: ChangeType,
        *,
        from_status: AppointmentStatus | None = None,
        to_status: AppointmentStatus | None = None,
        reason: str | None = None,
        actor_id: UUID | None = None,
        reverted_entry_id: int | None = None,
        previous_doctor_id: UUID | None = None,
        new_doctor_id: UUID | None = None,
        created_at: datetime | None = None,
    ) -> int:
        """
        Append a ledger entry inside the current transaction.

        Returns:
            Id of the new entry
        """
        values: dict[str, Any] = {
            "appointment_id": appointment_id,
            "change_type": change_type.value,
            "from_status": from_status.value if from_status else None,
            "to_status": to_status.value if to_status else None,
            "reason": reason,
            "actor_id": actor_id,
            "reverted_entry_id": reverted_entry_id,
            "previous_doctor_id": previous_doctor_id,
            "new_doctor_id": new_doctor_id,
            "created_at": created_at or datetime.now(UTC),
        }

        stmt = insert(history).values(**values).returning(history.c.id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def get_entry(self, appointment_id: UUID, entry_id: int) -> StatusHistoryEntry | None:
        """Get a ledger entry, scoped to its appointment."""
        stmt = select(history).where(
            and_(
                history.c.id == entry_id,
                history.c.appointment_id == appointment_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return StatusHistoryEntry.model_validate(dict(row)) if row else None

    async def list_history(self, appointment_id: UUID) -> list[StatusHistoryEntry]:
        """All entries for an appointment, oldest first."""
        stmt = (
            select(history)
            .where(history.c.appointment_id == appointment_id)
            .order_by(history.c.id.asc())
        )
        result = await self.db.execute(stmt)
        return [StatusHistoryEntry.model_validate(dict(row)) for row in result.mappings().all()]

    async def last_status_change(self, appointment_id: UUID) -> StatusHistoryEntry | None:
        """
        Get the current undo candidate.

        This is the most recent forward status change (``from_status`` set,
        so never the creation entry) that no later reversion has undone.
        """
        reverted = (
            select(history.c.reverted_entry_id)
            .where(
                and_(
                    history.c.appointment_id == appointment_id,
                    history.c.change_type == ChangeType.STATUS_REVERSION.value,
                    history.c.reverted_entry_id.is_not(None),
                )
            )
        )

        stmt = (
            select(history)
            .where(
                and_(
                    history.c.appointment_id == appointment_id,
                    history.c.change_type == ChangeType.STATUS_CHANGE.value,
                    history.c.from_status.is_not(None),
                    history.c.id.not_in(reverted),
                )
            )
            .order_by(history.c.id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return StatusHistoryEntry.model_validate(dict(row)) if row else None
