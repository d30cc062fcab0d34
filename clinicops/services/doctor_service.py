"""Doctor directory lookups."""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicops.core.redis_client import JSONCache
from clinicops.models.doctors import doctors


class DoctorService:
    """Read-only access to the doctor directory, optionally cached in Redis."""

    def __init__(self, cache: JSONCache | None = None):
        self.cache = cache

    async def get_doctor_by_id(self, db: AsyncSession, doctor_id: UUID) -> dict[str, Any] | None:
        """Get a doctor row as a dict, consulting the cache first."""
        if self.cache:
            cached = self.cache.get(doctor_id)
            if cached:
                return cached

        result = await db.execute(select(doctors).where(doctors.c.id == doctor_id))
        row = result.mappings().first()
        if not row:
            return None

        doctor = dict(row)
        if self.cache:
            self.cache.put(doctor_id, doctor)
        return doctor

    async def is_assignable(self, db: AsyncSession, doctor_id: UUID) -> bool:
        """Only existing, active doctors can be put on an appointment."""
        doctor = await self.get_doctor_by_id(db, doctor_id)
        return bool(doctor and doctor.get("is_active"))
