"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinicops.config import settings
from clinicops.core.redis_client import JSONCache, get_redis_client
from clinicops.core.security import operator_id_from_token
from clinicops.database import get_db
from clinicops.services.appointment_service import AppointmentService
from clinicops.services.doctor_service import DoctorService

bearer = HTTPBearer(auto_error=False)


async def get_operator_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> UUID:
    """
    Identify the operator acting on the request.

    Raises:
        HTTPException: 401 if the bearer token is missing or invalid
    """
    operator_id = operator_id_from_token(credentials.credentials) if credentials else None

    if operator_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate operator credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return operator_id


def get_doctor_cache() -> JSONCache | None:
    if not settings.cache_enabled:
        return None
    return JSONCache(get_redis_client(), namespace="doctor", ttl=settings.doctor_cache_ttl)


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    doctor_cache: Annotated[JSONCache | None, Depends(get_doctor_cache)],
) -> AppointmentService:
    return AppointmentService(db, doctor_service=DoctorService(doctor_cache))


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentOperator = Annotated[UUID, Depends(get_operator_id)]
LifecycleService = Annotated[AppointmentService, Depends(get_appointment_service)]
