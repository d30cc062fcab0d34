"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from clinicops.config import settings
from clinicops.core.redis_client import redis_available
from clinicops.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health plus the state of each backing service.

    ``cache`` is ``disabled`` when the doctor cache is off; a disabled or
    unreachable cache never makes the service unhealthy on its own.
    """

    database: str
    cache: str


def _summary(state: str) -> HealthResponse:
    return HealthResponse(
        status=state,
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    return _summary("healthy")


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    summary="Database and cache health",
)
async def detailed_health_check() -> DetailedHealthResponse:
    database_ok = await check_database_connection()

    if not settings.cache_enabled:
        cache = "disabled"
    else:
        cache = "healthy" if redis_available() else "unavailable"

    summary = _summary("healthy" if database_ok else "unhealthy")
    return DetailedHealthResponse(
        **summary.model_dump(),
        database="healthy" if database_ok else "unhealthy",
        cache=cache,
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
