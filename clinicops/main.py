"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from clinicops.api.v1.router import api_router
from clinicops.config import settings
from clinicops.core.redis_client import close_redis_connection, redis_available
from clinicops.database import check_database_connection, engine
from clinicops.middleware.error_handler import register_exception_handlers
from clinicops.middleware.logging import LoggingMiddleware, configure_logging

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Report backing service state on startup and release connections on shutdown."""
    logger.info(
        "application_startup",
        environment=settings.environment,
        sequential_consultation=settings.enforce_sequential_consultation,
    )

    if not await check_database_connection():
        logger.error("database_connection_failed")

    if settings.cache_enabled and not redis_available():
        logger.warning("doctor_cache_degraded")

    yield

    await engine.dispose()
    if settings.cache_enabled:
        close_redis_connection()
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Clinic appointment lifecycle: transitions, guarded undo and audit history",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(LoggingMiddleware)

    register_exception_handlers(application)
    application.include_router(api_router, prefix=settings.api_v1_prefix)

    Instrumentator(
        should_group_status_codes=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
    ).instrument(application).expose(application, endpoint="/metrics", include_in_schema=False)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clinicops.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
