"""API v1 router configuration."""

from fastapi import APIRouter

from clinicops.api.v1.endpoints import appointments, health, medical_records

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(
    medical_records.router,
    prefix="/appointments",
    tags=["Medical Records"],
)
