"""Root API router with health endpoints and the versioned API."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from activity_logger.api.dependencies import AppSettings, RecordStoreDep
from activity_logger.core.activity.routes import router as activity_router
from activity_logger.core.blueprints import Blueprints


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    checks: dict[str, str]


# Health check endpoints (no /api/v1 prefix)
health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns 200 if the process is running.",
)
async def liveness() -> HealthResponse:
    """Liveness probe endpoint."""
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks database connectivity.",
)
async def readiness(store: RecordStoreDep) -> JSONResponse:
    """Readiness probe endpoint."""
    checks: dict[str, str] = {}

    try:
        await store.ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = str(e)

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK
        if all_ok
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ok else "degraded",
            "checks": checks,
        },
    )


@health_router.get(
    "/info",
    summary="Application info",
    description="Returns application metadata.",
)
async def info(settings: AppSettings, store: RecordStoreDep) -> dict[str, Any]:
    """Application info endpoint."""
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "debug": settings.debug,
        "tracked_models": sorted(settings.activity_logger.models),
        "entity_types": store.entity_types,
    }


def build_api_router(blueprints: Blueprints | None = None) -> APIRouter:
    """Build the root router.

    Explicit routes are mounted before the generic ``/{model}`` routes so
    that they are never shadowed.
    """
    api_router = APIRouter()

    v1_router = APIRouter(prefix="/api/v1")
    v1_router.include_router(activity_router)
    if blueprints is not None:
        v1_router.include_router(blueprints.build_router())

    api_router.include_router(health_router)
    api_router.include_router(v1_router)
    return api_router
