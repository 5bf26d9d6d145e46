"""Health check endpoints for readiness and liveness probes."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from studio_space import __version__
from studio_space.services.database import get_database_manager

router = APIRouter(prefix="/api/health", tags=["health"])


async def _database_status() -> str:
    db_manager = get_database_manager()
    if db_manager is None:
        return "not_initialized"
    return "healthy" if await db_manager.health_check() else "unhealthy"


@router.get(
    "/ready",
    summary="Readiness probe",
    description="Check if the service is ready to accept requests",
    status_code=status.HTTP_200_OK,
)
async def readiness() -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 if the service is ready to handle requests,
    503 if the database is unavailable.

    Returns:
        JSONResponse with readiness status
    """
    checks = {"database": await _database_status()}

    all_healthy = all(value == "healthy" for value in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_healthy else "not_ready",
            "checks": checks,
        },
    )


@router.get(
    "/live",
    summary="Liveness probe",
    description="Check if the service is alive",
    status_code=status.HTTP_200_OK,
)
async def liveness() -> dict:
    """Liveness probe endpoint.

    Returns 200 if the process is up; no dependencies are checked.
    """
    return {
        "status": "alive",
    }


@router.get(
    "",
    summary="General health check",
    description="Service status with dependency details",
    status_code=status.HTTP_200_OK,
)
async def health() -> dict:
    """Comprehensive health check endpoint.

    Returns:
        Detailed health status dict
    """
    db_manager = get_database_manager()
    checks = {
        "database": {
            "status": await _database_status(),
            "type": db_manager.engine.dialect.name
            if db_manager is not None and db_manager.engine is not None
            else None,
        }
    }

    all_healthy = all(check["status"] == "healthy" for check in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "version": __version__,
        "service": "studio-space-api",
        "checks": checks,
    }
