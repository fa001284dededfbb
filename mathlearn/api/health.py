"""
Health check endpoints
"""

from fastapi import APIRouter
import logging
import platform
import time
from mathlearn.config import settings
from mathlearn.database import check_connection, utcnow
from mathlearn.schemas.common import ApiResponse
from mathlearn.schemas.health import DatabaseCheck, DetailedHealthStatus, HealthStatus
from mathlearn.utils.cache import cache_service


router = APIRouter(prefix="/api/health", tags=["health"])
logger = logging.getLogger(__name__)

STARTED_AT = time.time()


def _uptime() -> float:
    return round(time.time() - STARTED_AT, 3)


@router.get("", response_model=ApiResponse[HealthStatus])
async def health_check():
    """Liveness check for monitoring"""
    return ApiResponse(
        data=HealthStatus(
            status="OK",
            service=settings.APP_NAME,
            timestamp=utcnow(),
            uptime=_uptime(),
            version=settings.APP_VERSION,
        ),
        message="Service is healthy",
    )


@router.get("/detailed", response_model=ApiResponse[DetailedHealthStatus])
async def detailed_health_check():
    """
    Health check with dependency status

    Overall status is DEGRADED when the database check fails.
    """
    start = time.perf_counter()
    database_ok = check_connection()
    response_time = round((time.perf_counter() - start) * 1000, 2)

    if database_ok:
        database = DatabaseCheck(status="OK", message="Database connection successful", response_time=response_time)
    else:
        logger.warning("Detailed health check: database unreachable")
        database = DatabaseCheck(status="ERROR", message="Database connection failed", response_time=response_time)

    overall = "OK" if database_ok else "DEGRADED"

    return ApiResponse(
        data=DetailedHealthStatus(
            status=overall,
            service=settings.APP_NAME,
            timestamp=utcnow(),
            uptime=_uptime(),
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            python_version=platform.python_version(),
            database=database,
            cache=cache_service.status(),
        ),
        message="Detailed health check completed",
    )
