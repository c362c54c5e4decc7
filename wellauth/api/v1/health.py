"""
Health check endpoints.
Menyediakan status aplikasi dan dependency checks.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.api.dependencies.database import get_db
from wellauth.core.config import settings
from wellauth.db.session import check_database_health
from wellauth.schemas.response import HealthCheckResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthCheckResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        service=settings.APP_NAME
    )


@router.get("/ready", response_model=HealthCheckResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db)
):
    """
    Readiness check dengan database round trip.

    Returns:
        Readiness status, 503 jika database tidak bisa dijangkau
    """
    database = await check_database_health(db)
    healthy = database["connected"]

    payload = HealthCheckResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        service=settings.APP_NAME,
        details={"database": database}
    )

    if not healthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=payload.model_dump(mode="json")
        )
    return payload
