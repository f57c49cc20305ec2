"""System health endpoint."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..deps import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/system",
    tags=["System"]
)


class SystemHealth(BaseModel):
    """Model for system health data."""
    status: str
    database_status: str
    timestamp: datetime


@router.get("/health", response_model=SystemHealth)
async def get_health(services: Services = Depends(get_services)):
    """Report liveness and whether the database answers."""
    database_status = "disconnected"
    if services.pool is not None:
        try:
            async with services.pool.acquire() as conn:
                await conn.fetchval('SELECT 1')
            database_status = "connected"
        except Exception as e:
            logger.error(f"Health check database error: {e}")

    health = SystemHealth(
        status="healthy" if database_status == "connected" else "degraded",
        database_status=database_status,
        timestamp=datetime.now(timezone.utc)
    )
    if health.status != "healthy":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health.model_dump(mode='json')
        )
    return health
