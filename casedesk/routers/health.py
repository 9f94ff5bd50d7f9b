"""
Health Router
Liveness and readiness probes. No authentication.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db, ping
from casedesk.core.utc import utc_now


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    """Ready when the database answers."""
    try:
        await ping(db)
    except SQLAlchemyError as e:
        logger.error("Readiness check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "error"})
    return {"status": "ready", "database": "ok"}
