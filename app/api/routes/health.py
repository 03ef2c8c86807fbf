"""Health check endpoints for monitoring."""

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import Config, DB, Orchestrator
from app.core.config import settings
from app.utils.envelopes import api_success

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


async def _database_ok(db: DB) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        return False


@router.get("/health", response_model=dict)
async def health_check(db: DB, provider: Config, orchestrator: Orchestrator):
    """Service status with database connectivity and backend credential presence."""
    database_ok = await _database_ok(db)
    backends = {}
    if database_ok:
        config = await provider.load(db)
        backends = {
            "text": bool(config.get_secret("DEEPSEEK_API_KEY")),
            "premiumText": config.get_flag("GROK_ENABLED") and bool(config.get_secret("XAI_API_KEY")),
            "image": bool(config.get_secret("HUGGINGFACE_API_KEY")),
        }

    return api_success(
        {
            "status": "ok" if database_ok else "degraded",
            "service": settings.APP_NAME,
            "database": "healthy" if database_ok else "unhealthy",
            "backendsConfigured": backends,
            "activeJobs": orchestrator.active_job_count,
        }
    )


@router.get("/health/ready", response_model=dict)
async def readiness_check(db: DB):
    """Readiness probe: the database answers."""
    return api_success({"ready": await _database_ok(db)})


@router.get("/health/live", response_model=dict)
async def liveness_check():
    return api_success({"alive": True})
