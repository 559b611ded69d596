"""Health Probes — liveness with integration flags, readiness gated on the database.

Invariants:
    - GET /health/ answers 200 whenever the process runs, database or not
    - GET /health/ready answers 503 until a SELECT 1 succeeds
    - Integration flags report configuration only; no outbound call is made

Design Decisions:
    - db_manager read through the module at call time: lifespan creates it after import
    - Optional integrations (AI, Stripe, SMTP) never fail readiness: the API degrades per feature
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "user-journey-analytics-api"
SERVICE_VERSION = "1.0.0"


@router.get("/")
async def liveness():
    settings = get_settings()
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "integrations": {
            "ai": settings.ai_available,
            "stripe": settings.stripe_configured,
            "smtp": settings.smtp_configured,
        },
    }


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness probe failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
