"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from api.dependencies import get_job_store, get_settings
from port.job_store import JobStore
from utils.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(
    store: JobStore = Depends(get_job_store),
    settings: Settings = Depends(get_settings),
):
    """Health check with job counts and configuration status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "webhookSecretConfigured": bool(settings.webhook_secret),
        "serializeTestRuns": settings.serialize_test_runs,
        "jobs": store.stats(),
    }
