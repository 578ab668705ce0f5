"""Health check endpoint — public, no auth required."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from src.config import get_settings
from src.dependencies import ActiveSession

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(session: ActiveSession) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports whether a tracking session is currently running.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "tracking": "active" if session.is_active else "idle",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
