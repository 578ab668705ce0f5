"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from src.config import Settings, get_settings
from src.tracking.config_loader import get_tracking_config, load_tracking_config
from src.tracking.session import TrackingSession
from src.tracking.sync.health_sync import HealthSyncPusher, HttpHealthSink

logger = logging.getLogger("motionfuse.dependencies")


def build_tracking_session(settings: Settings) -> TrackingSession:
    """Create the process-wide tracking session from settings.

    Health sync is enabled only when ``health_sync_url`` is configured.
    """
    if settings.tracking_config_path:
        config = load_tracking_config(Path(settings.tracking_config_path))
    else:
        config = get_tracking_config()

    pusher = None
    if settings.health_sync_url:
        pusher = HealthSyncPusher(
            HttpHealthSink(
                settings.health_sync_url,
                timeout_seconds=settings.health_sync_timeout_seconds,
            )
        )
        logger.info("Health sync enabled → %s", settings.health_sync_url)

    return TrackingSession(config=config, sync_pusher=pusher)


def get_tracking_session(request: Request) -> TrackingSession:
    """Return the session stored on the app at startup."""
    return request.app.state.tracking_session


# Annotated shortcuts for route signatures
ActiveSession = Annotated[TrackingSession, Depends(get_tracking_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]
