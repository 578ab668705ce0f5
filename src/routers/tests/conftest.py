"""Fixtures for API route tests."""

from __future__ import annotations

import dataclasses
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from src.main import create_app
from src.tracking.config_loader import IntervalsConfig, load_tracking_config
from src.tracking.session import TrackingSession


@pytest.fixture
def tracking_session() -> TrackingSession:
    """Session whose periodic ticks only fire once (the immediate classification)."""
    config = dataclasses.replace(
        load_tracking_config(),
        intervals=IntervalsConfig(
            classification_seconds=3600.0,
            metrics_seconds=3600.0,
            health_sync_seconds=3600.0,
        ),
    )
    return TrackingSession(config=config)


@pytest.fixture
def client(tracking_session: TrackingSession) -> Iterator[TestClient]:
    """TestClient with the lifespan running, so one event loop serves every request."""
    app = create_app()
    app.state.tracking_session = tracking_session
    with TestClient(app) as test_client:
        yield test_client
