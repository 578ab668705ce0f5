"""Shared fixtures and sample builders for tracking engine tests."""

from __future__ import annotations

import dataclasses
from unittest.mock import AsyncMock

import pytest

from src.tracking.base import LocationSample, MotionKind, MotionSample
from src.tracking.config_loader import IntervalsConfig, TrackingConfig, load_tracking_config
from src.tracking.state import TrackingState
from src.tracking.sync.health_sync import HealthSink

# Fixed epoch for deterministic clocks: 2026-02-23T00:00:00Z
T0_MS = 1_771_804_800_000

# 0.001° of longitude at the equator, haversine with R = 6 371 000 m
EQUATOR_MILLIDEGREE_M = 111.19


class FakeClock:
    """Manually advanced epoch-milliseconds clock."""

    def __init__(self, start_ms: int = T0_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


# ---------------------------------------------------------------------------
# Sample builders
# ---------------------------------------------------------------------------


def loc(
    lat: float = 0.0,
    lon: float = 0.0,
    altitude: float | None = None,
    speed: float | None = None,
    t: int = T0_MS,
    accuracy: float | None = 5.0,
) -> LocationSample:
    return LocationSample(
        latitude=lat,
        longitude=lon,
        timestamp_ms=t,
        altitude=altitude,
        speed=speed,
        horizontal_accuracy=accuracy,
    )


def accel(x: float, y: float = 0.0, z: float = 0.0, t: int = 0) -> MotionSample:
    return MotionSample(kind=MotionKind.ACCELEROMETER, values=(x, y, z), timestamp_ms=t)


def gyro(x: float, y: float = 0.0, z: float = 0.0, t: int = 0) -> MotionSample:
    return MotionSample(kind=MotionKind.GYROSCOPE, values=(x, y, z), timestamp_ms=t)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tracking_config() -> TrackingConfig:
    """Load the real bundled tracking config for tests."""
    return load_tracking_config()


@pytest.fixture
def quiet_config(tracking_config: TrackingConfig) -> TrackingConfig:
    """Bundled config with periodic ticks far enough apart never to fire in a test."""
    return dataclasses.replace(
        tracking_config,
        intervals=IntervalsConfig(
            classification_seconds=3600.0,
            metrics_seconds=3600.0,
            health_sync_seconds=3600.0,
            publish_metrics_on_location=True,
        ),
    )


@pytest.fixture
def fast_config(tracking_config: TrackingConfig) -> TrackingConfig:
    """Bundled config with ticks every 10 ms."""
    return dataclasses.replace(
        tracking_config,
        intervals=IntervalsConfig(
            classification_seconds=0.01,
            metrics_seconds=0.01,
            health_sync_seconds=0.01,
            publish_metrics_on_location=False,
        ),
    )


# ---------------------------------------------------------------------------
# State fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def active_state(tracking_config: TrackingConfig, clock: FakeClock) -> TrackingState:
    """A TrackingState that has been activated at T0."""
    state = TrackingState(tracking_config, clock)
    state.activate(clock())
    return state


# ---------------------------------------------------------------------------
# Sink fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_sink() -> HealthSink:
    """HealthSink whose push is an AsyncMock."""
    sink = AsyncMock(spec=HealthSink)
    sink.push = AsyncMock(return_value=None)
    return sink
