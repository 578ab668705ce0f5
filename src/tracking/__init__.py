"""MotionFuse live tracking engine.

This package fuses location, accelerometer and gyroscope streams into one
live tracking state, classifies the user's activity on a periodic tick, and
derives health metrics for listeners and an optional health-store sink.

Subpackages:
    sync/  — Best-effort push of session totals to an external health store

Core modules:
    base           — Sample types, ActivityType, HealthMetrics, geodesy
    config_loader  — Load/validate/hot-reload tracking_config.yaml
    peak_detector  — Step cadence from accelerometer rising edges
    step_counter   — Platform step counter normalised to the session
    state          — Locked mutable aggregate and read-only snapshots
    classifier     — Ordered rule-based activity classification
    metrics        — HealthMetrics derivation and calorie estimate
    session        — Session lifecycle, periodic ticks, listeners
"""

from src.tracking.base import (
    ActivityType,
    HealthMetrics,
    LocationSample,
    MotionKind,
    MotionSample,
    StepCountSample,
)
from src.tracking.config_loader import TrackingConfig, get_tracking_config
from src.tracking.session import TrackingEvent, TrackingSession
from src.tracking.state import TrackingSnapshot

__all__ = [
    "ActivityType",
    "HealthMetrics",
    "LocationSample",
    "MotionKind",
    "MotionSample",
    "StepCountSample",
    "TrackingConfig",
    "get_tracking_config",
    "TrackingEvent",
    "TrackingSession",
    "TrackingSnapshot",
]
