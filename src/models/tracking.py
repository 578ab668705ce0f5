"""Pydantic models for the live tracking API: sample ingestion, session
status, state snapshots, metrics and activity."""

from __future__ import annotations

from typing import Callable

from pydantic import Field

from src.models.base import MotionFuseBase
from src.tracking.base import (
    ActivityType,
    HealthMetrics,
    LocationSample,
    MotionKind,
    MotionSample,
    StepCountSample,
)
from src.tracking.state import TrackingSnapshot


# ---------- Ingestion ----------

class LocationIn(MotionFuseBase):
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    altitude: float | None = Field(default=None, allow_inf_nan=False)
    speed: float | None = Field(default=None, allow_inf_nan=False)  # negative values are treated as unknown
    horizontal_accuracy: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    timestamp_ms: int | None = None  # server clock when omitted

    def to_sample(self, now_ms: Callable[[], int]) -> LocationSample:
        return LocationSample(
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp_ms=self.timestamp_ms if self.timestamp_ms is not None else now_ms(),
            altitude=self.altitude,
            speed=self.speed,
            horizontal_accuracy=self.horizontal_accuracy,
        )


class MotionIn(MotionFuseBase):
    kind: MotionKind
    # Under-length vectors are accepted here and ignored by the engine
    values: list[float] = Field(max_length=16)
    timestamp_ms: int | None = None

    def to_sample(self, now_ms: Callable[[], int]) -> MotionSample:
        return MotionSample(
            kind=self.kind,
            values=tuple(self.values),
            timestamp_ms=self.timestamp_ms if self.timestamp_ms is not None else now_ms(),
        )


class StepCountIn(MotionFuseBase):
    cumulative_steps: int = Field(ge=0)
    timestamp_ms: int | None = None

    def to_sample(self, now_ms: Callable[[], int]) -> StepCountSample:
        return StepCountSample(
            cumulative_steps=self.cumulative_steps,
            timestamp_ms=self.timestamp_ms if self.timestamp_ms is not None else now_ms(),
        )


class IngestAck(MotionFuseBase):
    """Ingestion response.  ``active`` is False when the sample was dropped
    because no session is running."""

    active: bool


# ---------- Session ----------

class SessionStatus(MotionFuseBase):
    active: bool
    start_time_ms: int
    end_time_ms: int
    elapsed_ms: int


# ---------- Reads ----------

class LocationRead(MotionFuseBase):
    latitude: float
    longitude: float
    altitude: float | None = None
    speed: float | None = None
    horizontal_accuracy: float | None = None
    timestamp_ms: int

    @classmethod
    def from_sample(cls, sample: LocationSample) -> "LocationRead":
        return cls(
            latitude=sample.latitude,
            longitude=sample.longitude,
            altitude=sample.altitude,
            speed=sample.speed,
            horizontal_accuracy=sample.horizontal_accuracy,
            timestamp_ms=sample.timestamp_ms,
        )


class SnapshotRead(MotionFuseBase):
    start_time_ms: int
    end_time_ms: int
    is_active: bool
    total_distance: float
    total_altitude_gain: float
    pace: float
    step_count: int
    cadence: int
    accelerometer_magnitude: float
    rotation_rate: float
    movement_detected: bool
    last_movement_time_ms: int
    current_location: LocationRead | None = None
    recent_location_count: int
    current_activity: ActivityType
    current_confidence: float

    @classmethod
    def from_snapshot(cls, snap: TrackingSnapshot) -> "SnapshotRead":
        return cls(
            start_time_ms=snap.start_time_ms,
            end_time_ms=snap.end_time_ms,
            is_active=snap.is_active,
            total_distance=snap.total_distance,
            total_altitude_gain=snap.total_altitude_gain,
            pace=snap.pace,
            step_count=snap.step_count,
            cadence=snap.cadence,
            accelerometer_magnitude=snap.accelerometer_magnitude,
            rotation_rate=snap.rotation_rate,
            movement_detected=snap.movement_detected,
            last_movement_time_ms=snap.last_movement_time_ms,
            current_location=(
                LocationRead.from_sample(snap.current_location)
                if snap.current_location
                else None
            ),
            recent_location_count=len(snap.recent_locations),
            current_activity=snap.current_activity,
            current_confidence=snap.current_confidence,
        )


class MetricsRead(MotionFuseBase):
    timestamp_ms: int
    distance: float
    steps: int
    calories: float
    pace: float
    speed: float
    altitude: float
    altitude_gain: float
    cadence: int
    activity: ActivityType
    accuracy: float

    @classmethod
    def from_metrics(cls, metrics: HealthMetrics) -> "MetricsRead":
        return cls.model_validate(metrics)


class ActivityRead(MotionFuseBase):
    activity: ActivityType
    confidence: float = Field(ge=0, le=1)
