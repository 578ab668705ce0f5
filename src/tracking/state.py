"""Mutable tracking aggregate shared by every component of a session.

``TrackingState`` is the single source of truth for one session.  Each field
has exactly one writer kind:

    location ingestion  → current/last location, recent_locations, distance,
                          altitude gain, last_altitude, pace
    accelerometer       → accelerometer_magnitude, cadence, movement flag,
                          last_movement_time (and detected steps)
    gyroscope           → rotation_rate
    step counter        → step_count (once the platform counter reports)
    classification tick → current_activity, current_confidence
    session lifecycle   → start/end time, is_active

All writes and all snapshot copies go through one re-entrant lock, so a
reader never observes a half-applied update (e.g. distance advanced but pace
not yet recomputed).  Writes while the state is inactive are dropped.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable

from src.tracking.base import (
    ActivityType,
    LocationSample,
    MotionKind,
    MotionSample,
    StepCountSample,
    distance_between,
    epoch_ms,
)
from src.tracking.config_loader import TrackingConfig, default_tracking_config
from src.tracking.peak_detector import PeakDetector
from src.tracking.step_counter import StepCounter

logger = logging.getLogger("motionfuse.tracking.state")

# Sentinel for "no valid altitude seen yet"
ALTITUDE_UNSET = -1.0


@dataclass(frozen=True, slots=True)
class TrackingSnapshot:
    """Read-only, internally consistent copy of a TrackingState."""

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
    current_location: LocationSample | None
    last_location: LocationSample | None
    recent_locations: tuple[LocationSample, ...]
    current_activity: ActivityType
    current_confidence: float
    last_altitude: float

    @property
    def current_speed(self) -> float | None:
        """Speed of the latest fix, None when there is no fix or no speed."""
        if self.current_location is None:
            return None
        return self.current_location.speed


class TrackingState:
    """The per-session mutable aggregate.

    Args:
        config: Tracking configuration (thresholds, buffer capacity).
        clock:  Callable returning the current epoch time in milliseconds.
                Used only for elapsed-time derived fields (pace).
    """

    def __init__(
        self,
        config: TrackingConfig | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._config = config or default_tracking_config()
        self._clock = clock
        self._lock = threading.RLock()
        self._peaks = PeakDetector(self._config.sensors, self._config.step_detection)
        self._step_counter = StepCounter()

        self.start_time_ms = 0
        self.end_time_ms = 0
        self.is_active = False
        self.total_distance = 0.0
        self.total_altitude_gain = 0.0
        self.pace = 0.0
        self.step_count = 0
        self.cadence = 0
        self.accelerometer_magnitude = 0.0
        self.rotation_rate = 0.0
        self.movement_detected = False
        self.last_movement_time_ms = 0
        self.current_location: LocationSample | None = None
        self.last_location: LocationSample | None = None
        self.recent_locations: deque[LocationSample] = deque(
            maxlen=self._config.recent_locations_capacity
        )
        self.current_activity = ActivityType.STATIONARY
        self.current_confidence = 0.0
        self.last_altitude = ALTITUDE_UNSET

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self, now_ms: int) -> None:
        with self._lock:
            self.start_time_ms = now_ms
            self.end_time_ms = 0
            self.is_active = True

    def deactivate(self, now_ms: int) -> None:
        with self._lock:
            self.end_time_ms = now_ms
            self.is_active = False

    # ------------------------------------------------------------------
    # Update rules
    # ------------------------------------------------------------------

    def apply_location(self, sample: LocationSample) -> bool:
        """Fold one location fix into the aggregate.

        Returns:
            True if the sample was applied, False if it was dropped.
        """
        if not sample.has_valid_coordinates:
            logger.debug("Dropping location with non-finite coordinates at %d", sample.timestamp_ms)
            return False

        with self._lock:
            if not self.is_active:
                return False

            self.current_location = sample

            if self.last_location is not None:
                self.total_distance += distance_between(self.last_location, sample)
                # deque(maxlen=...) evicts the oldest entry on overflow
                self.recent_locations.append(sample)

            self.last_location = sample

            altitude = sample.altitude
            if altitude is not None and altitude > 0:
                if self.last_altitude > 0:
                    delta = altitude - self.last_altitude
                    if delta > 0:
                        self.total_altitude_gain += delta
                self.last_altitude = altitude

            if self.total_distance > 0:
                elapsed_min = (self._now() - self.start_time_ms) / 60000.0
                if elapsed_min > 0:
                    self.pace = self.total_distance / elapsed_min
        return True

    def apply_motion(self, sample: MotionSample) -> bool:
        """Fold one accelerometer or gyroscope reading into the aggregate.

        Returns:
            True if the sample was applied, False if it was malformed or the
            state is inactive.
        """
        if not sample.is_well_formed:
            logger.debug(
                "Dropping malformed %s sample (%d components)",
                sample.kind.value,
                len(sample.values),
            )
            return False

        with self._lock:
            if not self.is_active:
                return False

            if sample.kind is MotionKind.GYROSCOPE:
                self.rotation_rate = sample.magnitude
                return True

            reading = self._peaks.feed(sample.values, sample.timestamp_ms)
            if reading is None:
                return False
            self.accelerometer_magnitude = reading.magnitude
            if reading.movement:
                self.movement_detected = True
                self.last_movement_time_ms = sample.timestamp_ms
            if reading.is_step and reading.cadence is not None:
                self.cadence = reading.cadence
                if not self._step_counter.has_reported:
                    self.step_count += 1
        return True

    def apply_step_count(self, sample: StepCountSample) -> bool:
        """Fold one platform step-counter reading into the aggregate."""
        with self._lock:
            if not self.is_active:
                return False
            steps = self._step_counter.update(sample.cumulative_steps)
            self.step_count = max(self.step_count, steps)
        return True

    def apply_classification(self, activity: ActivityType, confidence: float) -> None:
        with self._lock:
            if not self.is_active:
                return
            self.current_activity = activity
            self.current_confidence = confidence

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> TrackingSnapshot:
        """Return a consistent read-only copy of every field."""
        with self._lock:
            return TrackingSnapshot(
                start_time_ms=self.start_time_ms,
                end_time_ms=self.end_time_ms,
                is_active=self.is_active,
                total_distance=self.total_distance,
                total_altitude_gain=self.total_altitude_gain,
                pace=self.pace,
                step_count=self.step_count,
                cadence=self.cadence,
                accelerometer_magnitude=self.accelerometer_magnitude,
                rotation_rate=self.rotation_rate,
                movement_detected=self.movement_detected,
                last_movement_time_ms=self.last_movement_time_ms,
                current_location=self.current_location,
                last_location=self.last_location,
                recent_locations=tuple(self.recent_locations),
                current_activity=self.current_activity,
                current_confidence=self.current_confidence,
                last_altitude=self.last_altitude,
            )

    def _now(self) -> int:
        return (self._clock or epoch_ms)()
