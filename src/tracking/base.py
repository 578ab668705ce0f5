"""Canonical sample and output types for the MotionFuse tracking engine.

Every producer (location source, motion sensors, platform step counter) hands
the engine one of the immutable sample types below.  The engine's outputs are
``ActivityType`` classifications and ``HealthMetrics`` snapshots.  These types
are the single vocabulary shared by the state, classifier, aggregator, sync
pusher and HTTP layer.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum

# Mean Earth radius in meters
_EARTH_RADIUS_M = 6_371_000.0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ActivityType(str, Enum):
    """Closed set of activities the classifier can emit."""

    STATIONARY = "stationary"
    WALKING = "walking"
    RUNNING = "running"
    CYCLING = "cycling"
    INTENSE_EXERCISE = "intense_exercise"
    UNKNOWN = "unknown"


class MotionKind(str, Enum):
    """Sensor a MotionSample was read from."""

    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LocationSample:
    """A single location fix.

    Attributes:
        latitude:            Latitude in decimal degrees.
        longitude:           Longitude in decimal degrees.
        timestamp_ms:        Unix epoch milliseconds of the fix.
        altitude:            Altitude in meters, None if the fix has none.
        speed:               Ground speed in m/s, None if unknown.
        horizontal_accuracy: Horizontal accuracy radius in meters, None if unknown.
    """

    latitude: float
    longitude: float
    timestamp_ms: int
    altitude: float | None = None
    speed: float | None = None
    horizontal_accuracy: float | None = None

    def __post_init__(self) -> None:
        # Some location sources report -1.0 when speed is unavailable
        if self.speed is not None and self.speed < 0:
            object.__setattr__(self, "speed", None)
        # Optional fields that are NaN or infinite are treated as unknown
        for name in ("altitude", "speed", "horizontal_accuracy"):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                object.__setattr__(self, name, None)

    @property
    def has_valid_coordinates(self) -> bool:
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)


@dataclass(frozen=True, slots=True)
class MotionSample:
    """A single accelerometer or gyroscope reading.

    ``values`` holds the raw axis components as delivered by the sensor.
    Readings with fewer than three components are legal to construct but are
    ignored by the engine.
    """

    kind: MotionKind
    values: tuple[float, ...]
    timestamp_ms: int

    @property
    def is_well_formed(self) -> bool:
        """True if the sample has at least three finite axis components."""
        return len(self.values) >= 3 and all(
            math.isfinite(v) for v in self.values[:3]
        )

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the first three axis components."""
        x, y, z = self.values[:3]
        return math.sqrt(x * x + y * y + z * z)


@dataclass(frozen=True, slots=True)
class StepCountSample:
    """A platform step-counter reading.

    Attributes:
        cumulative_steps: Steps counted by the platform since device boot.
        timestamp_ms:     Unix epoch milliseconds of the reading.
    """

    cumulative_steps: int
    timestamp_ms: int


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HealthMetrics:
    """Read-only metrics snapshot derived from the tracking state.

    Attributes:
        timestamp_ms:  When the snapshot was derived (epoch ms).
        distance:      Cumulative distance in meters.
        steps:         Session step count.
        calories:      Estimated kcal burned since session start.
        pace:          Meters per minute over the whole session.
        speed:         Most recent ground speed in m/s (0 if unknown).
        altitude:      Most recent altitude in meters (0 if unknown).
        altitude_gain: Cumulative positive altitude change in meters.
        cadence:       Steps per minute (instantaneous estimate).
        activity:      Current classified activity.
        accuracy:      Horizontal accuracy of the latest fix in meters (0 if unknown).
    """

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


# ---------------------------------------------------------------------------
# Geodesy
# ---------------------------------------------------------------------------


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Surface distance in meters.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return _EARTH_RADIUS_M * c


def distance_between(a: LocationSample, b: LocationSample) -> float:
    """Surface distance between two location fixes, ignoring altitude."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def epoch_ms() -> int:
    """Current wall-clock time as Unix epoch milliseconds."""
    return int(time.time() * 1000)
