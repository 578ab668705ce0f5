"""Step cadence estimation from raw accelerometer magnitude.

The detector watches the acceleration magnitude for rising edges through the
movement threshold.  Two consecutive edges whose spacing falls within the
configured step window count as one step, and the spacing gives the
instantaneous cadence (``60000 / spacing_ms`` steps per minute).  Edges outside
the window are noise: cadence keeps its previous value, but the edge still
becomes the new baseline so a long pause does not poison the next step.

The detector only keeps its own edge history.  ``TrackingState`` applies the
returned ``PeakReading`` to its fields under its lock.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from src.tracking.config_loader import SensorThresholds, StepDetectionConfig

logger = logging.getLogger("motionfuse.tracking.peaks")


@dataclass(frozen=True, slots=True)
class PeakReading:
    """Outcome of feeding one accelerometer sample to the detector.

    Attributes:
        magnitude:   Euclidean norm of the sample.
        movement:    True if magnitude exceeded the movement threshold.
        rising_edge: True if this sample crossed the threshold upward.
        is_step:     True if the edge fell within the valid step window.
        cadence:     New cadence (steps/min) when is_step, else None.
    """

    magnitude: float
    movement: bool
    rising_edge: bool = False
    is_step: bool = False
    cadence: int | None = None


class PeakDetector:
    """Turn a continuous acceleration-magnitude stream into step events.

    Usage::

        detector = PeakDetector(config.sensors, config.step_detection)
        reading = detector.feed((x, y, z), timestamp_ms)
        if reading and reading.is_step:
            ...
    """

    def __init__(
        self,
        thresholds: SensorThresholds | None = None,
        window: StepDetectionConfig | None = None,
    ) -> None:
        thresholds = thresholds or SensorThresholds()
        window = window or StepDetectionConfig()
        self._threshold = thresholds.movement_threshold
        self._min_interval_ms = window.min_step_interval_ms
        self._max_interval_ms = window.max_step_interval_ms
        self._previous_magnitude = 0.0
        self._last_edge_ms: int | None = None
        self._cadence = 0

    @property
    def cadence(self) -> int:
        """Most recent valid cadence estimate (0 until the first valid step)."""
        return self._cadence

    @property
    def last_edge_ms(self) -> int | None:
        return self._last_edge_ms

    def feed(self, values: Sequence[float], timestamp_ms: int) -> PeakReading | None:
        """Process one accelerometer sample.

        Args:
            values:       Raw axis components; only the first three are used.
            timestamp_ms: Sensor timestamp of the sample.

        Returns:
            PeakReading, or None if the sample was malformed and ignored.
        """
        if len(values) < 3:
            logger.debug("Dropping accelerometer sample with %d components", len(values))
            return None
        x, y, z = values[0], values[1], values[2]
        if not all(math.isfinite(v) for v in (x, y, z)):
            logger.debug("Dropping non-finite accelerometer sample at %d", timestamp_ms)
            return None

        magnitude = math.sqrt(x * x + y * y + z * z)
        above = magnitude > self._threshold
        rising = above and self._previous_magnitude <= self._threshold
        self._previous_magnitude = magnitude

        if not rising:
            return PeakReading(magnitude=magnitude, movement=above)

        is_step = False
        if self._last_edge_ms is not None:
            elapsed = timestamp_ms - self._last_edge_ms
            if self._min_interval_ms <= elapsed <= self._max_interval_ms:
                self._cadence = int(60000 / elapsed)
                is_step = True
        self._last_edge_ms = timestamp_ms

        return PeakReading(
            magnitude=magnitude,
            movement=True,
            rising_edge=True,
            is_step=is_step,
            cadence=self._cadence if is_step else None,
        )

    def reset(self) -> None:
        """Forget edge history and cadence (used when a session restarts)."""
        self._previous_magnitude = 0.0
        self._last_edge_ms = None
        self._cadence = 0
