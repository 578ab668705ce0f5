"""Derive HealthMetrics snapshots from the tracking state.

Calories use a MET approximation::

    calories = MET(activity) × body_weight_kg × elapsed_minutes / 60

with a constant body weight from config (70 kg by default).  This is a
display-grade estimate, not a physiological model.

Aggregation never fails.  Missing inputs (no fix yet, no altitude, session not
started) produce zero-valued fields.
"""

from __future__ import annotations

from src.tracking.base import ActivityType, HealthMetrics, epoch_ms
from src.tracking.config_loader import CalorieConfig, TrackingConfig, default_tracking_config
from src.tracking.state import TrackingSnapshot


def elapsed_minutes(snapshot: TrackingSnapshot, now_ms: int) -> float:
    """Minutes since session start (up to end time once stopped), never negative."""
    if snapshot.is_active:
        end = now_ms
    elif snapshot.end_time_ms > 0:
        end = snapshot.end_time_ms
    else:
        return 0.0  # never started
    return max(0.0, (end - snapshot.start_time_ms) / 60000.0)


def calories_burned(
    activity: ActivityType,
    minutes: float,
    calories: CalorieConfig | None = None,
) -> float:
    """Estimate kcal burned over ``minutes`` at the MET of ``activity``."""
    cfg = calories or default_tracking_config().calories
    return cfg.met_for(activity) * cfg.body_weight_kg * minutes / 60.0


class MetricsAggregator:
    """Turns TrackingSnapshots into HealthMetrics.

    Stateless apart from config; safe to call from any tick or on demand.
    """

    def __init__(self, config: TrackingConfig | None = None) -> None:
        self._config = config or default_tracking_config()

    def aggregate(self, snapshot: TrackingSnapshot, now_ms: int | None = None) -> HealthMetrics:
        """Build a fresh HealthMetrics from one snapshot.

        Args:
            snapshot: Consistent copy of the tracking state.
            now_ms:   Derivation time; defaults to the wall clock.

        Returns:
            A new, immutable HealthMetrics.
        """
        now = epoch_ms() if now_ms is None else now_ms
        location = snapshot.current_location
        minutes = elapsed_minutes(snapshot, now)

        return HealthMetrics(
            timestamp_ms=now,
            distance=snapshot.total_distance,
            steps=snapshot.step_count,
            calories=calories_burned(snapshot.current_activity, minutes, self._config.calories),
            pace=snapshot.pace,
            speed=(location.speed or 0.0) if location else 0.0,
            altitude=(location.altitude or 0.0) if location else 0.0,
            altitude_gain=snapshot.total_altitude_gain,
            cadence=snapshot.cadence,
            activity=snapshot.current_activity,
            accuracy=(location.horizontal_accuracy or 0.0) if location else 0.0,
        )
