"""Load, validate, and hot-reload the MotionFuse tracking configuration.

The config lives in ``tracking_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_tracking_config()`` to re-read from
disk; sessions already running keep the config they were started with.

Usage::

    from src.tracking.config_loader import get_tracking_config

    config = get_tracking_config()
    config.sensors.movement_threshold     # 0.5
    config.calories.met_for(ActivityType.RUNNING)  # 9.8
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.tracking.base import ActivityType

logger = logging.getLogger("motionfuse.tracking.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "tracking_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class SensorThresholds:
    """Magnitude thresholds applied to raw motion readings."""

    movement_threshold: float = 0.5
    high_intensity_threshold: float = 25.0
    cycling_rotation_threshold: float = 2.0


@dataclass
class StepDetectionConfig:
    """Valid inter-peak window for cadence updates (inclusive, milliseconds)."""

    min_step_interval_ms: int = 300
    max_step_interval_ms: int = 1500


@dataclass
class ClassificationConfig:
    """Speed and cadence bands used by the activity classifier."""

    running_speed_mps: float = 3.5
    walking_speed_mps: float = 1.4
    walking_cadence: tuple[int, int] = (120, 160)
    running_cadence: tuple[int, int] = (161, 200)
    base_confidence: float = 0.5
    movement_confidence_bonus: float = 0.2


@dataclass
class IntervalsConfig:
    """Periodic tick intervals for a running session (seconds)."""

    classification_seconds: float = 1.0
    metrics_seconds: float = 10.0
    health_sync_seconds: float = 60.0
    publish_metrics_on_location: bool = True


@dataclass
class CalorieConfig:
    """MET-based calorie approximation settings."""

    body_weight_kg: float = 70.0
    met: dict[ActivityType, float] = field(default_factory=dict)

    def met_for(self, activity: ActivityType) -> float:
        """Return the MET multiplier for an activity (UNKNOWN's value if missing)."""
        return self.met.get(activity, self.met.get(ActivityType.UNKNOWN, 2.0))


@dataclass
class TrackingConfig:
    """Complete, validated tracking configuration.

    This is the single in-memory representation of tracking_config.yaml.
    The peak detector, classifier, aggregator and session all read from it.
    """

    version: str
    sensors: SensorThresholds
    step_detection: StepDetectionConfig
    classification: ClassificationConfig
    intervals: IntervalsConfig
    calories: CalorieConfig
    recent_locations_capacity: int = 100
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when tracking_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Tracking config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> TrackingConfig:
    """Validate the raw YAML dict and construct a TrackingConfig.

    Missing sections fall back to the dataclass defaults.  Every problem found
    is collected and reported in a single ConfigValidationError.

    Args:
        raw: Parsed YAML dict.

    Returns:
        Validated TrackingConfig instance.

    Raises:
        ConfigValidationError: If any value is missing a usable type or range.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, path: str, default: float, minimum: float = 0.0) -> float:
        val = section.get(key, default)
        try:
            num = float(val)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {val!r}")
            return default
        if num < minimum:
            errors.append(f"{path}.{key} = {num} must be >= {minimum}")
        return num

    def _band(section: dict, key: str, path: str, default: tuple[int, int]) -> tuple[int, int]:
        val = section.get(key, list(default))
        if not isinstance(val, (list, tuple)) or len(val) != 2:
            errors.append(f"{path}.{key} must be a [low, high] pair, got {val!r}")
            return default
        try:
            low, high = int(val[0]), int(val[1])
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must contain integers, got {val!r}")
            return default
        if low > high:
            errors.append(f"{path}.{key} low bound {low} exceeds high bound {high}")
        return (low, high)

    version = str(raw.get("version", "1.0"))

    # ── Sensors ──
    s_raw = raw.get("sensors") or {}
    sensors = SensorThresholds(
        movement_threshold=_number(s_raw, "movement_threshold", "sensors", 0.5),
        high_intensity_threshold=_number(s_raw, "high_intensity_threshold", "sensors", 25.0),
        cycling_rotation_threshold=_number(s_raw, "cycling_rotation_threshold", "sensors", 2.0),
    )

    # ── Step detection ──
    sd_raw = raw.get("step_detection") or {}
    step_detection = StepDetectionConfig(
        min_step_interval_ms=int(_number(sd_raw, "min_step_interval_ms", "step_detection", 300)),
        max_step_interval_ms=int(_number(sd_raw, "max_step_interval_ms", "step_detection", 1500)),
    )
    if step_detection.min_step_interval_ms <= 0:
        errors.append("step_detection.min_step_interval_ms must be positive")
    if step_detection.min_step_interval_ms > step_detection.max_step_interval_ms:
        errors.append(
            "step_detection.min_step_interval_ms must not exceed max_step_interval_ms"
        )

    # ── Classification ──
    c_raw = raw.get("classification") or {}
    classification = ClassificationConfig(
        running_speed_mps=_number(c_raw, "running_speed_mps", "classification", 3.5),
        walking_speed_mps=_number(c_raw, "walking_speed_mps", "classification", 1.4),
        walking_cadence=_band(c_raw, "walking_cadence", "classification", (120, 160)),
        running_cadence=_band(c_raw, "running_cadence", "classification", (161, 200)),
        base_confidence=_number(c_raw, "base_confidence", "classification", 0.5),
        movement_confidence_bonus=_number(
            c_raw, "movement_confidence_bonus", "classification", 0.2
        ),
    )
    if classification.walking_speed_mps > classification.running_speed_mps:
        logger.warning(
            "walking_speed_mps (%.2f) exceeds running_speed_mps (%.2f); "
            "the walking speed rule will never match",
            classification.walking_speed_mps,
            classification.running_speed_mps,
        )

    # ── Intervals ──
    i_raw = raw.get("intervals") or {}
    intervals = IntervalsConfig(
        classification_seconds=_number(i_raw, "classification_seconds", "intervals", 1.0),
        metrics_seconds=_number(i_raw, "metrics_seconds", "intervals", 10.0),
        health_sync_seconds=_number(i_raw, "health_sync_seconds", "intervals", 60.0),
        publish_metrics_on_location=bool(i_raw.get("publish_metrics_on_location", True)),
    )
    for name in ("classification_seconds", "metrics_seconds", "health_sync_seconds"):
        if getattr(intervals, name) <= 0:
            errors.append(f"intervals.{name} must be positive")

    # ── History ──
    h_raw = raw.get("history") or {}
    capacity = int(_number(h_raw, "recent_locations_capacity", "history", 100, minimum=1))

    # ── Calories ──
    cal_raw = raw.get("calories") or {}
    met_raw: Any = cal_raw.get("met") or {}
    met: dict[ActivityType, float] = {
        ActivityType.STATIONARY: 1.0,
        ActivityType.WALKING: 3.5,
        ActivityType.RUNNING: 9.8,
        ActivityType.CYCLING: 7.5,
        ActivityType.INTENSE_EXERCISE: 12.0,
        ActivityType.UNKNOWN: 2.0,
    }
    if not isinstance(met_raw, dict):
        errors.append("calories.met must be a mapping of activity→MET")
        met_raw = {}
    for name, value in met_raw.items():
        try:
            activity = ActivityType(name)
        except ValueError:
            errors.append(f"calories.met.{name} is not a known activity")
            continue
        met[activity] = _number(met_raw, name, "calories.met", met[activity])
    calories = CalorieConfig(
        body_weight_kg=_number(cal_raw, "body_weight_kg", "calories", 70.0, minimum=1.0),
        met=met,
    )

    if errors:
        raise ConfigValidationError(
            f"tracking_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return TrackingConfig(
        version=version,
        sensors=sensors,
        step_detection=step_detection,
        classification=classification,
        intervals=intervals,
        calories=calories,
        recent_locations_capacity=capacity,
        _raw=raw,
    )


def load_tracking_config(path: Path | None = None) -> TrackingConfig:
    """Load and validate the tracking config from disk.

    Args:
        path: Override path to YAML. Uses the bundled tracking_config.yaml by default.

    Returns:
        Validated TrackingConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded tracking config v%s from %s", config.version, target)
    return config


def default_tracking_config() -> TrackingConfig:
    """Return a config built purely from defaults, without touching disk."""
    return _validate_and_build({})


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: TrackingConfig | None = None
_config_lock = threading.Lock()


def get_tracking_config() -> TrackingConfig:
    """Return the global TrackingConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_tracking_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_tracking_config()
    return _config


def reload_tracking_config(path: Path | None = None) -> TrackingConfig:
    """Reload the tracking config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_tracking_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded tracking config: %s → %s", old_version, new_config.version)
    return new_config
