"""Rule-based activity classification.

Classification is an ordered list of ``(predicate, outcome)`` rules evaluated
top to bottom; the first predicate that matches decides the activity.  Order
is part of the contract: movement gating beats speed, speed beats rotation,
rotation beats raw intensity, intensity beats cadence.  The rules are plain
data so they can be inspected, reordered or replaced without touching
``classify``.

Default policy (thresholds from tracking_config.yaml):

    1. no movement detected          → STATIONARY
    2. speed > 3.5 m/s               → RUNNING
    3. speed > 1.4 m/s               → WALKING
    4. rotation rate > 2.0           → CYCLING
    5. accelerometer magnitude > 25  → INTENSE_EXERCISE
    6. cadence in [120, 160]         → WALKING
    7. cadence in [161, 200]         → RUNNING
    8. otherwise                     → UNKNOWN
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from src.tracking.base import ActivityType
from src.tracking.config_loader import TrackingConfig, default_tracking_config
from src.tracking.state import TrackingSnapshot

Predicate = Callable[[TrackingSnapshot], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """One step of the classification policy.

    Attributes:
        name:      Short identifier used in logs and tests.
        predicate: Pure function of a snapshot.
        outcome:   Activity returned when the predicate matches.
    """

    name: str
    predicate: Predicate
    outcome: ActivityType


def _speed_above(threshold: float) -> Predicate:
    def check(snap: TrackingSnapshot) -> bool:
        speed = snap.current_speed
        return speed is not None and speed > threshold

    return check


def _cadence_within(band: tuple[int, int]) -> Predicate:
    low, high = band
    return lambda snap: low <= snap.cadence <= high


def build_rules(config: TrackingConfig | None = None) -> tuple[ClassificationRule, ...]:
    """Build the ordered default policy from configured thresholds.

    The trailing UNKNOWN fallback is not a rule; ``classify`` returns it when
    nothing matches.
    """
    cfg = config or default_tracking_config()
    sensors = cfg.sensors
    bands = cfg.classification
    return (
        ClassificationRule(
            "stationary", lambda s: not s.movement_detected, ActivityType.STATIONARY
        ),
        ClassificationRule(
            "running_speed", _speed_above(bands.running_speed_mps), ActivityType.RUNNING
        ),
        ClassificationRule(
            "walking_speed", _speed_above(bands.walking_speed_mps), ActivityType.WALKING
        ),
        ClassificationRule(
            "cycling_rotation",
            lambda s: s.rotation_rate > sensors.cycling_rotation_threshold,
            ActivityType.CYCLING,
        ),
        ClassificationRule(
            "intense_magnitude",
            lambda s: s.accelerometer_magnitude > sensors.high_intensity_threshold,
            ActivityType.INTENSE_EXERCISE,
        ),
        ClassificationRule(
            "walking_cadence", _cadence_within(bands.walking_cadence), ActivityType.WALKING
        ),
        ClassificationRule(
            "running_cadence", _cadence_within(bands.running_cadence), ActivityType.RUNNING
        ),
    )


DEFAULT_RULES: tuple[ClassificationRule, ...] = build_rules()


def classify(
    snapshot: TrackingSnapshot,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> ActivityType:
    """Return the outcome of the first matching rule, or UNKNOWN."""
    for rule in rules:
        if rule.predicate(snapshot):
            return rule.outcome
    return ActivityType.UNKNOWN


def activity_confidence(
    activity: ActivityType,
    snapshot: TrackingSnapshot,
    config: TrackingConfig | None = None,
) -> float:
    """Score how much the motion data supports a classified activity.

    Starts at the base confidence.  A known speed lifts walking, running and
    cycling proportionally to speed; any detected movement adds a flat bonus.

    Args:
        activity: Activity returned by ``classify``.
        snapshot: The snapshot it was classified from.
        config:   Tracking config (base and bonus values).

    Returns:
        Confidence in [0.0, 1.0].
    """
    bands = (config or default_tracking_config()).classification
    confidence = bands.base_confidence

    speed = snapshot.current_speed
    if speed is not None:
        if activity is ActivityType.WALKING:
            confidence = min(1.0, 0.5 + speed / 2)
        elif activity is ActivityType.RUNNING:
            confidence = min(1.0, 0.5 + speed / 4)
        elif activity is ActivityType.CYCLING:
            confidence = min(1.0, 0.6 + speed / 10)

    if snapshot.movement_detected:
        confidence += bands.movement_confidence_bonus

    return min(max(confidence, 0.0), 1.0)


class ActivityClassifier:
    """Classifier bound to one config and rule set.

    Usage::

        classifier = ActivityClassifier(config)
        activity, confidence = classifier.evaluate(state.snapshot())
    """

    def __init__(
        self,
        config: TrackingConfig | None = None,
        rules: Sequence[ClassificationRule] | None = None,
    ) -> None:
        self._config = config or default_tracking_config()
        self._rules = tuple(rules) if rules is not None else build_rules(self._config)

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        return self._rules

    def evaluate(self, snapshot: TrackingSnapshot) -> tuple[ActivityType, float]:
        activity = classify(snapshot, self._rules)
        return activity, activity_confidence(activity, snapshot, self._config)
