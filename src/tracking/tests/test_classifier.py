"""Tests for the ordered activity classification policy and confidence scoring."""

from __future__ import annotations

from typing import Any

import pytest

from src.tracking.base import ActivityType
from src.tracking.classifier import (
    DEFAULT_RULES,
    ActivityClassifier,
    ClassificationRule,
    activity_confidence,
    build_rules,
    classify,
)
from src.tracking.config_loader import TrackingConfig
from src.tracking.state import ALTITUDE_UNSET, TrackingSnapshot
from src.tracking.tests.conftest import T0_MS, loc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_snapshot(speed: float | None = None, with_fix: bool = True, **overrides: Any) -> TrackingSnapshot:
    fix = loc(speed=speed) if with_fix else None
    fields: dict[str, Any] = dict(
        start_time_ms=T0_MS,
        end_time_ms=0,
        is_active=True,
        total_distance=0.0,
        total_altitude_gain=0.0,
        pace=0.0,
        step_count=0,
        cadence=0,
        accelerometer_magnitude=0.0,
        rotation_rate=0.0,
        movement_detected=True,
        last_movement_time_ms=0,
        current_location=fix,
        last_location=fix,
        recent_locations=(),
        current_activity=ActivityType.STATIONARY,
        current_confidence=0.0,
        last_altitude=ALTITUDE_UNSET,
    )
    fields.update(overrides)
    return TrackingSnapshot(**fields)


# ---------------------------------------------------------------------------
# Priority order
# ---------------------------------------------------------------------------


class TestClassificationPriority:
    def test_no_movement_is_stationary_regardless_of_everything_else(self) -> None:
        snap = make_snapshot(
            speed=6.0,
            movement_detected=False,
            rotation_rate=10.0,
            accelerometer_magnitude=40.0,
            cadence=170,
        )
        assert classify(snap) is ActivityType.STATIONARY

    def test_running_speed(self) -> None:
        assert classify(make_snapshot(speed=3.6)) is ActivityType.RUNNING

    def test_speed_thresholds_are_strict(self) -> None:
        assert classify(make_snapshot(speed=3.5)) is ActivityType.WALKING
        assert classify(make_snapshot(speed=1.4)) is ActivityType.UNKNOWN

    def test_walking_speed(self) -> None:
        assert classify(make_snapshot(speed=1.6)) is ActivityType.WALKING

    def test_speed_beats_rotation(self) -> None:
        snap = make_snapshot(speed=2.0, rotation_rate=5.0)
        assert classify(snap) is ActivityType.WALKING

    def test_cycling_rotation(self) -> None:
        snap = make_snapshot(speed=1.0, rotation_rate=2.5, accelerometer_magnitude=30.0)
        assert classify(snap) is ActivityType.CYCLING

    def test_intense_magnitude(self) -> None:
        snap = make_snapshot(accelerometer_magnitude=26.0, cadence=140)
        assert classify(snap) is ActivityType.INTENSE_EXERCISE

    @pytest.mark.parametrize(
        ("cadence", "expected"),
        [
            (119, ActivityType.UNKNOWN),
            (120, ActivityType.WALKING),
            (160, ActivityType.WALKING),
            (161, ActivityType.RUNNING),
            (200, ActivityType.RUNNING),
            (201, ActivityType.UNKNOWN),
        ],
    )
    def test_cadence_bands(self, cadence: int, expected: ActivityType) -> None:
        assert classify(make_snapshot(cadence=cadence)) is expected

    def test_no_fix_falls_through_speed_rules(self) -> None:
        snap = make_snapshot(with_fix=False, cadence=130)
        assert classify(snap) is ActivityType.WALKING

    def test_unknown_speed_falls_through(self) -> None:
        assert classify(make_snapshot(speed=None)) is ActivityType.UNKNOWN


class TestRulesAsData:
    def test_default_order(self) -> None:
        assert [r.name for r in DEFAULT_RULES] == [
            "stationary",
            "running_speed",
            "walking_speed",
            "cycling_rotation",
            "intense_magnitude",
            "walking_cadence",
            "running_cadence",
        ]

    def test_reordering_changes_outcome(self) -> None:
        snap = make_snapshot(speed=2.0, rotation_rate=5.0)
        by_name = {r.name: r for r in DEFAULT_RULES}
        reordered = [by_name["cycling_rotation"]] + [
            r for r in DEFAULT_RULES if r.name != "cycling_rotation"
        ]
        assert classify(snap, DEFAULT_RULES) is ActivityType.WALKING
        assert classify(snap, reordered) is ActivityType.CYCLING

    def test_empty_rules_yield_unknown(self) -> None:
        assert classify(make_snapshot(movement_detected=False), ()) is ActivityType.UNKNOWN

    def test_custom_rule(self) -> None:
        rule = ClassificationRule("always_cycling", lambda s: True, ActivityType.CYCLING)
        assert classify(make_snapshot(), [rule]) is ActivityType.CYCLING

    def test_rules_follow_config(self, tracking_config: TrackingConfig) -> None:
        tracking_config.classification.walking_speed_mps = 0.5
        rules = build_rules(tracking_config)
        assert classify(make_snapshot(speed=1.0), rules) is ActivityType.WALKING


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


class TestConfidence:
    def test_walking_fast_is_clamped_to_one(self) -> None:
        snap = make_snapshot(speed=5.0)
        assert activity_confidence(ActivityType.WALKING, snap) == 1.0

    def test_walking_slow(self) -> None:
        snap = make_snapshot(speed=0.2, movement_detected=False)
        assert activity_confidence(ActivityType.WALKING, snap) == pytest.approx(0.6)

    def test_running_speed_term(self) -> None:
        snap = make_snapshot(speed=1.0, movement_detected=False)
        assert activity_confidence(ActivityType.RUNNING, snap) == pytest.approx(0.75)

    def test_cycling_speed_term_plus_movement(self) -> None:
        snap = make_snapshot(speed=1.0)
        assert activity_confidence(ActivityType.CYCLING, snap) == pytest.approx(0.9)

    def test_other_activities_ignore_speed(self) -> None:
        snap = make_snapshot(speed=8.0)
        assert activity_confidence(ActivityType.UNKNOWN, snap) == pytest.approx(0.7)
        assert activity_confidence(ActivityType.INTENSE_EXERCISE, snap) == pytest.approx(0.7)

    def test_unknown_speed_uses_base(self) -> None:
        snap = make_snapshot(with_fix=False, movement_detected=False)
        assert activity_confidence(ActivityType.WALKING, snap) == pytest.approx(0.5)

    def test_stationary_without_movement(self) -> None:
        snap = make_snapshot(speed=0.0, movement_detected=False)
        assert activity_confidence(ActivityType.STATIONARY, snap) == pytest.approx(0.5)

    @pytest.mark.parametrize("speed", [0.0, 1.0, 3.0, 10.0, 100.0])
    @pytest.mark.parametrize(
        "activity", [ActivityType.WALKING, ActivityType.RUNNING, ActivityType.CYCLING]
    )
    def test_always_within_unit_interval(self, activity: ActivityType, speed: float) -> None:
        assert 0.0 <= activity_confidence(activity, make_snapshot(speed=speed)) <= 1.0


class TestActivityClassifier:
    def test_evaluate_returns_activity_and_confidence(
        self, tracking_config: TrackingConfig
    ) -> None:
        classifier = ActivityClassifier(tracking_config)
        activity, confidence = classifier.evaluate(make_snapshot(speed=1.6))
        assert activity is ActivityType.WALKING
        assert confidence == 1.0

    def test_injected_rules(self, tracking_config: TrackingConfig) -> None:
        rule = ClassificationRule("fixed", lambda s: True, ActivityType.RUNNING)
        classifier = ActivityClassifier(tracking_config, rules=[rule])
        assert classifier.rules == (rule,)
        assert classifier.evaluate(make_snapshot())[0] is ActivityType.RUNNING
