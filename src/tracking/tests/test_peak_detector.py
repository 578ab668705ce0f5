"""Tests for PeakDetector rising-edge and cadence handling."""

from __future__ import annotations

import math

from src.tracking.config_loader import SensorThresholds, StepDetectionConfig
from src.tracking.peak_detector import PeakDetector


def edge(detector: PeakDetector, t: int, high: float = 3.0):
    """Drive one full rising edge at time t: a low sample then a high one."""
    detector.feed((0.1, 0.0, 0.0), t - 1)
    return detector.feed((high, 0.0, 0.0), t)


class TestMagnitude:
    def test_euclidean_norm(self) -> None:
        reading = PeakDetector().feed((3.0, 4.0, 0.0), 0)
        assert reading is not None
        assert reading.magnitude == 5.0

    def test_extra_components_ignored(self) -> None:
        reading = PeakDetector().feed((3.0, 4.0, 0.0, 99.0), 0)
        assert reading.magnitude == 5.0

    def test_under_length_sample_discarded(self) -> None:
        detector = PeakDetector()
        assert detector.feed((1.0, 2.0), 0) is None
        assert detector.last_edge_ms is None

    def test_non_finite_sample_discarded(self) -> None:
        detector = PeakDetector()
        assert detector.feed((math.nan, 0.0, 1.0), 0) is None
        assert detector.feed((math.inf, 0.0, 1.0), 0) is None

    def test_movement_flag_follows_threshold(self) -> None:
        detector = PeakDetector()
        assert detector.feed((0.5, 0.0, 0.0), 0).movement is False  # not strictly above
        assert detector.feed((0.6, 0.0, 0.0), 10).movement is True


class TestRisingEdges:
    def test_first_edge_sets_baseline_only(self) -> None:
        detector = PeakDetector()
        reading = detector.feed((2.0, 0.0, 0.0), 1000)
        assert reading.rising_edge
        assert not reading.is_step
        assert detector.cadence == 0
        assert detector.last_edge_ms == 1000

    def test_sustained_high_signal_is_one_edge(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        reading = detector.feed((2.5, 0.0, 0.0), 500)
        assert not reading.rising_edge
        assert detector.last_edge_ms == 0

    def test_edge_at_100ms_does_not_update_cadence(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        reading = edge(detector, 100)
        assert reading.rising_edge
        assert not reading.is_step
        assert detector.cadence == 0

    def test_edge_at_500ms_sets_cadence_120(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        reading = edge(detector, 500)
        assert reading.is_step
        assert reading.cadence == 120
        assert detector.cadence == 120

    def test_window_bounds_are_inclusive(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        assert edge(detector, 300).cadence == 200
        assert edge(detector, 1800).cadence == 40  # 1500 ms later

    def test_long_pause_keeps_cadence_but_resets_baseline(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        edge(detector, 500)
        assert detector.cadence == 120

        pause = edge(detector, 10_000)
        assert not pause.is_step
        assert detector.cadence == 120  # stale cadence persists
        assert detector.last_edge_ms == 10_000

        resumed = edge(detector, 10_400)
        assert resumed.cadence == 150

    def test_noise_edge_moves_baseline(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        edge(detector, 100)  # too fast, still becomes the baseline
        reading = edge(detector, 600)
        assert reading.cadence == 120  # measured from 100, not 0

    def test_custom_window(self) -> None:
        detector = PeakDetector(
            SensorThresholds(movement_threshold=10.0),
            StepDetectionConfig(min_step_interval_ms=100, max_step_interval_ms=200),
        )
        detector.feed((11.0, 0.0, 0.0), 0)
        assert edge(detector, 150, high=11.0).cadence == 400

    def test_reset(self) -> None:
        detector = PeakDetector()
        detector.feed((2.0, 0.0, 0.0), 0)
        edge(detector, 500)
        detector.reset()
        assert detector.cadence == 0
        assert detector.last_edge_ms is None
