"""Tracking session orchestration.

A ``TrackingSession`` owns one ``TrackingState`` per active run and wires the
ingestion API, the periodic ticks and listener fan-out together:

    submit_location / submit_motion / submit_step_count
        → TrackingState update rules (any thread, under the state lock)
    classification tick (1 s)  → ActivityClassifier → ACTIVITY_CHANGED
    metrics tick (10 s) and every accepted location → METRICS_UPDATED
    health sync tick (60 s) and stop → HealthSyncPusher (best effort)

The session is Idle or Active.  ``start()`` and ``stop()`` are no-ops in the
wrong state; ingestion is accepted in both states but has no effect while
Idle.  Nothing raised by a listener or a sink ever escapes the session.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from enum import Enum
from typing import Any, Awaitable, Callable

from src.tracking.base import (
    ActivityType,
    HealthMetrics,
    LocationSample,
    MotionSample,
    StepCountSample,
    epoch_ms,
)
from src.tracking.classifier import ActivityClassifier
from src.tracking.config_loader import TrackingConfig, get_tracking_config
from src.tracking.metrics import MetricsAggregator
from src.tracking.state import TrackingSnapshot, TrackingState
from src.tracking.sync.health_sync import HealthSyncPusher, SyncResult

logger = logging.getLogger("motionfuse.tracking.session")

Listener = Callable[..., Any]


class TrackingEvent(str, Enum):
    """Event kinds a listener can subscribe to.

    Payloads:
        ACTIVITY_CHANGED  — (ActivityType, confidence: float)
        METRICS_UPDATED   — (HealthMetrics,)
        LOCATION_UPDATED  — (LocationSample,)
        STEPS_UPDATED     — (step_count: int,)
    """

    ACTIVITY_CHANGED = "activity_changed"
    METRICS_UPDATED = "metrics_updated"
    LOCATION_UPDATED = "location_updated"
    STEPS_UPDATED = "steps_updated"


class TrackingSession:
    """Live motion-fusion session.

    Usage::

        session = TrackingSession(sync_pusher=HealthSyncPusher(sink))
        session.subscribe(TrackingEvent.ACTIVITY_CHANGED, on_activity)
        await session.start()
        session.submit_location(fix)          # from any thread
        session.submit_motion(reading)
        ...
        await session.stop()
    """

    def __init__(
        self,
        config: TrackingConfig | None = None,
        sync_pusher: HealthSyncPusher | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize an idle session.

        Args:
            config:      Tracking config; the global singleton if None.
            sync_pusher: Optional health-store pusher; sync is disabled if None.
            clock:       Epoch-milliseconds clock (injectable for tests).
        """
        self._config = config or get_tracking_config()
        self._clock = clock or epoch_ms
        self._pusher = sync_pusher
        self._classifier = ActivityClassifier(self._config)
        self._aggregator = MetricsAggregator(self._config)
        self._state = TrackingState(self._config, self._clock)

        self._listeners: dict[TrackingEvent, list[Listener]] = {e: [] for e in TrackingEvent}
        self._listeners_lock = threading.Lock()
        self._tasks: list[asyncio.Task] = []
        self._last_activity: tuple[ActivityType, float] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    async def start(self) -> None:
        """Idle → Active.  Starts a fresh state and the periodic ticks."""
        if self._state.is_active:
            return

        self._state = TrackingState(self._config, self._clock)
        self._last_activity = None
        self._state.activate(self._clock())

        intervals = self._config.intervals
        self._tasks = [
            asyncio.create_task(
                self._run_periodic(
                    "classification", intervals.classification_seconds, self.classify_now,
                    immediate=True,
                )
            ),
            asyncio.create_task(
                self._run_periodic("metrics", intervals.metrics_seconds, self.publish_metrics)
            ),
        ]
        if self._pusher is not None:
            self._tasks.append(
                asyncio.create_task(
                    self._run_periodic("health_sync", intervals.health_sync_seconds, self.sync_now)
                )
            )
        logger.info("Tracking session started (%d periodic tasks)", len(self._tasks))

    async def stop(self) -> None:
        """Active → Idle.  Cancels ticks, then publishes and syncs final totals."""
        if not self._state.is_active:
            return

        # Close the ingestion gate first so nothing mutates after this point
        self._state.deactivate(self._clock())

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        metrics = self.publish_metrics()
        await self.sync_now()
        logger.info(
            "Tracking session stopped: %.1f m, %d steps, %.1f kcal",
            metrics.distance,
            metrics.steps,
            metrics.calories,
        )

    def elapsed_ms(self) -> int:
        """Milliseconds since start (frozen at stop time once stopped)."""
        snap = self._state.snapshot()
        if snap.is_active:
            return max(0, self._clock() - snap.start_time_ms)
        if snap.end_time_ms > 0:
            return max(0, snap.end_time_ms - snap.start_time_ms)
        return 0

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def submit_location(self, sample: LocationSample) -> None:
        if not self._state.apply_location(sample):
            return
        self._emit(TrackingEvent.LOCATION_UPDATED, sample)
        if self._config.intervals.publish_metrics_on_location:
            self.publish_metrics()

    def submit_motion(self, sample: MotionSample) -> None:
        self._state.apply_motion(sample)

    def submit_step_count(self, sample: StepCountSample) -> None:
        if self._state.apply_step_count(sample):
            self._emit(TrackingEvent.STEPS_UPDATED, self._state.snapshot().step_count)

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def classify_now(self) -> tuple[ActivityType, float] | None:
        """Run one classification tick.

        Returns:
            (activity, confidence), or None if the session is idle.
        """
        snap = self._state.snapshot()
        if not snap.is_active:
            return None

        activity, confidence = self._classifier.evaluate(snap)
        self._state.apply_classification(activity, confidence)

        if (activity, confidence) != self._last_activity:
            if self._last_activity is None or self._last_activity[0] is not activity:
                logger.debug("Activity → %s (confidence %.2f)", activity.value, confidence)
            self._last_activity = (activity, confidence)
            self._emit(TrackingEvent.ACTIVITY_CHANGED, activity, confidence)
        return activity, confidence

    def publish_metrics(self) -> HealthMetrics:
        """Derive metrics now and push them to METRICS_UPDATED listeners."""
        metrics = self.current_metrics()
        self._emit(TrackingEvent.METRICS_UPDATED, metrics)
        return metrics

    async def sync_now(self) -> SyncResult | None:
        """Push current totals to the health store, if one is configured."""
        if self._pusher is None:
            return None
        return await self._pusher.push(self._state.snapshot(), self._clock())

    async def _run_periodic(
        self,
        name: str,
        interval: float,
        tick: Callable[[], Any | Awaitable[Any]],
        immediate: bool = False,
    ) -> None:
        if not immediate:
            await asyncio.sleep(interval)
        while True:
            try:
                result = tick()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Periodic %s tick failed", name)
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> TrackingSnapshot:
        return self._state.snapshot()

    def current_metrics(self) -> HealthMetrics:
        return self._aggregator.aggregate(self._state.snapshot(), self._clock())

    def recent_locations(self) -> list[LocationSample]:
        return list(self._state.snapshot().recent_locations)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, event: TrackingEvent, listener: Listener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners[event]:
                self._listeners[event].append(listener)

    def unsubscribe(self, event: TrackingEvent, listener: Listener) -> None:
        with self._listeners_lock:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

    def _emit(self, event: TrackingEvent, *payload: Any) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners[event])
        for listener in listeners:
            try:
                listener(*payload)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.value)
