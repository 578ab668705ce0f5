"""One-way, best-effort push of session totals to an external health store.

The tracking core never waits on the store: the session calls
``HealthSyncPusher.push`` on a slow periodic tick and once more on stop, and
any failure is logged and swallowed.  Retries are the sink's business.

Records pushed per call (only non-zero totals):
    distance           — meters
    steps              — count
    active_calories    — kcal (joules also included for stores that want SI)
    elevation_gained   — meters
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

import httpx

from src.tracking.base import epoch_ms
from src.tracking.metrics import MetricsAggregator
from src.tracking.state import TrackingSnapshot

logger = logging.getLogger("motionfuse.tracking.sync")

_JOULES_PER_KCAL = 4184.0


@dataclass(frozen=True)
class HealthRecord:
    """A single interval record for a health store.

    Attributes:
        record_type: 'distance', 'steps', 'active_calories' or 'elevation_gained'.
        value:       Numeric value in ``unit``.
        unit:        Unit string ('m', 'count', 'kcal').
        start_time:  UTC start of the interval (session start).
        end_time:    UTC end of the interval (push time or session end).
        extra:       Additional representations (e.g. joules).
    """

    record_type: str
    value: float
    unit: str
    start_time: datetime
    end_time: datetime
    extra: dict = field(default_factory=dict)

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["start_time"] = self.start_time.isoformat()
        payload["end_time"] = self.end_time.isoformat()
        return payload


@dataclass
class SyncResult:
    """Outcome of one push attempt.

    Attributes:
        status:        'success', 'skipped' (nothing to push) or 'error'.
        records_sent:  Number of records handed to the sink.
        error:         Error message if status == 'error'.
        synced_at:     UTC timestamp of the attempt.
    """

    status: str = "success"
    records_sent: int = 0
    error: str | None = None
    synced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _utc(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def build_health_records(
    snapshot: TrackingSnapshot,
    calories_kcal: float,
    now_ms: int,
) -> list[HealthRecord]:
    """Translate session totals into interval records.

    Args:
        snapshot:      Consistent copy of the tracking state.
        calories_kcal: Calories estimated for the same moment.
        now_ms:        Push time; used as end time while the session is active.

    Returns:
        Records for every non-zero total, possibly empty.
    """
    start = _utc(snapshot.start_time_ms)
    end_ms = now_ms if snapshot.is_active or snapshot.end_time_ms <= 0 else snapshot.end_time_ms
    end = _utc(end_ms)

    records: list[HealthRecord] = []
    if snapshot.total_distance > 0:
        records.append(HealthRecord("distance", snapshot.total_distance, "m", start, end))
    if snapshot.step_count > 0:
        records.append(HealthRecord("steps", float(snapshot.step_count), "count", start, end))
    if calories_kcal > 0:
        records.append(
            HealthRecord(
                "active_calories",
                calories_kcal,
                "kcal",
                start,
                end,
                extra={"joules": calories_kcal * _JOULES_PER_KCAL},
            )
        )
    if snapshot.total_altitude_gain > 0:
        records.append(
            HealthRecord("elevation_gained", snapshot.total_altitude_gain, "m", start, end)
        )
    return records


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class HealthSink(ABC):
    """Destination for health records (platform store, HTTP endpoint, ...)."""

    @abstractmethod
    async def push(self, records: list[HealthRecord]) -> None:
        """Deliver records.  May raise; the pusher logs and swallows errors."""


class HttpHealthSink(HealthSink):
    """POST records as JSON to a health-store HTTP endpoint."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            url:             Endpoint accepting ``{"records": [...]}``.
            timeout_seconds: Per-request timeout.
            http_client:     Optional pre-configured httpx client (for testing).
        """
        self._url = url
        self._timeout = timeout_seconds
        self._http_client = http_client

    async def push(self, records: list[HealthRecord]) -> None:
        body = {"records": [r.to_payload() for r in records]}
        if self._http_client is not None:
            response = await self._http_client.post(self._url, json=body, timeout=self._timeout)
            response.raise_for_status()
            return

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json=body)
            response.raise_for_status()


# ---------------------------------------------------------------------------
# Pusher
# ---------------------------------------------------------------------------


class HealthSyncPusher:
    """Build records from a snapshot and hand them to a sink, never raising.

    Usage::

        pusher = HealthSyncPusher(HttpHealthSink(settings.health_sync_url))
        result = await pusher.push(state.snapshot())
    """

    def __init__(
        self,
        sink: HealthSink,
        aggregator: MetricsAggregator | None = None,
    ) -> None:
        self._sink = sink
        self._aggregator = aggregator or MetricsAggregator()

    async def push(self, snapshot: TrackingSnapshot, now_ms: int | None = None) -> SyncResult:
        now = epoch_ms() if now_ms is None else now_ms
        calories = self._aggregator.aggregate(snapshot, now).calories
        records = build_health_records(snapshot, calories, now)
        if not records:
            logger.debug("Health sync: nothing to push")
            return SyncResult(status="skipped")

        try:
            await self._sink.push(records)
        except Exception as exc:
            logger.warning("Health sync push failed (%d records): %s", len(records), exc)
            return SyncResult(status="error", error=str(exc))

        logger.info("Health sync: pushed %d records", len(records))
        return SyncResult(status="success", records_sent=len(records))
