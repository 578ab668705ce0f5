"""Live tracking endpoints: session lifecycle, sample ingestion, and reads."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from src.dependencies import ActiveSession
from src.models.tracking import (
    ActivityRead,
    IngestAck,
    LocationIn,
    LocationRead,
    MetricsRead,
    MotionIn,
    SessionStatus,
    SnapshotRead,
    StepCountIn,
)
from src.tracking.base import epoch_ms

router = APIRouter(prefix="/tracking", tags=["tracking"])


def _status(session: ActiveSession) -> SessionStatus:
    snap = session.snapshot()
    return SessionStatus(
        active=snap.is_active,
        start_time_ms=snap.start_time_ms,
        end_time_ms=snap.end_time_ms,
        elapsed_ms=session.elapsed_ms(),
    )


# ---------- Lifecycle ----------

@router.post("/start", response_model=SessionStatus)
async def start_session(session: ActiveSession) -> Any:
    await session.start()
    return _status(session)


@router.post("/stop", response_model=SessionStatus)
async def stop_session(session: ActiveSession) -> Any:
    await session.stop()
    return _status(session)


@router.get("/status", response_model=SessionStatus)
async def session_status(session: ActiveSession) -> Any:
    return _status(session)


# ---------- Ingestion ----------

@router.post("/locations", response_model=IngestAck, status_code=202)
async def submit_location(session: ActiveSession, body: LocationIn) -> Any:
    session.submit_location(body.to_sample(epoch_ms))
    return IngestAck(active=session.is_active)


@router.post("/motion", response_model=IngestAck, status_code=202)
async def submit_motion(session: ActiveSession, body: MotionIn) -> Any:
    session.submit_motion(body.to_sample(epoch_ms))
    return IngestAck(active=session.is_active)


@router.post("/steps", response_model=IngestAck, status_code=202)
async def submit_steps(session: ActiveSession, body: StepCountIn) -> Any:
    session.submit_step_count(body.to_sample(epoch_ms))
    return IngestAck(active=session.is_active)


# ---------- Reads ----------

@router.get("/snapshot", response_model=SnapshotRead)
async def get_snapshot(session: ActiveSession) -> Any:
    return SnapshotRead.from_snapshot(session.snapshot())


@router.get("/metrics", response_model=MetricsRead)
async def get_metrics(session: ActiveSession) -> Any:
    return MetricsRead.from_metrics(session.current_metrics())


@router.get("/activity", response_model=ActivityRead)
async def get_activity(session: ActiveSession) -> Any:
    snap = session.snapshot()
    return ActivityRead(activity=snap.current_activity, confidence=snap.current_confidence)


@router.get("/locations/recent", response_model=list[LocationRead])
async def recent_locations(session: ActiveSession) -> Any:
    return [LocationRead.from_sample(loc) for loc in session.recent_locations()]
