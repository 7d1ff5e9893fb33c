"""Route recording: start, push GPS samples, pin notes, stop."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from habitumap.core.models import GeoPoint, Route
from habitumap.core.session import TrackingSession
from habitumap.deps import get_provider, get_repository, get_session
from habitumap.errors import NotTracking, PersistenceFailure
from habitumap.providers.push import PushLocationProvider
from habitumap.storage.repository import LocalRepository

router = APIRouter(prefix="/tracking", tags=["tracking"])


class StartIn(BaseModel):
    permission_granted: bool = True


class SampleIn(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    timestamp: Optional[datetime] = None


class AnnotationIn(BaseModel):
    note: Optional[str] = None
    photo_reference: Optional[str] = None
    # Omit to pin at the last pushed position
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


class TrackingStatus(BaseModel):
    is_active: bool
    started_at: Optional[datetime] = None
    duration_label: str
    distance_km: float
    distance_label: str
    sample_count: int
    point_count: int


class SampleOut(TrackingStatus):
    delivered: bool


def _status(session: TrackingSession) -> TrackingStatus:
    return TrackingStatus(
        is_active=session.is_active,
        started_at=session.started_at,
        duration_label=session.duration_label(),
        distance_km=session.cumulative_distance_km,
        distance_label=f"{session.cumulative_distance_km:.2f} km",
        sample_count=len(session.samples),
        point_count=session.point_count,
    )


@router.get("", response_model=TrackingStatus)
def tracking_status(session: TrackingSession = Depends(get_session)):
    return _status(session)


@router.post("/start", response_model=TrackingStatus)
def start_tracking(
    body: StartIn = StartIn(),
    session: TrackingSession = Depends(get_session),
    provider: PushLocationProvider = Depends(get_provider),
):
    provider.granted = body.permission_granted
    session.start()
    return _status(session)


@router.post("/samples", response_model=SampleOut)
def push_sample(
    body: SampleIn,
    session: TrackingSession = Depends(get_session),
    provider: PushLocationProvider = Depends(get_provider),
):
    if not session.is_active:
        raise NotTracking("append sample")
    point = GeoPoint.capture(body.latitude, body.longitude, at=body.timestamp)
    delivered = provider.deliver(point)
    return SampleOut(delivered=delivered, **_status(session).model_dump())


@router.post("/annotations", response_model=GeoPoint, status_code=201)
def add_annotation(body: AnnotationIn, session: TrackingSession = Depends(get_session)):
    if (body.latitude is None) != (body.longitude is None):
        raise HTTPException(status_code=422, detail="latitude and longitude go together")
    if body.latitude is None:
        return session.annotate_current(body.note, body.photo_reference)
    point = GeoPoint.capture(
        body.latitude, body.longitude, note=body.note, photo_reference=body.photo_reference
    )
    session.append_annotation(point)
    return point


@router.post("/stop", response_model=Route, status_code=201)
def stop_tracking(
    session: TrackingSession = Depends(get_session),
    repo: LocalRepository = Depends(get_repository),
):
    route = session.stop()
    try:
        repo.add_route(route)
    except PersistenceFailure as exc:
        # Hand the route back so the client can retry POST /history
        raise HTTPException(
            status_code=503,
            detail={"message": f"Route not saved: {exc}", "route": route.model_dump(mode="json")},
        )
    session.discard_snapshot()
    return route
