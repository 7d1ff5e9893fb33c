"""Tracking session: the in-memory recording of a route before it is saved.

State machine
-------------
``IDLE --start()--> ACTIVE``  (needs location capability)
``ACTIVE --append_sample / append_annotation--> ACTIVE``
``ACTIVE --stop()--> IDLE``   (emits a ``Route``)

Calls made in the wrong state raise a ``PreconditionViolation`` and leave
the session untouched.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from habitumap.core.clock import date_string, local_now
from habitumap.core.distance import haversine_km, route_distance_km
from habitumap.core.models import GeoPoint, Route, TrackingSnapshot, new_id
from habitumap.errors import (
    AlreadyTracking,
    CapabilityDenied,
    LocationUnavailable,
    NotTracking,
    PersistenceFailure,
)
from habitumap.providers.base import LocationProvider, Subscription

if TYPE_CHECKING:
    from habitumap.storage.repository import LocalRepository

log = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


def format_duration(seconds: float) -> str:
    """Whole hours and minutes, truncated: 3725s -> "1h 2m"."""
    total = max(0, int(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    return f"{hours}h {minutes}m"


class TrackingSession:
    """
    One route recording at a time.

    Args:
        provider:   location source; the session owns its subscription.
        repository: optional; when given, a snapshot is written after every
                    transition so an interrupted recording can be resumed.
        clock:      returns the current aware datetime (local zone).
    """

    def __init__(
        self,
        provider: LocationProvider,
        repository: Optional["LocalRepository"] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.provider = provider
        self.repository = repository
        self.clock = clock or local_now

        self.state = SessionState.IDLE
        self.started_at: Optional[datetime] = None
        self._samples: List[GeoPoint] = []
        self._annotations: List[GeoPoint] = []
        self._distance_km = 0.0
        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def samples(self) -> List[GeoPoint]:
        return list(self._samples)

    @property
    def annotations(self) -> List[GeoPoint]:
        return list(self._annotations)

    @property
    def cumulative_distance_km(self) -> float:
        return self._distance_km

    @property
    def point_count(self) -> int:
        return len(self._annotations)

    def elapsed_seconds(self) -> float:
        if not self.is_active or self.started_at is None:
            return 0.0
        return (self.clock() - self.started_at).total_seconds()

    def duration_label(self) -> str:
        return format_duration(self.elapsed_seconds())

    def snapshot(self) -> TrackingSnapshot:
        if not self.is_active or self.started_at is None:
            raise NotTracking("snapshot")
        return TrackingSnapshot(
            started_at=self.started_at,
            samples=self.samples,
            annotations=self.annotations,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.is_active:
            raise AlreadyTracking()
        self._acquire()
        self._begin(self.clock(), [], [])
        log.info("Tracking started at %s", self.started_at.isoformat())
        self._save_snapshot()

    def resume(self, snapshot: TrackingSnapshot) -> None:
        """Continue a recording interrupted by a crash or restart."""
        if self.is_active:
            raise AlreadyTracking()
        self._acquire()
        self._begin(snapshot.started_at, snapshot.samples, snapshot.annotations)
        log.info(
            "Tracking resumed (%d samples, %.3f km)",
            len(self._samples), self._distance_km,
        )
        self._save_snapshot()

    def append_sample(self, point: GeoPoint) -> None:
        if not self.is_active:
            raise NotTracking("append sample")
        if self._samples:
            self._distance_km += haversine_km(self._samples[-1], point)
        self._samples.append(point)
        self._save_snapshot()

    def append_annotation(self, point: GeoPoint) -> None:
        if not self.is_active:
            raise NotTracking("add annotation")
        self._annotations.append(point)
        self._save_snapshot()

    def annotate_current(
        self,
        note: Optional[str] = None,
        photo_reference: Optional[str] = None,
    ) -> GeoPoint:
        """Pin a note/photo to the provider's current position."""
        if not self.is_active:
            raise NotTracking("add annotation")
        current = self.provider.get_current_point()
        if current is None:
            raise LocationUnavailable("No current location fix")
        point = GeoPoint.capture(
            current.latitude,
            current.longitude,
            note=note,
            photo_reference=photo_reference,
            at=current.timestamp,
        )
        self.append_annotation(point)
        return point

    def stop(self) -> Route:
        """Finish the recording and hand back the route.

        Saving the route is the caller's job. The crash-recovery snapshot
        stays until the caller confirms with ``discard_snapshot()``, so a
        failed or interrupted save never loses the captured data.
        """
        if not self.is_active:
            raise NotTracking("stop")
        now = self.clock()
        elapsed = (now - self.started_at).total_seconds()
        route = Route(
            id=new_id(),
            created_at=now,
            date_label=date_string(now),
            duration_label=format_duration(elapsed),
            duration_seconds=max(0.0, elapsed),
            distance_km=self._distance_km,
            point_count=len(self._annotations),
            sample_count=len(self._samples),
            coordinates=self._samples + self._annotations,
        )
        self._release()
        self._reset()
        log.info(
            "Tracking stopped: %s, %s, %d points",
            route.duration_label, route.distance_label, route.point_count,
        )
        return route

    def discard_snapshot(self) -> None:
        """Forget the recovery snapshot once the stopped route is stored."""
        if self.is_active:
            raise AlreadyTracking()
        self._clear_snapshot()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _acquire(self) -> None:
        if not self.provider.request_capability():
            log.warning("Location capability denied, session stays idle")
            raise CapabilityDenied("Location permission is required to track a route")
        self._subscription = self.provider.subscribe(self.append_sample)

    def _release(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _begin(
        self,
        started_at: datetime,
        samples: List[GeoPoint],
        annotations: List[GeoPoint],
    ) -> None:
        self.state = SessionState.ACTIVE
        self.started_at = started_at
        self._samples = list(samples)
        self._annotations = list(annotations)
        self._distance_km = route_distance_km(self._samples)

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.started_at = None
        self._samples = []
        self._annotations = []
        self._distance_km = 0.0

    def _save_snapshot(self) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save_current_tracking(self.snapshot())
        except PersistenceFailure as exc:
            log.warning("Could not save tracking snapshot: %s", exc)

    def _clear_snapshot(self) -> None:
        if self.repository is None:
            return
        try:
            self.repository.clear_current_tracking()
        except PersistenceFailure as exc:
            log.warning("Could not clear tracking snapshot: %s", exc)
