"""Provider fed by a client that pushes its own GPS fixes (the mobile app)."""
from __future__ import annotations

import logging
from typing import Optional

from habitumap.core.distance import haversine_km
from habitumap.core.models import GeoPoint
from habitumap.providers.base import LocationProvider

log = logging.getLogger(__name__)


class PushLocationProvider(LocationProvider):
    """
    Delivers client-pushed points to subscribers, throttled the way the
    device location API throttles its callbacks: a point is dropped only
    when it is both sooner than ``min_interval_s`` and closer than
    ``min_distance_m`` to the last delivered point.
    """

    def __init__(
        self,
        min_interval_s: float = 0.0,
        min_distance_m: float = 0.0,
        granted: bool = True,
    ) -> None:
        super().__init__()
        self.min_interval_s = min_interval_s
        self.min_distance_m = min_distance_m
        self.granted = granted
        self._last: Optional[GeoPoint] = None
        self._last_delivered: Optional[GeoPoint] = None

    def request_capability(self) -> bool:
        return self.granted

    def get_current_point(self) -> Optional[GeoPoint]:
        return self._last

    def _throttled(self, point: GeoPoint) -> bool:
        prev = self._last_delivered
        if prev is None:
            return False
        too_soon = (point.timestamp - prev.timestamp).total_seconds() < self.min_interval_s
        too_close = haversine_km(prev, point) * 1000.0 < self.min_distance_m
        return too_soon and too_close

    def deliver(self, point: GeoPoint) -> bool:
        """Record *point* as the current fix and hand it to subscribers.

        Returns False when throttling dropped the point.
        """
        self._last = point
        if self._throttled(point):
            log.debug("Dropped throttled point %s", point.id)
            return False
        self._last_delivered = point
        self._emit(point)
        return True

    def unsubscribe(self, subscription) -> None:
        super().unsubscribe(subscription)
        if not self._subscriptions:
            self._last_delivered = None
