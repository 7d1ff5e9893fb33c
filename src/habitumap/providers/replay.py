from __future__ import annotations

from typing import Iterable, List, Optional

from habitumap.core.models import GeoPoint
from habitumap.providers.base import LocationProvider


class ReplayLocationProvider(LocationProvider):
    """
    Plays a recorded track to subscribers so a session can be driven
    end-to-end without a device (CLI replays, tests).
    """

    def __init__(self, points: Iterable[GeoPoint], granted: bool = True) -> None:
        super().__init__()
        self.points: List[GeoPoint] = list(points)
        self.granted = granted
        self._played = 0

    def request_capability(self) -> bool:
        return self.granted

    def get_current_point(self) -> Optional[GeoPoint]:
        if self._played:
            return self.points[self._played - 1]
        return self.points[0] if self.points else None

    @property
    def remaining(self) -> int:
        return len(self.points) - self._played

    def replay(self, count: Optional[int] = None) -> int:
        """Emit the next *count* points (all remaining by default)."""
        n = self.remaining if count is None else min(count, self.remaining)
        for _ in range(n):
            point = self.points[self._played]
            self._played += 1
            self._emit(point)
        return n
