from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from habitumap.core.models import GeoPoint

PointCallback = Callable[[GeoPoint], None]


class Subscription:
    """Handle for one location subscription; release it with ``close()``."""

    def __init__(self, provider: "LocationProvider", callback: PointCallback) -> None:
        self.provider = provider
        self.callback = callback
        self.active = True

    def close(self) -> None:
        if self.active:
            self.provider.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class LocationProvider(ABC):
    """Source of GPS samples for a tracking session."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    @abstractmethod
    def request_capability(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_current_point(self) -> Optional[GeoPoint]:
        raise NotImplementedError

    def subscribe(self, on_point: PointCallback) -> Subscription:
        sub = Subscription(self, on_point)
        self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _emit(self, point: GeoPoint) -> None:
        # Copy: a callback may unsubscribe while we iterate
        for sub in list(self._subscriptions):
            if sub.active:
                sub.callback(point)
