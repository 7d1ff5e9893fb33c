from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from habitumap.core.models import GeoPoint
from habitumap.errors import PersistenceFailure
from habitumap.storage.kv import MemoryStore
from habitumap.storage.repository import LocalRepository

JAKARTA = timezone(timedelta(hours=7))


class FakeClock:
    """Settable clock; ``advance`` moves it forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FlakyStore(MemoryStore):
    """Memory store whose writes (and optionally reads) can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False
        self.fail_keys: Optional[set] = None

    def _should_fail(self, key: str) -> bool:
        return self.fail_keys is None or key in self.fail_keys

    def get(self, key):
        if self.fail_reads and self._should_fail(key):
            raise PersistenceFailure("read failed")
        return super().get(key)

    def set(self, key, value):
        if self.fail_writes and self._should_fail(key):
            raise PersistenceFailure("write failed")
        super().set(key, value)


def make_point(lat: float, lon: float, **kwargs) -> GeoPoint:
    return GeoPoint.capture(lat, lon, **kwargs)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def repo(store):
    return LocalRepository(store)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 8, 0, 0, tzinfo=JAKARTA))


def make_route(route_id: str, km: float = 1.0, **kwargs):
    from habitumap.core.models import Route

    return Route(
        id=route_id,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        date_label="2024-01-01",
        duration_label="0h 10m",
        distance_km=km,
        **kwargs,
    )
