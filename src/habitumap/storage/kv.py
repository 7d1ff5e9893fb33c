"""Key-value stores behind the local repository.

Unlike a cache, losing a write here loses user data, so store errors are
raised as ``PersistenceFailure`` instead of being swallowed.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from habitumap.errors import PersistenceFailure

log = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError

    def remove_all(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.remove(key)


class MemoryStore(KeyValueStore):
    """Process-local store; used when Redis is not configured and in tests."""

    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class RedisStore(KeyValueStore):
    def __init__(self, client) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        import redis

        client = redis.Redis.from_url(url, decode_responses=True, socket_connect_timeout=3)
        return cls(client)

    def ping(self) -> None:
        self._call("ping")

    def get(self, key: str) -> Optional[str]:
        return self._call("get", key)

    def set(self, key: str, value: str) -> None:
        self._call("set", key, value)

    def remove(self, key: str) -> None:
        self._call("delete", key)

    def remove_all(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if keys:
            self._call("delete", *keys)

    def _call(self, op: str, *args):
        import redis

        try:
            return getattr(self.client, op)(*args)
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Redis {op} failed: {exc}") from exc


_store: Optional[KeyValueStore] = None


def get_store() -> KeyValueStore:
    """Lazy singleton.  Redis when configured and reachable, else in-memory."""
    global _store
    if _store is not None:
        return _store

    from habitumap.config import settings

    if settings.redis_url:
        try:
            store = RedisStore.from_url(settings.redis_url)
            store.ping()
            log.info("Redis connected: %s", settings.redis_url)
            _store = store
            return _store
        except PersistenceFailure as exc:
            log.warning("Redis unavailable (%s), data will not survive a restart", exc)
    else:
        log.info("No HABITUMAP_REDIS_URL set, using in-memory store")
    _store = MemoryStore()
    return _store


def set_store(store: Optional[KeyValueStore]) -> None:
    """Replace (or with ``None`` reset) the process-wide store."""
    global _store
    _store = store
