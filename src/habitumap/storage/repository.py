"""JSON persistence of habits, route history, session snapshot and reset cursor."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from habitumap.core.models import Habit, Route, TrackingSnapshot
from habitumap.errors import PersistenceFailure, RouteNotFound
from habitumap.storage import keys
from habitumap.storage.kv import KeyValueStore

log = logging.getLogger(__name__)

_habits_adapter = TypeAdapter(List[Habit])
_routes_adapter = TypeAdapter(List[Route])


class StorageInfo(BaseModel):
    habits_count: int
    routes_count: int
    has_tracking: bool


class LocalRepository:
    """
    Typed access to the key-value store.

    Every read/write failure surfaces as ``PersistenceFailure`` so callers
    can decide whether to retry (route save) or hold back (reset cursor).
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ── helpers ──────────────────────────────────────────────────────────

    def _load(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            log.error("Corrupt value under %s: %s", key, exc)
            raise PersistenceFailure(f"Corrupt value under {key}") from exc

    def _dump(self, key: str, adapter: TypeAdapter, value: Any) -> None:
        self.store.set(key, adapter.dump_json(value).decode("utf-8"))

    # ── habits ───────────────────────────────────────────────────────────

    def get_habits(self) -> List[Habit]:
        return self._load(keys.habits(), _habits_adapter, [])

    def save_habits(self, habits: List[Habit]) -> None:
        self._dump(keys.habits(), _habits_adapter, habits)

    # ── routes ───────────────────────────────────────────────────────────

    def get_routes(self) -> List[Route]:
        """Route history, newest first."""
        return self._load(keys.routes(), _routes_adapter, [])

    def save_routes(self, routes: List[Route]) -> None:
        self._dump(keys.routes(), _routes_adapter, routes)

    def add_route(self, route: Route) -> None:
        routes = self.get_routes()
        routes.insert(0, route)
        self.save_routes(routes)
        log.info("Route %s saved (%.2f km, %d points)", route.id, route.distance_km, route.point_count)

    def get_route(self, route_id: str) -> Route:
        for route in self.get_routes():
            if route.id == route_id:
                return route
        raise RouteNotFound(route_id)

    def delete_route(self, route_id: str) -> None:
        routes = self.get_routes()
        kept = [r for r in routes if r.id != route_id]
        if len(kept) == len(routes):
            raise RouteNotFound(route_id)
        self.save_routes(kept)

    # ── current tracking ─────────────────────────────────────────────────

    def save_current_tracking(self, snapshot: TrackingSnapshot) -> None:
        self.store.set(keys.current_tracking(), snapshot.model_dump_json())

    def get_current_tracking(self) -> Optional[TrackingSnapshot]:
        raw = self.store.get(keys.current_tracking())
        if raw is None:
            return None
        try:
            return TrackingSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            raise PersistenceFailure("Corrupt tracking snapshot") from exc

    def clear_current_tracking(self) -> None:
        self.store.remove(keys.current_tracking())

    # ── reset cursor ─────────────────────────────────────────────────────

    def get_last_reset_date(self) -> Optional[str]:
        return self.store.get(keys.last_reset_date())

    def set_last_reset_date(self, date_str: str) -> None:
        self.store.set(keys.last_reset_date(), date_str)

    # ── utilities ────────────────────────────────────────────────────────

    def clear_all(self) -> None:
        self.store.remove_all(keys.all_keys())

    def storage_info(self) -> StorageInfo:
        return StorageInfo(
            habits_count=len(self.get_habits()),
            routes_count=len(self.get_routes()),
            has_tracking=self.store.get(keys.current_tracking()) is not None,
        )


def get_repository() -> LocalRepository:
    from habitumap.storage.kv import get_store

    return LocalRepository(get_store())
