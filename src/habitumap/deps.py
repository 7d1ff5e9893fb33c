"""Process-wide singletons handed to the routers through ``Depends``.

One running app instance owns exactly one tracking session.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Depends

from habitumap.config import settings
from habitumap.core.habits import HabitService
from habitumap.core.reset import DailyResetScheduler
from habitumap.core.session import TrackingSession
from habitumap.errors import CapabilityDenied, PersistenceFailure
from habitumap.providers.push import PushLocationProvider
from habitumap.storage.repository import LocalRepository
from habitumap.storage.repository import get_repository as _get_repository

log = logging.getLogger(__name__)

_singletons: Dict[str, Any] = {}


def get_repository() -> LocalRepository:
    return _get_repository()


def get_provider() -> PushLocationProvider:
    if "provider" not in _singletons:
        _singletons["provider"] = PushLocationProvider(
            min_interval_s=settings.location_time_interval_s,
            min_distance_m=settings.location_distance_interval_m,
        )
    return _singletons["provider"]


def get_session(
    repo: LocalRepository = Depends(get_repository),
    provider: PushLocationProvider = Depends(get_provider),
) -> TrackingSession:
    if "session" not in _singletons:
        session = TrackingSession(provider, repository=repo)
        _resume_interrupted(session, repo)
        _singletons["session"] = session
    return _singletons["session"]


def _resume_interrupted(session: TrackingSession, repo: LocalRepository) -> None:
    try:
        snapshot = repo.get_current_tracking()
    except PersistenceFailure as exc:
        log.warning("Could not read tracking snapshot: %s", exc)
        return
    if snapshot is None:
        return
    try:
        session.resume(snapshot)
    except CapabilityDenied:
        log.warning("Interrupted recording found but location is unavailable")


def get_habit_service(repo: LocalRepository = Depends(get_repository)) -> HabitService:
    return HabitService(repo)


def get_scheduler(
    repo: LocalRepository = Depends(get_repository),
    habits: HabitService = Depends(get_habit_service),
) -> DailyResetScheduler:
    return DailyResetScheduler(repo, habits)


def reset_singletons() -> None:
    _singletons.clear()
