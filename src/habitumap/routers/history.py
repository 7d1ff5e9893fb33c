"""Local route history."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from habitumap.core.models import Route
from habitumap.core.session import TrackingSession
from habitumap.core.stats import HistorySummary, history_summary
from habitumap.deps import get_repository, get_session
from habitumap.storage.repository import LocalRepository

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=List[Route])
def list_history(repo: LocalRepository = Depends(get_repository)):
    return repo.get_routes()


@router.get("/summary", response_model=HistorySummary)
def summary(repo: LocalRepository = Depends(get_repository)):
    return history_summary(repo.get_routes())


@router.post("", response_model=Route, status_code=201)
def save_route(
    route: Route,
    repo: LocalRepository = Depends(get_repository),
    session: TrackingSession = Depends(get_session),
):
    """Store a route whose save failed when tracking stopped."""
    repo.add_route(route)
    # Idle means the leftover snapshot belongs to the route just stored
    if not session.is_active:
        session.discard_snapshot()
    return route


@router.get("/{route_id}", response_model=Route)
def get_route(route_id: str, repo: LocalRepository = Depends(get_repository)):
    return repo.get_route(route_id)


@router.delete("/{route_id}", status_code=204)
def delete_route(route_id: str, repo: LocalRepository = Depends(get_repository)):
    repo.delete_route(route_id)
    return None
