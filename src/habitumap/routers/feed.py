"""Shared-route feed: publish, list, detail, likes and comments."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator

from habitumap.auth import get_current_user, get_optional_user
from habitumap.config import settings
from habitumap.core.feed import (
    PublishRequest,
    assemble_coordinates,
    build_point_rows,
    build_route_row,
    flatten_profile,
)
from habitumap.db import get_supabase
from habitumap.deps import get_repository
from habitumap.storage.repository import LocalRepository

log = logging.getLogger(__name__)

router = APIRouter(prefix="/feed", tags=["feed"])

_FEED_SELECT = """
    *,
    profiles!routes_user_id_fkey (username, avatar_url),
    location_points (photo_url)
"""

_DETAIL_SELECT = """
    *,
    profiles!routes_user_id_fkey (username, avatar_url),
    location_points (*)
"""

_EXPLORE_SELECT = """
    id,
    title,
    sport_type,
    distance,
    polyline,
    profiles!routes_user_id_fkey (username)
"""


class PublishIn(PublishRequest):
    route_id: str  # local history id


class CommentIn(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment must not be empty")
        return v


class LikeOut(BaseModel):
    route_id: str
    liked: bool


def _db():
    sb = get_supabase()
    if sb is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return sb


@router.get("", response_model=List[Dict[str, Any]])
def list_feed(limit: Optional[int] = Query(default=None, ge=1, le=100)):
    sb = _db()
    resp = (
        sb.table("routes")
        .select(_FEED_SELECT)
        .order("created_at", desc=True)
        .limit(limit or settings.feed_limit)
        .execute()
    )
    return [flatten_profile(r) for r in resp.data or []]


@router.get("/explore", response_model=List[Dict[str, Any]])
def explore():
    """Lightweight listing for the map view; drops routes whose author is gone."""
    sb = _db()
    resp = (
        sb.table("routes")
        .select(_EXPLORE_SELECT)
        .order("created_at", desc=True)
        .limit(settings.explore_limit)
        .execute()
    )
    rows = [flatten_profile(r) for r in resp.data or []]
    return [r for r in rows if r.get("profiles")]


@router.post("", status_code=201)
def publish_route(
    body: PublishIn,
    user_id: str = Depends(get_current_user),
    repo: LocalRepository = Depends(get_repository),
):
    route = repo.get_route(body.route_id)
    row = build_route_row(route, body, user_id)

    sb = _db()
    resp = sb.table("routes").insert(row.to_row()).execute()
    if not resp.data:
        raise HTTPException(status_code=500, detail="Failed to publish route")
    shared = resp.data[0]

    point_rows = build_point_rows(route, shared["id"], is_warning=body.safety_rating == "unsafe")
    if point_rows:
        sb.table("location_points").insert([p.to_row() for p in point_rows]).execute()
    log.info("Route %s published as %s (%d notes)", route.id, shared["id"], len(point_rows))
    return shared


@router.get("/{route_id}")
def route_detail(route_id: str, user_id: Optional[str] = Depends(get_optional_user)):
    sb = _db()
    resp = (
        sb.table("routes")
        .select(_DETAIL_SELECT)
        .eq("id", route_id)
        .limit(1)
        .execute()
    )
    if not resp.data:
        raise HTTPException(status_code=404, detail="Route not found")
    row = flatten_profile(resp.data[0])
    coords = assemble_coordinates(row)
    liked = False
    if user_id:
        liked = bool(
            sb.table("route_likes")
            .select("route_id")
            .eq("route_id", route_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
            .data
        )
    return {
        **row,
        "coordinates": [c.model_dump(mode="json") for c in coords],
        "liked_by_me": liked,
    }


@router.delete("/{route_id}", status_code=204)
def delete_shared_route(route_id: str, user_id: str = Depends(get_current_user)):
    sb = _db()
    resp = (
        sb.table("routes")
        .delete()
        .eq("id", route_id)
        .eq("user_id", user_id)
        .execute()
    )
    if not resp.data:
        raise HTTPException(status_code=404, detail="Route not found or not yours")
    return None


@router.post("/{route_id}/like", response_model=LikeOut)
def toggle_like(route_id: str, user_id: str = Depends(get_current_user)):
    sb = _db()
    existing = (
        sb.table("route_likes")
        .select("*")
        .eq("route_id", route_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    if existing.data:
        sb.table("route_likes").delete().eq("route_id", route_id).eq("user_id", user_id).execute()
        return LikeOut(route_id=route_id, liked=False)
    sb.table("route_likes").insert({"route_id": route_id, "user_id": user_id}).execute()
    return LikeOut(route_id=route_id, liked=True)


@router.get("/{route_id}/comments", response_model=List[Dict[str, Any]])
def list_comments(route_id: str):
    sb = _db()
    resp = (
        sb.table("comments")
        .select("*, profiles (username, avatar_url)")
        .eq("route_id", route_id)
        .order("created_at", desc=True)
        .execute()
    )
    return resp.data or []


@router.post("/{route_id}/comments", status_code=201)
def add_comment(
    route_id: str,
    body: CommentIn,
    user_id: str = Depends(get_current_user),
):
    sb = _db()
    resp = (
        sb.table("comments")
        .insert({"route_id": route_id, "user_id": user_id, "text": body.text})
        .execute()
    )
    if not resp.data:
        raise HTTPException(status_code=500, detail="Failed to add comment")
    return resp.data[0]
