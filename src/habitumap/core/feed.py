"""Shared-route feed: building backend rows from a recorded route and
turning fetched rows back into map coordinates."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from habitumap.contracts.feed_contract import LocationPointRow, PolylineVertex, SharedRouteRow
from habitumap.core.models import GeoPoint, Route, new_id
from habitumap.errors import RouteTooShort

MIN_SHARED_SAMPLES = 2


class PublishRequest(BaseModel):
    title: str = Field(..., max_length=120)
    description: Optional[str] = None
    sport_type: Literal["running", "cycling", "walking"] = "running"
    safety_rating: Literal["safe", "moderate", "unsafe"] = "safe"

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


def build_route_row(route: Route, req: PublishRequest, user_id: str) -> SharedRouteRow:
    path = route.path_points
    if len(path) < MIN_SHARED_SAMPLES:
        raise RouteTooShort(
            f"Route has {len(path)} GPS samples, at least {MIN_SHARED_SAMPLES} are needed"
        )
    return SharedRouteRow(
        user_id=user_id,
        title=req.title,
        description=req.description,
        sport_type=req.sport_type,
        distance=route.distance_km,
        duration=route.duration_label,
        safety_rating=req.safety_rating,
        polyline=[PolylineVertex(lat=p.latitude, lng=p.longitude) for p in path],
    )


def build_point_rows(route: Route, route_id: str, is_warning: bool = False) -> List[LocationPointRow]:
    """One row per annotated point; the photo reference is stored as its URL."""
    return [
        LocationPointRow(
            route_id=route_id,
            latitude=p.latitude,
            longitude=p.longitude,
            photo_url=p.photo_reference,
            note=p.note,
            is_warning=is_warning,
        )
        for p in route.note_points
    ]


def _parse_ts(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return fallback
    return fallback


def assemble_coordinates(row: Dict[str, Any]) -> List[GeoPoint]:
    """Polyline vertices first, then the stored location points."""
    created = _parse_ts(row.get("created_at"), datetime.now(timezone.utc))
    coords: List[GeoPoint] = [
        GeoPoint(id=new_id(), latitude=v["lat"], longitude=v["lng"], timestamp=created)
        for v in (row.get("polyline") or [])
    ]
    for p in row.get("location_points") or []:
        coords.append(
            GeoPoint(
                id=str(p.get("id") or new_id()),
                latitude=p["latitude"],
                longitude=p["longitude"],
                timestamp=_parse_ts(p.get("created_at"), created),
                note=p.get("note"),
                photo_reference=p.get("photo_url"),
            )
        )
    return coords


def flatten_profile(row: Dict[str, Any]) -> Dict[str, Any]:
    """A joined ``profiles`` relation may come back as a one-element list."""
    profiles = row.get("profiles")
    if isinstance(profiles, list):
        row = {**row, "profiles": profiles[0] if profiles else None}
    return row
