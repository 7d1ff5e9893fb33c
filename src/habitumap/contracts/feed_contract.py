# Row shapes exchanged with the shared-route tables of the remote backend.

from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PolylineVertex:
    lat: float
    lng: float


@dataclass(frozen=True)
class SharedRouteRow:
    user_id: str
    title: str
    description: Optional[str]
    sport_type: str         # "running" / "cycling" / "walking"
    distance: float         # km
    duration: str           # "{h}h {m}m"
    safety_rating: str      # "safe" / "moderate" / "unsafe"
    polyline: List[PolylineVertex]

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LocationPointRow:
    route_id: str
    latitude: float
    longitude: float
    photo_url: Optional[str] = None
    note: Optional[str] = None
    is_warning: bool = False

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)
