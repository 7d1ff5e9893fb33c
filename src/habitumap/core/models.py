from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def new_id() -> str:
    return uuid.uuid4().hex


class GeoPoint(BaseModel):
    """A timestamped latitude/longitude sample.

    Points are immutable once captured; a session only ever appends them,
    and history only ever drops whole routes.
    """

    model_config = {"frozen": True}

    id: str
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    timestamp: datetime

    # Annotation payload (only on points added through "add note")
    note: Optional[str] = None
    photo_reference: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_local_zone(cls, v: datetime) -> datetime:
        # Naive fixes are device wall-clock time
        return v if v.tzinfo is not None else v.astimezone()

    @classmethod
    def capture(
        cls,
        latitude: float,
        longitude: float,
        note: Optional[str] = None,
        photo_reference: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> "GeoPoint":
        return cls(
            id=new_id(),
            latitude=latitude,
            longitude=longitude,
            timestamp=at or datetime.now(timezone.utc),
            note=note,
            photo_reference=photo_reference,
        )

    @property
    def is_annotation(self) -> bool:
        return bool(self.note) or bool(self.photo_reference)


class Route(BaseModel):
    """A finished recording. Immutable history: delete whole, never edit."""

    model_config = {"frozen": True}

    id: str
    created_at: datetime
    date_label: str                # local YYYY-MM-DD of the stop
    duration_label: str            # "{h}h {m}m"
    duration_seconds: float = 0.0
    distance_km: float = 0.0
    point_count: int = 0           # annotated points only
    sample_count: int = 0
    coordinates: List[GeoPoint] = Field(default_factory=list)  # samples, then annotations

    @property
    def distance_label(self) -> str:
        return f"{self.distance_km:.2f} km"

    @property
    def path_points(self) -> List[GeoPoint]:
        return list(self.coordinates[: self.sample_count])

    @property
    def note_points(self) -> List[GeoPoint]:
        return list(self.coordinates[self.sample_count :])


class TrackingSnapshot(BaseModel):
    """Serialized image of an active session, kept for crash/restart recovery."""

    started_at: datetime
    samples: List[GeoPoint] = Field(default_factory=list)
    annotations: List[GeoPoint] = Field(default_factory=list)


class Habit(BaseModel):
    id: int
    name: str
    completed: bool = False
    streak: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("habit name must not be blank")
        return v


class ResetCountdown(BaseModel):
    hours: int
    minutes: int
    seconds: int

    @property
    def label(self) -> str:
        return f"{self.hours}h {self.minutes}m {self.seconds}s"
