"""Great-circle distance over recorded point sequences.

Every consecutive pair contributes, GPS jumps included; stored route
distances were produced this way and must stay reproducible.
"""
from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Sequence

from habitumap.core.models import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance in kilometres between two points."""
    lat1r = radians(p1.latitude)
    lat2r = radians(p2.latitude)
    dlat = radians(p2.latitude - p1.latitude)
    dlon = radians(p2.longitude - p1.longitude)
    a = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(a), sqrt(1 - a))


def route_distance_km(points: Sequence[GeoPoint]) -> float:
    """Sum of consecutive haversine distances; 0 for fewer than two points."""
    total = 0.0
    for i in range(len(points) - 1):
        total += haversine_km(points[i], points[i + 1])
    return total
