"""Geofence validation.

Uses the haversine formula to measure the distance between two points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

EARTH_RADIUS_M = 6371000


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    provider: Optional[str] = None  # gps | network | manual


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great circle distance between two points, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


@dataclass(frozen=True)
class Geofence:
    """Circle of ``radius_m`` meters around the office reference point."""

    latitude: float
    longitude: float
    radius_m: float

    def distance_to(self, point: GeoPoint) -> float:
        return haversine_distance(point.latitude, point.longitude, self.latitude, self.longitude)

    def contains(self, point: GeoPoint) -> bool:
        return self.distance_to(point) <= self.radius_m
