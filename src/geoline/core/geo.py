"""
Geodesic helpers on a spherical Earth.

We keep a tiny geometry layer here so the line engine can solve the inverse
problem (distance + bearing between two points) and the direct problem
(destination from origin, distance and bearing) without pulling in heavier GIS
dependencies.

All functions are pure and total for finite input. They assume valid
coordinates; clamping happens at the engine boundary (`clamp_coordinate`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from math import asin, atan2, cos, degrees, radians, sin, sqrt

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class Bounds:
    """A rectangular viewport in decimal degrees."""

    north: float
    south: float
    east: float
    west: float

    def contains(self, point: Coordinate) -> bool:
        if not (self.south <= point.lat <= self.north):
            return False
        if self.west <= self.east:
            return self.west <= point.lng <= self.east
        # Viewport crosses the antimeridian.
        return point.lng >= self.west or point.lng <= self.east


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlng = radians(b.lng - a.lng)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * atan2(sqrt(h), sqrt(1 - h))


def initial_bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial forward azimuth from `a` to `b` in degrees (0=N, 90=E).

    Coincident points have no direction; we return 0.0 so callers never see NaN.
    """
    if a == b:
        return 0.0
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlng = radians(b.lng - a.lng)

    y = sin(dlng) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlng)
    return normalize_bearing(degrees(atan2(y, x)))


def destination_point(origin: Coordinate, distance_m: float, bearing_deg: float) -> Coordinate:
    """Solve the direct problem: travel `distance_m` from `origin` along `bearing_deg`.

    The returned longitude is normalized into [-180, 180].
    """
    lat1 = radians(origin.lat)
    lng1 = radians(origin.lng)
    theta = radians(bearing_deg)
    delta = distance_m / EARTH_RADIUS_M

    sin_lat2 = sin(lat1) * cos(delta) + cos(lat1) * sin(delta) * cos(theta)
    lat2 = asin(min(1.0, max(-1.0, sin_lat2)))
    lng2 = lng1 + atan2(
        sin(theta) * sin(delta) * cos(lat1),
        cos(delta) - sin(lat1) * sin(lat2),
    )
    return Coordinate(lat=degrees(lat2), lng=normalize_lng(degrees(lng2)))


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    """Arithmetic midpoint of two coordinates (good enough as a visual anchor)."""
    return Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)


def normalize_bearing(deg: float) -> float:
    """Wrap a bearing into [0, 360). Non-finite input maps to 0.0."""
    if not math.isfinite(deg):
        return 0.0
    out = deg % 360.0
    # `-1e-15 % 360` rounds to 360.0 in floating point.
    return 0.0 if out >= 360.0 else out


def normalize_lng(deg: float) -> float:
    """Wrap a longitude into [-180, 180]."""
    if -180.0 <= deg <= 180.0:
        return deg
    return ((deg + 540.0) % 360.0) - 180.0


def is_valid_coordinate(point: Coordinate) -> bool:
    lat, lng = point.lat, point.lng
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(low, min(high, float(value)))


def clamp_coordinate(point: Coordinate) -> Coordinate:
    """Clamp a coordinate into the valid lat/lng range (NaN axes become 0)."""
    return Coordinate(lat=_clamp(point.lat, -90.0, 90.0), lng=_clamp(point.lng, -180.0, 180.0))
