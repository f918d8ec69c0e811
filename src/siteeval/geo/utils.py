"""Geospatial helper functions.

All functions are pure and work on WGS84 degrees. Distances use a
spherical-Earth approximation, which is accurate to well under a percent at
parcel and city scale.
"""

from __future__ import annotations

import math
from typing import Sequence

from pydantic import BaseModel

EARTH_RADIUS_M = 6_371_000.0

# Metres per degree of latitude on the sphere above.
_METRES_PER_DEGREE = math.pi * EARTH_RADIUS_M / 180.0

# Approximate New Zealand bounding box (mainland and near islands).
NZ_MIN_LAT = -47.5
NZ_MAX_LAT = -34.0
NZ_MIN_LON = 166.0
NZ_MAX_LON = 179.0


class Coordinate(BaseModel):
    """A latitude/longitude pair in degrees."""

    latitude: float = 0.0
    longitude: float = 0.0


class BoundingBox(BaseModel):
    """Axis-aligned lat/lon rectangle.

    A box that crosses the antimeridian has ``min_lon > max_lon``.
    """

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_lon > self.max_lon

    def contains(self, lat: float, lon: float) -> bool:
        if not self.min_lat <= lat <= self.max_lat:
            return False
        if self.crosses_antimeridian:
            return lon >= self.min_lon or lon <= self.max_lon
        return self.min_lon <= lon <= self.max_lon


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points using the haversine formula."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def bounding_box(lat: float, lon: float, radius_m: float) -> BoundingBox:
    """Return a rectangle guaranteed to contain the circle of ``radius_m``.

    Used as a cheap pre-filter before exact distance checks. The longitude
    span is computed at the pole-most edge of the box, where a degree of
    longitude is shortest, so the box may over-include but never clips the
    circle. Near the poles the box widens to the full longitude range; a box
    crossing the antimeridian wraps, leaving ``min_lon > max_lon``.
    """
    lat_delta = radius_m / _METRES_PER_DEGREE
    min_lat = max(-90.0, lat - lat_delta)
    max_lat = min(90.0, lat + lat_delta)

    widest_lat = max(abs(min_lat), abs(max_lat))
    cos_lat = math.cos(math.radians(widest_lat))
    if cos_lat <= 1e-12:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=-180.0, max_lon=180.0)

    lon_delta = radius_m / (_METRES_PER_DEGREE * cos_lat)
    if lon_delta >= 180.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=-180.0, max_lon=180.0)

    min_lon = lon - lon_delta
    max_lon = lon + lon_delta
    # Wrap across the antimeridian
    if min_lon < -180.0:
        min_lon += 360.0
    if max_lon > 180.0:
        max_lon -= 360.0
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)


def centroid(points: Sequence[Coordinate]) -> Coordinate:
    """Arithmetic mean of the points; the zero coordinate for an empty sequence."""
    if not points:
        return Coordinate()
    lat = sum(p.latitude for p in points) / len(points)
    lon = sum(p.longitude for p in points) / len(points)
    return Coordinate(latitude=lat, longitude=lon)


def polygon_area_m2(points: Sequence[Coordinate]) -> float:
    """Area of a small polygon in square metres (shoelace on a local plane).

    Points are projected to metres around the polygon's centroid. Precision
    degrades for polygons more than a few kilometres across.
    """
    if len(points) < 3:
        return 0.0

    origin = centroid(points)
    cos_origin = math.cos(math.radians(origin.latitude))
    xy = [
        (
            (p.longitude - origin.longitude) * _METRES_PER_DEGREE * cos_origin,
            (p.latitude - origin.latitude) * _METRES_PER_DEGREE,
        )
        for p in points
    ]

    area = 0.0
    j = len(xy) - 1
    for i in range(len(xy)):
        area += (xy[j][0] + xy[i][0]) * (xy[j][1] - xy[i][1])
        j = i
    return abs(area / 2)


def is_within_radius(
    center_lat: float,
    center_lon: float,
    lat: float,
    lon: float,
    radius_m: float,
) -> bool:
    return distance_meters(center_lat, center_lon, lat, lon) <= radius_m


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def is_in_country_bounds(lat: float, lon: float) -> bool:
    """True if the point falls inside the approximate New Zealand box."""
    return NZ_MIN_LAT <= lat <= NZ_MAX_LAT and NZ_MIN_LON <= lon <= NZ_MAX_LON


def format_coordinates(lat: float, lon: float, decimals: int = 6) -> str:
    return f"{lat:.{decimals}f}, {lon:.{decimals}f}"


def parse_coordinates(text: str) -> Coordinate | None:
    """Parse ``"lat, lon"`` into a Coordinate, or None if malformed."""
    if not text or not text.strip():
        return None
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        return None
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    return Coordinate(latitude=lat, longitude=lon)
