"""Geo utilities — great-circle math on a spherical earth.

All functions take and return degrees; distances are kilometres.
Reference: https://www.movable-type.co.uk/scripts/latlong.html
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from airwar.util.constants import EARTH_RADIUS_KM

if TYPE_CHECKING:
    from airwar.util.rng import DeterministicRNG


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in degrees."""

    lat: float
    lon: float


def great_circle_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points in km."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def intermediate_point(
    lat1: float, lon1: float, lat2: float, lon2: float, fraction: float
) -> GeoPoint:
    """Point at ``fraction`` (0..1) of the way along the great circle."""
    d = great_circle_distance(lat1, lon1, lat2, lon2) / EARTH_RADIUS_KM
    if d == 0.0:
        return GeoPoint(lat1, lon1)

    phi1, lambda1 = math.radians(lat1), math.radians(lon1)
    phi2, lambda2 = math.radians(lat2), math.radians(lon2)

    a = math.sin((1 - fraction) * d) / math.sin(d)
    b = math.sin(fraction * d) / math.sin(d)

    x = a * math.cos(phi1) * math.cos(lambda1) + b * math.cos(phi2) * math.cos(lambda2)
    y = a * math.cos(phi1) * math.sin(lambda1) + b * math.cos(phi2) * math.sin(lambda2)
    z = a * math.sin(phi1) + b * math.sin(phi2)

    phi = math.atan2(z, math.sqrt(x * x + y * y))
    lam = math.atan2(y, x)
    return GeoPoint(math.degrees(phi), math.degrees(lam))


def sample_great_circle_path(
    lat1: float, lon1: float, lat2: float, lon2: float, num_points: int = 50
) -> list[GeoPoint]:
    """Return ``num_points + 1`` evenly spaced points from start to end (inclusive)."""
    return [
        intermediate_point(lat1, lon1, lat2, lon2, i / num_points)
        for i in range(num_points + 1)
    ]


def is_path_within_range(
    path_lat1: float,
    path_lon1: float,
    path_lat2: float,
    path_lon2: float,
    point_lat: float,
    point_lon: float,
    range_km: float,
    samples: int = 20,
) -> bool:
    """True if any sampled point of the path lies within range_km of the point."""
    for p in sample_great_circle_path(path_lat1, path_lon1, path_lat2, path_lon2, samples):
        if great_circle_distance(p.lat, p.lon, point_lat, point_lon) <= range_km:
            return True
    return False


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from point 1 to point 2, degrees in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)
    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def destination_point(lat: float, lon: float, bearing_deg: float, distance_km: float) -> GeoPoint:
    """Point reached travelling distance_km from (lat, lon) on an initial bearing."""
    delta = distance_km / EARTH_RADIUS_KM
    theta = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    lambda1 = math.radians(lon)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta)
        + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return GeoPoint(math.degrees(phi2), ((math.degrees(lambda2) + 540.0) % 360.0) - 180.0)


# -- Polygon helpers (placeholder generation) ----------------------------

def polygon_centroid(outline: Sequence[Sequence[float]]) -> GeoPoint:
    """Vertex average of a ``[[lon, lat], ...]`` outline."""
    if not outline:
        return GeoPoint(0.0, 0.0)
    lon = sum(v[0] for v in outline) / len(outline)
    lat = sum(v[1] for v in outline) / len(outline)
    return GeoPoint(lat, lon)


def random_polygon_vertex(outline: Sequence[Sequence[float]], rng: DeterministicRNG) -> GeoPoint:
    """Pick one vertex of a ``[[lon, lat], ...]`` outline."""
    vertex = rng.choice(outline)
    if vertex is None:
        return GeoPoint(0.0, 0.0)
    return GeoPoint(float(vertex[1]), float(vertex[0]))
