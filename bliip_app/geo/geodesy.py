"""
Great-circle helpers on the WGS84 mean sphere.

Landing dispersion is a few tens of kilometres at most, so the haversine
distance on a mean-radius sphere is accurate well below the output
precision.
"""

import math
from typing import Iterable, Sequence

EARTH_RADIUS_KM = 6371.0088  # IUGG mean radius of the WGS84 ellipsoid


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great circle distance between two points in km.

    Formula: a = sin²(Δlat/2) + cos(lat1) × cos(lat2) × sin²(Δlon/2)
             c = 2 × atan2(√a, √(1-a))
             distance = R × c
    """
    lat1, lon1, lat2, lon2 = map(math.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return EARTH_RADIUS_KM * c


def path_length_km(points: Sequence) -> float:
    """Distance travelled along a sequence of points exposing latitude/longitude."""
    return sum(
        haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
        for a, b in zip(points[:-1], points[1:])
    )


def distances_from(lat: float, lon: float, positions: Iterable[tuple[float, float]]) -> list[float]:
    """Great circle distance from (lat, lon) to each (lat, lon) position, in km."""
    return [haversine_km(lat, lon, p_lat, p_lon) for p_lat, p_lon in positions]
