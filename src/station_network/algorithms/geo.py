"""
Geographic helpers.

Great-circle distance and region classification for the coverage area.
No ellipsoid correction; haversine error is acceptable at city scale.
"""

import math
from typing import Dict, Optional, Tuple

from ..core import constants


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Args:
        lat1: Latitude of the first point (degrees)
        lng1: Longitude of the first point (degrees)
        lat2: Latitude of the second point (degrees)
        lng2: Longitude of the second point (degrees)

    Returns:
        Distance in kilometres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Clamp against rounding just above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return constants.EARTH_RADIUS_KM * c


def determine_region(
    lat: float,
    lng: float,
    thresholds: Optional[Dict[str, float]] = None
) -> str:
    """
    Classify a point into one of the five coverage regions.

    Checks run in order: north, south, east, west; anything left is central.
    """
    t = thresholds or constants.REGION_THRESHOLDS
    if lat > t["north_lat"]:
        return "north"
    if lat < t["south_lat"]:
        return "south"
    if lng > t["east_lng"]:
        return "east"
    if lng < t["west_lng"]:
        return "west"
    return "central"


def clamp_to_bounds(
    lat: float,
    lng: float,
    bounds: Optional[Dict[str, float]] = None
) -> Tuple[float, float]:
    """Clip a point to the coverage bounding box."""
    b = bounds or constants.COVERAGE_BOUNDS
    return (
        max(b["south"], min(b["north"], lat)),
        max(b["west"], min(b["east"], lng)),
    )
