"""Geodesic calculations between two geographic points.

Bearings use the spherical forward-azimuth formula. Distances are
geodesics on the WGS84 ellipsoid.
"""

import math

from geopy.distance import geodesic

from .types import GeoPoint
from .validation import validate_point


def bearing_between(a: GeoPoint, b: GeoPoint) -> float:
    """Initial true-north bearing from a to b.

    Args:
        a: Start point.
        b: End point.

    Returns:
        Bearing in degrees in [0, 360). Identical points give 0.0.

    Raises:
        InvalidCoordinate: If either point is invalid.
    """
    validate_point(a)
    validate_point(b)

    if a == b:
        return 0.0

    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_lam = math.radians(b.longitude - a.longitude)

    y = math.sin(d_lam) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lam)

    theta = math.degrees(math.atan2(y, x))
    bearing = (theta + 360.0) % 360.0
    return bearing if bearing < 360.0 else 0.0


def distance_between(a: GeoPoint, b: GeoPoint) -> int:
    """Distance from a to b in whole metres.

    The result is truncated, not rounded, so sub-metre precision is
    always dropped downward.

    Args:
        a: First point.
        b: Second point.

    Returns:
        Non-negative distance in metres.

    Raises:
        InvalidCoordinate: If either point is invalid.
    """
    validate_point(a)
    validate_point(b)

    if a == b:
        return 0

    # fixed argument order keeps truncation symmetric
    a, b = sorted((a, b), key=GeoPoint.to_tuple)

    return max(0, int(geodesic(a.to_tuple(), b.to_tuple()).meters))
