"""Input validation for coordinates and sensor samples."""

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidCoordinate
from .types import GeoPoint, ValidationResult


def validate_point(point: GeoPoint) -> None:
    """Check a geographic point is finite and in range.

    Args:
        point: Point to check.

    Raises:
        InvalidCoordinate: If latitude or longitude is out of range or
            not finite. Values are never clamped.
    """
    lat, lon = point.latitude, point.longitude

    if not np.isfinite(lat):
        raise InvalidCoordinate(lat, lon, "latitude is not finite")
    if not np.isfinite(lon):
        raise InvalidCoordinate(lat, lon, "longitude is not finite")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(lat, lon, "latitude outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(lat, lon, "longitude outside [-180, 180]")


def check_sensor_vector(values: NDArray[np.float64]) -> ValidationResult:
    """Check a raw sensor triplet before it reaches the fusion step.

    Args:
        values: Accelerometer or magnetometer vector.

    Returns:
        ValidationResult with one error per non-finite component.
    """
    result = ValidationResult(is_valid=True)

    for i, val in enumerate(values):
        if not np.isfinite(val):
            result.add_error(f"Non-finite value at index {i}: {val}")

    return result
