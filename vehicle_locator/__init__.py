"""Relative position tracking to a marked location."""

from .core import GeoPoint, SensorAccuracy, bearing_between, distance_between
from .tracking import LocatorEngine, PositionTracker
from .fusion import OrientationEstimator

__version__ = "0.1.0"

__all__ = [
    "GeoPoint",
    "SensorAccuracy",
    "bearing_between",
    "distance_between",
    "LocatorEngine",
    "PositionTracker",
    "OrientationEstimator",
]
