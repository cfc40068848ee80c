"""Sensor fusion module for compass heading estimation."""

from .rotation import RotationOps
from .orientation import OrientationEstimator, HeadingListener

__all__ = [
    "RotationOps",
    "OrientationEstimator",
    "HeadingListener",
]
