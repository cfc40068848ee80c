"""Rotation matrix construction from gravity and geomagnetic vectors."""

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from ..core.types import Orientation

FREE_FALL_FRACTION = 0.01


class RotationOps:
    """Static methods for device-to-world rotation matrices.

    World frame is East-North-Up. Device axes are x to the right,
    y forward along the screen, z out of the screen.
    """

    @staticmethod
    def from_gravity_geomagnetic(
        gravity: NDArray[np.float64],
        geomagnetic: NDArray[np.float64],
        gravity_nominal: float = 9.81,
        min_field_strength: float = 0.1,
    ) -> Optional[NDArray[np.float64]]:
        """Build the rotation matrix from accelerometer and magnetometer.

        Rows are the world East, North and Up axes expressed in device
        coordinates.

        Args:
            gravity: Accelerometer reading [ax, ay, az] in m/s^2.
            geomagnetic: Magnetometer reading [mx, my, mz] in uT.
            gravity_nominal: Nominal gravity used for the free-fall check.
            min_field_strength: Minimum norm of the horizontal field
                vector before normalization.

        Returns:
            3x3 rotation matrix, or None when the device is in free fall
            or the field is parallel to gravity (or zero).
        """
        g_sq = float(np.dot(gravity, gravity))
        if g_sq < FREE_FALL_FRACTION * gravity_nominal * gravity_nominal:
            return None

        east = np.cross(geomagnetic, gravity)
        east_norm = float(np.linalg.norm(east))
        if east_norm < min_field_strength:
            return None

        east = east / east_norm
        up = gravity / np.sqrt(g_sq)
        north = np.cross(up, east)

        return np.vstack((east, north, up))

    @staticmethod
    def to_orientation(rotation: NDArray[np.float64]) -> Orientation:
        """Extract azimuth, pitch and roll from a rotation matrix.

        Args:
            rotation: Matrix from from_gravity_geomagnetic().

        Returns:
            Orientation in radians.
        """
        azimuth = np.arctan2(rotation[0, 1], rotation[1, 1])
        pitch = np.arcsin(np.clip(-rotation[2, 1], -1.0, 1.0))
        roll = np.arctan2(-rotation[2, 0], rotation[2, 2])
        return Orientation(azimuth=float(azimuth), pitch=float(pitch), roll=float(roll))
