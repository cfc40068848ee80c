"""Compass heading estimation from accelerometer and magnetometer.

Keeps the last accepted sample of each sensor and recomputes the
heading whenever either one changes. Samples reported below the
configured accuracy are discarded rather than averaged in: a stale
accurate reading gives a better heading than a fresh noisy one.
"""

import logging
from typing import Callable, List, Optional
import numpy as np
from numpy.typing import NDArray

from ..core.config import Config
from ..core.types import Orientation, SampleStats, SensorAccuracy, SensorKind, sensor_vector
from ..core.validation import check_sensor_vector
from .rotation import RotationOps

logger = logging.getLogger(__name__)

HeadingListener = Callable[[float], None]


class OrientationEstimator:
    """Fuses gravity and geomagnetic vectors into a compass heading."""

    def __init__(self, config: Config):
        """Initialize estimator.

        Args:
            config: System configuration with sensor settings.

        Raises:
            ConfigError: If the configured minimum accuracy is unknown.
        """
        self._sensor_cfg = config.sensor
        self._min_accuracy = config.sensor.min_accuracy_level

        self._acc: NDArray[np.float64] = np.zeros(3)
        self._mag: NDArray[np.float64] = np.zeros(3)
        self._acc_received = False
        self._mag_received = False

        self._orientation: Optional[Orientation] = None
        self._listeners: List[HeadingListener] = []
        self._stats = SampleStats()

    def subscribe(self, listener: HeadingListener) -> None:
        """Register a callback invoked with every emitted heading."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: HeadingListener) -> None:
        """Remove a previously registered callback."""
        self._listeners.remove(listener)

    def on_accelerometer_sample(self, values, accuracy: SensorAccuracy) -> Optional[float]:
        """Process an accelerometer sample.

        Args:
            values: Acceleration [ax, ay, az] in m/s^2.
            accuracy: Accuracy reported by the producer.

        Returns:
            New heading in degrees, or None if no heading was produced.
        """
        return self.on_sample(SensorKind.ACCELEROMETER, values, accuracy)

    def on_magnetometer_sample(self, values, accuracy: SensorAccuracy) -> Optional[float]:
        """Process a magnetometer sample.

        Args:
            values: Magnetic field [mx, my, mz] in uT.
            accuracy: Accuracy reported by the producer.

        Returns:
            New heading in degrees, or None if no heading was produced.
        """
        return self.on_sample(SensorKind.MAGNETOMETER, values, accuracy)

    def on_sample(self, kind: SensorKind, values, accuracy: SensorAccuracy) -> Optional[float]:
        """Store an accepted sample and recompute the heading.

        Raises:
            ValueError: If values does not have exactly 3 components.
        """
        vec = sensor_vector(values)

        if SensorAccuracy(accuracy) < self._min_accuracy:
            self._stats.discarded_low_accuracy += 1
            logger.debug(
                "Discarding %s sample with accuracy %s",
                kind.name.lower(), SensorAccuracy(accuracy).name
            )
            return None

        check = check_sensor_vector(vec)
        if not check.is_valid:
            self._stats.suppressed_degenerate += 1
            logger.debug("Discarding %s sample: %s", kind.name.lower(), check.errors)
            return None

        if kind == SensorKind.ACCELEROMETER:
            self._acc = vec
            self._acc_received = True
        else:
            self._mag = vec
            self._mag_received = True
        self._stats.accepted += 1

        return self._recompute()

    def _recompute(self) -> Optional[float]:
        """Derive heading from the stored vectors and notify listeners."""
        if not (self._acc_received and self._mag_received):
            return None
        if not np.any(self._acc) or not np.any(self._mag):
            self._stats.suppressed_degenerate += 1
            return None

        rotation = RotationOps.from_gravity_geomagnetic(
            self._acc,
            self._mag,
            gravity_nominal=self._sensor_cfg.gravity_nominal,
            min_field_strength=self._sensor_cfg.min_field_strength,
        )
        if rotation is None:
            self._stats.suppressed_degenerate += 1
            logger.debug("Degenerate gravity/geomagnetic pair, heading suppressed")
            return None

        self._orientation = RotationOps.to_orientation(rotation)
        heading = self._orientation.heading_deg
        self._stats.headings_emitted += 1

        for listener in list(self._listeners):
            listener(heading)

        return heading

    @property
    def latest_heading(self) -> Optional[float]:
        """Most recent heading in degrees, if any."""
        if self._orientation is None:
            return None
        return self._orientation.heading_deg

    @property
    def has_heading(self) -> bool:
        """Whether at least one heading has been produced."""
        return self._orientation is not None

    def orientation(self) -> Optional[Orientation]:
        """Full orientation (azimuth, pitch, roll) of the last heading."""
        return self._orientation

    @property
    def stats(self) -> SampleStats:
        """Sample counters."""
        return self._stats

    def reset(self) -> None:
        """Forget stored samples and the last heading."""
        self._acc = np.zeros(3)
        self._mag = np.zeros(3)
        self._acc_received = False
        self._mag_received = False
        self._orientation = None
        self._stats = SampleStats()
