"""Data types for relative position tracking."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional
import numpy as np
from numpy.typing import NDArray


class SensorAccuracy(IntEnum):
    """Accuracy level reported by a sensor producer.

    Ordered so that comparisons express "at least as accurate as".
    """
    UNRELIABLE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def from_name(cls, name: str) -> "SensorAccuracy":
        """Look up an accuracy level by case-insensitive name."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown sensor accuracy: {name!r}") from None


class SensorKind(IntEnum):
    """Sensors the orientation estimator consumes."""
    ACCELEROMETER = 1
    MAGNETOMETER = 2


@dataclass(frozen=True)
class GeoPoint:
    """Geographic position in decimal degrees (WGS84)."""
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        """Whether both coordinates are finite and within range."""
        return (
            bool(np.isfinite(self.latitude))
            and bool(np.isfinite(self.longitude))
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )

    def to_tuple(self) -> tuple:
        """Return (latitude, longitude)."""
        return (self.latitude, self.longitude)


def sensor_vector(values) -> NDArray[np.float64]:
    """Convert any 3-element sequence to a float64 sensor vector."""
    vec = np.asarray(values, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"Sensor vector must have 3 components, got {vec.shape[0]}")
    return vec


@dataclass(frozen=True)
class Orientation:
    """Device orientation angles in radians.

    azimuth is measured clockwise from magnetic north about the
    gravity axis; pitch and roll follow the device axes.
    """
    azimuth: float
    pitch: float
    roll: float

    @property
    def heading_deg(self) -> float:
        """Azimuth normalized to [0, 360) degrees."""
        deg = (np.rad2deg(self.azimuth) + 360.0) % 360.0
        # -0.0 or a tiny negative rounds up to exactly 360.0
        return float(deg) if deg < 360.0 else 0.0


@dataclass
class TrackerState:
    """Snapshot of the position tracker.

    has_fix is session-only and is never restored from storage.
    """
    is_marked: bool = False
    current: GeoPoint = field(default_factory=lambda: GeoPoint(0.0, 0.0))
    marked: GeoPoint = field(default_factory=lambda: GeoPoint(0.0, 0.0))
    relative_bearing: int = 0
    has_fix: bool = False

    def to_record(self) -> dict:
        """Flat record layout used for persistence."""
        return {
            "is_marked": self.is_marked,
            "current_latitude": self.current.latitude,
            "current_longitude": self.current.longitude,
            "marked_latitude": self.marked.latitude,
            "marked_longitude": self.marked.longitude,
            "relative_bearing": self.relative_bearing,
        }

    @classmethod
    def from_record(cls, record: dict) -> "TrackerState":
        """Build a state from a flat persistence record.

        Raises:
            KeyError: If a field is missing.
            ValueError: If a field cannot be converted or is_marked is
                not a boolean.
        """
        is_marked = record["is_marked"]
        if not isinstance(is_marked, bool):
            raise ValueError(f"is_marked must be a boolean, got {is_marked!r}")
        return cls(
            is_marked=is_marked,
            current=GeoPoint(
                float(record["current_latitude"]),
                float(record["current_longitude"]),
            ),
            marked=GeoPoint(
                float(record["marked_latitude"]),
                float(record["marked_longitude"]),
            ),
            relative_bearing=int(record["relative_bearing"]),
            has_fix=False,
        )


@dataclass(frozen=True)
class LocationEvent:
    """Location fix delivered by a location producer."""
    point: GeoPoint
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class SensorEvent:
    """Raw accelerometer or magnetometer sample."""
    kind: SensorKind
    values: tuple
    accuracy: SensorAccuracy
    timestamp: Optional[float] = None


@dataclass
class ValidationResult:
    """Result of input validation."""
    is_valid: bool
    errors: list = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.is_valid = False
        self.errors.append(message)


@dataclass
class SampleStats:
    """Counters for sensor samples seen by the estimator."""
    accepted: int = 0
    discarded_low_accuracy: int = 0
    suppressed_degenerate: int = 0
    headings_emitted: int = 0

    @property
    def discard_rate(self) -> float:
        """Fraction of samples rejected for low accuracy."""
        total = self.accepted + self.discarded_low_accuracy
        if total == 0:
            return 0.0
        return self.discarded_low_accuracy / total
