"""Event sources feeding the locator engine.

ReplayFeed plays back a JSON-lines recording. MockFeed synthesizes an
observer walking away from a start point, for development and tests
without location or sensor hardware.
"""

import json
import logging
import math
import time
from pathlib import Path
from typing import Iterator, Optional
import numpy as np

from ..core.config import Config
from ..core.errors import LocatorError
from ..core.types import (
    GeoPoint,
    LocationEvent,
    SensorAccuracy,
    SensorEvent,
    SensorKind,
)

logger = logging.getLogger(__name__)

METRES_PER_DEGREE_LAT = 111320.0

SENSOR_TYPES = {
    "accelerometer": SensorKind.ACCELEROMETER,
    "magnetometer": SensorKind.MAGNETOMETER,
}


class FeedError(LocatorError):
    """Recorded event stream could not be parsed."""
    pass


def parse_event(record: dict):
    """Convert one recorded JSON object into an event.

    Accepted shapes::

        {"type": "location", "latitude": 10.0, "longitude": 20.0, "t": 1.5}
        {"type": "accelerometer", "values": [0, 0, 9.81], "accuracy": "HIGH"}

    Raises:
        FeedError: If the record is malformed.
    """
    if not isinstance(record, dict):
        raise FeedError("Event must be a JSON object")

    event_type = record.get("type")
    timestamp = record.get("t")

    try:
        if event_type == "location":
            point = GeoPoint(float(record["latitude"]), float(record["longitude"]))
            return LocationEvent(point=point, timestamp=timestamp)

        if event_type in SENSOR_TYPES:
            values = tuple(float(v) for v in record["values"])
            if len(values) != 3:
                raise FeedError(f"Sensor values must have 3 components, got {len(values)}")
            accuracy = record.get("accuracy", SensorAccuracy.HIGH)
            if isinstance(accuracy, str):
                accuracy = SensorAccuracy.from_name(accuracy)
            return SensorEvent(
                kind=SENSOR_TYPES[event_type],
                values=values,
                accuracy=SensorAccuracy(accuracy),
                timestamp=timestamp,
            )
    except (KeyError, TypeError, ValueError) as e:
        raise FeedError(f"Malformed {event_type} event: {e}") from e

    raise FeedError(f"Unknown event type: {event_type!r}")


def event_to_record(event) -> dict:
    """Inverse of parse_event, used when recording sessions."""
    if isinstance(event, LocationEvent):
        record = {
            "type": "location",
            "latitude": event.point.latitude,
            "longitude": event.point.longitude,
        }
    else:
        record = {
            "type": event.kind.name.lower(),
            "values": list(event.values),
            "accuracy": event.accuracy.name,
        }
    if event.timestamp is not None:
        record["t"] = event.timestamp
    return record


class ReplayFeed:
    """Replays events from a JSON-lines file.

    Blank lines and lines starting with '#' are skipped.
    """

    def __init__(self, path):
        self._path = Path(path)

    def __iter__(self) -> Iterator:
        return self.events()

    def events(self) -> Iterator:
        """Yield events in file order.

        Raises:
            FileNotFoundError: If the recording doesn't exist.
            FeedError: On the first malformed line, with its line number.
        """
        with open(self._path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    yield parse_event(json.loads(line))
                except json.JSONDecodeError as e:
                    raise FeedError(f"{self._path}:{lineno}: invalid JSON: {e}") from e
                except FeedError as e:
                    raise FeedError(f"{self._path}:{lineno}: {e}") from e


class MockFeed:
    """Synthetic observer walking in a straight line.

    The device lies flat and faces facing_deg; the magnetic field has a
    northward horizontal component and points downward, so the
    estimator recovers facing_deg as the heading.
    """

    def __init__(
        self,
        config: Config,
        start: GeoPoint = GeoPoint(-19.3264, 146.7571),
        course_deg: float = 45.0,
        speed_mps: float = 1.4,
        facing_deg: Optional[float] = None,
        field_ut: tuple = (22.0, 45.0),
        noise: float = 0.0,
        seed: Optional[int] = None,
        realtime: bool = False,
    ):
        """Initialize mock feed.

        Args:
            config: System configuration; location cadence is taken from it.
            start: Starting position.
            course_deg: Direction of travel, degrees from north.
            speed_mps: Walking speed in metres per second.
            facing_deg: Device heading. Defaults to the course.
            field_ut: Horizontal and downward magnetic field strengths.
            noise: Standard deviation of Gaussian sensor noise.
            seed: Random seed for reproducible noise.
            realtime: Sleep between fixes to mimic the real cadence.
        """
        self._interval_s = config.location.update_interval_ms / 1000.0
        self._gravity = config.sensor.gravity_nominal
        self._start = start
        self._course = math.radians(course_deg)
        self._speed = speed_mps
        self._facing = math.radians(course_deg if facing_deg is None else facing_deg)
        self._field_h, self._field_down = field_ut
        self._noise = noise
        self._rng = np.random.default_rng(seed)
        self._realtime = realtime

    def position_at(self, elapsed_s: float) -> GeoPoint:
        """Observer position after elapsed_s seconds (flat-earth approximation)."""
        travelled = self._speed * elapsed_s
        d_north = travelled * math.cos(self._course)
        d_east = travelled * math.sin(self._course)
        lat = self._start.latitude + d_north / METRES_PER_DEGREE_LAT
        lon = self._start.longitude + d_east / (
            METRES_PER_DEGREE_LAT * math.cos(math.radians(self._start.latitude))
        )
        return GeoPoint(lat, lon)

    def accelerometer(self) -> tuple:
        """Gravity reading of a device lying flat."""
        acc = np.array([0.0, 0.0, self._gravity]) + self._jitter()
        return tuple(float(v) for v in acc)

    def magnetometer(self) -> tuple:
        """Field reading of a flat device facing the configured heading."""
        mag = np.array([
            -self._field_h * math.sin(self._facing),
            self._field_h * math.cos(self._facing),
            -self._field_down,
        ]) + self._jitter()
        return tuple(float(v) for v in mag)

    def _jitter(self) -> np.ndarray:
        if self._noise <= 0:
            return np.zeros(3)
        return self._rng.normal(0.0, self._noise, 3)

    def events(self, count: int) -> Iterator:
        """Yield count steps, each a location fix followed by both sensors."""
        for step in range(count):
            elapsed = step * self._interval_s
            yield LocationEvent(point=self.position_at(elapsed), timestamp=elapsed)
            yield SensorEvent(
                kind=SensorKind.ACCELEROMETER,
                values=self.accelerometer(),
                accuracy=SensorAccuracy.HIGH,
                timestamp=elapsed,
            )
            yield SensorEvent(
                kind=SensorKind.MAGNETOMETER,
                values=self.magnetometer(),
                accuracy=SensorAccuracy.HIGH,
                timestamp=elapsed,
            )
            if self._realtime:
                time.sleep(self._interval_s)
