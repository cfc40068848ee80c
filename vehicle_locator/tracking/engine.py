"""Relative position tracking engine.

Owns one OrientationEstimator, one PositionTracker and the state store
for a session. Every entry point takes the same lock so location and
heading updates never interleave their read-modify-write of tracker
state.
"""

import logging
import threading
from typing import Optional

from ..core.config import Config
from ..core.errors import InvalidCoordinate, PersistenceError
from ..core.types import (
    GeoPoint,
    LocationEvent,
    SensorAccuracy,
    SensorEvent,
    TrackerState,
)
from ..fusion.orientation import OrientationEstimator
from ..persistence.store import StateStore, create_store
from .tracker import PositionTracker

logger = logging.getLogger(__name__)


class LocatorEngine:
    """Single-writer facade over the estimator and tracker."""

    def __init__(self, config: Config, store: Optional[StateStore] = None):
        """Initialize engine.

        Args:
            config: System configuration.
            store: State store. Defaults to the one selected by config.
        """
        self._config = config
        self._store = store if store is not None else create_store(config)
        self._lock = threading.Lock()

        self._estimator = OrientationEstimator(config)
        self._tracker = PositionTracker()
        self._estimator.subscribe(self._tracker.on_heading_update)

        self._location_updates = 0
        self._rejected_locations = 0
        self._started = False

    def start(self) -> None:
        """Restore persisted state and begin a session.

        A missing record starts unmarked. An unusable record is logged
        and replaced by defaults.
        """
        with self._lock:
            try:
                state = self._store.load()
            except PersistenceError as e:
                logger.warning("Ignoring saved state: %s", e)
                state = None

            if state is not None:
                try:
                    self._tracker.restore(state)
                except InvalidCoordinate as e:
                    logger.warning("Ignoring saved state with invalid coordinate: %s", e)

            self._started = True
            logger.info("Locator engine started (marked=%s)", self._tracker.is_marked)

    def suspend(self) -> None:
        """Persist tracker state.

        Raises:
            PersistenceError: If the store cannot be written.
        """
        with self._lock:
            self._store.save(self._tracker.state)
            self._started = False
            logger.info("Locator engine suspended")

    def __enter__(self) -> "LocatorEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.suspend()

    def on_location_update(self, point: GeoPoint) -> None:
        """Apply a location fix.

        Raises:
            InvalidCoordinate: If the point is invalid.
        """
        with self._lock:
            try:
                self._tracker.on_location_update(point)
            except InvalidCoordinate:
                self._rejected_locations += 1
                raise
            self._location_updates += 1

    def on_accelerometer_sample(self, values, accuracy: SensorAccuracy) -> Optional[float]:
        """Apply an accelerometer sample; returns the new heading if any."""
        with self._lock:
            return self._estimator.on_accelerometer_sample(values, accuracy)

    def on_magnetometer_sample(self, values, accuracy: SensorAccuracy) -> Optional[float]:
        """Apply a magnetometer sample; returns the new heading if any."""
        with self._lock:
            return self._estimator.on_magnetometer_sample(values, accuracy)

    def on_heading_update(self, heading: float) -> None:
        """Apply a heading computed outside the estimator."""
        with self._lock:
            self._tracker.on_heading_update(heading)

    def handle_event(self, event) -> None:
        """Dispatch a LocationEvent or SensorEvent.

        Raises:
            TypeError: For unknown event types.
        """
        if isinstance(event, LocationEvent):
            self.on_location_update(event.point)
        elif isinstance(event, SensorEvent):
            with self._lock:
                self._estimator.on_sample(event.kind, event.values, event.accuracy)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def mark(self) -> GeoPoint:
        """Mark the current position.

        Raises:
            NoFixError: If no fix has been received this session.
        """
        with self._lock:
            return self._tracker.mark()

    def clear(self) -> None:
        """Clear the marked position."""
        with self._lock:
            self._tracker.clear()

    def distance_to_marked(self) -> Optional[int]:
        """Whole metres to the marked position, or None."""
        with self._lock:
            return self._tracker.distance_to_marked()

    def relative_bearing_to_marked(self) -> Optional[int]:
        """Relative bearing in degrees to the marked position, or None."""
        with self._lock:
            return self._tracker.relative_bearing_to_marked()

    @property
    def is_marked(self) -> bool:
        with self._lock:
            return self._tracker.is_marked

    @property
    def has_fix(self) -> bool:
        with self._lock:
            return self._tracker.has_fix

    @property
    def heading(self) -> Optional[float]:
        """Last heading seen by the tracker."""
        with self._lock:
            return self._tracker.heading

    @property
    def state(self) -> TrackerState:
        with self._lock:
            return self._tracker.state

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def estimator(self) -> OrientationEstimator:
        return self._estimator

    def snapshot(self) -> dict:
        """JSON-serializable view for the display layer."""
        with self._lock:
            state = self._tracker.state
            stats = self._estimator.stats
            return {
                "is_marked": state.is_marked,
                "has_fix": state.has_fix,
                "latitude": state.current.latitude if state.has_fix else None,
                "longitude": state.current.longitude if state.has_fix else None,
                "heading": self._tracker.heading,
                "distance_m": self._tracker.distance_to_marked(),
                "relative_bearing": self._tracker.relative_bearing_to_marked(),
                "location_updates": self._location_updates,
                "rejected_locations": self._rejected_locations,
                "samples_accepted": stats.accepted,
                "samples_discarded": stats.discarded_low_accuracy,
            }
