"""Marked-position tracker.

Holds the current fix, the marked target and the last relative
bearing, and recomputes the bearing when a location or heading
arrives. Not thread-safe on its own; LocatorEngine serializes access.
"""

import logging
import math
from enum import Enum
from typing import Optional

from ..core.errors import NoFixError
from ..core.geodesy import bearing_between, distance_between
from ..core.types import GeoPoint, TrackerState
from ..core.validation import validate_point

logger = logging.getLogger(__name__)


class TrackerMode(Enum):
    """Whether a target position is set."""
    UNMARKED = "unmarked"
    MARKED = "marked"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf."""
    return int(math.floor(value + 0.5))


class PositionTracker:
    """State machine combining fix, mark and heading into a relative bearing."""

    def __init__(self, state: Optional[TrackerState] = None):
        """Initialize tracker.

        Args:
            state: Restored state. Defaults to unmarked with no fix.
        """
        self._current = GeoPoint(0.0, 0.0)
        self._marked = GeoPoint(0.0, 0.0)
        self._is_marked = False
        self._has_fix = False
        self._relative_bearing = 0
        self._heading: Optional[float] = None

        if state is not None:
            self.restore(state)

    def on_location_update(self, point: GeoPoint) -> None:
        """Record a new location fix.

        If a target is marked and a heading is known the relative bearing
        is recomputed, otherwise it keeps its previous value.

        Raises:
            InvalidCoordinate: If the point is invalid. State is unchanged.
        """
        validate_point(point)

        self._current = point
        if not self._has_fix:
            logger.info("First location fix: %.6f, %.6f", point.latitude, point.longitude)
        self._has_fix = True

        if self._is_marked and self._heading is not None:
            self._update_relative_bearing()

    def on_heading_update(self, heading: float) -> None:
        """Record a new compass heading in degrees.

        The relative bearing is only recomputed when a target is marked
        and a fix exists. The heading is always kept so a later location
        update can use it.
        """
        self._heading = float(heading)

        if self._is_marked and self._has_fix:
            self._update_relative_bearing()

    def _update_relative_bearing(self) -> None:
        """relative = bearing(current, marked) - heading, not normalized."""
        bearing = bearing_between(self._current, self._marked)
        self._relative_bearing = round_half_up(bearing - self._heading)

    def mark(self) -> GeoPoint:
        """Mark the current position as the target.

        Marking again while already marked moves the target.

        Returns:
            The marked position.

        Raises:
            NoFixError: If no location fix has been received.
        """
        if not self._has_fix:
            raise NoFixError()

        self._marked = self._current
        self._is_marked = True

        logger.info(
            "Position marked: %.6f, %.6f",
            self._marked.latitude, self._marked.longitude
        )
        return self._marked

    def clear(self) -> None:
        """Forget the target. Clearing an unmarked tracker is a no-op."""
        if self._is_marked:
            logger.info("Marked position cleared")
        self._is_marked = False

    def distance_to_marked(self) -> Optional[int]:
        """Whole metres from current position to the target, if marked."""
        if not self._is_marked:
            return None
        return distance_between(self._current, self._marked)

    def relative_bearing_to_marked(self) -> Optional[int]:
        """Stored relative bearing in degrees, if marked.

        The value may lag the latest heading when only a location has
        arrived since the last heading update.
        """
        if not self._is_marked:
            return None
        return self._relative_bearing

    @property
    def is_marked(self) -> bool:
        """Whether a target is set."""
        return self._is_marked

    @property
    def has_fix(self) -> bool:
        """Whether a location fix has been received this session."""
        return self._has_fix

    @property
    def mode(self) -> TrackerMode:
        """Current state machine mode."""
        return TrackerMode.MARKED if self._is_marked else TrackerMode.UNMARKED

    @property
    def heading(self) -> Optional[float]:
        """Last heading received, if any."""
        return self._heading

    @property
    def state(self) -> TrackerState:
        """Snapshot of the tracker state."""
        return TrackerState(
            is_marked=self._is_marked,
            current=self._current,
            marked=self._marked,
            relative_bearing=self._relative_bearing,
            has_fix=self._has_fix,
        )

    def restore(self, state: TrackerState) -> None:
        """Load persisted state.

        has_fix is not restored; a fresh fix is needed each session.

        Raises:
            InvalidCoordinate: If a marked state holds an invalid point.
        """
        if state.is_marked:
            validate_point(state.current)
            validate_point(state.marked)

        self._is_marked = state.is_marked
        self._current = state.current
        self._marked = state.marked
        self._relative_bearing = int(state.relative_bearing)
