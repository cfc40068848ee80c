"""Marked-position tracking."""

from .tracker import PositionTracker, TrackerMode, round_half_up
from .engine import LocatorEngine

__all__ = ["PositionTracker", "TrackerMode", "round_half_up", "LocatorEngine"]
