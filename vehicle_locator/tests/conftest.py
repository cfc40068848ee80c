"""Pytest fixtures for vehicle locator tests."""

import pytest
import numpy as np
from numpy.typing import NDArray

from vehicle_locator.core.config import Config, PersistenceConfig
from vehicle_locator.core.types import GeoPoint
from vehicle_locator.persistence import MemoryStateStore
from vehicle_locator.tracking import LocatorEngine, PositionTracker


@pytest.fixture
def config(tmp_path) -> Config:
    """Default configuration with state kept under tmp_path."""
    return Config(
        persistence=PersistenceConfig(
            enabled=True,
            path=str(tmp_path / "locator_state.json"),
        )
    )


@pytest.fixture
def origin() -> GeoPoint:
    """Intersection of the equator and the prime meridian."""
    return GeoPoint(0.0, 0.0)


@pytest.fixture
def one_degree_east() -> GeoPoint:
    """One degree of longitude east of the origin."""
    return GeoPoint(0.0, 1.0)


@pytest.fixture
def tracker() -> PositionTracker:
    """Fresh unmarked tracker with no fix."""
    return PositionTracker()


@pytest.fixture
def memory_store() -> MemoryStateStore:
    """Empty in-memory state store."""
    return MemoryStateStore()


@pytest.fixture
def engine(config, memory_store) -> LocatorEngine:
    """Started engine backed by an in-memory store."""
    eng = LocatorEngine(config, store=memory_store)
    eng.start()
    return eng


@pytest.fixture
def gravity_flat() -> NDArray[np.float64]:
    """Accelerometer reading of a device lying flat, screen up."""
    return np.array([0.0, 0.0, 9.81])


def field_for_heading(heading_deg: float, horizontal: float = 22.0,
                      down: float = 45.0) -> NDArray[np.float64]:
    """Magnetometer reading of a flat device facing heading_deg."""
    psi = np.deg2rad(heading_deg)
    return np.array([-horizontal * np.sin(psi), horizontal * np.cos(psi), -down])


@pytest.fixture
def field_north() -> NDArray[np.float64]:
    """Magnetometer reading of a flat device facing north."""
    return field_for_heading(0.0)
