"""Core module for relative position tracking."""

from .types import (
    GeoPoint,
    SensorAccuracy,
    SensorKind,
    Orientation,
    TrackerState,
    LocationEvent,
    SensorEvent,
    SampleStats,
    ValidationResult,
    sensor_vector,
)
from .errors import (
    LocatorError,
    InvalidCoordinate,
    NoFixError,
    PersistenceError,
    ConfigError,
)
from .geodesy import bearing_between, distance_between
from .config import Config, load_config

__all__ = [
    "GeoPoint",
    "SensorAccuracy",
    "SensorKind",
    "Orientation",
    "TrackerState",
    "LocationEvent",
    "SensorEvent",
    "SampleStats",
    "ValidationResult",
    "sensor_vector",
    "LocatorError",
    "InvalidCoordinate",
    "NoFixError",
    "PersistenceError",
    "ConfigError",
    "bearing_between",
    "distance_between",
    "Config",
    "load_config",
]
