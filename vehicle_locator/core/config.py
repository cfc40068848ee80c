"""Configuration management for the vehicle locator."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

import yaml

from .errors import ConfigError
from .types import SensorAccuracy


@dataclass
class SensorConfig:
    """Orientation sensor configuration."""
    min_accuracy: str = "MEDIUM"
    gravity_nominal: float = 9.81
    min_field_strength: float = 0.1

    @property
    def min_accuracy_level(self) -> SensorAccuracy:
        """Minimum accepted accuracy as an enum level."""
        try:
            return SensorAccuracy.from_name(self.min_accuracy)
        except ValueError as e:
            raise ConfigError(str(e)) from e


@dataclass
class LocationConfig:
    """Location producer configuration."""
    update_interval_ms: int = 500


@dataclass
class PersistenceConfig:
    """Tracker state persistence configuration."""
    enabled: bool = True
    path: str = "locator_state.json"


@dataclass
class ChannelConfig:
    """Event channel configuration."""
    max_pending: int = 256
    poll_timeout_s: float = 0.1


@dataclass
class DisplayConfig:
    """Display policy used by the presentation helpers."""
    imperial: bool = True
    distance_colours: bool = True
    near_m: int = 50
    far_m: int = 200


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "127.0.0.1"
    port: int = 5000


@dataclass
class Config:
    """Complete configuration for the vehicle locator."""
    sensor: SensorConfig = field(default_factory=SensorConfig)
    location: LocationConfig = field(default_factory=LocationConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    web: WebConfig = field(default_factory=WebConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses
            LOCATOR_CONFIG_PATH or the packaged default.

    Returns:
        Configuration object with all settings.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        ConfigError: If a value is invalid.
    """
    if config_path is None:
        env_path = os.environ.get("LOCATOR_CONFIG_PATH")
        if env_path:
            config_path = env_path
        else:
            default_path = Path(__file__).parent.parent / "config" / "default.yaml"
            if default_path.exists():
                config_path = str(default_path)
            else:
                return Config()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")

    return build_config(data)


def _section(data: dict, name: str, cls: type) -> object:
    """Build one dataclass section, ignoring unknown keys."""
    values = data.get(name) or {}
    if not isinstance(values, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
    return cls(**known)


def build_config(data: dict) -> Config:
    """Build Config object from dictionary."""
    config = Config(
        sensor=_section(data, "sensor", SensorConfig),
        location=_section(data, "location", LocationConfig),
        persistence=_section(data, "persistence", PersistenceConfig),
        channel=_section(data, "channel", ChannelConfig),
        display=_section(data, "display", DisplayConfig),
        web=_section(data, "web", WebConfig),
    )
    _validate(config)
    return config


def _validate(config: Config) -> None:
    """Reject values the engine cannot run with."""
    config.sensor.min_accuracy_level
    if config.sensor.gravity_nominal <= 0:
        raise ConfigError("sensor.gravity_nominal must be positive")
    if config.sensor.min_field_strength < 0:
        raise ConfigError("sensor.min_field_strength must not be negative")
    if config.location.update_interval_ms <= 0:
        raise ConfigError("location.update_interval_ms must be positive")
    if config.channel.max_pending < 1:
        raise ConfigError("channel.max_pending must be at least 1")
    if not 0 <= config.display.near_m <= config.display.far_m:
        raise ConfigError("display thresholds must satisfy 0 <= near_m <= far_m")
