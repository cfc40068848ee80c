"""Exception hierarchy for the vehicle locator."""


class LocatorError(Exception):
    """Base exception for all locator errors."""
    pass


class InvalidCoordinate(LocatorError, ValueError):
    """Latitude or longitude out of range or not finite."""

    def __init__(self, latitude: float, longitude: float, reason: str):
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason
        super().__init__(
            f"Invalid coordinate ({latitude}, {longitude}): {reason}"
        )


class NoFixError(LocatorError):
    """Mark requested before any location fix was received."""

    def __init__(self, message: str = "Location not ready: no fix received yet"):
        super().__init__(message)


class PersistenceError(LocatorError):
    """Persisted tracker state could not be read or written."""
    pass


class ConfigError(LocatorError):
    """Configuration contains an invalid value."""
    pass
