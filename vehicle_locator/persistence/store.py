"""Save and restore tracker state across process restarts."""

import contextlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..core.config import Config
from ..core.errors import PersistenceError
from ..core.types import TrackerState

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """Persistence gateway for TrackerState."""

    @abstractmethod
    def load(self) -> Optional[TrackerState]:
        """Return the saved state, or None when nothing was saved.

        Raises:
            PersistenceError: If a saved record exists but is unusable.
        """

    @abstractmethod
    def save(self, state: TrackerState) -> None:
        """Persist the state atomically.

        Raises:
            PersistenceError: If the state could not be written.
        """

    def clear(self) -> None:
        """Remove any saved state."""


class MemoryStateStore(StateStore):
    """In-process store, used when persistence is disabled and in tests."""

    def __init__(self, record: Optional[dict] = None):
        self._record = dict(record) if record is not None else None

    def load(self) -> Optional[TrackerState]:
        if self._record is None:
            return None
        return _state_from_record(self._record, "memory")

    def save(self, state: TrackerState) -> None:
        self._record = state.to_record()

    def clear(self) -> None:
        self._record = None

    @property
    def record(self) -> Optional[dict]:
        """Last saved flat record."""
        return self._record


class JsonStateStore(StateStore):
    """Stores the flat state record as a JSON file.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash never leaves a partial record.
    """

    def __init__(self, path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Location of the state file."""
        return self._path

    def load(self) -> Optional[TrackerState]:
        if not self._path.exists():
            logger.debug("No saved state at %s", self._path)
            return None

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read state from {self._path}: {e}") from e

        state = _state_from_record(record, str(self._path))
        logger.info("Restored state from %s (marked=%s)", self._path, state.is_marked)
        return state

    def save(self, state: TrackerState) -> None:
        record = state.to_record()
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(directory)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(record, f, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write state to {self._path}: {e}") from e

        logger.info("Saved state to %s", self._path)

    def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass


def _state_from_record(record, source: str) -> TrackerState:
    """Convert a flat record into TrackerState or raise PersistenceError."""
    if not isinstance(record, dict):
        raise PersistenceError(f"State record in {source} is not an object")
    try:
        return TrackerState.from_record(record)
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Malformed state record in {source}: {e}") from e


def create_store(config: Config) -> StateStore:
    """Build the store selected by the persistence configuration."""
    if not config.persistence.enabled:
        return MemoryStateStore()
    return JsonStateStore(config.persistence.path)
