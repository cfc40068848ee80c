"""Persistence of tracker state."""

from .store import StateStore, MemoryStateStore, JsonStateStore, create_store

__all__ = ["StateStore", "MemoryStateStore", "JsonStateStore", "create_store"]
