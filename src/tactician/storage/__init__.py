"""Turn state persistence.

Provides the in-memory and SQLite flag stores and a factory choosing
between them from settings.
"""

from __future__ import annotations

from tactician.core.config import StorageSettings, get_settings
from tactician.engine.protocols import TurnStateStore
from tactician.storage.database import SQLiteTurnStateStore
from tactician.storage.memory import InMemoryTurnStateStore


def build_store(settings: StorageSettings | None = None) -> TurnStateStore:
    """Create the configured turn state store.

    Args:
        settings: Storage settings (defaults to ``get_settings().storage``).

    Returns:
        A store implementing the TurnStateStore protocol.
    """
    settings = settings or get_settings().storage
    if settings.backend == "sqlite":
        return SQLiteTurnStateStore(settings.database_path)
    return InMemoryTurnStateStore()


__all__ = [
    "InMemoryTurnStateStore",
    "SQLiteTurnStateStore",
    "build_store",
]
