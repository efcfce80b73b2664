"""SQLite persistence for turn state.

Each AI-controlled combatant's turn state is stored as one JSON row keyed
by combatant id. Blocking sqlite3 calls run in a worker thread so the
event loop is never held up.

Storage location: ``data/tactician.db`` by default (see StorageSettings).
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from tactician.core.exceptions import StorageError
from tactician.core.logging import get_logger
from tactician.models import TurnState


logger = get_logger(__name__)


class SQLiteTurnStateStore:
    """SQLite-backed turn state store.

    The schema holds a single ``turn_states`` table with one row per
    combatant. Writes replace the whole row, so concurrent writers are
    last-writer-wins.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store and create its schema.

        Args:
            db_path: Path to the database file; parent directories are
                created as needed.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info("Turn state database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection that commits on success."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StorageError(
                f"Cannot open turn state database: {exc}",
                details={"path": str(self.db_path)},
            ) from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(
                f"Turn state database error: {exc}",
                details={"path": str(self.db_path)},
            ) from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS turn_states (
                    combatant_id TEXT PRIMARY KEY,
                    state_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # =========================================================================
    # Blocking operations
    # =========================================================================

    def _get(self, combatant_id: str) -> TurnState | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT state_json FROM turn_states WHERE combatant_id = ?",
                (combatant_id,),
            ).fetchone()
        if row is None:
            return None
        try:
            return TurnState.model_validate_json(row[0])
        except ValidationError as exc:
            raise StorageError(
                "Stored turn state is corrupt",
                details={"combatant_id": combatant_id, "errors": exc.error_count()},
            ) from exc

    def _put(self, state: TurnState) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO turn_states (combatant_id, state_json, updated_at)
                VALUES (?, ?, ?)
                """,
                (
                    state.combatant_id,
                    state.model_dump_json(),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def _delete(self, combatant_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM turn_states WHERE combatant_id = ?", (combatant_id,))

    def _combatant_ids(self) -> list[str]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT combatant_id FROM turn_states ORDER BY updated_at DESC"
            ).fetchall()
        return [row[0] for row in rows]

    # =========================================================================
    # Async API
    # =========================================================================

    async def get(self, combatant_id: str) -> TurnState | None:
        """Fetch the stored state, if any."""
        return await asyncio.to_thread(self._get, combatant_id)

    async def put(self, state: TurnState) -> None:
        """Insert or replace the state for its combatant."""
        await asyncio.to_thread(self._put, state)
        logger.debug("Turn state saved", combatant_id=state.combatant_id, phase=state.phase)

    async def delete(self, combatant_id: str) -> None:
        """Remove the stored state; missing state is not an error."""
        await asyncio.to_thread(self._delete, combatant_id)

    async def combatant_ids(self) -> list[str]:
        """Combatants with stored state, most recently written first."""
        return await asyncio.to_thread(self._combatant_ids)


__all__ = ["SQLiteTurnStateStore"]
