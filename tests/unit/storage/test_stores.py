"""Tests for the turn state stores."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from tactician.core.config import StorageSettings
from tactician.core.exceptions import StorageError
from tactician.models import StrikeRecord, TurnPhase, TurnState
from tactician.storage import InMemoryTurnStateStore, SQLiteTurnStateStore, build_store


def _state(combatant_id: str = "owlbear", **kwargs) -> TurnState:
    return TurnState(combatant_id=combatant_id, round=2, **kwargs)


class TestInMemoryStore:
    """Tests for InMemoryTurnStateStore."""

    @pytest.mark.asyncio
    async def test_put_and_get(self) -> None:
        """Test a stored state is returned."""
        store = InMemoryTurnStateStore()
        await store.put(_state(current_map=5))

        loaded = await store.get("owlbear")

        assert loaded.current_map == 5
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_copies_isolate_callers(self) -> None:
        """Test mutating a loaded state does not change the store."""
        store = InMemoryTurnStateStore()
        state = _state()
        await store.put(state)

        state.actions_remaining = 1
        loaded = await store.get("owlbear")
        loaded.actions_taken.append("Claw")

        again = await store.get("owlbear")
        assert again.actions_remaining == 3
        assert again.actions_taken == []

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_an_error(self) -> None:
        """Test deleting unknown state."""
        store = InMemoryTurnStateStore()
        await store.delete("nobody")

        assert await store.get("nobody") is None


class TestSQLiteStore:
    """Tests for SQLiteTurnStateStore."""

    @pytest.fixture
    def db_path(self, tmp_path: Path) -> Path:
        return tmp_path / "nested" / "turns.db"

    def test_schema_created(self, db_path: Path) -> None:
        """Test the database file and tables are created."""
        SQLiteTurnStateStore(db_path)

        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"schema_version", "turn_states"} <= tables

    @pytest.mark.asyncio
    async def test_round_trip(self, db_path: Path) -> None:
        """Test a full state survives the database."""
        store = SQLiteTurnStateStore(db_path)
        state = _state(
            phase=TurnPhase.SUGGESTION_PENDING,
            actions_remaining=1,
            current_map=10,
            actions_taken=["Jaws", "Jaws"],
            successful_strikes_this_round=[StrikeRecord(target="Goblin", strike_name="Jaws")],
        )
        await store.put(state)

        assert await store.get("owlbear") == state

    @pytest.mark.asyncio
    async def test_put_replaces(self, db_path: Path) -> None:
        """Test a second put overwrites the row."""
        store = SQLiteTurnStateStore(db_path)
        await store.put(_state(actions_remaining=3))
        await store.put(_state(actions_remaining=2))

        assert (await store.get("owlbear")).actions_remaining == 2
        assert await store.combatant_ids() == ["owlbear"]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, db_path: Path) -> None:
        """Test state outlives the store object."""
        await SQLiteTurnStateStore(db_path).put(_state("tok1"))

        assert (await SQLiteTurnStateStore(db_path).get("tok1")).combatant_id == "tok1"

    @pytest.mark.asyncio
    async def test_delete(self, db_path: Path) -> None:
        """Test deleting a state."""
        store = SQLiteTurnStateStore(db_path)
        await store.put(_state())
        await store.delete("owlbear")
        await store.delete("owlbear")

        assert await store.get("owlbear") is None

    @pytest.mark.asyncio
    async def test_corrupt_row(self, db_path: Path) -> None:
        """Test an unreadable row raises StorageError."""
        store = SQLiteTurnStateStore(db_path)
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO turn_states (combatant_id, state_json, updated_at) VALUES (?, ?, ?)",
                ("owlbear", '{"combatant_id": "owlbear", "current_map": 7}', "now"),
            )

        with pytest.raises(StorageError):
            await store.get("owlbear")


class TestBuildStore:
    """Tests for the store factory."""

    def test_memory_backend(self) -> None:
        """Test the default backend."""
        store = build_store(StorageSettings(_env_file=None))
        assert isinstance(store, InMemoryTurnStateStore)

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        """Test the SQLite backend uses the configured path."""
        db_path = tmp_path / "turns.db"
        store = build_store(StorageSettings(_env_file=None, backend="sqlite", database_path=db_path))

        assert isinstance(store, SQLiteTurnStateStore)
        assert db_path.exists()
