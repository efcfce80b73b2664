"""In-process turn state store."""

from __future__ import annotations

from tactician.models import TurnState


class InMemoryTurnStateStore:
    """Turn state kept in a dict keyed by combatant id.

    States are copied on the way in and out so callers never share a
    mutable instance with the store.
    """

    def __init__(self) -> None:
        self._states: dict[str, TurnState] = {}

    async def get(self, combatant_id: str) -> TurnState | None:
        state = self._states.get(combatant_id)
        return state.model_copy(deep=True) if state is not None else None

    async def put(self, state: TurnState) -> None:
        self._states[state.combatant_id] = state.model_copy(deep=True)

    async def delete(self, combatant_id: str) -> None:
        self._states.pop(combatant_id, None)

    async def combatant_ids(self) -> list[str]:
        return list(self._states)

    def __len__(self) -> int:
        return len(self._states)


__all__ = ["InMemoryTurnStateStore"]
