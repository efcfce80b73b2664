"""Interfaces for the collaborators the turn engine consumes.

The engine does not gather context, write prompts, talk to a model, or
know how the encounter tracks turns. Hosts supply objects satisfying
these protocols; tests supply in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from tactician.models import ActiveTurn, ContextSnapshot, RejectedSuggestion, TurnState


@dataclass(frozen=True)
class SuggestionRequest:
    """Extra prompt context for one suggestion request.

    Attributes:
        rejected: Suggestions withheld earlier in this cycle, with reasons;
            the model must not repeat them.
        skipped_action: Description the user skipped last time, sent once.
        attempt: 1-based attempt number within the cycle.
    """

    rejected: tuple[RejectedSuggestion, ...] = field(default_factory=tuple)
    skipped_action: str | None = None
    attempt: int = 1


class ContextProvider(Protocol):
    """Supplies the context snapshot for the acting combatant."""

    async def get_snapshot(self, combatant_id: str) -> ContextSnapshot:
        """Collect the current snapshot for a combatant."""
        ...


class PromptBuilder(Protocol):
    """Turns a snapshot and turn state into a prompt string."""

    def build(
        self,
        snapshot: ContextSnapshot,
        state: TurnState,
        request: SuggestionRequest,
    ) -> str:
        """Render the prompt for one request."""
        ...


class LLMTransport(Protocol):
    """Sends a prompt to a language model.

    Implementations own retry and backoff. Any exception raised from
    ``send`` is a hard failure for the current cycle.
    """

    async def send(self, prompt: str) -> str:
        """Return the model's reply text."""
        ...


class EncounterView(Protocol):
    """Read-only view of whose turn it is."""

    def active_turn(self) -> ActiveTurn | None:
        """The active combatant and round, or None outside combat."""
        ...


class TurnStateStore(Protocol):
    """Per-actor persistence for turn state."""

    async def get(self, combatant_id: str) -> TurnState | None:
        """Fetch the stored state, if any."""
        ...

    async def put(self, state: TurnState) -> None:
        """Insert or replace the state for its combatant."""
        ...

    async def delete(self, combatant_id: str) -> None:
        """Remove the stored state; missing state is not an error."""
        ...


__all__ = [
    "SuggestionRequest",
    "ContextProvider",
    "PromptBuilder",
    "LLMTransport",
    "EncounterView",
    "TurnStateStore",
]
