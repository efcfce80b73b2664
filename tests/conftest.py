"""Pytest configuration and shared fixtures.

This module provides common fixtures, sample abilities and in-memory
collaborators for the Tactician test suite.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import pytest

from tactician.core.config import Settings
from tactician.engine.catalog import build_catalog
from tactician.engine.protocols import SuggestionRequest
from tactician.engine.turn_machine import TurnStateMachine
from tactician.models import (
    AbilityCatalogEntry,
    ActionDescriptor,
    ActiveTurn,
    ActorSnapshot,
    CombatantSummary,
    ConditionState,
    ContextSnapshot,
    SpellDescriptor,
    StrikeDescriptor,
    TurnState,
)
from tactician.storage import InMemoryTurnStateStore


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from tactician.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "TACTICIAN_LLM_API_KEY": "test-openrouter-key",
        "TACTICIAN_DEBUG": "true",
        "TACTICIAN_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings() -> Settings:
    """Default settings built without reading the environment file."""
    return Settings(_env_file=None)


# =============================================================================
# Ability Fixtures
# =============================================================================


@pytest.fixture
def claw() -> StrikeDescriptor:
    """An agile melee claw strike."""
    return StrikeDescriptor(
        name="Claw",
        slug="claw",
        traits=["agile", "unarmed"],
        attack_bonus=12,
        damage="1d6+4 slashing",
    )


@pytest.fixture
def jaws() -> StrikeDescriptor:
    """A non-agile jaws strike with the grab rider."""
    return StrikeDescriptor(
        name="Jaws",
        slug="jaws",
        traits=["unarmed"],
        attack_bonus=14,
        damage="2d8+4 piercing plus Grab",
    )


@pytest.fixture
def sample_spells() -> list[SpellDescriptor]:
    """A few spells with fixed, variable and reaction costs."""
    return [
        SpellDescriptor(name="Fireball", source_id="spell.fireball", time="2", rank=3),
        SpellDescriptor(name="Heal", source_id="spell.heal", time="1 to 3", rank=1),
        SpellDescriptor(
            name="Feather Fall",
            source_id="spell.feather-fall",
            time="reaction",
            rank=1,
        ),
    ]


@pytest.fixture
def sample_actions() -> list[ActionDescriptor]:
    """Actions and monster abilities, including a passive one."""
    return [
        ActionDescriptor(name="Stride", actions=1),
        ActionDescriptor(name="Trip", actions=1, traits=["attack"]),
        ActionDescriptor(name="Rend", actions=1),
        ActionDescriptor(name="Attack of Opportunity", action_type="reaction"),
        ActionDescriptor(name="Darkvision", action_type="passive"),
    ]


@pytest.fixture
def catalog(
    claw: StrikeDescriptor,
    jaws: StrikeDescriptor,
    sample_spells: list[SpellDescriptor],
    sample_actions: list[ActionDescriptor],
) -> list[AbilityCatalogEntry]:
    """A catalog built from the sample abilities."""
    return build_catalog(
        spells=sample_spells,
        strikes=[claw, jaws],
        actions=sample_actions,
    )


# =============================================================================
# Snapshot Fixtures
# =============================================================================


@pytest.fixture
def goblin() -> CombatantSummary:
    return CombatantSummary(id="tok1", name="Goblin")


def make_snapshot(
    *,
    strikes: Sequence[StrikeDescriptor] = (),
    spells: Sequence[SpellDescriptor] = (),
    actions: Sequence[ActionDescriptor] = (),
    conditions: Sequence[ConditionState] = (),
    enemies: Sequence[CombatantSummary] = (),
) -> ContextSnapshot:
    """Build a snapshot for an actor called Owlbear."""
    return ContextSnapshot(
        actor=ActorSnapshot(
            id="owlbear",
            name="Owlbear",
            strikes=list(strikes),
            spells=list(spells),
            actions=list(actions),
            conditions=list(conditions),
        ),
        enemies=list(enemies),
    )


@pytest.fixture
def snapshot(
    claw: StrikeDescriptor,
    jaws: StrikeDescriptor,
    sample_actions: list[ActionDescriptor],
    goblin: CombatantSummary,
) -> ContextSnapshot:
    """Snapshot of an owlbear facing a goblin."""
    return make_snapshot(strikes=[claw, jaws], actions=sample_actions, enemies=[goblin])


# =============================================================================
# Collaborator Fakes
# =============================================================================


class FakeContextProvider:
    """Returns a fixed snapshot and counts calls."""

    def __init__(self, snapshot: ContextSnapshot) -> None:
        self.snapshot = snapshot
        self.calls = 0

    async def get_snapshot(self, combatant_id: str) -> ContextSnapshot:
        self.calls += 1
        return self.snapshot


class RecordingPromptBuilder:
    """Records every request it renders."""

    def __init__(self) -> None:
        self.requests: list[SuggestionRequest] = []
        self.states: list[TurnState] = []

    def build(self, snapshot: ContextSnapshot, state: TurnState, request: SuggestionRequest) -> str:
        self.requests.append(request)
        self.states.append(state.model_copy(deep=True))
        return f"prompt {len(self.requests)}"


class ScriptedTransport:
    """Replays queued replies; queued exceptions are raised instead."""

    def __init__(self, *replies: str | Exception) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.before_reply = None

    async def send(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.before_reply is not None:
            self.before_reply()
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeEncounter:
    """Encounter whose active turn the test controls."""

    def __init__(self, combatant_id: str | None = "owlbear", round_number: int = 1) -> None:
        self.current = ActiveTurn(combatant_id=combatant_id, round=round_number) if combatant_id else None

    def active_turn(self) -> ActiveTurn | None:
        return self.current

    def advance(self, combatant_id: str, round_number: int | None = None) -> None:
        current_round = self.current.round if self.current else 1
        self.current = ActiveTurn(
            combatant_id=combatant_id,
            round=current_round if round_number is None else round_number,
        )


def claw_reply(target: str = "Goblin [ID: tok1]", cost: str = "1") -> str:
    """The canonical five-line reply suggesting a Claw strike."""
    return (
        "ACTION: Claw\n"
        f"TARGET: {target}\n"
        f"COST: {cost}\n"
        "Rationale: in range\n"
        "NARRATIVE: slashes"
    )


@pytest.fixture
def store() -> InMemoryTurnStateStore:
    return InMemoryTurnStateStore()


@pytest.fixture
def encounter() -> FakeEncounter:
    return FakeEncounter()


@pytest.fixture
def prompt_builder() -> RecordingPromptBuilder:
    return RecordingPromptBuilder()


@pytest.fixture
def provider(snapshot: ContextSnapshot) -> FakeContextProvider:
    return FakeContextProvider(snapshot)


@pytest.fixture
def make_machine(
    provider: FakeContextProvider,
    prompt_builder: RecordingPromptBuilder,
    encounter: FakeEncounter,
    store: InMemoryTurnStateStore,
    settings: Settings,
):
    """Factory building a machine around a scripted transport."""

    def _make(transport: ScriptedTransport, **kwargs) -> TurnStateMachine:
        return TurnStateMachine(
            context_provider=provider,
            prompt_builder=prompt_builder,
            transport=transport,
            encounter=encounter,
            store=store,
            settings=settings,
            **kwargs,
        )

    return _make


@pytest.fixture
def snapshot_factory():
    """The ``make_snapshot`` helper."""
    return make_snapshot


@pytest.fixture
def reply_factory():
    """The ``claw_reply`` helper."""
    return claw_reply


@pytest.fixture
def transport_factory():
    """The ``ScriptedTransport`` class."""
    return ScriptedTransport
