"""Tests for turn state, context and catalog entry models."""

from __future__ import annotations

import pytest

from tactician.models import (
    AbilityCatalogEntry,
    AbilityKind,
    ActionPayload,
    ActorSnapshot,
    CombatantSummary,
    ConditionState,
    ContextSnapshot,
    CostValue,
    Outcome,
    SpellPayload,
    TurnPhase,
    TurnState,
    condition_value,
    has_condition,
)


class TestTurnState:
    """Tests for the TurnState model."""

    def test_defaults(self) -> None:
        """Test a fresh state awaits its first snapshot."""
        state = TurnState(combatant_id="tok1")

        assert state.phase == TurnPhase.AWAITING_FIRST_SNAPSHOT
        assert state.actions_remaining == 3
        assert state.current_map == 0
        assert state.actions_taken == []
        assert state.skipped_action is None

    @pytest.mark.parametrize("value", [0, 4, 5, 8, 10])
    def test_valid_map_values(self, value: int) -> None:
        """Test every tracked MAP value is accepted."""
        assert TurnState(combatant_id="tok1", current_map=value).current_map == value

    def test_invalid_map_rejected(self) -> None:
        """Test untracked MAP values are rejected."""
        with pytest.raises(ValueError):
            TurnState(combatant_id="tok1", current_map=6)

    def test_assignment_is_validated(self) -> None:
        """Test mutations are validated too."""
        state = TurnState(combatant_id="tok1")
        with pytest.raises(ValueError):
            state.actions_remaining = 4

    def test_actions_not_negative(self) -> None:
        """Test actions remaining cannot go below zero."""
        with pytest.raises(ValueError):
            TurnState(combatant_id="tok1", actions_remaining=-1)

    def test_is_complete(self) -> None:
        """Test terminal phases report completion."""
        assert TurnState(combatant_id="a", phase=TurnPhase.TURN_COMPLETE).is_complete
        assert TurnState(combatant_id="a", phase=TurnPhase.ZERO_ACTION_START).is_complete
        assert not TurnState(combatant_id="a", phase=TurnPhase.ACTIVE).is_complete

    def test_json_round_trip(self) -> None:
        """Test a state with records survives serialization."""
        state = TurnState(combatant_id="tok1", round=2, current_map=5, actions_taken=["Claw"])
        assert TurnState.model_validate_json(state.model_dump_json()) == state


class TestConditions:
    """Tests for condition helpers."""

    def test_condition_value(self) -> None:
        """Test valued and unvalued conditions."""
        conditions = [ConditionState(name="Stunned", value=2), ConditionState(name="prone")]

        assert condition_value(conditions, "stunned") == 2
        assert condition_value(conditions, "prone") == 1
        assert condition_value(conditions, "slowed") == 0

    def test_has_condition(self) -> None:
        """Test presence checks are case-insensitive."""
        conditions = [ConditionState(name="Grabbed")]

        assert has_condition(conditions, "grabbed", "restrained")
        assert not has_condition(conditions, "prone")


class TestContextSnapshot:
    """Tests for the ContextSnapshot model."""

    def test_self_alias(self) -> None:
        """Test the actor is read from the ``self`` key."""
        snapshot = ContextSnapshot.model_validate(
            {"self": {"id": "owlbear", "name": "Owlbear"}, "enemies": []}
        )
        assert snapshot.actor.name == "Owlbear"

    def test_find_combatant(self) -> None:
        """Test lookup by id, then by name."""
        snapshot = ContextSnapshot(
            actor=ActorSnapshot(id="owlbear", name="Owlbear"),
            enemies=[CombatantSummary(id="tok1", name="Goblin")],
            allies=[CombatantSummary(id="tok2", name="Wolf")],
        )

        assert snapshot.find_combatant("tok1").name == "Goblin"
        assert snapshot.find_combatant("wolf").id == "tok2"
        assert snapshot.find_combatant("Orc") is None
        assert snapshot.find_combatant(None) is None


class TestCatalogEntry:
    """Tests for AbilityCatalogEntry validation."""

    def test_payload_kind_must_match(self) -> None:
        """Test a spell entry cannot carry an action payload."""
        with pytest.raises(ValueError):
            AbilityCatalogEntry(
                name="Fireball",
                canonical_id="spell:fireball",
                kind=AbilityKind.SPELL,
                cost=CostValue.of(2),
                extra=ActionPayload(),
            )

    def test_passive(self) -> None:
        """Test passive action entries."""
        entry = AbilityCatalogEntry(
            name="Darkvision",
            canonical_id="action:darkvision",
            kind=AbilityKind.ACTION,
            extra=ActionPayload(action_type="passive", passive=True),
        )
        assert entry.is_passive

    def test_spell_not_passive(self) -> None:
        """Test spells are never passive."""
        entry = AbilityCatalogEntry(
            name="Heal",
            canonical_id="spell:heal",
            kind=AbilityKind.SPELL,
            cost=CostValue.range(1, 3),
            extra=SpellPayload(rank=1),
        )
        assert not entry.is_passive


class TestOutcome:
    """Tests for the Outcome enum."""

    def test_success_outcomes(self) -> None:
        """Test which outcomes count as hits."""
        assert Outcome.SUCCESS.is_success
        assert Outcome.CRITICAL_SUCCESS.is_success
        assert not Outcome.FAILURE.is_success
