"""Pydantic V2 schemas for the context snapshot handed to the engine.

The snapshot is produced by an external context provider. The engine only
reads it: catalog building consumes the actor's descriptors, the turn
state machine reads condition values, and prerequisite rules read the
structured recent-event log and condition state.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from tactician.models.catalog import (
    ActionDescriptor,
    ConsumableDescriptor,
    SpellDescriptor,
    StrikeDescriptor,
)
from tactician.models.enums import EventKind, Outcome


class ConditionState(BaseModel):
    """An active condition, with its value when it has one.

    Attributes:
        name: Condition slug (e.g. ``stunned``, ``prone``).
        value: Condition value for valued conditions, else None.
        source: Who applied it, when known (e.g. a grabbing creature's name).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Condition slug")
    value: int | None = Field(default=None, ge=0, description="Condition value")
    source: str | None = Field(default=None, description="Applying creature")


def condition_value(conditions: Iterable[ConditionState], name: str) -> int:
    """Return the value of a condition, 0 when absent.

    A present condition without a value counts as 1.
    """
    wanted = name.lower()
    best = 0
    for condition in conditions:
        if condition.name.lower() == wanted:
            best = max(best, condition.value if condition.value is not None else 1)
    return best


def has_condition(conditions: Iterable[ConditionState], *names: str) -> bool:
    """Whether any of the named conditions is present."""
    wanted = {n.lower() for n in names}
    return any(c.name.lower() in wanted for c in conditions)


class RecentEvent(BaseModel):
    """A structured record of something that happened recently.

    Attributes:
        kind: What sort of event this is.
        actor: Name of the creature that acted.
        target: Name of the creature affected, if any.
        action_name: Strike or action name (e.g. ``Jaws``, ``Trip``).
        outcome: Degree of success, if the event was a check.
        riders: Extra effects listed on the strike (e.g. ``grab``).
        round: Encounter round the event happened in.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind = Field(description="Event kind")
    actor: str = Field(description="Acting creature")
    target: str | None = Field(default=None, description="Affected creature")
    action_name: str | None = Field(default=None, description="Strike/action name")
    outcome: Outcome | None = Field(default=None, description="Degree of success")
    riders: frozenset[str] = Field(default_factory=frozenset, description="Damage riders")
    round: int | None = Field(default=None, ge=0, description="Encounter round")


class CombatantSummary(BaseModel):
    """Another creature in the encounter."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Token/combatant id")
    name: str = Field(description="Display name")
    conditions: list[ConditionState] = Field(default_factory=list)


class ActorSnapshot(BaseModel):
    """Everything the acting creature could name or use."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Combatant id")
    name: str = Field(description="Display name")
    strikes: list[StrikeDescriptor] = Field(default_factory=list)
    spells: list[SpellDescriptor] = Field(default_factory=list)
    focus_spells: list[SpellDescriptor] = Field(default_factory=list)
    cantrips: list[SpellDescriptor] = Field(default_factory=list)
    item_spells: list[SpellDescriptor] = Field(default_factory=list)
    actions: list[ActionDescriptor] = Field(default_factory=list)
    consumables: list[ConsumableDescriptor] = Field(default_factory=list)
    conditions: list[ConditionState] = Field(default_factory=list)

    @property
    def all_spells(self) -> list[SpellDescriptor]:
        """Spells, focus spells, cantrips and item spells in one list."""
        return [*self.spells, *self.focus_spells, *self.cantrips, *self.item_spells]


class ContextSnapshot(BaseModel):
    """Context collected for one resolution cycle.

    The actor is exposed under the ``self`` key on the wire.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    actor: ActorSnapshot = Field(alias="self", description="Acting creature")
    enemies: list[CombatantSummary] = Field(default_factory=list)
    allies: list[CombatantSummary] = Field(default_factory=list)
    recent_events: list[RecentEvent] = Field(default_factory=list)

    def find_combatant(self, name_or_id: str | None) -> CombatantSummary | None:
        """Look up an enemy or ally by id, then by case-insensitive name."""
        if not name_or_id:
            return None
        others = [*self.enemies, *self.allies]
        for other in others:
            if other.id == name_or_id:
                return other
        lowered = name_or_id.strip().lower()
        for other in others:
            if other.name.lower() == lowered:
                return other
        return None


__all__ = [
    "ConditionState",
    "condition_value",
    "has_condition",
    "RecentEvent",
    "CombatantSummary",
    "ActorSnapshot",
    "ContextSnapshot",
]
