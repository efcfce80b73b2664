"""Pydantic V2 data models for the Tactician turn assistant.

Submodules:
    enums: Shared enumerations.
    cost: The CostValue tagged union.
    catalog: Ability descriptors and catalog entries.
    context: Context snapshot, conditions and structured recent events.
    suggestion: Parsed suggestions, catalog matches and resolution results.
    turn: Persisted turn state.
"""

from __future__ import annotations

from tactician.models.catalog import (
    AbilityCatalogEntry,
    AbilityDescriptor,
    ActionDescriptor,
    ActionPayload,
    CatalogPayload,
    ConsumableDescriptor,
    ConsumablePayload,
    SpellDescriptor,
    SpellPayload,
    StrikeDescriptor,
    StrikePayload,
)
from tactician.models.context import (
    ActorSnapshot,
    CombatantSummary,
    ConditionState,
    ContextSnapshot,
    RecentEvent,
    condition_value,
    has_condition,
)
from tactician.models.cost import CostValue
from tactician.models.enums import (
    AbilityKind,
    CostKind,
    CostSource,
    EventKind,
    Outcome,
    TurnPhase,
)
from tactician.models.suggestion import (
    CatalogMatch,
    ParsedSuggestion,
    ResolutionResult,
    Suggestion,
)
from tactician.models.turn import (
    ActiveTurn,
    ConditionDelta,
    RejectedSuggestion,
    StrikeRecord,
    TurnState,
)


__all__ = [
    # Enums
    "AbilityKind",
    "CostKind",
    "CostSource",
    "EventKind",
    "Outcome",
    "TurnPhase",
    # Cost
    "CostValue",
    # Catalog
    "AbilityDescriptor",
    "SpellDescriptor",
    "StrikeDescriptor",
    "ActionDescriptor",
    "ConsumableDescriptor",
    "SpellPayload",
    "StrikePayload",
    "ActionPayload",
    "ConsumablePayload",
    "CatalogPayload",
    "AbilityCatalogEntry",
    # Context
    "ConditionState",
    "condition_value",
    "has_condition",
    "RecentEvent",
    "CombatantSummary",
    "ActorSnapshot",
    "ContextSnapshot",
    # Suggestions
    "ParsedSuggestion",
    "CatalogMatch",
    "ResolutionResult",
    "Suggestion",
    # Turn
    "StrikeRecord",
    "RejectedSuggestion",
    "ConditionDelta",
    "ActiveTurn",
    "TurnState",
]
