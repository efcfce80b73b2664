"""Turn engine for the Tactician turn assistant.

This module provides the suggestion pipeline and the turn state machine
that applies its results.

Submodules:
    costs: Cost parsing, formatting and minimum cost
    catalog: Ability catalog building
    parser: Suggestion reply parsing
    resolver: Catalog matching and composite named actions
    arbiter: Authoritative cost selection
    prerequisites: Prerequisite rule registry
    damage: Average damage estimates (d20 library)
    protocols: Collaborator interfaces
    turn_machine: Per-combatant turn state machine

Example:
    >>> from tactician.engine import TurnStateMachine, CycleStatus
    >>>
    >>> machine = TurnStateMachine(
    ...     context_provider=provider,
    ...     prompt_builder=builder,
    ...     transport=transport,
    ...     encounter=encounter,
    ...     store=store,
    ... )
    >>> await machine.begin_turn("tok1")
    >>> result = await machine.request_suggestion("tok1")
    >>> if result.status == CycleStatus.SUGGESTED:
    ...     await machine.confirm("tok1", result.suggestion)
"""

from __future__ import annotations

# =============================================================================
# Cost Vocabulary
# =============================================================================
from tactician.engine.costs import (
    format_for_display,
    is_concrete,
    minimum_action_cost,
    parse_cost,
    parse_cost_token,
)

# =============================================================================
# Catalog, Parsing & Resolution
# =============================================================================
from tactician.engine.catalog import build_catalog, build_catalog_from_snapshot
from tactician.engine.damage import average_damage
from tactician.engine.parser import parse_suggestion
from tactician.engine.resolver import (
    DEFAULT_COMPOSITE_ACTIONS,
    ActionResolver,
    CompositeAction,
    extract_rank,
    resolve_action,
)

# =============================================================================
# Arbitration & Validation
# =============================================================================
from tactician.engine.arbiter import arbitrate_cost, check_affordable
from tactician.engine.prerequisites import (
    PrerequisiteContext,
    PrerequisiteResult,
    prerequisite,
    validate_prerequisites,
)

# =============================================================================
# Turn State Machine
# =============================================================================
from tactician.engine.protocols import (
    ContextProvider,
    EncounterView,
    LLMTransport,
    PromptBuilder,
    SuggestionRequest,
    TurnStateStore,
)
from tactician.engine.turn_machine import (
    CycleCursor,
    CycleResult,
    CycleStatus,
    TurnStateMachine,
    next_map,
)


__all__ = [
    # Costs
    "parse_cost",
    "parse_cost_token",
    "format_for_display",
    "minimum_action_cost",
    "is_concrete",
    # Catalog & resolution
    "build_catalog",
    "build_catalog_from_snapshot",
    "average_damage",
    "parse_suggestion",
    "ActionResolver",
    "CompositeAction",
    "DEFAULT_COMPOSITE_ACTIONS",
    "extract_rank",
    "resolve_action",
    # Arbitration & validation
    "arbitrate_cost",
    "check_affordable",
    "PrerequisiteContext",
    "PrerequisiteResult",
    "prerequisite",
    "validate_prerequisites",
    # Turn state machine
    "ContextProvider",
    "PromptBuilder",
    "LLMTransport",
    "EncounterView",
    "TurnStateStore",
    "SuggestionRequest",
    "TurnStateMachine",
    "CycleStatus",
    "CycleResult",
    "CycleCursor",
    "next_map",
]
