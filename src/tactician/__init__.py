"""Tactician - LLM turn assistant for Pathfinder 2e combat.

The language model only PROPOSES an action. Python owns the rules: which
abilities exist, what they cost, whether their prerequisites hold, and how
many actions and what multiple attack penalty remain.

Example:
    >>> from tactician import TurnStateMachine, CycleStatus, OpenAITransport
    >>> from tactician.llm import TacticalPromptBuilder
    >>> from tactician.storage import build_store
    >>>
    >>> machine = TurnStateMachine(
    ...     context_provider=provider,
    ...     prompt_builder=TacticalPromptBuilder(),
    ...     transport=OpenAITransport(),
    ...     encounter=encounter,
    ...     store=build_store(),
    ... )
    >>> await machine.begin_turn("tok1")
    >>> result = await machine.request_suggestion("tok1")
    >>> print(result.suggestion.action_name, result.suggestion.display_cost)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas (costs, catalog, context, turn state).
    engine: Parsing, resolution, arbitration and the turn state machine.
    llm: OpenAI-compatible transport and prompts.
    storage: Turn state stores.
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Tactician Team"

from tactician.core import (
    CostOverrunError,
    Settings,
    StaleTurnError,
    TacticianError,
    TransportError,
    UnparseableReplyError,
    configure_logging,
    get_logger,
    get_settings,
)
from tactician.engine import (
    ActionResolver,
    CycleResult,
    CycleStatus,
    TurnStateMachine,
    arbitrate_cost,
    build_catalog,
    format_for_display,
    parse_cost,
    parse_suggestion,
)
from tactician.llm import OpenAITransport
from tactician.models import (
    AbilityCatalogEntry,
    ContextSnapshot,
    CostValue,
    Suggestion,
    TurnState,
)


__all__ = [
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "TacticianError",
    "CostOverrunError",
    "StaleTurnError",
    "TransportError",
    "UnparseableReplyError",
    # Models
    "CostValue",
    "AbilityCatalogEntry",
    "ContextSnapshot",
    "Suggestion",
    "TurnState",
    # Engine
    "parse_cost",
    "format_for_display",
    "build_catalog",
    "parse_suggestion",
    "ActionResolver",
    "arbitrate_cost",
    "TurnStateMachine",
    "CycleStatus",
    "CycleResult",
    # LLM
    "OpenAITransport",
]
