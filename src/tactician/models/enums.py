"""Enumerations shared across the Tactician data model."""

from __future__ import annotations

from enum import StrEnum


class CostKind(StrEnum):
    """Shapes an action cost can take."""

    ACTIONS = "actions"
    REACTION = "reaction"
    FREE = "free"
    RANGE = "range"


class AbilityKind(StrEnum):
    """Kinds of catalog entries."""

    SPELL = "spell"
    STRIKE = "strike"
    ACTION = "action"
    CONSUMABLE = "consumable"


class CostSource(StrEnum):
    """Where the resolved primary cost came from."""

    CATALOG = "catalog"
    LLM = "llm"


class TurnPhase(StrEnum):
    """Phases of the turn state machine."""

    AWAITING_FIRST_SNAPSHOT = "awaiting_first_snapshot"
    """Turn accepted for AI control; actions not yet computed."""

    ZERO_ACTION_START = "zero_action_start"
    """Conditions removed every action; the turn ends without a suggestion."""

    ACTIVE = "active"
    """Actions remain and no suggestion is waiting for the user."""

    SUGGESTION_PENDING = "suggestion_pending"
    """A validated suggestion is waiting for confirm, skip or end."""

    TURN_COMPLETE = "turn_complete"
    """No actions remain or the user ended the turn."""


class EventKind(StrEnum):
    """Kinds of structured recent events."""

    STRIKE = "strike"
    ACTION = "action"
    CONDITION = "condition"


class Outcome(StrEnum):
    """Degrees of success recorded on events."""

    CRITICAL_SUCCESS = "critical_success"
    SUCCESS = "success"
    FAILURE = "failure"
    CRITICAL_FAILURE = "critical_failure"

    @property
    def is_success(self) -> bool:
        """Whether the outcome counts as a hit/success."""
        return self in (Outcome.SUCCESS, Outcome.CRITICAL_SUCCESS)


__all__ = [
    "CostKind",
    "AbilityKind",
    "CostSource",
    "TurnPhase",
    "EventKind",
    "Outcome",
]
