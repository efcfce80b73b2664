"""Pydantic V2 schemas for per-turn state.

TurnState is the persisted, per-actor record owned by the turn state
machine. External actors may read it or patch individual fields (such as
``current_map``) between cycles through the machine's API.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tactician.core.constants import MAP_VALUES, MAX_ACTIONS_PER_TURN
from tactician.models.enums import TurnPhase


class StrikeRecord(BaseModel):
    """A strike that hit this round."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(description="Target name")
    strike_name: str = Field(description="Strike name")


class RejectedSuggestion(BaseModel):
    """A suggestion that was withheld from the user.

    Attributes:
        description: Action text the model proposed.
        reason: Why it was rejected; passed back as do-not-repeat context.
    """

    model_config = ConfigDict(frozen=True)

    description: str
    reason: str


class ConditionDelta(BaseModel):
    """Condition reductions owed at the start of a turn.

    Attributes:
        actions_lost: Actions removed by stunned/slowed.
        stunned_reduction: How much the stunned value should drop.
    """

    model_config = ConfigDict(frozen=True)

    actions_lost: int = Field(default=0, ge=0, le=MAX_ACTIONS_PER_TURN)
    stunned_reduction: int = Field(default=0, ge=0)


class ActiveTurn(BaseModel):
    """Whose turn it currently is in the encounter."""

    model_config = ConfigDict(frozen=True)

    combatant_id: str
    round: int = Field(ge=0)


class TurnState(BaseModel):
    """Turn-scoped state for one AI-controlled combatant.

    Attributes:
        combatant_id: Combatant the state belongs to.
        round: Encounter round the turn started in.
        phase: Current state machine phase.
        actions_remaining: Actions left this turn (0-3).
        current_map: Multiple attack penalty tracker (0, 4, 5, 8 or 10).
        actions_taken: Descriptions of confirmed actions, in order.
        manual_notes: Free-text guidance from the user for the next request.
        stunned_at_start: Stunned value when actions were computed.
        slowed_at_start: Slowed value when actions were computed.
        successful_strikes_this_round: Strikes that hit this round.
        skipped_action: Description skipped by the user, sent once.
        rejected_suggestions: Suggestions withheld during the current cycle.
    """

    model_config = ConfigDict(validate_assignment=True)

    combatant_id: str = Field(min_length=1, description="Combatant id")
    round: int = Field(default=0, ge=0, description="Encounter round")
    phase: TurnPhase = Field(default=TurnPhase.AWAITING_FIRST_SNAPSHOT)
    actions_remaining: int = Field(default=MAX_ACTIONS_PER_TURN, ge=0, le=MAX_ACTIONS_PER_TURN)
    current_map: int = Field(default=0, description="Tracked MAP value")
    actions_taken: list[str] = Field(default_factory=list)
    manual_notes: str = ""
    stunned_at_start: int = Field(default=0, ge=0)
    slowed_at_start: int = Field(default=0, ge=0)
    successful_strikes_this_round: list[StrikeRecord] = Field(default_factory=list)
    skipped_action: str | None = None
    rejected_suggestions: list[RejectedSuggestion] = Field(default_factory=list)

    @field_validator("current_map")
    @classmethod
    def validate_map(cls, value: int) -> int:
        """Keep the tracked MAP within the known penalty values."""
        if value not in MAP_VALUES:
            raise ValueError(f"MAP must be one of {sorted(MAP_VALUES)}, got {value}")
        return value

    @property
    def is_complete(self) -> bool:
        return self.phase in (TurnPhase.TURN_COMPLETE, TurnPhase.ZERO_ACTION_START)


__all__ = [
    "StrikeRecord",
    "RejectedSuggestion",
    "ConditionDelta",
    "ActiveTurn",
    "TurnState",
]
