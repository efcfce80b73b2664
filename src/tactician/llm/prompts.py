"""Prompts for tactical turn suggestions."""

from __future__ import annotations

from tactician.engine.catalog import build_catalog_from_snapshot
from tactician.engine.costs import format_for_display
from tactician.engine.protocols import SuggestionRequest
from tactician.models import CombatantSummary, ConditionState, ContextSnapshot, TurnState


# =============================================================================
# System Prompt
# =============================================================================


SYSTEM_PROMPT = """You are a tactical advisor for a creature in a Pathfinder 2e encounter.
Suggest exactly ONE next action for the creature, using only abilities it has.

Reply with exactly these five labelled lines and nothing else:

ACTION: <ability or action name, e.g. Claw or Fireball (Rank 3)>
TARGET: <target name and its [ID: ...] token, or None>
COST: <1, 2, 3, R or F>
Rationale: <one sentence on why this is the best choice>
NARRATIVE: <one vivid sentence describing the action>

Rules:
- Never suggest an action costing more actions than remain.
- The multiple attack penalty applies to every attack after the first.
- Never repeat a suggestion listed as rejected or skipped.
"""


TURN_PROMPT = """## {actor_name}
Actions remaining: {actions_remaining}
Multiple attack penalty: -{current_map}
Conditions: {conditions}
Actions taken this turn: {actions_taken}

## Abilities
{abilities}

## Enemies
{enemies}

## Allies
{allies}
{guidance}"""


# =============================================================================
# Prompt Builder
# =============================================================================


def _format_conditions(conditions: list[ConditionState]) -> str:
    if not conditions:
        return "none"
    return ", ".join(
        f"{c.name} {c.value}" if c.value is not None else c.name for c in conditions
    )


def _format_combatants(combatants: list[CombatantSummary]) -> str:
    if not combatants:
        return "- none"
    return "\n".join(
        f"- {c.name} [ID: {c.id}] ({_format_conditions(c.conditions)})" for c in combatants
    )


class TacticalPromptBuilder:
    """Render the per-request prompt from a snapshot and turn state."""

    def build(
        self,
        snapshot: ContextSnapshot,
        state: TurnState,
        request: SuggestionRequest,
    ) -> str:
        """Render the prompt.

        Args:
            snapshot: Context snapshot for the cycle.
            state: Current turn state.
            request: Rejected and skipped suggestions to avoid.

        Returns:
            The user prompt text.
        """
        catalog = build_catalog_from_snapshot(snapshot)
        abilities = "\n".join(
            f"- {entry.name} {format_for_display(entry.cost)} [{entry.kind}]"
            for entry in sorted(catalog, key=lambda e: e.name.lower())
            if not entry.is_passive
        ) or "- none"

        guidance: list[str] = []
        if state.manual_notes:
            guidance.append(f"\n## Guidance\n{state.manual_notes}")
        if request.rejected:
            lines = "\n".join(f"- {r.description}: {r.reason}" for r in request.rejected)
            guidance.append(f"\n## Previously rejected, do not repeat\n{lines}")
        if request.skipped_action:
            guidance.append(f"\n## Skipped by the user, do not repeat\n- {request.skipped_action}")

        return TURN_PROMPT.format(
            actor_name=snapshot.actor.name,
            actions_remaining=state.actions_remaining,
            current_map=state.current_map,
            conditions=_format_conditions(snapshot.actor.conditions),
            actions_taken=", ".join(state.actions_taken) or "none",
            abilities=abilities,
            enemies=_format_combatants(snapshot.enemies),
            allies=_format_combatants(snapshot.allies),
            guidance="".join(guidance),
        )


__all__ = [
    "SYSTEM_PROMPT",
    "TURN_PROMPT",
    "TacticalPromptBuilder",
]
