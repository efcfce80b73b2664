"""Prerequisite rules for actions that depend on what already happened.

Rules are registered by action name with the ``prerequisite`` decorator.
Each rule is a pure predicate over a frozen ``PrerequisiteContext`` built
from the context snapshot and turn state; it never mutates either.

Rules:
    Rend: two hits this round with the same strike on the target
    Grab: the last strike hit the target with a grab rider, or the target
        is already held
    Trip: the target is not already prone
    Shove: the target is not grabbed or restrained
    Stand: the actor is prone
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from tactician.core.logging import get_logger
from tactician.models import (
    ConditionState,
    ContextSnapshot,
    EventKind,
    RecentEvent,
    StrikeRecord,
    TurnState,
    has_condition,
)


logger = get_logger(__name__)

HELD_CONDITIONS = ("grabbed", "restrained")


# =============================================================================
# Rule Inputs and Outputs
# =============================================================================


@dataclass(frozen=True)
class PrerequisiteContext:
    """Read-only inputs for a prerequisite rule.

    Attributes:
        actor: Acting creature's name.
        target: Resolved target name, if any.
        recent_events: Structured recent-event log, oldest first.
        target_conditions: Conditions on the target.
        actor_conditions: Conditions on the actor.
        successful_strikes: Hits recorded in turn state this round.
        round: Current encounter round, if known.
    """

    actor: str
    target: str | None = None
    recent_events: tuple[RecentEvent, ...] = ()
    target_conditions: tuple[ConditionState, ...] = ()
    actor_conditions: tuple[ConditionState, ...] = ()
    successful_strikes: tuple[StrikeRecord, ...] = ()
    round: int | None = None

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ContextSnapshot,
        state: TurnState,
        target: str | None,
    ) -> PrerequisiteContext:
        """Build a context for a target named in a suggestion.

        Args:
            snapshot: Context snapshot for the cycle.
            state: Current turn state.
            target: Target name or id from the suggestion.
        """
        combatant = snapshot.find_combatant(target)
        return cls(
            actor=snapshot.actor.name,
            target=combatant.name if combatant else target,
            recent_events=tuple(snapshot.recent_events),
            target_conditions=tuple(combatant.conditions) if combatant else (),
            actor_conditions=tuple(snapshot.actor.conditions),
            successful_strikes=tuple(state.successful_strikes_this_round),
            round=state.round,
        )

    def is_target(self, name: str | None) -> bool:
        """Case-insensitive comparison against the target's name."""
        if self.target is None or name is None:
            return False
        return name.strip().lower() == self.target.strip().lower()

    def is_actor(self, name: str | None) -> bool:
        return name is not None and name.strip().lower() == self.actor.strip().lower()

    def actor_events(self) -> list[RecentEvent]:
        """Events the actor performed, oldest first."""
        return [event for event in self.recent_events if self.is_actor(event.actor)]


@dataclass(frozen=True)
class PrerequisiteResult:
    """Outcome of a prerequisite check."""

    passed: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> PrerequisiteResult:
        return cls(passed=True)

    @classmethod
    def fail(cls, reason: str) -> PrerequisiteResult:
        return cls(passed=False, reason=reason)


PrerequisiteCheck = Callable[[PrerequisiteContext], PrerequisiteResult]
R = TypeVar("R", bound=PrerequisiteCheck)


# =============================================================================
# Rule Registry
# =============================================================================


@dataclass
class PrerequisiteRule:
    """A registered prerequisite rule.

    Attributes:
        name: Action name as players write it.
        description: Short statement of what the rule requires.
        check: The predicate.
    """

    name: str
    description: str
    check: PrerequisiteCheck = field(repr=False)


_prerequisite_registry: dict[str, PrerequisiteRule] = {}


def canonical_action_name(name: str) -> str:
    """Registry key for an action name."""
    return " ".join(name.split()).casefold()


def prerequisite(name: str, *, description: str = "") -> Callable[[R], R]:
    """Decorator to register a prerequisite rule for an action.

    Args:
        name: Action name the rule applies to.
        description: What the rule requires.

    Returns:
        Decorated function.
    """
    def decorator(func: R) -> R:
        rule = PrerequisiteRule(
            name=name,
            description=description or (func.__doc__ or "").strip().partition("\n")[0],
            check=func,
        )
        _prerequisite_registry[canonical_action_name(name)] = rule
        return func

    return decorator


def get_prerequisite(name: str) -> PrerequisiteRule | None:
    """Get the rule for an action name, if one is registered."""
    return _prerequisite_registry.get(canonical_action_name(name))


def get_all_prerequisites() -> list[PrerequisiteRule]:
    """Get all registered rules."""
    return list(_prerequisite_registry.values())


def find_leading_prerequisite(text: str) -> PrerequisiteRule | None:
    """Find a rule whose action name opens free text like ``Trip the ogre``."""
    words = canonical_action_name(text)
    for key in sorted(_prerequisite_registry, key=len, reverse=True):
        if words == key or words.startswith(f"{key} "):
            return _prerequisite_registry[key]
    return None


# =============================================================================
# Event Helpers
# =============================================================================


def _hits_on_target(context: PrerequisiteContext) -> Counter[str]:
    """Successful strikes on the target this round, counted by strike name.

    Turn-state records and the event log may describe the same hits, so
    the larger count per strike name is used rather than the sum.
    """
    from_state = Counter(
        record.strike_name.lower()
        for record in context.successful_strikes
        if context.is_target(record.target)
    )
    from_events = Counter(
        event.action_name.lower()
        for event in context.actor_events()
        if event.kind == EventKind.STRIKE
        and event.action_name
        and event.outcome is not None
        and event.outcome.is_success
        and context.is_target(event.target)
        and (context.round is None or event.round is None or event.round == context.round)
    )
    names = set(from_state) | set(from_events)
    return Counter({name: max(from_state[name], from_events[name]) for name in names})


# =============================================================================
# Default Rules
# =============================================================================


@prerequisite("Rend", description="Two hits with the same strike on the target this round")
def rend(context: PrerequisiteContext) -> PrerequisiteResult:
    """Rend needs two hits on the target with the same strike this round."""
    if context.target is None:
        return PrerequisiteResult.fail("Rend needs a target")
    hits = _hits_on_target(context)
    if any(count >= 2 for count in hits.values()):
        return PrerequisiteResult.ok()
    return PrerequisiteResult.fail(
        f"Rend requires two successful strikes with the same attack against {context.target} this round"
    )


@prerequisite("Grab", description="Last strike hit the target with a grab rider, or target is held")
def grab(context: PrerequisiteContext) -> PrerequisiteResult:
    """Grab follows a hit that carries the grab rider."""
    if context.target is None:
        return PrerequisiteResult.fail("Grab needs a target")
    if has_condition(context.target_conditions, *HELD_CONDITIONS):
        return PrerequisiteResult.ok()

    events = context.actor_events()
    if events:
        last = events[-1]
        if (
            last.kind == EventKind.STRIKE
            and last.outcome is not None
            and last.outcome.is_success
            and context.is_target(last.target)
            and "grab" in {rider.lower() for rider in last.riders}
        ):
            return PrerequisiteResult.ok()
    return PrerequisiteResult.fail(
        f"Grab requires the previous strike to hit {context.target} with a grab rider"
    )


@prerequisite("Trip", description="Target is not already prone")
def trip(context: PrerequisiteContext) -> PrerequisiteResult:
    """Trip is wasted on a prone target."""
    if has_condition(context.target_conditions, "prone"):
        return PrerequisiteResult.fail(f"{context.target} is already prone")
    return PrerequisiteResult.ok()


@prerequisite("Shove", description="Target is not grabbed or restrained")
def shove(context: PrerequisiteContext) -> PrerequisiteResult:
    if has_condition(context.target_conditions, *HELD_CONDITIONS):
        return PrerequisiteResult.fail(
            f"{context.target} is held; shoving would release the hold"
        )
    return PrerequisiteResult.ok()


@prerequisite("Stand", description="Actor is prone")
def stand(context: PrerequisiteContext) -> PrerequisiteResult:
    if not has_condition(context.actor_conditions, "prone"):
        return PrerequisiteResult.fail(f"{context.actor} is not prone")
    return PrerequisiteResult.ok()


# =============================================================================
# Validation
# =============================================================================


def validate_prerequisites(action_name: str, context: PrerequisiteContext) -> PrerequisiteResult:
    """Check an action against its registered rule.

    Args:
        action_name: Primary action name of the suggestion.
        context: Rule inputs.

    Returns:
        A pass for actions without a rule, else the rule's result.
    """
    rule = get_prerequisite(action_name)
    if rule is None:
        return PrerequisiteResult.ok()

    result = rule.check(context)
    if not result.passed:
        logger.info(
            "Prerequisite failed",
            action=rule.name,
            target=context.target,
            reason=result.reason,
        )
    return result


__all__ = [
    "HELD_CONDITIONS",
    "PrerequisiteContext",
    "PrerequisiteResult",
    "PrerequisiteRule",
    "canonical_action_name",
    "prerequisite",
    "get_prerequisite",
    "get_all_prerequisites",
    "find_leading_prerequisite",
    "validate_prerequisites",
]
