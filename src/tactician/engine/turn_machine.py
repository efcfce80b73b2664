"""Turn state machine for AI-assisted combat turns.

This module drives one combatant's turn through its phases: computing
the actions available from condition data, running bounded suggestion
cycles (prompt, model call, parse, resolve, arbitrate, validate), and
applying the user's confirm/skip/end decisions to persisted turn state.

Every mutation re-reads turn state from the store and re-checks that the
combatant still holds the encounter's active turn. A cycle that finishes
after the turn has moved on is discarded and the state cleared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from tactician.core.config import Settings, get_settings
from tactician.core.constants import (
    AGILE_TRAIT,
    ATTACK_TRAIT,
    MAP_SECOND_ATTACK,
    MAP_THIRD_ATTACK,
    MAP_VALUES,
    MAX_ACTIONS_PER_TURN,
)
from tactician.core.exceptions import (
    AIControlError,
    CostOverrunError,
    PrerequisiteError,
    StaleTurnError,
    TransportError,
    TurnManagementError,
    UnparseableReplyError,
)
from tactician.core.logging import bind_context, get_logger, unbind_context
from tactician.engine.arbiter import arbitrate_cost, check_affordable
from tactician.engine.catalog import build_catalog_from_snapshot
from tactician.engine.costs import format_for_display
from tactician.engine.parser import extract_target_id, parse_suggestion, target_name
from tactician.engine.prerequisites import (
    PrerequisiteContext,
    find_leading_prerequisite,
    validate_prerequisites,
)
from tactician.engine.protocols import (
    ContextProvider,
    EncounterView,
    LLMTransport,
    PromptBuilder,
    SuggestionRequest,
    TurnStateStore,
)
from tactician.engine.resolver import (
    DEFAULT_COMPOSITE_ACTIONS,
    ActionResolver,
    CompositeAction,
    ItemLookup,
)
from tactician.models import (
    ConditionDelta,
    ContextSnapshot,
    ParsedSuggestion,
    RejectedSuggestion,
    ResolutionResult,
    StrikeRecord,
    Suggestion,
    TurnPhase,
    TurnState,
    condition_value,
)


logger = get_logger(__name__)


# =============================================================================
# Cycle Status
# =============================================================================


class CycleStatus(StrEnum):
    """Outcome of one suggestion cycle."""

    SUGGESTED = "suggested"
    """A validated suggestion is waiting for the user."""

    ZERO_ACTIONS = "zero_actions"
    """Conditions removed every action; no model call was made."""

    TURN_COMPLETE = "turn_complete"
    """No actions remain this turn."""

    FAILED = "failed"
    """The model call failed or its reply could not be parsed."""

    COST_OVERRUN = "cost_overrun"
    """The suggestion needs more actions than remain."""

    STALE = "stale"
    """The turn moved on while the cycle was running."""

    RETRIES_EXHAUSTED = "retries_exhausted"
    """Every attempt was rejected by a prerequisite or passive check."""


@dataclass
class CycleResult:
    """Result of one suggestion cycle.

    Attributes:
        status: The cycle status.
        combatant_id: Combatant the cycle ran for.
        suggestion: The validated suggestion for ``SUGGESTED``.
        state: Turn state after the cycle, when it still exists.
        delta: Condition reductions owed, for ``ZERO_ACTIONS`` and first
            snapshots.
        rejected: Suggestions withheld during the cycle.
        attempts: Model requests made.
        message: Human-readable status message.
        error: Error message for failure statuses.
    """

    status: CycleStatus
    combatant_id: str
    suggestion: Suggestion | None = None
    state: TurnState | None = None
    delta: ConditionDelta | None = None
    rejected: list[RejectedSuggestion] = field(default_factory=list)
    attempts: int = 0
    message: str = ""
    error: str = ""


@dataclass
class CycleCursor:
    """Book-keeping for a cycle in flight."""

    combatant_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attempt: int = 0


# =============================================================================
# Pure Helpers
# =============================================================================


def next_map(current: int, agile: bool) -> int:
    """Advance the tracked multiple attack penalty by one attack.

    ``0`` goes to 4 (agile) or 5; anything else goes to 8 (agile) or 10,
    never below the current value.

    Example:
        >>> next_map(0, agile=False), next_map(5, agile=False)
        (5, 10)
    """
    if current == 0:
        return MAP_SECOND_ATTACK[agile]
    return max(current, MAP_THIRD_ATTACK[agile])


def compute_starting_actions(
    snapshot: ContextSnapshot,
    base_actions: int = MAX_ACTIONS_PER_TURN,
) -> tuple[int, int, int, ConditionDelta]:
    """Actions available at turn start from stunned and slowed.

    Args:
        snapshot: First snapshot of the turn.
        base_actions: Actions before conditions apply.

    Returns:
        Tuple of (actions_remaining, stunned, slowed, delta).
    """
    stunned = condition_value(snapshot.actor.conditions, "stunned")
    slowed = condition_value(snapshot.actor.conditions, "slowed")
    lost = min(base_actions, max(stunned, slowed))
    delta = ConditionDelta(
        actions_lost=lost,
        stunned_reduction=min(stunned, MAX_ACTIONS_PER_TURN),
    )
    return max(0, base_actions - max(stunned, slowed)), stunned, slowed, delta


# =============================================================================
# Turn State Machine
# =============================================================================


class TurnStateMachine:
    """Drive AI-assisted turns for the combatants of one encounter.

    The machine owns the map of cycles in flight; a second cycle for a
    combatant whose previous cycle has not finished is refused.
    """

    def __init__(
        self,
        *,
        context_provider: ContextProvider,
        prompt_builder: PromptBuilder,
        transport: LLMTransport,
        encounter: EncounterView,
        store: TurnStateStore,
        settings: Settings | None = None,
        composite_actions: tuple[CompositeAction, ...] = DEFAULT_COMPOSITE_ACTIONS,
        item_lookup: ItemLookup | None = None,
    ) -> None:
        """Initialize the machine.

        Args:
            context_provider: Source of context snapshots.
            prompt_builder: Renders prompts.
            transport: Sends prompts to the model.
            encounter: Reports the active turn.
            store: Persists turn state.
            settings: Application settings (defaults to ``get_settings()``).
            composite_actions: Composite named actions for the resolver.
            item_lookup: Check that a matched item still exists on the
                actor; passed through to the resolver.
        """
        self._context_provider = context_provider
        self._prompt_builder = prompt_builder
        self._transport = transport
        self._encounter = encounter
        self._store = store
        self._settings = settings or get_settings()
        self._composite_actions = composite_actions
        self._item_lookup = item_lookup
        self._cursors: dict[str, CycleCursor] = {}

    @property
    def cycles_in_flight(self) -> dict[str, CycleCursor]:
        """Copy of the cursors for cycles that have not finished."""
        return dict(self._cursors)

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _is_active(self, combatant_id: str, round_number: int | None = None) -> bool:
        active = self._encounter.active_turn()
        if active is None or active.combatant_id != combatant_id:
            return False
        return round_number is None or active.round == round_number

    async def _load(self, combatant_id: str) -> TurnState:
        """Re-fetch turn state and confirm the turn is still current.

        Raises:
            TurnManagementError: If no turn state exists.
            StaleTurnError: If the turn has moved on; the state is cleared.
        """
        state = await self._store.get(combatant_id)
        if state is None:
            raise TurnManagementError("No turn in progress", combatant_id=combatant_id)
        if not self._is_active(combatant_id, state.round):
            await self._store.delete(combatant_id)
            logger.info("Discarding stale turn state", round=state.round)
            raise StaleTurnError(
                "Combatant's turn is no longer active",
                combatant_id=combatant_id,
                details={"round": state.round},
            )
        return state

    async def _load_pending(self, combatant_id: str) -> TurnState:
        """Load turn state that has a suggestion awaiting a decision.

        Raises:
            TurnManagementError: If no suggestion is pending.
        """
        state = await self._load(combatant_id)
        if state.phase != TurnPhase.SUGGESTION_PENDING:
            raise TurnManagementError(
                "No suggestion is awaiting a decision",
                combatant_id=combatant_id,
                details={"phase": str(state.phase)},
            )
        return state

    # -------------------------------------------------------------------------
    # Turn lifecycle
    # -------------------------------------------------------------------------

    async def begin_turn(self, combatant_id: str) -> TurnState:
        """Accept AI control for the active combatant's turn.

        Returns:
            Fresh turn state awaiting its first snapshot.

        Raises:
            StaleTurnError: If the combatant does not hold the active turn.
        """
        active = self._encounter.active_turn()
        if active is None or active.combatant_id != combatant_id:
            raise StaleTurnError("Combatant does not hold the active turn", combatant_id=combatant_id)

        state = TurnState(
            combatant_id=combatant_id,
            round=active.round,
            actions_remaining=self._settings.engine.base_actions,
        )
        await self._store.put(state)
        logger.info("Turn started", combatant_id=combatant_id, round=active.round)
        return state

    async def get_state(self, combatant_id: str) -> TurnState | None:
        """Read the stored turn state without guarding."""
        return await self._store.get(combatant_id)

    async def end_turn(self, combatant_id: str) -> None:
        """End the turn at the user's request and destroy its state."""
        await self._store.delete(combatant_id)
        logger.info("Turn ended", combatant_id=combatant_id)

    async def clear(self, combatant_id: str) -> None:
        """Destroy turn state without ending anything else."""
        await self._store.delete(combatant_id)
        logger.debug("Turn state cleared", combatant_id=combatant_id)

    # -------------------------------------------------------------------------
    # Suggestion cycle
    # -------------------------------------------------------------------------

    async def request_suggestion(self, combatant_id: str) -> CycleResult:
        """Run one bounded suggestion cycle.

        Args:
            combatant_id: Combatant whose turn it is.

        Returns:
            The cycle result; failures are reported through its status.

        Raises:
            TurnManagementError: If a cycle for this combatant is already
                running, or no turn was started.
        """
        if combatant_id in self._cursors:
            raise TurnManagementError(
                "A suggestion cycle is already running",
                combatant_id=combatant_id,
            )

        cursor = CycleCursor(combatant_id=combatant_id)
        self._cursors[combatant_id] = cursor
        bind_context(combatant_id=combatant_id)
        try:
            return await self._run_cycle(cursor)
        finally:
            self._cursors.pop(combatant_id, None)
            unbind_context("combatant_id")

    async def _run_cycle(self, cursor: CycleCursor) -> CycleResult:
        combatant_id = cursor.combatant_id
        rejected: list[RejectedSuggestion] = []
        try:
            state = await self._load(combatant_id)
            snapshot = await self._context_provider.get_snapshot(combatant_id)
            state = await self._load(combatant_id)

            delta: ConditionDelta | None = None
            if state.phase in (TurnPhase.AWAITING_FIRST_SNAPSHOT, TurnPhase.ZERO_ACTION_START):
                state, delta = await self._apply_first_snapshot(state, snapshot)
                if state.actions_remaining == 0:
                    return CycleResult(
                        status=CycleStatus.ZERO_ACTIONS,
                        combatant_id=combatant_id,
                        state=state,
                        delta=delta,
                        message="No actions available this turn",
                    )
            elif state.actions_remaining == 0 or state.phase == TurnPhase.TURN_COMPLETE:
                return CycleResult(
                    status=CycleStatus.TURN_COMPLETE,
                    combatant_id=combatant_id,
                    state=state,
                    message="No actions remain this turn",
                )

            resolver = ActionResolver(
                build_catalog_from_snapshot(snapshot),
                composite_actions=self._composite_actions,
                item_lookup=self._item_lookup,
            )
            max_attempts = self._settings.engine.max_suggestion_attempts

            for attempt in range(1, max_attempts + 1):
                cursor.attempt = attempt
                request = SuggestionRequest(
                    rejected=tuple(rejected),
                    skipped_action=state.skipped_action,
                    attempt=attempt,
                )
                prompt = self._prompt_builder.build(snapshot, state, request)
                reply = await self._send(prompt)
                state = await self._load(combatant_id)

                parsed = parse_suggestion(reply)
                if parsed is None:
                    preview_chars = self._settings.engine.reply_preview_chars
                    raise UnparseableReplyError(
                        "Reply has no recognisable action and target",
                        reply_preview=reply[:preview_chars],
                    )

                resolution = resolver.resolve(parsed.description)
                try:
                    self._screen(parsed, resolution, snapshot, state)
                except PrerequisiteError as exc:
                    rejected.append(RejectedSuggestion(description=parsed.description, reason=exc.message))
                    continue

                cost = arbitrate_cost(resolution, parsed.cost)
                required = check_affordable(cost, state.actions_remaining, combatant_id=combatant_id)
                suggestion = Suggestion(
                    parsed=parsed,
                    resolution=resolution,
                    cost=cost,
                    display_cost=format_for_display(cost),
                    minimum_cost=required,
                    attempts=attempt,
                )

                state.phase = TurnPhase.SUGGESTION_PENDING
                state.skipped_action = None
                state.rejected_suggestions = rejected
                await self._store.put(state)
                logger.info(
                    "Suggestion ready",
                    action=suggestion.action_name,
                    cost=suggestion.display_cost,
                    cost_source=resolution.cost_source,
                    attempts=attempt,
                )
                return CycleResult(
                    status=CycleStatus.SUGGESTED,
                    combatant_id=combatant_id,
                    suggestion=suggestion,
                    state=state,
                    delta=delta,
                    rejected=rejected,
                    attempts=attempt,
                    message=f"{suggestion.action_name} {suggestion.display_cost}",
                )

            state.phase = TurnPhase.ACTIVE
            state.skipped_action = None
            state.rejected_suggestions = rejected
            await self._store.put(state)
            elapsed = (datetime.now(timezone.utc) - cursor.started_at).total_seconds()
            logger.warning(
                "Suggestion attempts exhausted",
                attempts=max_attempts,
                elapsed_seconds=round(elapsed, 2),
            )
            return CycleResult(
                status=CycleStatus.RETRIES_EXHAUSTED,
                combatant_id=combatant_id,
                state=state,
                delta=delta,
                rejected=rejected,
                attempts=max_attempts,
                message="Every suggestion was rejected",
            )

        except StaleTurnError as exc:
            return CycleResult(
                status=CycleStatus.STALE,
                combatant_id=combatant_id,
                rejected=rejected,
                attempts=cursor.attempt,
                error=str(exc),
            )
        except CostOverrunError as exc:
            logger.info("Suggestion exceeds remaining actions", **exc.details)
            state = await self._store.get(combatant_id)
            if state is not None and state.skipped_action is not None:
                state.skipped_action = None
                await self._store.put(state)
            return CycleResult(
                status=CycleStatus.COST_OVERRUN,
                combatant_id=combatant_id,
                state=state,
                rejected=rejected,
                attempts=cursor.attempt,
                error=str(exc),
            )
        except AIControlError as exc:
            logger.error("Suggestion cycle failed", error=str(exc))
            await self._store.delete(combatant_id)
            return CycleResult(
                status=CycleStatus.FAILED,
                combatant_id=combatant_id,
                rejected=rejected,
                attempts=cursor.attempt,
                error=str(exc),
            )

    async def _apply_first_snapshot(
        self,
        state: TurnState,
        snapshot: ContextSnapshot,
    ) -> tuple[TurnState, ConditionDelta]:
        remaining, stunned, slowed, delta = compute_starting_actions(
            snapshot, self._settings.engine.base_actions
        )
        state.actions_remaining = remaining
        state.stunned_at_start = stunned
        state.slowed_at_start = slowed
        state.phase = TurnPhase.ZERO_ACTION_START if remaining == 0 else TurnPhase.ACTIVE
        await self._store.put(state)
        logger.info(
            "Turn actions computed",
            actions_remaining=remaining,
            stunned=stunned,
            slowed=slowed,
        )
        return state, delta

    async def _send(self, prompt: str) -> str:
        """Call the transport; any failure becomes a ``TransportError``."""
        try:
            return await self._transport.send(prompt)
        except AIControlError:
            raise
        except Exception as exc:
            raise TransportError(f"Model request failed: {exc}") from exc

    def _screen(
        self,
        parsed: ParsedSuggestion,
        resolution: ResolutionResult,
        snapshot: ContextSnapshot,
        state: TurnState,
    ) -> None:
        """Reject passive abilities and unmet prerequisites.

        Raises:
            PrerequisiteError: If the suggestion must not be shown.
        """
        primary = resolution.primary
        if primary is not None and primary.entry.is_passive:
            raise PrerequisiteError(
                f"{primary.entry.name} is a passive ability and cannot be activated",
                action_name=primary.entry.name,
            )

        if primary is not None and not primary.composite:
            action_name = primary.entry.name
        else:
            rule = find_leading_prerequisite(parsed.description)
            action_name = rule.name if rule else parsed.description

        target = target_name(parsed.target)
        target_id = extract_target_id(parsed.target)
        if target_id:
            combatant = snapshot.find_combatant(target_id)
            if combatant is not None:
                target = combatant.name

        context = PrerequisiteContext.from_snapshot(snapshot, state, target)
        result = validate_prerequisites(action_name, context)
        if not result.passed:
            raise PrerequisiteError(
                result.reason or f"{action_name} prerequisites not met",
                action_name=action_name,
                target=context.target,
            )

    # -------------------------------------------------------------------------
    # User decisions
    # -------------------------------------------------------------------------

    async def confirm(self, combatant_id: str, suggestion: Suggestion) -> TurnState:
        """Apply an accepted suggestion.

        Deducts the minimum cost, records the action, advances MAP for
        attacks and clears manual notes. When no actions remain the turn
        completes and its state is destroyed.

        Returns:
            The turn state after the action.

        Raises:
            TurnManagementError: If no suggestion is pending.
            StaleTurnError: If the turn moved on; the state is cleared.
            CostOverrunError: If the cost no longer fits.
        """
        state = await self._load_pending(combatant_id)
        required = check_affordable(suggestion.cost, state.actions_remaining, combatant_id=combatant_id)

        state.actions_remaining = max(0, state.actions_remaining - required)
        state.actions_taken = [*state.actions_taken, suggestion.action_name]
        if ATTACK_TRAIT in suggestion.traits:
            agile = AGILE_TRAIT in suggestion.traits
            for _ in range(suggestion.resolution.attack_count):
                state.current_map = next_map(state.current_map, agile)
        state.manual_notes = ""
        state.rejected_suggestions = []

        if state.actions_remaining == 0:
            state.phase = TurnPhase.TURN_COMPLETE
            await self._store.delete(combatant_id)
        else:
            state.phase = TurnPhase.ACTIVE
            await self._store.put(state)

        logger.info(
            "Action confirmed",
            combatant_id=combatant_id,
            action=suggestion.action_name,
            actions_remaining=state.actions_remaining,
            current_map=state.current_map,
        )
        return state

    async def skip(self, combatant_id: str, suggestion: Suggestion) -> TurnState:
        """Skip a suggestion; the next request is told not to repeat it."""
        state = await self._load_pending(combatant_id)
        state.skipped_action = suggestion.parsed.description
        state.phase = TurnPhase.ACTIVE
        await self._store.put(state)
        logger.info("Suggestion skipped", combatant_id=combatant_id, action=suggestion.action_name)
        return state

    # -------------------------------------------------------------------------
    # External patches
    # -------------------------------------------------------------------------

    async def override_map(self, combatant_id: str, value: int) -> TurnState:
        """Overwrite the tracked MAP.

        Raises:
            TurnManagementError: If the value is not a tracked MAP value.
        """
        if value not in MAP_VALUES:
            raise TurnManagementError(
                f"MAP must be one of {sorted(MAP_VALUES)}",
                combatant_id=combatant_id,
                details={"value": value},
            )
        state = await self._load(combatant_id)
        state.current_map = value
        await self._store.put(state)
        logger.debug("MAP overridden", combatant_id=combatant_id, current_map=value)
        return state

    async def set_manual_notes(self, combatant_id: str, notes: str) -> TurnState:
        """Set guidance passed to the prompt builder until the next confirm."""
        state = await self._load(combatant_id)
        state.manual_notes = notes.strip()
        await self._store.put(state)
        return state

    async def record_strike_hit(self, combatant_id: str, target: str, strike_name: str) -> TurnState:
        """Record a strike that hit, for rules such as Rend."""
        state = await self._load(combatant_id)
        state.successful_strikes_this_round = [
            *state.successful_strikes_this_round,
            StrikeRecord(target=target, strike_name=strike_name),
        ]
        await self._store.put(state)
        return state


__all__ = [
    "CycleStatus",
    "CycleResult",
    "CycleCursor",
    "next_map",
    "compute_starting_actions",
    "TurnStateMachine",
]
