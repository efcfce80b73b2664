"""Cost arbitration between catalog data and the LLM's claim.

The catalog is authoritative for single concrete costs. The model is
trusted where it makes a deliberate choice: the total of a combo, or how
many actions to spend on a variable-cost ability.
"""

from __future__ import annotations

from tactician.core.exceptions import CostOverrunError
from tactician.core.logging import get_logger
from tactician.engine.costs import format_for_display, is_concrete, minimum_action_cost
from tactician.models import CostKind, CostSource, CostValue, ResolutionResult


logger = get_logger(__name__)


def _valid_llm_cost(cost: CostValue | None) -> bool:
    return is_concrete(cost)


def arbitrate_cost(resolution: ResolutionResult, llm_cost: CostValue | None) -> CostValue:
    """Pick the single authoritative cost for a suggestion.

    Rules, first applicable wins:

    1. Combo: the LLM's cost if valid, else the primary's concrete cost,
       else one action.
    2. Catalog range ``(m, n)``: the LLM's action count if it is 1-3, else
       ``Actions(m)``.
    3. Concrete, catalog-sourced cost: the catalog's cost.
    4. Valid LLM cost: the LLM's cost.
    5. One action, with a warning.

    Args:
        resolution: Resolver output for the suggestion.
        llm_cost: Cost the model claimed, if it parsed.

    Returns:
        A concrete cost; never a range and never None.
    """
    catalog_cost = resolution.primary_cost

    if resolution.is_combo:
        if _valid_llm_cost(llm_cost):
            return llm_cost
        if is_concrete(catalog_cost):
            return catalog_cost
        return CostValue.of(1)

    if catalog_cost is not None and catalog_cost.is_range:
        if llm_cost is not None and llm_cost.kind == CostKind.ACTIONS:
            return llm_cost
        return CostValue.of(catalog_cost.actions)

    if is_concrete(catalog_cost) and resolution.cost_source == CostSource.CATALOG:
        return catalog_cost

    if _valid_llm_cost(llm_cost):
        return llm_cost

    logger.warning(
        "No usable cost, defaulting to one action",
        catalog_cost=format_for_display(catalog_cost),
        llm_cost=format_for_display(llm_cost),
    )
    return CostValue.of(1)


def check_affordable(
    cost: CostValue,
    actions_remaining: int,
    *,
    combatant_id: str | None = None,
) -> int:
    """Confirm a cost fits within the actions left.

    Args:
        cost: Arbitrated cost.
        actions_remaining: Actions the combatant has left.
        combatant_id: Included in the error details.

    Returns:
        The minimum number of actions the cost consumes.

    Raises:
        CostOverrunError: If the cost needs more actions than remain.
    """
    required = minimum_action_cost(cost)
    if required > actions_remaining:
        raise CostOverrunError(
            f"{format_for_display(cost)} needs {required} actions, {actions_remaining} remaining",
            required=required,
            remaining=actions_remaining,
            combatant_id=combatant_id,
        )
    return required


__all__ = [
    "arbitrate_cost",
    "check_affordable",
]
