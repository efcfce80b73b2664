"""Cost vocabulary: parsing, formatting and minimum cost of action costs.

Every function here is pure. Raw cost data arrives in several loosely
typed fields (an explicit action type, a time string, an action count and
free description HTML); ``parse_cost`` reads them in a fixed precedence
and returns None when nothing is recognisable.
"""

from __future__ import annotations

import re

from tactician.core.constants import MAX_ACTION_COST, MIN_ACTION_COST, UNAFFORDABLE_COST
from tactician.core.logging import get_logger
from tactician.models.cost import CostValue
from tactician.models.enums import CostKind


logger = get_logger(__name__)


# =============================================================================
# Patterns
# =============================================================================

_RANGE_RE = re.compile(
    r"^\s*([1-3])\s*(?:to|-|–)\s*([1-3])\s*(?:actions?)?\s*$",
    re.IGNORECASE,
)
_COUNT_RE = re.compile(r"^\s*([0-9])\s*(?:actions?)?\s*$", re.IGNORECASE)
_FREE_RE = re.compile(r"^\s*free(?:[\s-]*action)?\s*$", re.IGNORECASE)
_REACTION_RE = re.compile(r"^\s*reaction\s*$", re.IGNORECASE)

_GLYPH_RE = re.compile(
    r"<span[^>]*class=\"[^\"]*action-glyph[^\"]*\"[^>]*>\s*([1-3ADTRF])\s*</span>",
    re.IGNORECASE,
)
_BRACKET_RE = re.compile(
    r"\[(one-action|two-actions|three-actions|reaction|free-action)\]",
    re.IGNORECASE,
)
_ACTIVATE_RE = re.compile(
    r"Activate(?:</strong>)?[^<\n]{0,40}?\b(reaction|free action)\b",
    re.IGNORECASE,
)
_TRIGGER_RE = re.compile(
    r"(?:Frequency[\s\S]*?)?(?:<strong>\s*Trigger\s*</strong>|^\s*Trigger\b)",
    re.MULTILINE,
)

_TOKEN_RE = re.compile(
    r"^\s*(?:(\d+)|(R|reaction)|(F|free))\b(?:\s*(?:actions?))?",
    re.IGNORECASE,
)

_GLYPH_COSTS = {
    "1": 1, "a": 1,
    "2": 2, "d": 2,
    "3": 3, "t": 3,
}
_BRACKET_COSTS = {
    "one-action": 1,
    "two-actions": 2,
    "three-actions": 3,
}


# =============================================================================
# Field Parsers
# =============================================================================


def parse_action_type(action_type: str | None) -> CostValue | None:
    """Read an explicit action type.

    Args:
        action_type: Raw action type (``free``, ``reaction``, ``action``,
            ``passive``) or None.

    Returns:
        ``Free`` or ``Reaction`` when stated, else None.
    """
    if not action_type:
        return None
    normalized = action_type.strip().lower()
    if normalized == "free":
        return CostValue.free()
    if normalized == "reaction":
        return CostValue.reaction()
    return None


def parse_cost_string(raw: str) -> CostValue | None:
    """Read a textual time or action-count field.

    Recognises ``free``, ``free action``, ``reaction``, ``N``,
    ``N action(s)``, ``m to n actions`` and ``m-n``. Anything else
    (``1 minute``, ``10 minutes``, an empty string) returns None.
    """
    if _FREE_RE.match(raw):
        return CostValue.free()
    if _REACTION_RE.match(raw):
        return CostValue.reaction()

    match = _RANGE_RE.match(raw)
    if match:
        low, high = sorted((int(match.group(1)), int(match.group(2))))
        return CostValue.range(low, high)

    match = _COUNT_RE.match(raw)
    if match:
        return parse_cost_number(int(match.group(1)))
    return None


def parse_cost_number(value: int) -> CostValue | None:
    """Read a numeric action count: 0 is Free, 1-3 are actions."""
    if value == 0:
        return CostValue.free()
    if MIN_ACTION_COST <= value <= MAX_ACTION_COST:
        return CostValue.of(value)
    return None


def parse_cost_from_description(description_html: str | None) -> CostValue | None:
    """Infer a cost from description HTML.

    Checks, in order: an action glyph span, a bracketed glyph marker such
    as ``[two-actions]``, an ``Activate ... Reaction/Free Action`` line,
    then a ``Trigger`` entry (optionally preceded by ``Frequency``), which
    implies a reaction.
    """
    if not description_html:
        return None

    match = _GLYPH_RE.search(description_html)
    if match:
        glyph = match.group(1).lower()
        if glyph == "r":
            return CostValue.reaction()
        if glyph == "f":
            return CostValue.free()
        return CostValue.of(_GLYPH_COSTS[glyph])

    match = _BRACKET_RE.search(description_html)
    if match:
        marker = match.group(1).lower()
        if marker == "reaction":
            return CostValue.reaction()
        if marker == "free-action":
            return CostValue.free()
        return CostValue.of(_BRACKET_COSTS[marker])

    match = _ACTIVATE_RE.search(description_html)
    if match:
        if match.group(1).lower() == "reaction":
            return CostValue.reaction()
        return CostValue.free()

    if _TRIGGER_RE.search(description_html):
        return CostValue.reaction()
    return None


def parse_cost(
    raw_time: str | int | None,
    raw_actions: str | int | None,
    raw_description_html: str | None = None,
    raw_action_type: str | None = None,
) -> CostValue | None:
    """Parse a cost from the raw fields of an ability.

    Precedence: an explicit ``free``/``reaction`` action type wins; then
    string time/actions fields; then numeric fields; then the description
    fallback.

    Args:
        raw_time: Casting/activation time field.
        raw_actions: Action count field.
        raw_description_html: Description HTML for the regex fallback.
        raw_action_type: Explicit action type.

    Returns:
        The parsed cost, or None when nothing matches. Callers must not
        assume a default.
    """
    explicit = parse_action_type(raw_action_type)
    if explicit is not None:
        return explicit

    for raw in (raw_time, raw_actions):
        if isinstance(raw, str) and raw.strip():
            parsed = parse_cost_string(raw)
            if parsed is not None:
                return parsed

    for raw in (raw_time, raw_actions):
        if isinstance(raw, int) and not isinstance(raw, bool):
            parsed = parse_cost_number(raw)
            if parsed is not None:
                return parsed

    return parse_cost_from_description(raw_description_html)


def parse_cost_token(text: str | None) -> CostValue | None:
    """Parse the ``COST`` value of a suggestion reply.

    Accepts ``1``, ``2``, ``3``, ``R``, ``F`` (or the words ``reaction`` /
    ``free``), optionally followed by ``action(s)``. Numbers outside 1-3
    are rejected.
    """
    if not text:
        return None
    match = _TOKEN_RE.match(text)
    if not match:
        return None
    number, reaction, free = match.groups()
    if reaction:
        return CostValue.reaction()
    if free:
        return CostValue.free()
    value = int(number)
    if MIN_ACTION_COST <= value <= MAX_ACTION_COST:
        return CostValue.of(value)
    logger.debug("Rejected out-of-range cost token", token=text)
    return None


# =============================================================================
# Formatting & Arithmetic
# =============================================================================


def format_for_display(cost: CostValue | None) -> str:
    """Format a cost for chat cards.

    ``Free`` is ``(F)``, ``Reaction`` is ``(R)``, ``Actions(n)`` is
    ``(na)``, ``Range(m, n)`` is ``(m-na)``; anything else is ``(?)``.
    """
    if cost is None:
        return "(?)"
    if cost.kind == CostKind.FREE:
        return "(F)"
    if cost.kind == CostKind.REACTION:
        return "(R)"
    if cost.kind == CostKind.ACTIONS:
        return f"({cost.actions}a)"
    if cost.kind == CostKind.RANGE:
        return f"({cost.actions}-{cost.max_actions}a)"
    return "(?)"


def minimum_action_cost(cost: CostValue | None) -> int:
    """Smallest number of actions a cost consumes.

    Free and Reaction cost 0, ``Actions(n)`` costs n, a range costs its
    minimum, and None returns ``UNAFFORDABLE_COST`` so an undeterminable
    cost is never treated as affordable.
    """
    if cost is None:
        return UNAFFORDABLE_COST
    if cost.kind in (CostKind.FREE, CostKind.REACTION):
        return 0
    return cost.actions if cost.actions is not None else UNAFFORDABLE_COST


def is_concrete(cost: CostValue | None) -> bool:
    """Whether a cost is present and not a range."""
    return cost is not None and cost.is_concrete


__all__ = [
    "parse_action_type",
    "parse_cost_string",
    "parse_cost_number",
    "parse_cost_from_description",
    "parse_cost",
    "parse_cost_token",
    "format_for_display",
    "minimum_action_cost",
    "is_concrete",
]
