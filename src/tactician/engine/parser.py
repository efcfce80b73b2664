"""Suggestion text parsing.

Extracts ``ACTION``, ``TARGET``, ``COST``, ``Rationale`` and ``NARRATIVE``
from a free-text LLM reply.

Two phases run in order:

1. Block parse: labelled sections in any order, each ending at the next
   recognised label or the end of the text. Succeeds only with an action,
   a target and a valid cost.
2. Line fallback: each line is scanned for a label on its own. An action
   and a target are enough; a missing cost defaults to one action.

Both phases fail when no action or target can be identified and
``parse_suggestion`` returns None.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tactician.core.logging import get_logger
from tactician.engine.costs import parse_cost_token
from tactician.models import CostValue, ParsedSuggestion


logger = get_logger(__name__)


# =============================================================================
# Patterns
# =============================================================================

_LINE_START_LABEL_RE = re.compile(
    r"^[ \t>*_#-]*(action|target|cost|rationale|narrative)[ \t]*[*_]*[ \t]*:[*_]*",
    re.IGNORECASE | re.MULTILINE,
)
_INLINE_LABEL_RE = re.compile(
    r"(?<=\s)[*_]*(ACTION|TARGET|COST|Rationale|RATIONALE|NARRATIVE)[*_]*[ \t]*:[*_]*"
)
_LINE_RE = re.compile(
    r"^[ \t>*_#-]*(action|target|cost|rationale|narrative)[ \t]*[*_]*[ \t]*:[*_]*[ \t]*(.*)$",
    re.IGNORECASE,
)
_BLOCK_COST_RE = re.compile(r"^\s*(\d|R|F)\b", re.IGNORECASE)
_LEADING_VERB_RE = re.compile(r"^(?:(?:Cast|Activate|Use)\s+|Strike\s*:\s*)", re.IGNORECASE)
_TARGET_ID_RE = re.compile(r"\[\s*ID\s*:\s*([^\]\s]+)\s*\]", re.IGNORECASE)

_QUOTES = "\"'`“”‘’"
_EDGE_PUNCTUATION = ".,;:!"
_NO_TARGET = frozenset({"none", "n/a", "na", "-", "no target"})


@dataclass(frozen=True)
class _Section:
    label: str
    start: int
    end: int


# =============================================================================
# Cleaning Helpers
# =============================================================================


def strip_decoration(text: str) -> str:
    """Remove surrounding whitespace, quotes, markdown emphasis and punctuation."""
    previous = None
    value = text.strip()
    while value != previous:
        previous = value
        value = value.strip().strip("*_").strip()
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] in _QUOTES:
            value = value[1:-1]
        value = value.rstrip(_EDGE_PUNCTUATION).lstrip(_EDGE_PUNCTUATION)
    return value.strip()


def clean_description(text: str) -> str:
    """Clean an action description for catalog matching.

    Strips decoration and a leading ``Cast``, ``Activate``, ``Use`` or
    ``Strike:``.

    Example:
        >>> clean_description('"Cast Fireball."')
        'Fireball'
    """
    value = strip_decoration(text)
    stripped = _LEADING_VERB_RE.sub("", value, count=1)
    return strip_decoration(stripped) if stripped else value


def clean_target(text: str | None) -> str | None:
    """Clean a target field; ``None``/``N/A`` style values become None."""
    if text is None:
        return None
    value = strip_decoration(text)
    if not value or value.lower() in _NO_TARGET:
        return None
    return value


def extract_target_id(target: str | None) -> str | None:
    """Return the ``[ID: ...]`` token carried by a target, if any.

    Example:
        >>> extract_target_id("Goblin [ID: tok1]")
        'tok1'
    """
    if not target:
        return None
    match = _TARGET_ID_RE.search(target)
    return match.group(1) if match else None


def target_name(target: str | None) -> str | None:
    """Target text without its ``[ID: ...]`` token."""
    if not target:
        return None
    name = _TARGET_ID_RE.sub("", target).strip()
    return name or None


# =============================================================================
# Phase 1: Block Parse
# =============================================================================


def _find_sections(text: str) -> list[_Section]:
    found = [
        _Section(m.group(1).upper(), m.start(), m.end())
        for regex in (_LINE_START_LABEL_RE, _INLINE_LABEL_RE)
        for m in regex.finditer(text)
    ]
    found.sort(key=lambda s: (s.start, -s.end))

    sections: list[_Section] = []
    for section in found:
        # A line-start match and an inline match can describe the same label
        if sections and section.start < sections[-1].end:
            continue
        sections.append(section)
    return sections


def parse_blocks(text: str) -> dict[str, str]:
    """Split a reply into labelled sections.

    Returns:
        Mapping of upper-case label to section text. When a label repeats,
        the first occurrence wins.
    """
    sections = _find_sections(text)
    values: dict[str, str] = {}
    for index, section in enumerate(sections):
        stop = sections[index + 1].start if index + 1 < len(sections) else len(text)
        if section.label not in values:
            values[section.label] = text[section.end:stop].strip()
    return values


def _block_cost(raw: str | None) -> CostValue | None:
    if raw is None or not _BLOCK_COST_RE.match(raw):
        return None
    return parse_cost_token(raw)


def _from_fields(fields: dict[str, str], cost: CostValue) -> ParsedSuggestion | None:
    description = clean_description(fields.get("ACTION", ""))
    if not description:
        return None
    rationale = fields.get("RATIONALE")
    narrative = fields.get("NARRATIVE")
    return ParsedSuggestion(
        description=description,
        target=clean_target(fields.get("TARGET")),
        cost=cost,
        rationale=strip_decoration(rationale) or None if rationale else None,
        narrative=strip_decoration(narrative) or None if narrative else None,
    )


def _parse_block_phase(text: str) -> ParsedSuggestion | None:
    fields = parse_blocks(text)
    if not all(label in fields for label in ("ACTION", "TARGET", "COST")):
        return None
    cost = _block_cost(fields["COST"])
    if cost is None:
        logger.debug("Block parse rejected cost", cost=fields["COST"])
        return None
    return _from_fields(fields, cost)


# =============================================================================
# Phase 2: Line Fallback
# =============================================================================


def parse_lines(text: str) -> dict[str, str]:
    """Scan each line independently for a label.

    Returns:
        Mapping of upper-case label to the rest of its line; first wins.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        match = _LINE_RE.match(line)
        if match:
            values.setdefault(match.group(1).upper(), match.group(2).strip())
    return values


def _parse_line_phase(text: str) -> ParsedSuggestion | None:
    fields = parse_lines(text)
    if "ACTION" not in fields or "TARGET" not in fields:
        return None
    cost = parse_cost_token(fields.get("COST"))
    if cost is None:
        logger.info("No usable cost in reply, defaulting to one action")
        cost = CostValue.of(1)
    return _from_fields(fields, cost)


# =============================================================================
# Entry Point
# =============================================================================


def parse_suggestion(text: str | None) -> ParsedSuggestion | None:
    """Parse an LLM reply into a suggestion.

    Args:
        text: Raw reply text.

    Returns:
        The parsed suggestion, or None when neither phase can identify an
        action and a target.
    """
    if not text or not text.strip():
        return None

    parsed = _parse_block_phase(text)
    if parsed is not None:
        return parsed

    parsed = _parse_line_phase(text)
    if parsed is None:
        logger.warning("Reply has no identifiable action/target", preview=text[:80])
    return parsed


__all__ = [
    "strip_decoration",
    "clean_description",
    "clean_target",
    "extract_target_id",
    "target_name",
    "parse_blocks",
    "parse_lines",
    "parse_suggestion",
]
