"""Action resolution: matching suggestion text against the ability catalog.

The resolver finds every word-bounded occurrence of every catalog name in
a cleaned description, resolves overlapping occurrences with a greedy,
deterministic priority order, annotates the text with reference tokens,
and picks the primary match whose cost and traits seed the result.

Composite named actions such as Flurry of Blows bypass generic matching
and resolve straight to the actor's best qualifying strike.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from tactician.core.constants import ATTACK_TRAIT, FLOURISH_TRAIT
from tactician.core.logging import get_logger
from tactician.engine.damage import average_damage
from tactician.models import (
    AbilityCatalogEntry,
    AbilityKind,
    CatalogMatch,
    CostSource,
    CostValue,
    ResolutionResult,
    StrikePayload,
)


logger = get_logger(__name__)

_RANK_RE = re.compile(r"\(\s*Rank\s*(\d+)\s*\)", re.IGNORECASE)
_COMBINATOR_RE = re.compile(r"\+|,\s*then\b|\sthen\s", re.IGNORECASE)
_ATTACK_WORD_RE = re.compile(r"\b(?:strike|attack)", re.IGNORECASE)

_KIND_ORDER = {
    AbilityKind.STRIKE: 0,
    AbilityKind.ACTION: 1,
    AbilityKind.SPELL: 2,
    AbilityKind.CONSUMABLE: 3,
}

ItemLookup = Callable[[AbilityCatalogEntry], bool]


# =============================================================================
# Composite Named Actions
# =============================================================================


@dataclass(frozen=True)
class CompositeAction:
    """A named action that resolves to one of the actor's strikes.

    Attributes:
        name: Action name as it leads a description.
        qualifying_traits: A strike qualifies if it carries any of these.
        cost: Fixed cost of the whole action.
        added_traits: Traits merged into the chosen strike's traits.
        attack_count: Strikes the action makes.
    """

    name: str
    qualifying_traits: frozenset[str]
    cost: CostValue = field(default_factory=lambda: CostValue.of(1))
    added_traits: frozenset[str] = frozenset()
    attack_count: int = 1

    def leads(self, description: str) -> bool:
        """Whether the description starts with this action's name."""
        pattern = rf"^{re.escape(self.name)}(?![A-Za-z0-9])"
        return re.match(pattern, description.strip(), re.IGNORECASE) is not None


DEFAULT_COMPOSITE_ACTIONS: tuple[CompositeAction, ...] = (
    CompositeAction(
        name="Flurry of Blows",
        qualifying_traits=frozenset({"unarmed", "monk"}),
        cost=CostValue.of(1),
        added_traits=frozenset({FLOURISH_TRAIT, ATTACK_TRAIT}),
        attack_count=2,
    ),
)


def strike_score(entry: AbilityCatalogEntry) -> tuple[int, float]:
    """Rank a strike by attack bonus, then by average damage."""
    if not isinstance(entry.extra, StrikePayload):
        return (0, 0.0)
    return (entry.extra.attack_bonus, average_damage(entry.extra.damage))


# =============================================================================
# Pure Helpers
# =============================================================================


def extract_rank(text: str) -> int | None:
    """Return the rank in a ``(Rank N)`` marker, if present.

    Example:
        >>> extract_rank("Heal (Rank 3) on Valeros")
        3
    """
    match = _RANK_RE.search(text)
    return int(match.group(1)) if match else None


def has_combinator(text: str) -> bool:
    """Whether text joins several actions with ``+``, ``, then`` or ``then``."""
    return _COMBINATOR_RE.search(text) is not None


def name_pattern(name: str) -> re.Pattern[str]:
    """Case-insensitive pattern for a name bounded by non-alphanumerics."""
    return re.compile(
        rf"(?<![A-Za-z0-9]){re.escape(name)}(?![A-Za-z0-9])",
        re.IGNORECASE,
    )


def reference_token(match: CatalogMatch) -> str:
    """Stable token a caller can turn into a rich link."""
    return f"@Ability[{match.entry.canonical_id}]{{{match.matched_text}}}"


def annotate(description: str, matches: Sequence[CatalogMatch]) -> str:
    """Replace each match span with its reference token.

    Args:
        description: Original text.
        matches: Non-overlapping matches.

    Returns:
        The text with unmatched spans passed through verbatim.
    """
    parts: list[str] = []
    cursor = 0
    for match in sorted(matches, key=lambda m: m.start):
        parts.append(description[cursor:match.start])
        parts.append(reference_token(match))
        cursor = match.end
    parts.append(description[cursor:])
    return "".join(parts)


# =============================================================================
# Resolver
# =============================================================================


class ActionResolver:
    """Resolve suggestion text against one catalog snapshot.

    Attributes:
        catalog: Entries sorted by descending name length.
        composite_actions: Named actions resolved to a single strike.
    """

    def __init__(
        self,
        catalog: Sequence[AbilityCatalogEntry],
        *,
        composite_actions: Sequence[CompositeAction] = DEFAULT_COMPOSITE_ACTIONS,
        item_lookup: ItemLookup | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            catalog: Catalog snapshot for the acting creature.
            composite_actions: Composite named action rules.
            item_lookup: Optional check that the primary match's item still
                exists; a False result or a LookupError makes the cost
                fall back to the LLM's claim.
        """
        self.catalog = list(catalog)
        self.composite_actions = tuple(composite_actions)
        self._item_lookup = item_lookup
        self._patterns = {entry.canonical_id: name_pattern(entry.name) for entry in self.catalog}

    # -------------------------------------------------------------------------
    # Candidate scan
    # -------------------------------------------------------------------------

    def find_candidates(self, description: str) -> list[CatalogMatch]:
        """Every word-bounded occurrence of every catalog name."""
        candidates: list[CatalogMatch] = []
        for entry in self.catalog:
            for found in self._patterns[entry.canonical_id].finditer(description):
                candidates.append(
                    CatalogMatch(
                        entry=entry,
                        start=found.start(),
                        end=found.end(),
                        matched_text=found.group(0),
                    )
                )
        return candidates

    # -------------------------------------------------------------------------
    # Composite actions
    # -------------------------------------------------------------------------

    def match_composite(self, description: str) -> tuple[CompositeAction, CatalogMatch] | None:
        """Resolve a leading composite named action to the best strike.

        Returns:
            The rule and the composite match, or None when no rule leads the
            description or the actor has no qualifying strike.
        """
        for rule in self.composite_actions:
            if not rule.leads(description):
                continue

            eligible = [
                entry
                for entry in self.catalog
                if entry.kind == AbilityKind.STRIKE and entry.traits & rule.qualifying_traits
            ]
            if not eligible:
                logger.info("No qualifying strike for composite action", action=rule.name)
                return None

            best = max(eligible, key=strike_score)
            stripped = description.strip()
            offset = description.index(stripped[:1]) if stripped else 0
            match = CatalogMatch(
                entry=best,
                start=offset,
                end=offset + len(rule.name),
                matched_text=description[offset:offset + len(rule.name)],
                composite=True,
                cost_override=rule.cost,
                traits_override=best.traits | rule.added_traits,
            )
            logger.debug(
                "Composite action resolved",
                action=rule.name,
                strike=best.name,
                score=strike_score(best),
            )
            return rule, match
        return None

    # -------------------------------------------------------------------------
    # Overlap resolution
    # -------------------------------------------------------------------------

    def select_matches(self, description: str, candidates: list[CatalogMatch]) -> list[CatalogMatch]:
        """Greedily accept non-overlapping candidates in priority order.

        Priority: occurrence at index 0; a Spell over a same-named non-Spell
        when the text carries a ``(Rank N)`` marker; longer name; earlier
        start. Remaining ties are broken by kind and canonical id.

        Returns:
            Accepted matches ordered by start index.
        """
        ranked = extract_rank(description) is not None
        kinds_by_name: dict[str, set[AbilityKind]] = {}
        for candidate in candidates:
            kinds_by_name.setdefault(candidate.entry.name.lower(), set()).add(candidate.entry.kind)

        def prefer_spell(candidate: CatalogMatch) -> int:
            kinds = kinds_by_name[candidate.entry.name.lower()]
            duplicated = AbilityKind.SPELL in kinds and len(kinds) > 1
            if ranked and duplicated and candidate.entry.kind == AbilityKind.SPELL:
                return 0
            return 1

        ordered = sorted(
            candidates,
            key=lambda c: (
                0 if c.start == 0 else 1,
                prefer_spell(c),
                -c.length,
                c.start,
                _KIND_ORDER[c.entry.kind],
                c.entry.canonical_id,
            ),
        )

        accepted: list[CatalogMatch] = []
        for candidate in ordered:
            if any(candidate.overlaps(kept) for kept in accepted):
                continue
            accepted.append(candidate)
        return sorted(accepted, key=lambda m: m.start)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _primary_available(self, match: CatalogMatch) -> bool:
        if match.cost is None:
            return False
        if self._item_lookup is None:
            return True
        try:
            return self._item_lookup(match.entry)
        except LookupError:
            logger.warning(
                "Item lookup failed for primary match",
                canonical_id=match.entry.canonical_id,
            )
            return False

    def resolve(self, description: str) -> ResolutionResult:
        """Resolve a cleaned description.

        Args:
            description: Action text after parser clean-up.

        Returns:
            The resolution result. Never raises for unmatched text.
        """
        composite = self.match_composite(description)
        if composite is not None:
            rule, match = composite
            return ResolutionResult(
                matches=[match],
                primary_index=0,
                is_combo=False,
                annotated_description=annotate(description, [match]),
                traits=match.traits,
                primary_cost=match.cost,
                cost_source=CostSource.CATALOG,
                attack_count=rule.attack_count,
            )

        accepted = self.select_matches(description, self.find_candidates(description))
        annotated = annotate(description, accepted)

        if not accepted:
            traits = frozenset({ATTACK_TRAIT}) if _ATTACK_WORD_RE.search(description) else frozenset()
            logger.info("No catalog match for suggestion", description=description)
            return ResolutionResult(
                annotated_description=annotated,
                traits=traits,
                cost_source=CostSource.LLM,
            )

        primary_index = next((i for i, m in enumerate(accepted) if m.start == 0), 0)
        primary = accepted[primary_index]
        traits = primary.traits
        if primary.entry.kind == AbilityKind.STRIKE:
            traits = traits | {ATTACK_TRAIT}

        is_combo = has_combinator(description) and len(accepted) >= 2 and not primary.composite

        if self._primary_available(primary):
            primary_cost, cost_source = primary.cost, CostSource.CATALOG
        else:
            primary_cost, cost_source = None, CostSource.LLM

        logger.debug(
            "Suggestion resolved",
            primary=primary.entry.name,
            matches=[m.entry.name for m in accepted],
            is_combo=is_combo,
            cost_source=cost_source,
        )
        return ResolutionResult(
            matches=accepted,
            primary_index=primary_index,
            is_combo=is_combo,
            annotated_description=annotated,
            traits=traits,
            primary_cost=primary_cost,
            cost_source=cost_source,
        )


def resolve_action(
    description: str,
    catalog: Sequence[AbilityCatalogEntry],
) -> ResolutionResult:
    """Convenience wrapper resolving one description against a catalog."""
    return ActionResolver(catalog).resolve(description)


__all__ = [
    "CompositeAction",
    "DEFAULT_COMPOSITE_ACTIONS",
    "strike_score",
    "extract_rank",
    "has_combinator",
    "name_pattern",
    "reference_token",
    "annotate",
    "ItemLookup",
    "ActionResolver",
    "resolve_action",
]
