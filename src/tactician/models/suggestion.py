"""Pydantic V2 schemas for parsed and resolved suggestions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

from tactician.models.catalog import AbilityCatalogEntry
from tactician.models.cost import CostValue
from tactician.models.enums import CostSource


class ParsedSuggestion(BaseModel):
    """Fields extracted from one LLM reply.

    Attributes:
        description: Cleaned action text.
        target: Target text, possibly carrying an ``[ID: ...]`` token.
        cost: Claimed cost; untrusted input.
        rationale: Why the model chose the action.
        narrative: Flavour text for the chat card.
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(min_length=1, description="Cleaned action text")
    target: str | None = Field(default=None, description="Target text")
    cost: CostValue | None = Field(default=None, description="LLM-claimed cost")
    rationale: str | None = Field(default=None, description="Model rationale")
    narrative: str | None = Field(default=None, description="Narrative text")


class CatalogMatch(BaseModel):
    """An occurrence of a catalog entry's name in a description.

    Attributes:
        entry: The matched catalog entry.
        start: Start index in the description.
        end: End index (exclusive).
        matched_text: Text as it appears in the description.
        composite: Whether this is a composite named action (e.g. Flurry
            of Blows) resolved to a single strike.
        cost_override: Cost imposed by a composite action, if any.
        traits_override: Merged traits imposed by a composite action.
    """

    model_config = ConfigDict(frozen=True)

    entry: AbilityCatalogEntry
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    matched_text: str
    composite: bool = False
    cost_override: CostValue | None = None
    traits_override: frozenset[str] | None = None

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def cost(self) -> CostValue | None:
        """The cost this match contributes."""
        return self.cost_override if self.cost_override is not None else self.entry.cost

    @property
    def traits(self) -> frozenset[str]:
        """The traits this match contributes."""
        return self.traits_override if self.traits_override is not None else self.entry.traits

    def overlaps(self, other: CatalogMatch) -> bool:
        """Whether the two character spans intersect."""
        return self.start < other.end and other.start < self.end


class ResolutionResult(BaseModel):
    """Outcome of matching a description against the catalog.

    Attributes:
        matches: Accepted, non-overlapping matches ordered by start index.
        primary_index: Position of the primary match in ``matches``.
        is_combo: Whether the text describes several matched actions.
        annotated_description: Text with matches replaced by reference tokens.
        traits: Traits of the primary action.
        primary_cost: Cost of the primary action, if resolved.
        cost_source: Whether the primary cost came from the catalog.
        attack_count: Attacks the primary action makes (Flurry of Blows
            makes two); each one advances the multiple attack penalty.
    """

    model_config = ConfigDict(frozen=True)

    matches: list[CatalogMatch] = Field(default_factory=list)
    primary_index: int | None = None
    is_combo: bool = False
    annotated_description: str = ""
    traits: frozenset[str] = Field(default_factory=frozenset)
    primary_cost: CostValue | None = None
    cost_source: CostSource = CostSource.LLM
    attack_count: int = Field(default=1, ge=1)

    @property
    def primary(self) -> CatalogMatch | None:
        """The match that seeds cost and traits."""
        if self.primary_index is None:
            return None
        return self.matches[self.primary_index]


class Suggestion(BaseModel):
    """A validated suggestion waiting for the user.

    Attributes:
        parsed: Fields read from the reply.
        resolution: Catalog matching outcome.
        cost: Authoritative, concrete cost.
        display_cost: Formatted cost, e.g. ``(2a)``.
        minimum_cost: Actions deducted on confirmation.
        attempts: Requests it took to get an acceptable suggestion.
    """

    model_config = ConfigDict(frozen=True)

    parsed: ParsedSuggestion
    resolution: ResolutionResult
    cost: CostValue
    display_cost: str
    minimum_cost: int = Field(ge=0)
    attempts: int = Field(default=1, ge=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def action_name(self) -> str:
        """Primary action's name, or the raw description when unmatched.

        A composite action keeps its own name (``Flurry of Blows``) rather
        than the strike it resolved to.
        """
        primary = self.resolution.primary
        if primary is None:
            return self.parsed.description
        return primary.matched_text if primary.composite else primary.entry.name

    @property
    def traits(self) -> frozenset[str]:
        return self.resolution.traits


__all__ = [
    "ParsedSuggestion",
    "CatalogMatch",
    "ResolutionResult",
    "Suggestion",
]
