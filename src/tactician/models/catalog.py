"""Pydantic V2 schemas for ability descriptors and catalog entries.

Descriptors are the loosely-shaped inputs handed over by the context
provider (one per spell, strike, action/feat, or consumable). Catalog
entries are the flat, immutable, name-indexed records built from them
for text matching. Each entry carries a kind-specific payload instead of
optional fields checked at runtime.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tactician.models.cost import CostValue
from tactician.models.enums import AbilityKind


# =============================================================================
# Input Descriptors
# =============================================================================


class AbilityDescriptor(BaseModel):
    """Common fields of every usable-thing descriptor.

    Attributes:
        name: Display name used for text matching.
        source_id: Compendium or source identifier, if known.
        slug: System slug, if known.
        traits: Trait slugs.
        item_id: Identifier of the item on the actor sheet.
        granted_by_item: Identifier of the item that grants this ability,
            if it is not known natively.
        time: Raw casting/activation time field.
        actions: Raw action count field.
        action_type: Raw action type field (action, reaction, free, passive).
        description: Raw description HTML.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, description="Display name")
    source_id: str | None = Field(default=None, description="Compendium/source id")
    slug: str | None = Field(default=None, description="System slug")
    traits: list[str] = Field(default_factory=list, description="Trait slugs")
    item_id: str | None = Field(default=None, description="Owning item id")
    granted_by_item: str | None = Field(default=None, description="Granting item id")
    time: str | int | None = Field(default=None, description="Raw time field")
    actions: str | int | None = Field(default=None, description="Raw actions field")
    action_type: str | None = Field(default=None, description="Raw action type field")
    description: str | None = Field(default=None, description="Raw description HTML")


class SpellDescriptor(AbilityDescriptor):
    """A spell the actor can cast."""

    entry_id: str | None = Field(default=None, description="Spellcasting entry id")
    rank: int | None = Field(default=None, ge=0, le=10, description="Slot rank")
    is_cantrip: bool = False
    is_focus: bool = False


class StrikeDescriptor(AbilityDescriptor):
    """A weapon or unarmed strike.

    Attributes:
        attack_bonus: Base attack modifier before MAP.
        damage: Damage expression, e.g. ``"1d6+4"`` or ``"2d8+1d6+3"``.
    """

    attack_bonus: int = Field(default=0, description="Base attack bonus")
    damage: str | None = Field(default=None, description="Damage expression")


class ActionDescriptor(AbilityDescriptor):
    """An action, feat or monster ability."""


class ConsumableDescriptor(AbilityDescriptor):
    """A consumable item (potion, scroll, talisman, ...)."""

    quantity: int = Field(default=1, ge=0, description="Units remaining")


# =============================================================================
# Catalog Payloads
# =============================================================================


class SpellPayload(BaseModel):
    """Spell-specific catalog data."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[AbilityKind.SPELL] = AbilityKind.SPELL
    entry_id: str | None = None
    rank: int | None = None
    is_cantrip: bool = False
    is_focus: bool = False
    item_id: str | None = None


class StrikePayload(BaseModel):
    """Strike-specific catalog data."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[AbilityKind.STRIKE] = AbilityKind.STRIKE
    slug: str
    attack_bonus: int = 0
    damage: str | None = None
    item_id: str | None = None


class ActionPayload(BaseModel):
    """Action/feat-specific catalog data."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[AbilityKind.ACTION] = AbilityKind.ACTION
    item_id: str | None = None
    action_type: str | None = None
    passive: bool = False


class ConsumablePayload(BaseModel):
    """Consumable-specific catalog data."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[AbilityKind.CONSUMABLE] = AbilityKind.CONSUMABLE
    item_id: str | None = None
    quantity: int = 1


CatalogPayload = Annotated[
    SpellPayload | StrikePayload | ActionPayload | ConsumablePayload,
    Field(discriminator="kind"),
]


class AbilityCatalogEntry(BaseModel):
    """One nameable, usable thing in a catalog snapshot.

    Attributes:
        name: Display name matched against suggestion text.
        canonical_id: Stable key, unique within a snapshot.
        kind: Entry kind.
        cost: Parsed cost, or None when it could not be determined.
        traits: Trait slugs (lower-case).
        extra: Kind-specific payload.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Display name")
    canonical_id: str = Field(min_length=1, description="Stable unique key")
    kind: AbilityKind = Field(description="Entry kind")
    cost: CostValue | None = Field(default=None, description="Parsed cost")
    traits: frozenset[str] = Field(default_factory=frozenset, description="Trait slugs")
    extra: CatalogPayload = Field(description="Kind-specific payload")

    @model_validator(mode="after")
    def validate_payload_kind(self) -> "AbilityCatalogEntry":
        """Ensure the payload variant matches the entry kind."""
        if self.extra.kind != self.kind:
            raise ValueError(
                f"Payload kind {self.extra.kind} does not match entry kind {self.kind}"
            )
        return self

    @property
    def is_passive(self) -> bool:
        """Whether the entry is a passive ability that cannot be activated."""
        return isinstance(self.extra, ActionPayload) and self.extra.passive


__all__ = [
    "AbilityDescriptor",
    "SpellDescriptor",
    "StrikeDescriptor",
    "ActionDescriptor",
    "ConsumableDescriptor",
    "SpellPayload",
    "StrikePayload",
    "ActionPayload",
    "ConsumablePayload",
    "CatalogPayload",
    "AbilityCatalogEntry",
]
