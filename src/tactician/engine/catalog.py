"""Ability catalog building.

Turns the actor's spell, strike, action and consumable descriptors into a
flat, de-duplicated list of immutable catalog entries sorted by
descending name length, so the resolver's longest-match policy sees long
names first.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from tactician.core.logging import get_logger
from tactician.engine.costs import parse_cost
from tactician.models import (
    AbilityCatalogEntry,
    AbilityDescriptor,
    AbilityKind,
    ActionDescriptor,
    ActionPayload,
    ConsumableDescriptor,
    ConsumablePayload,
    ContextSnapshot,
    CostValue,
    SpellDescriptor,
    SpellPayload,
    StrikeDescriptor,
    StrikePayload,
)


logger = get_logger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case, hyphen-separated slug for a display name."""
    return _SLUG_RE.sub("-", name.lower()).strip("-")


def canonical_id_for(kind: AbilityKind, descriptor: AbilityDescriptor) -> str:
    """Stable key for a descriptor: its source id, else ``kind:slug``."""
    if descriptor.source_id:
        return descriptor.source_id
    slug = descriptor.slug or slugify(descriptor.name)
    return f"{kind}:{slug}"


def _traits(descriptor: AbilityDescriptor) -> frozenset[str]:
    return frozenset(t.strip().lower() for t in descriptor.traits if t.strip())


def _descriptor_cost(descriptor: AbilityDescriptor) -> CostValue | None:
    return parse_cost(
        descriptor.time,
        descriptor.actions,
        descriptor.description,
        descriptor.action_type,
    )


def spell_entry(descriptor: SpellDescriptor) -> AbilityCatalogEntry:
    """Catalog entry for a spell."""
    return AbilityCatalogEntry(
        name=descriptor.name.strip(),
        canonical_id=canonical_id_for(AbilityKind.SPELL, descriptor),
        kind=AbilityKind.SPELL,
        cost=_descriptor_cost(descriptor),
        traits=_traits(descriptor),
        extra=SpellPayload(
            entry_id=descriptor.entry_id,
            rank=descriptor.rank,
            is_cantrip=descriptor.is_cantrip,
            is_focus=descriptor.is_focus,
            item_id=descriptor.item_id,
        ),
    )


def strike_entry(descriptor: StrikeDescriptor) -> AbilityCatalogEntry:
    """Catalog entry for a strike; strikes always cost one action."""
    return AbilityCatalogEntry(
        name=descriptor.name.strip(),
        canonical_id=canonical_id_for(AbilityKind.STRIKE, descriptor),
        kind=AbilityKind.STRIKE,
        cost=CostValue.of(1),
        traits=_traits(descriptor) | {"attack"},
        extra=StrikePayload(
            slug=descriptor.slug or slugify(descriptor.name),
            attack_bonus=descriptor.attack_bonus,
            damage=descriptor.damage,
            item_id=descriptor.item_id,
        ),
    )


def action_entry(descriptor: ActionDescriptor) -> AbilityCatalogEntry:
    """Catalog entry for an action, feat or ability."""
    action_type = descriptor.action_type.strip().lower() if descriptor.action_type else None
    return AbilityCatalogEntry(
        name=descriptor.name.strip(),
        canonical_id=canonical_id_for(AbilityKind.ACTION, descriptor),
        kind=AbilityKind.ACTION,
        cost=_descriptor_cost(descriptor),
        traits=_traits(descriptor),
        extra=ActionPayload(
            item_id=descriptor.item_id,
            action_type=action_type,
            passive=action_type == "passive",
        ),
    )


def consumable_entry(descriptor: ConsumableDescriptor) -> AbilityCatalogEntry:
    """Catalog entry for a consumable."""
    return AbilityCatalogEntry(
        name=descriptor.name.strip(),
        canonical_id=canonical_id_for(AbilityKind.CONSUMABLE, descriptor),
        kind=AbilityKind.CONSUMABLE,
        cost=_descriptor_cost(descriptor),
        traits=_traits(descriptor),
        extra=ConsumablePayload(
            item_id=descriptor.item_id,
            quantity=descriptor.quantity,
        ),
    )


def _collect(
    pairs: Iterable[tuple[AbilityDescriptor, AbilityCatalogEntry]],
) -> list[AbilityCatalogEntry]:
    """De-duplicate entries by canonical id.

    A natively known instance replaces an item-granted one; otherwise the
    first instance seen wins.
    """
    kept: dict[str, tuple[AbilityCatalogEntry, bool]] = {}
    for descriptor, entry in pairs:
        item_granted = descriptor.granted_by_item is not None
        existing = kept.get(entry.canonical_id)
        if existing is None:
            kept[entry.canonical_id] = (entry, item_granted)
            continue
        if existing[1] and not item_granted:
            logger.debug(
                "Preferring native ability over item-granted copy",
                canonical_id=entry.canonical_id,
                name=entry.name,
            )
            kept[entry.canonical_id] = (entry, item_granted)
    return [entry for entry, _ in kept.values()]


def build_catalog(
    spells: Sequence[SpellDescriptor] = (),
    strikes: Sequence[StrikeDescriptor] = (),
    actions: Sequence[ActionDescriptor] = (),
    consumables: Sequence[ConsumableDescriptor] = (),
) -> list[AbilityCatalogEntry]:
    """Build a catalog snapshot.

    Args:
        spells: Spell-like descriptors (any source).
        strikes: Strike descriptors.
        actions: Action/feat descriptors.
        consumables: Consumable descriptors.

    Returns:
        Entries unique by ``canonical_id``, sorted by descending name
        length then name.
    """
    pairs: list[tuple[AbilityDescriptor, AbilityCatalogEntry]] = []
    pairs.extend((d, spell_entry(d)) for d in spells)
    pairs.extend((d, strike_entry(d)) for d in strikes)
    pairs.extend((d, action_entry(d)) for d in actions)
    pairs.extend((d, consumable_entry(d)) for d in consumables)

    entries = _collect(pairs)
    entries.sort(key=lambda e: (-len(e.name), e.name.lower(), e.canonical_id))

    logger.debug("Catalog built", entries=len(entries), descriptors=len(pairs))
    return entries


def build_catalog_from_snapshot(snapshot: ContextSnapshot) -> list[AbilityCatalogEntry]:
    """Build a catalog from everything the snapshot's actor can use."""
    actor = snapshot.actor
    return build_catalog(
        spells=actor.all_spells,
        strikes=actor.strikes,
        actions=actor.actions,
        consumables=actor.consumables,
    )


__all__ = [
    "slugify",
    "canonical_id_for",
    "spell_entry",
    "strike_entry",
    "action_entry",
    "consumable_entry",
    "build_catalog",
    "build_catalog_from_snapshot",
]
