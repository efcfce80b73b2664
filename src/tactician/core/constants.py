"""Rules constants for the three-action turn economy.

This module defines the constants shared by the cost vocabulary, the
resolver and the turn state machine.
"""

from __future__ import annotations

# =============================================================================
# Action Economy
# =============================================================================

MAX_ACTIONS_PER_TURN = 3
"""Actions a combatant starts its turn with before conditions apply."""

MIN_ACTION_COST = 1
"""Smallest numeric action cost a suggestion may carry."""

MAX_ACTION_COST = 3
"""Largest numeric action cost a suggestion may carry."""

UNAFFORDABLE_COST = 99
"""Sentinel minimum cost for a cost that cannot be determined."""

# =============================================================================
# Multiple Attack Penalty
# =============================================================================

MAP_VALUES = frozenset({0, 4, 5, 8, 10})
"""Every value the tracked multiple attack penalty may hold."""

MAP_SECOND_ATTACK = {True: 4, False: 5}
"""Penalty after the first attack, keyed by whether the attack is agile."""

MAP_THIRD_ATTACK = {True: 8, False: 10}
"""Penalty after the second and later attacks, keyed by agility."""

# =============================================================================
# Traits
# =============================================================================

ATTACK_TRAIT = "attack"
AGILE_TRAIT = "agile"
FLOURISH_TRAIT = "flourish"


__all__ = [
    "MAX_ACTIONS_PER_TURN",
    "MIN_ACTION_COST",
    "MAX_ACTION_COST",
    "UNAFFORDABLE_COST",
    "MAP_VALUES",
    "MAP_SECOND_ATTACK",
    "MAP_THIRD_ATTACK",
    "ATTACK_TRAIT",
    "AGILE_TRAIT",
    "FLOURISH_TRAIT",
]
