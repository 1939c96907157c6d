"""Application-wide constants for the RPG host.

This module defines the combat rule constants, numeric bounds and the
fallback equipment used when a combatant carries no weapon.
"""

from __future__ import annotations

# =============================================================================
# Combat Geometry
# =============================================================================

DEFAULT_MELEE_RANGE = 1
"""Reach of every melee weapon, in position units."""

DEFAULT_RANGED_RANGE = 6
"""Range given to a ranged weapon that does not declare one."""

DEFAULT_MOVE_SPEED = 6
"""Movement budget per turn when a combatant has no speed set."""

MAX_RANGE = 30
"""Upper bound for weapon range, skill range and speed."""

MIN_POSITION = 0
"""Lowest position on the abstract battle line."""

MAX_POSITION = 100
"""Highest position on the abstract battle line."""

# =============================================================================
# Numeric Bounds
# =============================================================================

MAX_LEVEL = 20
"""Highest character level."""

MAX_POOL = 999
"""Upper bound for HP, MP and their maximums."""

MAX_AMOUNT = 999
"""Upper bound for a single damage or healing amount."""

MAX_SKILL_COST = 99
"""Upper bound for the MP cost of a skill."""

MAX_ROUND = 999
"""Upper bound for the combat round counter."""

MAX_ITEM_QTY = 999
"""Upper bound for the quantity of one inventory item."""

DEFAULT_ENEMY_HP = 10
"""Max HP of an enemy created without one."""

# =============================================================================
# Fallback Equipment
# =============================================================================

UNARMED_WEAPON_ID = "weapon_unarmed"
"""Weapon id of the fallback every player combatant carries."""

UNARMED_WEAPON_NAME = "Default Melee"

UNARMED_DAMAGE_FORMULA = "1"
"""Not a dice formula, so unarmed attacks deal 0 unless damage is given."""

DEFAULT_ENEMY_WEAPON_ID = "weapon_enemy_basic"
"""Weapon id given to enemies created without weapons."""

DEFAULT_ENEMY_WEAPON_NAME = "Basic Weapon"

DEFAULT_ENEMY_DAMAGE_FORMULA = "1d6"

DEFAULT_ENEMY_NAME = "Unknown threat"
"""Name of the enemy created when combat starts with nobody to fight."""

# =============================================================================
# Dice
# =============================================================================

INITIATIVE_FORMULA = "1d20"
"""Formula rolled for each combatant when initiative is (re)rolled."""

ENEMY_STATUS_BANDS = (
    (0, "Down"),
    (15, "Critical"),
    (35, "Badly Wounded"),
    (60, "Wounded"),
    (85, "Scratched"),
)
"""Upper HP percentage bounds for enemy wound labels, checked in order."""

ENEMY_STATUS_HEALTHY = "Unhurt"


__all__ = [
    "DEFAULT_MELEE_RANGE",
    "DEFAULT_RANGED_RANGE",
    "DEFAULT_MOVE_SPEED",
    "MAX_RANGE",
    "MIN_POSITION",
    "MAX_POSITION",
    "MAX_LEVEL",
    "MAX_POOL",
    "MAX_AMOUNT",
    "MAX_SKILL_COST",
    "MAX_ROUND",
    "MAX_ITEM_QTY",
    "DEFAULT_ENEMY_HP",
    "UNARMED_WEAPON_ID",
    "UNARMED_WEAPON_NAME",
    "UNARMED_DAMAGE_FORMULA",
    "DEFAULT_ENEMY_WEAPON_ID",
    "DEFAULT_ENEMY_WEAPON_NAME",
    "DEFAULT_ENEMY_DAMAGE_FORMULA",
    "DEFAULT_ENEMY_NAME",
    "INITIATIVE_FORMULA",
    "ENEMY_STATUS_BANDS",
    "ENEMY_STATUS_HEALTHY",
]
