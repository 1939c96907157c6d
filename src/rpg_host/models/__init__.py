"""Pydantic V2 schemas for the RPG host.

Submodules:
    enums: Enumeration types (GamePhase, CombatAction, SkillTarget, ...)
    equipment: Weapons, skills, inventory and their normalization helpers
    combat: Combatants, the combat session and combat patch structures
    game_state: The game session and its resource pools and log
    requests: Argument models for the host tools
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from rpg_host.models.enums import (
    CombatAction,
    CombatantKind,
    CombatOutcome,
    GamePhase,
    LogKind,
    SkillTarget,
    WeaponCategory,
)

# =============================================================================
# Equipment
# =============================================================================
from rpg_host.models.equipment import (
    InventoryDelta,
    InventoryItem,
    InventoryItemSpec,
    InventoryRemoval,
    Skill,
    SkillSpec,
    Weapon,
    WeaponSpec,
)

# =============================================================================
# Combat
# =============================================================================
from rpg_host.models.combat import (
    CombatActionRequest,
    Combatant,
    CombatantPatch,
    CombatantRef,
    CombatResult,
    CombatRules,
    CombatSession,
    CombatUpdate,
    EnemyCombatant,
    EnemySpec,
    InitiativeEntry,
    InitiativeSpec,
    PcCombatant,
    TurnSummary,
    find_enemy,
)

# =============================================================================
# Game State
# =============================================================================
from rpg_host.models.game_state import (
    GameSession,
    LastRoll,
    LogEntry,
    PcProfile,
    ResourcePool,
    create_game_session,
)


__all__ = [
    # Enums
    "CombatAction",
    "CombatantKind",
    "CombatOutcome",
    "GamePhase",
    "LogKind",
    "SkillTarget",
    "WeaponCategory",
    # Equipment
    "InventoryDelta",
    "InventoryItem",
    "InventoryItemSpec",
    "InventoryRemoval",
    "Skill",
    "SkillSpec",
    "Weapon",
    "WeaponSpec",
    # Combat
    "CombatActionRequest",
    "Combatant",
    "CombatantPatch",
    "CombatantRef",
    "CombatResult",
    "CombatRules",
    "CombatSession",
    "find_enemy",
    "CombatUpdate",
    "EnemyCombatant",
    "EnemySpec",
    "InitiativeEntry",
    "InitiativeSpec",
    "PcCombatant",
    "TurnSummary",
    # Game state
    "GameSession",
    "LastRoll",
    "LogEntry",
    "PcProfile",
    "ResourcePool",
    "create_game_session",
]
