"""Enumeration types for the RPG host."""

from __future__ import annotations

from enum import StrEnum


class GamePhase(StrEnum):
    """Top-level phase of a game session."""

    SETUP = "setup"
    EXPLORATION = "exploration"
    COMBAT = "combat"


class LogKind(StrEnum):
    """Categories of session log entries."""

    STORY = "story"
    COMBAT = "combat"
    ROLL = "roll"
    SYSTEM = "system"


class WeaponCategory(StrEnum):
    """Weapon categories. Melee reach is fixed; ranged uses the weapon range."""

    MELEE = "melee"
    RANGED = "ranged"


class SkillTarget(StrEnum):
    """Who a skill may be used on."""

    ENEMY = "enemy"
    ALLY = "ally"
    SELF = "self"


class CombatantKind(StrEnum):
    """Sides of an encounter."""

    PC = "pc"
    ENEMY = "enemy"


class CombatAction(StrEnum):
    """Actions a combatant can take on its turn."""

    MOVE = "move"
    ATTACK = "attack"
    DEFEND = "defend"
    DODGE = "dodge"
    USE_SKILL = "use_skill"
    END_TURN = "end_turn"

    @property
    def consumes_action(self) -> bool:
        """Whether this action uses the single action slot of the turn.

        Returns:
            True for attack, defend, dodge and use_skill.
        """
        return self in _ACTION_SLOT_ACTIONS


_ACTION_SLOT_ACTIONS = frozenset(
    {CombatAction.ATTACK, CombatAction.DEFEND, CombatAction.DODGE, CombatAction.USE_SKILL}
)


class CombatOutcome(StrEnum):
    """How an encounter ended."""

    VICTORY = "victory"
    PLAYER_DOWN = "player_down"


__all__ = [
    "GamePhase",
    "LogKind",
    "WeaponCategory",
    "SkillTarget",
    "CombatantKind",
    "CombatAction",
    "CombatOutcome",
]
