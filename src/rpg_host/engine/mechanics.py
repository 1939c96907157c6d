"""Combat mechanics shared by the action resolver and enemy autoplay."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from rpg_host.core.constants import MAX_AMOUNT, MAX_POSITION, MAX_RANGE, MIN_POSITION
from rpg_host.core.utils import clamp
from rpg_host.engine.dice import DiceRoll, DiceRoller
from rpg_host.models.combat import Combatant
from rpg_host.models.equipment import Skill, Weapon, ensure_single_equipped_weapon


class AmountSource(StrEnum):
    """Where a damage or healing amount came from."""

    EXPLICIT = "explicit"
    ROLLED = "rolled"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class AmountResolution:
    """A resolved damage or healing amount.

    Attributes:
        amount: The amount, clamped to [0, MAX_AMOUNT].
        source: Whether it was given, rolled or the fallback.
        roll: The dice roll when the amount was rolled.
    """

    amount: int
    source: AmountSource
    roll: DiceRoll | None = None


def resolve_amount(
    dice: DiceRoller,
    *,
    explicit: int | None,
    formula: str | None,
    fallback: int = 0,
) -> AmountResolution:
    """Pick an amount: the explicit value, else a roll of ``formula``, else ``fallback``."""
    if explicit is not None:
        return AmountResolution(amount=clamp(explicit, 0, MAX_AMOUNT), source=AmountSource.EXPLICIT)
    rolled = dice.try_roll(formula)
    if rolled is not None:
        return AmountResolution(
            amount=clamp(rolled.total, 0, MAX_AMOUNT),
            source=AmountSource.ROLLED,
            roll=rolled,
        )
    return AmountResolution(amount=clamp(fallback, 0, MAX_AMOUNT), source=AmountSource.FALLBACK)


def apply_damage(combatant: Combatant, amount: int) -> int:
    """Subtract HP, never below zero.

    Returns:
        HP actually lost.
    """
    safe_amount = clamp(amount, 0, MAX_AMOUNT)
    if not safe_amount:
        return 0
    before = combatant.hp
    combatant.hp = clamp(before - safe_amount, 0, combatant.hp_max)
    return before - combatant.hp


def apply_healing(combatant: Combatant, amount: int) -> int:
    """Restore HP, never above the maximum.

    Returns:
        HP actually restored.
    """
    safe_amount = clamp(amount, 0, MAX_AMOUNT)
    if not safe_amount:
        return 0
    before = combatant.hp
    combatant.hp = clamp(before + safe_amount, 0, combatant.hp_max)
    return combatant.hp - before


def move_toward(source: Combatant, target: Combatant, desired_distance: int = 0) -> int:
    """Move ``source`` toward ``target`` until ``desired_distance`` away.

    Movement is bounded by the source's remaining movement.

    Returns:
        Distance traveled.
    """
    max_move = clamp(source.movement_remaining, 0, MAX_RANGE)
    required = clamp(source.distance_to(target) - desired_distance, 0, MAX_RANGE)
    step = min(required, max_move)
    if step <= 0:
        return 0
    direction = 1 if target.position >= source.position else -1
    next_position = clamp(source.position + direction * step, MIN_POSITION, MAX_POSITION)
    traveled = abs(next_position - source.position)
    source.position = next_position
    source.movement_remaining = clamp(max_move - traveled, 0, source.speed)
    return traveled


def resolve_weapon(combatant: Combatant, requested_weapon_id: str | None = None) -> Weapon | None:
    """Find the weapon a combatant attacks with.

    Re-applies the single-equipped rule first. Only the equipped weapon can
    be used, so requesting any other weapon id returns None.
    """
    weapons = ensure_single_equipped_weapon(combatant.weapons, combatant.equipped_weapon_id)
    combatant.weapons = weapons
    equipped = next((w for w in weapons if w.equipped), None)
    combatant.equipped_weapon_id = equipped.id if equipped else None
    if equipped is None:
        return None
    selected_id = requested_weapon_id or equipped.id
    return equipped if equipped.id == selected_id else None


def usable_skill(combatant: Combatant, skill_id: str | None) -> Skill | None:
    """A skill the combatant knows and has unlocked at its level."""
    if not skill_id:
        return None
    return next((s for s in combatant.unlocked_skills if s.id == skill_id), None)


def describe_attack(
    attacker: Combatant,
    target: Combatant,
    weapon: Weapon,
    dealt: int,
    resolution: AmountResolution,
) -> str:
    """Narration line for an attack."""
    if dealt > 0:
        message = f"{attacker.name} attacks {target.name} with {weapon.name} for {dealt} damage."
    else:
        message = f"{attacker.name} attacks {target.name} with {weapon.name}."
    if resolution.source == AmountSource.ROLLED and resolution.roll is not None:
        message += f" [{resolution.roll.formula}={resolution.roll.total}]"
    return message


__all__ = [
    "AmountSource",
    "AmountResolution",
    "resolve_amount",
    "apply_damage",
    "apply_healing",
    "move_toward",
    "resolve_weapon",
    "usable_skill",
    "describe_attack",
]
