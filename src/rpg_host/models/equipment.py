"""Pydantic V2 schemas for weapons, skills and inventory.

The ``*Spec`` models are loose inputs (every field optional) as they
arrive from tool calls or stored snapshots. The ``normalize_*`` helpers
turn them into fully populated, clamped records, and the inventory
helpers keep the "exactly one equipped weapon" rule.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from rpg_host.core.constants import (
    DEFAULT_ENEMY_DAMAGE_FORMULA,
    DEFAULT_ENEMY_WEAPON_ID,
    DEFAULT_ENEMY_WEAPON_NAME,
    DEFAULT_MELEE_RANGE,
    DEFAULT_RANGED_RANGE,
    MAX_ITEM_QTY,
    MAX_LEVEL,
    MAX_RANGE,
    MAX_SKILL_COST,
    UNARMED_DAMAGE_FORMULA,
    UNARMED_WEAPON_ID,
    UNARMED_WEAPON_NAME,
)
from rpg_host.core.utils import clamp, first_set, slugify_id
from rpg_host.models.enums import SkillTarget, WeaponCategory


# =============================================================================
# Weapons
# =============================================================================


class Weapon(BaseModel):
    """A normalized weapon.

    Attributes:
        id: Unique weapon identifier.
        name: Display name.
        category: Melee or ranged.
        range: Reach in position units; always the melee range for melee weapons.
        equipped: Whether this is the weapon in hand.
        damage_formula: Dice formula rolled when no explicit damage is given.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    id: str = Field(min_length=1, description="Weapon identifier")
    name: str = Field(min_length=1, description="Display name")
    category: WeaponCategory = Field(default=WeaponCategory.MELEE, description="Weapon category")
    range: Annotated[int, Field(ge=1, le=MAX_RANGE, description="Reach")] = DEFAULT_MELEE_RANGE
    equipped: bool = Field(default=False, description="Weapon in hand")
    damage_formula: str = Field(default="", description="Damage dice formula")

    @property
    def attack_range(self) -> int:
        """Distance this weapon can reach when attacking."""
        if self.category == WeaponCategory.MELEE:
            return DEFAULT_MELEE_RANGE
        return clamp(self.range, 1, MAX_RANGE)


class WeaponSpec(BaseModel):
    """Loose weapon input; missing fields fall back to defaults."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str | None = None
    category: str | None = None
    range: int | None = None
    equipped: bool | None = None
    damage_formula: str | None = None


def normalize_weapon(
    raw: Weapon | WeaponSpec | None,
    fallback_name: str | None,
    fallback_id_prefix: str = "weapon",
) -> Weapon | None:
    """Build a valid Weapon from a loose spec.

    Args:
        raw: The weapon data, or None.
        fallback_name: Name used when the spec has none, also used for the id.
        fallback_id_prefix: Prefix for the generated id.

    Returns:
        The normalized weapon, or None when there is no weapon data.
    """
    if raw is None:
        return None
    category = WeaponCategory.RANGED if raw.category == WeaponCategory.RANGED else WeaponCategory.MELEE
    if category == WeaponCategory.MELEE:
        weapon_range = DEFAULT_MELEE_RANGE
    else:
        weapon_range = clamp(first_set(raw.range, DEFAULT_RANGED_RANGE), 1, MAX_RANGE)
    return Weapon(
        id=raw.id or f"{fallback_id_prefix}_{slugify_id(fallback_name, 'weapon')}",
        name=raw.name or fallback_name or "Weapon",
        category=category,
        range=weapon_range,
        equipped=bool(raw.equipped),
        damage_formula=raw.damage_formula or "",
    )


def unarmed_weapon() -> Weapon:
    """Fallback weapon every player combatant carries."""
    return Weapon(
        id=UNARMED_WEAPON_ID,
        name=UNARMED_WEAPON_NAME,
        category=WeaponCategory.MELEE,
        range=DEFAULT_MELEE_RANGE,
        equipped=True,
        damage_formula=UNARMED_DAMAGE_FORMULA,
    )


def default_enemy_weapon() -> Weapon:
    """Weapon given to enemies that were created without one."""
    return Weapon(
        id=DEFAULT_ENEMY_WEAPON_ID,
        name=DEFAULT_ENEMY_WEAPON_NAME,
        category=WeaponCategory.MELEE,
        range=DEFAULT_MELEE_RANGE,
        equipped=True,
        damage_formula=DEFAULT_ENEMY_DAMAGE_FORMULA,
    )


def ensure_single_equipped_weapon(
    weapons: Sequence[Weapon],
    preferred_weapon_id: str | None = None,
) -> list[Weapon]:
    """Return copies of ``weapons`` with exactly one marked as equipped.

    The equipped weapon is chosen in order: the preferred id when it is
    present, then the first weapon already flagged as equipped, then the
    first weapon in the list.

    Args:
        weapons: Weapons to normalize.
        preferred_weapon_id: Weapon id requested by the caller or kept from before.

    Returns:
        A new list; empty when ``weapons`` is empty.
    """
    if not weapons:
        return []
    selected_id: str | None = None
    if preferred_weapon_id and any(w.id == preferred_weapon_id for w in weapons):
        selected_id = preferred_weapon_id
    if selected_id is None:
        selected_id = next((w.id for w in weapons if w.equipped), weapons[0].id)
    return [w.model_copy(update={"equipped": w.id == selected_id}) for w in weapons]


# =============================================================================
# Skills
# =============================================================================


class Skill(BaseModel):
    """A normalized skill.

    Attributes:
        id: Unique skill identifier.
        name: Display name.
        unlock_level: Character level at which the skill becomes usable.
        mp_cost: MP spent on each use.
        range: Maximum distance to the target.
        target: Which side the skill can be aimed at.
        description: Free-form description for the narrator.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    id: str = Field(min_length=1, description="Skill identifier")
    name: str = Field(min_length=1, description="Display name")
    unlock_level: Annotated[int, Field(ge=1, le=MAX_LEVEL)] = 1
    mp_cost: Annotated[int, Field(ge=0, le=MAX_SKILL_COST)] = 0
    range: Annotated[int, Field(ge=0, le=MAX_RANGE)] = DEFAULT_MELEE_RANGE
    target: SkillTarget = SkillTarget.ENEMY
    description: str = ""


class SkillSpec(BaseModel):
    """Loose skill input; missing fields fall back to defaults."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str | None = None
    unlock_level: int | None = None
    mp_cost: int | None = None
    range: int | None = None
    target: str | None = None
    description: str | None = None


def normalize_skill(
    raw: Skill | SkillSpec | None,
    fallback_name: str | None,
    fallback_id_prefix: str = "skill",
) -> Skill | None:
    """Build a valid Skill from a loose spec."""
    if raw is None:
        return None
    if raw.target in (SkillTarget.SELF, SkillTarget.ALLY):
        target = SkillTarget(raw.target)
    else:
        target = SkillTarget.ENEMY
    return Skill(
        id=raw.id or f"{fallback_id_prefix}_{slugify_id(fallback_name, 'skill')}",
        name=raw.name or fallback_name or "Skill",
        unlock_level=clamp(first_set(raw.unlock_level, 1), 1, MAX_LEVEL),
        mp_cost=clamp(first_set(raw.mp_cost, 0), 0, MAX_SKILL_COST),
        range=clamp(first_set(raw.range, DEFAULT_MELEE_RANGE), 0, MAX_RANGE),
        target=target,
        description=raw.description or "",
    )


@dataclass(frozen=True)
class SkillCatalog:
    """Skills known by a character, split by what the level unlocks.

    Attributes:
        all_skills: Every known skill, deduplicated and sorted.
        unlocked_skills: The subset with ``unlock_level <= level``.
    """

    all_skills: list[Skill]
    unlocked_skills: list[Skill]


def get_skill_catalog(
    level: int,
    skills: Iterable[Skill | SkillSpec] | None = None,
) -> SkillCatalog:
    """Normalize a skill list and compute the unlocked view.

    Later entries with the same id replace earlier ones. Skills are
    sorted by unlock level, then by name.
    """
    known: dict[str, Skill] = {}
    for raw in skills or ():
        skill = normalize_skill(raw, raw.name)
        if skill is not None:
            known[skill.id] = skill
    all_skills = sorted(known.values(), key=lambda s: (s.unlock_level, s.name.casefold()))
    safe_level = clamp(level, 1, MAX_LEVEL)
    return SkillCatalog(
        all_skills=all_skills,
        unlocked_skills=[s for s in all_skills if s.unlock_level <= safe_level],
    )


# =============================================================================
# Inventory
# =============================================================================


class InventoryItem(BaseModel):
    """An item carried by the player character.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        qty: Number carried.
        notes: Free-form notes.
        weapon: Weapon data when the item can be wielded.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    id: str = Field(min_length=1, description="Item identifier")
    name: str = Field(min_length=1, description="Display name")
    qty: Annotated[int, Field(ge=0, le=MAX_ITEM_QTY)] = 1
    notes: str = ""
    weapon: Weapon | None = None


class InventoryItemSpec(BaseModel):
    """An item to add to the inventory."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str = Field(min_length=1, description="Item name")
    qty: int | None = None
    notes: str | None = None
    weapon: WeaponSpec | None = None


class InventoryRemoval(BaseModel):
    """Quantity of an item to remove, by item id."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Item identifier")
    qty: int | None = None


class InventoryDelta(BaseModel):
    """A batch of inventory changes.

    Attributes:
        add: Items to add; names are merged case-insensitively.
        remove: Items to remove by id.
        equip_weapon_id: Weapon to mark as equipped afterwards.
    """

    model_config = ConfigDict(extra="forbid")

    add: list[InventoryItemSpec] = Field(default_factory=list)
    remove: list[InventoryRemoval] = Field(default_factory=list)
    equip_weapon_id: str | None = None


def normalize_inventory_item(spec: InventoryItemSpec) -> InventoryItem:
    """Build an InventoryItem from an add request."""
    return InventoryItem(
        id=spec.id or f"item_{uuid4()}",
        name=spec.name,
        qty=clamp(first_set(spec.qty, 1), 1, MAX_ITEM_QTY),
        notes=spec.notes or "",
        weapon=normalize_weapon(spec.weapon, spec.name),
    )


def get_inventory_weapons(inventory: Iterable[InventoryItem]) -> list[Weapon]:
    """Weapons from inventory items that are still held (qty > 0)."""
    weapons = []
    for item in inventory:
        if item.weapon is None or item.qty <= 0:
            continue
        weapon = normalize_weapon(item.weapon, item.name)
        if weapon is not None:
            weapons.append(weapon)
    return weapons


def sync_inventory_weapon_equip_flags(
    inventory: Sequence[InventoryItem],
    preferred_weapon_id: str | None = None,
) -> None:
    """Keep exactly one weapon item in the inventory flagged as equipped."""
    armed = [item for item in inventory if item.weapon is not None]
    if not armed:
        return
    weapons = [normalize_weapon(item.weapon, item.name) for item in armed]
    normalized = ensure_single_equipped_weapon(
        [w for w in weapons if w is not None],
        preferred_weapon_id,
    )
    for item, weapon in zip(armed, normalized, strict=True):
        item.weapon = weapon


def apply_inventory_delta(inventory: list[InventoryItem], delta: InventoryDelta | None) -> None:
    """Apply additions and removals to an inventory in place.

    Additions merge into an existing item with the same name (ignoring
    case). Removals drop the item once its quantity reaches zero.

    Args:
        inventory: The inventory to mutate.
        delta: The changes to apply, or None for no change.
    """
    if delta is None:
        return

    for spec in delta.add:
        qty = clamp(first_set(spec.qty, 1), 1, MAX_ITEM_QTY)
        existing = next(
            (item for item in inventory if item.name.casefold() == spec.name.casefold()),
            None,
        )
        if existing is None:
            inventory.append(normalize_inventory_item(spec))
            continue
        existing.qty = clamp(existing.qty + qty, 0, MAX_ITEM_QTY)
        if spec.notes:
            existing.notes = spec.notes
        weapon = normalize_weapon(spec.weapon, spec.name)
        if weapon is not None:
            existing.weapon = weapon

    for removal in delta.remove:
        index = next((i for i, item in enumerate(inventory) if item.id == removal.id), None)
        if index is None:
            continue
        qty = clamp(first_set(removal.qty, 1), 1, MAX_ITEM_QTY)
        remaining = clamp(inventory[index].qty - qty, 0, MAX_ITEM_QTY)
        if remaining <= 0:
            del inventory[index]
        else:
            inventory[index].qty = remaining

    sync_inventory_weapon_equip_flags(inventory, delta.equip_weapon_id)


__all__ = [
    "Weapon",
    "WeaponSpec",
    "normalize_weapon",
    "unarmed_weapon",
    "default_enemy_weapon",
    "ensure_single_equipped_weapon",
    "Skill",
    "SkillSpec",
    "normalize_skill",
    "SkillCatalog",
    "get_skill_catalog",
    "InventoryItem",
    "InventoryItemSpec",
    "InventoryRemoval",
    "InventoryDelta",
    "normalize_inventory_item",
    "get_inventory_weapons",
    "sync_inventory_weapon_equip_flags",
    "apply_inventory_delta",
]
