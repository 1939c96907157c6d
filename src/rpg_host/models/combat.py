"""Pydantic V2 schemas for combat encounters.

This module defines the combatant records, the combat session owned by a
game session, the read-only projections rebuilt on every normalization
pass, and the explicit patch structures used to change combat state.

Patch structures carry only optional fields. When merged, each field is
resolved independently: explicit request value, then the previously
stored value, then a computed default.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from rpg_host.core.constants import (
    DEFAULT_MELEE_RANGE,
    DEFAULT_MOVE_SPEED,
    ENEMY_STATUS_HEALTHY,
    MAX_LEVEL,
    MAX_POOL,
    MAX_POSITION,
    MAX_RANGE,
    MAX_ROUND,
    MIN_POSITION,
)
from rpg_host.models.enums import CombatAction, CombatantKind, CombatOutcome
from rpg_host.models.equipment import Skill, SkillSpec, Weapon, WeaponSpec


# =============================================================================
# Combatants
# =============================================================================


class Combatant(BaseModel):
    """A participant in an encounter.

    Attributes:
        id: Unique combatant identifier.
        name: Display name.
        hp: Current hit points, between 0 and ``hp_max``.
        hp_max: Maximum hit points.
        mp: Current magic points, between 0 and ``mp_max``.
        mp_max: Maximum magic points.
        level: Character level, used to unlock skills.
        position: Location on the abstract battle line.
        speed: Movement budget per turn.
        movement_remaining: Movement left this turn, between 0 and ``speed``.
        action_used: Whether the action slot was consumed this turn.
        defending: Set by the defend action until the next turn starts.
        dodging: Set by the dodge action until the next turn starts.
        weapons: Carried weapons; exactly one is equipped when non-empty.
        equipped_weapon_id: Id of the equipped weapon.
        skills: Every known skill, locked or not.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    kind: ClassVar[CombatantKind]

    id: str = Field(min_length=1, description="Combatant identifier")
    name: str = Field(min_length=1, description="Display name")
    hp: Annotated[int, Field(ge=0, le=MAX_POOL)]
    hp_max: Annotated[int, Field(ge=1, le=MAX_POOL)]
    mp: Annotated[int, Field(ge=0, le=MAX_POOL)] = 0
    mp_max: Annotated[int, Field(ge=0, le=MAX_POOL)] = 0
    level: Annotated[int, Field(ge=1, le=MAX_LEVEL)] = 1
    position: Annotated[int, Field(ge=MIN_POSITION, le=MAX_POSITION)] = 0
    speed: Annotated[int, Field(ge=0, le=MAX_RANGE)] = DEFAULT_MOVE_SPEED
    movement_remaining: Annotated[int, Field(ge=0, le=MAX_RANGE)] = DEFAULT_MOVE_SPEED
    action_used: bool = False
    defending: bool = False
    dodging: bool = False
    weapons: list[Weapon] = Field(default_factory=list)
    equipped_weapon_id: str | None = None
    skills: list[Skill] = Field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        """Check whether the combatant can still act.

        Returns:
            True if HP > 0.
        """
        return self.hp > 0

    @property
    def equipped_weapon(self) -> Weapon | None:
        """The weapon flagged as equipped, if any."""
        return next((w for w in self.weapons if w.equipped), None)

    @property
    def unlocked_skills(self) -> list[Skill]:
        """Skills usable at the current level."""
        return [s for s in self.skills if s.unlock_level <= self.level]

    def distance_to(self, other: Combatant) -> int:
        """Distance between two combatants on the battle line."""
        return abs(self.position - other.position)


class PcCombatant(Combatant):
    """The player character's combat record."""

    kind: ClassVar[CombatantKind] = CombatantKind.PC


class EnemyCombatant(Combatant):
    """An enemy's combat record.

    Attributes:
        status: Wound label derived from the HP percentage.
        intent: What the enemy is about to do, for the narrator.
        note: Free-form narrator note.
    """

    kind: ClassVar[CombatantKind] = CombatantKind.ENEMY

    status: str = ENEMY_STATUS_HEALTHY
    intent: str = ""
    note: str = ""


@dataclass(frozen=True)
class CombatantRef:
    """A combatant found by id, together with its side."""

    kind: CombatantKind
    combatant: Combatant


# =============================================================================
# Initiative & Projections
# =============================================================================


class InitiativeEntry(BaseModel):
    """A slot in the turn order.

    ``score`` is None only while an entry waits to be rolled.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(min_length=1, description="Combatant identifier")
    name: str = Field(description="Display name")
    kind: CombatantKind = Field(description="Side of the combatant")
    score: int | None = Field(default=None, description="Initiative score")


class CombatRules(BaseModel):
    """Static rule summary published alongside the combat state."""

    model_config = ConfigDict(extra="forbid")

    melee_range: int = DEFAULT_MELEE_RANGE
    action_types: list[CombatAction] = Field(
        default_factory=lambda: [a for a in CombatAction if a.consumes_action]
    )
    move_is_free: bool = True
    one_action_per_turn: bool = True


class TurnSummary(BaseModel):
    """Read-only view of whose turn it is, for the UI and narrator."""

    model_config = ConfigDict(extra="forbid")

    actor_id: str
    actor_name: str
    kind: CombatantKind
    action_used: bool
    movement_remaining: int
    equipped_weapon_id: str | None = None
    available_skill_ids: list[str] = Field(default_factory=list)


def find_enemy(
    enemies: Sequence[EnemyCombatant],
    enemy_id: str | None = None,
    name: str | None = None,
) -> EnemyCombatant | None:
    """Find an enemy by id, or by exact name when no id is given."""
    if enemy_id:
        return next((e for e in enemies if e.id == enemy_id), None)
    if name:
        return next((e for e in enemies if e.name == name), None)
    return None


class CombatSession(BaseModel):
    """State of the active encounter, owned by a GameSession.

    Attributes:
        round: Round counter, starting at 1.
        current_turn_id: Id of the combatant whose turn it is.
        pc: The player character.
        enemies: Enemies in the encounter, dead ones included.
        initiative: Turn order, sorted by score, highest first.
        rules: Rule summary projection.
        turn: Current turn projection.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    round: Annotated[int, Field(ge=1, le=MAX_ROUND)] = 1
    current_turn_id: str | None = None
    pc: PcCombatant
    enemies: list[EnemyCombatant] = Field(default_factory=list)
    initiative: list[InitiativeEntry] = Field(default_factory=list)
    rules: CombatRules = Field(default_factory=CombatRules)
    turn: TurnSummary | None = None

    def find_by_id(self, combatant_id: str | None) -> CombatantRef | None:
        """Look up the PC or an enemy by id."""
        if not combatant_id:
            return None
        if self.pc.id == combatant_id:
            return CombatantRef(kind=CombatantKind.PC, combatant=self.pc)
        for enemy in self.enemies:
            if enemy.id == combatant_id:
                return CombatantRef(kind=CombatantKind.ENEMY, combatant=enemy)
        return None

    def find_enemy_by_name(self, name: str | None) -> EnemyCombatant | None:
        """Look up an enemy by exact display name."""
        if not name:
            return None
        return find_enemy(self.enemies, name=name)

    @property
    def current_ref(self) -> CombatantRef | None:
        """The combatant whose turn it is."""
        return self.find_by_id(self.current_turn_id)

    @property
    def living_enemies(self) -> list[EnemyCombatant]:
        return [e for e in self.enemies if e.is_alive]


# =============================================================================
# Patches & Requests
# =============================================================================


class CombatantPatch(BaseModel):
    """Explicit changes to the player combatant."""

    model_config = ConfigDict(extra="forbid")

    level: int | None = None
    position: int | None = None
    speed: int | None = None
    movement_remaining: int | None = None
    action_used: bool | None = None
    defending: bool | None = None
    dodging: bool | None = None
    equipped_weapon_id: str | None = None
    hp: int | None = None
    mp: int | None = None
    skills: list[SkillSpec] | None = None


class EnemySpec(BaseModel):
    """An enemy to add or update, matched by id or else by name."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str | None = None
    hp: int | None = None
    hp_max: int | None = None
    mp: int | None = None
    mp_max: int | None = None
    level: int | None = None
    position: int | None = None
    speed: int | None = None
    movement_remaining: int | None = None
    action_used: bool | None = None
    defending: bool | None = None
    dodging: bool | None = None
    equipped_weapon_id: str | None = None
    status: str | None = None
    intent: str | None = None
    note: str | None = None
    weapons: list[WeaponSpec] | None = None
    skills: list[SkillSpec] | None = None


class InitiativeSpec(BaseModel):
    """A caller-supplied initiative entry, resolved by id or name."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str | None = None
    kind: CombatantKind | None = None
    score: int | None = None


class CombatUpdate(BaseModel):
    """A bulk change to the encounter.

    ``active=False`` ends combat. ``active=True`` starts it or merges the
    given PC patch, enemies and initiative into the running encounter.
    The ``pc_*`` fields adjust the session HP/MP before anything else and
    the ``enemy_*`` fields describe a single enemy when ``enemies`` is not
    given.
    """

    model_config = ConfigDict(extra="forbid")

    active: bool
    round: int | None = None
    current_turn_id: str | None = None
    pc_hp: int | None = None
    pc_hp_delta: int | None = None
    pc_mp: int | None = None
    pc_mp_delta: int | None = None
    enemy_name: str | None = None
    enemy_hp: int | None = None
    enemy_hp_max: int | None = None
    enemy_intent: str | None = None
    pc: CombatantPatch | None = None
    enemies: list[EnemySpec] | None = None
    initiative: list[InitiativeSpec] | None = None

    @property
    def has_single_enemy_fields(self) -> bool:
        return any(
            value is not None
            for value in (self.enemy_name, self.enemy_hp, self.enemy_hp_max, self.enemy_intent)
        )


class CombatActionRequest(BaseModel):
    """One action by the combatant whose turn it is."""

    model_config = ConfigDict(extra="forbid")

    actor_id: str | None = Field(default=None, description="Acting combatant, defaults to the current turn")
    action: CombatAction = Field(description="Action to take")
    target_id: str | None = Field(default=None, description="Target of an attack or skill")
    weapon_id: str | None = Field(default=None, description="Weapon to attack with")
    skill_id: str | None = Field(default=None, description="Skill to use")
    damage: int | None = Field(default=None, ge=0, description="Explicit damage amount")
    heal: int | None = Field(default=None, ge=0, description="Explicit healing amount")
    move_by: int | None = Field(default=None, description="Relative movement")
    move_to: int | None = Field(default=None, description="Absolute destination")


@dataclass
class CombatResult:
    """Outcome of a combat call, returned instead of raising.

    Attributes:
        ok: Whether the request was applied.
        message: Narration on success, the reason on failure.
        outcome: Set when the call ended the encounter.
        requires_reset: Set when a broken invariant means retrying will not help.
    """

    ok: bool
    message: str
    outcome: CombatOutcome | None = None
    requires_reset: bool = False

    @classmethod
    def success(cls, message: str, outcome: CombatOutcome | None = None) -> CombatResult:
        return cls(ok=True, message=message, outcome=outcome)

    @classmethod
    def failure(cls, message: str, *, requires_reset: bool = False) -> CombatResult:
        return cls(ok=False, message=message, requires_reset=requires_reset)


__all__ = [
    "Combatant",
    "PcCombatant",
    "EnemyCombatant",
    "CombatantRef",
    "InitiativeEntry",
    "CombatRules",
    "TurnSummary",
    "CombatSession",
    "find_enemy",
    "CombatantPatch",
    "EnemySpec",
    "InitiativeSpec",
    "CombatUpdate",
    "CombatActionRequest",
    "CombatResult",
]
