"""Tests for shared combat mechanics."""

from __future__ import annotations

from rpg_host.engine.dice import DiceRoller
from rpg_host.engine.mechanics import (
    AmountSource,
    apply_damage,
    apply_healing,
    describe_attack,
    move_toward,
    resolve_amount,
    resolve_weapon,
    usable_skill,
)
from rpg_host.models.combat import EnemyCombatant, PcCombatant
from rpg_host.models.equipment import Skill, Weapon, unarmed_weapon


def _pc(**kwargs: object) -> PcCombatant:
    data: dict[str, object] = {"id": "pc_1", "name": "Ayla", "hp": 10, "hp_max": 10}
    data.update(kwargs)
    return PcCombatant(**data)


def _enemy(**kwargs: object) -> EnemyCombatant:
    data: dict[str, object] = {"id": "enemy_1", "name": "Goblin", "hp": 6, "hp_max": 6, "position": 5}
    data.update(kwargs)
    return EnemyCombatant(**data)


class TestResolveAmount:
    """Tests for damage and healing amount selection."""

    def test_explicit_wins(self, dice_roller: DiceRoller) -> None:
        """Test explicit amounts skip the formula."""
        resolution = resolve_amount(dice_roller, explicit=4, formula="1d6")

        assert resolution.amount == 4
        assert resolution.source == AmountSource.EXPLICIT
        assert resolution.roll is None

    def test_explicit_is_clamped(self, dice_roller: DiceRoller) -> None:
        """Test huge amounts are clamped."""
        assert resolve_amount(dice_roller, explicit=5000, formula=None).amount == 999

    def test_formula_is_rolled(self, dice_roller: DiceRoller) -> None:
        """Test a valid formula is rolled when no amount is given."""
        resolution = resolve_amount(dice_roller, explicit=None, formula="1d6+2")

        assert resolution.source == AmountSource.ROLLED
        assert 3 <= resolution.amount <= 8
        assert resolution.roll is not None

    def test_fallback_for_non_formula(self, dice_roller: DiceRoller) -> None:
        """Test a bare number is not rolled and falls back."""
        resolution = resolve_amount(dice_roller, explicit=None, formula="1")

        assert resolution.amount == 0
        assert resolution.source == AmountSource.FALLBACK


class TestHitPoints:
    """Tests for damage and healing."""

    def test_damage_never_below_zero(self) -> None:
        """Test damage is capped by remaining HP."""
        enemy = _enemy(hp=2)

        assert apply_damage(enemy, 4) == 2
        assert enemy.hp == 0

    def test_healing_never_above_max(self) -> None:
        """Test healing is capped by max HP."""
        pc = _pc(hp=7)

        assert apply_healing(pc, 10) == 3
        assert pc.hp == 10

    def test_zero_amount_is_noop(self) -> None:
        """Test zero and negative amounts change nothing."""
        pc = _pc(hp=7)

        assert apply_damage(pc, 0) == 0
        assert apply_healing(pc, -3) == 0
        assert pc.hp == 7


class TestMoveToward:
    """Tests for automatic movement."""

    def test_moves_until_desired_distance(self) -> None:
        """Test the mover stops at the requested distance."""
        enemy = _enemy(position=5)
        pc = _pc(position=0)

        traveled = move_toward(enemy, pc, desired_distance=1)

        assert traveled == 4
        assert enemy.position == 1
        assert enemy.movement_remaining == 2

    def test_movement_is_bounded(self) -> None:
        """Test movement stops when the budget runs out."""
        enemy = _enemy(position=20, movement_remaining=3)
        pc = _pc(position=0)

        assert move_toward(enemy, pc, desired_distance=1) == 3
        assert enemy.position == 17
        assert enemy.movement_remaining == 0

    def test_already_in_range(self) -> None:
        """Test no movement happens inside the desired distance."""
        enemy = _enemy(position=1)
        pc = _pc(position=0)

        assert move_toward(enemy, pc, desired_distance=1) == 0
        assert enemy.movement_remaining == 6


class TestWeaponsAndSkills:
    """Tests for weapon and skill lookup."""

    def test_resolve_equipped_weapon(self) -> None:
        """Test the equipped weapon is used by default."""
        pc = _pc(weapons=[unarmed_weapon()])

        weapon = resolve_weapon(pc)

        assert weapon is not None
        assert weapon.id == "weapon_unarmed"
        assert pc.equipped_weapon_id == "weapon_unarmed"

    def test_unequipped_weapon_is_refused(self) -> None:
        """Test a carried but unequipped weapon cannot be used."""
        bow = Weapon(id="weapon_bow", name="Bow", category="ranged", range=8)
        pc = _pc(weapons=[unarmed_weapon(), bow], equipped_weapon_id="weapon_unarmed")

        assert resolve_weapon(pc, "weapon_bow") is None

    def test_no_weapons(self) -> None:
        """Test a combatant with no weapons has nothing to attack with."""
        assert resolve_weapon(_enemy(weapons=[])) is None

    def test_usable_skill_respects_level(self) -> None:
        """Test locked skills cannot be used."""
        pc = _pc(
            level=2,
            skills=[
                Skill(id="skill_spark", name="Spark", unlock_level=1),
                Skill(id="skill_storm", name="Storm", unlock_level=5),
            ],
        )

        assert usable_skill(pc, "skill_spark") is not None
        assert usable_skill(pc, "skill_storm") is None
        assert usable_skill(pc, None) is None


class TestDescribeAttack:
    """Tests for attack narration."""

    def test_with_damage(self, dice_roller: DiceRoller) -> None:
        """Test narration includes damage dealt."""
        resolution = resolve_amount(dice_roller, explicit=4, formula=None)

        message = describe_attack(_pc(), _enemy(), unarmed_weapon(), 4, resolution)

        assert message == "Ayla attacks Goblin with Default Melee for 4 damage."

    def test_without_damage(self, dice_roller: DiceRoller) -> None:
        """Test narration omits zero damage."""
        resolution = resolve_amount(dice_roller, explicit=None, formula="")

        message = describe_attack(_enemy(), _pc(), unarmed_weapon(), 0, resolution)

        assert message == "Goblin attacks Ayla with Default Melee."

    def test_rolled_damage_shows_roll(self, dice_roller: DiceRoller) -> None:
        """Test rolled damage appends the roll."""
        resolution = resolve_amount(dice_roller, explicit=None, formula="1d4")

        message = describe_attack(_pc(), _enemy(), unarmed_weapon(), resolution.amount, resolution)

        assert message.endswith(f"[1d4={resolution.amount}]")
