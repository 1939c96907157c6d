"""Tests for combat and game session models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rpg_host.models.combat import (
    CombatResult,
    CombatRules,
    CombatSession,
    EnemyCombatant,
    PcCombatant,
    find_enemy,
)
from rpg_host.models.enums import CombatAction, CombatantKind, CombatOutcome, GamePhase
from rpg_host.models.equipment import Weapon
from rpg_host.models.game_state import GameSession, PcProfile, ResourcePool, create_game_session


def _session() -> CombatSession:
    return CombatSession(
        pc=PcCombatant(id="pc_1", name="Ayla", hp=10, hp_max=10),
        enemies=[
            EnemyCombatant(id="enemy_1", name="Goblin", hp=0, hp_max=6, position=1),
            EnemyCombatant(id="enemy_2", name="Wolf", hp=5, hp_max=5, position=4),
        ],
        current_turn_id="enemy_2",
    )


class TestCombatAction:
    """Tests for the action enum."""

    @pytest.mark.parametrize(
        ("action", "consumes"),
        [
            (CombatAction.ATTACK, True),
            (CombatAction.DEFEND, True),
            (CombatAction.DODGE, True),
            (CombatAction.USE_SKILL, True),
            (CombatAction.MOVE, False),
            (CombatAction.END_TURN, False),
        ],
    )
    def test_consumes_action(self, action: CombatAction, consumes: bool) -> None:
        """Test which actions use the action slot."""
        assert action.consumes_action is consumes

    def test_rules_list_slot_actions(self) -> None:
        """Test the rule summary lists the slot actions."""
        rules = CombatRules()

        assert rules.action_types == [
            CombatAction.ATTACK,
            CombatAction.DEFEND,
            CombatAction.DODGE,
            CombatAction.USE_SKILL,
        ]
        assert rules.melee_range == 1


class TestCombatant:
    """Tests for combatant records."""

    def test_kinds(self) -> None:
        """Test each record knows its side."""
        assert PcCombatant.kind == CombatantKind.PC
        assert EnemyCombatant.kind == CombatantKind.ENEMY

    def test_is_alive_and_distance(self) -> None:
        """Test liveness and distance helpers."""
        session = _session()

        assert session.pc.is_alive is True
        assert session.enemies[0].is_alive is False
        assert session.pc.distance_to(session.enemies[1]) == 4

    def test_equipped_weapon(self) -> None:
        """Test the equipped weapon lookup."""
        pc = PcCombatant(
            id="pc_1",
            name="Ayla",
            hp=10,
            hp_max=10,
            weapons=[
                Weapon(id="weapon_axe", name="Axe"),
                Weapon(id="weapon_bow", name="Bow", equipped=True),
            ],
        )

        assert pc.equipped_weapon is not None
        assert pc.equipped_weapon.id == "weapon_bow"

    def test_negative_hp_rejected(self) -> None:
        """Test pools cannot go negative."""
        with pytest.raises(ValidationError):
            PcCombatant(id="pc_1", name="Ayla", hp=-1, hp_max=10)

    def test_position_bounds(self) -> None:
        """Test positions stay on the battle line."""
        enemy = EnemyCombatant(id="enemy_1", name="Goblin", hp=1, hp_max=1)

        with pytest.raises(ValidationError):
            enemy.position = 101


class TestCombatSession:
    """Tests for combat session lookups."""

    def test_find_by_id(self) -> None:
        """Test lookups return the combatant and its side."""
        session = _session()

        pc_ref = session.find_by_id("pc_1")
        enemy_ref = session.find_by_id("enemy_2")

        assert pc_ref is not None and pc_ref.kind == CombatantKind.PC
        assert enemy_ref is not None and enemy_ref.combatant.name == "Wolf"
        assert session.find_by_id("enemy_9") is None
        assert session.find_by_id(None) is None

    def test_current_ref(self) -> None:
        """Test the current turn resolves to a combatant."""
        ref = _session().current_ref

        assert ref is not None
        assert ref.kind == CombatantKind.ENEMY
        assert ref.combatant.id == "enemy_2"

    def test_living_enemies_and_name_lookup(self) -> None:
        """Test living enemy and name helpers."""
        session = _session()

        assert [e.id for e in session.living_enemies] == ["enemy_2"]
        assert session.find_enemy_by_name("Goblin").id == "enemy_1"
        assert session.find_enemy_by_name("Dragon") is None


class TestCombatResult:
    """Tests for result constructors."""

    def test_success(self) -> None:
        """Test successful results carry the outcome."""
        result = CombatResult.success("Done.", CombatOutcome.VICTORY)

        assert result.ok is True
        assert result.outcome == CombatOutcome.VICTORY
        assert result.requires_reset is False

    def test_failure(self) -> None:
        """Test failures can ask for a reset."""
        result = CombatResult.failure("Broken.", requires_reset=True)

        assert result.ok is False
        assert result.outcome is None
        assert result.requires_reset is True


class TestResourcePool:
    """Tests for HP/MP pools."""

    def test_set_clamps(self) -> None:
        """Test set keeps the value within bounds."""
        pool = ResourcePool(current=5, max=10)

        pool.set(25)
        assert pool.current == 10
        pool.set(-4)
        assert pool.current == 0

    def test_adjust(self) -> None:
        """Test adjust adds a clamped delta."""
        pool = ResourcePool(current=5, max=10)

        pool.adjust(-3)
        assert pool.current == 2
        pool.adjust(-8)
        assert pool.current == 0


class TestGameSession:
    """Tests for game session creation."""

    def test_setup_session(self) -> None:
        """Test a session starts in setup unless ready."""
        session = create_game_session()

        assert session.game_id.startswith("game_")
        assert session.phase == GamePhase.SETUP
        assert session.setup_complete is False
        assert session.in_combat is False

    def test_ready_session(self) -> None:
        """Test a ready session starts exploring with full pools."""
        session = create_game_session(
            game_id="game_1",
            pc=PcProfile(name="Ayla"),
            hp_max=20,
            mp_max=0,
            location="  Old Road ",
            ready=True,
        )

        assert session.phase == GamePhase.EXPLORATION
        assert session.setup_complete is True
        assert (session.hp.current, session.hp.max) == (20, 20)
        assert (session.mp.current, session.mp.max) == (0, 0)
        assert session.location == "Old Road"

    def test_pool_maxes_clamped(self) -> None:
        """Test impossible maxes are clamped."""
        session = create_game_session(hp_max=0, mp_max=5000)

        assert session.hp.max == 1
        assert session.mp.max == 999

    def test_json_round_trip(self) -> None:
        """Test sessions survive serialization."""
        session = create_game_session(game_id="game_1", ready=True)

        restored = GameSession.model_validate_json(session.model_dump_json())

        assert restored == session

    def test_touch_updates_timestamp(self) -> None:
        """Test touch moves updated_at forward."""
        session = create_game_session()
        before = session.updated_at

        session.touch()

        assert session.updated_at >= before


class TestFindEnemy:
    """Tests for the shared enemy lookup."""

    def test_id_takes_precedence(self) -> None:
        """Test an id lookup ignores the name."""
        enemies = _session().enemies

        assert find_enemy(enemies, "enemy_2", "Goblin").name == "Wolf"
        assert find_enemy(enemies, "enemy_9", "Goblin") is None

    def test_name_fallback(self) -> None:
        """Test names are used only when no id is given."""
        enemies = _session().enemies

        assert find_enemy(enemies, name="Goblin").id == "enemy_1"
        assert find_enemy(enemies, None, "goblin") is None
        assert find_enemy(enemies) is None
