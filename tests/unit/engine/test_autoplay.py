"""Tests for automatic enemy turns."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from rpg_host.core.exceptions import AutoplayLimitError, TurnManagementError
from rpg_host.engine.autoplay import EnemyAutoplay
from rpg_host.engine.resolver import CombatEngine
from rpg_host.models.combat import CombatResult, EnemySpec, InitiativeSpec
from rpg_host.models.enums import CombatOutcome, GamePhase, LogKind
from rpg_host.models.equipment import WeaponSpec
from rpg_host.models.game_state import GameSession


PC_ID = "pc_game_test"
GOBLIN_ID = "enemy_1"


@pytest.fixture
def autoplay(engine: CombatEngine) -> EnemyAutoplay:
    return engine.autoplay


def _give_goblin_the_turn(game: GameSession) -> None:
    game.combat.current_turn_id = GOBLIN_ID


class TestResolveEnemyTurnOnce:
    """Tests for a single enemy turn."""

    def test_not_enemy_turn(self, autoplay: EnemyAutoplay, combat_game: GameSession) -> None:
        """Test the player's turn cannot be autoplayed."""
        assert autoplay.is_enemy_turn(combat_game) is False

        with pytest.raises(TurnManagementError, match="Current turn is not an enemy turn."):
            autoplay.resolve_enemy_turn_once(combat_game)

    def test_attack_in_reach(self, autoplay: EnemyAutoplay, combat_game: GameSession) -> None:
        """Test an adjacent enemy attacks and passes the turn."""
        _give_goblin_the_turn(combat_game)

        turn = autoplay.resolve_enemy_turn_once(combat_game)

        assert turn.actor_name == "Goblin"
        assert turn.summary == "Goblin attacks Ayla with Claws."
        assert turn.outcome is None
        assert combat_game.combat.current_turn_id == PC_ID
        assert combat_game.log[-1].text == "Goblin attacks Ayla with Claws."
        assert combat_game.log[-1].kind == LogKind.COMBAT

    def test_closes_distance(
        self,
        autoplay: EnemyAutoplay,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test a distant enemy moves up and attacks when it arrives."""
        start_combat([make_goblin(position=5)])
        _give_goblin_the_turn(game)

        turn = autoplay.resolve_enemy_turn_once(game)

        assert turn.summary == "Goblin moves 4 to close distance. Goblin attacks Ayla with Claws."
        assert game.combat.find_by_id(GOBLIN_ID).combatant.position == 1

    def test_out_of_reach_dodges(
        self,
        autoplay: EnemyAutoplay,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test an enemy that cannot reach moves and takes evasive action."""
        start_combat([make_goblin(position=20)])
        _give_goblin_the_turn(game)

        turn = autoplay.resolve_enemy_turn_once(game)

        assert turn.summary == (
            "Goblin moves 6 to close distance. "
            "Goblin cannot reach attack range and takes evasive movement."
        )
        goblin = game.combat.find_by_id(GOBLIN_ID).combatant
        assert goblin.position == 14
        assert goblin.dodging is True
        assert game.combat.pc.hp == 12

    def test_ranged_enemy_stays_at_range(
        self,
        autoplay: EnemyAutoplay,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test a ranged enemy only closes to its weapon range."""
        bow = WeaponSpec(name="Shortbow", category="ranged", range=4)
        start_combat([make_goblin(position=8, weapons=[bow])])
        _give_goblin_the_turn(game)

        turn = autoplay.resolve_enemy_turn_once(game)

        assert turn.summary.startswith("Goblin moves 4 to close distance. Goblin attacks Ayla with Shortbow")
        assert game.combat.find_by_id(GOBLIN_ID).combatant.position == 4

    def test_downed_enemy_skips(self, autoplay: EnemyAutoplay, combat_game: GameSession) -> None:
        """Test a downed enemy whose turn it is passes the turn."""
        _give_goblin_the_turn(combat_game)
        combat_game.combat.find_by_id(GOBLIN_ID).combatant.hp = 0

        turn = autoplay.resolve_enemy_turn_once(combat_game)

        assert turn.summary == "Goblin is down and cannot act."
        assert combat_game.combat.current_turn_id == PC_ID

    def test_enemy_can_down_player(
        self,
        autoplay: EnemyAutoplay,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test an enemy attack can end the encounter."""
        club = WeaponSpec(name="Club", damage_formula="1d4+1")
        start_combat([make_goblin(weapons=[club])])
        game.combat.pc.hp = 1
        _give_goblin_the_turn(game)

        turn = autoplay.resolve_enemy_turn_once(game)

        assert turn.outcome == CombatOutcome.PLAYER_DOWN
        assert game.combat is None
        assert game.phase == GamePhase.EXPLORATION
        assert game.hp.current == 0
        assert game.log[-1].text == "Combat ended. The player is down."


class TestResolveUntilPlayerTurn:
    """Tests for chained enemy turns."""

    def test_plays_every_enemy(
        self,
        autoplay: EnemyAutoplay,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test all enemies act before control returns to the player."""
        start_combat(
            [make_goblin(), make_goblin(id="enemy_2", name="Hobgoblin")],
            initiative=[
                InitiativeSpec(id=PC_ID, score=20),
                InitiativeSpec(id=GOBLIN_ID, score=15),
                InitiativeSpec(id="enemy_2", score=10),
            ],
        )
        _give_goblin_the_turn(game)

        report = autoplay.resolve_until_player_turn(game)

        assert report.summaries == [
            "Goblin attacks Ayla with Claws.",
            "Hobgoblin attacks Ayla with Claws.",
        ]
        assert report.text == "Goblin attacks Ayla with Claws. Hobgoblin attacks Ayla with Claws."
        assert report.outcome is None
        assert game.combat.current_turn_id == PC_ID
        assert game.combat.round == 2

    def test_noop_on_player_turn(self, autoplay: EnemyAutoplay, combat_game: GameSession) -> None:
        """Test nothing happens when the player already holds the turn."""
        report = autoplay.resolve_until_player_turn(combat_game)

        assert report.summaries == []
        assert report.text == ""

    def test_turn_cap(
        self,
        engine: CombatEngine,
        game: GameSession,
        start_combat: Callable[..., CombatResult],
        make_goblin: Callable[..., EnemySpec],
    ) -> None:
        """Test enemies still holding the turn after the cap is an error."""
        start_combat(
            [make_goblin(), make_goblin(id="enemy_2", name="Hobgoblin")],
            initiative=[
                InitiativeSpec(id=PC_ID, score=20),
                InitiativeSpec(id=GOBLIN_ID, score=15),
                InitiativeSpec(id="enemy_2", score=10),
            ],
        )
        _give_goblin_the_turn(game)
        capped = EnemyAutoplay(
            engine.dice,
            engine.normalizer,
            engine.turns,
            engine.outcomes,
            engine.log_sink,
            max_turns=1,
        )

        with pytest.raises(AutoplayLimitError) as exc_info:
            capped.resolve_until_player_turn(game)

        assert exc_info.value.details["max_turns"] == 1
        assert game.combat.current_turn_id == "enemy_2"
