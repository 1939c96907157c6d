"""Automatic enemy turns.

Enemies follow one fixed policy: with a weapon, close to attack range
and attack if possible, otherwise dodge; without a weapon, defend.
Autoplay runs until the player's turn comes up or combat ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rpg_host.core.exceptions import AutoplayLimitError, TurnManagementError
from rpg_host.core.logging import get_logger
from rpg_host.engine.dice import DiceRoller
from rpg_host.engine.log import LogSink
from rpg_host.engine.mechanics import (
    apply_damage,
    describe_attack,
    move_toward,
    resolve_amount,
    resolve_weapon,
)
from rpg_host.engine.normalizer import CombatNormalizer, ensure_turn_state
from rpg_host.engine.outcome import OutcomeEvaluator
from rpg_host.engine.turn_manager import TurnManager
from rpg_host.models.enums import CombatantKind, CombatOutcome, LogKind
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)


@dataclass(frozen=True)
class EnemyTurn:
    """One resolved enemy turn.

    Attributes:
        actor_name: The enemy that acted.
        summary: Narration of what happened.
        outcome: Set when this turn ended the encounter.
    """

    actor_name: str
    summary: str
    outcome: CombatOutcome | None = None


@dataclass
class AutoplayReport:
    """Every enemy turn resolved before control returned to the player."""

    summaries: list[str] = field(default_factory=list)
    outcome: CombatOutcome | None = None

    @property
    def text(self) -> str:
        return " ".join(self.summaries)


class EnemyAutoplay:
    """Resolve enemy turns on behalf of the host.

    Attributes:
        max_turns: Upper bound on enemy turns resolved in one call.
    """

    def __init__(
        self,
        dice: DiceRoller,
        normalizer: CombatNormalizer,
        turns: TurnManager,
        outcomes: OutcomeEvaluator,
        log_sink: LogSink,
        *,
        max_turns: int = 20,
    ) -> None:
        self.dice = dice
        self.normalizer = normalizer
        self.turns = turns
        self.outcomes = outcomes
        self.log_sink = log_sink
        self.max_turns = max_turns

    def is_enemy_turn(self, game: GameSession) -> bool:
        if game.combat is None:
            return False
        ref = game.combat.current_ref
        return ref is not None and ref.kind == CombatantKind.ENEMY

    def resolve_enemy_turn_once(self, game: GameSession) -> EnemyTurn:
        """Play the current enemy's turn and pass the turn on.

        Args:
            game: Game session whose current actor is an enemy.

        Returns:
            The resolved turn.

        Raises:
            TurnManagementError: If it is not an enemy's turn, or the
                turn cannot be passed on.
        """
        if game.combat is None:
            raise TurnManagementError("Combat is not active.")
        self.normalizer.sync(game)
        combat = game.combat
        ref = combat.current_ref
        if ref is None or ref.kind != CombatantKind.ENEMY:
            raise TurnManagementError("Current turn is not an enemy turn.")

        enemy = ref.combatant
        pc = combat.pc
        ensure_turn_state(enemy)

        if not enemy.is_alive:
            self.turns.advance(game)
            return EnemyTurn(actor_name=enemy.name, summary=f"{enemy.name} is down and cannot act.")
        if not pc.is_alive:
            outcome = self.outcomes.resolve(game)
            return EnemyTurn(actor_name=enemy.name, summary="Player is already down.", outcome=outcome)

        events: list[str] = []
        weapon = resolve_weapon(enemy)
        if weapon is None:
            enemy.action_used = True
            enemy.defending = True
            events.append(f"{enemy.name} takes a defensive stance.")
        else:
            attack_range = weapon.attack_range
            moved = move_toward(enemy, pc, attack_range)
            if moved > 0:
                events.append(f"{enemy.name} moves {moved} to close distance.")

            enemy.action_used = True
            if enemy.distance_to(pc) <= attack_range:
                resolution = resolve_amount(self.dice, explicit=None, formula=weapon.damage_formula)
                dealt = apply_damage(pc, resolution.amount)
                events.append(describe_attack(enemy, pc, weapon, dealt, resolution))
            else:
                enemy.dodging = True
                events.append(f"{enemy.name} cannot reach attack range and takes evasive movement.")

        for event in events:
            self.log_sink.append(game, event, LogKind.COMBAT)
        summary = " ".join(events)
        logger.debug("Enemy turn resolved", enemy=enemy.name, summary=summary)

        self.normalizer.sync(game)
        outcome = self.outcomes.resolve(game)
        if outcome is None:
            self.turns.advance(game)
        return EnemyTurn(actor_name=enemy.name, summary=summary, outcome=outcome)

    def resolve_until_player_turn(self, game: GameSession) -> AutoplayReport:
        """Play enemy turns until the player acts next or combat ends.

        Raises:
            TurnManagementError: If an enemy turn cannot be resolved.
            AutoplayLimitError: If enemies still hold the turn after
                ``max_turns`` turns.
        """
        report = AutoplayReport()
        for _ in range(self.max_turns):
            if game.combat is None:
                break
            self.normalizer.sync(game)
            if not self.is_enemy_turn(game):
                break
            turn = self.resolve_enemy_turn_once(game)
            if turn.summary:
                report.summaries.append(turn.summary)
            if turn.outcome is not None:
                report.outcome = turn.outcome
            if game.combat is None:
                break

        if self.is_enemy_turn(game):
            raise AutoplayLimitError(
                "Enemy turns did not reach the player's turn.",
                max_turns=self.max_turns,
            )
        return report


__all__ = [
    "AutoplayReport",
    "EnemyAutoplay",
    "EnemyTurn",
]
