"""End-of-combat detection."""

from __future__ import annotations

from rpg_host.core.logging import get_logger
from rpg_host.engine.log import LogSink
from rpg_host.models.enums import CombatOutcome, GamePhase, LogKind
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)

OUTCOME_SUFFIXES: dict[CombatOutcome, str] = {
    CombatOutcome.VICTORY: " Combat ends in victory.",
    CombatOutcome.PLAYER_DOWN: " Combat ends with the player down.",
}


def outcome_suffix(outcome: CombatOutcome | None) -> str:
    """Sentence appended to a reply when a call ended the encounter."""
    if outcome is None:
        return ""
    return OUTCOME_SUFFIXES[outcome]


class OutcomeEvaluator:
    """Close the encounter once one side is down.

    The player being down is checked first, so a simultaneous wipe
    counts as a loss.
    """

    def __init__(self, log_sink: LogSink) -> None:
        self.log_sink = log_sink

    def resolve(self, game: GameSession) -> CombatOutcome | None:
        """End combat if the PC or every enemy is at 0 HP.

        Args:
            game: Game session, possibly in combat.

        Returns:
            The outcome when combat ended, else None.
        """
        combat = game.combat
        if combat is None:
            return None

        if not combat.pc.is_alive:
            outcome = CombatOutcome.PLAYER_DOWN
            text = "Combat ended. The player is down."
        elif not combat.living_enemies:
            outcome = CombatOutcome.VICTORY
            text = "Combat ended. All enemies are down."
        else:
            return None

        game.combat = None
        game.phase = GamePhase.EXPLORATION
        self.log_sink.append(game, text, LogKind.COMBAT)
        logger.info("Combat ended", outcome=str(outcome), game_id=game.game_id)
        return outcome


__all__ = [
    "OUTCOME_SUFFIXES",
    "OutcomeEvaluator",
    "outcome_suffix",
]
