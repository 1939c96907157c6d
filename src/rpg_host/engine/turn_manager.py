"""Turn progression for combat encounters.

The initiative order lives on the CombatSession itself; the turn manager
only moves ``current_turn_id`` forward through it, skipping combatants
that are down, and bumps the round when the order wraps around.
"""

from __future__ import annotations

from dataclasses import dataclass

from rpg_host.core.constants import MAX_ROUND
from rpg_host.core.exceptions import TurnManagementError
from rpg_host.core.logging import get_logger
from rpg_host.core.utils import clamp
from rpg_host.engine.normalizer import CombatNormalizer
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)


@dataclass(frozen=True)
class TurnAdvance:
    """Result of moving to the next turn.

    Attributes:
        actor_id: Id of the combatant whose turn it now is.
        actor_name: Display name of that combatant.
        round: Round number after the move.
        wrapped: Whether the order wrapped into a new round.
    """

    actor_id: str
    actor_name: str
    round: int
    wrapped: bool


class TurnManager:
    """Advance turns through the initiative order.

    Attributes:
        normalizer: Used to re-sync the combat record after each move.
    """

    def __init__(self, normalizer: CombatNormalizer) -> None:
        self.normalizer = normalizer

    def advance(self, game: GameSession) -> TurnAdvance:
        """Move to the next living combatant in initiative.

        The new actor starts its turn fresh: action slot free, defend and
        dodge cleared, full movement.

        Args:
            game: Game session with an active combat.

        Returns:
            Who acts next and the resulting round.

        Raises:
            TurnManagementError: If initiative is empty or nobody is alive.
        """
        combat = game.combat
        if combat is None or not combat.initiative:
            raise TurnManagementError("Initiative order is missing.")

        order = combat.initiative
        current_index = next(
            (i for i, entry in enumerate(order) if entry.id == combat.current_turn_id),
            0,
        )

        wrapped = False
        for offset in range(1, len(order) + 1):
            next_index = (current_index + offset) % len(order)
            if next_index <= current_index:
                wrapped = True
            ref = combat.find_by_id(order[next_index].id)
            if ref is None or not ref.combatant.is_alive:
                continue

            actor = ref.combatant
            combat.current_turn_id = actor.id
            if wrapped:
                combat.round = clamp(combat.round + 1, 1, MAX_ROUND)
            actor.action_used = False
            actor.defending = False
            actor.dodging = False
            actor.movement_remaining = actor.speed

            advance = TurnAdvance(
                actor_id=actor.id,
                actor_name=actor.name,
                round=combat.round,
                wrapped=wrapped,
            )
            self.normalizer.sync(game)
            logger.info(
                "Turn advanced",
                actor=advance.actor_name,
                round=advance.round,
                new_round=wrapped,
            )
            return advance

        raise TurnManagementError(
            "No living combatants are available in initiative.",
            details={"round": combat.round},
        )


__all__ = [
    "TurnAdvance",
    "TurnManager",
]
