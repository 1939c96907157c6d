"""Turn-based combat engine.

Submodules:
    dice: Dice formula parsing and rolling (d20 library)
    normalizer: Rebuilds combatants, initiative and projections
    turn_manager: Moves the turn through initiative
    mechanics: Damage, healing, movement and weapon helpers
    autoplay: Scripted enemy turns
    outcome: Victory and defeat detection
    resolver: CombatEngine, the entry point for updates and actions
    log: Narration log sink
"""

from __future__ import annotations

from rpg_host.engine.autoplay import AutoplayReport, EnemyAutoplay, EnemyTurn
from rpg_host.engine.dice import DiceFormula, DiceRoll, DiceRoller, parse_formula, roll
from rpg_host.engine.log import LogSink, SessionLogSink
from rpg_host.engine.normalizer import CombatNormalizer, enemy_status, ensure_turn_state
from rpg_host.engine.outcome import OutcomeEvaluator, outcome_suffix
from rpg_host.engine.resolver import CombatEngine, TurnTransition
from rpg_host.engine.turn_manager import TurnAdvance, TurnManager


__all__ = [
    # Dice
    "DiceFormula",
    "DiceRoll",
    "DiceRoller",
    "parse_formula",
    "roll",
    # Log
    "LogSink",
    "SessionLogSink",
    # Normalization
    "CombatNormalizer",
    "enemy_status",
    "ensure_turn_state",
    # Turns
    "TurnAdvance",
    "TurnManager",
    "TurnTransition",
    # Autoplay & outcome
    "AutoplayReport",
    "EnemyAutoplay",
    "EnemyTurn",
    "OutcomeEvaluator",
    "outcome_suffix",
    # Entry point
    "CombatEngine",
]
