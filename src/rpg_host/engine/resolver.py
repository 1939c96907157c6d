"""Combat engine entry points.

``CombatEngine`` is what the host talks to. It applies bulk combat
updates (start, merge, stop) and resolves single player actions, running
the normalizer first and the outcome evaluator and enemy autoplay after
every change.

Expected failures never escape: handlers raise ``CombatError`` and the
engine turns it into ``CombatResult(ok=False)``. A ``TurnManagementError``
means the encounter is broken and is reported with ``requires_reset``.

Example:
    engine = CombatEngine()
    engine.apply_combat_update(game, CombatUpdate(active=True, enemy_name="Goblin"))
    result = engine.resolve_combat_action(game, CombatActionRequest(action="defend"))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from rpg_host.core.config import Settings, get_settings
from rpg_host.core.constants import (
    DEFAULT_ENEMY_HP,
    DEFAULT_ENEMY_NAME,
    MAX_POSITION,
    MAX_ROUND,
    MIN_POSITION,
)
from rpg_host.core.exceptions import CombatError, TurnManagementError
from rpg_host.core.logging import get_logger
from rpg_host.core.utils import clamp, first_set
from rpg_host.engine.autoplay import EnemyAutoplay
from rpg_host.engine.dice import DiceRoller
from rpg_host.engine.log import LogSink, SessionLogSink
from rpg_host.engine.mechanics import (
    apply_damage,
    apply_healing,
    describe_attack,
    resolve_amount,
    resolve_weapon,
    usable_skill,
)
from rpg_host.engine.normalizer import CombatNormalizer, ensure_turn_state, new_enemy_id
from rpg_host.engine.outcome import OutcomeEvaluator, outcome_suffix
from rpg_host.engine.turn_manager import TurnManager
from rpg_host.models.combat import (
    CombatActionRequest,
    CombatantRef,
    CombatResult,
    CombatSession,
    CombatUpdate,
    EnemyCombatant,
    EnemySpec,
    find_enemy,
)
from rpg_host.models.enums import (
    CombatAction,
    CombatantKind,
    CombatOutcome,
    GamePhase,
    LogKind,
    SkillTarget,
)
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)


@dataclass(frozen=True)
class TurnTransition:
    """Narration and outcome of ending a turn, enemy turns included."""

    summary: str
    outcome: CombatOutcome | None = None


@dataclass(frozen=True)
class _ActionEffect:
    message: str
    used_action: bool = False
    outcome: CombatOutcome | None = None


_ActionHandler = Callable[[GameSession, CombatantRef, CombatActionRequest], _ActionEffect]


class CombatEngine:
    """Resolve combat updates and actions against a game session.

    Attributes:
        settings: Application settings.
        dice: Dice roller for damage and initiative.
        log_sink: Where narration entries go.
        normalizer: Rebuilds the combat record on every call.
        turns: Moves the turn through initiative.
        outcomes: Ends combat once a side is down.
        autoplay: Plays enemy turns.
    """

    def __init__(
        self,
        *,
        dice: DiceRoller | None = None,
        log_sink: LogSink | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the combat engine.

        Args:
            dice: Dice roller; a new one seeded from settings by default.
            log_sink: Log sink; the session log capped by settings by default.
            settings: Settings; the cached application settings by default.
        """
        self.settings = settings or get_settings()
        self.dice = dice or DiceRoller(seed=self.settings.combat.dice_seed)
        self.log_sink = log_sink or SessionLogSink(max_entries=self.settings.game.log_max_entries)
        self.normalizer = CombatNormalizer(self.dice)
        self.turns = TurnManager(self.normalizer)
        self.outcomes = OutcomeEvaluator(self.log_sink)
        self.autoplay = EnemyAutoplay(
            self.dice,
            self.normalizer,
            self.turns,
            self.outcomes,
            self.log_sink,
            max_turns=self.settings.combat.autoplay_max_turns,
        )
        self._handlers: dict[CombatAction, _ActionHandler] = {
            CombatAction.MOVE: self._move,
            CombatAction.ATTACK: self._attack,
            CombatAction.DEFEND: self._defend,
            CombatAction.DODGE: self._dodge,
            CombatAction.USE_SKILL: self._use_skill,
            CombatAction.END_TURN: self._end_turn,
        }

    def sync(self, game: GameSession) -> None:
        """Normalize the game's combat record in place."""
        self.normalizer.sync(game)

    # -------------------------------------------------------------------------
    # Turn transitions
    # -------------------------------------------------------------------------

    def resolve_turn_transition(self, game: GameSession) -> TurnTransition:
        """End the current turn and play any enemy turns that follow.

        Raises:
            TurnManagementError: If the turn cannot be passed on.
        """
        advance = self.turns.advance(game)
        summary = f"Turn ends. It is now {advance.actor_name}'s turn."
        self.log_sink.append(game, summary, LogKind.COMBAT)

        if not self.autoplay.is_enemy_turn(game):
            return TurnTransition(summary=summary)

        report = self.autoplay.resolve_until_player_turn(game)
        if report.summaries:
            summary += f" Enemy turns resolved: {report.text}"
        if game.combat is not None and (ref := game.combat.current_ref) is not None:
            summary += f" It is now {ref.combatant.name}'s turn."
        return TurnTransition(summary=summary, outcome=report.outcome)

    # -------------------------------------------------------------------------
    # Single actions
    # -------------------------------------------------------------------------

    def resolve_combat_action(self, game: GameSession, request: CombatActionRequest) -> CombatResult:
        """Resolve one action by the combatant whose turn it is.

        Args:
            game: Game session to mutate.
            request: The requested action.

        Returns:
            The narration on success, or the reason the action was refused.
        """
        if game.combat is None:
            return CombatResult.failure("Combat is not active. Start combat first.")
        try:
            return self._resolve_action(game, request)
        except TurnManagementError as exc:
            logger.warning("Combat requires reset", game_id=game.game_id, error=exc.message)
            return CombatResult.failure(exc.message, requires_reset=True)
        except CombatError as exc:
            logger.debug("Combat action refused", game_id=game.game_id, reason=exc.message)
            return CombatResult.failure(exc.message)

    def _resolve_action(self, game: GameSession, request: CombatActionRequest) -> CombatResult:
        self.normalizer.sync(game)
        if self.autoplay.is_enemy_turn(game):
            report = self.autoplay.resolve_until_player_turn(game)
            self.normalizer.sync(game)
            if game.combat is None:
                text = f"Enemy turns resolved: {report.text}" if report.summaries else "Enemy turns resolved."
                return CombatResult.success(text + outcome_suffix(report.outcome), report.outcome)

        combat = game.combat
        actor_id = request.actor_id or combat.current_turn_id
        ref = combat.find_by_id(actor_id)
        if ref is None:
            raise CombatError("Actor not found in this combat.", combatant_id=actor_id)
        if combat.current_turn_id != actor_id:
            raise CombatError(
                "Only the combatant whose turn it is can act.",
                combatant_id=actor_id,
                round_number=combat.round,
            )
        self._check_can_act(ref)

        action = request.action
        if ref.kind == CombatantKind.PC and action.consumes_action and ref.combatant.action_used:
            # A second action from the player closes the turn first.
            transition = self.resolve_turn_transition(game)
            if game.combat is None:
                return CombatResult.success(transition.summary, transition.outcome)
            ref = game.combat.current_ref
            if ref is None or ref.kind != CombatantKind.PC:
                raise CombatError("Player turn is not ready yet. Try again.")
            self._check_can_act(ref)

        actor = ref.combatant
        if action.consumes_action and actor.action_used:
            raise CombatError(
                f"{actor.name} has already used an action this turn.",
                combatant_id=actor.id,
                round_number=game.combat.round,
            )

        handler = self._handlers.get(action)
        if handler is None:
            raise CombatError("Unsupported combat action.")
        effect = handler(game, ref, request)
        message = effect.message
        outcome = effect.outcome or self.outcomes.resolve(game)

        if outcome is None and effect.used_action and ref.kind == CombatantKind.PC:
            transition = self.resolve_turn_transition(game)
            message = f"{message} {transition.summary}".strip()
            outcome = transition.outcome

        if game.combat is not None:
            self.normalizer.sync(game)
            outcome = self.outcomes.resolve(game) or outcome

        logger.info(
            "Combat action resolved",
            game_id=game.game_id,
            action=str(action),
            actor=actor.name,
            outcome=str(outcome) if outcome else None,
        )
        return CombatResult.success(f"{message}{outcome_suffix(outcome)}".strip(), outcome)

    @staticmethod
    def _check_can_act(ref: CombatantRef) -> None:
        ensure_turn_state(ref.combatant)
        if not ref.combatant.is_alive:
            raise CombatError(f"{ref.combatant.name} is down and cannot act.", combatant_id=ref.combatant.id)

    @staticmethod
    def _resolve_target(combat: CombatSession, target_id: str | None) -> CombatantRef:
        ref = combat.find_by_id(target_id)
        if ref is None:
            raise CombatError("Target not found in this combat.", details={"target_id": target_id})
        if not ref.combatant.is_alive:
            raise CombatError(f"{ref.combatant.name} is already down.", combatant_id=ref.combatant.id)
        return ref

    def _move(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        actor = ref.combatant
        if request.move_by is None and request.move_to is None:
            raise CombatError("Move requires move_by or move_to.", combatant_id=actor.id)

        current = actor.position
        if request.move_to is not None:
            destination = clamp(request.move_to, MIN_POSITION, MAX_POSITION)
        else:
            destination = clamp(current + request.move_by, MIN_POSITION, MAX_POSITION)
        distance = abs(destination - current)
        if distance > actor.movement_remaining:
            raise CombatError(
                f"{actor.name} only has {actor.movement_remaining} movement remaining this turn.",
                combatant_id=actor.id,
            )

        actor.position = destination
        actor.movement_remaining = clamp(actor.movement_remaining - distance, 0, actor.speed)
        message = f"{actor.name} moves to position {actor.position}."
        self.log_sink.append(game, message, LogKind.COMBAT)
        return _ActionEffect(message=message)

    def _attack(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        actor = ref.combatant
        if not request.target_id:
            raise CombatError("Attack requires a target_id.", combatant_id=actor.id)
        target = self._resolve_target(game.combat, request.target_id).combatant
        if target.id == actor.id:
            raise CombatError("Attack target cannot be the same as the attacker.", combatant_id=actor.id)

        weapon = resolve_weapon(actor, request.weapon_id)
        if weapon is None:
            raise CombatError(
                f"{actor.name} must use an equipped weapon to attack.",
                combatant_id=actor.id,
                details={"weapon_id": request.weapon_id},
            )
        attack_range = weapon.attack_range
        distance = actor.distance_to(target)
        if distance > attack_range:
            raise CombatError(
                f"{target.name} is out of range. {actor.name} needs range {attack_range} "
                f"but distance is {distance}.",
                combatant_id=actor.id,
            )

        resolution = resolve_amount(self.dice, explicit=request.damage, formula=weapon.damage_formula)
        actor.action_used = True
        dealt = apply_damage(target, resolution.amount)
        message = describe_attack(actor, target, weapon, dealt, resolution)
        self.log_sink.append(game, message, LogKind.COMBAT)
        return _ActionEffect(message=message, used_action=True)

    def _defend(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        actor = ref.combatant
        actor.action_used = True
        actor.defending = True
        message = f"{actor.name} takes a defensive stance."
        self.log_sink.append(game, message, LogKind.COMBAT)
        return _ActionEffect(message=message, used_action=True)

    def _dodge(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        actor = ref.combatant
        actor.action_used = True
        actor.dodging = True
        message = f"{actor.name} focuses on dodging."
        self.log_sink.append(game, message, LogKind.COMBAT)
        return _ActionEffect(message=message, used_action=True)

    def _use_skill(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        actor = ref.combatant
        if not request.skill_id:
            raise CombatError("Using a skill requires skill_id.", combatant_id=actor.id)
        skill = usable_skill(actor, request.skill_id)
        if skill is None:
            raise CombatError(
                f"{actor.name} does not have that unlocked skill.",
                combatant_id=actor.id,
                details={"skill_id": request.skill_id},
            )
        if actor.mp < skill.mp_cost:
            raise CombatError(f"{actor.name} does not have enough MP for {skill.name}.", combatant_id=actor.id)

        if skill.target == SkillTarget.SELF:
            target_ref = ref
        else:
            if not request.target_id:
                raise CombatError(f"{skill.name} requires a target_id.", combatant_id=actor.id)
            target_ref = self._resolve_target(game.combat, request.target_id)
            distance = actor.distance_to(target_ref.combatant)
            if distance > skill.range:
                raise CombatError(
                    f"{target_ref.combatant.name} is out of skill range. "
                    f"{skill.name} has range {skill.range}, distance is {distance}.",
                    combatant_id=actor.id,
                )
            if skill.target == SkillTarget.ENEMY and target_ref.kind == ref.kind:
                raise CombatError(f"{skill.name} can only target enemies.", combatant_id=actor.id)
            if skill.target == SkillTarget.ALLY and target_ref.kind != ref.kind:
                raise CombatError(f"{skill.name} can only target allies.", combatant_id=actor.id)

        target = target_ref.combatant
        actor.mp = clamp(actor.mp - skill.mp_cost, 0, actor.mp_max)
        actor.action_used = True
        dealt = apply_damage(target, request.damage or 0)
        healed = apply_healing(target, request.heal or 0)

        if target.id != actor.id:
            message = f"{actor.name} uses {skill.name} on {target.name}."
        else:
            message = f"{actor.name} uses {skill.name}."
        if dealt > 0:
            message += f" {dealt} damage dealt."
        if healed > 0:
            message += f" {healed} HP restored."
        self.log_sink.append(game, message, LogKind.COMBAT)
        return _ActionEffect(message=message, used_action=True)

    def _end_turn(self, game: GameSession, ref: CombatantRef, request: CombatActionRequest) -> _ActionEffect:
        if not ref.combatant.action_used:
            raise CombatError(
                "A turn cannot end before using one action (attack, defend, dodge, or skill).",
                combatant_id=ref.combatant.id,
            )
        transition = self.resolve_turn_transition(game)
        return _ActionEffect(message=transition.summary, outcome=transition.outcome)

    # -------------------------------------------------------------------------
    # Bulk updates
    # -------------------------------------------------------------------------

    def apply_combat_update(self, game: GameSession, update: CombatUpdate) -> CombatResult:
        """Start, merge into, or end the encounter.

        Session HP/MP adjustments (``pc_hp``, ``pc_hp_delta``, ``pc_mp``,
        ``pc_mp_delta``) are applied first. ``active=False`` then ends
        combat. Otherwise enemies, the PC and initiative are merged into
        the running encounter (or a new one), and enemy turns are played
        if an enemy holds the first turn.

        Args:
            game: Game session to mutate.
            update: The bulk change.

        Returns:
            The narration, or a failure with ``requires_reset`` when enemy
            turns could not be resolved. The update itself stays applied.
        """
        self._apply_pc_pools(game, update)

        if not update.active:
            game.combat = None
            game.phase = GamePhase.EXPLORATION
            self.log_sink.append(game, "Combat ended.", LogKind.COMBAT)
            logger.info("Combat deactivated", game_id=game.game_id)
            return CombatResult.success("Combat ended.")

        existing = game.combat
        was_in_combat = game.phase == GamePhase.COMBAT and existing is not None

        enemies = self._merge_enemies(update, existing)
        pc = self.normalizer.build_pc(game, existing.pc if existing else None, update.pc)
        # sync rebuilds the PC from the profile, so patched values land there first.
        game.pc.level = pc.level
        game.pc.skills = [skill.model_copy() for skill in pc.skills]

        if update.initiative is not None:
            initiative = self.normalizer.initiative_from_specs(update.initiative, pc, enemies)
        else:
            initiative = list(existing.initiative) if existing else []
        initiative = self.normalizer.with_missing_entries(initiative, [pc, *enemies])
        initiative = self.normalizer.order_initiative(initiative)

        entry_ids = [entry.id for entry in initiative]
        current_turn_id = update.current_turn_id
        if not current_turn_id:
            previous_id = existing.current_turn_id if existing else None
            current_turn_id = previous_id if previous_id in entry_ids else entry_ids[0]

        game.combat = CombatSession(
            round=clamp(first_set(update.round, existing.round if existing else None, 1), 1, MAX_ROUND),
            current_turn_id=current_turn_id,
            pc=pc,
            enemies=enemies,
            initiative=initiative,
        )
        game.phase = GamePhase.COMBAT
        self.normalizer.sync(game)

        if was_in_combat:
            message = "Combat updated."
        else:
            message = f"Combat begins with {', '.join(enemy.name for enemy in enemies)}."
            self.log_sink.append(game, message, LogKind.COMBAT)
            logger.info(
                "Combat started",
                game_id=game.game_id,
                enemies=len(enemies),
                first_turn=game.combat.current_turn_id,
            )

        outcome = None
        if self.autoplay.is_enemy_turn(game):
            try:
                report = self.autoplay.resolve_until_player_turn(game)
            except TurnManagementError as exc:
                failure = f"Enemy turn resolution failed: {exc.message}"
                self.log_sink.append(game, failure, LogKind.SYSTEM)
                logger.warning("Enemy autoplay failed", game_id=game.game_id, error=exc.message)
                return CombatResult.failure(failure, requires_reset=True)
            if report.summaries:
                message += f" Enemy turns resolved: {report.text}"
            outcome = report.outcome

        if game.combat is not None:
            self.normalizer.sync(game)
            outcome = self.outcomes.resolve(game) or outcome
        return CombatResult.success(f"{message}{outcome_suffix(outcome)}", outcome)

    @staticmethod
    def _apply_pc_pools(game: GameSession, update: CombatUpdate) -> None:
        if update.pc_hp is not None:
            game.hp.set(update.pc_hp)
        if update.pc_hp_delta is not None:
            game.hp.adjust(update.pc_hp_delta)
        if update.pc_mp is not None:
            game.mp.set(update.pc_mp)
        if update.pc_mp_delta is not None:
            game.mp.adjust(update.pc_mp_delta)

        touched = any(
            value is not None
            for value in (update.pc_hp, update.pc_hp_delta, update.pc_mp, update.pc_mp_delta)
        )
        if touched and game.combat is not None:
            pc = game.combat.pc
            pc.hp = clamp(game.hp.current, 0, pc.hp_max)
            pc.mp = clamp(game.mp.current, 0, pc.mp_max)

    def _merge_enemies(self, update: CombatUpdate, existing: CombatSession | None) -> list[EnemyCombatant]:
        previous = existing.enemies if existing else []
        enemies: list[EnemyCombatant] = []

        if update.enemies is not None:
            for spec in update.enemies:
                match = find_enemy(previous, spec.id, spec.name)
                enemy = self.normalizer.build_enemy(spec, match)
                if enemy is not None:
                    enemies.append(enemy)
        elif update.has_single_enemy_fields:
            enemy = self.normalizer.build_enemy(
                EnemySpec(
                    id=new_enemy_id(),
                    name=update.enemy_name or DEFAULT_ENEMY_NAME,
                    hp=update.enemy_hp,
                    hp_max=update.enemy_hp_max,
                    intent=update.enemy_intent,
                )
            )
            enemies.append(enemy)
        else:
            enemies = list(previous)

        if not enemies:
            enemies.append(
                self.normalizer.build_enemy(
                    EnemySpec(
                        id=new_enemy_id(),
                        name=DEFAULT_ENEMY_NAME,
                        hp=DEFAULT_ENEMY_HP,
                        hp_max=DEFAULT_ENEMY_HP,
                    )
                )
            )
        return enemies


__all__ = [
    "CombatEngine",
    "TurnTransition",
]
