"""Game host service.

``GameHost`` implements the tool-shaped operations a conversational
client calls: start a game, read the state, roll dice, apply state
updates, take combat actions and reset. Every operation returns a
``ToolReply`` carrying a message for the client and a state snapshot;
expected failures come back as ``ok=False`` replies instead of
exceptions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from rpg_host.core.config import Settings, get_settings
from rpg_host.core.exceptions import DiceRollError, SessionNotFoundError
from rpg_host.core.logging import configure_logging, game_context, get_logger
from rpg_host.core.utils import clamp, first_set
from rpg_host.engine.resolver import CombatEngine
from rpg_host.models.combat import CombatResult
from rpg_host.models.enums import LogKind
from rpg_host.models.equipment import (
    apply_inventory_delta,
    get_skill_catalog,
    normalize_inventory_item,
    sync_inventory_weapon_equip_flags,
)
from rpg_host.models.game_state import GameSession, LastRoll, PcProfile, create_game_session
from rpg_host.models.requests import (
    GameCombatActionRequest,
    GetStateRequest,
    NewGameRequest,
    PcProfilePatch,
    ResetGameRequest,
    RollDiceRequest,
    UpdateStateRequest,
)
from rpg_host.storage.store import GameStore


logger = get_logger(__name__)

GAME_NOT_FOUND_MESSAGE = "Game not found. Start a new game first."
INVALID_FORMULA_MESSAGE = "Invalid dice formula. Try d20 or 2d6+1."

_PROFILE_TEXT_FIELDS = ("name", "pronouns", "archetype", "background", "goal")


class ToolReply(BaseModel):
    """Result of a host operation.

    Attributes:
        ok: Whether the operation was applied.
        message: Text for the client.
        state: Session snapshot, absent when the game does not exist.
        requires_reset: Set when combat is broken and must be restarted.
    """

    ok: bool
    message: str
    state: dict[str, Any] | None = None
    requires_reset: bool = False


class GameHost:
    """Tool operations over a game store.

    Attributes:
        settings: Application settings.
        store: Session store.
        engine: Combat engine.
    """

    def __init__(
        self,
        store: GameStore | None = None,
        engine: CombatEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or GameStore()
        self.engine = engine or CombatEngine(settings=self.settings)
        logger.info("GameHost initialized", app=self.settings.app_name)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GameHost:
        """Configure logging and build a host with a fresh store.

        This is the entry point for applications embedding the host.
        """
        settings = settings or get_settings()
        configure_logging(settings)
        return cls(settings=settings)

    # -------------------------------------------------------------------------
    # Replies
    # -------------------------------------------------------------------------

    def snapshot(self, game: GameSession) -> dict[str, Any]:
        """JSON-ready state with only the most recent log entries."""
        state = game.model_dump(mode="json")
        window = self.settings.game.state_log_window
        state["log"] = state["log"][-window:] if window else []
        return state

    def _reply(
        self,
        game: GameSession,
        message: str,
        *,
        ok: bool = True,
        requires_reset: bool = False,
    ) -> ToolReply:
        return ToolReply(
            ok=ok,
            message=message,
            state=self.snapshot(game),
            requires_reset=requires_reset,
        )

    @staticmethod
    def _not_found(game_id: str | None) -> ToolReply:
        logger.info("Game not found", game_id=game_id)
        return ToolReply(ok=False, message=GAME_NOT_FOUND_MESSAGE)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def new_game(self, request: NewGameRequest) -> ToolReply:
        """Create a ready-to-play game from choices agreed during setup."""
        with game_context("new_game", request.game_id):
            profile = PcProfile()
            self._apply_profile_patch(profile, request.pc)

            inventory = [normalize_inventory_item(spec) for spec in request.inventory]
            sync_inventory_weapon_equip_flags(inventory)

            game = create_game_session(
                game_id=request.game_id,
                pc=profile,
                hp_max=first_set(request.hp_max, self.settings.game.default_hp_max),
                mp_max=first_set(request.mp_max, self.settings.game.default_mp_max),
                inventory=inventory,
                location=request.location,
                genre=request.genre.strip(),
                tone=request.tone.strip(),
                ready=True,
            )
            self.store.create(game)
            logger.info("New game started", game_id=game.game_id, pc=profile.name)
            return self._reply(game, "New game started.")

    def get_state(self, request: GetStateRequest) -> ToolReply:
        """Load the latest state."""
        with game_context("get_state", request.game_id):
            try:
                game = self.store.get(request.game_id)
            except SessionNotFoundError:
                return self._not_found(request.game_id)
            return self._reply(game, "Current state loaded.")

    def roll_dice(self, request: RollDiceRequest) -> ToolReply:
        """Roll a formula and record it as the last roll."""
        with game_context("roll_dice", request.game_id):
            try:
                with self.store.checkout(request.game_id) as game:
                    result = self.engine.dice.roll(request.formula)
                    game.last_roll = LastRoll(
                        formula=result.formula,
                        rolls=result.rolls,
                        modifier=result.modifier,
                        total=result.total,
                        reason=request.reason or "",
                    )
                    self.engine.log_sink.append(
                        game,
                        f"Rolled {result.formula} for {request.reason or 'an action'}: {result.total}",
                        LogKind.ROLL,
                    )
            except SessionNotFoundError:
                return self._not_found(request.game_id)
            except DiceRollError as exc:
                logger.info("Dice roll rejected", formula=request.formula, reason=exc.message)
                return self._reply(self.store.get(request.game_id), INVALID_FORMULA_MESSAGE, ok=False)
            return self._reply(game, f"Rolled {result.formula}: {result.total}.")

    def update_state(self, request: UpdateStateRequest) -> ToolReply:
        """Apply HP/MP, location, profile, inventory, combat and log changes.

        Top-level HP or MP changes take precedence over the matching
        ``pc_*`` fields of the combat update, which are then ignored.
        """
        with game_context("update_state", request.game_id):
            try:
                with self.store.checkout(request.game_id) as game:
                    combat_result = self._apply_update(game, request)
            except SessionNotFoundError:
                return self._not_found(request.game_id)

            if combat_result is None:
                return self._reply(game, "Game state updated.")
            return self._reply(
                game,
                f"Game state updated. {combat_result.message}",
                ok=combat_result.ok,
                requires_reset=combat_result.requires_reset,
            )

    def combat_action(self, request: GameCombatActionRequest) -> ToolReply:
        """Take one combat action for the combatant whose turn it is."""
        with game_context("combat_action", request.game_id):
            try:
                with self.store.checkout(request.game_id) as game:
                    result = self.engine.resolve_combat_action(game, request.to_action())
            except SessionNotFoundError:
                return self._not_found(request.game_id)
            return self._reply(game, result.message, ok=result.ok, requires_reset=result.requires_reset)

    def reset_game(self, request: ResetGameRequest) -> ToolReply:
        """Start the game over in setup, keeping the id, genre, tone and profile."""
        with game_context("reset_game", request.game_id):
            try:
                with self.store.checkout(request.game_id) as game:
                    fresh = create_game_session(
                        game_id=game.game_id,
                        pc=game.pc.model_copy(deep=True),
                        hp_max=self.settings.game.default_hp_max,
                        mp_max=self.settings.game.default_mp_max,
                        genre=game.genre,
                        tone=game.tone,
                    )
                    # checkout saves the object it yielded
                    for field_name in GameSession.model_fields:
                        setattr(game, field_name, getattr(fresh, field_name))
            except SessionNotFoundError:
                return self._not_found(request.game_id)
            logger.info("Game reset", game_id=game.game_id)
            return self._reply(game, "Game reset.")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _apply_update(self, game: GameSession, request: UpdateStateRequest) -> CombatResult | None:
        top_level_hp = request.hp is not None or request.hp_delta is not None
        top_level_mp = request.mp is not None or request.mp_delta is not None

        if request.hp is not None:
            game.hp.set(request.hp)
        if request.mp is not None:
            game.mp.set(request.mp)
        if request.hp_delta is not None:
            game.hp.adjust(request.hp_delta)
        if request.mp_delta is not None:
            game.mp.adjust(request.mp_delta)
        if request.location is not None:
            game.location = request.location.strip()
        if request.pc is not None:
            self._apply_profile_patch(game.pc, request.pc)
        apply_inventory_delta(game.inventory, request.inventory)

        if game.combat is not None:
            pc = game.combat.pc
            if request.inventory is not None and request.inventory.equip_weapon_id:
                pc.equipped_weapon_id = request.inventory.equip_weapon_id
            if top_level_hp:
                pc.hp = clamp(game.hp.current, 0, pc.hp_max)
            if top_level_mp:
                pc.mp = clamp(game.mp.current, 0, pc.mp_max)

        combat_result = None
        if request.combat is not None:
            ignored: dict[str, None] = {}
            if top_level_hp:
                ignored.update(pc_hp=None, pc_hp_delta=None)
            if top_level_mp:
                ignored.update(pc_mp=None, pc_mp_delta=None)
            update = request.combat.model_copy(update=ignored) if ignored else request.combat
            combat_result = self.engine.apply_combat_update(game, update)
        elif game.combat is not None:
            self.engine.sync(game)

        if request.log_entry:
            self.engine.log_sink.append(game, request.log_entry.strip(), request.log_kind)
        return combat_result

    @staticmethod
    def _apply_profile_patch(profile: PcProfile, patch: PcProfilePatch) -> None:
        for field_name in _PROFILE_TEXT_FIELDS:
            value = getattr(patch, field_name)
            if value is not None:
                setattr(profile, field_name, value.strip())
        if patch.level is not None:
            profile.level = patch.level
        if patch.skills is not None:
            profile.skills = get_skill_catalog(profile.level, patch.skills).all_skills


__all__ = [
    "GAME_NOT_FOUND_MESSAGE",
    "INVALID_FORMULA_MESSAGE",
    "GameHost",
    "ToolReply",
]
