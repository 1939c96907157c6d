"""Request models for the host tools.

Every tool exposed by the host takes one of these models as its argument
schema. Field descriptions are published in the tool schemas, so they are
written for the calling model.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from rpg_host.core.constants import MAX_LEVEL, MAX_POOL
from rpg_host.models.combat import CombatActionRequest, CombatUpdate
from rpg_host.models.enums import LogKind
from rpg_host.models.equipment import InventoryDelta, InventoryItemSpec, SkillSpec


class GameRequest(BaseModel):
    """Base for requests addressed to an existing game."""

    model_config = ConfigDict(extra="forbid")

    game_id: str = Field(min_length=1, description="Game identifier")


class PcProfilePatch(BaseModel):
    """Changes to the character profile."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    pronouns: str | None = None
    archetype: str | None = None
    background: str | None = None
    goal: str | None = None
    level: int | None = Field(default=None, ge=1, le=MAX_LEVEL)
    skills: list[SkillSpec] | None = None


class NewGameRequest(BaseModel):
    """Start a game from choices already agreed during setup."""

    model_config = ConfigDict(extra="forbid")

    game_id: str | None = Field(default=None, description="Reuse this id instead of generating one")
    genre: str = ""
    tone: str = ""
    location: str = Field(default="", description="Starting location")
    pc: PcProfilePatch = Field(default_factory=PcProfilePatch, description="Character profile")
    hp_max: int | None = Field(default=None, ge=1, le=MAX_POOL)
    mp_max: int | None = Field(default=None, ge=0, le=MAX_POOL)
    inventory: list[InventoryItemSpec] = Field(default_factory=list, description="Starting items")


class GetStateRequest(GameRequest):
    """Load the latest state snapshot."""


class RollDiceRequest(GameRequest):
    """Roll a formula like d20, 2d6+1 or 3d4-2."""

    formula: str = Field(description="Dice formula")
    reason: str | None = Field(default=None, description="What the roll is for")


class UpdateStateRequest(GameRequest):
    """Apply HP/MP changes, inventory updates, location changes or combat updates."""

    hp: int | None = Field(default=None, description="Set current HP")
    hp_delta: int | None = Field(default=None, description="Add to current HP")
    mp: int | None = Field(default=None, description="Set current MP")
    mp_delta: int | None = Field(default=None, description="Add to current MP")
    location: str | None = None
    pc: PcProfilePatch | None = None
    inventory: InventoryDelta | None = None
    combat: CombatUpdate | None = None
    log_entry: str | None = Field(default=None, description="Narration to append to the log")
    log_kind: LogKind = LogKind.STORY


class GameCombatActionRequest(CombatActionRequest):
    """Take one combat action in a game."""

    game_id: str = Field(min_length=1, description="Game identifier")

    def to_action(self) -> CombatActionRequest:
        """Drop the game id, leaving the engine request."""
        return CombatActionRequest.model_validate(self.model_dump(exclude={"game_id"}))


class ResetGameRequest(GameRequest):
    """Reset the game to a fresh start, keeping the character profile."""


__all__ = [
    "GameRequest",
    "PcProfilePatch",
    "NewGameRequest",
    "GetStateRequest",
    "RollDiceRequest",
    "UpdateStateRequest",
    "GameCombatActionRequest",
    "ResetGameRequest",
]
