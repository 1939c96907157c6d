"""Pydantic V2 schemas for game session state.

A GameSession is the single record a host stores per game id. It carries
the authoritative HP/MP pools and inventory; the combat sub-record is
derived from it on every call and mirrors its PC values back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from rpg_host.core.constants import MAX_LEVEL, MAX_POOL
from rpg_host.core.utils import clamp, utc_now
from rpg_host.models.combat import CombatSession
from rpg_host.models.enums import GamePhase, LogKind
from rpg_host.models.equipment import InventoryItem, Skill


class ResourcePool(BaseModel):
    """A current/max pair such as HP or MP."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    current: Annotated[int, Field(ge=0, le=MAX_POOL)]
    max: Annotated[int, Field(ge=0, le=MAX_POOL)]

    def set(self, value: int) -> None:
        """Set the current value, clamped to [0, max]."""
        self.current = clamp(value, 0, self.max)

    def adjust(self, delta: int) -> None:
        """Add ``delta`` to the current value, clamped to [0, max]."""
        self.set(self.current + delta)


class PcProfile(BaseModel):
    """Character sheet fields agreed during setup.

    Attributes:
        name: Character name.
        pronouns: Pronouns used in narration.
        archetype: Character archetype or class.
        background: Short background.
        goal: Personal goal.
        level: Character level.
        skills: Known skills.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = ""
    pronouns: str = ""
    archetype: str = ""
    background: str = ""
    goal: str = ""
    level: Annotated[int, Field(ge=1, le=MAX_LEVEL)] = 1
    skills: list[Skill] = Field(default_factory=list)


class LogEntry(BaseModel):
    """One line of the session's rolling narration log."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: f"log_{uuid4()}")
    at: datetime = Field(default_factory=utc_now)
    kind: LogKind = LogKind.SYSTEM
    text: str


class LastRoll(BaseModel):
    """The most recent roll made through the dice tool."""

    model_config = ConfigDict(extra="forbid")

    formula: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str = ""
    at: datetime = Field(default_factory=utc_now)


class GameSession(BaseModel):
    """Everything known about one game.

    Attributes:
        game_id: Unique game identifier.
        phase: Setup, exploration or combat.
        setup_complete: Whether setup negotiation finished.
        created_at: Creation timestamp.
        updated_at: Timestamp of the last persisted change.
        genre: Genre agreed during setup.
        tone: Tone agreed during setup.
        pc: Character profile.
        hp: Authoritative hit point pool.
        mp: Authoritative magic point pool.
        inventory: Items carried.
        location: Current location name.
        combat: The active encounter, if any.
        last_roll: Result of the last dice tool call.
        log: Rolling narration log.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    game_id: str = Field(min_length=1, description="Game identifier")
    phase: GamePhase = GamePhase.SETUP
    setup_complete: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    genre: str = ""
    tone: str = ""
    pc: PcProfile = Field(default_factory=PcProfile)
    hp: ResourcePool
    mp: ResourcePool
    inventory: list[InventoryItem] = Field(default_factory=list)
    location: str = ""
    combat: CombatSession | None = None
    last_roll: LastRoll | None = None
    log: list[LogEntry] = Field(default_factory=list)

    @property
    def in_combat(self) -> bool:
        return self.combat is not None

    def touch(self) -> None:
        """Record that the session changed."""
        self.updated_at = utc_now()


def create_game_session(
    *,
    game_id: str | None = None,
    pc: PcProfile | None = None,
    hp_max: int = 12,
    mp_max: int = 6,
    inventory: list[InventoryItem] | None = None,
    location: str = "",
    genre: str = "",
    tone: str = "",
    ready: bool = False,
) -> GameSession:
    """Create a fresh game session with full HP and MP.

    Args:
        game_id: Identifier to reuse, or None to generate one.
        pc: Character profile.
        hp_max: Max HP.
        mp_max: Max MP.
        inventory: Starting inventory.
        location: Starting location.
        genre: Genre chosen during setup.
        tone: Tone chosen during setup.
        ready: If True, setup is marked complete and play starts in exploration.

    Returns:
        The new session.
    """
    hp_max = clamp(hp_max, 1, MAX_POOL)
    mp_max = clamp(mp_max, 0, MAX_POOL)
    return GameSession(
        game_id=game_id or f"game_{uuid4()}",
        phase=GamePhase.EXPLORATION if ready else GamePhase.SETUP,
        setup_complete=ready,
        genre=genre,
        tone=tone,
        pc=pc or PcProfile(),
        hp=ResourcePool(current=hp_max, max=hp_max),
        mp=ResourcePool(current=mp_max, max=mp_max),
        inventory=inventory or [],
        location=location.strip(),
    )


__all__ = [
    "ResourcePool",
    "PcProfile",
    "LogEntry",
    "LastRoll",
    "GameSession",
    "create_game_session",
]
