"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the RPG host test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import pytest

from rpg_host.core.config import Settings
from rpg_host.engine.dice import DiceRoller
from rpg_host.engine.resolver import CombatEngine
from rpg_host.host.service import GameHost
from rpg_host.models.combat import (
    CombatantPatch,
    CombatResult,
    CombatUpdate,
    EnemySpec,
    InitiativeSpec,
)
from rpg_host.models.equipment import WeaponSpec
from rpg_host.models.game_state import GameSession, PcProfile, create_game_session
from rpg_host.storage.store import GameStore


if TYPE_CHECKING:
    from collections.abc import Generator


GAME_ID = "game_test"
PC_ID = f"pc_{GAME_ID}"
GOBLIN_ID = "enemy_1"


def goblin_spec(**overrides: Any) -> EnemySpec:
    """A 6 HP goblin standing next to the player with a formula-less weapon."""
    data: dict[str, Any] = {
        "id": GOBLIN_ID,
        "name": "Goblin",
        "hp": 6,
        "hp_max": 6,
        "position": 1,
        "weapons": [WeaponSpec(name="Claws", category="melee")],
    }
    data.update(overrides)
    return EnemySpec(**data)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from rpg_host.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide default settings, independent of the environment cache."""
    return Settings()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    return DiceRoller(seed=42)


@pytest.fixture
def engine(dice_roller: DiceRoller, settings: Settings) -> CombatEngine:
    """Create a CombatEngine using the seeded roller."""
    return CombatEngine(dice=dice_roller, settings=settings)


# =============================================================================
# Game Fixtures
# =============================================================================


@pytest.fixture
def game() -> GameSession:
    """A ready-to-play game with a 12 HP / 6 MP character named Ayla."""
    return create_game_session(
        game_id=GAME_ID,
        pc=PcProfile(name="Ayla", archetype="Ranger"),
        hp_max=12,
        mp_max=6,
        location="Old Road",
        ready=True,
    )


@pytest.fixture
def start_combat(engine: CombatEngine, game: GameSession) -> Callable[..., CombatResult]:
    """Factory starting combat on the ``game`` fixture.

    By default the player (initiative 20) faces one goblin (initiative 10).
    Enemies given without explicit initiative get a score of 10.
    """

    def _start(
        enemies: list[EnemySpec] | None = None,
        *,
        initiative: list[InitiativeSpec] | None = None,
        pc: CombatantPatch | None = None,
        current_turn_id: str | None = None,
    ) -> CombatResult:
        if enemies is None:
            enemies = [goblin_spec()]
        if initiative is None:
            initiative = [InitiativeSpec(id=PC_ID, score=20)]
            initiative += [InitiativeSpec(id=spec.id, name=spec.name, score=10) for spec in enemies]
        update = CombatUpdate(
            active=True,
            enemies=enemies,
            initiative=initiative,
            pc=pc,
            current_turn_id=current_turn_id,
        )
        return engine.apply_combat_update(game, update)

    return _start


@pytest.fixture
def combat_game(game: GameSession, start_combat: Callable[..., CombatResult]) -> GameSession:
    """The ``game`` fixture with the default goblin encounter started."""
    result = start_combat()
    assert result.ok
    return game


@pytest.fixture
def make_goblin() -> Callable[..., EnemySpec]:
    """Factory for goblin enemy specs with field overrides."""
    return goblin_spec


# =============================================================================
# Host Fixtures
# =============================================================================


@pytest.fixture
def store() -> GameStore:
    """Create an empty in-memory store."""
    return GameStore()


@pytest.fixture
def host(store: GameStore, engine: CombatEngine, settings: Settings) -> GameHost:
    """Create a GameHost over the test store and seeded engine."""
    return GameHost(store=store, engine=engine, settings=settings)
