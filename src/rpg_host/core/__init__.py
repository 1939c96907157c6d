"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        RpgHostError: Base exception for all application errors.
        CombatError: Rejected combat actions.
        TurnManagementError: Broken initiative invariants.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        game_context: Tag log entries with the game and operation.
"""

from __future__ import annotations

from rpg_host.core.config import (
    CombatSettings,
    GameSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from rpg_host.core.exceptions import (
    AutoplayLimitError,
    CombatError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    RpgHostError,
    SessionNotFoundError,
    StorageError,
    TurnManagementError,
)
from rpg_host.core.logging import (
    configure_logging,
    game_context,
    get_logger,
)


__all__ = [
    # Base exception
    "RpgHostError",
    # Configuration exceptions
    "ConfigurationError",
    # Game engine exceptions
    "GameEngineError",
    "CombatError",
    "TurnManagementError",
    "AutoplayLimitError",
    "DiceRollError",
    # Storage exceptions
    "StorageError",
    "SessionNotFoundError",
    # Configuration
    "Settings",
    "CombatSettings",
    "GameSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "game_context",
]
