"""Configuration management for the RPG host.

Settings are loaded with pydantic-settings from environment variables and
an optional ``.env`` file.

Example:
    >>> from rpg_host.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.combat.autoplay_max_turns
    20

Environment Variables:
    RPG_HOST_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RPG_HOST_JSON_LOGS: Emit JSON log lines instead of console output
    RPG_HOST_COMBAT_AUTOPLAY_MAX_TURNS: Cap on consecutive enemy turns
    RPG_HOST_COMBAT_DICE_SEED: Seed for reproducible dice rolls
    RPG_HOST_GAME_DEFAULT_HP_MAX: Max HP for new characters
    RPG_HOST_GAME_DEFAULT_MP_MAX: Max MP for new characters
    RPG_HOST_GAME_LOG_MAX_ENTRIES: Rolling log size kept per session
    RPG_HOST_GAME_STATE_LOG_WINDOW: Log entries included in state snapshots
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpg_host.core.exceptions import ConfigurationError


class CombatSettings(BaseSettings):
    """Configuration for the combat engine.

    Attributes:
        autoplay_max_turns: Maximum consecutive enemy turns resolved in one call.
        dice_seed: Optional seed for reproducible dice and initiative rolls.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_HOST_COMBAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    autoplay_max_turns: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Cap on consecutive enemy turns",
    )
    dice_seed: int | None = Field(
        default=None,
        description="Seed for reproducible rolls",
    )


class GameSettings(BaseSettings):
    """Configuration for game sessions.

    Attributes:
        default_hp_max: Max HP given to a new character.
        default_mp_max: Max MP given to a new character.
        log_max_entries: Size of the rolling log kept on each session.
        state_log_window: Number of recent log entries included in snapshots.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_HOST_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_hp_max: int = Field(
        default=12,
        ge=1,
        le=999,
        description="Max HP for new characters",
    )
    default_mp_max: int = Field(
        default=6,
        ge=0,
        le=999,
        description="Max MP for new characters",
    )
    log_max_entries: int = Field(
        default=200,
        ge=1,
        le=10_000,
        description="Rolling log size per session",
    )
    state_log_window: int = Field(
        default=12,
        ge=1,
        le=10_000,
        description="Log entries included in state snapshots",
    )

    @model_validator(mode="after")
    def validate_log_window(self) -> "GameSettings":
        """Ensure the snapshot window fits inside the rolling log.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If state_log_window > log_max_entries.
        """
        if self.state_log_window > self.log_max_entries:
            raise ConfigurationError(
                f"state_log_window ({self.state_log_window}) must not exceed "
                f"log_max_entries ({self.log_max_entries})",
                config_key="state_log_window",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        log_level: Application logging level.
        json_logs: Emit JSON log lines.
        combat: Combat engine settings.
        game: Game session settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_HOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="RPG Host",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    combat: CombatSettings = Field(default_factory=CombatSettings)
    game: GameSettings = Field(default_factory=GameSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "CombatSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
