"""Custom exception hierarchy for the RPG host.

All exceptions inherit from RpgHostError so that the host boundary can
handle every application error in one place while keeping the domain
context attached in ``details``.

The combat engine uses two families internally:

* ``CombatError`` for expected rejections (bad target, out of range,
  not enough MP). These become ``ok=False`` results for the caller.
* ``TurnManagementError`` for broken invariants (empty initiative, no
  living combatants, runaway enemy autoplay). These also become
  ``ok=False`` results, flagged as requiring a combat reset.

Example:
    >>> from rpg_host.core.exceptions import CombatError
    >>> raise CombatError("Target not found in this combat.", combatant_id="enemy_1")
"""

from __future__ import annotations

from typing import Any


class RpgHostError(Exception):
    """Base exception for all RPG host errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = dict(details or {})
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(RpgHostError):
    """Base exception for all game engine errors."""


class CombatError(GameEngineError):
    """Raised when a combat action is rejected.

    The message is written for the player or the narrating model and is
    returned verbatim in the failed result.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with combat context.

        Args:
            message: Human-readable error description.
            combatant_id: Identifier of the combatant involved.
            round_number: Current combat round when the error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = dict(details or {})
        if combatant_id:
            combined_details["combatant_id"] = combatant_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


class TurnManagementError(GameEngineError):
    """Raised when the initiative order cannot produce a next turn.

    Callers treat this as a broken invariant that needs a combat reset
    rather than a retry.
    """


class AutoplayLimitError(TurnManagementError):
    """Raised when consecutive enemy turns exceed the configured cap."""

    def __init__(
        self,
        message: str,
        *,
        max_turns: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize autoplay limit error.

        Args:
            message: Human-readable error description.
            max_turns: The cap that was exceeded.
            details: Optional dictionary containing additional error context.
        """
        combined_details = dict(details or {})
        if max_turns is not None:
            combined_details["max_turns"] = max_turns
        super().__init__(message, details=combined_details)


class DiceRollError(GameEngineError):
    """Raised when a dice formula cannot be parsed or rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = dict(details or {})
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Storage Domain Exceptions
# =============================================================================


class StorageError(RpgHostError):
    """Base exception for session storage errors."""


class SessionNotFoundError(StorageError):
    """Raised when a game id has no stored session."""

    def __init__(
        self,
        message: str,
        *,
        game_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize session lookup error.

        Args:
            message: Human-readable error description.
            game_id: The game id that was requested.
            details: Optional dictionary containing additional error context.
        """
        combined_details = dict(details or {})
        if game_id:
            combined_details["game_id"] = game_id
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(RpgHostError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = dict(details or {})
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "RpgHostError",
    # Game engine exceptions
    "GameEngineError",
    "CombatError",
    "TurnManagementError",
    "AutoplayLimitError",
    "DiceRollError",
    # Storage exceptions
    "StorageError",
    "SessionNotFoundError",
    # Configuration exceptions
    "ConfigurationError",
]
