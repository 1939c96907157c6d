"""Structured logging for the RPG host.

Engine modules log through structlog with key/value context. Every host
operation runs inside ``game_context`` so its entries carry the game id
and the tool name. Log lines go to stderr, leaving stdout to whatever
embeds the host.

Example:
    >>> from rpg_host.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Turn advanced", actor="Goblin", round=2)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from rpg_host.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, Processor, WrappedLogger


def _service_tagger(app_name: str) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", app_name)
        return event_dict

    return add_service


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog from application settings.

    ``settings.log_level`` filters entries and ``settings.json_logs``
    switches between JSON lines and the console renderer.

    Args:
        settings: Settings to read; the cached application settings by default.
    """
    settings = settings or get_settings()
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _service_tagger(settings.app_name),
    ]
    if settings.json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, usually named after the calling module."""
    return structlog.get_logger(name)


@contextmanager
def game_context(operation: str, game_id: str | None) -> Generator[None, None, None]:
    """Tag log entries made inside the block with the game and operation.

    Previously bound values are restored on exit.

    Example:
        >>> with game_context("roll_dice", "game_abc123"):
        ...     get_logger(__name__).info("Dice rolled", total=14)
    """
    with structlog.contextvars.bound_contextvars(game_id=game_id, operation=operation):
        yield


__all__ = [
    "configure_logging",
    "game_context",
    "get_logger",
]
