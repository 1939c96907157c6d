"""Narration log sink used by the combat engine.

The engine only knows the ``LogSink`` protocol. The default sink appends
entries to the session itself and keeps the log to a rolling size.
"""

from __future__ import annotations

from typing import Protocol

from rpg_host.core.logging import get_logger
from rpg_host.models.enums import LogKind
from rpg_host.models.game_state import GameSession, LogEntry


logger = get_logger(__name__)


class LogSink(Protocol):
    """Append-only narration trail for a game session."""

    def append(self, session: GameSession, text: str, kind: LogKind) -> LogEntry | None:
        ...


class SessionLogSink:
    """Store log entries on the session, dropping the oldest past a cap.

    Attributes:
        max_entries: Number of entries kept per session, or None for no cap.
    """

    def __init__(self, *, max_entries: int | None = None) -> None:
        self.max_entries = max_entries

    def append(
        self,
        session: GameSession,
        text: str,
        kind: LogKind = LogKind.SYSTEM,
    ) -> LogEntry | None:
        """Append a log entry.

        Args:
            session: Session to append to.
            text: Narration text; empty text is ignored.
            kind: Entry category.

        Returns:
            The new entry, or None when nothing was appended.
        """
        if not text:
            return None
        entry = LogEntry(kind=kind, text=text)
        session.log.append(entry)
        if self.max_entries is not None and len(session.log) > self.max_entries:
            del session.log[: len(session.log) - self.max_entries]
        logger.debug("Log entry appended", kind=str(kind), text=text)
        return entry


__all__ = [
    "LogSink",
    "SessionLogSink",
]
