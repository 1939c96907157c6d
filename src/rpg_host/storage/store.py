"""In-memory game session store.

Sessions are kept as serialized JSON snapshots keyed by game id, so every
read hands out an independent copy and a half-applied change is never
visible to other callers. ``checkout`` holds a per-game lock for the
duration of a call and saves the session only when the block succeeds.
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager

from rpg_host.core.exceptions import SessionNotFoundError, StorageError
from rpg_host.core.logging import get_logger
from rpg_host.models.game_state import GameSession


logger = get_logger(__name__)


class GameStore:
    """Game sessions keyed by id.

    Example:
        >>> store = GameStore()
        >>> store.exists("game_1")
        False
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, game_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[game_id] = lock
            return lock

    def exists(self, game_id: str | None) -> bool:
        return bool(game_id) and game_id in self._records

    def list_ids(self) -> list[str]:
        """Ids of every stored game."""
        return list(self._records)

    def get(self, game_id: str) -> GameSession:
        """Load a copy of a session.

        Raises:
            SessionNotFoundError: If no game has this id.
            StorageError: If the stored snapshot cannot be read back.
        """
        raw = self._records.get(game_id)
        if raw is None:
            raise SessionNotFoundError(f"Game not found: {game_id}", game_id=game_id)
        try:
            return GameSession.model_validate_json(raw)
        except ValueError as exc:
            raise StorageError(
                f"Stored game is corrupt: {game_id}",
                details={"game_id": game_id, "original_error": str(exc)},
            ) from exc

    def save(self, session: GameSession) -> None:
        """Store a session, stamping ``updated_at``."""
        session.touch()
        with self._lock_for(session.game_id):
            self._records[session.game_id] = session.model_dump_json()
        logger.debug("Game saved", game_id=session.game_id, phase=str(session.phase))

    def create(self, session: GameSession) -> GameSession:
        """Store a new session, replacing any game with the same id."""
        self.save(session)
        logger.info("Game created", game_id=session.game_id)
        return session

    def delete(self, game_id: str) -> bool:
        """Delete a session.

        Returns:
            True if deleted, False if not found.
        """
        with self._lock_for(game_id):
            deleted = self._records.pop(game_id, None) is not None
        if deleted:
            logger.info("Game deleted", game_id=game_id)
        return deleted

    @contextmanager
    def checkout(self, game_id: str) -> Generator[GameSession, None, None]:
        """Lock a game, yield a working copy and save it on success.

        Raises:
            SessionNotFoundError: If no game has this id.
        """
        with self._lock_for(game_id):
            session = self.get(game_id)
            yield session
            self.save(session)


__all__ = [
    "GameStore",
]
