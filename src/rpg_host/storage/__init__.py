"""Storage module for RPG host game sessions."""

from rpg_host.storage.store import GameStore

__all__ = [
    "GameStore",
]
