"""Conversational tabletop game host.

The package exposes a small set of tool-shaped operations (new game,
dice rolls, state updates, combat actions) on top of a deterministic
turn-based combat engine.

Subpackages:
    core: Configuration, logging, exceptions and shared constants.
    models: Pydantic models for game sessions, combatants and requests.
    engine: Dice, combatant normalization, turns, actions and autoplay.
    storage: In-memory session store with per-session locking.
    host: The game host service and its tool registry.
"""

from __future__ import annotations


__version__ = "0.1.0"

__all__ = ["__version__"]
