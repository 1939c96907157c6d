"""Dice formula parsing and rolling.

Formulas follow the ``NdS+M`` shape (``d20``, ``2d6+1``, ``3d4-2``).
Whitespace and case are ignored; the count defaults to 1 and must be at
least 1, and dice need at least two sides. Anything else, including a
bare number such as ``"1"``, is not a formula.

Rolling is delegated to the d20 library.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Any

import d20

from rpg_host.core.constants import INITIATIVE_FORMULA
from rpg_host.core.exceptions import DiceRollError
from rpg_host.core.logging import get_logger


logger = get_logger(__name__)

_FORMULA_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DiceFormula:
    """A parsed dice formula.

    Attributes:
        count: Number of dice.
        sides: Sides per die.
        modifier: Flat modifier added to the sum.
        cleaned: The formula with whitespace removed and lowercased.
    """

    count: int
    sides: int
    modifier: int
    cleaned: str

    @property
    def expression(self) -> str:
        """The formula in d20 notation."""
        if self.modifier:
            return f"{self.count}d{self.sides}{self.modifier:+d}"
        return f"{self.count}d{self.sides}"


@dataclass(frozen=True)
class DiceRoll:
    """The result of rolling a formula.

    Attributes:
        formula: The cleaned formula that was rolled.
        rolls: Individual die results.
        modifier: Flat modifier.
        total: Sum of the dice plus the modifier.
    """

    formula: str
    rolls: list[int]
    modifier: int
    total: int


def parse_formula(formula: str | None) -> DiceFormula | None:
    """Parse a dice formula.

    Args:
        formula: Text such as ``" 2d6 + 3 "``.

    Returns:
        The parsed formula, or None when the text is not a valid formula.
    """
    if not formula:
        return None
    cleaned = _WHITESPACE.sub("", formula).lower()
    match = _FORMULA_PATTERN.match(cleaned)
    if match is None:
        return None
    count = int(match.group(1) or 1)
    sides = int(match.group(2))
    modifier = int(match.group(3) or 0)
    if count < 1 or sides < 2:
        return None
    return DiceFormula(count=count, sides=sides, modifier=modifier, cleaned=cleaned)


class DiceRoller:
    """Roll dice formulas with the d20 library.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> result = roller.roll("2d6+1")
        >>> 3 <= result.total <= 13
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, formula: str) -> DiceRoll:
        """Roll a formula.

        Args:
            formula: Dice formula (e.g., 'd20', '2d6+1').

        Returns:
            DiceRoll with the individual dice and total.

        Raises:
            DiceRollError: If the formula is empty, invalid or cannot be rolled.
        """
        if not formula or not formula.strip():
            raise DiceRollError("Empty dice formula", expression=formula)

        parsed = parse_formula(formula)
        if parsed is None:
            raise DiceRollError("Invalid dice formula", expression=formula)

        try:
            result = d20.roll(parsed.expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Dice roll failed: {exc}",
                expression=formula,
            ) from exc

        rolls = self._extract_dice_values(result.expr)
        logger.debug("Dice rolled", formula=parsed.cleaned, rolls=rolls, total=result.total)
        return DiceRoll(
            formula=parsed.cleaned,
            rolls=rolls,
            modifier=parsed.modifier,
            total=result.total,
        )

    def try_roll(self, formula: str | None) -> DiceRoll | None:
        """Roll a formula, returning None when it cannot be rolled."""
        if not formula:
            return None
        try:
            return self.roll(formula)
        except DiceRollError as exc:
            logger.debug("Formula not rolled", formula=formula, reason=exc.message)
            return None

    def roll_initiative(self) -> int:
        """Roll one initiative score."""
        return self.roll(INITIATIVE_FORMULA).total

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Collect kept die results from a d20 expression tree."""
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(die.number)
            else:
                for child in getattr(node, "children", ()):
                    traverse(child)

        traverse(expr)
        return values


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def roll(formula: str) -> DiceRoll:
    """Roll a formula with a shared module-level roller.

    Raises:
        DiceRollError: If the formula cannot be rolled.
    """
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller.roll(formula)


__all__ = [
    "DiceFormula",
    "DiceRoll",
    "parse_formula",
    "DiceRoller",
    "roll",
]
