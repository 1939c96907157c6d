"""Tests for dice rolling mechanics."""

from __future__ import annotations

import dataclasses

import pytest

from rpg_host.core.exceptions import DiceRollError
from rpg_host.engine.dice import DiceRoll, DiceRoller, parse_formula, roll


class TestParseFormula:
    """Tests for formula parsing."""

    @pytest.mark.parametrize(
        ("formula", "count", "sides", "modifier"),
        [
            ("d20", 1, 20, 0),
            ("2d6+1", 2, 6, 1),
            ("3d4-2", 3, 4, -2),
            (" 2D6 + 3 ", 2, 6, 3),
        ],
    )
    def test_valid_formulas(self, formula: str, count: int, sides: int, modifier: int) -> None:
        """Test valid formulas parse into their parts."""
        parsed = parse_formula(formula)

        assert parsed is not None
        assert (parsed.count, parsed.sides, parsed.modifier) == (count, sides, modifier)

    @pytest.mark.parametrize("formula", ["", None, "1", "0d6", "2d1", "2x6", "d", "d20+", "1d6*2"])
    def test_invalid_formulas(self, formula: str | None) -> None:
        """Test malformed formulas are rejected."""
        assert parse_formula(formula) is None

    def test_cleaned_form(self) -> None:
        """Test whitespace and case are normalized."""
        parsed = parse_formula(" 2D6 + 3 ")

        assert parsed is not None
        assert parsed.cleaned == "2d6+3"
        assert parsed.expression == "2d6+3"

    def test_expression_without_modifier(self) -> None:
        """Test the d20 expression omits a zero modifier."""
        parsed = parse_formula("d8")

        assert parsed is not None
        assert parsed.expression == "1d8"


class TestDiceRoller:
    """Tests for the DiceRoller class."""

    def test_simple_d20_roll(self, dice_roller: DiceRoller) -> None:
        """Test simple d20 roll."""
        result = dice_roller.roll("d20")

        assert isinstance(result, DiceRoll)
        assert 1 <= result.total <= 20
        assert len(result.rolls) == 1
        assert result.formula == "d20"

    def test_roll_with_modifier(self, dice_roller: DiceRoller) -> None:
        """Test roll with positive modifier."""
        result = dice_roller.roll("2d6+1")

        assert result.modifier == 1
        assert len(result.rolls) == 2
        assert result.total == sum(result.rolls) + 1

    def test_roll_with_negative_modifier(self, dice_roller: DiceRoller) -> None:
        """Test roll with negative modifier."""
        result = dice_roller.roll("3d4-2")

        assert result.modifier == -2
        assert result.total == sum(result.rolls) - 2
        assert all(1 <= value <= 4 for value in result.rolls)

    def test_same_seed_same_rolls(self) -> None:
        """Test seeded rollers are reproducible."""
        first = DiceRoller(seed=99).roll("4d6")
        second = DiceRoller(seed=99).roll("4d6")

        assert first.rolls == second.rolls

    @pytest.mark.parametrize("formula", ["2x6", "1", "hello"])
    def test_invalid_expression_raises_error(self, dice_roller: DiceRoller, formula: str) -> None:
        """Test that invalid expressions raise DiceRollError."""
        with pytest.raises(DiceRollError) as exc_info:
            dice_roller.roll(formula)

        assert exc_info.value.details["expression"] == formula

    def test_whitespace_expression_raises_error(self, dice_roller: DiceRoller) -> None:
        """Test that whitespace-only expression raises error."""
        with pytest.raises(DiceRollError):
            dice_roller.roll("   ")

    def test_try_roll_returns_none_for_non_formula(self, dice_roller: DiceRoller) -> None:
        """Test try_roll swallows bad formulas."""
        assert dice_roller.try_roll("1") is None
        assert dice_roller.try_roll(None) is None
        assert dice_roller.try_roll("1d6") is not None

    def test_roll_initiative(self, dice_roller: DiceRoller) -> None:
        """Test initiative is a d20 roll."""
        for _ in range(20):
            assert 1 <= dice_roller.roll_initiative() <= 20


class TestConvenienceRollFunction:
    """Tests for the module-level roll function."""

    def test_basic_roll(self) -> None:
        """Test basic roll using convenience function."""
        result = roll("2d6")

        assert 2 <= result.total <= 12


class TestDiceRoll:
    """Tests for the DiceRoll dataclass."""

    def test_roll_is_frozen(self, dice_roller: DiceRoller) -> None:
        """Test that DiceRoll is immutable."""
        result = dice_roller.roll("d6")

        with pytest.raises(dataclasses.FrozenInstanceError):
            result.total = 100  # type: ignore[misc]
