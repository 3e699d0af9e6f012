"""Tests for dice notation parsing and rolling."""

from __future__ import annotations

from typing import Any

import d20
import pytest

from solo_rpg.core.exceptions import InvalidNotationError
from solo_rpg.engine.dice import (
    DiceNotation,
    DiceRoller,
    RollResult,
    RollType,
    format_dice_notation,
    is_valid_dice_notation,
    parse_dice_notation,
    roll_dice,
)


class TestParseDiceNotation:
    """Tests for parse_dice_notation."""

    def test_missing_count_defaults_to_one(self) -> None:
        """Test "d20" parses as one twenty-sided die."""
        assert parse_dice_notation("d20") == DiceNotation(count=1, sides=20, modifier=0)

    def test_modifiers(self) -> None:
        """Test positive and negative modifiers."""
        assert parse_dice_notation("2d6+3") == DiceNotation(count=2, sides=6, modifier=3)
        assert parse_dice_notation("1d20-2") == DiceNotation(count=1, sides=20, modifier=-2)

    def test_case_and_whitespace_ignored(self) -> None:
        """Test notation is case-insensitive and trimmed."""
        assert parse_dice_notation("  3D8+1 ") == DiceNotation(count=3, sides=8, modifier=1)

    @pytest.mark.parametrize(
        "notation",
        ["0d6", "101d6", "1d1", "1d1001", "1d20+101", "1d20-101"],
    )
    def test_out_of_range_rejected(self, notation: str) -> None:
        """Test count, sides and modifier bounds."""
        with pytest.raises(InvalidNotationError) as exc_info:
            parse_dice_notation(notation)

        assert exc_info.value.details["notation"] == notation

    @pytest.mark.parametrize("notation", ["", "20", "d", "2d6+", "2d6+1d4", "d20+STR", "roll d20"])
    def test_grammar_mismatch_rejected(self, notation: str) -> None:
        """Test strings outside the grammar are rejected."""
        assert not is_valid_dice_notation(notation)
        with pytest.raises(InvalidNotationError):
            parse_dice_notation(notation)

    def test_bounds_accepted(self) -> None:
        """Test the inclusive range limits."""
        assert parse_dice_notation("100d1000+100").maximum == 100_100
        assert parse_dice_notation("1d2-100").minimum == -99


class TestFormatDiceNotation:
    """Tests for canonical formatting."""

    @pytest.mark.parametrize(
        ("text", "canonical"),
        [("d20", "d20"), ("1d20", "d20"), ("2d6-3", "2d6-3"), ("2D6+0", "2d6"), ("4d4+12", "4d4+12")],
    )
    def test_canonical_form(self, text: str, canonical: str) -> None:
        """Test formatting a parsed notation yields the canonical text."""
        assert format_dice_notation(parse_dice_notation(text)) == canonical
        assert str(parse_dice_notation(text)) == canonical


class TestDiceRoller:
    """Tests for the DiceRoller class."""

    def test_simple_d20_roll(self, dice_roller: DiceRoller) -> None:
        """Test simple d20 roll."""
        result = dice_roller.roll("1d20")

        assert isinstance(result, RollResult)
        assert 1 <= result.total <= 20
        assert len(result.rolls) == 1
        assert result.notation == "d20"
        assert result.roll_type == RollType.NORMAL

    def test_totals_stay_in_range(self, dice_roller: DiceRoller) -> None:
        """Test totals fall within [count + mod, count * sides + mod]."""
        for notation in ("2d6+3", "1d20-5", "10d4", "3d100-100"):
            parsed = parse_dice_notation(notation)
            for _ in range(50):
                result = dice_roller.roll(parsed)
                assert parsed.minimum <= result.total <= parsed.maximum
                assert len(result.rolls) == parsed.count

    def test_negative_totals_not_clamped(self, scripted_roller) -> None:
        """Test a large negative modifier may produce a negative total."""
        result = scripted_roller(1).roll("d4-10")

        assert result.total == -9

    def test_single_die_breakdown(self, scripted_roller) -> None:
        """Test breakdown for one die without modifier."""
        assert scripted_roller(17).roll("d20").breakdown == "17 = 17"

    def test_multiple_dice_breakdown(self, scripted_roller) -> None:
        """Test breakdown lists faces and the modifier."""
        assert scripted_roller(3, 5).roll("2d6+2").breakdown == "[3, 5] + 2 = 10"
        assert scripted_roller(3, 5).roll("2d6-2").breakdown == "[3, 5] - 2 = 6"
        assert scripted_roller(4).roll("d6+1").breakdown == "4 + 1 = 5"

    def test_seed_is_reproducible(self) -> None:
        """Test reseeding replays the same faces."""
        DiceRoller(seed=7)
        first = [roll_dice("3d6").rolls for _ in range(5)]
        DiceRoller(seed=7)
        second = [roll_dice("3d6").rolls for _ in range(5)]

        assert first == second

    def test_only_the_pool_reaches_d20(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test d20 rolls the bare pool and the modifier is added locally."""
        seen: list[str] = []
        real_roll = d20.roll

        def spy(expr: str, *args: Any, **kwargs: Any) -> Any:
            seen.append(expr)
            return real_roll(expr, *args, **kwargs)

        monkeypatch.setattr(d20, "roll", spy)

        result = DiceRoller(seed=3).roll("2d6+3")

        assert seen == ["2d6"]
        assert result.total == sum(result.rolls) + 3

    def test_invalid_notation_raises(self, dice_roller: DiceRoller) -> None:
        """Test rolling bad notation fails before drawing."""
        with pytest.raises(InvalidNotationError):
            dice_roller.roll("1d1")

    def test_advantage_keeps_higher(self, scripted_roller) -> None:
        """Test advantage keeps the higher roll and shows both."""
        result = scripted_roller(4, 15).roll_with_advantage("d20")

        assert result.total == 15
        assert result.roll_type == RollType.ADVANTAGE
        assert result.breakdown == "4 = 4 | 15 = 15 (advantage)"

    def test_disadvantage_keeps_lower(self, scripted_roller) -> None:
        """Test disadvantage keeps the lower roll."""
        result = scripted_roller(4, 15).roll_with_disadvantage("d20+1")

        assert result.total == 5
        assert result.rolls == (4,)
        assert result.breakdown.endswith("(disadvantage)")

    def test_advantage_tie_keeps_first(self, scripted_roller) -> None:
        """Test ties keep the first roll."""
        result = scripted_roller(9, 9).roll_with_advantage("d20")

        assert result.total == 9


def test_module_level_roll() -> None:
    """Test the module-level convenience roller."""
    result = roll_dice("2d6+3")

    assert 5 <= result.total <= 15
