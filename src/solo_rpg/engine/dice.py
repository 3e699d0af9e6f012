"""Dice notation parsing and rolling.

Supported notation is ``[count]d<sides>[(+|-)modifier]``, case-insensitive,
e.g. ``d20``, ``2d6+3``, ``1d20-2``. Dice pools are rolled by the d20
library, which draws from the ``random`` module; it is not cryptographic.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import d20

from solo_rpg.core.exceptions import InvalidNotationError
from solo_rpg.core.logging import get_logger


logger = get_logger(__name__)

DICE_NOTATION_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$")

MIN_DICE_COUNT, MAX_DICE_COUNT = 1, 100
MIN_DICE_SIDES, MAX_DICE_SIDES = 2, 1000
MIN_MODIFIER, MAX_MODIFIER = -100, 100


class RollType(StrEnum):
    """Types of dice rolls."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


@dataclass(frozen=True)
class DiceNotation:
    """A parsed, range-checked dice notation.

    Attributes:
        count: Number of dice, 1-100.
        sides: Faces per die, 2-1000.
        modifier: Flat modifier, -100 to 100.
    """

    count: int
    sides: int
    modifier: int = 0

    @property
    def minimum(self) -> int:
        return self.count + self.modifier

    @property
    def maximum(self) -> int:
        return self.count * self.sides + self.modifier

    def format(self) -> str:
        return format_dice_notation(self)

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class RollResult:
    """One roll of the dice. Never mutated after creation.

    Attributes:
        notation: Canonical notation that was rolled.
        rolls: Individual die faces in roll order.
        total: Sum of faces plus modifier (not clamped).
        breakdown: Human-readable form, e.g. ``"[3, 5] + 2 = 10"``.
        roll_type: Normal, advantage or disadvantage.
    """

    notation: str
    rolls: tuple[int, ...]
    total: int
    breakdown: str
    roll_type: RollType = RollType.NORMAL


# =============================================================================
# Notation
# =============================================================================


def parse_dice_notation(notation: str) -> DiceNotation:
    """Parse a dice notation string.

    Args:
        notation: Text such as ``"2d6+3"``; surrounding whitespace and case
            are ignored.

    Returns:
        The parsed DiceNotation.

    Raises:
        InvalidNotationError: The text does not match the grammar, or count,
            sides or modifier is out of range.
    """
    match = DICE_NOTATION_PATTERN.match(notation.strip().lower())
    if not match:
        raise InvalidNotationError(
            'Invalid dice notation. Use a format like "d20", "2d6", or "2d6+3"',
            notation=notation,
        )

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    modifier = int(match.group(3) or "+0")

    if not MIN_DICE_COUNT <= count <= MAX_DICE_COUNT:
        raise InvalidNotationError("Dice count must be between 1 and 100", notation=notation)
    if not MIN_DICE_SIDES <= sides <= MAX_DICE_SIDES:
        raise InvalidNotationError("Dice sides must be between 2 and 1000", notation=notation)
    if not MIN_MODIFIER <= modifier <= MAX_MODIFIER:
        raise InvalidNotationError("Modifier must be between -100 and +100", notation=notation)

    return DiceNotation(count=count, sides=sides, modifier=modifier)


def is_valid_dice_notation(notation: str) -> bool:
    try:
        parse_dice_notation(notation)
    except InvalidNotationError:
        return False
    return True


def format_dice_notation(notation: DiceNotation) -> str:
    """Canonical form: a count of 1 and a zero modifier are omitted."""
    count = "" if notation.count == 1 else str(notation.count)
    if notation.modifier > 0:
        modifier = f"+{notation.modifier}"
    elif notation.modifier < 0:
        modifier = str(notation.modifier)
    else:
        modifier = ""
    return f"{count}d{notation.sides}{modifier}"


def _format_breakdown(rolls: tuple[int, ...], modifier: int, total: int) -> str:
    faces = str(rolls[0]) if len(rolls) == 1 else f"[{', '.join(map(str, rolls))}]"
    if modifier == 0:
        return f"{faces} = {total}"
    sign = f"+ {modifier}" if modifier > 0 else f"- {abs(modifier)}"
    return f"{faces} {sign} = {total}"


# =============================================================================
# Roller
# =============================================================================


def _extract_dice_values(expr: Any) -> list[int]:
    """Kept die faces from a d20 expression tree, in roll order."""
    values: list[int] = []

    def traverse(node: Any) -> None:
        if isinstance(node, d20.Dice):
            for die in node.values:
                if getattr(die, "kept", True):
                    values.append(die.number)
        elif hasattr(node, "children"):
            for child in node.children:
                traverse(child)

    traverse(expr)
    return values


class DiceRoller:
    """Rolls dice notation through the d20 library.

    Notation is validated and canonicalised here; d20 only ever sees the
    bare ``NdS`` pool, and the modifier is added afterwards so the breakdown
    keeps one fixed shape.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> result = roller.roll("2d6+3")
        >>> 5 <= result.total <= 15
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional seed for reproducible rolls. d20 draws from the
                ``random`` module, so seeding is process-wide.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, notation: str | DiceNotation) -> RollResult:
        """Roll dice.

        Args:
            notation: Notation text or an already parsed DiceNotation.

        Returns:
            The RollResult.

        Raises:
            InvalidNotationError: If ``notation`` is a string that does not parse.
        """
        parsed = parse_dice_notation(notation) if isinstance(notation, str) else notation
        pool = f"{parsed.count}d{parsed.sides}"
        try:
            rolled = d20.roll(pool)
        except d20.RollError as exc:
            raise InvalidNotationError(f"Dice could not be rolled: {exc}", notation=pool) from exc

        rolls = tuple(_extract_dice_values(rolled.expr))
        total = sum(rolls) + parsed.modifier
        result = RollResult(
            notation=format_dice_notation(parsed),
            rolls=rolls,
            total=total,
            breakdown=_format_breakdown(rolls, parsed.modifier, total),
        )
        logger.info("Dice rolled", notation=result.notation, rolls=list(rolls), total=total)
        return result

    def _roll_twice(self, notation: str | DiceNotation, roll_type: RollType) -> RollResult:
        first = self.roll(notation)
        second = self.roll(notation)
        if roll_type is RollType.ADVANTAGE:
            chosen = second if second.total > first.total else first
        else:
            chosen = second if second.total < first.total else first
        return RollResult(
            notation=chosen.notation,
            rolls=chosen.rolls,
            total=chosen.total,
            breakdown=f"{first.breakdown} | {second.breakdown} ({roll_type.value})",
            roll_type=roll_type,
        )

    def roll_with_advantage(self, notation: str | DiceNotation) -> RollResult:
        """Roll twice and keep the higher total; ties keep the first roll."""
        return self._roll_twice(notation, RollType.ADVANTAGE)

    def roll_with_disadvantage(self, notation: str | DiceNotation) -> RollResult:
        """Roll twice and keep the lower total; ties keep the first roll."""
        return self._roll_twice(notation, RollType.DISADVANTAGE)


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def _get_default_roller() -> DiceRoller:
    global _default_roller
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller


def roll_dice(notation: str | DiceNotation) -> RollResult:
    """Roll with the shared module-level roller.

    Example:
        >>> roll_dice("d20").total in range(1, 21)
        True
    """
    return _get_default_roller().roll(notation)


def roll_with_advantage(notation: str | DiceNotation) -> RollResult:
    return _get_default_roller().roll_with_advantage(notation)


def roll_with_disadvantage(notation: str | DiceNotation) -> RollResult:
    return _get_default_roller().roll_with_disadvantage(notation)


__all__ = [
    "DICE_NOTATION_PATTERN",
    "RollType",
    "DiceNotation",
    "RollResult",
    "DiceRoller",
    "parse_dice_notation",
    "is_valid_dice_notation",
    "format_dice_notation",
    "roll_dice",
    "roll_with_advantage",
    "roll_with_disadvantage",
]
