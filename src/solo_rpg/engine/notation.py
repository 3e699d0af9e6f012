"""Attribute-aware roll notation such as ``d20+STR`` or ``2d6+strength-1``.

Terms after the dice are read left to right by a small tokenizer. At each
position the longest known attribute name or display name wins, so a
system with both ``INT`` and ``INTELLIGENCE`` never resolves a prefix.
Every term is folded into one flat modifier, which yields notation the
dice engine accepts.
"""

from __future__ import annotations

import re

from solo_rpg.core.exceptions import InvalidNotationError
from solo_rpg.engine.dice import (
    MAX_MODIFIER,
    MIN_MODIFIER,
    DiceNotation,
    format_dice_notation,
    parse_dice_notation,
)
from solo_rpg.models.character import Character
from solo_rpg.models.templates import AttributeDefinition, SystemTemplate, get_attribute_modifier


_DICE_HEAD = re.compile(r"(\d*)d(\d+)", re.IGNORECASE)


def _alias_table(template: SystemTemplate) -> list[tuple[str, AttributeDefinition]]:
    aliases: dict[str, AttributeDefinition] = {}
    for attr in template.attributes:
        aliases.setdefault(attr.name.lower(), attr)
        aliases.setdefault(attr.display_name.lower(), attr)
    return sorted(aliases.items(), key=lambda item: len(item[0]), reverse=True)


def _read_terms(
    text: str,
    position: int,
    template: SystemTemplate | None,
    character: Character | None,
    original: str,
) -> int:
    aliases = _alias_table(template) if template is not None else []
    lowered = text.lower()
    total = 0
    while position < len(text):
        sign_char = text[position]
        if sign_char not in "+-":
            raise InvalidNotationError("Expected '+' or '-' between terms", notation=original)
        sign = 1 if sign_char == "+" else -1
        position += 1

        digits = re.match(r"\d+", text[position:])
        if digits:
            total += sign * int(digits.group())
            position += digits.end()
            continue

        for alias, definition in aliases:
            end = position + len(alias)
            if lowered.startswith(alias, position) and (end == len(text) or text[end] in "+-"):
                if character is not None:
                    value = character.attributes.get(definition.name, definition.default_value)
                    total += sign * (get_attribute_modifier(value, template) or 0)
                position = end
                break
        else:
            raise InvalidNotationError("Unknown term in roll notation", notation=original)
    return total


def resolve_attribute_modifiers(
    notation: str,
    character: Character | None,
    template: SystemTemplate | None,
    *,
    bonus: int = 0,
) -> str:
    """Replace attribute terms with the character's modifiers.

    Systems without a modifier formula contribute 0 for an attribute term.

    Args:
        notation: Roll notation, optionally with attribute terms.
        character: Whose attributes to read. Attribute terms count as 0 when None.
        template: The campaign's system template.
        bonus: Extra flat bonus to fold in (e.g. equipment).

    Returns:
        Canonical dice notation with a single modifier.

    Raises:
        InvalidNotationError: Unknown terms or dice out of range.
    """
    text = re.sub(r"\s+", "", notation)
    head = _DICE_HEAD.match(text)
    if not head:
        raise InvalidNotationError("Roll notation must start with dice", notation=notation)
    base = parse_dice_notation(head.group())
    modifier = _read_terms(text, head.end(), template, character, notation) + bonus
    modifier = max(MIN_MODIFIER, min(MAX_MODIFIER, modifier))
    return format_dice_notation(DiceNotation(count=base.count, sides=base.sides, modifier=modifier))


def apply_roll_bonus(notation: str, bonus: int) -> str:
    """Fold a flat bonus into plain notation, clamped to the modifier range."""
    if bonus == 0:
        return format_dice_notation(parse_dice_notation(notation))
    return resolve_attribute_modifiers(notation, None, None, bonus=bonus)


__all__ = [
    "resolve_attribute_modifiers",
    "apply_roll_bonus",
]
