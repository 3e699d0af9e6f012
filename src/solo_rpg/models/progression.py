"""Experience, level and attribute-point progression.

XP may go down as well as up. Level is always derived from cumulative XP
through the system's experience table. A level-up grants attribute points
and puts the character into pending allocation until the player confirms.

Level-down policy: attributes already allocated are kept, even when the
grant that paid for them is lost. Unspent pending points shrink by the
forfeited grant, floored at zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from solo_rpg.core.exceptions import (
    AttributeOutOfRangeError,
    NoPointsAvailableError,
    ProgressionError,
    UnknownAttributeError,
    ValidationError,
)
from solo_rpg.core.logging import get_logger
from solo_rpg.models.character import Character
from solo_rpg.models.templates import (
    RPGSystem,
    SystemTemplate,
    find_attribute,
    get_template,
    is_valid_attribute_value,
    refresh_derived_stats,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class LevelChange:
    """Level delta produced by an XP change."""

    new_experience: int
    new_level: int
    leveled_up: bool
    leveled_down: bool
    attribute_points: int


@dataclass(frozen=True)
class ExperienceUpdate:
    """Outcome of applying an XP delta to a character.

    Attributes:
        character: The updated character.
        leveled_up: Level increased.
        leveled_down: Level decreased.
        new_level: Level after the update.
        attribute_points: Points granted by this update (0 unless leveled up).
    """

    character: Character
    leveled_up: bool
    leveled_down: bool
    new_level: int
    attribute_points: int


# =============================================================================
# XP Table Lookups
# =============================================================================


def get_level_for_xp(xp: int, experience_table: Sequence[int]) -> int:
    """Highest level whose cumulative threshold is met. Negative XP counts as 0."""
    clamped = max(0, xp)
    for index in range(len(experience_table) - 1, -1, -1):
        if clamped >= experience_table[index]:
            return index + 1
    return 1


def get_xp_for_next_level(level: int, experience_table: Sequence[int]) -> int | None:
    """Cumulative XP needed for ``level + 1``. Returns None at max level."""
    if level >= len(experience_table):
        return None
    return experience_table[level]


def get_xp_progress(xp: int, level: int, experience_table: Sequence[int]) -> float:
    """Percentage progress toward the next level, in [0, 100]."""
    next_threshold = get_xp_for_next_level(level, experience_table)
    if next_threshold is None:
        return 100.0
    current_threshold = experience_table[max(0, level - 1)]
    span = next_threshold - current_threshold
    if span <= 0:
        return 100.0
    return min(100.0, max(0.0, (xp - current_threshold) / span * 100))


def calculate_level_change(
    current_level: int,
    current_xp: int,
    xp_delta: int,
    experience_table: Sequence[int],
    level_up_points: int,
) -> LevelChange:
    """Work out the level reached after adding ``xp_delta`` (which may be negative)."""
    new_xp = max(0, current_xp + xp_delta)
    new_level = get_level_for_xp(new_xp, experience_table)
    levels_gained = max(0, new_level - current_level)
    return LevelChange(
        new_experience=new_xp,
        new_level=new_level,
        leveled_up=new_level > current_level,
        leveled_down=new_level < current_level,
        attribute_points=levels_gained * level_up_points,
    )


# =============================================================================
# Character Operations
# =============================================================================


def update_experience(
    character: Character,
    xp_delta: int,
    system: str | RPGSystem | SystemTemplate | None,
) -> ExperienceUpdate:
    """Apply an XP gain or loss and any resulting level change.

    Args:
        character: Character receiving the XP.
        xp_delta: Positive award or negative penalty.
        system: The campaign's RPG system (or its template).

    Returns:
        ExperienceUpdate with the updated character and level flags.
    """
    template = system if isinstance(system, SystemTemplate) else get_template(system)
    change = calculate_level_change(
        character.level,
        character.experience,
        xp_delta,
        template.experience_table,
        template.level_up_points,
    )

    pending_points = character.pending_attribute_points
    level_up_pending = character.level_up_pending
    if change.leveled_up:
        pending_points += change.attribute_points
        level_up_pending = True
    elif change.leveled_down:
        forfeited = (character.level - change.new_level) * template.level_up_points
        pending_points = max(0, pending_points - forfeited)
        if pending_points == 0:
            level_up_pending = False

    updated = character.touched(
        experience=change.new_experience,
        level=change.new_level,
        pending_attribute_points=pending_points,
        level_up_pending=level_up_pending,
    )
    if change.new_level != character.level:
        updated = refresh_derived_stats(updated, template)

    logger.info(
        "Experience updated",
        character_id=character.id,
        xp_delta=xp_delta,
        experience=change.new_experience,
        level=change.new_level,
        leveled_up=change.leveled_up,
        leveled_down=change.leveled_down,
    )
    return ExperienceUpdate(
        character=updated,
        leveled_up=change.leveled_up,
        leveled_down=change.leveled_down,
        new_level=change.new_level,
        attribute_points=change.attribute_points,
    )


def allocate_attribute_point(
    character: Character,
    attribute: str,
    system: str | RPGSystem | SystemTemplate | None,
    delta: int = 1,
) -> Character:
    """Spend pending points on one attribute.

    Args:
        character: Character in pending allocation.
        attribute: Attribute name or display name.
        system: The campaign's RPG system (or its template).
        delta: Points to spend; must be positive.

    Returns:
        The updated character.

    Raises:
        NoPointsAvailableError: Fewer than ``delta`` points are pending.
        UnknownAttributeError: The system has no such attribute.
        AttributeOutOfRangeError: The new value leaves the attribute's range.
    """
    if delta < 1:
        raise ValidationError("Allocation delta must be positive", field_name="delta", invalid_value=delta)
    if character.pending_attribute_points <= 0 or delta > character.pending_attribute_points:
        raise NoPointsAvailableError(
            "No attribute points available",
            details={"pending": character.pending_attribute_points, "requested": delta},
        )

    template = system if isinstance(system, SystemTemplate) else get_template(system)
    definition = find_attribute(template, attribute)
    if definition is None:
        raise UnknownAttributeError(
            f"Unknown attribute for {template.system_name}",
            attribute=attribute,
        )

    current = character.attributes.get(definition.name, definition.default_value)
    new_value = current + delta
    if not is_valid_attribute_value(new_value, definition):
        raise AttributeOutOfRangeError(
            "Attribute value out of range",
            attribute=definition.name,
            value=new_value,
            min_value=definition.min_value,
            max_value=definition.max_value,
        )

    updated = character.touched(
        attributes={**character.attributes, definition.name: new_value},
        pending_attribute_points=character.pending_attribute_points - delta,
    )
    logger.info(
        "Attribute point allocated",
        character_id=character.id,
        attribute=definition.name,
        value=new_value,
        remaining=updated.pending_attribute_points,
    )
    return refresh_derived_stats(updated, template)


def try_allocate_attribute_point(
    character: Character,
    attribute: str,
    system: str | RPGSystem | SystemTemplate | None,
    delta: int = 1,
) -> tuple[Character, bool]:
    """Like allocate_attribute_point, but a rejected allocation is a no-op.

    Returns:
        ``(character, applied)``; the input character when rejected.
    """
    try:
        return allocate_attribute_point(character, attribute, system, delta), True
    except (ProgressionError, ValidationError) as exc:
        logger.info("Attribute allocation rejected", attribute=attribute, reason=exc.message)
        return character, False


def confirm_level_up(character: Character) -> Character:
    """Leave pending allocation. Unspent points are forfeited."""
    if character.pending_attribute_points:
        logger.info(
            "Unspent attribute points forfeited",
            character_id=character.id,
            forfeited=character.pending_attribute_points,
        )
    return character.touched(pending_attribute_points=0, level_up_pending=False)


# =============================================================================
# Messages
# =============================================================================


def format_xp_award_message(amount: int, reason: str | None = None) -> str:
    sign = "+" if amount >= 0 else ""
    message = f"{sign}{amount} XP"
    if reason:
        message += f" - {reason}"
    return message


def format_level_up_message(level: int) -> str:
    return f"LEVEL UP! You are now Level {level}!"


def format_level_down_message(level: int) -> str:
    return f"Level down! Now Level {level}"


__all__ = [
    "LevelChange",
    "ExperienceUpdate",
    "get_level_for_xp",
    "get_xp_for_next_level",
    "get_xp_progress",
    "calculate_level_change",
    "update_experience",
    "allocate_attribute_point",
    "try_allocate_attribute_point",
    "confirm_level_up",
    "format_xp_award_message",
    "format_level_up_message",
    "format_level_down_message",
]
