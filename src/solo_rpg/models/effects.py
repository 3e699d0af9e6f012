"""Character effects emitted by the narrative generator, and how they apply.

Effects arrive as a tagged union. Each apply function returns an updated
copy of the character; none of them mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from solo_rpg.core.config import get_settings
from solo_rpg.core.exceptions import UnknownResourceError
from solo_rpg.core.logging import get_logger
from solo_rpg.models.character import Character
from solo_rpg.models.inventory import get_armor_damage_reduction
from solo_rpg.models.templates import RPGSystem, SystemTemplate, find_resource, get_template


logger = get_logger(__name__)


# =============================================================================
# Effect Types
# =============================================================================


class DamageEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["damage"] = "damage"
    amount: int = Field(ge=0)


class DamageRollEffect(BaseModel):
    """Damage rolled by the engine from notation such as ``2d6``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["damage_roll"] = "damage_roll"
    roll_notation: str


class HealEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["heal"] = "heal"
    amount: int = Field(ge=0)


class SpendResourceEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["spend_resource"] = "spend_resource"
    resource_name: str
    amount: int = Field(ge=0)


class RestoreResourceEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["restore_resource"] = "restore_resource"
    resource_name: str
    amount: int = Field(ge=0)


CharacterEffect = Annotated[
    Union[
        DamageEffect,
        DamageRollEffect,
        HealEffect,
        SpendResourceEffect,
        RestoreResourceEffect,
    ],
    Field(discriminator="type"),
]


@dataclass(frozen=True)
class DamageOutcome:
    """Result of applying damage.

    Attributes:
        character: Updated character.
        raw_damage: Damage before armor.
        reduced_by: Armor reduction applied.
        applied: Hit points actually removed.
    """

    character: Character
    raw_damage: int
    reduced_by: int
    applied: int

    @property
    def lethal(self) -> bool:
        return self.character.hit_points <= 0


# =============================================================================
# Hit Points
# =============================================================================


def take_damage(
    character: Character,
    amount: int,
    *,
    minimum_damage: int | None = None,
) -> DamageOutcome:
    """Apply incoming damage after equipped armor reduction.

    Damage after reduction is floored at ``minimum_damage`` (the configured
    minimum, 0 by default, when None) and hit points never drop below 0.
    """
    reduction = get_armor_damage_reduction(character.equipped_armor, character.inventory)
    if minimum_damage is None:
        minimum_damage = get_settings().game.minimum_damage
    applied = max(minimum_damage, amount - reduction)
    hit_points = max(0, character.hit_points - applied)
    logger.info(
        "Damage taken",
        character_id=character.id,
        raw=amount,
        reduced_by=reduction,
        applied=applied,
        hit_points=hit_points,
    )
    return DamageOutcome(
        character=character.touched(hit_points=hit_points),
        raw_damage=amount,
        reduced_by=reduction,
        applied=character.hit_points - hit_points,
    )


def heal(character: Character, amount: int) -> Character:
    """Restore hit points, clamped at max."""
    hit_points = min(character.max_hit_points, character.hit_points + max(0, amount))
    logger.info("Character healed", character_id=character.id, amount=amount, hit_points=hit_points)
    return character.touched(hit_points=hit_points)


def full_rest(character: Character) -> Character:
    """Restore hit points and every resource to maximum."""
    resources = dict(character.max_resources) if character.max_resources is not None else None
    return character.touched(hit_points=character.max_hit_points, resources=resources)


# =============================================================================
# Resources
# =============================================================================


def _resolve_resource(
    character: Character,
    name: str,
    template: SystemTemplate,
    effect_type: str,
) -> str:
    definition = find_resource(template, name)
    if (
        definition is None
        or character.resources is None
        or definition.name not in character.resources
    ):
        raise UnknownResourceError(
            f"{template.system_name} characters have no such resource",
            resource_name=name,
            effect_type=effect_type,
        )
    return definition.name


def _adjust_resource(
    character: Character,
    name: str,
    delta: int,
    system: str | RPGSystem | SystemTemplate | None,
    effect_type: str,
) -> Character:
    template = system if isinstance(system, SystemTemplate) else get_template(system)
    key = _resolve_resource(character, name, template, effect_type)
    resources = dict(character.resources or {})
    maximum = (character.max_resources or {}).get(key, resources[key])
    resources[key] = min(maximum, max(0, resources[key] + delta))
    logger.info(
        "Resource adjusted",
        character_id=character.id,
        resource=key,
        delta=delta,
        value=resources[key],
    )
    return character.touched(resources=resources)


def spend_resource(
    character: Character,
    name: str,
    amount: int,
    system: str | RPGSystem | SystemTemplate | None,
) -> Character:
    """Lower a resource pool, floored at 0.

    Raises:
        UnknownResourceError: The character does not track ``name``.
    """
    return _adjust_resource(character, name, -abs(amount), system, "spend_resource")


def restore_resource(
    character: Character,
    name: str,
    amount: int,
    system: str | RPGSystem | SystemTemplate | None,
) -> Character:
    """Raise a resource pool, capped at its max.

    Raises:
        UnknownResourceError: The character does not track ``name``.
    """
    return _adjust_resource(character, name, abs(amount), system, "restore_resource")


__all__ = [
    "CharacterEffect",
    "DamageEffect",
    "DamageRollEffect",
    "HealEffect",
    "SpendResourceEffect",
    "RestoreResourceEffect",
    "DamageOutcome",
    "take_damage",
    "heal",
    "full_rest",
    "spend_resource",
    "restore_resource",
]
