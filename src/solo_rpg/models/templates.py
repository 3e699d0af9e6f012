"""RPG system template registry.

Each supported tabletop system contributes one static SystemTemplate:
its attribute list, modifier formula, hit point and resource formulas,
and level-up grants. Lookup is keyed by the RPGSystem enum, and any
unknown system name resolves to the Generic template.

The formulas here are rules data. They are not meant to be tuned.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solo_rpg.core.logging import get_logger
from solo_rpg.models.character import Character


logger = get_logger(__name__)


# =============================================================================
# Types
# =============================================================================


class RPGSystem(StrEnum):
    """Supported RPG systems, valued by their display name."""

    DND_5E = "D&D 5e"
    PATHFINDER_2E = "Pathfinder 2e"
    CALL_OF_CTHULHU = "Call of Cthulhu"
    CYBERPUNK_RED = "Cyberpunk RED"
    VAMPIRE = "Vampire: The Masquerade"
    GENERIC = "Generic"

    @classmethod
    def from_name(cls, name: str | RPGSystem | None) -> RPGSystem:
        """Resolve a free-form system name, falling back to GENERIC."""
        if isinstance(name, RPGSystem):
            return name
        try:
            return cls(name)
        except ValueError:
            return cls.GENERIC


class AttributeDefinition(BaseModel):
    """One attribute of a system (e.g. ``strength`` shown as ``STR``)."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    description: str = ""
    default_value: int
    min_value: int
    max_value: int


class ResourceDefinition(BaseModel):
    """A spendable pool such as sanity or willpower."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    description: str = ""
    color: str = "#888888"


MaxHPFormula = Callable[[Character, int], int]
MaxResourcesFormula = Callable[[Character, int], dict[str, int]]


class SystemTemplate(BaseModel):
    """The static rule table for one RPG system.

    Attributes:
        system: Registry key.
        system_name: Display name.
        attributes: Ordered attribute definitions.
        modifier_calculation: Maps an attribute value to its roll modifier,
            or None for systems without modifiers.
        level_up_points: Attribute points granted per level gained.
        experience_table: Cumulative XP per level; index 0 is level 1.
        calculate_max_hp: ``(character, level) -> max hit points``.
        resources: Resource pools the system tracks, if any.
        calculate_max_resources: ``(character, level) -> {name: max}``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    system: RPGSystem
    system_name: str
    attributes: tuple[AttributeDefinition, ...]
    modifier_calculation: Callable[[int], int] | None = None
    level_up_points: int = Field(ge=0)
    experience_table: tuple[int, ...]
    calculate_max_hp: MaxHPFormula
    resources: tuple[ResourceDefinition, ...] = ()
    calculate_max_resources: MaxResourcesFormula | None = None

    @field_validator("experience_table")
    @classmethod
    def validate_experience_table(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        """Experience tables start at 0 and never decrease."""
        if not value or value[0] != 0:
            raise ValueError("experience table must start at 0")
        if any(b < a for a, b in zip(value, value[1:])):
            raise ValueError("experience table must be non-decreasing")
        return value

    @property
    def max_level(self) -> int:
        return len(self.experience_table)

    def attribute_names(self) -> list[str]:
        return [attr.name for attr in self.attributes]


# =============================================================================
# Formulas
# =============================================================================

EXPERIENCE_TABLE: tuple[int, ...] = (0, 600, 1800, 4200, 8400, 15000, 24000, 35000, 48000, 64000)


def ability_modifier(value: int) -> int:
    """D20-style modifier: floor((value - 10) / 2)."""
    return math.floor((value - 10) / 2)


def cyberpunk_modifier(value: int) -> int:
    return value - 5


def _attr(character: Character, name: str, default: int) -> int:
    return character.attributes.get(name, default)


def _dnd_max_hp(character: Character, level: int) -> int:
    con_mod = ability_modifier(_attr(character, "constitution", 10))
    first_level = max(1, 10 + con_mod)
    return first_level + (level - 1) * max(1, 6 + con_mod)


def _pathfinder_max_hp(character: Character, level: int) -> int:
    con_mod = ability_modifier(_attr(character, "constitution", 10))
    return max(1, level * max(1, 8 + con_mod))


def _cthulhu_max_hp(character: Character, level: int) -> int:
    return max(1, math.ceil((_attr(character, "CON", 50) + _attr(character, "SIZ", 50)) / 10))


def _cthulhu_max_resources(character: Character, level: int) -> dict[str, int]:
    power = _attr(character, "POW", 50)
    return {"sanity": power, "magicPoints": math.floor(power / 5)}


def _cyberpunk_max_hp(character: Character, level: int) -> int:
    body = _attr(character, "body", 5)
    will = _attr(character, "willpower", 5)
    return 10 + 5 * math.ceil((body + will) / 2)


def _cyberpunk_max_resources(character: Character, level: int) -> dict[str, int]:
    return {"humanity": _attr(character, "empathy", 5) * 10}


def _vampire_max_hp(character: Character, level: int) -> int:
    return _attr(character, "stamina", 2) + 3


def _vampire_max_resources(character: Character, level: int) -> dict[str, int]:
    willpower = _attr(character, "composure", 2) + _attr(character, "resolve", 2)
    return {"willpower": willpower, "hunger": 5}


def _generic_max_hp(character: Character, level: int) -> int:
    return 10 + (level - 1) * 5


# =============================================================================
# Attribute Tables
# =============================================================================


def _attributes(
    rows: list[tuple[str, str, str]],
    default: int,
    low: int,
    high: int,
) -> tuple[AttributeDefinition, ...]:
    return tuple(
        AttributeDefinition(
            name=name,
            display_name=display,
            description=description,
            default_value=default,
            min_value=low,
            max_value=high,
        )
        for name, display, description in rows
    )


_DND_ATTRIBUTES = _attributes(
    [
        ("strength", "STR", "Physical power and athletic ability"),
        ("dexterity", "DEX", "Agility, reflexes, and balance"),
        ("constitution", "CON", "Health, stamina, and vital force"),
        ("intelligence", "INT", "Reasoning, memory, and analytical skill"),
        ("wisdom", "WIS", "Awareness, intuition, and insight"),
        ("charisma", "CHA", "Force of personality and leadership"),
    ],
    default=10,
    low=3,
    high=20,
)

_PATHFINDER_ATTRIBUTES = _attributes(
    [
        ("strength", "STR", "Physical power"),
        ("dexterity", "DEX", "Agility and reflexes"),
        ("constitution", "CON", "Endurance"),
        ("intelligence", "INT", "Reasoning and memory"),
        ("wisdom", "WIS", "Awareness and insight"),
        ("charisma", "CHA", "Force of personality"),
    ],
    default=10,
    low=3,
    high=20,
)

_CTHULHU_ATTRIBUTES = _attributes(
    [
        ("STR", "STR", "Strength - Physical power"),
        ("CON", "CON", "Constitution - Health and resilience"),
        ("SIZ", "SIZ", "Size - Height and build"),
        ("DEX", "DEX", "Dexterity - Agility and fine motor control"),
        ("APP", "APP", "Appearance - Physical attractiveness"),
        ("INT", "INT", "Intelligence - Learning and memory"),
        ("POW", "POW", "Power - Willpower and sanity"),
        ("EDU", "EDU", "Education - Knowledge and training"),
    ],
    default=50,
    low=15,
    high=99,
)

_CYBERPUNK_ATTRIBUTES = _attributes(
    [
        ("intelligence", "INT", "Intelligence - Problem solving"),
        ("reflexes", "REF", "Reflexes - Speed and reaction time"),
        ("dexterity", "DEX", "Dexterity - Manual dexterity"),
        ("technique", "TECH", "Technique - Technical ability"),
        ("cool", "COOL", "Cool - Ability to stay calm"),
        ("willpower", "WILL", "Willpower - Determination"),
        ("luck", "LUCK", "Luck - Good fortune"),
        ("move", "MOVE", "Move - Movement speed"),
        ("body", "BODY", "Body - Physical strength and health"),
        ("empathy", "EMP", "Empathy - Human connection"),
    ],
    default=5,
    low=2,
    high=10,
)

_VAMPIRE_ATTRIBUTES = _attributes(
    [
        ("strength", "Strength", "Physical - Raw physical power"),
        ("dexterity", "Dexterity", "Physical - Agility and grace"),
        ("stamina", "Stamina", "Physical - Endurance and resilience"),
        ("charisma", "Charisma", "Social - Natural charm"),
        ("manipulation", "Manipulation", "Social - Ability to influence others"),
        ("composure", "Composure", "Social - Self-control and poise"),
        ("intelligence", "Intelligence", "Mental - Reasoning and analysis"),
        ("wits", "Wits", "Mental - Quick thinking"),
        ("resolve", "Resolve", "Mental - Determination and focus"),
    ],
    default=2,
    low=1,
    high=5,
)

_GENERIC_ATTRIBUTES = _attributes(
    [
        ("strength", "Strength", "Physical power and athleticism"),
        ("agility", "Agility", "Speed, coordination, and reflexes"),
        ("mind", "Mind", "Intelligence, memory, and willpower"),
        ("presence", "Presence", "Charisma, leadership, and influence"),
    ],
    default=10,
    low=1,
    high=20,
)


# =============================================================================
# Registry
# =============================================================================

SYSTEM_TEMPLATES: Mapping[RPGSystem, SystemTemplate] = {
    RPGSystem.DND_5E: SystemTemplate(
        system=RPGSystem.DND_5E,
        system_name="D&D 5e",
        attributes=_DND_ATTRIBUTES,
        modifier_calculation=ability_modifier,
        level_up_points=1,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_dnd_max_hp,
    ),
    RPGSystem.PATHFINDER_2E: SystemTemplate(
        system=RPGSystem.PATHFINDER_2E,
        system_name="Pathfinder 2e",
        attributes=_PATHFINDER_ATTRIBUTES,
        modifier_calculation=ability_modifier,
        level_up_points=1,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_pathfinder_max_hp,
    ),
    RPGSystem.CALL_OF_CTHULHU: SystemTemplate(
        system=RPGSystem.CALL_OF_CTHULHU,
        system_name="Call of Cthulhu",
        attributes=_CTHULHU_ATTRIBUTES,
        modifier_calculation=None,  # percentile system
        level_up_points=2,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_cthulhu_max_hp,
        resources=(
            ResourceDefinition(
                name="sanity",
                display_name="SAN",
                description="Sanity - Mental stability against the unknown",
                color="#7c3aed",
            ),
            ResourceDefinition(
                name="magicPoints",
                display_name="MP",
                description="Magic Points - Fuel for spells and rituals",
                color="#2563eb",
            ),
        ),
        calculate_max_resources=_cthulhu_max_resources,
    ),
    RPGSystem.CYBERPUNK_RED: SystemTemplate(
        system=RPGSystem.CYBERPUNK_RED,
        system_name="Cyberpunk RED",
        attributes=_CYBERPUNK_ATTRIBUTES,
        modifier_calculation=cyberpunk_modifier,
        level_up_points=1,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_cyberpunk_max_hp,
        resources=(
            ResourceDefinition(
                name="humanity",
                display_name="HUM",
                description="Humanity - Eroded by cyberware and violence",
                color="#dc2626",
            ),
        ),
        calculate_max_resources=_cyberpunk_max_resources,
    ),
    RPGSystem.VAMPIRE: SystemTemplate(
        system=RPGSystem.VAMPIRE,
        system_name="Vampire: The Masquerade",
        attributes=_VAMPIRE_ATTRIBUTES,
        modifier_calculation=None,  # dot pool system
        level_up_points=1,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_vampire_max_hp,
        resources=(
            ResourceDefinition(
                name="willpower",
                display_name="Willpower",
                description="Willpower - Resistance to the Beast and to coercion",
                color="#0891b2",
            ),
            ResourceDefinition(
                name="hunger",
                display_name="Hunger",
                description="Hunger - The Beast's craving for blood",
                color="#991b1b",
            ),
        ),
        calculate_max_resources=_vampire_max_resources,
    ),
    RPGSystem.GENERIC: SystemTemplate(
        system=RPGSystem.GENERIC,
        system_name="Generic",
        attributes=_GENERIC_ATTRIBUTES,
        modifier_calculation=ability_modifier,
        level_up_points=2,
        experience_table=EXPERIENCE_TABLE,
        calculate_max_hp=_generic_max_hp,
    ),
}


def get_template(system: str | RPGSystem | None) -> SystemTemplate:
    """Look up a system template, falling back to Generic.

    Args:
        system: RPGSystem member or a system display name.

    Returns:
        The matching template, or the Generic template for unknown names.
    """
    key = RPGSystem.from_name(system)
    if key is RPGSystem.GENERIC and system not in (None, RPGSystem.GENERIC, "Generic"):
        logger.debug("Unknown RPG system, using Generic template", system=system)
    return SYSTEM_TEMPLATES[key]


def list_templates() -> list[SystemTemplate]:
    return list(SYSTEM_TEMPLATES.values())


# =============================================================================
# Lookups & Validation
# =============================================================================


def is_valid_attribute_value(value: int, definition: AttributeDefinition) -> bool:
    """Check ``value`` against the attribute's inclusive range."""
    return definition.min_value <= value <= definition.max_value


def get_attribute_modifier(value: int, template: SystemTemplate) -> int | None:
    """Return the roll modifier for an attribute value, or None if the system has none."""
    if template.modifier_calculation is None:
        return None
    return template.modifier_calculation(value)


def find_attribute(template: SystemTemplate, name: str) -> AttributeDefinition | None:
    """Find an attribute by internal name or display name, case-insensitively."""
    wanted = name.strip().lower()
    for attr in template.attributes:
        if attr.name.lower() == wanted or attr.display_name.lower() == wanted:
            return attr
    return None


def find_resource(template: SystemTemplate, name: str) -> ResourceDefinition | None:
    """Find a resource by internal name or display name, case-insensitively."""
    wanted = name.strip().lower()
    for resource in template.resources:
        if resource.name.lower() == wanted or resource.display_name.lower() == wanted:
            return resource
    return None


# =============================================================================
# Character Construction
# =============================================================================


def create_initial_character(
    campaign_id: str,
    system: str | RPGSystem | None,
    name: str | None = None,
) -> Character:
    """Create a level 1 character with the system's default attributes.

    Hit points and resources start at their maximum.

    Args:
        campaign_id: Owning campaign.
        system: RPG system of the campaign.
        name: Character name; blank names become ``"Adventurer"``.

    Returns:
        A new Character.
    """
    template = get_template(system)
    attributes = {attr.name: attr.default_value for attr in template.attributes}
    character = Character(
        campaign_id=campaign_id,
        name=(name or "").strip() or "Adventurer",
        attributes=attributes,
    )
    max_hp = max(1, template.calculate_max_hp(character, 1))
    max_resources = (
        template.calculate_max_resources(character, 1)
        if template.calculate_max_resources is not None
        else None
    )
    logger.info(
        "Character created",
        campaign_id=campaign_id,
        system=template.system_name,
        max_hit_points=max_hp,
    )
    return character.model_copy(
        update={
            "hit_points": max_hp,
            "max_hit_points": max_hp,
            "resources": dict(max_resources) if max_resources is not None else None,
            "max_resources": max_resources,
        }
    )


def refresh_derived_stats(character: Character, template: SystemTemplate) -> Character:
    """Recompute max hit points and resources after a level or attribute change.

    Current values move by the same delta as their maxima, then are
    clamped to ``[0, max]``.
    """
    new_max_hp = max(1, template.calculate_max_hp(character, character.level))
    hp_delta = new_max_hp - character.max_hit_points
    hit_points = min(new_max_hp, max(0, character.hit_points + hp_delta))

    max_resources = character.max_resources
    resources = character.resources
    if template.calculate_max_resources is not None:
        max_resources = template.calculate_max_resources(character, character.level)
        previous_max = character.max_resources or {}
        current = character.resources or {}
        resources = {}
        for name, new_max in max_resources.items():
            delta = new_max - previous_max.get(name, new_max)
            value = current.get(name, new_max) + delta
            resources[name] = min(new_max, max(0, value))

    return character.touched(
        max_hit_points=new_max_hp,
        hit_points=hit_points,
        max_resources=max_resources,
        resources=resources,
    )


__all__ = [
    "RPGSystem",
    "AttributeDefinition",
    "ResourceDefinition",
    "SystemTemplate",
    "EXPERIENCE_TABLE",
    "SYSTEM_TEMPLATES",
    "ability_modifier",
    "cyberpunk_modifier",
    "get_template",
    "list_templates",
    "is_valid_attribute_value",
    "get_attribute_modifier",
    "find_attribute",
    "find_resource",
    "create_initial_character",
    "refresh_derived_stats",
]
