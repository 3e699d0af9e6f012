"""Tests for the RPG system template registry."""

from __future__ import annotations

import pydantic
import pytest

from solo_rpg.models.templates import (
    EXPERIENCE_TABLE,
    RPGSystem,
    SystemTemplate,
    ability_modifier,
    create_initial_character,
    cyberpunk_modifier,
    find_attribute,
    find_resource,
    get_attribute_modifier,
    get_template,
    is_valid_attribute_value,
    list_templates,
    refresh_derived_stats,
)


class TestRegistry:
    """Tests for template lookup."""

    @pytest.mark.parametrize("system", list(RPGSystem))
    def test_every_system_registered(self, system: RPGSystem) -> None:
        """Test each enum member has a template keyed by itself."""
        template = get_template(system)

        assert template.system is system
        assert template.system_name == system.value

    def test_lookup_by_display_name(self) -> None:
        """Test campaigns can name their system by display text."""
        assert get_template("Call of Cthulhu").system is RPGSystem.CALL_OF_CTHULHU

    @pytest.mark.parametrize("name", ["Mörk Borg", "", None])
    def test_unknown_system_falls_back_to_generic(self, name: str | None) -> None:
        """Test unknown names use the Generic rules."""
        assert get_template(name).system is RPGSystem.GENERIC

    def test_list_templates(self) -> None:
        """Test the registry lists all six systems."""
        assert len(list_templates()) == 6

    def test_experience_table_shared(self) -> None:
        """Test every system uses the ten-level XP table."""
        for template in list_templates():
            assert template.experience_table == EXPERIENCE_TABLE
            assert template.max_level == 10

    def test_experience_table_must_start_at_zero(self) -> None:
        """Test malformed experience tables are rejected."""
        base = get_template(RPGSystem.GENERIC)

        with pytest.raises(pydantic.ValidationError):
            SystemTemplate(
                system=RPGSystem.GENERIC,
                system_name="Broken",
                attributes=base.attributes,
                level_up_points=1,
                experience_table=(100, 200),
                calculate_max_hp=base.calculate_max_hp,
            )


class TestModifiers:
    """Tests for attribute modifier formulas."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, -5), (7, -2), (9, -1), (10, 0), (11, 0), (16, 3), (20, 5)],
    )
    def test_ability_modifier(self, value: int, expected: int) -> None:
        """Test floor((value - 10) / 2) including odd negatives."""
        assert ability_modifier(value) == expected

    def test_cyberpunk_modifier(self) -> None:
        """Test Cyberpunk stats contribute value - 5."""
        assert cyberpunk_modifier(8) == 3
        assert cyberpunk_modifier(2) == -3

    def test_percentile_system_has_no_modifier(self) -> None:
        """Test Call of Cthulhu and Vampire return None."""
        assert get_attribute_modifier(70, get_template(RPGSystem.CALL_OF_CTHULHU)) is None
        assert get_attribute_modifier(3, get_template(RPGSystem.VAMPIRE)) is None
        assert get_attribute_modifier(14, get_template(RPGSystem.DND_5E)) == 2


class TestLookups:
    """Tests for attribute and resource lookups."""

    def test_find_attribute_by_either_name(self) -> None:
        """Test lookups match name or display name, ignoring case."""
        template = get_template(RPGSystem.DND_5E)

        assert find_attribute(template, "str").name == "strength"
        assert find_attribute(template, " Wisdom ").name == "wisdom"
        assert find_attribute(template, "luck") is None

    def test_find_resource(self) -> None:
        """Test resources resolve by display name."""
        template = get_template(RPGSystem.CALL_OF_CTHULHU)

        assert find_resource(template, "san").name == "sanity"
        assert find_resource(get_template(RPGSystem.DND_5E), "sanity") is None

    def test_attribute_range(self) -> None:
        """Test attribute bounds are inclusive."""
        strength = find_attribute(get_template(RPGSystem.DND_5E), "STR")

        assert is_valid_attribute_value(3, strength)
        assert is_valid_attribute_value(20, strength)
        assert not is_valid_attribute_value(21, strength)


class TestCreateInitialCharacter:
    """Tests for level 1 character construction."""

    def test_dnd_defaults(self) -> None:
        """Test D&D characters start with 10 in everything and 10 HP."""
        character = create_initial_character("c1", RPGSystem.DND_5E, name="  Mira ")

        assert character.name == "Mira"
        assert set(character.attributes.values()) == {10}
        assert character.hit_points == character.max_hit_points == 10
        assert character.resources is None

    def test_blank_name_defaults(self) -> None:
        """Test a blank name becomes Adventurer."""
        assert create_initial_character("c1", "Generic", name="   ").name == "Adventurer"

    @pytest.mark.parametrize(
        ("system", "max_hp", "resources"),
        [
            (RPGSystem.PATHFINDER_2E, 8, None),
            (RPGSystem.CALL_OF_CTHULHU, 10, {"sanity": 50, "magicPoints": 10}),
            (RPGSystem.CYBERPUNK_RED, 35, {"humanity": 50}),
            (RPGSystem.VAMPIRE, 5, {"willpower": 4, "hunger": 5}),
            (RPGSystem.GENERIC, 10, None),
        ],
    )
    def test_system_formulas(self, system: RPGSystem, max_hp: int, resources: dict[str, int] | None) -> None:
        """Test hit point and resource formulas at default attributes."""
        character = create_initial_character("c1", system)

        assert character.max_hit_points == max_hp
        assert character.hit_points == max_hp
        assert character.resources == resources
        assert character.max_resources == resources


class TestRefreshDerivedStats:
    """Tests for recomputing maxima."""

    def test_level_gain_raises_current_by_delta(self) -> None:
        """Test current HP moves with the max when leveling."""
        character = create_initial_character("c1", RPGSystem.DND_5E)
        character = character.model_copy(update={
            "level": 3,
            "hit_points": 7,
            "attributes": {**character.attributes, "constitution": 14},
        })

        refreshed = refresh_derived_stats(character, get_template(RPGSystem.DND_5E))

        assert refreshed.max_hit_points == 28
        assert refreshed.hit_points == 25

    def test_resources_follow_their_maximum(self) -> None:
        """Test a lower POW shrinks sanity by the same amount."""
        template = get_template(RPGSystem.CALL_OF_CTHULHU)
        character = create_initial_character("c1", template.system)
        character = character.model_copy(update={
            "resources": {"sanity": 42, "magicPoints": 3},
            "attributes": {**character.attributes, "POW": 40},
        })

        refreshed = refresh_derived_stats(character, template)

        assert refreshed.max_resources == {"sanity": 40, "magicPoints": 8}
        assert refreshed.resources == {"sanity": 32, "magicPoints": 1}
