"""Tests for the item catalog, item effects and equipment lookups."""

from __future__ import annotations

from typing import Any

import pytest

from solo_rpg.core.exceptions import ValidationError
from solo_rpg.models.character import EquipmentSlot, InventoryItem, ItemType
from solo_rpg.models.inventory import (
    DROPPABLE_ITEMS,
    STARTING_ITEMS,
    DamageBonusEffect,
    HealItemEffect,
    ItemDrop,
    ModifierEffect,
    RollBonusEffect,
    UnrecognizedItemEffect,
    add_item_to_inventory,
    apply_item_drops,
    create_inventory_item,
    equip_item,
    format_equipment_effects,
    get_armor_damage_reduction,
    get_equipment_roll_bonus,
    get_weapon_damage_bonus,
    parse_all_effects,
    parse_item_effect,
    unequip,
    use_consumable,
)


class TestCatalog:
    """Tests for catalog lookups."""

    def test_droppable_includes_starting_items(self) -> None:
        """Test every starting item can also drop."""
        droppable = {item.id for item in DROPPABLE_ITEMS}

        assert {item.id for item in STARTING_ITEMS} <= droppable
        assert "magic_sword" in droppable

    def test_create_uses_default_quantity(self) -> None:
        """Test non-positive quantities fall back to the catalog default."""
        item = create_inventory_item("torch", 0)

        assert item is not None
        assert item.quantity == 3
        assert item.type is ItemType.CONSUMABLE

    def test_create_explicit_quantity(self) -> None:
        """Test an explicit quantity wins."""
        assert create_inventory_item("healing_potion", 5).quantity == 5

    def test_create_unknown(self) -> None:
        """Test unknown ids return None."""
        assert create_inventory_item("vorpal_spoon") is None


class TestItemEffects:
    """Tests for effect token parsing."""

    def test_single_value_tokens(self) -> None:
        """Test type:value tokens decode to their effect type."""
        assert parse_item_effect("heal:10") == HealItemEffect(value=10)
        assert parse_item_effect(" roll_bonus:-1 ") == RollBonusEffect(value=-1)

    def test_modifier_token(self) -> None:
        """Test modifier:attr:value tokens."""
        assert parse_item_effect("modifier:strength:2") == ModifierEffect(attr="strength", value=2)

    @pytest.mark.parametrize("token", ["heal", "heal:lots", "modifier:2", "teleport:3", "heal:1:2"])
    def test_bad_tokens_unrecognized(self, token: str) -> None:
        """Test malformed tokens never raise."""
        assert isinstance(parse_item_effect(token), UnrecognizedItemEffect)

    def test_parse_all_drops_unrecognized(self) -> None:
        """Test good tokens survive alongside bad ones."""
        effects = parse_all_effects("roll_bonus:2,garbage,damage_bonus:3")

        assert effects == [RollBonusEffect(value=2), DamageBonusEffect(value=3)]
        assert parse_all_effects(None) == []
        assert parse_all_effects("") == []

    def test_format_labels(self) -> None:
        """Test human-readable labels skip zero values."""
        assert format_equipment_effects("roll_bonus:2,damage_bonus:3") == ["+2 to rolls", "+3 damage"]
        assert format_equipment_effects("damage_reduction:4,roll_bonus:0") == ["-4 damage taken"]
        assert format_equipment_effects("modifier:strength:1") == ["+1 Strength"]


class TestEquipmentLookups:
    """Tests for bonuses derived from carried and equipped items."""

    def test_roll_bonus_sums_equipment(self) -> None:
        """Test roll bonuses add across equipment and ignore consumables."""
        inventory = [
            create_inventory_item("lucky_charm"),
            create_inventory_item("thieves_tools"),
            InventoryItem(item_id="odd_potion", name="Odd Potion", type=ItemType.CONSUMABLE, effect="roll_bonus:4"),
        ]

        assert get_equipment_roll_bonus(inventory) == 3

    def test_roll_bonus_capped(self) -> None:
        """Test the total is capped at the configured ceiling."""
        inventory = [create_inventory_item("magic_sword") for _ in range(4)]

        assert get_equipment_roll_bonus(inventory) == 5
        assert get_equipment_roll_bonus(inventory, cap=3) == 3
        assert get_equipment_roll_bonus([]) == 0

    def test_cap_from_settings(self, mock_env_vars: dict[str, str]) -> None:
        """Test the cap is read from settings when not overridden."""
        inventory = [create_inventory_item("magic_sword") for _ in range(4)]

        assert get_equipment_roll_bonus(inventory) == 3

    def test_equipped_armor_and_weapon(self) -> None:
        """Test only the equipped items count for reduction and damage."""
        inventory = [create_inventory_item("chainmail"), create_inventory_item("shortsword")]

        assert get_armor_damage_reduction("chainmail", inventory) == 4
        assert get_armor_damage_reduction(None, inventory) == 0
        assert get_armor_damage_reduction("plate_armor", inventory) == 0
        assert get_weapon_damage_bonus("shortsword", inventory) == 2


class TestInventoryMutation:
    """Tests for adding, equipping and using items."""

    def test_consumables_stack(self) -> None:
        """Test a consumable merges into an existing stack."""
        inventory = add_item_to_inventory([], create_inventory_item("healing_potion", 1))
        inventory = add_item_to_inventory(inventory, create_inventory_item("healing_potion", 2))

        assert len(inventory) == 1
        assert inventory[0].quantity == 3

    def test_equipment_does_not_stack(self) -> None:
        """Test equipment instances stay separate entries."""
        inventory = add_item_to_inventory([], create_inventory_item("dagger"))
        inventory = add_item_to_inventory(inventory, create_inventory_item("dagger"))

        assert len(inventory) == 2

    def test_add_does_not_mutate_input(self) -> None:
        """Test the source inventory is left untouched."""
        original = [create_inventory_item("torch", 1)]

        add_item_to_inventory(original, create_inventory_item("torch", 1))

        assert original[0].quantity == 1

    def test_apply_drops_skips_unknown(self, dnd_character: Any) -> None:
        """Test unknown item ids are ignored."""
        character, added = apply_item_drops(
            dnd_character,
            [ItemDrop(item_id="gold_coins", quantity=0), ItemDrop(item_id="vorpal_spoon")],
        )

        assert [item.item_id for item in added] == ["gold_coins"]
        assert character.inventory[0].quantity == 10
        assert dnd_character.inventory == []

    def test_apply_no_valid_drops_returns_same(self, dnd_character: Any) -> None:
        """Test nothing changes when every drop is unknown."""
        character, added = apply_item_drops(dnd_character, [ItemDrop(item_id="vorpal_spoon")])

        assert added == []
        assert character is dnd_character

    def test_equip_and_unequip(self, dnd_character: Any) -> None:
        """Test equipping fills the catalog slot."""
        carrying = dnd_character.model_copy(update={"inventory": [create_inventory_item("leather_armor")]})

        equipped = equip_item(carrying, "leather_armor")
        assert equipped.equipped_armor == "leather_armor"
        assert unequip(equipped, EquipmentSlot.ARMOR).equipped_armor is None

    def test_equip_requires_slot(self, dnd_character: Any) -> None:
        """Test slotless or uncarried items cannot be equipped."""
        carrying = dnd_character.model_copy(update={"inventory": [create_inventory_item("rope")]})

        with pytest.raises(ValidationError):
            equip_item(carrying, "rope")
        with pytest.raises(ValidationError):
            equip_item(carrying, "chainmail")

    def test_use_healing_consumable(self, dnd_character: Any) -> None:
        """Test a potion heals, clamps at max and leaves the stack smaller."""
        potion = create_inventory_item("healing_potion", 2)
        hurt = dnd_character.model_copy(update={"hit_points": 4, "inventory": [potion]})

        healed = use_consumable(hurt, potion.id)

        assert healed.hit_points == 10
        assert healed.inventory[0].quantity == 1

    def test_last_unit_removed(self, dnd_character: Any) -> None:
        """Test an emptied stack leaves the inventory."""
        torch = create_inventory_item("torch", 1)
        carrying = dnd_character.model_copy(update={"inventory": [torch]})

        assert use_consumable(carrying, torch.id).inventory == []

    def test_use_unknown_entry(self, dnd_character: Any) -> None:
        """Test using something not carried raises."""
        with pytest.raises(ValidationError):
            use_consumable(dnd_character, "missing")
