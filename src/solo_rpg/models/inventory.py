"""Inventory catalog, item-effect parsing and equipment lookups.

Item effects are stored as comma-separated ``type:value[:value2]`` tokens,
e.g. ``"roll_bonus:2,damage_bonus:3"``. Parsing is best-effort: a token
that does not decode becomes an UnrecognizedItemEffect and is ignored by
every consumer instead of failing the whole string.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from solo_rpg.core.config import get_settings
from solo_rpg.core.exceptions import ValidationError
from solo_rpg.core.logging import get_logger
from solo_rpg.models.character import Character, EquipmentSlot, InventoryItem, ItemType


logger = get_logger(__name__)


# =============================================================================
# Item Definitions
# =============================================================================


class ItemDefinition(BaseModel):
    """Static catalog entry an InventoryItem is instantiated from."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ItemType
    effect: str | None = None
    description: str = ""
    default_quantity: int = Field(default=1, ge=1)
    equipment_slot: EquipmentSlot | None = None


def _item(
    item_id: str,
    name: str,
    item_type: ItemType,
    description: str,
    *,
    effect: str | None = None,
    quantity: int = 1,
    slot: EquipmentSlot | None = None,
) -> ItemDefinition:
    return ItemDefinition(
        id=item_id,
        name=name,
        type=item_type,
        effect=effect,
        description=description,
        default_quantity=quantity,
        equipment_slot=slot,
    )


STARTING_ITEMS: tuple[ItemDefinition, ...] = (
    _item("healing_potion", "Healing Potion", ItemType.CONSUMABLE,
          "Restores 10 HP when used", effect="heal:10", quantity=2),
    _item("lesser_healing_potion", "Lesser Healing Potion", ItemType.CONSUMABLE,
          "Restores 5 HP when used", effect="heal:5", quantity=3),
    _item("rope", "Rope (50ft)", ItemType.EQUIPMENT,
          "+1 to agility rolls when climbing or tying", effect="roll_bonus:1"),
    _item("lucky_charm", "Lucky Charm", ItemType.EQUIPMENT,
          "+1 to any roll (narrative luck)", effect="roll_bonus:1"),
    _item("iron_rations", "Iron Rations", ItemType.CONSUMABLE,
          "One day of food. No mechanical effect.", quantity=5),
    _item("torch", "Torch", ItemType.CONSUMABLE,
          "Light source. No mechanical effect.", quantity=3),
    _item("thieves_tools", "Thieves' Tools", ItemType.EQUIPMENT,
          "+2 to agility rolls when picking locks or disarming traps", effect="roll_bonus:2"),
    _item("shield", "Shield", ItemType.EQUIPMENT,
          "+1 to agility rolls when defending", effect="roll_bonus:1"),
    # Weapons
    _item("shortsword", "Shortsword", ItemType.EQUIPMENT,
          "+2 to damage rolls in combat", effect="damage_bonus:2", slot=EquipmentSlot.WEAPON),
    _item("dagger", "Dagger", ItemType.EQUIPMENT,
          "+1 to damage rolls", effect="damage_bonus:1", slot=EquipmentSlot.WEAPON),
    _item("staff", "Staff", ItemType.EQUIPMENT,
          "+1 to damage rolls", effect="damage_bonus:1", slot=EquipmentSlot.WEAPON),
    # Armor
    _item("leather_armor", "Leather Armor", ItemType.EQUIPMENT,
          "Reduces incoming damage by 2", effect="damage_reduction:2", slot=EquipmentSlot.ARMOR),
    _item("chainmail", "Chainmail", ItemType.EQUIPMENT,
          "Reduces incoming damage by 4", effect="damage_reduction:4", slot=EquipmentSlot.ARMOR),
)

DROPPABLE_ITEMS: tuple[ItemDefinition, ...] = (
    *STARTING_ITEMS,
    _item("greater_healing_potion", "Greater Healing Potion", ItemType.CONSUMABLE,
          "Restores 20 HP when used", effect="heal:20"),
    _item("magic_sword", "Magic Sword", ItemType.EQUIPMENT,
          "+2 to attack rolls, +3 to damage", effect="roll_bonus:2,damage_bonus:3",
          slot=EquipmentSlot.WEAPON),
    _item("plate_armor", "Plate Armor", ItemType.EQUIPMENT,
          "Heavy armor, reduces damage by 6", effect="damage_reduction:6",
          slot=EquipmentSlot.ARMOR),
    _item("amulet_protection", "Amulet of Protection", ItemType.EQUIPMENT,
          "+1 to any defensive roll", effect="roll_bonus:1"),
    _item("gold_coins", "Gold Coins", ItemType.OTHER,
          "Currency. Narrative use only.", quantity=10),
)

_CATALOG: dict[str, ItemDefinition] = {item.id: item for item in DROPPABLE_ITEMS}


class ItemDrop(BaseModel):
    """An item the narrative awards to the character."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: int = Field(default=1, ge=0, description="0 uses the catalog default")


def get_item_definition(item_id: str) -> ItemDefinition | None:
    return _CATALOG.get(item_id)


def create_inventory_item(item_id: str, quantity: int = 1) -> InventoryItem | None:
    """Instantiate a catalog item.

    Args:
        item_id: Catalog id.
        quantity: Requested quantity; values <= 0 use the catalog default.

    Returns:
        A new InventoryItem, or None when ``item_id`` is not in the catalog.
    """
    definition = get_item_definition(item_id)
    if definition is None:
        return None
    return InventoryItem(
        item_id=definition.id,
        name=definition.name,
        type=definition.type,
        quantity=quantity if quantity > 0 else definition.default_quantity,
        effect=definition.effect,
        description=definition.description,
    )


# =============================================================================
# Item Effects
# =============================================================================


class HealItemEffect(BaseModel):
    kind: Literal["heal"] = "heal"
    value: int


class RollBonusEffect(BaseModel):
    kind: Literal["roll_bonus"] = "roll_bonus"
    value: int


class ModifierEffect(BaseModel):
    kind: Literal["modifier"] = "modifier"
    attr: str
    value: int


class DamageBonusEffect(BaseModel):
    kind: Literal["damage_bonus"] = "damage_bonus"
    value: int


class DamageReductionEffect(BaseModel):
    kind: Literal["damage_reduction"] = "damage_reduction"
    value: int


class UnrecognizedItemEffect(BaseModel):
    """A token that did not decode; kept for diagnostics only."""

    kind: Literal["unrecognized"] = "unrecognized"
    token: str


ItemEffect = Annotated[
    Union[
        HealItemEffect,
        RollBonusEffect,
        ModifierEffect,
        DamageBonusEffect,
        DamageReductionEffect,
        UnrecognizedItemEffect,
    ],
    Field(discriminator="kind"),
]

_SINGLE_VALUE_EFFECTS: dict[str, type[BaseModel]] = {
    "heal": HealItemEffect,
    "roll_bonus": RollBonusEffect,
    "damage_bonus": DamageBonusEffect,
    "damage_reduction": DamageReductionEffect,
}


def _to_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_item_effect(token: str) -> ItemEffect:
    """Decode one ``type:value`` or ``modifier:attr:value`` token. Never raises."""
    token = token.strip()
    kind, _, rest = token.partition(":")
    parts = rest.split(":") if rest else []

    if kind in _SINGLE_VALUE_EFFECTS and len(parts) == 1:
        value = _to_int(parts[0])
        if value is not None:
            return _SINGLE_VALUE_EFFECTS[kind](value=value)
    elif kind == "modifier" and len(parts) == 2 and parts[0].strip():
        value = _to_int(parts[1])
        if value is not None:
            return ModifierEffect(attr=parts[0].strip(), value=value)

    return UnrecognizedItemEffect(token=token)


def parse_all_effects(effect: str | None) -> list[ItemEffect]:
    """Decode every comma-separated token, dropping unrecognized ones."""
    if not effect:
        return []
    parsed = [parse_item_effect(token) for token in effect.split(",") if token.strip()]
    for item in parsed:
        if isinstance(item, UnrecognizedItemEffect):
            logger.debug("Ignoring unrecognized item effect", token=item.token)
    return [item for item in parsed if not isinstance(item, UnrecognizedItemEffect)]


def format_equipment_effects(effect: str | None) -> list[str]:
    """Human-readable effect labels, e.g. ``["+2 damage", "-2 damage taken"]``."""
    labels: list[str] = []
    for parsed in parse_all_effects(effect):
        if not parsed.value:
            continue
        if isinstance(parsed, DamageBonusEffect):
            labels.append(f"+{parsed.value} damage")
        elif isinstance(parsed, DamageReductionEffect):
            labels.append(f"-{parsed.value} damage taken")
        elif isinstance(parsed, RollBonusEffect):
            labels.append(f"+{parsed.value} to rolls")
        elif isinstance(parsed, ModifierEffect):
            labels.append(f"+{parsed.value} {parsed.attr[:1].upper()}{parsed.attr[1:]}")
    return labels


# =============================================================================
# Equipment Lookups
# =============================================================================


def _first_value(item: InventoryItem | None, effect_type: type[BaseModel]) -> int:
    if item is None:
        return 0
    for parsed in parse_all_effects(item.effect):
        if isinstance(parsed, effect_type) and parsed.value:
            return parsed.value
    return 0


def _find_equipped(equipped_id: str | None, inventory: Sequence[InventoryItem] | None) -> InventoryItem | None:
    if not equipped_id or not inventory:
        return None
    return next((item for item in inventory if item.item_id == equipped_id), None)


def get_armor_damage_reduction(
    equipped_armor_id: str | None,
    inventory: Sequence[InventoryItem] | None,
) -> int:
    """Damage reduction of the equipped armor, or 0."""
    return _first_value(_find_equipped(equipped_armor_id, inventory), DamageReductionEffect)


def get_weapon_damage_bonus(
    equipped_weapon_id: str | None,
    inventory: Sequence[InventoryItem] | None,
) -> int:
    """Damage bonus of the equipped weapon, or 0."""
    return _first_value(_find_equipped(equipped_weapon_id, inventory), DamageBonusEffect)


def get_equipment_roll_bonus(
    inventory: Iterable[InventoryItem] | None,
    cap: int | None = None,
) -> int:
    """Sum ``roll_bonus`` across carried equipment, capped (default +5).

    Args:
        inventory: Character inventory.
        cap: Override for the configured cap.

    Returns:
        The capped bonus.
    """
    if not inventory:
        return 0
    limit = cap if cap is not None else get_settings().game.equipment_roll_bonus_cap
    bonus = 0
    for item in inventory:
        if item.type is not ItemType.EQUIPMENT:
            continue
        for parsed in parse_all_effects(item.effect):
            if isinstance(parsed, RollBonusEffect):
                bonus += parsed.value
    return min(bonus, limit)


# =============================================================================
# Inventory Mutation
# =============================================================================


def add_item_to_inventory(
    inventory: Sequence[InventoryItem],
    item: InventoryItem,
) -> list[InventoryItem]:
    """Return a new inventory with ``item`` added.

    A consumable whose ``item_id`` matches an existing consumable entry is
    merged into it; anything else is appended.
    """
    result = [entry.model_copy() for entry in inventory]
    if item.type is ItemType.CONSUMABLE:
        for index, entry in enumerate(result):
            if entry.item_id == item.item_id and entry.type is ItemType.CONSUMABLE:
                result[index] = entry.model_copy(update={"quantity": entry.quantity + item.quantity})
                return result
    result.append(item)
    return result


def apply_item_drops(
    character: Character,
    drops: Iterable[ItemDrop],
) -> tuple[Character, list[InventoryItem]]:
    """Add item drops to the character's inventory.

    Unknown item ids are skipped silently.

    Returns:
        ``(updated character, items added)``.
    """
    inventory = list(character.inventory)
    added: list[InventoryItem] = []
    for drop in drops:
        item = create_inventory_item(drop.item_id, drop.quantity)
        if item is None:
            logger.debug("Ignoring drop of unknown item", item_id=drop.item_id)
            continue
        inventory = add_item_to_inventory(inventory, item)
        added.append(item)
    if not added:
        return character, added
    logger.info(
        "Items added to inventory",
        character_id=character.id,
        items=[f"{item.item_id}x{item.quantity}" for item in added],
    )
    return character.touched(inventory=inventory), added


def equip_item(character: Character, item_id: str) -> Character:
    """Equip a carried equipment item into its catalog slot.

    Raises:
        ValidationError: The item is not carried or has no equipment slot.
    """
    carried = next((item for item in character.inventory if item.item_id == item_id), None)
    definition = get_item_definition(item_id)
    if carried is None or definition is None or definition.equipment_slot is None:
        raise ValidationError(
            "Item cannot be equipped",
            field_name="item_id",
            invalid_value=item_id,
        )
    field = "equipped_weapon" if definition.equipment_slot is EquipmentSlot.WEAPON else "equipped_armor"
    logger.info("Item equipped", character_id=character.id, item_id=item_id, slot=definition.equipment_slot)
    return character.touched(**{field: item_id})


def unequip(character: Character, slot: EquipmentSlot) -> Character:
    field = "equipped_weapon" if slot is EquipmentSlot.WEAPON else "equipped_armor"
    return character.touched(**{field: None})


def use_consumable(character: Character, inventory_item_id: str) -> Character:
    """Consume one unit of a consumable, applying any ``heal`` effect.

    Empty stacks are removed.

    Raises:
        ValidationError: No such consumable in the inventory.
    """
    entry = next(
        (item for item in character.inventory if item.id == inventory_item_id),
        None,
    )
    if entry is None or entry.type is not ItemType.CONSUMABLE or entry.quantity < 1:
        raise ValidationError(
            "No consumable with that id",
            field_name="inventory_item_id",
            invalid_value=inventory_item_id,
        )

    healing = sum(p.value for p in parse_all_effects(entry.effect) if isinstance(p, HealItemEffect))
    inventory: list[InventoryItem] = []
    for item in character.inventory:
        if item.id != entry.id:
            inventory.append(item)
        elif item.quantity > 1:
            inventory.append(item.model_copy(update={"quantity": item.quantity - 1}))

    hit_points = character.hit_points
    if healing > 0:
        hit_points = min(character.max_hit_points, hit_points + healing)
    logger.info(
        "Consumable used",
        character_id=character.id,
        item_id=entry.item_id,
        healed=hit_points - character.hit_points,
    )
    return character.touched(inventory=inventory, hit_points=hit_points)


__all__ = [
    "ItemDefinition",
    "STARTING_ITEMS",
    "DROPPABLE_ITEMS",
    "ItemDrop",
    "get_item_definition",
    "create_inventory_item",
    "ItemEffect",
    "HealItemEffect",
    "RollBonusEffect",
    "ModifierEffect",
    "DamageBonusEffect",
    "DamageReductionEffect",
    "UnrecognizedItemEffect",
    "parse_item_effect",
    "parse_all_effects",
    "format_equipment_effects",
    "get_armor_damage_reduction",
    "get_weapon_damage_bonus",
    "get_equipment_roll_bonus",
    "add_item_to_inventory",
    "apply_item_drops",
    "equip_item",
    "unequip",
    "use_consumable",
]
