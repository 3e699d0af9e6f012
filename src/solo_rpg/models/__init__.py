"""Pydantic models and pure rule functions for characters and campaigns.

Submodules:
    character: Character and InventoryItem records
    campaign: Campaign, messages, rolls and story memory
    templates: Per-system rule tables (attributes, HP and resource formulas)
    progression: XP, levels and attribute-point allocation
    inventory: Item catalog, item effects and equipment bonuses
    effects: Character effects returned with narration (damage, healing, resources)

Rule functions never mutate their input; they return an updated Character.
"""

from __future__ import annotations

# =============================================================================
# Records
# =============================================================================
from solo_rpg.models.campaign import (
    Campaign,
    Entity,
    Fact,
    Message,
    MessageRole,
    Recap,
    Roll,
)
from solo_rpg.models.character import (
    Character,
    EquipmentSlot,
    InventoryItem,
    ItemType,
)

# =============================================================================
# Rules
# =============================================================================
from solo_rpg.models.effects import (
    CharacterEffect,
    DamageEffect,
    DamageOutcome,
    DamageRollEffect,
    HealEffect,
    RestoreResourceEffect,
    SpendResourceEffect,
    heal,
    restore_resource,
    spend_resource,
    take_damage,
)
from solo_rpg.models.inventory import (
    ItemDefinition,
    ItemDrop,
    ItemEffect,
    apply_item_drops,
    create_inventory_item,
    equip_item,
    get_armor_damage_reduction,
    get_equipment_roll_bonus,
    get_weapon_damage_bonus,
    parse_all_effects,
    use_consumable,
)
from solo_rpg.models.progression import (
    ExperienceUpdate,
    allocate_attribute_point,
    confirm_level_up,
    update_experience,
)
from solo_rpg.models.templates import (
    AttributeDefinition,
    ResourceDefinition,
    RPGSystem,
    SystemTemplate,
    create_initial_character,
    get_template,
    list_templates,
)

__all__ = [
    # Records
    "Campaign",
    "Entity",
    "Fact",
    "Message",
    "MessageRole",
    "Recap",
    "Roll",
    "Character",
    "EquipmentSlot",
    "InventoryItem",
    "ItemType",
    # Effects
    "CharacterEffect",
    "DamageEffect",
    "DamageRollEffect",
    "HealEffect",
    "SpendResourceEffect",
    "RestoreResourceEffect",
    "DamageOutcome",
    "take_damage",
    "heal",
    "spend_resource",
    "restore_resource",
    # Inventory
    "ItemDefinition",
    "ItemDrop",
    "ItemEffect",
    "apply_item_drops",
    "create_inventory_item",
    "equip_item",
    "use_consumable",
    "parse_all_effects",
    "get_armor_damage_reduction",
    "get_weapon_damage_bonus",
    "get_equipment_roll_bonus",
    # Progression
    "ExperienceUpdate",
    "update_experience",
    "allocate_attribute_point",
    "confirm_level_up",
    # Templates
    "RPGSystem",
    "AttributeDefinition",
    "ResourceDefinition",
    "SystemTemplate",
    "get_template",
    "list_templates",
    "create_initial_character",
]
