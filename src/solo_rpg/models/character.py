"""Character and inventory-entry models.

A Character is owned by exactly one campaign. Rule functions never mutate
a Character in place: they return an updated copy so a failed step in a
turn leaves the previous state intact.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _new_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ItemType(StrEnum):
    """Inventory entry categories."""

    CONSUMABLE = "consumable"
    EQUIPMENT = "equipment"
    OTHER = "other"


class EquipmentSlot(StrEnum):
    """Slots an equipment item can occupy."""

    WEAPON = "weapon"
    ARMOR = "armor"


class InventoryItem(BaseModel):
    """One entry in a character's inventory.

    Consumables stack by ``item_id``; equipment instances are separate
    entries even when they share an ``item_id``.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id)
    item_id: str = Field(description="Reference to a catalog ItemDefinition")
    name: str
    type: ItemType
    quantity: int = Field(default=1, ge=0)
    effect: str | None = Field(default=None, description="Encoded effect tokens")
    description: str = Field(default="")


class Character(BaseModel):
    """The player's character for one campaign.

    Attributes:
        attributes: Values keyed by the system template's attribute names.
        resources: Current pools (sanity, willpower, ...) when the system has any.
        misfortune: Anti-cheat stacks in [0, 5].
        pending_attribute_points: Points granted by a level-up and not yet spent.
        level_up_pending: True until the player confirms the level-up.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id)
    campaign_id: str
    name: str = Field(default="Adventurer", min_length=1)
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    attributes: dict[str, int] = Field(default_factory=dict)
    hit_points: int = Field(default=10, ge=0)
    max_hit_points: int = Field(default=10, ge=1)
    resources: dict[str, int] | None = None
    max_resources: dict[str, int] | None = None
    misfortune: int = Field(default=0, ge=0, le=5)
    inventory: list[InventoryItem] = Field(default_factory=list)
    equipped_weapon: str | None = Field(default=None, description="Equipped catalog item id")
    equipped_armor: str | None = Field(default=None, description="Equipped catalog item id")
    pending_attribute_points: int = Field(default=0, ge=0)
    level_up_pending: bool = False

    backstory: str | None = None
    personality: str | None = None
    goals: str | None = None
    fears: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @computed_field(description="Whether hit points have reached zero")
    @property
    def is_dead(self) -> bool:
        return self.hit_points <= 0

    def touched(self, **changes: object) -> Character:
        """Return a copy with ``changes`` applied and ``updated_at`` refreshed."""
        return self.model_copy(update={**changes, "updated_at": utc_now()})


__all__ = [
    "ItemType",
    "EquipmentSlot",
    "InventoryItem",
    "Character",
    "utc_now",
]
