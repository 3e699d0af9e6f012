"""Persistence contract used by the turn orchestrator.

Writes are single-entity and keyed by campaign or character id. The
orchestrator never reads back what it wrote within a turn, so an
implementation only has to have persisted a write before the turn returns.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from solo_rpg.core.exceptions import RecordNotFoundError
from solo_rpg.core.logging import get_logger
from solo_rpg.models.campaign import Message, Roll
from solo_rpg.models.character import Character, InventoryItem


logger = get_logger(__name__)


@runtime_checkable
class TurnRepository(Protocol):
    """Storage operations a turn needs."""

    def create_message(self, message: Message) -> Message: ...

    def create_roll(self, roll: Roll) -> Roll: ...

    def list_messages(self, campaign_id: str) -> list[Message]: ...

    def list_rolls(self, campaign_id: str) -> list[Roll]: ...

    def delete_messages_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int: ...

    def delete_rolls_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int: ...

    def save_character(self, character: Character) -> Character: ...

    def get_character(self, character_id: str) -> Character | None: ...

    def get_character_by_campaign(self, campaign_id: str) -> Character | None: ...

    def update_character_hp(self, character_id: str, hit_points: int, max_hit_points: int) -> None: ...

    def update_character_progress(
        self,
        character_id: str,
        *,
        level: int,
        experience: int,
        pending_attribute_points: int,
        level_up_pending: bool,
    ) -> None: ...

    def update_character_attribute(self, character_id: str, attribute: str, value: int) -> None: ...

    def update_character_resource(self, character_id: str, resource: str, value: int) -> None: ...

    def update_character_misfortune(self, character_id: str, misfortune: int) -> None: ...

    def update_character_inventory(
        self,
        character_id: str,
        inventory: Sequence[InventoryItem],
        *,
        equipped_weapon: str | None = None,
        equipped_armor: str | None = None,
    ) -> None: ...


class CharacterFieldWriter:
    """Shared implementation of the ``update_character_*`` family.

    Subclasses provide ``get_character`` and ``save_character``; each update
    loads the stored character, changes the named fields and writes it back.
    """

    def get_character(self, character_id: str) -> Character | None:
        raise NotImplementedError

    def save_character(self, character: Character) -> Character:
        raise NotImplementedError

    def _update_character(self, character_id: str, **changes: object) -> None:
        stored = self.get_character(character_id)
        if stored is None:
            raise RecordNotFoundError("Character not found", record_id=character_id)
        self.save_character(stored.touched(**changes))

    def update_character_hp(self, character_id: str, hit_points: int, max_hit_points: int) -> None:
        self._update_character(character_id, hit_points=hit_points, max_hit_points=max_hit_points)

    def update_character_progress(
        self,
        character_id: str,
        *,
        level: int,
        experience: int,
        pending_attribute_points: int,
        level_up_pending: bool,
    ) -> None:
        self._update_character(
            character_id,
            level=level,
            experience=experience,
            pending_attribute_points=pending_attribute_points,
            level_up_pending=level_up_pending,
        )

    def update_character_attribute(self, character_id: str, attribute: str, value: int) -> None:
        stored = self.get_character(character_id)
        if stored is None:
            raise RecordNotFoundError("Character not found", record_id=character_id)
        self.save_character(stored.touched(attributes={**stored.attributes, attribute: value}))

    def update_character_resource(self, character_id: str, resource: str, value: int) -> None:
        stored = self.get_character(character_id)
        if stored is None:
            raise RecordNotFoundError("Character not found", record_id=character_id)
        self.save_character(stored.touched(resources={**(stored.resources or {}), resource: value}))

    def update_character_misfortune(self, character_id: str, misfortune: int) -> None:
        self._update_character(character_id, misfortune=misfortune)

    def update_character_inventory(
        self,
        character_id: str,
        inventory: Sequence[InventoryItem],
        *,
        equipped_weapon: str | None = None,
        equipped_armor: str | None = None,
    ) -> None:
        self._update_character(
            character_id,
            inventory=list(inventory),
            equipped_weapon=equipped_weapon,
            equipped_armor=equipped_armor,
        )


class InMemoryTurnRepository(CharacterFieldWriter):
    """Dict-backed repository for tests and throwaway sessions."""

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.rolls: list[Roll] = []
        self.characters: dict[str, Character] = {}

    def create_message(self, message: Message) -> Message:
        self.messages.append(message)
        return message

    def create_roll(self, roll: Roll) -> Roll:
        self.rolls.append(roll)
        return roll

    def list_messages(self, campaign_id: str) -> list[Message]:
        return sorted(
            (m for m in self.messages if m.campaign_id == campaign_id),
            key=lambda m: m.created_at,
        )

    def list_rolls(self, campaign_id: str) -> list[Roll]:
        return sorted(
            (r for r in self.rolls if r.campaign_id == campaign_id),
            key=lambda r: r.created_at,
        )

    def delete_messages_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int:
        kept = [m for m in self.messages if m.campaign_id != campaign_id or m.created_at <= timestamp]
        deleted = len(self.messages) - len(kept)
        self.messages = kept
        logger.debug("Messages deleted", campaign_id=campaign_id, count=deleted)
        return deleted

    def delete_rolls_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int:
        kept = [r for r in self.rolls if r.campaign_id != campaign_id or r.created_at <= timestamp]
        deleted = len(self.rolls) - len(kept)
        self.rolls = kept
        logger.debug("Rolls deleted", campaign_id=campaign_id, count=deleted)
        return deleted

    def save_character(self, character: Character) -> Character:
        self.characters[character.id] = character
        return character

    def get_character(self, character_id: str) -> Character | None:
        return self.characters.get(character_id)

    def get_character_by_campaign(self, campaign_id: str) -> Character | None:
        return next((c for c in self.characters.values() if c.campaign_id == campaign_id), None)


__all__ = [
    "TurnRepository",
    "CharacterFieldWriter",
    "InMemoryTurnRepository",
]
