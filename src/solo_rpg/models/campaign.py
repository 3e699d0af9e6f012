"""Campaign-side records handed to the narrative generator as context."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, Field

from solo_rpg.models.character import utc_now


class MessageRole(StrEnum):
    """Author of a chat message."""

    USER = "user"
    AI = "ai"
    SYSTEM = "system"


class Campaign(BaseModel):
    """A single solo campaign.

    Attributes:
        system: Name of the RPG system; unknown names use the Generic rules.
        theme: Free-text setting description.
        tone: Free-text tone hint for narration.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    system: str = Field(default="Generic")
    theme: str = Field(default="")
    tone: str = Field(default="")
    created_at: datetime = Field(default_factory=utc_now)


class Message(BaseModel):
    """One chat message in a campaign's history."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    campaign_id: str
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class Roll(BaseModel):
    """Persisted projection of an engine roll."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    campaign_id: str
    notation: str
    result: int
    breakdown: str
    created_at: datetime = Field(default_factory=utc_now)


class Recap(BaseModel):
    """Running story summary."""

    campaign_id: str
    summary: str
    updated_at: datetime = Field(default_factory=utc_now)


class Entity(BaseModel):
    """A known NPC, place, or object in the story."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    campaign_id: str
    name: str
    kind: str = Field(default="npc", description="npc, location, item, faction, ...")
    description: str = Field(default="")


class Fact(BaseModel):
    """An established piece of canon the narration must respect."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    campaign_id: str
    content: str
    created_at: datetime = Field(default_factory=utc_now)


__all__ = [
    "MessageRole",
    "Campaign",
    "Message",
    "Roll",
    "Recap",
    "Entity",
    "Fact",
]
