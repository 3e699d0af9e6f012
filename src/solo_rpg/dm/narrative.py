"""Narrative generator boundary.

The generator that writes the story is an external collaborator: this
package never builds prompts or talks to a network. It hands the
generator a NarrativeRequest and gets back a NarrativeResponse carrying
the story text plus structured game effects. Partial text may be streamed
through an ``on_chunk`` callback while the call is in flight.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from solo_rpg.engine.resolution import ResolutionResult
from solo_rpg.models.campaign import Campaign, Entity, Fact, Message, Recap
from solo_rpg.models.character import Character
from solo_rpg.models.effects import CharacterEffect
from solo_rpg.models.inventory import ItemDrop


ChunkCallback = Callable[[str], None]


class NarrativeKind(StrEnum):
    """Which call variant a request is."""

    SESSION_START = "session_start"
    MESSAGE = "message"
    ROLL = "roll"
    DEATH = "death"


class SuggestedAction(BaseModel):
    """A follow-up the player can pick instead of typing.

    Attributes:
        id: Stable id within one response.
        label: Short button text.
        action: Full action text sent as the player's message.
        roll_notation: Roll to make with the action, e.g. ``d20+STR``.
        dc: Difficulty class for the roll.
    """

    id: str
    label: str
    action: str
    roll_notation: str | None = None
    dc: int | None = None


class NarrativeContext(BaseModel):
    """Everything the generator may use to continue the story."""

    campaign: Campaign
    messages: list[Message] = Field(default_factory=list)
    recap: Recap | None = None
    entities: list[Entity] = Field(default_factory=list)
    facts: list[Fact] = Field(default_factory=list)
    character: Character | None = None


class RollContext(BaseModel):
    """A resolved engine roll as the generator sees it.

    ``effective_total`` is what the narration must use; ``total`` is the
    stored raw result.
    """

    notation: str
    total: int
    effective_total: int
    breakdown: str
    misfortune_penalty: int = 0


class NarrativeRequest(BaseModel):
    """One call to the narrative generator.

    Attributes:
        kind: Call variant.
        context: Story context.
        action: Player action text, when the turn has one.
        roll: Engine roll resolved this turn.
        claimed_roll: Value the player narrated instead of rolling.
        resolution: DC check outcome when a suggested action carried a DC.
        death_trigger: Prompt asking for the character's death narration.
    """

    kind: NarrativeKind
    context: NarrativeContext
    action: str | None = None
    roll: RollContext | None = None
    claimed_roll: int | None = None
    resolution: ResolutionResult | None = None
    death_trigger: str | None = None


class NarrativeResponse(BaseModel):
    """What the generator returns.

    Attributes:
        content: Story text with every control tag removed.
        character_effects: Effects in the order they must be applied.
        item_drops: Items awarded to the character.
        xp_award: XP gain (positive) or loss (negative).
        roll_request: Roll notation the story asks for next.
        suggested_actions: Follow-ups offered to the player.
        used_fallback: True when a degraded/offline backend answered.
    """

    content: str
    character_effects: list[CharacterEffect] = Field(default_factory=list)
    item_drops: list[ItemDrop] = Field(default_factory=list)
    xp_award: int | None = None
    roll_request: str | None = None
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    used_fallback: bool = False


@runtime_checkable
class NarrativeGenerator(Protocol):
    """Anything that can continue the story."""

    async def generate(
        self,
        request: NarrativeRequest,
        on_chunk: ChunkCallback | None = None,
    ) -> NarrativeResponse:
        """Produce narration for ``request``.

        Raises:
            NarrativeError: When generation fails.
        """
        ...


__all__ = [
    "ChunkCallback",
    "NarrativeKind",
    "SuggestedAction",
    "NarrativeContext",
    "RollContext",
    "NarrativeRequest",
    "NarrativeResponse",
    "NarrativeGenerator",
]
