"""Deterministic narration used when no narrative backend is reachable.

The OfflineNarrator never fails and never emits game effects; it keeps a
session playable and flags every response with ``used_fallback`` so the
orchestrator can tell the player the story is running degraded.
"""

from __future__ import annotations

from solo_rpg.dm.narrative import (
    ChunkCallback,
    NarrativeKind,
    NarrativeRequest,
    NarrativeResponse,
    SuggestedAction,
)
from solo_rpg.models.campaign import Campaign


OPENING_FALLBACK = (
    "Welcome to your {theme} adventure in the {system} system!\n\n"
    "Your journey begins in a world filled with mystery and danger. "
    "The tone is {tone}, and countless stories await to be told.\n\n"
    "What would you like to do?"
)

DEATH_PROMPT = (
    "The character {name} has been defeated and their hit points reached 0. "
    "Generate a dramatic and fitting conclusion to their story. Describe their "
    "final moments and the end of their adventure. Keep it 2-3 paragraphs, "
    "matching the {tone} tone of the campaign."
)

DEATH_FALLBACK = "{name} has fallen in battle. Their hit points reached zero."

GAME_OVER_TEMPLATE = (
    "**GAME OVER**\n\n{body}\n\n"
    "_Your adventure has come to an end. You can start a new campaign or return to the main menu._"
)

OFFLINE_NOTICE = "AI service temporarily unavailable. Using offline mode."
ERROR_NOTICE = "AI service error. You can continue playing with the fallback narration."


def format_opening_fallback(campaign: Campaign) -> str:
    return OPENING_FALLBACK.format(
        theme=campaign.theme or "fantasy",
        system=campaign.system,
        tone=campaign.tone or "balanced",
    )


def format_death_prompt(name: str, tone: str | None) -> str:
    return DEATH_PROMPT.format(name=name, tone=tone or "balanced")


def format_game_over(body: str) -> str:
    return GAME_OVER_TEMPLATE.format(body=body.strip())


_DEFAULT_ACTIONS = (
    SuggestedAction(id="look", label="Look around", action="I look around carefully."),
    SuggestedAction(id="press-on", label="Press on", action="I press on."),
)


class OfflineNarrator:
    """Canned narration keyed on the request kind."""

    provider = "offline"

    def _compose(self, request: NarrativeRequest) -> str:
        character = request.context.character
        name = character.name if character else "The adventurer"

        if request.kind == NarrativeKind.SESSION_START:
            return format_opening_fallback(request.context.campaign)
        if request.kind == NarrativeKind.DEATH:
            return DEATH_FALLBACK.format(name=name)
        if request.kind == NarrativeKind.ROLL and request.roll is not None:
            return (
                f"{name} commits to the attempt. The dice settle on "
                f"{request.roll.effective_total}, and the world answers in kind.\n\n"
                "What do you do next?"
            )
        return f"{name} acts, and the moment passes quietly.\n\nWhat do you do next?"

    async def generate(
        self,
        request: NarrativeRequest,
        on_chunk: ChunkCallback | None = None,
    ) -> NarrativeResponse:
        content = self._compose(request)
        if on_chunk is not None:
            on_chunk(content)
        actions = [] if request.kind == NarrativeKind.DEATH else list(_DEFAULT_ACTIONS)
        return NarrativeResponse(content=content, suggested_actions=actions, used_fallback=True)


__all__ = [
    "OPENING_FALLBACK",
    "DEATH_PROMPT",
    "DEATH_FALLBACK",
    "OFFLINE_NOTICE",
    "ERROR_NOTICE",
    "format_opening_fallback",
    "format_death_prompt",
    "format_game_over",
    "OfflineNarrator",
]
