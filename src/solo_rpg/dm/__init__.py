"""Narrative generator boundary.

Exports:
    Contract:
        NarrativeGenerator: Protocol every narrative backend implements.
        NarrativeRequest, NarrativeResponse: Call input and output.
        NarrativeContext, RollContext, SuggestedAction: Request/response parts.

    Helpers:
        parse_narrative_output: Tagged text to NarrativeResponse.
        assemble_message_history: Alternating chat history from stored messages.
        OfflineNarrator: Canned fallback generator.
        RetryingNarrator: tenacity-based retry wrapper.
"""

from __future__ import annotations

from solo_rpg.dm.context import ChatTurn, assemble_message_history
from solo_rpg.dm.narrative import (
    ChunkCallback,
    NarrativeContext,
    NarrativeGenerator,
    NarrativeKind,
    NarrativeRequest,
    NarrativeResponse,
    RollContext,
    SuggestedAction,
)
from solo_rpg.dm.offline import OfflineNarrator
from solo_rpg.dm.parser import parse_narrative_output
from solo_rpg.dm.retry import RetryingNarrator

__all__ = [
    "ChunkCallback",
    "NarrativeKind",
    "NarrativeContext",
    "NarrativeGenerator",
    "NarrativeRequest",
    "NarrativeResponse",
    "RollContext",
    "SuggestedAction",
    "ChatTurn",
    "assemble_message_history",
    "OfflineNarrator",
    "RetryingNarrator",
    "parse_narrative_output",
]
