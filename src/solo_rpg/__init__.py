"""Solo RPG - turn-resolution engine for solo tabletop play.

A player types an action or dice notation, an external narrative
generator writes the story, and the deterministic rules here resolve
dice, experience, inventory and the misfortune anti-cheat mechanic.

- Python owns TRUTH (dice, hit points, XP, inventory)
- The narrative generator owns the STORY and only proposes effects

Example:
    >>> import asyncio
    >>> from solo_rpg import Campaign, InMemoryTurnRepository, OfflineNarrator, TurnOrchestrator
    >>>
    >>> orchestrator = TurnOrchestrator(OfflineNarrator(), InMemoryTurnRepository())
    >>> session = orchestrator.open_session(Campaign(title="Lost Mines", system="D&D 5e"))
    >>> asyncio.run(orchestrator.start_session(session))
    >>> outcome = asyncio.run(orchestrator.submit(session, "d20+2"))

Modules:
    core: Configuration, logging, and base exceptions.
    models: Character, campaign and rule-table models.
    engine: Dice, misfortune, resolution and the turn orchestrator.
    dm: Narrative generator contract, output parser, fallback and retry.
    storage: Turn persistence (in-memory and SQLite).
"""

from __future__ import annotations

# Core
from solo_rpg.core.config import Settings, get_settings
from solo_rpg.core.exceptions import SoloRpgError
from solo_rpg.core.logging import configure_logging, get_logger

# Models
from solo_rpg.models import (
    Campaign,
    Character,
    Message,
    MessageRole,
    RPGSystem,
    create_initial_character,
    get_template,
)

# Narrative boundary
from solo_rpg.dm import (
    NarrativeGenerator,
    NarrativeRequest,
    NarrativeResponse,
    OfflineNarrator,
    RetryingNarrator,
    parse_narrative_output,
)

# Engine
from solo_rpg.engine import DiceRoller, roll_dice
from solo_rpg.engine.orchestrator import SessionContext, TurnOrchestrator, TurnOutcome, TurnState

# Storage
from solo_rpg.storage import InMemoryTurnRepository, SqliteTurnRepository, TurnRepository

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "SoloRpgError",
    "configure_logging",
    "get_logger",
    # Models
    "Campaign",
    "Character",
    "Message",
    "MessageRole",
    "RPGSystem",
    "create_initial_character",
    "get_template",
    # Narrative
    "NarrativeGenerator",
    "NarrativeRequest",
    "NarrativeResponse",
    "OfflineNarrator",
    "RetryingNarrator",
    "parse_narrative_output",
    # Engine
    "DiceRoller",
    "roll_dice",
    "SessionContext",
    "TurnOrchestrator",
    "TurnOutcome",
    "TurnState",
    # Storage
    "TurnRepository",
    "InMemoryTurnRepository",
    "SqliteTurnRepository",
]
