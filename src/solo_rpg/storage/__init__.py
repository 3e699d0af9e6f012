"""Storage module for turn persistence.

Provides:
- TurnRepository: the persistence contract the orchestrator writes through
- InMemoryTurnRepository: dict-backed implementation
- SqliteTurnRepository: SQLite-backed implementation
"""

from solo_rpg.storage.database import SqliteTurnRepository
from solo_rpg.storage.repository import (
    CharacterFieldWriter,
    InMemoryTurnRepository,
    TurnRepository,
)

__all__ = [
    "TurnRepository",
    "CharacterFieldWriter",
    "InMemoryTurnRepository",
    "SqliteTurnRepository",
]
