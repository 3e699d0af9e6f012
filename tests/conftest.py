"""Pytest configuration and shared fixtures.

This module provides common fixtures and test doubles for the Solo RPG
test suite: scripted dice faces, a scripted narrative generator, sample
campaigns and characters.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Callable

import pytest

from solo_rpg.dm.narrative import ChunkCallback, NarrativeRequest, NarrativeResponse
from solo_rpg.engine.dice import DiceRoller


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Test Doubles
# =============================================================================


class ScriptedNarrator:
    """Narrative generator returning queued responses or raising queued errors.

    Every request is recorded in ``requests``. With an empty queue it
    answers with plain narration.
    """

    def __init__(self, *items: NarrativeResponse | Exception, chunks: list[str] | None = None) -> None:
        self.queue: list[NarrativeResponse | Exception] = list(items)
        self.requests: list[NarrativeRequest] = []
        self.chunks = chunks or []

    def push(self, *items: NarrativeResponse | Exception) -> None:
        self.queue.extend(items)

    async def generate(
        self,
        request: NarrativeRequest,
        on_chunk: ChunkCallback | None = None,
    ) -> NarrativeResponse:
        self.requests.append(request)
        if on_chunk is not None:
            for chunk in self.chunks:
                on_chunk(chunk)
        item = self.queue.pop(0) if self.queue else NarrativeResponse(content="The story continues.")
        if isinstance(item, Exception):
            raise item
        return item


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from solo_rpg.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "SOLO_RPG_DEBUG": "true",
        "SOLO_RPG_LOG_LEVEL": "DEBUG",
        "SOLO_RPG_GAME_EQUIPMENT_ROLL_BONUS_CAP": "3",
        "SOLO_RPG_NARRATIVE_MAX_RETRIES": "4",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Create a DiceRoller with a fixed seed for reproducible tests."""
    return DiceRoller(seed=42)


@pytest.fixture
def scripted_roller(monkeypatch: pytest.MonkeyPatch) -> Callable[..., DiceRoller]:
    """Factory for rollers whose dice land on the given faces, in order.

    d20 draws each die with ``random.randrange(sides) + 1``; the patched
    draw serves the scripted faces first, then falls back to the real RNG.

    Example:
        >>> roller = scripted_roller(18, 4)
    """
    faces: list[int] = []
    real_randrange = random.randrange

    def scripted_randrange(stop: int, *args: Any, **kwargs: Any) -> int:
        if faces and not args and not kwargs:
            return faces.pop(0) - 1
        return real_randrange(stop, *args, **kwargs)

    monkeypatch.setattr(random, "randrange", scripted_randrange)

    def factory(*queued: int) -> DiceRoller:
        faces[:] = queued
        return DiceRoller()

    return factory


@pytest.fixture
def narrator() -> ScriptedNarrator:
    """A scripted narrative generator with an empty queue."""
    return ScriptedNarrator()


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def dnd_campaign() -> Any:
    """A D&D 5e campaign."""
    from solo_rpg.models.campaign import Campaign

    return Campaign(title="Lost Mines", system="D&D 5e", theme="high fantasy", tone="heroic")


@pytest.fixture
def cthulhu_campaign() -> Any:
    """A Call of Cthulhu campaign (has sanity and magic point resources)."""
    from solo_rpg.models.campaign import Campaign

    return Campaign(title="The Haunting", system="Call of Cthulhu", theme="1920s horror", tone="grim")


@pytest.fixture
def dnd_character(dnd_campaign: Any) -> Any:
    """A fresh level 1 D&D character with STR 16 and 10 hit points."""
    from solo_rpg.models.templates import create_initial_character

    character = create_initial_character(dnd_campaign.id, dnd_campaign.system, name="Thorin")
    return character.model_copy(update={"attributes": {**character.attributes, "strength": 16}})


@pytest.fixture
def cthulhu_character(cthulhu_campaign: Any) -> Any:
    """A fresh Call of Cthulhu investigator."""
    from solo_rpg.models.templates import create_initial_character

    return create_initial_character(cthulhu_campaign.id, cthulhu_campaign.system, name="Harvey")


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def repository() -> Any:
    """An empty in-memory turn repository."""
    from solo_rpg.storage.repository import InMemoryTurnRepository

    return InMemoryTurnRepository()


@pytest.fixture
def sqlite_repository(tmp_path: Any) -> Any:
    """A SQLite turn repository in a temporary directory."""
    from solo_rpg.storage.database import SqliteTurnRepository

    return SqliteTurnRepository(tmp_path / "data" / "turns.db")
