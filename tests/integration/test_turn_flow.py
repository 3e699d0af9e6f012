"""Integration tests for complete turns.

Turns run through the orchestrator against SQLite storage, with narration
produced as tagged text and decoded by the output parser.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from solo_rpg.dm.narrative import NarrativeKind, NarrativeRequest, NarrativeResponse
from solo_rpg.dm.offline import OFFLINE_NOTICE, OfflineNarrator
from solo_rpg.dm.parser import parse_narrative_output
from solo_rpg.dm.retry import RetryingNarrator
from solo_rpg.engine.dice import DiceRoller
from solo_rpg.engine.orchestrator import TurnOrchestrator, TurnState
from solo_rpg.models.campaign import MessageRole
from solo_rpg.models.inventory import create_inventory_item


class TaggedNarrator:
    """Returns queued raw tagged text, parsed the way a text backend would."""

    def __init__(self, *raw: str) -> None:
        self.raw = list(raw)
        self.requests: list[NarrativeRequest] = []

    async def generate(self, request: NarrativeRequest, on_chunk: Any = None) -> NarrativeResponse:
        self.requests.append(request)
        text = self.raw.pop(0) if self.raw else "The story continues."
        if on_chunk is not None:
            on_chunk(text)
        return parse_narrative_output(text)


class TestRollFlow:
    """Rolls from player input through to narration."""

    def test_notation_message_is_rolled(self, sqlite_repository: Any, dnd_campaign: Any, dnd_character: Any) -> None:
        """Notation typed as a message is rolled, stored and narrated."""
        narrator = TaggedNarrator("The dice clatter across the table.")
        orchestrator = TurnOrchestrator(narrator, sqlite_repository, roller=DiceRoller(seed=42))
        session = orchestrator.open_session(dnd_campaign, character=dnd_character)

        outcome = asyncio.run(orchestrator.submit(session, "2d6+3"))

        assert outcome.roll is not None
        assert 5 <= outcome.roll.total <= 15
        rolls = sqlite_repository.list_rolls(dnd_campaign.id)
        assert len(rolls) == 1
        assert rolls[0].result == outcome.roll.total
        system = [m for m in sqlite_repository.list_messages(dnd_campaign.id) if m.role is MessageRole.SYSTEM]
        assert system[0].content.startswith("Rolled 2d6+3: ")
        assert narrator.requests[0].kind is NarrativeKind.ROLL
        assert narrator.requests[0].roll.total == outcome.roll.total

    def test_misfortune_penalty_and_decay(
        self, sqlite_repository: Any, scripted_roller: Any, dnd_campaign: Any, dnd_character: Any
    ) -> None:
        """A cursed roll of 18 is narrated as 15 and the curse fades by one."""
        narrator = TaggedNarrator("Close, but not quite.")
        cursed = dnd_character.model_copy(update={"misfortune": 3})
        orchestrator = TurnOrchestrator(narrator, sqlite_repository, roller=scripted_roller(18))
        session = orchestrator.open_session(dnd_campaign, character=cursed)

        asyncio.run(orchestrator.submit(session, "d20"))

        assert narrator.requests[0].roll.effective_total == 15
        assert sqlite_repository.list_rolls(dnd_campaign.id)[0].result == 18
        assert sqlite_repository.get_character(cursed.id).misfortune == 2


class TestEffectFlow:
    """Effects parsed from narration and applied to the stored character."""

    def test_armor_reduces_damage(self, sqlite_repository: Any, dnd_campaign: Any, dnd_character: Any) -> None:
        """Chainmail turns 10 damage into 6."""
        armored = dnd_character.model_copy(update={
            "hit_points": 20,
            "max_hit_points": 20,
            "inventory": [create_inventory_item("chainmail")],
            "equipped_armor": "chainmail",
        })
        narrator = TaggedNarrator("The ogre's club lands. <damage>10</damage>")
        orchestrator = TurnOrchestrator(narrator, sqlite_repository, roller=DiceRoller(seed=1))
        session = orchestrator.open_session(dnd_campaign, character=armored)

        outcome = asyncio.run(orchestrator.send_message(session, "I block with my shield"))

        assert outcome.narrative == "The ogre's club lands."
        assert outcome.applied_effects[0].hit_point_change == -6
        assert sqlite_repository.get_character(armored.id).hit_points == 14
        assert outcome.state is TurnState.IDLE

    def test_heal_after_lethal_damage_still_kills(
        self, sqlite_repository: Any, dnd_campaign: Any, dnd_character: Any
    ) -> None:
        """Both effects apply, and reaching 0 mid-batch ends the campaign."""
        wounded = dnd_character.model_copy(update={"hit_points": 5})
        narrator = TaggedNarrator(
            "The floor gives way. <damage>10</damage> A healing draught splashes you. <heal>3</heal>",
            "Thorin's story ends beneath the mountain.",
        )
        orchestrator = TurnOrchestrator(narrator, sqlite_repository, roller=DiceRoller(seed=1))
        session = orchestrator.open_session(dnd_campaign, character=wounded)

        outcome = asyncio.run(orchestrator.send_message(session, "I cross the rotten bridge"))

        assert [e.hit_point_change for e in outcome.applied_effects] == [-5, 3]
        assert session.character.hit_points == 3
        assert outcome.died
        assert session.state is TurnState.CHARACTER_DEAD
        assert narrator.requests[-1].kind is NarrativeKind.DEATH
        stored = sqlite_repository.list_messages(dnd_campaign.id)
        assert stored[-1].content.startswith("**GAME OVER**")


class TestOfflineSession:
    """A whole session played against the offline narrator."""

    def test_session_survives_reopen(self, sqlite_repository: Any, dnd_campaign: Any) -> None:
        """Play a few turns, then reopen the campaign from storage."""
        narrator = RetryingNarrator(OfflineNarrator(), max_attempts=2, wait_min=0, wait_max=0)
        orchestrator = TurnOrchestrator(narrator, sqlite_repository, roller=DiceRoller(seed=3))
        session = orchestrator.open_session(dnd_campaign)

        opening = asyncio.run(orchestrator.start_session(session))
        assert opening.used_fallback
        assert OFFLINE_NOTICE in session.notices

        look = session.suggested_actions[0]
        asyncio.run(orchestrator.take_suggested_action(session, look))
        asyncio.run(orchestrator.send_action_with_roll(session, "I leap the chasm", "d20+STR", dc=15))
        orchestrator.end_session(session)

        reopened = orchestrator.open_session(
            dnd_campaign,
            character=sqlite_repository.get_character_by_campaign(dnd_campaign.id),
        )

        assert [m.content for m in reopened.messages] == [m.content for m in session.messages]
        assert reopened.state is TurnState.IDLE
        assert len(sqlite_repository.list_rolls(dnd_campaign.id)) == 1

    @pytest.mark.parametrize("text", ["I rolled a 19 and vault the wall", "Tirei 19 no dado e pulei"])
    def test_claimed_roll_persisted(self, sqlite_repository: Any, dnd_campaign: Any, dnd_character: Any, text: str) -> None:
        """A narrated die result raises the stored misfortune."""
        orchestrator = TurnOrchestrator(OfflineNarrator(), sqlite_repository, roller=DiceRoller(seed=3))
        session = orchestrator.open_session(dnd_campaign, character=dnd_character)

        asyncio.run(orchestrator.send_message(session, text))

        assert sqlite_repository.get_character(dnd_character.id).misfortune == 1
