"""Turn orchestration for a solo campaign session.

A turn starts from player input and ends with the next actionable state:

1. Input that parses as dice notation is rolled; anything else is a
   narrative action.
2. A roll is stored raw. The misfortune penalty only changes the value
   handed to the narrative generator, and every engine roll decays
   misfortune by one stack.
3. The narrative generator is awaited. Partial text is forwarded through
   ``on_chunk`` as it arrives.
4. Returned effects are applied in order: character effects, then item
   drops, then XP. A failing effect is logged and skipped.
5. If hit points reached 0 at any point of the batch the character dies;
   one last narration is requested, with a fixed fallback text.
6. Otherwise suggested actions and any roll request are published.

All per-session state lives in a SessionContext owned by the caller.
Turns on one session never overlap.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from solo_rpg.core.config import Settings, get_settings
from solo_rpg.core.exceptions import (
    CharacterDeadError,
    RecordNotFoundError,
    TurnInProgressError,
    ValidationError,
)
from solo_rpg.core.logging import bind_context, clear_context, get_logger
from solo_rpg.dm.narrative import (
    NarrativeContext,
    NarrativeGenerator,
    NarrativeKind,
    NarrativeRequest,
    NarrativeResponse,
    RollContext,
    SuggestedAction,
)
from solo_rpg.dm.offline import (
    DEATH_FALLBACK,
    ERROR_NOTICE,
    OFFLINE_NOTICE,
    format_death_prompt,
    format_game_over,
    format_opening_fallback,
)
from solo_rpg.engine.dice import DiceRoller, RollResult, is_valid_dice_notation, parse_dice_notation
from solo_rpg.engine.misfortune import (
    apply_misfortune_to_roll,
    decay_misfortune,
    detect_claimed_roll,
    get_misfortune_penalty,
    get_misfortune_roll_breakdown,
    increase_misfortune,
)
from solo_rpg.engine.notation import apply_roll_bonus, resolve_attribute_modifiers
from solo_rpg.engine.resolution import ResolutionResult, resolve_action
from solo_rpg.models.campaign import Campaign, Entity, Fact, Message, MessageRole, Recap, Roll
from solo_rpg.models.character import Character, InventoryItem, utc_now
from solo_rpg.models.effects import (
    CharacterEffect,
    DamageEffect,
    DamageRollEffect,
    HealEffect,
    RestoreResourceEffect,
    SpendResourceEffect,
    heal,
    restore_resource,
    spend_resource,
    take_damage,
)
from solo_rpg.models.inventory import ItemDrop, apply_item_drops, get_equipment_roll_bonus
from solo_rpg.models.progression import (
    confirm_level_up,
    format_level_down_message,
    format_level_up_message,
    format_xp_award_message,
    try_allocate_attribute_point,
    update_experience,
)
from solo_rpg.models.templates import (
    SystemTemplate,
    create_initial_character,
    find_resource,
    get_template,
)


if TYPE_CHECKING:
    from solo_rpg.dm.narrative import ChunkCallback
    from solo_rpg.storage.repository import TurnRepository

logger = get_logger(__name__)


CONTINUE_PROMPT = "[Continue the narration]"
STORY_XP_REASON = "Story progression"


# =============================================================================
# Turn State
# =============================================================================


class TurnState(StrEnum):
    """Where a session is in the turn cycle."""

    IDLE = "idle"
    """No turn running and nothing requested."""

    AWAITING_ROLL_OR_MESSAGE = "awaiting_roll_or_message"
    """Input accepted; a roll may have been requested by the story."""

    ROLLING_DICE = "rolling_dice"
    """An engine roll is being made."""

    AWAITING_NARRATIVE = "awaiting_narrative"
    """Waiting on the narrative generator."""

    APPLYING_EFFECTS = "applying_effects"
    """Applying effects returned with the narration."""

    CHARACTER_DEAD = "character_dead"
    """Terminal: the character died and input is refused."""


_BUSY_STATES = frozenset({
    TurnState.ROLLING_DICE,
    TurnState.AWAITING_NARRATIVE,
    TurnState.APPLYING_EFFECTS,
})


# =============================================================================
# Session and Outcome
# =============================================================================


@dataclass
class SessionContext:
    """Everything one campaign session carries between turns.

    Attributes:
        campaign: The campaign being played.
        character: The campaign's character; replaced, never mutated.
        messages: Chat history, oldest first.
        recap: Running summary for the narrative generator.
        entities: Known NPCs, places and objects.
        facts: Established canon.
        state: Current turn state.
        pending_roll: Roll notation the story asked for.
        suggested_actions: Follow-ups offered by the last narration.
        streamed_content: Partial text of the narration in flight.
        error: Message of the last failed turn.
        notices: System notices raised this session (offline mode, errors).
    """

    campaign: Campaign
    character: Character
    messages: list[Message] = field(default_factory=list)
    recap: Recap | None = None
    entities: list[Entity] = field(default_factory=list)
    facts: list[Fact] = field(default_factory=list)
    state: TurnState = TurnState.IDLE
    pending_roll: str | None = None
    suggested_actions: list[SuggestedAction] = field(default_factory=list)
    streamed_content: str = ""
    error: str | None = None
    notices: list[str] = field(default_factory=list)
    last_activity_at: datetime | None = None

    @property
    def campaign_id(self) -> str:
        return self.campaign.id

    @property
    def is_busy(self) -> bool:
        return self.state in _BUSY_STATES

    @property
    def is_dead(self) -> bool:
        return self.state is TurnState.CHARACTER_DEAD


@dataclass
class AppliedEffect:
    """What became of one character effect.

    Attributes:
        effect: The effect as returned by the generator.
        applied: False when the effect failed and was skipped.
        hit_point_change: Signed change to hit points, if any.
        error: Why the effect was skipped.
    """

    effect: CharacterEffect
    applied: bool
    hit_point_change: int = 0
    error: str | None = None


@dataclass
class TurnOutcome:
    """Result of one turn.

    Attributes:
        state: Session state after the turn.
        roll: Engine roll made this turn.
        effective_total: Roll total after the misfortune penalty.
        resolution: DC check result, when the action carried a DC.
        narrative: Narration text stored for the turn.
        applied_effects: Character effects in application order.
        items_added: Inventory entries created by item drops.
        xp_change: XP applied this turn.
        leveled_up: The XP change raised the level.
        leveled_down: The XP change lowered the level.
        died: The character died this turn.
        suggested_actions: Follow-ups published for the next turn.
        roll_request: Roll the story asks for next.
        used_fallback: A degraded narrative backend answered.
        messages: Messages stored during the turn.
    """

    state: TurnState
    roll: RollResult | None = None
    effective_total: int | None = None
    resolution: ResolutionResult | None = None
    narrative: str = ""
    applied_effects: list[AppliedEffect] = field(default_factory=list)
    items_added: list[InventoryItem] = field(default_factory=list)
    xp_change: int = 0
    leveled_up: bool = False
    leveled_down: bool = False
    died: bool = False
    suggested_actions: list[SuggestedAction] = field(default_factory=list)
    roll_request: str | None = None
    used_fallback: bool = False
    messages: list[Message] = field(default_factory=list)


# =============================================================================
# Orchestrator
# =============================================================================


class TurnOrchestrator:
    """Sequences player turns around the narrative generator.

    The orchestrator holds no session state of its own; one instance can
    drive any number of sessions.

    Attributes:
        generator: Narrative backend.
        repository: Where messages, rolls and character changes are written.
        roller: Dice roller for every engine roll.
        settings: Application settings.
    """

    def __init__(
        self,
        generator: NarrativeGenerator,
        repository: "TurnRepository",
        *,
        roller: DiceRoller | None = None,
        settings: Settings | None = None,
        on_chunk: "ChunkCallback | None" = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            generator: Narrative backend.
            repository: Persistence for turn artifacts.
            roller: Dice roller; a fresh unseeded one when None.
            settings: Settings; the cached application settings when None.
            on_chunk: Receives streamed narration text as it arrives.
        """
        self.generator = generator
        self.repository = repository
        self.roller = roller or DiceRoller()
        self.settings = settings or get_settings()
        self._on_chunk = on_chunk

        logger.info(
            "TurnOrchestrator initialized",
            generator=type(generator).__name__,
            repository=type(repository).__name__,
        )

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def open_session(
        self,
        campaign: Campaign,
        *,
        character: Character | None = None,
        recap: Recap | None = None,
        entities: list[Entity] | None = None,
        facts: list[Fact] | None = None,
    ) -> SessionContext:
        """Build a SessionContext, creating the character on first play.

        Without an explicit ``character`` the campaign's stored character is
        reused; one is created only when the campaign has none yet. Stored
        messages are loaded as history. A character already at 0 hit points
        opens in the dead state.
        """
        if character is None:
            character = self.repository.get_character_by_campaign(campaign.id)
        if character is None:
            character = create_initial_character(campaign.id, self._template_name(campaign))
            logger.info("Character created", character_id=character.id, campaign_id=campaign.id)
        self.repository.save_character(character)

        session = SessionContext(
            campaign=campaign,
            character=character,
            messages=self.repository.list_messages(campaign.id),
            recap=recap,
            entities=list(entities or []),
            facts=list(facts or []),
            state=TurnState.CHARACTER_DEAD if character.is_dead else TurnState.IDLE,
        )
        bind_context(campaign_id=campaign.id)
        logger.info(
            "Session opened",
            character_id=character.id,
            system=campaign.system,
            history=len(session.messages),
        )
        return session

    async def start_session(self, session: SessionContext) -> TurnOutcome:
        """Request the opening narration.

        If the generator fails, a templated opening and an error notice are
        stored instead and play continues.
        """
        outcome = TurnOutcome(state=session.state)
        with self._turn(session):
            request = NarrativeRequest(kind=NarrativeKind.SESSION_START, context=self._context(session))
            try:
                response = await self._narrate(session, request)
            except Exception:
                logger.exception("Opening narration failed, using fallback")
                fallback = format_opening_fallback(session.campaign)
                self._emit(session, outcome, MessageRole.AI, fallback)
                self._notice(session, outcome, ERROR_NOTICE)
                session.error = None
                outcome.narrative = fallback
                outcome.used_fallback = True
                self._transition(session, TurnState.IDLE)
                outcome.state = session.state
                return outcome
            return await self._complete_turn(session, response, outcome)

    def end_session(self, session: SessionContext) -> None:
        """Close the session; a dead character stays dead."""
        if session.is_busy:
            raise TurnInProgressError(
                "Cannot end a session while a turn is resolving",
                current_state=session.state.value,
            )
        session.pending_roll = None
        session.suggested_actions = []
        session.streamed_content = ""
        if not session.is_dead:
            self._transition(session, TurnState.IDLE)
        logger.info("Session ended", character_id=session.character.id, state=session.state.value)
        clear_context()

    # =========================================================================
    # Player input
    # =========================================================================

    async def submit(self, session: SessionContext, text: str) -> TurnOutcome:
        """Handle raw player input: dice notation is rolled, anything else is narrated."""
        trimmed = text.strip()
        if is_valid_dice_notation(trimmed):
            return await self.roll(session, trimmed)
        return await self.send_message(session, trimmed)

    async def roll(self, session: SessionContext, notation: str) -> TurnOutcome:
        """Roll player-typed notation and narrate the result.

        Raises:
            InvalidNotationError: Before anything changes, if the notation is invalid.
        """
        canonical = apply_roll_bonus(notation, 0)
        outcome = TurnOutcome(state=session.state)
        with self._turn(session):
            roll = self._roll(session, canonical, outcome)
            request = NarrativeRequest(
                kind=NarrativeKind.ROLL,
                context=self._context(session),
                roll=roll,
            )
            response = await self._narrate(session, request)
            return await self._complete_turn(session, response, outcome)

    async def send_action_with_roll(
        self,
        session: SessionContext,
        action_text: str,
        roll_notation: str,
        dc: int | None = None,
    ) -> TurnOutcome:
        """Store an action, roll for it and narrate.

        Attribute terms in ``roll_notation`` resolve against the character
        and the equipment roll bonus is added. With a ``dc`` the roll is
        also resolved into a success tier.

        Raises:
            InvalidNotationError: Before anything changes, if the notation is invalid.
        """
        resolved = self._resolve_action_notation(session, roll_notation)
        outcome = TurnOutcome(state=session.state)
        with self._turn(session):
            self._emit(session, outcome, MessageRole.USER, action_text)
            roll = self._roll(session, resolved, outcome)
            if dc is not None and outcome.roll is not None:
                outcome.resolution = self._resolve_dc(outcome.roll, roll.effective_total, dc)
            request = NarrativeRequest(
                kind=NarrativeKind.ROLL,
                context=self._context(session),
                action=action_text,
                roll=roll,
                resolution=outcome.resolution,
            )
            response = await self._narrate(session, request)
            return await self._complete_turn(session, response, outcome)

    async def take_suggested_action(self, session: SessionContext, action: SuggestedAction) -> TurnOutcome:
        if action.roll_notation:
            return await self.send_action_with_roll(session, action.action, action.roll_notation, action.dc)
        return await self.send_message(session, action.action)

    async def send_message(self, session: SessionContext, text: str) -> TurnOutcome:
        """Narrate a free-text action.

        A message that narrates its own dice result instead of rolling
        raises misfortune by one stack.

        Raises:
            ValidationError: The message is empty.
        """
        return await self._message_turn(session, text, store_input=True)

    async def continue_narration(self, session: SessionContext) -> TurnOutcome:
        return await self.send_message(session, CONTINUE_PROMPT)

    async def resend(self, session: SessionContext, message_id: str) -> TurnOutcome:
        """Replay a player message, discarding everything stored after it.

        Character changes made by the discarded turns are kept. The replayed
        message does not raise misfortune a second time.

        Raises:
            RecordNotFoundError: No player message with that id.
        """
        self._ensure_accepting_input(session)
        original = next(
            (m for m in session.messages if m.id == message_id and m.role is MessageRole.USER),
            None,
        )
        if original is None:
            raise RecordNotFoundError("Message to resend not found", record_id=message_id)

        deleted_messages = self.repository.delete_messages_after_timestamp(session.campaign_id, original.created_at)
        deleted_rolls = self.repository.delete_rolls_after_timestamp(session.campaign_id, original.created_at)
        session.messages = [m for m in session.messages if m.created_at <= original.created_at]
        logger.info(
            "Resending message",
            message_id=message_id,
            deleted_messages=deleted_messages,
            deleted_rolls=deleted_rolls,
        )

        content = original.content.strip()
        if is_valid_dice_notation(content):
            return await self.roll(session, content)
        return await self._message_turn(session, content, store_input=False)

    # =========================================================================
    # Level-up
    # =========================================================================

    def allocate_attribute_point(self, session: SessionContext, attribute: str, delta: int = 1) -> bool:
        """Spend pending points; a rejected allocation changes nothing.

        Returns:
            True if the points were spent.
        """
        self._ensure_not_busy(session)
        character, applied = try_allocate_attribute_point(
            session.character,
            attribute,
            self._template(session),
            delta,
        )
        if not applied:
            return False

        changed = {
            name: value
            for name, value in character.attributes.items()
            if session.character.attributes.get(name) != value
        }
        session.character = character
        for name, value in changed.items():
            self.repository.update_character_attribute(character.id, name, value)
        self._persist_progress(character)
        self.repository.update_character_hp(character.id, character.hit_points, character.max_hit_points)
        return True

    def confirm_level_up(self, session: SessionContext) -> Character:
        self._ensure_not_busy(session)
        session.character = confirm_level_up(session.character)
        self._persist_progress(session.character)
        return session.character

    # =========================================================================
    # Turn plumbing
    # =========================================================================

    def _ensure_not_busy(self, session: SessionContext) -> None:
        if session.is_busy:
            raise TurnInProgressError(
                "A turn is already in progress",
                current_state=session.state.value,
                expected_states=[TurnState.IDLE.value, TurnState.AWAITING_ROLL_OR_MESSAGE.value],
            )

    def _ensure_accepting_input(self, session: SessionContext) -> None:
        if session.is_dead:
            raise CharacterDeadError(
                "The character is dead; start a new campaign to keep playing",
                current_state=session.state.value,
            )
        self._ensure_not_busy(session)

    @contextmanager
    def _turn(self, session: SessionContext) -> Iterator[None]:
        """Guard one turn: refuse overlap, restore the prior state on failure."""
        self._ensure_accepting_input(session)
        previous = session.state
        bind_context(campaign_id=session.campaign_id)
        self._transition(session, TurnState.AWAITING_ROLL_OR_MESSAGE)
        session.error = None
        try:
            yield
        except Exception as exc:
            session.error = str(exc)
            if session.state is not TurnState.CHARACTER_DEAD:
                self._transition(session, previous)
            logger.error("Turn failed", error=str(exc), error_type=type(exc).__name__)
            raise

    def _transition(self, session: SessionContext, state: TurnState) -> None:
        if session.state is not state:
            logger.debug("Turn state changed", from_state=session.state.value, to_state=state.value)
        session.state = state

    def _template_name(self, campaign: Campaign) -> str:
        return campaign.system or self.settings.game.default_system

    def _template(self, session: SessionContext) -> SystemTemplate:
        return get_template(self._template_name(session.campaign))

    def _context(self, session: SessionContext) -> NarrativeContext:
        limit = self.settings.game.context_message_limit
        return NarrativeContext(
            campaign=session.campaign,
            messages=session.messages[-limit:],
            recap=session.recap,
            entities=session.entities,
            facts=session.facts,
            character=session.character,
        )

    def _next_timestamp(self, session: SessionContext) -> datetime:
        # Strictly increasing so "after this message" is well defined.
        now = utc_now()
        if session.last_activity_at is not None and now <= session.last_activity_at:
            now = session.last_activity_at + timedelta(microseconds=1)
        session.last_activity_at = now
        return now

    def _emit(self, session: SessionContext, outcome: TurnOutcome, role: MessageRole, content: str) -> Message:
        message = Message(
            campaign_id=session.campaign_id,
            role=role,
            content=content,
            created_at=self._next_timestamp(session),
        )
        self.repository.create_message(message)
        session.messages.append(message)
        outcome.messages.append(message)
        return message

    def _notice(self, session: SessionContext, outcome: TurnOutcome, content: str) -> None:
        self._emit(session, outcome, MessageRole.SYSTEM, content)
        session.notices.append(content)

    def _persist_progress(self, character: Character) -> None:
        self.repository.update_character_progress(
            character.id,
            level=character.level,
            experience=character.experience,
            pending_attribute_points=character.pending_attribute_points,
            level_up_pending=character.level_up_pending,
        )

    # =========================================================================
    # Rolling
    # =========================================================================

    def _resolve_action_notation(self, session: SessionContext, notation: str) -> str:
        bonus = get_equipment_roll_bonus(
            session.character.inventory,
            cap=self.settings.game.equipment_roll_bonus_cap,
        )
        return resolve_attribute_modifiers(notation, session.character, self._template(session), bonus=bonus)

    def _roll(self, session: SessionContext, notation: str, outcome: TurnOutcome) -> RollContext:
        self._transition(session, TurnState.ROLLING_DICE)
        result = self.roller.roll(notation)
        stacks = session.character.misfortune
        effective = apply_misfortune_to_roll(result.total, stacks)

        self.repository.create_roll(
            Roll(
                campaign_id=session.campaign_id,
                notation=result.notation,
                result=result.total,
                breakdown=result.breakdown,
                created_at=self._next_timestamp(session),
            )
        )
        breakdown = get_misfortune_roll_breakdown(result.total, result.breakdown, stacks)
        self._emit(session, outcome, MessageRole.SYSTEM, f"Rolled {result.notation}: {breakdown}")

        decayed = decay_misfortune(stacks)
        if decayed != stacks:
            session.character = session.character.touched(misfortune=decayed)
            self.repository.update_character_misfortune(session.character.id, decayed)

        outcome.roll = result
        outcome.effective_total = effective
        logger.info(
            "Turn roll resolved",
            notation=result.notation,
            total=result.total,
            effective=effective,
            misfortune=decayed,
        )
        return RollContext(
            notation=result.notation,
            total=result.total,
            effective_total=effective,
            breakdown=breakdown,
            misfortune_penalty=get_misfortune_penalty(stacks),
        )

    @staticmethod
    def _resolve_dc(result: RollResult, effective_total: int, dc: int) -> ResolutionResult:
        parsed = parse_dice_notation(result.notation)
        natural = result.rolls[0] if parsed.count == 1 and parsed.sides == 20 else None
        return resolve_action(
            effective_total,
            0,
            dc,
            is_natural_1=natural == 1,
            is_natural_20=natural == 20,
        )

    # =========================================================================
    # Narration
    # =========================================================================

    async def _message_turn(self, session: SessionContext, text: str, *, store_input: bool) -> TurnOutcome:
        content = text.strip()
        if not content:
            raise ValidationError("Message cannot be empty", field_name="text", invalid_value=text)

        outcome = TurnOutcome(state=session.state)
        with self._turn(session):
            claimed = detect_claimed_roll(content)
            if store_input:
                self._emit(session, outcome, MessageRole.USER, content)
                if claimed is not None:
                    stacks = increase_misfortune(session.character.misfortune)
                    session.character = session.character.touched(misfortune=stacks)
                    self.repository.update_character_misfortune(session.character.id, stacks)
                    logger.warning("Claimed roll detected", claimed=claimed, misfortune=stacks)

            request = NarrativeRequest(
                kind=NarrativeKind.MESSAGE,
                context=self._context(session),
                action=content,
                claimed_roll=claimed,
            )
            response = await self._narrate(session, request)
            return await self._complete_turn(session, response, outcome)

    def _chunk_sink(self, session: SessionContext) -> "ChunkCallback":
        def sink(chunk: str) -> None:
            session.streamed_content += chunk
            if self._on_chunk is not None:
                self._on_chunk(chunk)

        return sink

    async def _narrate(self, session: SessionContext, request: NarrativeRequest) -> NarrativeResponse:
        self._transition(session, TurnState.AWAITING_NARRATIVE)
        session.streamed_content = ""
        try:
            return await self.generator.generate(request, self._chunk_sink(session))
        finally:
            session.streamed_content = ""

    async def _complete_turn(
        self,
        session: SessionContext,
        response: NarrativeResponse,
        outcome: TurnOutcome,
    ) -> TurnOutcome:
        if response.used_fallback:
            self._notice(session, outcome, OFFLINE_NOTICE)
        self._emit(session, outcome, MessageRole.AI, response.content)
        outcome.narrative = response.content
        outcome.used_fallback = response.used_fallback

        self._transition(session, TurnState.APPLYING_EFFECTS)
        lethal = self._apply_character_effects(session, response.character_effects, outcome)
        self._apply_item_drops(session, response.item_drops, outcome)
        if response.xp_award:
            self._apply_xp(session, response.xp_award, outcome)

        if lethal:
            await self._narrate_death(session, outcome)
            return outcome

        session.suggested_actions = list(response.suggested_actions)
        session.pending_roll = response.roll_request
        outcome.suggested_actions = list(response.suggested_actions)
        outcome.roll_request = response.roll_request
        self._transition(
            session,
            TurnState.AWAITING_ROLL_OR_MESSAGE if response.roll_request else TurnState.IDLE,
        )
        outcome.state = session.state
        return outcome

    async def _narrate_death(self, session: SessionContext, outcome: TurnOutcome) -> None:
        character = session.character
        self._transition(session, TurnState.CHARACTER_DEAD)
        session.pending_roll = None
        session.suggested_actions = []
        outcome.died = True
        outcome.state = session.state
        logger.warning("Character died", character_id=character.id, name=character.name)

        request = NarrativeRequest(
            kind=NarrativeKind.DEATH,
            context=self._context(session),
            death_trigger=format_death_prompt(character.name, session.campaign.tone),
        )
        try:
            response = await self.generator.generate(request, self._chunk_sink(session))
        except Exception:
            logger.exception("Death narration failed, using fallback")
            self._emit(
                session,
                outcome,
                MessageRole.SYSTEM,
                format_game_over(DEATH_FALLBACK.format(name=character.name)),
            )
        else:
            self._emit(session, outcome, MessageRole.AI, format_game_over(response.content))
        finally:
            session.streamed_content = ""

    # =========================================================================
    # Effects
    # =========================================================================

    def _apply_character_effects(
        self,
        session: SessionContext,
        effects: list[CharacterEffect],
        outcome: TurnOutcome,
    ) -> bool:
        """Apply effects in order; True if hit points reached 0 at any point."""
        lethal = False
        for effect in effects:
            try:
                applied = self._apply_effect(session, effect, outcome)
            except Exception as exc:
                logger.exception("Character effect failed", effect_type=effect.type)
                outcome.applied_effects.append(AppliedEffect(effect=effect, applied=False, error=str(exc)))
                continue
            outcome.applied_effects.append(applied)
            if session.character.hit_points <= 0:
                lethal = True
        return lethal

    def _apply_effect(
        self,
        session: SessionContext,
        effect: CharacterEffect,
        outcome: TurnOutcome,
    ) -> AppliedEffect:
        character = session.character

        if isinstance(effect, (DamageEffect, DamageRollEffect)):
            if isinstance(effect, DamageRollEffect):
                damage_roll = self.roller.roll(effect.roll_notation)
                amount = max(0, damage_roll.total)
            else:
                amount = effect.amount
            result = take_damage(character, amount, minimum_damage=self.settings.game.minimum_damage)
            session.character = result.character
            self.repository.update_character_hp(
                character.id, result.character.hit_points, result.character.max_hit_points
            )
            self._emit(session, outcome, MessageRole.SYSTEM, f"You take {result.applied} damage!")
            return AppliedEffect(effect=effect, applied=True, hit_point_change=-result.applied)

        if isinstance(effect, HealEffect):
            healed = heal(character, effect.amount)
            session.character = healed
            self.repository.update_character_hp(character.id, healed.hit_points, healed.max_hit_points)
            recovered = healed.hit_points - character.hit_points
            self._emit(session, outcome, MessageRole.SYSTEM, f"You recover {recovered} HP!")
            return AppliedEffect(effect=effect, applied=True, hit_point_change=recovered)

        template = self._template(session)
        if isinstance(effect, SpendResourceEffect):
            updated = spend_resource(character, effect.resource_name, effect.amount, template)
            verb = "spent"
        elif isinstance(effect, RestoreResourceEffect):
            updated = restore_resource(character, effect.resource_name, effect.amount, template)
            verb = "restored"
        else:
            raise TypeError(f"Unsupported character effect: {effect!r}")

        definition = find_resource(template, effect.resource_name)
        key = definition.name if definition else effect.resource_name
        session.character = updated
        self.repository.update_character_resource(character.id, key, (updated.resources or {})[key])
        label = definition.display_name if definition else key
        self._emit(session, outcome, MessageRole.SYSTEM, f"{label} {verb}: {effect.amount}")
        return AppliedEffect(effect=effect, applied=True)

    def _apply_item_drops(self, session: SessionContext, drops: list[ItemDrop], outcome: TurnOutcome) -> None:
        if not drops:
            return
        try:
            character, added = apply_item_drops(session.character, drops)
            if not added:
                return
            session.character = character
            self.repository.update_character_inventory(
                character.id,
                character.inventory,
                equipped_weapon=character.equipped_weapon,
                equipped_armor=character.equipped_armor,
            )
            outcome.items_added.extend(added)
            names = ", ".join(f"{item.name} x{item.quantity}" for item in added)
            self._emit(session, outcome, MessageRole.SYSTEM, f"Received: {names}")
        except Exception:
            logger.exception("Item drops failed", drops=len(drops))

    def _apply_xp(self, session: SessionContext, xp: int, outcome: TurnOutcome) -> None:
        try:
            update = update_experience(session.character, xp, self._template(session))
            session.character = update.character
            self._persist_progress(update.character)
            outcome.xp_change = xp
            self._emit(session, outcome, MessageRole.SYSTEM, format_xp_award_message(xp, STORY_XP_REASON))
            if update.leveled_up or update.leveled_down:
                self.repository.update_character_hp(
                    update.character.id,
                    update.character.hit_points,
                    update.character.max_hit_points,
                )
            if update.leveled_up:
                outcome.leveled_up = True
                self._emit(session, outcome, MessageRole.SYSTEM, format_level_up_message(update.new_level))
            elif update.leveled_down:
                outcome.leveled_down = True
                self._emit(session, outcome, MessageRole.SYSTEM, format_level_down_message(update.new_level))
        except Exception:
            logger.exception("XP award failed", xp=xp)


__all__ = [
    "TurnState",
    "SessionContext",
    "AppliedEffect",
    "TurnOutcome",
    "TurnOrchestrator",
    "CONTINUE_PROMPT",
]
