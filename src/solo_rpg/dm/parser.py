"""Tagged-output parsing for raw narrative text.

Generators that return plain text embed game effects as inline tags::

    The goblin's blade bites. <damage_roll>1d6</damage_roll>
    <item_drop id="dagger" qty="1"/> <xp>25</xp>
    <actions><action id="a1" label="Flee" roll="d20+DEX" dc="12">Run for the door</action></actions>

``parse_narrative_output`` turns such text into a NarrativeResponse with the
tags removed from ``content``. Effects keep their order of appearance.
Malformed tags are left out rather than failing the whole response.
"""

from __future__ import annotations

import re

from solo_rpg.core.logging import get_logger
from solo_rpg.dm.narrative import NarrativeResponse, SuggestedAction
from solo_rpg.models.effects import (
    CharacterEffect,
    DamageEffect,
    DamageRollEffect,
    HealEffect,
    RestoreResourceEffect,
    SpendResourceEffect,
)
from solo_rpg.models.inventory import ItemDrop


logger = get_logger(__name__)


_EFFECT_TAG = re.compile(
    r"<damage>\s*(?P<damage>\d+)\s*</damage>"
    r"|<damage_roll>\s*(?P<damage_roll>[^<]+?)\s*</damage_roll>"
    r"|<heal>\s*(?P<heal>\d+)\s*</heal>"
    r'|<spend_resource\s+name="(?P<spend_name>[^"]+)"\s*>\s*(?P<spend>\d+)\s*</spend_resource>'
    r'|<restore_resource\s+name="(?P<restore_name>[^"]+)"\s*>\s*(?P<restore>\d+)\s*</restore_resource>',
    re.IGNORECASE,
)
_XP_TAG = re.compile(r"<(?P<tag>xp|xp_award)>\s*(?P<value>[+-]?\d+)\s*</(?P=tag)>", re.IGNORECASE)
_ITEM_DROP_TAG = re.compile(
    r'<item_drop\s+id="(?P<id>[^"]+)"(?:\s+qty="(?P<qty>\d+)")?\s*'
    r"(?:/>|>\s*(?P<body>\d+)\s*</item_drop>)",
    re.IGNORECASE,
)
_ACTIONS_BLOCK = re.compile(r"<actions>(?P<body>[\s\S]*?)</actions>", re.IGNORECASE)
_ACTION_TAG = re.compile(r"<action\s+(?P<attrs>[^>]*)>(?P<text>[^<]*)</action>", re.IGNORECASE)
_ATTRIBUTE = re.compile(r'(\w+)="([^"]*)"')

_DICE_TERMS = r"\d*d\d+(?:[+-](?:\d+|[a-z]+))*"
_DC_ROLL_REQUEST = re.compile(rf"(Roll to [^.]+\.|role {_DICE_TERMS} para [^.]+\.)\s*\(DC:\s*\d+\)", re.IGNORECASE)
_ROLL_DICE = re.compile(rf"\b(?:Roll|role)\s+({_DICE_TERMS})", re.IGNORECASE)
_BARE_DICE = re.compile(r"(\d*d\d+)", re.IGNORECASE)


def parse_character_effects(text: str) -> list[CharacterEffect]:
    """Effects from ``<damage>``, ``<damage_roll>``, ``<heal>`` and resource tags, in order."""
    effects: list[CharacterEffect] = []
    for match in _EFFECT_TAG.finditer(text):
        if match.group("damage") is not None:
            effects.append(DamageEffect(amount=int(match.group("damage"))))
        elif match.group("damage_roll") is not None:
            effects.append(DamageRollEffect(roll_notation=match.group("damage_roll").strip()))
        elif match.group("heal") is not None:
            effects.append(HealEffect(amount=int(match.group("heal"))))
        elif match.group("spend") is not None:
            effects.append(
                SpendResourceEffect(
                    resource_name=match.group("spend_name").strip(),
                    amount=int(match.group("spend")),
                )
            )
        else:
            effects.append(
                RestoreResourceEffect(
                    resource_name=match.group("restore_name").strip(),
                    amount=int(match.group("restore")),
                )
            )
    return effects


def parse_xp_award(text: str) -> int | None:
    """Sum of ``<xp>`` / ``<xp_award>`` values, or None when there are none."""
    values = [int(match.group("value")) for match in _XP_TAG.finditer(text)]
    return sum(values) if values else None


def parse_item_drops(text: str) -> list[ItemDrop]:
    drops: list[ItemDrop] = []
    for match in _ITEM_DROP_TAG.finditer(text):
        quantity = match.group("qty") or match.group("body") or "1"
        drops.append(ItemDrop(item_id=match.group("id").strip(), quantity=int(quantity)))
    return drops


def parse_suggested_actions(text: str) -> list[SuggestedAction]:
    """Actions from the first ``<actions>`` block. Attribute order does not matter."""
    block = _ACTIONS_BLOCK.search(text)
    if not block:
        return []

    actions: list[SuggestedAction] = []
    for index, match in enumerate(_ACTION_TAG.finditer(block.group("body")), start=1):
        attrs = {key.lower(): value.strip() for key, value in _ATTRIBUTE.findall(match.group("attrs"))}
        action_text = match.group("text").strip()
        dc = attrs.get("dc")
        actions.append(
            SuggestedAction(
                id=attrs.get("id") or f"action-{index}",
                label=attrs.get("label") or action_text,
                action=action_text,
                roll_notation=attrs.get("roll") or None,
                dc=int(dc) if dc and dc.lstrip("-").isdigit() else None,
            )
        )
    return actions


def parse_roll_request(text: str) -> str | None:
    """Dice notation the narration asks the player to roll, if any."""
    match = _ROLL_DICE.search(text)
    if match:
        return match.group(1)
    if _DC_ROLL_REQUEST.search(text):
        return "d20"

    last_paragraph = text.split("\n\n")[-1]
    if re.search(r"roll|role", last_paragraph, re.IGNORECASE) and re.search(r"DC", last_paragraph, re.IGNORECASE):
        dice = _BARE_DICE.search(last_paragraph)
        return dice.group(1) if dice else "d20"
    return None


def strip_tags(text: str) -> str:
    """Remove every control tag and tidy the leftover whitespace."""
    for pattern in (_ACTIONS_BLOCK, _EFFECT_TAG, _XP_TAG, _ITEM_DROP_TAG):
        text = pattern.sub("", text)
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def parse_narrative_output(raw: str, *, used_fallback: bool = False) -> NarrativeResponse:
    """Turn tagged narrative text into a NarrativeResponse.

    Args:
        raw: Generator output with inline tags.
        used_fallback: Mark the response as coming from a degraded backend.

    Returns:
        The parsed NarrativeResponse.
    """
    content = strip_tags(raw)
    response = NarrativeResponse(
        content=content,
        character_effects=parse_character_effects(raw),
        item_drops=parse_item_drops(raw),
        xp_award=parse_xp_award(raw),
        roll_request=parse_roll_request(content),
        suggested_actions=parse_suggested_actions(raw),
        used_fallback=used_fallback,
    )
    logger.debug(
        "Narrative output parsed",
        effects=len(response.character_effects),
        drops=len(response.item_drops),
        xp=response.xp_award,
        actions=len(response.suggested_actions),
    )
    return response


__all__ = [
    "parse_character_effects",
    "parse_xp_award",
    "parse_item_drops",
    "parse_suggested_actions",
    "parse_roll_request",
    "strip_tags",
    "parse_narrative_output",
]
