"""Misfortune, the anti-cheat bad-luck counter.

A player who narrates a die result ("I rolled a 20") instead of letting
the engine roll gains a misfortune stack. Stacks lower the narrative-facing
value of later engine rolls by one point each and decay by one per honest
roll. The stored roll is never altered.

Claim detection is a fixed multilingual pattern list (English, Portuguese,
Spanish). It is a heuristic: some claims slip through and a sentence like
"he rolled 20 barrels" will still count.
"""

from __future__ import annotations

import re

from solo_rpg.core.logging import get_logger


logger = get_logger(__name__)

MISFORTUNE_MAX = 5
MISFORTUNE_PENALTY_PER_STACK = 1
MISFORTUNE_DECAY_PER_HONEST_ROLL = 1

_MIN_MESSAGE_LENGTH = 5

CLAIMED_ROLL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Portuguese
        r"\b(?:tirei|rolei|rolou|rolamos)\s*(?:um?\s*)?(\d{1,2})\b",
        r"\b(?:dado|dados?)\s*(?:deu|deu\s+em|resultou\s+em)?\s*(\d{1,2})\b",
        r"\b(?:natural\s+)?(\d{1,2})\s*(?:no\s+dado|nos\s+dados)\b",
        # English
        r"\b(?:rolled|rolled\s+a|got|got\s+a)\s*(?:natural\s+)?(\d{1,2})\b",
        r"\b(?:natural\s+)?(\d{1,2})\s*(?:on\s+the\s+die|on\s+dice)\b",
        r"\b(?:the\s+die\s+showed|dice\s+showed)\s*(\d{1,2})\b",
        # Spanish
        r"\b(?:tir[eé]|saqu[eé]|sali[oó])\s*(?:un?\s*)?(\d{1,2})\b",
        r"\b(?:dado|dados?)\s*(?:sali[oó]|dio)\s*(\d{1,2})\b",
    )
)


def detect_claimed_roll(message: str) -> int | None:
    """Find a narrated die result in free text.

    Args:
        message: Player message.

    Returns:
        The first claimed value in [1, 20], or None.
    """
    text = message.strip()
    if len(text) < _MIN_MESSAGE_LENGTH:
        return None
    for pattern in CLAIMED_ROLL_PATTERNS:
        match = pattern.search(text)
        if match:
            value = int(match.group(1))
            if 1 <= value <= 20:
                logger.info("Claimed roll detected", claimed=value)
                return value
    return None


def get_misfortune_penalty(stacks: int) -> int:
    """Roll penalty for ``stacks``; capped at MISFORTUNE_MAX stacks."""
    if stacks <= 0:
        return 0
    return min(stacks, MISFORTUNE_MAX) * MISFORTUNE_PENALTY_PER_STACK


def apply_misfortune_to_roll(total: int, stacks: int) -> int:
    """Narrative-facing result of a roll: ``max(1, total - penalty)``."""
    return max(1, total - get_misfortune_penalty(stacks))


def get_misfortune_roll_breakdown(total: int, breakdown: str, stacks: int) -> str:
    """Append the effective value to a breakdown when a penalty applies."""
    if get_misfortune_penalty(stacks) <= 0:
        return breakdown
    return f"{breakdown} [misfortune: {apply_misfortune_to_roll(total, stacks)}]"


def increase_misfortune(stacks: int) -> int:
    return min(MISFORTUNE_MAX, max(0, stacks) + 1)


def decay_misfortune(stacks: int) -> int:
    return max(0, stacks - MISFORTUNE_DECAY_PER_HONEST_ROLL)


__all__ = [
    "MISFORTUNE_MAX",
    "MISFORTUNE_PENALTY_PER_STACK",
    "MISFORTUNE_DECAY_PER_HONEST_ROLL",
    "CLAIMED_ROLL_PATTERNS",
    "detect_claimed_roll",
    "get_misfortune_penalty",
    "apply_misfortune_to_roll",
    "get_misfortune_roll_breakdown",
    "increase_misfortune",
    "decay_misfortune",
]
