"""Turn-resolution engine.

Submodules:
    dice: Dice notation parsing and rolling
    misfortune: Anti-cheat penalty for narrated dice results
    notation: Attribute-aware roll notation (``d20+STR``)
    resolution: Success tiers against a difficulty class
    orchestrator: The per-turn state machine (import it from
        ``solo_rpg.engine.orchestrator``; it depends on ``solo_rpg.dm``)

Example:
    >>> from solo_rpg.engine import DiceRoller, apply_misfortune_to_roll
    >>> result = DiceRoller(seed=7).roll("d20")
    >>> apply_misfortune_to_roll(result.total, stacks=2) >= 1
    True
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from solo_rpg.engine.dice import (
    DiceNotation,
    DiceRoller,
    RollResult,
    RollType,
    format_dice_notation,
    is_valid_dice_notation,
    parse_dice_notation,
    roll_dice,
)

# =============================================================================
# Misfortune
# =============================================================================
from solo_rpg.engine.misfortune import (
    MISFORTUNE_MAX,
    apply_misfortune_to_roll,
    decay_misfortune,
    detect_claimed_roll,
    get_misfortune_penalty,
    increase_misfortune,
)

# =============================================================================
# Notation and Resolution
# =============================================================================
from solo_rpg.engine.notation import apply_roll_bonus, resolve_attribute_modifiers
from solo_rpg.engine.resolution import (
    ResolutionOutcome,
    ResolutionResult,
    get_narrative_risk,
    resolve_action,
)

__all__ = [
    # Dice
    "DiceNotation",
    "DiceRoller",
    "RollResult",
    "RollType",
    "parse_dice_notation",
    "is_valid_dice_notation",
    "format_dice_notation",
    "roll_dice",
    # Misfortune
    "MISFORTUNE_MAX",
    "detect_claimed_roll",
    "get_misfortune_penalty",
    "apply_misfortune_to_roll",
    "increase_misfortune",
    "decay_misfortune",
    # Notation / resolution
    "resolve_attribute_modifiers",
    "apply_roll_bonus",
    "ResolutionOutcome",
    "ResolutionResult",
    "resolve_action",
    "get_narrative_risk",
]
