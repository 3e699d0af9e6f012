"""System-independent d20 resolution against a difficulty class.

DCs describe narrative risk rather than any particular rulebook:
10 is trivial under pressure, 30 is nearly suicidal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ResolutionOutcome(StrEnum):
    CRITICAL_FAILURE = "critical_failure"
    FAILURE = "failure"
    SUCCESS = "success"
    CRITICAL_SUCCESS = "critical_success"


NARRATIVE_GUIDANCE: dict[ResolutionOutcome, str] = {
    ResolutionOutcome.CRITICAL_FAILURE: "Situation worsens significantly. Apply cost and complication.",
    ResolutionOutcome.FAILURE: "Objective not achieved. Apply narrative cost but advance the story.",
    ResolutionOutcome.SUCCESS: "Objective achieved as intended.",
    ResolutionOutcome.CRITICAL_SUCCESS: "Objective achieved with extra benefit or opportunity.",
}

NARRATIVE_DC_GUIDE: dict[int, str] = {
    10: "Trivial under pressure",
    15: "Common challenge",
    20: "High risk",
    25: "Extremely dangerous",
    30: "Nearly suicidal",
}


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of a check.

    Attributes:
        outcome: Success tier.
        roll_total: Roll plus modifier.
        dc: Difficulty class checked against.
        margin: ``roll_total - dc``.
        narrative_guidance: How the narration should treat the outcome.
    """

    outcome: ResolutionOutcome
    roll_total: int
    dc: int
    margin: int
    narrative_guidance: str


def resolve_action(
    roll: int,
    modifier: int,
    dc: int,
    *,
    is_natural_1: bool | None = None,
    is_natural_20: bool | None = None,
) -> ResolutionResult:
    """Resolve a check.

    A natural 1 or missing by more than 10 is a critical failure; a natural
    20 or beating the DC by 10 or more is a critical success.

    Args:
        roll: The rolled value.
        modifier: Extra modifier added to ``roll``.
        dc: Difficulty class.
        is_natural_1: Override for natural-1 detection (defaults to ``roll == 1``).
        is_natural_20: Override for natural-20 detection (defaults to ``roll == 20``).

    Returns:
        The ResolutionResult.
    """
    natural_1 = roll == 1 if is_natural_1 is None else is_natural_1
    natural_20 = roll == 20 if is_natural_20 is None else is_natural_20
    total = roll + modifier
    margin = total - dc

    if natural_1 or margin < -10:
        outcome = ResolutionOutcome.CRITICAL_FAILURE
    elif margin < 0:
        outcome = ResolutionOutcome.FAILURE
    elif natural_20 or margin >= 10:
        outcome = ResolutionOutcome.CRITICAL_SUCCESS
    else:
        outcome = ResolutionOutcome.SUCCESS

    return ResolutionResult(
        outcome=outcome,
        roll_total=total,
        dc=dc,
        margin=margin,
        narrative_guidance=NARRATIVE_GUIDANCE[outcome],
    )


def get_narrative_risk(dc: int) -> str:
    """Label of the guide DC closest to ``dc``; ties go to the lower DC."""
    closest = min(NARRATIVE_DC_GUIDE, key=lambda guide_dc: (abs(guide_dc - dc), guide_dc))
    return NARRATIVE_DC_GUIDE[closest]


__all__ = [
    "ResolutionOutcome",
    "ResolutionResult",
    "NARRATIVE_DC_GUIDE",
    "NARRATIVE_GUIDANCE",
    "resolve_action",
    "get_narrative_risk",
]
