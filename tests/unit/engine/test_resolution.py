"""Tests for DC resolution."""

from __future__ import annotations

import pytest

from solo_rpg.engine.resolution import (
    NARRATIVE_GUIDANCE,
    ResolutionOutcome,
    get_narrative_risk,
    resolve_action,
)


class TestResolveAction:
    """Tests for resolve_action."""

    @pytest.mark.parametrize(
        ("roll", "modifier", "dc", "outcome"),
        [
            (12, 3, 15, ResolutionOutcome.SUCCESS),
            (10, 3, 15, ResolutionOutcome.FAILURE),
            (15, 10, 15, ResolutionOutcome.CRITICAL_SUCCESS),
            (2, 0, 15, ResolutionOutcome.CRITICAL_FAILURE),
            (20, -5, 25, ResolutionOutcome.FAILURE),
            (20, -10, 30, ResolutionOutcome.CRITICAL_FAILURE),
            (1, 30, 10, ResolutionOutcome.CRITICAL_FAILURE),
        ],
    )
    def test_outcome_tiers(self, roll: int, modifier: int, dc: int, outcome: ResolutionOutcome) -> None:
        """Test margins and natural results map to tiers."""
        result = resolve_action(roll, modifier, dc)

        assert result.outcome is outcome
        assert result.roll_total == roll + modifier
        assert result.margin == roll + modifier - dc
        assert result.narrative_guidance == NARRATIVE_GUIDANCE[outcome]

    def test_natural_overrides(self) -> None:
        """Test explicit natural flags replace value-based detection."""
        assert resolve_action(20, 0, 25, is_natural_20=False).outcome is ResolutionOutcome.FAILURE
        assert resolve_action(9, 0, 5, is_natural_1=True).outcome is ResolutionOutcome.CRITICAL_FAILURE


class TestNarrativeRisk:
    """Tests for get_narrative_risk."""

    @pytest.mark.parametrize(
        ("dc", "label"),
        [(5, "Trivial under pressure"), (15, "Common challenge"), (17, "Common challenge"), (40, "Nearly suicidal")],
    )
    def test_nearest_label(self, dc: int, label: str) -> None:
        """Test the nearest guide entry is used."""
        assert get_narrative_risk(dc) == label

    def test_between_entries(self) -> None:
        """Test DCs between guide entries snap to the closer one."""
        assert get_narrative_risk(22) == "High risk"
        assert get_narrative_risk(12) == "Trivial under pressure"
