"""Tests for cost arbitration."""

from __future__ import annotations

import pytest

from tactician.core.exceptions import CostOverrunError
from tactician.engine.arbiter import arbitrate_cost, check_affordable
from tactician.models import CostSource, CostValue, ResolutionResult


def _resolution(
    primary_cost: CostValue | None = None,
    *,
    is_combo: bool = False,
    cost_source: CostSource = CostSource.CATALOG,
) -> ResolutionResult:
    return ResolutionResult(
        primary_cost=primary_cost,
        is_combo=is_combo,
        cost_source=cost_source,
    )


class TestArbitrateCost:
    """Tests for the arbitration rules."""

    def test_catalog_beats_llm(self) -> None:
        """Test a concrete catalog cost overrides the model's claim."""
        resolution = _resolution(CostValue.of(2))
        assert arbitrate_cost(resolution, CostValue.of(1)) == CostValue.of(2)

    def test_catalog_reaction(self) -> None:
        """Test catalog reactions are kept."""
        resolution = _resolution(CostValue.reaction())
        assert arbitrate_cost(resolution, CostValue.of(1)) == CostValue.reaction()

    def test_combo_trusts_llm_total(self) -> None:
        """Test a combo uses the model's total."""
        resolution = _resolution(CostValue.of(1), is_combo=True)
        assert arbitrate_cost(resolution, CostValue.of(2)) == CostValue.of(2)

    def test_combo_without_llm_cost(self) -> None:
        """Test a combo falls back to the primary's cost."""
        resolution = _resolution(CostValue.of(1), is_combo=True)
        assert arbitrate_cost(resolution, None) == CostValue.of(1)

    def test_combo_with_range_primary(self) -> None:
        """Test a combo with a range primary and no LLM cost."""
        resolution = _resolution(CostValue.range(1, 3), is_combo=True)
        assert arbitrate_cost(resolution, None) == CostValue.of(1)

    @pytest.mark.parametrize("claimed", [1, 2, 3])
    def test_range_uses_llm_choice(self, claimed: int) -> None:
        """Test a variable-cost spell takes the model's action count."""
        resolution = _resolution(CostValue.range(1, 3))
        assert arbitrate_cost(resolution, CostValue.of(claimed)) == CostValue.of(claimed)

    def test_range_without_usable_llm_cost(self) -> None:
        """Test a range falls back to its minimum."""
        resolution = _resolution(CostValue.range(2, 3))

        assert arbitrate_cost(resolution, None) == CostValue.of(2)
        assert arbitrate_cost(resolution, CostValue.free()) == CostValue.of(2)

    def test_llm_cost_when_unmatched(self) -> None:
        """Test the model's cost is used when nothing matched."""
        resolution = _resolution(None, cost_source=CostSource.LLM)
        assert arbitrate_cost(resolution, CostValue.of(2)) == CostValue.of(2)

    def test_default_one_action(self) -> None:
        """Test the last-resort default."""
        resolution = _resolution(None, cost_source=CostSource.LLM)
        assert arbitrate_cost(resolution, None) == CostValue.of(1)

    def test_result_is_never_a_range(self) -> None:
        """Test every rule yields a concrete cost."""
        for resolution in (
            _resolution(CostValue.range(1, 3)),
            _resolution(CostValue.range(1, 3), is_combo=True),
            _resolution(None, cost_source=CostSource.LLM),
        ):
            assert arbitrate_cost(resolution, None).is_concrete


class TestCheckAffordable:
    """Tests for the affordability check."""

    def test_fits(self) -> None:
        """Test a cost within the actions left returns its minimum."""
        assert check_affordable(CostValue.of(2), 2) == 2
        assert check_affordable(CostValue.reaction(), 0) == 0

    def test_overrun(self) -> None:
        """Test a cost above the actions left raises."""
        with pytest.raises(CostOverrunError) as exc_info:
            check_affordable(CostValue.of(2), 1, combatant_id="owlbear")

        assert exc_info.value.details["required"] == 2
        assert exc_info.value.details["remaining"] == 1
        assert exc_info.value.details["combatant_id"] == "owlbear"
