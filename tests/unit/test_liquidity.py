"""
Tests for balance-sheet liquidity ratios.
"""

import pytest

from risk_analytics.exceptions import DomainError
from risk_analytics.liquidity import assess_liquidity


class TestAssessLiquidity:

    def test_low_risk_balance_sheet(self):
        m = assess_liquidity(100.0, 200.0, 1_000.0, 150.0, 400.0)
        assert m.liquidity_buffer == pytest.approx(300.0)
        assert m.liquidity_coverage_ratio == pytest.approx(300.0 / 45.0)
        assert m.net_stable_funding_ratio == pytest.approx(0.85)
        assert m.cash_ratio == pytest.approx(100.0 / 150.0)
        assert m.quick_ratio == pytest.approx(2.0)
        assert m.liquidity_risk == "LOW"

    def test_medium_risk_on_thin_quick_ratio(self):
        m = assess_liquidity(80.0, 100.0, 1_000.0, 150.0, 400.0)
        assert m.quick_ratio == pytest.approx(1.2)
        assert m.liquidity_risk == "MEDIUM"

    def test_high_risk_when_quick_ratio_below_one(self):
        m = assess_liquidity(50.0, 50.0, 1_000.0, 150.0, 400.0)
        assert m.quick_ratio == pytest.approx(100.0 / 150.0)
        assert m.liquidity_risk == "HIGH"

    def test_zero_buffer(self):
        m = assess_liquidity(0.0, 0.0, 1_000.0, 150.0, 150.0)
        assert m.liquidity_coverage_ratio == 0.0
        assert m.liquidity_risk == "HIGH"

    def test_to_dict(self):
        data = assess_liquidity(100.0, 200.0, 1_000.0, 150.0, 400.0).to_dict()
        assert data["liquidity_risk"] == "LOW"

    @pytest.mark.parametrize(
        "args",
        [
            (100.0, 200.0, 0.0, 150.0, 400.0),
            (100.0, 200.0, -5.0, 150.0, 400.0),
            (100.0, 200.0, 1_000.0, 0.0, 400.0),
            (100.0, 200.0, 1_000.0, 150.0, 100.0),
        ],
    )
    def test_invalid_balance_sheet(self, args):
        with pytest.raises(DomainError):
            assess_liquidity(*args)
