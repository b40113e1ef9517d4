"""
Tests for historical and parametric VaR / ES.
"""

import math

import numpy as np
import pytest
from scipy import stats

from risk_analytics.config import DEFAULT_CONFIG
from risk_analytics.exceptions import DomainError, InsufficientDataError
from risk_analytics.risk_metrics import (
    compute_historical_es,
    compute_historical_var,
    compute_parametric_es,
    compute_parametric_var,
    historical_risk_metrics,
    parametric_risk_metrics,
)


class TestHistorical:

    @pytest.fixture
    def returns(self):
        return -np.arange(1, 101) / 100.0

    def test_var_is_loss_quantile(self, returns):
        assert compute_historical_var(returns, 0.99) == pytest.approx(
            np.percentile(-returns, 99)
        )

    def test_es_averages_tail(self, returns):
        assert compute_historical_es(returns, 0.99) == pytest.approx(1.0)
        assert compute_historical_es(returns, 0.95) >= compute_historical_var(returns, 0.95)

    def test_suite_keys(self, returns):
        metrics = historical_risk_metrics(returns)
        assert set(metrics) == {"hist_var_95", "hist_es_95", "hist_var_99", "hist_es_99"}
        assert metrics["hist_var_95"] <= metrics["hist_var_99"]

    def test_empty_series(self):
        with pytest.raises(InsufficientDataError):
            compute_historical_var([], 0.99)
        with pytest.raises(InsufficientDataError):
            compute_historical_es([], 0.99)


class TestParametric:

    def test_var_formula(self):
        sigma = 0.25 / math.sqrt(252)
        assert compute_parametric_var(sigma, 0.99, 100_000) == pytest.approx(
            2.326348 * sigma * 100_000, rel=1e-6
        )

    def test_var_scales_with_root_horizon(self):
        assert compute_parametric_var(0.01, 0.95, 1.0, 10) == pytest.approx(
            math.sqrt(10) * compute_parametric_var(0.01, 0.95)
        )

    def test_es_matches_scipy(self):
        for level in (0.95, 0.99):
            expected = 0.02 * stats.norm.pdf(stats.norm.ppf(level)) / (1 - level) * 50_000
            assert compute_parametric_es(0.02, level, 50_000) == pytest.approx(expected, rel=1e-6)

    def test_es_exceeds_var(self):
        for level in (0.9, 0.95, 0.99):
            assert compute_parametric_es(0.01, level) > compute_parametric_var(0.01, level)

    def test_zero_volatility(self):
        assert compute_parametric_var(0.0, 0.99, 1_000) == 0.0
        assert compute_parametric_es(0.0, 0.99, 1_000) == 0.0

    @pytest.mark.parametrize("std", [-0.01, float("nan"), float("inf")])
    def test_invalid_std(self, std):
        with pytest.raises(DomainError):
            compute_parametric_var(std)
        with pytest.raises(DomainError):
            compute_parametric_es(std)

    def test_invalid_confidence(self):
        with pytest.raises(DomainError):
            compute_parametric_var(0.01, 1.0)

    @pytest.mark.parametrize("level", [0.3, 0.4, 0.5])
    def test_low_confidence_floored_at_zero(self, level):
        assert compute_parametric_var(0.01, level, 10_000) == 0.0

    def test_suite_uses_config(self):
        config = DEFAULT_CONFIG.with_overrides(horizon_days=10, confidence_levels=(0.9, 0.975))
        metrics = parametric_risk_metrics(0.01, 1_000.0, config)
        assert set(metrics) == {"param_var_90", "param_es_90", "param_var_97_5", "param_es_97_5"}
        assert metrics["param_var_90"] == pytest.approx(
            stats.norm.ppf(0.9) * 0.01 * math.sqrt(10) * 1_000.0, rel=1e-6
        )
