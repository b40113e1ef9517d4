"""
Tests for engine configuration.
"""

import pytest

from risk_analytics.config import DEFAULT_CONFIG, RiskEngineConfig, level_key
from risk_analytics.exceptions import DomainError


class TestRiskEngineConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.risk_free_rate == 0.03
        assert DEFAULT_CONFIG.monte_carlo_iterations == 10_000
        assert DEFAULT_CONFIG.confidence_levels == (0.95, 0.99)
        assert DEFAULT_CONFIG.simulation_method == "gaussian"

    def test_with_overrides_returns_copy(self):
        config = DEFAULT_CONFIG.with_overrides(random_seed=1, horizon_days=5)
        assert config.random_seed == 1
        assert config.horizon_days == 5
        assert DEFAULT_CONFIG.random_seed == 42

    @pytest.mark.parametrize(
        "overrides",
        [
            {"monte_carlo_iterations": 500},
            {"confidence_levels": (0.99, 0.95)},
            {"confidence_levels": (0.95, 1.0)},
            {"confidence_levels": (0.3, 0.4)},
            {"confidence_levels": (0.5, 0.9)},
            {"confidence_levels": (0.9, 0.95, 0.99)},
            {"correlation_assumption": 1.0},
            {"horizon_days": 0},
            {"simulation_method": "sobol"},
            {"student_t_dof": 2.0},
            {"risk_free_rate": float("nan")},
            {"fallback_volatility": 0.0},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(DomainError):
            RiskEngineConfig(**overrides)

    def test_volatility_resolution(self):
        assert DEFAULT_CONFIG.annual_volatility("AAPL", "Bond") == 0.25
        assert DEFAULT_CONFIG.annual_volatility("TLT", "Bond") == 0.08
        assert DEFAULT_CONFIG.annual_volatility("XYZ", "Crypto") == 0.20

    def test_class_lookups(self):
        assert DEFAULT_CONFIG.expected_return("Equity") == 0.10
        assert DEFAULT_CONFIG.expected_return("Crypto") == 0.08
        assert DEFAULT_CONFIG.beta("Bond") == 0.1
        assert DEFAULT_CONFIG.beta("Crypto") == 1.0

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.default_volatility_by_symbol["NEW"] = 0.5
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.asset_class_betas["Equity"] = 9.9
        assert "NEW" not in RiskEngineConfig().default_volatility_by_symbol

    def test_supplied_table_is_copied(self):
        table = {"XYZ": 0.6}
        config = RiskEngineConfig(default_volatility_by_symbol=table)
        table["XYZ"] = 0.1
        assert config.annual_volatility("XYZ") == 0.6
        assert config.with_overrides(random_seed=1).annual_volatility("XYZ") == 0.6


@pytest.mark.parametrize(
    "level,key", [(0.95, "95"), (0.99, "99"), (0.975, "97_5"), (0.9, "90")]
)
def test_level_key(level, key):
    assert level_key(level) == key
