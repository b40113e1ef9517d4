"""
Engine Configuration
====================
Single configuration structure passed explicitly into every pricing and
risk call. Replaces scattered risk-free-rate, volatility and simulation
constants with one validated, immutable object.
"""

import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from risk_analytics.exceptions import DomainError


# ─────────────────────────────────────────────────────────────
# Defaults
# ─────────────────────────────────────────────────────────────
TRADING_DAYS_PER_YEAR: int = 252
MIN_MONTE_CARLO_ITERATIONS: int = 10_000
SIMULATION_METHODS: Tuple[str, ...] = ("gaussian", "student_t", "bootstrap")

DEFAULT_VOLATILITY_BY_SYMBOL: Dict[str, float] = {
    "AAPL": 0.25,
    "MSFT": 0.22,
    "GOOGL": 0.28,
    "TSLA": 0.45,
    "SPY": 0.18,
    "QQQ": 0.21,
    "BTC": 0.80,
    "ETH": 0.85,
}

ASSET_CLASS_VOLATILITY: Dict[str, float] = {
    "Equity": 0.25,
    "Bond": 0.08,
    "ETF": 0.18,
    "Derivative": 0.45,
}

ASSET_CLASS_EXPECTED_RETURN: Dict[str, float] = {
    "Equity": 0.10,
    "Bond": 0.04,
    "ETF": 0.08,
    "Derivative": 0.15,
}

ASSET_CLASS_BETAS: Dict[str, float] = {
    "Equity": 1.2,
    "Bond": 0.1,
    "ETF": 1.0,
    "Derivative": 2.0,
}


_TABLE_FIELDS: Tuple[str, ...] = (
    "default_volatility_by_symbol",
    "asset_class_volatility",
    "asset_class_expected_return",
    "asset_class_betas",
)


@dataclass(frozen=True)
class StressAssumptions:
    """
    Allocation and rate assumptions used by the macro stress catalog.

    Attributes:
        equity_weight: Assumed equity share of portfolio value
        bond_weight: Assumed bond share of portfolio value
        bond_duration: Average bond duration in years
        rate_shock: Parallel rate increase (0.03 = 300bp)
    """
    equity_weight: float = 0.7
    bond_weight: float = 0.3
    bond_duration: float = 7.0
    rate_shock: float = 0.03

    def __post_init__(self) -> None:
        if not 0.0 <= self.equity_weight <= 1.0:
            raise DomainError("equity_weight", self.equity_weight, "must lie in [0, 1]")
        if not 0.0 <= self.bond_weight <= 1.0:
            raise DomainError("bond_weight", self.bond_weight, "must lie in [0, 1]")
        if self.equity_weight + self.bond_weight > 1.0 + 1e-12:
            raise DomainError(
                "equity_weight + bond_weight",
                self.equity_weight + self.bond_weight,
                "must not exceed 1",
            )
        if self.bond_duration < 0:
            raise DomainError("bond_duration", self.bond_duration, "must be non-negative")


@dataclass(frozen=True)
class RiskEngineConfig:
    """
    Immutable engine configuration.

    Attributes:
        risk_free_rate: Annualised risk-free rate used by ratios and pricing defaults
        default_volatility_by_symbol: Annualised volatility estimates per symbol
        asset_class_volatility: Annualised volatility fallback per asset class
        asset_class_expected_return: Annualised drift assumption per asset class
        asset_class_betas: Market beta assumption per asset class
        fallback_volatility: Volatility used when neither symbol nor class is known
        fallback_beta: Beta used for unknown asset classes
        correlation_assumption: Constant pairwise correlation when no history
            is supplied (0.0 = independence)
        monte_carlo_iterations: Number of simulated portfolio returns
        confidence_levels: VaR/ES confidence levels, ascending
        random_seed: Seed for the default random generator
        horizon_days: VaR horizon in trading days
        trading_days_per_year: Annualisation factor
        simulation_method: "gaussian", "student_t" or "bootstrap"
        student_t_dof: Degrees of freedom when none can be fitted
        drawdown_horizon_days: Length of the simulated path used for max
            drawdown when no history is supplied
        stress: Allocation assumptions for the stress catalog
    """
    risk_free_rate: float = 0.03
    default_volatility_by_symbol: Mapping[str, float] = field(
        default_factory=lambda: DEFAULT_VOLATILITY_BY_SYMBOL
    )
    asset_class_volatility: Mapping[str, float] = field(
        default_factory=lambda: ASSET_CLASS_VOLATILITY
    )
    asset_class_expected_return: Mapping[str, float] = field(
        default_factory=lambda: ASSET_CLASS_EXPECTED_RETURN
    )
    asset_class_betas: Mapping[str, float] = field(
        default_factory=lambda: ASSET_CLASS_BETAS
    )
    fallback_volatility: float = 0.20
    fallback_expected_return: float = 0.08
    fallback_beta: float = 1.0
    correlation_assumption: float = 0.0
    monte_carlo_iterations: int = MIN_MONTE_CARLO_ITERATIONS
    confidence_levels: Tuple[float, float] = (0.95, 0.99)
    random_seed: int = 42
    horizon_days: int = 1
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR
    simulation_method: str = "gaussian"
    student_t_dof: float = 5.0
    drawdown_horizon_days: int = TRADING_DAYS_PER_YEAR
    stress: StressAssumptions = field(default_factory=StressAssumptions)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        # lookup tables are copied and exposed read-only
        for name in _TABLE_FIELDS:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

        if not math.isfinite(self.risk_free_rate):
            raise DomainError("risk_free_rate", self.risk_free_rate, "must be finite")
        if self.monte_carlo_iterations < MIN_MONTE_CARLO_ITERATIONS:
            raise DomainError(
                "monte_carlo_iterations",
                self.monte_carlo_iterations,
                f"must be at least {MIN_MONTE_CARLO_ITERATIONS}",
            )
        if len(self.confidence_levels) != 2:
            raise DomainError(
                "confidence_levels", self.confidence_levels, "must hold exactly two levels"
            )
        low, high = self.confidence_levels
        for level in self.confidence_levels:
            # below 0.5 the loss quantile turns into a gain
            if not 0.5 < level < 1.0:
                raise DomainError(
                    "confidence_levels", self.confidence_levels, "must lie in (0.5, 1)"
                )
        if low >= high:
            raise DomainError("confidence_levels", self.confidence_levels, "must be ascending")
        if not -1.0 < self.correlation_assumption < 1.0:
            raise DomainError(
                "correlation_assumption", self.correlation_assumption, "must lie in (-1, 1)"
            )
        if self.horizon_days < 1:
            raise DomainError("horizon_days", self.horizon_days, "must be at least 1")
        if self.trading_days_per_year < 1:
            raise DomainError(
                "trading_days_per_year", self.trading_days_per_year, "must be at least 1"
            )
        if self.simulation_method not in SIMULATION_METHODS:
            raise DomainError(
                "simulation_method",
                self.simulation_method,
                f"must be one of {SIMULATION_METHODS}",
            )
        if self.student_t_dof <= 2.0:
            raise DomainError("student_t_dof", self.student_t_dof, "must exceed 2")
        if self.drawdown_horizon_days < 2:
            raise DomainError(
                "drawdown_horizon_days", self.drawdown_horizon_days, "must be at least 2"
            )
        if self.fallback_volatility <= 0:
            raise DomainError(
                "fallback_volatility", self.fallback_volatility, "must be positive"
            )

    def with_overrides(self, **overrides) -> "RiskEngineConfig":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **overrides)

    def annual_volatility(self, symbol: str, asset_class: str = "Equity") -> float:
        """
        Look up an annualised volatility estimate.

        Resolution order: symbol table, asset-class table, fallback.
        """
        if symbol in self.default_volatility_by_symbol:
            return self.default_volatility_by_symbol[symbol]
        return self.asset_class_volatility.get(asset_class, self.fallback_volatility)

    def expected_return(self, asset_class: str) -> float:
        """Annualised drift assumption for an asset class."""
        return self.asset_class_expected_return.get(asset_class, self.fallback_expected_return)

    def beta(self, asset_class: str) -> float:
        """Market beta assumption for an asset class."""
        return self.asset_class_betas.get(asset_class, self.fallback_beta)


DEFAULT_CONFIG = RiskEngineConfig()


def level_key(confidence_level: float) -> str:
    """Dictionary key suffix for a confidence level (0.95 -> '95', 0.975 -> '97_5')."""
    return f"{confidence_level * 100:g}".replace(".", "_")
