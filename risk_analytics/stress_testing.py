"""
Stress Testing Module
=====================
Deterministic macro stress scenarios applied to total portfolio value,
asset-class shock scenarios applied to actual exposures, and covariance
stresses for re-running the Monte Carlo engine.

Stress Scenarios:
    1. Market Crash (2008-style):  eq_w·(-40%) + bond_w·(-20%)
    2. Interest Rate Shock:        -bond_w·duration·Δr + eq_w·(-15%)
    3-7. Flat shocks:              pandemic, inflation, geopolitical,
                                   liquidity, sector concentration

Covariance Stresses:
    Volatility shock:     Σ_shock = k · Σ
    Correlation stress:   ρ_ij → ρ*  (diversification collapse)
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Tuple

import numpy as np

from risk_analytics.config import DEFAULT_CONFIG, RiskEngineConfig, StressAssumptions
from risk_analytics.exceptions import DomainError
from risk_analytics.types import StressTestResult


@dataclass(frozen=True)
class StressScenario:
    """
    Static catalog entry.

    shock maps the stress assumptions to a fractional change in total
    portfolio value (-0.34 = lose 34%).
    """
    name: str
    description: str
    shock: Callable[[StressAssumptions], float]
    var95_change_percent: float
    max_drawdown_percent: float
    recovery_months: float

    def apply(self, portfolio_value: float, assumptions: StressAssumptions) -> StressTestResult:
        """Apply the scenario to a pre-shock portfolio value."""
        value_change = portfolio_value * self.shock(assumptions)
        percentage_change = (
            value_change / portfolio_value * 100.0 if portfolio_value != 0 else 0.0
        )
        return StressTestResult(
            scenario=self.name,
            description=self.description,
            portfolio_value=portfolio_value + value_change,
            value_change=value_change,
            percentage_change=percentage_change,
            var95_change=self.var95_change_percent,
            max_drawdown=self.max_drawdown_percent,
            recovery=self.recovery_months,
        )


def _market_crash(a: StressAssumptions) -> float:
    return a.equity_weight * -0.40 + a.bond_weight * -0.20


def _interest_rate_shock(a: StressAssumptions) -> float:
    bond_impact = -a.bond_weight * a.bond_duration * a.rate_shock
    equity_impact = -0.15 * a.equity_weight
    return bond_impact + equity_impact


def _flat(change: float) -> Callable[[StressAssumptions], float]:
    return lambda _assumptions: change


SCENARIO_CATALOG: Tuple[StressScenario, ...] = (
    StressScenario(
        name="Market Crash (2008-style)",
        description="Severe market downturn with 40% equity decline, 20% bond decline, volatility spike",
        shock=_market_crash,
        var95_change_percent=150,
        max_drawdown_percent=42,
        recovery_months=24,
    ),
    StressScenario(
        name="Interest Rate Shock",
        description="300bp sudden interest rate increase affecting bonds and equity valuations",
        shock=_interest_rate_shock,
        var95_change_percent=80,
        max_drawdown_percent=25,
        recovery_months=18,
    ),
    StressScenario(
        name="Pandemic Crisis (COVID-19 style)",
        description="Global pandemic causing economic shutdown and market volatility",
        shock=_flat(-0.35),
        var95_change_percent=200,
        max_drawdown_percent=38,
        recovery_months=12,
    ),
    StressScenario(
        name="Inflation Spike",
        description="Persistent high inflation (8%+) eroding real returns",
        shock=_flat(-0.18),
        var95_change_percent=60,
        max_drawdown_percent=22,
        recovery_months=36,
    ),
    StressScenario(
        name="Geopolitical Crisis",
        description="Major geopolitical conflict affecting global markets",
        shock=_flat(-0.25),
        var95_change_percent=120,
        max_drawdown_percent=28,
        recovery_months=15,
    ),
    StressScenario(
        name="Liquidity Crisis",
        description="Severe liquidity crunch with credit markets freezing",
        shock=_flat(-0.30),
        var95_change_percent=180,
        max_drawdown_percent=35,
        recovery_months=20,
    ),
    StressScenario(
        name="Sector Concentration Risk",
        description="Major sector collapse affecting concentrated positions",
        shock=_flat(-0.22),
        var95_change_percent=90,
        max_drawdown_percent=26,
        recovery_months=18,
    ),
)


# Per-asset-class shocks applied to actual exposures
ASSET_CLASS_SCENARIOS: Dict[str, Dict[str, float]] = {
    "Market Crash": {"Equity": -0.40, "Bond": -0.05, "ETF": -0.35, "Derivative": -0.60},
    "Interest Rate Shock": {"Equity": -0.15, "Bond": -0.20, "ETF": -0.12, "Derivative": -0.25},
    "Black Swan": {"Equity": -0.50, "Bond": 0.10, "ETF": -0.45, "Derivative": -0.80},
    "Inflation Spike": {"Equity": -0.20, "Bond": -0.25, "ETF": -0.18, "Derivative": -0.30},
}


# ─────────────────────────────────────────────────────────────
# Macro scenario catalog
# ─────────────────────────────────────────────────────────────

def run_stress_tests(
    portfolio_value: float,
    config: RiskEngineConfig = DEFAULT_CONFIG,
) -> List[StressTestResult]:
    """
    Apply every catalog scenario to a total portfolio value.

    Parameters
    ----------
    portfolio_value : float
        Pre-shock portfolio value (finite, non-negative).
    config : RiskEngineConfig
        Supplies the equity/bond split, duration and rate shock.

    Returns
    -------
    list of StressTestResult
        Seven results in catalog order.

    Raises
    ------
    DomainError
        If portfolio_value is negative or not finite.
    """
    if not math.isfinite(portfolio_value):
        raise DomainError("portfolio_value", portfolio_value, "must be finite")
    if portfolio_value < 0:
        raise DomainError("portfolio_value", portfolio_value, "must be non-negative")

    return [scenario.apply(portfolio_value, config.stress) for scenario in SCENARIO_CATALOG]


# ─────────────────────────────────────────────────────────────
# Asset-class scenarios
# ─────────────────────────────────────────────────────────────

def asset_class_scenario_losses(
    exposures_by_class: Mapping[str, float],
    scenarios: Mapping[str, Mapping[str, float]] = ASSET_CLASS_SCENARIOS,
) -> Dict[str, float]:
    """
    Compute the loss of each asset-class scenario on actual exposures.

    Only negative shocks count as losses; a gain in one class (e.g. bonds
    in a flight to quality) does not offset losses elsewhere. Classes
    without a shock contribute nothing.

    Parameters
    ----------
    exposures_by_class : mapping
        Asset class -> market value.
    scenarios : mapping
        Scenario name -> {asset class -> fractional shock}.

    Returns
    -------
    dict
        Scenario name -> loss (positive currency amount).
    """
    results: Dict[str, float] = {}
    for name, shocks in scenarios.items():
        loss = 0.0
        for asset_class, exposure in exposures_by_class.items():
            shock = shocks.get(asset_class, 0.0)
            if shock < 0:
                loss += exposure * abs(shock)
        results[name] = loss
    return results


# ─────────────────────────────────────────────────────────────
# Covariance stresses
# ─────────────────────────────────────────────────────────────

def apply_volatility_shock(
    cov_matrix: np.ndarray,
    shock_factor: float = 2.0,
) -> np.ndarray:
    """
    Apply multiplicative volatility shock to covariance matrix.

    Mathematical Definition:
        Σ_shock = k · Σ

    This scales all variances and covariances uniformly,
    equivalent to multiplying all volatilities by √k.

    Parameters
    ----------
    cov_matrix : np.ndarray
        Original covariance matrix (N x N).
    shock_factor : float
        Multiplicative shock factor (default: 2.0).

    Returns
    -------
    np.ndarray
        Shocked covariance matrix.
    """
    if shock_factor <= 0:
        raise DomainError("shock_factor", shock_factor, "must be positive")
    return shock_factor * cov_matrix


def apply_correlation_stress(
    cov_matrix: np.ndarray,
    target_correlation: float = 0.9,
) -> np.ndarray:
    """
    Stress correlations to a high uniform value (diversification collapse).

    Volatilities on the diagonal are preserved:
        Σ_stress = D · ρ_stress · D,  D = diag(σ_1, ..., σ_N)

    Parameters
    ----------
    cov_matrix : np.ndarray
        Original covariance matrix.
    target_correlation : float
        Stressed off-diagonal correlation.

    Returns
    -------
    np.ndarray
        Stressed covariance matrix.
    """
    if not -1.0 < target_correlation < 1.0:
        raise DomainError("target_correlation", target_correlation, "must lie in (-1, 1)")

    n = cov_matrix.shape[0]
    D = np.diag(np.sqrt(np.diag(cov_matrix)))

    corr_stress = np.full((n, n), target_correlation)
    np.fill_diagonal(corr_stress, 1.0)

    return D @ corr_stress @ D


def compute_stress_impact(
    base_results: Mapping[str, float],
    stressed_results: Mapping[str, float],
) -> Dict[str, float]:
    """
    Compare base and stressed risk metrics.

    Parameters
    ----------
    base_results : mapping
        Baseline figures keyed by metric name (e.g. var_95, es_97_5).
    stressed_results : mapping
        Stressed figures covering every baseline key.

    Returns
    -------
    dict
        Base, stressed and percentage change per metric.

    Raises
    ------
    DomainError
        If a baseline metric has no stressed counterpart.
    """
    missing = [m for m in base_results if m not in stressed_results]
    if missing:
        raise DomainError("stressed_results", missing, "must cover every baseline metric")

    impact: Dict[str, float] = {}
    for m in base_results:
        base_val = base_results[m]
        stress_val = stressed_results[m]
        pct_change = ((stress_val - base_val) / base_val) * 100 if base_val != 0 else 0.0
        impact[f"{m}_base"] = base_val
        impact[f"{m}_stressed"] = stress_val
        impact[f"{m}_pct_change"] = pct_change
    return impact
