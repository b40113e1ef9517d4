"""
Data types and structures for the risk-analytics engine.

This module defines the immutable value objects consumed and produced by
the pricing, credit, stress and portfolio modules. Every record is
constructed fresh per computation and exposes ``to_dict()`` for JSON
export across process boundaries.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

import numpy as np

from risk_analytics.exceptions import DomainError


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise DomainError(name, value, "must be finite")


@dataclass(frozen=True)
class OptionParameters:
    """
    Immutable container for option parameters.

    Attributes:
        spot_price: Current spot price of the underlying asset
        strike_price: Strike price
        time_to_expiry_years: Time to expiration in years
        risk_free_rate: Risk-free interest rate (annualized, continuous compounding)
        volatility: Annualized volatility of the underlying
        dividend_yield: Continuous dividend yield (annualized)
    """
    spot_price: float
    strike_price: float
    time_to_expiry_years: float
    risk_free_rate: float
    volatility: float
    dividend_yield: float = 0.0

    def __post_init__(self) -> None:
        """Validate parameters lie inside the Black-Scholes domain."""
        for name in (
            "spot_price",
            "strike_price",
            "time_to_expiry_years",
            "risk_free_rate",
            "volatility",
            "dividend_yield",
        ):
            _require_finite(name, getattr(self, name))
        if self.spot_price <= 0:
            raise DomainError("spot_price", self.spot_price, "must be positive")
        if self.strike_price <= 0:
            raise DomainError("strike_price", self.strike_price, "must be positive")
        if self.time_to_expiry_years <= 0:
            raise DomainError(
                "time_to_expiry_years", self.time_to_expiry_years, "must be positive"
            )
        if self.volatility <= 0:
            raise DomainError("volatility", self.volatility, "must be positive")


@dataclass(frozen=True)
class Greeks:
    """
    Container for option Greeks (call convention unless stated otherwise).

    Attributes:
        delta: ∂V/∂S
        gamma: ∂²V/∂S², identical for calls and puts
        theta: ∂V/∂t per calendar day
        vega: ∂V/∂σ per 1% volatility move
        rho: ∂V/∂r per 1% rate move
    """
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True)
class BlackScholesResult:
    """Call and put fair values with call-convention Greeks."""
    call_price: float
    put_price: float
    greeks: Greeks

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CreditProfile:
    """
    Firm-level inputs to the credit model.

    Attributes:
        credit_score: Bureau-style score (roughly 300-850)
        debt_to_equity: Leverage ratio
        current_ratio: Current assets / current liabilities
        interest_coverage: EBIT / interest expense
        industry_risk_score: Industry risk score (higher is riskier)
        exposure_amount: Exposure at default in currency units
    """
    credit_score: float
    debt_to_equity: float
    current_ratio: float
    interest_coverage: float
    industry_risk_score: float
    exposure_amount: float

    def __post_init__(self) -> None:
        for name in (
            "credit_score",
            "debt_to_equity",
            "current_ratio",
            "interest_coverage",
            "industry_risk_score",
            "exposure_amount",
        ):
            _require_finite(name, getattr(self, name))
        if self.exposure_amount < 0:
            raise DomainError("exposure_amount", self.exposure_amount, "must be non-negative")


@dataclass(frozen=True)
class CreditRiskMetrics:
    """Credit model output. expected_loss = PD × LGD × EAD."""
    probability_of_default: float
    loss_given_default: float
    exposure_at_default: float
    expected_loss: float
    unexpected_loss: float
    credit_var: float
    credit_rating: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StressTestResult:
    """
    Outcome of one stress scenario applied to a portfolio value.

    Attributes:
        scenario: Scenario name
        description: Narrative description
        portfolio_value: Post-shock portfolio value
        value_change: Post-shock minus pre-shock value
        percentage_change: value_change / pre-shock value × 100
        var95_change: Percentage increase in 95% VaR under the scenario
        max_drawdown: Peak-to-trough decline in percent
        recovery: Estimated months to recover
    """
    scenario: str
    description: str
    portfolio_value: float
    value_change: float
    percentage_change: float
    var95_change: float
    max_drawdown: float
    recovery: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Position:
    """
    Single portfolio position. Read-only to the engine.

    Attributes:
        symbol: Ticker symbol
        quantity: Number of units held
        purchase_price: Unit purchase price
        portfolio_id: Owning portfolio identifier
        asset_class: Equity, Bond, ETF or Derivative
    """
    symbol: str
    quantity: float
    purchase_price: float
    portfolio_id: Optional[int] = None
    asset_class: str = "Equity"

    def market_value(self, price: Optional[float] = None) -> float:
        """quantity × price, using the purchase price when no quote is given."""
        unit_price = self.purchase_price if price is None else price
        return self.quantity * unit_price


@dataclass(frozen=True)
class RiskRatios:
    """Risk-adjusted performance ratios computed from one return series."""
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float
    omega_ratio: float
    tail_ratio: float
    max_drawdown: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LiquidityMetrics:
    """Balance-sheet liquidity ratios and a coarse risk label."""
    liquidity_coverage_ratio: float
    net_stable_funding_ratio: float
    liquidity_buffer: float
    cash_ratio: float
    quick_ratio: float
    liquidity_risk: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AdvancedRiskMetrics:
    """
    Aggregate portfolio risk figures.

    VaR and ES values are positive currency losses over the configured
    horizon. concentration_risk is the largest single-position weight
    (fraction of total value); asset_allocation values are percentages.
    risk_contributions split the daily portfolio volatility (fraction of
    value) by symbol and sum to it.
    """
    portfolio_value: float
    parametric_var_95: float
    parametric_var_99: float
    monte_carlo_var_95: float
    monte_carlo_var_99: float
    expected_shortfall_95: float
    expected_shortfall_99: float
    max_drawdown: float
    portfolio_beta: float
    concentration_risk: float
    sharpe_ratio: float
    calmar_ratio: float
    sortino_ratio: float
    omega_ratio: float
    tail_ratio: float
    stress_test_results: Dict[str, float] = field(default_factory=dict)
    asset_allocation: Dict[str, float] = field(default_factory=dict)
    risk_contributions: Dict[str, float] = field(default_factory=dict)
    num_simulations: int = 0
    simulation_method: str = "gaussian"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


STRUCTURED_PRODUCT_TYPES: Tuple[str, ...] = (
    "AUTOCALLABLE",
    "BARRIER_REVERSE_CONVERTIBLE",
    "EQUITY_LINKED_NOTE",
)


@dataclass(frozen=True)
class StructuredProduct:
    """
    Structured note on a single underlying, priced off a European call.

    Attributes:
        product_code: Identifier of the note
        product_type: One of STRUCTURED_PRODUCT_TYPES
        underlying_asset: Ticker of the underlying
        notional_amount: Face value of the note
        strike_price: Strike of the embedded option
        current_price: Spot price of the underlying
        implied_volatility: Annualized implied volatility
        maturity_date: Final redemption date
        barrier_level: Knock-in level, if the note has one
        coupon_rate: Annual coupon
        issue_date: Issue date
        portfolio_id: Owning portfolio identifier
    """
    product_code: str
    product_type: str
    underlying_asset: str
    notional_amount: float
    strike_price: float
    current_price: float
    implied_volatility: float
    maturity_date: date
    barrier_level: Optional[float] = None
    coupon_rate: float = 0.0
    issue_date: Optional[date] = None
    portfolio_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.product_type not in STRUCTURED_PRODUCT_TYPES:
            raise DomainError(
                "product_type", self.product_type, f"must be one of {STRUCTURED_PRODUCT_TYPES}"
            )
        for name in ("notional_amount", "strike_price", "current_price", "implied_volatility"):
            _require_finite(name, getattr(self, name))
            if getattr(self, name) <= 0:
                raise DomainError(name, getattr(self, name), "must be positive")
        if self.barrier_level is not None and not self.barrier_level > 0:
            raise DomainError("barrier_level", self.barrier_level, "must be positive")


@dataclass(frozen=True)
class StructuredProductValuation:
    """
    Price, Greeks, risk status and scenario P&L of one structured product.

    Scenario values are currency per unit of underlying: losses are
    positive for the spot, barrier and time-decay scenarios, gains are
    positive for the volatility and rate scenarios.
    """
    product_code: str
    price: float
    greeks: Greeks
    time_to_maturity: float
    risk_score: int
    risk_status: str
    scenarios: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RiskSurface:
    """Option values on a strike x expiry grid (values[i, j] = strike i, expiry j)."""
    spot_price: float
    option_type: str
    strikes: np.ndarray
    expiries: np.ndarray
    values: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_price": self.spot_price,
            "option_type": self.option_type,
            "strikes": self.strikes.tolist(),
            "expiries": self.expiries.tolist(),
            "values": self.values.tolist(),
        }
