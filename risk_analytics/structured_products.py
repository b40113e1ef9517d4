"""
Structured Product Pricing
==========================
Values structured notes off their embedded European call, grades their
risk from the Greeks, time to maturity and barrier distance, and
revalues them under standard market scenarios.

Pricing (per unit of underlying, floored at zero):
    base  = C_BS(S, K, T, r, σ), or max(S - K, 0) once matured
    AUTOCALLABLE                 0.95 · base
    BARRIER_REVERSE_CONVERTIBLE  base - P(S_T < B) · S · 0.5
    EQUITY_LINKED_NOTE           base

    P(S_T < B) = N( [ln(B/S) - (r - σ²/2)T] / (σ√T) )

Risk score (RED >= 5, YELLOW >= 3, else GREEN):
    |Δ| > 0.7 → 2, > 0.5 → 1        Γ > 0.01 → 2, > 0.005 → 1
    |ν| > 0.1 → 2, > 0.05 → 1       T < 0.25 → 2, < 0.5 → 1
    S/B < 1.1 → 3, < 1.2 → 2
"""

import logging
import math
from datetime import date, timedelta
from typing import Dict, Optional, Tuple

from risk_analytics.black_scholes import DAYS_PER_YEAR, call_greeks, call_price
from risk_analytics.distributions import normal_cdf
from risk_analytics.types import Greeks, StructuredProduct, StructuredProductValuation

logger = logging.getLogger(__name__)

STRUCTURED_PRODUCT_RATE: float = 0.05
AUTOCALL_DISCOUNT: float = 0.95
BARRIER_LOSS_SHARE: float = 0.5

# Scenario shocks
SPOT_SHOCK: float = -0.20
VOL_SHOCK: float = 0.50
RATE_SHOCK: float = 0.02
TIME_DECAY_DAYS: int = 30

RED_SCORE: int = 5
YELLOW_SCORE: int = 3


def time_to_maturity(product: StructuredProduct, valuation_date: Optional[date] = None) -> float:
    """Years to maturity on an ACT/365 basis; 0 once the note has matured."""
    valuation_date = valuation_date or date.today()
    days = (product.maturity_date - valuation_date).days
    return max(days, 0) / DAYS_PER_YEAR


def barrier_breach_probability(
    S: float, barrier: float, T: float, r: float, sigma: float
) -> float:
    """
    Risk-neutral probability that the terminal spot ends below the barrier.

    Parameters
    ----------
    S, barrier : float
        Spot and barrier level.
    T : float
        Years to maturity; at T <= 0 the current spot decides.
    r, sigma : float
        Rate and volatility of the lognormal spot.

    Returns
    -------
    float
        P(S_T < barrier) in [0, 1].
    """
    if T <= 0:
        return 1.0 if S < barrier else 0.0
    diffusion = sigma * math.sqrt(T)
    return normal_cdf((math.log(barrier / S) - (r - 0.5 * sigma * sigma) * T) / diffusion)


def _product_value(
    product: StructuredProduct, S: float, sigma: float, r: float, T: float
) -> float:
    K = product.strike_price
    base = call_price(S, K, T, r, sigma) if T > 0 else max(S - K, 0.0)

    if product.product_type == "AUTOCALLABLE":
        value = base * AUTOCALL_DISCOUNT
    elif product.product_type == "BARRIER_REVERSE_CONVERTIBLE" and product.barrier_level is not None:
        breach = barrier_breach_probability(S, product.barrier_level, T, r, sigma)
        value = base - breach * S * BARRIER_LOSS_SHARE
    else:
        value = base
    return max(value, 0.0)


def price_structured_product(
    product: StructuredProduct,
    valuation_date: Optional[date] = None,
    rate: float = STRUCTURED_PRODUCT_RATE,
) -> float:
    """Fair value per unit of underlying at `valuation_date` (default today)."""
    T = time_to_maturity(product, valuation_date)
    return _product_value(product, product.current_price, product.implied_volatility, rate, T)


def structured_product_greeks(
    product: StructuredProduct,
    valuation_date: Optional[date] = None,
    rate: float = STRUCTURED_PRODUCT_RATE,
) -> Greeks:
    """Greeks of the embedded call; all zero once the note has matured."""
    T = time_to_maturity(product, valuation_date)
    if T <= 0:
        return Greeks(delta=0.0, gamma=0.0, theta=0.0, vega=0.0, rho=0.0)
    return call_greeks(
        product.current_price, product.strike_price, T, rate, product.implied_volatility
    )


def compute_risk_score(
    greeks: Greeks,
    years_to_maturity: float,
    spot: float,
    barrier_level: Optional[float] = None,
) -> int:
    """
    Additive risk score from Greeks, time to maturity and barrier distance.

    Parameters
    ----------
    greeks : Greeks
        Delta, gamma and vega (per 1% vol) of the product.
    years_to_maturity : float
        Remaining life in years.
    spot : float
        Current underlying price.
    barrier_level : float, optional
        Knock-in level; no barrier points when absent.

    Returns
    -------
    int
        Score between 0 and 11.
    """
    score = 0

    if abs(greeks.delta) > 0.7:
        score += 2
    elif abs(greeks.delta) > 0.5:
        score += 1

    if greeks.gamma > 0.01:
        score += 2
    elif greeks.gamma > 0.005:
        score += 1

    if abs(greeks.vega) > 0.1:
        score += 2
    elif abs(greeks.vega) > 0.05:
        score += 1

    if years_to_maturity < 0.25:
        score += 2
    elif years_to_maturity < 0.5:
        score += 1

    if barrier_level is not None:
        distance = spot / barrier_level
        if distance < 1.1:
            score += 3
        elif distance < 1.2:
            score += 2

    return score


def risk_status(score: int) -> str:
    """Traffic-light status for a risk score."""
    if score >= RED_SCORE:
        return "RED"
    if score >= YELLOW_SCORE:
        return "YELLOW"
    return "GREEN"


def assess_risk_status(
    product: StructuredProduct,
    valuation_date: Optional[date] = None,
    rate: float = STRUCTURED_PRODUCT_RATE,
) -> Tuple[str, int]:
    """Return (status, score) for a product."""
    greeks = structured_product_greeks(product, valuation_date, rate)
    score = compute_risk_score(
        greeks,
        time_to_maturity(product, valuation_date),
        product.current_price,
        product.barrier_level,
    )
    return risk_status(score), score


def run_structured_product_stress_tests(
    product: StructuredProduct,
    valuation_date: Optional[date] = None,
    rate: float = STRUCTURED_PRODUCT_RATE,
) -> Dict[str, float]:
    """
    Revalue a product under the standard scenario set.

    Scenarios:
        Market Crash (-20%)       loss when spot falls 20%
        Volatility Spike (+50%)   gain when implied vol rises by half
        Rate Rise (+200bps)       gain when the rate rises 2 points
        Barrier Breach            loss when spot falls to the barrier
                                  (barrier notes only)
        Time Decay (30d)          loss from 30 calendar days passing

    Returns
    -------
    dict
        Scenario name -> value change per unit of underlying.
    """
    valuation_date = valuation_date or date.today()
    S = product.current_price
    sigma = product.implied_volatility
    T = time_to_maturity(product, valuation_date)
    current = _product_value(product, S, sigma, rate, T)

    crashed = _product_value(product, S * (1 + SPOT_SHOCK), sigma, rate, T)
    vol_spike = _product_value(product, S, sigma * (1 + VOL_SHOCK), rate, T)
    rate_rise = _product_value(product, S, sigma, rate + RATE_SHOCK, T)

    results: Dict[str, float] = {
        "Market Crash (-20%)": current - crashed,
        "Volatility Spike (+50%)": vol_spike - current,
        "Rate Rise (+200bps)": rate_rise - current,
    }

    if product.barrier_level is not None:
        breached_spot = min(S, product.barrier_level)
        breached = _product_value(product, breached_spot, sigma, rate, T)
        results["Barrier Breach"] = current - breached

    later = time_to_maturity(product, valuation_date + timedelta(days=TIME_DECAY_DAYS))
    decayed = _product_value(product, S, sigma, rate, later)
    results[f"Time Decay ({TIME_DECAY_DAYS}d)"] = current - decayed

    return results


def value_structured_product(
    product: StructuredProduct,
    valuation_date: Optional[date] = None,
    rate: float = STRUCTURED_PRODUCT_RATE,
) -> StructuredProductValuation:
    """
    Price, Greeks, risk status and scenario revaluation in one record.

    Parameters
    ----------
    product : StructuredProduct
        Note to value.
    valuation_date : date, optional
        Pricing date; defaults to today.
    rate : float
        Continuously compounded risk-free rate.

    Returns
    -------
    StructuredProductValuation
    """
    valuation_date = valuation_date or date.today()
    greeks = structured_product_greeks(product, valuation_date, rate)
    years = time_to_maturity(product, valuation_date)
    score = compute_risk_score(greeks, years, product.current_price, product.barrier_level)
    status = risk_status(score)
    if status == "RED":
        logger.warning("%s flagged RED (risk score %d)", product.product_code, score)

    return StructuredProductValuation(
        product_code=product.product_code,
        price=price_structured_product(product, valuation_date, rate),
        greeks=greeks,
        time_to_maturity=years,
        risk_score=score,
        risk_status=status,
        scenarios=run_structured_product_stress_tests(product, valuation_date, rate),
    )
