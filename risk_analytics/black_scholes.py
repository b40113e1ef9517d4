"""
Black-Scholes Pricing Module
============================
Closed-form European option pricing with continuous dividend yield and
the five standard Greeks.

Mathematical Foundation:
    d1 = [ln(S/K) + (r - q + σ²/2)T] / (σ√T)
    d2 = d1 - σ√T
    C  = S·e^(-qT)·N(d1) - K·e^(-rT)·N(d2)
    P  = K·e^(-rT)·N(-d2) - S·e^(-qT)·N(-d1)

Put-call parity:
    C - P = S·e^(-qT) - K·e^(-rT)

Greeks follow the call convention: theta is per calendar day, vega and
rho are per 1% move in volatility and rate.
"""

import math
from typing import Optional, Sequence

import numpy as np

from risk_analytics.distributions import normal_cdf, normal_pdf
from risk_analytics.exceptions import DomainError
from risk_analytics.types import BlackScholesResult, Greeks, OptionParameters, RiskSurface

DAYS_PER_YEAR: float = 365.0
PERCENT: float = 100.0

# Default surface grid: strikes at 80%..120% of spot, expiries 0.1..2 years
SURFACE_MONEYNESS = np.linspace(0.8, 1.2, 21)
SURFACE_EXPIRIES = np.linspace(0.1, 2.0, 21)


def _validate(S: float, K: float, T: float, r: float, sigma: float, q: float) -> None:
    # OptionParameters carries the domain checks; DomainError propagates.
    OptionParameters(S, K, T, r, sigma, q)


def d1(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """
    Compute d1.

    Parameters
    ----------
    S : float
        Spot price.
    K : float
        Strike price.
    T : float
        Time to expiry in years (> 0).
    r : float
        Continuously compounded risk-free rate.
    sigma : float
        Annualised volatility (> 0).
    q : float
        Continuous dividend yield.

    Returns
    -------
    float
        d1 = [ln(S/K) + (r - q + σ²/2)T] / (σ√T)
    """
    _validate(S, K, T, r, sigma, q)
    diffusion = sigma * math.sqrt(T)
    return (math.log(S / K) + (r - q + 0.5 * sigma * sigma) * T) / diffusion


def d2(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """d2 = d1 - σ√T."""
    return d1(S, K, T, r, sigma, q) - sigma * math.sqrt(T)


def call_price(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """European call value C = S·e^(-qT)·N(d1) - K·e^(-rT)·N(d2)."""
    d1_value = d1(S, K, T, r, sigma, q)
    d2_value = d1_value - sigma * math.sqrt(T)
    return S * math.exp(-q * T) * normal_cdf(d1_value) - K * math.exp(-r * T) * normal_cdf(d2_value)


def put_price(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """European put value P = K·e^(-rT)·N(-d2) - S·e^(-qT)·N(-d1)."""
    d1_value = d1(S, K, T, r, sigma, q)
    d2_value = d1_value - sigma * math.sqrt(T)
    return K * math.exp(-r * T) * normal_cdf(-d2_value) - S * math.exp(-q * T) * normal_cdf(-d1_value)


def call_greeks(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> Greeks:
    """
    Compute the five Greeks of a European call.

    Formulas
    --------
    delta = e^(-qT)·N(d1)
    gamma = e^(-qT)·φ(d1) / (S·σ·√T)
    theta = [-S·φ(d1)·σ·e^(-qT)/(2√T) - r·K·e^(-rT)·N(d2) + q·S·e^(-qT)·N(d1)] / 365
    vega  = S·e^(-qT)·φ(d1)·√T / 100
    rho   = K·T·e^(-rT)·N(d2) / 100

    Returns
    -------
    Greeks
        Call-convention Greeks; theta per calendar day, vega and rho per 1%.
    """
    d1_value = d1(S, K, T, r, sigma, q)
    sqrt_T = math.sqrt(T)
    d2_value = d1_value - sigma * sqrt_T

    pdf_d1 = normal_pdf(d1_value)
    cdf_d1 = normal_cdf(d1_value)
    cdf_d2 = normal_cdf(d2_value)
    dividend_discount = math.exp(-q * T)
    rate_discount = math.exp(-r * T)

    delta = dividend_discount * cdf_d1
    gamma = dividend_discount * pdf_d1 / (S * sigma * sqrt_T)
    theta = (
        -S * pdf_d1 * sigma * dividend_discount / (2.0 * sqrt_T)
        - r * K * rate_discount * cdf_d2
        + q * S * dividend_discount * cdf_d1
    ) / DAYS_PER_YEAR
    vega = S * dividend_discount * pdf_d1 * sqrt_T / PERCENT
    rho = K * T * rate_discount * cdf_d2 / PERCENT

    return Greeks(delta=delta, gamma=gamma, theta=theta, vega=vega, rho=rho)


def put_greeks(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> Greeks:
    """
    Compute the five Greeks of a European put.

    Gamma and vega are shared with the call. Delta, theta and rho use the
    put formulas:

        delta = -e^(-qT)·N(-d1)
        theta = [-S·φ(d1)·σ·e^(-qT)/(2√T) + r·K·e^(-rT)·N(-d2) - q·S·e^(-qT)·N(-d1)] / 365
        rho   = -K·T·e^(-rT)·N(-d2) / 100
    """
    call = call_greeks(S, K, T, r, sigma, q)
    d1_value = d1(S, K, T, r, sigma, q)
    sqrt_T = math.sqrt(T)
    d2_value = d1_value - sigma * sqrt_T

    dividend_discount = math.exp(-q * T)
    rate_discount = math.exp(-r * T)

    delta = -dividend_discount * normal_cdf(-d1_value)
    theta = (
        -S * normal_pdf(d1_value) * sigma * dividend_discount / (2.0 * sqrt_T)
        + r * K * rate_discount * normal_cdf(-d2_value)
        - q * S * dividend_discount * normal_cdf(-d1_value)
    ) / DAYS_PER_YEAR
    rho = -K * T * rate_discount * normal_cdf(-d2_value) / PERCENT

    return Greeks(delta=delta, gamma=call.gamma, theta=theta, vega=call.vega, rho=rho)


def price_option(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
) -> BlackScholesResult:
    """
    Price a European call and put and compute call-convention Greeks.

    Parameters
    ----------
    S, K, T, r, sigma, q : float
        Spot, strike, years to expiry, risk-free rate, volatility and
        dividend yield.

    Returns
    -------
    BlackScholesResult
        Call price, put price and Greeks.

    Raises
    ------
    DomainError
        If T <= 0, sigma <= 0, S <= 0, K <= 0 or any input is not finite.

    Examples
    --------
    >>> result = price_option(100, 100, 1.0, 0.05, 0.20)
    >>> abs(result.call_price - 10.4506) < 0.01
    True
    """
    return BlackScholesResult(
        call_price=call_price(S, K, T, r, sigma, q),
        put_price=put_price(S, K, T, r, sigma, q),
        greeks=call_greeks(S, K, T, r, sigma, q),
    )


def price_option_params(params: OptionParameters) -> BlackScholesResult:
    """Price from an already-validated OptionParameters record."""
    return price_option(
        params.spot_price,
        params.strike_price,
        params.time_to_expiry_years,
        params.risk_free_rate,
        params.volatility,
        params.dividend_yield,
    )


def generate_risk_surface(
    S: float,
    option_type: str = "call",
    r: float = 0.05,
    sigma: float = 0.25,
    q: float = 0.0,
    strikes: Optional[Sequence[float]] = None,
    expiries: Optional[Sequence[float]] = None,
) -> RiskSurface:
    """
    Option value surface over strike and time to expiry.

    Parameters
    ----------
    S : float
        Spot price.
    option_type : str
        "call" or "put".
    r, sigma, q : float
        Rate, volatility and dividend yield held fixed across the grid.
    strikes : array-like, optional
        Strike grid; defaults to 21 strikes from 80% to 120% of spot.
    expiries : array-like, optional
        Expiry grid in years; defaults to 21 points from 0.1 to 2.0.

    Returns
    -------
    RiskSurface
        values[i, j] is the option value at strikes[i], expiries[j].
    """
    if option_type not in ("call", "put"):
        raise DomainError("option_type", option_type, "must be 'call' or 'put'")
    strike_grid = S * SURFACE_MONEYNESS if strikes is None else np.asarray(strikes, dtype=float)
    expiry_grid = SURFACE_EXPIRIES.copy() if expiries is None else np.asarray(expiries, dtype=float)

    pricer = call_price if option_type == "call" else put_price
    values = np.array(
        [[pricer(S, K, T, r, sigma, q) for T in expiry_grid] for K in strike_grid]
    )
    return RiskSurface(
        spot_price=S,
        option_type=option_type,
        strikes=strike_grid,
        expiries=expiry_grid,
        values=values,
    )
