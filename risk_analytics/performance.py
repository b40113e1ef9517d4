"""
Performance Ratios Module
=========================
Risk-adjusted performance ratios and drawdown statistics computed from a
single daily return series (historical or simulated).

Mathematical Foundation:
    Sharpe:   (μ_ann - r_f) / σ_ann
    Sortino:  (μ_ann - r_f) / DD_ann,  DD = sqrt(mean(min(r - r_f/252, 0)²))
    Calmar:   μ_ann / |MDD|
    Omega:    Σ max(r - τ, 0) / Σ max(τ - r, 0)
    Tail:     |P95| / |P5|
    MDD:      max_t (peak_t - W_t) / peak_t,  W_t = exp(Σ r)

Returns are daily log returns; annualization uses the trading-day count.
"""

import math
import numpy as np
from scipy import stats as scipy_stats
from typing import Dict, Optional, Sequence

from risk_analytics.config import TRADING_DAYS_PER_YEAR
from risk_analytics.exceptions import DomainError, InsufficientDataError
from risk_analytics.types import RiskRatios


# spreads below this are floating-point residue of a constant series
_FLAT_TOLERANCE = 1e-12


def _is_flat(value: float) -> bool:
    return bool(np.isclose(value, 0.0, rtol=0.0, atol=_FLAT_TOLERANCE))


def _as_array(returns: Sequence[float]) -> np.ndarray:
    return np.asarray(returns, dtype=float).ravel()


def annualized_return(
    returns: Sequence[float], trading_days: int = TRADING_DAYS_PER_YEAR
) -> float:
    r = _as_array(returns)
    return float(r.mean() * trading_days) if r.size else 0.0


def annualized_volatility(
    returns: Sequence[float], trading_days: int = TRADING_DAYS_PER_YEAR
) -> float:
    r = _as_array(returns)
    if r.size < 2:
        return 0.0
    return float(r.std(ddof=1) * np.sqrt(trading_days))


def max_drawdown(returns: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline of the wealth path.

    The path starts at 1.0 and compounds the log returns, so a first-day
    loss already counts as a drawdown.

    Parameters
    ----------
    returns : array-like
        Daily log returns in time order.

    Returns
    -------
    float
        Drawdown as a positive fraction (0.25 = 25% below the peak).
    """
    r = _as_array(returns)
    if r.size == 0:
        return 0.0
    wealth = np.concatenate(([1.0], np.exp(np.cumsum(r))))
    peaks = np.maximum.accumulate(wealth)
    drawdowns = (peaks - wealth) / peaks
    return float(drawdowns.max())


def sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """Annualized excess return per unit of annualized volatility (0 if flat)."""
    ann_vol = annualized_volatility(returns, trading_days)
    if _is_flat(ann_vol):
        return 0.0
    return (annualized_return(returns, trading_days) - risk_free_rate) / ann_vol


def sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Annualized excess return per unit of downside deviation.

    Downside deviation is measured below the daily risk-free rate and
    averages over every observation, not only the losing ones.

    Returns
    -------
    float
        Sortino ratio, or 0.0 when there is no downside.
    """
    r = _as_array(returns)
    if r.size == 0:
        return 0.0
    shortfall = np.minimum(r - risk_free_rate / trading_days, 0.0)
    downside = float(np.sqrt(np.mean(shortfall ** 2)) * np.sqrt(trading_days))
    if _is_flat(downside):
        return 0.0
    return (annualized_return(r, trading_days) - risk_free_rate) / downside


def calmar_ratio(
    returns: Sequence[float],
    trading_days: int = TRADING_DAYS_PER_YEAR,
    drawdown: Optional[float] = None,
) -> float:
    """Annualized return over max drawdown (0 when there is no drawdown)."""
    mdd = max_drawdown(returns) if drawdown is None else drawdown
    if _is_flat(mdd):
        return 0.0
    return annualized_return(returns, trading_days) / abs(mdd)


def omega_ratio(returns: Sequence[float], threshold: float = 0.0) -> float:
    """
    Probability-weighted gains over losses relative to a threshold.

    Returns
    -------
    float
        Omega ratio; ``inf`` when no return falls below the threshold.
    """
    r = _as_array(returns)
    gains = float(np.sum(np.maximum(r - threshold, 0.0)))
    losses = float(np.sum(np.maximum(threshold - r, 0.0)))
    if losses == 0:
        return math.inf
    return gains / losses


def tail_ratio(returns: Sequence[float]) -> float:
    """
    Right tail over left tail: |P95| / |P5|.

    Returns
    -------
    float
        Tail ratio; ``inf`` when the 5th percentile is exactly zero.
    """
    r = _as_array(returns)
    if r.size == 0:
        raise InsufficientDataError("tail ratio", 1, 0)
    right = abs(float(np.percentile(r, 95)))
    left = abs(float(np.percentile(r, 5)))
    if left == 0:
        return math.inf
    return right / left


def beta(portfolio_returns: Sequence[float], benchmark_returns: Sequence[float]) -> float:
    """
    Sensitivity of portfolio returns to benchmark returns.

    β = cov(r_p, r_b) / var(r_b), computed on the overlapping tail of both
    series.

    Raises
    ------
    InsufficientDataError
        If fewer than two overlapping observations exist.
    DomainError
        If the benchmark has zero variance.
    """
    rp = _as_array(portfolio_returns)
    rb = _as_array(benchmark_returns)
    n = min(rp.size, rb.size)
    if n < 2:
        raise InsufficientDataError("beta estimation", 2, n)
    rp, rb = rp[-n:], rb[-n:]

    var_b = float(np.var(rb, ddof=1))
    if var_b == 0:
        raise DomainError("benchmark variance", var_b, "must be positive")
    cov_pb = float(np.cov(rp, rb, ddof=1)[0, 1])
    return cov_pb / var_b


def compute_risk_ratios(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    drawdown_path: Optional[Sequence[float]] = None,
) -> RiskRatios:
    """
    Compute every performance ratio from one return series.

    Parameters
    ----------
    returns : array-like
        Daily log returns.
    risk_free_rate : float
        Annualized risk-free rate; its daily equivalent is the Omega
        threshold.
    trading_days : int
        Annualization factor.
    drawdown_path : array-like, optional
        Time-ordered returns used for the drawdown. Defaults to `returns`;
        pass a simulated path when `returns` are independent draws.

    Returns
    -------
    RiskRatios
    """
    r = _as_array(returns)
    if r.size < 2:
        raise InsufficientDataError("risk ratios", 2, r.size)

    mdd = max_drawdown(r if drawdown_path is None else drawdown_path)

    return RiskRatios(
        sharpe_ratio=sharpe_ratio(r, risk_free_rate, trading_days),
        sortino_ratio=sortino_ratio(r, risk_free_rate, trading_days),
        calmar_ratio=calmar_ratio(r, trading_days, drawdown=mdd),
        omega_ratio=omega_ratio(r, risk_free_rate / trading_days),
        tail_ratio=tail_ratio(r),
        max_drawdown=mdd,
    )


def summarize_returns(
    returns: Sequence[float],
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> Dict[str, float]:
    """
    Summary statistics for a portfolio return series.

    Skewness < 0 (left skew) and excess kurtosis > 0 (leptokurtic) both
    indicate heavier-than-Gaussian left tails, the regime where Gaussian
    VaR underestimates true risk.

    Returns
    -------
    dict
        Annualized return and volatility, skewness, excess kurtosis and
        the number of observations.
    """
    r = _as_array(returns)
    return {
        "annualized_return": annualized_return(r, trading_days),
        "annualized_volatility": annualized_volatility(r, trading_days),
        "skewness": float(scipy_stats.skew(r)),
        # excess_kurtosis = 0 for a Gaussian
        "excess_kurtosis": float(scipy_stats.kurtosis(r)),
        "num_observations": int(r.size),
    }
