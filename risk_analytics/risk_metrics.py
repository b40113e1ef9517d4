"""
Risk Metrics Module
====================
Implements Historical VaR and Parametric (Variance-Covariance) VaR
with Expected Shortfall for each method.

Mathematical Foundation:
    Historical VaR:     Quantile of empirical loss distribution
    Parametric VaR:     VaR_c = z_c · σ_p · √h · PV
    Parametric ES:      ES_c  = σ_p · √h · φ(z_c) / (1 - c) · PV
    Expected Shortfall: ES = E[L | L > VaR]

Parametric figures assume zero drift over the horizon, so both VaR and
ES are non-negative and increase with the confidence level.
"""

import math
import numpy as np
from typing import Dict, Sequence

from risk_analytics.config import DEFAULT_CONFIG, RiskEngineConfig, level_key
from risk_analytics.distributions import inverse_normal_cdf, normal_pdf
from risk_analytics.exceptions import DomainError, InsufficientDataError


# ─────────────────────────────────────────────────────────────
# Historical VaR
# ─────────────────────────────────────────────────────────────

def compute_historical_var(
    portfolio_returns: Sequence[float],
    confidence_level: float = 0.99,
) -> float:
    """
    Compute Value-at-Risk using Historical Simulation.

    Algorithm:
        1. Convert returns to losses: L = -R_p
        2. Extract the quantile at confidence_level

    Parameters
    ----------
    portfolio_returns : array-like
        Historical portfolio returns.
    confidence_level : float
        Confidence level (default: 0.99).

    Returns
    -------
    float
        Historical VaR (positive = loss magnitude).
    """
    losses = -np.asarray(portfolio_returns, dtype=float)
    if losses.size == 0:
        raise InsufficientDataError("historical VaR", 1, 0)
    return float(np.percentile(losses, confidence_level * 100))


def compute_historical_es(
    portfolio_returns: Sequence[float],
    confidence_level: float = 0.99,
) -> float:
    """
    Compute Expected Shortfall using Historical Simulation.

    ES = E[L | L >= VaR]

    Parameters
    ----------
    portfolio_returns : array-like
        Historical portfolio returns.
    confidence_level : float
        Confidence level (default: 0.99).

    Returns
    -------
    float
        Historical ES (positive = loss magnitude).
    """
    losses = -np.asarray(portfolio_returns, dtype=float)
    if losses.size == 0:
        raise InsufficientDataError("historical ES", 1, 0)
    var = np.percentile(losses, confidence_level * 100)
    tail_losses = losses[losses >= var]
    return float(np.mean(tail_losses))


def historical_risk_metrics(
    portfolio_returns: Sequence[float],
    confidence_levels: Sequence[float] = DEFAULT_CONFIG.confidence_levels,
) -> Dict[str, float]:
    """
    Compute full suite of historical risk metrics.

    Parameters
    ----------
    portfolio_returns : array-like
        Portfolio return series.
    confidence_levels : sequence of float
        Levels to report.

    Returns
    -------
    dict
        hist_var_<level> and hist_es_<level> as fractions of value.
    """
    metrics: Dict[str, float] = {}
    for level in confidence_levels:
        key = level_key(level)
        metrics[f"hist_var_{key}"] = compute_historical_var(portfolio_returns, level)
        metrics[f"hist_es_{key}"] = compute_historical_es(portfolio_returns, level)
    return metrics


# ─────────────────────────────────────────────────────────────
# Parametric (Variance-Covariance) VaR
# ─────────────────────────────────────────────────────────────

def _check_std(portfolio_std: float) -> None:
    if not math.isfinite(portfolio_std) or portfolio_std < 0:
        raise DomainError("portfolio_std", portfolio_std, "must be finite and non-negative")


def compute_parametric_var(
    portfolio_std: float,
    confidence_level: float = 0.99,
    portfolio_value: float = 1.0,
    horizon_days: int = 1,
) -> float:
    """
    Compute Parametric VaR assuming Gaussian returns.

    Mathematical Definition:
        VaR_c = z_c · σ_p · √h · PV

    Where z_c is the standard normal quantile. Levels at or below 0.5 give
    a non-positive quantile and the VaR is floored at 0.

    Parameters
    ----------
    portfolio_std : float
        Daily portfolio standard deviation.
    confidence_level : float
        Confidence level (default: 0.99).
    portfolio_value : float
        Current portfolio value; 1.0 gives VaR as a fraction.
    horizon_days : int
        Horizon in trading days (square-root-of-time scaling).

    Returns
    -------
    float
        Parametric VaR (positive = loss magnitude).
    """
    _check_std(portfolio_std)
    z_c = inverse_normal_cdf(confidence_level)
    return max(0.0, z_c * portfolio_std * math.sqrt(horizon_days) * portfolio_value)


def compute_parametric_es(
    portfolio_std: float,
    confidence_level: float = 0.99,
    portfolio_value: float = 1.0,
    horizon_days: int = 1,
) -> float:
    """
    Compute Parametric Expected Shortfall under Gaussian assumption.

    Mathematical Definition:
        ES_c = σ_p · √h · φ(z_c) / (1 - c) · PV

    Where φ is the standard normal PDF.

    Parameters
    ----------
    portfolio_std : float
        Daily portfolio standard deviation.
    confidence_level : float
        Confidence level.
    portfolio_value : float
        Current portfolio value.
    horizon_days : int
        Horizon in trading days.

    Returns
    -------
    float
        Parametric ES (positive = loss magnitude).
    """
    _check_std(portfolio_std)
    z_c = inverse_normal_cdf(confidence_level)
    tail_mean = normal_pdf(z_c) / (1 - confidence_level)
    return portfolio_std * math.sqrt(horizon_days) * tail_mean * portfolio_value


def parametric_risk_metrics(
    portfolio_std: float,
    portfolio_value: float = 1.0,
    config: RiskEngineConfig = DEFAULT_CONFIG,
) -> Dict[str, float]:
    """
    Compute full suite of parametric risk metrics.

    Parameters
    ----------
    portfolio_std : float
        Daily portfolio std dev.
    portfolio_value : float
        Current portfolio value.
    config : RiskEngineConfig
        Supplies confidence levels and horizon.

    Returns
    -------
    dict
        param_var_<level> and param_es_<level> in currency units.
    """
    metrics: Dict[str, float] = {}
    for level in config.confidence_levels:
        key = level_key(level)
        metrics[f"param_var_{key}"] = compute_parametric_var(
            portfolio_std, level, portfolio_value, config.horizon_days
        )
        metrics[f"param_es_{key}"] = compute_parametric_es(
            portfolio_std, level, portfolio_value, config.horizon_days
        )
    return metrics
