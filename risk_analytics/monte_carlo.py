"""
Monte Carlo Simulation Engine (Flagship Module)
================================================
Generates correlated asset return simulations using Cholesky decomposition
and computes portfolio-level loss distributions.

Three innovation models are supported:
    gaussian   Z ~ N(0, I)
    student_t  Z ~ t(ν), rescaled by √((ν-2)/ν) so that Var(Z) = 1
    bootstrap  rows resampled with replacement from historical returns

Mathematical Foundation:
    Cholesky:     Σ = L L^T
    Simulation:   R = μ + L Z
    Portfolio:    R_p = w^T R
    VaR_c:        -Q_{1-c}(R_p)
    ES_c:         -E[R_p | R_p <= Q_{1-c}(R_p)]

The random generator is always passed in, never created from global
state, so identical seeds reproduce identical draws.
"""

import logging
import numpy as np
from scipy import stats
from typing import Dict, Optional, Sequence

from risk_analytics.config import DEFAULT_CONFIG, RiskEngineConfig, level_key
from risk_analytics.exceptions import SimulationError
from risk_analytics.statistics import (
    regularize_covariance,
    validate_covariance_matrix,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
REGULARIZATION_EPSILON: float = 1e-6
MIN_DEGREES_OF_FREEDOM: float = 2.5


def make_rng(config: RiskEngineConfig = DEFAULT_CONFIG) -> np.random.Generator:
    """Default generator seeded from the configuration."""
    return np.random.default_rng(config.random_seed)


def cholesky_decomposition(cov_matrix: np.ndarray) -> np.ndarray:
    """
    Perform Cholesky decomposition of the covariance matrix.

    Decomposes Σ into lower triangular L such that Σ = L L^T.
    A matrix that fails the symmetry/PSD check, or that is singular, is
    regularized once before giving up.

    Parameters
    ----------
    cov_matrix : np.ndarray
        Covariance matrix (N x N). Must be symmetric.

    Returns
    -------
    np.ndarray
        Lower triangular Cholesky factor L (N x N).

    Raises
    ------
    SimulationError
        If the matrix holds non-finite values or cannot be factorised
        after regularization.
    """
    cov_matrix = np.atleast_2d(np.asarray(cov_matrix, dtype=float))
    if not np.all(np.isfinite(cov_matrix)):
        raise SimulationError("cholesky", "covariance matrix contains non-finite values")

    if not validate_covariance_matrix(cov_matrix):
        logger.debug("Covariance matrix failed PSD check; regularizing")
        cov_matrix = regularize_covariance(cov_matrix)

    try:
        return np.linalg.cholesky(cov_matrix)
    except np.linalg.LinAlgError:
        logger.info("Cholesky failed; retrying with epsilon=%g", REGULARIZATION_EPSILON)

    try:
        return np.linalg.cholesky(
            regularize_covariance(cov_matrix, epsilon=REGULARIZATION_EPSILON)
        )
    except np.linalg.LinAlgError as exc:
        raise SimulationError(
            "cholesky", "covariance matrix is not positive definite"
        ) from exc


def simulate_correlated_returns(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    num_simulations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Generate correlated asset return simulations via Cholesky decomposition.

    Algorithm:
        1. Decompose Σ = L L^T
        2. Draw Z ~ N(0, I) of shape (num_simulations, N)
        3. Transform: R = μ + L Z

    Parameters
    ----------
    mean_vector : np.ndarray
        Mean return vector over the horizon (N,).
    cov_matrix : np.ndarray
        Covariance matrix over the horizon (N x N).
    num_simulations : int
        Number of Monte Carlo draws.
    rng : np.random.Generator
        Source of randomness.

    Returns
    -------
    np.ndarray
        Simulated returns matrix (num_simulations x N).
    """
    n_assets = len(mean_vector)
    L = cholesky_decomposition(cov_matrix)
    Z = rng.standard_normal(size=(num_simulations, n_assets))

    # R_i = μ + (L Z_i^T)^T  →  vectorized as  R = Z @ L^T + μ
    return Z @ L.T + mean_vector


def fit_degrees_of_freedom(portfolio_returns: Sequence[float]) -> float:
    """
    Estimate Student-t degrees of freedom from historical data via MLE.

    Fits below 2.5 are raised to 2.5 so the innovations keep a finite
    variance.

    Parameters
    ----------
    portfolio_returns : array-like
        Historical portfolio return series.

    Returns
    -------
    float
        Degrees of freedom ν.
    """
    df, _loc, _scale = stats.t.fit(np.asarray(portfolio_returns, dtype=float))
    if not np.isfinite(df) or df < MIN_DEGREES_OF_FREEDOM:
        logger.info("Fitted dof %.3f raised to %.1f", df, MIN_DEGREES_OF_FREEDOM)
        return MIN_DEGREES_OF_FREEDOM
    return float(df)


def simulate_student_t_returns(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    df: float,
    num_simulations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Generate correlated asset returns using Student-t innovations.

    Algorithm:
        1. Cholesky decompose Σ = L L^T
        2. Draw Z ~ t(ν), shape (N_sim, N_assets)
        3. Scale Z so that Var(Z) = 1:  Z̃ = Z · √((ν−2)/ν)
        4. Correlate:  R = μ + Z̃ @ L^T

    Parameters
    ----------
    mean_vector : np.ndarray
        Mean return vector over the horizon (N,).
    cov_matrix : np.ndarray
        Covariance matrix over the horizon (N × N).
    df : float
        Degrees of freedom (ν > 2 required for finite variance).
    num_simulations : int
        Number of Monte Carlo draws.
    rng : np.random.Generator
        Source of randomness.

    Returns
    -------
    np.ndarray
        Simulated returns matrix (num_simulations × N).
    """
    if df <= 2:
        raise SimulationError("student_t", f"degrees of freedom must exceed 2, got {df}")

    n_assets = len(mean_vector)
    L = cholesky_decomposition(cov_matrix)
    Z = rng.standard_t(df=df, size=(num_simulations, n_assets))

    # Student-t with ν dof has Var = ν/(ν−2)
    Z = Z * np.sqrt((df - 2) / df)

    return Z @ L.T + mean_vector


def bootstrap_returns(
    historical_returns: np.ndarray,
    num_simulations: int,
    rng: np.random.Generator,
    horizon_days: int = 1,
) -> np.ndarray:
    """
    Resample historical return rows with replacement.

    Whole rows are drawn so cross-asset dependence is preserved. For a
    multi-day horizon, `horizon_days` independent rows are summed (log
    returns are additive).

    Parameters
    ----------
    historical_returns : np.ndarray
        Daily log returns (T x N).
    num_simulations : int
        Number of draws.
    rng : np.random.Generator
        Source of randomness.
    horizon_days : int
        Days per draw.

    Returns
    -------
    np.ndarray
        Simulated returns matrix (num_simulations x N).

    Raises
    ------
    SimulationError
        If no history is available.
    """
    history = np.asarray(historical_returns, dtype=float)
    if history.ndim != 2 or history.shape[0] == 0:
        raise SimulationError("bootstrap", "historical returns are required")

    idx = rng.integers(0, history.shape[0], size=(num_simulations, horizon_days))
    return history[idx].sum(axis=1)


def compute_mc_var(
    portfolio_pnl: np.ndarray,
    confidence_level: float = 0.99,
) -> float:
    """
    Compute Value-at-Risk from simulated P&L distribution.

    VaR is the loss at the (1 - confidence_level) quantile of P&L,
    floored at zero.

    Parameters
    ----------
    portfolio_pnl : np.ndarray
        Simulated portfolio returns.
    confidence_level : float
        Confidence level (default: 0.99).

    Returns
    -------
    float
        VaR as a non-negative number (loss magnitude).
    """
    var = -np.percentile(portfolio_pnl, (1 - confidence_level) * 100)
    return max(float(var), 0.0)


def compute_mc_expected_shortfall(
    portfolio_pnl: np.ndarray,
    confidence_level: float = 0.99,
) -> float:
    """
    Compute Expected Shortfall (CVaR) from simulated P&L.

    ES = E[Loss | Loss >= VaR]
    Mean of losses at or beyond the VaR threshold, never below VaR.

    Parameters
    ----------
    portfolio_pnl : np.ndarray
        Simulated portfolio returns.
    confidence_level : float
        Confidence level (default: 0.99).

    Returns
    -------
    float
        Expected Shortfall as a non-negative number.
    """
    threshold = np.percentile(portfolio_pnl, (1 - confidence_level) * 100)
    tail_losses = portfolio_pnl[portfolio_pnl <= threshold]
    es = -float(np.mean(tail_losses))
    return max(es, compute_mc_var(portfolio_pnl, confidence_level))


def simulate_asset_returns(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    config: RiskEngineConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
    historical_returns: Optional[np.ndarray] = None,
    degrees_of_freedom: Optional[float] = None,
) -> np.ndarray:
    """
    Draw asset returns over the configured horizon.

    `mean_vector` and `cov_matrix` are daily; they are scaled by
    `config.horizon_days` for the parametric generators.

    Parameters
    ----------
    mean_vector : np.ndarray
        Daily mean return vector (N,).
    cov_matrix : np.ndarray
        Daily covariance matrix (N x N).
    config : RiskEngineConfig
        Supplies method, iteration count and horizon.
    rng : np.random.Generator, optional
        Defaults to a generator seeded with `config.random_seed`.
    historical_returns : np.ndarray, optional
        Daily returns (T x N), required for bootstrap.
    degrees_of_freedom : float, optional
        Student-t ν; defaults to `config.student_t_dof`.

    Returns
    -------
    np.ndarray
        Simulated returns matrix (iterations x N).
    """
    rng = rng if rng is not None else make_rng(config)
    method = config.simulation_method
    n = config.monte_carlo_iterations
    h = config.horizon_days

    logger.debug("Simulating %d draws (%s, horizon=%d)", n, method, h)

    if method == "bootstrap":
        if historical_returns is None:
            raise SimulationError("bootstrap", "historical returns are required")
        return bootstrap_returns(historical_returns, n, rng, horizon_days=h)

    mean_h = np.asarray(mean_vector, dtype=float) * h
    cov_h = np.atleast_2d(np.asarray(cov_matrix, dtype=float)) * h

    if method == "student_t":
        df = degrees_of_freedom if degrees_of_freedom is not None else config.student_t_dof
        return simulate_student_t_returns(mean_h, cov_h, df, n, rng)

    return simulate_correlated_returns(mean_h, cov_h, n, rng)


def run_monte_carlo_engine(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    weights: np.ndarray,
    config: RiskEngineConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
    historical_returns: Optional[np.ndarray] = None,
) -> Dict[str, object]:
    """
    Full Monte Carlo risk engine execution.

    Runs simulation and computes VaR and ES at every configured
    confidence level, as fractions of portfolio value.

    For the Student-t method, ν is fitted on the historical portfolio
    return series when history is given, otherwise taken from the
    configuration.

    Parameters
    ----------
    mean_vector : np.ndarray
        Daily mean return vector.
    cov_matrix : np.ndarray
        Daily covariance matrix.
    weights : np.ndarray
        Portfolio weights.
    config : RiskEngineConfig
        Engine configuration.
    rng : np.random.Generator, optional
        Source of randomness.
    historical_returns : np.ndarray, optional
        Daily asset returns (T x N) aligned with `weights`.

    Returns
    -------
    dict
        Contains: portfolio_pnl, simulated_returns, var_<level>,
        es_<level> for each confidence level, num_simulations, method,
        degrees_of_freedom.
    """
    dof: Optional[float] = None
    if config.simulation_method == "student_t":
        if historical_returns is not None and len(historical_returns) > 2:
            dof = fit_degrees_of_freedom(np.asarray(historical_returns) @ weights)
        else:
            dof = config.student_t_dof
        logger.debug("Student-t degrees of freedom: %.3f", dof)

    simulated_returns = simulate_asset_returns(
        mean_vector,
        cov_matrix,
        config=config,
        rng=rng,
        historical_returns=historical_returns,
        degrees_of_freedom=dof,
    )
    portfolio_pnl = simulated_returns @ weights

    results: Dict[str, object] = {
        "portfolio_pnl": portfolio_pnl,
        "simulated_returns": simulated_returns,
        "num_simulations": config.monte_carlo_iterations,
        "method": config.simulation_method,
        "degrees_of_freedom": dof,
    }
    for level in config.confidence_levels:
        key = level_key(level)
        results[f"var_{key}"] = compute_mc_var(portfolio_pnl, level)
        results[f"es_{key}"] = compute_mc_expected_shortfall(portfolio_pnl, level)

    return results
