"""
Statistical Estimation Module
==============================
Computes mean return vector, covariance matrix, correlation matrix,
and portfolio-level statistics using NumPy linear algebra.

Mathematical Foundation:
    Mean:        μ = E[r]
    Covariance:  Σ = E[(r - μ)(r - μ)^T]
    Assumed:     Σ = D · ρ · D,  ρ_ij = ρ* for i ≠ j
    Portfolio σ²: σ_p² = w^T Σ w
    Repair:      ρ ← V · max(Λ, ε) · V^T, rescaled to a unit diagonal
"""

import numpy as np
import pandas as pd
from typing import Dict, Sequence

from risk_analytics.exceptions import DomainError, InsufficientDataError


MIN_OBSERVATIONS: int = 2


def compute_mean_vector(returns: pd.DataFrame) -> np.ndarray:
    """
    Compute the daily mean return vector.

    Parameters
    ----------
    returns : pd.DataFrame
        Daily log returns (T x N).

    Returns
    -------
    np.ndarray
        Daily mean return vector (N,).
    """
    return returns.mean().values


def compute_covariance_matrix(returns: pd.DataFrame) -> np.ndarray:
    """
    Compute the sample covariance matrix of daily returns.

    Uses unbiased estimator (ddof=1).

    Parameters
    ----------
    returns : pd.DataFrame
        Daily log returns (T x N).

    Returns
    -------
    np.ndarray
        Covariance matrix (N x N).

    Raises
    ------
    InsufficientDataError
        If fewer than two observations are available.
    """
    if len(returns) < MIN_OBSERVATIONS:
        raise InsufficientDataError("covariance estimation", MIN_OBSERVATIONS, len(returns))
    cov = np.cov(returns.values, rowvar=False, ddof=1)
    # np.cov collapses a single column to a 0-d array
    return np.atleast_2d(cov)


def compute_correlation_matrix(returns: pd.DataFrame) -> np.ndarray:
    """
    Compute the Pearson correlation matrix.

    Parameters
    ----------
    returns : pd.DataFrame
        Daily log returns (T x N).

    Returns
    -------
    np.ndarray
        Correlation matrix (N x N).
    """
    return np.atleast_2d(np.corrcoef(returns.values, rowvar=False))


def build_covariance_matrix(
    volatilities: Sequence[float],
    correlation: float = 0.0,
) -> np.ndarray:
    """
    Build a covariance matrix from volatilities and a constant correlation.

    Mathematical Definition:
        Σ = D · ρ · D,  D = diag(σ),  ρ_ii = 1,  ρ_ij = correlation

    correlation = 0 is the independence assumption.

    Parameters
    ----------
    volatilities : sequence of float
        Per-asset volatilities over the chosen horizon.
    correlation : float
        Constant pairwise correlation.

    Returns
    -------
    np.ndarray
        Covariance matrix (N x N).

    Raises
    ------
    DomainError
        If a volatility is negative, or the correlation makes the
        matrix indefinite (below -1/(N-1)).
    """
    vols = np.asarray(volatilities, dtype=float)
    if np.any(vols < 0):
        raise DomainError("volatilities", vols.tolist(), "must be non-negative")

    n = len(vols)
    if n > 1 and correlation < -1.0 / (n - 1):
        raise DomainError(
            "correlation",
            correlation,
            f"must be at least {-1.0 / (n - 1):.4f} for {n} assets",
        )

    corr = np.full((n, n), correlation)
    np.fill_diagonal(corr, 1.0)
    D = np.diag(vols)
    return D @ corr @ D


def compute_portfolio_statistics(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    weights: np.ndarray,
) -> Dict[str, float]:
    """
    Compute portfolio-level risk statistics.

    Mathematical Definitions:
        Portfolio mean:      μ_p = w^T μ
        Portfolio variance:  σ_p² = w^T Σ w
        Portfolio std dev:   σ_p  = sqrt(σ_p²)

    Parameters
    ----------
    mean_vector : np.ndarray
        Daily mean return vector.
    cov_matrix : np.ndarray
        Covariance matrix.
    weights : np.ndarray
        Portfolio weight vector.

    Returns
    -------
    dict
        Dictionary with portfolio_mean, portfolio_variance, portfolio_std.
    """
    portfolio_mean: float = float(weights @ mean_vector)
    # Clip tiny negative round-off before the square root
    portfolio_variance: float = max(float(weights @ cov_matrix @ weights), 0.0)
    portfolio_std: float = float(np.sqrt(portfolio_variance))

    return {
        "portfolio_mean": portfolio_mean,
        "portfolio_variance": portfolio_variance,
        "portfolio_std": portfolio_std,
    }


def validate_covariance_matrix(cov_matrix: np.ndarray) -> bool:
    """
    Check if covariance matrix is symmetric and positive semi-definite.

    Parameters
    ----------
    cov_matrix : np.ndarray
        Covariance matrix to validate.

    Returns
    -------
    bool
        True if valid, False otherwise.
    """
    if not np.all(np.isfinite(cov_matrix)):
        return False

    # Symmetry check
    if not np.allclose(cov_matrix, cov_matrix.T, atol=1e-10):
        return False

    # Positive semi-definiteness: all eigenvalues >= 0
    eigenvalues = np.linalg.eigvalsh(cov_matrix)
    return bool(np.all(eigenvalues >= -1e-10))


def regularize_covariance(
    cov_matrix: np.ndarray, epsilon: float = 1e-8
) -> np.ndarray:
    """
    Regularize covariance matrix to ensure positive definiteness.

    Adds a small value to the diagonal (Tikhonov regularization).

    Parameters
    ----------
    cov_matrix : np.ndarray
        Original covariance matrix.
    epsilon : float
        Regularization parameter.

    Returns
    -------
    np.ndarray
        Regularized covariance matrix.
    """
    n = cov_matrix.shape[0]
    return cov_matrix + epsilon * np.eye(n)



def nearest_positive_semidefinite(
    cov_matrix: np.ndarray, epsilon: float = 1e-8
) -> np.ndarray:
    """
    Repair an indefinite covariance matrix while keeping its variances.

    Works in correlation space: eigenvalues of the correlation matrix are
    floored at `epsilon`, the result is rescaled to a unit diagonal and
    mapped back with the original volatilities.

    Parameters
    ----------
    cov_matrix : np.ndarray
        Symmetric matrix with non-negative diagonal.
    epsilon : float
        Eigenvalue floor in correlation units.

    Returns
    -------
    np.ndarray
        Positive-definite covariance matrix with the same diagonal.
    """
    cov = np.asarray(cov_matrix, dtype=float)
    cov = (cov + cov.T) / 2.0
    std = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    scale = np.where(std > 0, std, 1.0)
    corr = cov / np.outer(scale, scale)

    eigenvalues, eigenvectors = np.linalg.eigh(corr)
    eigenvalues = np.maximum(eigenvalues, epsilon)
    corr = eigenvectors @ np.diag(eigenvalues) @ eigenvectors.T

    d = np.sqrt(np.diag(corr))
    corr = corr / np.outer(d, d)
    repaired = corr * np.outer(std, std)
    return (repaired + repaired.T) / 2.0
