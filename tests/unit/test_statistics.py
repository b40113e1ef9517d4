"""
Tests for statistical estimation helpers.
"""

import numpy as np
import pandas as pd
import pytest

from risk_analytics.exceptions import DomainError, InsufficientDataError
from risk_analytics.statistics import (
    build_covariance_matrix,
    compute_correlation_matrix,
    compute_covariance_matrix,
    compute_mean_vector,
    compute_portfolio_statistics,
    nearest_positive_semidefinite,
    regularize_covariance,
    validate_covariance_matrix,
)


class TestSampleEstimates:

    def test_mean_and_covariance_match_pandas(self, historical_returns):
        np.testing.assert_allclose(
            compute_mean_vector(historical_returns), historical_returns.mean().values
        )
        np.testing.assert_allclose(
            compute_covariance_matrix(historical_returns), historical_returns.cov().values
        )

    def test_correlation_has_unit_diagonal(self, historical_returns):
        corr = compute_correlation_matrix(historical_returns)
        np.testing.assert_allclose(np.diag(corr), 1.0)
        assert corr[0, 1] == pytest.approx(0.6, abs=0.1)

    def test_single_column_is_two_dimensional(self, historical_returns):
        cov = compute_covariance_matrix(historical_returns[["AAPL"]])
        assert cov.shape == (1, 1)

    def test_too_few_rows(self):
        with pytest.raises(InsufficientDataError):
            compute_covariance_matrix(pd.DataFrame({"A": [0.01]}))


class TestBuildCovariance:

    def test_independence(self):
        cov = build_covariance_matrix([0.1, 0.2, 0.3])
        np.testing.assert_allclose(cov, np.diag([0.01, 0.04, 0.09]))

    def test_constant_correlation(self):
        cov = build_covariance_matrix([0.1, 0.2], correlation=0.5)
        assert cov[0, 1] == pytest.approx(0.5 * 0.1 * 0.2)
        assert cov[1, 0] == cov[0, 1]
        assert validate_covariance_matrix(cov)

    def test_negative_volatility(self):
        with pytest.raises(DomainError):
            build_covariance_matrix([0.1, -0.2])

    def test_correlation_below_lower_bound(self):
        # -1/(n-1) = -0.5 for three assets
        with pytest.raises(DomainError):
            build_covariance_matrix([0.1, 0.1, 0.1], correlation=-0.6)

    def test_lower_bound_is_positive_semidefinite(self):
        assert validate_covariance_matrix(build_covariance_matrix([0.1, 0.1, 0.1], -0.5))


class TestPortfolioStatistics:

    def test_two_asset_closed_form(self):
        cov = build_covariance_matrix([0.1, 0.2], correlation=0.25)
        stats_ = compute_portfolio_statistics(np.array([0.01, 0.02]), cov, np.array([0.6, 0.4]))
        expected_var = 0.36 * 0.01 + 0.16 * 0.04 + 2 * 0.6 * 0.4 * 0.25 * 0.1 * 0.2
        assert stats_["portfolio_mean"] == pytest.approx(0.014)
        assert stats_["portfolio_variance"] == pytest.approx(expected_var)
        assert stats_["portfolio_std"] == pytest.approx(np.sqrt(expected_var))


class TestValidation:

    def test_rejects_indefinite(self):
        assert not validate_covariance_matrix(np.array([[1.0, 2.0], [2.0, 1.0]]))

    def test_rejects_asymmetric(self):
        assert not validate_covariance_matrix(np.array([[1.0, 0.5], [0.1, 1.0]]))

    def test_rejects_non_finite(self):
        assert not validate_covariance_matrix(np.array([[np.nan, 0.0], [0.0, 1.0]]))

    def test_regularize_adds_to_diagonal(self):
        cov = np.array([[1.0, 1.0], [1.0, 1.0]])
        np.testing.assert_allclose(regularize_covariance(cov, 0.5), cov + 0.5 * np.eye(2))


class TestNearestPositiveSemidefinite:

    INCONSISTENT = np.array([
        [1.0, -0.99, 0.5],
        [-0.99, 1.0, 0.5],
        [0.5, 0.5, 1.0],
    ])

    def test_repairs_inconsistent_correlations(self):
        vols = np.array([0.1, 0.2, 0.3])
        cov = self.INCONSISTENT * np.outer(vols, vols)
        assert not validate_covariance_matrix(cov)

        repaired = nearest_positive_semidefinite(cov)
        assert validate_covariance_matrix(repaired)
        np.testing.assert_allclose(np.diag(repaired), vols ** 2)
        np.linalg.cholesky(repaired)

    def test_valid_matrix_is_kept(self):
        cov = build_covariance_matrix([0.1, 0.2], correlation=0.5)
        np.testing.assert_allclose(nearest_positive_semidefinite(cov), cov)

    def test_zero_variance_asset(self):
        cov = np.array([[0.04, 0.0], [0.0, 0.0]])
        repaired = nearest_positive_semidefinite(cov)
        np.testing.assert_allclose(repaired, cov, atol=1e-15)
