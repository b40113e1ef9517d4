"""
Shared pytest fixtures for the risk-analytics test suite.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from risk_analytics.config import DEFAULT_CONFIG
from risk_analytics.types import CreditProfile, Position


@pytest.fixture
def config():
    return DEFAULT_CONFIG


@pytest.fixture
def rng():
    return np.random.default_rng(123)


@pytest.fixture
def positions():
    return [
        Position("AAPL", 100, 150.0, portfolio_id=1, asset_class="Equity"),
        Position("MSFT", 50, 300.0, portfolio_id=1, asset_class="Equity"),
        Position("TLT", 200, 90.0, portfolio_id=1, asset_class="Bond"),
        Position("SPY", 20, 450.0, portfolio_id=1, asset_class="ETF"),
    ]


@pytest.fixture
def market_prices():
    return {"AAPL": 180.0, "MSFT": 400.0, "TLT": 95.0, "SPY": 500.0}


@pytest.fixture
def historical_returns():
    """500 days of correlated daily log returns for the fixture symbols."""
    gen = np.random.default_rng(2024)
    vols = np.array([0.016, 0.014, 0.006, 0.011])
    corr = np.array([
        [1.0, 0.6, -0.2, 0.7],
        [0.6, 1.0, -0.1, 0.7],
        [-0.2, -0.1, 1.0, -0.1],
        [0.7, 0.7, -0.1, 1.0],
    ])
    cov = np.outer(vols, vols) * corr
    draws = gen.multivariate_normal(np.full(4, 0.0003), cov, size=500)
    index = pd.bdate_range("2023-01-02", periods=500)
    return pd.DataFrame(draws, index=index, columns=["AAPL", "MSFT", "TLT", "SPY"])


@pytest.fixture
def benchmark_returns(historical_returns):
    return historical_returns["SPY"].values


@pytest.fixture
def credit_profile():
    return CreditProfile(
        credit_score=750,
        debt_to_equity=0.5,
        current_ratio=2.1,
        interest_coverage=8.5,
        industry_risk_score=3.2,
        exposure_amount=300_000,
    )
