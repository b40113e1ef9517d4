"""
Smoke tests for the report charts.
"""

from pathlib import Path

import numpy as np

from risk_analytics.black_scholes import generate_risk_surface
from risk_analytics.stress_testing import run_stress_tests
from risk_analytics.visualization import (
    plot_asset_allocation,
    plot_correlation_heatmap,
    plot_covariance_stress,
    plot_pnl_distribution,
    plot_risk_contributions,
    plot_risk_surface,
    plot_stress_scenarios,
)


def test_pnl_distribution(tmp_path):
    pnl = np.random.default_rng(0).normal(0.0, 0.01, 5_000)
    path = plot_pnl_distribution(pnl, 100_000.0, 1_650.0, 2_330.0, 2_670.0, output_dir=str(tmp_path))
    assert Path(path).name == "mc_pnl_distribution.png"
    assert Path(path).exists()


def test_stress_scenarios(tmp_path):
    path = plot_stress_scenarios(run_stress_tests(1_000_000), output_dir=str(tmp_path))
    assert Path(path).exists()


def test_asset_allocation(tmp_path):
    path = plot_asset_allocation({"Equity": 60.0, "Bond": 40.0}, output_dir=str(tmp_path))
    assert Path(path).name == "asset_allocation.png"


def test_correlation_heatmap(tmp_path, historical_returns):
    corr = historical_returns.corr().values
    path = plot_correlation_heatmap(corr, list(historical_returns.columns), output_dir=str(tmp_path))
    assert Path(path).exists()


def test_covariance_stress(tmp_path):
    figures = {"var_95": 1.0, "var_99": 2.0, "es_95": 1.5, "es_99": 2.5}
    scenarios = {"Base": figures, "Stressed": {k: 2 * v for k, v in figures.items()}}
    path = plot_covariance_stress(scenarios, output_dir=str(tmp_path / "nested"))
    assert Path(path).exists()


def test_covariance_stress_non_default_levels(tmp_path):
    figures = {"var_90": 1.0, "var_97_5": 2.0, "es_90": 1.5, "es_97_5": 2.5}
    path = plot_covariance_stress({"Base": figures}, output_dir=str(tmp_path))
    assert Path(path).exists()


def test_risk_contributions_with_hedge(tmp_path):
    contributions = {"AAPL": 0.006, "MSFT": 0.004, "TLT": -0.001}
    path = plot_risk_contributions(contributions, output_dir=str(tmp_path))
    assert Path(path).name == "risk_contributions.png"
    assert Path(path).exists()


def test_risk_surface(tmp_path):
    path = plot_risk_surface(generate_risk_surface(100.0, "put"), output_dir=str(tmp_path))
    assert Path(path).name == "put_risk_surface.png"
    assert Path(path).exists()
