"""
Quantitative Risk-Analytics Engine — Main Orchestrator
======================================================
Entry point for the complete risk analysis pipeline.

Execution Flow:
    1. Load cached / fetch price history and quote the positions
    2. Portfolio valuation, weights and statistical estimation
    3. Historical, parametric and Monte Carlo VaR & ES
    4. Aggregate portfolio risk metrics
    5. Macro stress catalog and covariance stresses
    6. Option, structured product, credit and liquidity assessment
    7. Visualization
    8. Results export
"""

import json
import logging
import warnings
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from risk_analytics.aggregator import (
    build_portfolio_model,
    compute_risk_contributions,
    compute_risk_metrics,
)
from risk_analytics.black_scholes import generate_risk_surface, price_option
from risk_analytics.config import DEFAULT_CONFIG, level_key
from risk_analytics.credit_risk import assess_credit_risk
from risk_analytics.liquidity import assess_liquidity
from risk_analytics.market_data import MarketDataCache
from risk_analytics.monte_carlo import make_rng, run_monte_carlo_engine
from risk_analytics.performance import summarize_returns
from risk_analytics.portfolio import (
    DEFAULT_POSITIONS,
    compute_log_returns,
    fetch_data,
    latest_prices,
    load_data,
)
from risk_analytics.risk_metrics import historical_risk_metrics, parametric_risk_metrics
from risk_analytics.statistics import compute_correlation_matrix
from risk_analytics.structured_products import value_structured_product
from risk_analytics.stress_testing import (
    apply_correlation_stress,
    apply_volatility_shock,
    compute_stress_impact,
    run_stress_tests,
)
from risk_analytics.types import CreditProfile, StructuredProduct
from risk_analytics.visualization import (
    plot_asset_allocation,
    plot_correlation_heatmap,
    plot_covariance_stress,
    plot_pnl_distribution,
    plot_risk_contributions,
    plot_risk_surface,
    plot_stress_scenarios,
)

logger = logging.getLogger("risk_analytics.main")

# ─────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent
DATA_PATH = PROJECT_ROOT / "data" / "raw_prices.csv"
RESULTS_DIR = PROJECT_ROOT / "results"
FIGURES_DIR = RESULTS_DIR / "figures"
TABLES_DIR = RESULTS_DIR / "tables"

CONFIG = DEFAULT_CONFIG


def print_header(text: str) -> None:
    """Print formatted section header."""
    width = 60
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def print_metrics(metrics: dict, indent: int = 4) -> None:
    """Print dictionary of metrics with formatting."""
    prefix = " " * indent
    for key, val in metrics.items():
        if isinstance(val, float):
            print(f"{prefix}{key:.<35} {val:>16,.6f}")
        else:
            print(f"{prefix}{key:.<35} {str(val):>16}")


def load_price_history(symbols) -> Optional[pd.DataFrame]:
    """Cached CSV if present, else a Yahoo Finance download (None on failure)."""
    if DATA_PATH.exists():
        print(f"  Loading cached data from {DATA_PATH}")
        return load_data(str(DATA_PATH))

    print(f"  Fetching price data for: {symbols}")
    DATA_PATH.parent.mkdir(parents=True, exist_ok=True)
    try:
        prices = fetch_data(symbols, save_path=str(DATA_PATH))
    except (OSError, ValueError, KeyError) as exc:
        logger.warning("Price download failed (%s); continuing without history", exc)
        return None
    if prices.empty:
        logger.warning("Price download returned no rows; continuing without history")
        return None
    return prices


def main() -> None:
    """Execute the complete risk engine pipeline."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    warnings.simplefilter("default")

    print("\n" + "╔" + "═" * 58 + "╗")
    print("║   QUANTITATIVE RISK-ANALYTICS ENGINE                    ║")
    print("║   Portfolio, Option, Credit & Stress Risk               ║")
    print("╚" + "═" * 58 + "╝")

    positions = DEFAULT_POSITIONS
    symbols = sorted({p.symbol for p in positions})

    # ── PHASE 1: Data & Quotes ────────────────────────────────
    print_header("PHASE 1 — DATA ACQUISITION & MARKET QUOTES")

    prices = load_price_history(symbols)
    log_returns = compute_log_returns(prices) if prices is not None else None
    closes = latest_prices(prices) if prices is not None else {}

    purchase_prices = {p.symbol: p.purchase_price for p in positions}
    cache = MarketDataCache(provider=lambda s: closes.get(s, purchase_prices[s]))
    market_prices = cache.get_prices(symbols)

    print(f"\n  Market open:   {cache.is_market_open()}")
    print(f"  Quotes:        {market_prices}")
    if log_returns is not None:
        print(f"  Period:        {log_returns.index[0].date()} → {log_returns.index[-1].date()}")
        print(f"  Observations:  {len(log_returns)}")

    # ── PHASE 2: Portfolio & Statistics ───────────────────────
    print_header("PHASE 2 — PORTFOLIO CONSTRUCTION & STATISTICS")

    model = build_portfolio_model(positions, market_prices, log_returns, CONFIG)
    print(f"\n  Portfolio value: {model.portfolio_value:,.2f}")
    for symbol, weight in zip(model.symbols, model.weights):
        print(f"    {symbol:<6} {weight:>8.2%}")
    print(f"\n  Daily σ_p:       {model.portfolio_std:.6f}")
    print("  Risk contributions (share of σ_p):")
    for symbol, contribution in compute_risk_contributions(model).items():
        print(f"    {symbol:<6} {contribution / model.portfolio_std:>8.2%}")

    summary = {}
    if model.portfolio_history is not None:
        summary = summarize_returns(model.portfolio_history, CONFIG.trading_days_per_year)
        print("\n  Portfolio Summary:")
        print_metrics(summary)

    # ── PHASE 3: Risk Models ──────────────────────────────────
    print_header("PHASE 3 — RISK MODEL ESTIMATION")

    hist_metrics = {}
    if model.portfolio_history is not None:
        print("\n  ┌─ Historical VaR (fraction of value) ─────────┐")
        hist_metrics = historical_risk_metrics(
            model.portfolio_history, CONFIG.confidence_levels
        )
        print_metrics(hist_metrics)

    print("\n  ┌─ Parametric VaR (Variance-Covariance) ───────┐")
    param_metrics = parametric_risk_metrics(model.portfolio_std, model.portfolio_value, CONFIG)
    print_metrics(param_metrics)

    print(f"\n  ┌─ Aggregate Risk Metrics ({CONFIG.monte_carlo_iterations:,} draws) ─┐")
    metrics = compute_risk_metrics(
        positions,
        cache,
        historical_returns=log_returns,
        config=CONFIG,
        rng=make_rng(CONFIG),
        fallback_to_parametric=True,
    )
    print_metrics({k: v for k, v in metrics.to_dict().items() if not isinstance(v, dict)})
    print("\n  Asset-class stress losses:")
    print_metrics(metrics.stress_test_results)

    # ── PHASE 4: Stress Testing ───────────────────────────────
    print_header("PHASE 4 — STRESS TESTING")

    stress_results = run_stress_tests(model.portfolio_value, CONFIG)
    for result in stress_results:
        print(
            f"    {result.scenario:<34} {result.value_change:>14,.0f} "
            f"({result.percentage_change:+.1f}%)"
        )

    def _mc_losses(cov):
        mc = run_monte_carlo_engine(
            model.mean_vector, cov, model.weights, config=CONFIG, rng=make_rng(CONFIG)
        )
        return {
            f"{kind}_{level_key(c)}": mc[f"{kind}_{level_key(c)}"] * model.portfolio_value
            for kind in ("var", "es")
            for c in CONFIG.confidence_levels
        }

    base = _mc_losses(model.cov_matrix)
    vol_shock = _mc_losses(apply_volatility_shock(model.cov_matrix, 2.0))
    corr_stress = _mc_losses(apply_correlation_stress(model.cov_matrix, 0.9))

    print("\n  ┌─ Volatility Shock (2× Σ) ──────────────────┐")
    vol_impact = compute_stress_impact(base, vol_shock)
    print_metrics(vol_impact)

    print("\n  ┌─ Correlation Stress (ρ = 0.9) ──────────────┐")
    corr_impact = compute_stress_impact(base, corr_stress)
    print_metrics(corr_impact)

    # ── PHASE 5: Pricing, Credit & Liquidity ──────────────────
    print_header("PHASE 5 — OPTIONS, STRUCTURED PRODUCTS, CREDIT & LIQUIDITY")

    option = price_option(175.0, 180.0, 0.25, 0.05, 0.25, 0.02)
    print("\n  ┌─ Black-Scholes (S=175, K=180, T=0.25) ───────┐")
    print_metrics({"call_price": option.call_price, "put_price": option.put_price})
    print_metrics(option.to_dict()["greeks"])

    note = StructuredProduct(
        product_code="BRC-SPY-2Y",
        product_type="BARRIER_REVERSE_CONVERTIBLE",
        underlying_asset="SPY",
        notional_amount=100_000.0,
        strike_price=market_prices["SPY"],
        current_price=market_prices["SPY"],
        implied_volatility=0.20,
        maturity_date=date(date.today().year + 2, 1, 1),
        barrier_level=0.7 * market_prices["SPY"],
        coupon_rate=0.08,
    )
    note_valuation = value_structured_product(note)
    print(f"\n  ┌─ Structured Product ({note.product_code}) ─────────┐")
    print_metrics({
        "price": note_valuation.price,
        "risk_status": note_valuation.risk_status,
        "risk_score": note_valuation.risk_score,
    })
    print_metrics(note_valuation.scenarios)

    credit = assess_credit_risk(CreditProfile(750, 0.5, 2.1, 8.5, 3.2, 300_000))
    print("\n  ┌─ Credit Risk ────────────────────────────────┐")
    print_metrics(credit.to_dict())

    liquidity = assess_liquidity(
        cash_and_equivalents=0.10 * model.portfolio_value,
        liquid_securities=0.60 * model.portfolio_value,
        total_assets=model.portfolio_value,
        short_term_liabilities=0.25 * model.portfolio_value,
        total_liabilities=0.40 * model.portfolio_value,
    )
    print("\n  ┌─ Liquidity ──────────────────────────────────┐")
    print_metrics(liquidity.to_dict())

    # ── PHASE 6: Visualization ────────────────────────────────
    print_header("PHASE 6 — GENERATING VISUALIZATIONS")

    fig_dir = str(FIGURES_DIR)
    low, high = CONFIG.confidence_levels
    pnl = run_monte_carlo_engine(
        model.mean_vector, model.cov_matrix, model.weights,
        config=CONFIG, rng=make_rng(CONFIG), historical_returns=model.history,
    )["portfolio_pnl"]

    paths = [
        plot_pnl_distribution(
            pnl, model.portfolio_value,
            metrics.monte_carlo_var_95, metrics.monte_carlo_var_99,
            metrics.expected_shortfall_99,
            confidence_levels=(low, high),
            output_dir=fig_dir,
        ),
        plot_stress_scenarios(stress_results, output_dir=fig_dir),
        plot_asset_allocation(metrics.asset_allocation, output_dir=fig_dir),
        plot_risk_contributions(metrics.risk_contributions, output_dir=fig_dir),
        plot_risk_surface(generate_risk_surface(175.0), output_dir=fig_dir),
        plot_covariance_stress(
            {"Baseline": base, "Vol Shock (2×)": vol_shock, "Corr Stress (ρ=0.9)": corr_stress},
            output_dir=fig_dir,
        ),
    ]
    held = [s for s in model.symbols if log_returns is not None and s in log_returns.columns]
    if len(held) > 1:
        paths.append(
            plot_correlation_heatmap(
                compute_correlation_matrix(log_returns[held]), held, output_dir=fig_dir
            )
        )
    for path in paths:
        print(f"  ✓ {path}")

    # ── Save all results as JSON ──────────────────────────────
    all_results = {
        "portfolio": {
            "assets": model.symbols,
            "weights": model.weights.tolist(),
            "summary": summary,
        },
        "historical": hist_metrics,
        "parametric": param_metrics,
        "risk_metrics": metrics.to_dict(),
        "stress_testing": {
            "scenarios": [r.to_dict() for r in stress_results],
            "vol_shock": vol_impact,
            "corr_stress": corr_impact,
        },
        "option": option.to_dict(),
        "structured_product": note_valuation.to_dict(),
        "credit": credit.to_dict(),
        "liquidity": liquidity.to_dict(),
    }

    TABLES_DIR.mkdir(parents=True, exist_ok=True)
    results_path = TABLES_DIR / "full_results.json"
    with open(results_path, "w") as f:
        json.dump(all_results, f, indent=2, default=str)

    print(f"\n  Results saved to: {results_path}")

    print("\n" + "╔" + "═" * 58 + "╗")
    print("║   RISK ENGINE EXECUTION COMPLETE                        ║")
    print("╚" + "═" * 58 + "╝\n")


if __name__ == "__main__":
    main()
