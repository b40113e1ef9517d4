"""
Portfolio Risk Aggregation
==========================
Turns a list of positions plus market quotes into one
`AdvancedRiskMetrics` record: parametric and Monte Carlo VaR, Expected
Shortfall, performance ratios, beta, concentration, allocation and
asset-class stress losses.

Pipeline:
    1. Value positions, aggregate by symbol, derive weights
    2. Estimate daily μ and Σ (history where available, else config)
    3. Parametric VaR/ES from σ_p = sqrt(w^T Σ w)
    4. Monte Carlo VaR/ES from simulated portfolio returns
    5. Ratios from historical portfolio returns, else simulated ones
    6. Euler split of σ_p into per-symbol risk contributions
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from risk_analytics.config import DEFAULT_CONFIG, RiskEngineConfig, level_key
from risk_analytics.exceptions import DomainError, InsufficientDataError, SimulationError
from risk_analytics.market_data import MarketDataCache
from risk_analytics.monte_carlo import (
    bootstrap_returns,
    make_rng,
    run_monte_carlo_engine,
    simulate_correlated_returns,
    simulate_student_t_returns,
)
from risk_analytics.performance import beta, compute_risk_ratios
from risk_analytics.portfolio import (
    asset_allocation,
    asset_class_by_symbol,
    compute_exposures,
    compute_weights,
    concentration_risk,
    exposures_by_asset_class,
)
from risk_analytics.risk_metrics import parametric_risk_metrics
from risk_analytics.statistics import (
    build_covariance_matrix,
    compute_covariance_matrix,
    compute_mean_vector,
    compute_portfolio_statistics,
    nearest_positive_semidefinite,
    validate_covariance_matrix,
)
from risk_analytics.stress_testing import asset_class_scenario_losses
from risk_analytics.types import AdvancedRiskMetrics, Position, RiskRatios

logger = logging.getLogger(__name__)

Quotes = Union[Mapping[str, float], MarketDataCache]


def _resolve_quotes(positions: Sequence[Position], market_prices: Quotes) -> Mapping[str, float]:
    """Read one quote per held symbol when given a cache; mappings pass through."""
    if isinstance(market_prices, MarketDataCache):
        return market_prices.get_prices(dict.fromkeys(p.symbol for p in positions))
    return market_prices


@dataclass(frozen=True)
class PortfolioModel:
    """
    Daily return model of a valued portfolio.

    `history` holds the aligned daily returns (T x N) when every held
    symbol has history, else None. `portfolio_history` is the weighted
    historical return series of the symbols that do have history.
    """
    symbols: List[str]
    asset_classes: Dict[str, str]
    exposures: pd.Series
    weights: np.ndarray
    portfolio_value: float
    mean_vector: np.ndarray
    cov_matrix: np.ndarray
    history: Optional[np.ndarray] = None
    portfolio_history: Optional[np.ndarray] = None

    @property
    def portfolio_std(self) -> float:
        """Daily portfolio volatility sqrt(w^T Σ w)."""
        stats = compute_portfolio_statistics(self.mean_vector, self.cov_matrix, self.weights)
        return stats["portfolio_std"]


def _model_moments(
    symbols: Sequence[str],
    asset_classes: Mapping[str, str],
    config: RiskEngineConfig,
):
    days = config.trading_days_per_year
    vols = np.array(
        [config.annual_volatility(s, asset_classes[s]) for s in symbols]
    ) / math.sqrt(days)
    means = np.array([config.expected_return(asset_classes[s]) for s in symbols]) / days
    return means, vols


def build_portfolio_model(
    positions: Iterable[Position],
    market_prices: Quotes,
    historical_returns: Optional[pd.DataFrame] = None,
    config: RiskEngineConfig = DEFAULT_CONFIG,
) -> PortfolioModel:
    """
    Value the portfolio and estimate its daily return moments.

    With `historical_returns` (columns = symbols, daily log returns) the
    sample mean and covariance (ddof=1) of the held symbols are used.
    Symbols without history, or every symbol when no history is given,
    take the configured annual volatility and asset-class drift scaled to
    one day, with `config.correlation_assumption` against the rest.
    When the mixed matrix is not positive semi-definite it is replaced by
    the nearest positive-definite matrix with the same variances.

    Raises
    ------
    InsufficientDataError
        If there are no positions, the total value is zero, or the history
        has fewer than two rows.
    DomainError
        If the total value is negative.
    """
    positions = list(positions)
    if not positions:
        raise InsufficientDataError("portfolio risk metrics (positions)", 1, 0)

    market_prices = _resolve_quotes(positions, market_prices)
    exposures = compute_exposures(positions, market_prices)
    portfolio_value = float(exposures.sum())
    if portfolio_value < 0:
        raise DomainError("portfolio_value", portfolio_value, "must be non-negative")
    weights = compute_weights(exposures)

    symbols = list(exposures.index)
    classes = asset_class_by_symbol(positions)
    mean_vector, vols = _model_moments(symbols, classes, config)

    held: List[str] = []
    if historical_returns is not None:
        held = [s for s in symbols if s in historical_returns.columns]
        if not held:
            logger.info("Historical returns cover none of the held symbols; using assumptions")

    if not held:
        cov = build_covariance_matrix(vols, config.correlation_assumption)
        return PortfolioModel(
            symbols=symbols,
            asset_classes=classes,
            exposures=exposures,
            weights=weights,
            portfolio_value=portfolio_value,
            mean_vector=mean_vector,
            cov_matrix=cov,
        )

    missing = [s for s in symbols if s not in held]
    if missing:
        logger.info("No history for %s; using configured volatility", ", ".join(missing))

    history = historical_returns[held].dropna()
    sample_cov = compute_covariance_matrix(history)
    sample_mean = compute_mean_vector(history)

    idx = [symbols.index(s) for s in held]
    vols[idx] = np.sqrt(np.diag(sample_cov))
    mean_vector[idx] = sample_mean
    cov = build_covariance_matrix(vols, config.correlation_assumption)
    cov[np.ix_(idx, idx)] = sample_cov
    if not validate_covariance_matrix(cov):
        logger.warning(
            "Sample and assumed correlations are inconsistent; "
            "projecting the covariance onto the nearest positive-definite matrix"
        )
        cov = nearest_positive_semidefinite(cov)

    held_weights = weights[idx]
    held_total = held_weights.sum()
    portfolio_history = (
        history.values @ (held_weights / held_total) if held_total != 0 else None
    )

    return PortfolioModel(
        symbols=symbols,
        asset_classes=classes,
        exposures=exposures,
        weights=weights,
        portfolio_value=portfolio_value,
        mean_vector=mean_vector,
        cov_matrix=cov,
        history=history.values if not missing else None,
        portfolio_history=portfolio_history,
    )


def compute_risk_contributions(model: PortfolioModel) -> Dict[str, float]:
    """
    Split daily portfolio volatility into per-symbol contributions.

    RC_i = w_i · (Σw)_i / σ_p, so the contributions sum to σ_p. A negative
    entry marks a position that hedges the rest of the book.

    Parameters
    ----------
    model : PortfolioModel
        Valued portfolio with its covariance matrix.

    Returns
    -------
    dict
        Symbol -> contribution to daily σ_p (fraction of value); all zero
        when the portfolio has no volatility.
    """
    sigma_p = model.portfolio_std
    if sigma_p <= 0:
        return {s: 0.0 for s in model.symbols}
    marginal = model.cov_matrix @ model.weights / sigma_p
    contributions = model.weights * marginal
    return {s: float(c) for s, c in zip(model.symbols, contributions)}


def _simulated_path(
    model: PortfolioModel,
    config: RiskEngineConfig,
    rng: np.random.Generator,
    degrees_of_freedom: Optional[float],
) -> np.ndarray:
    """Daily portfolio return path of `config.drawdown_horizon_days` steps."""
    steps = config.drawdown_horizon_days
    if config.simulation_method == "bootstrap" and model.history is not None:
        draws = bootstrap_returns(model.history, steps, rng)
    elif config.simulation_method == "student_t":
        draws = simulate_student_t_returns(
            model.mean_vector, model.cov_matrix, degrees_of_freedom, steps, rng
        )
    else:
        draws = simulate_correlated_returns(model.mean_vector, model.cov_matrix, steps, rng)
    return draws @ model.weights


def _unavailable_ratios() -> RiskRatios:
    return RiskRatios(
        sharpe_ratio=math.nan,
        sortino_ratio=math.nan,
        calmar_ratio=math.nan,
        omega_ratio=math.nan,
        tail_ratio=math.nan,
        max_drawdown=math.nan,
    )


def _weighted_beta(model: PortfolioModel, config: RiskEngineConfig) -> float:
    class_betas = np.array([config.beta(model.asset_classes[s]) for s in model.symbols])
    return float(model.weights @ class_betas)


def compute_risk_metrics(
    positions: Iterable[Position],
    market_prices: Quotes,
    historical_returns: Optional[pd.DataFrame] = None,
    config: RiskEngineConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
    benchmark_returns: Optional[Sequence[float]] = None,
    fallback_to_parametric: bool = False,
) -> AdvancedRiskMetrics:
    """
    Compute the full set of portfolio risk figures.

    VaR and ES are positive currency losses over `config.horizon_days`.
    The `_95`/`_99` fields hold the lower and higher of
    `config.confidence_levels` respectively.

    Parameters
    ----------
    positions : iterable of Position
        Holdings. Not modified.
    market_prices : mapping or MarketDataCache
        Symbol -> current price; missing symbols use the purchase price.
        A cache is read once per held symbol and its provider errors
        propagate.
    historical_returns : pd.DataFrame, optional
        Daily log returns with one column per symbol.
    config : RiskEngineConfig
        Engine configuration.
    rng : np.random.Generator, optional
        Source of randomness; defaults to one seeded with
        `config.random_seed`.
    benchmark_returns : array-like, optional
        Daily benchmark returns for beta estimation.
    fallback_to_parametric : bool
        Report parametric figures in place of Monte Carlo ones when the
        simulation fails, instead of raising.

    Returns
    -------
    AdvancedRiskMetrics

    Raises
    ------
    InsufficientDataError
        Empty portfolio or zero total value.
    SimulationError
        Simulation failure when `fallback_to_parametric` is False.
    """
    positions = list(positions)
    market_prices = _resolve_quotes(positions, market_prices)
    rng = rng if rng is not None else make_rng(config)
    model = build_portfolio_model(positions, market_prices, historical_returns, config)
    pv = model.portfolio_value
    low, high = config.confidence_levels
    low_key, high_key = level_key(low), level_key(high)

    # ── Parametric ───────────────────────────────────────────
    param = parametric_risk_metrics(model.portfolio_std, pv, config)

    # ── Monte Carlo ──────────────────────────────────────────
    mc: Optional[Dict[str, object]]
    try:
        mc = run_monte_carlo_engine(
            model.mean_vector,
            model.cov_matrix,
            model.weights,
            config=config,
            rng=rng,
            historical_returns=model.history,
        )
    except SimulationError as exc:
        if not fallback_to_parametric:
            raise
        logger.warning("Monte Carlo failed (%s); reporting parametric figures", exc)
        mc = None

    if mc is not None:
        mc_var_low = mc[f"var_{low_key}"] * pv
        mc_var_high = mc[f"var_{high_key}"] * pv
        es_low = mc[f"es_{low_key}"] * pv
        es_high = mc[f"es_{high_key}"] * pv
        num_simulations = config.monte_carlo_iterations
        method = config.simulation_method
    else:
        mc_var_low = param[f"param_var_{low_key}"]
        mc_var_high = param[f"param_var_{high_key}"]
        es_low = max(param[f"param_es_{low_key}"], mc_var_low)
        es_high = max(param[f"param_es_{high_key}"], mc_var_high)
        num_simulations = 0
        method = "parametric"

    # ── Ratios ───────────────────────────────────────────────
    if model.portfolio_history is not None and len(model.portfolio_history) >= 2:
        ratios = compute_risk_ratios(
            model.portfolio_history,
            risk_free_rate=config.risk_free_rate,
            trading_days=config.trading_days_per_year,
        )
    elif mc is not None:
        path = _simulated_path(model, config, rng, mc["degrees_of_freedom"])
        # draws span horizon_days each, so annualize per period
        periods = config.trading_days_per_year / config.horizon_days
        ratios = compute_risk_ratios(
            mc["portfolio_pnl"],
            risk_free_rate=config.risk_free_rate,
            trading_days=periods,
            drawdown_path=path,
        )
    else:
        logger.warning("No history and no simulation; performance ratios unavailable")
        ratios = _unavailable_ratios()

    # ── Beta ─────────────────────────────────────────────────
    if benchmark_returns is not None and model.portfolio_history is not None:
        portfolio_beta = beta(model.portfolio_history, benchmark_returns)
    else:
        if benchmark_returns is not None:
            logger.info("Benchmark given without portfolio history; using asset-class betas")
        portfolio_beta = _weighted_beta(model, config)

    by_class = exposures_by_asset_class(positions, market_prices)
    return AdvancedRiskMetrics(
        portfolio_value=pv,
        parametric_var_95=param[f"param_var_{low_key}"],
        parametric_var_99=param[f"param_var_{high_key}"],
        monte_carlo_var_95=mc_var_low,
        monte_carlo_var_99=mc_var_high,
        expected_shortfall_95=es_low,
        expected_shortfall_99=es_high,
        max_drawdown=ratios.max_drawdown,
        portfolio_beta=portfolio_beta,
        concentration_risk=concentration_risk(model.exposures),
        sharpe_ratio=ratios.sharpe_ratio,
        calmar_ratio=ratios.calmar_ratio,
        sortino_ratio=ratios.sortino_ratio,
        omega_ratio=ratios.omega_ratio,
        tail_ratio=ratios.tail_ratio,
        stress_test_results=asset_class_scenario_losses(by_class),
        asset_allocation=asset_allocation(positions, market_prices),
        risk_contributions=compute_risk_contributions(model),
        num_simulations=num_simulations,
        simulation_method=method,
    )
