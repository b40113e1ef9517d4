"""
Portfolio Construction Module
=============================
Handles position valuation, weight definition, allocation breakdowns and
price-history ingestion.

Mathematical Foundation:
    Market value:  V_i = q_i · P_i
    Weight:        w_i = V_i / Σ V_j
    Log return:    r_t = ln(P_t / P_{t-1})

Positions are never mutated; every function derives fresh values from
(quantity × price) products.
"""

import logging
import warnings
import numpy as np
import pandas as pd
import yfinance as yf
from typing import Dict, Iterable, List, Mapping, Optional

from risk_analytics.exceptions import DomainError, InsufficientDataError
from risk_analytics.types import Position

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
DEFAULT_POSITIONS: List[Position] = [
    Position("AAPL", 150, 175.0, portfolio_id=1, asset_class="Equity"),
    Position("MSFT", 80, 410.0, portfolio_id=1, asset_class="Equity"),
    Position("GOOGL", 120, 140.0, portfolio_id=1, asset_class="Equity"),
    Position("SPY", 60, 510.0, portfolio_id=1, asset_class="ETF"),
    Position("TLT", 200, 92.0, portfolio_id=1, asset_class="Bond"),
]

WEIGHT_TOLERANCE: float = 1e-8
WEIGHT_DRIFT_LIMIT: float = 1e-4


# ─────────────────────────────────────────────────────────────
# Price history
# ─────────────────────────────────────────────────────────────

def fetch_data(
    tickers: List[str],
    start: str = "2021-01-01",
    end: str = "2026-01-01",
    save_path: Optional[str] = None,
    window: Optional[int] = None,
) -> pd.DataFrame:
    """
    Download adjusted close prices from Yahoo Finance.

    Parameters
    ----------
    tickers : list of str
        Ticker symbols to download.
    start : str
        Start date in YYYY-MM-DD format.
    end : str
        End date in YYYY-MM-DD format.
    save_path : str, optional
        If provided, saves the DataFrame as CSV.
    window : int, optional
        If given, return only the *last* `window` trading days before
        `end`.

    Returns
    -------
    pd.DataFrame
        Adjusted close prices indexed by date.
    """
    raw = yf.download(tickers, start=start, end=end, auto_adjust=True)

    # Handle multi-level columns from yfinance
    if isinstance(raw.columns, pd.MultiIndex):
        prices = raw["Close"].copy()
    else:
        prices = raw[["Close"]].copy()
        prices.columns = tickers

    prices.dropna(inplace=True)

    if window is not None:
        prices = prices.iloc[-window:]

    if save_path:
        prices.to_csv(save_path)

    return prices


def load_data(path: str) -> pd.DataFrame:
    """
    Load price data from CSV file.

    Parameters
    ----------
    path : str
        Path to the CSV file with Date index and asset columns.

    Returns
    -------
    pd.DataFrame
        Price DataFrame indexed by date.
    """
    df = pd.read_csv(path, index_col=0, parse_dates=True)
    df.dropna(inplace=True)
    return df


def compute_log_returns(prices: pd.DataFrame) -> pd.DataFrame:
    """
    Compute logarithmic returns from price series.

    Mathematical Definition:
        r_t = ln(P_t / P_{t-1})

    Parameters
    ----------
    prices : pd.DataFrame
        DataFrame of asset prices.

    Returns
    -------
    pd.DataFrame
        DataFrame of log returns (first row dropped).
    """
    return np.log(prices / prices.shift(1)).dropna()


def latest_prices(prices: pd.DataFrame) -> Dict[str, float]:
    """Last available close per column, as a symbol -> price mapping."""
    last_row = prices.iloc[-1]
    return {str(symbol): float(price) for symbol, price in last_row.items()}


# ─────────────────────────────────────────────────────────────
# Valuation
# ─────────────────────────────────────────────────────────────

def _quote(position: Position, market_prices: Mapping[str, float]) -> float:
    price = market_prices.get(position.symbol)
    if price is None:
        logger.info("No market quote for %s; valuing at purchase price", position.symbol)
        return position.purchase_price
    return float(price)


def compute_exposures(
    positions: Iterable[Position],
    market_prices: Mapping[str, float],
) -> pd.Series:
    """
    Market value per symbol.

    Multiple positions in the same symbol are summed. Symbols keep the
    order of first appearance.

    Parameters
    ----------
    positions : iterable of Position
        Holdings.
    market_prices : mapping
        Symbol -> current price. Missing symbols fall back to the
        purchase price.

    Returns
    -------
    pd.Series
        Market value indexed by symbol.
    """
    values: Dict[str, float] = {}
    for position in positions:
        value = position.market_value(_quote(position, market_prices))
        values[position.symbol] = values.get(position.symbol, 0.0) + value
    return pd.Series(values, dtype=float, name="market_value")


def exposures_by_asset_class(
    positions: Iterable[Position],
    market_prices: Mapping[str, float],
) -> Dict[str, float]:
    """Market value aggregated by asset class."""
    totals: Dict[str, float] = {}
    for position in positions:
        value = position.market_value(_quote(position, market_prices))
        totals[position.asset_class] = totals.get(position.asset_class, 0.0) + value
    return totals


def asset_class_by_symbol(positions: Iterable[Position]) -> Dict[str, str]:
    """First asset class seen for each symbol."""
    classes: Dict[str, str] = {}
    for position in positions:
        classes.setdefault(position.symbol, position.asset_class)
    return classes


def define_weights(
    weights_by_symbol: Mapping[str, float],
    symbols: List[str],
) -> np.ndarray:
    """
    Define and validate portfolio weights.

    Parameters
    ----------
    weights_by_symbol : mapping
        Symbol -> weight. Must sum to 1.
    symbols : list of str
        Ordered symbols the weight vector must align with.

    Returns
    -------
    np.ndarray
        Weight vector aligned with `symbols`.

    Raises
    ------
    DomainError
        If weights do not sum to approximately 1, or if any symbol has no
        corresponding weight defined.
    """
    # reindex guarantees element-by-element alignment regardless of the
    # insertion order of the source mapping
    weight_series = pd.Series(dict(weights_by_symbol), dtype=float).reindex(symbols)

    if weight_series.isna().any():
        missing = weight_series[weight_series.isna()].index.tolist()
        raise DomainError("weights", missing, "must be defined for every symbol")

    weights = weight_series.values
    weight_sum = weights.sum()

    if not np.isclose(weight_sum, 1.0, rtol=WEIGHT_TOLERANCE, atol=WEIGHT_TOLERANCE):
        if abs(weight_sum - 1.0) < WEIGHT_DRIFT_LIMIT:
            warnings.warn(
                f"Weights sum to {weight_sum:.10f}; auto-normalizing.",
                UserWarning,
                stacklevel=2,
            )
            weights = weights / weight_sum
        else:
            raise DomainError("weights", round(float(weight_sum), 6), "must sum to 1.0")

    return weights


def compute_weights(exposures: pd.Series) -> np.ndarray:
    """
    Value weights aligned with the exposure index.

    Raises
    ------
    InsufficientDataError
        If there are no exposures or the total value is zero.
    """
    if exposures.empty:
        raise InsufficientDataError("portfolio weights", 1, 0)
    total = float(exposures.sum())
    if total == 0:
        raise InsufficientDataError("portfolio weights (non-zero total value)", 1, 0)
    return define_weights((exposures / total).to_dict(), list(exposures.index))


def concentration_risk(exposures: pd.Series) -> float:
    """Largest single-position weight (fraction of total value)."""
    return float(np.max(compute_weights(exposures)))


def asset_allocation(
    positions: Iterable[Position],
    market_prices: Mapping[str, float],
) -> Dict[str, float]:
    """
    Percentage of total value held in each asset class.

    Returns
    -------
    dict
        Asset class -> percentage; values sum to 100. Empty when the
        portfolio has no value.
    """
    by_class = exposures_by_asset_class(positions, market_prices)
    total = sum(by_class.values())
    if total == 0:
        return {}
    return {asset_class: value / total * 100.0 for asset_class, value in by_class.items()}

