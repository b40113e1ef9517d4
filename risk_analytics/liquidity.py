"""
Liquidity Risk Module
=====================
Balance-sheet liquidity ratios with a coarse LOW / MEDIUM / HIGH label.

Mathematical Foundation:
    LCR   = (cash + liquid securities) / (0.3 · short-term liabilities)
    NSFR  = (total assets - short-term liabilities) / total assets
    Quick = (cash + liquid securities) / short-term liabilities
"""

from risk_analytics.exceptions import DomainError
from risk_analytics.types import LiquidityMetrics

# Share of short-term liabilities assumed to run off within the stress window
OUTFLOW_RATE: float = 0.3

HIGH_RISK_THRESHOLD: float = 1.0
MEDIUM_RISK_THRESHOLD: float = 1.5


def assess_liquidity(
    cash_and_equivalents: float,
    liquid_securities: float,
    total_assets: float,
    short_term_liabilities: float,
    total_liabilities: float,
) -> LiquidityMetrics:
    """
    Compute liquidity coverage, funding and quick ratios.

    Parameters
    ----------
    cash_and_equivalents : float
        Cash on hand.
    liquid_securities : float
        Securities that can be sold within days.
    total_assets : float
        Balance-sheet total assets (> 0).
    short_term_liabilities : float
        Liabilities due within a year (> 0).
    total_liabilities : float
        Balance-sheet total liabilities (>= short-term liabilities).

    Returns
    -------
    LiquidityMetrics
        Ratios and risk label. HIGH if LCR or quick ratio is below 1,
        MEDIUM if either is below 1.5, LOW otherwise.
    """
    if total_assets <= 0:
        raise DomainError("total_assets", total_assets, "must be positive")
    if short_term_liabilities <= 0:
        raise DomainError("short_term_liabilities", short_term_liabilities, "must be positive")
    if total_liabilities < short_term_liabilities:
        raise DomainError(
            "total_liabilities",
            total_liabilities,
            "must be at least the short-term liabilities",
        )

    liquidity_buffer = cash_and_equivalents + liquid_securities
    lcr = liquidity_buffer / (short_term_liabilities * OUTFLOW_RATE)
    nsfr = (total_assets - short_term_liabilities) / total_assets
    cash_ratio = cash_and_equivalents / short_term_liabilities
    quick_ratio = liquidity_buffer / short_term_liabilities

    if lcr < HIGH_RISK_THRESHOLD or quick_ratio < HIGH_RISK_THRESHOLD:
        risk = "HIGH"
    elif lcr < MEDIUM_RISK_THRESHOLD or quick_ratio < MEDIUM_RISK_THRESHOLD:
        risk = "MEDIUM"
    else:
        risk = "LOW"

    return LiquidityMetrics(
        liquidity_coverage_ratio=lcr,
        net_stable_funding_ratio=nsfr,
        liquidity_buffer=liquidity_buffer,
        cash_ratio=cash_ratio,
        quick_ratio=quick_ratio,
        liquidity_risk=risk,
    )
