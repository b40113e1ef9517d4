"""
Visualization Module
====================
Static report charts for the risk engine output.

Generated Figures:
    1. Simulated P&L Distribution with VaR/ES lines
    2. Macro Stress Scenario Impact
    3. Asset Allocation
    4. Correlation Heatmap
    5. Covariance Stress Comparison
    6. Risk Contribution by Position
    7. Option Value Surface
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import seaborn as sns
from pathlib import Path
from typing import List, Mapping, Sequence

from risk_analytics.types import RiskSurface, StressTestResult


# ─────────────────────────────────────────────────────────────
# Style Configuration
# ─────────────────────────────────────────────────────────────
plt.rcParams.update({
    "figure.figsize": (12, 7),
    "figure.dpi": 150,
    "font.size": 11,
    "font.family": "serif",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "axes.spines.top": False,
    "axes.spines.right": False,
})

COLORS = {
    "primary": "#1f77b4",
    "var_low": "#ff7f0e",
    "var_high": "#d62728",
    "es": "#9467bd",
    "loss": "#e74c3c",
    "gain": "#2ecc71",
}


def save_figure(fig: plt.Figure, name: str, output_dir: str = "results/figures") -> str:
    """Save figure to disk and return the path."""
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    filepath = path / f"{name}.png"
    fig.savefig(filepath, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return str(filepath)


def plot_pnl_distribution(
    portfolio_pnl: np.ndarray,
    portfolio_value: float,
    var_low: float,
    var_high: float,
    es_high: float,
    confidence_levels: Sequence[float] = (0.95, 0.99),
    output_dir: str = "results/figures",
) -> str:
    """
    Histogram of simulated P&L in currency with VaR and ES lines.

    Parameters
    ----------
    portfolio_pnl : np.ndarray
        Simulated portfolio returns (fractions).
    portfolio_value : float
        Value used to convert returns to currency P&L.
    var_low, var_high : float
        VaR at the lower and higher confidence level (positive currency).
    es_high : float
        Expected Shortfall at the higher level (positive currency).
    confidence_levels : sequence of float
        Levels used for the legend.
    output_dir : str
        Output directory for figure.

    Returns
    -------
    str
        Path to saved figure.
    """
    low, high = confidence_levels
    pnl = np.asarray(portfolio_pnl) * portfolio_value

    fig, ax = plt.subplots(figsize=(14, 7))
    ax.hist(
        pnl, bins=200, density=True,
        color=COLORS["primary"], alpha=0.7, edgecolor="none",
        label="Simulated P&L",
    )

    ax.axvline(-var_low, color=COLORS["var_low"], linewidth=2,
               linestyle="--", label=f"{low:.0%} VaR = {var_low:,.0f}")
    ax.axvline(-var_high, color=COLORS["var_high"], linewidth=2,
               linestyle="--", label=f"{high:.0%} VaR = {var_high:,.0f}")
    ax.axvline(-es_high, color=COLORS["es"], linewidth=2,
               linestyle=":", label=f"{high:.0%} ES = {es_high:,.0f}")

    ax.set_xlabel("Portfolio P&L", fontsize=12)
    ax.set_ylabel("Density", fontsize=12)
    ax.set_title("Monte Carlo Simulated P&L Distribution", fontsize=14, fontweight="bold")
    ax.legend(fontsize=11, loc="upper right")
    ax.xaxis.set_major_formatter(mtick.StrMethodFormatter("{x:,.0f}"))

    return save_figure(fig, "mc_pnl_distribution", output_dir)


def plot_stress_scenarios(
    results: List[StressTestResult],
    output_dir: str = "results/figures",
) -> str:
    """
    Horizontal bars of the percentage value change per macro scenario.

    Parameters
    ----------
    results : list of StressTestResult
        Output of `run_stress_tests`.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    names = [r.scenario for r in results]
    changes = [r.percentage_change / 100.0 for r in results]
    colors = [COLORS["loss"] if c < 0 else COLORS["gain"] for c in changes]

    fig, ax = plt.subplots(figsize=(12, 7))
    y = np.arange(len(names))
    ax.barh(y, changes, color=colors, alpha=0.85)
    ax.set_yticks(y)
    ax.set_yticklabels(names, fontsize=11)
    ax.invert_yaxis()

    for yi, change in zip(y, changes):
        ax.text(change, yi, f" {change:.1%}", va="center",
                ha="right" if change < 0 else "left", fontsize=10)

    ax.set_xlabel("Change in Portfolio Value", fontsize=12)
    ax.set_title("Macro Stress Scenario Impact", fontsize=14, fontweight="bold")
    ax.xaxis.set_major_formatter(mtick.PercentFormatter(1.0))

    return save_figure(fig, "stress_scenarios", output_dir)


def plot_asset_allocation(
    allocation: Mapping[str, float],
    output_dir: str = "results/figures",
) -> str:
    """Pie chart of the asset-class allocation (values in percent)."""
    labels = list(allocation.keys())
    sizes = list(allocation.values())

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.pie(
        sizes,
        labels=labels,
        autopct="%1.1f%%",
        startangle=90,
        colors=sns.color_palette("deep", len(labels)),
        wedgeprops={"linewidth": 1, "edgecolor": "white"},
    )
    ax.set_title("Asset Allocation", fontsize=14, fontweight="bold")
    ax.axis("equal")

    return save_figure(fig, "asset_allocation", output_dir)


def plot_correlation_heatmap(
    corr_matrix: np.ndarray,
    labels: Sequence[str],
    output_dir: str = "results/figures",
) -> str:
    """
    Plot correlation matrix as an annotated heatmap.

    Parameters
    ----------
    corr_matrix : np.ndarray
        Correlation matrix (N x N).
    labels : sequence of str
        Asset labels.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig, ax = plt.subplots(figsize=(9, 7))
    mask = np.triu(np.ones_like(corr_matrix, dtype=bool), k=1)

    sns.heatmap(
        corr_matrix,
        mask=mask,
        annot=True,
        fmt=".2f",
        cmap="RdYlBu_r",
        center=0,
        vmin=-1,
        vmax=1,
        square=True,
        linewidths=0.5,
        xticklabels=list(labels),
        yticklabels=list(labels),
        ax=ax,
        cbar_kws={"shrink": 0.8, "label": "Correlation"},
    )
    ax.set_title("Asset Correlation Matrix", fontsize=14, fontweight="bold")

    return save_figure(fig, "correlation_heatmap", output_dir)


def _metric_label(key: str) -> str:
    """var_97_5 -> '97.5% VaR'"""
    kind, _, level = key.partition("_")
    name = {"var": "VaR", "es": "ES"}.get(kind, kind.upper())
    return f"{level.replace('_', '.')}% {name}"


def plot_covariance_stress(
    scenarios: Mapping[str, Mapping[str, float]],
    output_dir: str = "results/figures",
) -> str:
    """
    Grouped bars of VaR/ES under each covariance scenario.

    Parameters
    ----------
    scenarios : mapping
        Scenario label -> {metric key: loss} in currency, keys such as
        var_95 or es_97_5; the first scenario fixes the metric order.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    metrics = list(next(iter(scenarios.values()), {}))
    labels = [_metric_label(m) for m in metrics]
    x = np.arange(len(metrics))
    width = 0.8 / max(len(scenarios), 1)
    palette = sns.color_palette("deep", len(scenarios))

    fig, ax = plt.subplots(figsize=(12, 7))
    for i, (name, values) in enumerate(scenarios.items()):
        offset = (i - (len(scenarios) - 1) / 2) * width
        ax.bar(x + offset, [values[m] for m in metrics], width,
               label=name, color=palette[i], alpha=0.85)

    ax.set_xlabel("Risk Metric", fontsize=12)
    ax.set_ylabel("Loss", fontsize=12)
    ax.set_title("Covariance Stress Comparison", fontsize=14, fontweight="bold")
    ax.set_xticks(x)
    ax.set_xticklabels(labels, fontsize=11)
    ax.legend(fontsize=11)
    ax.yaxis.set_major_formatter(mtick.StrMethodFormatter("{x:,.0f}"))

    return save_figure(fig, "covariance_stress", output_dir)



def plot_risk_contributions(
    contributions: Mapping[str, float],
    output_dir: str = "results/figures",
) -> str:
    """
    Horizontal bars of each position's share of portfolio volatility.

    Parameters
    ----------
    contributions : mapping
        Symbol -> contribution to σ_p; negative entries are hedges.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    symbols = list(contributions.keys())
    values = np.array(list(contributions.values()), dtype=float)
    total = values.sum()
    shares = values / total * 100 if total != 0 else np.zeros_like(values)
    colors = [COLORS["loss"] if s > 0 else COLORS["gain"] for s in shares]

    fig, ax = plt.subplots(figsize=(10, max(3, 0.6 * len(symbols) + 1)))
    bars = ax.barh(symbols, shares, color=colors, alpha=0.85, edgecolor="white")
    for bar, share in zip(bars, shares):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2,
                f" {share:.1f}%", va="center", fontsize=9)

    ax.axvline(0, color="black", linewidth=0.8)
    ax.set_xlabel("Share of Portfolio Volatility (%)", fontsize=12)
    ax.set_title("Risk Contribution by Position", fontsize=14, fontweight="bold")
    ax.invert_yaxis()

    return save_figure(fig, "risk_contributions", output_dir)


def plot_risk_surface(
    surface: RiskSurface,
    output_dir: str = "results/figures",
) -> str:
    """Filled contour of option value over expiry (x) and strike (y)."""
    fig, ax = plt.subplots(figsize=(10, 7))
    contour = ax.contourf(surface.expiries, surface.strikes, surface.values,
                          levels=20, cmap="viridis")
    fig.colorbar(contour, ax=ax, label="Option Value")
    ax.axhline(surface.spot_price, color="white", linestyle="--", linewidth=1.2,
               label=f"Spot = {surface.spot_price:,.2f}")

    ax.set_xlabel("Time to Expiry (years)", fontsize=12)
    ax.set_ylabel("Strike", fontsize=12)
    ax.set_title(f"Black-Scholes {surface.option_type.title()} Value Surface",
                 fontsize=14, fontweight="bold")
    ax.legend(fontsize=10, loc="upper right")

    return save_figure(fig, f"{surface.option_type}_risk_surface", output_dir)
