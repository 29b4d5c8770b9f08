"""
Diagnostics and Visualization
==============================

Functions for validating the zip-year panel and visualizing emission
trends, outliers and per-bucket slopes.
"""

import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Tuple
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .config import (
    ZIP_COL, YEAR_COL, EMISSIONS_COL, MAX_EMISSIONS_COL, POC_PCT_COL,
    POPULATION_COL, NON_ASIAN_WHITE_PCT_COL,
    SLOPE_COL, INTERCEPT_COL, NO_BUCKET,
)

FIGURE_SIZE = (10, 6)
FIGURE_DPI = 100


# =============================================================================
# 1. Panel Diagnostics
# =============================================================================

def check_panel_balance(
    df: pd.DataFrame,
    id_col: str = ZIP_COL,
    time_col: str = YEAR_COL
) -> Dict:
    """
    Check panel balance and report statistics.

    Returns:
        Dict with balance metrics and diagnostics
    """
    obs_per_unit = df.groupby(id_col)[time_col].nunique()

    all_periods = sorted(df[time_col].unique())
    n_periods = len(all_periods)

    n_balanced = int((obs_per_unit == n_periods).sum())
    n_units = len(obs_per_unit)

    result = {
        "n_units": n_units,
        "n_periods": n_periods,
        "n_observations": len(df),
        "periods": all_periods,
        "n_balanced_units": n_balanced,
        "pct_balanced": 100 * n_balanced / n_units if n_units else np.nan,
    }

    print(f"Panel balance check:")
    print(f"  Units: {n_units:,}")
    if n_periods:
        print(f"  Periods: {n_periods} ({all_periods[0]}-{all_periods[-1]})")
    print(f"  Observations: {len(df):,}")
    print(f"  Balanced units: {n_balanced:,} ({result['pct_balanced']:.1f}%)")

    return result


def check_missing_data(
    df: pd.DataFrame,
    key_cols: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Report missing data patterns for key columns.
    """
    if key_cols is None:
        key_cols = [EMISSIONS_COL, POPULATION_COL, POC_PCT_COL, NON_ASIAN_WHITE_PCT_COL]

    key_cols = [c for c in key_cols if c in df.columns]

    missing = df[key_cols].isnull().sum()
    pct_missing = 100 * missing / len(df) if len(df) else missing * np.nan

    report = pd.DataFrame({
        "missing": missing,
        "pct_missing": pct_missing.round(2),
        "n_valid": len(df) - missing
    })

    print("Missing data report:")
    print(report.to_string())

    return report


# =============================================================================
# 2. Emission Trends
# =============================================================================

def plot_max_emissions(
    max_by_year: pd.DataFrame,
    outliers: pd.DataFrame,
    time_col: str = YEAR_COL,
    max_col: str = MAX_EMISSIONS_COL,
    zip_col: str = ZIP_COL,
    figsize: Tuple[int, int] = FIGURE_SIZE
) -> Figure:
    """
    Plot the largest zip-code total per year, annotated with the zip code(s).
    """
    fig, ax = plt.subplots(figsize=figsize, dpi=FIGURE_DPI)

    ax.plot(max_by_year[time_col], max_by_year[max_col], "o-",
            color="coral", linewidth=2, markersize=8)

    labels = outliers.groupby(time_col)[zip_col].apply(
        lambda z: ", ".join(f"{int(v):05d}" for v in sorted(z))
    )
    for year, value in zip(max_by_year[time_col], max_by_year[max_col]):
        label = labels.get(year)
        if label:
            ax.annotate(label, (year, value),
                        textcoords="offset points", xytext=(0, 8),
                        ha="center", fontsize=8)

    ax.set_xlabel("Year", fontsize=11)
    ax.set_ylabel("Max zip-code emissions", fontsize=11)
    ax.set_title("Highest-Emitting Zip Code by Year", fontsize=12, fontweight="bold")
    ax.xaxis.set_major_locator(plt.MaxNLocator(integer=True))  # type: ignore
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_bucket_trends(
    bucket_means: pd.DataFrame,
    group_col: str,
    time_col: str = YEAR_COL,
    value_col: str = "mean_emissions",
    figsize: Tuple[int, int] = FIGURE_SIZE
) -> Figure:
    """
    Plot mean emissions per year for each demographic bucket.

    Rows with a missing bucket are drawn as the "NA" series.
    """
    fig, ax = plt.subplots(figsize=figsize, dpi=FIGURE_DPI)

    df = bucket_means.copy()
    if isinstance(df[group_col].dtype, pd.CategoricalDtype):
        groups = [g for g in df[group_col].cat.categories if (df[group_col] == g).any()]
    else:
        df[group_col] = df[group_col].astype(object).where(df[group_col].notna(), NO_BUCKET)
        groups = list(pd.unique(df[group_col]))

    colors = plt.cm.viridis(np.linspace(0, 0.9, max(len(groups), 1)))  # type: ignore
    for color, group in zip(colors, groups):
        sub = df[df[group_col] == group].sort_values(time_col)
        if group == NO_BUCKET:
            ax.plot(sub[time_col], sub[value_col], marker="o", linestyle="--",
                    color="gray", label=str(group), linewidth=2)
        else:
            ax.plot(sub[time_col], sub[value_col], marker="o", linestyle="-",
                    color=color, label=str(group), linewidth=2)

    ax.set_xlabel("Year", fontsize=11)
    ax.set_ylabel("Mean zip-code emissions", fontsize=11)
    ax.set_title(f"Emission Trends by {group_col}", fontsize=12, fontweight="bold")
    ax.legend(title=group_col, framealpha=0.9)
    ax.xaxis.set_major_locator(plt.MaxNLocator(integer=True))  # type: ignore
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


# =============================================================================
# 3. Slopes
# =============================================================================

def plot_bucket_slopes(
    slopes: pd.DataFrame,
    group_col: str,
    slope_col: str = SLOPE_COL,
    figsize: Tuple[int, int] = FIGURE_SIZE
) -> Figure:
    """
    Bar chart of the fitted emissions trend (per year) for each bucket.
    """
    fig, ax = plt.subplots(figsize=figsize, dpi=FIGURE_DPI)

    labels = [NO_BUCKET if pd.isna(g) else str(g) for g in slopes[group_col]]
    values = slopes[slope_col].to_numpy(dtype=float)
    colors = ["gray" if lab == NO_BUCKET else ("coral" if v > 0 else "steelblue")
              for lab, v in zip(labels, values)]

    bars = ax.bar(range(len(labels)), np.nan_to_num(values), color=colors,
                  edgecolor="white", alpha=0.8)
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=0)
    ax.axhline(0, color="black", linewidth=0.8)

    for bar, v in zip(bars, values):
        text = "n/a" if np.isnan(v) else f"{v:,.1f}"
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(),
                text, ha="center", va="bottom", fontsize=9)

    ax.set_xlabel(group_col, fontsize=11)
    ax.set_ylabel("Emissions trend (per year)", fontsize=11)
    ax.set_title(f"OLS Emissions Trend by {group_col}", fontsize=12, fontweight="bold")
    ax.grid(True, axis="y", alpha=0.3)

    plt.tight_layout()
    return fig


def plot_slope_vs_share(
    slopes: pd.DataFrame,
    value_col: str = POC_PCT_COL,
    slope_col: str = SLOPE_COL,
    gradient: Optional[Dict] = None,
    figsize: Tuple[int, int] = FIGURE_SIZE
) -> Figure:
    """
    Scatter of per-value emissions trend against the demographic share.
    """
    fig, ax = plt.subplots(figsize=figsize, dpi=FIGURE_DPI)

    df_plot = slopes.dropna(subset=[value_col, slope_col])
    ax.scatter(df_plot[value_col], df_plot[slope_col], alpha=0.5, s=30, color="steelblue")

    if gradient is not None and not np.isnan(gradient.get(SLOPE_COL, np.nan)) and len(df_plot) > 0:
        x_line = np.linspace(df_plot[value_col].min(), df_plot[value_col].max(), 100)
        ax.plot(x_line, gradient[INTERCEPT_COL] + gradient[SLOPE_COL] * x_line, "r--",
                label=f"OLS: slope={gradient[SLOPE_COL]:.4f} (p={gradient['pvalue']:.4f})")
        ax.legend(framealpha=0.9)

    ax.axhline(0, color="gray", linestyle=":", alpha=0.5)
    ax.set_xlabel(value_col, fontsize=11)
    ax.set_ylabel("Emissions trend (per year)", fontsize=11)
    ax.set_title("Emissions Trend vs Demographic Share", fontsize=12, fontweight="bold")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


# =============================================================================
# 4. Results Summary
# =============================================================================

def summarize_slopes(slopes: pd.DataFrame, group_col: str, title: str = "Slopes") -> None:
    """
    Print formatted per-group slope table.
    """
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")

    df = slopes.copy()
    for col in [SLOPE_COL, INTERCEPT_COL, "r2", "pvalue"]:
        if col in df.columns:
            df[col] = df[col].map(lambda x: "n/a" if pd.isna(x) else f"{x:,.4f}")
    print(df.to_string(index=False))
    print(f"{'='*60}\n")
