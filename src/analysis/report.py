"""
report.py
=========
End-to-end report: load → aggregate → join → bucket → fit → plot.

Usage:
    from src.analysis.report import run_report
    tables = run_report(EMISSIONS_PATH, CENSUS_PATH, out_dir=OUT_DIR)
    tables["bucket_slopes"]
"""

import pandas as pd
import matplotlib.pyplot as plt
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .config import (
    ZIP_COL, POC_PCT_COL, BUCKET_COL, START_YEAR, END_YEAR, MISSING_POLICY,
    POC_BREAKPOINTS, POC_LABELS,
)
from .data import load_analysis_panel
from .aggregate import max_emissions_by_year, find_outliers, mean_emissions_by_group_year
from .discretize import discretize
from .regression import fit_group_slopes, attach_slopes, slope_gradient
from .continuous import estimate_trend_interaction
from .diagnostics import (
    check_panel_balance, check_missing_data, plot_max_emissions,
    plot_bucket_trends, plot_bucket_slopes, plot_slope_vs_share, summarize_slopes,
)


def build_report_tables(
    emissions: pd.DataFrame,
    by_zip_year: pd.DataFrame,
    panel: pd.DataFrame,
    share_col: str = POC_PCT_COL,
    method: str = "fixed",
    breaks: Optional[int] = None,
    labels: Optional[Sequence[str]] = POC_LABELS,
    breakpoints: Optional[Sequence[float]] = POC_BREAKPOINTS,
    missing_policy: str = MISSING_POLICY,
    run_twfe: bool = True
) -> Dict:
    """
    Compute every report table from an already-joined panel.

    Parameters
    ----------
    share_col : str
        Demographic share to bucket (e.g. poc_percentage)
    method : str
        Binning method: "interval", "fixed" or "none"
    run_twfe : bool
        If True, also estimate the pooled trend-interaction model

    Returns
    -------
    Dict of DataFrames (and the TWFE result dict under "trend_interaction")
    """
    print("=" * 60)
    print(f"REPORT: emissions trend by {share_col}")
    print("=" * 60)

    max_by_year = max_emissions_by_year(by_zip_year)
    outliers = find_outliers(by_zip_year, max_by_year)

    bucketed = discretize(
        panel, share_col, method=method, breaks=breaks,
        labels=labels if method != "none" else None,
        breakpoints=breakpoints, bucket_col=BUCKET_COL,
    )
    bucket_means = mean_emissions_by_group_year(bucketed, BUCKET_COL, missing_policy=missing_policy)
    bucket_slopes = fit_group_slopes(bucketed, BUCKET_COL)

    # One fit per distinct share value (zip codes sharing a value are pooled)
    value_slopes = fit_group_slopes(panel, share_col)
    joined_with_slopes = attach_slopes(bucketed, bucket_slopes, BUCKET_COL)
    gradient = slope_gradient(value_slopes, share_col)

    summarize_slopes(bucket_slopes, BUCKET_COL, title=f"Emissions trend by {share_col} bucket")

    tables = {
        "emissions": emissions,
        "by_zip_year": by_zip_year,
        "joined": panel,
        "max_by_year": max_by_year,
        "outliers": outliers,
        "bucket_means": bucket_means,
        "bucket_slopes": bucket_slopes,
        "value_slopes": value_slopes,
        "joined_with_slopes": joined_with_slopes,
        "slope_gradient": gradient,
    }

    if run_twfe:
        tables["trend_interaction"] = estimate_trend_interaction(panel, share_col=share_col)

    return tables


def save_report_figures(tables: Dict, out_dir: Path, share_col: str = POC_PCT_COL) -> List[Path]:
    """Render the report charts to PNG files in out_dir."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    figures = {
        "max_emissions_by_year.png": plot_max_emissions(tables["max_by_year"], tables["outliers"]),
        "bucket_trends.png": plot_bucket_trends(tables["bucket_means"], BUCKET_COL),
        "bucket_slopes.png": plot_bucket_slopes(tables["bucket_slopes"], BUCKET_COL),
        "slope_vs_share.png": plot_slope_vs_share(
            tables["value_slopes"], share_col, gradient=tables["slope_gradient"]
        ),
    }

    paths = []
    for name, fig in figures.items():
        path = out_dir / name
        fig.savefig(path, bbox_inches="tight")
        plt.close(fig)
        paths.append(path)

    print(f"Saved {len(paths)} figures to {out_dir}")
    return paths


def run_report(
    emissions_path: Path,
    census_path: Path,
    out_dir: Optional[Path] = None,
    year_range: Optional[Tuple[int, int]] = (START_YEAR, END_YEAR),
    states: Optional[List[str]] = None,
    share_col: str = POC_PCT_COL,
    method: str = "fixed",
    breaks: Optional[int] = None,
    labels: Optional[Sequence[str]] = POC_LABELS,
    breakpoints: Optional[Sequence[float]] = POC_BREAKPOINTS,
    missing_policy: str = MISSING_POLICY,
    run_twfe: bool = True
) -> Dict:
    """
    Run the full report from the two input files.

    Returns the dict from build_report_tables; figures are written to
    out_dir when given.
    """
    emissions, by_zip_year, panel = load_analysis_panel(
        emissions_path, census_path,
        year_range=year_range, states=states, missing_policy=missing_policy,
    )

    check_panel_balance(panel, id_col=ZIP_COL)
    check_missing_data(panel)

    tables = build_report_tables(
        emissions, by_zip_year, panel,
        share_col=share_col, method=method, breaks=breaks, labels=labels,
        breakpoints=breakpoints, missing_policy=missing_policy, run_twfe=run_twfe,
    )

    if out_dir is not None:
        save_report_figures(tables, out_dir, share_col=share_col)

    return tables
