"""
Analysis Module for Zip-Code Emissions Equity Study
====================================================

Tests whether the racial composition of a zip code predicts the trend in
local industrial emissions over the RGGI cap-and-trade period.

Outcome:
- Total facility emissions per zip code and year (summed from facility rows)

Submodules:
-----------
- config: Paths, column names and binning defaults
- data: Load panel, attach demographics, sample filters
- aggregate: Zip-year totals, yearly maxima and outliers, bucket means
- discretize: Equal-width / breakpoint / pass-through binning
- regression: Per-group OLS emission trends (scipy)
- continuous: Pooled year x share TWFE specification (pyfixest)
- diagnostics: Validation and visualization
- report: End-to-end report runner

Usage:
------
>>> from src.analysis.config import ZIP_COL, YEAR_COL, EMISSIONS_COL, POC_PCT_COL
>>> from src.analysis.data import load_analysis_panel
>>> from src.analysis.report import run_report
"""

# Config exports
from .config import (
    FACILITY_COL, ZIP_COL, STATE_COL, YEAR_COL,
    EMISSIONS_COL, MAX_EMISSIONS_COL,
    POC_PCT_COL, NON_ASIAN_WHITE_PCT_COL,
    NO_BUCKET, BUCKET_COL, RGGI_STATES,
    # Paths
    EMISSIONS_PATH, CENSUS_PATH, OUT_DIR
)

# Data exports
from .data import (
    load_analysis_panel,
    attach_demographics,
    apply_sample_filters
)

# Aggregation exports
from .aggregate import (
    total_emissions_by_zip_year,
    max_emissions_by_year,
    find_outliers,
    mean_emissions_by_group_year
)

# Binning exports
from .discretize import (
    BinningConfigError,
    cut_equal_width,
    cut_breakpoints,
    discretize
)

# Regression exports
from .regression import (
    DegenerateFitWarning,
    fit_linear,
    fit_group_slopes,
    attach_slopes,
    slope_gradient
)

# Continuous exports
from .continuous import (
    estimate_trend_interaction,
    format_results_table
)

# Report exports
from .report import (
    build_report_tables,
    save_report_figures,
    run_report
)

__all__ = [
    # Config
    "FACILITY_COL", "ZIP_COL", "STATE_COL", "YEAR_COL",
    "EMISSIONS_COL", "MAX_EMISSIONS_COL",
    "POC_PCT_COL", "NON_ASIAN_WHITE_PCT_COL",
    "NO_BUCKET", "BUCKET_COL", "RGGI_STATES",
    "EMISSIONS_PATH", "CENSUS_PATH", "OUT_DIR",
    # Data
    "load_analysis_panel", "attach_demographics", "apply_sample_filters",
    # Aggregation
    "total_emissions_by_zip_year", "max_emissions_by_year",
    "find_outliers", "mean_emissions_by_group_year",
    # Binning
    "BinningConfigError", "cut_equal_width", "cut_breakpoints", "discretize",
    # Regression
    "DegenerateFitWarning", "fit_linear", "fit_group_slopes",
    "attach_slopes", "slope_gradient",
    # Continuous
    "estimate_trend_interaction", "format_results_table",
    # Report
    "build_report_tables", "save_report_figures", "run_report",
]
