"""
config.py
=========
Structural constants for the analysis module.

Contains paths, column names and default binning parameters. Analysis
choices (states, year window, bucket labels) can be overridden per call.

Datasets:
- Emissions: facility-level industrial emissions, one column per year (wide).
- Census: zip-code level population counts and shares by race.

Usage:
    from src.analysis.config import ZIP_COL, YEAR_COL, EMISSIONS_COL, ...
"""

from pathlib import Path

# =============================================================================
# Directory Structure
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
OUT_DIR = DATA_DIR / "out"

# =============================================================================
# Data File Paths
# =============================================================================

EMISSIONS_PATH = DATA_DIR / "facility_emissions.xlsx"
CENSUS_PATH = DATA_DIR / "census_zip_demographics.csv"

# =============================================================================
# Column Names (normalized schema)
# =============================================================================

# Identifiers
FACILITY_COL = "facility_name"
ZIP_COL = "zip_code"
STATE_COL = "state"
YEAR_COL = "year"

# Outcome
EMISSIONS_COL = "total_emissions"
MAX_EMISSIONS_COL = "max_emissions"

# -----------------------------------------------------------------------------
# Census counts and shares
# -----------------------------------------------------------------------------
POPULATION_COL = "population"

# Derived (not present upstream, added by derive_demographics)
NON_ASIAN_WHITE_POP_COL = "non_asian_white_population"
POC_POP_COL = "poc_population"
NON_ASIAN_WHITE_PCT_COL = "non_asian_white_percentage"
POC_PCT_COL = "poc_percentage"

# =============================================================================
# Study Window
# =============================================================================

START_YEAR = 2011
END_YEAR = 2017

# Regional Greenhouse Gas Initiative member states over the study window
RGGI_STATES = ["CT", "DE", "MA", "MD", "ME", "NH", "NY", "RI", "VT"]

# =============================================================================
# Binning Defaults
# =============================================================================

NO_BUCKET = "NA"
BUCKET_COL = "bucket"

POC_BREAKPOINTS = [0, 25, 50, 75, 100]
POC_LABELS = ["0-25%", "25-50%", "50-75%", "75-100%"]

# Aggregation policy for missing emissions: "skip" or "zero"
MISSING_POLICY = "skip"

# =============================================================================
# Regression Output Columns
# =============================================================================

SLOPE_COL = "slope"
INTERCEPT_COL = "intercept"
