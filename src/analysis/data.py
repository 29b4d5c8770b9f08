"""
data.py
=======
Data loading and preprocessing for the zip-year analysis panel.

Loads the facility emissions spreadsheet and the census table, sums
emissions to zip code x year and attaches derived demographics.

Join direction: every zip-year with emissions is kept; census zip codes
without facilities are dropped; zip codes without census data keep NaN
demographic columns (reported as "no demographic data", never dropped).
"""

import pandas as pd
from pathlib import Path
from typing import Optional, Tuple, List

from src.data.facilities import load_emissions
from src.data.census import load_census
from src.data.processing import SchemaError, derive_demographics

from .config import (
    ZIP_COL, YEAR_COL, STATE_COL, EMISSIONS_COL, POC_PCT_COL,
    START_YEAR, END_YEAR, MISSING_POLICY,
)
from .aggregate import total_emissions_by_zip_year


# =============================================================================
# Joining
# =============================================================================

def attach_demographics(
    emissions_by_zip_year: pd.DataFrame,
    census: pd.DataFrame,
    zip_col: str = ZIP_COL,
    time_col: str = YEAR_COL
) -> pd.DataFrame:
    """
    Attach census columns to every zip-year emissions row.

    Parameters
    ----------
    emissions_by_zip_year : DataFrame
        One row per (zip_col, time_col)
    census : DataFrame
        One row per zip_col (derived demographics included)

    Returns
    -------
    DataFrame with the same rows as emissions_by_zip_year plus census columns
    (NaN where the zip code has no census record)
    """
    if census[zip_col].duplicated().any():
        raise SchemaError("census must have one row per zip code before joining")

    overlap = [c for c in census.columns if c != zip_col and c in emissions_by_zip_year.columns]
    if overlap:
        raise SchemaError(f"Columns present in both tables: {overlap}")

    joined = emissions_by_zip_year.merge(
        census,
        on=zip_col,
        how="left",
        validate="many_to_one"
    )

    n_zips = joined[zip_col].nunique()
    n_unmatched = joined.loc[~joined[zip_col].isin(census[zip_col]), zip_col].nunique()
    print(f"Demographics attached: {n_zips:,} zip codes, "
          f"{n_unmatched:,} without census data ({len(joined):,} zip-years)")

    return joined


# =============================================================================
# Panel Loading
# =============================================================================

def load_analysis_panel(
    emissions_path: Path,
    census_path: Path,
    year_range: Optional[Tuple[int, int]] = (START_YEAR, END_YEAR),
    states: Optional[List[str]] = None,
    missing_policy: str = MISSING_POLICY
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Load emissions + census and build the joined zip-year panel.

    Parameters
    ----------
    emissions_path : Path
        Facility emissions spreadsheet (wide, one column per year)
    census_path : Path
        Zip-code census table
    year_range : tuple, optional
        (start_year, end_year) to keep
    states : list, optional
        Restrict facilities to these state codes (e.g. RGGI_STATES)
    missing_policy : str
        "skip" or "zero" for unreported facility-years

    Returns
    -------
    Tuple of (facility-year emissions, zip-year totals, joined panel)
    """
    emissions = load_emissions(emissions_path, year_range=year_range)
    if states:
        emissions = apply_sample_filters(emissions, states=states)

    census = derive_demographics(load_census(census_path))

    by_zip_year = total_emissions_by_zip_year(emissions, missing_policy=missing_policy)
    panel = attach_demographics(by_zip_year, census)

    n_zip = panel[ZIP_COL].nunique()
    years = f"{panel[YEAR_COL].min()}-{panel[YEAR_COL].max()}"
    print(f"Panel: {len(panel):,} obs, {n_zip:,} zip codes, {years}")

    return emissions, by_zip_year, panel


# =============================================================================
# Sample Filters
# =============================================================================

def apply_sample_filters(
    df: pd.DataFrame,
    states: Optional[List[str]] = None,
    year_range: Optional[Tuple[int, int]] = None,
    require_outcome: bool = False,
    require_demographics: bool = False,
    outcome_col: str = EMISSIONS_COL,
    demographic_col: str = POC_PCT_COL,
    state_col: str = STATE_COL,
    time_col: str = YEAR_COL
) -> pd.DataFrame:
    """
    Apply sample restrictions.

    Parameters
    ----------
    df : DataFrame
        Facility-year or zip-year data
    states : list, optional
        State codes to keep (requires state_col)
    year_range : tuple, optional
        (start_year, end_year) to keep
    require_outcome : bool
        If True, drop rows with missing outcome
    require_demographics : bool
        If True, drop rows with missing demographic_col

    Returns
    -------
    Filtered DataFrame
    """
    n_before = len(df)

    if states:
        if state_col not in df.columns:
            raise SchemaError(f"Cannot filter by state: {state_col!r} not in columns")
        wanted = {s.upper() for s in states}
        df = df[df[state_col].isin(wanted)]

    if year_range:
        df = df[(df[time_col] >= year_range[0]) & (df[time_col] <= year_range[1])]

    if require_outcome:
        df = df.dropna(subset=[outcome_col])

    if require_demographics:
        df = df.dropna(subset=[demographic_col])

    print(f"Filters: {n_before:,} → {len(df):,} obs")

    return df
