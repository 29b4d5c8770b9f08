"""
Facility emissions loading.

Contains:
- load_emissions: reads the facility emissions spreadsheet (one column per
  reporting year) and reshapes it to one row per facility-year
- emissions_from_wide: the same normalization for an already-loaded frame

Expected source headers (R-style, as exported from the reporting portal):
    Facility.Name, Zip.Code, State, 2011, 2012, ..., 2017
Year headers may also appear as 'X2011' or '2011 Total Emissions'.
"""

import pandas as pd
from pathlib import Path
from typing import List, Optional, Tuple

from .processing import (
    SchemaError, read_table, require_columns, melt_year_columns, normalize_zip_codes,
)

RAW_COLUMNS = {
    "Facility.Name": "facility_name",
    "Zip.Code": "zip_code",
    "State": "state",
}


def emissions_from_wide(
    raw: pd.DataFrame,
    year_cols: Optional[List] = None,
    year_range: Optional[Tuple[int, int]] = None,
    raw_columns: Optional[dict] = None,
) -> pd.DataFrame:
    """
    Normalize a wide emissions table into long EmissionRecords.

    Args:
        raw: Wide table with facility, zip, state and one column per year
        year_cols: Explicit year columns (default: every year-labelled column)
        year_range: (start_year, end_year) to keep, inclusive
        raw_columns: Mapping of source header -> normalized name

    Returns:
        DataFrame with facility_name, zip_code (int), state, year (int),
        total_emissions (float, NaN where not reported)
    """
    raw_columns = raw_columns or RAW_COLUMNS
    require_columns(raw, list(raw_columns), "emissions")

    df = raw.rename(columns=raw_columns)
    id_cols = list(raw_columns.values())

    long = melt_year_columns(
        df,
        id_cols=id_cols,
        year_cols=year_cols,
        year_col="year",
        value_col="total_emissions",
        table="emissions",
    )
    long = normalize_zip_codes(long, "zip_code", table="emissions")
    long["state"] = long["state"].map(lambda s: str(s).strip().upper() if pd.notna(s) else s)

    if year_range:
        long = long[(long["year"] >= year_range[0]) & (long["year"] <= year_range[1])]
        if long.empty:
            raise SchemaError(f"emissions has no data within years {year_range}")

    return long.sort_values(["facility_name", "year"]).reset_index(drop=True)


def load_emissions(
    path: Path,
    year_cols: Optional[List] = None,
    year_range: Optional[Tuple[int, int]] = None,
    sheet_name=0,
) -> pd.DataFrame:
    """Load the facility emissions spreadsheet as long EmissionRecords."""
    raw = read_table(path, sheet_name=sheet_name)
    print(f"Loaded {len(raw):,} facilities from {Path(path).name}")

    long = emissions_from_wide(raw, year_cols=year_cols, year_range=year_range)

    n_fac = long["facility_name"].nunique()
    n_zip = long["zip_code"].nunique()
    n_reported = long["total_emissions"].notna().sum()
    years = f"{long['year'].min()}-{long['year'].max()}"
    print(f"Emissions: {len(long):,} facility-years ({n_reported:,} reported), "
          f"{n_fac:,} facilities, {n_zip:,} zip codes, {years}")
    return long
