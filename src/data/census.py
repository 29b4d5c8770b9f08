"""
Census demographics loading.

Contains:
- load_census: reads the zip-code census table, renames it to the
  normalized schema and validates it (one row per zip code)
- census_from_raw: the same normalization for an already-loaded frame

Counts are population by race; percentages are the census-published shares
(0-100). Derived POC columns are added separately by derive_demographics.
"""

import pandas as pd
from pathlib import Path
from typing import Optional

from .processing import (
    SchemaError, read_table, require_columns, normalize_zip_codes, coerce_numeric,
)

RAW_COLUMNS = {
    "Zip.Code": "zip_code",
    "Population": "population",
    "Housing.Units": "housing_units",
    "White": "white",
    "Black": "black",
    "American.Indian": "american_indian",
    "Asian": "asian",
    "Native.Hawaiian": "native_hawaiian",
    "Other": "other",
    "Hispanic": "hispanic",
    "White.Percent": "white_pct",
    "Black.Percent": "black_pct",
    "American.Indian.Percent": "american_indian_pct",
    "Asian.Percent": "asian_pct",
    "Native.Hawaiian.Percent": "native_hawaiian_pct",
    "Other.Percent": "other_pct",
    "Hispanic.Percent": "hispanic_pct",
}


def census_from_raw(raw: pd.DataFrame, raw_columns: Optional[dict] = None) -> pd.DataFrame:
    """
    Normalize a raw census table into CensusRecords.

    Raises SchemaError if a column is missing or a zip code appears twice.
    """
    raw_columns = raw_columns or RAW_COLUMNS
    require_columns(raw, list(raw_columns), "census")

    df = raw[list(raw_columns)].rename(columns=raw_columns)
    df = normalize_zip_codes(df, "zip_code", drop_missing=False, table="census")

    value_cols = [c for c in df.columns if c != "zip_code"]
    df = coerce_numeric(df, value_cols, "census")

    dupes = df["zip_code"][df["zip_code"].duplicated()]
    if len(dupes) > 0:
        raise SchemaError(
            f"census has {len(dupes)} duplicate zip codes, e.g. {list(dupes.unique()[:5])}"
        )

    return df.sort_values("zip_code").reset_index(drop=True)


def load_census(path: Path, sheet_name=0) -> pd.DataFrame:
    """Load the zip-code census table."""
    raw = read_table(path, sheet_name=sheet_name)
    df = census_from_raw(raw)
    n_zero = int((df["population"] == 0).sum())
    print(f"Loaded {len(df):,} zip codes from {Path(path).name} "
          f"({n_zero:,} with zero population)")
    return df
