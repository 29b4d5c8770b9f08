"""
Data processing utilities for the emissions/census pipeline.

Contains:
- SchemaError: raised when an input table does not match its declared schema
- read_table: reads csv/xlsx/parquet inputs by file suffix
- require_columns: fail-fast column presence check
- parse_year_label: explicit year parsing for wide-format column labels
- normalize_zip_codes: coerces zip code columns to integers
- melt_year_columns: reshapes one-column-per-year tables to long format
- derive_demographics: adds non-Asian-white and POC population/percentage
"""

import re
import pandas as pd
import numpy as np
from pathlib import Path
from typing import Iterable, List, Optional


class SchemaError(ValueError):
    """Input table is missing columns or carries values that cannot be parsed."""


_YEAR_LABEL_RE = re.compile(r'(?<!\d)(19\d{2}|20\d{2})(?!\d)')
_ZIP_RE = re.compile(r'^\s*(\d{1,5})(?:-\d{4})?\s*$')


def read_table(path: Path, sheet_name=0) -> pd.DataFrame:
    """Read a csv, Excel or parquet table based on its suffix."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Input file not found: {path}\n"
            "Place the source tables under data/ or pass explicit paths."
        )
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path, sheet_name=sheet_name)
    if suffix == ".parquet":
        return pd.read_parquet(path)
    raise ValueError(f"Unsupported file type: {suffix}. Use .csv, .xlsx, .xls or .parquet.")


def require_columns(df: pd.DataFrame, columns: Iterable[str], table: str = "table") -> None:
    """Raise SchemaError listing every required column absent from df."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(
            f"{table} is missing required columns: {missing}. "
            f"Available columns: {list(df.columns)}"
        )


def parse_year_label(label: object) -> int:
    """Parse a wide-format column label into a year: '2011', 'X2011', '2011 Total' -> 2011."""
    if isinstance(label, (int, np.integer)) and 1900 <= int(label) <= 2099:
        return int(label)
    if isinstance(label, float) and label.is_integer() and 1900 <= label <= 2099:
        return int(label)
    matches = _YEAR_LABEL_RE.findall(str(label))
    if len(matches) != 1:
        raise SchemaError(f"Column label {label!r} does not identify a single year")
    return int(matches[0])


def find_year_columns(df: pd.DataFrame, exclude: Iterable[str] = ()) -> List:
    """Return columns whose label carries exactly one four-digit year."""
    exclude = set(exclude)
    year_cols = []
    for col in df.columns:
        if col in exclude:
            continue
        try:
            parse_year_label(col)
        except SchemaError:
            continue
        year_cols.append(col)
    return year_cols


def normalize_zip_codes(
    df: pd.DataFrame,
    zip_col: str = 'zip_code',
    drop_missing: bool = True,
    table: str = "table",
) -> pd.DataFrame:
    """
    Coerce a zip code column to integers.

    Accepts integers, floats read from spreadsheets (2108.0), zero-padded
    strings ('02108') and ZIP+4 strings ('02108-1234'). Blank zip codes are
    dropped (or rejected if drop_missing is False); any other value is a
    SchemaError.
    """
    df = df.copy()
    raw = df[zip_col]
    missing = raw.isna() | (raw.astype(str).str.strip() == "")

    if missing.any():
        if not drop_missing:
            raise SchemaError(f"{table}: {int(missing.sum())} rows have no {zip_col}")
        print(f"{table}: dropped {int(missing.sum()):,} rows with blank {zip_col}")
        df = df[~missing]
        raw = df[zip_col]

    def _parse(x):
        if isinstance(x, (int, np.integer)) and not isinstance(x, bool):
            v = int(x)
        elif isinstance(x, float) and x.is_integer():
            v = int(x)
        else:
            m = _ZIP_RE.match(str(x))
            return int(m.group(1)) if m else None
        # Same 1-5 digit range as string zips
        return v if 0 <= v <= 99999 else None

    parsed = raw.map(_parse)
    bad = raw[parsed.isna()]
    if len(bad) > 0:
        examples = list(bad.astype(str).unique()[:5])
        raise SchemaError(f"{table}: {len(bad)} unparseable {zip_col} values, e.g. {examples}")

    df[zip_col] = parsed.astype("int64")
    return df


def coerce_numeric(df: pd.DataFrame, columns: Iterable[str], table: str = "table") -> pd.DataFrame:
    """Coerce columns to numeric; unparseable cells become NaN and are counted."""
    df = df.copy()
    for col in columns:
        before = df[col].notna().sum()
        df[col] = pd.to_numeric(df[col], errors="coerce")
        n_lost = before - df[col].notna().sum()
        if n_lost > 0:
            print(f"{table}: {n_lost:,} non-numeric values in {col!r} set to NaN")
    return df


def melt_year_columns(
    df: pd.DataFrame,
    id_cols: List[str],
    year_cols: Optional[List] = None,
    year_col: str = 'year',
    value_col: str = 'total_emissions',
    table: str = "table",
) -> pd.DataFrame:
    """
    Reshape a wide table (one column per year) into long format.

    Args:
        df: Wide table
        id_cols: Columns identifying a row (kept on every output row)
        year_cols: Columns holding yearly values. If None, every column whose
            label carries a four-digit year is used.
        year_col: Name of the output year column
        value_col: Name of the output value column

    Returns:
        Long DataFrame with id_cols + [year_col, value_col]; year is int64.
    """
    require_columns(df, id_cols, table)

    if year_cols is None:
        year_cols = find_year_columns(df, exclude=id_cols)
        if not year_cols:
            raise SchemaError(f"{table} has no year-labelled columns: {list(df.columns)}")
    else:
        require_columns(df, year_cols, table)

    # Parse every label up front so a bad label fails before reshaping
    year_of = {col: parse_year_label(col) for col in year_cols}
    if len(set(year_of.values())) != len(year_of):
        raise SchemaError(f"{table} has more than one column for the same year: {year_cols}")

    long = df.melt(
        id_vars=id_cols,
        value_vars=year_cols,
        var_name=year_col,
        value_name=value_col,
    )
    long[year_col] = long[year_col].map(year_of).astype("int64")
    long = coerce_numeric(long, [value_col], table)
    return long


def derive_demographics(
    census: pd.DataFrame,
    population_col: str = 'population',
) -> pd.DataFrame:
    """
    Add derived demographic columns to a census table.

    non_asian_white_population = black + american_indian + native_hawaiian + other + hispanic
    poc_population = non_asian_white_population + asian
    *_percentage = count / population * 100, NaN where population is 0 or missing.
    """
    required = [population_col, "black", "american_indian", "native_hawaiian",
                "other", "hispanic", "asian"]
    require_columns(census, required, "census")

    out = census.copy()
    out["non_asian_white_population"] = (
        out["black"] + out["american_indian"] + out["native_hawaiian"]
        + out["other"] + out["hispanic"]
    )
    out["poc_population"] = out["non_asian_white_population"] + out["asian"]

    population = out[population_col].astype(float).replace(0, np.nan)
    out["non_asian_white_percentage"] = out["non_asian_white_population"] / population * 100
    out["poc_percentage"] = out["poc_population"] / population * 100

    n_zero = int((out[population_col] == 0).sum())
    if n_zero > 0:
        print(f"Census: {n_zero:,} zip codes with zero population (percentages left as NaN)")

    return out
