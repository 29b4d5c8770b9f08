"""
aggregate.py
============
Group-by summaries of the emissions panel.

- total_emissions_by_zip_year: facility-years summed to zip code x year
- max_emissions_by_year / find_outliers: the zip code(s) with the largest
  total in each year (ties kept)
- mean_emissions_by_group_year: average emissions per demographic bucket
  per year, with the missing-demographics group kept

Missing emissions follow an explicit policy rather than a hidden default:
- "skip": NaN values are excluded; a group with no reported value is NaN
- "zero": NaN values count as 0; a group with no reported value is 0
"""

import pandas as pd
from typing import Optional

from .config import ZIP_COL, YEAR_COL, EMISSIONS_COL, MAX_EMISSIONS_COL, MISSING_POLICY

_POLICIES = ("skip", "zero")


def _check_policy(missing_policy: str) -> None:
    if missing_policy not in _POLICIES:
        raise ValueError(f"Unknown missing_policy: {missing_policy}. Use 'skip' or 'zero'.")


def total_emissions_by_zip_year(
    records: pd.DataFrame,
    missing_policy: str = MISSING_POLICY,
    zip_col: str = ZIP_COL,
    time_col: str = YEAR_COL,
    value_col: str = EMISSIONS_COL
) -> pd.DataFrame:
    """
    Sum facility emissions to zip code x year.

    Parameters
    ----------
    records : DataFrame
        Long facility-year emissions
    missing_policy : str
        "skip" (all-missing group -> NaN) or "zero" (all-missing group -> 0)

    Returns
    -------
    DataFrame with zip_col, time_col, value_col; one row per (zip, year)
    present in records
    """
    _check_policy(missing_policy)
    df = records[[zip_col, time_col, value_col]].copy()

    if missing_policy == "zero":
        df[value_col] = df[value_col].fillna(0.0)

    min_count = 1 if missing_policy == "skip" else 0
    out = (
        df.groupby([zip_col, time_col])[value_col]
        .sum(min_count=min_count)
        .reset_index()
    )

    n_empty = int(out[value_col].isna().sum())
    print(f"Zip-year totals: {len(records):,} facility-years → {len(out):,} zip-years "
          f"({n_empty:,} with no reported emissions, policy={missing_policy})")

    return out.sort_values([zip_col, time_col]).reset_index(drop=True)


def max_emissions_by_year(
    aggregated: pd.DataFrame,
    time_col: str = YEAR_COL,
    value_col: str = EMISSIONS_COL,
    max_col: str = MAX_EMISSIONS_COL
) -> pd.DataFrame:
    """
    Maximum emissions per year, ignoring NaN.

    Years in which every value is NaN have no maximum and are omitted.
    """
    out = (
        aggregated.dropna(subset=[value_col])
        .groupby(time_col)[value_col]
        .max()
        .rename(max_col)
        .reset_index()
    )
    return out.sort_values(time_col).reset_index(drop=True)


def find_outliers(
    aggregated: pd.DataFrame,
    max_by_year: Optional[pd.DataFrame] = None,
    time_col: str = YEAR_COL,
    value_col: str = EMISSIONS_COL,
    max_col: str = MAX_EMISSIONS_COL
) -> pd.DataFrame:
    """
    Rows achieving their year's maximum emissions.

    Joins the per-year maximum onto the aggregated table and keeps every row
    equal to it, so tied zip codes are all returned.
    """
    if max_by_year is None:
        max_by_year = max_emissions_by_year(aggregated, time_col, value_col, max_col)

    merged = aggregated.merge(max_by_year, on=time_col, how="inner")
    outliers = merged[merged[value_col] == merged[max_col]]

    n_ties = len(outliers) - outliers[time_col].nunique()
    if n_ties > 0:
        print(f"Outliers: {n_ties} tied maxima across {outliers[time_col].nunique()} years")

    return outliers.drop(columns=[max_col]).reset_index(drop=True)


def mean_emissions_by_group_year(
    joined: pd.DataFrame,
    group_col: str,
    missing_policy: str = MISSING_POLICY,
    time_col: str = YEAR_COL,
    value_col: str = EMISSIONS_COL
) -> pd.DataFrame:
    """
    Average emissions per group per year.

    NaN group values (zip codes without demographic data) form their own
    group. Under "skip" the mean covers reported values only; under "zero"
    unreported zip-years pull the mean toward 0.

    Returns
    -------
    DataFrame with group_col, time_col, mean_emissions, n_zip_years (the
    number of zip-years averaged)
    """
    _check_policy(missing_policy)
    df = joined[[group_col, time_col, value_col]].copy()
    if missing_policy == "zero":
        df[value_col] = df[value_col].fillna(0.0)

    out = (
        df.groupby([group_col, time_col], dropna=False, observed=True)
        .agg(mean_emissions=(value_col, "mean"), n_zip_years=(value_col, "count"))
        .reset_index()
    )
    return out.sort_values([group_col, time_col]).reset_index(drop=True)
