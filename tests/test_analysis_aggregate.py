import numpy as np
import pandas as pd
import pytest

from src.analysis.aggregate import (
    total_emissions_by_zip_year,
    max_emissions_by_year,
    find_outliers,
    mean_emissions_by_group_year,
)


def _totals(df):
    return {(z, y): v for z, y, v in df[["zip_code", "year", "total_emissions"]].itertuples(index=False)}


def test_totals_skip_policy(emissions):
    out = total_emissions_by_zip_year(emissions)
    totals = _totals(out)

    assert totals[(2108, 2011)] == pytest.approx(100.0)
    assert totals[(2108, 2012)] == pytest.approx(200.0)
    assert totals[(10001, 2011)] == pytest.approx(300.0)
    assert totals[(10001, 2012)] == pytest.approx(900.0)
    # All-missing group stays missing
    assert np.isnan(totals[(99999, 2011)])
    assert len(out) == 6


def test_totals_zero_policy(emissions):
    out = total_emissions_by_zip_year(emissions, missing_policy="zero")
    totals = _totals(out)
    assert totals[(99999, 2011)] == 0.0
    assert totals[(2108, 2012)] == pytest.approx(200.0)


def test_totals_partial_missing_is_sum_of_reported():
    records = pd.DataFrame({
        "zip_code": [1, 1, 1],
        "year": [2011, 2011, 2011],
        "total_emissions": [5.0, np.nan, 7.0],
    })
    for policy in ("skip", "zero"):
        out = total_emissions_by_zip_year(records, missing_policy=policy)
        assert out["total_emissions"].iloc[0] == pytest.approx(12.0)


def test_totals_unknown_policy(emissions):
    with pytest.raises(ValueError, match="missing_policy"):
        total_emissions_by_zip_year(emissions, missing_policy="drop")


def test_max_and_outliers_end_to_end(emissions):
    by_zip_year = total_emissions_by_zip_year(emissions)
    max_by_year = max_emissions_by_year(by_zip_year)

    assert dict(zip(max_by_year["year"], max_by_year["max_emissions"])) == {2011: 300.0, 2012: 900.0}

    outliers = find_outliers(by_zip_year, max_by_year)
    assert outliers["zip_code"].unique().tolist() == [10001]
    assert sorted(outliers["year"]) == [2011, 2012]
    assert "max_emissions" not in outliers.columns


def test_outliers_keep_ties():
    agg = pd.DataFrame({
        "zip_code": [1, 2, 3, 1, 2],
        "year": [2011, 2011, 2011, 2012, 2012],
        "total_emissions": [50.0, 50.0, 10.0, np.nan, 20.0],
    })
    outliers = find_outliers(agg)

    assert sorted(outliers.loc[outliers["year"] == 2011, "zip_code"]) == [1, 2]
    assert outliers.loc[outliers["year"] == 2012, "zip_code"].tolist() == [2]


def test_max_skips_all_missing_year():
    agg = pd.DataFrame({
        "zip_code": [1, 2],
        "year": [2011, 2012],
        "total_emissions": [np.nan, 3.0],
    })
    out = max_emissions_by_year(agg)
    assert out["year"].tolist() == [2012]


def test_mean_by_group_keeps_missing_group():
    joined = pd.DataFrame({
        "bucket": ["low", "low", "high", np.nan, np.nan],
        "year": [2011, 2011, 2011, 2011, 2011],
        "total_emissions": [10.0, np.nan, 30.0, 4.0, 6.0],
    })
    skip = mean_emissions_by_group_year(joined, "bucket")
    means = {b if isinstance(b, str) else "missing": m
             for b, m in zip(skip["bucket"], skip["mean_emissions"])}

    assert means["low"] == pytest.approx(10.0)
    assert means["high"] == pytest.approx(30.0)
    assert means["missing"] == pytest.approx(5.0)

    zero = mean_emissions_by_group_year(joined, "bucket", missing_policy="zero")
    low = zero[zero["bucket"] == "low"]["mean_emissions"].iloc[0]
    assert low == pytest.approx(5.0)


def test_mean_by_group_counts_reported_zip_years():
    joined = pd.DataFrame({
        "bucket": ["low", "low"],
        "year": [2011, 2011],
        "total_emissions": [10.0, np.nan],
    })
    skip = mean_emissions_by_group_year(joined, "bucket")
    assert skip["mean_emissions"].iloc[0] == pytest.approx(10.0)
    assert skip["n_zip_years"].iloc[0] == 1

    zero = mean_emissions_by_group_year(joined, "bucket", missing_policy="zero")
    assert zero["mean_emissions"].iloc[0] == pytest.approx(5.0)
    assert zero["n_zip_years"].iloc[0] == 2
