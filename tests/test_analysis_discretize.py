import numpy as np
import pandas as pd
import pytest

from src.analysis.config import POC_BREAKPOINTS, POC_LABELS
from src.analysis.discretize import (
    BinningConfigError,
    cut_equal_width,
    cut_breakpoints,
    equal_width_edges,
    interval_labels,
    discretize,
)


def test_equal_width_interval_labels():
    values = pd.Series([0, 10, 25, 50, 75, 100, np.nan], name="poc_percentage")
    out = cut_equal_width(values, breaks=4)

    assert list(out.cat.categories) == ["[0,25)", "[25,50)", "[50,75)", "[75,100]", "NA"]
    assert out.cat.ordered
    assert out.astype(str).tolist() == [
        "[0,25)", "[0,25)", "[25,50)", "[50,75)", "[75,100]", "[75,100]", "NA",
    ]


def test_equal_width_with_labels():
    values = pd.Series([1.0, 2.0, 3.0, 4.0])
    out = cut_equal_width(values, labels=["low", "high"])
    assert out.astype(str).tolist() == ["low", "low", "high", "high"]


@pytest.mark.parametrize("seed", range(8))
def test_equal_width_bins_cover_every_value(seed):
    rng = np.random.default_rng(seed)
    n_breaks = int(rng.integers(2, 8))
    values = pd.Series(rng.uniform(-50, 150, size=300))
    values[rng.choice(300, size=20, replace=False)] = np.nan

    out = cut_equal_width(values, breaks=n_breaks)
    edges = equal_width_edges(values, n_breaks)
    bins = list(out.cat.categories[:-1])

    assert len(bins) == n_breaks
    assert np.all(np.diff(edges) > 0)
    non_null = values.notna()
    assert out[non_null].isin(bins).all()
    assert (out[~non_null] == "NA").all()
    assert out[values.idxmin()] == bins[0]
    assert out[values.idxmax()] == bins[-1]


def test_equal_width_single_value_range():
    values = pd.Series([5.0, 5.0, np.nan])
    out = cut_equal_width(values, breaks=3)
    assert list(out.cat.categories) == ["[5,5]", "NA"]
    assert out.astype(str).tolist() == ["[5,5]", "[5,5]", "NA"]


def test_equal_width_all_missing_warns():
    values = pd.Series([np.nan, np.nan], name="share")
    with pytest.warns(UserWarning, match="missing"):
        out = cut_equal_width(values, breaks=2)
    assert (out == "NA").all()


@pytest.mark.parametrize("kwargs", [
    {"breaks": 3, "labels": ["a", "b"]},
    {"breaks": 1},
    {"breaks": 2.5},
    {},
    {"labels": ["a", "a"]},
    {"labels": ["a", "NA"]},
])
def test_equal_width_config_errors(kwargs):
    with pytest.raises(BinningConfigError):
        cut_equal_width(pd.Series([1.0, 2.0]), **kwargs)


def test_breakpoints_with_named_labels():
    values = pd.Series([0, 24.9, 25, 100, np.nan], name="poc_percentage")
    out = cut_breakpoints(values, POC_BREAKPOINTS, POC_LABELS)
    assert out.astype(str).tolist() == ["0-25%", "0-25%", "25-50%", "75-100%", "NA"]
    assert list(out.cat.categories) == POC_LABELS + ["NA"]


def test_breakpoints_out_of_range_warns():
    values = pd.Series([50.0, 101.0, -1.0], name="poc_percentage")
    with pytest.warns(UserWarning, match="outside"):
        out = cut_breakpoints(values, POC_BREAKPOINTS, POC_LABELS)
    assert out.astype(str).tolist() == ["50-75%", "NA", "NA"]


@pytest.mark.parametrize("breakpoints,labels", [
    ([0, 50, 100], ["a", "b", "c"]),
    ([0, 50, 50, 100], None),
    ([100, 50, 0], None),
    ([0, 100], None),
])
def test_breakpoints_config_errors(breakpoints, labels):
    with pytest.raises(BinningConfigError):
        cut_breakpoints(pd.Series([1.0]), breakpoints, labels)


def test_bucket_order_follows_numeric_range():
    values = pd.Series([90.0, 10.0, 60.0])
    out = cut_breakpoints(values, [0, 50, 100], ["z-low", "a-high"])
    assert list(out.cat.categories) == ["z-low", "a-high", "NA"]
    assert out.sort_values().astype(str).tolist() == ["z-low", "a-high", "a-high"]


def test_interval_labels_distinct_for_close_edges():
    labels = interval_labels([0.123451, 0.123452, 0.123453])
    assert len(set(labels)) == 2


def test_discretize_methods():
    df = pd.DataFrame({"poc_percentage": [10.0, 60.0, np.nan]})

    fixed = discretize(df, "poc_percentage", method="fixed",
                       breakpoints=POC_BREAKPOINTS, labels=POC_LABELS)
    assert fixed["bucket"].astype(str).tolist() == ["0-25%", "50-75%", "NA"]
    assert "bucket" not in df.columns

    interval = discretize(df, "poc_percentage", method="interval", breaks=2)
    assert interval["bucket"].astype(str).tolist() == ["[10,35)", "[35,60]", "NA"]

    none = discretize(df, "poc_percentage", method="none")
    pd.testing.assert_series_equal(none["bucket"], df["poc_percentage"], check_names=False)


def test_discretize_config_errors():
    df = pd.DataFrame({"poc_percentage": [10.0]})
    with pytest.raises(BinningConfigError):
        discretize(df, "poc_percentage", method="quantile")
    with pytest.raises(BinningConfigError):
        discretize(df, "poc_percentage", method="fixed")
    with pytest.raises(BinningConfigError):
        discretize(df, "missing_col")


@pytest.mark.parametrize("cut", [
    lambda v: cut_equal_width(v, breaks=2),
    lambda v: cut_breakpoints(v, [0, 50, 100], ["lo", "hi"]),
])
def test_non_numeric_values_are_rejected(cut):
    values = pd.Series(["45%", "80%", None], name="poc_percentage")
    with pytest.raises(BinningConfigError, match="45%"):
        cut(values)


@pytest.mark.parametrize("bad", [np.inf, -np.inf])
@pytest.mark.parametrize("cut", [
    lambda v: cut_equal_width(v, breaks=2),
    lambda v: cut_breakpoints(v, [0, 50, 100]),
    lambda v: equal_width_edges(v, 2),
])
def test_infinite_values_are_rejected(cut, bad):
    values = pd.Series([1.0, 2.0, bad], name="poc_percentage")
    with pytest.raises(BinningConfigError, match="infinite"):
        cut(values)


def test_numeric_strings_are_binned():
    out = cut_breakpoints(pd.Series(["10", "60", None]), [0, 50, 100], ["lo", "hi"])
    assert out.astype(str).tolist() == ["lo", "hi", "NA"]


def test_single_value_range_label_keeps_full_precision():
    out = cut_equal_width(pd.Series([12345678.0, 12345678.0]), breaks=2)
    assert list(out.cat.categories) == ["[12345678,12345678]", "NA"]
