"""
discretize.py
=============
Binning of continuous demographic shares into ordered buckets.

Methods:
- "interval": equal-width bins over the observed range
- "fixed": explicit breakpoints (e.g. POC share 0/25/50/75/100)
- "none": pass-through; the raw value is its own group

Intervals are closed on the left, [lo, hi), except the last which is
closed on both ends so the maximum is included. Missing values (and, for
fixed breakpoints, values outside the outer edges) land in the "NA"
bucket, which is ordered last and kept through later group-bys.
Non-numeric or infinite values raise BinningConfigError.
"""

import warnings
import numpy as np
import pandas as pd
from typing import List, Optional, Sequence

from .config import NO_BUCKET, BUCKET_COL

METHODS = ("interval", "fixed", "none")


class BinningConfigError(ValueError):
    """Binning parameters are inconsistent (label count, breaks, method)."""


# =============================================================================
# Labels
# =============================================================================

def _format_edges(edges: np.ndarray) -> List[str]:
    # Shortest precision at which every edge prints distinctly
    for digits in range(4, 17):
        text = [f"{e:.{digits}g}" for e in edges]
        if len(set(text)) == len(text):
            return text
    return [repr(float(e)) for e in edges]


def _format_value(v: float) -> str:
    # Shortest precision that reads back as v
    for digits in range(4, 17):
        text = f"{v:.{digits}g}"
        if float(text) == v:
            return text
    return repr(float(v))


def interval_labels(edges: Sequence[float]) -> List[str]:
    """Labels '[lo,hi)' for each bin, with the last bin '[lo,hi]'."""
    text = _format_edges(np.asarray(edges, dtype=float))
    n = len(text) - 1
    return [
        f"[{text[k]},{text[k + 1]}{']' if k == n - 1 else ')'}"
        for k in range(n)
    ]


def _check_labels(labels: Optional[Sequence[str]], n_bins: int) -> Optional[List[str]]:
    if labels is None:
        return None
    labels = list(labels)
    if len(labels) != n_bins:
        raise BinningConfigError(
            f"{len(labels)} labels given for {n_bins} bins; counts must match"
        )
    if len(set(labels)) != len(labels):
        raise BinningConfigError(f"Bucket labels must be unique: {labels}")
    if NO_BUCKET in labels:
        raise BinningConfigError(f"'{NO_BUCKET}' is reserved for missing values")
    return labels


# =============================================================================
# Bin Assignment
# =============================================================================

def _as_float(values: pd.Series) -> np.ndarray:
    """Values as floats; non-numeric or infinite entries are an error, NaN stays NaN."""
    x = pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)

    unparsed = np.isnan(x) & values.notna().to_numpy()
    if unparsed.any():
        examples = list(values[unparsed].astype(str).unique()[:5])
        raise BinningConfigError(
            f"{int(unparsed.sum())} non-numeric values in {values.name!r}, e.g. {examples}"
        )

    infinite = np.isinf(x)
    if infinite.any():
        raise BinningConfigError(
            f"{int(infinite.sum())} infinite values in {values.name!r}; cannot bin"
        )
    return x


def _assign_codes(x: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """Bin index per value; -1 for NaN or values outside [edges[0], edges[-1]]."""
    n_bins = len(edges) - 1
    codes = np.searchsorted(edges, x, side="right") - 1
    codes = np.where(x == edges[-1], n_bins - 1, codes)
    outside = np.isnan(x) | (x < edges[0]) | (x > edges[-1])
    return np.where(outside, -1, codes)


def _to_categorical(values: pd.Series, codes: np.ndarray, labels: List[str]) -> pd.Series:
    categories = list(labels) + [NO_BUCKET]
    codes = np.where(codes < 0, len(labels), codes)
    cat = pd.Categorical.from_codes(codes, categories=categories, ordered=True)
    return pd.Series(cat, index=values.index, name=values.name)


def equal_width_edges(values: pd.Series, breaks: int) -> np.ndarray:
    """
    Bin edges min + k*w for k = 0..breaks over the non-null values.

    Returns a single-point array [v, v] when every value equals v.
    """
    x = _as_float(values)
    x = x[~np.isnan(x)]
    if x.size == 0:
        raise BinningConfigError(f"Cannot compute bin edges: {values.name!r} has no non-null values")
    lo, hi = float(x.min()), float(x.max())
    if lo == hi:
        return np.array([lo, hi])
    return np.linspace(lo, hi, breaks + 1)


def cut_equal_width(
    values: pd.Series,
    breaks: Optional[int] = None,
    labels: Optional[Sequence[str]] = None
) -> pd.Series:
    """
    Equal-width binning over the observed range.

    Parameters
    ----------
    values : Series
        Continuous values (NaN allowed)
    breaks : int, optional
        Number of bins (>= 2). Defaults to len(labels).
    labels : sequence of str, optional
        One label per bin. Without labels, buckets are named by their
        interval, e.g. "[0,25)".

    Returns
    -------
    Ordered categorical Series; NaN values map to "NA".
    """
    if breaks is None:
        if labels is None:
            raise BinningConfigError("Equal-width binning needs breaks or labels")
        breaks = len(labels)
    if isinstance(breaks, bool) or not isinstance(breaks, (int, np.integer)) or breaks < 2:
        raise BinningConfigError(f"breaks must be an integer >= 2, got {breaks!r}")
    labels = _check_labels(labels, breaks)

    x = _as_float(values)

    if np.isnan(x).all():
        warnings.warn(f"All values of {values.name!r} are missing; every row is '{NO_BUCKET}'")
        return _to_categorical(values, np.full(len(x), -1), labels or [])

    edges = equal_width_edges(values, breaks)
    if edges[0] == edges[-1]:
        # Degenerate range: one bucket spanning the single observed value
        codes = np.where(np.isnan(x), -1, 0)
        text = _format_value(edges[0])
        bucket_labels = labels or [f"[{text},{text}]"]
        return _to_categorical(values, codes, bucket_labels)

    return _to_categorical(values, _assign_codes(x, edges), labels or interval_labels(edges))


def cut_breakpoints(
    values: pd.Series,
    breakpoints: Sequence[float],
    labels: Optional[Sequence[str]] = None
) -> pd.Series:
    """
    Binning on explicit breakpoints.

    Parameters
    ----------
    values : Series
        Continuous values (NaN allowed)
    breakpoints : sequence of float
        Strictly increasing edges; n breakpoints define n - 1 bins
    labels : sequence of str, optional
        One label per bin (default: interval strings)

    Returns
    -------
    Ordered categorical Series; NaN and out-of-range values map to "NA".
    """
    edges = np.asarray(breakpoints, dtype=float)
    if edges.ndim != 1 or len(edges) < 3:
        raise BinningConfigError(f"Need at least 3 breakpoints (2 bins), got {list(breakpoints)}")
    if np.isnan(edges).any() or not np.all(np.diff(edges) > 0):
        raise BinningConfigError(f"Breakpoints must be strictly increasing: {list(breakpoints)}")
    labels = _check_labels(labels, len(edges) - 1)

    x = _as_float(values)
    codes = _assign_codes(x, edges)

    n_outside = int(((codes < 0) & ~np.isnan(x)).sum())
    if n_outside > 0:
        warnings.warn(
            f"{n_outside} values of {values.name!r} fall outside "
            f"[{edges[0]:g}, {edges[-1]:g}] and are bucketed as '{NO_BUCKET}'"
        )

    return _to_categorical(values, codes, labels or interval_labels(edges))


# =============================================================================
# DataFrame Interface
# =============================================================================

def discretize(
    df: pd.DataFrame,
    col: str,
    method: str = "interval",
    breaks: Optional[int] = None,
    labels: Optional[Sequence[str]] = None,
    breakpoints: Optional[Sequence[float]] = None,
    bucket_col: str = BUCKET_COL
) -> pd.DataFrame:
    """
    Add a bucket column derived from col.

    Parameters
    ----------
    df : DataFrame
        Table holding the continuous column
    col : str
        Column to bin (e.g. poc_percentage)
    method : str
        "interval" (equal width, uses breaks/labels), "fixed" (uses
        breakpoints/labels) or "none" (identity)
    bucket_col : str
        Output column name

    Returns
    -------
    Copy of df with bucket_col added
    """
    if method not in METHODS:
        raise BinningConfigError(f"Unknown method: {method}. Use one of {METHODS}.")
    if col not in df.columns:
        raise BinningConfigError(f"Column {col!r} not found")

    out = df.copy()
    if method == "interval":
        out[bucket_col] = cut_equal_width(out[col], breaks=breaks, labels=labels)
    elif method == "fixed":
        if breakpoints is None:
            raise BinningConfigError("method='fixed' requires breakpoints")
        out[bucket_col] = cut_breakpoints(out[col], breakpoints, labels=labels)
    else:
        out[bucket_col] = out[col]

    counts = out[bucket_col].value_counts(dropna=False, sort=False)
    if method != "none":
        summary = ", ".join(f"{k}: {v}" for k, v in counts.items())
        print(f"Buckets ({col}, {method}): {summary}")

    return out
