"""
regression.py
=============
Per-group linear emission trends.

For every demographic bucket (or every distinct demographic value) an
ordinary least squares line emissions = slope * year + intercept is fitted
independently; the slope is the group's emissions trend in units per year.
Groups share no state, so results depend only on each group's rows.

Degenerate groups (fewer than two observations, or a single distinct year,
after dropping missing emissions) get NaN coefficients and a
DegenerateFitWarning instead of an exception.
"""

import warnings
import numpy as np
import pandas as pd
from scipy import stats
from typing import Dict, Sequence

from .config import YEAR_COL, EMISSIONS_COL, SLOPE_COL, INTERCEPT_COL


class DegenerateFitWarning(UserWarning):
    """A linear fit was requested on too few points or a single x value."""


FIT_COLS = [SLOPE_COL, INTERCEPT_COL, "r2", "pvalue", "stderr", "n_obs"]


def _empty_fit(n_obs: int) -> Dict:
    return {
        SLOPE_COL: np.nan,
        INTERCEPT_COL: np.nan,
        "r2": np.nan,
        "pvalue": np.nan,
        "stderr": np.nan,
        "n_obs": n_obs,
    }


def fit_linear(x: Sequence[float], y: Sequence[float]) -> Dict:
    """
    Ordinary least squares fit of y on x.

    Pairs with missing y are dropped; x must be complete.

    Returns
    -------
    Dict with slope, intercept, r2, pvalue (slope = 0), stderr (of slope),
    n_obs. Coefficients are NaN when fewer than two points or fewer than two
    distinct x values remain.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have the same length ({len(x)} != {len(y)})")
    if np.isnan(x).any():
        raise ValueError("x contains missing values")

    keep = ~np.isnan(y)
    x, y = x[keep], y[keep]
    n_obs = len(x)

    if n_obs < 2 or np.unique(x).size < 2:
        warnings.warn(
            f"Cannot fit a line to {n_obs} points with {np.unique(x).size} distinct x values",
            DegenerateFitWarning,
        )
        return _empty_fit(n_obs)

    res = stats.linregress(x, y)
    return {
        SLOPE_COL: float(res.slope),
        INTERCEPT_COL: float(res.intercept),
        "r2": float(res.rvalue ** 2),
        "pvalue": float(res.pvalue),
        "stderr": float(res.stderr),
        "n_obs": n_obs,
    }


def fit_group_slopes(
    df: pd.DataFrame,
    group_col: str,
    x_col: str = YEAR_COL,
    y_col: str = EMISSIONS_COL
) -> pd.DataFrame:
    """
    Fit y on x separately for each distinct value of group_col.

    Missing group values form their own group.

    Parameters
    ----------
    df : DataFrame
        Rows with group_col, x_col, y_col
    group_col : str
        Bucket column, or a raw demographic column for per-value fits

    Returns
    -------
    DataFrame with group_col plus slope, intercept, r2, pvalue, stderr, n_obs
    """
    rows = []
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DegenerateFitWarning)
        for key, group in df.groupby(group_col, dropna=False, observed=True, sort=True):
            fit = fit_linear(group[x_col], group[y_col])
            rows.append({group_col: key, **fit})

    out = pd.DataFrame(rows, columns=[group_col] + FIT_COLS)

    # Keep the bucket ordering of categorical groups
    if isinstance(df[group_col].dtype, pd.CategoricalDtype):
        out[group_col] = pd.Categorical(
            out[group_col],
            categories=df[group_col].cat.categories,
            ordered=df[group_col].cat.ordered,
        )
        out = out.sort_values(group_col).reset_index(drop=True)

    n_degenerate = int(out[SLOPE_COL].isna().sum())
    print(f"Slopes by {group_col}: {len(out):,} groups fitted ({n_degenerate} degenerate)")
    if n_degenerate > 0:
        warnings.warn(
            f"{n_degenerate} of {len(out)} groups of {group_col!r} had too few distinct "
            f"{x_col} values for a fit; their slope is NaN",
            DegenerateFitWarning,
        )

    return out


def attach_slopes(
    df: pd.DataFrame,
    slopes: pd.DataFrame,
    group_col: str,
    cols: Sequence[str] = (SLOPE_COL, INTERCEPT_COL)
) -> pd.DataFrame:
    """Broadcast each group's fit onto every row of that group (left join)."""
    return df.merge(
        slopes[[group_col] + list(cols)],
        on=group_col,
        how="left",
        validate="many_to_one",
    )


def slope_gradient(slopes: pd.DataFrame, value_col: str) -> Dict:
    """
    Regress per-group slope on the group's demographic value.

    A positive slope means groups with a larger value of value_col saw
    emissions rise faster (or fall slower) over the study window.
    """
    valid = slopes.dropna(subset=[value_col, SLOPE_COL])
    fit = fit_linear(valid[value_col], valid[SLOPE_COL])
    print(f"Slope gradient on {value_col}: {fit[SLOPE_COL]:.4f} per unit "
          f"(p={fit['pvalue']:.4f}, n={fit['n_obs']})")
    return fit
