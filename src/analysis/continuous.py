"""
continuous.py
=============
Pooled trend-interaction specification with a continuous demographic share.

Single specification: Zip + Year FE, clustered SEs by zip code.

    total_emissions ~ year_x_<share> | zip_code + year

where year_x_<share> = (year - base_year) * share. Zip FE absorb level
differences between zip codes, Year FE absorb common shocks (e.g. the
RGGI cap tightening), so the coefficient measures how much faster emissions
change per year for each additional percentage point of the share.

Complements the per-bucket slopes in regression.py with a single estimate
and a clustered standard error.

Uses pyfixest for fast high-dimensional FE estimation.
"""

import pandas as pd
import numpy as np
from typing import Optional, Dict
import pyfixest as pf

from .config import ZIP_COL, YEAR_COL, EMISSIONS_COL, POC_PCT_COL


# =============================================================================
# TWFE Estimation
# =============================================================================

def estimate_trend_interaction(
    df: pd.DataFrame,
    share_col: str = POC_PCT_COL,
    outcome_col: str = EMISSIONS_COL,
    id_col: str = ZIP_COL,
    time_col: str = YEAR_COL,
    cluster_col: Optional[str] = None,
    base_year: Optional[int] = None
) -> Dict:
    """
    Estimate the year x share interaction with Zip + Year FE.

    Parameters
    ----------
    df : DataFrame
        Zip-year panel with outcome and demographic share
    share_col : str
        Continuous demographic share (0-100), constant within zip code
    outcome_col : str
        Outcome variable (zip-year total emissions)
    cluster_col : str, optional
        Column for clustered SEs (defaults to id_col)
    base_year : int, optional
        Year at which the interaction is zero (defaults to first year)

    Returns
    -------
    Dict with coefficient, SE, p-value, CI, and model details
    """
    df = df.dropna(subset=[outcome_col, share_col]).copy()
    cluster_col = cluster_col or id_col
    base_year = base_year if base_year is not None else int(df[time_col].min())

    interaction_col = f"year_x_{share_col}"
    df[interaction_col] = (df[time_col] - base_year) * df[share_col]

    fe_str = f"{id_col} + {time_col}"
    formula = f"{outcome_col} ~ {interaction_col} | {fe_str}"
    spec_name = "TWFE (Zip + Year FE)"

    print(f"\n{spec_name}")
    print(f"  Formula: {formula}")
    print(f"  Cluster: {cluster_col}")

    model = pf.feols(formula, data=df, vcov={"CRV1": cluster_col})

    coef_dict = model.coef()
    se_dict = model.se()
    pval_dict = model.pvalue()

    coef = coef_dict.get(interaction_col, np.nan) if coef_dict is not None else np.nan
    se = se_dict.get(interaction_col, np.nan) if se_dict is not None else np.nan
    pval = pval_dict.get(interaction_col, np.nan) if pval_dict is not None else np.nan

    # Internal attribute names differ across pyfixest versions
    n_obs = next((getattr(model, a) for a in ["_N", "nobs", "_nobs"]
                  if getattr(model, a, None) is not None), len(df))
    r2 = next((getattr(model, a) for a in ["_r2", "r2"]
               if getattr(model, a, None) is not None), np.nan)

    results = {
        "spec_name": spec_name,
        "coefficient": float(coef),
        "se": float(se),
        "pvalue": float(pval),
        "ci_lower": float(coef - 1.96 * se),
        "ci_upper": float(coef + 1.96 * se),
        "n_obs": int(n_obs),
        "n_zips": int(df[id_col].nunique()),
        "r2": r2,
        "formula": formula,
        "cluster_col": cluster_col,
        "share_col": share_col,
        "outcome_col": outcome_col,
        "base_year": base_year,
        "model": model
    }

    print(f"  Coef: {coef:.6f} (SE: {se:.6f}, p={pval:.4f})")

    return results


# =============================================================================
# Results Formatting
# =============================================================================

def format_results_table(results: Dict) -> pd.DataFrame:
    """
    Format estimation results as a table.

    Accepts a single result dict or a {label: result} mapping.
    """
    if "coefficient" in results:
        results = {results.get("share_col", "estimate"): results}

    rows = []
    for label, res in results.items():
        if isinstance(res, dict) and "coefficient" in res:
            pval = res["pvalue"]
            rows.append({
                "Share": label,
                "Specification": res.get("spec_name", "TWFE"),
                "Coefficient": res["coefficient"],
                "SE": res["se"],
                "P-value": pval,
                "95% CI": f"[{res['ci_lower']:.4f}, {res['ci_upper']:.4f}]",
                "N": res["n_obs"],
                "Sig": "***" if pval < 0.01 else "**" if pval < 0.05 else "*" if pval < 0.1 else ""
            })

    return pd.DataFrame(rows)
