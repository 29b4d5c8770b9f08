"""
EDA (Exploratory Data Analysis) functions for emissions and census data.

Contains:
- emissions_eda: coverage of the long facility-year emissions table
- census_eda: population and demographic share summaries by zip code
"""

import pandas as pd
from pandas import DataFrame
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict


def emissions_eda(
    emissions: DataFrame,
    show: bool = True,
) -> Dict[str, DataFrame]:
    """
    EDA for facility-year emissions.

    Args:
        emissions: long emissions table (facility_name, zip_code, state, year, total_emissions)
        show: If True, draw the reporting-coverage and state charts

    Returns:
        Dict with 'by_year' and 'by_state' summary tables
    """
    print("\n" + "="*60)
    print("Facility Emissions")
    print("="*60)

    by_year = (
        emissions.groupby('year')
        .agg(
            n_facilities=('facility_name', 'nunique'),
            n_reported=('total_emissions', 'count'),
            total=('total_emissions', 'sum'),
        )
        .reset_index()
    )
    by_year['pct_reported'] = 100 * by_year['n_reported'] / by_year['n_facilities']
    print("\nReporting coverage by year:")
    print(by_year.to_string(index=False))

    by_state = (
        emissions.groupby('state')
        .agg(n_facilities=('facility_name', 'nunique'), total=('total_emissions', 'sum'))
        .sort_values('total', ascending=False)
        .reset_index()
    )
    by_state['share'] = by_state['total'] / by_state['total'].sum()
    print("\nTop states by total emissions:")
    print(by_state.head(12).to_string(index=False))

    if show:
        fig, axes = plt.subplots(1, 2, figsize=(14, 5))

        ax = axes[0]
        ax.bar(by_year['year'], by_year['total'], color='steelblue', alpha=0.8)
        ax.set_xlabel('Year')
        ax.set_ylabel('Total emissions')
        ax.set_title('Total Reported Emissions by Year')
        ax.xaxis.set_major_locator(plt.MaxNLocator(integer=True))  # type: ignore
        ax.grid(alpha=0.3)

        ax = axes[1]
        top = by_state.head(12)
        ax.barh(top['state'].astype(str)[::-1], top['total'][::-1], color='coral', alpha=0.8)
        ax.set_xlabel('Total emissions (all years)')
        ax.set_title('Emissions by State')
        ax.grid(alpha=0.3)

        plt.tight_layout()
        plt.show()

    return {'by_year': by_year, 'by_state': by_state}


def census_eda(
    census: DataFrame,
    share_col: str = 'poc_percentage',
    show: bool = True,
) -> DataFrame:
    """
    EDA for zip-code census demographics.

    Args:
        census: census table with derived demographics
        share_col: demographic share to describe (default: 'poc_percentage')
        show: If True, draw the share histogram

    Returns:
        describe() table for population and percentage columns
    """
    print("\n" + "="*60)
    print("Census Demographics")
    print("="*60)

    n_zero = int((census['population'] == 0).sum())
    n_missing = int(census[share_col].isna().sum()) if share_col in census.columns else len(census)
    print(f"Zip codes: {len(census):,} ({n_zero:,} zero population, {n_missing:,} missing {share_col})")

    pct_cols = [c for c in census.columns if c.endswith('_pct') or c.endswith('_percentage')]
    summary = census[['population'] + pct_cols].describe().T
    print(summary.round(2).to_string())

    if show and share_col in census.columns:
        values = census[share_col].dropna()
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.hist(values, bins=np.linspace(0, 100, 21), color='steelblue', alpha=0.7, edgecolor='white')
        ax.axvline(values.median(), color='red', linestyle='--', linewidth=2,
                   label=f"Median ({values.median():.1f}%)")
        ax.set_xlabel(share_col)
        ax.set_ylabel('Zip codes')
        ax.set_title(f'Distribution of {share_col}')
        ax.legend()
        plt.tight_layout()
        plt.show()

    return summary
