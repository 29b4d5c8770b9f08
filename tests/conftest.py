"""
Pytest configuration and shared fixtures for the emissions equity tests.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


# (zip, population, housing, white, black, american_indian, asian, native_hawaiian, other, hispanic)
SAMPLE_CENSUS_ROWS = [
    ("02108", 1000, 400, 600, 150, 10, 100, 5, 35, 100),   # POC 40%
    ("10001", 2000, 900, 500, 700, 20, 300, 10, 170, 300),  # POC 75%
    ("55555", 0, 0, 0, 0, 0, 0, 0, 0, 0),                   # no residents
]

RACES = ["White", "Black", "American.Indian", "Asian", "Native.Hawaiian", "Other", "Hispanic"]


def make_census_raw(rows) -> pd.DataFrame:
    """Build a raw census table (source headers) from count tuples."""
    records = []
    for zip_code, pop, housing, *counts in rows:
        rec = {"Zip.Code": zip_code, "Population": pop, "Housing.Units": housing}
        for race, count in zip(RACES, counts):
            rec[race] = count
            rec[f"{race}.Percent"] = 100 * count / pop if pop else np.nan
        records.append(rec)
    return pd.DataFrame(records)


@pytest.fixture
def raw_emissions() -> pd.DataFrame:
    """
    Wide emissions table.

    Zip 02108 totals 100/200, zip 10001 totals 300/900, zip 99999 never
    reports and has no census record.
    """
    return pd.DataFrame({
        "Facility.Name": ["Plant A1", "Plant A2", "Plant B", "Plant C"],
        "Zip.Code": ["02108", 2108, "10001-1234", 99999],
        "State": ["ma", "MA", "NY", "CT"],
        "2011": [60.0, 40.0, 300.0, np.nan],
        "2012": [150.0, 50.0, 900.0, np.nan],
    })


@pytest.fixture
def raw_census() -> pd.DataFrame:
    """Raw census table matching raw_emissions (plus one zip without facilities)."""
    return make_census_raw(SAMPLE_CENSUS_ROWS)


@pytest.fixture
def emissions(raw_emissions) -> pd.DataFrame:
    from src.data.facilities import emissions_from_wide
    return emissions_from_wide(raw_emissions)


@pytest.fixture
def census(raw_census) -> pd.DataFrame:
    from src.data.census import census_from_raw
    from src.data.processing import derive_demographics
    return derive_demographics(census_from_raw(raw_census))


@pytest.fixture
def input_files(tmp_path, raw_emissions, raw_census):
    """Write the sample tables to disk as the report expects them."""
    emissions_path = tmp_path / "emissions.csv"
    census_path = tmp_path / "census.csv"
    raw_emissions.to_csv(emissions_path, index=False)
    raw_census.to_csv(census_path, index=False)
    return emissions_path, census_path
