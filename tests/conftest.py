"""
tests/conftest.py
-----------------
Synthetic incident data shared by the unit tests.

The synthetic frame mimics the raw extract after column
normalisation: every (year, month, district, category) combination
for three modelled categories is present at least once, plus some
noise rows that the filter must drop (an unmodelled category, null
and blank districts).
"""

import numpy as np
import pandas as pd
import pytest

YEARS      = [2016, 2017]
MONTHS     = list(range(1, 13))
DISTRICTS  = ["A1", "B2", "C11"]
CATEGORIES = ["Larceny", "Vandalism", "Drug Violation"]

# Mean incidents per month by category and district
_CATEGORY_RATE = {"Larceny": 8.0, "Vandalism": 4.0, "Drug Violation": 2.5}
_DISTRICT_RATE = {"A1": 1.5, "B2": 1.0, "C11": 0.6}


def make_incidents(seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    rows = []
    for year in YEARS:
        for month in MONTHS:
            for district in DISTRICTS:
                for category in CATEGORIES:
                    lam = _CATEGORY_RATE[category] * _DISTRICT_RATE[district]
                    n = int(rng.poisson(lam)) + 1
                    rows.extend(
                        {
                            "offense_code_group": category,
                            "district": district,
                            "year": year,
                            "month": month,
                            "street": "WASHINGTON ST",
                        }
                        for _ in range(n)
                    )

    noise = [
        {"offense_code_group": "Towed", "district": "A1",
         "year": 2016, "month": 1, "street": "BOYLSTON ST"},
        {"offense_code_group": "Larceny", "district": None,
         "year": 2016, "month": 2, "street": "BOYLSTON ST"},
        {"offense_code_group": "Larceny", "district": "",
         "year": 2016, "month": 3, "street": "BOYLSTON ST"},
        {"offense_code_group": "Vandalism", "district": "   ",
         "year": 2017, "month": 4, "street": "BOYLSTON ST"},
    ]
    df = pd.DataFrame(rows + noise)
    return df.sample(frac=1.0, random_state=seed).reset_index(drop=True)


@pytest.fixture
def incidents() -> pd.DataFrame:
    return make_incidents()


@pytest.fixture
def filtered(incidents) -> pd.DataFrame:
    from crime_models.incidents import filter_incidents
    return filter_incidents(incidents, CATEGORIES)


@pytest.fixture
def counts(filtered) -> pd.DataFrame:
    from crime_models.aggregation import aggregate_monthly_counts
    return aggregate_monthly_counts(filtered)
