"""
crime_models/aggregation.py
---------------------------
Monthly per-district counts for the filtered incidents.

Only combinations observed in the data appear in the output; a
district with no Vandalism in March 2017 has no row rather than a
zero row.
"""

import pandas as pd

from crime_models.constants import (
    CATEGORY_COL,
    COUNT_COL,
    GROUP_KEYS,
    MONTH_COL,
    YEAR_COL,
)
from crime_models.helpers import require_columns


def aggregate_monthly_counts(incidents: pd.DataFrame) -> pd.DataFrame:
    """
    Count incidents per (year, month, district, offense_code_group).

    The result is sorted by the grouping key, so it does not depend
    on the order of the input rows.

    Returns:
        DataFrame with the four key columns and an int64 'count' column.
    """
    require_columns(incidents, GROUP_KEYS, label="filtered incidents")
    counts = (
        incidents.groupby(GROUP_KEYS, sort=True, observed=True)
        .size()
        .reset_index(name=COUNT_COL)
    )
    counts[COUNT_COL] = counts[COUNT_COL].astype("int64")
    return counts


def category_totals(counts: pd.DataFrame) -> pd.Series:
    """Sum of monthly counts per offense category."""
    return counts.groupby(CATEGORY_COL)[COUNT_COL].sum()


def monthly_totals(counts: pd.DataFrame) -> pd.DataFrame:
    """
    City-wide monthly totals per category, with a 'period' column
    (first day of the month) for time series charts.
    """
    monthly = (
        counts.groupby([YEAR_COL, MONTH_COL, CATEGORY_COL], observed=True)[COUNT_COL]
        .sum()
        .reset_index()
    )
    monthly["period"] = pd.to_datetime(pd.DataFrame({
        "year":  monthly[YEAR_COL].astype(int),
        "month": monthly[MONTH_COL].astype(int),
        "day":   1,
    }))
    return monthly.sort_values([CATEGORY_COL, "period"]).reset_index(drop=True)
