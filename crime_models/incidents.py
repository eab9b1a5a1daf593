"""
crime_models/incidents.py
-------------------------
Loading and filtering of raw incident records.

The raw file is the city's incident report extract: one row per
reported incident, upper-case column names (OFFENSE_CODE_GROUP,
DISTRICT, YEAR, MONTH, ...) and latin-1 encoded street names.
Columns are normalised to lower snake_case on load so the rest of
the pipeline only sees e.g. 'offense_code_group'.
"""

import pandas as pd

from crime_models.constants import (
    CATEGORY_COL,
    COUNT_COL,
    DISTRICT_COL,
    OFFENSE_CATEGORIES,
    REQUIRED_INCIDENT_COLUMNS,
)
from crime_models.helpers import blank_to_na, require_columns, share_pct, snake_case_columns

RAW_ENCODING = "latin-1"


# ── Loaders ───────────────────────────────────────────────────────

def load_incidents(path: str) -> pd.DataFrame:
    """
    Read the raw incident CSV and normalise column names.

    Raises:
        FileNotFoundError: if *path* does not exist.
        ValueError:        if any of the key columns is missing.
    """
    df = pd.read_csv(path, encoding=RAW_ENCODING, low_memory=False)
    df = snake_case_columns(df)
    require_columns(df, REQUIRED_INCIDENT_COLUMNS, label=path)
    return df


# ── Frequency ─────────────────────────────────────────────────────

def offense_frequency(df: pd.DataFrame) -> pd.DataFrame:
    """
    Incident count and percentage share per offense category,
    most frequent first.

    Returns:
        DataFrame with columns offense_code_group, count, share_pct.
    """
    categories = blank_to_na(df[CATEGORY_COL]).dropna()
    freq = (
        categories.value_counts()
        .rename_axis(CATEGORY_COL)
        .reset_index(name=COUNT_COL)
    )
    freq[COUNT_COL] = freq[COUNT_COL].astype("int64")
    freq[CATEGORY_COL] = freq[CATEGORY_COL].astype(str)
    freq["share_pct"] = share_pct(freq[COUNT_COL])
    # Stable order for ties
    return freq.sort_values(
        [COUNT_COL, CATEGORY_COL], ascending=[False, True]
    ).reset_index(drop=True)


def top_categories(df: pd.DataFrame, n: int = len(OFFENSE_CATEGORIES)) -> list[str]:
    """The *n* most frequent offense categories in *df*."""
    return offense_frequency(df)[CATEGORY_COL].head(n).tolist()


def category_drift(
    df: pd.DataFrame,
    categories: list[str] = OFFENSE_CATEGORIES,
) -> dict:
    """
    Compare the fixed category list against the actual top-n.

    Returns:
        dict with 'not_in_top' (fixed categories that fell out of the
        top-n) and 'missing_from_list' (top-n categories not in the
        fixed list). Both empty when the list is still accurate.
    """
    actual = set(top_categories(df, n=len(categories)))
    fixed  = set(categories)
    return {
        "not_in_top":        sorted(fixed - actual),
        "missing_from_list": sorted(actual - fixed),
    }


# ── Filtering ─────────────────────────────────────────────────────

def filter_incidents(
    df: pd.DataFrame,
    categories: list[str] = OFFENSE_CATEGORIES,
) -> pd.DataFrame:
    """
    Restrict incidents to the modelled offense categories and drop
    rows with no district.

    Category and district values are whitespace-stripped first, so a
    district of '  ' counts as empty.
    """
    out = df.copy()
    out[CATEGORY_COL] = blank_to_na(out[CATEGORY_COL])
    out[DISTRICT_COL] = blank_to_na(out[DISTRICT_COL])

    out = out.dropna(subset=[DISTRICT_COL, CATEGORY_COL])
    out = out[out[CATEGORY_COL].isin(categories)].copy()

    out[CATEGORY_COL] = out[CATEGORY_COL].astype(str)
    out[DISTRICT_COL] = out[DISTRICT_COL].astype(str)
    return out.reset_index(drop=True)
