"""
crime_models/helpers.py
-----------------------
Small general-purpose helper functions used across the pipeline.
These are plain pandas with no Plotly dependencies so they can be
used inside processing scripts and tests alike.

Import example:
    from crime_models.helpers import check_required_columns, fmt_count
"""

import re

import pandas as pd


# ── DataFrame helpers ─────────────────────────────────────────────

def snake_case_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of *df* with lower snake_case column names.

    'OFFENSE_CODE_GROUP' -> 'offense_code_group', 'Offense Group' ->
    'offense_group'. Runs of non-alphanumeric characters collapse to a
    single underscore.
    """
    out = df.copy()
    out.columns = [
        re.sub(r"[^0-9a-z]+", "_", str(c).strip().lower()).strip("_")
        for c in df.columns
    ]
    return out


def blank_to_na(series: pd.Series) -> pd.Series:
    """Strip string values and turn empty strings into NA."""
    return series.astype("string").str.strip().replace("", pd.NA)


def share_pct(counts: pd.Series, decimals: int = 2) -> pd.Series:
    """Percentage share of each value in *counts*, rounded."""
    total = counts.sum()
    if total == 0:
        return counts.astype(float) * 0
    return (counts / total * 100).round(decimals)


# ── Formatting helpers ────────────────────────────────────────────

def fmt_count(value: float | int) -> str:
    """Format a number with thousands separator."""
    return f"{int(value):,}"


def fmt_metric(value: float, decimals: int = 3) -> str:
    """Format an RMSE or R² value to a fixed number of decimals."""
    return f"{value:.{decimals}f}"


# ── Validation helpers ────────────────────────────────────────────

def check_required_columns(
    df: pd.DataFrame,
    required: list[str],
    label: str = "DataFrame",
) -> list[str]:
    """
    Check that all required columns are present.

    Returns a list of missing column names (empty list if all present).
    Useful for giving clear error messages in processing scripts.

    Args:
        df:       DataFrame to check.
        required: List of expected column names.
        label:    Human-readable name for the DataFrame, used in messages.

    Returns:
        List of missing column names.
    """
    missing = [c for c in required if c not in df.columns]
    if missing:
        print(f"  WARNING [{label}]: missing columns: {missing}")
    return missing


def require_columns(
    df: pd.DataFrame,
    required: list[str],
    label: str = "DataFrame",
):
    """Raise ValueError if any of *required* is absent from *df*."""
    missing = check_required_columns(df, required, label)
    if missing:
        raise ValueError(
            f"{label} is missing required columns: {missing}. "
            f"Found: {list(df.columns)}"
        )
