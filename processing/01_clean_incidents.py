"""
01_clean_incidents.py
---------------------
Reads the raw incident report extract, restricts it to the nine
modelled offense categories, drops rows with no district and writes
data/processed/incidents_filtered.csv.

Raw file expected at:
    data/raw/crime.csv

The nine categories are a fixed list (crime_models.constants) chosen
from the frequency counts. This script recomputes the actual top 9
and prints a WARNING if the fixed list no longer matches, but it
always filters on the fixed list.

Outputs:
    data/processed/offense_frequency.csv
    data/processed/incidents_filtered.csv

Run from project root:
    python processing/01_clean_incidents.py
"""

import os
import pandas as pd

from crime_models.constants import (
    CATEGORY_COL,
    DISTRICT_COL,
    MONTH_COL,
    OFFENSE_CATEGORIES,
    YEAR_COL,
)
from crime_models.helpers import fmt_count
from crime_models.incidents import (
    category_drift,
    filter_incidents,
    load_incidents,
    offense_frequency,
)

# ── Paths ─────────────────────────────────────────────────────────
RAW_PATH      = os.path.join("data", "raw", "crime.csv")
OUT_DIR       = os.path.join("data", "processed")
FREQ_PATH     = os.path.join(OUT_DIR, "offense_frequency.csv")
FILTERED_PATH = os.path.join(OUT_DIR, "incidents_filtered.csv")

# Only the columns later stages use are written out
KEEP_COLUMNS = [YEAR_COL, MONTH_COL, DISTRICT_COL, CATEGORY_COL]


def report_drift(raw: pd.DataFrame):
    drift = category_drift(raw, OFFENSE_CATEGORIES)
    if not drift["not_in_top"] and not drift["missing_from_list"]:
        print(f"  Category list matches the current top {len(OFFENSE_CATEGORIES)}")
        return
    print(f"  WARNING - fixed category list differs from the current top "
          f"{len(OFFENSE_CATEGORIES)} by frequency.")
    if drift["not_in_top"]:
        print(f"    In list but not in top: {drift['not_in_top']}")
    if drift["missing_from_list"]:
        print(f"    In top but not in list: {drift['missing_from_list']}")
    print("    Filtering on the fixed list regardless. Update "
          "OFFENSE_CATEGORIES in crime_models/constants.py if this is expected.")


def validate(raw: pd.DataFrame, filtered: pd.DataFrame):
    print(f"\n── Validation ───────────────────────────────")
    print(f"  Raw rows:         {fmt_count(len(raw))}")
    print(f"  Filtered rows:    {fmt_count(len(filtered))}")
    print(f"  Years:            {sorted(filtered[YEAR_COL].unique().tolist())}")
    print(f"  Districts:        {sorted(filtered[DISTRICT_COL].unique().tolist())}")

    absent = set(OFFENSE_CATEGORIES) - set(filtered[CATEGORY_COL].unique())
    if absent:
        print(f"  WARNING - categories with no rows after filtering: {sorted(absent)}")

    print(f"\n  Rows per category:")
    for category, count in filtered[CATEGORY_COL].value_counts().items():
        print(f"    {category}: {fmt_count(count)}")


# ── Main ──────────────────────────────────────────────────────────

def main():
    print("01_clean_incidents.py")
    print("=" * 50)

    if not os.path.exists(RAW_PATH):
        raise FileNotFoundError(
            f"Incident file not found at {RAW_PATH}.\n"
            "Download the crime incident reports CSV and save it as "
            "data/raw/crime.csv"
        )

    print(f"Loading {RAW_PATH}...")
    raw = load_incidents(RAW_PATH)
    print(f"  {fmt_count(len(raw))} raw rows loaded")

    print("Counting offense categories...")
    frequency = offense_frequency(raw)
    print(f"  {len(frequency)} distinct categories")
    report_drift(raw)

    print("Filtering...")
    filtered = filter_incidents(raw, OFFENSE_CATEGORIES)
    print(f"  {fmt_count(len(filtered))} rows kept")

    validate(raw, filtered)

    os.makedirs(OUT_DIR, exist_ok=True)
    frequency.to_csv(FREQ_PATH, index=False)
    filtered[KEEP_COLUMNS].to_csv(FILTERED_PATH, index=False)
    print(f"\n✓ Written to {FREQ_PATH}")
    print(f"✓ Written to {FILTERED_PATH}")


if __name__ == "__main__":
    main()
