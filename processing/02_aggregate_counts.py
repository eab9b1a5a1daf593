"""
02_aggregate_counts.py
----------------------
Counts filtered incidents per (year, month, district, offense
category) and writes data/processed/monthly_counts.csv.

Combinations with no incidents are not written; the table holds one
row per observed combination.

Run from project root:
    python processing/02_aggregate_counts.py
"""

import os
import pandas as pd

from crime_models.aggregation import aggregate_monthly_counts, category_totals
from crime_models.constants import CATEGORY_COL, COUNT_COL, DISTRICT_COL, GROUP_KEYS
from crime_models.helpers import fmt_count

# ── Paths ─────────────────────────────────────────────────────────
FILTERED_PATH = os.path.join("data", "processed", "incidents_filtered.csv")
OUTPUT_PATH   = os.path.join("data", "processed", "monthly_counts.csv")


def validate(filtered: pd.DataFrame, counts: pd.DataFrame):
    print(f"\n── Validation ───────────────────────────────")
    print(f"  Groups:           {fmt_count(len(counts))}")
    print(f"  Count range:      {counts[COUNT_COL].min()} to {counts[COUNT_COL].max()}")

    if counts.duplicated(subset=GROUP_KEYS).any():
        raise ValueError("monthly_counts has duplicate group keys.")
    if (counts[COUNT_COL] < 1).any():
        raise ValueError("monthly_counts has non-positive counts.")
    if counts[DISTRICT_COL].isna().any():
        raise ValueError("monthly_counts has rows with no district.")

    # Every filtered row must land in exactly one group
    expected = filtered[CATEGORY_COL].value_counts().sort_index()
    actual   = category_totals(counts).sort_index()
    if not expected.equals(actual.reindex(expected.index)):
        raise ValueError(
            "Per-category totals do not match filtered row counts:\n"
            f"{pd.DataFrame({'filtered': expected, 'aggregated': actual})}"
        )
    print(f"  Category totals:  match filtered rows")


# ── Main ──────────────────────────────────────────────────────────

def main():
    print("02_aggregate_counts.py")
    print("=" * 50)

    if not os.path.exists(FILTERED_PATH):
        raise FileNotFoundError(
            f"{FILTERED_PATH} not found. Run 01_clean_incidents.py first."
        )

    print("Loading filtered incidents...")
    filtered = pd.read_csv(FILTERED_PATH, dtype={DISTRICT_COL: str})
    print(f"  {fmt_count(len(filtered))} rows")

    print("Aggregating monthly counts...")
    counts = aggregate_monthly_counts(filtered)
    print(f"  {fmt_count(len(counts))} (year, month, district, category) groups")

    validate(filtered, counts)

    os.makedirs(os.path.dirname(OUTPUT_PATH), exist_ok=True)
    counts.to_csv(OUTPUT_PATH, index=False)
    print(f"\n✓ Written to {OUTPUT_PATH}")


if __name__ == "__main__":
    main()
