"""
report.py
---------
Renders the model comparison report from the processed outputs.
Each chart is written to reports/ as a standalone HTML file.

Requires processing scripts 01 to 03 to have been run.

Run from project root:
    python report.py
"""

import os
import pandas as pd

from crime_models.aggregation import monthly_totals
from crime_models.charts import (
    model_comparison_chart,
    monthly_counts_chart,
    offense_frequency_chart,
    predicted_vs_actual_chart,
    residual_chart,
    save_figure,
)
from crime_models.constants import DISTRICT_COL
from crime_models.helpers import fmt_metric

# ── Paths ─────────────────────────────────────────────────────────
_PROCESSED = os.path.join("data", "processed")
REPORT_DIR = "reports"


def _path(filename: str) -> str:
    return os.path.join(_PROCESSED, filename)


def load(filename: str) -> pd.DataFrame:
    path = _path(filename)
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"{path} not found. Run the processing scripts first "
            "(python run_all.py)."
        )
    return pd.read_csv(path, dtype={DISTRICT_COL: str})


def render_exploratory(frequency: pd.DataFrame, counts: pd.DataFrame) -> list[str]:
    return [
        save_figure(
            offense_frequency_chart(frequency),
            os.path.join(REPORT_DIR, "offense_frequency.html"),
        ),
        save_figure(
            monthly_counts_chart(monthly_totals(counts)),
            os.path.join(REPORT_DIR, "monthly_counts.html"),
        ),
    ]


def render_model_charts(
    predictions: pd.DataFrame,
    metrics: pd.DataFrame,
) -> list[str]:
    written = []
    for _, row in metrics.iterrows():
        name = row["model"]
        model_preds = predictions[predictions["model"] == name]
        if model_preds.empty:
            print(f"  WARNING - no predictions for {name}, skipping its charts")
            continue
        written.append(save_figure(
            predicted_vs_actual_chart(model_preds, name, row["rmse"], row["r2"]),
            os.path.join(REPORT_DIR, f"{name}_predicted_vs_actual.html"),
        ))
        written.append(save_figure(
            residual_chart(model_preds, name),
            os.path.join(REPORT_DIR, f"{name}_residuals.html"),
        ))
    return written


def render_comparison(cv_scores: pd.DataFrame) -> list[str]:
    return [
        save_figure(
            model_comparison_chart(cv_scores, metric),
            os.path.join(REPORT_DIR, f"model_comparison_{metric}.html"),
        )
        for metric in ("rmse", "r2")
    ]


# ── Main ──────────────────────────────────────────────────────────

def main():
    print("report.py")
    print("=" * 50)

    frequency   = load("offense_frequency.csv")
    counts      = load("monthly_counts.csv")
    cv_scores   = load("cv_scores.csv")
    metrics     = load("model_metrics.csv")
    predictions = load("predictions.csv")

    print(f"\n── Cross-validated performance ──────────────")
    print(f"  {'model':<15} {'RMSE':>8} {'± SD':>8} {'R²':>8} {'± SD':>8}")
    for _, row in metrics.iterrows():
        print(f"  {row['model']:<15} {fmt_metric(row['rmse']):>8} "
              f"{fmt_metric(row['rmse_sd']):>8} {fmt_metric(row['r2']):>8} "
              f"{fmt_metric(row['r2_sd']):>8}")

    print("\nRendering charts...")
    written = (
        render_exploratory(frequency, counts)
        + render_model_charts(predictions, metrics)
        + render_comparison(cv_scores)
    )
    for path in written:
        print(f"  ✓ {path}")
    print(f"\n✓ {len(written)} charts written to {REPORT_DIR}/")


if __name__ == "__main__":
    main()
