"""
03_train_models.py
------------------
Compares five count models on the monthly per-district counts:
Poisson GLM, regression tree, random forest, gradient boosting and
Cubist.

All five are scored with 10-fold cross-validation repeated 5 times.
The folds are built once and the same splits are passed to every
model, so per-fold RMSE values line up across models. After
cross-validation each model is refit on the full table to produce
fitted values for the predicted-vs-actual charts. Fitted models are
not saved.

Outputs:
    data/processed/cv_scores.csv      one row per model per fold
    data/processed/model_metrics.csv  mean/SD RMSE and R² per model
    data/processed/predictions.csv    fitted values on the full table

Run from project root:
    python processing/03_train_models.py
"""

import os
import time
import pandas as pd

from crime_models.constants import CV_FOLDS, CV_REPEATS, DISTRICT_COL, RANDOM_STATE
from crime_models.helpers import fmt_count, fmt_metric
from crime_models.modelling import (
    build_models,
    check_shared_folds,
    cross_validate_model,
    fit_and_predict,
    make_folds,
    split_xy,
    summarise_cv,
)

# ── Paths ─────────────────────────────────────────────────────────
COUNTS_PATH      = os.path.join("data", "processed", "monthly_counts.csv")
OUT_DIR          = os.path.join("data", "processed")
CV_SCORES_PATH   = os.path.join(OUT_DIR, "cv_scores.csv")
METRICS_PATH     = os.path.join(OUT_DIR, "model_metrics.csv")
PREDICTIONS_PATH = os.path.join(OUT_DIR, "predictions.csv")

# Parallel workers for fold evaluation (-1 = all cores)
N_JOBS = -1


def run_model(name: str, estimator, counts: pd.DataFrame, folds: tuple) -> tuple:
    X, y = split_xy(counts)

    start = time.time()
    scores = cross_validate_model(name, estimator, X, y, folds, n_jobs=N_JOBS)
    print(f"  CV RMSE: {fmt_metric(scores['rmse'].mean())} ± {fmt_metric(scores['rmse'].std())}")
    print(f"  CV R²:   {fmt_metric(scores['r2'].mean())} ± {fmt_metric(scores['r2'].std())}")

    predictions = fit_and_predict(name, estimator, counts)
    print(f"  Refit on all {fmt_count(len(counts))} rows "
          f"({round(time.time() - start, 1)}s total)")
    return scores, predictions


# ── Main ──────────────────────────────────────────────────────────

def main():
    print("03_train_models.py")
    print("=" * 50)

    if not os.path.exists(COUNTS_PATH):
        raise FileNotFoundError(
            f"{COUNTS_PATH} not found. Run 02_aggregate_counts.py first."
        )

    print("Loading monthly counts...")
    counts = pd.read_csv(COUNTS_PATH, dtype={DISTRICT_COL: str})
    print(f"  {fmt_count(len(counts))} rows")

    print(f"Building shared folds ({CV_FOLDS} folds x {CV_REPEATS} repeats, "
          f"seed {RANDOM_STATE})...")
    folds = make_folds(len(counts))
    print(f"  {len(folds)} resamples")

    all_scores = []
    all_predictions = []
    for name, estimator in build_models(n_jobs=N_JOBS).items():
        print(f"\n── {name} {'─' * (44 - len(name))}")
        scores, predictions = run_model(name, estimator, counts, folds)
        all_scores.append(scores)
        all_predictions.append(predictions)

    cv_scores = pd.concat(all_scores, ignore_index=True)
    check_shared_folds(cv_scores)
    metrics = summarise_cv(cv_scores)

    print(f"\n── Model comparison ─────────────────────────")
    for _, row in metrics.iterrows():
        print(f"  {row['model']:<15} RMSE={fmt_metric(row['rmse'])}  "
              f"R²={fmt_metric(row['r2'])}")

    os.makedirs(OUT_DIR, exist_ok=True)
    cv_scores.to_csv(CV_SCORES_PATH, index=False)
    metrics.to_csv(METRICS_PATH, index=False)
    pd.concat(all_predictions, ignore_index=True).to_csv(PREDICTIONS_PATH, index=False)
    print(f"\n✓ Written to {CV_SCORES_PATH}")
    print(f"✓ Written to {METRICS_PATH}")
    print(f"✓ Written to {PREDICTIONS_PATH}")


if __name__ == "__main__":
    main()
