"""
tests/test_pipeline.py
----------------------
Schema and sanity tests for the processed data files.

These read data/processed/ and are skipped file by file when the
pipeline has not been run yet (python run_all.py). The unit tests in
the other test modules run on synthetic data and need no inputs.

Run with:
    pytest tests/test_pipeline.py -v
"""

import os
import pytest
import pandas as pd

from crime_models.constants import GROUP_KEYS, OFFENSE_CATEGORIES

# ── Paths ─────────────────────────────────────────────────────────
PROCESSED = os.path.join("data", "processed")

MODEL_NAMES = {"poisson_glm", "rpart", "random_forest", "gbm", "cubist"}


def p(filename: str) -> str:
    return os.path.join(PROCESSED, filename)


def needs(filename: str):
    return pytest.mark.skipif(
        not os.path.exists(p(filename)),
        reason=f"{filename} not built; run python run_all.py",
    )


# ── Helpers ───────────────────────────────────────────────────────

def load(filename: str) -> pd.DataFrame:
    return pd.read_csv(p(filename), dtype={"district": str})


def assert_columns(df: pd.DataFrame, required_cols: list, filename: str):
    missing = [c for c in required_cols if c not in df.columns]
    assert not missing, (
        f"{filename} is missing columns: {missing}. "
        f"Found: {list(df.columns)}"
    )


def assert_not_empty(df: pd.DataFrame, filename: str):
    assert not df.empty, f"{filename} is empty."


# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def filtered_df():
    return load("incidents_filtered.csv")


@pytest.fixture(scope="module")
def counts_df():
    return load("monthly_counts.csv")


@pytest.fixture(scope="module")
def cv_df():
    return load("cv_scores.csv")


# ══════════════════════════════════════════════════════════════════
# 01: offense_frequency.csv, incidents_filtered.csv
# ══════════════════════════════════════════════════════════════════

@needs("incidents_filtered.csv")
class TestIncidentsFiltered:

    def test_columns(self, filtered_df):
        assert_columns(filtered_df, GROUP_KEYS, "incidents_filtered.csv")

    def test_not_empty(self, filtered_df):
        assert_not_empty(filtered_df, "incidents_filtered.csv")

    def test_only_modelled_categories(self, filtered_df):
        unexpected = set(filtered_df["offense_code_group"]) - set(OFFENSE_CATEGORIES)
        assert not unexpected, (
            f"incidents_filtered.csv has unmodelled categories: {unexpected}"
        )

    def test_no_empty_district(self, filtered_df):
        assert filtered_df["district"].notna().all(), (
            "incidents_filtered.csv has rows with no district. "
            "Check filter_incidents() in crime_models/incidents.py."
        )


@needs("offense_frequency.csv")
class TestOffenseFrequency:

    def test_modelled_categories_present(self):
        df = load("offense_frequency.csv")
        missing = set(OFFENSE_CATEGORIES) - set(df["offense_code_group"])
        assert not missing, f"offense_frequency.csv lacks {missing}"


# ══════════════════════════════════════════════════════════════════
# 02: monthly_counts.csv
# ══════════════════════════════════════════════════════════════════

@needs("monthly_counts.csv")
class TestMonthlyCounts:

    def test_columns(self, counts_df):
        assert_columns(counts_df, GROUP_KEYS + ["count"], "monthly_counts.csv")

    def test_keys_unique(self, counts_df):
        assert not counts_df.duplicated(subset=GROUP_KEYS).any(), (
            "monthly_counts.csv has duplicate (year, month, district, category) keys."
        )

    def test_counts_positive(self, counts_df):
        assert (counts_df["count"] >= 1).all()

    @needs("incidents_filtered.csv")
    def test_totals_match_filtered(self, counts_df):
        filtered = load("incidents_filtered.csv")
        assert counts_df["count"].sum() == len(filtered), (
            "monthly_counts.csv total does not equal the number of filtered "
            "incidents. Rerun 02_aggregate_counts.py."
        )


# ══════════════════════════════════════════════════════════════════
# 03: model outputs
# ══════════════════════════════════════════════════════════════════

@needs("cv_scores.csv")
class TestCVScores:

    def test_all_models_present(self, cv_df):
        assert set(cv_df["model"]) == MODEL_NAMES

    def test_fifty_resamples_each(self, cv_df):
        sizes = cv_df.groupby("model").size()
        assert (sizes == 50).all(), f"Expected 10 x 5 resamples per model:\n{sizes}"

    def test_shared_folds(self, cv_df):
        by_model = cv_df.groupby("model")["fold_hash"].apply(tuple)
        assert by_model.nunique() == 1, (
            "Models were scored on different folds; RMSE values are not comparable."
        )


@needs("model_metrics.csv")
class TestModelMetrics:

    def test_sorted_by_rmse(self):
        df = load("model_metrics.csv")
        assert df["rmse"].is_monotonic_increasing

    def test_r2_plausible(self):
        df = load("model_metrics.csv")
        assert (df["r2"] <= 1.0).all()
        assert df["r2"].max() > 0.5, (
            "No model explains more than half the variance in monthly counts; "
            "district and category alone should do better than that."
        )


@needs("predictions.csv")
class TestPredictions:

    @needs("monthly_counts.csv")
    def test_one_prediction_per_row_per_model(self):
        preds  = load("predictions.csv")
        counts = load("monthly_counts.csv")
        sizes = preds.groupby("model").size()
        assert (sizes == len(counts)).all()

    def test_residuals_consistent(self):
        df = load("predictions.csv")
        diff = (df["actual"] - df["predicted"] - df["residual"]).abs()
        assert diff.max() < 1e-6
