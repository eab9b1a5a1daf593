"""
crime_models/modelling.py
-------------------------
Model definitions and the shared cross-validation used to compare them.

Every model predicts the monthly incident count from the four key
fields (year, month, district, offense category), all treated as
categorical. All models are scored on the same repeated k-fold splits,
built once by make_folds() and passed to each cross_validate_model()
call, so their RMSE values are comparable fold by fold.

Models:
    poisson_glm    statsmodels Poisson GLM with a district x category
                   interaction, wrapped as a scikit-learn regressor
    rpart          single regression tree with Poisson splitting
    random_forest  500 bagged trees, 2 dummy columns tried per split
    gbm            XGBoost with a Poisson objective
    cubist         rule-based model with nearest-neighbour correction
"""

import joblib
import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from cubist import Cubist
from sklearn.base import BaseEstimator, RegressorMixin, TransformerMixin, clone
from sklearn.ensemble import RandomForestRegressor
from sklearn.model_selection import RepeatedKFold, cross_validate
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder
from sklearn.tree import DecisionTreeRegressor
from sklearn.utils.validation import check_is_fitted
from xgboost import XGBRegressor

from crime_models.constants import (
    CATEGORY_COL,
    COUNT_COL,
    CV_FOLDS,
    CV_REPEATS,
    DISTRICT_COL,
    GROUP_KEYS,
    MONTH_COL,
    RANDOM_STATE,
    YEAR_COL,
)

FEATURE_COLS = list(GROUP_KEYS)

GLM_FORMULA = (
    f"{COUNT_COL} ~ C({YEAR_COL}) + C({MONTH_COL})"
    f" + C({DISTRICT_COL}) * C({CATEGORY_COL})"
)

SCORING = {"rmse": "neg_root_mean_squared_error", "r2": "r2"}


# ── Poisson GLM ───────────────────────────────────────────────────

def _as_frame(X) -> pd.DataFrame:
    if isinstance(X, pd.DataFrame):
        return X[FEATURE_COLS].copy()
    return pd.DataFrame(np.asarray(X), columns=FEATURE_COLS)


class PoissonGLMRegressor(RegressorMixin, BaseEstimator):
    """
    Poisson GLM (log link) fitted through a statsmodels formula.

    Wrapped so it can go through cross_validate() like the tree models.
    A level that appears at predict time but not at fit time raises a
    PatsyError; nothing catches it.
    """

    def __init__(self, formula: str = GLM_FORMULA):
        self.formula = formula

    def fit(self, X, y):
        data = _as_frame(X)
        data[COUNT_COL] = np.asarray(y, dtype=float)
        self.result_ = smf.glm(
            self.formula,
            data=data,
            family=sm.families.Poisson(),
        ).fit()
        self.n_features_in_ = len(FEATURE_COLS)
        return self

    def predict(self, X):
        check_is_fitted(self, "result_")
        return np.asarray(self.result_.predict(_as_frame(X)), dtype=float)


# ── Model registry ────────────────────────────────────────────────

class CategoricalFrame(TransformerMixin, BaseEstimator):
    """
    Cast the four key fields to discrete values with levels fixed at fit.

    With as_strings=False every column becomes a pandas category whose
    codes are the same for every frame transformed, as XGBoost needs
    with enable_categorical. With as_strings=True the columns stay plain
    strings, which Cubist reads as discrete attributes. Levels unseen
    at fit time become missing.
    """

    def __init__(self, as_strings: bool = False):
        self.as_strings = as_strings

    def fit(self, X, y=None):
        data = _as_frame(X).astype(str)
        self.levels_ = {col: sorted(data[col].unique()) for col in FEATURE_COLS}
        self.n_features_in_ = len(FEATURE_COLS)
        return self

    def transform(self, X):
        check_is_fitted(self, "levels_")
        data = _as_frame(X).astype(str)
        for col in FEATURE_COLS:
            data[col] = data[col].astype(pd.CategoricalDtype(self.levels_[col]))
            if self.as_strings:
                data[col] = data[col].astype(object)
        return data


def _one_hot(model) -> Pipeline:
    """Dummy-encode every key field before a scikit-learn tree model."""
    return Pipeline([
        ("encode", OneHotEncoder(handle_unknown="ignore", sparse_output=False)),
        ("model", model),
    ])


def _discrete(model, as_strings: bool = False) -> Pipeline:
    return Pipeline([
        ("encode", CategoricalFrame(as_strings=as_strings)),
        ("model", model),
    ])


def build_models(random_state: int = RANDOM_STATE, n_jobs: int = -1) -> dict:
    """
    Fresh, unfitted estimators keyed by model name, in report order.

    Hyperparameters can be overridden afterwards with set_params(),
    e.g. models["random_forest"].set_params(model__n_estimators=50).
    """
    return {
        "poisson_glm": PoissonGLMRegressor(),
        "rpart": _one_hot(DecisionTreeRegressor(
            criterion="poisson",
            ccp_alpha=1e-5,
            min_samples_split=20,
            min_samples_leaf=7,
            random_state=random_state,
        )),
        "random_forest": _one_hot(RandomForestRegressor(
            n_estimators=500,
            max_features=2,
            min_samples_leaf=5,
            random_state=random_state,
            n_jobs=n_jobs,
        )),
        "gbm": _discrete(XGBRegressor(
            objective="count:poisson",
            n_estimators=500,
            max_depth=10,
            learning_rate=0.1,
            min_child_weight=5,
            subsample=0.5,
            tree_method="hist",
            enable_categorical=True,
            random_state=random_state,
            n_jobs=n_jobs,
        )),
        "cubist": _discrete(Cubist(
            n_committees=80,
            neighbors=9,
            random_state=random_state,
        ), as_strings=True),
    }


# ── Shared folds ──────────────────────────────────────────────────

def make_folds(
    n_rows: int,
    n_splits: int = CV_FOLDS,
    n_repeats: int = CV_REPEATS,
    random_state: int = RANDOM_STATE,
) -> tuple:
    """
    Materialise repeated k-fold splits over *n_rows* rows.

    Returns a tuple of (train_idx, test_idx) pairs, repeat by repeat.
    The same tuple is handed to every model so all of them are trained
    and scored on identical partitions.
    """
    if n_rows < n_splits:
        raise ValueError(
            f"Cannot build {n_splits} folds from only {n_rows} rows."
        )
    cv = RepeatedKFold(
        n_splits=n_splits,
        n_repeats=n_repeats,
        random_state=random_state,
    )
    return tuple(
        (train_idx, test_idx)
        for train_idx, test_idx in cv.split(np.arange(n_rows))
    )


def fold_labels(folds: tuple) -> list[str]:
    """
    Resample labels in 'Fold03.Rep2' form.

    The fold count per repeat is inferred from the splits: a repeat
    ends once its held-out sets have covered every row.
    """
    if not folds:
        return []
    n_rows = len(folds[0][0]) + len(folds[0][1])
    covered = np.cumsum([len(test_idx) for _, test_idx in folds])
    n_splits = int(np.argmax(covered >= n_rows)) + 1
    return [
        f"Fold{i % n_splits + 1:02d}.Rep{i // n_splits + 1}"
        for i in range(len(folds))
    ]


def fold_fingerprints(folds: tuple) -> list[str]:
    """Content hash of each fold's held-out rows."""
    return [joblib.hash(np.sort(test_idx)) for _, test_idx in folds]


# ── Cross-validation ──────────────────────────────────────────────

def split_xy(counts: pd.DataFrame) -> tuple:
    return counts[FEATURE_COLS], counts[COUNT_COL].astype(float)


def cross_validate_model(
    name: str,
    estimator,
    X: pd.DataFrame,
    y: pd.Series,
    folds: tuple,
    n_jobs: int = -1,
) -> pd.DataFrame:
    """
    Score *estimator* on every shared fold.

    Folds are evaluated in parallel by scikit-learn. Any fit failure
    is raised rather than recorded as NaN.

    Returns:
        One row per fold: model, resample, fold_hash, n_test, rmse, r2.
    """
    scores = cross_validate(
        estimator,
        X,
        y,
        cv=list(folds),
        scoring=SCORING,
        n_jobs=n_jobs,
        error_score="raise",
    )
    return pd.DataFrame({
        "model":     name,
        "resample":  fold_labels(folds),
        "fold_hash": fold_fingerprints(folds),
        "n_test":    [len(test_idx) for _, test_idx in folds],
        "rmse":      -scores["test_rmse"],
        "r2":        scores["test_r2"],
    })


def summarise_cv(scores: pd.DataFrame) -> pd.DataFrame:
    """Mean and SD of RMSE and R² per model, best RMSE first."""
    summary = (
        scores.groupby("model", sort=False)
        .agg(
            rmse=("rmse", "mean"),
            rmse_sd=("rmse", "std"),
            r2=("r2", "mean"),
            r2_sd=("r2", "std"),
            n_resamples=("rmse", "size"),
        )
        .reset_index()
    )
    return summary.sort_values("rmse").reset_index(drop=True)


def check_shared_folds(scores: pd.DataFrame):
    """
    Raise ValueError unless every model was scored on the same
    held-out sets, in the same order.
    """
    if scores.empty:
        raise ValueError("No cross-validation scores to compare.")
    per_model = {
        name: tuple(group["fold_hash"])
        for name, group in scores.groupby("model", sort=False)
    }
    reference_name, reference = next(iter(per_model.items()))
    mismatched = [n for n, hashes in per_model.items() if hashes != reference]
    if mismatched:
        raise ValueError(
            f"Models {mismatched} were not scored on the same folds as "
            f"'{reference_name}'. RMSE values are not comparable."
        )


# ── Final fit ─────────────────────────────────────────────────────

def fit_and_predict(name: str, estimator, counts: pd.DataFrame) -> pd.DataFrame:
    """
    Fit a fresh copy of *estimator* on every row of *counts* and
    predict those same rows.

    Returns:
        The key columns plus actual, predicted, residual and model.
    """
    X, y = split_xy(counts)
    fitted = clone(estimator).fit(X, y)

    out = counts[FEATURE_COLS].copy()
    out["actual"]    = y.to_numpy()
    out["predicted"] = fitted.predict(X)
    out["residual"]  = out["actual"] - out["predicted"]
    out["model"]     = name
    return out.reset_index(drop=True)
