"""
crime_models/constants.py
-------------------------
Shared constants used across the processing scripts and the report.
Import from here rather than defining locally in script files.

The offense list is fixed by name after inspecting frequency counts
on the full dataset. 01_clean_incidents.py warns if the actual top 9
drifts away from it.
"""

# ── Offense categories modelled ───────────────────────────────────
OFFENSE_CATEGORIES = [
    "Motor Vehicle Accident Response",
    "Larceny",
    "Medical Assistance",
    "Investigate Person",
    "Other",
    "Drug Violation",
    "Simple Assault",
    "Vandalism",
    "Verbal Disputes",
]

# ── Column names (after snake_case normalisation) ─────────────────
CATEGORY_COL = "offense_code_group"
DISTRICT_COL = "district"
YEAR_COL     = "year"
MONTH_COL    = "month"
COUNT_COL    = "count"

# Grouping key, in display order
GROUP_KEYS = [YEAR_COL, MONTH_COL, DISTRICT_COL, CATEGORY_COL]

REQUIRED_INCIDENT_COLUMNS = GROUP_KEYS

# ── Cross-validation ──────────────────────────────────────────────
RANDOM_STATE = 42
CV_FOLDS     = 10
CV_REPEATS   = 5

# ── Model display names ───────────────────────────────────────────
MODEL_LABELS = {
    "poisson_glm":   "Poisson GLM",
    "rpart":         "Regression tree",
    "random_forest": "Random forest",
    "gbm":           "Gradient boosting",
    "cubist":        "Cubist",
}

# ── Colour palette ────────────────────────────────────────────────
OFFENSE_COLOURS = {
    "Motor Vehicle Accident Response": "#3498db",
    "Larceny":                         "#e74c3c",
    "Medical Assistance":              "#1abc9c",
    "Investigate Person":              "#9b59b6",
    "Other":                           "#95a5a6",
    "Drug Violation":                  "#e67e22",
    "Simple Assault":                  "#c0392b",
    "Vandalism":                       "#7f8c8d",
    "Verbal Disputes":                 "#f1c40f",
}

MODEL_COLOURS = {
    "poisson_glm":   "#3498db",
    "rpart":         "#95a5a6",
    "random_forest": "#2ecc71",
    "gbm":           "#e67e22",
    "cubist":        "#9b59b6",
}

HIGHLIGHT_COLOUR = "#e74c3c"
MUTED_COLOUR     = "#bdc3c7"

# ── Plotly config used when writing HTML ──────────────────────────
CHART_CONFIG = {'displayModeBar': False, 'scrollZoom': False}

# ── Shared layout defaults applied to all Plotly figures ─────────
BASE_LAYOUT = dict(
    template='plotly_white',
    dragmode=False,
    hovermode='closest',
)

AXIS_DEFAULTS = dict(
    showspikes=False,
    gridcolor='rgba(0,0,0,0.08)',
)

LEGEND_TOP = dict(
    orientation='h',
    yanchor='bottom',
    y=1.02,
    title='',
)
