"""
crime_models/charts.py
----------------------
Chart builders for the model comparison report.
All builder functions return a Plotly figure object; save_figure()
writes one to a standalone HTML file.

Import example:
    from crime_models.charts import predicted_vs_actual_chart, save_figure
"""

import os

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from crime_models.constants import (
    AXIS_DEFAULTS,
    BASE_LAYOUT,
    CATEGORY_COL,
    CHART_CONFIG,
    COUNT_COL,
    HIGHLIGHT_COLOUR,
    LEGEND_TOP,
    MODEL_COLOURS,
    MODEL_LABELS,
    MUTED_COLOUR,
    OFFENSE_CATEGORIES,
    OFFENSE_COLOURS,
)
from crime_models.helpers import fmt_metric


# ── Layout helpers ────────────────────────────────────────────────

def apply_base_layout(fig: go.Figure, height: int = 520, **kwargs) -> go.Figure:
    """
    Apply the standard white template and drag settings to a figure.
    Additional layout kwargs are passed through so callers can
    override individual properties.

    Usage:
        fig = apply_base_layout(fig, height=360, hovermode='y')
    """
    layout = {**BASE_LAYOUT, "height": height, **kwargs}
    fig.update_layout(**layout)
    return fig


def style_xaxis(fig: go.Figure, title: str = "", **kwargs) -> go.Figure:
    """Apply standard x-axis defaults."""
    props = {**AXIS_DEFAULTS, "title": title, **kwargs}
    fig.update_xaxes(**props)
    return fig


def style_yaxis(fig: go.Figure, title: str = "", **kwargs) -> go.Figure:
    """Apply standard y-axis defaults."""
    props = {**AXIS_DEFAULTS, "title": title, **kwargs}
    fig.update_yaxes(**props)
    return fig


def model_label(name: str) -> str:
    return MODEL_LABELS.get(name, name)


# ── Annotation helpers ────────────────────────────────────────────

def add_metric_annotation(
    fig: go.Figure,
    rmse: float,
    r2: float,
    x: float = 0.02,
    y: float = 0.98,
) -> go.Figure:
    """
    Add a boxed 'RMSE / R²' label in the top-left corner of the plot
    area (paper coordinates).
    """
    fig.add_annotation(
        x=x,
        y=y,
        xref="paper",
        yref="paper",
        text=f"CV RMSE = {fmt_metric(rmse)}<br>CV R² = {fmt_metric(r2)}",
        showarrow=False,
        align="left",
        xanchor="left",
        yanchor="top",
        font=dict(size=12),
        bgcolor="rgba(255,255,255,0.85)",
        bordercolor="rgba(0,0,0,0.2)",
        borderwidth=1,
    )
    return fig


def add_identity_line(fig: go.Figure, upper: float) -> go.Figure:
    """Dashed y = x reference line from 0 to *upper*."""
    fig.add_trace(go.Scatter(
        x=[0, upper],
        y=[0, upper],
        mode="lines",
        line=dict(color="black", dash="dash", width=1),
        name="Perfect prediction",
        hoverinfo="skip",
        showlegend=False,
    ))
    return fig


# ── Reusable chart builders ───────────────────────────────────────

def horizontal_bar_chart(
    df: pd.DataFrame,
    x_col: str,
    y_col: str,
    colors: list | None = None,
    hover_template: str | None = None,
    height: int = 520,
    x_title: str = "",
) -> go.Figure:
    """
    Horizontal bar chart, one bar per row of *df*, drawn top to bottom
    in the order given.

    Args:
        df:              Source DataFrame.
        x_col:           Column for bar length (numeric).
        y_col:           Column for bar labels (categorical).
        colors:          Per-bar colours. Defaults to a single grey.
        hover_template:  Custom hovertemplate string.
        height:          Chart height in pixels.
        x_title:         X-axis title.
    """
    bar_kwargs: dict = dict(
        x=df[x_col],
        y=df[y_col],
        orientation="h",
        marker=dict(color=colors if colors is not None else MUTED_COLOUR),
    )
    if hover_template:
        bar_kwargs["hovertemplate"] = hover_template

    fig = go.Figure()
    fig.add_trace(go.Bar(**bar_kwargs))

    fig = apply_base_layout(fig, height=height, hovermode="y")
    fig = style_xaxis(fig, title=x_title)
    fig = style_yaxis(fig, autorange="reversed")
    return fig


def time_series_chart(
    traces: list[dict],
    height: int = 480,
    y_title: str = "",
) -> go.Figure:
    """
    Build a multi-trace time series figure.

    Each item in `traces` is a dict with keys:
        x, y      : data arrays
        name      : legend label
        color     : line colour
        width     : line width (default 2)
        hover     : hovertemplate string (optional)
    """
    fig = go.Figure()

    for t in traces:
        scatter_kwargs = dict(
            x=t["x"],
            y=t["y"],
            name=t.get("name", ""),
            mode="lines",
            line=dict(
                color=t.get("color", MUTED_COLOUR),
                width=t.get("width", 2),
            ),
            showlegend=t.get("name") is not None,
        )
        if "hover" in t:
            scatter_kwargs["hovertemplate"] = t["hover"]
        fig.add_trace(go.Scatter(**scatter_kwargs))

    fig = apply_base_layout(fig, height=height, hovermode="x unified", legend=LEGEND_TOP)
    fig = style_xaxis(fig)
    fig = style_yaxis(fig, title=y_title)
    return fig


# ── Exploratory figures ───────────────────────────────────────────

def offense_frequency_chart(
    frequency: pd.DataFrame,
    modelled: list[str] = OFFENSE_CATEGORIES,
    top_n: int = 25,
) -> go.Figure:
    """
    Incidents per offense category for the *top_n* most frequent
    categories. Categories that are modelled are drawn in red.
    """
    top = frequency.head(top_n)
    colors = [
        HIGHLIGHT_COLOUR if cat in modelled else MUTED_COLOUR
        for cat in top[CATEGORY_COL]
    ]
    return horizontal_bar_chart(
        df=top,
        x_col=COUNT_COL,
        y_col=CATEGORY_COL,
        colors=colors,
        hover_template="<b>%{y}</b><br>%{x:,} incidents<extra></extra>",
        height=max(400, 24 * len(top)),
        x_title="Incidents recorded",
    )


def monthly_counts_chart(monthly: pd.DataFrame) -> go.Figure:
    """
    One line per offense category showing city-wide monthly counts.
    Expects the output of aggregation.monthly_totals().
    """
    traces = []
    for category, group in monthly.groupby(CATEGORY_COL, sort=True):
        traces.append({
            "x":     group["period"],
            "y":     group[COUNT_COL],
            "name":  category,
            "color": OFFENSE_COLOURS.get(category, MUTED_COLOUR),
            "hover": f"{category}<br>%{{x|%b %Y}}: %{{y:,}}<extra></extra>",
        })
    return time_series_chart(traces, y_title="Monthly incidents")


# ── Model evaluation figures ──────────────────────────────────────

def predicted_vs_actual_chart(
    predictions: pd.DataFrame,
    model_name: str,
    rmse: float,
    r2: float,
) -> go.Figure:
    """
    Scatter of predicted against actual monthly counts for one model,
    coloured by offense category, with a y = x line and the
    cross-validated RMSE and R² in the corner.

    Args:
        predictions: Rows for a single model from fit_and_predict().
        model_name:  Registry name, e.g. 'random_forest'.
        rmse, r2:    Cross-validated metrics for the annotation.
    """
    fig = px.scatter(
        predictions,
        x="actual",
        y="predicted",
        color=CATEGORY_COL,
        color_discrete_map=OFFENSE_COLOURS,
        category_orders={CATEGORY_COL: sorted(predictions[CATEGORY_COL].unique())},
        hover_data=["year", "month", "district"],
        opacity=0.6,
        labels={
            "actual":     "Actual count",
            "predicted":  "Predicted count",
            CATEGORY_COL: "Offense category",
        },
    )
    upper = float(max(predictions["actual"].max(), predictions["predicted"].max()))
    fig = add_identity_line(fig, upper)
    fig = add_metric_annotation(fig, rmse, r2)

    fig = apply_base_layout(
        fig,
        title=f"{model_label(model_name)}: predicted vs actual",
        legend=LEGEND_TOP,
    )
    fig = style_xaxis(fig, title="Actual count")
    fig = style_yaxis(fig, title="Predicted count")
    return fig


def residual_chart(predictions: pd.DataFrame, model_name: str) -> go.Figure:
    """Residual (actual minus predicted) against predicted count."""
    fig = px.scatter(
        predictions,
        x="predicted",
        y="residual",
        color=CATEGORY_COL,
        color_discrete_map=OFFENSE_COLOURS,
        category_orders={CATEGORY_COL: sorted(predictions[CATEGORY_COL].unique())},
        opacity=0.6,
        labels={CATEGORY_COL: "Offense category"},
    )
    fig.add_hline(y=0, line_dash="dash", line_color="black", opacity=0.6)

    fig = apply_base_layout(
        fig,
        title=f"{model_label(model_name)}: residuals",
        legend=LEGEND_TOP,
    )
    fig = style_xaxis(fig, title="Predicted count")
    fig = style_yaxis(fig, title="Residual")
    return fig


def model_comparison_chart(cv_scores: pd.DataFrame, metric: str = "rmse") -> go.Figure:
    """
    Box plot of per-fold *metric* ('rmse' or 'r2') for every model,
    models ordered as they appear in *cv_scores*.
    """
    titles = {"rmse": "RMSE", "r2": "R²"}
    if metric not in titles:
        raise ValueError(f"metric must be one of {list(titles)}, got '{metric}'")

    fig = go.Figure()
    for name, group in cv_scores.groupby("model", sort=False):
        fig.add_trace(go.Box(
            y=group[metric],
            name=model_label(name),
            marker_color=MODEL_COLOURS.get(name, MUTED_COLOUR),
            boxmean=True,
            customdata=group["resample"],
            hovertemplate="%{customdata}: %{y:.3f}<extra></extra>",
        ))

    fig = apply_base_layout(
        fig,
        height=460,
        title=f"Cross-validated {titles[metric]} by model",
        showlegend=False,
    )
    fig = style_xaxis(fig)
    fig = style_yaxis(fig, title=titles[metric])
    return fig


# ── Output ────────────────────────────────────────────────────────

def save_figure(fig: go.Figure, path: str) -> str:
    """Write *fig* as a standalone HTML file and return the path."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.write_html(path, include_plotlyjs="cdn", config=CHART_CONFIG)
    return path
