"""
tests/test_charts.py
--------------------
Structure of the report figures. These check traces and annotations,
not pixels.

Run with:
    pytest tests/test_charts.py -v
"""

import os
import pandas as pd
import pytest

from crime_models.aggregation import monthly_totals
from crime_models.charts import (
    model_comparison_chart,
    monthly_counts_chart,
    offense_frequency_chart,
    predicted_vs_actual_chart,
    residual_chart,
    save_figure,
)
from crime_models.constants import HIGHLIGHT_COLOUR, MUTED_COLOUR
from crime_models.incidents import offense_frequency

from conftest import CATEGORIES


@pytest.fixture
def predictions(counts):
    out = counts.rename(columns={"count": "actual"}).copy()
    out["predicted"] = out["actual"] * 0.9 + 0.5
    out["residual"]  = out["actual"] - out["predicted"]
    out["model"]     = "random_forest"
    return out


@pytest.fixture
def cv_scores():
    rows = []
    for name, base in [("poisson_glm", 2.0), ("random_forest", 1.5)]:
        for i in range(6):
            rows.append({
                "model": name,
                "resample": f"Fold{i % 3 + 1:02d}.Rep{i // 3 + 1}",
                "rmse": base + 0.1 * i,
                "r2": 0.9 - 0.05 * i,
            })
    return pd.DataFrame(rows)


def marker_traces(fig):
    return [t for t in fig.data if t.mode == "markers"]


class TestPredictedVsActual:

    def test_one_marker_trace_per_category(self, predictions):
        fig = predicted_vs_actual_chart(predictions, "random_forest", 1.234, 0.876)
        names = {t.name for t in marker_traces(fig)}
        assert names == set(CATEGORIES)

    def test_identity_line(self, predictions):
        fig = predicted_vs_actual_chart(predictions, "random_forest", 1.234, 0.876)
        lines = [t for t in fig.data if t.mode == "lines"]
        assert len(lines) == 1
        assert list(lines[0].x) == list(lines[0].y)

    def test_metric_annotation(self, predictions):
        fig = predicted_vs_actual_chart(predictions, "random_forest", 1.234, 0.876)
        texts = " ".join(a.text for a in fig.layout.annotations)
        assert "RMSE = 1.234" in texts
        assert "R² = 0.876" in texts

    def test_title_uses_display_name(self, predictions):
        fig = predicted_vs_actual_chart(predictions, "random_forest", 1.0, 0.5)
        assert fig.layout.title.text.startswith("Random forest")


class TestResidualChart:

    def test_zero_reference_line(self, predictions):
        fig = residual_chart(predictions, "random_forest")
        assert any(s.y0 == 0 and s.y1 == 0 for s in fig.layout.shapes)

    def test_all_points_plotted(self, predictions):
        fig = residual_chart(predictions, "random_forest")
        assert sum(len(t.x) for t in marker_traces(fig)) == len(predictions)


class TestModelComparison:

    def test_one_box_per_model(self, cv_scores):
        fig = model_comparison_chart(cv_scores, "rmse")
        assert [t.name for t in fig.data] == ["Poisson GLM", "Random forest"]
        assert all(t.type == "box" for t in fig.data)

    def test_r2_metric(self, cv_scores):
        fig = model_comparison_chart(cv_scores, "r2")
        assert "R²" in fig.layout.title.text

    def test_unknown_metric_raises(self, cv_scores):
        with pytest.raises(ValueError, match="metric"):
            model_comparison_chart(cv_scores, "mae")


class TestExploratoryCharts:

    def test_frequency_highlights_modelled(self, incidents):
        freq = offense_frequency(incidents)
        fig = offense_frequency_chart(freq, modelled=["Larceny"])
        colors = dict(zip(fig.data[0].y, fig.data[0].marker.color))
        assert colors["Larceny"] == HIGHLIGHT_COLOUR
        assert colors["Towed"] == MUTED_COLOUR

    def test_monthly_counts_one_line_per_category(self, counts):
        fig = monthly_counts_chart(monthly_totals(counts))
        assert sorted(t.name for t in fig.data) == sorted(CATEGORIES)


class TestSaveFigure:

    def test_writes_html(self, tmp_path, cv_scores):
        path = str(tmp_path / "nested" / "comparison.html")
        written = save_figure(model_comparison_chart(cv_scores), path)
        assert written == path
        assert os.path.exists(path)
        with open(path, encoding="utf-8") as f:
            assert "plotly" in f.read().lower()
