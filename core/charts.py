from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from core.config import chart_title, metric_label
from core.views import DerivedView

alt.data_transformers.disable_max_rows()

METRIC_COLORS = ["#10b981", "#3b82f6", "#f59e0b", "#ef4444", "#8b5cf6"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def trend_frame(view: DerivedView) -> pd.DataFrame:
    """Long-form (year, metric, label, value) rows for the active columns."""
    records = [
        {"year": p.year, "metric": c, "label": metric_label(c), "value": p.metrics[c]}
        for p in view.series
        for c in view.columns
    ]
    return pd.DataFrame(records, columns=["year", "metric", "label", "value"])


def line_chart(view: DerivedView) -> alt.Chart:
    title = chart_title(view.category)
    if not view.columns:
        # year axis only
        years = pd.DataFrame({"year": [p.year for p in view.series]})
        return (
            alt.Chart(years, title=title)
            .mark_tick(opacity=0)
            .encode(x=alt.X("year:O", title="Year"))
        )

    data = trend_frame(view)
    labels = [metric_label(c) for c in view.columns]
    return (
        alt.Chart(data, title=title)
        .mark_line(point=True, strokeWidth=3)
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("value:Q", title=None),
            color=alt.Color(
                "label:N",
                title="Metric",
                sort=labels,
                scale=alt.Scale(domain=labels, range=[METRIC_COLORS[i % len(METRIC_COLORS)] for i in range(len(labels))]),
            ),
            tooltip=["year", "label", alt.Tooltip("value:Q", format=",")],
        )
    )


def line_chart_spec(view: DerivedView) -> Dict[str, Any]:
    return to_vega_spec(line_chart(view))
