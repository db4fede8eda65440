from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

import pandas as pd

from core.config import category_label, chart_title, metric_label
from core.recommendations import get_recommendations
from core.registry import DatasetRegistry, SeriesPoint


@dataclass(frozen=True)
class ViewSelection:
    selected_category: str
    active_metrics: Mapping[str, bool]


@dataclass(frozen=True)
class DerivedView:
    category: str
    series: Tuple[SeriesPoint, ...]
    columns: Tuple[str, ...]

    @property
    def metric_names(self) -> List[str]:
        return list(self.series[0].metrics.keys()) if self.series else []

    def rows(self) -> List[Dict[str, Any]]:
        return [{"year": p.year, **{c: p.metrics[c] for c in self.columns}} for p in self.series]


def build_view(registry: DatasetRegistry, selection: ViewSelection) -> DerivedView:
    """Project the selection onto the registry data.

    Columns follow the series' metric order, never toggle order, so the table does
    not reshuffle when a metric is switched off and on again. A toggle for a metric
    the series does not carry is ignored.
    """
    series = registry.get_series(selection.selected_category)
    columns = tuple(name for name in series.metric_names if selection.active_metrics.get(name, False))
    return DerivedView(category=series.category, series=series.points, columns=columns)


def view_table(view: DerivedView) -> pd.DataFrame:
    df = pd.DataFrame(view.rows(), columns=["year", *view.columns])
    return df.rename(columns={"year": "Year", **{c: metric_label(c) for c in view.columns}})


def view_payload(view: DerivedView) -> Dict[str, Any]:
    from core.charts import line_chart_spec

    return {
        "category": view.category,
        "label": category_label(view.category),
        "title": chart_title(view.category),
        "columns": list(view.columns),
        "column_labels": {c: metric_label(c) for c in view.columns},
        "rows": view.rows(),
        "charts": {"trend": line_chart_spec(view)},
        "recommendations": get_recommendations(),
    }
