from __future__ import annotations

from types import MappingProxyType

import pytest

from core.charts import line_chart_spec, trend_frame
from core.errors import UnknownCategoryError
from core.recommendations import RECOMMENDATIONS
from core.views import ViewSelection, build_view, view_payload, view_table


def test_concrete_oil_view(small_registry):
    view = build_view(small_registry, ViewSelection("oil", {"emissions": True, "efficiency": True}))
    assert view.columns == ("emissions", "efficiency")
    assert [p.year for p in view.series] == [2018, 2019]
    assert view.series[0].metrics == {"emissions": 320, "efficiency": 60}
    assert view.series[1].metrics == {"emissions": 340, "efficiency": 63}


def test_columns_follow_metric_order_not_toggle_order(small_registry):
    view = build_view(small_registry, ViewSelection("oil", {"efficiency": True, "emissions": True}))
    assert view.columns == ("emissions", "efficiency")


def test_build_is_deterministic(registry):
    selection = ViewSelection("electric", MappingProxyType({"emissions": True, "efficiency": False}))
    assert build_view(registry, selection) == build_view(registry, selection)


def test_no_active_metrics_keeps_series(small_registry):
    view = build_view(small_registry, ViewSelection("oil", {"emissions": False, "efficiency": False}))
    assert view.columns == ()
    assert len(view.series) == 2
    assert view.rows() == [{"year": 2018}, {"year": 2019}]
    assert list(view_table(view).columns) == ["Year"]
    spec = line_chart_spec(view)
    assert spec["title"] == "Oil & Gas Emission Trends"


def test_toggle_for_missing_metric_is_ignored(small_registry):
    view = build_view(small_registry, ViewSelection("oil", {"emissions": True, "methane": True}))
    assert view.columns == ("emissions",)


def test_unknown_category_propagates_unwrapped(registry):
    with pytest.raises(UnknownCategoryError):
        build_view(registry, ViewSelection("coal", {}))


def test_table_uses_display_labels(small_registry):
    view = build_view(small_registry, ViewSelection("oil", {"emissions": True, "efficiency": False}))
    table = view_table(view)
    assert list(table.columns) == ["Year", "CO₂ Emissions (tons)"]
    assert table["CO₂ Emissions (tons)"].tolist() == [320, 340]


def test_trend_frame_is_long_form(small_registry):
    view = build_view(small_registry, ViewSelection("electric", {"emissions": True, "efficiency": True}))
    frame = trend_frame(view)
    assert len(frame) == 4
    assert set(frame["metric"]) == {"emissions", "efficiency"}


def test_payload_shape(small_registry):
    view = build_view(small_registry, ViewSelection("electric", {"emissions": True, "efficiency": True}))
    payload = view_payload(view)
    assert payload["title"] == "Electric Sector Emission Trends"
    assert payload["label"] == "Electric"
    assert payload["columns"] == ["emissions", "efficiency"]
    assert payload["column_labels"]["efficiency"] == "Energy Efficiency (%)"
    assert payload["rows"][0] == {"year": 2018, "emissions": 150, "efficiency": 70}
    assert payload["recommendations"] == RECOMMENDATIONS
    assert "mark" in payload["charts"]["trend"]
