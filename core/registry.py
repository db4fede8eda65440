from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core import config
from core.client import ReportClient
from core.errors import DashboardError, SeriesFormatError, UnknownCategoryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesPoint:
    year: int
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # points are shared with every derived view, so keep them read-only
        if not isinstance(self.metrics, MappingProxyType):
            object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def as_row(self) -> Dict[str, Any]:
        return {"year": self.year, **self.metrics}


@dataclass(frozen=True)
class SeriesRecord:
    category: str
    points: Tuple[SeriesPoint, ...] = ()

    @property
    def metric_names(self) -> List[str]:
        if not self.points:
            return []
        return list(self.points[0].metrics.keys())

    @property
    def years(self) -> List[int]:
        return [p.year for p in self.points]

    def rows(self) -> List[Dict[str, Any]]:
        return [p.as_row() for p in self.points]


def _as_number(value: Any, *, category: str, year: int, name: str) -> float:
    if isinstance(value, bool):
        raise SeriesFormatError(f"{category} {year}: metric {name!r} is not numeric")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise SeriesFormatError(f"{category} {year}: metric {name!r} is not numeric") from None
    if math.isnan(out) or math.isinf(out):
        raise SeriesFormatError(f"{category} {year}: metric {name!r} is not finite")
    return int(out) if isinstance(value, int) else out


def _as_year(value: Any, *, category: str) -> int:
    if isinstance(value, bool):
        raise SeriesFormatError(f"{category}: bad year {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise SeriesFormatError(f"{category}: bad year {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SeriesFormatError(f"{category}: bad year {value!r}") from None


def series_from_rows(category: str, rows: Iterable[Mapping[str, Any]]) -> SeriesRecord:
    """Build a validated SeriesRecord from flat ``{"year": ..., <metric>: ...}`` rows.

    Rows are sorted by year. Duplicate years, or points whose metric names differ
    from the first row's, raise SeriesFormatError.
    """
    parsed: List[SeriesPoint] = []
    expected: Optional[List[str]] = None
    for row in rows:
        if not isinstance(row, Mapping) or "year" not in row:
            raise SeriesFormatError(f"{category}: every row needs a 'year'")
        year = _as_year(row["year"], category=category)
        names = [k for k in row.keys() if k != "year"]
        if expected is None:
            expected = names
        elif set(names) != set(expected):
            raise SeriesFormatError(f"{category} {year}: metrics {sorted(names)} differ from {sorted(expected)}")
        metrics = {name: _as_number(row[name], category=category, year=year, name=name) for name in expected}
        parsed.append(SeriesPoint(year=year, metrics=metrics))

    parsed.sort(key=lambda p: p.year)
    years = [p.year for p in parsed]
    if len(set(years)) != len(years):
        raise SeriesFormatError(f"{category}: duplicate years in {years}")
    return SeriesRecord(category=str(category), points=tuple(parsed))


def series_from_payload(category: str, payload: Any) -> SeriesRecord:
    """Accept either ``{"category": ..., "points": [...]}`` or a bare list of rows."""
    if isinstance(payload, Mapping):
        rows = payload.get("points")
        if rows is None:
            raise SeriesFormatError(f"{category}: payload has no 'points'")
    elif isinstance(payload, list):
        rows = payload
    else:
        raise SeriesFormatError(f"{category}: unexpected payload type {type(payload).__name__}")
    return series_from_rows(category, rows)


# Mock report data, one series per tracked category
DEFAULT_DATASETS: Dict[str, List[Dict[str, int]]] = {
    "oil": [
        {"year": 2018, "emissions": 320, "efficiency": 60},
        {"year": 2019, "emissions": 340, "efficiency": 63},
        {"year": 2020, "emissions": 310, "efficiency": 68},
        {"year": 2021, "emissions": 355, "efficiency": 70},
        {"year": 2022, "emissions": 330, "efficiency": 74},
    ],
    "electric": [
        {"year": 2018, "emissions": 150, "efficiency": 70},
        {"year": 2019, "emissions": 140, "efficiency": 75},
        {"year": 2020, "emissions": 130, "efficiency": 80},
        {"year": 2021, "emissions": 110, "efficiency": 85},
        {"year": 2022, "emissions": 100, "efficiency": 89},
    ],
    "other": [
        {"year": 2018, "emissions": 210, "efficiency": 65},
        {"year": 2019, "emissions": 190, "efficiency": 67},
        {"year": 2020, "emissions": 185, "efficiency": 69},
        {"year": 2021, "emissions": 170, "efficiency": 72},
        {"year": 2022, "emissions": 160, "efficiency": 75},
    ],
}


class DatasetRegistry:
    """Keyed collection of SeriesRecords; consumers only call these three methods."""

    def categories(self) -> List[str]:
        raise NotImplementedError

    def get_series(self, category: str) -> SeriesRecord:
        raise NotImplementedError

    def has_category(self, category: str) -> bool:
        return category in self.categories()


class StaticRegistry(DatasetRegistry):
    def __init__(self, table: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None):
        table = DEFAULT_DATASETS if table is None else table
        self._series: Dict[str, SeriesRecord] = {str(k): series_from_rows(str(k), rows) for k, rows in table.items()}

    def categories(self) -> List[str]:
        return list(self._series.keys())

    def get_series(self, category: str) -> SeriesRecord:
        try:
            return self._series[category]
        except (KeyError, TypeError):
            raise UnknownCategoryError(category) from None


class RemoteRegistry(DatasetRegistry):
    """Registry backed by ``GET /reports/{category}`` with a per-category cache.

    A failed fetch never blanks data that is already available: the cached series,
    or else the fallback registry's series, is returned and the failure is kept in
    ``last_error`` for the shell to show. Fallback data is then served without
    further requests until an explicit ``refresh``. With nothing to fall back on
    the client error propagates unchanged.
    """

    def __init__(self, client: ReportClient, categories: Iterable[str], fallback: Optional[DatasetRegistry] = None):
        self.client = client
        self._categories: List[str] = [str(c) for c in categories]
        self.fallback = fallback
        self._cache: Dict[str, SeriesRecord] = {}
        self._fallback_served: Dict[str, SeriesRecord] = {}
        self.last_error: Optional[DashboardError] = None

    def categories(self) -> List[str]:
        return list(self._categories)

    def is_cached(self, category: str) -> bool:
        return category in self._cache

    def get_series(self, category: str) -> SeriesRecord:
        if category not in self._categories:
            raise UnknownCategoryError(category)
        cached = self._cache.get(category)
        if cached is not None:
            return cached
        served = self._fallback_served.get(category)
        if served is not None:
            return served
        return self.refresh(category)

    def refresh(self, category: str) -> SeriesRecord:
        if category not in self._categories:
            raise UnknownCategoryError(category)
        try:
            payload = self.client.fetch_resource(f"/reports/{category}")
            series = series_from_payload(category, payload)
        except DashboardError as exc:
            stale = self._stale_series(category)
            if stale is None:
                self.last_error = exc
                raise
            logger.warning("Refreshing %s failed (%s); serving existing data", category, exc)
            self.last_error = exc
            if category not in self._cache:
                self._fallback_served[category] = stale
            return stale
        self._cache[category] = series
        self._fallback_served.pop(category, None)
        self.last_error = None
        return series

    def clear(self) -> None:
        self._cache.clear()
        self._fallback_served.clear()

    def _stale_series(self, category: str) -> Optional[SeriesRecord]:
        if category in self._cache:
            return self._cache[category]
        if self.fallback is not None and self.fallback.has_category(category):
            return self.fallback.get_series(category)
        return None


def make_registry(source: Optional[str] = None, client: Optional[ReportClient] = None) -> DatasetRegistry:
    """Pick the registry implementation; ``remote`` falls back to the static table."""
    source = (source or config.DATA_SOURCE).strip().lower()
    static = StaticRegistry()
    if source == "static":
        return static
    if source == "remote":
        if client is None:
            client = ReportClient()
        return RemoteRegistry(client, [c.key for c in config.CATEGORIES], fallback=static)
    raise ValueError(f"Unknown data source: {source!r}")
