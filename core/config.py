"""Settings and display definitions for the impact dashboard.

Runtime settings come from the environment so the same code can point at the
local mock service, a reverse-proxied gateway, or run fully offline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, List


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


API_BASE = os.getenv("IMPACT_API_BASE", "http://127.0.0.1:8000/api").rstrip("/")
API_TIMEOUT = _env_float("IMPACT_API_TIMEOUT", 10.0)
DATA_SOURCE = os.getenv("IMPACT_DATA_SOURCE", "static").strip().lower()
DEFAULT_CATEGORY = os.getenv("IMPACT_DEFAULT_CATEGORY", "oil").strip()
API_HOST = os.getenv("IMPACT_API_HOST", "127.0.0.1")
API_PORT = int(_env_float("IMPACT_API_PORT", 8000))


@dataclass(frozen=True)
class CategoryConfig:
    key: str
    label: str
    chart_title: str


@dataclass(frozen=True)
class MetricConfig:
    key: str
    label: str
    default_active: bool = True


# Ordered as shown in the category selector
CATEGORIES: List[CategoryConfig] = [
    CategoryConfig("oil", "Oil & Gas", "Oil & Gas Emission Trends"),
    CategoryConfig("electric", "Electric", "Electric Sector Emission Trends"),
    CategoryConfig("other", "Other Services", "Other Services Emission Trends"),
]

METRICS: List[MetricConfig] = [
    MetricConfig("emissions", "CO₂ Emissions (tons)"),
    MetricConfig("efficiency", "Energy Efficiency (%)"),
]

CATEGORY_BY_KEY: Dict[str, CategoryConfig] = {c.key: c for c in CATEGORIES}
METRIC_BY_KEY: Dict[str, MetricConfig] = {m.key: m for m in METRICS}


def _fallback_label(key: str) -> str:
    return str(key).replace("_", " ").strip().title()


def category_label(key: str) -> str:
    cfg = CATEGORY_BY_KEY.get(key)
    return cfg.label if cfg else _fallback_label(key)


def chart_title(key: str) -> str:
    cfg = CATEGORY_BY_KEY.get(key)
    return cfg.chart_title if cfg else f"{_fallback_label(key)} Emission Trends"


def metric_label(key: str) -> str:
    cfg = METRIC_BY_KEY.get(key)
    return cfg.label if cfg else _fallback_label(key)


def default_metric_toggles() -> Dict[str, bool]:
    return {m.key: m.default_active for m in METRICS}
