from __future__ import annotations

import logging
import math
from typing import List, Optional

import numpy as np
import pandas as pd
import uvicorn
from fastapi import APIRouter, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import CategoriesResponse, ReportRequest, ReportResponse, ReportSeriesResponse
from core import config
from core.config import category_label, default_metric_toggles
from core.errors import UnknownCategoryError
from core.recommendations import get_recommendations
from core.registry import DatasetRegistry, StaticRegistry
from core.views import ViewSelection, build_view, view_payload


logger = logging.getLogger(__name__)

registry: DatasetRegistry = StaticRegistry()

app = FastAPI(title="Impact Report API", version="0.1.0")
router = APIRouter(prefix="/api")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


@router.get("/ping")
def ping():
    return {"status": "ok"}


@router.get("/categories", response_model=CategoriesResponse)
def categories():
    return CategoriesResponse(categories=registry.categories())


@router.get("/reports/{category}", response_model=ReportSeriesResponse)
def report_series(category: str):
    try:
        series = registry.get_series(category)
        return {
            "category": series.category,
            "label": category_label(series.category),
            "metrics": series.metric_names,
            "points": series.rows(),
        }
    except UnknownCategoryError as exc:
        return _error(exc, status_code=404)
    except Exception as exc:
        logger.exception("report_series failed")
        return _error(exc)


@router.post("/report", response_model=ReportResponse)
def generate_report(req: ReportRequest):
    try:
        company = req.company.strip()
        lines = []
        for category in registry.categories():
            series = registry.get_series(category)
            if len(series.points) < 2 or "emissions" not in series.metric_names:
                continue
            first, last = series.points[0], series.points[-1]
            delta = last.metrics["emissions"] - first.metrics["emissions"]
            direction = "down" if delta < 0 else "up"
            lines.append(f"{category_label(category)} emissions {direction} {abs(delta):g} tons since {first.year}")
        summary = f"{company}: " + ("; ".join(lines) if lines else "no emissions data available")
        return ReportResponse(company=company, summary=summary, recommendations=get_recommendations())
    except Exception as exc:
        logger.exception("generate_report failed")
        return _error(exc)


@router.get("/dashboard/{category}")
def dashboard(category: str, metrics: Optional[List[str]] = Query(default=None)):
    """Derived view payload (rows, columns, chart spec) for one category."""
    if metrics is None:
        toggles = default_metric_toggles()
    else:
        toggles = {name: True for name in metrics}
    try:
        view = build_view(registry, ViewSelection(category, toggles))
        return _json(view_payload(view))
    except UnknownCategoryError as exc:
        return _error(exc, status_code=404)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


app.include_router(router)


def serve(host: Optional[str] = None, port: Optional[int] = None) -> None:
    uvicorn.run(app, host=host or config.API_HOST, port=port or config.API_PORT)


if __name__ == "__main__":
    serve()
