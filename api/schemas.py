from __future__ import annotations

from typing import Dict, List, Union

from pydantic import BaseModel, Field


class ReportSeriesResponse(BaseModel):
    category: str
    label: str
    metrics: List[str]
    points: List[Dict[str, Union[int, float]]]


class CategoriesResponse(BaseModel):
    categories: List[str]


class ReportRequest(BaseModel):
    company: str = Field(min_length=1)


class ReportResponse(BaseModel):
    company: str
    summary: str
    recommendations: List[str]
