from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from core.registry import StaticRegistry
from core.state import ViewStateController


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class FakeSession:
    """Stands in for requests.Session; records calls and replays queued outcomes."""

    def __init__(self, *outcomes: Any):
        self.headers: Dict[str, str] = {}
        self.cookies: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self._outcomes = list(outcomes)
        self.closed = False

    def queue(self, outcome: Any) -> None:
        self._outcomes.append(outcome)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self._outcomes.pop(0) if self._outcomes else FakeResponse(200, {})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


TWO_YEAR_TABLE = {
    "oil": [
        {"year": 2018, "emissions": 320, "efficiency": 60},
        {"year": 2019, "emissions": 340, "efficiency": 63},
    ],
    "electric": [
        {"year": 2018, "emissions": 150, "efficiency": 70},
        {"year": 2019, "emissions": 140, "efficiency": 75},
    ],
}


@pytest.fixture
def registry() -> StaticRegistry:
    return StaticRegistry()


@pytest.fixture
def small_registry() -> StaticRegistry:
    return StaticRegistry(TWO_YEAR_TABLE)


@pytest.fixture
def controller(registry) -> ViewStateController:
    return ViewStateController(registry, default_category="oil")
