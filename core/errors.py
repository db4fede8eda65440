from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for every error raised by the dashboard core."""


class TransportError(DashboardError):
    """The request never produced a response (DNS, connection refused, timeout...)."""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        self.reason = reason
        super().__init__(f"Transport failure for {url}" + (f": {reason}" if reason else ""))


class RemoteRequestError(DashboardError):
    """The server answered, but with a failure status (or an unreadable body)."""

    def __init__(self, status: int, url: str = "", detail: Optional[str] = None):
        self.status = int(status)
        self.url = url
        self.detail = detail
        msg = f"API error {self.status}"
        if url:
            msg += f" for {url}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UnknownCategoryError(DashboardError):
    def __init__(self, category: object):
        self.category = category
        super().__init__(f"Unknown category: {category!r}")


class UnknownMetricError(DashboardError):
    def __init__(self, name: object, category: Optional[str] = None):
        self.name = name
        self.category = category
        where = f" for category {category!r}" if category is not None else ""
        super().__init__(f"Unknown metric: {name!r}{where}")


class SeriesFormatError(DashboardError, ValueError):
    """Raw series rows violate the Series Record invariants."""
