from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from core import config
from core.errors import DashboardError, UnknownCategoryError, UnknownMetricError
from core.registry import DatasetRegistry
from core.views import DerivedView, ViewSelection, build_view

logger = logging.getLogger(__name__)

Subscriber = Callable[[DerivedView], None]


@dataclass(frozen=True)
class LoadTicket:
    request_id: int
    category: str


class ViewStateController:
    """Single owner of the dashboard selection.

    Every successful mutation rebuilds the derived view before returning and then
    hands it to each subscriber. A mutation that fails validation changes nothing
    and notifies nobody. An exception raised by a subscriber reaches the caller of
    the mutation, which has already been applied.
    """

    def __init__(
        self,
        registry: DatasetRegistry,
        default_category: Optional[str] = None,
        active_metrics: Optional[Mapping[str, bool]] = None,
    ):
        self.registry = registry
        category = default_category or config.DEFAULT_CATEGORY
        if default_category is None and not registry.has_category(category):
            available = registry.categories()
            if not available:
                raise UnknownCategoryError(category)
            category = available[0]

        toggles = config.default_metric_toggles() if active_metrics is None else dict(active_metrics)
        selection = ViewSelection(category, MappingProxyType({k: bool(v) for k, v in toggles.items()}))
        self._view = build_view(registry, selection)
        self._selection = selection
        self._subscribers: List[Subscriber] = []
        self._request_ids = itertools.count(1)
        self._latest_request = 0

    # ---------- reads ----------
    def get_selection(self) -> ViewSelection:
        return self._selection

    def current_view(self) -> DerivedView:
        return self._view

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---------- mutations ----------
    def select_category(self, category: str) -> DerivedView:
        if not self.registry.has_category(category):
            raise UnknownCategoryError(category)
        # a direct selection supersedes any load still in flight
        view = self._commit(ViewSelection(category, self._selection.active_metrics), supersede=True)
        logger.debug("Selected category %s", category)
        return view

    def toggle_metric(self, name: str) -> DerivedView:
        self._require_metric(name)
        return self._set(name, not self._selection.active_metrics.get(name, False))

    def set_metric(self, name: str, active: bool) -> DerivedView:
        self._require_metric(name)
        if self._selection.active_metrics.get(name) == bool(active):
            return self._view
        return self._set(name, bool(active))

    # ---------- async loading ----------
    def begin_load(self, category: str) -> LoadTicket:
        if not self.registry.has_category(category):
            raise UnknownCategoryError(category)
        ticket = LoadTicket(next(self._request_ids), category)
        self._latest_request = ticket.request_id
        return ticket

    def is_current(self, ticket: LoadTicket) -> bool:
        return ticket.request_id == self._latest_request

    def complete_load(self, ticket: LoadTicket) -> bool:
        """Apply a finished load unless a newer selection or load superseded it."""
        if not self.is_current(ticket):
            logger.info("Discarding stale load #%s for %s", ticket.request_id, ticket.category)
            return False
        self.select_category(ticket.category)
        return True

    async def load_category(self, category: str) -> bool:
        ticket = self.begin_load(category)
        try:
            await asyncio.to_thread(self.registry.get_series, category)
        except DashboardError:
            if not self.is_current(ticket):
                logger.info("Ignoring failure of superseded load #%s for %s", ticket.request_id, category)
                return False
            raise
        return self.complete_load(ticket)

    # ---------- internals ----------
    def _require_metric(self, name: str) -> None:
        category = self._selection.selected_category
        if name not in self._view.metric_names:
            raise UnknownMetricError(name, category)

    def _set(self, name: str, active: bool) -> DerivedView:
        toggles: Dict[str, bool] = dict(self._selection.active_metrics)
        toggles[name] = active
        view = self._commit(ViewSelection(self._selection.selected_category, MappingProxyType(toggles)))
        logger.debug("Metric %s -> %s", name, active)
        return view

    def _commit(self, selection: ViewSelection, supersede: bool = False) -> DerivedView:
        view = build_view(self.registry, selection)
        if supersede:
            self._latest_request = next(self._request_ids)
        self._selection = selection
        self._view = view
        # state is final before any callback runs; callback errors propagate to the caller
        for callback in list(self._subscribers):
            callback(view)
        return view
