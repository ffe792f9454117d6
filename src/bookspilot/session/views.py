"""
View data orchestrator — loads the collection behind the selected view.

Each view keeps a generation counter. A load captures the generation it
started with and only applies its result if no newer load for the same view
has started since. Superseded requests are not cancelled; their results are
dropped on arrival, so the view always converges to the most recently
started load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable

from bookspilot.connectors.base import AccountingAPIClient
from bookspilot.exceptions import LoadError
from bookspilot.models.entities import Customer, Expense, Invoice, ReportSnapshot
from bookspilot.models.session import ViewKind, ViewLoadState
from bookspilot.session.dashboard import DashboardAggregator
from bookspilot.session.notify import LoggingNotifier, Notifier, notify_error

logger = logging.getLogger("bookspilot.session.views")


def _collection(key: str, model: Any) -> Callable[[dict[str, Any]], tuple[Any, ...]]:
    def parse(reply: dict[str, Any]) -> tuple[Any, ...]:
        return tuple(model.from_api(item) for item in reply.get(key) or [])

    return parse


@dataclass(frozen=True)
class ViewSource:
    """Where a view's data comes from and what it looks like when empty."""

    accessor: str
    parse: Callable[[dict[str, Any]], Any]
    empty: Callable[[], Any]
    label: str


VIEW_SOURCES: dict[ViewKind, ViewSource] = {
    ViewKind.INVOICES: ViewSource("get_invoices", _collection("invoices", Invoice), tuple, "invoices"),
    ViewKind.CUSTOMERS: ViewSource("get_customers", _collection("contacts", Customer), tuple, "customers"),
    ViewKind.EXPENSES: ViewSource("get_expenses", _collection("expenses", Expense), tuple, "expenses"),
    ViewKind.REPORTS: ViewSource("get_profit_and_loss", ReportSnapshot.from_api, ReportSnapshot, "reports"),
}


class ViewDataOrchestrator:
    """Single entry point for loading any view, dashboard included."""

    def __init__(
        self,
        api: AccountingAPIClient,
        *,
        notifier: Notifier | None = None,
        dashboard: DashboardAggregator | None = None,
    ) -> None:
        self.api = api
        self.notifier = notifier or LoggingNotifier()
        self.dashboard = dashboard or DashboardAggregator(api)
        self._states: dict[ViewKind, ViewLoadState] = {}

    def state(self, view: ViewKind) -> ViewLoadState:
        """Current load state of ``view`` (an empty state if never loaded)."""
        if view == ViewKind.DASHBOARD:
            return self.dashboard.state
        existing = self._states.get(view)
        if existing is not None:
            return existing
        return ViewLoadState(view=view, data=VIEW_SOURCES[view].empty())

    def data(self, view: ViewKind) -> Any:
        return self.state(view).data

    @property
    def loaded_views(self) -> list[ViewKind]:
        return list(self._states)

    def _is_current(self, view: ViewKind, generation: int) -> bool:
        return self._states[view].generation == generation

    async def load(self, view: ViewKind, user_id: str | None, organization_id: str | None) -> None:
        if view == ViewKind.DASHBOARD:
            await self.dashboard.load(user_id, organization_id)
            return
        if not user_id or not organization_id:
            logger.debug("Load of %s skipped: not connected", view.value)
            return

        source = VIEW_SOURCES[view]
        current = self._states.get(view) or ViewLoadState(view=view, data=source.empty())
        generation = current.generation + 1
        self._states[view] = replace(current, loading=True, generation=generation)

        try:
            reply = await getattr(self.api, source.accessor)(user_id, organization_id)
            data = source.parse(reply)
        except Exception as e:
            if not self._is_current(view, generation):
                logger.debug("Discarding stale %s failure (generation %d)", source.label, generation)
                return
            logger.error("Error loading %s: %s", source.label, e)
            self._states[view] = replace(
                self._states[view], loading=False, data=source.empty(), error=str(e)
            )
            notify_error(self.notifier, LoadError(str(e)), f"Failed to load {source.label}")
            return

        if not self._is_current(view, generation):
            logger.debug("Discarding stale %s result (generation %d)", source.label, generation)
            return
        self._states[view] = replace(self._states[view], loading=False, data=data, error=None)

    def reset(self) -> None:
        """Clear every view and invalidate in-flight loads."""
        for view, state in list(self._states.items()):
            self._states[view] = replace(
                state,
                loading=False,
                data=VIEW_SOURCES[view].empty(),
                generation=state.generation + 1,
                error=None,
            )
        self.dashboard.reset()
        logger.debug("View data cleared")
