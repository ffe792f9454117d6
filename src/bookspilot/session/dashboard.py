"""
Dashboard aggregator — best-effort summary of the main collections.

Fetches the first few invoices, customers and expenses concurrently and
publishes them together. A failing sub-fetch renders as an empty section;
the dashboard never raises or notifies.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from pydantic import BaseModel

from bookspilot.connectors.base import AccountingAPIClient
from bookspilot.models.entities import Customer, DashboardSummary, Expense, Invoice
from bookspilot.models.session import ViewKind, ViewLoadState

logger = logging.getLogger("bookspilot.session.dashboard")

DEFAULT_LIMIT = 5


class DashboardAggregator:
    """Fan-out/fan-in loader for the dashboard view."""

    def __init__(self, api: AccountingAPIClient, *, limit: int = DEFAULT_LIMIT) -> None:
        self.api = api
        self.limit = limit
        self._state = ViewLoadState(view=ViewKind.DASHBOARD, data=DashboardSummary())

    @property
    def state(self) -> ViewLoadState:
        return self._state

    @property
    def summary(self) -> DashboardSummary:
        return self._state.data

    async def load(self, user_id: str | None, organization_id: str | None) -> None:
        if not user_id or not organization_id:
            logger.debug("Dashboard load skipped: not connected")
            return

        generation = self._state.generation + 1
        self._state = replace(self._state, loading=True, generation=generation)

        invoices_task = asyncio.create_task(
            self.api.get_invoices(user_id, organization_id, limit=self.limit)
        )
        customers_task = asyncio.create_task(
            self.api.get_customers(user_id, organization_id, limit=self.limit)
        )
        expenses_task = asyncio.create_task(
            self.api.get_expenses(user_id, organization_id, limit=self.limit)
        )

        invoices, customers, expenses = await asyncio.gather(
            invoices_task, customers_task, expenses_task, return_exceptions=True,
        )

        if generation != self._state.generation:
            logger.debug("Discarding stale dashboard load (generation %d)", generation)
            return

        summary = DashboardSummary(
            invoices=self._collect(invoices, "invoices", Invoice),
            customers=self._collect(customers, "contacts", Customer),
            expenses=self._collect(expenses, "expenses", Expense),
        )
        self._state = replace(self._state, loading=False, data=summary)
        logger.info(
            "Dashboard loaded: %d invoices, %d customers, %d expenses",
            summary.invoice_count, summary.customer_count, len(summary.expenses),
        )

    def _collect(self, result: Any, key: str, model: type[BaseModel]) -> tuple[Any, ...]:
        if isinstance(result, BaseException):
            logger.warning("Dashboard %s unavailable: %s", key, result)
            return ()
        try:
            items = result.get(key) or []
            return tuple(model.from_api(item) for item in items[: self.limit])  # type: ignore[attr-defined]
        except Exception as e:
            logger.warning("Dashboard %s unreadable: %s", key, e)
            return ()

    def reset(self) -> None:
        """Drop the summary and invalidate any in-flight load."""
        self._state = replace(
            self._state,
            loading=False,
            data=DashboardSummary(),
            generation=self._state.generation + 1,
        )
