"""End-to-end tests for BooksSession on fake collaborators."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from bookspilot.exceptions import AuthorizationError, ConfigurationError, CreateError, DisconnectError
from bookspilot.models.entities import DashboardSummary, ReportSnapshot
from bookspilot.models.session import ConnectionStatus, ViewKind
from bookspilot.session.callback import RedirectKind

CALLBACK_URL = "https://app.example.com/books?code=auth-code-1&location=us&accounts-server=https%3A%2F%2Faccounts.zoho.com"


async def _connected(make_session, connected_status):  # noqa: ANN001, ANN202
    session = make_session(status=connected_status)
    await session.start("user-1")
    await session.wait_idle()
    return session


class TestRedirectHandling:
    @pytest.mark.asyncio
    async def test_plain_page_load_is_noop(self, make_session, exchange, notifier) -> None:
        session = make_session("https://app.example.com/books?tab=invoices")
        outcome = await session.start("user-1")

        assert outcome.kind == RedirectKind.NOOP
        assert exchange.calls == []
        assert session.address.url == "https://app.example.com/books?tab=invoices"
        assert session.state.status == ConnectionStatus.DISCONNECTED
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_access_denied(self, make_session, exchange, notifier) -> None:
        session = make_session("https://app.example.com/books?error=access_denied")
        outcome = await session.start("user-1")

        assert outcome.kind == RedirectKind.ERROR
        assert outcome.reason == "access_denied"
        assert session.state.status == ConnectionStatus.DISCONNECTED
        assert len(notifier.errors_of(AuthorizationError)) == 1
        assert exchange.calls == []
        assert "error" not in session.address.url

    @pytest.mark.asyncio
    async def test_access_denied_is_final_even_if_status_reports_connected(
        self, make_session, connected_status
    ) -> None:
        session = make_session(
            "https://app.example.com/books?error=access_denied", status=connected_status
        )
        await session.start("user-1")
        assert session.state.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_duplicate_invocation_exchanges_once(self, make_session, exchange) -> None:
        session = make_session(CALLBACK_URL)
        exchange.gate = asyncio.Event()

        first = asyncio.create_task(session.callback.handle_redirect(CALLBACK_URL, "user-1"))
        await asyncio.sleep(0)
        second = await session.callback.handle_redirect(CALLBACK_URL, "user-1")
        exchange.gate.set()
        outcome = await first

        assert len(exchange.calls) == 1
        assert second.kind == RedirectKind.NOOP
        assert outcome.kind == RedirectKind.SUCCESS

        # A later re-run (e.g. a second initialization) is still a no-op
        again = await session.callback.handle_redirect(CALLBACK_URL, "user-1")
        assert again.kind == RedirectKind.NOOP
        assert len(exchange.calls) == 1

    @pytest.mark.asyncio
    async def test_success_connects_and_cleans_address(
        self, make_session, exchange, api, connected_status, notifier
    ) -> None:
        session = make_session(CALLBACK_URL, status=connected_status)
        outcome = await session.start("user-1")
        await session.wait_idle()

        assert outcome.kind == RedirectKind.SUCCESS
        assert exchange.calls == [("auth-code-1", "https://app.example.com/books", "user-1")]
        assert "code" not in session.address.url
        assert "accounts-server" not in session.address.url

        state = await session.refresh_status()
        assert state.status == ConnectionStatus.CONNECTED
        assert state.organization_id == "org-42"

        # One in-place reload of the selected (dashboard) view
        assert len(api.calls_to("get_invoices")) == 1
        assert session.data(ViewKind.DASHBOARD).invoice_count == 1
        assert [n.message for n in notifier.notifications] == ["Zoho Books connected successfully!"]

    @pytest.mark.asyncio
    async def test_deferred_until_identity(self, make_session, exchange) -> None:
        session = make_session(CALLBACK_URL)
        outcome = await session.start()

        assert outcome.kind == RedirectKind.DEFERRED
        assert exchange.calls == []
        assert "code=auth-code-1" in session.address.url

        outcome = await session.identify("user-1")
        assert outcome.kind == RedirectKind.SUCCESS
        assert len(exchange.calls) == 1
        assert session.state.organization_id == "org-42"

    @pytest.mark.asyncio
    async def test_exchange_failure_leaves_state(self, make_session, exchange, notifier) -> None:
        exchange.reply = {"success": False, "error": "invalid_code"}
        session = make_session(CALLBACK_URL)
        outcome = await session.start("user-1")

        assert outcome.kind == RedirectKind.ERROR
        assert outcome.reason == "invalid_code"
        assert "code" not in session.address.url
        assert session.state.status == ConnectionStatus.DISCONNECTED
        assert notifier.notifications[0].message == "Connection failed: invalid_code"


class TestViewTriggers:
    @pytest.mark.asyncio
    async def test_select_view_loads_once(self, make_session, connected_status, api) -> None:
        session = await _connected(make_session, connected_status)

        task = session.select_view(ViewKind.INVOICES)
        assert task is not None
        await task
        assert session.select_view(ViewKind.INVOICES) is None

        assert len(api.calls_to("get_invoices")) == 2  # dashboard slice + full list
        invoices = session.data(ViewKind.INVOICES)
        assert [i.number for i in invoices] == ["INV-000001"]

    @pytest.mark.asyncio
    async def test_latest_started_load_wins(self, make_session, connected_status, api) -> None:
        session = await _connected(make_session, connected_status)
        api.hold("get_invoices")

        first = session.select_view(ViewKind.INVOICES)
        await asyncio.sleep(0)
        session.select_view(ViewKind.CUSTOMERS)
        latest = session.select_view(ViewKind.INVOICES)
        await asyncio.sleep(0)

        old_call, new_call = api.held["get_invoices"]
        new_call.set_result({"invoices": [{"invoice_id": "new", "invoice_number": "INV-NEW"}]})
        await latest
        old_call.set_result({"invoices": [{"invoice_id": "old", "invoice_number": "INV-OLD"}]})
        await first
        await session.wait_idle()

        assert [i.number for i in session.data(ViewKind.INVOICES)] == ["INV-NEW"]
        assert session.view_state(ViewKind.INVOICES).loading is False

    @pytest.mark.asyncio
    async def test_reports_view(self, make_session, connected_status) -> None:
        session = await _connected(make_session, connected_status)
        await session.select_view("reports")

        report = session.data(ViewKind.REPORTS)
        assert isinstance(report, ReportSnapshot)
        assert report.net_profit == Decimal("18000")
        assert report.total_assets == Decimal("0")

    @pytest.mark.asyncio
    async def test_not_connected_never_loads(self, make_session, api) -> None:
        session = make_session()
        await session.start("user-1")
        assert session.select_view(ViewKind.INVOICES) is None
        assert api.calls == []


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_clears_everything(self, make_session, connected_status, api) -> None:
        session = await _connected(make_session, connected_status)
        await session.select_view(ViewKind.INVOICES)
        calls_before = len(api.calls)

        assert await session.disconnect() is True
        assert session.state.status == ConnectionStatus.DISCONNECTED
        assert session.state.organization_id is None
        assert session.data(ViewKind.INVOICES) == ()
        assert session.data(ViewKind.DASHBOARD) == DashboardSummary()

        assert session.select_view(ViewKind.CUSTOMERS) is None
        assert session.select_view(ViewKind.INVOICES) is None
        assert len(api.calls) == calls_before

    @pytest.mark.asyncio
    async def test_disconnect_failure_keeps_state(
        self, make_session, connected_status, api, notifier
    ) -> None:
        session = await _connected(make_session, connected_status)
        api.disconnect_error = DisconnectError("provider rejected")

        assert await session.disconnect() is False
        assert session.state.status == ConnectionStatus.CONNECTED
        assert session.state.organization_id == "org-42"
        assert len(notifier.errors_of(DisconnectError)) == 1

    @pytest.mark.asyncio
    async def test_in_flight_load_discarded_after_disconnect(
        self, make_session, connected_status, api
    ) -> None:
        session = await _connected(make_session, connected_status)
        api.hold("get_invoices")
        task = session.select_view(ViewKind.INVOICES)
        await asyncio.sleep(0)

        await session.disconnect()
        api.held["get_invoices"][0].set_result({"invoices": [{"invoice_id": "late"}]})
        await task

        assert session.data(ViewKind.INVOICES) == ()


class TestConnectAndCreate:
    def test_connect_url(self, make_session) -> None:
        session = make_session()
        assert session.connect_url().startswith("https://accounts.zoho.com/oauth/v2/auth")

    def test_connect_url_inert_without_config(self, make_session, api, notifier) -> None:
        api.auth_url = None
        session = make_session()
        assert session.connect_url() is None
        assert len(notifier.errors_of(ConfigurationError)) == 1

    @pytest.mark.asyncio
    async def test_create_reloads_view(self, make_session, connected_status, api, notifier) -> None:
        session = await _connected(make_session, connected_status)
        invoice_calls = len(api.calls_to("get_invoices"))

        reply = await session.create(ViewKind.INVOICES, {"customer_id": "c-001"})
        await session.wait_idle()

        assert reply["invoice"]["invoice_id"] == "inv-new"
        assert api.created == [("invoice", {"customer_id": "c-001"})]
        assert len(api.calls_to("get_invoices")) == invoice_calls + 1
        assert notifier.notifications[-1].message == "Invoice created successfully"

    @pytest.mark.asyncio
    async def test_create_failure_notifies(self, make_session, connected_status, notifier) -> None:
        session = await _connected(make_session, connected_status)
        assert await session.create("customers", {"contact_name": "X"}) is None
        assert len(notifier.errors_of(CreateError)) == 1

    @pytest.mark.asyncio
    async def test_create_rejects_read_only_views(self, make_session) -> None:
        session = make_session()
        with pytest.raises(ValueError, match="reports"):
            await session.create(ViewKind.REPORTS, {})

    @pytest.mark.asyncio
    async def test_identity_is_fixed_per_session(self, make_session) -> None:
        session = make_session()
        await session.start("user-1")
        with pytest.raises(ValueError, match="user-1"):
            await session.identify("user-2")
