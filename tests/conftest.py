"""Shared fakes and fixtures for the session tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from bookspilot.config import BooksPilotConfig
from bookspilot.connectors.base import (
    AccountingAPIClient,
    ConnectionStatusService,
    OAuthExchangeService,
)
from bookspilot.exceptions import ConfigurationError, DisconnectError
from bookspilot.session import BooksSession, BrowserAddress, RecordingNotifier

# ---------------------------------------------------------------------------
# Mock data
# ---------------------------------------------------------------------------

MOCK_INVOICE = {
    "invoice_id": "inv-001",
    "invoice_number": "INV-000001",
    "customer_name": "Widget Co",
    "total": 1250.50,
    "status": "paid",
    "date": "2025-01-05",
    "due_date": "2025-02-04",
}

MOCK_CUSTOMER = {
    "contact_id": "c-001",
    "contact_name": "Widget Co",
    "email": "ap@widget.example",
    "company_name": "Widget Company Ltd",
    "phone": "+1 555 0100",
}

MOCK_EXPENSE = {
    "expense_id": "exp-001",
    "vendor_name": "AWS",
    "total": 320.00,
    "status": "unbilled",
    "date": "2025-01-10",
}

MOCK_PROFIT_AND_LOSS = {
    "total_income": 50000,
    "total_expenses": 32000,
    "net_profit": 18000,
}

DEFAULT_RESPONSES: dict[str, Any] = {
    "get_invoices": {"invoices": [MOCK_INVOICE]},
    "get_customers": {"contacts": [MOCK_CUSTOMER]},
    "get_expenses": {"expenses": [MOCK_EXPENSE]},
    "get_profit_and_loss": MOCK_PROFIT_AND_LOSS,
}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeBooksClient(AccountingAPIClient):
    """In-memory Books client.

    ``hold(accessor)`` makes later calls to that accessor wait on a future
    (collected in ``held[accessor]``) so tests control completion order.
    """

    name = "fake"

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = {**DEFAULT_RESPONSES, **(responses or {})}
        self.calls: list[tuple[str, str, str | None, int | None]] = []
        self.held: dict[str, list[asyncio.Future[Any]]] = {}
        self._holding: set[str] = set()
        self.disconnect_calls: list[str] = []
        self.disconnect_error: Exception | None = None
        self.auth_url: str | None = "https://accounts.zoho.com/oauth/v2/auth?client_id=cid"
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def hold(self, accessor: str) -> None:
        self._holding.add(accessor)

    def calls_to(self, accessor: str) -> list[tuple[str, str, str | None, int | None]]:
        return [c for c in self.calls if c[0] == accessor]

    async def _respond(
        self, accessor: str, user_id: str, organization_id: str | None, limit: int | None = None
    ) -> Any:
        self.calls.append((accessor, user_id, organization_id, limit))
        if accessor in self._holding:
            future = asyncio.get_running_loop().create_future()
            self.held.setdefault(accessor, []).append(future)
            result = await future
        else:
            result = self.responses.get(accessor, {})
        if isinstance(result, BaseException):
            raise result
        return result

    async def get_invoices(self, user_id, organization_id, *, limit=None):  # noqa: ANN001
        return await self._respond("get_invoices", user_id, organization_id, limit)

    async def get_customers(self, user_id, organization_id, *, limit=None):  # noqa: ANN001
        return await self._respond("get_customers", user_id, organization_id, limit)

    async def get_expenses(self, user_id, organization_id, *, limit=None):  # noqa: ANN001
        return await self._respond("get_expenses", user_id, organization_id, limit)

    async def get_profit_and_loss(self, user_id, organization_id):  # noqa: ANN001
        return await self._respond("get_profit_and_loss", user_id, organization_id)

    async def disconnect(self, user_id: str) -> None:
        self.disconnect_calls.append(user_id)
        if self.disconnect_error is not None:
            raise self.disconnect_error

    def build_authorization_url(self) -> str:
        if self.auth_url is None:
            raise ConfigurationError("Zoho client id is not configured")
        return self.auth_url

    async def create_invoice(self, user_id, organization_id, payload):  # noqa: ANN001
        self.created.append(("invoice", payload))
        return {"invoice": {"invoice_id": "inv-new", **payload}}

    async def create_customer(self, user_id, organization_id, payload):  # noqa: ANN001
        raise DisconnectError("token revoked")

    async def close(self) -> None:
        self.closed = True


class FakeExchangeService(OAuthExchangeService):
    def __init__(self, reply: Any = None) -> None:
        self.reply = reply if reply is not None else {"success": True, "organization_id": "org-42"}
        self.calls: list[tuple[str, str, str]] = []
        self.gate: asyncio.Event | None = None

    async def exchange(self, code: str, redirect_uri: str, user_id: str) -> dict[str, Any]:
        self.calls.append((code, redirect_uri, user_id))
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply


class FakeStatusService(ConnectionStatusService):
    def __init__(self, reply: Any = None) -> None:
        self.reply = reply if reply is not None else {"is_connected": False}
        self.calls: list[str] = []

    async def get_status(self, user_id: str) -> dict[str, Any]:
        self.calls.append(user_id)
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> BooksPilotConfig:
    return BooksPilotConfig(
        oauth={"client_id": "cid", "redirect_uri": "https://app.example.com/books"},
        app_origin="https://app.example.com",
    )


@pytest.fixture
def api() -> FakeBooksClient:
    return FakeBooksClient()


@pytest.fixture
def exchange() -> FakeExchangeService:
    return FakeExchangeService()


@pytest.fixture
def status_service() -> FakeStatusService:
    return FakeStatusService()


@pytest.fixture
def connected_status() -> FakeStatusService:
    return FakeStatusService({"is_connected": True, "organization_id": "org-42"})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_session(
    config: BooksPilotConfig,
    api: FakeBooksClient,
    exchange: FakeExchangeService,
    status_service: FakeStatusService,
    notifier: RecordingNotifier,
) -> Callable[..., BooksSession]:
    """Factory: ``make_session(url, status=...)`` builds a session on fakes."""

    def _make(
        url: str = "https://app.example.com/books",
        *,
        status: FakeStatusService | None = None,
    ) -> BooksSession:
        return BooksSession(
            config,
            api=api,
            exchange_service=exchange,
            status_service=status or status_service,
            address=BrowserAddress(url),
            notifier=notifier,
        )

    return _make
