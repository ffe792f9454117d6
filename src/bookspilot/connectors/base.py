"""
Base interfaces — the remote collaborators the session layer talks to.

The session core never builds requests itself. It calls these three
interfaces, which makes every remote effect replaceable in tests and lets
other backends (a direct Books API client, a different token store) slot in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AccountingAPIClient(ABC):
    """Read (and create) entities in the connected Books organization.

    Subclasses implement the four collection accessors, ``disconnect`` and
    ``build_authorization_url``. Entity creation is optional.

    Example::

        class MyBooksClient(AccountingAPIClient):
            name = "my_books"

            async def get_invoices(self, user_id, organization_id, *, limit=None):
                return {"invoices": [...]}
            ...
    """

    name: str = "base"

    @abstractmethod
    async def get_invoices(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        """Return ``{"invoices": [...]}``."""
        ...

    @abstractmethod
    async def get_customers(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        """Return ``{"contacts": [...]}``."""
        ...

    @abstractmethod
    async def get_expenses(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        """Return ``{"expenses": [...]}``."""
        ...

    @abstractmethod
    async def get_profit_and_loss(self, user_id: str, organization_id: str) -> dict[str, Any]:
        """Return the profit & loss summary figures."""
        ...

    @abstractmethod
    async def disconnect(self, user_id: str) -> None:
        """Revoke the connection. Raises DisconnectError on failure."""
        ...

    @abstractmethod
    def build_authorization_url(self) -> str:
        """Return the provider login URL. Raises ConfigurationError if unconfigured."""
        ...

    async def create_invoice(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        raise NotImplementedError(f"{self.name} does not support creating invoices")

    async def create_customer(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        raise NotImplementedError(f"{self.name} does not support creating customers")

    async def create_expense(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        raise NotImplementedError(f"{self.name} does not support creating expenses")

    async def close(self) -> None:
        """Release network resources."""


class OAuthExchangeService(ABC):
    """Exchanges an authorization code for a stored connection.

    Callers are responsible for invoking it at most once per code.
    """

    @abstractmethod
    async def exchange(self, code: str, redirect_uri: str, user_id: str) -> dict[str, Any]:
        """Return ``{"success": bool, "error"?: str, "organization_id"?: str}``."""
        ...


class ConnectionStatusService(ABC):
    """Reports whether a user has a live connection."""

    @abstractmethod
    async def get_status(self, user_id: str) -> dict[str, Any]:
        """Return ``{"is_connected": bool, "organization_id"?: str}``."""
        ...
