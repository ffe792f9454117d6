"""
Zoho Books Connector — invoices, customers, expenses and P&L via the
functions backend.

The OAuth tokens never reach this process. The backend exchanges the code,
stores the tokens and proxies Books API v3 calls on behalf of ``user_id``.

Zoho Books API docs:
  https://www.zoho.com/books/api/v3/
"""

from __future__ import annotations

import logging
from typing import Any

from bookspilot.auth.oauth2 import build_authorization_url
from bookspilot.config import BooksPilotConfig
from bookspilot.connectors.base import (
    AccountingAPIClient,
    ConnectionStatusService,
    OAuthExchangeService,
)
from bookspilot.connectors.functions import FunctionsClient
from bookspilot.exceptions import (
    BackendError,
    DisconnectError,
    ExchangeError,
    StatusCheckError,
)

logger = logging.getLogger("bookspilot.connectors.zoho_books")

# Books API resources proxied by the backend
_RESOURCE_INVOICES = "invoices"
_RESOURCE_CONTACTS = "contacts"
_RESOURCE_EXPENSES = "expenses"
_RESOURCE_PROFIT_AND_LOSS = "reports/profitandloss"


class ZohoBooksClient(AccountingAPIClient):
    """Books API access for one configured application.

    Usage::

        config = BooksPilotConfig.load("bookspilot.yaml")
        client = ZohoBooksClient(config)
        data = await client.get_invoices("user-1", "org-1", limit=5)
        await client.close()
    """

    name = "zoho_books"

    def __init__(self, config: BooksPilotConfig, *, functions: FunctionsClient | None = None) -> None:
        self.config = config
        self.functions = functions or FunctionsClient(config.backend)

    async def close(self) -> None:
        await self.functions.close()

    # ------------------------------------------------------------------
    # API helpers
    # ------------------------------------------------------------------

    async def _api(
        self,
        user_id: str,
        organization_id: str,
        resource: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Proxy one Books API call through the backend."""
        body: dict[str, Any] = {
            "userId": user_id,
            "organizationId": organization_id,
            "resource": resource,
            "method": method,
        }
        if params:
            body["params"] = params
        if payload is not None:
            body["payload"] = payload

        logger.debug("%s %s (org %s)", method, resource, organization_id)
        return await self.functions.invoke(self.config.backend.api_function, body)

    @staticmethod
    def _page_params(limit: int | None) -> dict[str, Any] | None:
        return {"per_page": limit} if limit else None

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def get_invoices(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        return await self._api(
            user_id, organization_id, _RESOURCE_INVOICES, params=self._page_params(limit)
        )

    async def get_customers(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        params = {"contact_type": "customer", **(self._page_params(limit) or {})}
        return await self._api(user_id, organization_id, _RESOURCE_CONTACTS, params=params)

    async def get_expenses(
        self, user_id: str, organization_id: str, *, limit: int | None = None
    ) -> dict[str, Any]:
        return await self._api(
            user_id, organization_id, _RESOURCE_EXPENSES, params=self._page_params(limit)
        )

    async def get_profit_and_loss(self, user_id: str, organization_id: str) -> dict[str, Any]:
        return await self._api(user_id, organization_id, _RESOURCE_PROFIT_AND_LOSS)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_invoice(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._api(
            user_id, organization_id, _RESOURCE_INVOICES, method="POST", payload=payload
        )

    async def create_customer(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        payload = {"contact_type": "customer", **payload}
        return await self._api(
            user_id, organization_id, _RESOURCE_CONTACTS, method="POST", payload=payload
        )

    async def create_expense(
        self, user_id: str, organization_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._api(
            user_id, organization_id, _RESOURCE_EXPENSES, method="POST", payload=payload
        )

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def disconnect(self, user_id: str) -> None:
        """Revoke the stored tokens for ``user_id``.

        Raises:
            DisconnectError: If the backend call fails or reports failure.
        """
        try:
            data = await self.functions.invoke(
                self.config.backend.disconnect_function, {"userId": user_id}
            )
        except BackendError as e:
            raise DisconnectError(str(e)) from e
        if data.get("success") is False:
            raise DisconnectError(data.get("error") or "Disconnect rejected by provider")
        logger.info("Revoked Zoho Books connection for user %s", user_id)

    def build_authorization_url(self) -> str:
        return build_authorization_url(self.config)


class ZohoOAuthExchangeService(OAuthExchangeService):
    """Code exchange through the ``zoho-oauth-exchange`` function."""

    def __init__(self, config: BooksPilotConfig, *, functions: FunctionsClient | None = None) -> None:
        self.config = config
        self.functions = functions or FunctionsClient(config.backend)

    async def exchange(self, code: str, redirect_uri: str, user_id: str) -> dict[str, Any]:
        """Exchange ``code``. Transport failures raise ExchangeError."""
        try:
            return await self.functions.invoke(
                self.config.backend.exchange_function,
                {"code": code, "redirectUri": redirect_uri, "userId": user_id},
            )
        except BackendError as e:
            raise ExchangeError(str(e)) from e


class ZohoConnectionStatusService(ConnectionStatusService):
    """Connection status through the ``zoho-books-status`` function."""

    def __init__(self, config: BooksPilotConfig, *, functions: FunctionsClient | None = None) -> None:
        self.config = config
        self.functions = functions or FunctionsClient(config.backend)

    async def get_status(self, user_id: str) -> dict[str, Any]:
        try:
            return await self.functions.invoke(
                self.config.backend.status_function, {"userId": user_id}
            )
        except BackendError as e:
            raise StatusCheckError(str(e)) from e
