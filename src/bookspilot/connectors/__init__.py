"""Connectors package — remote collaborators of the session layer."""
from bookspilot.connectors.base import (
    AccountingAPIClient,
    ConnectionStatusService,
    OAuthExchangeService,
)
from bookspilot.connectors.functions import FunctionsClient
from bookspilot.connectors.zoho_books import (
    ZohoBooksClient,
    ZohoConnectionStatusService,
    ZohoOAuthExchangeService,
)

__all__ = [
    "AccountingAPIClient",
    "ConnectionStatusService",
    "FunctionsClient",
    "OAuthExchangeService",
    "ZohoBooksClient",
    "ZohoConnectionStatusService",
    "ZohoOAuthExchangeService",
]
