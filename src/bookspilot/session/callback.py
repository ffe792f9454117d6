"""
OAuth callback handler — turns the provider redirect into a connection.

The redirect handling may run more than once for the same address (page
initialization running twice, identity arriving late). The handler claims
each authorization code on the controller's one-shot callback token, so a
code is exchanged at most once per session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable
from urllib.parse import urlparse

from bookspilot.auth.oauth2 import parse_redirect, strip_redirect_params
from bookspilot.config import BooksPilotConfig
from bookspilot.connectors.base import OAuthExchangeService
from bookspilot.exceptions import AuthorizationError, BooksPilotError, ExchangeError, LoadError
from bookspilot.session.address import AddressBar
from bookspilot.session.controller import ConnectionController
from bookspilot.session.notify import LoggingNotifier, Notifier, notify_error, notify_success

logger = logging.getLogger("bookspilot.session.callback")


class RedirectKind(str, Enum):
    NOOP = "noop"
    DEFERRED = "deferred"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class RedirectOutcome:
    """Result of handling one redirect."""

    kind: RedirectKind
    reason: str | None = None

    @classmethod
    def noop(cls) -> RedirectOutcome:
        return cls(RedirectKind.NOOP)

    @classmethod
    def deferred(cls) -> RedirectOutcome:
        return cls(RedirectKind.DEFERRED)

    @classmethod
    def error(cls, reason: str) -> RedirectOutcome:
        return cls(RedirectKind.ERROR, reason)

    @classmethod
    def success(cls) -> RedirectOutcome:
        return cls(RedirectKind.SUCCESS)


class OAuthCallbackHandler:
    """Resolves an incoming redirect into noop, deferred, error or success."""

    def __init__(
        self,
        config: BooksPilotConfig,
        exchange_service: OAuthExchangeService,
        controller: ConnectionController,
        address: AddressBar,
        *,
        notifier: Notifier | None = None,
        on_success: Callable[[], Any] | None = None,
    ) -> None:
        self.config = config
        self.exchange_service = exchange_service
        self.controller = controller
        self.address = address
        self.notifier = notifier or LoggingNotifier()
        self.on_success = on_success

    def _strip_address(self) -> None:
        self.address.replace(strip_redirect_params(self.address.url))

    def _redirect_uri(self, url: str) -> str:
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.scheme and parsed.netloc else None
        return self.config.resolve_redirect_uri(origin)

    async def handle_redirect(self, url: str, user_id: str | None) -> RedirectOutcome:
        params = parse_redirect(url)
        if not params.is_callback:
            return RedirectOutcome.noop()

        logger.info(
            "OAuth callback detected (code=%s, error=%s, user_authenticated=%s)",
            bool(params.code), params.error, bool(user_id),
        )

        if params.error:
            self._strip_address()
            detail = params.error_description or params.error
            notify_error(
                self.notifier,
                AuthorizationError(detail),
                f"Authorization failed: {params.error}",
            )
            self.controller.reject_callback()
            return RedirectOutcome.error(params.error)

        if not user_id:
            logger.warning("User not authenticated yet, deferring OAuth callback")
            return RedirectOutcome.deferred()

        code = params.code or ""
        if not self.controller.begin_callback(code):
            logger.debug("Authorization code not claimed, skipping exchange")
            return RedirectOutcome.noop()

        try:
            outcome = await self._exchange(url, code, user_id)
        finally:
            self._strip_address()
            self.controller.end_callback()

        if outcome.kind == RedirectKind.SUCCESS and self.on_success is not None:
            try:
                self.on_success()
            except Exception as e:
                logger.error("Reload after connecting failed: %s", e)
                notify_error(self.notifier, LoadError(str(e)), "Failed to load Zoho Books data")
        return outcome

    def _failed(self, reason: str) -> RedirectOutcome:
        logger.error("Token exchange failed: %s", reason)
        notify_error(self.notifier, ExchangeError(reason), f"Connection failed: {reason}")
        return RedirectOutcome.error(reason)

    async def _exchange(self, url: str, code: str, user_id: str) -> RedirectOutcome:
        try:
            redirect_uri = self._redirect_uri(url)
            logger.info("Exchanging OAuth code via backend")
            reply = await self.exchange_service.exchange(code, redirect_uri, user_id)
        except Exception as e:
            error = e if isinstance(e, BooksPilotError) else ExchangeError(str(e))
            logger.error("OAuth exchange error: %s", e)
            notify_error(self.notifier, error, f"Failed to connect Zoho Books: {error}")
            return RedirectOutcome.error(str(error))

        if not isinstance(reply, dict):
            return self._failed(f"unexpected exchange reply ({type(reply).__name__})")
        if not reply.get("success"):
            return self._failed(str(reply.get("error") or "Unknown error"))

        organization_id = reply.get("organization_id")
        state = await self.controller.adopt_connection(
            user_id, str(organization_id) if organization_id else None
        )
        if not state.is_connected:
            return self._failed("no Zoho Books organization is connected")

        logger.info("OAuth callback processed successfully")
        notify_success(self.notifier, "Zoho Books connected successfully!")
        return RedirectOutcome.success()
