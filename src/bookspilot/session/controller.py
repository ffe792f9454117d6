"""
Connection controller — sole owner of the connection state.

State machine::

    unknown ──start──▶ checking ──status──▶ connected | disconnected
    connected ──disconnect / callback error──▶ disconnected
    disconnected ──callback success──▶ connected

A bare status check never connects a disconnected session; only a
successful code exchange does. While a callback is in flight, status checks
are suppressed: the status service still reports the previous connection
until the exchange has stored the new one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable

from bookspilot.connectors.base import AccountingAPIClient, ConnectionStatusService
from bookspilot.exceptions import DisconnectError
from bookspilot.models.session import CallbackToken, ConnectionState, ConnectionStatus
from bookspilot.session.notify import LoggingNotifier, Notifier, notify_error, notify_success

logger = logging.getLogger("bookspilot.session.controller")

StateListener = Callable[[ConnectionState, ConnectionState], None]

_DISCONNECTED = ConnectionState(status=ConnectionStatus.DISCONNECTED)


class ConnectionController:
    """Drives connection status checks, connect and disconnect.

    Other components read ``state`` (a frozen snapshot) and subscribe with
    ``add_listener``; none of them write the state directly.
    """

    def __init__(
        self,
        api: AccountingAPIClient,
        status_service: ConnectionStatusService,
        *,
        notifier: Notifier | None = None,
    ) -> None:
        self.api = api
        self.status_service = status_service
        self.notifier = notifier or LoggingNotifier()
        self.callback_token = CallbackToken()
        self._state = ConnectionState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to transitions. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _transition(self, **changes: Any) -> ConnectionState:
        old = self._state
        new = replace(old, **changes)
        if new == old:
            return old
        self._state = new
        if old.status != new.status:
            logger.info("Connection %s -> %s", old.status.value, new.status.value)
        for listener in list(self._listeners):
            listener(old, new)
        return new

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Enter ``checking`` at session start."""
        if self._state.status == ConnectionStatus.UNKNOWN:
            self._transition(status=ConnectionStatus.CHECKING)

    async def _read_status(self, user_id: str) -> ConnectionState:
        """Query the status service. Any failure reads as disconnected."""
        try:
            reply = await self.status_service.get_status(user_id)
        except Exception as e:
            logger.warning("Status check failed for user %s, treating as disconnected: %s", user_id, e)
            return _DISCONNECTED

        organization_id = reply.get("organization_id")
        if reply.get("is_connected") and organization_id:
            return ConnectionState(
                status=ConnectionStatus.CONNECTED, organization_id=str(organization_id)
            )
        if reply.get("is_connected"):
            logger.warning("Status service reports a connection without an organization id")
        return _DISCONNECTED

    async def check_status(self, user_id: str) -> ConnectionState:
        """Refresh the connection status and return the resulting state."""
        if self._state.callback_in_flight:
            logger.debug("Status check suppressed: OAuth callback in flight")
            return self._state

        self.start()
        observed = await self._read_status(user_id)

        current = self._state
        if current.callback_in_flight:
            logger.debug("Discarding status read that overlapped an OAuth callback")
            return current

        if current.status == ConnectionStatus.CHECKING:
            return self._transition(
                status=observed.status, organization_id=observed.organization_id
            )
        if current.status == ConnectionStatus.CONNECTED and observed.is_connected:
            return self._transition(organization_id=observed.organization_id)
        if current.status == ConnectionStatus.DISCONNECTED and observed.is_connected:
            logger.info("Ignoring connected status while disconnected; reconnect through OAuth")
        return current

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    def build_authorization_url(self) -> str:
        """Provider login URL. Raises ConfigurationError when unconfigured."""
        return self.api.build_authorization_url()

    async def disconnect(self, user_id: str) -> bool:
        """Revoke the connection. Returns False (state unchanged) on failure."""
        try:
            await self.api.disconnect(user_id)
        except Exception as e:
            error = e if isinstance(e, DisconnectError) else DisconnectError(str(e))
            logger.error("Error disconnecting user %s: %s", user_id, e)
            notify_error(self.notifier, error, "Failed to disconnect")
            return False

        self._transition(status=ConnectionStatus.DISCONNECTED, organization_id=None)
        notify_success(self.notifier, "Zoho Books disconnected")
        return True

    # ------------------------------------------------------------------
    # Callback transitions (driven by OAuthCallbackHandler)
    # ------------------------------------------------------------------

    def begin_callback(self, code: str) -> bool:
        """Claim ``code`` and mark a callback in flight.

        Returns False when the code was already claimed in this session, or
        while the exchange of another code is still running.
        """
        if self.callback_token.in_flight:
            logger.debug("Another authorization code is being exchanged")
            return False
        if not self.callback_token.claim(code):
            return False
        self._transition(callback_in_flight=True)
        return True

    def end_callback(self) -> None:
        self.callback_token.completed = True
        self._transition(callback_in_flight=False)

    async def adopt_connection(
        self, user_id: str, organization_id: str | None = None
    ) -> ConnectionState:
        """Enter ``connected`` after a successful exchange.

        When the exchange reply carried no organization id, it is read from
        the status service as part of this transition.
        """
        if organization_id:
            return self._transition(
                status=ConnectionStatus.CONNECTED, organization_id=organization_id
            )

        self._transition(status=ConnectionStatus.CHECKING, organization_id=None)
        observed = await self._read_status(user_id)
        if not observed.is_connected:
            logger.warning("Exchange succeeded but no organization is connected for user %s", user_id)
        return self._transition(status=observed.status, organization_id=observed.organization_id)

    def reject_callback(self) -> ConnectionState:
        """The provider or the user declined: drop to ``disconnected``."""
        return self._transition(status=ConnectionStatus.DISCONNECTED, organization_id=None)
