"""
BooksSession — top-level object for one user's Books integration session.

Wires the connection controller, the OAuth callback handler and the view
orchestrator together and applies the load trigger policy: the selected
view is (re)loaded whenever the pair (selected view, connection identity)
changes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from bookspilot.config import BooksPilotConfig
from bookspilot.connectors.base import (
    AccountingAPIClient,
    ConnectionStatusService,
    OAuthExchangeService,
)
from bookspilot.exceptions import ConfigurationError, CreateError
from bookspilot.models.session import ConnectionState, ConnectionStatus, ViewKind, ViewLoadState
from bookspilot.session.address import AddressBar, BrowserAddress
from bookspilot.session.callback import OAuthCallbackHandler, RedirectOutcome
from bookspilot.session.controller import ConnectionController
from bookspilot.session.dashboard import DashboardAggregator
from bookspilot.session.notify import LoggingNotifier, Notifier, notify_error, notify_success
from bookspilot.session.views import ViewDataOrchestrator

logger = logging.getLogger("bookspilot.session")

# View -> (client method, label) for entity creation
_CREATORS: dict[ViewKind, tuple[str, str]] = {
    ViewKind.INVOICES: ("create_invoice", "Invoice"),
    ViewKind.CUSTOMERS: ("create_customer", "Customer"),
    ViewKind.EXPENSES: ("create_expense", "Expense"),
}

_LoadKey = tuple[ViewKind, str | None, str | None]


class BooksSession:
    """One user's integration session.

    Usage::

        session = BooksSession.from_config("bookspilot.yaml", address=BrowserAddress(url))
        await session.start(user_id)
        session.select_view(ViewKind.INVOICES)
        await session.wait_idle()
        invoices = session.data(ViewKind.INVOICES)

    Only ``controller`` writes connection state and only ``views`` writes
    view state; everything else reads snapshots.
    """

    def __init__(
        self,
        config: BooksPilotConfig,
        *,
        api: AccountingAPIClient,
        exchange_service: OAuthExchangeService,
        status_service: ConnectionStatusService,
        address: AddressBar | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config
        self.api = api
        self.address = address or BrowserAddress()
        self.notifier = notifier or LoggingNotifier()

        self.controller = ConnectionController(api, status_service, notifier=self.notifier)
        self.views = ViewDataOrchestrator(
            api,
            notifier=self.notifier,
            dashboard=DashboardAggregator(api, limit=config.dashboard_limit),
        )
        self.callback = OAuthCallbackHandler(
            config,
            exchange_service,
            self.controller,
            self.address,
            notifier=self.notifier,
            on_success=self.reload,
        )

        self.user_id: str | None = None
        self.selected_view = ViewKind.DASHBOARD
        self._load_key: _LoadKey | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self.controller.add_listener(self._on_connection_change)

    @classmethod
    def from_config(
        cls,
        config_path: str | None = None,
        *,
        address: AddressBar | None = None,
        notifier: Notifier | None = None,
        **overrides: Any,
    ) -> BooksSession:
        """Create a session backed by the Zoho Books functions backend."""
        from bookspilot.connectors.functions import FunctionsClient
        from bookspilot.connectors.zoho_books import (
            ZohoBooksClient,
            ZohoConnectionStatusService,
            ZohoOAuthExchangeService,
        )

        config = BooksPilotConfig.load(config_path, **overrides)
        functions = FunctionsClient(config.backend)
        return cls(
            config,
            api=ZohoBooksClient(config, functions=functions),
            exchange_service=ZohoOAuthExchangeService(config, functions=functions),
            status_service=ZohoConnectionStatusService(config, functions=functions),
            address=address,
            notifier=notifier,
        )

    # ------------------------------------------------------------------
    # Read-only views of the session
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self.controller.state

    def view_state(self, view: ViewKind | str) -> ViewLoadState:
        return self.views.state(ViewKind(view))

    def data(self, view: ViewKind | str) -> Any:
        return self.views.data(ViewKind(view))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, user_id: str | None = None) -> RedirectOutcome:
        """Start the session on the current address.

        Handles a pending OAuth redirect, then checks the connection status
        once the user is known.
        """
        self.controller.start()
        if user_id:
            return await self.identify(user_id)
        return await self.callback.handle_redirect(self.address.url, None)

    async def identify(self, user_id: str) -> RedirectOutcome:
        """The authenticated user became known.

        Re-runs the redirect handling, so a callback deferred for lack of
        identity is completed now.
        """
        if self.user_id and self.user_id != user_id:
            raise ValueError(
                f"Session belongs to user {self.user_id}; start a new session for {user_id}"
            )
        first = self.user_id is None
        self.user_id = user_id

        outcome = await self.callback.handle_redirect(self.address.url, user_id)
        if first or self.state.status in (ConnectionStatus.UNKNOWN, ConnectionStatus.CHECKING):
            await self.controller.check_status(user_id)
        self._trigger()
        return outcome

    async def refresh_status(self) -> ConnectionState:
        """Re-read the connection status (suppressed while a callback runs)."""
        if not self.user_id:
            return self.state
        state = await self.controller.check_status(self.user_id)
        self._trigger()
        return state

    async def close(self) -> None:
        await self.wait_idle()
        await self.api.close()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def select_view(self, view: ViewKind | str) -> asyncio.Task[Any] | None:
        """Select a view. Returns the load task if a load was started."""
        self.selected_view = ViewKind(view)
        return self._trigger()

    def reload(self) -> asyncio.Task[Any] | None:
        """Drop all view data and reload the selected view in place."""
        self.views.reset()
        self._load_key = None
        return self._trigger()

    def _trigger(self) -> asyncio.Task[Any] | None:
        state = self.state
        key: _LoadKey = (self.selected_view, self.user_id, state.organization_id)
        if key == self._load_key:
            return None
        self._load_key = key
        if not self.user_id or not state.is_connected:
            return None
        logger.debug("Loading %s for organization %s", self.selected_view.value, state.organization_id)
        return self._spawn(self.views.load(self.selected_view, self.user_id, state.organization_id))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every scheduled load to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_connection_change(self, old: ConnectionState, new: ConnectionState) -> None:
        if old.is_connected and not new.is_connected:
            self.views.reset()
        elif old.is_connected and new.is_connected and old.organization_id != new.organization_id:
            self.views.reset()

    # ------------------------------------------------------------------
    # Connect / disconnect / create
    # ------------------------------------------------------------------

    def connect_url(self) -> str | None:
        """Provider login URL, or None (inert connect action) when unconfigured."""
        try:
            return self.controller.build_authorization_url()
        except ConfigurationError as e:
            logger.error("Error generating OAuth URL: %s", e)
            notify_error(self.notifier, e)
            return None

    async def disconnect(self) -> bool:
        if not self.user_id:
            return False
        return await self.controller.disconnect(self.user_id)

    async def create(self, view: ViewKind | str, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Create an entity in ``view`` and reload that view.

        Returns the backend reply, or None if not connected or on failure.
        """
        view = ViewKind(view)
        if view not in _CREATORS:
            raise ValueError(f"Cannot create entities in the {view.value} view")
        state = self.state
        if not self.user_id or not state.organization_id:
            return None

        method, label = _CREATORS[view]
        try:
            reply = await getattr(self.api, method)(self.user_id, state.organization_id, payload)
        except Exception as e:
            logger.error("Error creating %s: %s", label.lower(), e)
            notify_error(self.notifier, CreateError(str(e)), f"Failed to create {label.lower()}")
            return None

        notify_success(self.notifier, f"{label} created successfully")
        self._spawn(self.views.load(view, self.user_id, state.organization_id))
        return reply
