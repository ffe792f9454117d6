"""Session layer — connection state machine and per-view data loading."""
from bookspilot.session.address import AddressBar, BrowserAddress
from bookspilot.session.books_session import BooksSession
from bookspilot.session.callback import OAuthCallbackHandler, RedirectKind, RedirectOutcome
from bookspilot.session.controller import ConnectionController
from bookspilot.session.dashboard import DashboardAggregator
from bookspilot.session.notify import (
    LoggingNotifier,
    Notification,
    NotificationLevel,
    Notifier,
    RecordingNotifier,
)
from bookspilot.session.views import VIEW_SOURCES, ViewDataOrchestrator

__all__ = [
    "AddressBar",
    "BooksSession",
    "BrowserAddress",
    "ConnectionController",
    "DashboardAggregator",
    "LoggingNotifier",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "OAuthCallbackHandler",
    "RecordingNotifier",
    "RedirectKind",
    "RedirectOutcome",
    "VIEW_SOURCES",
    "ViewDataOrchestrator",
]
