"""
BooksPilot exceptions.

Every failure the session layer can report maps to one of these classes.
They are raised by the clients and caught at the session boundary, where
they become either a log line or a user-facing notification.
"""

from __future__ import annotations


class BooksPilotError(Exception):
    """Base exception for BooksPilot errors."""

    pass


class ConfigurationError(BooksPilotError):
    """Raised when OAuth application settings are missing or invalid."""

    pass


class AuthorizationError(BooksPilotError):
    """Raised when the user or the provider declined the authorization."""

    pass


class ExchangeError(BooksPilotError):
    """Raised when exchanging an authorization code fails."""

    pass


class StatusCheckError(BooksPilotError):
    """Raised when the connection status could not be read."""

    pass


class LoadError(BooksPilotError):
    """Raised when a view's collection could not be loaded."""

    pass


class DisconnectError(BooksPilotError):
    """Raised when revoking the remote connection fails."""

    pass


class BackendError(BooksPilotError):
    """Raised when a backend function call fails at the transport or HTTP level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CreateError(BooksPilotError):
    """Raised when creating an entity fails."""

    pass
