"""
Session state models — connection state and per-view load state.

All of these are frozen snapshots. Owners replace them on every transition
and hand the current snapshot to readers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConnectionStatus(str, Enum):
    """Lifecycle states of the Books connection."""

    UNKNOWN = "unknown"
    CHECKING = "checking"
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the connection. ``organization_id`` is set iff connected."""

    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    organization_id: str | None = None
    callback_in_flight: bool = False

    def __post_init__(self) -> None:
        connected = self.status == ConnectionStatus.CONNECTED
        if connected != bool(self.organization_id):
            raise ValueError(
                f"organization_id must be present iff connected "
                f"(status={self.status.value}, organization_id={self.organization_id!r})"
            )

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED


@dataclass
class CallbackToken:
    """One-shot marker for the authorization code being (or already) exchanged.

    A code can be claimed once per session. Re-running the redirect handling
    for the same address finds the claim and does nothing.
    """

    code: str | None = None
    completed: bool = False

    def claim(self, code: str) -> bool:
        """Claim ``code``. Returns False if it was already claimed."""
        if self.code == code:
            return False
        self.code = code
        self.completed = False
        return True

    @property
    def in_flight(self) -> bool:
        return self.code is not None and not self.completed


class ViewKind(str, Enum):
    """Selectable data contexts."""

    DASHBOARD = "dashboard"
    INVOICES = "invoices"
    CUSTOMERS = "customers"
    EXPENSES = "expenses"
    REPORTS = "reports"


@dataclass(frozen=True)
class ViewLoadState:
    """Load state of one view."""

    view: ViewKind
    loading: bool = False
    data: Any = None
    generation: int = 0
    error: str | None = field(default=None, compare=False)
