"""Data models — accounting entities and session state."""

from bookspilot.models.entities import (
    Customer,
    DashboardSummary,
    Expense,
    Invoice,
    InvoiceStatusClass,
    ReportSnapshot,
)
from bookspilot.models.session import (
    CallbackToken,
    ConnectionState,
    ConnectionStatus,
    ViewKind,
    ViewLoadState,
)

__all__ = [
    "CallbackToken",
    "ConnectionState",
    "ConnectionStatus",
    "Customer",
    "DashboardSummary",
    "Expense",
    "Invoice",
    "InvoiceStatusClass",
    "ReportSnapshot",
    "ViewKind",
    "ViewLoadState",
]
