"""
Accounting entity models — invoices, customers, expenses, P&L snapshot.

The Books API returns loosely typed JSON. Each model has a ``from_api``
constructor that maps the wire keys onto our field names and tolerates
missing values.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _to_decimal(value: Any) -> Decimal:
    """Coerce a wire amount to Decimal (None or garbage -> 0)."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _to_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class InvoiceStatusClass(str, Enum):
    """Coarse invoice status buckets used for display."""

    PAID = "paid"
    OVERDUE = "overdue"
    OTHER = "other"


class Invoice(BaseModel):
    """A sales invoice."""

    id: str
    number: str = ""
    customer_name: str = ""
    total: Decimal = Decimal("0")
    status: str = ""  # free form: draft, sent, paid, overdue, void...
    issue_date: date | None = None
    due_date: date | None = None

    @property
    def status_class(self) -> InvoiceStatusClass:
        status = self.status.lower()
        if status == "paid":
            return InvoiceStatusClass.PAID
        if status == "overdue":
            return InvoiceStatusClass.OVERDUE
        return InvoiceStatusClass.OTHER

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Invoice:
        return cls(
            id=str(data.get("invoice_id", "")),
            number=data.get("invoice_number") or "",
            customer_name=data.get("customer_name") or "",
            total=_to_decimal(data.get("total")),
            status=data.get("status") or "",
            issue_date=_to_date(data.get("date") or data.get("invoice_date")),
            due_date=_to_date(data.get("due_date")),
        )


class Customer(BaseModel):
    """A customer contact."""

    id: str
    display_name: str = ""
    email: str | None = None
    company_name: str | None = None
    phone: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Customer:
        return cls(
            id=str(data.get("contact_id", "")),
            display_name=data.get("contact_name") or "",
            email=data.get("email") or None,
            company_name=data.get("company_name") or None,
            phone=data.get("phone") or None,
        )


class Expense(BaseModel):
    """A recorded expense."""

    id: str
    vendor_name: str = ""
    amount: Decimal = Decimal("0")
    status: str = ""
    expense_date: date | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Expense:
        amount = data.get("amount") if data.get("amount") is not None else data.get("total")
        return cls(
            id=str(data.get("expense_id", "")),
            vendor_name=data.get("vendor_name") or "",
            amount=_to_decimal(amount),
            status=data.get("status") or "",
            expense_date=_to_date(data.get("date") or data.get("expense_date")),
        )


class ReportSnapshot(BaseModel):
    """Profit & loss / balance summary. Absent figures default to zero."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    total_assets: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> ReportSnapshot:
        data = data or {}
        return cls(**{name: _to_decimal(data.get(name)) for name in cls.model_fields})


class DashboardSummary(BaseModel):
    """Bounded slices of the main collections shown on the dashboard."""

    invoices: tuple[Invoice, ...] = Field(default_factory=tuple)
    customers: tuple[Customer, ...] = Field(default_factory=tuple)
    expenses: tuple[Expense, ...] = Field(default_factory=tuple)

    @property
    def invoice_count(self) -> int:
        return len(self.invoices)

    @property
    def customer_count(self) -> int:
        return len(self.customers)

    @property
    def expense_total(self) -> Decimal:
        return sum((e.amount for e in self.expenses), Decimal("0"))
