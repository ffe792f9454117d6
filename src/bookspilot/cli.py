"""
BooksPilot CLI — command-line interface.

Usage:
    bookspilot connect-url --config bookspilot.yaml
    bookspilot callback "https://app.example.com/books?code=..." --user u-123
    bookspilot show invoices --user u-123
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bookspilot import __version__

app = typer.Typer(
    name="bookspilot",
    help="📚 BooksPilot — Zoho Books integration sessions",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

_STATUS_COLORS = {
    "paid": "green",
    "overdue": "red",
    "other": "yellow",
}

_CONFIG_OPTION = typer.Option(
    "bookspilot.yaml",
    "--config",
    "-c",
    help="Path to config file",
)
_USER_OPTION = typer.Option(..., "--user", "-u", help="Authenticated user id")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]BooksPilot[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """📚 BooksPilot — connect Zoho Books and browse its data."""


def _session(config: str, url: str = ""):  # noqa: ANN202
    from bookspilot.session import BooksSession, BrowserAddress, RecordingNotifier

    config_path = config if Path(config).exists() else None
    notifier = RecordingNotifier()
    session = BooksSession.from_config(
        config_path, address=BrowserAddress(url), notifier=notifier
    )
    return session, notifier


def _print_notifications(notifier) -> None:  # noqa: ANN001
    from bookspilot.session import NotificationLevel

    for n in notifier.notifications:
        color = "red" if n.level == NotificationLevel.ERROR else "green"
        console.print(f"[{color}]•[/{color}] {n.message}")


@app.command("connect-url")
def connect_url(config: str = _CONFIG_OPTION) -> None:
    """Print the Zoho authorization URL."""
    session, notifier = _session(config)
    url = session.connect_url()
    _print_notifications(notifier)
    if url is None:
        raise typer.Exit(1)
    console.print(url, soft_wrap=True)


@app.command()
def status(config: str = _CONFIG_OPTION, user: str = _USER_OPTION) -> None:
    """Show the connection status for a user."""
    session, notifier = _session(config)

    async def _run():  # noqa: ANN202
        try:
            await session.start(user)
            return session.state
        finally:
            await session.close()

    state = asyncio.run(_run())
    _print_notifications(notifier)
    if state.is_connected:
        console.print(f"[green]✓[/green] Connected to organization [bold]{state.organization_id}[/bold]")
    else:
        console.print(f"[yellow]○[/yellow] {state.status.value.capitalize()}")


@app.command()
def callback(
    url: str = typer.Argument(..., help="Redirect address returned by Zoho"),
    config: str = _CONFIG_OPTION,
    user: str = _USER_OPTION,
) -> None:
    """Complete an OAuth redirect (exchange the authorization code)."""
    session, notifier = _session(config, url)

    async def _run():  # noqa: ANN202
        try:
            return await session.start(user)
        finally:
            await session.close()

    with console.status("[bold green]Connecting to Zoho Books...[/bold green]"):
        outcome = asyncio.run(_run())

    _print_notifications(notifier)
    console.print(f"Outcome: [bold]{outcome.kind.value}[/bold]")
    console.print(f"Address: {session.address.url}")
    if outcome.reason:
        raise typer.Exit(1)


@app.command()
def show(
    view: str = typer.Argument("dashboard", help="dashboard, invoices, customers, expenses, reports"),
    config: str = _CONFIG_OPTION,
    user: str = _USER_OPTION,
) -> None:
    """Load a view and print it."""
    from bookspilot.models.session import ViewKind

    try:
        view_kind = ViewKind(view.lower())
    except ValueError:
        console.print(f"[red]Error: unknown view '{view}'[/red]")
        raise typer.Exit(1)

    session, notifier = _session(config)

    async def _run():  # noqa: ANN202
        try:
            await session.start(user)
            session.select_view(view_kind)
            await session.wait_idle()
        finally:
            await session.close()

    with console.status(f"[bold green]Loading {view_kind.value}...[/bold green]"):
        asyncio.run(_run())

    _print_notifications(notifier)
    if not session.state.is_connected:
        console.print("[yellow]Not connected.[/yellow] Run [bold]bookspilot connect-url[/bold] first.")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold blue]📚 Books[/bold blue] — {view_kind.value.capitalize()}",
        subtitle=f"org {session.state.organization_id}",
    ))
    _display(view_kind, session.data(view_kind))


@app.command()
def disconnect(config: str = _CONFIG_OPTION, user: str = _USER_OPTION) -> None:
    """Revoke the Zoho Books connection."""
    session, notifier = _session(config)

    async def _run() -> bool:
        try:
            await session.start(user)
            if not session.state.is_connected:
                return False
            return await session.disconnect()
        finally:
            await session.close()

    ok = asyncio.run(_run())
    _print_notifications(notifier)
    if not ok:
        raise typer.Exit(1)


def _display(view, data) -> None:  # noqa: ANN001
    """Render a view's data in the terminal."""
    from bookspilot.models.session import ViewKind

    if view == ViewKind.DASHBOARD:
        stats = Table(title="Quick Stats", show_lines=True)
        stats.add_column("Metric", style="bold")
        stats.add_column("Value", justify="right")
        stats.add_row("Recent Invoices", str(data.invoice_count))
        stats.add_row("Customers", str(data.customer_count))
        stats.add_row("Recent Expenses", f"${data.expense_total:,.2f}")
        console.print(stats)
        _display(ViewKind.INVOICES, data.invoices)
        _display(ViewKind.EXPENSES, data.expenses)
        return

    if view == ViewKind.REPORTS:
        table = Table(title="Profit & Loss", show_lines=True)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("Total Income", f"${data.total_income:,.2f}")
        table.add_row("Total Expenses", f"${data.total_expenses:,.2f}")
        table.add_row("Net Profit", f"${data.net_profit:,.2f}")
        table.add_row("Total Assets", f"${data.total_assets:,.2f}")
        table.add_row("Total Liabilities", f"${data.total_liabilities:,.2f}")
        console.print(table)
        return

    table = Table(title=view.value.capitalize())
    if view == ViewKind.INVOICES:
        for col in ("Number", "Customer", "Total", "Status", "Due"):
            table.add_column(col)
        for inv in data:
            color = _STATUS_COLORS[inv.status_class.value]
            table.add_row(
                inv.number, inv.customer_name, f"${inv.total:,.2f}",
                f"[{color}]{inv.status}[/{color}]", str(inv.due_date or ""),
            )
    elif view == ViewKind.CUSTOMERS:
        for col in ("Name", "Company", "Email", "Phone"):
            table.add_column(col)
        for c in data:
            table.add_row(c.display_name, c.company_name or "", c.email or "", c.phone or "")
    elif view == ViewKind.EXPENSES:
        for col in ("Vendor", "Amount", "Status", "Date"):
            table.add_column(col)
        for e in data:
            table.add_row(e.vendor_name, f"${e.amount:,.2f}", e.status, str(e.expense_date or ""))
    console.print(table)


if __name__ == "__main__":
    app()
