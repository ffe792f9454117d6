"""
BooksPilot — Zoho Books integration sessions.

Connect. Sync. Stay consistent.
OAuth connection lifecycle and per-view data sync for accounting dashboards.
"""

__version__ = "0.1.0"
__all__ = ["BooksSession"]

from bookspilot.session.books_session import BooksSession  # noqa: E402
