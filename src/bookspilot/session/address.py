"""Address bar abstraction — the visible URL the redirect arrives on."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger("bookspilot.session.address")


class AddressBar(Protocol):
    @property
    def url(self) -> str: ...

    def replace(self, url: str) -> None:
        """Replace the visible address without adding a history entry."""
        ...


class BrowserAddress:
    """In-memory address bar.

    Keeps the replacement history so hosts can sync it back to a real
    browser (``history.replaceState``) after each transition.
    """

    def __init__(self, url: str = "") -> None:
        self._url = url
        self.history: list[str] = []

    @property
    def url(self) -> str:
        return self._url

    def replace(self, url: str) -> None:
        if url == self._url:
            return
        logger.debug("Address replaced: %s", url)
        self.history.append(self._url)
        self._url = url
