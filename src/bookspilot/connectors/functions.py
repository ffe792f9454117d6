"""
Functions backend client — invokes the serverless functions that hold the
Zoho tokens.

Every call is ``POST {functions_url}/{name}`` with a JSON body. The backend
authenticates the caller with the project API key and answers with JSON.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from bookspilot.config import BackendConfig
from bookspilot.exceptions import BackendError

logger = logging.getLogger("bookspilot.connectors.functions")


class FunctionsClient:
    """Thin async client for the functions backend.

    Usage::

        client = FunctionsClient(config.backend)
        data = await client.invoke("zoho-books-status", {"userId": "u-1"})
        await client.close()
    """

    def __init__(self, config: BackendConfig, *, http: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._http = http

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable httpx client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["apikey"] = self.config.api_key
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def invoke(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """Invoke a backend function and return its JSON reply.

        Raises:
            BackendError: On transport failure, a non-2xx status, or a
                reply that is not a JSON object.
        """
        client = await self._get_client()
        url = f"{self.config.functions_url.rstrip('/')}/{name}"

        try:
            resp = await client.post(url, json=body, headers=self._headers())

            # Handle 429 rate limiting
            if resp.status_code == 429:
                retry_after = int(resp.headers.get("Retry-After", "5"))
                logger.warning("Function %s rate limited, waiting %ds", name, retry_after)
                await asyncio.sleep(retry_after)
                resp = await client.post(url, json=body, headers=self._headers())

            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            raise BackendError(
                f"Function {name} failed with HTTP {e.response.status_code}: {detail}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Function {name} unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError(f"Function {name} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise BackendError(f"Function {name} returned {type(data).__name__}, expected object")
        return data


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data)
    return str(data)
