"""
OAuth2 helpers — authorization URL building and redirect parsing.

Zoho sends the user back to the redirect URI with either ``code`` (plus
``location`` and ``accounts-server`` for multi-DC accounts) or ``error``.
Token storage and refresh happen server-side, so this module only deals
with the browser-visible half of the flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bookspilot.config import BooksPilotConfig
from bookspilot.exceptions import ConfigurationError

logger = logging.getLogger("bookspilot.auth.oauth2")

_AUTHORIZE_PATH = "/oauth/v2/auth"

# Query parameters the provider may append to the redirect URI
REDIRECT_PARAMS: frozenset[str] = frozenset({
    "code",
    "error",
    "error_description",
    "state",
    "location",
    "accounts-server",
})


@dataclass(frozen=True)
class RedirectParams:
    """OAuth parameters found on an incoming address."""

    code: str | None = None
    error: str | None = None
    error_description: str | None = None
    state: str | None = None
    location: str | None = None
    accounts_server: str | None = None

    @property
    def is_callback(self) -> bool:
        """True when the address carries a code or an error."""
        return bool(self.code or self.error)


def parse_redirect(url: str) -> RedirectParams:
    """Extract OAuth callback parameters from an address."""
    params = dict(parse_qsl(urlparse(url).query, keep_blank_values=False))
    return RedirectParams(
        code=params.get("code"),
        error=params.get("error"),
        error_description=params.get("error_description"),
        state=params.get("state"),
        location=params.get("location"),
        accounts_server=params.get("accounts-server"),
    )


def strip_redirect_params(url: str) -> str:
    """Return ``url`` without any OAuth callback parameters.

    Unrelated query parameters and the fragment are kept.
    """
    parsed = urlparse(url)
    kept = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k not in REDIRECT_PARAMS]
    return urlunparse(parsed._replace(query=urlencode(kept)))


def build_authorization_url(config: BooksPilotConfig) -> str:
    """Build the Zoho authorization URL for the OAuth2 login flow.

    Deterministic for a given configuration.

    Raises:
        ConfigurationError: If the client id or redirect URI is missing.
    """
    oauth = config.oauth
    if not oauth.client_id:
        raise ConfigurationError(
            "Zoho client id is not configured. Set ZOHO_CLIENT_ID."
        )
    if not oauth.scopes:
        raise ConfigurationError("No Zoho OAuth scopes configured.")

    params: dict[str, str] = {
        "scope": ",".join(oauth.scopes),
        "client_id": oauth.client_id,
        "response_type": "code",
        "redirect_uri": config.resolve_redirect_uri(),
        "access_type": oauth.access_type,
    }
    if oauth.prompt:
        params["prompt"] = oauth.prompt

    return f"{oauth.accounts_url.rstrip('/')}{_AUTHORIZE_PATH}?{urlencode(params)}"
