"""
BooksPilot configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from bookspilot.exceptions import ConfigurationError

# Environment variable -> (section, field)
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "ZOHO_CLIENT_ID": ("oauth", "client_id"),
    "ZOHO_REDIRECT_URI": ("oauth", "redirect_uri"),
    "ZOHO_ACCOUNTS_URL": ("oauth", "accounts_url"),
    "BOOKSPILOT_FUNCTIONS_URL": ("backend", "functions_url"),
    "BOOKSPILOT_API_KEY": ("backend", "api_key"),
    "BOOKSPILOT_APP_ORIGIN": (None, "app_origin"),
}


class OAuthAppConfig(BaseModel):
    """OAuth application registered with Zoho."""

    client_id: str | None = Field(default=None, description="Zoho OAuth client id")
    scopes: list[str] = Field(default_factory=lambda: ["ZohoBooks.fullaccess.all"])
    accounts_url: str = Field(default="https://accounts.zoho.com")
    redirect_uri: str | None = Field(
        default=None,
        description="Redirect URI; derived from app_origin + callback_path when unset",
    )
    callback_path: str = Field(default="/books")
    access_type: str = Field(default="offline")
    prompt: str = Field(default="consent")


class BackendConfig(BaseModel):
    """Serverless functions that hold the OAuth tokens and proxy the Books API."""

    functions_url: str = Field(default="http://localhost:54321/functions/v1")
    api_key: str | None = Field(default=None, description="Anon key sent with each call")
    timeout: float = Field(default=30.0, gt=0)
    exchange_function: str = "zoho-oauth-exchange"
    status_function: str = "zoho-books-status"
    api_function: str = "zoho-books-api"
    disconnect_function: str = "zoho-books-disconnect"


class BooksPilotConfig(BaseModel):
    """Root configuration for BooksPilot."""

    oauth: OAuthAppConfig = Field(default_factory=OAuthAppConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)

    app_origin: str | None = Field(default=None, description="Origin the app is served from")
    dashboard_limit: int = Field(default=5, ge=1)

    def resolve_redirect_uri(self, origin: str | None = None) -> str:
        """Return the configured redirect URI, or derive it from an origin.

        ``app_origin`` wins over ``origin`` (the origin of the current page).

        Raises:
            ConfigurationError: If no redirect URI can be resolved.
        """
        if self.oauth.redirect_uri:
            return self.oauth.redirect_uri
        base = self.app_origin or origin
        if not base:
            raise ConfigurationError(
                "Zoho redirect URI is not configured. Set ZOHO_REDIRECT_URI "
                "or BOOKSPILOT_APP_ORIGIN."
            )
        return f"{base.rstrip('/')}{self.oauth.callback_path}"

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> BooksPilotConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        for env_name, (section, key) in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if not value:
                continue
            if section is None:
                data[key] = value
            else:
                block = data.get(section) or {}
                block[key] = value
                data[section] = block

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
