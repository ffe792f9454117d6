"""
BooksPilot authorization helpers.

Builds the provider authorization URL and parses the redirect that comes
back from it.
"""

from bookspilot.auth.oauth2 import (
    REDIRECT_PARAMS,
    RedirectParams,
    build_authorization_url,
    parse_redirect,
    strip_redirect_params,
)

__all__ = [
    "REDIRECT_PARAMS",
    "RedirectParams",
    "build_authorization_url",
    "parse_redirect",
    "strip_redirect_params",
]
