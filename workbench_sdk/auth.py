"""Session token handling for the Workbench SDK."""

from __future__ import annotations

from typing import Dict, Optional

from workbench_sdk.errors import AuthError

# Only internal (username/password) accounts can obtain an id token.
AUTHENTICATION_PROVIDER = "internal"

JSON_HEADERS: Dict[str, str] = {"Content-Type": "application/json"}


def build_login_body(username: str, password: str) -> Dict[str, str]:
    """Body for POST /api/authentication/id-tokens."""
    return {
        "username": username,
        "password": password,
        "authenticationProvider": AUTHENTICATION_PROVIDER,
    }


def build_auth_headers(token: Optional[str]) -> Dict[str, str]:
    """Return the headers for an authenticated request.

    The token is sent verbatim in ``Authorization`` (no ``Bearer`` prefix).
    Raises AuthError if no token is held yet.
    """
    if not token:
        raise AuthError(None, "Not authenticated: call login() first")
    headers = dict(JSON_HEADERS)
    headers["Authorization"] = token
    return headers
