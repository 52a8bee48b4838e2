"""Credential Extraction — find the session token in cookies or headers.

Invariants:
    - Cookie names are tried in the configured order; first non-empty match wins
    - "Authorization: Bearer <token>" is only consulted when no cookie matched
    - Signed cookie values look like "<token>.<base64 HMAC-SHA256 of token>"
    - With a secret configured, a bad or missing signature yields None (anonymous)
    - Without a secret, the token part before the signature is returned as-is
"""

import base64
import hashlib
import hmac
from typing import Mapping
from urllib.parse import unquote

SESSION_COOKIE_NAMES: tuple[str, ...] = (
    "ladtc.session_token",
    "better-auth.session_token",
)


def extract_credential(
    cookies: Mapping[str, str],
    headers: Mapping[str, str],
    cookie_names: tuple[str, ...] = SESSION_COOKIE_NAMES,
) -> str | None:
    """Raw credential from the request transport, or None."""
    for name in cookie_names:
        value = cookies.get(name)
        if value:
            return unquote(value)
    auth_header = headers.get("authorization") or ""
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def _sign(token: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), token.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def sign_token(token: str, secret: str) -> str:
    """Signed cookie value for a token (used by tests and tooling)."""
    return f"{token}.{_sign(token, secret)}"


def unsign_token(raw: str, secret: str | None = None) -> str | None:
    """Token part of a (possibly signed) credential."""
    token, dot, signature = raw.partition(".")
    if not token:
        return None
    if not secret:
        return token
    if not dot or not hmac.compare_digest(signature, _sign(token, secret)):
        return None
    return token
