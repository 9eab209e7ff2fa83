"""Cookie utilities for the HttpOnly refresh-token cookie."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote
from urllib.parse import unquote

from restapi.config import Settings

REFRESH_COOKIE_NAME = "rt"
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_cookie_value(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_cookie(
    name: str,
    value: str,
    *,
    max_age: int = REFRESH_COOKIE_MAX_AGE,
    path: str = "/",
    same_site: str = "Lax",
    http_only: bool = True,
    secure: bool = False,
    domain: Optional[str] = None,
) -> str:
    """Build a ``Set-Cookie`` header value.

    The value is written as given; callers encode it first.
    """
    parts = [
        f"{name}={value}",
        f"Path={path}",
        f"Max-Age={max_age}",
    ]
    if secure:
        parts.append("Secure")
    parts.append(f"SameSite={same_site}")
    if http_only:
        parts.append("HttpOnly")
    if domain:
        parts.append(f"Domain={domain}")
    return "; ".join(parts)


def refresh_cookie(token: str, settings: Settings) -> str:
    """Create the cookie carrying an opaque refresh token."""
    return build_cookie(
        REFRESH_COOKIE_NAME,
        encode_cookie_value(token),
        max_age=REFRESH_COOKIE_MAX_AGE,
        same_site=settings.cookie_same_site,
        secure=settings.cookie_secure,
        domain=settings.cookie_domain,
    )


def clear_refresh_cookie(settings: Settings) -> str:
    """Create a cookie that expires the refresh token immediately."""
    return build_cookie(
        REFRESH_COOKIE_NAME,
        "",
        max_age=0,
        same_site=settings.cookie_same_site,
        secure=settings.cookie_secure,
        domain=settings.cookie_domain,
    )


def extract_cookie(
    cookie_header: Optional[str],
    name: str = REFRESH_COOKIE_NAME,
) -> Optional[str]:
    """Return the URL-decoded value of cookie ``name``, or None if absent."""
    if not cookie_header:
        return None
    match = re.search(rf"(?:^|;\s*){re.escape(name)}=([^;]*)", cookie_header)
    if not match:
        return None
    return unquote(match.group(1))
