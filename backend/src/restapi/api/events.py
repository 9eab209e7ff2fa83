"""Normalization of API Gateway proxy events.

Two event shapes reach the function:

**V1** (REST API proxy integration)
    ``httpMethod`` / ``path`` at the top level, claims from a Cognito
    user-pool authorizer under ``requestContext.authorizer.claims``.

**V2** (HTTP API)
    ``requestContext.http.method`` / ``rawPath``, cookies moved into a
    top-level ``cookies`` list, JWT authorizer claims under
    ``requestContext.authorizer.jwt.claims``.

The shape is probed once here; everything downstream works on ``Request``.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from enum import Enum
from typing import Any
from typing import Mapping
from typing import Optional


class EventShape(str, Enum):
    """Gateway event format."""

    V1 = "v1"
    V2 = "v2"


@dataclass(frozen=True)
class Request:
    """One inbound call, independent of the gateway event shape."""

    method: str
    path: str
    query: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    body: Any = None
    claims: Optional[dict[str, Any]] = None
    shape: EventShape = EventShape.V1
    raw_event: Mapping[str, Any] = field(default_factory=dict, repr=False)
    request_id: str = ""

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a header case-insensitively."""
        return self.headers.get(name.lower(), default)

    def with_params(self, params: dict[str, str]) -> "Request":
        """Return a copy bound to the path parameters of a matched route."""
        return replace(self, params=dict(params))


def detect_shape(event: Mapping[str, Any]) -> EventShape:
    """Tell V1 and V2 events apart by their structure."""
    request_context = event.get("requestContext") or {}
    if isinstance(request_context.get("http"), Mapping) or "rawPath" in event:
        return EventShape.V2
    return EventShape.V1


def normalize_event(event: Mapping[str, Any]) -> Request:
    """Map a gateway event to a ``Request``.

    Args:
        event: The raw Lambda event.

    Returns:
        The normalized request (path parameters not yet bound).
    """
    shape = detect_shape(event)
    request_context = event.get("requestContext") or {}
    http_context = request_context.get("http") or {}

    method = http_context.get("method") or event.get("httpMethod") or "GET"
    path = event.get("rawPath") or event.get("path") or "/"
    headers = normalize_headers(event.get("headers"))

    cookies = event.get("cookies")
    if cookies and "cookie" not in headers:
        headers["cookie"] = "; ".join(cookies)

    return Request(
        method=str(method).upper(),
        path=path,
        query=dict(event.get("queryStringParameters") or {}),
        headers=headers,
        body=parse_body(
            event.get("body"),
            headers,
            is_base64=bool(event.get("isBase64Encoded")),
        ),
        claims=extract_claims(event),
        shape=shape,
        raw_event=event,
        request_id=request_context.get("requestId") or "",
    )


def normalize_headers(headers: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Lowercase header names once so lookups never miss on casing."""
    if not headers:
        return {}
    return {
        str(key).lower(): str(value)
        for key, value in headers.items()
        if value is not None
    }


def parse_body(
    raw: Optional[str],
    headers: Mapping[str, str],
    is_base64: bool = False,
) -> Any:
    """Decode and, for JSON content types, parse a request body.

    Malformed base64 or JSON never raises; the raw string is returned.

    Args:
        raw: The body string from the event.
        headers: Lowercased request headers.
        is_base64: Whether the gateway base64-encoded the body.

    Returns:
        Parsed JSON, the body string, or None when there is no body.
    """
    if not raw:
        return None

    text = raw
    if is_base64:
        try:
            text = base64.b64decode(raw).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            text = raw

    content_type = headers.get("content-type", "").lower()
    if "application/json" in content_type:
        try:
            return json.loads(text)
        except (ValueError, RecursionError):
            return text
    return text


def extract_claims(event: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Return identity claims placed by the gateway authorizer, if any.

    Looks at ``requestContext.authorizer.claims`` (REST API user-pool
    authorizer) and then ``requestContext.authorizer.jwt.claims`` (HTTP API
    JWT authorizer). None means the request carries no identity.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("claims")
    if claims:
        return dict(claims)
    jwt_claims = (authorizer.get("jwt") or {}).get("claims")
    if jwt_claims:
        return dict(jwt_claims)
    return None
