"""Shared response utilities for the Lambda handler."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any
from typing import Optional

from pydantic import BaseModel

from restapi.config import Settings

OPEN_CORS_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
OPEN_CORS_HEADERS = "Content-Type,Authorization"
CREDENTIALS_CORS_METHODS = "GET,POST,OPTIONS"
CREDENTIALS_CORS_HEADERS = "content-type,authorization,x-csrf"


def get_cors_headers(
    settings: Optional[Settings],
    origin: Optional[str] = None,
) -> dict[str, str]:
    """Get baseline CORS headers for the deployment's policy.

    Exactly one policy applies per deployment:

    - ``open``: any origin, no credentials.
    - ``credentials``: the request origin is echoed back when it is in the
      allow-list (otherwise the first allowed origin), with credentials
      allowed. A wildcard origin is never combined with credentials.

    Args:
        settings: Runtime settings holding the CORS mode and allow-list.
            None (settings could not be loaded) selects the open policy.
        origin: The request ``Origin`` header, if any.

    Returns:
        Dictionary of CORS headers.
    """
    if settings is not None and settings.cors_mode == "credentials":
        allowed = settings.cors_allowed_origins
        allow_origin = origin if origin in allowed else allowed[0]
        return {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Headers": CREDENTIALS_CORS_HEADERS,
            "Access-Control-Allow-Methods": CREDENTIALS_CORS_METHODS,
            "Vary": "Origin",
        }

    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": OPEN_CORS_METHODS,
        "Access-Control-Allow-Headers": OPEN_CORS_HEADERS,
    }


def json_response(
    status_code: int,
    body: Any,
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Create a JSON API Gateway response.

    Args:
        status_code: HTTP status code.
        body: Response body (dict, Pydantic model, or dataclass).
        headers: Optional additional headers to include.

    Returns:
        API Gateway response dictionary.
    """
    response_headers = {"Content-Type": "application/json"}
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(_serialize_body(body), default=str),
    }


def text_response(
    status_code: int,
    body: str,
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Create a plain-text API Gateway response."""
    response_headers = {"Content-Type": "text/plain; charset=utf-8"}
    if headers:
        response_headers.update(headers)
    return {"statusCode": status_code, "headers": response_headers, "body": body}


def empty_response(
    status_code: int = 204,
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Create a response with an empty body."""
    return {"statusCode": status_code, "headers": dict(headers or {}), "body": ""}


def error_response(
    status_code: int,
    message: str,
    headers: Optional[dict[str, str]] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Create an ``{"error": message}`` JSON response.

    Args:
        status_code: HTTP status code.
        message: Error message.
        headers: Optional additional headers.
        **extra: Additional body fields (e.g. ``path``).
    """
    body: dict[str, Any] = {"error": message}
    body.update(extra)
    return json_response(status_code, body, headers=headers)


def options_response(cors_headers: dict[str, str]) -> dict[str, Any]:
    """Create a bare preflight response carrying only CORS headers."""
    return empty_response(204, cors_headers)


def with_cors(
    response: dict[str, Any],
    cors_headers: dict[str, str],
) -> dict[str, Any]:
    """Merge baseline CORS headers into a response.

    Headers set by the handler take precedence on conflict.
    """
    merged = dict(cors_headers)
    merged.update(response.get("headers") or {})
    return {**response, "headers": merged}


def _serialize_body(body: Any) -> Any:
    """Serialize response body to a JSON-compatible value."""
    if isinstance(body, BaseModel):
        return body.model_dump(by_alias=True, exclude_none=True)

    if hasattr(body, "__dataclass_fields__"):
        return asdict(body)

    return body
