"""Custom exception classes for the API.

This module provides exception classes that carry the HTTP status code
and structured error information used to build API Gateway responses.
"""

from __future__ import annotations

from typing import Any
from typing import Optional
from typing import Sequence


class AppError(Exception):
    """Base exception for application errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code (default 500).
        detail: Optional additional context.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response body."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(AppError):
    """Raised when required input is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        detail = f"Field: {field}" if field else None
        super().__init__(message, status_code=400, detail=detail)
        self.field = field


class AuthenticationError(AppError):
    """Raised when credentials or identity claims are missing or invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class NotFoundError(AppError):
    """Raised when no route matches the requested path."""

    def __init__(self, path: str):
        super().__init__("Not Found", status_code=404)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "path": self.path}


class MethodNotAllowedError(AppError):
    """Raised when the path matches but none of its routes accept the method.

    Attributes:
        allowed: Accepted methods, de-duplicated in first-seen order.
    """

    def __init__(self, allowed: Sequence[str]):
        super().__init__("Method Not Allowed", status_code=405)
        self.allowed = list(allowed)

    @property
    def allow_header(self) -> str:
        return ", ".join(self.allowed)


class ConfigurationError(AppError):
    """Raised when required configuration is missing or inconsistent."""

    def __init__(self, config_name: str, reason: Optional[str] = None):
        message = reason or f"Missing required configuration: {config_name}"
        super().__init__(message, status_code=500)
        self.config_name = config_name


class IdentityProviderError(AppError):
    """Raised when a call to the identity provider fails.

    The 502 status is only a default for callers that surface the error
    as is; the auth handlers re-raise it as a 400 or 401 chosen per
    operation.

    Attributes:
        provider_message: Message returned by the provider, if any.
        code: Provider error code (e.g. ``NotAuthorizedException``).
    """

    def __init__(
        self,
        provider_message: Optional[str],
        code: Optional[str] = None,
    ):
        super().__init__(
            provider_message or "Identity provider request failed",
            status_code=502,
        )
        self.provider_message = provider_message
        self.code = code
