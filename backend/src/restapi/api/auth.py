"""Authentication proxy handlers.

Each handler validates the fields it needs, makes exactly one call to the
identity provider, and translates the outcome into a response. Missing
fields are rejected before any provider call. Provider failures are not
retried; the provider's message is forwarded as ``error`` when present.

Routes handled:
    POST /auth/signup           - Register a user (email, password)
    POST /auth/verify           - Confirm signup with the emailed code
    POST /auth/login            - Password login, sets the ``rt`` cookie
    POST /auth/refresh          - New access token from the ``rt`` cookie
    POST /auth/change-password  - Change password with an access token
    POST /auth/logout           - Clear the ``rt`` cookie
"""

from __future__ import annotations

import functools
from typing import Any
from typing import Callable
from typing import Optional
from typing import Protocol

from restapi.api.events import Request
from restapi.api.schemas import MessageSchema
from restapi.api.schemas import TokenSchema
from restapi.config import Settings
from restapi.exceptions import AppError
from restapi.exceptions import AuthenticationError
from restapi.exceptions import IdentityProviderError
from restapi.exceptions import ValidationError
from restapi.services.identity import AuthTokens
from restapi.utils.cookies import clear_refresh_cookie
from restapi.utils.cookies import extract_cookie
from restapi.utils.cookies import refresh_cookie
from restapi.utils.logging import get_logger
from restapi.utils.logging import mask_email
from restapi.utils.responses import empty_response
from restapi.utils.responses import json_response

logger = get_logger(__name__)

Response = dict[str, Any]


class IdentityProvider(Protocol):
    """Operations the auth proxy needs from the identity provider."""

    def sign_up(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> None: ...

    def confirm_sign_up(self, email: str, code: str) -> None: ...

    def login(self, email: str, password: str) -> AuthTokens: ...

    def refresh(self, refresh_token: str) -> AuthTokens: ...

    def change_password(
        self,
        access_token: str,
        previous_password: str,
        proposed_password: str,
    ) -> None: ...


def _error_responses(
    handler: Callable[["AuthProxy", Request], Response],
) -> Callable[["AuthProxy", Request], Response]:
    """Turn application errors raised by a handler into JSON responses."""

    @functools.wraps(handler)
    def wrapper(self: "AuthProxy", request: Request) -> Response:
        try:
            return handler(self, request)
        except AppError as exc:
            return json_response(exc.status_code, exc.to_dict())

    return wrapper


def _string_fields(request: Request, *names: str) -> list[Optional[str]]:
    """Read string fields from a JSON object body.

    Absent, empty or non-string values come back as None, as does every
    field when the body is not a JSON object.
    """
    payload = request.body if isinstance(request.body, dict) else {}
    values: list[Optional[str]] = []
    for name in names:
        value = payload.get(name)
        values.append(value if isinstance(value, str) and value else None)
    return values


def _provider_failure(
    operation: str,
    exc: IdentityProviderError,
    fallback: str,
    status_code: int,
    email: Optional[str] = None,
) -> AppError:
    logger.warning(
        f"Identity provider rejected {operation}",
        extra={
            "error_code": exc.code,
            "email": mask_email(email) if email else None,
        },
    )
    message = exc.provider_message or fallback
    if status_code == 401:
        return AuthenticationError(message)
    return ValidationError(message)


class AuthProxy:
    """Auth handlers bound to one identity provider and one settings object."""

    def __init__(self, provider: IdentityProvider, settings: Settings):
        self._provider = provider
        self._settings = settings

    @_error_responses
    def signup(self, request: Request) -> Response:
        email, password, first_name, last_name = _string_fields(
            request, "email", "password", "firstName", "lastName"
        )
        if not email or not password:
            raise ValidationError("Missing email or password")

        try:
            self._provider.sign_up(
                email,
                password,
                first_name=first_name or "",
                last_name=last_name or "",
            )
        except IdentityProviderError as exc:
            raise _provider_failure(
                "signup", exc, "Signup failed", 400, email
            ) from exc

        logger.info("Signup accepted", extra={"email": mask_email(email)})
        return json_response(
            200, MessageSchema(message="Signup successful. Please verify email.")
        )

    @_error_responses
    def verify(self, request: Request) -> Response:
        email, code = _string_fields(request, "email", "code")
        if not email or not code:
            raise ValidationError("Missing email or code")

        try:
            self._provider.confirm_sign_up(email, code)
        except IdentityProviderError as exc:
            raise _provider_failure(
                "verify", exc, "Verification failed", 400, email
            ) from exc

        logger.info("Email verified", extra={"email": mask_email(email)})
        return json_response(
            200, MessageSchema(message="Email verified successfully.")
        )

    @_error_responses
    def login(self, request: Request) -> Response:
        email, password = _string_fields(request, "email", "password")
        if not email or not password:
            raise ValidationError("Missing credentials")

        try:
            tokens = self._provider.login(email, password)
        except IdentityProviderError as exc:
            raise _provider_failure(
                "login", exc, "Login failed", 401, email
            ) from exc

        if not tokens.access_token or not tokens.refresh_token:
            # e.g. a pending challenge such as NEW_PASSWORD_REQUIRED
            logger.warning(
                "Login returned no tokens", extra={"email": mask_email(email)}
            )
            raise AuthenticationError("Invalid login")

        logger.info("Login succeeded", extra={"email": mask_email(email)})
        return self._token_response(
            tokens.access_token, tokens, tokens.refresh_token
        )

    @_error_responses
    def refresh(self, request: Request) -> Response:
        current = extract_cookie(request.header("cookie"))
        if not current:
            raise AuthenticationError("Missing refresh token")

        try:
            tokens = self._provider.refresh(current)
        except IdentityProviderError as exc:
            raise _provider_failure(
                "refresh", exc, "Failed to refresh token", 401
            ) from exc

        if not tokens.access_token:
            raise AuthenticationError("Invalid refresh")

        return self._token_response(
            tokens.access_token, tokens, tokens.refresh_token or current
        )

    @_error_responses
    def change_password(self, request: Request) -> Response:
        access_token, previous, proposed = _string_fields(
            request, "accessToken", "previousPassword", "proposedPassword"
        )
        if not access_token or not previous or not proposed:
            raise ValidationError("Missing fields")

        try:
            self._provider.change_password(access_token, previous, proposed)
        except IdentityProviderError as exc:
            raise _provider_failure(
                "change-password", exc, "Failed to change password", 400
            ) from exc

        return json_response(
            200, MessageSchema(message="Password changed successfully.")
        )

    def logout(self, request: Request) -> Response:
        return empty_response(
            204, {"Set-Cookie": clear_refresh_cookie(self._settings)}
        )

    def _token_response(
        self,
        access_token: str,
        tokens: AuthTokens,
        refresh_token: str,
    ) -> Response:
        body = TokenSchema(
            access_token=access_token,
            expires_in=tokens.expires_in,
            id_token=tokens.id_token,
        )
        return json_response(
            200,
            body,
            headers={"Set-Cookie": refresh_cookie(refresh_token, self._settings)},
        )
