"""Cognito identity-provider client.

A thin wrapper around the ``cognito-idp`` boto3 client. It is built once
per process by ``build_identity_provider`` and handed to the auth proxy,
so tests can pass any object exposing the same boto3 methods.

Each method performs exactly one Cognito call. Botocore failures are
re-raised as ``IdentityProviderError`` with the provider's message; the
caller decides which status code that maps to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Optional

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from restapi.config import Settings
from restapi.exceptions import IdentityProviderError
from restapi.services.aws_clients import get_cognito_idp_client


@dataclass(frozen=True)
class AuthTokens:
    """Tokens returned by a successful ``InitiateAuth`` call."""

    access_token: Optional[str] = None
    expires_in: Optional[int] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "AuthTokens":
        result = response.get("AuthenticationResult") or {}
        return cls(
            access_token=result.get("AccessToken"),
            expires_in=result.get("ExpiresIn"),
            id_token=result.get("IdToken"),
            refresh_token=result.get("RefreshToken"),
        )


class CognitoIdentityProvider:
    """Signup, login, refresh and password operations against a user pool."""

    def __init__(self, client: Any, client_id: str):
        self._client = client
        self._client_id = client_id

    def sign_up(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> None:
        self._call(
            self._client.sign_up,
            ClientId=self._client_id,
            Username=email,
            Password=password,
            UserAttributes=[
                {"Name": "email", "Value": email},
                {"Name": "given_name", "Value": first_name},
                {"Name": "family_name", "Value": last_name},
            ],
        )

    def confirm_sign_up(self, email: str, code: str) -> None:
        self._call(
            self._client.confirm_sign_up,
            ClientId=self._client_id,
            Username=email,
            ConfirmationCode=code,
        )

    def login(self, email: str, password: str) -> AuthTokens:
        response = self._call(
            self._client.initiate_auth,
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId=self._client_id,
            AuthParameters={"USERNAME": email, "PASSWORD": password},
        )
        return AuthTokens.from_response(response)

    def refresh(self, refresh_token: str) -> AuthTokens:
        response = self._call(
            self._client.initiate_auth,
            AuthFlow="REFRESH_TOKEN_AUTH",
            ClientId=self._client_id,
            AuthParameters={"REFRESH_TOKEN": refresh_token},
        )
        return AuthTokens.from_response(response)

    def change_password(
        self,
        access_token: str,
        previous_password: str,
        proposed_password: str,
    ) -> None:
        self._call(
            self._client.change_password,
            AccessToken=access_token,
            PreviousPassword=previous_password,
            ProposedPassword=proposed_password,
        )

    @staticmethod
    def _call(operation: Callable[..., Any], **params: Any) -> Any:
        try:
            return operation(**params)
        except ClientError as exc:
            error = exc.response.get("Error") or {}
            raise IdentityProviderError(
                error.get("Message") or None,
                code=error.get("Code"),
            ) from exc
        except BotoCoreError as exc:
            raise IdentityProviderError(str(exc) or None) from exc


def build_identity_provider(settings: Settings) -> CognitoIdentityProvider:
    """Create the process-wide Cognito provider from settings."""
    client = get_cognito_idp_client(region_name=settings.cognito_region)
    return CognitoIdentityProvider(client, settings.cognito_client_id)
