"""Pytest configuration and fixtures for backend tests.

This module provides shared fixtures: API Gateway events in both shapes,
settings, and a fake Cognito client standing in for the boto3 client.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any
from typing import Optional
from uuid import uuid4

import pytest
from botocore.exceptions import ClientError

ROOT = Path(__file__).resolve().parents[1]

# Add backend source and repository root (for infra/) to path for imports
sys.path.insert(0, str(ROOT / "backend" / "src"))
sys.path.insert(0, str(ROOT))


# --- Cognito Fakes ---


def cognito_error(
    code: str,
    message: Optional[str],
    operation: str = "InitiateAuth",
) -> ClientError:
    """Build the ClientError botocore raises for a Cognito error response."""
    error: dict[str, Any] = {"Code": code}
    if message is not None:
        error["Message"] = message
    return ClientError({"Error": error}, operation)


class FakeCognitoClient:
    """Records calls and replays canned responses like a cognito-idp client.

    Set ``responses[method]`` to a dict to return it, or to an exception
    to raise it.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.responses: dict[str, Any] = {}

    def _respond(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((method, params))
        response = self.responses.get(method, {})
        if isinstance(response, Exception):
            raise response
        return response

    def sign_up(self, **params: Any) -> dict[str, Any]:
        return self._respond("sign_up", params)

    def confirm_sign_up(self, **params: Any) -> dict[str, Any]:
        return self._respond("confirm_sign_up", params)

    def initiate_auth(self, **params: Any) -> dict[str, Any]:
        return self._respond("initiate_auth", params)

    def change_password(self, **params: Any) -> dict[str, Any]:
        return self._respond("change_password", params)


@pytest.fixture
def cognito_client() -> FakeCognitoClient:
    return FakeCognitoClient()


@pytest.fixture
def auth_result() -> dict[str, Any]:
    """InitiateAuth response for a successful password login."""
    return {
        "AuthenticationResult": {
            "AccessToken": "access-token",
            "ExpiresIn": 3600,
            "IdToken": "id-token",
            "RefreshToken": "refresh/token+with=chars",
            "TokenType": "Bearer",
        }
    }


# --- Settings Fixtures ---


@pytest.fixture
def settings():
    from restapi.config import Settings

    return Settings(
        cognito_region="us-east-1",
        cognito_client_id="test-client-id",
    )


@pytest.fixture
def credentials_settings():
    """Settings for a deployment using the credentialed CORS policy."""
    from restapi.config import Settings

    return Settings(
        cognito_region="us-east-1",
        cognito_client_id="test-client-id",
        environment="prod",
        cookie_secure=True,
        cookie_same_site="None",
        cookie_domain="example.com",
        cors_mode="credentials",
        cors_allowed_origins=("https://app.example.com", "http://localhost:8080"),
    )


@pytest.fixture
def provider(cognito_client, settings):
    from restapi.services.identity import CognitoIdentityProvider

    return CognitoIdentityProvider(cognito_client, settings.cognito_client_id)


@pytest.fixture
def app(settings, provider):
    from restapi.api.handler import create_app

    return create_app(settings=settings, provider=provider)


# --- API Event Fixtures ---


@pytest.fixture
def api_gateway_event() -> dict:
    """Base REST API (v1) proxy event structure."""
    return {
        "resource": "/{proxy+}",
        "httpMethod": "GET",
        "path": "/public/ping",
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "headers": {},
        "requestContext": {
            "requestId": str(uuid4()),
            "authorizer": {},
        },
        "body": None,
        "isBase64Encoded": False,
    }


@pytest.fixture
def http_api_event() -> dict:
    """Base HTTP API (v2) event structure."""
    return {
        "version": "2.0",
        "routeKey": "$default",
        "rawPath": "/public/ping",
        "rawQueryString": "",
        "headers": {},
        "requestContext": {
            "requestId": str(uuid4()),
            "http": {
                "method": "GET",
                "path": "/public/ping",
                "protocol": "HTTP/1.1",
            },
        },
        "isBase64Encoded": False,
    }


@pytest.fixture
def authorized_event(api_gateway_event) -> dict:
    """REST API event carrying Cognito user-pool authorizer claims."""
    event = dict(api_gateway_event)
    event["path"] = "/me"
    event["requestContext"] = {
        "requestId": str(uuid4()),
        "authorizer": {
            "claims": {
                "sub": "1a2b3c4d",
                "cognito:username": "jane",
                "email": "jane@example.com",
                "scope": "aws.cognito.signin.user.admin",
            },
        },
    }
    return event


def make_event(
    method: str,
    path: str,
    body: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
    query: Optional[dict[str, str]] = None,
) -> dict:
    """Create a minimal REST API (v1) event."""
    return {
        "httpMethod": method,
        "path": path,
        "queryStringParameters": query,
        "headers": headers or {},
        "requestContext": {"requestId": str(uuid4())},
        "body": body,
        "isBase64Encoded": False,
    }
