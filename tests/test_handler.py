"""End-to-end tests for the Lambda dispatcher."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from conftest import make_event
from restapi.api import handler as handler_module
from restapi.api.handler import Application
from restapi.api.handler import create_app
from restapi.api.handler import lambda_handler
from restapi.api.handler import reset_app
from restapi.api.router import Router
from restapi.config import clear_settings_cache
from restapi.services.aws_clients import clear_client_cache


def _body(response: dict):
    return json.loads(response["body"])


class TestSampleRoutes:
    def test_ping(self, app, api_gateway_event) -> None:
        response = app.handle(api_gateway_event)
        assert response["statusCode"] == 200
        assert _body(response) == {"pong": True}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_ping_http_api_event(self, app, http_api_event) -> None:
        response = app.handle(http_api_event)
        assert response["statusCode"] == 200
        assert _body(response) == {"pong": True}

    def test_hello_default_name(self, app) -> None:
        response = app.handle(make_event("GET", "/hello"))
        assert _body(response) == {"message": "Hello, world!"}

    def test_hello_with_name(self, app) -> None:
        response = app.handle(make_event("GET", "/hello", query={"name": "Ada"}))
        assert _body(response) == {"message": "Hello, Ada!"}

    def test_hello_empty_name_kept(self, app) -> None:
        response = app.handle(make_event("GET", "/hello", query={"name": ""}))
        assert _body(response) == {"message": "Hello, !"}

    def test_get_user(self, app) -> None:
        response = app.handle(make_event("GET", "/users/42"))
        assert _body(response) == {"userId": "42"}

    def test_echo_json(self, app) -> None:
        response = app.handle(
            make_event(
                "POST",
                "/echo",
                body='{"a": [1, 2]}',
                headers={"Content-Type": "application/json"},
            )
        )
        assert _body(response) == {"received": {"a": [1, 2]}}

    def test_echo_text(self, app) -> None:
        response = app.handle(make_event("POST", "/echo", body="plain"))
        assert _body(response) == {"received": "plain"}

    def test_echo_without_body(self, app) -> None:
        response = app.handle(make_event("POST", "/echo"))
        assert _body(response) == {"received": None}


class TestMe:
    def test_without_claims(self, app) -> None:
        response = app.handle(make_event("GET", "/me"))
        assert response["statusCode"] == 401
        assert _body(response) == {"error": "Unauthorized"}

    def test_with_claims(self, app, authorized_event) -> None:
        response = app.handle(authorized_event)
        assert response["statusCode"] == 200
        assert _body(response) == {
            "sub": "1a2b3c4d",
            "username": "jane",
            "email": "jane@example.com",
            "scope": "aws.cognito.signin.user.admin",
        }


class TestRoutingFallbacks:
    def test_not_found(self, app) -> None:
        response = app.handle(make_event("GET", "/nope"))
        assert response["statusCode"] == 404
        assert _body(response) == {"error": "Not Found", "path": "/nope"}
        assert "Access-Control-Allow-Origin" in response["headers"]

    def test_method_not_allowed(self, app) -> None:
        response = app.handle(make_event("GET", "/auth/login"))
        assert response["statusCode"] == 405
        assert response["headers"]["Allow"] == "POST"
        assert response["body"] == "Method Not Allowed"
        assert "Access-Control-Allow-Origin" in response["headers"]

    def test_options_short_circuits(self, app, cognito_client) -> None:
        response = app.handle(make_event("OPTIONS", "/auth/login"))
        assert response["statusCode"] == 204
        assert response["body"] == ""
        assert set(response["headers"]) == {
            "Access-Control-Allow-Origin",
            "Access-Control-Allow-Methods",
            "Access-Control-Allow-Headers",
        }
        assert cognito_client.calls == []

    def test_options_on_unknown_path(self, app) -> None:
        assert app.handle(make_event("OPTIONS", "/nowhere"))["statusCode"] == 204


class TestAuthRoutes:
    def test_login_through_dispatcher(self, app, cognito_client, auth_result) -> None:
        cognito_client.responses["initiate_auth"] = auth_result
        response = app.handle(
            make_event(
                "POST",
                "/auth/login",
                body=json.dumps({"email": "a@b.com", "password": "pw"}),
                headers={"content-type": "application/json"},
            )
        )
        assert response["statusCode"] == 200
        assert response["headers"]["Set-Cookie"].startswith("rt=")
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_refresh_reads_http_api_cookies(
        self, app, cognito_client, http_api_event
    ) -> None:
        cognito_client.responses["initiate_auth"] = {
            "AuthenticationResult": {"AccessToken": "new"}
        }
        http_api_event["rawPath"] = "/auth/refresh"
        http_api_event["requestContext"]["http"]["method"] = "POST"
        http_api_event["cookies"] = ["theme=dark", "rt=abc"]
        response = app.handle(http_api_event)
        assert response["statusCode"] == 200
        assert cognito_client.calls[0][1]["AuthParameters"] == {"REFRESH_TOKEN": "abc"}

    def test_malformed_json_is_missing_fields(self, app, cognito_client) -> None:
        response = app.handle(
            make_event(
                "POST",
                "/auth/signup",
                body='{"email": ',
                headers={"content-type": "application/json"},
            )
        )
        assert response["statusCode"] == 400
        assert _body(response) == {"error": "Missing email or password"}
        assert cognito_client.calls == []

    def test_logout(self, app) -> None:
        response = app.handle(make_event("POST", "/auth/logout"))
        assert response["statusCode"] == 204
        assert "Max-Age=0" in response["headers"]["Set-Cookie"]


class TestCredentialedDeployment:
    @pytest.fixture
    def credentials_app(self, credentials_settings, provider):
        return create_app(settings=credentials_settings, provider=provider)

    def test_allowed_origin_echoed(self, credentials_app) -> None:
        response = credentials_app.handle(
            make_event(
                "OPTIONS",
                "/auth/refresh",
                headers={"Origin": "http://localhost:8080"},
            )
        )
        assert response["headers"]["Access-Control-Allow-Origin"] == "http://localhost:8080"
        assert response["headers"]["Access-Control-Allow-Credentials"] == "true"

    def test_error_responses_carry_credentials_headers(self, credentials_app) -> None:
        response = credentials_app.handle(
            make_event("GET", "/nope", headers={"Origin": "https://app.example.com"})
        )
        assert response["statusCode"] == 404
        assert response["headers"]["Access-Control-Allow-Origin"] == "https://app.example.com"


class TestErrorBoundary:
    def test_normalization_failure_keeps_cors(self, app, mocker) -> None:
        mocker.patch(
            "restapi.api.handler.normalize_event",
            side_effect=RuntimeError("bad event"),
        )
        response = app.handle(make_event("GET", "/public/ping"))
        assert response["statusCode"] == 500
        assert _body(response) == {"error": "Internal Server Error"}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_normalization_failure_echoes_allowed_origin(
        self, credentials_settings, provider, mocker
    ) -> None:
        mocker.patch(
            "restapi.api.handler.normalize_event",
            side_effect=RuntimeError("bad event"),
        )
        app = create_app(settings=credentials_settings, provider=provider)
        response = app.handle(
            make_event("GET", "/me", headers={"ORIGIN": "http://localhost:8080"})
        )
        assert response["statusCode"] == 500
        assert (
            response["headers"]["Access-Control-Allow-Origin"]
            == "http://localhost:8080"
        )
        assert response["headers"]["Access-Control-Allow-Credentials"] == "true"

    def test_handler_exception_is_generic_500(self, settings) -> None:
        router = Router()

        def broken(request):
            raise RuntimeError("secret detail")

        router.add("GET", "/broken", broken)
        app = Application(router, settings)

        response = app.handle(make_event("GET", "/broken"))
        assert response["statusCode"] == 500
        assert _body(response) == {"error": "Internal Server Error"}
        assert "secret detail" not in response["body"]
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_handler_exception_is_logged(self, settings, mocker) -> None:
        log_exception = mocker.patch.object(handler_module.logger, "exception")
        router = Router()
        router.add("GET", "/broken", lambda request: 1 / 0)
        Application(router, settings).handle(make_event("GET", "/broken"))
        log_exception.assert_called_once()


class TestLambdaHandler:
    @pytest.fixture(autouse=True)
    def _fresh_process(self, monkeypatch):
        monkeypatch.setenv("COGNITO_REGION", "us-east-1")
        monkeypatch.setenv("COGNITO_CLIENT_ID", "test-client-id")
        monkeypatch.delenv("CORS_MODE", raising=False)
        reset_app()
        clear_settings_cache()
        clear_client_cache()
        yield
        reset_app()
        clear_settings_cache()
        clear_client_cache()

    def test_composes_app_once(self, mocker, api_gateway_event) -> None:
        boto_client = mocker.patch("boto3.client")
        context = SimpleNamespace(aws_request_id="ctx-1")

        first = lambda_handler(api_gateway_event, context)
        second = lambda_handler(api_gateway_event, context)

        assert first["statusCode"] == 200
        assert second["statusCode"] == 200
        boto_client.assert_called_once()

    def test_login_uses_cognito_client(self, mocker, auth_result) -> None:
        boto_client = mocker.patch("boto3.client")
        boto_client.return_value.initiate_auth.return_value = auth_result

        response = lambda_handler(
            make_event(
                "POST",
                "/auth/login",
                body=json.dumps({"email": "a@b.com", "password": "pw"}),
                headers={"Content-Type": "application/json"},
            ),
            None,
        )

        assert response["statusCode"] == 200
        boto_client.return_value.initiate_auth.assert_called_once_with(
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId="test-client-id",
            AuthParameters={"USERNAME": "a@b.com", "PASSWORD": "pw"},
        )

    def test_missing_configuration_is_500(self, monkeypatch, mocker) -> None:
        mocker.patch("boto3.client")
        monkeypatch.delenv("COGNITO_CLIENT_ID")
        response = lambda_handler(make_event("GET", "/public/ping"), None)
        assert response["statusCode"] == 500
        assert _body(response) == {"error": "Internal Server Error"}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_deeply_nested_json_echoed_raw(self, mocker) -> None:
        mocker.patch("boto3.client")
        body = "[" * 200000
        response = lambda_handler(
            make_event(
                "POST",
                "/echo",
                body=body,
                headers={"Content-Type": "application/json"},
            ),
            None,
        )
        assert response["statusCode"] == 200
        assert _body(response) == {"received": body}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_request_context_cleared(self, mocker, api_gateway_event) -> None:
        from restapi.utils.logging import request_id

        mocker.patch("boto3.client")
        lambda_handler(api_gateway_event, SimpleNamespace(aws_request_id="ctx-2"))
        assert request_id.get() == ""
