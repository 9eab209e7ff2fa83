"""Route table for the API function.

``/public/*`` and ``/auth/*`` are deployed without a gateway authorizer;
every other path sits behind the Cognito authorizer, which places the
caller's claims on the event.
"""

from __future__ import annotations

from typing import Any

from restapi.api.auth import AuthProxy
from restapi.api.events import Request
from restapi.api.router import Router
from restapi.api.schemas import IdentitySchema
from restapi.utils.responses import error_response
from restapi.utils.responses import json_response


def ping(request: Request) -> dict[str, Any]:
    return json_response(200, {"pong": True})


def me(request: Request) -> dict[str, Any]:
    """Return the caller identity from authorizer claims."""
    if not request.claims:
        return error_response(401, "Unauthorized")
    return json_response(200, IdentitySchema.from_claims(request.claims))


def hello(request: Request) -> dict[str, Any]:
    name = request.query.get("name")
    if name is None:
        name = "world"
    return json_response(200, {"message": f"Hello, {name}!"})


def get_user(request: Request) -> dict[str, Any]:
    return json_response(200, {"userId": request.params["id"]})


def echo(request: Request) -> dict[str, Any]:
    return json_response(200, {"received": request.body})


def build_router(auth: AuthProxy) -> Router:
    """Register all routes, in matching order, on a new router."""
    router = Router()

    router.add("GET", "/public/ping", ping)
    router.add("GET", "/me", me)
    router.add("GET", "/hello", hello)
    router.add("GET", "/users/:id", get_user)
    router.add("POST", "/echo", echo)

    router.add("POST", "/auth/signup", auth.signup)
    router.add("POST", "/auth/verify", auth.verify)
    router.add("POST", "/auth/login", auth.login)
    router.add("POST", "/auth/refresh", auth.refresh)
    router.add("POST", "/auth/change-password", auth.change_password)
    router.add("POST", "/auth/logout", auth.logout)

    return router
