"""Table-driven path router.

Routes are registered at process start and scanned in declared order.
Templates are ``/``-separated; a segment prefixed with ``:`` captures one
URL-decoded path segment under that name.

Example:
    router = Router()

    @router.route("GET", "/users/:id")
    def get_user(request):
        return json_response(200, {"userId": request.params["id"]})
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any
from typing import Callable
from typing import Optional
from urllib.parse import unquote

from restapi.api.events import Request
from restapi.exceptions import MethodNotAllowedError
from restapi.exceptions import NotFoundError
from restapi.utils.responses import error_response
from restapi.utils.responses import text_response

Response = dict[str, Any]
Handler = Callable[[Request], Response]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


@dataclass(frozen=True)
class Route:
    """One method + path template bound to a handler."""

    method: str
    path: str
    handler: Handler


class MatchStatus(str, Enum):
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"


@dataclass(frozen=True)
class RouteMatch:
    """Outcome of matching a method and path against the route table."""

    status: MatchStatus
    route: Optional[Route] = None
    params: dict[str, str] = field(default_factory=dict)
    allowed: tuple[str, ...] = ()


def _segments(path: str) -> list[str]:
    return path.strip("/").split("/")


def match_path(template: str, path: str) -> Optional[dict[str, str]]:
    """Match ``path`` against ``template``.

    Returns:
        Captured parameters when the path matches, otherwise None.
    """
    template_parts = _segments(template)
    path_parts = _segments(path)
    if len(template_parts) != len(path_parts):
        return None

    params: dict[str, str] = {}
    for expected, actual in zip(template_parts, path_parts):
        if expected.startswith(":"):
            params[expected[1:]] = unquote(actual)
        elif expected != actual:
            return None
    return params


class Router:
    """Ordered route table with 404/405 fallbacks."""

    def __init__(self) -> None:
        self._routes: list[Route] = []

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def add(self, method: str, path: str, handler: Handler) -> Route:
        """Register a route. Routes are never removed."""
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        route = Route(method=method, path=path, handler=handler)
        self._routes.append(route)
        return route

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``add``."""

        def decorator(handler: Handler) -> Handler:
            self.add(method, path, handler)
            return handler

        return decorator

    def match(self, method: str, path: str) -> RouteMatch:
        """Find the first route matching both path and method.

        Every template matching the path counts, whatever its method; they
        decide between 404 (none) and 405 (some, but not for ``method``).
        """
        path_matches: list[tuple[Route, dict[str, str]]] = []
        for route in self._routes:
            params = match_path(route.path, path)
            if params is not None:
                path_matches.append((route, params))

        if not path_matches:
            return RouteMatch(status=MatchStatus.NOT_FOUND)

        for route, params in path_matches:
            if route.method == method:
                return RouteMatch(
                    status=MatchStatus.MATCHED,
                    route=route,
                    params=params,
                )

        allowed: list[str] = []
        for route, _ in path_matches:
            if route.method not in allowed:
                allowed.append(route.method)
        return RouteMatch(
            status=MatchStatus.METHOD_NOT_ALLOWED,
            allowed=tuple(allowed),
        )

    def dispatch(self, request: Request) -> Response:
        """Invoke the matching handler or build the 404/405 response.

        Handler exceptions propagate to the caller.
        """
        result = self.match(request.method, request.path)

        if result.status is MatchStatus.MATCHED and result.route is not None:
            return result.route.handler(request.with_params(result.params))

        if result.status is MatchStatus.METHOD_NOT_ALLOWED:
            not_allowed = MethodNotAllowedError(result.allowed)
            return text_response(
                not_allowed.status_code,
                not_allowed.message,
                headers={"Allow": not_allowed.allow_header},
            )

        not_found = NotFoundError(request.path)
        return error_response(
            not_found.status_code, not_found.message, path=not_found.path
        )
