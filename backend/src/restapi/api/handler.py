"""Lambda dispatcher for the REST API.

Control flow per invocation:
    gateway event -> normalize -> OPTIONS short-circuit or route dispatch
    -> merge CORS headers -> response

The dispatcher is the single catch-all boundary: any exception escaping a
handler becomes a generic 500 and is logged with its traceback.
"""

from __future__ import annotations

import time
from typing import Any
from typing import Mapping
from typing import Optional

from restapi.api.auth import AuthProxy
from restapi.api.auth import IdentityProvider
from restapi.api.events import Request
from restapi.api.events import normalize_event
from restapi.api.router import Router
from restapi.api.routes import build_router
from restapi.config import Settings
from restapi.config import get_settings
from restapi.services.identity import build_identity_provider
from restapi.utils.logging import clear_request_context
from restapi.utils.logging import configure_logging
from restapi.utils.logging import get_logger
from restapi.utils.logging import log_request
from restapi.utils.logging import log_response
from restapi.utils.logging import set_request_context
from restapi.utils.responses import error_response
from restapi.utils.responses import get_cors_headers
from restapi.utils.responses import options_response
from restapi.utils.responses import with_cors

# Configure logging on module load
configure_logging()
logger = get_logger(__name__)


class Application:
    """Composed router plus the deployment's CORS policy."""

    def __init__(self, router: Router, settings: Settings):
        self.router = router
        self.settings = settings

    def handle(self, event: Mapping[str, Any]) -> dict[str, Any]:
        """Produce exactly one response for a gateway event."""
        cors_headers = get_cors_headers(self.settings, _origin_header(event))
        try:
            request = normalize_event(event)
        except Exception:
            logger.exception("Failed to normalize event")
            return with_cors(
                error_response(500, "Internal Server Error"), cors_headers
            )

        log_request(logger, request)
        if request.method == "OPTIONS":
            return options_response(cors_headers)

        return with_cors(self._dispatch(request), cors_headers)

    def _dispatch(self, request: Request) -> dict[str, Any]:
        try:
            return self.router.dispatch(request)
        except Exception:
            logger.exception(
                "Unhandled error in handler",
                extra={"http_method": request.method, "path": request.path},
            )
            return error_response(500, "Internal Server Error")


def _origin_header(event: Mapping[str, Any]) -> Optional[str]:
    headers = event.get("headers")
    if not isinstance(headers, Mapping):
        return None
    for name, value in headers.items():
        if str(name).lower() == "origin" and isinstance(value, str):
            return value
    return None


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[IdentityProvider] = None,
) -> Application:
    """Compose the application.

    Args:
        settings: Runtime settings. Defaults to settings read from the
            environment.
        provider: Identity provider. Defaults to a Cognito client built
            from ``settings``.
    """
    settings = settings or get_settings()
    provider = provider or build_identity_provider(settings)
    auth = AuthProxy(provider, settings)
    return Application(build_router(auth), settings)


_APP: Optional[Application] = None


def get_app() -> Application:
    """Return the process-wide application, composing it on first use."""
    global _APP
    if _APP is None:
        _APP = create_app()
    return _APP


def reset_app() -> None:
    """Drop the process-wide application (useful in tests)."""
    global _APP
    _APP = None


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Handle one API Gateway proxy event."""
    request_id = getattr(context, "aws_request_id", "") or (
        (event.get("requestContext") or {}).get("requestId", "")
    )
    set_request_context(req_id=request_id)
    start = time.perf_counter()
    try:
        try:
            response = get_app().handle(event)
        except Exception:
            # Settings or provider could not be built; no CORS policy is
            # known, so the open baseline applies
            logger.exception("Invocation failed before dispatch")
            response = with_cors(
                error_response(500, "Internal Server Error"),
                get_cors_headers(None),
            )
        log_response(
            logger,
            response["statusCode"],
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return response
    finally:
        clear_request_context()
