"""Utility modules for the API function."""

from restapi.utils.cookies import (
    clear_refresh_cookie,
    extract_cookie,
    refresh_cookie,
)
from restapi.utils.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    mask_email,
    mask_pii,
    set_request_context,
)
from restapi.utils.responses import (
    empty_response,
    error_response,
    json_response,
    text_response,
)

__all__ = [
    "clear_refresh_cookie",
    "clear_request_context",
    "configure_logging",
    "empty_response",
    "error_response",
    "extract_cookie",
    "get_logger",
    "json_response",
    "mask_email",
    "mask_pii",
    "refresh_cookie",
    "set_request_context",
    "text_response",
]
