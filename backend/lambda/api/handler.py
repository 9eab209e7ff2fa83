"""Lambda entrypoint for the REST API function."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from restapi.api.handler import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the API dispatcher."""
    return _handler(event, context)
