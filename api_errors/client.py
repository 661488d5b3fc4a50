"""Client-side rehydration of errors from HTTP responses.

Works with any response object exposing ``status_code``, ``json()`` and
``text`` (requests, httpx and the Starlette test client all do).
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .errors import ApiError

logger = logging.getLogger(__name__)


def _body(response: Any) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        logger.debug("Error response with status %s is not JSON", response.status_code)
        return {"message": response.text}
    if isinstance(data, dict):
        return data
    return {"message": response.text}


def from_response(response: Any, origin: Any = None) -> Optional[ApiError]:
    """Typed error carried by ``response``, or None for a non-error status."""
    if response.status_code < 400:
        return None
    return ApiError.parse(_body(response), response.status_code, origin)


def raise_for_response(response: Any, origin: Any = None) -> None:
    """Raise the error carried by ``response``, if any."""
    error = from_response(response, origin)
    if error is not None:
        raise error
