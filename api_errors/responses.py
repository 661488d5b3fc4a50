"""FastAPI helpers that render ApiError as JSON responses."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import KIND_TABLE, ApiError, InternalError
from .schemas import ErrorPayload

logger = logging.getLogger(__name__)


def build_error_response(exc: ApiError, *, include_stack: Optional[bool] = None) -> JSONResponse:
    """Render ApiError with its own status code and wire body."""
    if include_stack is None:
        include_stack = settings.INCLUDE_STACK
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_json(include_stack=include_stack),
    )


def error_responses(*variants: type[ApiError]) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses=`` entries for the given variants."""
    responses: dict[int | str, dict[str, Any]] = {}
    for variant in variants:
        if variant.kind is None:
            continue
        spec = KIND_TABLE[variant.kind]
        responses[spec.status_code] = {"model": ErrorPayload, "description": spec.message}
    return responses


def register_error_handlers(app: FastAPI) -> None:
    """Register ApiError handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.name, exc.message)
        else:
            logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.name, exc.message)
        return build_error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error on %s %s: %s", request.method, request.url.path, type(exc).__name__)
        return build_error_response(InternalError(underlying=exc))
