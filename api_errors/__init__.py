"""Typed API errors with HTTP status mapping and JSON round-tripping."""
from .errors import (
    KIND_TABLE,
    Aggregated,
    ApiError,
    BadRequest,
    Conflict,
    ErrorKind,
    Forbidden,
    InternalError,
    KindSpec,
    MethodNotAllowed,
    NotAuthorized,
    NotFound,
    NotImplemented,
    PayloadTooLarge,
    PaymentRequired,
    ServiceUnavailable,
    TooManyRequests,
    UnknownErrorName,
)
from .merge import merge
from .schemas import ErrorPayload, StackFrame
from .stack import stack_to_structured

__all__ = [
    "KIND_TABLE",
    "Aggregated",
    "ApiError",
    "BadRequest",
    "Conflict",
    "ErrorKind",
    "ErrorPayload",
    "Forbidden",
    "InternalError",
    "KindSpec",
    "MethodNotAllowed",
    "NotAuthorized",
    "NotFound",
    "NotImplemented",
    "PayloadTooLarge",
    "PaymentRequired",
    "ServiceUnavailable",
    "StackFrame",
    "TooManyRequests",
    "UnknownErrorName",
    "merge",
    "stack_to_structured",
]
