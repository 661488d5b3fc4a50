"""API error taxonomy with stable wire names and HTTP status mapping.

Services raise a variant (``NotFound``, ``Forbidden``...). The transport layer
answers with ``status_code`` and ``to_json()``; a client rebuilds the same type
from the body and status with ``ApiError.parse``.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional

from .config import settings
from .merge import merge
from .schemas import StackFrame
from .stack import capture_stack, coerce_frames, exception_stack, frames_to_json, stack_to_structured

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 500
DEFAULT_PARSE_NAME = "bad-request"

# Wire spelling -> attribute spelling for reserved option keys.
_OPTION_ALIASES: dict[str, str] = {"statusCode": "status_code", "keyPath": "key_path"}
_RESERVED_OPTIONS: frozenset[str] = frozenset(
    {"message", "name", "entity", "status_code", "stack", "key_path", "origin", "underlying"}
)
_CASE_BOUNDARY = re.compile(r"(?=[A-Z])")


class ErrorKind(str, Enum):
    """Stable machine-readable error names."""

    NOT_AUTHORIZED = "not-authorized"
    PAYMENT_REQUIRED = "payment-required"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    ALREADY_EXISTS = "already-exists"
    METHOD_NOT_ALLOWED = "method-not-allowed"
    BAD_REQUEST = "bad-request"
    TOO_MANY_REQUESTS = "too-many-requests"
    PAYLOAD_TOO_LARGE = "payload-too-large"
    INTERNAL_ERROR = "internal-error"
    NOT_IMPLEMENTED = "not-implemented"
    SERVICE_UNAVAILABLE = "service-unavailable"
    AGGREGATED = "aggregated"


@dataclass(frozen=True)
class KindSpec:
    """Default message and status for one error kind."""

    message: str
    status_code: int
    name_override: bool = True  # caller-supplied ``name`` replaces the kind's name


KIND_TABLE: dict[ErrorKind, KindSpec] = {
    ErrorKind.NOT_AUTHORIZED: KindSpec("Not authorized.", 401, name_override=False),
    ErrorKind.PAYMENT_REQUIRED: KindSpec("Payment required.", 402, name_override=False),
    ErrorKind.FORBIDDEN: KindSpec("Forbidden.", 403, name_override=False),
    ErrorKind.NOT_FOUND: KindSpec("Resource not found.", 404),
    ErrorKind.ALREADY_EXISTS: KindSpec("Resource already exists.", 409),
    ErrorKind.METHOD_NOT_ALLOWED: KindSpec("Method is not allowed.", 405),
    ErrorKind.BAD_REQUEST: KindSpec("Bad request.", 400),
    ErrorKind.TOO_MANY_REQUESTS: KindSpec("Too many requests.", 429),
    ErrorKind.PAYLOAD_TOO_LARGE: KindSpec("Payload too large.", 413),
    ErrorKind.INTERNAL_ERROR: KindSpec("Internal server error.", 500),
    ErrorKind.NOT_IMPLEMENTED: KindSpec("Not implemented.", 501),
    ErrorKind.SERVICE_UNAVAILABLE: KindSpec("Service unavailable.", 503),
    ErrorKind.AGGREGATED: KindSpec("Multiple errors occurred.", 400),
}


class UnknownErrorName(ValueError):
    """Raised by strict ``ApiError.parse`` for a name outside the taxonomy."""

    def __init__(self, name: Any) -> None:
        super().__init__(f"Unknown error name: {name!r}")
        self.name = name


def _alias_keys(options: Mapping[str, Any] | None) -> dict[str, Any]:
    return {_OPTION_ALIASES.get(key, key): value for key, value in (options or {}).items()}


def _split_key_path(key_path: Any) -> Optional[tuple[str, ...]]:
    if key_path is None:
        return None
    if isinstance(key_path, str):
        return tuple(key_path.split(".")) if key_path else ()
    if isinstance(key_path, (list, tuple)):
        return tuple(str(part) for part in key_path)
    logger.warning("Ignoring key path of type %s", type(key_path).__name__)
    return None


def _kebab(name: Any) -> str:
    return "-".join(part for part in _CASE_BOUNDARY.split(str(name)) if part).lower()


class ApiError(Exception):
    """Base API error.

    Accepts ``ApiError(message)``, ``ApiError(options)`` or
    ``ApiError(message, options)``; keyword arguments are layered on top of
    ``options``. Reserved option keys become read-only attributes, anything
    else is kept in :attr:`options` and is never serialized.
    """

    kind: ClassVar[Optional[ErrorKind]] = None

    def __init__(self, message: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        message, options = self._correct_arguments(message, options, **kwargs)

        spec = KIND_TABLE.get(self.kind) if self.kind is not None else None
        if spec is not None:
            name = options.get("name") if spec.name_override else None
            options = merge(options, {"name": name or self.kind.value, "status_code": spec.status_code})
            message = message or spec.message

        if message is None:
            super().__init__()
        else:
            super().__init__(message)

        self._message = message
        self._name = options.get("name")
        self._entity = options.get("entity")
        self._status_code = options.get("status_code") or DEFAULT_STATUS_CODE
        self._key_path = _split_key_path(options.get("key_path"))
        self._origin = options.get("origin")
        self._underlying = options.get("underlying")
        self._options = {key: value for key, value in options.items() if key not in _RESERVED_OPTIONS}

        self._stacked = coerce_frames(options.get("stack"))
        self._raw_stack = capture_stack(settings.STACK_LIMIT) if self._stacked is None else None
        self._structured: Optional[list[StackFrame]] = None

        if isinstance(self._underlying, BaseException):
            self.__cause__ = self._underlying

    @staticmethod
    def _correct_arguments(
        message: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> tuple[Any, dict[str, Any]]:
        """Normalize the call forms into ``(message, options)``.

        A mapping passed alone is the options; its ``message`` key supplies the
        message. The returned options are a fresh dict with ``message`` removed
        and wire-spelled keys renamed.
        """
        if isinstance(message, Mapping) and options is None:
            options, message = message, None
        normalized = merge(_alias_keys(options), _alias_keys(kwargs))
        if message is None:
            message = normalized.get("message")
        normalized.pop("message", None)
        return message, normalized

    @staticmethod
    def parse(
        data: Mapping[str, Any],
        status_code: int,
        origin: Any = None,
        *,
        strict: Optional[bool] = None,
    ) -> ApiError:
        """Rebuild a typed error from a JSON body and the status it came with.

        The ``name`` field selects the variant (``bad-request`` when absent).
        Unknown names give a plain ``ApiError`` unless ``strict`` is set, in
        which case :class:`UnknownErrorName` is raised.
        """
        if strict is None:
            strict = settings.STRICT_PARSE
        if not isinstance(data, Mapping):
            data = {"message": str(data)}

        options = merge(
            _alias_keys(data),
            {"message": data.get("message"), "status_code": status_code, "origin": origin},
        )

        errors = options.get("errors")
        if isinstance(errors, (list, tuple)):
            options["errors"] = [ApiError.parse(error, status_code, origin, strict=strict) for error in errors]
        elif errors is not None:
            logger.warning("Dropping non-list errors field of type %s", type(errors).__name__)
            del options["errors"]

        name = data.get("name") or DEFAULT_PARSE_NAME
        variant = _VARIANTS.get(name) if isinstance(name, str) else None
        if variant is None:
            if strict:
                raise UnknownErrorName(name)
            logger.debug("Unknown error name %r; using base ApiError", name)
            variant = ApiError

        return variant(options)

    @property
    def message(self) -> Any:
        return self._message

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def entity(self) -> Optional[str]:
        return self._entity

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def key_path(self) -> Optional[tuple[str, ...]]:
        return self._key_path

    @property
    def origin(self) -> Any:
        return self._origin

    @property
    def underlying(self) -> Any:
        return self._underlying

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def raw_stack(self) -> Optional[str]:
        """Traceback text captured at construction, if no stack was supplied."""
        return self._raw_stack

    @property
    def actual(self) -> ApiError:
        """Root of the ``underlying`` chain."""
        current = self
        while isinstance(current.underlying, ApiError):
            current = current.underlying
        return current

    @property
    def stacked(self) -> list[StackFrame]:
        """Structured stack of :attr:`actual`, innermost frame first.

        A raised foreign exception at the end of the chain supplies its own
        traceback, so the frames point at the failure site.
        """
        actual = self.actual
        if actual._stacked is not None:
            return list(actual._stacked)
        if actual._structured is None:
            raw = exception_stack(actual.underlying) if isinstance(actual.underlying, BaseException) else None
            actual._structured = stack_to_structured(raw or actual._raw_stack)
        return list(actual._structured)

    def to_json(self, include_stack: bool = False) -> dict[str, Any]:
        """Wire representation; absent fields are omitted, never null."""
        payload = {
            "name": _kebab(self.name) if self.name else None,
            "message": self.message,
            "entity": self.entity,
            "keyPath": ".".join(self.key_path) if self.key_path else None,
            "stack": frames_to_json(self.stacked) if include_stack else None,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def __str__(self) -> str:
        return "" if self._message is None else str(self._message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, status_code={self.status_code!r}, message={self.message!r})"


class NotAuthorized(ApiError):
    kind = ErrorKind.NOT_AUTHORIZED


class PaymentRequired(ApiError):
    kind = ErrorKind.PAYMENT_REQUIRED


class Forbidden(ApiError):
    kind = ErrorKind.FORBIDDEN


class NotFound(ApiError):
    kind = ErrorKind.NOT_FOUND


class Conflict(ApiError):
    kind = ErrorKind.ALREADY_EXISTS


class MethodNotAllowed(ApiError):
    kind = ErrorKind.METHOD_NOT_ALLOWED


class BadRequest(ApiError):
    kind = ErrorKind.BAD_REQUEST


class TooManyRequests(ApiError):
    kind = ErrorKind.TOO_MANY_REQUESTS


class PayloadTooLarge(ApiError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE


class InternalError(ApiError):
    kind = ErrorKind.INTERNAL_ERROR


class NotImplemented(ApiError):  # noqa: A001
    kind = ErrorKind.NOT_IMPLEMENTED


class ServiceUnavailable(ApiError):
    kind = ErrorKind.SERVICE_UNAVAILABLE


class Aggregated(ApiError):
    """Several errors reported as one, in insertion order.

    Children come from ``underlying.errors`` when re-wrapping another
    aggregated error, otherwise from the ``errors`` option.
    """

    kind = ErrorKind.AGGREGATED

    def __init__(self, message: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        message, options = self._correct_arguments(message, options, **kwargs)
        errors = options.pop("errors", None)
        super().__init__(message, options)

        if isinstance(self.underlying, Aggregated):
            errors = self.underlying.errors
        self._errors: list[ApiError] = self._check(errors or [])

    @staticmethod
    def _check(candidates: Any) -> list[ApiError]:
        if isinstance(candidates, (list, tuple)) and all(isinstance(error, ApiError) for error in candidates):
            return list(candidates)
        raise TypeError("Errors must be a list of ApiError instances.")

    @property
    def errors(self) -> tuple[ApiError, ...]:
        return tuple(self._errors)

    @errors.setter
    def errors(self, errors: Any) -> None:
        self._errors = self._check(errors)

    def add(self, error: Any) -> None:
        """Append one error or a list of errors."""
        candidates = error if isinstance(error, (list, tuple)) else [error]
        self._errors = self._errors + self._check(candidates)

    def to_json(self, include_stack: bool = False) -> dict[str, Any]:
        payload = super().to_json(include_stack=include_stack)
        payload["errors"] = [error.to_json(include_stack=include_stack) for error in self._errors]
        return payload


_VARIANTS: dict[str, type[ApiError]] = {
    variant.kind.value: variant
    for variant in (
        NotAuthorized,
        PaymentRequired,
        Forbidden,
        NotFound,
        Conflict,
        MethodNotAllowed,
        BadRequest,
        TooManyRequests,
        PayloadTooLarge,
        InternalError,
        NotImplemented,
        ServiceUnavailable,
        Aggregated,
    )
}
