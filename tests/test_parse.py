from __future__ import annotations

import pytest

from api_errors import (
    Aggregated,
    ApiError,
    BadRequest,
    Conflict,
    Forbidden,
    InternalError,
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
from api_errors.config import settings

ALL_VARIANTS = [
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
]


@pytest.mark.parametrize("variant", ALL_VARIANTS)
def test_parse_round_trips_every_variant(variant) -> None:
    original = variant("it broke", entity="part", key_path="spec.items.0")
    payload = original.to_json(include_stack=True)

    parsed = ApiError.parse(payload, original.status_code, "parts-service")

    assert type(parsed) is variant
    assert parsed.message == original.message
    assert parsed.entity == original.entity
    assert parsed.key_path == ("spec", "items", "0")
    assert parsed.status_code == original.status_code
    assert parsed.origin == "parts-service"
    assert parsed.stacked == original.stacked
    assert parsed.to_json(include_stack=True) == payload


def test_parse_unknown_name_falls_back_to_base() -> None:
    err = ApiError.parse({"name": "totally-unknown", "message": "x"}, 418, None)
    assert type(err) is ApiError
    assert err.status_code == 418
    assert err.message == "x"
    assert err.name == "totally-unknown"


def test_parse_missing_name_is_bad_request() -> None:
    err = ApiError.parse({"message": "nope"}, 400)
    assert type(err) is BadRequest
    assert err.message == "nope"


def test_parse_missing_message_uses_variant_default() -> None:
    assert ApiError.parse({"name": "not-found"}, 404).message == "Resource not found."


def test_variant_status_wins_over_transport_status() -> None:
    err = ApiError.parse({"name": "not-found"}, 500)
    assert err.status_code == 404


def test_parse_keeps_unknown_fields_in_options() -> None:
    err = ApiError.parse({"name": "too-many-requests", "retryAfter": 30}, 429)
    assert err.options == {"retryAfter": 30}


def test_parse_does_not_mutate_input() -> None:
    data = {"name": "aggregated", "message": "m", "errors": [{"name": "not-found"}]}
    ApiError.parse(data, 400)
    assert data == {"name": "aggregated", "message": "m", "errors": [{"name": "not-found"}]}


def test_parse_rebuilds_aggregated_children() -> None:
    data = {
        "name": "aggregated",
        "message": "Multiple errors occurred.",
        "errors": [
            {"name": "not-found", "message": "a", "entity": "part"},
            {"name": "weird", "message": "b"},
            {"name": "aggregated", "errors": [{"name": "forbidden"}]},
        ],
    }
    err = ApiError.parse(data, 400, "gateway")

    assert type(err) is Aggregated
    first, second, third = err.errors
    assert type(first) is NotFound and first.entity == "part"
    assert type(second) is ApiError and second.status_code == 400
    assert type(third) is Aggregated and type(third.errors[0]) is Forbidden
    assert all(child.origin == "gateway" for child in err.errors)
    assert err.to_json() == {
        "name": "aggregated",
        "message": "Multiple errors occurred.",
        "errors": [
            {"name": "not-found", "message": "a", "entity": "part"},
            {"name": "weird", "message": "b"},
            {"name": "aggregated", "message": "Multiple errors occurred.", "errors": [
                {"name": "forbidden", "message": "Forbidden."},
            ]},
        ],
    }


@pytest.mark.parametrize("key_path", [5, True, {"a": "b"}, 1.5])
def test_parse_ignores_key_path_of_unsupported_type(key_path) -> None:
    err = ApiError.parse({"name": "bad-request", "message": "x", "keyPath": key_path}, 400)
    assert type(err) is BadRequest
    assert err.message == "x"
    assert err.key_path is None
    assert err.to_json() == {"name": "bad-request", "message": "x"}


def test_parse_wraps_non_mapping_children() -> None:
    err = ApiError.parse({"name": "aggregated", "errors": ["boom", 3]}, 400)
    assert [type(child) for child in err.errors] == [BadRequest, BadRequest]
    assert [child.message for child in err.errors] == ["boom", "3"]


def test_parse_drops_non_list_errors() -> None:
    err = ApiError.parse({"name": "aggregated", "errors": "not a list"}, 400)
    assert err.errors == ()


def test_parse_ignores_malformed_stack() -> None:
    err = ApiError.parse({"name": "not-found", "stack": "not frames"}, 404)
    assert err.raw_stack
    assert err.stacked


def test_strict_parse_rejects_unknown_name() -> None:
    with pytest.raises(UnknownErrorName, match="totally-unknown"):
        ApiError.parse({"name": "totally-unknown"}, 418, strict=True)


def test_strict_parse_default_comes_from_settings(monkeypatch) -> None:
    monkeypatch.setattr(settings, "STRICT_PARSE", True)
    with pytest.raises(ValueError):
        ApiError.parse({"name": "totally-unknown"}, 418)
    assert type(ApiError.parse({"name": "totally-unknown"}, 418, strict=False)) is ApiError


def test_strict_parse_accepts_known_names() -> None:
    assert type(ApiError.parse({"name": "already-exists"}, 409, strict=True)) is Conflict


def test_parse_from_subclass_still_dispatches_on_name() -> None:
    assert type(NotFound.parse({"name": "forbidden"}, 403)) is Forbidden
