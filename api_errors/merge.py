"""Right-biased deep merge for option mappings."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def merge(target: Mapping[str, Any] | None, *sources: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge ``sources`` onto ``target`` and return a new dict.

    Nested mappings are merged recursively. Every other value, sequences
    included, is replaced by the later one and passed by reference.
    None of the inputs is mutated.
    """
    result = _copy_mapping(target or {})
    for source in sources:
        if source:
            _merge_into(result, source)
    return result


def _copy_mapping(value: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: _copy_mapping(item) if isinstance(item, Mapping) else item
        for key, item in value.items()
    }


def _merge_into(base: dict[str, Any], update: Mapping[str, Any]) -> None:
    for key, value in update.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _merge_into(base[key], value)
        elif isinstance(value, Mapping):
            base[key] = _copy_mapping(value)
        else:
            base[key] = value
