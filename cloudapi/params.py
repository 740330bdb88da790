"""
Request parameter flattening.

Nested request parameters are sent to the legacy endpoint as a single-level
mapping keyed by dot-joined paths:

    {"Filters": [{"Name": "zone", "Values": ["a"]}], "Limit": 10}
    -> {"Filters.0.Name": "zone", "Filters.0.Values.0": "a", "Limit": 10}

None values are omitted at every level: absence means "not sent".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

Scalar = Union[str, int, float, bool]


def flatten_params(params: Mapping[str, Any]) -> dict[str, Scalar]:
    """Flatten a nested mapping into {"a.b.0": leaf}. None leaves are dropped."""
    flat: dict[str, Scalar] = {}
    _flatten_into(flat, params, ())
    return flat


def _flatten_into(flat: dict[str, Scalar], value: Any, path: tuple[str, ...]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, child in value.items():
            _flatten_into(flat, child, path + (str(key),))
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            _flatten_into(flat, child, path + (str(index),))
    elif path:
        # bytes leaves go on the wire as text, so sign them as text too
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        flat[".".join(path)] = value


def drop_none(value: Any) -> Any:
    """Return a copy of a nested structure with None members removed."""
    if isinstance(value, Mapping):
        return {k: drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [drop_none(v) for v in value if v is not None]
    return value
