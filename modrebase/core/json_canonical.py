"""
Deterministic JSON serialization for byte-stable manifest dumps.

Identical manifests always produce identical JSON, so the output can be
hashed and diffed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import orjson


def _default_serializer(obj: Any) -> Any:
    """
    Serializer for types orjson does not handle natively.

    Raises:
        TypeError: If object cannot be serialized.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        # Sorted for determinism
        return sorted(obj, key=str)
    if hasattr(obj, "model_dump"):
        # Pydantic models
        return obj.model_dump()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json_dumps(obj: Any, *, indent: bool = False) -> str:
    """
    Serialize object to canonical JSON string.

    Keys are sorted, output is UTF-8 and line endings are normalized.

    Args:
        obj: Object to serialize.
        indent: If True, pretty-print with 2-space indentation.

    Returns:
        Canonical JSON string.

    Examples:
        >>> canonical_json_dumps({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    options = orjson.OPT_SORT_KEYS

    if indent:
        options |= orjson.OPT_INDENT_2

    json_str = orjson.dumps(obj, default=_default_serializer, option=options).decode("utf-8")
    return json_str.replace("\r\n", "\n").replace("\r", "\n")


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Serialize object to canonical JSON bytes.

    Useful for computing hashes of JSON objects.
    """
    return orjson.dumps(obj, default=_default_serializer, option=orjson.OPT_SORT_KEYS)
