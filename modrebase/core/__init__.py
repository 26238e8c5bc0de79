"""Core utilities: version precedence and canonical JSON."""

from modrebase.core.json_canonical import (
    canonical_json_bytes,
    canonical_json_dumps,
)
from modrebase.core.semver import canonical, compare, is_valid, max_version

__all__ = [
    "canonical",
    "compare",
    "is_valid",
    "max_version",
    "canonical_json_bytes",
    "canonical_json_dumps",
]
