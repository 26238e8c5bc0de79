"""
Manifest normalization.

Removes redundant and conflicting directives. Applying cleanup to an
already clean manifest returns an equal manifest.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

from modrebase.manifest.model import Manifest, Replacement, Requirement

T = TypeVar("T")


def _dedupe(items: Iterable[T]) -> tuple[T, ...]:
    """Drop exact duplicates, keeping the first occurrence."""
    seen: set[T] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return tuple(result)


def _collapse(items: Iterable[T], key: Callable[[T], Hashable]) -> tuple[T, ...]:
    """One entry per key, at the position of the first and with the value of the last."""
    slots: dict[Hashable, T] = {}
    for item in items:
        slots[key(item)] = item
    return tuple(slots.values())


def _replacement_key(repl: Replacement) -> tuple[str, str | None]:
    return repl.old_path, repl.old_version


def _requirement_key(req: Requirement) -> str:
    return req.path


def cleanup(manifest: Manifest) -> Manifest:
    """
    Normalize a manifest.

    - An empty toolchain is dropped.
    - Requirements and replacements keep one entry per module path (and
      replaced version), positioned where the first appeared and holding
      the last value.
    - Duplicate excludes, retractions and tools are dropped.

    Args:
        manifest: Manifest to normalize.

    Returns:
        New normalized Manifest.
    """
    return manifest.model_copy(
        update={
            "toolchain": manifest.toolchain or None,
            "requirements": _collapse(manifest.requirements, _requirement_key),
            "tools": _dedupe(manifest.tools),
            "excludes": _dedupe(manifest.excludes),
            "replacements": _collapse(manifest.replacements, _replacement_key),
            "retractions": _dedupe(manifest.retractions),
        }
    )
