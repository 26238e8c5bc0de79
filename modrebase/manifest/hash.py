"""
Manifest hashing for equivalence checks.

Computes stable hashes of manifest content for comparison.
"""

from __future__ import annotations

import xxhash

from modrebase.core.json_canonical import canonical_json_bytes
from modrebase.manifest.model import Manifest


def compute_manifest_hash(manifest: Manifest) -> str:
    """
    Compute hash of a manifest.

    Args:
        manifest: The manifest to hash.

    Returns:
        Hex-encoded xxhash64 of the canonical JSON form.
    """
    return xxhash.xxh64(canonical_json_bytes(manifest.model_dump())).hexdigest()


def compare_manifests(manifest_a: Manifest, manifest_b: Manifest) -> dict[str, bool]:
    """
    Compare two manifests component by component.

    Returns:
        Dict of comparison results by component.
    """
    return {
        "module_path_match": manifest_a.module_path == manifest_b.module_path,
        "go_version_match": manifest_a.go_version == manifest_b.go_version,
        "toolchain_match": manifest_a.toolchain == manifest_b.toolchain,
        "requirements_match": manifest_a.requirements == manifest_b.requirements,
        "excludes_match": manifest_a.excludes == manifest_b.excludes,
        "replacements_match": manifest_a.replacements == manifest_b.replacements,
        "retractions_match": manifest_a.retractions == manifest_b.retractions,
        "overall_hash_match": compute_manifest_hash(manifest_a)
        == compute_manifest_hash(manifest_b),
    }
