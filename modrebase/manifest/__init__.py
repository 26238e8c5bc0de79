"""go.mod model, text form and rebase engine."""

from modrebase.manifest.cleanup import cleanup
from modrebase.manifest.formatter import format_manifest
from modrebase.manifest.hash import compare_manifests, compute_manifest_hash
from modrebase.manifest.merge import RebaseSummary, rebase, summarize_rebase
from modrebase.manifest.model import (
    Exclusion,
    GodebugSetting,
    Manifest,
    Replacement,
    Requirement,
    Retraction,
)
from modrebase.manifest.parser import parse_manifest

__all__ = [
    "Manifest",
    "Requirement",
    "Exclusion",
    "Replacement",
    "Retraction",
    "GodebugSetting",
    "parse_manifest",
    "format_manifest",
    "cleanup",
    "rebase",
    "summarize_rebase",
    "RebaseSummary",
    "compute_manifest_hash",
    "compare_manifests",
]
