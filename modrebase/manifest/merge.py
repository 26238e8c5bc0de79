"""
Rebase a downstream fork's go.mod onto its upstream.

The merged manifest keeps upstream's identity and its set of required
modules. Downstream may only raise the version of a module that upstream
also requires; modules required on one side only are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from modrebase.core import semver
from modrebase.core.json_canonical import canonical_json_dumps
from modrebase.manifest.cleanup import cleanup
from modrebase.manifest.model import Manifest, Requirement

logger = logging.getLogger(__name__)


def separate_indirect(requirements: tuple[Requirement, ...]) -> tuple[Requirement, ...]:
    """Stable partition of requirements: direct first, then indirect."""
    direct = tuple(r for r in requirements if not r.indirect)
    indirect = tuple(r for r in requirements if r.indirect)
    return direct + indirect


def rebase(upstream: Manifest, downstream: Manifest) -> Manifest:
    """
    Merge a downstream manifest onto upstream.

    For every module required by both sides the higher version wins
    (upstream on ties) and the indirect flag always comes from upstream.
    Excludes, replacements and retractions are taken from upstream only.

    Args:
        upstream: Baseline manifest.
        downstream: Forked manifest.

    Returns:
        New cleaned-up Manifest.

    Example:
        >>> up = Manifest(module_path="m", requirements=(
        ...     Requirement(path="a", version="v1.2.0"),
        ...     Requirement(path="b", version="v2.0.0"),
        ... ))
        >>> down = Manifest(module_path="fork", requirements=(
        ...     Requirement(path="a", version="v1.3.0"),
        ...     Requirement(path="c", version="v1.0.0"),
        ... ))
        >>> [(r.path, r.version) for r in rebase(up, down).requirements]
        [('a', 'v1.3.0')]
    """
    upstream_by_path = {req.path: req for req in upstream.requirements}

    merged: list[Requirement] = []
    for down_req in downstream.requirements:
        up_req = upstream_by_path.get(down_req.path)
        if up_req is None:
            logger.debug("Dropping downstream-only requirement %s", down_req.path)
            continue

        version = semver.max_version(down_req.version, up_req.version)
        if version != up_req.version:
            logger.info(
                "Raising %s from %s to %s", up_req.path, up_req.version, version
            )
        merged.append(Requirement(path=up_req.path, version=version, indirect=up_req.indirect))

    result = Manifest(
        module_path=upstream.module_path,
        go_version=upstream.go_version,
        toolchain=upstream.toolchain or None,
        requirements=separate_indirect(tuple(merged)),
        excludes=upstream.excludes,
        replacements=upstream.replacements,
        retractions=upstream.retractions,
    )
    return cleanup(result)


@dataclass
class RebaseSummary:
    """What a rebase kept, raised and dropped."""

    module_path: str
    kept: list[str] = field(default_factory=list)
    raised: dict[str, tuple[str, str]] = field(default_factory=dict)
    dropped_upstream_only: list[str] = field(default_factory=list)
    dropped_downstream_only: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "module_path": self.module_path,
            "kept": self.kept,
            "raised": {path: list(versions) for path, versions in self.raised.items()},
            "dropped_upstream_only": self.dropped_upstream_only,
            "dropped_downstream_only": self.dropped_downstream_only,
        }

    def to_json(self, indent: bool = True) -> str:
        """Serialize to canonical JSON."""
        return canonical_json_dumps(self.to_dict(), indent=indent)


def summarize_rebase(
    upstream: Manifest, downstream: Manifest, merged: Manifest
) -> RebaseSummary:
    """
    Describe the effect of a rebase on upstream's requirements.

    Args:
        upstream: Baseline manifest.
        downstream: Forked manifest.
        merged: Result of rebase(upstream, downstream).

    Returns:
        RebaseSummary with paths in manifest order.
    """
    merged_paths = {r.path for r in merged.requirements}
    upstream_paths = {r.path for r in upstream.requirements}
    summary = RebaseSummary(module_path=merged.module_path)

    for req in merged.requirements:
        summary.kept.append(req.path)
        up_req = upstream.requirement(req.path)
        if up_req is not None and up_req.version != req.version:
            summary.raised[req.path] = (up_req.version, req.version)

    summary.dropped_upstream_only = [
        r.path for r in upstream.requirements if r.path not in merged_paths
    ]
    summary.dropped_downstream_only = [
        r.path for r in downstream.requirements if r.path not in upstream_paths
    ]
    return summary
