"""
Per-ecosystem dependency strategies.

A strategy knows how to find its manifest in a source tree, rebase a
fork's manifest onto upstream, and rebuild the checksum file. The set of
strategies is closed: STRATEGIES lists every supported ecosystem and
detection walks it in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Protocol

import httpx

from modrebase.errors import ConfigError
from modrebase.io.files import atomic_writer, load_manifest, write_manifest
from modrebase.manifest.merge import rebase as rebase_manifests
from modrebase.manifest.model import Manifest
from modrebase.sumdb.config import SumDBConfig
from modrebase.sumdb.sync import open_client, synchronize_checksums

logger = logging.getLogger(__name__)


class Strategy(Protocol):
    """Capabilities every ecosystem strategy provides."""

    name: ClassVar[str]

    def probe(self, path: str | Path) -> bool:
        ...

    def lock_file_name(self) -> str:
        ...

    def rebase(
        self, upstream_file: str | Path, downstream_file: str | Path, output_file: str | Path
    ) -> Manifest:
        ...

    def update_checksums(self, lock_file: str | Path, output_file: str | Path) -> int:
        ...


@dataclass(frozen=True)
class GoStrategy:
    """Go modules: go.mod manifests and go.sum checksum files."""

    name: ClassVar[str] = "go"

    sumdb_config: SumDBConfig = field(default_factory=SumDBConfig.trust_server)
    transport: httpx.BaseTransport | None = None

    def probe(self, path: str | Path) -> bool:
        """Report whether path contains a go.mod file."""
        return (Path(path) / self.lock_file_name()).exists()

    def lock_file_name(self) -> str:
        return "go.mod"

    def local_lock_file_name(self) -> str:
        return "go.mod.local"

    def checksum_file_name(self) -> str:
        return "go.sum"

    def local_checksum_file_name(self) -> str:
        return "go.sum.local"

    def rebase(
        self, upstream_file: str | Path, downstream_file: str | Path, output_file: str | Path
    ) -> Manifest:
        """
        Rebase a downstream go.mod onto upstream and write the result.

        Requirements that only one side has are dropped; see
        modrebase.manifest.merge.rebase.

        Args:
            upstream_file: Upstream go.mod.
            downstream_file: Downstream (fork) go.mod.
            output_file: Destination, replaced atomically.

        Returns:
            The merged manifest.

        Raises:
            ManifestParseError: If either input is malformed.
            ManifestIOError: If a file cannot be read or written.
        """
        upstream = load_manifest(upstream_file)
        downstream = load_manifest(downstream_file)

        merged = rebase_manifests(upstream, downstream)
        write_manifest(output_file, merged)

        logger.info(
            "Rebased %s onto %s: %d of %d upstream requirements kept",
            downstream_file,
            upstream_file,
            len(merged.requirements),
            len(upstream.requirements),
        )
        return merged

    def update_checksums(self, lock_file: str | Path, output_file: str | Path) -> int:
        """
        Rebuild a go.sum file for the requirements of a go.mod file.

        The output file is only replaced when every lookup succeeds.

        Args:
            lock_file: go.mod to read requirements from (usually the local one).
            output_file: go.sum to write.

        Returns:
            Number of checksum lines written.

        Raises:
            ChecksumLookupError: If any lookup fails.
            ManifestIOError: If a file cannot be read or written.
        """
        manifest = load_manifest(lock_file)
        with open_client(self.sumdb_config, transport=self.transport) as client:
            with atomic_writer(output_file) as out:
                return synchronize_checksums(manifest, out, client)


STRATEGIES: tuple[type[Strategy], ...] = (GoStrategy,)


def get_strategy(name: str, **kwargs) -> Strategy:
    """
    Return the strategy registered under name.

    Raises:
        ConfigError: If no strategy has that name.
    """
    for strategy_cls in STRATEGIES:
        if strategy_cls.name == name:
            return strategy_cls(**kwargs)
    known = ", ".join(s.name for s in STRATEGIES)
    raise ConfigError(f"unknown strategy {name!r} (known: {known})")


def detect_strategy(path: str | Path, **kwargs) -> Strategy | None:
    """Return the first strategy whose manifest exists under path."""
    for strategy_cls in STRATEGIES:
        strategy = strategy_cls(**kwargs)
        if strategy.probe(path):
            logger.debug("Detected %s strategy in %s", strategy.name, path)
            return strategy
    return None
