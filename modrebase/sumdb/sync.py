"""
Rebuild go.sum content from the checksum database.

Lookups run one at a time in manifest order. The first failure aborts
the run, so a caller that discards the output on error never ships an
incomplete checksum file.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import IO, Iterator

import httpx

from modrebase.manifest.model import Manifest
from modrebase.sumdb.client import GO_MOD_SUFFIX, SumDBClient
from modrebase.sumdb.config import SumDBConfig
from modrebase.sumdb.ops import NonPersistentOps
from modrebase.sumdb.transport import SumDBTransport

logger = logging.getLogger(__name__)


@contextmanager
def open_client(
    config: SumDBConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[SumDBClient]:
    """
    Create a non-persistent checksum database client.

    The HTTP client is closed when the context exits.

    Args:
        config: Client configuration; defaults to trust-server mode against sum.golang.org.
        transport: Optional httpx transport override.
    """
    config = config or SumDBConfig.trust_server()
    with SumDBTransport(config, transport=transport) as sumdb_transport:
        yield SumDBClient(NonPersistentOps(config, sumdb_transport))


def synchronize_checksums(manifest: Manifest, output: IO[str], client: SumDBClient) -> int:
    """
    Write the go.sum lines for every requirement of a manifest.

    For each requirement, in order, the module hash lines are written
    followed by the go.mod hash lines.

    Args:
        manifest: Manifest whose requirements are looked up.
        output: Text stream receiving one line per checksum.
        client: Checksum database client.

    Returns:
        Number of lines written.

    Raises:
        ChecksumLookupError: On the first failed lookup; nothing for later
            requirements has been written.
    """
    written = 0
    for req in manifest.requirements:
        for version in (req.version, req.version + GO_MOD_SUFFIX):
            for line in client.lookup(req.path, version):
                output.write(line + "\n")
                written += 1

    logger.info(
        "Wrote %d checksum lines for %d requirements of %s",
        written,
        len(manifest.requirements),
        manifest.module_path,
    )
    return written
