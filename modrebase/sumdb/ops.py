"""
Client operations backing the checksum database client.

The client reaches configuration, cache and network only through a
ClientOps implementation. NonPersistentOps keeps nothing between runs:
configuration is fixed, the cache always misses and every write is
discarded. It therefore cannot notice a log that was rolled back since
a previous run.
"""

from __future__ import annotations

import logging
from typing import Protocol

from modrebase.errors import CacheMissError, ConfigError, SecurityViolation
from modrebase.sumdb.config import SumDBConfig
from modrebase.sumdb.transport import SumDBTransport

logger = logging.getLogger(__name__)


class ClientOps(Protocol):
    """Capabilities the checksum database client depends on."""

    def read_config(self, file: str) -> bytes:
        ...

    def write_config(self, file: str, old: bytes, new: bytes) -> None:
        ...

    def read_cache(self, file: str) -> bytes:
        ...

    def write_cache(self, file: str, data: bytes) -> None:
        ...

    def read_remote(self, path: str) -> bytes:
        ...

    def log(self, message: str) -> None:
        ...

    def security_error(self, message: str) -> None:
        ...


class NonPersistentOps:
    """ClientOps that hold no state across runs."""

    def __init__(self, config: SumDBConfig, transport: SumDBTransport):
        self.config = config
        self.transport = transport

    def read_config(self, file: str) -> bytes:
        """
        Return the trust anchor for "key" and an empty tree head for "*/latest".

        Raises:
            ConfigError: For any other file.
        """
        if file == "key":
            return self.config.trust_anchor.encode("utf-8")
        if file.endswith("/latest"):
            # No remembered tree head: the empty tree
            return b""
        raise ConfigError(f"unknown config {file}")

    def write_config(self, file: str, old: bytes, new: bytes) -> None:
        # Ignore writes.
        pass

    def read_cache(self, file: str) -> bytes:
        raise CacheMissError("no cache")

    def write_cache(self, file: str, data: bytes) -> None:
        # Ignore writes.
        pass

    def read_remote(self, path: str) -> bytes:
        return self.transport.fetch(path)

    def log(self, message: str) -> None:
        logger.info(message)

    def security_error(self, message: str) -> None:
        """
        Report a security violation.

        Raises:
            SecurityViolation: Always; callers must treat it as fatal.
        """
        logger.critical(message)
        raise SecurityViolation(message)
