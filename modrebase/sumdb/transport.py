"""
HTTP transport for the checksum database.

Each transport owns one httpx client configured from SumDBConfig. There is
no retry: a failed request fails the lookup that issued it.
"""

from __future__ import annotations

import logging
import time

import httpx

from modrebase.errors import RemoteFetchError
from modrebase.sumdb.config import SumDBConfig

logger = logging.getLogger(__name__)


class SumDBTransport:
    """Issues GET requests against the checksum database server."""

    def __init__(
        self,
        config: SumDBConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Client configuration (server, timeout, size cap).
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.config = config
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    def fetch(self, path: str) -> bytes:
        """
        GET a path from the server.

        Bodies larger than max_response_bytes are truncated, not rejected.
        The whole request, body included, must finish within
        timeout_seconds.

        Args:
            path: Absolute path such as "/lookup/golang.org/x/mod@v0.14.0".

        Returns:
            Response body.

        Raises:
            RemoteFetchError: On transport failure, timeout or non-200 status.
        """
        url = self.config.base_url + path
        limit = self.config.max_response_bytes
        deadline = time.monotonic() + self.config.timeout_seconds
        body = bytearray()

        logger.debug("GET %s", url)
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise RemoteFetchError(
                        url, f"{response.status_code} {response.reason_phrase}".strip()
                    )

                for chunk in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise RemoteFetchError(
                            url, f"exceeded {self.config.timeout_seconds:g}s timeout"
                        )
                    remaining = limit - len(body)
                    body.extend(chunk[:remaining])
                    if len(chunk) > remaining:
                        logger.warning("Response from %s truncated to %d bytes", url, limit)
                        break
        except httpx.TimeoutException as e:
            raise RemoteFetchError(url, f"timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteFetchError(url, str(e) or type(e).__name__) from e

        return bytes(body)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> SumDBTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
