"""
Checksum database client configuration.

The only supported mode trusts the server: lookups are not checked against
the signed tree head or Merkle inclusion proofs, and no log position is
remembered between runs. The mode is named explicitly so callers opt in
to it rather than getting it by accident.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modrebase.errors import ConfigError

GO_SUMDB_KEY = "sum.golang.org+033de0ae+Ac4zctda0e5eza+HJyk9SxEdh+s3Ux18htTTAD8OuAn8"

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_RESPONSE_BYTES = 1 << 20


class VerificationMode(str, Enum):
    """How much of the transparency log the client verifies."""

    TRUST_SERVER = "trust-server"


class SumDBConfig(BaseModel):
    """Configuration for the checksum database client."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    trust_anchor: str = Field(
        default=GO_SUMDB_KEY,
        min_length=1,
        description="Verifier key; the server name is the text before the first '+'",
    )
    server_url: str | None = Field(
        default=None,
        description="Base URL override (e.g. a mirror); defaults to https://<server name>",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Total time allowed per request"
    )
    max_response_bytes: int = Field(
        default=DEFAULT_MAX_RESPONSE_BYTES,
        gt=0,
        description="Response bodies are truncated to this many bytes",
    )
    verification: VerificationMode = Field(
        default=VerificationMode.TRUST_SERVER,
        description="Log verification mode; trust-server skips all proofs",
    )

    @property
    def server_name(self) -> str:
        """Server name derived from the trust anchor."""
        name, _, _ = self.trust_anchor.partition("+")
        return name

    @property
    def base_url(self) -> str:
        """URL that lookup paths are appended to."""
        if self.server_url:
            return self.server_url.rstrip("/")
        return f"https://{self.server_name}"

    @classmethod
    def trust_server(cls, **kwargs: Any) -> SumDBConfig:
        """Create a configuration in trust-server mode."""
        return cls(verification=VerificationMode.TRUST_SERVER, **kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SumDBConfig:
        """
        Load configuration from a YAML file.

        Expected format:
        ```yaml
        trust_anchor: sum.golang.org+033de0ae+Ac4zctda0e5eza+HJyk9SxEdh+s3Ux18htTTAD8OuAn8
        server_url: https://sum.golang.google.cn
        timeout_seconds: 60
        verification: trust-server
        ```

        Raises:
            ConfigError: If the file cannot be read or holds invalid values.
        """
        import yaml

        try:
            data = yaml.safe_load(Path(path).read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"loading {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"loading {path}: expected a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration in {path}: {e}") from e
