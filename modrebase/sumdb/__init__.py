"""Go checksum database client (trust-server mode)."""

from modrebase.sumdb.client import SumDBClient, escape_path, escape_version, parse_record
from modrebase.sumdb.config import GO_SUMDB_KEY, SumDBConfig, VerificationMode
from modrebase.sumdb.ops import ClientOps, NonPersistentOps
from modrebase.sumdb.sync import open_client, synchronize_checksums
from modrebase.sumdb.transport import SumDBTransport

__all__ = [
    "GO_SUMDB_KEY",
    "SumDBConfig",
    "VerificationMode",
    "ClientOps",
    "NonPersistentOps",
    "SumDBTransport",
    "SumDBClient",
    "escape_path",
    "escape_version",
    "parse_record",
    "open_client",
    "synchronize_checksums",
]
