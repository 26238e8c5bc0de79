"""
Checksum database lookup client.

Fetches go.sum lines for a module version from the /lookup endpoint of a
Go checksum database. A lookup response has the form

    <record id>
    <go.sum lines>
    <blank line>
    <signed tree head>

Only trust-server mode is implemented: the record id and signed tree head
are parsed but not checked against the log.
"""

from __future__ import annotations

import logging
import re

from modrebase.errors import (
    CacheMissError,
    ChecksumLookupError,
    ConfigError,
    ModRebaseError,
    SecurityViolation,
)
from modrebase.sumdb.ops import ClientOps

logger = logging.getLogger(__name__)

GO_MOD_SUFFIX = "/go.mod"

_PATH_CHARS_RE = re.compile(r"^[A-Za-z0-9.\-_~/]+$")
_FIRST_ELEM_RE = re.compile(r"^[a-z0-9.\-]+$")
_TILDE_DIGITS_RE = re.compile(r"~[0-9]+$")

_BAD_WINDOWS_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


class MalformedRecordError(ModRebaseError):
    """A lookup response could not be parsed."""

    pass


def _check_elem(path: str, elem: str) -> None:
    if elem in ("", ".", ".."):
        raise ValueError(f"malformed module path {path!r}: empty or dot path element")
    if elem.startswith("."):
        raise ValueError(f"malformed module path {path!r}: leading dot in path element")
    if elem.endswith("."):
        raise ValueError(f"malformed module path {path!r}: trailing dot in path element")
    short = elem.split(".", 1)[0]
    if short.upper() in _BAD_WINDOWS_NAMES:
        raise ValueError(f"malformed module path {path!r}: {short!r} disallowed as path element")
    if _TILDE_DIGITS_RE.search(short):
        raise ValueError(f"malformed module path {path!r}: trailing tilde and digits in path element")


def _check_major_suffix(path: str) -> None:
    # A trailing /vN element must name a major version of at least 2
    match = re.search(r"/v([0-9.]+)$", path)
    if match is None:
        return
    major = match.group(1)
    if "." in major or major.startswith("0") or major == "1":
        raise ValueError(f"malformed module path {path!r}: invalid version suffix /v{major}")


def check_path(path: str) -> None:
    """
    Validate a module path.

    Elements may use ASCII letters, digits and "-._~". The first element
    is a lower-case host name containing a dot.

    Raises:
        ValueError: If the path is not a valid module path.
    """
    if not path:
        raise ValueError("empty module path")
    if not _PATH_CHARS_RE.match(path):
        raise ValueError(f"malformed module path {path!r}: invalid char")
    elements = path.split("/")
    for elem in elements:
        _check_elem(path, elem)
    first = elements[0]
    if not _FIRST_ELEM_RE.match(first):
        raise ValueError(f"malformed module path {path!r}: invalid char in first path element")
    if "." not in first:
        raise ValueError(f"malformed module path {path!r}: missing dot in first path element")
    if first.startswith("-"):
        raise ValueError(f"malformed module path {path!r}: leading dash in first path element")
    if not path.startswith("gopkg.in/"):
        _check_major_suffix(path)


def _escape(value: str) -> str:
    escaped = []
    for c in value:
        if c == "!" or not c.isascii() or not c.isprintable():
            raise ValueError(f"invalid char {c!r} in {value!r}")
        if "A" <= c <= "Z":
            escaped.append("!" + c.lower())
        else:
            escaped.append(c)
    return "".join(escaped)


def escape_path(path: str) -> str:
    """
    Escape a module path for use in a URL.

    Upper-case letters become "!" followed by the lower-case letter.

    Examples:
        >>> escape_path("github.com/BurntSushi/toml")
        'github.com/!burnt!sushi/toml'
    """
    check_path(path)
    return _escape(path)


def escape_version(version: str) -> str:
    """Escape a version for use in a URL."""
    if not version or "/" in version:
        raise ValueError(f"invalid version {version!r}")
    return _escape(version)


def parse_record(data: bytes) -> tuple[int, str, bytes]:
    """
    Split a lookup response into record id, record text and tree head.

    Returns:
        Tuple of (id, text, signed tree head). The text keeps its final newline.

    Raises:
        MalformedRecordError: If the data is not a lookup record.
    """
    newline = data.find(b"\n")
    if newline < 0 or not data[:newline].isdigit():
        raise MalformedRecordError("malformed record data")
    record_id = int(data[:newline])

    rest = data[newline + 1 :]
    end = rest.find(b"\n\n")
    if end < 0:
        raise MalformedRecordError("malformed record data")

    try:
        text = rest[: end + 1].decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRecordError("malformed record data: invalid UTF-8") from e
    if any(c != "\n" and not c.isprintable() for c in text):
        raise MalformedRecordError("malformed record data: control character in text")

    return record_id, text, rest[end + 2 :]


class SumDBClient:
    """
    Looks up go.sum lines in a checksum database.

    All configuration, caching and network access goes through ops.
    """

    def __init__(self, ops: ClientOps):
        self.ops = ops
        self._name: str | None = None

    @property
    def name(self) -> str:
        """Server name, read from the configured key on first use."""
        if self._name is None:
            self._name = self._init()
        return self._name

    def _init(self) -> str:
        key = self.ops.read_config("key").decode("utf-8")
        name, _, _ = key.partition("+")
        if not name:
            raise ConfigError(f"malformed checksum database key {key!r}")

        latest = self.ops.read_config(f"{name}/latest")
        if latest:
            logger.debug("Remembered tree head for %s: %d bytes", name, len(latest))
        logger.warning(
            "Checksum database %s: tree verification disabled (trust-server mode)", name
        )
        return name

    def lookup(self, path: str, version: str) -> list[str]:
        """
        Return the go.sum lines for a module version.

        Args:
            path: Module path.
            version: Version, or version + "/go.mod" for the go.mod hash.

        Returns:
            Lines of the form "<path> <version> h1:<hash>", possibly empty.

        Raises:
            ChecksumLookupError: If the lookup fails for any reason.
            SecurityViolation: If ops reports a security error.
        """
        try:
            return self._lookup(path, version)
        except SecurityViolation:
            raise
        except (ModRebaseError, ValueError) as e:
            raise ChecksumLookupError(path, version, e) from e

    def _lookup(self, path: str, version: str) -> list[str]:
        bare_version = version.removesuffix(GO_MOD_SUFFIX)
        remote_path = f"/lookup/{escape_path(path)}@{escape_version(bare_version)}"
        cache_file = self.name + remote_path

        try:
            data = self.ops.read_cache(cache_file)
        except CacheMissError:
            data = self.ops.read_remote(remote_path)
            self.ops.write_cache(cache_file, data)

        record_id, text, _tree = parse_record(data)
        logger.debug("Record %d for %s@%s", record_id, path, bare_version)

        prefix = f"{path} {version} "
        return [line for line in text.split("\n") if line.startswith(prefix)]
