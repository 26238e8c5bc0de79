"""
Exception hierarchy for modrebase.

Every error raised by the library derives from ModRebaseError so callers
can catch one type at the process boundary.
"""

from __future__ import annotations


class ModRebaseError(Exception):
    """Base class for all modrebase errors."""

    pass


class ManifestParseError(ModRebaseError):
    """A manifest could not be parsed."""

    def __init__(self, filename: str, line: int, message: str):
        location = f"{filename}:{line}" if line else filename
        super().__init__(f"{location}: {message}")
        self.filename = filename
        self.line = line
        self.message = message


class ManifestIOError(ModRebaseError):
    """A manifest or checksum file could not be read or written."""

    def __init__(self, message: str, path: str, original_error: OSError | None = None):
        super().__init__(f"{message} {path}: {original_error}" if original_error else f"{message} {path}")
        self.path = path
        self.original_error = original_error


class ConfigError(ModRebaseError):
    """Invalid or unknown configuration."""

    pass


class CacheMissError(ModRebaseError):
    """Requested entry is not in the local cache."""

    pass


class RemoteFetchError(ModRebaseError):
    """A request to the checksum database failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"GET {url}: {reason}")
        self.url = url
        self.reason = reason


class ChecksumLookupError(ModRebaseError):
    """Checksum lookup for a single module version failed."""

    def __init__(self, path: str, version: str, original_error: Exception):
        super().__init__(f"looking up {path}@{version}: {original_error}")
        self.path = path
        self.version = version
        self.original_error = original_error


class SecurityViolation(ModRebaseError):
    """The checksum database reported inconsistent data. Fatal to the process."""

    pass
