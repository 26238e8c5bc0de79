"""
Manifest file reading and atomic writing.

Output files are written to a temporary file in the destination directory
and renamed into place, so a failed write never leaves a truncated file at
the final path.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from modrebase.errors import ManifestIOError
from modrebase.manifest.formatter import format_manifest
from modrebase.manifest.model import Manifest
from modrebase.manifest.parser import parse_manifest

logger = logging.getLogger(__name__)

FILE_MODE = 0o644


def load_manifest(path: str | Path) -> Manifest:
    """
    Read and parse a go.mod file.

    Raises:
        ManifestIOError: If the file cannot be read.
        ManifestParseError: If the content is malformed.
    """
    path = Path(path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ManifestIOError("reading", str(path), e) from e
    return parse_manifest(content, filename=str(path))


@contextmanager
def atomic_writer(path: str | Path) -> Iterator[IO[str]]:
    """
    Open a text stream whose content replaces path only on success.

    If the body raises, the temporary file is removed and the exception
    propagates; the destination is left untouched.

    Example:
        >>> with atomic_writer("go.sum") as out:
        ...     out.write("example.com/a v1.0.0 h1:...\\n")
    """
    path = Path(path)
    directory = path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    except OSError as e:
        raise ManifestIOError("creating temporary file for", str(path), e) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as stream:
            yield stream
            stream.flush()
            os.fsync(stream.fileno())
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ManifestIOError("writing", str(path), e) from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug("Wrote %s", path)


def write_manifest(path: str | Path, manifest: Manifest) -> None:
    """
    Format a manifest and write it atomically.

    Raises:
        ManifestIOError: If the file cannot be written.
    """
    content = format_manifest(manifest)
    with atomic_writer(path) as out:
        out.write(content)
