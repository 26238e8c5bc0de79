"""Manifest file I/O with atomic writes."""

from modrebase.io.files import atomic_writer, load_manifest, write_manifest

__all__ = ["atomic_writer", "load_manifest", "write_manifest"]
