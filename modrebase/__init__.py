"""
modrebase: rebase a forked Go module manifest onto its upstream.

Merges go.mod files by intersecting and version-maximizing shared
requirements, then rebuilds go.sum from the Go checksum database.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
