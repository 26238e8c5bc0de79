"""
Semantic version comparison for Go module versions.

Versions carry a leading "v" (v1.2.3). The shorthands v1 and v1.2 are
accepted and read as v1.0.0 and v1.2.0. Build metadata is ignored for
precedence, and invalid versions sort below every valid one.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedVersion:
    """Components of a semantic version string."""

    major: str
    minor: str
    patch: str
    prerelease: str = ""
    build: str = ""


def _parse_int(value: str) -> tuple[str, str] | None:
    i = 0
    while i < len(value) and "0" <= value[i] <= "9":
        i += 1
    if i == 0:
        return None
    number = value[:i]
    if len(number) > 1 and number[0] == "0":
        return None
    return number, value[i:]


def _is_ident_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "-")


def _is_bad_num(ident: str) -> bool:
    return ident.isdigit() and len(ident) > 1 and ident[0] == "0"


def _parse_prerelease(value: str) -> tuple[str, str] | None:
    # value starts with "-"; identifiers are dot-separated and non-empty
    i = 1
    start = 1
    while i < len(value) and value[i] != "+":
        if not _is_ident_char(value[i]) and value[i] != ".":
            return None
        if value[i] == ".":
            if start == i or _is_bad_num(value[start:i]):
                return None
            start = i + 1
        i += 1
    if start == i or _is_bad_num(value[start:i]):
        return None
    return value[:i], value[i:]


def _parse_build(value: str) -> tuple[str, str] | None:
    i = 1
    start = 1
    while i < len(value):
        if not _is_ident_char(value[i]) and value[i] != ".":
            return None
        if value[i] == ".":
            if start == i:
                return None
            start = i + 1
        i += 1
    if start == i:
        return None
    return value[:i], value[i:]


def parse(version: str) -> ParsedVersion | None:
    """
    Parse a version string.

    Args:
        version: Version such as "v1.2.3-rc.1+meta".

    Returns:
        ParsedVersion, or None if the string is not a valid version.
    """
    if not version or version[0] != "v":
        return None

    result = _parse_int(version[1:])
    if result is None:
        return None
    major, rest = result
    if rest == "":
        return ParsedVersion(major=major, minor="0", patch="0")
    if rest[0] != ".":
        return None

    result = _parse_int(rest[1:])
    if result is None:
        return None
    minor, rest = result
    if rest == "":
        return ParsedVersion(major=major, minor=minor, patch="0")
    if rest[0] != ".":
        return None

    result = _parse_int(rest[1:])
    if result is None:
        return None
    patch, rest = result

    prerelease = ""
    if rest and rest[0] == "-":
        pre = _parse_prerelease(rest)
        if pre is None:
            return None
        prerelease, rest = pre

    build = ""
    if rest and rest[0] == "+":
        b = _parse_build(rest)
        if b is None:
            return None
        build, rest = b

    if rest:
        return None

    return ParsedVersion(
        major=major, minor=minor, patch=patch, prerelease=prerelease, build=build
    )


def is_valid(version: str) -> bool:
    """Report whether version is a valid semantic version."""
    return parse(version) is not None


def canonical(version: str) -> str:
    """
    Return the canonical form of a version.

    Shorthands are expanded and build metadata is dropped, except for the
    "+incompatible" suffix which Go treats as part of the version.

    Examples:
        >>> canonical("v1.2")
        'v1.2.0'
        >>> canonical("v2.0.0+incompatible")
        'v2.0.0+incompatible'
        >>> canonical("bad")
        ''
    """
    p = parse(version)
    if p is None:
        return ""
    if p.build == "+incompatible":
        return f"v{p.major}.{p.minor}.{p.patch}{p.prerelease}+incompatible"
    return f"v{p.major}.{p.minor}.{p.patch}{p.prerelease}"


def _compare_int(x: str, y: str) -> int:
    if x == y:
        return 0
    if len(x) != len(y):
        return -1 if len(x) < len(y) else 1
    return -1 if x < y else 1


def _next_ident(value: str) -> tuple[str, str]:
    i = value.find(".")
    if i < 0:
        return value, ""
    return value[:i], value[i:]


def _compare_prerelease(x: str, y: str) -> int:
    # Both include the leading "-"; "" means release and sorts highest.
    if x == y:
        return 0
    if x == "":
        return 1
    if y == "":
        return -1
    while x and y:
        x = x[1:]
        y = y[1:]
        dx, x = _next_ident(x)
        dy, y = _next_ident(y)
        if dx != dy:
            ix = dx.isdigit()
            iy = dy.isdigit()
            if ix != iy:
                return -1 if ix else 1
            if ix:
                return _compare_int(dx, dy)
            return -1 if dx < dy else 1
    if x == "":
        return -1
    return 1


def compare(v: str, w: str) -> int:
    """
    Compare two versions under semantic-version precedence.

    Returns:
        -1, 0 or +1 as v is less than, equal to, or greater than w.

    Examples:
        >>> compare("v1.3.0", "v1.2.9")
        1
        >>> compare("v1.0.0-rc.1", "v1.0.0")
        -1
        >>> compare("v1.0.0+build", "v1.0.0")
        0
    """
    pv = parse(v)
    pw = parse(w)
    if pv is None and pw is None:
        return 0
    if pv is None:
        return -1
    if pw is None:
        return 1

    for x, y in ((pv.major, pw.major), (pv.minor, pw.minor), (pv.patch, pw.patch)):
        c = _compare_int(x, y)
        if c != 0:
            return c
    return _compare_prerelease(pv.prerelease, pw.prerelease)


def max_version(v: str, w: str) -> str:
    """Return the higher of two versions, preferring w on ties."""
    return v if compare(v, w) > 0 else w
