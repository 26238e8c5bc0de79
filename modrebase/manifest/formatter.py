"""
Canonical go.mod text form.

Sections are written in a fixed order separated by blank lines. A
directive with one entry is written on a single line, more entries are
grouped in a parenthesized block. Output is a pure function of the
Manifest, so equal manifests format to identical bytes.
"""

from __future__ import annotations

from modrebase.core.json_canonical import canonical_json_dumps
from modrebase.manifest.model import (
    Exclusion,
    Manifest,
    Replacement,
    Requirement,
    Retraction,
)

_QUOTE_CHARS = set(" \t\"'`\\()[],")


def quote(token: str) -> str:
    """Quote a token if it cannot be written as a bare identifier."""
    if (
        not token
        or token == "=>"
        or "//" in token
        or "/*" in token
        or any(c in _QUOTE_CHARS or not c.isprintable() for c in token)
    ):
        return canonical_json_dumps(token)
    return token


def _requirement(req: Requirement) -> str:
    line = f"{quote(req.path)} {quote(req.version)}"
    if req.indirect:
        line += " // indirect"
    return line


def _exclusion(excl: Exclusion) -> str:
    return f"{quote(excl.path)} {quote(excl.version)}"


def _replacement(repl: Replacement) -> str:
    old = quote(repl.old_path)
    if repl.old_version:
        old += f" {quote(repl.old_version)}"
    new = quote(repl.new_path)
    if repl.new_version:
        new += f" {quote(repl.new_version)}"
    return f"{old} => {new}"


def _retraction(retract: Retraction) -> tuple[list[str], str]:
    comments = [f"// {line}".rstrip() for line in retract.rationale.split("\n")] if retract.rationale else []
    if retract.is_single:
        return comments, quote(retract.low)
    return comments, f"[{quote(retract.low)}, {quote(retract.high)}]"


def _group(verb: str, entries: list[tuple[list[str], str]]) -> str:
    if len(entries) == 1:
        comments, body = entries[0]
        return "".join(f"{c}\n" for c in comments) + f"{verb} {body}\n"

    lines = [f"{verb} (\n"]
    for comments, body in entries:
        lines.extend(f"\t{c}\n" for c in comments)
        lines.append(f"\t{body}\n")
    lines.append(")\n")
    return "".join(lines)


def is_partitioned(requirements: tuple[Requirement, ...]) -> bool:
    """Report whether all direct requirements precede all indirect ones."""
    seen_indirect = False
    for req in requirements:
        if req.indirect:
            seen_indirect = True
        elif seen_indirect:
            return False
    return True


def _require_sections(requirements: tuple[Requirement, ...]) -> list[str]:
    direct = [r for r in requirements if not r.indirect]
    indirect = [r for r in requirements if r.indirect]
    if direct and indirect and is_partitioned(requirements):
        groups = [direct, indirect]
    else:
        groups = [list(requirements)]
    return [_group("require", [([], _requirement(r)) for r in group]) for group in groups]


def format_manifest(manifest: Manifest) -> str:
    """
    Render a manifest as go.mod text.

    Args:
        manifest: Manifest to render.

    Returns:
        go.mod content ending with a newline.
    """
    sections = [f"module {quote(manifest.module_path)}\n"]

    if manifest.go_version:
        sections.append(f"go {manifest.go_version}\n")
    if manifest.toolchain:
        sections.append(f"toolchain {manifest.toolchain}\n")
    if manifest.godebug:
        sections.append(
            _group("godebug", [([], quote(f"{g.key}={g.value}")) for g in manifest.godebug])
        )
    if manifest.requirements:
        sections.extend(_require_sections(manifest.requirements))
    if manifest.tools:
        sections.append(_group("tool", [([], quote(t)) for t in manifest.tools]))
    if manifest.excludes:
        sections.append(_group("exclude", [([], _exclusion(e)) for e in manifest.excludes]))
    if manifest.replacements:
        sections.append(
            _group("replace", [([], _replacement(r)) for r in manifest.replacements])
        )
    if manifest.retractions:
        sections.append(_group("retract", [_retraction(r) for r in manifest.retractions]))

    return "\n".join(sections)
