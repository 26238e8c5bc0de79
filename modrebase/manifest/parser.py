"""
go.mod parser.

Reads the line-oriented go.mod syntax into a Manifest. Directives may be
written one per line or grouped in a parenthesized block:

    require (
        golang.org/x/mod v0.14.0
        golang.org/x/text v0.14.0 // indirect
    )

Comments directly above a retract directive (or trailing it) become the
retraction rationale.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from pydantic import ValidationError

from modrebase.core import semver
from modrebase.errors import ManifestParseError
from modrebase.manifest.model import (
    Exclusion,
    GodebugSetting,
    Manifest,
    Replacement,
    Requirement,
    Retraction,
    is_directory_path,
)

logger = logging.getLogger(__name__)

GO_VERSION_RE = re.compile(r"^([1-9][0-9]*)\.(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*))?([a-z]+[0-9]+)?$")
TOOLCHAIN_RE = re.compile(r"^default$|^go1($|\.)")

BLOCK_VERBS = {"require", "exclude", "replace", "retract", "godebug", "tool"}

_TOKEN_RE = re.compile(
    r"""
    (?P<comment>//.*)
    | (?P<quoted>"(?:[^"\\]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<punct>=>|[()\[\],])
    | (?P<ident>(?:(?!//)[^\s()\[\],"`])+)
    """,
    re.VERBOSE,
)


_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

_ESCAPE_RE = re.compile(r"\\(?:([abfnrtv\\\"])|x([0-9A-Fa-f]{2})|([0-7]{3})|u([0-9A-Fa-f]{4})|U([0-9A-Fa-f]{8}))")


def unquote(quoted: str) -> str:
    """
    Decode a double-quoted Go string literal.

    \\x and octal escapes produce raw bytes, so the decoded result must
    still be valid UTF-8.

    Raises:
        ValueError: If the literal is malformed.

    Examples:
        >>> unquote('"ex\\\\x41mple"')
        'exAmple'
    """
    if len(quoted) < 2 or quoted[0] != '"' or quoted[-1] != '"':
        raise ValueError("missing quotes")
    body = quoted[1:-1]
    out = bytearray()
    pos = 0
    while pos < len(body):
        c = body[pos]
        if c == '"' or c == "\n":
            raise ValueError(f"unexpected {c!r} in string")
        if c != "\\":
            out += c.encode("utf-8")
            pos += 1
            continue
        match = _ESCAPE_RE.match(body, pos)
        if match is None:
            raise ValueError(f"invalid escape {body[pos:pos + 2]!r}")
        simple, hex_byte, octal, short, long = match.groups()
        if simple is not None:
            out += _SIMPLE_ESCAPES[simple].encode("utf-8")
        elif hex_byte is not None:
            out.append(int(hex_byte, 16))
        elif octal is not None:
            value = int(octal, 8)
            if value > 0xFF:
                raise ValueError(f"octal escape {match.group(0)!r} out of range")
            out.append(value)
        else:
            code = int(short or long, 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise ValueError(f"invalid code point in {match.group(0)!r}")
            out += chr(code).encode("utf-8")
        pos = match.end()
    return out.decode("utf-8")


class Token(NamedTuple):
    """A lexical token. Quoted strings never act as punctuation."""

    text: str
    quoted: bool = False

    def is_punct(self, value: str) -> bool:
        return not self.quoted and self.text == value


class _Line(NamedTuple):
    number: int
    tokens: list[Token]
    comment: str | None


def _comment_text(comment: str) -> str:
    return comment[2:].strip()


class _ManifestParser:
    """Single-use parser state for one file."""

    def __init__(self, filename: str):
        self.filename = filename
        self.module_path: str | None = None
        self.go_version: str | None = None
        self.toolchain: str | None = None
        self.godebug: list[GodebugSetting] = []
        self.requirements: list[Requirement] = []
        self.required_paths: set[str] = set()
        self.tools: list[str] = []
        self.excludes: list[Exclusion] = []
        self.replacements: list[Replacement] = []
        self.retractions: list[Retraction] = []

    def error(self, line: int, message: str) -> ManifestParseError:
        return ManifestParseError(self.filename, line, message)

    def tokenize(self, number: int, text: str) -> _Line:
        tokens: list[Token] = []
        comment = None
        pos = 0
        while pos < len(text):
            if text[pos].isspace():
                pos += 1
                continue
            match = _TOKEN_RE.match(text, pos)
            if match is None:
                raise self.error(number, f"unexpected character {text[pos]!r}")
            pos = match.end()
            if match.group("comment") is not None:
                comment = match.group("comment")
                break
            if match.group("quoted") is not None:
                try:
                    value = unquote(match.group("quoted"))
                except ValueError as e:
                    raise self.error(number, f"invalid quoted string: {e}") from e
                tokens.append(Token(value, quoted=True))
            elif match.group("raw") is not None:
                tokens.append(Token(match.group("raw")[1:-1], quoted=True))
            elif match.group("punct") is not None:
                tokens.append(Token(match.group("punct")))
            else:
                tokens.append(Token(match.group("ident")))
        return _Line(number, tokens, comment)

    def parse(self, content: str) -> Manifest:
        block_verb: str | None = None
        block_line = 0
        block_comments: list[str] = []
        before: list[str] = []

        for number, raw in enumerate(content.splitlines(), start=1):
            line = self.tokenize(number, raw)

            if not line.tokens:
                if line.comment is not None:
                    before.append(_comment_text(line.comment))
                else:
                    # A blank line detaches preceding comments
                    before = []
                continue

            if block_verb is not None:
                if line.tokens[0].is_punct(")"):
                    if len(line.tokens) > 1:
                        raise self.error(number, "unexpected text after )")
                    block_verb = None
                    before = []
                    continue
                self.directive(block_verb, line, before, block_comments)
                before = []
                continue

            verb = line.tokens[0]
            if verb.quoted:
                raise self.error(number, f"unknown directive: {verb.text}")
            if len(line.tokens) == 2 and line.tokens[1].is_punct("("):
                if verb.text not in BLOCK_VERBS:
                    raise self.error(number, f"unknown block type: {verb.text}")
                block_verb = verb.text
                block_line = number
                block_comments = before + (
                    [_comment_text(line.comment)] if line.comment is not None else []
                )
                before = []
                continue

            self.directive(verb.text, line._replace(tokens=line.tokens[1:]), before, [])
            before = []

        if block_verb is not None:
            raise self.error(block_line, f"unterminated {block_verb} block")
        if not self.module_path:
            raise self.error(0, "missing module declaration")

        try:
            return Manifest(
                module_path=self.module_path,
                go_version=self.go_version,
                toolchain=self.toolchain,
                godebug=tuple(self.godebug),
                requirements=tuple(self.requirements),
                tools=tuple(self.tools),
                excludes=tuple(self.excludes),
                replacements=tuple(self.replacements),
                retractions=tuple(self.retractions),
            )
        except ValidationError as e:
            raise self.error(0, str(e)) from e

    def directive(
        self, verb: str, line: _Line, before: list[str], block_comments: list[str]
    ) -> None:
        handler = getattr(self, f"_parse_{verb}", None)
        if handler is None:
            raise self.error(line.number, f"unknown directive: {verb}")
        try:
            if verb == "retract":
                handler(line, before, block_comments)
            else:
                handler(line)
        except ValidationError as e:
            raise self.error(line.number, f"{verb}: {e.errors()[0]['msg']}") from e

    def _args(self, line: _Line, verb: str, count: int) -> list[str]:
        for token in line.tokens:
            if not token.quoted and token.text in {"(", ")", "[", "]", ",", "=>"}:
                raise self.error(line.number, f"{verb}: unexpected {token.text!r}")
        if len(line.tokens) != count:
            raise self.error(line.number, f"{verb}: expected {count} argument(s), found {len(line.tokens)}")
        return [t.text for t in line.tokens]

    def _path(self, line: _Line, verb: str, path: str) -> str:
        if not path:
            raise self.error(line.number, f"{verb}: empty module path")
        return path

    def _version(self, line: _Line, verb: str, version: str) -> str:
        if semver.canonical(version) != version:
            raise self.error(
                line.number, f"{verb}: invalid version {version!r}: must be of the form v1.2.3"
            )
        return version

    def _parse_module(self, line: _Line) -> None:
        (path,) = self._args(line, "module", 1)
        if self.module_path is not None:
            raise self.error(line.number, "repeated module statement")
        self.module_path = self._path(line, "module", path)

    def _parse_go(self, line: _Line) -> None:
        (version,) = self._args(line, "go", 1)
        if self.go_version is not None:
            raise self.error(line.number, "repeated go statement")
        if not GO_VERSION_RE.match(version):
            raise self.error(line.number, f"invalid go version {version!r}: must match format 1.23.0")
        self.go_version = version

    def _parse_toolchain(self, line: _Line) -> None:
        (name,) = self._args(line, "toolchain", 1)
        if self.toolchain is not None:
            raise self.error(line.number, "repeated toolchain statement")
        if not TOOLCHAIN_RE.match(name):
            raise self.error(
                line.number, f"invalid toolchain version {name!r}: must match format go1.23.0 or default"
            )
        self.toolchain = name

    def _parse_godebug(self, line: _Line) -> None:
        (setting,) = self._args(line, "godebug", 1)
        key, sep, value = setting.partition("=")
        if not sep or not key:
            raise self.error(line.number, f"godebug: expected key=value, found {setting!r}")
        self.godebug.append(GodebugSetting(key=key, value=value))

    def _parse_require(self, line: _Line) -> None:
        path, version = self._args(line, "require", 2)
        self._path(line, "require", path)
        self._version(line, "require", version)
        if path in self.required_paths:
            raise self.error(line.number, f"require: duplicate requirement for {path}")
        indirect = False
        if line.comment is not None:
            text = _comment_text(line.comment)
            indirect = text == "indirect" or text.startswith("indirect;")
        self.required_paths.add(path)
        self.requirements.append(Requirement(path=path, version=version, indirect=indirect))

    def _parse_tool(self, line: _Line) -> None:
        (path,) = self._args(line, "tool", 1)
        self._path(line, "tool", path)
        self.tools.append(path)

    def _parse_exclude(self, line: _Line) -> None:
        path, version = self._args(line, "exclude", 2)
        self._path(line, "exclude", path)
        self._version(line, "exclude", version)
        self.excludes.append(Exclusion(path=path, version=version))

    def _parse_replace(self, line: _Line) -> None:
        arrows = [i for i, t in enumerate(line.tokens) if t.is_punct("=>")]
        if len(arrows) != 1:
            raise self.error(line.number, "replace: usage: old [v] => new [v]")
        arrow = arrows[0]
        old = _Line(line.number, line.tokens[:arrow], None)
        new = _Line(line.number, line.tokens[arrow + 1 :], None)
        if len(old.tokens) not in (1, 2) or len(new.tokens) not in (1, 2):
            raise self.error(line.number, "replace: usage: old [v] => new [v]")

        old_args = self._args(old, "replace", len(old.tokens))
        new_args = self._args(new, "replace", len(new.tokens))
        self._path(line, "replace", old_args[0])
        self._path(line, "replace", new_args[0])
        old_version = self._version(line, "replace", old_args[1]) if len(old_args) == 2 else None

        new_path = new_args[0]
        new_version = None
        if len(new_args) == 2:
            if is_directory_path(new_path):
                raise self.error(
                    line.number, f"replace: replacement directory {new_path!r} cannot have version"
                )
            new_version = self._version(line, "replace", new_args[1])
        elif not is_directory_path(new_path):
            raise self.error(
                line.number,
                "replace: replacement module without version must be directory path "
                "(rooted or starting with ./ or ../)",
            )

        self.replacements.append(
            Replacement(
                old_path=old_args[0],
                old_version=old_version,
                new_path=new_path,
                new_version=new_version,
            )
        )

    def _parse_retract(self, line: _Line, before: list[str], block_comments: list[str]) -> None:
        tokens = line.tokens
        if len(tokens) == 5 and tokens[0].is_punct("[") and tokens[2].is_punct(",") and tokens[4].is_punct("]"):
            low = self._version(line, "retract", tokens[1].text)
            high = self._version(line, "retract", tokens[3].text)
            if semver.compare(low, high) > 0:
                raise self.error(
                    line.number, f"retract: version interval [{low}, {high}] has low > high"
                )
        else:
            (version,) = self._args(line, "retract", 1)
            low = high = self._version(line, "retract", version)

        comments = list(before)
        if line.comment is not None:
            comments.append(_comment_text(line.comment))
        if not comments:
            comments = block_comments
        self.retractions.append(Retraction(low=low, high=high, rationale="\n".join(comments)))


def parse_manifest(data: bytes | str, filename: str = "go.mod") -> Manifest:
    """
    Parse go.mod content.

    Args:
        data: File content.
        filename: Name used in error messages.

    Returns:
        Parsed Manifest.

    Raises:
        ManifestParseError: If the content is malformed.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseError(filename, 0, f"invalid UTF-8: {e}") from e

    manifest = _ManifestParser(filename).parse(data)
    logger.debug(
        "Parsed %s: module %s, %d requirements",
        filename,
        manifest.module_path,
        len(manifest.requirements),
    )
    return manifest
