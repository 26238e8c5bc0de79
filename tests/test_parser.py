"""Tests for go.mod parsing and formatting."""

import pytest

from modrebase.errors import ManifestParseError
from modrebase.manifest.formatter import format_manifest, is_partitioned, quote
from modrebase.manifest.model import (
    Manifest,
    Replacement,
    Requirement,
    Retraction,
)
from modrebase.manifest.parser import parse_manifest


class TestParseManifest:
    """Tests for parse_manifest."""

    def test_parse_full_file(self, upstream_text):
        """All directives of a typical file should be read."""
        m = parse_manifest(upstream_text)

        assert m.module_path == "example.com/upstream"
        assert m.go_version == "1.21"
        assert m.toolchain == "go1.21.5"
        assert [r.path for r in m.requirements] == [
            "github.com/pkg/errors",
            "golang.org/x/mod",
            "golang.org/x/sync",
            "golang.org/x/sys",
            "golang.org/x/text",
        ]
        assert m.requirement("golang.org/x/sys").indirect is True
        assert m.requirement("golang.org/x/mod").indirect is False
        assert m.excludes[0].path == "golang.org/x/net"
        assert m.replacements[0].new_version == "v0.9.0"
        assert m.retractions == (
            Retraction(low="v1.0.1", high="v1.0.1", rationale="Published with a broken go.mod."),
        )

    def test_parse_bytes(self):
        """Bytes input should be decoded as UTF-8."""
        m = parse_manifest(b"module example.com/m\n")
        assert m.module_path == "example.com/m"

    def test_single_line_require(self):
        """Single-line require directives should parse."""
        m = parse_manifest("module m\nrequire golang.org/x/mod v0.14.0 // indirect\n")
        assert m.requirements == (
            Requirement(path="golang.org/x/mod", version="v0.14.0", indirect=True),
        )

    def test_indirect_with_extra_comment(self):
        """'indirect; reason' should still mark the requirement indirect."""
        m = parse_manifest("module m\nrequire a.com/b v1.0.0 // indirect; pinned\n")
        assert m.requirements[0].indirect is True

    def test_other_comment_is_not_indirect(self):
        m = parse_manifest("module m\nrequire a.com/b v1.0.0 // pinned for CVE\n")
        assert m.requirements[0].indirect is False

    def test_quoted_path(self):
        """Quoted strings should be unquoted."""
        m = parse_manifest('module "example.com/m"\n')
        assert m.module_path == "example.com/m"

    @pytest.mark.parametrize(
        "literal,expected",
        [
            (r'"ex\x41mple.com/m"', "exAmple.com/m"),
            (r'"ex\101mple.com/m"', "exAmple.com/m"),
            (r'"ex\u0041mple.com/m"', "exAmple.com/m"),
            (r'"a\tb\v\a"', "a\tb\v\a"),
            (r'"caf\xc3\xa9"', "caf\u00e9"),
            (r'"q\"\\"', 'q"\\'),
        ],
    )
    def test_go_string_escapes(self, literal, expected):
        """Quoted tokens follow Go string literal syntax."""
        m = parse_manifest(f"module {literal}\n")
        assert m.module_path == expected

    def test_replace_forms(self):
        """Replacements may pin the old version and may target a directory."""
        m = parse_manifest(
            "module m\n"
            "replace (\n"
            "\ta.com/x v1.0.0 => b.com/x v1.1.0\n"
            "\ta.com/y => ../y\n"
            ")\n"
        )
        assert m.replacements == (
            Replacement(old_path="a.com/x", old_version="v1.0.0", new_path="b.com/x", new_version="v1.1.0"),
            Replacement(old_path="a.com/y", new_path="../y"),
        )
        assert m.replacements[1].is_local is True

    def test_retract_interval_and_block_rationale(self):
        """Retract blocks take rationale from the line, or else from the block."""
        m = parse_manifest(
            "module m\n"
            "// Bad releases.\n"
            "retract (\n"
            "\t[v1.0.0, v1.0.5]\n"
            "\t// Accidental tag.\n"
            "\tv1.1.0\n"
            ")\n"
        )
        assert m.retractions == (
            Retraction(low="v1.0.0", high="v1.0.5", rationale="Bad releases."),
            Retraction(low="v1.1.0", high="v1.1.0", rationale="Accidental tag."),
        )

    def test_blank_line_detaches_comment(self):
        """A comment followed by a blank line is not a rationale."""
        m = parse_manifest("module m\n// Stray comment.\n\nretract v1.0.0\n")
        assert m.retractions[0].rationale == ""

    def test_godebug_and_tool(self):
        m = parse_manifest("module m\ngodebug panicnil=1\ntool golang.org/x/tools/cmd/stringer\n")
        assert m.godebug[0].key == "panicnil"
        assert m.godebug[0].value == "1"
        assert m.tools == ("golang.org/x/tools/cmd/stringer",)

    @pytest.mark.parametrize(
        "content,message",
        [
            ("go 1.21\n", "missing module"),
            ("module m\nmodule n\n", "repeated module"),
            ("module m\nrequire a.com/b 1.0.0\n", "invalid version"),
            ("module m\nrequire a.com/b v1.2\n", "invalid version"),
            ("module m\nrequire a.com/b v1.0.0\nrequire a.com/b v1.1.0\n", "duplicate requirement"),
            ("module m\nrequire (\n\ta.com/b v1.0.0\n", "unterminated require block"),
            ("module m\nfrobnicate x\n", "unknown directive"),
            ("module m\ngo (\n)\n", "unknown block type"),
            ("module m\ngo 1.21.x\n", "invalid go version"),
            ("module m\ntoolchain 1.21\n", "invalid toolchain"),
            ("module m\nreplace a.com/b => c.com/d\n", "must be directory path"),
            ("module m\nreplace a.com/b => ./d v1.0.0\n", "cannot have version"),
            ("module m\nretract [v1.2.0, v1.0.0]\n", "low > high"),
            ("module m\nrequire a.com/b\n", "expected 2 argument"),
            ("module m\nrequire \"\" v1.0.0\n", "require: empty module path"),
            ("module m\nexclude \"\" v1.0.0\n", "exclude: empty module path"),
            ("module m\nreplace \"\" => ./x\n", "replace: empty module path"),
            ("module m\nreplace a.com/b => \"\" v1.0.0\n", "replace: empty module path"),
            ("module m\ntool \"\"\n", "tool: empty module path"),
            ("module \"a\\qb\"\n", "invalid quoted string"),
            ("module \"a\\'b\"\n", "invalid quoted string"),
            ("module \"\\xff\"\n", "invalid quoted string"),
        ],
    )
    def test_parse_errors(self, content, message):
        """Malformed files should raise ManifestParseError."""
        with pytest.raises(ManifestParseError) as exc_info:
            parse_manifest(content, filename="bad.mod")
        assert message in str(exc_info.value)
        assert "bad.mod" in str(exc_info.value)

    def test_parse_error_line_number(self):
        """Errors should carry the offending line number."""
        with pytest.raises(ManifestParseError) as exc_info:
            parse_manifest("module m\n\ngo 1.21\nrequire a.com/b bad\n", filename="go.mod")
        assert exc_info.value.line == 4
        assert str(exc_info.value).startswith("go.mod:4:")

    def test_invalid_utf8(self):
        with pytest.raises(ManifestParseError):
            parse_manifest(b"module \xff\n")


class TestFormatManifest:
    """Tests for format_manifest."""

    def test_canonical_layout(self):
        """Sections should appear in canonical order and block form."""
        m = Manifest(
            module_path="example.com/m",
            go_version="1.21",
            requirements=(
                Requirement(path="a.com/x", version="v1.0.0"),
                Requirement(path="a.com/y", version="v1.1.0"),
                Requirement(path="a.com/z", version="v0.1.0", indirect=True),
            ),
            retractions=(Retraction(low="v1.0.0", high="v1.0.0", rationale="Oops."),),
        )
        assert format_manifest(m) == (
            "module example.com/m\n"
            "\n"
            "go 1.21\n"
            "\n"
            "require (\n"
            "\ta.com/x v1.0.0\n"
            "\ta.com/y v1.1.0\n"
            ")\n"
            "\n"
            "require a.com/z v0.1.0 // indirect\n"
            "\n"
            "// Oops.\n"
            "retract v1.0.0\n"
        )

    def test_mixed_requirements_stay_in_one_block(self):
        """Requirements not partitioned direct-then-indirect keep their order."""
        reqs = (
            Requirement(path="a.com/z", version="v0.1.0", indirect=True),
            Requirement(path="a.com/x", version="v1.0.0"),
        )
        assert not is_partitioned(reqs)
        text = format_manifest(Manifest(module_path="m", requirements=reqs))
        assert text.count("require (") == 1
        assert text.index("a.com/z") < text.index("a.com/x")

    def test_quote(self):
        assert quote("example.com/m") == "example.com/m"
        assert quote("has space") == '"has space"'
        assert quote("") == '""'

    def test_roundtrip_upstream(self, upstream_text):
        """A clean file should survive parse and format unchanged in meaning."""
        m = parse_manifest(upstream_text)
        assert parse_manifest(format_manifest(m)) == m

    def test_roundtrip_multiline_rationale(self):
        m = Manifest(
            module_path="m",
            retractions=(
                Retraction(low="v1.0.0", high="v1.2.0", rationale="First line.\nSecond line."),
                Retraction(low="v1.3.0", high="v1.3.0"),
            ),
        )
        assert parse_manifest(format_manifest(m)) == m
