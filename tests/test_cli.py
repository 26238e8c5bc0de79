"""Tests for the command-line interface."""

import json

import httpx
import pytest
from click.testing import CliRunner

from modrebase.cli import main
from modrebase.io.files import load_manifest


@pytest.fixture
def runner():
    return CliRunner()


class TestRebaseCommand:
    """Tests for `modrebase rebase`."""

    def test_rebase(self, runner, go_mod_files, tmp_path):
        upstream, downstream = go_mod_files
        output = tmp_path / "merged.mod"

        result = runner.invoke(main, ["rebase", str(upstream), str(downstream), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "fingerprint" in result.output
        assert load_manifest(output).module_path == "example.com/upstream"

    def test_rebase_json_summary(self, runner, go_mod_files, tmp_path):
        upstream, downstream = go_mod_files
        output = tmp_path / "merged.mod"

        result = runner.invoke(
            main, ["rebase", str(upstream), str(downstream), "-o", str(output), "--json"]
        )

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["dropped_downstream_only"] == ["github.com/fork/only"]

    def test_rebase_in_place(self, runner, go_mod_files):
        """Writing over DOWNSTREAM still summarizes against its original content."""
        upstream, downstream = go_mod_files

        result = runner.invoke(
            main, ["rebase", str(upstream), str(downstream), "-o", str(downstream), "--json"]
        )

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["dropped_downstream_only"] == ["github.com/fork/only"]
        assert load_manifest(downstream).module_path == "example.com/upstream"

    def test_rebase_parse_error(self, runner, go_mod_files, tmp_path):
        upstream, _ = go_mod_files
        broken = tmp_path / "broken.mod"
        broken.write_text("require (\n")

        result = runner.invoke(
            main, ["rebase", str(upstream), str(broken), "-o", str(tmp_path / "out.mod")]
        )

        assert result.exit_code == 1
        assert "broken.mod" in result.output


class TestOtherCommands:
    """Tests for probe, show and compare."""

    def test_probe(self, runner, tmp_path):
        (tmp_path / "go.mod").write_text("module m\n")
        result = runner.invoke(main, ["probe", str(tmp_path)])
        assert result.exit_code == 0
        assert "go: go.mod" in result.output

    def test_probe_nothing(self, runner, tmp_path):
        result = runner.invoke(main, ["probe", str(tmp_path)])
        assert result.exit_code == 1

    def test_show_json(self, runner, go_mod_files):
        upstream, _ = go_mod_files
        result = runner.invoke(main, ["show", str(upstream), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["module_path"] == "example.com/upstream"

    def test_compare_same(self, runner, go_mod_files):
        upstream, _ = go_mod_files
        result = runner.invoke(main, ["compare", str(upstream), str(upstream)])
        assert result.exit_code == 0

    def test_compare_different(self, runner, go_mod_files):
        upstream, downstream = go_mod_files
        result = runner.invoke(main, ["compare", str(upstream), str(downstream)])
        assert result.exit_code == 1
        assert "✗ module_path_match" in result.output


class TestChecksumsCommand:
    """Tests for `modrebase checksums`."""

    def test_checksums(self, runner, go_mod_files, tmp_path, fake_sumdb, monkeypatch):
        upstream, _ = go_mod_files
        output = tmp_path / "go.sum"

        from modrebase import strategy as strategy_module

        original = strategy_module.open_client

        def open_with_fake(config, transport=None):
            return original(config, transport=httpx.MockTransport(fake_sumdb))

        monkeypatch.setattr(strategy_module, "open_client", open_with_fake)

        result = runner.invoke(main, ["checksums", str(upstream), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Wrote 10 checksum lines" in result.output
        assert len(output.read_text().splitlines()) == 10

    def test_checksums_bad_config(self, runner, go_mod_files, tmp_path):
        upstream, _ = go_mod_files
        config = tmp_path / "sumdb.yaml"
        config.write_text("timeout_seconds: 0\n")

        result = runner.invoke(
            main, ["checksums", str(upstream), "-o", str(tmp_path / "go.sum"), "-c", str(config)]
        )

        assert result.exit_code == 1
        assert "invalid configuration" in result.output
