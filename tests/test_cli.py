"""Tests for the CLI entry points."""

import json

from click.testing import CliRunner

from elisp_harvester.cli.main import cli


class TestCLI:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Elisp Harvester" in result.output

    def test_harvest_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["harvest", "--help"])
        assert result.exit_code == 0
        assert "--format" in result.output
        assert "--output-dir" in result.output
        assert "--no-resume" in result.output

    def test_extract_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["extract", "--help"])
        assert result.exit_code == 0
        assert "--main-file" in result.output
        assert "--previous" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestExtractCommand:
    def test_prints_record(self, tmp_path):
        path = tmp_path / "bar.el"
        path.write_text(";; Version: 1.2\n(require 'foo)(provide 'bar)\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["extract", str(path)])
        assert result.exit_code == 0
        data, _end = json.JSONDecoder().raw_decode(result.output, result.output.index("{"))
        assert data["name"] == "bar"
        assert data["version"] == [1, 2]
        assert data["requires_hard"] == [[None, ["foo"]]]

    def test_undeterminable_main_file(self, tmp_path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "one.el").write_text("")
        (tmp_path / "pkg" / "two.el").write_text("")
        runner = CliRunner()
        result = runner.invoke(cli, ["extract", str(tmp_path / "pkg")])
        assert result.exit_code != 0
        assert "main file" in result.output


class TestBumpCommand:
    def test_same_version(self):
        result = CliRunner().invoke(cli, ["bump", "0.1", "0.1"])
        assert result.exit_code == 0
        assert result.output.strip() == "0.1a"

    def test_pseudo_version(self):
        result = CliRunner().invoke(cli, ["bump", "-", "0002"])
        assert result.exit_code == 0
        assert result.output.strip() == "0003"

    def test_regression(self):
        result = CliRunner().invoke(cli, ["bump", "0.1", "0.2"])
        assert result.exit_code == 1
