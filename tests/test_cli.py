"""Tests for CLI interface."""

import json
from pathlib import Path

import pytest

from fuzz_target_finder.cli import run_cli


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures"


class TestListCommand:
    def given_scenario_args(self, fixtures_path, *flags):
        self.path = fixtures_path / "scenario" / "lib.rs"
        self.args = ["list", str(self.path), *flags]

    def when_cli_is_run(self, capsys):
        self.exit_code = run_cli(self.args)
        self.captured = capsys.readouterr()

    def then_exit_code_is_zero(self):
        assert self.exit_code == 0

    def then_json_target_names_are(self, *names):
        output = json.loads(self.captured.out)
        assert [t["name"] for t in output] == list(names)

    def test_lists_targets_as_text(self, fixtures_path, capsys):
        """Each target is printed as `<file path>:<line>: <name>`."""
        self.given_scenario_args(fixtures_path)
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        assert self.captured.out.splitlines() == [
            f"{self.path}:1: f",
            f"{self.path}:5: g",
            f"{self.path}:9: h",
        ]

    def test_lists_targets_as_json(self, fixtures_path, capsys):
        """--json prints an array of name, file_path and line objects."""
        self.given_scenario_args(fixtures_path, "--json")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        output = json.loads(self.captured.out)
        assert output[0] == {"name": "f", "file_path": str(self.path), "line": 1}

    def test_binary_and_public_flags(self, fixtures_path, capsys):
        """-b -p keeps only the exported function taking bytes."""
        self.given_scenario_args(fixtures_path, "-b", "-p", "-j")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        self.then_json_target_names_are("f")

    def test_public_flag_alone(self, fixtures_path, capsys):
        self.given_scenario_args(fixtures_path, "--public-only", "--json")
        self.when_cli_is_run(capsys)
        self.then_json_target_names_are("f", "h")

    def test_coverage_flag(self, fixtures_path, capsys):
        """--coverage none lists functions with no fuzzable parameter."""
        self.given_scenario_args(fixtures_path, "--coverage", "none", "--json")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        self.then_json_target_names_are()

    def test_no_targets_is_success(self, tmp_path, capsys):
        """Finding nothing still exits zero with empty output."""
        (tmp_path / "lib.rs").write_text("fn opaque(x: f64) {}\n")
        self.args = ["list", str(tmp_path)]
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        assert self.captured.out == ""

    def test_crate_directory(self, fixtures_path, capsys):
        self.args = ["list", "-j", "-b", str(fixtures_path / "sample_crate")]
        self.when_cli_is_run(capsys)
        self.then_exit_code_is_zero()
        self.then_json_target_names_are(
            "parse_bytes",
            "checksum",
            "mixed",
            "decode",
            "with_callback",
            "from_bytes",
            "parse_header",
            "skip_padding",
            "is_magic",
        )

    def test_missing_path_is_fatal(self, tmp_path, capsys):
        """An unreadable path exits non-zero with a diagnostic."""
        self.args = ["list", str(tmp_path / "missing")]
        self.when_cli_is_run(capsys)
        assert self.exit_code == 1
        assert "Error:" in self.captured.err
        assert self.captured.out == ""

    def test_malformed_source_is_fatal(self, tmp_path, capsys):
        (tmp_path / "lib.rs").write_text("pub fn broken(data: &[u8] {\n")
        self.args = ["list", str(tmp_path)]
        self.when_cli_is_run(capsys)
        assert self.exit_code == 1
        assert "Syntax error" in self.captured.err

    def test_unknown_coverage_is_rejected(self, fixtures_path, capsys):
        self.given_scenario_args(fixtures_path, "--coverage", "most")
        self.when_cli_is_run(capsys)
        assert self.exit_code == 2


class TestGenerateCommand:
    def test_generate_is_not_implemented(self, fixtures_path, capsys):
        """generate fails with a clear message and writes nothing."""
        exit_code = run_cli(["generate", str(fixtures_path / "scenario")])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert "not implemented" in captured.err
        assert captured.out == ""

    def test_generate_with_output_path(self, fixtures_path, tmp_path, capsys):
        out = tmp_path / "fuzz"
        exit_code = run_cli(["generate", str(fixtures_path), str(out)])

        assert exit_code == 1
        assert not out.exists()


class TestUsage:
    def test_no_command_prints_help(self, capsys):
        """Without a subcommand the CLI shows usage and fails."""
        exit_code = run_cli([])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert "usage" in captured.err.lower()

    def test_help_exits_zero(self, capsys):
        exit_code = run_cli(["--help"])
        captured = capsys.readouterr()

        assert exit_code == 0
        assert "list" in captured.out
        assert "generate" in captured.out

    def test_unknown_command(self, capsys):
        assert run_cli(["fuzz"]) == 2
