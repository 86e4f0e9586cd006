"""Tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from machina.cli import app
from machina.core.manifest import MANIFEST_NAME

BROKEN_SOURCE = "transitions(Traffic, [(Green, Advance) => ])\n"


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty temporary directory with no machina.toml above it."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def test_project(in_tmp: Path, traffic_source: str) -> Path:
    """Create a temporary project with a manifest and one .machine file."""
    machines = in_tmp / "machines"
    machines.mkdir()
    (machines / "traffic.machine").write_text(traffic_source, encoding="utf-8")
    (in_tmp / MANIFEST_NAME).write_text(
        """
[project]
name = "traffic"

[build]
sources = ["machines/*.machine"]
output_dir = "src/generated"
""",
        encoding="utf-8",
    )
    return in_tmp


def test_version(cli_runner: CliRunner):
    """Test --version prints the package and Python versions."""
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("machina ")
    assert "Python " in result.output


def test_build_explicit_file(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test build with a file argument and an output directory."""
    out = in_tmp / "out"
    result = cli_runner.invoke(app, ["build", str(traffic_file), "--out", str(out)])

    assert result.exit_code == 0, result.output
    assert "Generated machines" in result.output
    assert f"Wrote 2 file(s) to {out}" in result.output
    assert (out / "traffic.py").is_file()
    assert (out / "traffic.dot").read_text(encoding="utf-8").startswith("digraph Traffic {")


def test_build_no_graph(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test --no-graph skips .dot files."""
    result = cli_runner.invoke(app, ["build", str(traffic_file), "-o", "out", "--no-graph"])

    assert result.exit_code == 0, result.output
    assert "Wrote 1 file(s)" in result.output
    assert not (in_tmp / "out" / "traffic.dot").exists()


def test_build_default_output_dir(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test build writes to ./generated without a manifest."""
    result = cli_runner.invoke(app, ["build", str(traffic_file)])

    assert result.exit_code == 0, result.output
    assert (in_tmp / "generated" / "traffic.py").is_file()


def test_build_from_manifest(cli_runner: CliRunner, test_project: Path):
    """Test build picks up sources and output_dir from machina.toml."""
    result = cli_runner.invoke(app, ["build"])

    assert result.exit_code == 0, result.output
    source = (test_project / "src" / "generated" / "traffic.py").read_text(encoding="utf-8")
    assert source.count("# === GENERATED BY MACHINA:") == 3


def test_build_twice_gives_same_output(cli_runner: CliRunner, test_project: Path):
    """Test rebuilding does not append to earlier output."""
    cli_runner.invoke(app, ["build"])
    first = (test_project / "src" / "generated" / "traffic.py").read_text(encoding="utf-8")
    cli_runner.invoke(app, ["build"])
    second = (test_project / "src" / "generated" / "traffic.py").read_text(encoding="utf-8")

    assert first == second


def test_build_error_writes_nothing(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test a broken file fails the whole build before anything is written."""
    broken = in_tmp / "broken.machine"
    broken.write_text(BROKEN_SOURCE, encoding="utf-8")

    result = cli_runner.invoke(app, ["build", str(traffic_file), str(broken), "-o", "out"])

    assert result.exit_code == 1
    assert "Parse error:" in result.output
    assert "broken.machine:1:" in result.output
    assert not (in_tmp / "out").exists()


def test_build_semantic_error(cli_runner: CliRunner, in_tmp: Path):
    """Test semantic errors are reported with their own prefix."""
    path = in_tmp / "dup.machine"
    path.write_text("transitions(M, [(A, Go) => B, (A, Go) => C])\n", encoding="utf-8")

    result = cli_runner.invoke(app, ["build", str(path)])

    assert result.exit_code == 1
    assert "Error: " in result.output
    assert "Duplicate transition for (A, Go)" in result.output


def test_build_without_sources(cli_runner: CliRunner, in_tmp: Path):
    """Test build with no files and no manifest."""
    result = cli_runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "no .machine files given" in result.output


def test_build_missing_file(cli_runner: CliRunner, in_tmp: Path):
    """Test build with a file that does not exist."""
    result = cli_runner.invoke(app, ["build", "nope.machine"])
    assert result.exit_code == 1
    assert "file not found: nope.machine" in result.output


def test_build_missing_manifest(cli_runner: CliRunner, in_tmp: Path):
    """Test build with an explicit manifest that does not exist."""
    result = cli_runner.invoke(app, ["build", "--manifest", "missing.toml"])
    assert result.exit_code == 1
    assert "manifest not found" in result.output


def test_build_invalid_manifest(cli_runner: CliRunner, in_tmp: Path):
    """Test a manifest that is not valid TOML."""
    (in_tmp / MANIFEST_NAME).write_text("[build\n", encoding="utf-8")

    result = cli_runner.invoke(app, ["build"])

    assert result.exit_code == 1
    assert "invalid manifest" in result.output


def test_check_command(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test check lists the blocks of a valid file."""
    result = cli_runner.invoke(app, ["check", str(traffic_file)])

    assert result.exit_code == 0, result.output
    assert (
        f"OK {traffic_file}: machine Traffic, transitions Traffic, methods Traffic"
        in result.output
    )
    assert not (traffic_file.parent / "generated").exists()


def test_check_reports_every_file(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test check keeps going after a failing file."""
    broken = in_tmp / "broken.machine"
    broken.write_text(BROKEN_SOURCE, encoding="utf-8")

    result = cli_runner.invoke(app, ["check", str(broken), str(traffic_file)])

    assert result.exit_code == 1
    assert "Parse error:" in result.output
    assert f"OK {traffic_file}" in result.output


def test_graph_command(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test graph prints the DOT text."""
    result = cli_runner.invoke(app, ["graph", str(traffic_file)])

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("digraph Traffic {\n")
    assert 'Green -> Orange [ label = "PassCar" ];' in result.stdout
    assert result.stdout.endswith("}\n")


def test_graph_unknown_machine(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test graph with a machine name the file does not define."""
    result = cli_runner.invoke(app, ["graph", str(traffic_file), "--machine", "Door"])
    assert result.exit_code == 1
    assert "no transitions block" in result.output


def test_show_command(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test show prints the generated source in write order."""
    result = cli_runner.invoke(app, ["show", str(traffic_file)])

    assert result.exit_code == 0, result.output
    assert result.stdout.index("machine Traffic") < result.stdout.index("methods Traffic")
    assert "class _TrafficTransitions:" in result.stdout


def test_show_missing_file(cli_runner: CliRunner, in_tmp: Path):
    """Test show with a file that does not exist."""
    result = cli_runner.invoke(app, ["show", str(in_tmp / "nope.machine")])
    assert result.exit_code == 1
    assert "file not found" in result.output


def test_verbose_logs_steps(cli_runner: CliRunner, in_tmp: Path, traffic_file: Path):
    """Test --verbose enables debug logging of parse and codegen steps."""
    result = cli_runner.invoke(app, ["--verbose", "check", str(traffic_file)])

    assert result.exit_code == 0, result.output
    assert "DEBUG" in result.output
    assert "generated machine Traffic" in result.output
