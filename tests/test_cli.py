# Copyright (c) Syntropy Systems
"""Tests for tinygoize CLI commands."""

import json
import sys

import pytest
from typer.testing import CliRunner

from tinygoize.cli.main import app

runner = CliRunner()

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="fake toolchains are shell scripts"
)

BUILD_LINE = "//go:build !tinygo || tinygo.enable"


@pytest.fixture
def project(temp_dir, fake_tinygo, fake_go, make_package, monkeypatch):
    """A tree with one passing, one failing and one excluded command."""
    _ = (temp_dir / "tinygoize.yaml").write_text(f"tinygo: {fake_tinygo}\ngo: {fake_go}\n")
    _ = make_package("alpha")
    _ = make_package("beta", fail=True)
    _ = make_package("gamma", fail=True, excluded=True)
    monkeypatch.chdir(temp_dir)
    return temp_dir


ARGS = ["run", "cmds/alpha", "cmds/beta", "cmds/gamma"]


class TestRunCommand:
    """Tests for tinygoize run."""

    def test_run_updates_failing_package(self, project):
        """Test that the failing package gets the clause and exit is 1."""
        result = runner.invoke(app, ARGS)

        assert result.exit_code == 1
        assert "### EXCLUDED (1 commands)\n - [cmds/gamma](cmds/gamma)" in result.stdout
        assert "### FAILING (1 commands)\n - [cmds/beta](cmds/beta)" in result.stdout
        assert "### PASSING (1 commands)\n - [cmds/alpha](cmds/alpha)" in result.stdout
        assert "Updated build constraints in package(s):" in result.stdout
        assert BUILD_LINE in (project / "cmds/beta/main.go").read_text()
        assert BUILD_LINE not in (project / "cmds/alpha/main.go").read_text()
        assert BUILD_LINE not in (project / "cmds/gamma/main.go").read_text()

    def test_second_run_is_up_to_date(self, project):
        _ = runner.invoke(app, ARGS)

        result = runner.invoke(app, ARGS)

        assert result.exit_code == 0
        assert "Build constraints up to date." in result.stdout

    def test_check_only(self, project):
        """Test that -n reports but does not write."""
        before = (project / "cmds/beta/main.go").read_text()

        result = runner.invoke(app, ["run", "-n", "cmds/alpha", "cmds/beta"])

        assert result.exit_code == 1
        assert "Updates required in package(s):" in result.stdout
        assert "cmds/beta" in result.stdout
        assert (project / "cmds/beta/main.go").read_text() == before

    def test_passing_package_loses_clause(self, project):
        path = project / "cmds/alpha/main.go"
        _ = runner.invoke(app, ARGS)
        (project / "cmds/alpha/.fail").touch()
        _ = runner.invoke(app, ARGS)
        assert BUILD_LINE in path.read_text()

        (project / "cmds/alpha/.fail").unlink()
        result = runner.invoke(app, ARGS)

        assert result.exit_code == 1
        assert BUILD_LINE not in path.read_text()

    def test_output_file(self, project):
        (project / "docs").mkdir()

        result = runner.invoke(app, [*ARGS, "-o", "docs/tinygo.md"])

        report = (project / "docs/tinygo.md").read_text()
        assert result.exit_code == 1
        assert "tinygo version 0.33.0" in report
        assert " - [cmds/alpha](../cmds/alpha)" in report

    def test_json_output(self, project):
        result = runner.invoke(app, [*ARGS, "--json", "-o", "status.json"])

        status = json.loads((project / "status.json").read_text())
        assert result.exit_code == 1
        assert status == {
            "passing": ["cmds/alpha"],
            "failing": ["cmds/beta"],
            "excluded": ["cmds/gamma"],
            "modified": ["cmds/beta"],
        }

    def test_tinygo_flag_overrides_config(self, project):
        result = runner.invoke(app, [*ARGS, "--tinygo", str(project / "missing-tinygo")])

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert BUILD_LINE not in (project / "cmds/beta/main.go").read_text()

    def test_not_a_directory(self, project):
        result = runner.invoke(app, ["run", "cmds/nope"])

        assert result.exit_code == 1
        assert "Not a directory" in result.stdout

    def test_parse_error_aborts(self, project):
        _ = (project / "cmds/beta/broken.go").write_text("func main() {}\n")

        result = runner.invoke(app, ["run", "-j", "1", "cmds/beta"])

        assert result.exit_code == 1
        assert "expected 'package' clause" in result.stdout


class TestDoctorCommand:
    """Tests for tinygoize doctor."""

    def test_doctor_ok(self, project):
        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0
        assert "tinygo version 0.33.0" in result.stdout
        assert "go version go1.22.5" in result.stdout
        assert "All checks passed" in result.stdout

    def test_doctor_missing_tinygo(self, temp_dir, monkeypatch):
        _ = (temp_dir / "tinygoize.yaml").write_text(f"tinygo: {temp_dir / 'none'}\n")
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 1
        assert "tinygo unavailable" in result.stdout
