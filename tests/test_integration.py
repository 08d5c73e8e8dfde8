"""Integration tests running smart-push as a real process."""

import json
import os
import subprocess
import sys

import pytest

from smart_push import __version__


def python_command(code: str) -> str:
    return f'"{sys.executable}" -c "{code}"'


def smart_push(*args, home):
    return subprocess.run(
        [sys.executable, "-m", "smart_push", *args],
        capture_output=True,
        text=True,
        env={**os.environ, "HOME": str(home)},
    )


class TestSmokeTests:
    """Basic smoke tests to ensure the tool starts."""

    def test_module_version(self):
        result = subprocess.run(
            [sys.executable, "-m", "smart_push", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert __version__ in result.stdout

    def test_module_help(self):
        result = subprocess.run(
            [sys.executable, "-m", "smart_push", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "smart-push" in result.stdout

    def test_explain_outside_repository(self, tmp_path):
        """No git history is not an error."""
        result = subprocess.run(
            [sys.executable, "-m", "smart_push", "-C", str(tmp_path), "explain", "--json"],
            capture_output=True,
            text=True,
            env={**os.environ, "PATH": "", "HOME": str(tmp_path)},
        )
        assert result.returncode == 0, result.stderr
        assert '"score": 0' in result.stdout


class TestRunJson:
    """``run --json`` keeps stdout a single JSON document."""

    @pytest.fixture
    def project(self, git_repo, commit_files):
        commit_files(git_repo, {"lib/core.js": "module.exports = 1\n"})
        return git_repo

    def write_config(self, project, gate_code: str) -> None:
        lines = [f"gate_command = {json.dumps(python_command(gate_code))}", "[commands]"]
        for step in ("pattern_check", "unit_tests", "security_audit"):
            lines.append(f"{step} = {json.dumps(python_command('print(123456789)'))}")
        (project / "smart-push.toml").write_text("\n".join(lines) + "\n")

    def test_step_output_goes_to_stderr(self, project, tmp_path):
        self.write_config(project, "pass")
        result = smart_push("-C", str(project), "run", "--json", home=tmp_path)
        assert result.returncode == 0, result.stderr
        data = json.loads(result.stdout)
        assert data["selection"]["tier"] == "comprehensive"
        assert data["gate"]["passed"] is True
        assert "123456789" in result.stderr
        assert "123456789" not in result.stdout

    def test_gate_failure_is_json(self, project, tmp_path):
        self.write_config(project, "print('1 critical'); raise SystemExit(1)")
        result = smart_push("-C", str(project), "run", "--json", home=tmp_path)
        assert result.returncode == 1
        gate = json.loads(result.stdout)["gate"]
        assert gate["passed"] is False
        assert gate["vulnerable"] is True
        assert gate["hint"] == "npm audit fix"
        assert "1 critical" in gate["output"]
        assert "123456789" not in result.stderr
