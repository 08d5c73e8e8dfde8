"""Shared test fixtures for smart-push tests."""

import logging
import os
import shutil
import subprocess
from pathlib import Path

import pytest

from smart_push.context import ChangeContext


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def clean_override_env(monkeypatch):
    """Keep the developer's own environment out of every test."""
    for name in ("SKIP_SMART", "FORCE_COMPREHENSIVE", "FORCE_MINIMAL", "CI"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("SMART_PUSH_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_smart_push_logger():
    """Drop handlers and level set by setup_logging during a test."""
    yield
    logger = logging.getLogger("smart_push")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME somewhere empty so ~/.smart-push.toml is never read."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def feature_context():
    """Empty change on a feature branch, Saturday night."""
    return ChangeContext(
        changed_file_paths=(),
        changed_line_count=0,
        branch_name="feature/thing",
        hour=22,
        day_of_week=6,
    )


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path):
    """A throwaway repository with identity configured and one commit."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "dev@example.com")
    _git(repo, "config", "user.name", "Dev")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("hello\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "init")
    return repo


@pytest.fixture
def commit_files():
    """Write files into a repo and commit them; returns the helper."""

    def _commit(repo: Path, files: dict, message: str = "change") -> None:
        for rel, content in files.items():
            path = repo / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        _git(repo, "add", ".")
        _git(repo, "commit", "-q", "-m", message)

    return _commit


@pytest.fixture
def checkout():
    """Switch (creating if needed) a branch in a repo."""

    def _checkout(repo: Path, branch: str) -> None:
        _git(repo, "checkout", "-q", "-b", branch)

    return _checkout
