"""
Shared fixtures for the gitflowmanager test suite.

Run with:
    pytest tests/
"""

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from gitflowmanager import config
from gitflowmanager.git_utils import CommandOutcome, GitCommandRunner

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

GIT_ENV = {
    **os.environ,
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


class ScriptedRunner(GitCommandRunner):
    """
    Command runner that answers from a script instead of spawning git.

    Args:
        branches: Local branches that exist.
        failures: Map of space-joined arguments to the stderr of a failing run.
    """

    def __init__(self, branches=(), failures=None):
        super().__init__()
        self.branches = set(branches)
        self.failures = dict(failures or {})
        self.calls = []

    def run(self, args, cwd):
        args = tuple(args)
        self.calls.append((args, cwd))
        key = " ".join(args)
        if key in self.failures:
            return CommandOutcome(args, "", self.failures[key], 1)
        if args[0] == "show-ref":
            name = args[-1].removeprefix("refs/heads/")
            return CommandOutcome(args, "", "", 0 if name in self.branches else 1)
        if args[0] == "checkout" and "-b" in args:
            self.branches.add(args[2])
        return CommandOutcome(args, f"{key} done\n", "", 0)

    def commands(self):
        return [" ".join(args) for args, _ in self.calls]


@pytest.fixture
def scripted_runner():
    return ScriptedRunner


@pytest.fixture(autouse=True)
def clear_config_cache():
    config.load_config.cache_clear()
    config.load_settings.cache_clear()
    yield
    config.load_config.cache_clear()
    config.load_settings.cache_clear()


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env=GIT_ENV,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_project(tmp_path):
    """
    Create an origin repository with ``main`` and ``develop`` and a clone of it.

    Returns:
        Path: The clone's working tree, inside ``tmp_path / "projects"``.
    """
    origin = tmp_path / "origin"
    origin.mkdir()
    git(origin, "init", "-q", "-b", "main")
    (origin / "README.md").write_text("hello\n")
    git(origin, "add", "README.md")
    git(origin, "commit", "-q", "-m", "initial")
    git(origin, "branch", "develop")

    projects = tmp_path / "projects"
    projects.mkdir()
    git(projects, "clone", "-q", str(origin), "app")
    return projects / "app"
