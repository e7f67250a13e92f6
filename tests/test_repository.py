"""
Test suite for gitflowmanager repository module.

Covers the repository model and repository discovery.

Run with:
    pytest tests/
"""

from pathlib import Path

import pytest

from conftest import requires_git
from gitflowmanager import repository as repository_module
from gitflowmanager.config import Settings
from gitflowmanager.git_utils import GitCommandRunner
from gitflowmanager.repository import (
    BranchKind,
    BranchRequest,
    DirectoryNotFound,
    DirectoryNotReadable,
    DiscoveryFailed,
    Repository,
    RepositoryManager,
    TrunkKind,
)


def make_projects(root: Path) -> Path:
    (root / "repoB" / ".git").mkdir(parents=True)
    (root / "repoA" / ".git").mkdir(parents=True)
    (root / "notGitDir").mkdir()
    (root / "worktree").mkdir()
    (root / "worktree" / ".git").write_text("gitdir: /elsewhere/.git/worktrees/worktree\n")
    (root / "notes.txt").write_text("not a repo\n")
    return root


def test_repository_defaults_to_master():
    repo = Repository(name="app", path="/src/app")
    assert repo.trunk is None
    assert repo.trunk_branch == "master"
    assert repo.with_trunk(TrunkKind.MAIN).trunk_branch == "main"


def test_repository_identity():
    """
    Test that repositories compare by id and that with_trunk keeps the id.
    """
    first = Repository(name="app", path="/src/app")
    second = Repository(name="app", path="/src/app")
    assert first != second
    updated = first.with_trunk(TrunkKind.MAIN)
    assert updated == first
    assert updated.id == first.id
    assert len({first, updated, second}) == 2


def test_branch_kind_mapping():
    assert BranchKind.FEATURE.prefix == "feature"
    assert BranchKind.HOTFIX.prefix == "hotfix"
    assert BranchKind.FEATURE.base_branch(TrunkKind.MAIN) == "develop"
    assert BranchKind.HOTFIX.base_branch(TrunkKind.MAIN) == "main"
    assert BranchKind.HOTFIX.base_branch(TrunkKind.MASTER) == "master"


@pytest.mark.parametrize(
    "text, kind",
    [("feature", BranchKind.FEATURE), ("F", BranchKind.FEATURE), (" hotfix ", BranchKind.HOTFIX), ("h", BranchKind.HOTFIX)],
)
def test_branch_kind_parse(text, kind):
    assert BranchKind.parse(text) is kind


def test_branch_kind_parse_invalid():
    with pytest.raises(ValueError):
        BranchKind.parse("bugfix")


def test_branch_request_has_content():
    repo = Repository(name="app", path="/src/app")
    assert BranchRequest(repo, BranchKind.FEATURE, "123", "").has_content
    assert BranchRequest(repo, BranchKind.FEATURE, "", "login").has_content
    assert not BranchRequest(repo, BranchKind.FEATURE, "  ", "\t").has_content


def test_discover_returns_sorted_git_repositories(tmp_path, scripted_runner):
    """
    Test that discover keeps only children with a .git entry, sorted by name.
    """
    projects = make_projects(tmp_path)
    manager = RepositoryManager(scripted_runner())
    repos = manager.discover(projects)
    assert [repo.name for repo in repos] == ["repoA", "repoB", "worktree"]
    assert all(Path(repo.path).is_absolute() for repo in repos)
    assert repos[0].path == str(projects / "repoA")


def test_discover_sort_is_case_sensitive(tmp_path, scripted_runner):
    for name in ("beta", "Alpha", "alpha"):
        (tmp_path / name / ".git").mkdir(parents=True)
    repos = RepositoryManager(scripted_runner()).discover(tmp_path)
    assert [repo.name for repo in repos] == ["Alpha", "alpha", "beta"]


def test_discover_resolves_trunk_kind(tmp_path, scripted_runner):
    """
    Test that discover marks repositories with a main branch as main-trunked.
    """
    make_projects(tmp_path)

    class PerRepoRunner(scripted_runner):
        def branch_exists(self, name, cwd):
            self.calls.append((("show-ref", name), cwd))
            return Path(cwd).name == "repoA" and name == "main"

    runner = PerRepoRunner()
    repos = RepositoryManager(runner).discover(tmp_path)
    trunks = {repo.name: repo.trunk for repo in repos}
    assert trunks == {"repoA": TrunkKind.MAIN, "repoB": TrunkKind.MASTER, "worktree": TrunkKind.MASTER}
    assert len(runner.calls) == 3


def test_discover_mints_fresh_ids(tmp_path, scripted_runner):
    make_projects(tmp_path)
    manager = RepositoryManager(scripted_runner())
    first = {repo.name: repo.id for repo in manager.discover(tmp_path)}
    second = {repo.name: repo.id for repo in manager.discover(tmp_path)}
    assert first.keys() == second.keys()
    assert all(first[name] != second[name] for name in first)


def test_discover_uses_settings_directory(tmp_path, scripted_runner):
    make_projects(tmp_path)
    manager = RepositoryManager(scripted_runner(), Settings(projects_directory=tmp_path))
    assert manager.default_directory == tmp_path
    assert [repo.name for repo in manager.discover()] == ["repoA", "repoB", "worktree"]


def test_discover_missing_directory(tmp_path, scripted_runner):
    with pytest.raises(DirectoryNotFound) as excinfo:
        RepositoryManager(scripted_runner()).discover(tmp_path / "missing")
    assert excinfo.value.path == str(tmp_path / "missing")


def test_discover_unreadable_directory(tmp_path, scripted_runner, monkeypatch):
    """
    Test that an existing directory without read permission raises DirectoryNotReadable.
    """
    monkeypatch.setattr(repository_module.os, "access", lambda path, mode: False)
    with pytest.raises(DirectoryNotReadable):
        RepositoryManager(scripted_runner()).discover(tmp_path)


def test_discover_listing_failure_is_wrapped(tmp_path, scripted_runner):
    """
    Test that listing errors are wrapped in DiscoveryFailed with the cause kept.
    """
    target = tmp_path / "file.txt"
    target.write_text("not a directory")
    with pytest.raises(DiscoveryFailed) as excinfo:
        RepositoryManager(scripted_runner()).discover(target)
    assert isinstance(excinfo.value.cause, OSError)
    assert excinfo.value.__cause__ is excinfo.value.cause


def test_discover_empty_directory(tmp_path, scripted_runner):
    assert RepositoryManager(scripted_runner()).discover(tmp_path) == []


@requires_git
def test_discover_real_repository(git_project):
    repos = RepositoryManager(GitCommandRunner()).discover(git_project.parent)
    assert [repo.name for repo in repos] == ["app"]
    assert repos[0].trunk is TrunkKind.MAIN
