"""
Interactive branch-creation workflow.

A ``BranchSession`` holds the state a front end keeps between user actions: the loaded
repositories, the selected one and whether it has already been prepared.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from .branch_manager import BranchManager, branch_summary
from .config import Settings
from .git_utils import GitCommandRunner, GitError
from .launcher import AppLauncher, LaunchError
from .repository import BranchKind, BranchRequest, Repository, RepositoryError, RepositoryManager

__all__ = [
    "SessionError",
    "NoRepositoriesFound",
    "NoRepositorySelected",
    "EmptyBranchName",
    "BranchSession",
]


class SessionError(Exception):
    """Base class for workflow errors."""


class NoRepositoriesFound(SessionError):
    def __init__(self, directory: str):
        super().__init__(
            f"No git repositories found in '{directory}'. Please check the projects directory "
            "in the settings or add some git repositories to this location."
        )
        self.directory = directory


class NoRepositorySelected(SessionError):
    def __init__(self):
        super().__init__("No repository selected.")


class EmptyBranchName(SessionError):
    def __init__(self):
        super().__init__("Enter an issue number or a branch name.")


class BranchSession:
    """
    Drive discovery, preparation and creation for one user.

    Args:
        repositories: Repository manager for discovery and trunk lookups.
        branches: Branch manager for preparation and creation.
        launcher: Launcher for opening the repository after creation.
    """

    def __init__(
        self,
        repositories: RepositoryManager,
        branches: BranchManager,
        launcher: AppLauncher,
    ):
        self.repositories = repositories
        self.branches = branches
        self.launcher = launcher
        self.available: list[Repository] = []
        self.selected: Optional[Repository] = None
        self.prepared = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "BranchSession":
        """Wire a session from settings."""
        runner = GitCommandRunner(settings.git_executable)
        repositories = RepositoryManager(runner, settings)
        return cls(repositories, BranchManager(runner, repositories), AppLauncher(settings))

    def load_repositories(self, directory: str | Path | None = None) -> list[Repository]:
        """
        Discover repositories and remember them.

        Raises:
            RepositoryError: If discovery fails.
            NoRepositoriesFound: If the directory holds no repositories.
        """
        try:
            self.available = self.repositories.discover(directory)
        except RepositoryError:
            self.available = []
            self.select(None)
            raise
        if not self.available:
            self.select(None)
            target = directory if directory is not None else self.repositories.default_directory
            raise NoRepositoriesFound(str(target))
        return self.available

    def find(self, name: str) -> Optional[Repository]:
        """Return the loaded repository called ``name``."""
        for repository in self.available:
            if repository.name == name:
                return repository
        return None

    def select(self, repository: Optional[Repository]) -> None:
        if repository != self.selected:
            self.prepared = False
        self.selected = repository

    def prepare(self) -> Repository:
        """
        Prepare the selected repository unless that already happened.

        Raises:
            NoRepositorySelected: If nothing is selected.
            GitError: If preparation fails; the selection is cleared.
        """
        if self.selected is None:
            raise NoRepositorySelected()
        if self.prepared:
            logger.debug(f"Repository {self.selected.name} already prepared")
            return self.selected

        try:
            repository = self.branches.prepare(self.selected)
        except GitError:
            self.select(None)
            raise
        self.selected = repository
        self.prepared = True
        return repository

    def summary(self, kind: BranchKind, issue: str = "", name: str = "") -> str:
        """Preview of the branch for the selected repository, or ``""`` without one."""
        if self.selected is None:
            return ""
        return branch_summary(self.selected, kind, issue, name)

    def create(
        self, kind: BranchKind, issue: str = "", name: str = "", open_apps: bool = True
    ) -> str:
        """
        Create a branch in the selected repository and open it in the configured apps.

        Returns:
            str: The created branch name.

        Raises:
            NoRepositorySelected: If nothing is selected.
            EmptyBranchName: If both ``issue`` and ``name`` are blank.
            GitError: If creation fails; the selection is cleared.
        """
        if self.selected is None:
            raise NoRepositorySelected()
        request = BranchRequest(self.selected, kind, issue.strip(), name.strip())
        if not request.has_content:
            raise EmptyBranchName()

        try:
            branch = self.branches.create_from_request(request)
        except GitError:
            self.select(None)
            raise

        self.reset()
        if not open_apps:
            return branch
        try:
            launched = self.launcher.open_after_create(request.repository.path)
        except LaunchError as exc:
            logger.error(f"Branch {branch} created but {exc}")
            launched = exc.launched
        if launched:
            logger.info(f"Opened {request.repository.name} in {', '.join(launched)}")
        return branch

    def reset(self) -> None:
        self.selected = None
        self.prepared = False
