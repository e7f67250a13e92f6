"""
Repository model and discovery for gitflowmanager.

This module defines the repository, branch kind and branch request types and scans a
projects directory for git working trees.
"""

import dataclasses
import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import Settings
from .git_utils import GitCommandRunner

__all__ = [
    "TrunkKind",
    "BranchKind",
    "Repository",
    "BranchRequest",
    "RepositoryError",
    "DirectoryNotFound",
    "DirectoryNotReadable",
    "DiscoveryFailed",
    "RepositoryManager",
]

DEVELOP_BRANCH: str = "develop"


class TrunkKind(Enum):
    """Name of a repository's trunk branch."""

    MAIN = "main"
    MASTER = "master"


class BranchKind(Enum):
    """Git Flow branch kinds with their name prefix."""

    FEATURE = "feature"
    HOTFIX = "hotfix"

    @property
    def prefix(self) -> str:
        return self.value

    def base_branch(self, trunk: TrunkKind) -> str:
        """Return the branch new branches of this kind start from."""
        return DEVELOP_BRANCH if self is BranchKind.FEATURE else trunk.value

    @classmethod
    def parse(cls, text: str) -> "BranchKind":
        """
        Parse a branch kind from its name or one-letter shorthand.

        Raises:
            ValueError: If ``text`` names no branch kind.

        Examples:
            >>> BranchKind.parse("h")
            <BranchKind.HOTFIX: 'hotfix'>
        """
        key = text.strip().lower()
        for kind in cls:
            if key in (kind.value, kind.value[0]):
                return kind
        raise ValueError(f"Unknown branch kind: {text!r}")


@dataclass(eq=False)
class Repository:
    """
    A git working tree found during discovery.

    Identity is the ``id`` minted for each instance; a new scan creates new ids, so ids
    must not be stored as persistent keys.

    Attributes:
        name: Directory basename.
        path: Absolute path of the working tree.
        trunk: Trunk kind if resolved.
        id: Opaque identifier.
    """

    name: str
    path: str
    trunk: Optional[TrunkKind] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def trunk_kind(self) -> TrunkKind:
        return self.trunk or TrunkKind.MASTER

    @property
    def trunk_branch(self) -> str:
        return self.trunk_kind.value

    def with_trunk(self, trunk: TrunkKind) -> "Repository":
        """Return a copy with ``trunk`` set, keeping the same id."""
        return dataclasses.replace(self, trunk=trunk)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class BranchRequest:
    """Inputs of one branch creation."""

    repository: Repository
    kind: BranchKind
    issue: str = ""
    name: str = ""

    @property
    def has_content(self) -> bool:
        return bool(self.issue.strip() or self.name.strip())


class RepositoryError(Exception):
    """Base class for repository discovery errors."""


class DirectoryNotFound(RepositoryError):
    def __init__(self, path: str):
        super().__init__(f"Directory does not exist at {path}.")
        self.path = path


class DirectoryNotReadable(RepositoryError):
    def __init__(self, path: str):
        super().__init__(f"Cannot read directory at {path}. Check permissions.")
        self.path = path


class DiscoveryFailed(RepositoryError):
    def __init__(self, cause: Exception):
        super().__init__(f"Failed to discover repositories: {cause}")
        self.cause = cause


class RepositoryManager:
    """
    Discover git repositories and resolve their trunk branch.

    Args:
        runner: Command runner used for branch lookups.
        settings: Settings providing the default projects directory.
    """

    def __init__(self, runner: GitCommandRunner, settings: Settings | None = None):
        self.runner = runner
        self.settings = settings or Settings()

    @property
    def default_directory(self) -> Path:
        return self.settings.projects_directory

    def check_main_branch_type(self, repository: Repository) -> bool:
        """Return True if the repository has a local ``main`` branch."""
        return self.runner.branch_exists(TrunkKind.MAIN.value, repository.path)

    def resolve_trunk(self, repository: Repository) -> TrunkKind:
        """
        Query the trunk kind of a repository.

        A repository without ``main`` is assumed to use ``master``; this is not verified.
        """
        return TrunkKind.MAIN if self.check_main_branch_type(repository) else TrunkKind.MASTER

    def discover(self, directory: str | Path | None = None) -> list[Repository]:
        """
        List the git repositories directly inside ``directory``.

        Args:
            directory: Directory to scan. Defaults to the configured projects directory.

        Returns:
            list: Repositories sorted by name.

        Raises:
            DirectoryNotFound: If the directory does not exist.
            DirectoryNotReadable: If the directory cannot be read.
            DiscoveryFailed: If listing the directory fails.
        """
        root = Path(directory if directory is not None else self.default_directory).expanduser()
        path = str(root.absolute())
        logger.debug(f"Discovering repositories in {path}")

        if not os.path.exists(path):
            raise DirectoryNotFound(path)
        if not os.access(path, os.R_OK):
            raise DirectoryNotReadable(path)

        try:
            entries = os.listdir(path)
        except OSError as exc:
            logger.exception(f"Failed to list {path}")
            raise DiscoveryFailed(exc) from exc

        repositories = []
        for entry in entries:
            repo_path = os.path.join(path, entry)
            if not os.path.exists(os.path.join(repo_path, ".git")):
                continue
            repository = Repository(name=entry, path=repo_path)
            repository = repository.with_trunk(self.resolve_trunk(repository))
            logger.debug(f"Found repository {repository.name} ({repository.trunk_branch})")
            repositories.append(repository)

        logger.info(f"Discovered {len(repositories)} repositories in {path}")
        return sorted(repositories, key=lambda repo: repo.name)
