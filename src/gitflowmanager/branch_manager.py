"""
Git Flow branch preparation and creation.

Example:
    >>> runner = GitCommandRunner()
    >>> manager = BranchManager(runner, RepositoryManager(runner))
    >>> repository = manager.prepare(repository)
    >>> manager.create(repository, BranchKind.FEATURE, "123", "Add Login")
    'feature/123-add_login'
"""

import re

from loguru import logger

from .git_utils import BranchNotFound, CheckoutFailed, GitCommandRunner, PullFailed
from .repository import (
    DEVELOP_BRANCH,
    BranchKind,
    BranchRequest,
    Repository,
    RepositoryManager,
)

__all__ = [
    "format_branch_name",
    "branch_summary",
    "BranchManager",
]

_INVALID_BRANCH_CHARS = re.compile(r"[^a-z0-9_-]")


def format_branch_name(kind: BranchKind, issue: str, name: str) -> str:
    """
    Format a Git Flow branch name from an issue token and a description.

    Args:
        kind: Branch kind providing the prefix.
        issue: Issue number or token, may be empty.
        name: Free-text description, may be empty.

    Returns:
        str: The branch name. ``"<prefix>/"`` when both inputs are blank.

    Examples:
        >>> format_branch_name(BranchKind.FEATURE, "123", "Add Login")
        'feature/123-add_login'
        >>> format_branch_name(BranchKind.HOTFIX, "", "Fix Crash!!")
        'hotfix/fix_crash'
    """
    parts = [part.strip().lower() for part in (issue, name)]
    suffix = "-".join(part for part in parts if part)
    suffix = _INVALID_BRANCH_CHARS.sub("", suffix.replace(" ", "_"))
    return f"{kind.prefix}/{suffix}"


def branch_summary(repository: Repository, kind: BranchKind, issue: str, name: str) -> str:
    """Describe the branch that would be created, for previews."""
    return (
        f"Repository: {repository.name}\n"
        f"Base Branch: {kind.base_branch(repository.trunk_kind)}\n"
        f"New Branch: {format_branch_name(kind, issue, name)}"
    )


class BranchManager:
    """
    Prepare repositories and create Git Flow branches.

    Args:
        runner: Command runner for git invocations.
        repositories: Repository manager used to resolve trunk branches.
    """

    def __init__(self, runner: GitCommandRunner, repositories: RepositoryManager):
        self.runner = runner
        self.repositories = repositories

    def prepare(self, repository: Repository) -> Repository:
        """
        Bring ``develop`` and the trunk branch up to date.

        Stops at the first failure and leaves the working tree as git left it.

        Returns:
            Repository: ``repository`` with the trunk kind found during preparation.

        Raises:
            GitError: With the message rewritten to name the failing branch for
                not-found, checkout and pull failures.
        """
        logger.info(f"Preparing repository {repository.name}")
        self._sync(
            repository,
            DEVELOP_BRANCH,
            "This repository doesn't have a 'develop' branch. "
            "Feature branches require a develop branch to be present.",
        )
        trunk_kind = self.repositories.resolve_trunk(repository)
        trunk = trunk_kind.value
        self._sync(repository, trunk, f"This repository doesn't have a '{trunk}' branch.")
        logger.info(f"Repository {repository.name} is up to date on {DEVELOP_BRANCH} and {trunk}")
        return repository.with_trunk(trunk_kind)

    def _sync(self, repository: Repository, branch: str, missing_message: str) -> None:
        try:
            self.runner.checkout_and_pull(branch, repository.path)
        except BranchNotFound as exc:
            raise BranchNotFound(missing_message) from exc
        except CheckoutFailed as exc:
            raise CheckoutFailed(f"Failed to checkout {branch} branch: {exc.message}") from exc
        except PullFailed as exc:
            raise PullFailed(f"Failed to update {branch} branch: {exc.message}") from exc

    def create(self, repository: Repository, kind: BranchKind, issue: str, name: str) -> str:
        """
        Create and switch to a new branch.

        Hotfix branches start from the trunk branch, resolved again at call time.

        Args:
            repository: Target repository.
            kind: Branch kind.
            issue: Issue token.
            name: Branch description.

        Returns:
            str: The created branch name.

        Raises:
            GitError: Unmodified from git.
        """
        if kind is BranchKind.FEATURE:
            base = DEVELOP_BRANCH
        else:
            base = self.repositories.resolve_trunk(repository).value
        branch = format_branch_name(kind, issue, name)
        self.runner.create_branch(branch, base, repository.path)
        logger.info(f"Created branch {branch} from {base} in {repository.name}")
        return branch

    def create_from_request(self, request: BranchRequest) -> str:
        return self.create(request.repository, request.kind, request.issue, request.name)
