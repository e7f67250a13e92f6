"""
Git command helpers for gitflowmanager.

This module runs single git subcommands in a target working tree, captures their output
and translates failures into typed ``GitError`` exceptions.
"""

import shlex
import subprocess
from dataclasses import dataclass
from typing import Sequence

from loguru import logger

__all__ = [
    "CommandOutcome",
    "GitError",
    "BranchNotFound",
    "CheckoutFailed",
    "PullFailed",
    "CreateBranchFailed",
    "InvalidRepository",
    "ExecutionFailed",
    "classify_git_error",
    "GitCommandRunner",
]


class GitError(Exception):
    """
    Base class for failures of a git invocation.

    Attributes:
        message: Human-readable detail of what went wrong.
    """

    description = "Git command failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.description}: {self.message}"


class BranchNotFound(GitError):
    description = "Branch not found"


class CheckoutFailed(GitError):
    description = "Failed to checkout"


class PullFailed(GitError):
    description = "Failed to pull"


class CreateBranchFailed(GitError):
    description = "Failed to create branch"


class InvalidRepository(GitError):
    description = "Invalid git repository"


class ExecutionFailed(GitError):
    description = "Git command failed"


@dataclass(frozen=True)
class CommandOutcome:
    """Result of one git invocation."""

    args: tuple[str, ...]
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def classify_git_error(args: Sequence[str], stderr: str) -> GitError:
    """
    Translate git's stderr text into a ``GitError`` variant.

    Classification relies on the phrasing of the installed git's diagnostics, so it is
    sensitive to git version and locale.

    Args:
        args: The git subcommand and its arguments.
        stderr: Captured standard error of the failed command.

    Returns:
        GitError: The matching error variant.

    Examples:
        >>> classify_git_error(["pull"], "error: You have unstaged changes.")
        PullFailed('You have local changes that would be overwritten by pull. Please commit or stash them.')
    """
    text = stderr.strip()
    command = shlex.join(args)
    subcommand = args[0] if args else ""

    if "did not match any file(s) known to git" in text:
        return BranchNotFound(command)
    if "not a git repository" in text:
        return InvalidRepository(text)
    if subcommand == "checkout" and "-b" in args[1:]:
        if "already exists" in text:
            return CreateBranchFailed("A branch with this name already exists.")
        return CreateBranchFailed(text)
    if subcommand == "checkout":
        if "Please commit your changes or stash them" in text:
            return CheckoutFailed(
                "You have uncommitted changes. Please commit or stash them before switching branches."
            )
        if "untracked working tree files" in text:
            return CheckoutFailed(
                "You have untracked files that would be overwritten. Please commit, stash, or remove them."
            )
        return CheckoutFailed(text)
    if subcommand == "pull":
        if "You have unstaged changes" in text or "would be overwritten" in text:
            return PullFailed(
                "You have local changes that would be overwritten by pull. Please commit or stash them."
            )
        return PullFailed(text)
    return ExecutionFailed(text or "Unknown error")


class GitCommandRunner:
    """
    Run git subcommands as non-interactive subprocesses.

    Each call takes the working directory explicitly; the runner keeps no notion of a
    current repository and may be shared between callers.

    Args:
        git_executable: Name or path of the git executable.
        env: Optional environment variables for subprocesses.
    """

    def __init__(self, git_executable: str = "git", env: dict[str, str] | None = None):
        self.git_executable = git_executable
        self.env = env

    def run(self, args: Sequence[str], cwd: str) -> CommandOutcome:
        """
        Run ``git <args>`` in ``cwd`` and capture its output.

        Args:
            args: The git subcommand and its arguments as discrete tokens.
            cwd: Working directory for the command.

        Returns:
            CommandOutcome: Captured output and exit status.

        Raises:
            ValueError: If ``args`` is empty.
            ExecutionFailed: If the process could not be started.
        """
        if not args:
            raise ValueError("git arguments must not be empty")
        argv = [self.git_executable, *args]
        logger.debug(f"Running subprocess: {argv} in {cwd}")
        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
                env=self.env,
            )
        except OSError as exc:
            logger.error(f"Failed to start {argv} in {cwd}: {exc}")
            raise ExecutionFailed(str(exc)) from exc
        logger.debug(f"subprocess stdout: {result.stdout}")
        logger.debug(f"subprocess stderr: {result.stderr}")
        logger.debug(f"subprocess returncode: {result.returncode}")
        return CommandOutcome(
            args=tuple(args),
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def execute(self, args: Sequence[str], cwd: str) -> str:
        """
        Run a git subcommand and return its trimmed stdout.

        Args:
            args: The git subcommand and its arguments.
            cwd: Working directory for the command.

        Returns:
            str: Trimmed standard output.

        Raises:
            GitError: If git exits with a non-zero status.
        """
        outcome = self.run(args, cwd)
        if not outcome.ok:
            error = classify_git_error(args, outcome.stderr)
            logger.error(
                f"git {shlex.join(args)} failed with return code {outcome.returncode}: {error}"
            )
            raise error
        return outcome.stdout.strip()

    def branch_exists(self, name: str, cwd: str) -> bool:
        """
        Check whether a local branch exists.

        Any failure is reported as ``False``.

        Args:
            name: Branch name without the ``refs/heads/`` prefix.
            cwd: Repository working tree.

        Returns:
            bool: True if ``refs/heads/<name>`` exists.
        """
        try:
            outcome = self.run(["show-ref", "--verify", "--quiet", f"refs/heads/{name}"], cwd)
        except ExecutionFailed as exc:
            logger.warning(f"Could not check for branch '{name}' in {cwd}: {exc}")
            return False
        logger.debug(f"Branch '{name}' exists in {cwd}: {outcome.ok}")
        return outcome.ok

    def checkout_and_pull(self, branch: str, cwd: str) -> tuple[str, str]:
        """
        Switch to ``branch`` and pull it.

        The pull is only attempted once the checkout succeeded.

        Returns:
            tuple: (checkout output, pull output).

        Raises:
            GitError: From whichever step failed.
        """
        checkout_output = self.execute(["checkout", branch], cwd)
        pull_output = self.execute(["pull"], cwd)
        return checkout_output, pull_output

    def create_branch(self, name: str, base: str, cwd: str) -> str:
        """Create ``name`` from ``base`` and switch to it."""
        logger.info(f"Creating branch '{name}' from '{base}' in {cwd}")
        return self.execute(["checkout", "-b", name, base], cwd)

