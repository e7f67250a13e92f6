"""
Command-line front end for gitflowmanager.

Example:
    $ gitflowmanager list
    $ gitflowmanager create my-repo --type feature --issue 123 --name "Add login"
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger
from platformdirs import user_log_dir

from .config import APPLICATION_NAME, load_settings
from .git_utils import GitError
from .repository import BranchKind, RepositoryError
from .session import BranchSession, NoRepositoriesFound, SessionError

__all__ = [
    "run_app",
    "parse_arguments",
    "configure_logging",
]

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def configure_logging(debug: bool) -> None:
    """
    Configure loguru sinks: stderr for the user and a rotating debug log file.

    Args:
        debug: Log DEBUG records to stderr as well.
    """
    log_file_path = Path(user_log_dir(APPLICATION_NAME)) / f"{APPLICATION_NAME}.log"
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO", format="{level}: {message}")
    try:
        logger.add(
            str(log_file_path),
            level="DEBUG",
            format="{time} {level} {message}",
            rotation="16 MB",
            retention=3,
            compression="zip",
        )
    except OSError as exc:
        logger.warning(f"Cannot write log file {log_file_path}: {exc}")


def _add_branch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("repository", help="Name of the repository inside the projects directory")
    parser.add_argument(
        "--type",
        dest="kind",
        type=BranchKind.parse,
        required=True,
        metavar="{feature,hotfix}",
        help="Branch type (feature/f or hotfix/h)",
    )
    parser.add_argument("--issue", default="", help="Issue number")
    parser.add_argument("--name", default="", help="Branch description")


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog=APPLICATION_NAME,
        description="Prepare git repositories and create Git Flow feature and hotfix branches.",
    )
    parser.add_argument(
        "--directory",
        default=None,
        help="Projects directory to scan instead of the configured one",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List repositories in the projects directory")

    prepare = subparsers.add_parser("prepare", help="Check out and pull develop and the trunk branch")
    prepare.add_argument("repository", help="Name of the repository inside the projects directory")

    preview = subparsers.add_parser("preview", help="Show the branch that would be created")
    _add_branch_arguments(preview)

    create = subparsers.add_parser("create", help="Create a feature or hotfix branch")
    _add_branch_arguments(create)
    create.add_argument(
        "--skip-prepare",
        action="store_true",
        help="Do not check out and pull develop and the trunk branch first",
    )
    create.add_argument(
        "--no-open",
        action="store_true",
        help="Do not open the repository in the configured terminal or editor",
    )
    return parser.parse_args(argv)


def _select(session: BranchSession, name: str) -> bool:
    repository = session.find(name)
    if repository is None:
        print(f"Repository '{name}' not found in the projects directory.", file=sys.stderr)
        return False
    session.select(repository)
    return True


def _command_list(session: BranchSession, args: argparse.Namespace) -> int:
    for repository in session.available:
        print(f"{repository.name}\t{repository.trunk_branch}\t{repository.path}")
    return EXIT_OK


def _command_prepare(session: BranchSession, args: argparse.Namespace) -> int:
    if not _select(session, args.repository):
        return EXIT_USAGE
    repository = session.prepare()
    print(f"{repository.name}: develop and {repository.trunk_branch} are up to date")
    return EXIT_OK


def _command_preview(session: BranchSession, args: argparse.Namespace) -> int:
    if not _select(session, args.repository):
        return EXIT_USAGE
    print(session.summary(args.kind, args.issue, args.name))
    return EXIT_OK


def _command_create(session: BranchSession, args: argparse.Namespace) -> int:
    if not _select(session, args.repository):
        return EXIT_USAGE
    if not args.skip_prepare:
        session.prepare()
    branch = session.create(args.kind, args.issue, args.name, open_apps=not args.no_open)
    print(f"Created branch {branch}")
    return EXIT_OK


COMMANDS = {
    "list": _command_list,
    "prepare": _command_prepare,
    "preview": _command_preview,
    "create": _command_create,
}


def run_app(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the gitflowmanager command line.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv[1:]``.

    Returns:
        int: Process exit code.
    """
    args = parse_arguments(argv)
    configure_logging(args.debug)

    settings = load_settings()
    session = BranchSession.from_settings(settings)
    try:
        session.load_repositories(args.directory)
        return COMMANDS[args.command](session, args)
    except NoRepositoriesFound as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILURE
    except SessionError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    except (RepositoryError, GitError) as exc:
        logger.debug(f"{args.command} failed: {exc!r}")
        print(str(exc), file=sys.stderr)
        return EXIT_FAILURE
