"""
Git Flow branch creation helpers.

This package prepares git repositories and creates Git Flow branches in them:

- Discovers git repositories in a projects directory and detects whether each uses
  ``main`` or ``master`` as its trunk branch.
- Checks out and pulls ``develop`` and the trunk branch before branching.
- Creates ``feature/<issue>-<name>`` branches from ``develop`` and
  ``hotfix/<issue>-<name>`` branches from the trunk branch.
- Optionally opens the repository in a terminal and a text editor afterwards.

Example:
    >>> from gitflowmanager import main
    >>> main()

Notes:
    Requires a ``git`` executable on the PATH. Settings are read from
    ``gitflowmanager.toml`` (see ``gitflowmanager.config``).
"""


def main() -> None:
    """Run the gitflowmanager command line and exit with its status."""
    import sys

    from .cli import run_app

    sys.exit(run_app())
