"""
Open repositories in external applications after a branch is created.
"""

import subprocess
import sys

from loguru import logger

from .config import Settings

__all__ = [
    "LaunchError",
    "AppLauncher",
]


class LaunchError(Exception):
    """
    Raised when an external application could not be started.

    Attributes:
        launched: Targets that did open before the error was raised.
    """

    def __init__(self, message: str, launched: list[str] | None = None):
        super().__init__(message)
        self.launched = launched or []


class AppLauncher:
    """
    Open paths in the terminal and text editor chosen in the settings.

    Args:
        settings: User settings with the application toggles and names.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _command(self, app: str, path: str) -> list[str]:
        if sys.platform == "darwin":
            return ["open", "-a", app, path]
        return [app, path]

    def _open(self, app: str | None, path: str) -> bool:
        if not app:
            logger.warning(f"No application configured to open {path}")
            return False
        command = self._command(app, path)
        logger.debug(f"Launching {command}")
        try:
            subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error(f"Failed to launch {app} for {path}: {exc}")
            raise LaunchError(f"Could not open {path} with {app}: {exc}") from exc
        return True

    def open_in_terminal(self, path: str) -> bool:
        """Open ``path`` in the terminal app if enabled. Returns True if launched."""
        if not self.settings.open_in_terminal:
            return False
        return self._open(self.settings.terminal_app, path)

    def open_in_text_editor(self, path: str) -> bool:
        """Open ``path`` in the text editor if enabled. Returns True if launched."""
        if not self.settings.open_in_text_editor:
            return False
        return self._open(self.settings.text_editor_app, path)

    def open_after_create(self, path: str) -> list[str]:
        """
        Open ``path`` in every application the settings ask for.

        Each target is attempted even if an earlier one failed.

        Returns:
            list: Launched targets, a subset of ``["terminal", "editor"]``.

        Raises:
            LaunchError: After all targets were tried, if any of them failed.
                ``launched`` on the error lists the targets that did open.
        """
        launched = []
        failures = []
        for target, opener in (
            ("terminal", self.open_in_terminal),
            ("editor", self.open_in_text_editor),
        ):
            try:
                if opener(path):
                    launched.append(target)
            except LaunchError as exc:
                failures.append(str(exc))
        if failures:
            raise LaunchError("; ".join(failures), launched)
        return launched
