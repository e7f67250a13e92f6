"""
Configuration loading utilities for gitflowmanager.

This module loads user settings from TOML files: the projects directory to scan for
repositories and the applications to open after a branch is created.
"""

import os
import sys
import tomllib
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import platformdirs
from loguru import logger

__all__ = [
    "APPLICATION_NAME",
    "Settings",
    "load_config",
    "load_settings",
]

APPLICATION_NAME: str = "gitflowmanager"
CONFIG_ENV_VAR: str = "GITFLOWMANAGER_CONFIG"


def _default_terminal_app() -> str:
    return "Terminal" if sys.platform == "darwin" else "x-terminal-emulator"


def _default_text_editor_app() -> str:
    return "TextEdit" if sys.platform == "darwin" else "xdg-open"


@dataclass(frozen=True)
class Settings:
    """
    Read-only user preferences.

    Attributes:
        projects_directory: Directory scanned for git repositories.
        open_in_terminal: Open the repository in a terminal after creating a branch.
        open_in_text_editor: Open the repository in a text editor after creating a branch.
        terminal_app: Terminal application name or path.
        text_editor_app: Text editor application name or path.
        git_executable: Name or path of the git executable.
    """

    projects_directory: Path = field(default_factory=lambda: Path.home() / "Developer")
    open_in_terminal: bool = False
    open_in_text_editor: bool = False
    terminal_app: Optional[str] = field(default_factory=_default_terminal_app)
    text_editor_app: Optional[str] = field(default_factory=_default_text_editor_app)
    git_executable: str = "git"

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Settings":
        """
        Build settings from a config dict, falling back to defaults for missing or invalid values.

        Args:
            config: Parsed TOML configuration.

        Returns:
            Settings: The resulting settings.
        """
        defaults = cls()
        values: dict[str, Any] = {}

        directory = config.get("projects_directory")
        if isinstance(directory, str) and directory.strip():
            values["projects_directory"] = Path(directory).expanduser()
        elif directory is not None:
            logger.error(f"Invalid projects_directory: {directory!r} - using default")

        for key in ("open_in_terminal", "open_in_text_editor"):
            value = config.get(key)
            if isinstance(value, bool):
                values[key] = value
            elif value is not None:
                logger.error(f"Invalid {key}: {value!r} - expected a boolean, using default")

        for key in ("terminal_app", "text_editor_app", "git_executable"):
            value = config.get(key)
            if isinstance(value, str) and value.strip():
                values[key] = value.strip()
            elif value is not None:
                logger.error(f"Invalid {key}: {value!r} - using default")

        unknown = sorted(set(config) - set(cls.__dataclass_fields__))
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

        return cls(
            projects_directory=values.get("projects_directory", defaults.projects_directory),
            open_in_terminal=values.get("open_in_terminal", defaults.open_in_terminal),
            open_in_text_editor=values.get("open_in_text_editor", defaults.open_in_text_editor),
            terminal_app=values.get("terminal_app", defaults.terminal_app),
            text_editor_app=values.get("text_editor_app", defaults.text_editor_app),
            git_executable=values.get("git_executable", defaults.git_executable),
        )


def config_candidates() -> list[Path]:
    """
    Return the config file locations in lookup order.

    1. The file named by $GITFLOWMANAGER_CONFIG
    2. gitflowmanager.toml in $XDG_CONFIG_HOME/gitflowmanager/
    3. gitflowmanager.toml in platformdirs.user_config_dir
    4. .gitflowmanager.toml in the user home directory
    """
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser())
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        candidates.append(
            Path(xdg_config_home).expanduser() / APPLICATION_NAME / f"{APPLICATION_NAME}.toml"
        )
    candidates.append(
        Path(platformdirs.user_config_dir(APPLICATION_NAME)).expanduser()
        / f"{APPLICATION_NAME}.toml"
    )
    candidates.append(Path.home() / f".{APPLICATION_NAME}.toml")
    return candidates


@lru_cache(maxsize=1)
def load_config() -> dict[str, Any]:
    """
    Load configuration from the first available source listed by ``config_candidates``.

    Returns:
        dict: Configuration dictionary. Empty if no file was found or all were invalid.
    """
    logger.debug("Starting configuration loading process")
    for path in config_candidates():
        if not path.is_file():
            logger.debug(f"No config file at {path}")
            continue
        try:
            with path.open("rb") as f:
                config = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            logger.exception(f"Skipping unreadable config {path}")
            continue
        if config:
            logger.debug(f"Using configuration from {path}")
            return config
        logger.debug(f"Config {path} is empty, trying the next location")
    logger.debug("No configuration file found, using empty config")
    return {}


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return the user's settings, built from ``load_config``."""
    return Settings.from_config(load_config())
