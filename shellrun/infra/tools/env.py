"""Environment configuration and loading for shellrun.

Centralizes the config directory and dotenv loading. The CLI calls
load_user_env() during bootstrap and load_env() for an explicit --cwd, so that
values from those .env files are visible to ShellRunConfig.from_env().
"""

import os
from pathlib import Path

from dotenv import load_dotenv


def get_config_dir() -> Path:
    """Get the user config directory, respecting SHELLRUN_CONFIG_DIR.

    Evaluated at call time so tests and callers can redirect it.
    """
    default = Path.home() / ".config" / "shellrun"
    return Path(os.environ.get("SHELLRUN_CONFIG_DIR", str(default)))


def load_user_env() -> bool:
    """Load <config dir>/.env without overriding variables already set.

    Returns:
        True if a .env file was found and loaded.
    """
    return load_dotenv(dotenv_path=get_config_dir() / ".env")


def load_env(cwd: Path | None = None) -> None:
    """Load environment from the user config and optionally a project dir.

    Args:
        cwd: Optional directory whose .env is loaded after the user's, with
            override=True, so project settings win.
    """
    load_user_env()
    if cwd is not None:
        load_dotenv(dotenv_path=cwd / ".env", override=True)
