"""Pytest configuration for shellrun tests."""

import os
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Configure test environment before collection.

    Sets up environment variables to:
    - Point the config dir at an empty /tmp dir so a user's ~/.config/shellrun/.env
      never leaks into tests
    - Clear SHELLRUN_* overrides and NO_COLOR inherited from the shell
    """
    test_config_dir = Path("/tmp/shellrun-test-config")
    test_config_dir.mkdir(parents=True, exist_ok=True)
    os.environ["SHELLRUN_CONFIG_DIR"] = str(test_config_dir)

    for name in (
        "SHELLRUN_TIMEOUT_MS",
        "SHELLRUN_KILL_GRACE_SECONDS",
        "SHELLRUN_KILL_ON_TIMEOUT",
        "SHELLRUN_COLOR",
        "NO_COLOR",
    ):
        os.environ.pop(name, None)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Default unmarked tests to unit category."""
    for item in items:
        if any(marker in item.keywords for marker in ("unit", "integration")):
            continue
        item.add_marker(pytest.mark.unit)
