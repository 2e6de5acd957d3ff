"""Pytest configuration and fixtures for proxctl tests.

CRITICAL: Protects production configuration from test modifications.
"""

import os
import shutil
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def protect_production_config():
    """Protect ~/.proxctl/config.toml from being modified by tests.

    This fixture:
    1. Backs up the real config.toml before any tests run
    2. Restores it after all tests complete
    """
    config_path = Path.home() / ".proxctl" / "config.toml"
    backup_path = Path.home() / ".proxctl" / ".config.toml.pytest-backup"

    config_existed = config_path.exists()
    if config_existed:
        shutil.copy2(config_path, backup_path)
        print(f"\n[PYTEST] Protected config.toml - backup at {backup_path}")

    yield

    if config_existed and backup_path.exists():
        shutil.copy2(backup_path, config_path)
        backup_path.unlink()
        print("\n[PYTEST] Restored config.toml from backup")
    elif backup_path.exists():
        backup_path.unlink()


@pytest.fixture(scope="session", autouse=True)
def prevent_real_cluster_operations():
    """Mark test mode and keep real cluster credentials out of the run.

    PROXCTL_* connection variables from the developer's shell would
    otherwise override the config files tests write under tmp_path.
    """
    os.environ["PROXCTL_TEST_MODE"] = "true"
    saved = {}
    for name in ("PROXCTL_CONFIG", "PROXCTL_SERVER", "PROXCTL_TOKEN_ID", "PROXCTL_TOKEN_SECRET"):
        if name in os.environ:
            saved[name] = os.environ.pop(name)

    yield

    os.environ.pop("PROXCTL_TEST_MODE", None)
    os.environ.update(saved)
