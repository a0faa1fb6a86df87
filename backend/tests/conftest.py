# backend/tests/conftest.py
"""
Pytest configuration for Notion Grid backend tests.

- Ensures that the project root (backend/) is added to sys.path
  so that `import notion_grid.*` works correctly in tests.
- Ensures required environment variables for tests are set
  with safe dummy values (e.g., ENC_KEY_32B, HMAC_KEY_32B).
- Clears cached configuration between tests so that monkeypatched
  environment variables take effect.
"""

import base64
import os
import sys
from pathlib import Path

import pytest


def _ensure_project_root_in_sys_path() -> None:
    # This file is located at: backend/tests/conftest.py
    # parents[1] -> backend/
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)

    if project_root_str not in sys.path:
        # Insert at the beginning so it has priority over site-packages, etc.
        sys.path.insert(0, project_root_str)


def _ensure_test_env_vars() -> None:
    """
    Set dummy environment variables required for tests.

    These values are only for local testing and do NOT contain real secrets.
    In real environments, proper values should be provided via .env or system env.
    """
    os.environ.setdefault("ENC_KEY_32B", base64.b64encode(bytes([1]) * 32).decode("ascii"))
    os.environ.setdefault("HMAC_KEY_32B", base64.b64encode(bytes([2]) * 32).decode("ascii"))
    os.environ.setdefault("SUPABASE_URL", "https://dummy-project.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_ROLE", "dummy-service-role-for-tests")


_ensure_project_root_in_sys_path()
_ensure_test_env_vars()


def _clear_config_caches() -> None:
    from notion_grid.licensing.config import get_license_store_settings
    from notion_grid.licensing.router import get_activation_service
    from notion_grid.notion.config import get_default_credentials, get_notion_config
    from notion_grid.tokens.config import get_token_keys, get_token_settings

    for cached in (
        get_token_keys,
        get_token_settings,
        get_notion_config,
        get_default_credentials,
        get_license_store_settings,
        get_activation_service,
    ):
        cached.cache_clear()


@pytest.fixture(autouse=True)
def _reset_config_caches():
    _clear_config_caches()
    yield
    _clear_config_caches()


@pytest.fixture
def token_keys():
    from notion_grid.tokens import TokenKeys

    return TokenKeys(
        encryption_key=bytes(range(32)),
        authentication_key=bytes(range(32, 64)),
    )


@pytest.fixture
def other_token_keys():
    from notion_grid.tokens import TokenKeys

    return TokenKeys(
        encryption_key=bytes(range(100, 132)),
        authentication_key=bytes(range(132, 164)),
    )
