"""Repo-wide test fixtures.

Snapshots and restores the SDK's environment variables between tests
so settings tests cannot leak into each other.
"""

from __future__ import annotations

import os

import pytest

_SENSITIVE_ENV_VARS = [
    "SWB_API_URL",
    "SWB_USERNAME",
    "SWB_PASSWORD",
    "SWB_DRY_RUN",
    "SWB_TIMEOUT",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot SWB_* env vars before each test and restore after."""
    snapshot = {}
    for var in _SENSITIVE_ENV_VARS:
        val = os.environ.get(var)
        if val is not None:
            snapshot[var] = val

    yield

    for var in _SENSITIVE_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)
