"""Repo-wide test fixtures.

Snapshots and restores PagerDuty environment variables between tests so a
token or URL set by one test never leaks into the next.
"""

from __future__ import annotations

import os

import pytest

_SENSITIVE_ENV_VARS = [
    "PAGERDUTY_ACCESS_TOKEN",
    "PAGERDUTY_API_URL",
    "PAGERDUTY_TIMEOUT",
    "PAGERDUTY_RETRIES",
    "PAGERDUTY_AUTH_SCHEME",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot sensitive env vars before each test and restore after."""
    snapshot = {}
    for var in _SENSITIVE_ENV_VARS:
        val = os.environ.get(var)
        if val is not None:
            snapshot[var] = val

    yield

    # Restore: remove any that were added, reset any that changed
    for var in _SENSITIVE_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)
