"""Access token handling for the PagerDuty REST API."""

from __future__ import annotations

import os
from typing import Dict, Optional

ACCESS_TOKEN_ENV = "PAGERDUTY_ACCESS_TOKEN"


def resolve_access_token(access: Optional[str] = None) -> Optional[str]:
    """Precedence: explicit access handle > PAGERDUTY_ACCESS_TOKEN env var."""
    return access or os.environ.get(ACCESS_TOKEN_ENV) or None


def build_auth_headers(access: Optional[str] = None, scheme: str = "token") -> Dict[str, str]:
    """Return the Authorization header dict if an access token is available.

    ``token`` scheme is the REST API key format (``Token token=...``),
    ``bearer`` is used for OAuth access tokens.
    Returns empty dict if no token is configured.
    """
    token = resolve_access_token(access)
    if not token:
        return {}
    if scheme == "bearer":
        return {"Authorization": f"Bearer {token}"}
    return {"Authorization": f"Token token={token}"}
