"""Shared fixtures for team membership tests.

``FakePagerDuty`` stands in for the REST API behind an httpx.MockTransport:
team member listing with offset pagination, membership upsert and removal.
"""

from __future__ import annotations

import json
from typing import Dict, List, Optional

import httpx
import pytest

from pagerduty_common.client import PagerDutyClient
from pagerduty_common.config import ClientSettings
from pagerduty_team_membership.handlers import Resource

ACCESS_TOKEN = "test-token"


def _not_found(message: str) -> httpx.Response:
    return httpx.Response(404, json={"error": {"message": message, "code": 2100}})


class FakePagerDuty:

    def __init__(self, teams: Optional[Dict[str, Dict[str, str]]] = None) -> None:
        # team id -> {user id: role}, in insertion order
        self.teams: Dict[str, Dict[str, str]] = {k: dict(v) for k, v in (teams or {}).items()}
        self.requests: List[httpx.Request] = []

    def add_members(self, team_id: str, count: int, role: str = "responder") -> None:
        members = self.teams.setdefault(team_id, {})
        for i in range(count):
            members[f"U{i:04d}"] = role

    def calls(self, method: Optional[str] = None) -> List[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        if len(parts) < 3 or parts[0] != "teams":
            return _not_found("Not Found")
        team = self.teams.get(parts[1])
        if team is None:
            return _not_found("Team Not Found")

        if request.method == "GET" and parts[2] == "members" and len(parts) == 3:
            offset = int(request.url.params.get("offset", 0))
            limit = int(request.url.params.get("limit", 25))
            entries = list(team.items())
            page = entries[offset:offset + limit]
            return httpx.Response(200, json={
                "members": [
                    {"user": {"id": uid, "type": "user_reference", "summary": uid}, "role": role}
                    for uid, role in page
                ],
                "offset": offset,
                "limit": limit,
                "more": offset + limit < len(entries),
                "total": None,
            })

        if parts[2] == "users" and len(parts) == 4:
            user_id = parts[3]
            if request.method == "PUT":
                team[user_id] = json.loads(request.content)["role"]
                return httpx.Response(204)
            if request.method == "DELETE":
                if user_id not in team:
                    return _not_found("User Not Found")
                del team[user_id]
                return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def fake_api() -> FakePagerDuty:
    return FakePagerDuty()


def make_resource(handler) -> Resource:
    """Resource whose clients talk to ``handler`` instead of the network."""
    settings = ClientSettings(retries=0, base_url="https://api.pagerduty.test")

    def factory(model):
        return PagerDutyClient(
            model.pager_duty_access, settings=settings, transport=httpx.MockTransport(handler)
        )

    return Resource(client_factory=factory)


@pytest.fixture
def resource(fake_api) -> Resource:
    return make_resource(fake_api)


@pytest.fixture
def resource_factory():
    """Build a Resource around any httpx handler (for one-off responses)."""
    return make_resource
