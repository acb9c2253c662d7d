"""Lifecycle handlers for PagerDuty::Teams::Membership.

The REST API exposes memberships only as a team's member list, an upsert
(``PUT /teams/{team}/users/{user}``) and a removal. Reads are therefore a
full member listing filtered by user id, and a miss is reported as the same
``NotFoundError`` (status 404) the client raises for a remote 404. Each read
costs one request per page of team members.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

from pagerduty_common.client import PagerDutyClient
from pagerduty_common.config import ClientSettings
from pagerduty_common.errors import InvalidRequestError, error_for_status
from pagerduty_common.resource import AbstractPagerDutyResource, NotUpdatable
from pagerduty_common.utils import find_in_collection
from pagerduty_team_membership.models import MembersPage, ResourceModel

logger = logging.getLogger(__name__)

MEMBERS_PAGE_LIMIT = 100

ClientFactory = Callable[[ResourceModel], PagerDutyClient]


def _segment(value: str) -> str:
    return quote(value, safe="")


def _require(model: ResourceModel, *names: str) -> None:
    missing = [
        ResourceModel.model_fields[name].alias or name
        for name in names
        if not getattr(model, name)
    ]
    if missing:
        raise InvalidRequestError(400, f"Missing required properties: {', '.join(missing)}")


class Resource(AbstractPagerDutyResource[ResourceModel]):
    """Team membership handlers.

    ``client_factory`` builds the HTTP client for one operation from the
    model's access handle; tests pass one wired to ``httpx.MockTransport``.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        super().__init__(ResourceModel.TYPE_NAME, ResourceModel)
        self._settings = settings
        self._client_factory = client_factory or self._default_client

    def _default_client(self, model: ResourceModel) -> PagerDutyClient:
        return PagerDutyClient(model.pager_duty_access, settings=self._settings)

    @staticmethod
    def _membership_path(model: ResourceModel) -> str:
        return f"/teams/{_segment(model.team_id)}/users/{_segment(model.user_id)}"

    async def get(self, model: ResourceModel) -> ResourceModel:
        _require(model, "team_id", "user_id")
        found = find_in_collection(
            lambda candidate: candidate.primary_identifier == model.primary_identifier,
            await self.list(model),
        )
        if found is not None:
            return found
        # No single-membership endpoint exists: report a miss as a remote 404 would be.
        raise error_for_status(
            404,
            f"User {model.user_id} is not a member of team {model.team_id}",
        )

    async def list(self, model: ResourceModel) -> List[ResourceModel]:
        _require(model, "team_id")
        team_id = model.team_id

        def to_models(body: Dict[str, Any]) -> List[ResourceModel]:
            page = MembersPage.model_validate(body)
            return [
                ResourceModel(team_id=team_id, user_id=member.user.id, role=member.role)
                for member in page.members
            ]

        async with self._client_factory(model) as client:
            members = await client.paginate(
                "GET",
                f"/teams/{_segment(team_id)}/members",
                to_models,
                params={"limit": MEMBERS_PAGE_LIMIT},
            )
        logger.debug("Team %s has %d members", team_id, len(members))
        return members

    async def create(self, model: ResourceModel) -> None:
        _require(model, "team_id", "user_id", "role")
        async with self._client_factory(model) as client:
            await client.do_request("PUT", self._membership_path(model), body={"role": model.role})
        logger.info("Set role %s for user %s on team %s", model.role, model.user_id, model.team_id)

    async def update(self, model: ResourceModel) -> None:
        raise NotUpdatable(self.type_name)

    async def delete(self, model: ResourceModel) -> None:
        _require(model, "team_id", "user_id")
        async with self._client_factory(model) as client:
            await client.do_request("DELETE", self._membership_path(model))
        logger.info("Removed user %s from team %s", model.user_id, model.team_id)

    def new_model(self, partial: Any = None) -> ResourceModel:
        if partial is None:
            return ResourceModel()
        if isinstance(partial, ResourceModel):
            return partial
        return ResourceModel.model_validate(dict(partial))

    def set_model_from(self, model: ResourceModel, from_: Optional[ResourceModel] = None) -> ResourceModel:
        if from_ is None:
            return model.model_copy()
        return model.model_copy(update=from_.model_dump(exclude_unset=True, exclude_none=True))
