"""Pydantic models for PagerDuty team memberships.

``ResourceModel`` is the declarative membership (team, user, role). The page
models mirror ``GET /teams/{id}/members`` responses and only live for one
list traversal.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class MembershipRole(str, Enum):
    OBSERVER = "observer"
    RESPONDER = "responder"
    MANAGER = "manager"


# ── Resource model ───────────────────────────────────────────────

class ResourceModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    TYPE_NAME: ClassVar[str] = "PagerDuty::Teams::Membership"

    team_id: Optional[str] = Field(default=None, alias="teamId")
    user_id: Optional[str] = Field(default=None, alias="userId")
    role: Optional[str] = None
    pager_duty_access: Optional[str] = Field(default=None, alias="pagerDutyAccess", repr=False)

    @property
    def primary_identifier(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.team_id, self.user_id)

    def to_wire(self, include_access: bool = False) -> Dict[str, Any]:
        """camelCase dict of the populated fields; the access token is omitted by default."""
        exclude = None if include_access else {"pager_duty_access"}
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude)


# ── Members page ─────────────────────────────────────────────────

class UserReference(BaseModel):
    id: str
    type: Optional[str] = None
    summary: Optional[str] = None


class Member(BaseModel):
    user: UserReference
    role: str


class MembersPage(BaseModel):
    members: List[Member] = Field(default_factory=list)
    offset: int = 0
    limit: Optional[int] = None
    more: bool = False
    total: Optional[int] = None
