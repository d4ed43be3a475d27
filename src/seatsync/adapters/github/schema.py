"""Pydantic models describing the GitHub API payloads."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class GitHubBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AssigneePayload(GitHubBaseModel):
    login: str | None = None
    id: int | None = None
    type: str | None = None


class TeamPayload(GitHubBaseModel):
    slug: str
    name: str | None = None
    id: int | None = None


class SeatPayload(GitHubBaseModel):
    created_at: datetime
    updated_at: datetime | None = None
    pending_cancellation_date: date | None = None
    last_activity_at: datetime | None = None
    last_activity_editor: str | None = None
    plan_type: str | None = None
    assignee: AssigneePayload
    assigning_team: TeamPayload | None = None

    _normalize_editor = field_validator("last_activity_editor", mode="before")(_blank_to_none)
    _normalize_pending = field_validator("pending_cancellation_date", mode="before")(
        _blank_to_none
    )


class SeatsResponse(GitHubBaseModel):
    total_seats: int
    seats: list[SeatPayload] = Field(default_factory=list)


class MemberPayload(GitHubBaseModel):
    login: str
    id: int | None = None


class SeatsCreatedResponse(GitHubBaseModel):
    seats_created: int


class SeatsCancelledResponse(GitHubBaseModel):
    seats_cancelled: int


class TeamMembershipPayload(GitHubBaseModel):
    role: str
    state: str | None = None


class ErrorResponse(GitHubBaseModel):
    message: str = ""
    documentation_url: str | None = None
    status: str | None = None


class PageInfo(GitHubBaseModel):
    has_next_page: bool = Field(alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class OrganizationNode(GitHubBaseModel):
    login: str


class OrganizationConnection(GitHubBaseModel):
    nodes: list[OrganizationNode] = Field(default_factory=list)
    page_info: PageInfo = Field(alias="pageInfo")


class EnterprisePayload(GitHubBaseModel):
    organizations: OrganizationConnection


class EnterpriseData(GitHubBaseModel):
    enterprise: EnterprisePayload | None = None


class GraphQLError(GitHubBaseModel):
    message: str
    type: str | None = None


class EnterpriseOrganizationsResponse(GitHubBaseModel):
    data: EnterpriseData | None = None
    errors: list[GraphQLError] = Field(default_factory=list)


MemberList = TypeAdapter(list[MemberPayload])
