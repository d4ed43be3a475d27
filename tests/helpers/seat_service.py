"""Reusable fakes and builders for seat reconciliation tests."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from seatsync.domain.model import EnrollmentRow, FetchStatus, Seat, TeamRef
from seatsync.domain.ports import (
    DEFAULT_PAGE_SIZE,
    AssignmentResult,
    PageResult,
    SeatService,
    SeatServiceError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
ORG = "octo-org"


def clock() -> datetime:
    return NOW


def make_seat(
    login: str,
    *,
    organization: str = ORG,
    idle_days: float | None = 1,
    created_days_ago: float = 400,
    team: str | None = None,
    pending_cancellation: date | None = None,
    editor: str | None = "vscode/1.90.0",
) -> Seat:
    """Build a seat whose last activity was ``idle_days`` before ``NOW``."""

    return Seat(
        organization=organization,
        login=login,
        created_at=NOW - timedelta(days=created_days_ago),
        last_activity_at=NOW - timedelta(days=idle_days) if idle_days is not None else None,
        last_activity_editor=editor if idle_days is not None else None,
        pending_cancellation_date=pending_cancellation,
        assigning_team=TeamRef(slug=team, name=team.title()) if team else None,
    )


def make_row(
    login: str,
    *,
    organization: str = ORG,
    group: str = "pilot",
    activation: str = "2024-06-01",
) -> EnrollmentRow:
    return EnrollmentRow(
        organization=organization,
        deployment_group=group,
        login=login,
        activation_date=activation,
    )


class FakeSeatService(SeatService):
    """In-memory implementation of every seat service port, recording each call."""

    def __init__(
        self,
        *,
        seats: dict[str, Iterable[Seat]] | None = None,
        members: dict[str, Iterable[str]] | None = None,
        team_roles: dict[tuple[str, str, str], str] | None = None,
        enterprises: dict[str, list[str]] | None = None,
    ) -> None:
        self.seats = {org: list(items) for org, items in (seats or {}).items()}
        self.members = {org: list(items) for org, items in (members or {}).items()}
        self.team_roles = dict(team_roles or {})
        self.enterprises = dict(enterprises or {})
        self.reported_totals: dict[str, int] = {}
        self.seat_status: dict[str, FetchStatus] = {}
        self.member_status: dict[str, FetchStatus] = {}
        self.assign_status: dict[str, FetchStatus] = {}
        self.seat_errors: dict[str, SeatServiceError] = {}
        self.assign_errors: dict[str, SeatServiceError] = {}
        self.calls: list[tuple[object, ...]] = []
        self.assigned: list[tuple[str, list[str]]] = []
        self.revoked: list[tuple[str, list[str]]] = []
        self.team_removed: list[tuple[str, str, str]] = []

    def count(self, operation: str, organization: str | None = None) -> int:
        return sum(
            1
            for call in self.calls
            if call[0] == operation and (organization is None or call[1] == organization)
        )

    async def list_seats(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[Seat]:
        self.calls.append(("list_seats", organization, page, per_page))
        if organization in self.seat_errors:
            raise self.seat_errors[organization]
        status = self.seat_status.get(organization, FetchStatus.OK)
        if status is not FetchStatus.OK:
            return PageResult.soft_failure(status)
        seats = self.seats.get(organization, [])
        start = (page - 1) * per_page
        return PageResult(
            items=seats[start : start + per_page],
            total=self.reported_totals.get(organization, len(seats)),
        )

    async def list_members(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[str]:
        self.calls.append(("list_members", organization, page, per_page))
        status = self.member_status.get(organization, FetchStatus.OK)
        if status is not FetchStatus.OK:
            return PageResult.soft_failure(status)
        members = self.members.get(organization, [])
        start = (page - 1) * per_page
        return PageResult(items=members[start : start + per_page])

    async def assign_seats(self, organization: str, logins: list[str]) -> AssignmentResult:
        self.calls.append(("assign_seats", organization, tuple(logins)))
        for login in logins:
            if login in self.assign_errors:
                raise self.assign_errors[login]
        status = self.assign_status.get(organization, FetchStatus.OK)
        if status is not FetchStatus.OK:
            return AssignmentResult(status=status)
        self.assigned.append((organization, list(logins)))
        return AssignmentResult(status=FetchStatus.OK, seats_created=len(logins))

    async def revoke_seats(self, organization: str, logins: list[str]) -> int:
        self.calls.append(("revoke_seats", organization, tuple(logins)))
        self.revoked.append((organization, list(logins)))
        return len(logins)

    async def get_team_role(self, organization: str, team_slug: str, login: str) -> str | None:
        self.calls.append(("get_team_role", organization, team_slug, login))
        return self.team_roles.get((organization, team_slug, login))

    async def revoke_team_membership(self, organization: str, team_slug: str, login: str) -> None:
        self.calls.append(("revoke_team_membership", organization, team_slug, login))
        self.team_removed.append((organization, team_slug, login))

    async def list_enterprise_organizations(self, enterprise: str) -> list[str]:
        self.calls.append(("list_enterprise_organizations", enterprise))
        if enterprise not in self.enterprises:
            raise SeatServiceError(f"Enterprise not found: {enterprise}", status_code=404)
        return list(self.enterprises[enterprise])
