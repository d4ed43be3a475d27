"""Ports for reading and mutating remote seat state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, runtime_checkable

from seatsync.domain.model import FetchStatus

if TYPE_CHECKING:
    from seatsync.domain.model import Seat

DEFAULT_PAGE_SIZE = 100
MAINTAINER_ROLE = "maintainer"

T = TypeVar("T")


class SeatServiceError(RuntimeError):
    """Hard failure talking to the seat service; aborts the current scope."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaginationLimitError(SeatServiceError):
    """Raised when a paginated listing does not terminate within the page bound."""


@dataclass(slots=True)
class PageResult(Generic[T]):
    """One page of a listing, or the soft-failure status that replaced it.

    ``total`` is only reported by listings that announce their size up front.
    """

    items: list[T] = field(default_factory=list)
    total: int | None = None
    status: FetchStatus = FetchStatus.OK

    @classmethod
    def soft_failure(cls, status: FetchStatus) -> PageResult[T]:
        return cls(items=[], total=0, status=status)


@dataclass(frozen=True, slots=True)
class AssignmentResult:
    status: FetchStatus
    seats_created: int = 0


@runtime_checkable
class SeatSource(Protocol):
    async def list_seats(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[Seat]: ...


@runtime_checkable
class MemberSource(Protocol):
    async def list_members(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[str]: ...


@runtime_checkable
class SeatAssigner(Protocol):
    async def assign_seats(self, organization: str, logins: list[str]) -> AssignmentResult: ...


@runtime_checkable
class SeatRevoker(Protocol):
    async def revoke_seats(self, organization: str, logins: list[str]) -> int: ...

    async def get_team_role(self, organization: str, team_slug: str, login: str) -> str | None: ...

    async def revoke_team_membership(
        self,
        organization: str,
        team_slug: str,
        login: str,
    ) -> None: ...


@runtime_checkable
class OrganizationDirectory(Protocol):
    async def list_enterprise_organizations(self, enterprise: str) -> list[str]: ...


class SeatService(
    SeatSource,
    MemberSource,
    SeatAssigner,
    SeatRevoker,
    OrganizationDirectory,
    Protocol,
):
    """Everything a reconciliation run needs from the remote service."""


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAINTAINER_ROLE",
    "AssignmentResult",
    "MemberSource",
    "OrganizationDirectory",
    "PageResult",
    "PaginationLimitError",
    "SeatAssigner",
    "SeatRevoker",
    "SeatService",
    "SeatServiceError",
    "SeatSource",
]
