"""HTTP client for the GitHub Copilot seat, membership and enterprise APIs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from seatsync.adapters.http_resilience import ResilientClient
from seatsync.domain.model import FetchStatus
from seatsync.domain.ports import (
    DEFAULT_PAGE_SIZE,
    AssignmentResult,
    PageResult,
    PaginationLimitError,
    SeatServiceError,
)

from .schema import (
    EnterpriseOrganizationsResponse,
    ErrorResponse,
    MemberList,
    SeatsCancelledResponse,
    SeatsCreatedResponse,
    SeatsResponse,
    TeamMembershipPayload,
)
from .translator import parse_seat

M = TypeVar("M", bound=BaseModel)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from seatsync.config.github import GitHubConfig
    from seatsync.config.http_resilience import ResilienceConfig
    from seatsync.domain.model import Seat

log = getLogger(__name__)

NOT_ENABLED_MARKER = "is not enabled for this organization"
ENTERPRISE_PAGE_SIZE = 100
MAX_ENTERPRISE_PAGES = 100

ENTERPRISE_ORGANIZATIONS_QUERY = """
query($slug: String!, $first: Int!, $after: String) {
  enterprise(slug: $slug) {
    organizations(first: $first, after: $after) {
      nodes { login }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""


class GitHubAPIError(SeatServiceError):
    """Raised when the GitHub API answers with an error that is not a soft failure."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        documentation_url: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.documentation_url = documentation_url


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _parse_error(response: httpx.Response) -> ErrorResponse:
    try:
        return ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return ErrorResponse(message=response.text or response.reason_phrase)


def _segment(value: str) -> str:
    return quote(value, safe="")


class GitHubClient:
    """Async GitHub API client implementing the seat service ports.

    Use as an async context manager so the underlying HTTP client is closed.
    """

    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._http: ResilientClient | None = None

    async def __aenter__(self) -> GitHubClient:
        self._http = self._client_factory(self._config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def list_seats(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[Seat]:
        response = await self._request(
            "GET",
            f"/orgs/{_segment(organization)}/copilot/billing/seats",
            params={"per_page": per_page, "page": page},
        )
        status = self._classify(response)
        if status is not FetchStatus.OK:
            return PageResult.soft_failure(status)
        payload = self._validate(SeatsResponse, response)
        seats = [parse_seat(seat, organization=organization) for seat in payload.seats]
        log.debug("Seat page %s for %s: %s seats", page, organization, len(seats))
        return PageResult(items=seats, total=payload.total_seats)

    async def list_members(
        self,
        organization: str,
        page: int,
        *,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> PageResult[str]:
        response = await self._request(
            "GET",
            f"/orgs/{_segment(organization)}/members",
            params={"per_page": per_page, "page": page},
        )
        status = self._classify(response)
        if status is not FetchStatus.OK:
            return PageResult.soft_failure(status)
        try:
            members = MemberList.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise GitHubAPIError(
                f"Unexpected member listing payload for {organization}",
                status_code=response.status_code,
            ) from exc
        return PageResult(items=[member.login for member in members])

    async def assign_seats(self, organization: str, logins: list[str]) -> AssignmentResult:
        response = await self._request(
            "POST",
            f"/orgs/{_segment(organization)}/copilot/billing/selected_users",
            json={"selected_usernames": logins},
        )
        status = self._classify(response)
        if status is FetchStatus.UNSUPPORTED:
            return AssignmentResult(status=status)
        if status is not FetchStatus.OK:
            raise self._error(response)
        payload = self._validate(SeatsCreatedResponse, response)
        return AssignmentResult(status=FetchStatus.OK, seats_created=payload.seats_created)

    async def revoke_seats(self, organization: str, logins: list[str]) -> int:
        response = await self._request(
            "DELETE",
            f"/orgs/{_segment(organization)}/copilot/billing/selected_users",
            json={"selected_usernames": logins},
        )
        if not response.is_success:
            raise self._error(response)
        return self._validate(SeatsCancelledResponse, response).seats_cancelled

    async def get_team_role(self, organization: str, team_slug: str, login: str) -> str | None:
        response = await self._request(
            "GET",
            self._team_membership_path(organization, team_slug, login),
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if not response.is_success:
            raise self._error(response)
        return self._validate(TeamMembershipPayload, response).role

    async def revoke_team_membership(self, organization: str, team_slug: str, login: str) -> None:
        response = await self._request(
            "DELETE",
            self._team_membership_path(organization, team_slug, login),
        )
        if not response.is_success:
            raise self._error(response)

    async def list_enterprise_organizations(self, enterprise: str) -> list[str]:
        organizations: list[str] = []
        cursor: str | None = None
        for _ in range(MAX_ENTERPRISE_PAGES):
            response = await self._request(
                "POST",
                self._config.graphql_url,
                json={
                    "query": ENTERPRISE_ORGANIZATIONS_QUERY,
                    "variables": {
                        "slug": enterprise,
                        "first": ENTERPRISE_PAGE_SIZE,
                        "after": cursor,
                    },
                },
                absolute=True,
            )
            if not response.is_success:
                raise self._error(response)
            payload = self._validate(EnterpriseOrganizationsResponse, response)
            if payload.errors:
                messages = "; ".join(error.message for error in payload.errors)
                raise GitHubAPIError(f"GraphQL error for enterprise {enterprise}: {messages}")
            if payload.data is None or payload.data.enterprise is None:
                raise GitHubAPIError(f"Enterprise not found: {enterprise}")
            connection = payload.data.enterprise.organizations
            organizations.extend(node.login for node in connection.nodes)
            if not connection.page_info.has_next_page:
                log.info("Found %s organizations in %s", len(organizations), enterprise)
                return organizations
            cursor = connection.page_info.end_cursor
        raise PaginationLimitError(
            f"Listing organizations for {enterprise} exceeded {MAX_ENTERPRISE_PAGES} pages"
        )

    def _team_membership_path(self, organization: str, team_slug: str, login: str) -> str:
        return (
            f"/orgs/{_segment(organization)}/teams/{_segment(team_slug)}"
            f"/memberships/{_segment(login)}"
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
        json: object = None,
        absolute: bool = False,
    ) -> httpx.Response:
        if self._http is None:
            raise RuntimeError("GitHubClient must be used as an async context manager")
        url = path if absolute else f"{self._config.api_url}{path}"
        try:
            return await self._http.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"{method} {url} failed: {exc}") from exc

    def _classify(self, response: httpx.Response) -> FetchStatus:
        """Map a response to a soft status, raising for anything that is a hard error."""

        if response.is_success:
            return FetchStatus.OK
        error = _parse_error(response)
        if response.is_client_error and NOT_ENABLED_MARKER in error.message.lower():
            return FetchStatus.UNSUPPORTED
        if response.status_code == httpx.codes.NOT_FOUND:
            return FetchStatus.NOT_FOUND
        raise self._error(response, error)

    def _error(
        self,
        response: httpx.Response,
        error: ErrorResponse | None = None,
    ) -> GitHubAPIError:
        details = error or _parse_error(response)
        log.error(
            "GitHub API error %s for %s %s: %s",
            response.status_code,
            response.request.method,
            response.request.url.path,
            details.message,
        )
        return GitHubAPIError(
            details.message or f"HTTP {response.status_code}",
            status_code=response.status_code,
            documentation_url=details.documentation_url,
        )

    def _validate(self, model: type[M], response: httpx.Response) -> M:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GitHubAPIError(
                f"Unexpected {model.__name__} payload",
                status_code=response.status_code,
            ) from exc

