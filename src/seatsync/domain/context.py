"""Per-run organization cache and the aggregator that fills it.

``RunContext`` is the only owner of organization-scoped data during a run.
``SeatAggregator`` is the only component that writes fetched data into it;
everything downstream reads snapshots by reference. Merges are additive: a
membership fetch never discards seats, and vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from .classify import select_inactive
from .model import FetchStatus, OrgSnapshot
from .ports import DEFAULT_PAGE_SIZE, PaginationLimitError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .model import Seat
    from .ports import MemberSource, SeatSource

log = getLogger(__name__)

DEFAULT_MAX_PAGES = 1000


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class RunContext:
    """Explicit, single-owner store for one reconciliation run."""

    inactive_days: int
    clock: Callable[[], datetime] = _utcnow
    snapshots: dict[str, OrgSnapshot] = field(default_factory=dict["str", "OrgSnapshot"])
    failures: dict[str, str] = field(default_factory=dict["str", "str"])

    def snapshot_for(self, organization: str) -> OrgSnapshot:
        snapshot = self.snapshots.get(organization)
        if snapshot is None:
            snapshot = OrgSnapshot(organization=organization)
            self.snapshots[organization] = snapshot
        return snapshot

    def get(self, organization: str) -> OrgSnapshot | None:
        return self.snapshots.get(organization)

    def record_failure(self, organization: str, error: BaseException) -> None:
        self.failures[organization] = str(error) or type(error).__name__

    def has_failed(self, organization: str) -> bool:
        return organization in self.failures

    def iter_snapshots(self) -> Iterator[OrgSnapshot]:
        """Yield snapshots in the order organizations were first touched."""

        yield from self.snapshots.values()


class SeatAggregator:
    """Fetch, classify and cache seat and membership data per organization."""

    def __init__(
        self,
        context: RunContext,
        *,
        seats: SeatSource,
        members: MemberSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self.context = context
        self._seats = seats
        self._members = members
        self._page_size = page_size
        self._max_pages = max_pages

    async def get_snapshot(
        self,
        organization: str,
        *,
        include_members: bool = False,
    ) -> OrgSnapshot:
        """Return the cached snapshot, fetching whatever part is still missing."""

        snapshot = self.context.snapshot_for(organization)
        if not snapshot.seats_loaded:
            await self.fetch_seats(organization)
        if include_members and not snapshot.members_loaded:
            await self.fetch_members(organization)
        return snapshot

    async def fetch_seats(self, organization: str) -> OrgSnapshot:
        snapshot = self.context.snapshot_for(organization)
        log.info("Fetching Copilot seats for %s", organization)

        collected: list[Seat] = []
        total = 0
        page = 1
        status = FetchStatus.OK
        while True:
            self._check_page_bound(organization, page, what="seats")
            result = await self._seats.list_seats(organization, page, per_page=self._page_size)
            if result.status is not FetchStatus.OK:
                status = result.status
                collected = []
                total = 0
                _log_soft_failure(organization, status, what="seats")
                break
            total = result.total if result.total is not None else total
            if not result.items:
                if len(collected) < total:
                    log.warning(
                        "Seat listing for %s ended early: got %s of %s reported seats",
                        organization,
                        len(collected),
                        total,
                    )
                break
            collected.extend(result.items)
            if len(collected) >= total:
                break
            page += 1

        snapshot.seat_status = status
        snapshot.seats = collected
        snapshot.total_seats = total if status is FetchStatus.OK else 0
        snapshot.inactive = select_inactive(
            collected,
            self.context.inactive_days,
            self.context.clock(),
        )
        log.info(
            "Found %s seats in %s (%s inactive for more than %s days)",
            len(collected),
            organization,
            len(snapshot.inactive),
            self.context.inactive_days,
        )
        return snapshot

    async def fetch_members(self, organization: str) -> OrgSnapshot:
        snapshot = self.context.snapshot_for(organization)
        log.info("Fetching members of %s", organization)

        logins: list[str] = []
        page = 1
        status = FetchStatus.OK
        while True:
            self._check_page_bound(organization, page, what="members")
            result = await self._members.list_members(organization, page, per_page=self._page_size)
            if result.status is not FetchStatus.OK:
                status = result.status
                logins = []
                _log_soft_failure(organization, status, what="members")
                break
            if not result.items:
                break
            logins.extend(result.items)
            page += 1

        snapshot.member_status = status
        snapshot.members = frozenset(logins)
        log.info("Found %s members in %s", len(snapshot.members), organization)
        return snapshot

    def _check_page_bound(self, organization: str, page: int, *, what: str) -> None:
        if page > self._max_pages:
            raise PaginationLimitError(
                f"Listing {what} for {organization} exceeded {self._max_pages} pages"
            )


def _log_soft_failure(organization: str, status: FetchStatus, *, what: str) -> None:
    if status is FetchStatus.UNSUPPORTED:
        log.error("Copilot is not enabled for %s; treating %s as empty", organization, what)
    else:
        log.error(
            "Could not list %s for %s (not found). Ensure Copilot is enabled and the token "
            "belongs to an organization owner.",
            what,
            organization,
        )


__all__ = ["DEFAULT_MAX_PAGES", "RunContext", "SeatAggregator"]
