"""Fold run results into sorted, immutable report structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import GroupTally, OrgSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .context import RunContext
    from .model import EnrollmentRecord, EnrollmentRow, Seat


@dataclass(frozen=True, slots=True)
class CleanupReport:
    organizations: tuple[OrgSummary, ...]
    inactive_seats: tuple[Seat, ...]
    seat_count: int
    removed_seats: int
    inactive_days: int
    failed_organizations: tuple[str, ...] = ()

    @property
    def inactive_count(self) -> int:
        return len(self.inactive_seats)


@dataclass(frozen=True, slots=True)
class DeploymentReport:
    deployed: tuple[EnrollmentRecord, ...]
    deployed_count: int
    groups: tuple[GroupTally, ...]
    dry_run: bool


def tally_groups(
    rows: Iterable[EnrollmentRow],
    deployed: Sequence[EnrollmentRecord],
    context: RunContext,
) -> list[GroupTally]:
    """Count enrollment rows per deployment group.

    ``deployed`` is bumped once for a seat that existed before the run and once
    more when the login was deployed during the run, so a row that matches both
    contributes two. Existing reports depend on that arithmetic.
    """

    deployed_logins = {record.login for record in deployed}
    counts: dict[str, list[int]] = {}
    for row in rows:
        total, seated, inactive = counts.setdefault(row.deployment_group, [0, 0, 0])
        total += 1
        snapshot = context.get(row.organization)
        if snapshot is not None and snapshot.held_seat(row.login) is not None:
            seated += 1
        if row.login in deployed_logins:
            seated += 1
        if snapshot is not None and snapshot.is_inactive(row.login):
            inactive += 1
        counts[row.deployment_group] = [total, seated, inactive]

    return [
        GroupTally(group=group, total=total, deployed=seated, inactive=inactive)
        for group, (total, seated, inactive) in sorted(counts.items())
    ]


def summarize_organizations(context: RunContext) -> list[OrgSummary]:
    return sorted(
        (
            OrgSummary(
                organization=snapshot.organization,
                total_seats=len(snapshot.seats),
                inactive_seats=len(snapshot.inactive or ()),
                status=snapshot.seat_status,
            )
            for snapshot in context.iter_snapshots()
            if snapshot.seats_loaded
        ),
        key=lambda summary: summary.organization,
    )


def collect_inactive(context: RunContext) -> list[Seat]:
    """All inactive seats, by organization order, each already sorted oldest first."""

    return [seat for snapshot in context.iter_snapshots() for seat in snapshot.inactive or ()]


def sort_deployed(records: Iterable[EnrollmentRecord]) -> list[EnrollmentRecord]:
    return sorted(records, key=lambda record: record.login or "Unknown")


def build_cleanup_report(context: RunContext, *, removed_seats: int) -> CleanupReport:
    return CleanupReport(
        organizations=tuple(summarize_organizations(context)),
        inactive_seats=tuple(collect_inactive(context)),
        seat_count=sum(len(snapshot.seats) for snapshot in context.iter_snapshots()),
        removed_seats=removed_seats,
        inactive_days=context.inactive_days,
        failed_organizations=tuple(sorted(context.failures)),
    )


def build_deployment_report(
    rows: Sequence[EnrollmentRow],
    deployed: Sequence[EnrollmentRecord],
    deployed_count: int,
    context: RunContext,
    *,
    dry_run: bool,
) -> DeploymentReport:
    return DeploymentReport(
        deployed=tuple(sort_deployed(deployed)),
        deployed_count=deployed_count,
        groups=tuple(tally_groups(rows, deployed, context)),
        dry_run=dry_run,
    )


__all__ = [
    "CleanupReport",
    "DeploymentReport",
    "build_cleanup_report",
    "build_deployment_report",
    "collect_inactive",
    "sort_deployed",
    "summarize_organizations",
    "tally_groups",
]
