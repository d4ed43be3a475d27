"""Domain types for seat reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from collections.abc import Mapping

ENROLLMENT_COLUMNS = ("organization", "deployment_group", "login", "activation_date")

_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d")


class EnrollmentValidationError(ValueError):
    """Raised when an enrollment row cannot become an ``EnrollmentRecord``."""


class SeatActivity(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FetchStatus(StrEnum):
    """Typed outcome of a remote read or write that may soft-fail."""

    OK = "ok"
    UNSUPPORTED = "unsupported"
    NOT_FOUND = "not_found"


class DeploymentOutcome(StrEnum):
    SKIPPED_INVALID = "skipped-invalid"
    SKIPPED_OUT_OF_WINDOW = "skipped-out-of-window"
    SKIPPED_NOT_MEMBER = "skipped-not-member"
    SKIPPED_ALREADY_SEATED = "skipped-already-seated"
    SKIPPED_NOT_ENABLED = "skipped-not-enabled"
    ASSIGNED = "assigned"
    ASSIGNED_DRY_RUN = "assigned-dry-run"

    @property
    def deployed(self) -> bool:
        return self in {DeploymentOutcome.ASSIGNED, DeploymentOutcome.ASSIGNED_DRY_RUN}


@dataclass(frozen=True, slots=True)
class TeamRef:
    """Team through which a seat was granted."""

    slug: str
    name: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Seat:
    """One Copilot seat for one assignee within one organization."""

    organization: str
    login: str
    created_at: datetime
    last_activity_at: datetime | None = None
    last_activity_editor: str | None = None
    pending_cancellation_date: date | None = None
    assigning_team: TeamRef | None = None

    def __post_init__(self) -> None:
        if not self.organization:
            raise ValueError("Seat organization must not be empty")

    @property
    def is_pending_cancellation(self) -> bool:
        return self.pending_cancellation_date is not None


@dataclass(slots=True)
class OrgSnapshot:
    """Everything known about one organization during a single run."""

    organization: str
    total_seats: int = 0
    seats: list[Seat] = field(default_factory=list["Seat"])
    inactive: list[Seat] | None = None
    members: frozenset[str] | None = None
    seat_status: FetchStatus | None = None
    member_status: FetchStatus | None = None
    provisioned: list[Seat] = field(default_factory=list["Seat"])
    revoked: set[str] = field(default_factory=set[str])

    @property
    def seats_loaded(self) -> bool:
        return self.seat_status is not None

    @property
    def members_loaded(self) -> bool:
        return self.members is not None

    def is_member(self, login: str) -> bool:
        return self.members is not None and login in self.members

    def held_seat(self, login: str) -> Seat | None:
        """Return the fetched, non-pending seat for ``login`` if one existed at fetch time."""

        for seat in self.seats:
            if seat.login == login and not seat.is_pending_cancellation:
                return seat
        return None

    def holds_seat(self, login: str) -> bool:
        """Whether ``login`` is seated now, after this run's provisions and revocations."""

        if self.held_seat(login) is not None and login not in self.revoked:
            return True
        return any(seat.login == login for seat in self.provisioned)

    def is_inactive(self, login: str) -> bool:
        return any(seat.login == login for seat in self.inactive or ())


@dataclass(frozen=True, slots=True)
class EnrollmentRow:
    """Raw desired-state row as read from the enrollment CSV."""

    organization: str = ""
    deployment_group: str = ""
    login: str = ""
    activation_date: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, str | None]) -> Self:
        values = {column: (row.get(column) or "").strip() for column in ENROLLMENT_COLUMNS}
        return cls(**values)

    def as_dict(self) -> dict[str, str]:
        return {column: getattr(self, column) for column in ENROLLMENT_COLUMNS}


def parse_activation_date(value: str) -> date:
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()  # noqa: DTZ007
        except ValueError:
            continue
    raise EnrollmentValidationError(f"invalid date {value!r}")


@dataclass(frozen=True, slots=True)
class EnrollmentRecord:
    """Validated desired-state entry."""

    organization: str
    deployment_group: str
    login: str
    activation_date: date

    @classmethod
    def parse(cls, row: EnrollmentRow) -> Self:
        empty = [column for column, value in row.as_dict().items() if not value]
        if empty:
            raise EnrollmentValidationError(f"empty values: {', '.join(empty)}")
        return cls(
            organization=row.organization,
            deployment_group=row.deployment_group,
            login=row.login,
            activation_date=parse_activation_date(row.activation_date),
        )

    def as_dict(self) -> dict[str, str]:
        return {
            "organization": self.organization,
            "deployment_group": self.deployment_group,
            "login": self.login,
            "activation_date": self.activation_date.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class DeploymentDecision:
    row: EnrollmentRow
    outcome: DeploymentOutcome
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class GroupTally:
    group: str
    total: int = 0
    deployed: int = 0
    inactive: int = 0


@dataclass(frozen=True, slots=True)
class OrgSummary:
    organization: str
    total_seats: int
    inactive_seats: int
    status: FetchStatus | None
