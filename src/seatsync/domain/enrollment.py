"""Reconcile the enrollment list against current seats and membership."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from .model import (
    DeploymentDecision,
    DeploymentOutcome,
    EnrollmentRecord,
    EnrollmentValidationError,
    FetchStatus,
    Seat,
)
from .ports import SeatServiceError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .context import SeatAggregator
    from .model import EnrollmentRow, OrgSnapshot
    from .ports import SeatAssigner

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class DeploymentResult:
    decisions: list[DeploymentDecision] = field(default_factory=list["DeploymentDecision"])
    deployed: list[EnrollmentRecord] = field(default_factory=list["EnrollmentRecord"])
    deployed_count: int = 0

    def outcomes(self) -> list[DeploymentOutcome]:
        return [decision.outcome for decision in self.decisions]


class DeploymentAborted(RuntimeError):
    """A hard failure stopped the enrollment loop; ``result`` holds what was done."""

    def __init__(self, message: str, *, result: DeploymentResult) -> None:
        super().__init__(message)
        self.result = result


def in_window(activation: date, *, today: date, validation_days: int) -> bool:
    return today - timedelta(days=validation_days) <= activation <= today


class EnrollmentReconciler:
    """Decide, row by row, whether an enrollment needs a seat, and assign it."""

    def __init__(
        self,
        aggregator: SeatAggregator,
        assigner: SeatAssigner,
        *,
        validation_days: int,
        dry_run: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._aggregator = aggregator
        self._assigner = assigner
        self.validation_days = validation_days
        self.dry_run = dry_run
        self._clock = clock

    async def reconcile(self, rows: Iterable[EnrollmentRow]) -> DeploymentResult:
        """Return one decision per row, in input order."""

        result = DeploymentResult()
        today = self._clock().date()
        slots: list[DeploymentDecision | None] = []
        accepted: list[tuple[int, EnrollmentRow, EnrollmentRecord]] = []

        for row in rows:
            checked = self._validate(row, today=today)
            if isinstance(checked, DeploymentDecision):
                slots.append(checked)
                continue
            accepted.append((len(slots), row, checked))
            slots.append(None)
        log.info("Found %s users to deploy", len(accepted))

        try:
            for index, row, record in accepted:
                try:
                    slots[index] = await self._decide(row, record, result)
                except SeatServiceError as exc:
                    raise DeploymentAborted(
                        f"Assigning {record.login} in {record.organization} failed: {exc}",
                        result=result,
                    ) from exc
        finally:
            result.decisions = [decision for decision in slots if decision is not None]

        return result

    def _validate(
        self,
        row: EnrollmentRow,
        *,
        today: date,
    ) -> EnrollmentRecord | DeploymentDecision:
        try:
            record = EnrollmentRecord.parse(row)
        except EnrollmentValidationError as exc:
            log.error("Skipping record with %s: %s", exc, row.as_dict())
            return DeploymentDecision(row, DeploymentOutcome.SKIPPED_INVALID, str(exc))

        if not in_window(record.activation_date, today=today, validation_days=self.validation_days):
            log.info(
                "Skipping record due to activation date outside %s day window: %s",
                self.validation_days,
                row.as_dict(),
            )
            return DeploymentDecision(
                row,
                DeploymentOutcome.SKIPPED_OUT_OF_WINDOW,
                f"activation date outside {self.validation_days} day window",
            )
        return record

    async def _decide(
        self,
        row: EnrollmentRow,
        record: EnrollmentRecord,
        result: DeploymentResult,
    ) -> DeploymentDecision:
        organization = record.organization
        log.debug("Processing user for deployment: %s", record.as_dict())

        snapshot = await self._snapshot(organization)
        if snapshot is None:
            return DeploymentDecision(
                row,
                DeploymentOutcome.SKIPPED_INVALID,
                f"organization data unavailable: {self._aggregator.context.failures[organization]}",
            )

        if not snapshot.is_member(record.login):
            log.warning("User %s is not a member of %s", record.login, organization)
            return DeploymentDecision(row, DeploymentOutcome.SKIPPED_NOT_MEMBER)

        if snapshot.holds_seat(record.login):
            log.info("User %s already has a Copilot seat in %s", record.login, organization)
            return DeploymentDecision(row, DeploymentOutcome.SKIPPED_ALREADY_SEATED)

        if self.dry_run:
            log.info("DRY RUN: Would assign %s a Copilot seat in %s", record.login, organization)
            self._record_deployment(snapshot, record, result, seats_created=1)
            return DeploymentDecision(row, DeploymentOutcome.ASSIGNED_DRY_RUN)

        log.info("Assigning %s a Copilot seat in %s", record.login, organization)
        assignment = await self._assigner.assign_seats(organization, [record.login])
        if assignment.status is FetchStatus.UNSUPPORTED:
            log.error(
                "Copilot is not enabled for %s; could not assign %s",
                organization,
                record.login,
            )
            return DeploymentDecision(
                row,
                DeploymentOutcome.SKIPPED_NOT_ENABLED,
                f"assignment refused ({assignment.status})",
            )
        if assignment.status is not FetchStatus.OK:
            raise SeatServiceError(
                f"Seat assignment for {record.login} in {organization} returned {assignment.status}"
            )
        log.info("Added %s seats", assignment.seats_created)
        self._record_deployment(snapshot, record, result, seats_created=assignment.seats_created)
        return DeploymentDecision(row, DeploymentOutcome.ASSIGNED)

    async def _snapshot(self, organization: str) -> OrgSnapshot | None:
        context = self._aggregator.context
        if context.has_failed(organization):
            return None
        try:
            return await self._aggregator.get_snapshot(organization, include_members=True)
        except SeatServiceError as exc:
            log.exception("Failed to fetch data for organization %s", organization)
            context.record_failure(organization, exc)
            return None

    def _record_deployment(
        self,
        snapshot: OrgSnapshot,
        record: EnrollmentRecord,
        result: DeploymentResult,
        *,
        seats_created: int,
    ) -> None:
        result.deployed.append(record)
        result.deployed_count += seats_created
        snapshot.provisioned.append(
            Seat(
                organization=record.organization,
                login=record.login,
                created_at=self._clock(),
            )
        )


__all__ = [
    "DeploymentAborted",
    "DeploymentResult",
    "EnrollmentReconciler",
    "in_window",
]
