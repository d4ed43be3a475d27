"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from seatsync.adapters.enrollment_csv import read_enrollment_rows
from seatsync.adapters.github import build_github_client
from seatsync.adapters.outputs import (
    append_job_summary,
    cleanup_outputs,
    deployment_outputs,
    render_cleanup_summary,
    render_deployment_summary,
    write_action_outputs,
    write_inactive_csv,
)
from seatsync.common.storage import get_output_dir
from seatsync.config.github import get_github_config
from seatsync.domain.context import RunContext, SeatAggregator
from seatsync.domain.enrollment import DeploymentAborted, EnrollmentReconciler
from seatsync.domain.ports import SeatServiceError
from seatsync.domain.reporting import build_cleanup_report, build_deployment_report
from seatsync.domain.revocation import RevocationPlanner

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from seatsync.config.github import GitHubConfig
    from seatsync.config.run import RunConfig
    from seatsync.domain.model import DeploymentDecision, EnrollmentRow
    from seatsync.domain.ports import OrganizationDirectory, SeatService
    from seatsync.domain.reporting import CleanupReport, DeploymentReport

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class RunOutcome:
    cleanup: CleanupReport | None = None
    deployment: DeploymentReport | None = None
    decisions: list[DeploymentDecision] = field(default_factory=list["DeploymentDecision"])
    errors: list[str] = field(default_factory=list["str"])

    @property
    def failed(self) -> bool:
        return bool(self.errors)


async def resolve_organizations(
    config: RunConfig,
    directory: OrganizationDirectory,
) -> list[str]:
    """Return the organizations to process; an enterprise overrides the explicit list."""

    if config.enterprise is not None:
        log.info("Listing organizations in enterprise %s", config.enterprise)
        return await directory.list_enterprise_organizations(config.enterprise)
    return list(config.organizations)


async def reconcile_seats(
    config: RunConfig,
    service: SeatService,
    *,
    rows: Sequence[EnrollmentRow] | None = None,
    include_cleanup: bool = True,
    clock: Callable[[], datetime] = _utcnow,
) -> RunOutcome:
    """Run the cleanup pass and, when ``rows`` are given, the enrollment pass."""

    outcome = RunOutcome()
    context = RunContext(inactive_days=config.inactive_days, clock=clock)
    aggregator = SeatAggregator(context, seats=service, members=service)
    planner = RevocationPlanner(
        service,
        remove_individual=config.remove,
        remove_from_team=config.remove_from_team,
    )

    if include_cleanup:
        organizations = await resolve_organizations(config, service)
        log.info(
            "Starting seat cleanup: organizations=%s, inactive_days=%s, remove=%s, "
            "remove_from_team=%s",
            len(organizations),
            config.inactive_days,
            config.remove,
            config.remove_from_team,
        )
        for organization in organizations:
            try:
                snapshot = await aggregator.get_snapshot(organization)
                await planner.execute(snapshot)
            except SeatServiceError as exc:
                log.exception("Failed to process organization %s", organization)
                context.record_failure(organization, exc)
                outcome.errors.append(f"{organization}: {exc}")

    if rows is not None:
        reconciler = EnrollmentReconciler(
            aggregator,
            service,
            validation_days=config.deploy_validation_days,
            dry_run=config.deploy_dry_run,
            clock=clock,
        )
        try:
            result = await reconciler.reconcile(rows)
        except DeploymentAborted as exc:
            log.exception("Seat deployment aborted")
            outcome.errors.append(str(exc))
            result = exc.result
        outcome.decisions = result.decisions
        outcome.deployment = build_deployment_report(
            rows,
            result.deployed,
            result.deployed_count,
            context,
            dry_run=config.deploy_dry_run,
        )
        for organization in context.failures:
            message = f"{organization}: {context.failures[organization]}"
            if message not in outcome.errors:
                outcome.errors.append(message)

    outcome.cleanup = build_cleanup_report(context, removed_seats=planner.removed_total)
    log.info(
        "Finished seat reconciliation: seats=%s, inactive=%s, removed=%s, deployed=%s",
        outcome.cleanup.seat_count,
        outcome.cleanup.inactive_count,
        outcome.cleanup.removed_seats,
        outcome.deployment.deployed_count if outcome.deployment else 0,
    )
    return outcome


def publish_outcome(
    outcome: RunOutcome,
    config: RunConfig,
    *,
    output_dir: Path | None = None,
) -> None:
    """Write action outputs, the job summary and the optional CSV export."""

    outputs: dict[str, str] = {}
    summary: list[str] = []
    if outcome.cleanup is not None:
        outputs.update(cleanup_outputs(outcome.cleanup))
        summary.append(render_cleanup_summary(outcome.cleanup))
        if config.csv:
            write_inactive_csv(outcome.cleanup.inactive_seats, output_dir or get_output_dir())
    if outcome.deployment is not None:
        outputs.update(deployment_outputs(outcome.deployment))
        summary.append(render_deployment_summary(outcome.deployment))

    write_action_outputs(outputs)
    if config.job_summary and summary:
        append_job_summary("\n".join(summary))


def run_seat_sync(
    config: RunConfig,
    *,
    service: SeatService | None = None,
    github: GitHubConfig | None = None,
    include_cleanup: bool = True,
    deploy: bool | None = None,
    output_dir: Path | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> RunOutcome:
    """Synchronise Copilot seats using the configured adapters.

    The enrollment CSV is read before any remote call so a missing file fails
    the run up front. ``deploy`` defaults to ``config.deploy_users``.
    """

    config.validate(require_organizations=include_cleanup)
    deploy_users = config.deploy_users if deploy is None else deploy
    rows = read_enrollment_rows(config.deploy_csv) if deploy_users else None
    if service is None and github is None:
        github = get_github_config()

    async def _run() -> RunOutcome:
        if service is not None:
            return await reconcile_seats(
                config,
                service,
                rows=rows,
                include_cleanup=include_cleanup,
                clock=clock,
            )
        async with build_github_client(github) as client:
            return await reconcile_seats(
                config,
                client,
                rows=rows,
                include_cleanup=include_cleanup,
                clock=clock,
            )

    outcome = asyncio.run(_run())
    publish_outcome(outcome, config, output_dir=output_dir)
    return outcome


__all__ = [
    "RunOutcome",
    "publish_outcome",
    "reconcile_seats",
    "resolve_organizations",
    "run_seat_sync",
]
