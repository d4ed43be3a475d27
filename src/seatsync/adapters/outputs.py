"""Publish run results: action outputs, the markdown job summary and CSV export."""

from __future__ import annotations

import csv
import json
import os
import uuid
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from seatsync.adapters.github.translator import UNKNOWN_LOGIN, seat_to_payload

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from seatsync.domain.model import Seat
    from seatsync.domain.reporting import CleanupReport, DeploymentReport

log = getLogger(__name__)

INACTIVE_CSV_FILENAME = "inactive-seats.csv"
INACTIVE_CSV_COLUMNS = (
    "organization",
    "login",
    "created_at",
    "last_activity_at",
    "last_activity_editor",
    "pending_cancellation_date",
    "assigning_team",
)
SEAT_MANAGEMENT_URL = (
    "https://github.com/organizations/{organization}/settings/copilot/seat_management"
)


def cleanup_outputs(report: CleanupReport) -> dict[str, str]:
    return {
        "inactive-seats": json.dumps([seat_to_payload(seat) for seat in report.inactive_seats]),
        "inactive-seat-count": str(report.inactive_count),
        "seat-count": str(report.seat_count),
        "removed-seats": str(report.removed_seats),
    }


def deployment_outputs(report: DeploymentReport) -> dict[str, str]:
    return {
        "deployed-seats": json.dumps([record.as_dict() for record in report.deployed]),
        "deployed-seat-count": str(report.deployed_count),
    }


def write_action_outputs(outputs: Mapping[str, str], path: Path | str | None = None) -> bool:
    """Append ``outputs`` to the ``$GITHUB_OUTPUT`` file.

    Values are written with the multiline delimiter syntax so JSON payloads
    never break the file format. Returns ``False`` when no output file is set.
    """

    for name, value in outputs.items():
        log.info("Output %s=%s", name, value if len(value) <= 200 else f"{value[:200]}...")

    target = path or os.getenv("GITHUB_OUTPUT")
    if not target:
        return False
    with Path(target).open("a", encoding="utf-8") as handle:
        for name, value in outputs.items():
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


def _table(header: Sequence[str], rows: Iterable[Sequence[object]]) -> list[str]:
    lines = [
        "| " + " | ".join(_cell(column) for column in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    lines.extend("| " + " | ".join(_cell(value) for value in row) + " |" for row in rows)
    return lines


def _last_active(seat: Seat) -> str:
    return seat.last_activity_at.isoformat() if seat.last_activity_at else "Never"


def render_cleanup_summary(report: CleanupReport) -> str:
    lines = [
        "## Inactive Seats",
        "",
        f"Inactive Seats: {report.inactive_count} / {report.seat_count} "
        f"(no activity for more than {report.inactive_days} days)",
        "",
    ]
    if report.organizations:
        lines.extend(
            _table(
                ("Organization", "Inactive Seats", "Total Seats", "Status"),
                (
                    (
                        summary.organization,
                        summary.inactive_seats,
                        summary.total_seats,
                        summary.status or "",
                    )
                    for summary in report.organizations
                ),
            )
        )
        lines.append("")
    if report.inactive_seats:
        lines.extend(
            _table(
                ("Organization", "Login", "Last Active", "Last Editor"),
                (
                    (
                        seat.organization,
                        seat.login or UNKNOWN_LOGIN,
                        _last_active(seat),
                        seat.last_activity_editor or "",
                    )
                    for seat in report.inactive_seats
                ),
            )
        )
        lines.append("")
    if report.removed_seats:
        lines.extend([f"Removed Seats: {report.removed_seats}", ""])
    if report.failed_organizations:
        lines.extend(
            [f"Failed organizations: {', '.join(report.failed_organizations)}", ""]
        )
    lines.extend(
        f"[View GitHub Copilot seats for {summary.organization}]"
        f"({SEAT_MANAGEMENT_URL.format(organization=summary.organization)})"
        for summary in report.organizations
    )
    return "\n".join(lines).rstrip() + "\n"


def render_deployment_summary(report: DeploymentReport) -> str:
    prefix = "DRY RUN: " if report.dry_run else ""
    heading = "Seats to deploy" if report.dry_run else "Deployed Seats"
    lines = [f"## {prefix}{heading}: {len(report.deployed)}", ""]
    if report.deployed:
        lines.extend(
            _table(
                ("Organization", "Group", "Login", "Activation Date"),
                (
                    (
                        record.organization,
                        record.deployment_group,
                        record.login,
                        record.activation_date.isoformat(),
                    )
                    for record in report.deployed
                ),
            )
        )
        lines.append("")
    lines.extend([f"## {prefix}Deployment Status", ""])
    lines.extend(
        _table(
            ("Group", "Deployed Seats", "Total Seats", "Inactive Seats"),
            ((tally.group, tally.deployed, tally.total, tally.inactive) for tally in report.groups),
        )
    )
    return "\n".join(lines).rstrip() + "\n"


def append_job_summary(markdown: str, path: Path | str | None = None) -> bool:
    """Append ``markdown`` to ``$GITHUB_STEP_SUMMARY``; ``False`` when unset."""

    target = path or os.getenv("GITHUB_STEP_SUMMARY")
    if not target:
        log.debug("GITHUB_STEP_SUMMARY is not set; skipping job summary")
        return False
    with Path(target).open("a", encoding="utf-8") as handle:
        handle.write(markdown)
        handle.write("\n")
    return True


def write_inactive_csv(seats: Iterable[Seat], directory: Path) -> Path:
    path = directory / INACTIVE_CSV_FILENAME
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=INACTIVE_CSV_COLUMNS)
        writer.writeheader()
        for seat in seats:
            payload = seat_to_payload(seat)
            writer.writerow({column: payload[column] or "" for column in INACTIVE_CSV_COLUMNS})
    log.info("Wrote inactive seat CSV to %s", path)
    return path


__all__ = [
    "append_job_summary",
    "cleanup_outputs",
    "deployment_outputs",
    "render_cleanup_summary",
    "render_deployment_summary",
    "write_action_outputs",
    "write_inactive_csv",
]
