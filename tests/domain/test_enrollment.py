from __future__ import annotations

import asyncio
from datetime import date

import pytest

from seatsync.domain.context import RunContext, SeatAggregator
from seatsync.domain.enrollment import (
    DeploymentAborted,
    DeploymentResult,
    EnrollmentReconciler,
    in_window,
)
from seatsync.domain.model import (
    DeploymentOutcome,
    EnrollmentRecord,
    EnrollmentRow,
    EnrollmentValidationError,
    FetchStatus,
)
from seatsync.domain.ports import SeatServiceError
from tests.helpers.seat_service import ORG, FakeSeatService, clock, make_row, make_seat

Outcome = DeploymentOutcome


def _reconciler(service: FakeSeatService, *, dry_run: bool = False) -> EnrollmentReconciler:
    aggregator = SeatAggregator(
        RunContext(inactive_days=90, clock=clock),
        seats=service,
        members=service,
    )
    return EnrollmentReconciler(
        aggregator,
        service,
        validation_days=3,
        dry_run=dry_run,
        clock=clock,
    )


def _reconcile(
    service: FakeSeatService,
    rows: list[EnrollmentRow],
    *,
    dry_run: bool = False,
) -> DeploymentResult:
    return asyncio.run(_reconciler(service, dry_run=dry_run).reconcile(rows))


def test_record_parse_rejects_empty_fields() -> None:
    row = EnrollmentRow(organization=ORG, deployment_group="", login="mona", activation_date="")

    with pytest.raises(EnrollmentValidationError, match="empty values: deployment_group"):
        EnrollmentRecord.parse(row)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2024-05-30", date(2024, 5, 30)),
        ("2024-05-30T08:15:00Z", date(2024, 5, 30)),
        ("05/30/2024", date(2024, 5, 30)),
    ],
)
def test_record_parse_accepts_supported_date_formats(text: str, expected: date) -> None:
    record = EnrollmentRecord.parse(make_row("mona", activation=text))

    assert record.activation_date == expected


def test_validation_window_is_inclusive() -> None:
    today = date(2024, 6, 1)

    assert in_window(date(2024, 5, 29), today=today, validation_days=3)
    assert in_window(today, today=today, validation_days=3)
    assert not in_window(date(2024, 5, 28), today=today, validation_days=3)
    assert not in_window(date(2024, 6, 2), today=today, validation_days=3)


def test_invalid_rows_are_skipped_without_remote_calls() -> None:
    service = FakeSeatService(members={ORG: ["mona"]})
    rows = [
        make_row("", activation="2024-06-01"),
        make_row("mona", activation="not-a-date"),
        make_row("mona", activation="2024-05-20"),
    ]

    result = _reconcile(service, rows)

    assert result.outcomes() == [
        Outcome.SKIPPED_INVALID,
        Outcome.SKIPPED_INVALID,
        Outcome.SKIPPED_OUT_OF_WINDOW,
    ]
    assert result.decisions[0].reason == "empty values: login"
    assert result.decisions[1].reason == "invalid date 'not-a-date'"
    assert service.calls == []


def test_non_members_are_skipped() -> None:
    service = FakeSeatService(members={ORG: ["mona"]})

    result = _reconcile(service, [make_row("outsider")])

    assert result.outcomes() == [Outcome.SKIPPED_NOT_MEMBER]
    assert service.count("assign_seats") == 0


def test_existing_seat_is_left_alone() -> None:
    service = FakeSeatService(seats={ORG: [make_seat("mona")]}, members={ORG: ["mona"]})

    result = _reconcile(service, [make_row("mona")])

    assert result.outcomes() == [Outcome.SKIPPED_ALREADY_SEATED]
    assert result.deployed_count == 0


def test_seat_pending_cancellation_is_reassigned() -> None:
    service = FakeSeatService(
        seats={ORG: [make_seat("mona", pending_cancellation=date(2024, 7, 1))]},
        members={ORG: ["mona"]},
    )

    result = _reconcile(service, [make_row("mona")])

    assert result.outcomes() == [Outcome.ASSIGNED]
    assert service.assigned == [(ORG, ["mona"])]


def test_live_assignment_counts_created_seats() -> None:
    service = FakeSeatService(members={ORG: ["mona", "hubot"]})

    result = _reconcile(service, [make_row("mona"), make_row("hubot", activation="05/29/2024")])

    assert result.outcomes() == [Outcome.ASSIGNED, Outcome.ASSIGNED]
    assert result.deployed_count == 2
    assert [record.login for record in result.deployed] == ["mona", "hubot"]
    assert service.assigned == [(ORG, ["mona"]), (ORG, ["hubot"])]


def test_dry_run_makes_no_remote_writes_and_is_idempotent() -> None:
    service = FakeSeatService(members={ORG: ["mona"]})

    result = _reconcile(service, [make_row("mona"), make_row("mona")], dry_run=True)

    assert result.outcomes() == [Outcome.ASSIGNED_DRY_RUN, Outcome.SKIPPED_ALREADY_SEATED]
    assert result.deployed_count == 1
    assert service.count("assign_seats") == 0


def test_duplicate_row_is_already_seated_after_live_assignment() -> None:
    service = FakeSeatService(members={ORG: ["mona"]})

    result = _reconcile(service, [make_row("mona"), make_row("mona")])

    assert result.outcomes() == [Outcome.ASSIGNED, Outcome.SKIPPED_ALREADY_SEATED]
    assert result.deployed_count == 1
    assert service.count("assign_seats") == 1


def test_dry_run_reports_the_same_deployments_as_a_live_run() -> None:
    rows = [
        make_row("mona"),
        make_row("hubot", group="wave-2"),
        make_row("mona"),
        make_row("stranger"),
        make_row("seated"),
    ]

    def service() -> FakeSeatService:
        return FakeSeatService(
            seats={ORG: [make_seat("seated")]},
            members={ORG: ["mona", "hubot", "seated"]},
        )

    dry = _reconcile(service(), rows, dry_run=True)
    live = _reconcile(service(), rows)

    assert dry.deployed_count == live.deployed_count == 2
    assert [record.login for record in dry.deployed] == [record.login for record in live.deployed]
    assert [record.login for record in live.deployed] == ["mona", "hubot"]
    assert [
        Outcome.ASSIGNED if outcome is Outcome.ASSIGNED_DRY_RUN else outcome
        for outcome in dry.outcomes()
    ] == live.outcomes()


def test_unexpected_assignment_status_aborts_the_pass() -> None:
    service = FakeSeatService(members={ORG: ["mona"]})
    service.assign_status[ORG] = FetchStatus.NOT_FOUND

    with pytest.raises(DeploymentAborted, match="returned not_found"):
        _reconcile(service, [make_row("mona")])


def test_unsupported_assignment_is_recorded_and_processing_continues() -> None:
    service = FakeSeatService(
        members={ORG: ["mona"], "other-org": ["hubot"]},
    )
    service.assign_status[ORG] = FetchStatus.UNSUPPORTED

    result = _reconcile(
        service,
        [make_row("mona"), make_row("hubot", organization="other-org")],
    )

    assert result.outcomes() == [Outcome.SKIPPED_NOT_ENABLED, Outcome.ASSIGNED]
    assert result.deployed_count == 1


def test_hard_assignment_error_aborts_with_partial_result() -> None:
    service = FakeSeatService(members={ORG: ["mona", "hubot", "octocat"]})
    service.assign_errors["hubot"] = SeatServiceError("server error", status_code=500)
    rows = [make_row("mona"), make_row("hubot"), make_row("octocat")]

    with pytest.raises(DeploymentAborted) as excinfo:
        _reconcile(service, rows)

    partial = excinfo.value.result
    assert partial.outcomes() == [Outcome.ASSIGNED]
    assert partial.deployed_count == 1
    assert ("assign_seats", ORG, ("octocat",)) not in service.calls


def test_unreachable_organization_is_fetched_once_and_skipped() -> None:
    service = FakeSeatService(members={"good-org": ["hubot"]})
    service.seat_errors["bad-org"] = SeatServiceError("forbidden", status_code=403)
    rows = [
        make_row("mona", organization="bad-org"),
        make_row("hubot", organization="good-org"),
        make_row("octocat", organization="bad-org"),
    ]

    result = _reconcile(service, rows)

    assert result.outcomes() == [Outcome.SKIPPED_INVALID, Outcome.ASSIGNED, Outcome.SKIPPED_INVALID]
    assert result.decisions[0].reason == "organization data unavailable: forbidden"
    assert service.count("list_seats", "bad-org") == 1


def test_decisions_follow_input_order() -> None:
    service = FakeSeatService(members={ORG: ["mona", "hubot"]})
    rows = [
        make_row("mona"),
        make_row("late", activation="2023-01-01"),
        make_row("hubot"),
        make_row("", activation="2024-06-01"),
    ]

    result = _reconcile(service, rows, dry_run=True)

    assert [decision.row for decision in result.decisions] == rows
    assert result.outcomes() == [
        Outcome.ASSIGNED_DRY_RUN,
        Outcome.SKIPPED_OUT_OF_WINDOW,
        Outcome.ASSIGNED_DRY_RUN,
        Outcome.SKIPPED_INVALID,
    ]
