from __future__ import annotations

import asyncio

from seatsync.domain.context import RunContext, SeatAggregator
from seatsync.domain.model import OrgSnapshot, TeamRef
from seatsync.domain.revocation import RevocationPlanner, plan_revocations
from tests.helpers.seat_service import ORG, FakeSeatService, clock, make_seat


def _aggregator(service: FakeSeatService) -> SeatAggregator:
    return SeatAggregator(RunContext(inactive_days=90, clock=clock), seats=service, members=service)


def _snapshot(service: FakeSeatService, organization: str = ORG) -> OrgSnapshot:
    return asyncio.run(_aggregator(service).get_snapshot(organization))


def _service() -> FakeSeatService:
    return FakeSeatService(
        seats={
            ORG: [
                make_seat("active", idle_days=2),
                make_seat("solo", idle_days=150),
                make_seat("lead", idle_days=200, team="platform"),
                make_seat("dev", idle_days=180, team="platform"),
                make_seat("gone", idle_days=170, team="legacy"),
            ]
        },
        team_roles={
            (ORG, "platform", "lead"): "maintainer",
            (ORG, "platform", "dev"): "member",
        },
    )


def test_plan_splits_individual_and_team_grants() -> None:
    plan = plan_revocations(_snapshot(_service()))

    assert plan.individual == ("solo",)
    assert plan.team == (
        ("lead", TeamRef(slug="platform", name="Platform")),
        ("dev", TeamRef(slug="platform", name="Platform")),
        ("gone", TeamRef(slug="legacy", name="Legacy")),
    )
    assert not plan.empty


def test_nothing_is_revoked_when_removal_is_disabled() -> None:
    service = _service()
    planner = RevocationPlanner(service, remove_individual=False, remove_from_team=False)

    result = asyncio.run(planner.execute(_snapshot(service)))

    assert result.removed == 0
    assert service.revoked == []
    assert service.count("get_team_role") == 0


def test_individual_seats_are_cancelled_in_one_call() -> None:
    service = FakeSeatService(
        seats={ORG: [make_seat("solo", idle_days=150), make_seat("other", idle_days=300)]}
    )
    planner = RevocationPlanner(service, remove_individual=True, remove_from_team=False)

    result = asyncio.run(planner.execute(_snapshot(service)))

    assert service.revoked == [(ORG, ["other", "solo"])]
    assert result.seats_cancelled == 2
    assert planner.removed_total == 2


def test_team_removal_protects_maintainers_and_skips_former_members() -> None:
    service = _service()
    planner = RevocationPlanner(service, remove_individual=False, remove_from_team=True)

    result = asyncio.run(planner.execute(_snapshot(service)))

    assert service.team_removed == [(ORG, "platform", "dev")]
    assert result.team_removals == [("dev", "platform")]
    assert result.protected == [("lead", "platform")]
    assert service.count("get_team_role") == 3
    assert service.count("revoke_seats") == 0
    assert planner.removed_total == 1


def test_no_revoke_call_without_individual_candidates() -> None:
    service = FakeSeatService(seats={ORG: [make_seat("active", idle_days=1)]})
    planner = RevocationPlanner(service, remove_individual=True, remove_from_team=True)

    result = asyncio.run(planner.execute(_snapshot(service)))

    assert result.removed == 0
    assert service.calls == [("list_seats", ORG, 1, 100)]


def test_removed_total_accumulates_across_organizations() -> None:
    service = FakeSeatService(
        seats={
            "org-a": [make_seat("a1", organization="org-a", idle_days=100)],
            "org-b": [
                make_seat("b1", organization="org-b", idle_days=100),
                make_seat("b2", organization="org-b", idle_days=100),
            ],
        }
    )
    aggregator = _aggregator(service)
    planner = RevocationPlanner(service, remove_individual=True, remove_from_team=False)

    async def run() -> None:
        for organization in ("org-a", "org-b"):
            await planner.execute(await aggregator.get_snapshot(organization))

    asyncio.run(run())

    assert planner.removed_total == 3
    assert service.revoked == [("org-a", ["a1"]), ("org-b", ["b1", "b2"])]


def test_revoked_logins_no_longer_hold_a_seat() -> None:
    service = _service()
    planner = RevocationPlanner(service, remove_individual=True, remove_from_team=True)
    snapshot = _snapshot(service)

    asyncio.run(planner.execute(snapshot))

    assert snapshot.revoked == {"solo", "dev"}
    assert not snapshot.holds_seat("solo")
    assert not snapshot.holds_seat("dev")
    assert snapshot.holds_seat("lead")
    assert snapshot.held_seat("solo") is not None
