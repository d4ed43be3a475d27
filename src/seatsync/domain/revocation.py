"""Plan and apply removal of inactive seats."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .ports import MAINTAINER_ROLE

if TYPE_CHECKING:
    from .model import OrgSnapshot, TeamRef
    from .ports import SeatRevoker

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RevocationPlan:
    organization: str
    individual: tuple[str, ...] = ()
    team: tuple[tuple[str, TeamRef], ...] = ()

    @property
    def empty(self) -> bool:
        return not self.individual and not self.team


@dataclass(slots=True)
class RevocationResult:
    organization: str
    seats_cancelled: int = 0
    team_removals: list[tuple[str, str]] = field(default_factory=list["tuple[str, str]"])
    protected: list[tuple[str, str]] = field(default_factory=list["tuple[str, str]"])

    @property
    def removed(self) -> int:
        return self.seats_cancelled + len(self.team_removals)


def plan_revocations(snapshot: OrgSnapshot) -> RevocationPlan:
    """Split the snapshot's inactive seats by how they were granted."""

    individual: list[str] = []
    team: list[tuple[str, TeamRef]] = []
    for seat in snapshot.inactive or ():
        if seat.assigning_team is None:
            individual.append(seat.login)
        else:
            team.append((seat.login, seat.assigning_team))
    return RevocationPlan(
        organization=snapshot.organization,
        individual=tuple(individual),
        team=tuple(team),
    )


class RevocationPlanner:
    """Apply revocation plans and keep a running removal total for the run."""

    def __init__(
        self,
        revoker: SeatRevoker,
        *,
        remove_individual: bool,
        remove_from_team: bool,
    ) -> None:
        self._revoker = revoker
        self.remove_individual = remove_individual
        self.remove_from_team = remove_from_team
        self.removed_total = 0

    async def execute(self, snapshot: OrgSnapshot) -> RevocationResult:
        plan = plan_revocations(snapshot)
        result = RevocationResult(organization=plan.organization)

        if self.remove_individual and plan.individual:
            logins = list(plan.individual)
            log.info("Removing %s inactive seats from %s", len(logins), plan.organization)
            result.seats_cancelled = await self._revoker.revoke_seats(plan.organization, logins)
            snapshot.revoked.update(logins)
            log.info("Cancelled %s seats in %s", result.seats_cancelled, plan.organization)

        if self.remove_from_team:
            for login, team in plan.team:
                await self._remove_from_team(plan.organization, login, team, result)
            snapshot.revoked.update(login for login, _ in result.team_removals)

        self.removed_total += result.removed
        return result

    async def _remove_from_team(
        self,
        organization: str,
        login: str,
        team: TeamRef,
        result: RevocationResult,
    ) -> None:
        role = await self._revoker.get_team_role(organization, team.slug, login)
        if role is None:
            log.info("%s is no longer a member of %s/%s; skipping", login, organization, team.slug)
            return
        if role == MAINTAINER_ROLE:
            log.info(
                "%s is a maintainer of %s/%s; not removing from team",
                login,
                organization,
                team.slug,
            )
            result.protected.append((login, team.slug))
            return
        await self._revoker.revoke_team_membership(organization, team.slug, login)
        log.info("Removed %s from team %s/%s", login, organization, team.slug)
        result.team_removals.append((login, team.slug))


__all__ = ["RevocationPlan", "RevocationPlanner", "RevocationResult", "plan_revocations"]
