"""Seat reconciliation core: classification, aggregation, planning and reporting."""

from __future__ import annotations

from .classify import classify_seat, elapsed_days, select_inactive, sort_inactive
from .context import RunContext, SeatAggregator
from .enrollment import DeploymentAborted, DeploymentResult, EnrollmentReconciler
from .model import (
    DeploymentDecision,
    DeploymentOutcome,
    EnrollmentRecord,
    EnrollmentRow,
    EnrollmentValidationError,
    FetchStatus,
    GroupTally,
    OrgSnapshot,
    OrgSummary,
    Seat,
    SeatActivity,
    TeamRef,
)
from .reporting import CleanupReport, DeploymentReport, tally_groups
from .revocation import RevocationPlan, RevocationPlanner, RevocationResult, plan_revocations

__all__ = [
    "CleanupReport",
    "DeploymentAborted",
    "DeploymentDecision",
    "DeploymentOutcome",
    "DeploymentReport",
    "DeploymentResult",
    "EnrollmentReconciler",
    "EnrollmentRecord",
    "EnrollmentRow",
    "EnrollmentValidationError",
    "FetchStatus",
    "GroupTally",
    "OrgSnapshot",
    "OrgSummary",
    "RevocationPlan",
    "RevocationPlanner",
    "RevocationResult",
    "RunContext",
    "Seat",
    "SeatActivity",
    "SeatAggregator",
    "TeamRef",
    "classify_seat",
    "elapsed_days",
    "plan_revocations",
    "select_inactive",
    "sort_inactive",
    "tally_groups",
]
