"""Run-level settings for a seat reconciliation job."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import env_flag, env_int, optional_env_var
from .errors import ConfigurationError

DEFAULT_INACTIVE_DAYS = 90
DEFAULT_VALIDATION_DAYS = 3
DEFAULT_DEPLOY_CSV = "deploy-users.csv"


@dataclass(frozen=True, slots=True)
class RunConfig:
    organizations: tuple[str, ...] = ()
    enterprise: str | None = None
    inactive_days: int = DEFAULT_INACTIVE_DAYS
    remove: bool = False
    remove_from_team: bool = False
    csv: bool = False
    job_summary: bool = True
    deploy_users: bool = False
    deploy_csv: Path = Path(DEFAULT_DEPLOY_CSV)
    deploy_dry_run: bool = True
    deploy_validation_days: int = DEFAULT_VALIDATION_DAYS

    def validate(self, *, require_organizations: bool = True) -> RunConfig:
        if require_organizations and self.enterprise is None and not self.organizations:
            raise ConfigurationError("Either an organization list or an enterprise is required")
        if self.inactive_days < 0:
            raise ConfigurationError("Inactive days must be non-negative")
        if self.deploy_validation_days < 0:
            raise ConfigurationError("Deployment validation days must be non-negative")
        return self


def parse_organizations(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated organization list, dropping blanks and duplicates."""

    if value is None:
        return ()
    seen: dict[str, None] = {}
    for part in value.split(","):
        name = part.strip()
        if not name:
            continue
        if any(char.isspace() for char in name) or "/" in name:
            raise ConfigurationError(f"Invalid organization name: {name!r}")
        seen.setdefault(name)
    return tuple(seen)


def get_run_config() -> RunConfig:
    """Read run settings from ``SEATSYNC_*`` environment variables."""

    return RunConfig(
        organizations=parse_organizations(optional_env_var("SEATSYNC_ORGANIZATIONS")),
        enterprise=optional_env_var("SEATSYNC_ENTERPRISE"),
        inactive_days=env_int("SEATSYNC_INACTIVE_DAYS", default=DEFAULT_INACTIVE_DAYS),
        remove=env_flag("SEATSYNC_REMOVE", default=False),
        remove_from_team=env_flag("SEATSYNC_REMOVE_FROM_TEAM", default=False),
        csv=env_flag("SEATSYNC_CSV", default=False),
        job_summary=env_flag("SEATSYNC_JOB_SUMMARY", default=True),
        deploy_users=env_flag("SEATSYNC_DEPLOY_USERS", default=False),
        deploy_csv=Path(optional_env_var("SEATSYNC_DEPLOY_CSV") or DEFAULT_DEPLOY_CSV),
        deploy_dry_run=env_flag("SEATSYNC_DEPLOY_DRY_RUN", default=True),
        deploy_validation_days=env_int(
            "SEATSYNC_DEPLOY_VALIDATION_DAYS",
            default=DEFAULT_VALIDATION_DAYS,
        ),
    )
