from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from seatsync.app import run_seat_sync
from seatsync.config import (
    ConfigurationError,
    RunConfig,
    configure_logging,
    get_run_config,
    parse_organizations,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

# command -> (include_cleanup, deploy); None defers to SEATSYNC_DEPLOY_USERS
_COMMANDS: dict[str, tuple[bool, bool | None]] = {
    "cleanup": (True, False),
    "deploy": (False, True),
    "run": (True, None),
}


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--organization",
        dest="organizations",
        action="append",
        help="Organization to process; repeat or comma-separate (overrides "
        "SEATSYNC_ORGANIZATIONS)",
    )
    parser.add_argument(
        "--enterprise",
        type=str,
        help="Process every organization in this enterprise (overrides --organization)",
    )
    parser.add_argument(
        "--inactive-days",
        type=int,
        help="Days without activity before a seat counts as inactive",
    )
    parser.add_argument(
        "--job-summary",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Append a markdown summary to $GITHUB_STEP_SUMMARY",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _add_cleanup_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--remove",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Cancel inactive seats that were assigned individually",
    )
    parser.add_argument(
        "--remove-from-team",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Remove inactive users from the team that granted their seat",
    )
    parser.add_argument(
        "--csv",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write the inactive seats to a CSV file in the output directory",
    )


def _add_deploy_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--deploy-csv",
        type=Path,
        help="Enrollment CSV with organization,deployment_group,login,activation_date",
    )
    parser.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Report the seats that would be assigned without assigning them",
    )
    parser.add_argument(
        "--validation-days",
        type=int,
        help="Accept activation dates up to this many days in the past",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile GitHub Copilot seats")
    subparsers = parser.add_subparsers(dest="command", required=True)

    cleanup = subparsers.add_parser("cleanup", help="Report and optionally remove inactive seats")
    _add_common_arguments(cleanup)
    _add_cleanup_arguments(cleanup)

    deploy = subparsers.add_parser("deploy", help="Assign seats from the enrollment CSV")
    _add_common_arguments(deploy)
    _add_deploy_arguments(deploy)

    run = subparsers.add_parser(
        "run",
        help="Cleanup, then deploy when SEATSYNC_DEPLOY_USERS is enabled",
    )
    _add_common_arguments(run)
    _add_cleanup_arguments(run)
    _add_deploy_arguments(run)

    return parser.parse_args(list(argv))


def _build_run_config(args: argparse.Namespace, base: RunConfig) -> RunConfig:
    """Overlay the flags that were given on top of the environment config."""

    overrides: dict[str, object] = {}
    if args.organizations:
        overrides["organizations"] = parse_organizations(",".join(args.organizations))
    flag_fields = {
        "enterprise": "enterprise",
        "inactive_days": "inactive_days",
        "job_summary": "job_summary",
        "remove": "remove",
        "remove_from_team": "remove_from_team",
        "csv": "csv",
        "deploy_csv": "deploy_csv",
        "dry_run": "deploy_dry_run",
        "validation_days": "deploy_validation_days",
    }
    for arg_name, field_name in flag_fields.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[field_name] = value
    return replace(base, **overrides)  # type: ignore[arg-type]


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        include_cleanup, deploy = _COMMANDS[parsed_args.command]
        config = _build_run_config(parsed_args, get_run_config())
        config.validate(require_organizations=include_cleanup)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        outcome = run_seat_sync(config, include_cleanup=include_cleanup, deploy=deploy)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during seat sync")
        sys.exit(1)

    if outcome.failed:
        log.error("Seat sync finished with errors: %s", "; ".join(outcome.errors))
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def cli() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    cli()
