"""Read the desired-state enrollment CSV."""

from __future__ import annotations

import csv
import os
from logging import getLogger
from pathlib import Path

from seatsync.config.errors import ConfigurationError
from seatsync.domain.model import ENROLLMENT_COLUMNS, EnrollmentRow

log = getLogger(__name__)


def resolve_enrollment_path(path: Path | str) -> Path:
    """Resolve a relative path against the Actions workspace when one is set."""

    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    workspace = os.getenv("GITHUB_WORKSPACE")
    base = Path(workspace) if workspace else Path.cwd()
    return (base / candidate).resolve()


def read_enrollment_rows(path: Path | str) -> list[EnrollmentRow]:
    """Return the CSV rows with trimmed cells, skipping blank lines.

    A missing file or a header without the enrollment columns is a configuration
    error; individual rows are validated later by the reconciler.
    """

    csv_path = resolve_enrollment_path(path)
    if not csv_path.is_file():
        raise ConfigurationError(f"File not found: {csv_path}")

    log.info("Fetching all deployment information from CSV %s", csv_path)
    rows: list[EnrollmentRow] = []
    with csv_path.open(encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        header = [name.strip() for name in reader.fieldnames or ()]
        missing = [column for column in ENROLLMENT_COLUMNS if column not in header]
        if missing:
            raise ConfigurationError(
                f"{csv_path} is missing columns: {', '.join(missing)}"
            )
        reader.fieldnames = header
        for raw in reader:
            if not any((value or "").strip() for value in raw.values() if isinstance(value, str)):
                continue
            rows.append(EnrollmentRow.from_mapping(raw))
    log.debug("Read %s enrollment rows from %s", len(rows), csv_path)
    return rows


__all__ = ["read_enrollment_rows", "resolve_enrollment_path"]
