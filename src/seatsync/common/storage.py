"""Filesystem locations for run artefacts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "seatsync"
HTTP_CACHE_FILENAME: Final[str] = "http-cache.db"


def get_data_dir() -> Path:
    """Return the directory where seatsync keeps its HTTP cache."""

    env_dir = os.getenv("SEATSYNC_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_CACHE_HOME")
        base_path = Path(base) if base else (Path.home() / ".cache")

    return (base_path / APP_DIR_NAME).expanduser().resolve()


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_http_cache_path() -> Path:
    return ensure_dir(get_data_dir()) / HTTP_CACHE_FILENAME


def get_output_dir() -> Path:
    """Return the directory for CSV exports.

    ``SEATSYNC_OUTPUT_DIR`` wins, then the Actions workspace, then the CWD.
    """

    configured = os.getenv("SEATSYNC_OUTPUT_DIR") or os.getenv("GITHUB_WORKSPACE")
    base = Path(configured) if configured else Path.cwd()
    return ensure_dir(base.expanduser().resolve())
