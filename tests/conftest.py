from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def isolated_action_files(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests from appending to a real runner's output and summary files."""

    for name in ("GITHUB_OUTPUT", "GITHUB_STEP_SUMMARY", "SEATSYNC_HTTP_CACHE"):
        monkeypatch.delenv(name, raising=False)
