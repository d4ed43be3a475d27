"""Public interface for the GitHub adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from seatsync.config.github import get_github_config

from .client import GitHubAPIError, GitHubClient
from .schema import SeatPayload, SeatsResponse
from .translator import parse_seat, seat_to_payload

if TYPE_CHECKING:
    from seatsync.config.github import GitHubConfig


def build_github_client(config: GitHubConfig | None = None) -> GitHubClient:
    """Create a client from ``config`` or from the environment."""

    return GitHubClient(config=config or get_github_config())


__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "SeatPayload",
    "SeatsResponse",
    "build_github_client",
    "parse_seat",
    "seat_to_payload",
]
