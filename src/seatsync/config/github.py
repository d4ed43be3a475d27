"""GitHub API configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheBackend, CacheConfig, RateLimit, ResilienceConfig

if TYPE_CHECKING:
    import httpx

log = getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT_SECONDS = 30.0
RATE_LIMIT_WARNING_THRESHOLD = 100

_CACHE_MODES: dict[str, CacheBackend | None] = {
    "off": None,
    "memory": "memory",
    "sqlite": "sqlite",
}


@dataclass(frozen=True)
class GitHubConfig:
    """Holds GitHub API configuration values."""

    token: str
    api_url: str
    resilience: ResilienceConfig

    @property
    def graphql_url(self) -> str:
        # GHES serves GraphQL at /api/graphql next to /api/v3.
        if self.api_url.endswith("/api/v3"):
            return self.api_url[: -len("/v3")] + "/graphql"
        return f"{self.api_url}/graphql"


async def warn_on_low_rate_limit(response: httpx.Response) -> None:
    remaining = response.headers.get("x-ratelimit-remaining")
    if remaining is None or not remaining.isdigit():
        return
    if int(remaining) < RATE_LIMIT_WARNING_THRESHOLD:
        log.warning(
            "GitHub API rate limit low: %s requests remaining until %s",
            remaining,
            response.headers.get("x-ratelimit-reset", "unknown"),
        )


def _cache_config(mode: str | None) -> CacheConfig | None:
    key = (mode or "off").lower()
    if key not in _CACHE_MODES:
        raise ConfigurationError(f"Unsupported SEATSYNC_HTTP_CACHE mode: {mode}")
    backend = _CACHE_MODES[key]
    if backend is None:
        return None
    return CacheConfig(backend=backend)


def default_resilience_config(
    *,
    token: str,
    cache: CacheConfig | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="github",
        timeout_seconds=GITHUB_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=cache,
        response_hooks=(warn_on_low_rate_limit,),
        default_headers={
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        },
    )


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubConfig:
    values = require_env_vars(("GITHUB_TOKEN",))
    token = values["GITHUB_TOKEN"].strip()
    api_url = (optional_env_var("GITHUB_API_URL") or GITHUB_API_URL).rstrip("/")
    return GitHubConfig(
        token=token,
        api_url=api_url,
        resilience=resilience
        or default_resilience_config(
            token=token,
            cache=_cache_config(optional_env_var("SEATSYNC_HTTP_CACHE")),
        ),
    )
