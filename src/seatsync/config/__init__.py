"""Application configuration helpers."""

from __future__ import annotations

from seatsync.common.logging import configure_logging

from .env import env_flag, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .github import GitHubConfig, default_resilience_config, get_github_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .run import RunConfig, get_run_config, parse_organizations

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "GitHubConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RunConfig",
    "configure_logging",
    "default_resilience_config",
    "env_flag",
    "env_int",
    "get_github_config",
    "get_run_config",
    "optional_env_var",
    "parse_organizations",
    "require_env_vars",
]
