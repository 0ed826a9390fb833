"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from tgdocs.utils.retry import RetryPolicy

DEFAULT_BASE_URL = "https://terragrunt.gruntwork.io"


def _get_default_cache_dir() -> Path:
    """Get the default snapshot directory for the current environment."""
    override = os.environ.get("TGDOCS_CACHE_DIR")
    if override:
        return Path(override)

    # When running from a checkout, prefer an existing local cache
    local_cache = Path(".cache/terragrunt-docs")
    if local_cache.exists():
        return local_cache

    return Path.home() / ".cache" / "tgdocs"


@dataclass(slots=True)
class AppConfig:
    base_url: str = DEFAULT_BASE_URL
    cache_dir: Path | None = None
    bundle_path: Path | None = None
    ttl_hours: float = 24.0
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: float = 10.0
    request_timeout: float = 20.0
    retry_cooldown_minutes: float = 0.0
    offline: bool = False

    def __post_init__(self) -> None:
        if self.cache_dir is None:
            self.cache_dir = _get_default_cache_dir()

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)

    @property
    def retry_cooldown(self) -> timedelta:
        return timedelta(minutes=self.retry_cooldown_minutes)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            backoff_multiplier=self.backoff_multiplier,
            max_delay=self.max_delay,
        )

    def resolve_cache_dir(self, base_dir: Path | None = None) -> Path:
        if self.cache_dir is None:
            self.cache_dir = _get_default_cache_dir()
        if Path(self.cache_dir).is_absolute() or base_dir is None:
            return Path(self.cache_dir)
        return base_dir / self.cache_dir
