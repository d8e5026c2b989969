"""
Configuration module for gitc.

This module handles loading and validating configuration from environment variables and CLI arguments.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import click

from gitc.errors import ConfigurationError
from gitc.schemas import Thresholds


class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{value}'") from e


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{value}'") from e


@dataclass
class GitcConfig:
    """Application configuration for gitc."""

    # Layout settings
    clone_dir: str = os.path.join(os.path.expanduser("~"), "src")
    default_host: str = "github.com"

    # Autocomplete settings
    max_repos_for_full_listing: int = 500
    min_search_chars: int = 2
    search_limit: int = 50
    listing_limit: int = 1000

    # Cache settings
    cache_dir: str = os.path.join(os.path.expanduser("~"), ".cache")
    cache_ttl: float = 3600
    count_cache_ttl: Optional[float] = None

    # Provider settings
    github_pat: Optional[str] = None
    github_user: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    request_timeout: float = 10

    # Advanced settings
    git_executable_path: Optional[str] = None
    use_tmux: bool = True
    log_level: LogLevel = LogLevel.WARNING
    debug: bool = False

    @property
    def listing_ttl(self) -> float:
        return self.cache_ttl

    @property
    def count_ttl(self) -> float:
        return self.cache_ttl if self.count_cache_ttl is None else self.count_cache_ttl

    @property
    def thresholds(self) -> Thresholds:
        """Completion thresholds derived from this configuration."""
        return Thresholds(
            max_repos_for_full_listing=self.max_repos_for_full_listing,
            min_search_chars=self.min_search_chars,
            search_limit=self.search_limit,
            listing_limit=self.listing_limit,
        )

    @classmethod
    def from_env_and_args(
        cls,
        clone_dir: Optional[str] = None,
        default_host: Optional[str] = None,
        use_tmux: Optional[bool] = None,
        debug: bool = False,
    ) -> "GitcConfig":
        """Create configuration from environment variables and CLI arguments.

        CLI arguments take precedence over environment variables.

        Args:
            clone_dir: Base directory for cloned repositories
            default_host: Host used for short-hand references
            use_tmux: Whether to open a tmux session for clones
            debug: Enable debug mode

        Returns:
            GitcConfig: Application configuration

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed
        """
        # Get values from environment variables
        env_clone_dir = os.getenv("GITC_CLONE_DIR")
        env_default_host = os.getenv("GITC_DEFAULT_HOST")
        env_cache_dir = os.getenv("GITC_CACHE_DIR")
        env_use_tmux = os.getenv("GITC_USE_TMUX", "true")
        env_log_level = os.getenv("LOG_LEVEL", LogLevel.WARNING.value).upper()

        # Provider settings
        github_pat = os.getenv("GITHUB_PAT") or os.getenv("GITHUB_TOKEN")
        github_user = os.getenv("GITC_GITHUB_USER")
        github_api_url = os.getenv("GITC_GITHUB_API_URL", "https://api.github.com")

        # Advanced settings
        git_executable = os.getenv("GIT_EXECUTABLE_PATH")

        # Numeric settings
        max_repos = _env_int("GITC_AUTOCOMPLETE_MAX_REPOS", 500)
        min_chars = _env_int("GITC_AUTOCOMPLETE_MIN_SEARCH_CHARS", 2)
        cache_ttl = _env_float("GITC_CACHE_TIME", 3600)
        count_ttl = _env_float("GITC_COUNT_CACHE_TIME", cache_ttl)
        timeout = _env_float("GITC_REQUEST_TIMEOUT", 10)

        # CLI args override env vars
        final_clone_dir = clone_dir or env_clone_dir or os.path.join("~", "src")
        final_default_host = default_host or env_default_host or "github.com"
        final_use_tmux = use_tmux if use_tmux is not None else env_use_tmux.strip().lower() in _TRUE_VALUES

        try:
            log_level = LogLevel(env_log_level)
        except ValueError as e:
            raise ConfigurationError(f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, got '{env_log_level}'") from e

        config = cls(
            clone_dir=os.path.expanduser(final_clone_dir),
            default_host=final_default_host,
            max_repos_for_full_listing=max_repos,
            min_search_chars=min_chars,
            cache_dir=os.path.expanduser(env_cache_dir or os.path.join("~", ".cache")),
            cache_ttl=cache_ttl,
            count_cache_ttl=count_ttl,
            github_pat=github_pat,
            github_user=github_user,
            github_api_url=github_api_url.rstrip("/"),
            request_timeout=timeout,
            git_executable_path=git_executable,
            use_tmux=final_use_tmux,
            log_level=log_level,
            debug=debug,
        )

        return config

    def validate(self) -> bool:
        """Validate the configuration.

        Returns:
            bool: True if configuration is valid, False otherwise
        """
        problems = []

        if not self.clone_dir:
            problems.append("Clone directory (GITC_CLONE_DIR) is empty")

        if not self.default_host or "/" in self.default_host or ":" in self.default_host:
            problems.append(f"Default host (GITC_DEFAULT_HOST) is not a hostname: '{self.default_host}'")

        if self.max_repos_for_full_listing < 0:
            problems.append("GITC_AUTOCOMPLETE_MAX_REPOS must not be negative")

        if self.min_search_chars < 0:
            problems.append("GITC_AUTOCOMPLETE_MIN_SEARCH_CHARS must not be negative")

        if self.cache_ttl < 0 or self.count_ttl < 0:
            problems.append("Cache times (GITC_CACHE_TIME, GITC_COUNT_CACHE_TIME) must not be negative")

        # Report problems
        if problems:
            click.echo("❌ Invalid configuration:", err=True)
            for problem in problems:
                click.echo(f"   - {problem}", err=True)
            return False

        # Enable debug mode if requested
        if self.debug and self.log_level != LogLevel.DEBUG:
            self.log_level = LogLevel.DEBUG

        if self.request_timeout <= 0:
            click.echo("⚠️ GITC_REQUEST_TIMEOUT must be positive. Defaulting to 10 seconds.", err=True)
            self.request_timeout = 10

        return True
