"""
Pytest configuration for gitc tests.

This module provides fixtures and common utilities for all tests.
"""

import pytest

from gitc.cache import InMemoryCompletionCache
from gitc.config import GitcConfig
from gitc.schemas import Thresholds

from tests.fakes import FakeClock, FakeDirectoryProvider


@pytest.fixture
def clock():
    """Create a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    """Create an in-memory completion cache with a one hour TTL."""
    return InMemoryCompletionCache(ttl=3600, clock=clock)


@pytest.fixture
def thresholds():
    """Create default completion thresholds."""
    return Thresholds(max_repos_for_full_listing=500, min_search_chars=2)


@pytest.fixture
def fake_provider():
    """Create a fake provider with a handful of repositories."""
    return FakeDirectoryProvider(
        repos={
            "octocat": ["octocat/hello-world", "octocat/spoon-knife", "octocat/linguist"],
        },
    )


@pytest.fixture
def mock_config(tmp_path):
    """Create a configuration for testing."""
    return GitcConfig(
        clone_dir=str(tmp_path / "src"),
        default_host="github.com",
        cache_dir=str(tmp_path / "cache"),
        cache_ttl=3600,
        github_user="octocat",
        use_tmux=False,
    )
