"""
Repository directory providers for gitc.

This package contains the provider interface and its GitHub implementation.
"""

from gitc.providers.base import RepositoryDirectoryProvider
from gitc.providers.github import GitHubDirectoryProvider, HTTPStatusError

__all__ = ["RepositoryDirectoryProvider", "GitHubDirectoryProvider", "HTTPStatusError"]
