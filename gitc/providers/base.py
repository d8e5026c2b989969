"""
Repository directory provider interface for gitc.

A provider answers questions about the repositories hosted for an owner.
Every method raises ProviderError on failure; callers decide whether the
failure is fatal.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class RepositoryDirectoryProvider(ABC):
    """Base class for repository directory providers."""

    @abstractmethod
    def get_current_user(self) -> Optional[str]:
        """Get the login of the authenticated user.

        Returns:
            Optional[str]: The login, or None if there is no authenticated user

        Raises:
            ProviderError: If the lookup fails
        """
        pass

    @abstractmethod
    def get_repo_count(self, owner: str) -> int:
        """Get the number of repositories of a user or organization.

        Args:
            owner: User or organization login

        Returns:
            int: Number of repositories

        Raises:
            ProviderError: If the lookup fails
        """
        pass

    @abstractmethod
    def list_all(self, owner: str, limit: int = 1000) -> List[str]:
        """List repositories of an owner as ``owner/name`` strings.

        Args:
            owner: User or organization login
            limit: Maximum number of repositories to return

        Returns:
            List[str]: Repository identifiers in provider order

        Raises:
            ProviderError: If the listing fails
        """
        pass

    @abstractmethod
    def search(self, owner: str, query: str, limit: int = 50) -> List[str]:
        """Search repositories of an owner.

        Args:
            owner: User or organization login
            query: Search text
            limit: Maximum number of results

        Returns:
            List[str]: Matching ``owner/name`` identifiers in provider order

        Raises:
            ProviderError: If the search fails
        """
        pass
