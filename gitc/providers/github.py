"""
GitHub repository directory provider for gitc.

This module talks to the GitHub REST API to count, list and search the
repositories of a user or organization.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_random_exponential

from gitc.errors import ProviderError
from gitc.providers.base import RepositoryDirectoryProvider

logger = logging.getLogger("gitc.providers.github")

PAGE_SIZE = 100


class HTTPStatusError(ProviderError):
    """The GitHub API answered with an unexpected status."""

    def __init__(self, status: int, message: str, rate_limited: bool = False):
        super().__init__(f"GitHub API request failed with status {status}: {message}")
        self.status = status
        self.rate_limited = rate_limited or status == 429


class GitHubDirectoryProvider(RepositoryDirectoryProvider):
    """Repository directory backed by the GitHub REST API.

    Each public method runs its requests on a short-lived event loop, so the
    provider can be used from plain synchronous code.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: Optional[str] = None,
        user: Optional[str] = None,
        timeout: float = 10,
    ):
        """Initialize the provider.

        Args:
            api_url: Base URL of the GitHub REST API
            token: Personal access token, used for private repositories and the current user
            user: Login to report as the current user without asking the API
            timeout: Total timeout in seconds for each request
        """
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.user = user
        self.timeout = timeout
        self._current_user: Optional[str] = None

    def get_current_user(self) -> Optional[str]:
        if self.user:
            return self.user
        if self._current_user:
            return self._current_user
        if not self.token:
            logger.debug("No GitHub token configured, current user is unknown")
            return None

        data = self._run(self._get_one("/user"))
        login = data.get("login") if isinstance(data, dict) else None
        self._current_user = login or None
        return self._current_user

    def get_repo_count(self, owner: str) -> int:
        return self._run(self._repo_count(owner))

    def list_all(self, owner: str, limit: int = 1000) -> List[str]:
        return self._run(self._list_all(owner, limit))

    def search(self, owner: str, query: str, limit: int = 50) -> List[str]:
        return self._run(self._search(owner, query, limit))

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "gitc",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            headers=self._headers(),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )

    def _run(self, coro):
        """Run a coroutine to completion and normalize its failures to ProviderError."""
        try:
            return asyncio.run(coro)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(f"GitHub API request failed: {str(e) or type(e).__name__}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError(f"Unexpected GitHub API response: {str(e)}") from e

    async def _get_one(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        async with self._session() as session:
            return await self._request(session, path, params)

    async def _repo_count(self, owner: str) -> int:
        async with self._session() as session:
            try:
                data = await self._request(session, f"/users/{owner}")
            except HTTPStatusError as e:
                if e.status != 404:
                    raise
                data = await self._request(session, f"/orgs/{owner}")

        count = int(data.get("public_repos") or 0)
        # Private repositories are only counted when the listing can return them
        if self._lists_private(owner):
            count += int(data.get("owned_private_repos") or data.get("total_private_repos") or 0)
        return count

    def _lists_private(self, owner: str) -> bool:
        """Whether listings for this owner include private repositories."""
        known_user = self.user or self._current_user
        return bool(self.token and known_user and owner.lower() == known_user.lower())

    async def _list_all(self, owner: str, limit: int) -> List[str]:
        if self._lists_private(owner):
            path = "/user/repos"
            base_params = {"affiliation": "owner"}
        else:
            path = f"/users/{owner}/repos"
            base_params = {"type": "owner"}

        repos: List[str] = []
        page = 1
        async with self._session() as session:
            while len(repos) < limit:
                params = dict(base_params, per_page=min(PAGE_SIZE, limit), page=page)
                data = await self._request(session, path, params)
                if not data:
                    break
                repos.extend(item["full_name"] for item in data)
                if len(data) < params["per_page"]:
                    break
                page += 1

        return repos[:limit]

    async def _search(self, owner: str, query: str, limit: int) -> List[str]:
        params = {
            "q": f"{query} in:name user:{owner}",
            "per_page": min(PAGE_SIZE, limit),
        }
        async with self._session() as session:
            data = await self._request(session, "/search/repositories", params)
        return [item["full_name"] for item in data.get("items", [])][:limit]

    @staticmethod
    def _should_retry_exception(exception):
        """Determine if an exception should trigger a retry.

        Args:
            exception: The exception to check

        Returns:
            bool: True for network errors, timeouts, rate limits and server errors
        """
        if isinstance(exception, (aiohttp.ClientError, asyncio.TimeoutError)):
            return True
        if isinstance(exception, HTTPStatusError):
            return exception.rate_limited or exception.status >= 500
        return False

    @retry(
        retry=retry_if_exception(lambda e: GitHubDirectoryProvider._should_retry_exception(e)),
        stop=stop_after_attempt(3),
        wait=wait_random_exponential(multiplier=0.2, max=2),
        reraise=True,
    )
    async def _request(
        self,
        session: aiohttp.ClientSession,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a GET request to the GitHub API with retry logic.

        Args:
            session: Open client session
            path: API path starting with a slash
            params: Query parameters

        Returns:
            Any: Decoded JSON body

        Raises:
            HTTPStatusError: If the API answers with a non-200 status
        """
        url = f"{self.api_url}{path}"
        logger.debug(f"GET {url} {params or ''}")
        async with session.get(url, params=params) as response:
            response_text = await response.text()

            if response.status != 200:
                try:
                    message = json.loads(response_text).get("message", "No message")
                except (json.JSONDecodeError, AttributeError):
                    message = response_text[:200]
                # GitHub also reports an exhausted rate limit as 403
                rate_limited = response.status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
                raise HTTPStatusError(response.status, message, rate_limited=rate_limited)

            return json.loads(response_text)
