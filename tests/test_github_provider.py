"""
Unit tests for GitHubDirectoryProvider.

This module tests the functionality of the GitHub provider, including:
- Current user lookup
- Repository counts for users and organizations
- Paginated listings and searches
- Error mapping and retry decisions
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from gitc.errors import ProviderError
from gitc.providers import GitHubDirectoryProvider, HTTPStatusError


class FakeResponse:
    """Minimal stand-in for an aiohttp response context manager."""

    def __init__(self, status, body, headers=None):
        self.status = status
        self.headers = headers or {}
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Session that answers GET requests from a list of responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def get(self, url, params=None):
        self.requests.append((url, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestGitHubDirectoryProvider:
    """Tests for the GitHubDirectoryProvider class."""

    @pytest.fixture
    def provider(self):
        """Create a provider with a token for testing."""
        return GitHubDirectoryProvider(api_url="https://api.example.com/", token="ghp_test", timeout=5)

    def test_api_url_is_normalized(self, provider):
        """Test that a trailing slash is dropped from the API URL."""
        assert provider.api_url == "https://api.example.com"

    def test_headers_include_token(self, provider):
        """Test that the token is sent as a bearer token."""
        assert provider._headers()["Authorization"] == "Bearer ghp_test"
        assert "Authorization" not in GitHubDirectoryProvider()._headers()

    def test_current_user_from_configuration(self):
        """Test that a configured user wins without any request."""
        provider = GitHubDirectoryProvider(user="octocat")

        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            assert provider.get_current_user() == "octocat"
            mock_request.assert_not_called()

    def test_current_user_without_token(self):
        """Test that the current user is unknown without a token."""
        assert GitHubDirectoryProvider().get_current_user() is None

    def test_current_user_from_api_is_remembered(self, provider):
        """Test that /user is asked once."""
        # Arrange
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"login": "octocat"}

            # Act
            first = provider.get_current_user()
            second = provider.get_current_user()

            # Assert
            assert first == second == "octocat"
            mock_request.assert_called_once()
            assert mock_request.call_args[0][1] == "/user"

    def test_repo_count_for_user(self, provider):
        """Test counting repositories of a user."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"login": "octocat", "public_repos": 8}

            assert provider.get_repo_count("octocat") == 8
            assert mock_request.call_args[0][1] == "/users/octocat"

    def test_repo_count_includes_own_private_repositories(self):
        """Test that the current user's private repositories are counted."""
        provider = GitHubDirectoryProvider(token="ghp_test", user="octocat")

        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"public_repos": 8, "owned_private_repos": 4}

            assert provider.get_repo_count("octocat") == 12

    def test_repo_count_matches_public_listing_for_other_owners(self, provider):
        """Test that other owners are counted with the same visibility as their listing."""
        # Arrange
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [
                HTTPStatusError(404, "Not Found"),
                {"login": "acme", "public_repos": 400, "total_private_repos": 300},
                [{"full_name": f"acme/r{i}"} for i in range(100)],
                [],
            ]

            # Act
            count = provider.get_repo_count("acme")
            provider.list_all("acme")

            # Assert
            assert count == 400
            assert mock_request.call_args[0][1] == "/users/acme/repos"

    def test_repo_count_falls_back_to_organization(self, provider):
        """Test that a 404 for the user falls back to the organization endpoint."""
        # Arrange
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [
                HTTPStatusError(404, "Not Found"),
                {"login": "kubernetes", "public_repos": 10000},
            ]

            # Act
            count = provider.get_repo_count("kubernetes")

            # Assert
            assert count == 10000
            paths = [call[0][1] for call in mock_request.call_args_list]
            assert paths == ["/users/kubernetes", "/orgs/kubernetes"]

    def test_repo_count_does_not_fall_back_on_other_errors(self, provider):
        """Test that non-404 errors propagate as ProviderError."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = HTTPStatusError(403, "rate limited")

            with pytest.raises(ProviderError):
                provider.get_repo_count("octocat")
            assert mock_request.call_count == 1

    def test_list_all_paginates(self, provider):
        """Test that listing follows pages until a short page."""
        # Arrange
        first_page = [{"full_name": f"octocat/repo-{i}"} for i in range(100)]
        second_page = [{"full_name": "octocat/last"}]

        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [first_page, second_page]

            # Act
            repos = provider.list_all("octocat")

            # Assert
            assert len(repos) == 101
            assert repos[0] == "octocat/repo-0"
            assert repos[-1] == "octocat/last"
            pages = [call[0][2]["page"] for call in mock_request.call_args_list]
            assert pages == [1, 2]

    def test_list_all_respects_limit(self, provider):
        """Test that no more than limit repositories are returned."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = [{"full_name": f"org/r{i}"} for i in range(10)]

            repos = provider.list_all("org", limit=10)

            assert len(repos) == 10
            assert mock_request.call_args[0][2]["per_page"] == 10

    def test_list_all_for_current_user_includes_private(self):
        """Test that the current user's listing uses the authenticated endpoint."""
        provider = GitHubDirectoryProvider(token="ghp_test", user="octocat")

        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = []

            provider.list_all("OctoCat")

            path, params = mock_request.call_args[0][1], mock_request.call_args[0][2]
            assert path == "/user/repos"
            assert params["affiliation"] == "owner"

    def test_list_all_for_other_owner(self, provider):
        """Test that other owners are listed through the public endpoint."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = []

            assert provider.list_all("psf") == []
            assert mock_request.call_args[0][1] == "/users/psf/repos"

    def test_search_builds_name_query(self, provider):
        """Test that search is scoped to the owner and repository names."""
        # Arrange
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "total_count": 2,
                "items": [{"full_name": "kubernetes/kubectl"}, {"full_name": "kubernetes/kubeadm"}],
            }

            # Act
            results = provider.search("kubernetes", "kube", limit=50)

            # Assert
            assert results == ["kubernetes/kubectl", "kubernetes/kubeadm"]
            path, params = mock_request.call_args[0][1], mock_request.call_args[0][2]
            assert path == "/search/repositories"
            assert params["q"] == "kube in:name user:kubernetes"
            assert params["per_page"] == 50

    def test_network_errors_become_provider_errors(self, provider):
        """Test that aiohttp failures are wrapped."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = aiohttp.ClientConnectionError("connection refused")

            with pytest.raises(ProviderError):
                provider.search("octocat", "ab")

    def test_malformed_payload_becomes_provider_error(self, provider):
        """Test that unexpected JSON shapes are wrapped."""
        with patch.object(provider, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"items": [{"name": "missing-full-name"}]}

            with pytest.raises(ProviderError):
                provider.search("octocat", "ab")

    @pytest.mark.parametrize(
        "exception,expected",
        [
            (aiohttp.ClientConnectionError(), True),
            (asyncio.TimeoutError(), True),
            (HTTPStatusError(500, "boom"), True),
            (HTTPStatusError(429, "slow down"), True),
            (HTTPStatusError(403, "API rate limit exceeded", rate_limited=True), True),
            (HTTPStatusError(403, "Resource not accessible"), False),
            (HTTPStatusError(404, "Not Found"), False),
            (ValueError("bad"), False),
        ],
    )
    def test_should_retry_exception(self, exception, expected):
        """Test which failures are retried."""
        assert GitHubDirectoryProvider._should_retry_exception(exception) is expected

    @pytest.mark.asyncio
    async def test_request_decodes_json(self, provider):
        """Test a successful request."""
        # Arrange
        session = FakeSession([FakeResponse(200, {"login": "octocat"})])

        # Act
        data = await provider._request(session, "/user", {"a": 1})

        # Assert
        assert data == {"login": "octocat"}
        assert session.requests == [("https://api.example.com/user", {"a": 1})]

    @pytest.mark.asyncio
    async def test_request_raises_status_error_without_retry(self, provider):
        """Test that a 404 is raised once with the API message."""
        session = FakeSession([FakeResponse(404, {"message": "Not Found"})])

        with pytest.raises(HTTPStatusError) as exc_info:
            await provider._request(session, "/users/nobody")

        assert exc_info.value.status == 404
        assert "Not Found" in str(exc_info.value)
        assert len(session.requests) == 1

    @pytest.mark.asyncio
    async def test_request_retries_server_errors(self, provider):
        """Test that a server error is retried until it succeeds."""
        session = FakeSession([
            FakeResponse(502, "Bad Gateway"),
            FakeResponse(200, {"public_repos": 1}),
        ])

        data = await provider._request(session, "/users/octocat")

        assert data == {"public_repos": 1}
        assert len(session.requests) == 2

    @pytest.mark.asyncio
    async def test_request_gives_up_after_three_attempts(self, provider):
        """Test that retries stop and the last error is raised."""
        session = FakeSession([FakeResponse(503, "unavailable")] * 3)

        with pytest.raises(HTTPStatusError):
            await provider._request(session, "/users/octocat")

        assert len(session.requests) == 3

    @pytest.mark.asyncio
    async def test_request_retries_exhausted_rate_limit(self, provider):
        """Test that a 403 with no remaining rate limit is retried."""
        # Arrange
        session = FakeSession([
            FakeResponse(403, {"message": "API rate limit exceeded"}, headers={"X-RateLimit-Remaining": "0"}),
            FakeResponse(200, {"public_repos": 1}),
        ])

        # Act
        data = await provider._request(session, "/users/octocat")

        # Assert
        assert data == {"public_repos": 1}
        assert len(session.requests) == 2

    @pytest.mark.asyncio
    async def test_request_does_not_retry_plain_forbidden(self, provider):
        """Test that a 403 with rate limit left is raised at once."""
        session = FakeSession([
            FakeResponse(403, {"message": "Resource not accessible"}, headers={"X-RateLimit-Remaining": "4999"}),
        ])

        with pytest.raises(HTTPStatusError) as exc_info:
            await provider._request(session, "/orgs/acme")

        assert exc_info.value.rate_limited is False
        assert len(session.requests) == 1
