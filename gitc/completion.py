"""
Completion source selection for gitc.

This module decides, for a completion request, whether to serve the full
repository listing of an owner (cached for a while) or to run a bounded
remote search for the typed prefix, and renders the outcome for the shell.
"""

import logging
from typing import Callable, List, Optional

from gitc.cache import CompletionCache
from gitc.providers.base import RepositoryDirectoryProvider
from gitc.schemas import (
    CacheKind,
    CompletionDecision,
    CompletionItem,
    CompletionQuery,
    FullListing,
    IncrementalSearch,
    NoMatches,
    PromptMoreChars,
    Thresholds,
)

logger = logging.getLogger("gitc.completion")


def to_items(full_names: List[str], strip_owner_prefix: bool) -> List[CompletionItem]:
    """Turn ``owner/name`` identifiers into completion items.

    Args:
        full_names: Repository identifiers in provider order
        strip_owner_prefix: Insert only the part after the first slash

    Returns:
        List[CompletionItem]: Items in the same order
    """
    items = []
    for full_name in full_names:
        value = full_name.split("/", 1)[1] if strip_owner_prefix and "/" in full_name else full_name
        items.append(CompletionItem(value=value, full_name=full_name))
    return items


class CompletionSourceSelector:
    """Chooses between a full listing and an incremental search.

    Provider failures never escape from ``select``: a failed count reads as
    zero and a failed listing or search reads as empty.
    """

    def __init__(
        self,
        provider: RepositoryDirectoryProvider,
        cache: CompletionCache,
        thresholds: Optional[Thresholds] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.thresholds = thresholds or Thresholds()

    def select(self, query: CompletionQuery) -> CompletionDecision:
        """Compute completion candidates for a query.

        Args:
            query: Completion request

        Returns:
            CompletionDecision: FullListing, IncrementalSearch, PromptMoreChars or NoMatches
        """
        repo_count = self.repo_count(query.owner)

        if repo_count > self.thresholds.max_repos_for_full_listing:
            return self._search(query, repo_count)
        return self._full_listing(query, repo_count)

    def repo_count(self, owner: str) -> int:
        """Get the repository count of an owner, from the cache when fresh."""
        entry = self.cache.get(owner, CacheKind.COUNT)
        if entry is not None:
            return int(entry.payload)

        try:
            count = int(self.provider.get_repo_count(owner))
        except Exception as e:
            logger.warning(f"Could not get repository count for {owner}: {str(e)}")
            return 0

        # A zero count is indistinguishable from a failed lookup, so it is not kept
        if count > 0:
            self._store(owner, CacheKind.COUNT, count)
        return count

    def _search(self, query: CompletionQuery, repo_count: int) -> CompletionDecision:
        if len(query.typed_prefix) < self.thresholds.min_search_chars:
            return PromptMoreChars(min_chars=self.thresholds.min_search_chars, repo_count=repo_count)

        try:
            results = self.provider.search(query.owner, query.typed_prefix, limit=self.thresholds.search_limit)
        except Exception as e:
            logger.warning(f"Repository search for '{query.typed_prefix}' in {query.owner} failed: {str(e)}")
            results = []

        if not results:
            return NoMatches(repo_count=repo_count, searched=True)
        return IncrementalSearch(items=to_items(results, query.strip_owner_prefix), repo_count=repo_count)

    def _full_listing(self, query: CompletionQuery, repo_count: int) -> CompletionDecision:
        entry = self.cache.get(query.owner, CacheKind.LISTING)
        # An empty listing written by another tool counts as a miss
        if entry is not None and entry.payload:
            repos = list(entry.payload)
        else:
            try:
                repos = self.provider.list_all(query.owner, limit=self.thresholds.listing_limit)
            except Exception as e:
                logger.warning(f"Could not list repositories of {query.owner}: {str(e)}")
                repos = []
            # Empty listings are not cached so the next request retries
            if repos:
                self._store(query.owner, CacheKind.LISTING, repos)

        if not repos:
            return NoMatches(repo_count=repo_count, searched=False)
        return FullListing(items=to_items(repos, query.strip_owner_prefix), repo_count=repo_count)

    def _store(self, owner: str, kind: CacheKind, payload) -> None:
        try:
            self.cache.put(owner, kind, payload)
        except OSError as e:
            logger.warning(f"Could not write {kind.value} cache for {owner}: {str(e)}")


def refresh_listing(
    owner: str,
    provider: RepositoryDirectoryProvider,
    cache: CompletionCache,
    limit: int = 1000,
) -> List[str]:
    """Fetch the full listing of an owner and overwrite the cache.

    An empty listing is returned but not cached.

    Args:
        owner: User or organization login
        provider: Repository directory provider
        cache: Completion cache
        limit: Maximum number of repositories to fetch

    Returns:
        List[str]: The fetched repository identifiers

    Raises:
        ProviderError: If the listing fails
    """
    repos = provider.list_all(owner, limit=limit)
    if not repos:
        logger.warning(f"No repositories found for {owner}, cache left unchanged")
        return repos
    cache.put(owner, CacheKind.LISTING, repos)
    logger.info(f"Cached {len(repos)} repositories for {owner}")
    return repos


def build_query(current_word: str, current_user_resolver: Callable[[], Optional[str]]) -> Optional[CompletionQuery]:
    """Build a completion query from the word being completed.

    ``owner/prefix`` completes within that owner and keeps full names.
    Anything else completes the current user's repositories with the owner
    prefix stripped.

    Args:
        current_word: Partial word under the cursor
        current_user_resolver: Returns the current user's login, or None

    Returns:
        Optional[CompletionQuery]: The query, or None if the current user is needed but unknown
    """
    if "/" in current_word:
        owner, prefix = current_word.split("/", 1)
        if owner:
            return CompletionQuery(owner=owner, typed_prefix=prefix, strip_owner_prefix=False, description=owner)

    user = current_user_resolver()
    if not user:
        return None
    return CompletionQuery(owner=user, typed_prefix=current_word, strip_owner_prefix=True, description="Your GitHub")


def render_decision(decision: CompletionDecision, query: CompletionQuery) -> List[str]:
    """Render a decision as lines for the shell integration.

    The first line is ``describe<TAB>label`` followed by one
    ``value<TAB>full_name`` line per candidate, or a single
    ``message<TAB>text`` line.

    Args:
        decision: Outcome of CompletionSourceSelector.select
        query: The query the decision answers

    Returns:
        List[str]: Output lines
    """
    label = query.label

    if isinstance(decision, IncrementalSearch):
        header = (
            f"Search results for {label} ({decision.repo_count}+ repos, "
            f"showing matches for '{query.typed_prefix}')"
        )
        return [f"describe\t{header}"] + [f"{item.value}\t{item.full_name}" for item in decision.items]

    if isinstance(decision, FullListing):
        header = f"{label} repositories ({len(decision.items)} repos)"
        return [f"describe\t{header}"] + [f"{item.value}\t{item.full_name}" for item in decision.items]

    if isinstance(decision, PromptMoreChars):
        return [f"message\tType at least {decision.min_chars} characters to search {label}'s {decision.repo_count}+ repos"]

    if decision.searched:
        return [f"message\tNo matches found. Keep typing to search {label}'s {decision.repo_count}+ repos..."]
    return [f"message\tNo repositories found for {label}"]
