"""
Schemas for gitc.

This module defines the data structures shared by the reference parser, the
completion cache and the completion source selector.
"""

import os
from enum import Enum
from typing import List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# Define CacheKind enum
class CacheKind(str, Enum):
    """Kind of value stored in the completion cache."""
    LISTING = "listing"
    COUNT = "count"


# Define RepoReference class
class RepoReference(BaseModel):
    """Canonical clone target resolved from user input."""
    model_config = ConfigDict(frozen=True)

    raw_input: str
    host: str
    owner: str
    name: str
    clone_url: str

    @property
    def local_path(self) -> Tuple[str, str, str]:
        """The (host, owner, name) segments of the clone destination."""
        return (self.host, self.owner, self.name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def session_name(self) -> str:
        return self.name

    def destination(self, base_dir: str) -> str:
        """Get the clone destination under a base directory.

        Args:
            base_dir: Base clone directory

        Returns:
            str: base_dir/host/owner/name
        """
        return os.path.join(base_dir, *self.local_path)


# Define CacheEntry class
class CacheEntry(BaseModel):
    """A cached repository listing or repository count for one owner."""
    owner: str
    kind: CacheKind
    payload: Union[List[str], int]
    written_at: float


# Define Thresholds class
class Thresholds(BaseModel):
    """Limits that drive the full-listing versus incremental-search decision."""
    max_repos_for_full_listing: int = 500
    min_search_chars: int = 2
    search_limit: int = 50
    listing_limit: int = 1000


# Define CompletionQuery class
class CompletionQuery(BaseModel):
    """A single completion request."""
    owner: str
    typed_prefix: str = ""
    strip_owner_prefix: bool = False
    description: str = ""

    @property
    def label(self) -> str:
        return self.description or self.owner


# Define CompletionItem class
class CompletionItem(BaseModel):
    """A completion candidate.

    ``value`` is what gets inserted on the command line, ``full_name`` is the
    ``owner/name`` identifier used for the actual clone.
    """
    value: str
    full_name: str


class FullListing(BaseModel):
    """Every repository of the owner, served from the cache or a full fetch."""
    kind: Literal["full_listing"] = "full_listing"
    items: List[CompletionItem]
    repo_count: int = 0


class IncrementalSearch(BaseModel):
    """Remote search results for the typed prefix."""
    kind: Literal["incremental_search"] = "incremental_search"
    items: List[CompletionItem]
    repo_count: int = 0


class PromptMoreChars(BaseModel):
    """The prefix is too short to search an owner with many repositories."""
    kind: Literal["prompt_more_chars"] = "prompt_more_chars"
    min_chars: int
    repo_count: int = 0


class NoMatches(BaseModel):
    """Nothing to offer; ``searched`` tells whether a remote search was run."""
    kind: Literal["no_matches"] = "no_matches"
    repo_count: int = 0
    searched: bool = False


CompletionDecision = Union[FullListing, IncrementalSearch, PromptMoreChars, NoMatches]


# Define CloneResult class
class CloneResult(BaseModel):
    """Outcome of a clone request."""
    reference: RepoReference
    destination: str
    in_session: bool = False
    extra_args: List[str] = Field(default_factory=list)
