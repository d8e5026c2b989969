"""
Repository reference parser for gitc.

This module turns user input such as ``repo``, ``owner/repo``,
``https://host/owner/repo.git`` or ``git@host:owner/repo.git`` into a
canonical RepoReference.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from gitc.errors import ParseError, UnresolvedUserError
from gitc.schemas import RepoReference

logger = logging.getLogger("gitc.reference")

CurrentUserResolver = Callable[[], Optional[str]]

# scheme://[userinfo@]host[:port]/path
_URL_PATTERN = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*)://(?:[^@/]+@)?(?P<host>[^/:@]+)(?::\d*)?/(?P<path>.*)$")

# user@host:path, scp-like syntax used by ssh remotes
_SSH_PATTERN = re.compile(r"^(?P<user>[^@/:\s]+)@(?P<host>[^@/:\s]+):(?P<path>[^:@]+)$")

_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_HOST_PATTERN = re.compile(r"^[A-Za-z0-9.-]+$")


def _split_path(path: str) -> List[str]:
    """Split a repository path into non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def _strip_git_suffix(name: str) -> str:
    if name.endswith(".git"):
        return name[: -len(".git")]
    return name


def _check_segment(value: str, what: str, raw: str) -> str:
    if not value or value in (".", "..") or not _SEGMENT_PATTERN.match(value):
        raise ParseError(f"Invalid {what} '{value}' in repository reference '{raw}'")
    return value


def _check_host(host: str, raw: str) -> str:
    if not host or not _HOST_PATTERN.match(host) or host.startswith(".") or ".." in host:
        raise ParseError(f"Invalid host '{host}' in repository reference '{raw}'")
    return host


def _owner_and_name(path: str, raw: str) -> Tuple[str, str]:
    """Extract owner and name from the path part of a URL or ssh remote."""
    segments = _split_path(path)
    if segments:
        segments[-1] = _strip_git_suffix(segments[-1])
    if len(segments) < 2:
        raise ParseError(f"Repository reference '{raw}' must include both an owner and a repository name")
    return _check_segment(segments[0], "owner", raw), _check_segment(segments[1], "repository name", raw)


def synthesize_clone_url(host: str, owner: str, name: str) -> str:
    """Build the ssh clone URL used for short-hand references."""
    return f"git@{host}:{owner}/{name}.git"


def parse_reference(
    raw: str,
    default_host: str,
    current_user_resolver: CurrentUserResolver,
) -> RepoReference:
    """Parse a repository reference into a canonical clone target.

    Rules are tried in order and the first match wins:

    1. ``scheme://host/owner/name[.git]`` keeps the input as the clone URL.
    2. ``user@host:owner/name[.git]`` keeps the input as the clone URL.
    3. ``owner/name`` resolves against ``default_host``.
    4. A bare ``name`` is resolved for the current user on ``default_host``.

    Args:
        raw: Reference as typed by the user
        default_host: Host used for rules 3 and 4
        current_user_resolver: Returns the current user's login, or None

    Returns:
        RepoReference: The canonical reference

    Raises:
        ParseError: If the reference is malformed or ambiguous
        UnresolvedUserError: If a bare name is given and no current user is available
    """
    text = (raw or "").strip()
    if not text:
        raise ParseError("Repository reference is empty")
    if any(ch.isspace() for ch in text):
        raise ParseError(f"Repository reference '{raw}' must not contain whitespace")

    # Rule 1: full URL with a scheme
    if "://" in text:
        match = _URL_PATTERN.match(text)
        if not match:
            raise ParseError(f"Cannot parse repository URL '{raw}'")
        host = _check_host(match.group("host"), raw)
        owner, name = _owner_and_name(match.group("path"), raw)
        logger.debug(f"Parsed URL reference {text} as {host}/{owner}/{name}")
        return RepoReference(raw_input=text, host=host, owner=owner, name=name, clone_url=text)

    # Rule 2: ssh remote
    match = _SSH_PATTERN.match(text)
    if match:
        host = _check_host(match.group("host"), raw)
        owner, name = _owner_and_name(match.group("path"), raw)
        logger.debug(f"Parsed ssh reference {text} as {host}/{owner}/{name}")
        return RepoReference(raw_input=text, host=host, owner=owner, name=name, clone_url=text)

    # Anything else with a colon is ambiguous (port-qualified host without scheme, etc.)
    if ":" in text or "@" in text:
        raise ParseError(f"Ambiguous repository reference '{raw}'; use a full URL or git@host:owner/repo")

    host = _check_host(default_host, raw)
    segments = _split_path(text)

    # Rule 3: owner/name against the default host
    if "/" in text:
        if len(segments) != 2:
            raise ParseError(f"Repository reference '{raw}' must look like owner/repo")
        owner = _check_segment(segments[0], "owner", raw)
        name = _check_segment(_strip_git_suffix(segments[1]), "repository name", raw)
    # Rule 4: bare name for the current user
    else:
        name = _check_segment(_strip_git_suffix(text), "repository name", raw)
        user = current_user_resolver()
        if not user:
            raise UnresolvedUserError("Could not determine the current user. Set GITHUB_PAT or GITC_GITHUB_USER")
        owner = _check_segment(user.strip(), "owner", raw)

    return RepoReference(
        raw_input=text,
        host=host,
        owner=owner,
        name=name,
        clone_url=synthesize_clone_url(host, owner, name),
    )


class ReferenceParser:
    """Parser bound to a default host and a current-user resolver."""

    def __init__(self, default_host: str, current_user_resolver: CurrentUserResolver):
        self.default_host = default_host
        self.current_user_resolver = current_user_resolver

    def parse(self, raw: str) -> RepoReference:
        return parse_reference(raw, self.default_host, self.current_user_resolver)
