"""
Errors raised by gitc.

Only ParseError, UnresolvedUserError and CloneError are shown to the user as
failures. ProviderError and SessionError are caught internally and degrade to
empty completion results or direct execution.
"""


class GitcError(Exception):
    """Base exception for all gitc errors."""
    pass


class ParseError(GitcError):
    """A repository reference could not be parsed."""
    pass


class UnresolvedUserError(GitcError):
    """The current hosting-provider user could not be determined."""
    pass


class CloneError(GitcError):
    """The underlying clone failed."""
    pass


class ProviderError(GitcError):
    """A repository directory provider call failed."""
    pass


class SessionError(GitcError):
    """The terminal multiplexer is unavailable or failed."""
    pass


class ConfigurationError(GitcError):
    """Errors in configuration."""
    pass
