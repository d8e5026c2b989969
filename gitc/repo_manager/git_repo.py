"""
Repository cloner for gitc.

This module clones a resolved repository reference into
``clone_dir/host/owner/name``, inside a tmux session when one is available and
directly otherwise.
"""

import logging
import os
import shlex
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import git
from git import Repo
from git.exc import UnsafeOptionError

from gitc.errors import CloneError, SessionError
from gitc.schemas import CloneResult, RepoReference
from gitc.session import TerminalMultiplexer

logger = logging.getLogger("gitc.repo_manager")


class VersionControlClient(ABC):
    """Base class for version control clients."""

    @abstractmethod
    def clone(self, url: str, destination: str, extra_args: Sequence[str] = ()) -> None:
        """Clone a repository.

        Args:
            url: Clone URL
            destination: Directory to clone into
            extra_args: Additional flags for the clone command

        Raises:
            CloneError: If cloning fails
        """
        pass

    @abstractmethod
    def build_command(self, url: str, destination: str, extra_args: Sequence[str] = ()) -> str:
        """Build the shell command line that performs the same clone."""
        pass


class GitPythonClient(VersionControlClient):
    """Clone with GitPython."""

    def __init__(self, git_executable: Optional[str] = None):
        """Initialize the client.

        Args:
            git_executable: Path to git executable (if not in PATH)
        """
        self.git_executable = git_executable
        if git_executable:
            git.refresh(git_executable)

    def clone(self, url: str, destination: str, extra_args: Sequence[str] = ()) -> None:
        logger.info(f"Cloning {url} into {destination}")
        try:
            Repo.clone_from(url, destination, multi_options=list(extra_args) or None)
        except git.GitCommandError as e:
            stderr = (e.stderr or "").strip()
            if "Authentication failed" in stderr or "Permission denied" in stderr:
                raise CloneError(f"Authentication failed while cloning {url}") from e
            raise CloneError(f"git clone failed for {url}: {stderr or e}") from e
        except UnsafeOptionError as e:
            raise CloneError(f"Refusing unsafe clone option: {str(e)}") from e

    def build_command(self, url: str, destination: str, extra_args: Sequence[str] = ()) -> str:
        executable = self.git_executable or "git"
        parts = [executable, "clone", url, destination, *extra_args]
        return " ".join(shlex.quote(part) for part in parts)


class Cloner:
    """Clones references into the organized directory layout.

    When a multiplexer is given and available, the clone runs inside a
    session named after the repository and the session changes into the new
    directory. Otherwise, or when the session cannot be started, the clone
    runs in this process.
    """

    def __init__(
        self,
        clone_dir: str,
        vcs: VersionControlClient,
        multiplexer: Optional[TerminalMultiplexer] = None,
    ):
        self.clone_dir = clone_dir
        self.vcs = vcs
        self.multiplexer = multiplexer

    def clone(self, reference: RepoReference, extra_args: Sequence[str] = ()) -> CloneResult:
        """Clone a repository reference.

        Args:
            reference: Canonical repository reference
            extra_args: Additional flags for the clone command

        Returns:
            CloneResult: Where the repository went and how it was cloned

        Raises:
            CloneError: If the destination is taken or cloning fails
        """
        destination = reference.destination(self.clone_dir)
        if os.path.isdir(destination) and os.listdir(destination):
            raise CloneError(f"Destination already exists and is not empty: {destination}")

        try:
            os.makedirs(os.path.dirname(destination), exist_ok=True)
        except OSError as e:
            raise CloneError(f"Could not create {os.path.dirname(destination)}: {str(e)}") from e

        args: List[str] = list(extra_args)

        if self.multiplexer is not None and self.multiplexer.is_available():
            command = f"{self.vcs.build_command(reference.clone_url, destination, args)} && cd {shlex.quote(destination)}"
            try:
                self.multiplexer.run_in_session(reference.session_name, command)
                return CloneResult(reference=reference, destination=destination, in_session=True, extra_args=args)
            except SessionError as e:
                logger.warning(f"Could not use terminal session, cloning directly: {str(e)}")
        else:
            logger.debug("No terminal multiplexer available, cloning directly")

        self.vcs.clone(reference.clone_url, destination, args)
        return CloneResult(reference=reference, destination=destination, in_session=False, extra_args=args)


def clone_repository(
    reference: RepoReference,
    clone_dir: str,
    extra_args: Sequence[str] = (),
    multiplexer: Optional[TerminalMultiplexer] = None,
    git_executable: Optional[str] = None,
) -> CloneResult:
    """Clone a repository reference with GitPython.

    Args:
        reference: Canonical repository reference
        clone_dir: Base clone directory
        extra_args: Additional flags for the clone command
        multiplexer: Terminal multiplexer to run the clone in, if any
        git_executable: Path to git executable (if not in PATH)

    Returns:
        CloneResult: Where the repository went and how it was cloned

    Raises:
        CloneError: If cloning fails
    """
    cloner = Cloner(clone_dir, GitPythonClient(git_executable), multiplexer)
    return cloner.clone(reference, extra_args)
