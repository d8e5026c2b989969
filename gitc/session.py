"""
Terminal multiplexer sessions for gitc.

This module opens (or attaches to) a named tmux session and runs a command
inside it.
"""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional

from gitc.errors import SessionError

logger = logging.getLogger("gitc.session")


class TerminalMultiplexer(ABC):
    """Base class for terminal multiplexers."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the multiplexer can be used."""
        pass

    @abstractmethod
    def run_in_session(self, session_name: str, command: str) -> None:
        """Run a shell command in a named session and attach to it.

        Once the command has been sent, a failure to attach is only logged.

        Args:
            session_name: Session name
            command: Shell command line to type into the session

        Raises:
            SessionError: If the multiplexer is unavailable or fails
        """
        pass


class TmuxMultiplexer(TerminalMultiplexer):
    """tmux backed multiplexer."""

    def __init__(self, executable: Optional[str] = None):
        self.executable = executable or shutil.which("tmux")

    def is_available(self) -> bool:
        return bool(self.executable)

    def has_session(self, session_name: str) -> bool:
        if not self.is_available():
            return False
        result = subprocess.run(
            [self.executable, "has-session", "-t", f"={session_name}"],
            capture_output=True,
        )
        return result.returncode == 0

    def run_in_session(self, session_name: str, command: str) -> None:
        if not self.is_available():
            raise SessionError("tmux is not installed")

        session_name = self.sanitize_session_name(session_name)

        if self.has_session(session_name):
            logger.info(f"tmux session '{session_name}' already exists, reusing it")
        else:
            self._tmux("new-session", "-d", "-s", session_name)

        self._tmux("send-keys", "-t", f"={session_name}:", command, "C-m")

        # The command is already running, failing to attach must not start it again
        try:
            # Nested attach is refused by tmux, switch the client instead
            if os.environ.get("TMUX"):
                self._tmux("switch-client", "-t", f"={session_name}", capture=False)
            else:
                self._tmux("attach-session", "-t", f"={session_name}", capture=False)
        except SessionError as e:
            logger.warning(f"{str(e)}. Attach later with: tmux attach -t {session_name}")

    @staticmethod
    def sanitize_session_name(session_name: str) -> str:
        """tmux does not allow '.' or ':' in session names."""
        return session_name.replace(".", "_").replace(":", "_") or "gitc"

    def _tmux(self, *args: str, capture: bool = True) -> None:
        cmd: List[str] = [self.executable, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, check=True, capture_output=capture)
        except (OSError, subprocess.CalledProcessError) as e:
            stderr = getattr(e, "stderr", None)
            detail = stderr.decode(errors="replace").strip() if stderr else str(e)
            raise SessionError(f"tmux {args[0]} failed: {detail}") from e
