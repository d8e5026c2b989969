"""
Repository management module for gitc.

This package handles cloning repositories into the host/owner/repo layout,
either directly or inside a terminal multiplexer session.
"""

from gitc.repo_manager.git_repo import Cloner, GitPythonClient, VersionControlClient, clone_repository

__all__ = ["Cloner", "GitPythonClient", "VersionControlClient", "clone_repository"]
