"""
gitc - Clone repositories into an organized host/owner/repo layout.

This package provides functionality to:
1. Resolve short-hand repository references against a default host
2. Clone repositories into a deterministic directory structure
3. Open a tmux session in the cloned repository
4. Drive shell completion from a cached or searched listing of repositories
"""

__version__ = "0.1.0"
