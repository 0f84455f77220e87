"""Local git working tree queries."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_NAME = "origin"


class GitCommandError(RuntimeError):
    """Raised when a git command cannot be run or exits with an error."""


class RepositoryState(Protocol):
    """Read-only view of the local repository used for lookups."""

    def remote_url(self) -> str:
        """Return the URL of the upstream remote."""

    def head_commit(self) -> str:
        """Return the commit id currently checked out."""


class GitRepository:
    """Query a working tree by running the ``git`` binary."""

    def __init__(
        self,
        repo_path: Path | None = None,
        *,
        remote_name: str = DEFAULT_REMOTE_NAME,
    ) -> None:
        self.repo_path = repo_path
        self.remote_name = remote_name

    def _run_git_command(self, args: list[str]) -> str:
        """Run git with ``args`` and return trimmed stdout."""
        command = ["git", *args]
        logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as error:
            raise GitCommandError("git executable not found on PATH.") from error
        except subprocess.CalledProcessError as error:
            stderr = (error.stderr or "").strip()
            raise GitCommandError(
                f"Git command failed: {' '.join(command)}: {stderr or error.returncode}"
            ) from error
        return result.stdout.strip()

    def remote_url(self) -> str:
        return self._run_git_command(["remote", "get-url", self.remote_name, "--all"])

    def head_commit(self) -> str:
        return self._run_git_command(["rev-parse", "HEAD"])
