"""Local git operations for repository backups.

Thin wrappers around the ``git`` command line used to open, clone, reset
and force-pull working copies.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class GitError(Exception):
    """A git command failed or a path is not a usable working copy."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr.strip()
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


def _run_git(args: list[str], cwd: Optional[Path] = None) -> str:
    """Run a git command and return its stripped stdout.

    Args:
        args: Arguments passed after ``git``
        cwd: Working directory for the command

    Returns:
        Command output with surrounding whitespace removed

    Raises:
        GitError: If git is missing or exits with a non-zero status
    """
    command = ["git", *args]
    logger.debug(f"Running {' '.join(command)} in {cwd or Path.cwd()}")
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        raise GitError(f"git {args[0]} failed", e.stderr or "") from e
    return result.stdout.strip()


class Worktree:
    """The checked-out files of a local repository."""

    def __init__(self, path: Path):
        self.path = path

    def reset(self) -> None:
        """Discard local modifications by hard resetting to HEAD."""
        _run_git(["reset", "--hard", "HEAD"], cwd=self.path)

    def pull(self, force: bool = True) -> bool:
        """Fetch upstream and move the working tree to it.

        With ``force`` the branch is hard reset to its upstream instead of
        merged, so diverged local history is discarded.

        Returns:
            True if the working tree changed, False if it was already up to date

        Raises:
            GitError: If fetching or applying the upstream state fails
        """
        fetch_args = ["fetch", "--prune", "origin"]
        if force:
            fetch_args.insert(1, "--force")
        _run_git(fetch_args, cwd=self.path)

        head = _run_git(["rev-parse", "HEAD"], cwd=self.path)
        upstream = _run_git(["rev-parse", "@{upstream}"], cwd=self.path)
        if head == upstream:
            return False

        if force:
            _run_git(["reset", "--hard", "@{upstream}"], cwd=self.path)
        else:
            _run_git(["merge", "--ff-only", "@{upstream}"], cwd=self.path)
        _run_git(
            ["submodule", "update", "--init", "--recursive", "--force"],
            cwd=self.path,
        )
        logger.debug(f"Moved {self.path} from {head[:8]} to {upstream[:8]}")
        return True


class LocalRepository:
    """An existing git repository rooted at ``path``."""

    def __init__(self, path: Path):
        self.path = path

    def working_tree(self) -> Worktree:
        """Return the working tree of this repository.

        Raises:
            GitError: If the repository is bare or its metadata is unreadable
        """
        inside = _run_git(["rev-parse", "--is-inside-work-tree"], cwd=self.path)
        if inside != "true":
            raise GitError(f"{self.path} has no working tree")
        return Worktree(self.path)


def open_repository(path: Path) -> LocalRepository:
    """Open ``path`` as an existing repository.

    The repository must be rooted exactly at ``path``; a directory that
    merely sits inside another repository is not accepted.

    Raises:
        GitError: If ``path`` does not hold a valid repository
    """
    if not path.is_dir():
        raise GitError(f"{path} does not exist")

    toplevel = _run_git(["rev-parse", "--show-toplevel"], cwd=path)
    if Path(toplevel).resolve() != path.resolve():
        raise GitError(f"{path} is not the root of a repository")

    return LocalRepository(path)


def clone_repository(url: str, path: Path, recurse_submodules: bool = True) -> None:
    """Clone ``url`` into ``path``.

    Args:
        url: Remote URL to clone from
        path: Destination directory, which must be absent or empty
        recurse_submodules: Also initialize and clone submodules

    Raises:
        GitError: If the clone fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    args = ["clone"]
    if recurse_submodules:
        args.append("--recurse-submodules")
    args.extend([url, str(path)])
    _run_git(args)
