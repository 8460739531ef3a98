"""Repository synchronization logic for githubby backups.

This module converges local working copies to the state of their remote
repositories and drives a backup over every repository of an account.
"""

from __future__ import annotations

import enum
import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import DRY_RUN_DELAY
from .errors import SyncFailure
from .git import GitError, clone_repository, open_repository
from .github import GitHubClient
from .models import RepositoryDescriptor
from .reporting import LoggingReporter, Reporter

logger = logging.getLogger(__name__)


class SyncStatus(enum.Enum):
    CLONED = "cloned"
    UPDATED = "updated"
    ALREADY_UP_TO_DATE = "already up to date"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one call to RepositorySyncEngine.sync."""

    status: SyncStatus
    reason: Optional[str] = None
    attempts: int = 1

    @property
    def is_success(self) -> bool:
        return self.status is not SyncStatus.FAILED


class RepositorySyncEngine:
    """Clone-or-update state machine for a single working copy.

    A sync probes the local path, then clones a fresh copy or resets and
    force-pulls the existing one. Any failure on the first attempt is
    treated as inconsistent local state: the directory is deleted and the
    whole sequence runs once more. A failure on that second attempt is
    returned as a FAILED outcome rather than raised.
    """

    def __init__(self, protocol: str = "https", recurse_submodules: bool = True):
        """Initialize the engine.

        Args:
            protocol: Transport to clone with, one of https, ssh or git
            recurse_submodules: Clone and update submodules as well
        """
        self.protocol = protocol
        self.recurse_submodules = recurse_submodules

    def sync(
        self,
        repository: RepositoryDescriptor,
        local_path: Path,
        allow_retry: bool = True,
    ) -> SyncOutcome:
        """Converge ``local_path`` to the remote state of ``repository``.

        Args:
            repository: Remote repository to mirror
            local_path: Directory holding the working copy
            allow_retry: Delete and start over once if the first attempt fails

        Returns:
            Outcome describing what happened
        """
        max_attempts = 2 if allow_retry else 1
        error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                logger.warning(
                    f"Retrying {repository.full_name} from scratch after error: {error}"
                )
                try:
                    self._remove(local_path)
                except OSError as e:
                    error = e
                    break

            try:
                status = self._converge(repository, local_path)
            except (GitError, OSError) as e:
                logger.debug(f"Attempt {attempt} for {repository.full_name} failed: {e}")
                error = e
                continue

            return SyncOutcome(status, attempts=attempt)

        logger.debug(f"Giving up on {repository.full_name}: {error}")
        return SyncOutcome(SyncStatus.FAILED, reason=str(error), attempts=attempt)

    def _converge(self, repository: RepositoryDescriptor, local_path: Path) -> SyncStatus:
        """Run one pass of probe, then clone or update.

        Raises:
            GitError: If any git step fails
            OSError: If the filesystem refuses a write
        """
        logger.debug(f"Checking if a local repository exists at {local_path}")
        try:
            local = open_repository(local_path)
        except GitError as e:
            logger.debug(f"No usable repository at {local_path} ({e}), cloning")
            url = repository.transport_url(self.protocol)
            clone_repository(url, local_path, recurse_submodules=self.recurse_submodules)
            return SyncStatus.CLONED

        logger.debug(f"Resetting and pulling {local_path}")
        worktree = local.working_tree()
        worktree.reset()
        if worktree.pull(force=True):
            return SyncStatus.UPDATED
        return SyncStatus.ALREADY_UP_TO_DATE

    @staticmethod
    def _remove(local_path: Path) -> None:
        """Delete the working copy and everything below it."""
        if local_path.is_symlink() or local_path.is_file():
            local_path.unlink()
        elif local_path.exists():
            shutil.rmtree(local_path)


class BackupResult:
    """Result of a backup run.

    Contains the repositories that converged and those that did not.
    """

    def __init__(self):
        """Initialize empty backup result."""
        self.succeeded: list[tuple[str, Optional[SyncStatus]]] = []
        self.failed: list[SyncFailure] = []

    def add_success(self, name: str, status: Optional[SyncStatus]) -> None:
        """Record a repository that converged, status None when simulated."""
        self.succeeded.append((name, status))

    def add_failure(self, failure: SyncFailure) -> None:
        self.failed.append(failure)

    @property
    def success_count(self) -> int:
        """Number of repositories backed up."""
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        """Number of repositories that failed."""
        return len(self.failed)

    @property
    def is_success(self) -> bool:
        """True if every repository was backed up."""
        return self.failure_count == 0

    def __str__(self) -> str:
        """String representation of backup results."""
        return (
            f"Backup completed: {self.success_count} successful, "
            f"{self.failure_count} failed"
        )


class RepositoryBackup:
    """Backs up every repository of a user or organization.

    Fetches the repository list once, then syncs each repository in turn
    into ``<output>/<host>/<owner>/<name>``. One repository failing never
    stops the others.
    """

    def __init__(
        self,
        github_client: Optional[GitHubClient] = None,
        engine: Optional[RepositorySyncEngine] = None,
        reporter: Optional[Reporter] = None,
        timeout: int = 30,
        github_token: Optional[str] = None,
        dry_run_delay: float = DRY_RUN_DELAY,
    ):
        """Initialize the backup runner.

        Args:
            github_client: Optional GitHub client instance
            engine: Optional sync engine, defaults to https cloning
            reporter: Receiver for progress events, defaults to logging
            timeout: Request timeout in seconds
            github_token: Optional GitHub token
            dry_run_delay: Seconds to pause per repository in dry-run mode
        """
        self.github_client = github_client or GitHubClient(
            timeout=timeout, token=github_token
        )
        self._owns_client = github_client is None
        self.engine = engine or RepositorySyncEngine()
        self.reporter = reporter or LoggingReporter()
        self.dry_run_delay = dry_run_delay

    def run(
        self,
        owner: str,
        output_dir: Path,
        limit: Optional[int] = None,
        dry_run: bool = False,
        allow_empty: bool = False,
    ) -> BackupResult:
        """Back up the repositories of ``owner`` into ``output_dir``.

        Args:
            owner: User or organization login
            output_dir: Root directory for backups
            limit: Maximum number of repositories to back up
            dry_run: Walk the list without touching disk or cloning
            allow_empty: Treat an account without repositories as success

        Returns:
            Result object containing success/failure information

        Raises:
            FetchError: If the repository list could not be fetched
            EmptyResultError: If the account has no repositories and
                ``allow_empty`` is False
        """
        result = BackupResult()

        logger.info(f"Fetching repositories for {owner}")
        repositories = self.github_client.get_repositories(
            owner, limit=limit, allow_empty=allow_empty
        )

        if dry_run:
            logger.info("DRY RUN MODE - No repositories will be cloned or updated")

        self.reporter.started("backup", len(repositories), dry_run=dry_run)

        for repository in repositories:
            backup_path = repository.backup_path(output_dir)
            logger.debug(f"Backing up {repository.full_name} to {backup_path}")

            if dry_run:
                time.sleep(self.dry_run_delay)
                result.add_success(repository.full_name, None)
                self.reporter.item_done(repository.full_name, "simulated")
                continue

            try:
                outcome = self.engine.sync(repository, backup_path)
            except Exception as e:
                logger.debug(f"Sync of {repository.full_name} raised: {e}")
                outcome = SyncOutcome(SyncStatus.FAILED, reason=str(e))

            if outcome.is_success:
                result.add_success(repository.full_name, outcome.status)
                self.reporter.item_done(repository.full_name, outcome.status.value)
            else:
                failure = SyncFailure(repository.full_name, outcome.reason or "unknown error")
                result.add_failure(failure)
                self.reporter.item_done(repository.full_name, outcome.status.value, failure)

        self.reporter.finished("backup", result.success_count, result.failure_count)
        logger.info(str(result))
        return result

    def close(self) -> None:
        """Clean up resources."""
        if self._owns_client:
            self.github_client.close()

    def __enter__(self) -> RepositoryBackup:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
