"""Release cleanup for githubby.

Selects old releases of a repository and deletes each release together
with the tag it was created from.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests

from .config import DRY_RUN_DELAY
from .errors import CleanupFailure
from .github import GitHubClient
from .models import ReleaseDescriptor
from .reporting import LoggingReporter, Reporter

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ReleaseFilter:
    """Policy deciding which releases to delete.

    ``keep_count`` keeps the newest N releases; ``max_age_days`` selects
    releases created more than that many days ago. When both are set a
    release is only selected if it matches both.
    """

    max_age_days: Optional[int] = None
    keep_count: Optional[int] = None

    def __post_init__(self):
        if self.max_age_days is None and self.keep_count is None:
            raise ValueError("At least one of max_age_days or keep_count is required")
        if self.max_age_days is not None and self.max_age_days < 0:
            raise ValueError("max_age_days must not be negative")
        if self.keep_count is not None and self.keep_count < 0:
            raise ValueError("keep_count must not be negative")

    def select(
        self, releases: list[ReleaseDescriptor], now: Optional[datetime] = None
    ) -> list[ReleaseDescriptor]:
        """Return the releases to delete, newest first.

        Releases without a creation date are never selected by age.
        """
        now = now or datetime.now(timezone.utc)
        ordered = sorted(releases, key=lambda r: r.created_at or _EPOCH, reverse=True)

        selected = []
        for index, release in enumerate(ordered):
            if self.keep_count is not None and index < self.keep_count:
                continue
            if self.max_age_days is not None:
                if release.created_at is None:
                    continue
                if now - release.created_at <= timedelta(days=self.max_age_days):
                    continue
            selected.append(release)
        return selected


class ReleaseCleaner:
    """Deletes a release and then its tag as one logical unit."""

    def __init__(self, github_client: GitHubClient):
        self.github_client = github_client

    def remove_release(self, owner: str, repo: str, release: ReleaseDescriptor) -> None:
        """Delete ``release`` and then the tag it points at.

        The tag is only touched once the release is gone. If the tag
        deletion fails the release stays deleted and the tag remains.

        Raises:
            CleanupFailure: With ``stage`` set to ``"release"`` or ``"tag"``
        """
        try:
            self.github_client.delete_release(release)
        except requests.exceptions.RequestException as e:
            raise CleanupFailure(release.tag_name, "release", e) from e

        try:
            self.github_client.delete_tag(owner, repo, release.tag_name)
        except requests.exceptions.RequestException as e:
            raise CleanupFailure(release.tag_name, "tag", e) from e

        logger.debug(f"Deleted release and tag {release.tag_name} from {owner}/{repo}")


class CleanupResult:
    """Result of a cleanup run."""

    def __init__(self):
        self.total_releases = 0
        self.removed: list[str] = []
        self.failed: list[CleanupFailure] = []

    @property
    def success_count(self) -> int:
        return len(self.removed)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def is_success(self) -> bool:
        return self.failure_count == 0

    def __str__(self) -> str:
        return (
            f"Cleanup completed: {self.success_count} removed, "
            f"{self.failure_count} failed, {self.total_releases} releases checked"
        )


class ReleaseCleanup:
    """Removes the releases of a repository selected by a ReleaseFilter."""

    def __init__(
        self,
        github_client: GitHubClient,
        reporter: Optional[Reporter] = None,
        dry_run_delay: float = DRY_RUN_DELAY,
    ):
        self.github_client = github_client
        self.cleaner = ReleaseCleaner(github_client)
        self.reporter = reporter or LoggingReporter()
        self.dry_run_delay = dry_run_delay

    def run(
        self,
        owner: str,
        repo: str,
        release_filter: ReleaseFilter,
        dry_run: bool = False,
        allow_empty: bool = False,
    ) -> CleanupResult:
        """Delete the releases of ``owner/repo`` that match ``release_filter``.

        Args:
            owner: Repository owner
            repo: Repository name
            release_filter: Policy selecting releases to delete
            dry_run: List what would be deleted without deleting it
            allow_empty: Treat a repository without releases as success

        Returns:
            Result object listing removed and failed releases

        Raises:
            FetchError: If the release list could not be fetched
            EmptyResultError: If there are no releases and ``allow_empty``
                is False
        """
        result = CleanupResult()

        releases = self.github_client.get_releases(owner, repo, allow_empty=allow_empty)
        result.total_releases = len(releases)
        selected = release_filter.select(releases)
        logger.info(
            f"Selected {len(selected)} of {len(releases)} releases of {owner}/{repo} for removal"
        )

        if dry_run:
            logger.info("DRY RUN MODE - No releases will be deleted")

        self.reporter.started("cleanup", len(selected), dry_run=dry_run)

        for release in selected:
            if dry_run:
                logger.info(f"Would remove release {release.tag_name}")
                time.sleep(self.dry_run_delay)
                result.removed.append(release.tag_name)
                self.reporter.item_done(release.tag_name, "simulated")
                continue

            try:
                self.cleaner.remove_release(owner, repo, release)
            except CleanupFailure as e:
                result.failed.append(e)
                self.reporter.item_done(release.tag_name, "failed", e)
                continue

            result.removed.append(release.tag_name)
            self.reporter.item_done(release.tag_name, "removed")

        self.reporter.finished("cleanup", result.success_count, result.failure_count)
        logger.info(str(result))
        return result
