"""Exception types raised by githubby.

Listing errors abort a whole run. Sync and cleanup failures are reported
per item and never stop the loop that produced them.
"""

from __future__ import annotations

from typing import Optional


class GithubbyError(Exception):
    """Base class for all githubby errors."""


class FetchError(GithubbyError):
    """A remote listing call failed."""


class EmptyResultError(GithubbyError):
    """A listing completed but yielded no items."""


class SyncFailure(GithubbyError):
    """A repository did not converge after the allowed retry."""

    def __init__(self, repository: str, reason: str):
        self.repository = repository
        self.reason = reason
        super().__init__(f"{repository}: {reason}")


class CleanupFailure(GithubbyError):
    """Deleting a release or its tag failed.

    ``stage`` is ``"release"`` when the release itself could not be deleted
    (the tag is left untouched), or ``"tag"`` when the release is already
    gone but its tag remains.
    """

    def __init__(self, tag_name: str, stage: str, cause: Optional[Exception] = None):
        self.tag_name = tag_name
        self.stage = stage
        self.cause = cause
        super().__init__(f"Failed to delete {stage} for {tag_name}: {cause}")
