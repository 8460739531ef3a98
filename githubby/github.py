"""GitHub API client for listing repositories and managing releases.

This module wraps the GitHub REST API endpoints githubby needs: paged
listings of repositories and releases, and deletion of releases and tags.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import parse_qs, quote, urlparse

import requests

from .errors import FetchError
from .models import ReleaseDescriptor, RepositoryDescriptor
from .pagination import MAX_PAGE_SIZE, Page, aggregate

logger = logging.getLogger(__name__)


def _next_page(response: requests.Response) -> int:
    """Read the next page number from a response's ``Link`` header."""
    next_link = response.links.get("next")
    if not next_link:
        return 0
    values = parse_qs(urlparse(next_link["url"]).query).get("page")
    if not values:
        return 0
    try:
        return int(values[0])
    except ValueError:
        return 0


def _rate_limit_message(response: requests.Response) -> Optional[str]:
    """Describe an exhausted rate limit, or return None if it is not one."""
    if response.status_code not in (403, 429):
        return None
    if response.headers.get("X-RateLimit-Remaining") != "0":
        return None
    reset = response.headers.get("X-RateLimit-Reset")
    if reset and reset.isdigit():
        reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        return f"GitHub API rate limit exceeded, resets at {reset_at.isoformat()}"
    return "GitHub API rate limit exceeded"


class GitHubClient:
    """Client for the GitHub REST API.

    Uses a token from the constructor or the ``GITHUB_TOKEN`` environment
    variable. Listing works anonymously for public data; deleting releases
    and tags needs a token with write access.
    """

    API_URL = "https://api.github.com"

    def __init__(self, timeout: int = 30, token: Optional[str] = None):
        """Initialize the GitHub client.

        Args:
            timeout: Request timeout in seconds
            token: Optional GitHub token, defaults to ``$GITHUB_TOKEN``
        """
        self.timeout = timeout
        self.token = token or os.getenv("GITHUB_TOKEN")
        self.session = requests.Session()

        self.session.headers.update(
            {
                "User-Agent": "githubby/1.0.0",
                "Accept": "application/vnd.github+json",
            }
        )

        if self.token:
            self.session.headers.update({"Authorization": f"token {self.token}"})
            logger.debug("GitHub token configured")

    def _get_page(self, url: str, page: int, per_page: int) -> Page[dict[str, Any]]:
        """Fetch one page of a list endpoint.

        Raises:
            FetchError: If the request fails or the body is not a JSON list
        """
        params = {"page": page, "per_page": per_page}
        logger.debug(f"GET {url} page={page} per_page={per_page}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        rate_limited = _rate_limit_message(response)
        if rate_limited:
            raise FetchError(rate_limited)

        try:
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, list):
            raise FetchError(f"Expected a list from {url}, got {type(data).__name__}")

        return Page(items=data, page=page, next_page=_next_page(response))

    def list_repositories(
        self, owner: str, page: int = 1, per_page: int = MAX_PAGE_SIZE
    ) -> Page[RepositoryDescriptor]:
        """List one page of repositories for a user or organization.

        Args:
            owner: User or organization login
            page: Page number, starting at 1
            per_page: Number of results per page

        Returns:
            The requested page of repository descriptors

        Raises:
            FetchError: If the page could not be fetched or parsed
        """
        url = f"{self.API_URL}/users/{quote(owner)}/repos"
        raw = self._get_page(url, page, per_page)
        try:
            items = [RepositoryDescriptor.from_api(item) for item in raw.items]
        except ValueError as e:
            raise FetchError(str(e)) from e
        return Page(items=items, page=raw.page, next_page=raw.next_page)

    def list_releases(
        self, owner: str, repo: str, page: int = 1, per_page: int = MAX_PAGE_SIZE
    ) -> Page[ReleaseDescriptor]:
        """List one page of releases for a repository.

        Raises:
            FetchError: If the page could not be fetched or parsed
        """
        url = f"{self.API_URL}/repos/{quote(owner)}/{quote(repo)}/releases"
        raw = self._get_page(url, page, per_page)
        try:
            items = [ReleaseDescriptor.from_api(item) for item in raw.items]
        except ValueError as e:
            raise FetchError(str(e)) from e
        return Page(items=items, page=raw.page, next_page=raw.next_page)

    def get_repositories(
        self, owner: str, limit: Optional[int] = None, allow_empty: bool = False
    ) -> list[RepositoryDescriptor]:
        """Return every repository of ``owner``, up to ``limit``.

        Example:
            >>> client = GitHubClient()
            >>> repos = client.get_repositories("octocat", limit=5)
            >>> print(repos[0].full_name)
            'octocat/Hello-World'
        """
        repositories = aggregate(
            lambda page, per_page: self.list_repositories(owner, page, per_page),
            limit=limit,
            allow_empty=allow_empty,
        )
        logger.info(f"Found {len(repositories)} repositories for {owner}")
        return repositories

    def get_releases(
        self, owner: str, repo: str, allow_empty: bool = False
    ) -> list[ReleaseDescriptor]:
        """Return every release of ``owner/repo``."""
        releases = aggregate(
            lambda page, per_page: self.list_releases(owner, repo, page, per_page),
            allow_empty=allow_empty,
        )
        logger.info(f"Found {len(releases)} releases for {owner}/{repo}")
        return releases

    def delete_release(self, release: ReleaseDescriptor) -> None:
        """Delete a release through its API URL.

        Raises:
            requests.RequestException: If the deletion fails
        """
        logger.debug(f"Deleting release {release.tag_name}: {release.url}")
        response = self.session.delete(release.url, timeout=self.timeout)
        response.raise_for_status()

    def delete_tag(self, owner: str, repo: str, tag_name: str) -> None:
        """Delete the ``refs/tags/<tag_name>`` reference of a repository.

        Raises:
            requests.RequestException: If the deletion fails
        """
        url = (
            f"{self.API_URL}/repos/{quote(owner)}/{quote(repo)}"
            f"/git/refs/tags/{quote(tag_name)}"
        )
        logger.debug(f"Deleting tag {tag_name}: {url}")
        response = self.session.delete(url, timeout=self.timeout)
        response.raise_for_status()

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> GitHubClient:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
