"""Descriptors for remote repositories and releases."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

PROTOCOLS = ("https", "ssh", "git")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO 8601 timestamp such as ``2024-01-31T12:00:00Z``."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Identity of one remote repository."""

    owner: str
    name: str
    clone_url: str
    ssh_url: str = ""
    git_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RepositoryDescriptor:
        """Build a descriptor from a GitHub repository payload.

        Raises:
            ValueError: If required fields are missing
        """
        try:
            return cls(
                owner=data["owner"]["login"],
                name=data["name"],
                clone_url=data["clone_url"],
                ssh_url=data.get("ssh_url") or "",
                git_url=data.get("git_url") or "",
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed repository payload: missing {e}") from e

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def host(self) -> str:
        """Host name the repository is served from, e.g. ``github.com``."""
        return urlparse(self.clone_url).hostname or "github.com"

    def transport_url(self, protocol: str = "https") -> str:
        """Return the URL to clone from for the given protocol.

        Falls back to the https clone URL when the payload carried no URL
        for the requested protocol.
        """
        if protocol not in PROTOCOLS:
            raise ValueError(f"Unknown protocol: {protocol}")
        if protocol == "ssh" and self.ssh_url:
            return self.ssh_url
        if protocol == "git" and self.git_url:
            return self.git_url
        return self.clone_url

    def backup_path(self, root: Path) -> Path:
        """Return ``<root>/<host>/<owner>/<name>``."""
        return root / self.host / self.owner / self.name


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Identity of one remote release.

    ``url`` is the API endpoint the release is deleted through.
    """

    url: str
    tag_name: str
    id: int = 0
    name: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ReleaseDescriptor:
        """Build a descriptor from a GitHub release payload.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        try:
            return cls(
                url=data["url"],
                tag_name=data["tag_name"],
                id=data.get("id") or 0,
                name=data.get("name") or "",
                created_at=_parse_timestamp(data.get("created_at")),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed release payload: missing {e}") from e
