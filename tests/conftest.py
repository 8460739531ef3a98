"""Pytest configuration and shared fixtures."""

import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable

import pytest

from githubby.models import RepositoryDescriptor

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)

GIT_IDENTITY = [
    "-c",
    "user.name=githubby-tests",
    "-c",
    "user.email=tests@example.com",
    "-c",
    "commit.gpgsign=false",
]


def git(cwd: Path, *args: str) -> str:
    """Run git in ``cwd`` with a fixed identity and return its stdout."""
    result = subprocess.run(
        ["git", *GIT_IDENTITY, *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str) -> str:
    """Write a file, commit it and return the new HEAD sha."""
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-m", f"Update {name}")
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repository_payload() -> Callable[..., dict[str, Any]]:
    """Return a factory for GitHub repository API payloads."""

    def make(name: str = "Hello-World", owner: str = "octocat") -> dict[str, Any]:
        return {
            "name": name,
            "full_name": f"{owner}/{name}",
            "owner": {"login": owner},
            "clone_url": f"https://github.com/{owner}/{name}.git",
            "ssh_url": f"git@github.com:{owner}/{name}.git",
            "git_url": f"git://github.com/{owner}/{name}.git",
        }

    return make


@pytest.fixture
def release_payload() -> Callable[..., dict[str, Any]]:
    """Return a factory for GitHub release API payloads."""

    def make(
        release_id: int = 1,
        tag_name: str = "v1.0.0",
        created_at: str = "2024-01-01T00:00:00Z",
    ) -> dict[str, Any]:
        return {
            "id": release_id,
            "url": f"https://api.github.com/repos/octocat/Hello-World/releases/{release_id}",
            "tag_name": tag_name,
            "name": tag_name,
            "created_at": created_at,
        }

    return make


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """Return a local repository with one commit to clone from."""
    repo = tmp_path / "remote"
    repo.mkdir()
    git(repo, "init")
    commit_file(repo, "README.md", "# Hello\n")
    return repo


@pytest.fixture
def remote_descriptor(remote_repo: Path) -> RepositoryDescriptor:
    """Return a descriptor whose clone URL points at ``remote_repo``."""
    return RepositoryDescriptor(
        owner="octocat", name="Hello-World", clone_url=str(remote_repo)
    )
