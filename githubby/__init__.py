"""githubby - bulk GitHub repository backup and release cleanup.

This package mirrors every repository of a user or organization to local
disk and deletes old releases together with their tags.
"""

from .cleanup import ReleaseCleaner, ReleaseCleanup, ReleaseFilter
from .config import Config, load_config
from .errors import CleanupFailure, EmptyResultError, FetchError, SyncFailure
from .github import GitHubClient
from .models import ReleaseDescriptor, RepositoryDescriptor
from .pagination import Page, aggregate
from .sync import RepositoryBackup, RepositorySyncEngine, SyncOutcome, SyncStatus

__version__ = "1.0.0"

__all__ = [
    "CleanupFailure",
    "Config",
    "EmptyResultError",
    "FetchError",
    "GitHubClient",
    "Page",
    "ReleaseCleaner",
    "ReleaseCleanup",
    "ReleaseDescriptor",
    "ReleaseFilter",
    "RepositoryBackup",
    "RepositoryDescriptor",
    "RepositorySyncEngine",
    "SyncFailure",
    "SyncOutcome",
    "SyncStatus",
    "aggregate",
    "load_config",
]
