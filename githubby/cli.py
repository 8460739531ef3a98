"""Command-line interface for githubby.

This module provides the ``backup`` and ``clean`` commands and their options.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .cleanup import ReleaseCleanup, ReleaseFilter
from .config import DEFAULT_CONFIG_PATH, Config, load_config, validate_config
from .errors import EmptyResultError, FetchError
from .github import GitHubClient
from .models import PROTOCOLS
from .sync import RepositoryBackup, RepositorySyncEngine

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration.

    Args:
        verbose: Enable debug logging if True
    """
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level, format=format_str, handlers=[logging.StreamHandler()]
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="githubby",
        description="A multi-purpose CLI utility for interacting with GitHub",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Back up every repository of a user into ./backups
  githubby backup -u octocat -o ./backups

  # Delete releases older than 30 days, keeping the newest 5
  githubby -t $TOKEN clean -r octocat/Hello-World -d 30 -c 5

  # See what a cleanup would delete
  githubby --dry-run clean -r octocat/Hello-World -c 10
        """.strip(),
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to a YAML configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )

    parser.add_argument(
        "-D",
        "--dry-run",
        action="store_true",
        help="Simulate running without cloning, updating or deleting anything",
    )

    parser.add_argument(
        "-t",
        "--token",
        type=str,
        default=None,
        help="GitHub API token (default: $GITHUB_TOKEN)",
    )

    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Request timeout in seconds (default: 30)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    backup = subparsers.add_parser("backup", help="Backup GitHub repositories")
    backup.add_argument(
        "-u",
        "--user",
        required=True,
        help="GitHub user or organization (required)",
    )
    backup.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Backup output path (default: current directory)",
    )
    backup.add_argument(
        "-l",
        "--limit",
        type=int,
        default=0,
        help="Limit the number of repositories to back up (default: no limit)",
    )
    backup.add_argument(
        "--protocol",
        choices=PROTOCOLS,
        default=None,
        help="Clone protocol (default: https)",
    )
    backup.add_argument(
        "--allow-empty",
        action="store_true",
        help="Do not treat an account without repositories as an error",
    )

    clean = subparsers.add_parser("clean", help="Cleanup old GitHub releases")
    clean.add_argument(
        "-r",
        "--repository",
        required=True,
        help="GitHub repository in owner/repo format (required)",
    )
    clean.add_argument(
        "-d",
        "--filter-days",
        type=int,
        default=None,
        help="Remove releases older than this many days",
    )
    clean.add_argument(
        "-c",
        "--filter-count",
        type=int,
        default=None,
        help="Keep only this many of the newest releases",
    )
    clean.add_argument(
        "--allow-empty",
        action="store_true",
        help="Do not treat a repository without releases as an error",
    )

    return parser


def resolve_config(config_path: Optional[Path]) -> Config:
    """Load the configuration file, falling back to defaults.

    An explicitly given path must exist; the default path is optional.
    """
    if config_path is not None:
        return load_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return validate_config({})


def run_backup(args: argparse.Namespace, config: Config, client: GitHubClient) -> bool:
    """Run the backup command.

    Returns:
        True if every repository was backed up
    """
    output = args.output or Path(config.get("output") or Path.cwd())
    engine = RepositorySyncEngine(protocol=args.protocol or config["protocol"])
    allow_empty = args.allow_empty or config["allow_empty"]

    logger.info(f"Backing up repositories of {args.user} to {output.absolute()}")

    with RepositoryBackup(
        github_client=client,
        engine=engine,
        dry_run_delay=config["dry_run_delay"],
    ) as backup:
        result = backup.run(
            args.user,
            output,
            limit=args.limit,
            dry_run=args.dry_run,
            allow_empty=allow_empty,
        )

    if result.is_success:
        logger.info(f"✓ Successfully backed up {result.success_count} repositories")
    else:
        logger.error(f"✗ {result}")
        for failure in result.failed:
            logger.error(f"  {failure}")

    return result.is_success


def run_clean(args: argparse.Namespace, config: Config, client: GitHubClient) -> bool:
    """Run the clean command.

    Returns:
        True if every selected release was removed
    """
    owner, _, repo = args.repository.partition("/")
    if not owner or not repo or "/" in repo:
        raise ValueError(f"Repository must be in format 'owner/repo': {args.repository}")

    release_filter = ReleaseFilter(
        max_age_days=args.filter_days, keep_count=args.filter_count
    )

    if not args.dry_run and not client.token:
        raise ValueError("A GitHub token is required to delete releases")

    cleanup = ReleaseCleanup(client, dry_run_delay=config["dry_run_delay"])
    result = cleanup.run(
        owner,
        repo,
        release_filter,
        dry_run=args.dry_run,
        allow_empty=args.allow_empty or config["allow_empty"],
    )

    if result.is_success:
        logger.info(f"✓ Successfully removed {result.success_count} releases")
    else:
        logger.error(f"✗ {result}")
        for failure in result.failed:
            logger.error(f"  {failure}")

    return result.is_success


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the CLI application."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = resolve_config(args.config)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    token = args.token or config.get("token")
    timeout = args.timeout or config["timeout"]

    if args.dry_run:
        logger.info("Dry run detected, simulating " + args.command)

    try:
        with GitHubClient(timeout=timeout, token=token) as client:
            if args.command == "backup":
                success = run_backup(args, config, client)
            else:
                success = run_clean(args, config, client)

        sys.exit(0 if success else 1)

    except (FetchError, EmptyResultError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            logger.exception("Full traceback:")
        sys.exit(1)


if __name__ == "__main__":
    main()
