"""Progress reporting for backup and cleanup runs.

Runs emit discrete events to a Reporter passed in by the caller instead of
writing to shared display state.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class Reporter:
    """Receives per-run and per-item events. The base class ignores them."""

    def started(self, action: str, total: int, dry_run: bool = False) -> None:
        """Called once the item list is known, before the first item."""

    def item_done(self, name: str, status: str, error: Optional[Exception] = None) -> None:
        """Called after each item, successful or not."""

    def finished(self, action: str, succeeded: int, failed: int) -> None:
        """Called after the last item."""


class LoggingReporter(Reporter):
    """Reports events through the ``logging`` module."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def started(self, action: str, total: int, dry_run: bool = False) -> None:
        mode = "simulated " if dry_run else ""
        self.log.info(f"Found {total} items total, starting {mode}{action}..")

    def item_done(self, name: str, status: str, error: Optional[Exception] = None) -> None:
        if error is None:
            self.log.info(f"✓ {name}: {status}")
        else:
            self.log.error(f"✗ {name}: {status}: {error}")

    def finished(self, action: str, succeeded: int, failed: int) -> None:
        message = f"Finished {action}: {succeeded} successful, {failed} failed"
        if failed:
            self.log.warning(message)
        else:
            self.log.info(message)
