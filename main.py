"""Main entry point for the githubby CLI tool.

Lets the tool run from a checkout as ``python main.py backup -u <user>``.
"""

import os
import sys

from githubby.cli import main


def main_with_env_parsing() -> None:
    """Main entry point that also reads options from the environment.

    ``GITHUBBY_VERBOSE`` and ``GITHUBBY_DRY_RUN`` set to ``true`` add the
    matching global flags before the subcommand.
    """
    global_flags = []
    if os.getenv("GITHUBBY_VERBOSE", "false").lower() == "true":
        global_flags.append("--verbose")
    if os.getenv("GITHUBBY_DRY_RUN", "false").lower() == "true":
        global_flags.append("--dry-run")

    main(global_flags + sys.argv[1:])


if __name__ == "__main__":
    main_with_env_parsing()
