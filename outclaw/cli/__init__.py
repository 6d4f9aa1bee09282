"""outclaw command line interface."""

import asyncio
import sys

from outclaw.cli.cli import run


def main() -> None:
    """outclaw console script entrypoint."""
    sys.exit(asyncio.run(run()))
