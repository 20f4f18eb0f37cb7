"""Shared plumbing for the command-line entry points."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable

from sagasynth.errors import SagaSynthError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # web3 and httpx log every request at INFO
    for noisy in ("httpx", "web3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_args(parser: argparse.ArgumentParser, argv: list[str] | None) -> argparse.Namespace:
    """Parse arguments; usage errors exit with status 1 like every other failure."""
    try:
        return parser.parse_args(argv)
    except SystemExit as e:
        if e.code not in (0, None):
            raise SystemExit(1) from e
        raise


def run_cli(fn: Callable[[], object]) -> int:
    """Run ``fn`` and map its outcome to a process exit code."""
    try:
        fn()
    except SagaSynthError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.details:
            print(f"Details: {e.details}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Unexpected failure")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0
