"""Run the HTTP service.

Usage:
    sagasynth-serve [--host HOST] [--port PORT] [--reload]
"""

from __future__ import annotations

import argparse

import uvicorn

from sagasynth.cli._common import configure_logging, parse_args
from sagasynth.settings import settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the SagaSynth API server")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parse_args(parser, argv)

    configure_logging()
    uvicorn.run("sagasynth.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
