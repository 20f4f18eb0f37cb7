"""Dump every metadata record on the registry as JSON.

Usage:
    sagasynth-get-all-metadata [--output FILE]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from sagasynth.chain.client import ChainClient
from sagasynth.cli._common import configure_logging, parse_args, run_cli
from sagasynth.errors import SagaSynthError
from sagasynth.settings import settings

logger = logging.getLogger(__name__)


def collect_all_metadata(chain: ChainClient) -> list[dict[str, Any]]:
    """Records for token ids 1..totalSupply; unreadable tokens are skipped."""
    records = []
    total = chain.total_supply()
    for token_id in range(1, total + 1):
        try:
            record = chain.get_metadata(token_id)
            token_uri = chain.token_uri(token_id)
        except SagaSynthError as e:
            print(f"Could not fetch metadata for token {token_id}: {e.message}", file=sys.stderr)
            continue
        records.append(
            {
                "tokenId": token_id,
                "source_url": record.source_url,
                "content_hash": record.content_hash,
                "content_link": record.content_link,
                "embed_vector_id": record.embed_vector_id,
                "created_at": record.created_at,
                "tags": record.tags,
                "owner": record.owner,
                "tokenURI": token_uri,
            }
        )
    logger.info("Fetched %d of %d records", len(records), total)
    return records


def dump_all_metadata(output: Path | None = None) -> None:
    chain = ChainClient.from_settings(settings)
    text = json.dumps(collect_all_metadata(chain), indent=2, ensure_ascii=False)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {output}")
    else:
        print(text)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print all metadata records as JSON")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Write JSON to this file instead of stdout")
    args = parse_args(parser, argv)

    configure_logging(logging.WARNING)
    return run_cli(lambda: dump_all_metadata(args.output))


if __name__ == "__main__":
    raise SystemExit(main())
