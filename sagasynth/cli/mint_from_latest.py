"""Mint a metadata record for the most recent generation in the history log.

Usage:
    sagasynth-mint-from-latest [--content-link URL] [--token-uri URL]

Without overrides the links come from the newest history entry.
"""

from __future__ import annotations

import argparse
import time

from web3 import Web3

from sagasynth.chain.client import ChainClient
from sagasynth.cli._common import configure_logging, parse_args, run_cli
from sagasynth.db import open_history_store
from sagasynth.errors import InvalidRequestError
from sagasynth.hashing import content_hash
from sagasynth.settings import settings

SOURCE_URL = "SagaSynth Generated Medical Data"
DEFAULT_TAGS = ["medical", "synthetic", "ai-generated", "sagasynth"]


def mint_from_latest(*, content_link: str | None = None, token_uri: str | None = None) -> int | None:
    settings.require_private_key()
    latest = open_history_store(settings).latest_entry()

    content_link = content_link or (latest or {}).get("content_url")
    token_uri = token_uri or (latest or {}).get("metadata_url")
    if not content_link or not token_uri:
        raise InvalidRequestError(
            "No generation history found; pass --content-link and --token-uri",
        )

    if latest and latest.get("data"):
        data_hash = content_hash(latest["data"])
    else:
        data_hash = Web3.to_hex(Web3.keccak(text=f"Generated Medical Dataset {int(time.time() * 1000)}"))

    chain = ChainClient.from_settings(settings)
    print(f"Connected with address: {chain.address}")

    print("Minting NFT from latest generated data...")
    print(f"Content Link: {content_link}")
    print(f"Metadata URI: {token_uri}")

    result = chain.mint_metadata(
        source_url=SOURCE_URL,
        content_hash=data_hash,
        content_link=content_link,
        embed_vector_id=f"vector_{int(time.time() * 1000)}",
        created_at=int(time.time()),
        tags=DEFAULT_TAGS,
        token_uri=token_uri,
    )
    print("NFT minted successfully!")
    print(f"Transaction hash: {result.tx_hash}")
    if result.identifier is not None:
        print(f"New Token ID: {result.identifier}")
    return result.identifier


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a record for the newest generated dataset")
    parser.add_argument("--content-link", default=None, help="Dataset locator (defaults to the latest history entry)")
    parser.add_argument("--token-uri", default=None, help="Metadata locator (defaults to the latest history entry)")
    args = parse_args(parser, argv)

    configure_logging()
    return run_cli(lambda: mint_from_latest(content_link=args.content_link, token_uri=args.token_uri))


if __name__ == "__main__":
    raise SystemExit(main())
