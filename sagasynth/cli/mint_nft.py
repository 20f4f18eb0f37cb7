"""Mint a metadata record for explicitly given upload locators.

Usage:
    sagasynth-mint-nft --content-link URL --token-uri URL [--source-url TEXT] [--tags a,b,c]
"""

from __future__ import annotations

import argparse
import time

from web3 import Web3

from sagasynth.chain.client import ChainClient
from sagasynth.cli._common import configure_logging, parse_args, run_cli
from sagasynth.settings import settings


def mint_nft(
    *,
    content_link: str,
    token_uri: str,
    source_url: str,
    content_text: str,
    tags: list[str],
) -> int | None:
    chain = ChainClient.from_settings(settings)
    print(f"Connected with address: {chain.address}")

    print("=== Minting Medical Data NFT ===")
    result = chain.mint_metadata(
        source_url=source_url,
        content_hash=Web3.to_hex(Web3.keccak(text=content_text)),
        content_link=content_link,
        embed_vector_id=f"medical_vector_{int(time.time() * 1000)}",
        created_at=int(time.time()),
        tags=tags,
        token_uri=token_uri,
    )
    print("Medical Data NFT minted successfully!")
    print(f"Transaction hash: {result.tx_hash}")
    if result.identifier is None:
        print("Token id could not be read from the transaction receipt.")
        return None

    print(f"Token ID: {result.identifier}")
    print(f"Content Link: {content_link}")
    print(f"Metadata URI: {token_uri}")
    print("NFT minted successfully! You can now:")
    print("1. View your NFT metadata on-chain")
    print("2. Share the content link with others")
    print("3. Create bounties for this dataset")
    print("4. Receive donations from data users")
    return result.identifier


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a metadata record for uploaded data")
    parser.add_argument("--content-link", required=True, help="Locator of the uploaded dataset")
    parser.add_argument("--token-uri", required=True, help="Locator of the uploaded metadata JSON")
    parser.add_argument("--source-url", default="Medical Data Synthesis", help="Source description stored on-chain")
    parser.add_argument(
        "--content-text",
        default="Synthetic Medical Data",
        help="Text whose keccak256 digest is stored as the content hash",
    )
    parser.add_argument("--tags", default="medical,synthetic,dataset,ai", help="Comma-separated tags")
    args = parse_args(parser, argv)

    tags = [t.strip() for t in args.tags.split(",") if t.strip()]
    configure_logging()
    return run_cli(
        lambda: mint_nft(
            content_link=args.content_link,
            token_uri=args.token_uri,
            source_url=args.source_url,
            content_text=args.content_text,
            tags=tags,
        )
    )


if __name__ == "__main__":
    raise SystemExit(main())
