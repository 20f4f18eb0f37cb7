"""Donate ether to the creator of a metadata record.

Usage:
    sagasynth-donate TOKEN_ID AMOUNT

Example:
    sagasynth-donate 1 0.01
"""

from __future__ import annotations

import argparse

from sagasynth.chain.client import ChainClient
from sagasynth.chain.types import MetadataRecord
from sagasynth.chain.wallet import format_ether, parse_ether
from sagasynth.cli._common import configure_logging, parse_args, run_cli
from sagasynth.errors import InvalidRequestError, SagaSynthError
from sagasynth.settings import settings
from sagasynth.storage.fetcher import JsonFetcher

LARGE_DONATION_WEI = parse_ether("1")


def _print_token_info(token_id: int, record: MetadataRecord, extra: dict | None) -> None:
    print("\n=== TOKEN INFORMATION ===")
    print(f"Token ID: {token_id}")
    print(f"Creator: {record.owner}")
    print(f"Source URL: {record.source_url}")
    print(f"Tags: {', '.join(record.tags)}")
    if extra:
        price = extra.get("price_usdc")
        print(f"Name: {extra.get('name') or 'N/A'}")
        print(f"Description: {extra.get('description') or 'N/A'}")
        print(f"Domain: {extra.get('domain') or 'N/A'}")
        print(f"Sample Size: {extra.get('sample_size') or 'N/A'}")
        print(f"Price: {f'${price}' if price else 'Free'}")


def donate(token_id: int, amount: str) -> None:
    settings.require_private_key()
    value_wei = parse_ether(amount)
    if value_wei > LARGE_DONATION_WEI:
        print("Warning: You're about to donate more than 1 ETH!")

    chain = ChainClient.from_settings(settings)
    print(f"Connected with address: {chain.address}")

    print(f"Checking token {token_id}...")
    try:
        chain.owner_of(token_id)
    except SagaSynthError as e:
        raise InvalidRequestError(f"Token {token_id} does not exist!", details=e.message) from e

    record = chain.get_metadata(token_id)
    token_uri = chain.token_uri(token_id)

    fetcher = JsonFetcher(timeout_s=settings.metadata_fetch_timeout_s)
    try:
        extra = fetcher.get_json(token_uri)
    except SagaSynthError as e:
        print(f"Warning: Could not fetch additional metadata: {e.message}")
        extra = None
    finally:
        fetcher.close()
    if not isinstance(extra, dict):
        extra = None

    _print_token_info(token_id, record, extra)

    balance_before = chain.get_balance(record.owner)
    print(f"\nCreator's current balance: {format_ether(balance_before)} ETH")

    print("\n=== DONATION DETAILS ===")
    print(f"Amount: {amount} ETH")
    print(f"To: {record.owner}")

    print(f"\nDonating {amount} ETH to the creator...")
    result = chain.donate(token_id, amount)
    print(f"Transaction hash: {result.tx_hash}")
    print(f"Transaction confirmed in block {result.block_number}")
    print(f"Gas used: {result.gas_used}")

    balance_after = chain.get_balance(record.owner)
    print("\n=== DONATION SUCCESSFUL ===")
    print(f"Creator received: {format_ether(balance_after - balance_before)} ETH")
    print(f"Creator's new balance: {format_ether(balance_after)} ETH")
    print(f"Explorer: {settings.explorer_url.rstrip('/')}/tx/{result.tx_hash}")

    if extra and extra.get("name"):
        print(f'\nThank you for supporting "{extra["name"]}"!')


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Donate to the creator of a metadata record")
    parser.add_argument("token_id", type=int, help="Token id of the record")
    parser.add_argument("amount", help="Amount in ETH, e.g. 0.01")
    args = parse_args(parser, argv)

    configure_logging()
    return run_cli(lambda: donate(args.token_id, args.amount))


if __name__ == "__main__":
    raise SystemExit(main())
