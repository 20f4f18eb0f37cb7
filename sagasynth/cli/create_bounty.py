"""Fund a bounty on the registry contract.

Usage:
    sagasynth-create-bounty [--amount 0.01] [--dataset-link URL] [--metadata-link URL]
"""

from __future__ import annotations

import argparse

from sagasynth.chain.client import ChainClient
from sagasynth.chain.wallet import parse_ether
from sagasynth.cli._common import configure_logging, parse_args, run_cli
from sagasynth.settings import settings


def create_bounty(amount: str, *, dataset_link: str | None = None, metadata_link: str | None = None) -> int | None:
    parse_ether(amount)
    chain = ChainClient.from_settings(settings)
    print(f"Connected with address: {chain.address}")

    print("=== Creating Research Bounty ===")
    result = chain.create_bounty(amount)
    print("Bounty created successfully!")
    print(f"Transaction hash: {result.tx_hash}")

    if result.identifier is None:
        print("Bounty id could not be read from the transaction receipt.")
        return None

    print(f"Bounty ID: {result.identifier}")
    print(f"Bounty Amount: {amount} ETH")
    if dataset_link or metadata_link:
        print("\nBounty Details:")
        if dataset_link:
            print(f"- Data Link: {dataset_link}")
        if metadata_link:
            print(f"- Metadata: {metadata_link}")

    print("\nNext Steps:")
    print("1. Researchers can now contribute to this bounty")
    print("2. Add contributors using the addContributor function")
    print("3. Distribute the bounty when research is completed")
    print("4. Share the dataset link with researchers")
    return result.identifier


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a funded research bounty")
    parser.add_argument("--amount", "-a", default="0.01", help="Bounty amount in ETH")
    parser.add_argument("--dataset-link", default=None, help="Uploaded dataset locator to advertise")
    parser.add_argument("--metadata-link", default=None, help="Uploaded metadata locator to advertise")
    args = parse_args(parser, argv)

    configure_logging()
    return run_cli(
        lambda: create_bounty(args.amount, dataset_link=args.dataset_link, metadata_link=args.metadata_link)
    )


if __name__ == "__main__":
    raise SystemExit(main())
