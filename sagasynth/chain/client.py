"""Contract client for the metadata registry.

Typed wrappers around the registry contract: funded bounties, metadata
records, donations to a record's creator and read-only lookups.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from web3.exceptions import MismatchedABI, Web3TypeError, Web3ValidationError, Web3ValueError
from web3.logs import DISCARD

from sagasynth.chain.abi import event_names, load_abi
from sagasynth.chain.types import MetadataRecord, TxResult
from sagasynth.chain.wallet import Wallet, checksum, parse_ether, rpc_errors
from sagasynth.errors import InvalidRequestError
from sagasynth.settings import Settings

logger = logging.getLogger(__name__)

BOUNTY_CREATED_EVENT = "BountyCreated"
METADATA_MINTED_EVENT = "MetadataMinted"


class ChainClient:
    def __init__(self, wallet: Wallet, contract: Any) -> None:
        self._wallet = wallet
        self._contract = contract

    @classmethod
    def from_settings(cls, settings: Settings) -> ChainClient:
        """Validate configuration, load the ABI and connect.

        Configuration problems raise before any network call.
        """
        private_key = settings.require_private_key()
        address = checksum(settings.require_contract_address())
        abi = load_abi(settings.resolved_artifact_path)
        missing = {BOUNTY_CREATED_EVENT, METADATA_MINTED_EVENT} - event_names(abi)
        if missing:
            logger.warning("Contract ABI lacks events %s; identifiers will be unavailable", sorted(missing))
        wallet = Wallet.connect(settings.rpc_url, private_key, tx_timeout_s=settings.tx_timeout_s)
        contract = wallet.w3.eth.contract(address=address, abi=abi, decode_tuples=True)
        return cls(wallet, contract)

    @property
    def address(self) -> str:
        """Address of the signing account."""
        return self._wallet.address

    @property
    def contract_address(self) -> str:
        return str(self._contract.address)

    # --- writes ---

    def create_bounty(self, amount_eth: str | Decimal) -> TxResult:
        value = parse_ether(amount_eth)
        fn = self._function("createBounty")
        tx_hash, receipt = self._wallet.transact(fn, value_wei=value, action="Create bounty")
        return self._result(tx_hash, receipt, BOUNTY_CREATED_EVENT)

    def mint_metadata(
        self,
        *,
        source_url: str,
        content_hash: str | bytes,
        content_link: str,
        embed_vector_id: str,
        created_at: int,
        tags: list[str],
        token_uri: str,
    ) -> TxResult:
        fn = self._function(
            "mintMetadataNFT",
            source_url,
            content_hash,
            content_link,
            embed_vector_id,
            int(created_at),
            list(tags),
            token_uri,
        )
        tx_hash, receipt = self._wallet.transact(fn, action="Mint metadata")
        return self._result(tx_hash, receipt, METADATA_MINTED_EVENT)

    def donate(self, token_id: int, amount_eth: str | Decimal) -> TxResult:
        value = parse_ether(amount_eth)
        fn = self._function("donateToCreator", int(token_id))
        tx_hash, receipt = self._wallet.transact(fn, value_wei=value, action="Donation")
        return self._result(tx_hash, receipt, None)

    def _function(self, name: str, *args: Any) -> Any:
        """Bind arguments to a contract function; web3 checks them against the ABI here."""
        try:
            return getattr(self._contract.functions, name)(*args)
        except (MismatchedABI, Web3ValidationError, Web3TypeError, Web3ValueError) as e:
            raise InvalidRequestError(f"Arguments do not match {name} in the contract ABI", details=str(e)) from e

    # --- reads ---

    def get_metadata(self, token_id: int) -> MetadataRecord:
        with rpc_errors(f"getMetadata({token_id})"):
            raw = self._contract.functions.getMetadata(int(token_id)).call()
        return MetadataRecord.from_chain(token_id, raw)

    def get_metadata_by_creator(self, address: str) -> list[int]:
        creator = checksum(address)
        with rpc_errors("getMetadataByCreator"):
            ids = self._contract.functions.getMetadataByCreator(creator).call()
        return [int(i) for i in ids]

    def token_uri(self, token_id: int) -> str:
        with rpc_errors(f"tokenURI({token_id})"):
            return str(self._contract.functions.tokenURI(int(token_id)).call())

    def owner_of(self, token_id: int) -> str:
        with rpc_errors(f"ownerOf({token_id})"):
            return str(self._contract.functions.ownerOf(int(token_id)).call())

    def total_supply(self) -> int:
        with rpc_errors("totalSupply"):
            return int(self._contract.functions.totalSupply().call())

    def get_balance(self, address: str | None = None) -> int:
        return self._wallet.get_balance(address)

    # --- events ---

    def _result(self, tx_hash: str, receipt: Any, event_name: str | None) -> TxResult:
        identifier = self.event_identifier(receipt, event_name) if event_name else None
        return TxResult(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            identifier=identifier,
        )

    def event_identifier(self, receipt: Any, event_name: str) -> int | None:
        """First argument of the first ``event_name`` log in the receipt.

        Logs that do not decode against the ABI are discarded. Returns None
        when no matching event decodes.
        """
        try:
            event = getattr(self._contract.events, event_name)()
        except AttributeError:
            # web3 raises ABIEventNotFound, an AttributeError, for unknown events
            logger.warning("Event %s is not in the contract ABI", event_name)
            return None
        decoded = event.process_receipt(receipt, errors=DISCARD)
        if not decoded:
            logger.warning(
                "No %s event decoded from transaction %s; identifier unavailable",
                event_name,
                receipt.get("transactionHash") if hasattr(receipt, "get") else None,
            )
            return None
        first_arg = event.abi["inputs"][0]["name"]
        return int(decoded[0]["args"][first_arg])
