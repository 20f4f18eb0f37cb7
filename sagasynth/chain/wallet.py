"""Signing wallet on a JSON-RPC ledger node.

Used by the contract client for its writes and by the upload client to fund
its gateway balance. Every write blocks until the receipt is available.
"""
from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator
from decimal import Decimal, InvalidOperation
from typing import Any

from eth_account.messages import encode_defunct
from eth_keys import keys
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from sagasynth.errors import (
    ConfigurationError,
    InvalidRequestError,
    RemoteRejectedError,
    RemoteUnavailableError,
    SagaSynthError,
)

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_S = 30.0


def parse_ether(amount: str | Decimal | float) -> int:
    """Convert a positive ether amount to wei."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidRequestError(f"Invalid amount format: {amount!r}") from e
    if not value.is_finite() or value <= 0:
        raise InvalidRequestError(f"Invalid amount: {amount!r}. Must be a positive number.")
    return int(Web3.to_wei(value, "ether"))


def format_ether(wei: int) -> str:
    return f"{Web3.from_wei(wei, 'ether'):f}"


def checksum(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidRequestError(f"Invalid address: {address!r}") from e


@contextlib.contextmanager
def rpc_errors(action: str) -> Iterator[None]:
    """Translate web3/transport failures into the project's error kinds."""
    try:
        yield
    except SagaSynthError:
        raise
    except ContractLogicError as e:
        raise RemoteRejectedError(f"{action} reverted", details=str(e)) from e
    except TimeExhausted as e:
        raise RemoteUnavailableError(f"{action} timed out waiting for confirmation", details=str(e)) from e
    except Web3Exception as e:
        raise RemoteRejectedError(f"{action} rejected by node", details=str(e)) from e
    except OSError as e:
        # requests/urllib3 transport errors are OSError subclasses
        raise RemoteUnavailableError(f"{action} failed: ledger node unreachable", details=str(e)) from e
    except ValueError as e:
        # older web3 releases surface JSON-RPC error objects as ValueError
        raise RemoteRejectedError(f"{action} rejected by node", details=str(e)) from e


class Wallet:
    def __init__(self, w3: Any, account: Any, *, tx_timeout_s: float = 120.0) -> None:
        self.w3 = w3
        self._account = account
        self._tx_timeout_s = tx_timeout_s
        # held from the nonce read until the node has accepted the transaction
        self._nonce_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        rpc_url: str,
        private_key: str,
        *,
        tx_timeout_s: float = 120.0,
        request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
    ) -> Wallet:
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_s}))
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        try:
            account = w3.eth.account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError("PRIVATE_KEY is not a valid private key") from e
        return cls(w3, account, tx_timeout_s=tx_timeout_s)

    @property
    def address(self) -> str:
        return str(self._account.address)

    @property
    def public_key(self) -> bytes:
        """Uncompressed secp256k1 public key, 0x04 prefixed."""
        return b"\x04" + keys.PrivateKey(bytes(self._account.key)).public_key.to_bytes()

    def sign_message(self, data: bytes) -> str:
        """EIP-191 signature over raw bytes, hex encoded."""
        signed = self._account.sign_message(encode_defunct(primitive=data))
        return Web3.to_hex(signed.signature)

    def get_balance(self, address: str | None = None) -> int:
        target = checksum(address) if address else self.address
        with rpc_errors("Balance lookup"):
            return int(self.w3.eth.get_balance(target))

    def transact(self, fn: Any, *, value_wei: int = 0, action: str = "Transaction") -> tuple[str, Any]:
        """Build, sign and send a contract call; wait for its receipt.

        Returns ``(tx_hash, receipt)``.
        """
        with rpc_errors(action):
            with self._nonce_lock:
                tx = fn.build_transaction(
                    {"from": self.address, "nonce": self._next_nonce(), "value": value_wei}
                )
                tx_hash = self._send(tx, action)
            return self._wait(tx_hash, action)

    def transfer(self, to: str, value_wei: int, *, action: str = "Transfer") -> tuple[str, Any]:
        with rpc_errors(action):
            tx: dict[str, Any] = {
                "from": self.address,
                "to": checksum(to),
                "value": value_wei,
                "chainId": self.w3.eth.chain_id,
                "gasPrice": self.w3.eth.gas_price,
            }
            tx["gas"] = self.w3.eth.estimate_gas(tx)
            with self._nonce_lock:
                tx["nonce"] = self._next_nonce()
                tx_hash = self._send(tx, action)
            return self._wait(tx_hash, action)

    def _next_nonce(self) -> int:
        # pending counts transactions this wallet sent that are not mined yet
        return int(self.w3.eth.get_transaction_count(self.address, "pending"))

    def _send(self, tx: dict[str, Any], action: str) -> str:
        signed = self._account.sign_transaction(tx)
        tx_hash_hex = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.info("%s submitted: %s", action, tx_hash_hex)
        return tx_hash_hex

    def _wait(self, tx_hash_hex: str, action: str) -> tuple[str, Any]:
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash_hex, timeout=self._tx_timeout_s)
        if receipt["status"] != 1:
            raise RemoteRejectedError(f"{action} reverted", details=f"transaction {tx_hash_hex} failed")
        logger.info("%s confirmed in block %s", action, receipt["blockNumber"])
        return tx_hash_hex, receipt
