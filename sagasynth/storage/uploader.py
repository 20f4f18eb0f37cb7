"""Client for the content-addressed upload gateway.

Each upload is priced by byte length, the signer's reserved balance on the
node is topped up when it falls short of the quote, and the JSON payload is
posted as a signed data item carrying its tags. The retrieval locator is
``{gateway}/{id}``.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from sagasynth.chain.wallet import Wallet
from sagasynth.errors import MalformedResponseError, RemoteRejectedError, RemoteUnavailableError
from sagasynth.hashing import compact_json
from sagasynth.settings import Settings
from sagasynth.storage.data_item import Tag, build_data_item

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "SagaSynth/0.1 (synthetic dataset uploader)"


def json_tags(app_name: str, kind: str | None = None) -> list[Tag]:
    """Standard tags for a JSON upload; ``kind`` is e.g. Dataset or Metadata."""
    tags = [Tag("Content-Type", "application/json"), Tag("App-Name", app_name)]
    if kind:
        tags.append(Tag("Type", kind))
    return tags


class IrysUploader:
    def __init__(
        self,
        *,
        node_url: str,
        gateway_url: str,
        token: str,
        wallet: Wallet,
        timeout_s: float = 60.0,
        http: httpx.Client | None = None,
    ) -> None:
        self._node_url = node_url.rstrip("/")
        self._gateway_url = gateway_url.rstrip("/")
        self._token = token
        self._wallet = wallet
        self._client = http or httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> IrysUploader:
        private_key = settings.require_private_key()
        funding_rpc_url = settings.require_funding_rpc_url()
        wallet = Wallet.connect(funding_rpc_url, private_key, tx_timeout_s=settings.tx_timeout_s)
        return cls(
            node_url=settings.irys_node_url,
            gateway_url=settings.irys_gateway_url,
            token=settings.irys_token,
            wallet=wallet,
            timeout_s=settings.upload_timeout_s,
        )

    def close(self) -> None:
        self._client.close()

    @property
    def address(self) -> str:
        return self._wallet.address

    def locator(self, upload_id: str) -> str:
        return f"{self._gateway_url}/{upload_id}"

    def get_price(self, num_bytes: int) -> int:
        """Price in atomic units of the funding token for ``num_bytes``."""
        resp = self._request("GET", f"/price/{self._token}/{num_bytes}", action="Price quote")
        return _parse_int(resp.text, "price quote")

    def get_balance(self) -> int:
        resp = self._request(
            "GET",
            f"/account/balance/{self._token}",
            params={"address": self.address},
            action="Balance lookup",
        )
        body = _parse_json(resp, "balance")
        if not isinstance(body, dict) or "balance" not in body:
            raise MalformedResponseError("Balance response has no 'balance' field", details=resp.text[:200])
        return _parse_int(body["balance"], "balance")

    def deposit_address(self) -> str:
        resp = self._request("GET", "/info", action="Node info")
        body = _parse_json(resp, "node info")
        try:
            return str(body["addresses"][self._token])
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(
                f"Node info has no deposit address for token '{self._token}'", details=resp.text[:200]
            ) from e

    def fund(self, amount: int) -> str:
        """Send ``amount`` to the node's deposit address and register the transfer."""
        to = self.deposit_address()
        tx_hash, _receipt = self._wallet.transfer(to, amount, action="Upload funding")
        self._request(
            "POST",
            f"/account/balance/{self._token}",
            json={"tx_id": tx_hash},
            action="Funding registration",
        )
        logger.info("Funded upload balance with %s atomic units (%s)", amount, tx_hash)
        return tx_hash

    def ensure_balance(self, required: int) -> int:
        """Top up the reserved balance to ``required``; returns the amount sent."""
        balance = self.get_balance()
        if balance >= required:
            return 0
        shortfall = required - balance
        self.fund(shortfall)
        return shortfall

    def upload(self, payload: Any, tags: list[Tag]) -> str:
        data = compact_json(payload).encode("utf-8")
        item = build_data_item(data, tags, owner=self._wallet.public_key, sign=self._sign)
        price = self.get_price(len(item.raw))
        self.ensure_balance(price)

        resp = self._request(
            "POST",
            f"/tx/{self._token}",
            content=item.raw,
            headers={"Content-Type": "application/octet-stream"},
            action="Upload",
        )
        body = _parse_json(resp, "upload receipt")
        upload_id = body.get("id") if isinstance(body, dict) else None
        if not upload_id:
            raise MalformedResponseError("Upload receipt has no id", details=resp.text[:200])

        url = self.locator(str(upload_id))
        logger.info("Data uploaded successfully. %s", url)
        return url

    def _sign(self, message: bytes) -> bytes:
        return bytes.fromhex(self._wallet.sign_message(message).removeprefix("0x"))

    def _request(self, method: str, path: str, *, action: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._node_url}{path}"
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise RemoteUnavailableError(f"{action} failed: upload node unreachable", details=str(e)) from e
        if resp.status_code >= 400:
            raise RemoteRejectedError(
                f"{action} failed with status {resp.status_code}",
                details=resp.text[:500],
            )
        return resp


def _parse_json(resp: httpx.Response, what: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponseError(f"Invalid JSON in {what} response", details=resp.text[:200]) from e


def _parse_int(raw: Any, what: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise MalformedResponseError(f"Invalid {what}: {raw!r}") from e
