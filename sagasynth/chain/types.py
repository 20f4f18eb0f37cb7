from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from web3 import Web3

_METADATA_FIELDS = (
    "source_url",
    "content_hash",
    "content_link",
    "embed_vector_id",
    "created_at",
    "tags",
    "owner",
)


@dataclass(frozen=True)
class TxResult:
    tx_hash: str
    block_number: int
    gas_used: int
    # Token or bounty id read off the emitted event, when one decoded
    identifier: int | None = None


@dataclass(frozen=True)
class MetadataRecord:
    token_id: int
    source_url: str
    content_hash: str
    content_link: str
    embed_vector_id: str
    created_at: int
    tags: list[str]
    owner: str

    @classmethod
    def from_chain(cls, token_id: int, raw: Any) -> MetadataRecord:
        """Build a record from the contract's ``getMetadata`` struct.

        Accepts the named tuple web3 returns with ``decode_tuples=True``, a
        mapping, or a plain positional tuple in ABI order.
        """
        values = [_struct_field(raw, i, name) for i, name in enumerate(_METADATA_FIELDS)]
        source_url, content_hash, content_link, embed_vector_id, created_at, tags, owner = values
        if isinstance(content_hash, (bytes, bytearray)):
            content_hash = Web3.to_hex(content_hash)
        return cls(
            token_id=int(token_id),
            source_url=str(source_url),
            content_hash=str(content_hash),
            content_link=str(content_link),
            embed_vector_id=str(embed_vector_id),
            created_at=int(created_at),
            tags=[str(t) for t in tags],
            owner=str(owner),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "tokenId": str(self.token_id),
            "sourceUrl": self.source_url,
            "contentHash": self.content_hash,
            "contentLink": self.content_link,
            "embedVectorId": self.embed_vector_id,
            "createdAt": self.created_at,
            "tags": list(self.tags),
            "owner": self.owner,
        }


def _struct_field(raw: Any, index: int, name: str) -> Any:
    if isinstance(raw, dict):
        return raw[name]
    if hasattr(raw, "_fields") and name in raw._fields:
        return getattr(raw, name)
    return raw[index]
