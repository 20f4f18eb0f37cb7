"""Signed data items in the ANS-104 bundle format.

Binary layout, integers little-endian::

    signature type      2 bytes   (3 = Ethereum secp256k1)
    signature          65 bytes
    owner              65 bytes   uncompressed public key
    target flag         1 byte    (0, no target)
    anchor flag         1 byte    (1) followed by 32 anchor bytes
    number of tags      8 bytes
    tag bytes length    8 bytes
    tags                Avro array of {name: bytes, value: bytes}
    data

The signature is an EIP-191 personal signature over the SHA-384 deep hash of
the item's fields. The item id is the base64url SHA-256 of the signature.
"""
from __future__ import annotations

import base64
import hashlib
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Union

from sagasynth.errors import InvalidRequestError

ETHEREUM_SIGNATURE_TYPE = 3
SIGNATURE_LENGTH = 65
OWNER_LENGTH = 65
ANCHOR_LENGTH = 32

MAX_TAGS = 128
MAX_TAG_NAME_BYTES = 1024
MAX_TAG_VALUE_BYTES = 3072

DeepHashChunk = Union[bytes, Sequence["DeepHashChunk"]]


@dataclass(frozen=True)
class Tag:
    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class DataItem:
    raw: bytes
    id: str


def _zigzag_varint(n: int) -> bytes:
    z = (n << 1) ^ (n >> 63)
    out = bytearray()
    while True:
        byte = z & 0x7F
        z >>= 7
        if z:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _avro_bytes(value: bytes) -> bytes:
    return _zigzag_varint(len(value)) + value


def encode_tags(tags: Sequence[Tag]) -> bytes:
    """Avro-encode tags as one array block; no tags encode to nothing."""
    if len(tags) > MAX_TAGS:
        raise InvalidRequestError(f"Too many tags: {len(tags)} (max {MAX_TAGS})")
    if not tags:
        return b""
    out = bytearray(_zigzag_varint(len(tags)))
    for tag in tags:
        name = tag.name.encode("utf-8")
        value = tag.value.encode("utf-8")
        if not name or len(name) > MAX_TAG_NAME_BYTES:
            raise InvalidRequestError(f"Tag name must be 1-{MAX_TAG_NAME_BYTES} bytes", details=tag.name[:64])
        if not value or len(value) > MAX_TAG_VALUE_BYTES:
            raise InvalidRequestError(f"Tag value must be 1-{MAX_TAG_VALUE_BYTES} bytes", details=tag.name)
        out += _avro_bytes(name) + _avro_bytes(value)
    out += b"\x00"
    return bytes(out)


def _sha384(data: bytes) -> bytes:
    return hashlib.sha384(data).digest()


def deep_hash(chunk: DeepHashChunk) -> bytes:
    if isinstance(chunk, (bytes, bytearray)):
        tag = _sha384(b"blob" + str(len(chunk)).encode())
        return _sha384(tag + _sha384(bytes(chunk)))
    acc = _sha384(b"list" + str(len(chunk)).encode())
    for item in chunk:
        acc = _sha384(acc + deep_hash(item))
    return acc


def signature_data(owner: bytes, anchor: bytes, tag_bytes: bytes, data: bytes) -> bytes:
    """The digest an owner signs; no target is ever set."""
    return deep_hash(
        [
            b"dataitem",
            b"1",
            str(ETHEREUM_SIGNATURE_TYPE).encode(),
            owner,
            b"",
            anchor,
            tag_bytes,
            data,
        ]
    )


def item_id(signature: bytes) -> str:
    return base64.urlsafe_b64encode(hashlib.sha256(signature).digest()).rstrip(b"=").decode("ascii")


def build_data_item(
    data: bytes,
    tags: Sequence[Tag],
    *,
    owner: bytes,
    sign: Callable[[bytes], bytes],
    anchor: bytes | None = None,
) -> DataItem:
    """Serialize and sign ``data``; ``sign`` returns a 65-byte signature of its argument."""
    if len(owner) != OWNER_LENGTH:
        raise ValueError(f"owner must be {OWNER_LENGTH} bytes, got {len(owner)}")
    anchor = os.urandom(ANCHOR_LENGTH) if anchor is None else anchor
    if len(anchor) != ANCHOR_LENGTH:
        raise ValueError(f"anchor must be {ANCHOR_LENGTH} bytes, got {len(anchor)}")

    tag_bytes = encode_tags(tags)
    signature = sign(signature_data(owner, anchor, tag_bytes, data))
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")

    raw = b"".join(
        [
            ETHEREUM_SIGNATURE_TYPE.to_bytes(2, "little"),
            signature,
            owner,
            b"\x00",
            b"\x01",
            anchor,
            len(tags).to_bytes(8, "little"),
            len(tag_bytes).to_bytes(8, "little"),
            tag_bytes,
            data,
        ]
    )
    return DataItem(raw=raw, id=item_id(signature))
