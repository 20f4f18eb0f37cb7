from __future__ import annotations

import hashlib
import json
from typing import Any


def compact_json(obj: Any) -> str:
    """Serialize without whitespace, keeping non-ASCII text as-is."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes(text.encode("utf-8"))


def content_hash(obj: Any) -> str:
    """0x-prefixed sha256 of the compact JSON form, sized for a bytes32 slot."""
    return "0x" + sha256_text(compact_json(obj))
