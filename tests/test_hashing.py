from __future__ import annotations

import hashlib

from sagasynth.hashing import compact_json, content_hash, sha256_text


def test_compact_json_has_no_whitespace_and_keeps_unicode() -> None:
    assert compact_json({"a": [1, 2], "b": "ø"}) == '{"a":[1,2],"b":"ø"}'


def test_content_hash_is_prefixed_sha256_of_compact_form() -> None:
    data = [{"q": "x"}]
    expected = hashlib.sha256(b'[{"q":"x"}]').hexdigest()
    assert sha256_text(compact_json(data)) == expected
    assert content_hash(data) == "0x" + expected
