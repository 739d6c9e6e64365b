"""Unit tests for utils.hashing."""

from __future__ import annotations

import hashlib

from structguard.utils.hashing import canonical_json, fingerprint_payload, sha256_text


def test_canonical_json_is_key_order_independent() -> None:
    first = canonical_json({"b": [1, 2], "a": {"y": "é", "x": None}})
    second = canonical_json({"a": {"x": None, "y": "é"}, "b": [1, 2]})

    assert first == second
    assert first == '{"a":{"x":null,"y":"é"},"b":[1,2]}'


def test_fingerprint_payload_is_sha256_of_canonical_json() -> None:
    payload = {"object": {"a": "string"}}

    expected = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
    assert fingerprint_payload(payload) == expected
    assert sha256_text("abc") == hashlib.sha256(b"abc").hexdigest()
