"""
structguard — hashing utilities

File: src/structguard/utils/hashing.py

Purpose
- Provide deterministic SHA-256 helpers and canonical JSON encoding used to
  fingerprint descriptor documents.

Non-functional requirements
- Standard library only; output is stable across processes and platforms.
"""

from __future__ import annotations

import hashlib
import json

__all__ = [
    "canonical_json",
    "fingerprint_payload",
    "sha256_bytes",
    "sha256_text",
]


def sha256_bytes(data: bytes) -> str:
    """Return SHA-256 hex digest for raw bytes."""

    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str, *, encoding: str = "utf-8") -> str:
    """Return SHA-256 hex digest for text encoded with ``encoding``."""

    return sha256_bytes(text.encode(encoding))


def canonical_json(value: object) -> str:
    """Deterministic JSON: sorted keys, compact separators, non-ASCII preserved."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def fingerprint_payload(value: object) -> str:
    """Return the SHA-256 digest of ``value``'s canonical JSON encoding."""

    return sha256_text(canonical_json(value))
