"""
Content Hashing - Canonical JSON and SHA-256 cache keys

WHAT: Deterministic hashing of structured values for cache and partition keys
WHERE: memrag/runtime/rag/hashing.py - leaf utility
WHO: Config identity, response cache, embedding cache, document change detection

Canonical form: mapping keys sorted recursively, compact separators, non-ASCII
kept as-is, and integral floats written as integers so that ``0.0`` and ``0``
produce the same key.
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def _canonicalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def stable_json(value: Any) -> str:
    """Serialise ``value`` to its canonical JSON text."""
    return json.dumps(
        _canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def stable_json_hash(value: Any) -> str:
    return sha256_hex(stable_json(value))


def embedding_hash(model: str, text: str) -> str:
    """Identity of an embedding: hash of (model id, source text)."""
    return stable_json_hash({"model": model, "text": text})


__all__ = [
    "embedding_hash",
    "sha256_hex",
    "stable_json",
    "stable_json_hash",
]
