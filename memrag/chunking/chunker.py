"""
Sliding-Window Chunker
======================

Splits text into overlapping windows of whitespace-delimited tokens.

A window holds ``chunk_size_tokens`` tokens; the next window starts
``overlap_tokens`` before the end of the previous one. Token counts are the
same whitespace estimate the context composer uses, so a chunk's stored
``token_count`` matches what it costs in the answer prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

_BLANK_RUNS = re.compile(r"\n{3,}")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")


@dataclass(slots=True)
class Chunk:
    text: str
    token_count: int


@dataclass(slots=True)
class ChunkConfig:
    chunk_size_tokens: int
    overlap_tokens: int


def normalize_text(text: str) -> str:
    """Drop NUL bytes, trailing spaces and runs of blank lines."""
    text = text.replace("\x00", "")
    text = _TRAILING_SPACE.sub("\n", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def tokenize(text: str) -> List[str]:
    return text.replace("\x00", "").split()


def chunk_text(text: str, config: ChunkConfig) -> List[Chunk]:
    chunk_size = max(1, int(config.chunk_size_tokens))
    overlap = max(0, int(config.overlap_tokens))
    tokens = tokenize(text)
    if not tokens:
        return []

    chunks: List[Chunk] = []
    start = 0
    while start < len(tokens):
        end = min(len(tokens), start + chunk_size)
        window = tokens[start:end]
        chunks.append(Chunk(text=" ".join(window), token_count=len(window)))
        if end == len(tokens):
            break
        # overlap >= chunk size would never advance
        start = max(start + 1, end - overlap)
    return chunks


__all__ = ["Chunk", "ChunkConfig", "chunk_text", "normalize_text", "tokenize"]
