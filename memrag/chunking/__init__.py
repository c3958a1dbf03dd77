"""
Chunking Module
===============

Whitespace-token sliding-window chunking for corpus ingestion.
"""

from .chunker import Chunk, ChunkConfig, chunk_text, normalize_text, tokenize

__all__ = ["Chunk", "ChunkConfig", "chunk_text", "normalize_text", "tokenize"]
