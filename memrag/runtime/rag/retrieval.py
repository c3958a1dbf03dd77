"""
Module: memrag/runtime/rag/retrieval.py
Summary: Exhaustive cosine top-K over document chunks and semantic memories.
Inputs: query vector, chunk-set id, k
Outputs: RetrievedChunk / RetrievedMemory lists, best first
Data-Contracts: one chunk set per query; vectors are float32 of equal length
Related: memrag/runtime/rag/store.py, memrag/runtime/rag/orchestrator.py

Linear scan with a bounded heap (O(n log k)). Ordering is deterministic:
score descending, then id ascending. Preference memories bypass the similarity
cut and are always returned first, ordered by importance.
"""

from __future__ import annotations

import heapq
import logging
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

import numpy as np

from .models import RetrievedChunk, RetrievedMemory
from .store import ResearchStore
from .vector import cosine_similarity

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChunkSetNotFoundError(LookupError):
    """Raised when no chunk set matches a config's (chunk size, overlap, model)."""

    def __init__(self, *, chunk_size: int, overlap: int, embed_model: str) -> None:
        super().__init__(
            f"No chunk set for chunkSize={chunk_size} overlap={overlap} embedModel={embed_model}; "
            "ingest the corpus with matching settings first"
        )
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.embed_model = embed_model


def get_chunk_set_id(store: ResearchStore, *, chunk_size: int, overlap: int, embed_model: str) -> Optional[int]:
    return store.get_chunk_set_id(chunk_size=chunk_size, overlap=overlap, embed_model=embed_model)


def require_chunk_set_id(store: ResearchStore, *, chunk_size: int, overlap: int, embed_model: str) -> int:
    chunk_set_id = get_chunk_set_id(store, chunk_size=chunk_size, overlap=overlap, embed_model=embed_model)
    if chunk_set_id is None:
        raise ChunkSetNotFoundError(chunk_size=chunk_size, overlap=overlap, embed_model=embed_model)
    return chunk_set_id


def _top_k(items: Iterable[T], k: int, key: Callable[[T], Tuple[float, int]]) -> List[T]:
    """Keep the k best items by (score desc, id asc) with a min-heap."""
    heap: List[Tuple[float, int, int, T]] = []
    for seq, item in enumerate(items):
        score, item_id = key(item)
        # min-heap root is the current worst: lowest score, then highest id
        entry = (score, -item_id, seq, item)
        if len(heap) < k:
            heapq.heappush(heap, entry)
        elif entry[:2] > heap[0][:2]:
            heapq.heapreplace(heap, entry)
    ranked = sorted(heap, key=lambda e: (-e[0], -e[1]))
    return [e[3] for e in ranked]


def retrieve_chunks(
    store: ResearchStore,
    *,
    chunk_set_id: int,
    query_vector: np.ndarray,
    k: int,
) -> List[RetrievedChunk]:
    k = max(1, int(k))
    scored = (
        RetrievedChunk(
            chunk_id=row.chunk_id,
            document_path=row.document_path,
            document_title=row.document_title,
            text=row.text,
            score=cosine_similarity(query_vector, row.vector),
        )
        for row in store.iter_chunk_rows(chunk_set_id)
    )
    results = _top_k(scored, k, key=lambda c: (c.score, c.chunk_id))
    logger.debug(f"Retrieved {len(results)} chunks from chunk set {chunk_set_id} (k={k})")
    return results


def retrieve_memories(
    store: ResearchStore,
    *,
    query_vector: np.ndarray,
    k: int,
) -> List[RetrievedMemory]:
    """All preferences (importance desc) followed by the top-k other memories."""
    k = max(1, int(k))
    preferences: List[RetrievedMemory] = []

    def _others():
        for row in store.iter_memory_rows():
            mem = row.memory
            retrieved = RetrievedMemory(
                memory_id=int(mem.id),
                kind=mem.kind,
                text=mem.text,
                importance=mem.importance,
                confidence=mem.confidence,
                supersedes_id=mem.supersedes_id,
                score=cosine_similarity(query_vector, row.vector),
            )
            if mem.kind == "preference":
                preferences.append(retrieved)
            else:
                yield retrieved

    similar = _top_k(_others(), k, key=lambda m: (m.score, m.memory_id))
    preferences.sort(key=lambda m: (-m.importance, m.memory_id))

    seen: set[int] = set()
    merged: List[RetrievedMemory] = []
    for mem in [*preferences, *similar]:
        if mem.memory_id in seen:
            continue
        seen.add(mem.memory_id)
        merged.append(mem)
    return merged


__all__ = [
    "ChunkSetNotFoundError",
    "get_chunk_set_id",
    "require_chunk_set_id",
    "retrieve_chunks",
    "retrieve_memories",
]
