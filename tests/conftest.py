from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pytest

from memrag.chunking import ChunkConfig
from memrag.ingestion.ingest import ingest_document
from memrag.runtime.rag.caching import CachedEmbedder
from memrag.runtime.rag.model_engine import ChatCompletion
from memrag.runtime.rag.models import Usage
from memrag.runtime.rag.store import SqliteResearchStore

DIMS = 32


class FakeEmbeddingsClient:
    """Bag-of-words embedder: each distinct lowercase word gets its own axis."""

    def __init__(self, model: str = "fake-embed") -> None:
        self.model = model
        self.vocab: Dict[str, int] = {}
        self.calls: List[List[str]] = []

    def _axis(self, word: str) -> int:
        if word not in self.vocab:
            self.vocab[word] = len(self.vocab) % DIMS
        return self.vocab[word]

    def embed(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.calls.append(list(texts))
        out = []
        for text in texts:
            vec = np.zeros(DIMS, dtype=np.float32)
            for word in text.lower().split():
                vec[self._axis(word.strip(".,?!:;\"'()[]"))] += 1.0
            out.append(vec)
        return out


Reply = Union[str, Callable[[list], str]]


class FakeChat:
    """Scripted ChatClient; replies are consumed in order, the last one repeats."""

    def __init__(
        self,
        replies: Sequence[Reply] = ("ok",),
        *,
        provider: str = "fake",
        model: str = "fake-chat",
        usage: Optional[Usage] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.replies = list(replies)
        self.usage = usage if usage is not None else Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        self.calls: List[dict] = []

    def complete(self, messages, *, temperature=None, max_tokens=None) -> ChatCompletion:
        self.calls.append({"messages": list(messages), "temperature": temperature, "max_tokens": max_tokens})
        idx = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[idx]
        text = reply(list(messages)) if callable(reply) else reply
        return ChatCompletion(text=text, usage=self.usage, raw={"fake": True})


@pytest.fixture
def store():
    s = SqliteResearchStore.open(":memory:")
    yield s
    s.close()


@pytest.fixture
def embeddings_client() -> FakeEmbeddingsClient:
    return FakeEmbeddingsClient()


@pytest.fixture
def embedder(store, embeddings_client) -> CachedEmbedder:
    return CachedEmbedder(store=store, inner=embeddings_client)


@pytest.fixture
def fake_chat():
    """Factory for scripted chat clients."""
    return FakeChat


@pytest.fixture
def ingest(store, embedder):
    """Ingest ``{path: text}`` into the chunk set for (chunk_size, overlap)."""

    def _ingest(docs: Dict[str, str], *, chunk_size: int = 2, overlap: int = 0) -> int:
        chunk_set_id = store.get_or_create_chunk_set(
            chunk_size=chunk_size, overlap=overlap, embed_model=embedder.model
        )
        for path, text in docs.items():
            ingest_document(
                store,
                embedder,
                path=path,
                text=text,
                chunk_set_id=chunk_set_id,
                chunk_config=ChunkConfig(chunk_size_tokens=chunk_size, overlap_tokens=overlap),
            )
        return chunk_set_id

    return _ingest
