"""
Content Cache - Store-backed chat responses and embeddings

WHAT: Compose a ChatClient / EmbeddingsClient with the store's content-addressed caches
WHERE: memrag/runtime/rag/caching.py - sits between the runtime and provider clients
WHO: Orchestrator, ingestion, memory writer, judge
TIME: Cache hit <5ms; miss adds one provider round trip

Chat responses are keyed by hash(provider, model, messages, temperature,
maxTokens). Embeddings are keyed by hash(model, text); repeated texts inside one
batch are embedded once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .hashing import embedding_hash, stable_json_hash
from .model_engine import DEFAULT_TEMPERATURE, ChatClient, ChatCompletion, ChatMessage, EmbeddingsClient
from .models import EmbeddingRecord, Usage
from .store import ResearchStore

logger = logging.getLogger(__name__)


def chat_cache_key(
    *,
    provider: str,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    return stable_json_hash(_cache_request(provider, model, messages, temperature, max_tokens))


def _cache_request(
    provider: str,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> Dict[str, Any]:
    return {
        "provider": provider,
        "model": model,
        "messages": [dict(m) for m in messages],
        "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        "maxTokens": max_tokens,
    }


@dataclass
class CachedChatClient:
    """ChatClient that answers repeated identical requests from the store."""

    store: ResearchStore
    inner: ChatClient

    @property
    def provider(self) -> str:
        return self.inner.provider

    @property
    def model(self) -> str:
        return self.inner.model

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletion:
        request = _cache_request(self.provider, self.model, messages, temperature, max_tokens)
        key = stable_json_hash(request)

        cached = self.store.get_cached_response(key)
        if cached is not None:
            logger.debug(f"chat cache hit {self.provider}:{self.model} key={key[:12]}")
            return ChatCompletion(
                text=str(cached.get("text") or ""),
                usage=Usage.from_payload(cached.get("usage")),
                raw=cached.get("raw"),
            )

        result = self.inner.complete(messages, temperature=temperature, max_tokens=max_tokens)
        self.store.put_cached_response(
            key=key,
            provider=self.provider,
            model=self.model,
            request=request,
            response={
                "text": result.text,
                "usage": result.usage.to_payload() if result.usage else None,
                "raw": result.raw,
            },
        )
        return result


@dataclass
class CachedEmbedder:
    """Content-addressed embedding lookup backed by the store."""

    store: ResearchStore
    inner: EmbeddingsClient

    @property
    def model(self) -> str:
        return self.inner.model

    def get_or_create(self, texts: Sequence[str]) -> List[EmbeddingRecord]:
        """Return one record per input text, embedding only unseen content."""
        if not texts:
            return []

        hashes = [embedding_hash(self.model, t) for t in texts]
        known = self.store.find_embeddings(self.model, hashes)

        missing: Dict[str, str] = {}
        for content_hash, text in zip(hashes, texts):
            if content_hash not in known and content_hash not in missing:
                missing[content_hash] = text

        if missing:
            vectors = self.inner.embed(list(missing.values()))
            for content_hash, vector in zip(missing.keys(), vectors):
                known[content_hash] = self.store.insert_embedding(self.model, content_hash, vector)
            logger.debug(f"Embedded {len(missing)} new texts with {self.model} ({len(texts)} requested)")

        return [known[h] for h in hashes]

    def embed_one(self, text: str) -> EmbeddingRecord:
        return self.get_or_create([text])[0]


__all__ = ["CachedChatClient", "CachedEmbedder", "chat_cache_key"]
