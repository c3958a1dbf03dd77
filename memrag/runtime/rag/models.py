"""
RAG Models - Type-safe data structures for corpus, memory and turn results

WHAT: Pydantic models for persisted rows, dataclasses for per-turn values
WHERE: memrag/runtime/rag/models.py - data layer
WHO: Store, retrieval, orchestrator, memory writer and evaluation harness
TIME: Model validation <1ms

Persisted entities (document chunks, semantic memories) are pydantic models so
out-of-range values are rejected before anything reaches the store. Values that
only live for one turn (retrieved rows, sources, timings, usage) are slotted
dataclasses.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

import numpy as np
from pydantic import BaseModel, Field

MemoryKind = Literal["preference", "decision", "fact", "insight", "todo"]
Role = Literal["user", "assistant", "system"]

NOT_FOUND_ANSWER = "Not found in corpus."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(slots=True)
class EmbeddingRecord:
    """A stored embedding; ``id`` is the store row id."""

    id: int
    vector: np.ndarray


class DocumentChunk(BaseModel):
    """One chunk of a document inside a chunk set."""

    id: Optional[int] = None
    chunk_set_id: int
    document_id: int
    chunk_index: int = Field(ge=0)
    text: str
    token_count: int = Field(ge=0)
    embedding_id: int


class SemanticMemory(BaseModel):
    """
    Long-term memory distilled from conversations.

    Examples:
    - kind="preference": "User prefers answers with bullet-point summaries"
    - kind="decision": "Use nearest-rank percentiles for latency reports"
    - kind="fact": "The corpus covers the 2023 survey papers only"
    """

    id: Optional[int] = None
    text: str = Field(min_length=1)
    kind: MemoryKind
    importance: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    embedding_id: int
    supersedes_id: Optional[int] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_row(self) -> Dict[str, Any]:
        """Convert to a store row."""
        return {
            "id": self.id,
            "text": self.text,
            "kind": self.kind,
            "importance": self.importance,
            "confidence": self.confidence,
            "embedding_id": self.embedding_id,
            "supersedes_id": self.supersedes_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> SemanticMemory:
        """Create instance from a store row."""
        return cls(
            id=row["id"],
            text=row["text"],
            kind=row["kind"],
            importance=row["importance"],
            confidence=row["confidence"],
            embedding_id=row["embedding_id"],
            supersedes_id=row.get("supersedes_id"),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )


class MemoryCandidate(BaseModel):
    """A memory proposed by the extraction model, not yet admitted."""

    text: str = Field(min_length=1)
    kind: MemoryKind
    importance: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)


@dataclass(slots=True)
class EpisodicTurn:
    """A single utterance in a session's episodic log."""

    turn_id: str
    session_id: str
    role: Role
    text: str
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(cls, *, session_id: str, role: Role, text: str) -> "EpisodicTurn":
        return cls(turn_id=str(uuid.uuid4()), session_id=session_id, role=role, text=text)


@dataclass(slots=True)
class RetrievedChunk:
    chunk_id: int
    document_path: str
    document_title: str
    text: str
    score: float


@dataclass(slots=True)
class RetrievedMemory:
    memory_id: int
    kind: MemoryKind
    text: str
    importance: float
    confidence: float
    supersedes_id: Optional[int]
    score: float


@dataclass(slots=True)
class RagSource:
    """A retrieved chunk with its stable citation label (S1, S2, ...)."""

    citation: str
    chunk_id: int
    document_path: str
    document_title: str
    score: float
    text: str

    @property
    def header(self) -> str:
        return f"{self.document_title} ({self.document_path}) chunk={self.chunk_id}"


@dataclass(slots=True)
class Usage:
    """Token usage reported by a provider; every field may be missing."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Usage"]:
        """Map an OpenAI-style ``usage`` object; non-numeric fields are dropped."""
        if not isinstance(payload, dict):
            return None

        def _num(key: str) -> Optional[int]:
            value = payload.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            return int(value)

        return cls(
            prompt_tokens=_num("prompt_tokens"),
            completion_tokens=_num("completion_tokens"),
            total_tokens=_num("total_tokens"),
        )

    def to_payload(self) -> Dict[str, Optional[int]]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


def add_usage(a: Optional[Usage], b: Optional[Usage]) -> Optional[Usage]:
    """Sum two usages; a missing side leaves the other unchanged."""
    if a is None:
        return Usage(b.prompt_tokens, b.completion_tokens, b.total_tokens) if b else None
    if b is None:
        return a
    return Usage(
        prompt_tokens=(a.prompt_tokens or 0) + (b.prompt_tokens or 0),
        completion_tokens=(a.completion_tokens or 0) + (b.completion_tokens or 0),
        total_tokens=(a.total_tokens or 0) + (b.total_tokens or 0),
    )


@dataclass(slots=True)
class StageTiming:
    label: str
    ms: float


@dataclass(slots=True)
class LlmCallRecord:
    label: str
    provider: str
    model: str
    usage: Optional[Usage] = None


@dataclass(slots=True)
class MemoryWriteStats:
    proposed: int = 0
    stored: int = 0
    skipped_low_score: int = 0
    superseded: int = 0
    usage: Optional[Usage] = None

    def counts(self) -> Dict[str, int]:
        return {
            "proposed": self.proposed,
            "stored": self.stored,
            "skipped_low_score": self.skipped_low_score,
            "superseded": self.superseded,
        }


@dataclass(slots=True)
class TurnResult:
    """Outcome of one question-to-answer pipeline execution."""

    answer: str
    sources: List[RagSource]
    timings: List[StageTiming]
    llm_calls: List[LlmCallRecord]
    usage_total: Optional[Usage] = None
    memory_write: Optional[MemoryWriteStats] = None
    rewritten_query: Optional[str] = None

    @property
    def total_latency_ms(self) -> float:
        return sum(t.ms for t in self.timings)

    def timings_ms(self) -> Dict[str, float]:
        return {t.label: t.ms for t in self.timings}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [asdict(s) for s in self.sources],
            "timings_ms": self.timings_ms(),
            "llm_calls": [
                {
                    "label": c.label,
                    "provider": c.provider,
                    "model": c.model,
                    "usage": c.usage.to_payload() if c.usage else None,
                }
                for c in self.llm_calls
            ],
            "usage": self.usage_total.to_payload() if self.usage_total else None,
            "memory_write": self.memory_write.counts() if self.memory_write else None,
            "rewritten_query": self.rewritten_query,
        }


__all__ = [
    "DocumentChunk",
    "EmbeddingRecord",
    "EpisodicTurn",
    "LlmCallRecord",
    "MemoryCandidate",
    "MemoryKind",
    "MemoryWriteStats",
    "NOT_FOUND_ANSWER",
    "RagSource",
    "RetrievedChunk",
    "RetrievedMemory",
    "Role",
    "SemanticMemory",
    "StageTiming",
    "TurnResult",
    "Usage",
    "add_usage",
]
