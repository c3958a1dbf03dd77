"""
Memory Writer - Distil semantic memories from a finished turn

WHAT: LLM-proposed memory candidates, admission filter and supersession linking
WHERE: memrag/runtime/rag/memory_writer.py - post-answer stage of a turn
WHO: TurnOrchestrator (when memory writes are enabled) and the write_memory tool
TIME: One support-model call plus one embedding lookup per admitted candidate

The extraction model sees the question, the answer and the sources that
survived context packing, and proposes up to five memories. Candidates below
the importance/confidence floor are counted and dropped. An admitted candidate
whose nearest existing memory is at least ``supersede_similarity`` similar
records that memory as superseded; the older row stays in the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, List, Optional, Sequence

from pydantic import Field, TypeAdapter, ValidationError

from .caching import CachedEmbedder
from .model_engine import ChatClient
from .models import MemoryCandidate, MemoryWriteStats, RagSource, SemanticMemory
from .parsing import parse_json_array
from .query_transform import truncate
from .retrieval import retrieve_memories
from .store import ResearchStore

logger = logging.getLogger(__name__)

MEMORY_SYSTEM_PROMPT = "You extract long-term semantic memories. Output ONLY valid JSON (an array). No markdown."

_Candidates = TypeAdapter(Annotated[List[MemoryCandidate], Field(max_length=10)])


@dataclass(slots=True)
class MemoryWriterConfig:
    """Thresholds and prompt limits for memory extraction."""

    min_importance: float = 0.6
    min_confidence: float = 0.6
    supersede_similarity: float = 0.88
    max_sources: int = 8
    source_chars: int = 700
    question_chars: int = 1200
    answer_chars: int = 1600
    max_tokens: int = 600


def build_memory_extraction_prompt(
    *,
    user_message: str,
    assistant_answer: str,
    sources: Sequence[RagSource],
    config: MemoryWriterConfig | None = None,
) -> str:
    cfg = config or MemoryWriterConfig()
    source_text = "\n\n".join(
        f"{s.citation}: {truncate(s.text, cfg.source_chars)}" for s in sources[: cfg.max_sources]
    )
    return "\n".join(
        [
            "Extract up to 5 high-value long-term semantic memories to store.",
            "",
            "Rules:",
            "- Only store stable, reusable information: user preferences, decisions, verified facts, durable insights, or TODOs.",
            "- Do NOT store transient chat text, greetings, or one-off details.",
            "- If unsure, omit.",
            "- importance/confidence are 0..1.",
            "",
            "Output JSON array with objects:",
            '[{ "text": "...", "kind": "preference|decision|fact|insight|todo", "importance": 0.0, "confidence": 0.0 }]',
            "",
            "User message:",
            truncate(user_message, cfg.question_chars),
            "",
            "Assistant answer:",
            truncate(assistant_answer, cfg.answer_chars),
            "",
            "Retrieved sources (for verification):",
            source_text or "(none)",
        ]
    )


def parse_memory_candidates(text: str) -> List[MemoryCandidate]:
    """Decode the first JSON array in ``text``; any malformed answer yields []."""
    parsed = parse_json_array(text)
    if parsed is None:
        logger.warning("Memory extraction response had no JSON array")
        return []
    try:
        return _Candidates.validate_python(parsed)
    except ValidationError as exc:
        logger.warning(f"Memory extraction response failed validation: {exc.error_count()} errors")
        return []


@dataclass
class MemoryWriter:
    """Admits model-proposed memories into the semantic store."""

    store: ResearchStore
    chat: ChatClient
    embedder: CachedEmbedder
    config: MemoryWriterConfig = field(default_factory=MemoryWriterConfig)

    def admits(self, candidate: MemoryCandidate) -> bool:
        return (
            candidate.importance >= self.config.min_importance
            and candidate.confidence >= self.config.min_confidence
        )

    def store_candidate(self, candidate: MemoryCandidate) -> SemanticMemory:
        """
        Persist one admitted candidate, linking it to a near-duplicate if any.

        Args:
            candidate: Validated memory candidate

        Returns:
            The stored SemanticMemory (with id and optional supersedes_id)
        """
        record = self.embedder.embed_one(candidate.text)
        # preferences always come back first, so take the best score, not the head
        nearest = max(
            retrieve_memories(self.store, query_vector=record.vector, k=1),
            key=lambda m: m.score,
            default=None,
        )

        supersedes_id: Optional[int] = None
        if nearest is not None and nearest.score >= self.config.supersede_similarity:
            supersedes_id = nearest.memory_id

        memory = SemanticMemory(
            text=candidate.text,
            kind=candidate.kind,
            importance=candidate.importance,
            confidence=candidate.confidence,
            embedding_id=record.id,
            supersedes_id=supersedes_id,
        )
        memory_id = self.store.insert_semantic_memory(memory)
        return memory.model_copy(update={"id": memory_id})

    def write_from_turn(
        self,
        *,
        user_message: str,
        assistant_answer: str,
        sources: Sequence[RagSource],
    ) -> MemoryWriteStats:
        """
        Extract and store memories from one question/answer exchange.

        Args:
            user_message: The question as asked
            assistant_answer: Final answer text
            sources: Sources that made it into the answer context

        Returns:
            MemoryWriteStats with proposal/admission counts and model usage
        """
        prompt = build_memory_extraction_prompt(
            user_message=user_message,
            assistant_answer=assistant_answer,
            sources=sources,
            config=self.config,
        )
        res = self.chat.complete(
            [
                {"role": "system", "content": MEMORY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=self.config.max_tokens,
        )

        candidates = parse_memory_candidates(res.text)
        stats = MemoryWriteStats(proposed=len(candidates), usage=res.usage)

        for candidate in candidates:
            if not self.admits(candidate):
                stats.skipped_low_score += 1
                continue
            stored = self.store_candidate(candidate)
            stats.stored += 1
            if stored.supersedes_id is not None:
                stats.superseded += 1

        logger.debug(
            f"Memory write: proposed={stats.proposed} stored={stats.stored} "
            f"skipped={stats.skipped_low_score} superseded={stats.superseded}"
        )
        return stats


__all__ = [
    "MEMORY_SYSTEM_PROMPT",
    "MemoryWriter",
    "MemoryWriterConfig",
    "build_memory_extraction_prompt",
    "parse_memory_candidates",
]
