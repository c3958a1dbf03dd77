"""
RAG Orchestrator - Central coordination point for one question

WHAT: Runs rewrite, embed, retrieve, rerank, compose, generate and memory write in order
WHERE: memrag/runtime/rag/orchestrator.py - top of the runtime stack
WHO: ResearchSession, eval harness, optimizer, CLI ``ask``
TIME: Dominated by model calls; local stages <50ms for corpora of a few thousand chunks

Every stage runs inside a telemetry span named ``rag.<stage>``; the span's
measured duration becomes the stage timing. Disabled stages still open their
span, so every config reports the same timing labels up to the point a turn
ends. A turn that retrieves nothing stops after retrieval with a fixed
answer and makes no further model calls.

Stage labels:
- rewrite, embed.query, retrieve.docs, rerank, retrieve.memory, compose,
  generate, memory.write
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional

from .caching import CachedEmbedder
from .memory_writer import MemoryWriter
from .model_engine import ChatClient
from .models import (
    NOT_FOUND_ANSWER,
    EpisodicTurn,
    LlmCallRecord,
    MemoryWriteStats,
    RagSource,
    RetrievedMemory,
    StageTiming,
    TurnResult,
    Usage,
    add_usage,
)
from .prompting import build_answer_messages, compose_context
from .query_transform import maybe_rerank, maybe_rewrite_query
from .retrieval import require_chunk_set_id, retrieve_chunks, retrieve_memories
from .store import ResearchStore
from .telemetry import NoOpTelemetryClient, TelemetryClient, TelemetrySpan

if TYPE_CHECKING:
    from ...config.pipeline import PipelineConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrchestratorConfig:
    enable_memory_writes: bool = True
    memory_top_k: int = 5
    rerank_fanout: int = 3
    answer_temperature: float = 0.2


class _TurnLedger:
    """Collects timings, model calls and summed usage for one turn."""

    def __init__(self) -> None:
        self.timings: List[StageTiming] = []
        self.llm_calls: List[LlmCallRecord] = []
        self.usage_total: Optional[Usage] = None

    def record_call(self, label: str, client: ChatClient, usage: Optional[Usage]) -> None:
        self.llm_calls.append(LlmCallRecord(label=label, provider=client.provider, model=client.model, usage=usage))
        self.usage_total = add_usage(self.usage_total, usage)


class TurnOrchestrator:
    """Facade that runs one RAG turn against the store and model clients."""

    def __init__(
        self,
        *,
        store: ResearchStore,
        embedder: CachedEmbedder,
        answer_chat: ChatClient,
        support_chat: ChatClient | None = None,
        memory_writer: MemoryWriter | None = None,
        telemetry: TelemetryClient | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._answer_chat = answer_chat
        self._support_chat = support_chat or answer_chat
        self._memory_writer = memory_writer or MemoryWriter(
            store=store, chat=self._support_chat, embedder=embedder
        )
        self._telemetry = telemetry or NoOpTelemetryClient()
        self._config = config or OrchestratorConfig()

    @property
    def store(self) -> ResearchStore:
        return self._store

    @property
    def telemetry(self) -> TelemetryClient:
        return self._telemetry

    @contextmanager
    def _stage(self, ledger: _TurnLedger, label: str, **attributes) -> Iterator[TelemetrySpan]:
        with self._telemetry.span(f"rag.{label}", attributes=attributes) as span:
            yield span
        ledger.timings.append(StageTiming(label=label, ms=span.duration_ms))

    def _log_turn(self, session_id: str, role: str, text: str) -> None:
        self._store.append_turn(EpisodicTurn.create(session_id=session_id, role=role, text=text))  # type: ignore[arg-type]

    def run_turn(
        self,
        *,
        pipeline: "PipelineConfig",
        session_id: str,
        question: str,
        enable_memory_writes: bool | None = None,
    ) -> TurnResult:
        """
        Answer one question under a pipeline config.

        Args:
            pipeline: Config variant (chunk set, top-K, rewrite/rerank, budget, blend)
            session_id: Episodic log the user and assistant turns are appended to
            question: The user's question
            enable_memory_writes: Overrides the orchestrator default when given

        Returns:
            TurnResult with the answer, surviving sources and per-stage accounting

        Raises:
            ChunkSetNotFoundError: No corpus was ingested with the config's chunking
        """
        write_memories = self._config.enable_memory_writes if enable_memory_writes is None else enable_memory_writes
        self._log_turn(session_id, "user", question)
        chunk_set_id = require_chunk_set_id(
            self._store,
            chunk_size=pipeline.chunk_size_tokens,
            overlap=pipeline.overlap_tokens,
            embed_model=self._embedder.model,
        )
        ledger = _TurnLedger()

        with self._stage(ledger, "rewrite", enabled=pipeline.rewrite) as span:
            rewrite = maybe_rewrite_query(self._support_chat, question=question, enabled=pipeline.rewrite)
            span.set_attribute("query_chars", len(rewrite.query))
        if rewrite.called:
            ledger.record_call("rewrite", self._support_chat, rewrite.usage)
        rewritten_query = rewrite.query if rewrite.query != question else None

        with self._stage(ledger, "embed.query"):
            query_vector = self._embedder.embed_one(rewrite.query).vector

        fetch_k = pipeline.top_k * self._config.rerank_fanout if pipeline.rerank else pipeline.top_k
        with self._stage(ledger, "retrieve.docs", k=fetch_k, chunk_set_id=chunk_set_id) as span:
            chunks = retrieve_chunks(self._store, chunk_set_id=chunk_set_id, query_vector=query_vector, k=fetch_k)
            span.set_attribute("hits", len(chunks))

        sources = [
            RagSource(
                citation=f"S{idx + 1}",
                chunk_id=c.chunk_id,
                document_path=c.document_path,
                document_title=c.document_title,
                score=c.score,
                text=c.text,
            )
            for idx, c in enumerate(chunks)
        ]

        if not sources:
            logger.info(f"No sources retrieved for question in session {session_id}; answering not-found")
            self._log_turn(session_id, "assistant", NOT_FOUND_ANSWER)
            return TurnResult(
                answer=NOT_FOUND_ANSWER,
                sources=[],
                timings=ledger.timings,
                llm_calls=ledger.llm_calls,
                usage_total=ledger.usage_total,
                rewritten_query=rewritten_query,
            )

        with self._stage(ledger, "rerank", enabled=pipeline.rerank, candidates=len(sources)):
            reranked = maybe_rerank(
                self._support_chat,
                question=rewrite.query,
                candidates=sources,
                enabled=pipeline.rerank,
                take=pipeline.top_k,
            )
        if reranked.called:
            ledger.record_call("rerank", self._support_chat, reranked.usage)
        sources = reranked.items

        memories: List[RetrievedMemory] = []
        with self._stage(ledger, "retrieve.memory", enabled=pipeline.uses_semantic_memory) as span:
            if pipeline.uses_semantic_memory:
                memories = retrieve_memories(self._store, query_vector=query_vector, k=self._config.memory_top_k)
            span.set_attribute("hits", len(memories))

        with self._stage(ledger, "compose", budget_tokens=pipeline.context_budget_tokens) as span:
            context = compose_context(
                memories=memories,
                sources=sources,
                budget_tokens=pipeline.context_budget_tokens,
            )
            span.set_attribute("included", len(context.included_citations))
            span.set_attribute("estimated_tokens", context.estimated_tokens)
        included_ids = set(context.included_citations)
        included = [s for s in sources if s.citation in included_ids]

        with self._stage(ledger, "generate") as span:
            completion = self._answer_chat.complete(
                build_answer_messages(context, question),
                temperature=self._config.answer_temperature,
            )
            span.set_attribute("response_chars", len(completion.text))
        ledger.record_call("generate", self._answer_chat, completion.usage)

        answer = completion.text.strip() or NOT_FOUND_ANSWER
        self._log_turn(session_id, "assistant", answer)

        memory_write: Optional[MemoryWriteStats] = None
        with self._stage(ledger, "memory.write", enabled=write_memories):
            if write_memories:
                memory_write = self._memory_writer.write_from_turn(
                    user_message=question,
                    assistant_answer=answer,
                    sources=included,
                )
        if memory_write is not None:
            ledger.record_call("memory.write", self._memory_writer.chat, memory_write.usage)

        return TurnResult(
            answer=answer,
            sources=included,
            timings=ledger.timings,
            llm_calls=ledger.llm_calls,
            usage_total=ledger.usage_total,
            memory_write=memory_write,
            rewritten_query=rewritten_query,
        )


__all__ = ["OrchestratorConfig", "TurnOrchestrator"]
