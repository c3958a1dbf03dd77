"""
Research RAG Runtime - Corpus retrieval blended with semantic memory

WHAT: Local library for one-question RAG turns with long-term memory
WHERE: memrag/runtime/rag/ - runtime orchestration subsystem
WHO: Sessions, agent tools, eval harness and optimizer
TIME: Local stages <50ms; turn latency dominated by provider calls

Infrastructure:
- SQLite research store (content-addressed embeddings and LLM cache)
- OpenAI-compatible chat and embedding endpoints over httpx
- Exhaustive cosine retrieval with a bounded heap

Memory Types:
- episodic turns: append-only per-session utterance log
- semantic memories: preference/decision/fact/insight/todo with supersession

Operations:
- TurnOrchestrator.run_turn(pipeline, session_id, question)
- retrieve_chunks / retrieve_memories
- compose_context(memories, sources, budget_tokens)
- MemoryWriter.write_from_turn(...)
- ResearchTools.call(name, arguments)
"""

from .caching import CachedChatClient, CachedEmbedder  # noqa: F401
from .memory_writer import MemoryWriter, MemoryWriterConfig  # noqa: F401
from .model_engine import (  # noqa: F401
    ChatClient,
    ChatCompletion,
    EmbeddingsClient,
    OpenAICompatChatClient,
    OpenAICompatEmbeddingsClient,
    ProviderError,
)
from .models import NOT_FOUND_ANSWER, RagSource, TurnResult, Usage  # noqa: F401
from .orchestrator import OrchestratorConfig, TurnOrchestrator  # noqa: F401
from .plan import RagPlan, build_rag_plan  # noqa: F401
from .prompting import ComposedContext, compose_context  # noqa: F401
from .retrieval import ChunkSetNotFoundError, retrieve_chunks, retrieve_memories  # noqa: F401
from .session import ResearchSession  # noqa: F401
from .store import ResearchStore, SqliteResearchStore  # noqa: F401
from .telemetry import (  # noqa: F401
    ConsoleTelemetryClient,
    NoOpTelemetryClient,
    RecordingTelemetryClient,
    TelemetryClient,
    TelemetrySpan,
)
from .tools import ResearchTools, ToolName  # noqa: F401

__all__ = [
    "CachedChatClient",
    "CachedEmbedder",
    "ChatClient",
    "ChatCompletion",
    "ChunkSetNotFoundError",
    "ComposedContext",
    "ConsoleTelemetryClient",
    "EmbeddingsClient",
    "MemoryWriter",
    "MemoryWriterConfig",
    "NOT_FOUND_ANSWER",
    "NoOpTelemetryClient",
    "OpenAICompatChatClient",
    "OpenAICompatEmbeddingsClient",
    "OrchestratorConfig",
    "ProviderError",
    "RagPlan",
    "RagSource",
    "RecordingTelemetryClient",
    "ResearchSession",
    "ResearchStore",
    "ResearchTools",
    "SqliteResearchStore",
    "TelemetryClient",
    "TelemetrySpan",
    "ToolName",
    "TurnOrchestrator",
    "TurnResult",
    "Usage",
    "build_rag_plan",
    "compose_context",
    "retrieve_chunks",
    "retrieve_memories",
]
