"""
Session Manager - Research conversation state

WHAT: Session-level wrapper pairing a TurnOrchestrator with one episodic log
WHERE: memrag/runtime/rag/session.py - bridges orchestrator and storage
WHO: CLI ``ask`` and interactive callers asking several questions in a row
TIME: Session creation <5ms; history restoration <20ms for 50 turns

The orchestrator already appends user and assistant utterances; the session
only owns the id, the pipeline config in force and history lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from .models import EpisodicTurn, TurnResult
from .orchestrator import TurnOrchestrator
from .store import ResearchStore

if TYPE_CHECKING:
    from ...config.pipeline import PipelineConfig


@dataclass(slots=True)
class ResearchSession:
    orchestrator: TurnOrchestrator
    store: ResearchStore
    pipeline: "PipelineConfig"
    session_id: str

    @staticmethod
    def new(
        orchestrator: TurnOrchestrator,
        pipeline: "PipelineConfig",
        *,
        session_id: str | None = None,
    ) -> "ResearchSession":
        store = orchestrator.store
        sid = store.create_session(session_id)
        return ResearchSession(orchestrator=orchestrator, store=store, pipeline=pipeline, session_id=sid)

    def ask(self, question: str, *, enable_memory_writes: bool | None = None) -> TurnResult:
        return self.orchestrator.run_turn(
            pipeline=self.pipeline,
            session_id=self.session_id,
            question=question,
            enable_memory_writes=enable_memory_writes,
        )

    def restore_history(self, *, limit: int = 50) -> List[EpisodicTurn]:
        """Return the most recent turns, oldest first."""

        records = self.store.list_recent_turns(session_id=self.session_id, limit=limit)
        # Records are most-recent-first
        return list(reversed(records))


__all__ = ["ResearchSession"]
