"""Per-question evaluation records (one JSONL line each)."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .judge import JudgeScores


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict:
        return self.model_dump(by_alias=True, mode="json")


class SourceRef(_CamelModel):
    citation: str
    document_path: str
    chunk_id: int


class EvalResult(_CamelModel):
    """Outcome of one question under one config."""

    id: str
    question: str
    answer: str
    config_hash: str
    timings_ms: Dict[str, float]
    usage: Optional[Dict[str, Optional[int]]] = None
    dollars: Optional[float] = None
    judge_usage: Optional[Dict[str, Optional[int]]] = None
    judge_dollars: Optional[float] = None
    judge: Optional[JudgeScores] = None
    weighted_score: Optional[float] = None
    recall_at_k: Optional[int] = None
    retrieved_sources: List[SourceRef] = []
    rewritten_query: Optional[str] = None
    memory_write: Optional[Dict[str, int]] = None

    @property
    def total_latency_ms(self) -> float:
        return sum(self.timings_ms.values())

    @property
    def total_tokens(self) -> Optional[int]:
        rag = (self.usage or {}).get("total_tokens")
        judge = (self.judge_usage or {}).get("total_tokens")
        if rag is None and judge is None:
            return None
        return (rag or 0) + (judge or 0)

    @property
    def total_dollars(self) -> Optional[float]:
        if self.dollars is None and self.judge_dollars is None:
            return None
        return (self.dollars or 0.0) + (self.judge_dollars or 0.0)


__all__ = ["EvalResult", "SourceRef"]
