"""
Machine-readable contract for a RAG pipeline configuration.

A PipelineConfig is an immutable value: the optimizer enumerates them, every
turn receives one by value, and its content hash partitions caches, result
logs and reports. The canonical form uses camelCase keys so stored configs and
their hashes stay comparable with previously written run artefacts.
"""

from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..runtime.rag.hashing import stable_json_hash

MemoryBlend = Literal["docs_only", "docs+semantic"]


class PipelineConfig(BaseModel):
    """Knobs of one RAG pipeline variant."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    chunk_size_tokens: int = Field(gt=0)
    overlap_tokens: int = Field(ge=0)
    top_k: int = Field(gt=0)
    rewrite: bool
    rerank: bool
    context_budget_tokens: int = Field(gt=0)
    memory_blend: MemoryBlend

    @model_validator(mode="after")
    def _check_overlap(self) -> "PipelineConfig":
        # overlap >= chunk size would make the sliding window stall
        if self.overlap_tokens >= self.chunk_size_tokens:
            raise ValueError(
                f"overlap_tokens ({self.overlap_tokens}) must be smaller than "
                f"chunk_size_tokens ({self.chunk_size_tokens})"
            )
        return self

    @property
    def uses_semantic_memory(self) -> bool:
        return self.memory_blend == "docs+semantic"

    def canonical(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def config_hash(self) -> str:
        return stable_json_hash(self.canonical())

    @classmethod
    def from_canonical(cls, data: Dict[str, Any]) -> "PipelineConfig":
        return cls.model_validate(data)


DEFAULT_PIPELINE_CONFIG = PipelineConfig(
    chunk_size_tokens=800,
    overlap_tokens=100,
    top_k=10,
    rewrite=False,
    rerank=False,
    context_budget_tokens=6000,
    memory_blend="docs+semantic",
)


__all__ = ["DEFAULT_PIPELINE_CONFIG", "MemoryBlend", "PipelineConfig"]
