"""
Module: memrag/runtime/rag/plan.py
Summary: Stage graph of the RAG pipeline a config enables.
Inputs: PipelineConfig
Outputs: RagPlan {version, createdAt, configHash, nodes, edges}
Data-Contracts: written as rag_plan.json next to eval/optimize results
Related: memrag/runtime/rag/orchestrator.py, memrag/optimize/cost_model.py

Nodes carry the orchestrator timing labels they cover, so a cost model keyed
by timing label can project a config's latency from its plan alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

if TYPE_CHECKING:
    from ...config.pipeline import PipelineConfig

PLAN_VERSION = 1


@dataclass(slots=True)
class PlanNode:
    id: str
    type: str
    params: Dict[str, Any] = field(default_factory=dict)
    stages: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "params": dict(self.params)}


@dataclass(slots=True)
class RagPlan:
    config_hash: str
    nodes: List[PlanNode]
    edges: List[Tuple[str, str]]
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    version: int = PLAN_VERSION

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def stage_labels(self) -> List[str]:
        return [label for n in self.nodes for label in n.stages]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "configHash": self.config_hash,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [{"from": a, "to": b} for a, b in self.edges],
        }


def build_rag_plan(config: "PipelineConfig") -> RagPlan:
    nodes: List[PlanNode] = []
    edges: List[Tuple[str, str]] = []

    if config.rewrite:
        nodes.append(PlanNode("query.rewrite", "query.rewrite", stages=("rewrite",)))
    nodes.append(PlanNode("query.embed", "query.embed", stages=("embed.query",)))
    nodes.append(
        PlanNode(
            "query.retrieve",
            "query.retrieve",
            params={
                "topK": config.top_k,
                "chunkSizeTokens": config.chunk_size_tokens,
                "overlapTokens": config.overlap_tokens,
            },
            stages=("retrieve.docs",),
        )
    )
    if config.rerank:
        nodes.append(PlanNode("query.rerank", "query.rerank", params={"method": "llm"}, stages=("rerank",)))
    compose_stages = ("retrieve.memory", "compose") if config.uses_semantic_memory else ("compose",)
    nodes.append(
        PlanNode(
            "query.composeContext",
            "query.composeContext",
            params={"contextBudgetTokens": config.context_budget_tokens, "memoryBlend": config.memory_blend},
            stages=compose_stages,
        )
    )
    nodes.append(PlanNode("query.generateAnswer", "query.generateAnswer", stages=("generate",)))

    if config.rewrite:
        edges.append(("query.rewrite", "query.embed"))
    edges.append(("query.embed", "query.retrieve"))
    if config.rerank:
        edges.append(("query.retrieve", "query.rerank"))
    edges.append(("query.rerank" if config.rerank else "query.retrieve", "query.composeContext"))
    edges.append(("query.composeContext", "query.generateAnswer"))

    return RagPlan(config_hash=config.config_hash(), nodes=nodes, edges=edges)


__all__ = ["PLAN_VERSION", "PlanNode", "RagPlan", "build_rag_plan"]
