"""Pareto-frontier selection over (score, p95 latency, dollars, tokens).

A point dominates another when it is no worse on every objective (score
higher-is-better, the rest lower-is-better) and strictly better on at least
one. Points that tie on every objective do not dominate each other, so all of
them stay on the frontier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Sequence

Stage = Literal["A", "B"]


@dataclass(slots=True)
class ParetoPoint:
    config_hash: str
    stage: Stage
    avg_score: float
    p95_latency_ms: float
    total_tokens: int
    dollars: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configHash": self.config_hash,
            "stage": self.stage,
            "avgScore": self.avg_score,
            "p95LatencyMs": self.p95_latency_ms,
            "totalTokens": self.total_tokens,
            "dollars": self.dollars,
        }


def dominates(a: ParetoPoint, b: ParetoPoint) -> bool:
    no_worse = (
        a.avg_score >= b.avg_score
        and a.p95_latency_ms <= b.p95_latency_ms
        and a.dollars <= b.dollars
        and a.total_tokens <= b.total_tokens
    )
    strictly_better = (
        a.avg_score > b.avg_score
        or a.p95_latency_ms < b.p95_latency_ms
        or a.dollars < b.dollars
        or a.total_tokens < b.total_tokens
    )
    return no_worse and strictly_better


def pareto_front(points: Sequence[ParetoPoint]) -> List[ParetoPoint]:
    """Non-dominated points, highest score first."""
    front = [
        p for i, p in enumerate(points) if not any(dominates(q, p) for j, q in enumerate(points) if i != j)
    ]
    # stable sort keeps input order among equal scores
    return sorted(front, key=lambda p: -p.avg_score)


__all__ = ["ParetoPoint", "Stage", "dominates", "pareto_front"]
