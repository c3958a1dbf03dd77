"""Aggregate statistics over evaluation results.

Percentiles use the nearest-rank rule: for ``n`` ascending samples the
p-th percentile is element ``clamp(ceil(p * n) - 1, 0, n - 1)``. Averages are
taken over the questions that report a value; a question the judge could not
score does not pull the average towards zero.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic.alias_generators import to_camel

from .results import EvalResult


def percentile(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """Nearest-rank percentile of an ascending sequence; None when empty."""
    n = len(sorted_values)
    if n == 0:
        return None
    idx = min(n - 1, max(0, math.ceil(p * n) - 1))
    return sorted_values[idx]


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _defined(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None and math.isfinite(v)]


@dataclass(slots=True)
class EvalRunSummary:
    n: int
    avg_weighted_score: Optional[float]
    avg_correctness: Optional[float]
    avg_groundedness: Optional[float]
    avg_memory_use: Optional[float]
    avg_clarity: Optional[float]
    p50_latency_ms: Optional[float]
    p95_latency_ms: Optional[float]
    total_tokens: Optional[int]
    avg_tokens: Optional[float]
    total_dollars: Optional[float]
    avg_dollars: Optional[float]
    recall_at_k_rate: Optional[float]
    run_type: str = "eval"

    def to_dict(self) -> Dict[str, Any]:
        return {to_camel(k): v for k, v in asdict(self).items()}


def summarize_eval_results(results: Sequence[EvalResult]) -> EvalRunSummary:
    judged = [r.judge for r in results if r.judge is not None]
    latencies = sorted(r.total_latency_ms for r in results)

    tokens = [r.total_tokens for r in results if r.total_tokens is not None]
    dollars = _defined(r.total_dollars for r in results)
    recall = [float(r.recall_at_k) for r in results if r.recall_at_k is not None]

    return EvalRunSummary(
        n=len(results),
        avg_weighted_score=_mean(_defined(r.weighted_score for r in results)),
        avg_correctness=_mean([float(j.correctness) for j in judged]),
        avg_groundedness=_mean([float(j.groundedness) for j in judged]),
        avg_memory_use=_mean([float(j.memory_use) for j in judged]),
        avg_clarity=_mean([float(j.clarity) for j in judged]),
        p50_latency_ms=percentile(latencies, 0.5),
        p95_latency_ms=percentile(latencies, 0.95),
        total_tokens=sum(tokens) if tokens else None,
        avg_tokens=sum(tokens) / len(tokens) if tokens else None,
        total_dollars=sum(dollars) if dollars else None,
        avg_dollars=sum(dollars) / len(dollars) if dollars else None,
        recall_at_k_rate=_mean(recall),
    )


__all__ = ["EvalRunSummary", "percentile", "summarize_eval_results"]
