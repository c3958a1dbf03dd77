"""Run-level summary of an optimize run.

Best picks come from Stage B when any Stage B summary exists, since those
were scored on the larger question set; otherwise from Stage A. Summaries
without a score never win "best by score".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from .pareto import ParetoPoint

if TYPE_CHECKING:
    from .optimizer import ConfigSummary


@dataclass(slots=True)
class OptimizeRunSummary:
    config_count: int
    stage_a_count: int
    stage_b_count: int
    best_by_score: Optional["ConfigSummary"] = None
    best_by_latency: Optional["ConfigSummary"] = None
    best_by_dollars: Optional["ConfigSummary"] = None
    pareto: List[ParetoPoint] = field(default_factory=list)
    run_type: str = "optimize"

    def to_dict(self) -> Dict[str, Any]:
        def pick(s: Optional["ConfigSummary"]) -> Optional[Dict[str, Any]]:
            return s.to_record() if s is not None else None

        return {
            "runType": self.run_type,
            "configCount": self.config_count,
            "stageACount": self.stage_a_count,
            "stageBCount": self.stage_b_count,
            "bestByScore": pick(self.best_by_score),
            "bestByLatency": pick(self.best_by_latency),
            "bestByDollars": pick(self.best_by_dollars),
            "pareto": [p.to_dict() for p in self.pareto],
        }


def _best(results: Sequence["ConfigSummary"], key: Callable[["ConfigSummary"], Any]) -> Optional["ConfigSummary"]:
    return min(results, key=key) if results else None


def summarize_optimize_results(
    results: Sequence["ConfigSummary"], pareto: Sequence[ParetoPoint]
) -> OptimizeRunSummary:
    stage_a = [r for r in results if r.stage == "A"]
    stage_b = [r for r in results if r.stage == "B"]
    candidates = stage_b or list(results)
    scored = [r for r in candidates if r.avg_score is not None]

    return OptimizeRunSummary(
        config_count=len({r.config_hash for r in results}),
        stage_a_count=len(stage_a),
        stage_b_count=len(stage_b),
        best_by_score=_best(scored, lambda r: -r.avg_score),
        best_by_latency=_best(candidates, lambda r: r.p95_latency_ms),
        best_by_dollars=_best(candidates, lambda r: r.dollars),
        pareto=list(pareto),
    )


__all__ = ["OptimizeRunSummary", "summarize_optimize_results"]
