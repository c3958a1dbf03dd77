"""
Cost Model - Running mean latency per pipeline stage

WHAT: Per-stage-label running mean of observed latencies, persisted as JSON
WHERE: memrag/optimize/cost_model.py - shared by eval and optimize runs
WHO: run_eval / run_optimize after every turn; planners projecting a config's latency
TIME: record() O(stages); save() one small file write

File format::

    {"version": 1, "updatedAt": "...", "nodes": {"generate": {"count": 3, "avgMs": 812.4}}}

A file with any other version, or no file at all, starts an empty model.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..logging import write_json
from ..runtime.rag.models import StageTiming
from ..runtime.rag.plan import RagPlan

logger = logging.getLogger(__name__)

COST_MODEL_VERSION = 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class NodeStats:
    count: int = 0
    avg_ms: float = 0.0

    def observe(self, ms: float) -> None:
        self.count += 1
        self.avg_ms += (ms - self.avg_ms) / self.count


@dataclass
class CostModel:
    nodes: Dict[str, NodeStats] = field(default_factory=dict)
    updated_at: str = field(default_factory=_now)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, timings: Iterable[StageTiming]) -> None:
        """Fold one turn's stage timings into the running means."""
        with self._lock:
            for timing in timings:
                self.nodes.setdefault(timing.label, NodeStats()).observe(float(timing.ms))
            self.updated_at = _now()

    def avg_ms(self, label: str) -> Optional[float]:
        stats = self.nodes.get(label)
        return stats.avg_ms if stats else None

    def project_plan_ms(self, plan: RagPlan) -> Optional[float]:
        """Sum of mean latencies over the plan's stages; None if any stage is unobserved."""
        total = 0.0
        for label in plan.stage_labels():
            avg = self.avg_ms(label)
            if avg is None:
                return None
            total += avg
        return total

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "version": COST_MODEL_VERSION,
                "updatedAt": self.updated_at,
                "nodes": {k: {"count": v.count, "avgMs": v.avg_ms} for k, v in sorted(self.nodes.items())},
            }

    @classmethod
    def from_dict(cls, payload: Any) -> "CostModel":
        if not isinstance(payload, dict) or payload.get("version") != COST_MODEL_VERSION:
            return cls()
        nodes = {
            str(label): NodeStats(count=int(stats["count"]), avg_ms=float(stats["avgMs"]))
            for label, stats in (payload.get("nodes") or {}).items()
        }
        return cls(nodes=nodes, updated_at=str(payload.get("updatedAt") or _now()))

    @classmethod
    def load(cls, path: str | Path) -> "CostModel":
        file_path = Path(path)
        if not file_path.exists():
            return cls()
        return cls.from_dict(json.loads(file_path.read_text(encoding="utf-8")))

    def save(self, path: str | Path) -> None:
        write_json(Path(path), self.to_dict())
        logger.debug(f"Saved cost model ({len(self.nodes)} stages) to {path}")


__all__ = ["COST_MODEL_VERSION", "CostModel", "NodeStats"]
