"""
Optimizer - Two-stage config search with Pareto selection

WHAT: Scores sampled configs on a few questions, re-scores the best on more, keeps the non-dominated set
WHERE: memrag/optimize/optimizer.py - offline harness on top of the eval loop
WHO: CLI ``optimize``
TIME: Sequential; configs x questions turns plus one judge call per turn

Stage A runs every sampled config on the first ``stage_a_questions`` questions.
Stage A summaries are ranked by mean weighted score (configs the judge never
scored rank last) and the top ``top_n`` are re-run in Stage B on the first
``stage_b_questions`` questions. Each config gets a fresh session and memory
writes stay off, so an optimize run never adds long-term memories.

Artefacts written to the output directory:
- configs.jsonl: {configHash, config} per sampled config
- rag_plan.jsonl: {configHash, ragPlan} per sampled config
- results.jsonl: one ConfigSummary per (config, stage)
- pareto.json: frontier over Stage A and Stage B summaries
- summary.json: run summary (best picks and frontier)
- cost_model.json: snapshot of the cost model (when a cost model path is set)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..config.pipeline import PipelineConfig
from ..config.settings import OptimizeOptions
from ..evaluation.pricing import PricingTable, load_pricing_table
from ..evaluation.questions import EvalQuestion, load_questions
from ..evaluation.results import EvalResult
from ..evaluation.run_eval import evaluate_question
from ..evaluation.summary import percentile
from ..logging import append_record, reset_file, write_json
from ..runtime.rag.model_engine import ChatClient
from ..runtime.rag.orchestrator import TurnOrchestrator
from ..runtime.rag.plan import build_rag_plan
from .cost_model import CostModel
from .explorer import enumerate_config_space, sample_configs
from .pareto import ParetoPoint, Stage, pareto_front
from .summary import OptimizeRunSummary, summarize_optimize_results

logger = logging.getLogger(__name__)


class NoQuestionsError(ValueError):
    """Raised when the question file yields nothing to evaluate."""


@dataclass(slots=True)
class ConfigSummary:
    config_hash: str
    stage: Stage
    n: int
    avg_score: Optional[float]
    p95_latency_ms: float
    total_tokens: int
    dollars: float

    def to_record(self) -> Dict[str, Any]:
        return {
            "configHash": self.config_hash,
            "stage": self.stage,
            "n": self.n,
            "avgScore": self.avg_score,
            "p95LatencyMs": self.p95_latency_ms,
            "totalTokens": self.total_tokens,
            "dollars": self.dollars,
        }

    def to_point(self) -> Optional[ParetoPoint]:
        if self.avg_score is None:
            return None
        return ParetoPoint(
            config_hash=self.config_hash,
            stage=self.stage,
            avg_score=self.avg_score,
            p95_latency_ms=self.p95_latency_ms,
            total_tokens=self.total_tokens,
            dollars=self.dollars,
        )


@dataclass(slots=True)
class OptimizeRunOutput:
    configs_path: Path
    results_path: Path
    pareto_path: Path
    summaries: List[ConfigSummary]
    pareto: List[ParetoPoint]
    summary: OptimizeRunSummary


def summarize_config(config_hash: str, stage: Stage, per_question: Sequence[EvalResult]) -> ConfigSummary:
    """Collapse one config's per-question results into a ConfigSummary.

    Unscored questions are left out of the mean; a config with no scored
    question at all gets ``avg_score=None``. Unknown token counts and prices
    count as zero in the sums.
    """
    scores = [r.weighted_score for r in per_question if r.weighted_score is not None]
    latencies = sorted(r.total_latency_ms for r in per_question)
    p95 = percentile(latencies, 0.95)
    return ConfigSummary(
        config_hash=config_hash,
        stage=stage,
        n=len(per_question),
        avg_score=sum(scores) / len(scores) if scores else None,
        p95_latency_ms=p95 if p95 is not None else 0.0,
        total_tokens=sum(r.total_tokens or 0 for r in per_question),
        dollars=sum(r.total_dollars or 0.0 for r in per_question),
    )


def evaluate_config(
    *,
    orchestrator: TurnOrchestrator,
    judge_chat: ChatClient,
    config: PipelineConfig,
    questions: Sequence[EvalQuestion],
    pricing: PricingTable,
    cost_model: Optional[CostModel] = None,
) -> List[EvalResult]:
    """Run ``questions`` through one config in a fresh session with memory writes off."""
    session_id = orchestrator.store.create_session()
    config_hash = config.config_hash()
    results: List[EvalResult] = []
    for question in questions:
        result, turn = evaluate_question(
            orchestrator=orchestrator,
            judge_chat=judge_chat,
            pipeline=config,
            session_id=session_id,
            question=question,
            pricing=pricing,
            enable_memory_writes=False,
            config_hash=config_hash,
        )
        if cost_model is not None:
            cost_model.record(turn.timings)
        results.append(result)
    return results


def _rank_key(summary: ConfigSummary) -> tuple[bool, float]:
    return (summary.avg_score is None, -(summary.avg_score or 0.0))


def run_optimize(
    *,
    orchestrator: TurnOrchestrator,
    judge_chat: ChatClient,
    options: OptimizeOptions,
    configs: Optional[Sequence[PipelineConfig]] = None,
) -> OptimizeRunOutput:
    out_dir = Path(options.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    configs_path = out_dir / "configs.jsonl"
    plans_path = out_dir / "rag_plan.jsonl"
    results_path = out_dir / "results.jsonl"
    pareto_path = out_dir / "pareto.json"
    for path in (configs_path, plans_path, results_path, pareto_path):
        reset_file(path)

    cost_model = CostModel.load(options.cost_model_path) if options.cost_model_path else None
    pricing = load_pricing_table(options.pricing_path)

    questions = load_questions(
        options.questions_path, limit=max(options.stage_a_questions, options.stage_b_questions)
    )
    if not questions:
        raise NoQuestionsError(f"No questions loaded from {options.questions_path}")

    if configs is None:
        configs = sample_configs(
            enumerate_config_space(),
            seed=options.seed,
            warmup=options.warmup,
            min_configs=options.min_configs,
        )
    by_hash: Dict[str, PipelineConfig] = {}
    for config in configs:
        config_hash = config.config_hash()
        by_hash.setdefault(config_hash, config)
        append_record(configs_path, {"configHash": config_hash, "config": config.canonical()})
        append_record(plans_path, {"configHash": config_hash, "ragPlan": build_rag_plan(config).to_dict()})

    stage_a_questions = questions[: options.stage_a_questions]
    stage_b_questions = questions[: options.stage_b_questions]
    logger.info(
        f"Optimize: {len(configs)} configs, stage A {len(stage_a_questions)} questions, "
        f"stage B top {max(1, options.top_n)} on {len(stage_b_questions)} questions"
    )

    stage_a: List[ConfigSummary] = []
    for idx, config in enumerate(configs, start=1):
        per_question = evaluate_config(
            orchestrator=orchestrator,
            judge_chat=judge_chat,
            config=config,
            questions=stage_a_questions,
            pricing=pricing,
            cost_model=cost_model,
        )
        summary = summarize_config(config.config_hash(), "A", per_question)
        append_record(results_path, summary.to_record())
        stage_a.append(summary)
        logger.info(f"Stage A [{idx}/{len(configs)}] {summary.config_hash[:12]} score={summary.avg_score}")

    # sorted() is stable, so equal scores keep sampling order
    top = sorted(stage_a, key=_rank_key)[: max(1, options.top_n)]

    stage_b: List[ConfigSummary] = []
    for summary_a in top:
        config = by_hash[summary_a.config_hash]
        per_question = evaluate_config(
            orchestrator=orchestrator,
            judge_chat=judge_chat,
            config=config,
            questions=stage_b_questions,
            pricing=pricing,
            cost_model=cost_model,
        )
        summary = summarize_config(summary_a.config_hash, "B", per_question)
        append_record(results_path, summary.to_record())
        stage_b.append(summary)
        logger.info(f"Stage B {summary.config_hash[:12]} score={summary.avg_score}")

    points = [p for p in (s.to_point() for s in stage_a + stage_b) if p is not None]
    frontier = pareto_front(points)
    write_json(pareto_path, [p.to_dict() for p in frontier])
    logger.info(f"Pareto frontier: {len(frontier)} of {len(points)} points")

    run_summary = summarize_optimize_results(stage_a + stage_b, frontier)
    write_json(out_dir / "summary.json", run_summary.to_dict())

    if cost_model is not None and options.cost_model_path:
        cost_model.save(options.cost_model_path)
        cost_model.save(out_dir / "cost_model.json")

    return OptimizeRunOutput(
        configs_path=configs_path,
        results_path=results_path,
        pareto_path=pareto_path,
        summaries=stage_a + stage_b,
        pareto=frontier,
        summary=run_summary,
    )


__all__ = [
    "ConfigSummary",
    "NoQuestionsError",
    "OptimizeRunOutput",
    "evaluate_config",
    "run_optimize",
    "summarize_config",
]
