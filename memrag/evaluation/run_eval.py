"""
Evaluation Harness - Run a question set through one pipeline config

WHAT: Answers each question, judges it, prices it and logs an EvalResult per line
WHERE: memrag/evaluation/run_eval.py - offline harness
WHO: CLI ``eval``; the optimizer reuses evaluate_question per (config, question)
TIME: Sequential; one turn plus one judge call per question

Artefacts written to the output directory:
- config.json: canonical pipeline config
- rag_plan.json: stage graph of that config
- results.jsonl: one EvalResult per question
- summary.json: aggregate statistics
- cost_model.json: snapshot of the cost model (when a cost model path is set)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..logging import append_record, reset_file, write_json
from ..optimize.cost_model import CostModel
from ..runtime.rag.model_engine import ChatClient
from ..runtime.rag.models import TurnResult
from ..runtime.rag.orchestrator import TurnOrchestrator
from ..runtime.rag.plan import build_rag_plan
from .judge import judge_answer
from .pricing import PricingTable, estimate_calls_dollars, estimate_dollars, load_pricing_table
from .questions import EvalQuestion, load_questions, recall_at_k
from .results import EvalResult, SourceRef
from .summary import EvalRunSummary, summarize_eval_results

if TYPE_CHECKING:
    from ..config.pipeline import PipelineConfig
    from ..config.settings import EvalOptions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvalRunOutput:
    results_path: Path
    count: int
    summary: EvalRunSummary


def evaluate_question(
    *,
    orchestrator: TurnOrchestrator,
    judge_chat: ChatClient,
    pipeline: "PipelineConfig",
    session_id: str,
    question: EvalQuestion,
    pricing: PricingTable,
    enable_memory_writes: bool = False,
    config_hash: Optional[str] = None,
) -> tuple[EvalResult, TurnResult]:
    """Run, judge and price one question; returns the record and the raw turn."""
    turn = orchestrator.run_turn(
        pipeline=pipeline,
        session_id=session_id,
        question=question.question,
        enable_memory_writes=enable_memory_writes,
    )
    judged = judge_answer(judge_chat, question=question.question, answer=turn.answer, sources=turn.sources)
    judge_usage = judged.usage if judged else None

    result = EvalResult(
        id=question.id,
        question=question.question,
        answer=turn.answer,
        config_hash=config_hash or pipeline.config_hash(),
        timings_ms=turn.timings_ms(),
        usage=turn.usage_total.to_payload() if turn.usage_total else None,
        dollars=estimate_calls_dollars(pricing, turn.llm_calls),
        judge_usage=judge_usage.to_payload() if judge_usage else None,
        judge_dollars=estimate_dollars(
            pricing, provider=judge_chat.provider, model=judge_chat.model, usage=judge_usage
        ),
        judge=judged.scores if judged else None,
        weighted_score=judged.scores.weighted_score if judged else None,
        recall_at_k=recall_at_k(question.expected_sources, [s.document_path for s in turn.sources]),
        retrieved_sources=[
            SourceRef(citation=s.citation, document_path=s.document_path, chunk_id=s.chunk_id)
            for s in turn.sources
        ],
        rewritten_query=turn.rewritten_query,
        memory_write=turn.memory_write.counts() if turn.memory_write else None,
    )
    return result, turn


def run_eval(
    *,
    orchestrator: TurnOrchestrator,
    judge_chat: ChatClient,
    pipeline: "PipelineConfig",
    options: "EvalOptions",
    session_id: Optional[str] = None,
) -> EvalRunOutput:
    out_dir = Path(options.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    config_hash = pipeline.config_hash()

    cost_model = CostModel.load(options.cost_model_path) if options.cost_model_path else None
    pricing = load_pricing_table(options.pricing_path)
    questions = load_questions(options.questions_path, limit=options.limit)

    write_json(out_dir / "config.json", pipeline.canonical())
    write_json(out_dir / "rag_plan.json", build_rag_plan(pipeline).to_dict())

    results_path = out_dir / "results.jsonl"
    reset_file(results_path)

    sid = orchestrator.store.create_session(session_id)
    logger.info(f"Eval config {config_hash[:12]}: {len(questions)} questions -> {out_dir}")

    results = []
    for question in questions:
        result, turn = evaluate_question(
            orchestrator=orchestrator,
            judge_chat=judge_chat,
            pipeline=pipeline,
            session_id=sid,
            question=question,
            pricing=pricing,
            enable_memory_writes=options.enable_memory_writes,
            config_hash=config_hash,
        )
        if cost_model is not None:
            cost_model.record(turn.timings)
        append_record(results_path, result.to_record())
        results.append(result)
        logger.debug(f"Question {question.id}: score={result.weighted_score} latency={result.total_latency_ms:.1f}ms")

    summary = summarize_eval_results(results)
    write_json(out_dir / "summary.json", summary.to_dict())

    if cost_model is not None and options.cost_model_path:
        cost_model.save(options.cost_model_path)
        cost_model.save(out_dir / "cost_model.json")

    logger.info(f"Eval complete: n={summary.n} avg_score={summary.avg_weighted_score} p95={summary.p95_latency_ms}")
    return EvalRunOutput(results_path=results_path, count=len(results), summary=summary)


__all__ = ["EvalRunOutput", "evaluate_question", "run_eval"]
