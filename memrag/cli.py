"""
Module: memrag/cli.py
Summary: Command-line entry point for ingest, ask, eval, optimize and memory inspection.
Inputs: RuntimeSettings.from_env() (MEMRAG_*, OPENROUTER_*, LMSTUDIO_*, *_MODEL); CLI flags
Outputs: Ingest stats, answers with citations, run directories under MEMRAG_RUNS_DIR
Data-Contracts: configs.jsonl / results.jsonl / pareto.json / summary.json (see memrag.optimize.optimizer)
Related: memrag/runtime/rag/orchestrator.py, memrag/evaluation/run_eval.py

Usage:
  memrag ingest docs/ --chunk-size 800 --overlap 100
  memrag ask "What does the survey conclude about reranking?"
  memrag eval questions.jsonl --top-k 10 --rerank
  memrag optimize questions.jsonl --seed 42 --top-n 3
  memrag memories --limit 20
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from .config.pipeline import DEFAULT_PIPELINE_CONFIG, PipelineConfig
from .config.settings import EvalOptions, OptimizeOptions, RuntimeSettings
from .evaluation.run_eval import run_eval
from .ingestion.ingest import DEFAULT_INCLUDE_EXTS, ingest_corpus
from .logging import setup_logging
from .optimize.optimizer import run_optimize
from .runtime.rag.caching import CachedChatClient, CachedEmbedder
from .runtime.rag.model_engine import OpenAICompatChatClient, OpenAICompatEmbeddingsClient
from .runtime.rag.orchestrator import TurnOrchestrator
from .runtime.rag.session import ResearchSession
from .runtime.rag.store import SqliteResearchStore
from .runtime.rag.telemetry import ConsoleTelemetryClient


def _add_pipeline_args(p: argparse.ArgumentParser) -> None:
    d = DEFAULT_PIPELINE_CONFIG
    p.add_argument("--chunk-size", type=int, default=d.chunk_size_tokens, help="Chunk size in tokens")
    p.add_argument("--overlap", type=int, default=d.overlap_tokens, help="Chunk overlap in tokens")
    p.add_argument("--top-k", type=int, default=d.top_k)
    p.add_argument("--rewrite", action="store_true", help="Rewrite the question before retrieval")
    p.add_argument("--rerank", action="store_true", help="LLM rerank of 3x top-k candidates")
    p.add_argument("--budget", type=int, default=d.context_budget_tokens, help="Context budget in tokens")
    p.add_argument("--memory-blend", choices=["docs_only", "docs+semantic"], default=d.memory_blend)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="memrag", description="Research assistant with long-term memory")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--db", default=None, help="SQLite path (overrides MEMRAG_DB_PATH)")
    sub = p.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Chunk and embed a corpus directory")
    ingest.add_argument("corpus", help="Directory of .md/.markdown/.txt files")
    ingest.add_argument("--chunk-size", type=int, default=DEFAULT_PIPELINE_CONFIG.chunk_size_tokens)
    ingest.add_argument("--overlap", type=int, default=DEFAULT_PIPELINE_CONFIG.overlap_tokens)
    ingest.add_argument("--ext", action="append", default=None, help="Extension to include (repeat)")

    ask = sub.add_parser("ask", help="Answer one question against the corpus")
    ask.add_argument("question")
    ask.add_argument("--session", default="", help="Session ID (random UUID if omitted)")
    ask.add_argument("--no-memory-writes", action="store_true")
    ask.add_argument("--telemetry", action="store_true", help="Print telemetry spans")
    ask.add_argument("--json", action="store_true", help="Print the full turn result as JSON")
    _add_pipeline_args(ask)

    ev = sub.add_parser("eval", help="Evaluate one pipeline config on a question set")
    ev.add_argument("questions", help="JSONL file of {id, question, expected_sources?}")
    ev.add_argument("--out", default=None, help="Output directory (default: runs/eval-<timestamp>)")
    ev.add_argument("--limit", type=int, default=None)
    ev.add_argument("--memory-writes", action="store_true", help="Let eval turns write memories")
    _add_pipeline_args(ev)

    opt = sub.add_parser("optimize", help="Two-stage config search with Pareto selection")
    opt.add_argument("questions", help="JSONL file of {id, question, expected_sources?}")
    opt.add_argument("--out", default=None, help="Output directory (default: runs/optimize-<timestamp>)")
    opt.add_argument("--seed", type=int, default=42)
    opt.add_argument("--warmup", type=int, default=8)
    opt.add_argument("--min-configs", type=int, default=8)
    opt.add_argument("--stage-a-questions", type=int, default=3)
    opt.add_argument("--stage-b-questions", type=int, default=10)
    opt.add_argument("--top-n", type=int, default=3)

    mem = sub.add_parser("memories", help="List recent semantic memories")
    mem.add_argument("--limit", type=int, default=20)
    return p


def _pipeline_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        chunk_size_tokens=args.chunk_size,
        overlap_tokens=args.overlap,
        top_k=args.top_k,
        rewrite=args.rewrite,
        rerank=args.rerank,
        context_budget_tokens=args.budget,
        memory_blend=args.memory_blend,
    )


def _run_dir(settings: RuntimeSettings, kind: str, explicit: Optional[str]) -> str:
    if explicit:
        return explicit
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return str(Path(settings.runs_dir) / f"{kind}-{stamp}")


def build_embedder(settings: RuntimeSettings, store: SqliteResearchStore) -> CachedEmbedder:
    return CachedEmbedder(store=store, inner=OpenAICompatEmbeddingsClient(settings.lmstudio, settings.embed_model))


def build_orchestrator(
    settings: RuntimeSettings,
    store: SqliteResearchStore,
    *,
    telemetry: bool = False,
) -> TurnOrchestrator:
    answer = CachedChatClient(store, OpenAICompatChatClient(settings.openrouter, settings.chat_model))
    support = CachedChatClient(store, OpenAICompatChatClient(settings.support_endpoint, settings.support_model))
    return TurnOrchestrator(
        store=store,
        embedder=build_embedder(settings, store),
        answer_chat=answer,
        support_chat=support,
        telemetry=ConsoleTelemetryClient() if telemetry else None,
    )


def build_judge(settings: RuntimeSettings, store: SqliteResearchStore) -> CachedChatClient:
    return CachedChatClient(store, OpenAICompatChatClient(settings.openrouter, settings.judge_model))


def _cmd_ingest(args: argparse.Namespace, settings: RuntimeSettings, store: SqliteResearchStore) -> int:
    stats = ingest_corpus(
        store,
        build_embedder(settings, store),
        corpus_path=Path(args.corpus),
        chunk_size_tokens=args.chunk_size,
        overlap_tokens=args.overlap,
        include_exts=tuple(args.ext) if args.ext else DEFAULT_INCLUDE_EXTS,
    )
    print(json.dumps(stats.to_dict(), indent=2))
    return 0


def _cmd_ask(args: argparse.Namespace, settings: RuntimeSettings, store: SqliteResearchStore) -> int:
    orch = build_orchestrator(settings, store, telemetry=args.telemetry)
    sess = ResearchSession.new(orch, _pipeline_from_args(args), session_id=args.session or None)
    result = sess.ask(args.question, enable_memory_writes=False if args.no_memory_writes else None)

    if args.json:
        print(json.dumps({"sessionId": sess.session_id, **result.to_dict()}, indent=2, ensure_ascii=False))
        return 0

    print(result.answer)
    if result.sources:
        print()
        for s in result.sources:
            print(f"[{s.citation}] {s.document_title or s.document_path} (score={s.score:.3f})")
    print(f"\n[session] {sess.session_id} latency={result.total_latency_ms:.0f}ms")
    return 0


def _cmd_eval(args: argparse.Namespace, settings: RuntimeSettings, store: SqliteResearchStore) -> int:
    options = EvalOptions(
        questions_path=args.questions,
        out_dir=_run_dir(settings, "eval", args.out),
        limit=args.limit,
        enable_memory_writes=args.memory_writes,
        cost_model_path=settings.cost_model_path,
        pricing_path=settings.pricing_path,
    )
    output = run_eval(
        orchestrator=build_orchestrator(settings, store),
        judge_chat=build_judge(settings, store),
        pipeline=_pipeline_from_args(args),
        options=options,
    )
    print(json.dumps(output.summary.to_dict(), indent=2))
    print(f"[eval] {output.count} results -> {output.results_path}")
    return 0


def _cmd_optimize(args: argparse.Namespace, settings: RuntimeSettings, store: SqliteResearchStore) -> int:
    options = OptimizeOptions(
        questions_path=args.questions,
        out_dir=_run_dir(settings, "optimize", args.out),
        seed=args.seed,
        warmup=args.warmup,
        min_configs=args.min_configs,
        stage_a_questions=args.stage_a_questions,
        stage_b_questions=args.stage_b_questions,
        top_n=args.top_n,
        cost_model_path=settings.cost_model_path,
        pricing_path=settings.pricing_path,
    )
    output = run_optimize(
        orchestrator=build_orchestrator(settings, store),
        judge_chat=build_judge(settings, store),
        options=options,
    )
    print(json.dumps(output.summary.to_dict(), indent=2))
    print(f"[optimize] pareto -> {output.pareto_path}")
    return 0


def _cmd_memories(args: argparse.Namespace, settings: RuntimeSettings, store: SqliteResearchStore) -> int:
    for m in store.list_recent_memories(limit=args.limit):
        supersedes = f" supersedes={m.supersedes_id}" if m.supersedes_id is not None else ""
        print(f"#{m.id} [{m.kind}] imp={m.importance:.2f} conf={m.confidence:.2f}{supersedes} {m.text}")
    return 0


COMMANDS = {
    "ingest": _cmd_ingest,
    "ask": _cmd_ask,
    "eval": _cmd_eval,
    "optimize": _cmd_optimize,
    "memories": _cmd_memories,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    settings = RuntimeSettings.from_env()

    store = SqliteResearchStore.open(args.db or settings.db_path)
    try:
        return COMMANDS[args.command](args, settings, store)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
