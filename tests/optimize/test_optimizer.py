import json
import re

import pytest

from memrag.config.pipeline import PipelineConfig
from memrag.config.settings import OptimizeOptions
from memrag.evaluation.results import EvalResult
from memrag.logging import read_records
from memrag.optimize.optimizer import NoQuestionsError, run_optimize, summarize_config
from memrag.optimize.pareto import dominates
from memrag.runtime.rag.orchestrator import TurnOrchestrator


def _config(top_k: int) -> PipelineConfig:
    return PipelineConfig(
        chunk_size_tokens=2,
        overlap_tokens=0,
        top_k=top_k,
        rewrite=False,
        rerank=False,
        context_budget_tokens=3000,
        memory_blend="docs_only",
    )


def _cite_everything(messages):
    return " ".join(sorted(set(re.findall(r"\[(S\d+)\]", messages[-1]["content"]))))


def _judge_by_citations(messages):
    # more cited sources earns a better correctness score
    correctness = 5 if "S2" in messages[-1]["content"].split("Answer:")[1] else 2
    return json.dumps({"correctness": correctness, "groundedness": 4, "memoryUse": 0, "clarity": 4})


@pytest.fixture
def questions(tmp_path):
    path = tmp_path / "questions.jsonl"
    path.write_text(
        "\n".join(json.dumps({"id": f"q{i}", "question": q}) for i, q in enumerate(["alpha", "gamma", "beta"]))
        + "\n"
    )
    return path


def _options(tmp_path, questions, **overrides):
    values = dict(
        questions_path=str(questions),
        out_dir=str(tmp_path / "opt"),
        stage_a_questions=1,
        stage_b_questions=2,
        top_n=1,
        cost_model_path=str(tmp_path / "cost_model.json"),
    )
    values.update(overrides)
    return OptimizeOptions(**values)


def test_two_stage_run(tmp_path, questions, store, embedder, ingest, fake_chat):
    ingest({"notes.md": "alpha beta gamma delta"})
    support = fake_chat(["[]"])
    orch = TurnOrchestrator(
        store=store, embedder=embedder, answer_chat=fake_chat([_cite_everything]), support_chat=support
    )
    narrow, wide = _config(1), _config(2)

    output = run_optimize(
        orchestrator=orch,
        judge_chat=fake_chat([_judge_by_citations]),
        options=_options(tmp_path, questions),
        configs=[narrow, wide],
    )

    out_dir = tmp_path / "opt"
    configs = list(read_records(out_dir / "configs.jsonl"))
    assert [c["configHash"] for c in configs] == [narrow.config_hash(), wide.config_hash()]
    assert configs[0]["config"] == narrow.canonical()
    plans = list(read_records(out_dir / "rag_plan.jsonl"))
    assert plans[1]["ragPlan"]["configHash"] == wide.config_hash()

    results = list(read_records(out_dir / "results.jsonl"))
    assert [(r["configHash"], r["stage"], r["n"]) for r in results] == [
        (narrow.config_hash(), "A", 1),
        (wide.config_hash(), "A", 1),
        (wide.config_hash(), "B", 2),
    ]
    assert results[1]["avgScore"] > results[0]["avgScore"]
    # answer and judge calls, 15 tokens each
    assert results[2]["totalTokens"] == 60

    front = json.loads((out_dir / "pareto.json").read_text())
    assert wide.config_hash() in {p["configHash"] for p in front}
    for p in output.pareto:
        assert not any(dominates(q.to_point(), p) for q in output.summaries)

    summary = json.loads((out_dir / "summary.json").read_text())
    assert summary["runType"] == "optimize"
    assert (summary["configCount"], summary["stageACount"], summary["stageBCount"]) == (2, 2, 1)
    assert summary["bestByScore"]["stage"] == "B"

    # optimize never writes long-term memory and gives each config run its own session
    assert support.calls == []
    assert store.list_recent_memories() == []
    assert store.conn.execute("SELECT COUNT(*) FROM sessions").fetchone()[0] == 3

    cost = json.loads((tmp_path / "cost_model.json").read_text())
    assert cost["nodes"]["generate"]["count"] == 4
    assert (out_dir / "cost_model.json").exists()


def test_unscored_configs_stay_off_the_frontier(tmp_path, questions, store, embedder, ingest, fake_chat):
    ingest({"notes.md": "alpha beta gamma delta"})
    orch = TurnOrchestrator(store=store, embedder=embedder, answer_chat=fake_chat(["ok"]))

    output = run_optimize(
        orchestrator=orch,
        judge_chat=fake_chat(["cannot grade"]),
        options=_options(tmp_path, questions, cost_model_path=None),
        configs=[_config(1), _config(2)],
    )

    assert [s.avg_score for s in output.summaries] == [None, None, None]
    assert output.summaries[2].config_hash == _config(1).config_hash()
    assert output.pareto == []
    assert output.summary.best_by_score is None
    assert output.summary.best_by_latency is not None
    assert json.loads((tmp_path / "opt" / "pareto.json").read_text()) == []


def test_no_questions_aborts(tmp_path, store, embedder, fake_chat):
    empty = tmp_path / "empty.jsonl"
    empty.write_text("")
    orch = TurnOrchestrator(store=store, embedder=embedder, answer_chat=fake_chat())
    with pytest.raises(NoQuestionsError):
        run_optimize(
            orchestrator=orch,
            judge_chat=fake_chat(),
            options=_options(tmp_path, empty),
            configs=[_config(1)],
        )


def _result(latency, score, tokens, dollars):
    return EvalResult(
        id="q",
        question="q",
        answer="a",
        config_hash="h",
        timings_ms={"generate": latency},
        usage={"prompt_tokens": None, "completion_tokens": None, "total_tokens": tokens},
        dollars=dollars,
        weighted_score=score,
    )


def test_summarize_config_aggregates():
    per_question = [
        _result(150, 4.0, 100, 0.5),
        _result(200, None, 50, None),
        _result(50, 2.0, 10, 0.25),
    ]
    summary = summarize_config("h", "A", per_question)
    assert summary.n == 3
    assert summary.avg_score == pytest.approx(3.0)
    assert summary.p95_latency_ms == 200
    assert summary.total_tokens == 160
    assert summary.dollars == pytest.approx(0.75)
