import json
import threading

import pytest

from memrag.config.pipeline import PipelineConfig
from memrag.optimize.cost_model import CostModel
from memrag.runtime.rag.models import StageTiming
from memrag.runtime.rag.plan import build_rag_plan


def test_running_mean_per_label():
    model = CostModel()
    model.record([StageTiming("generate", 100.0), StageTiming("compose", 2.0)])
    model.record([StageTiming("generate", 200.0)])
    model.record([StageTiming("generate", 600.0)])
    assert model.avg_ms("generate") == pytest.approx(300.0)
    assert model.nodes["generate"].count == 3
    assert model.avg_ms("compose") == pytest.approx(2.0)
    assert model.avg_ms("rerank") is None


def test_save_and_load(tmp_path):
    path = tmp_path / "cost.json"
    model = CostModel()
    model.record([StageTiming("retrieve.docs", 12.5)])
    model.save(path)

    payload = json.loads(path.read_text())
    assert payload["version"] == 1
    assert payload["nodes"] == {"retrieve.docs": {"count": 1, "avgMs": 12.5}}
    assert "updatedAt" in payload
    assert CostModel.load(path).avg_ms("retrieve.docs") == pytest.approx(12.5)


def test_missing_or_foreign_file_starts_empty(tmp_path):
    assert CostModel.load(tmp_path / "absent.json").nodes == {}
    path = tmp_path / "old.json"
    path.write_text(json.dumps({"version": 0, "nodes": {"generate": {"count": 1, "avgMs": 1.0}}}))
    assert CostModel.load(path).nodes == {}


def test_project_plan_latency():
    config = PipelineConfig(
        chunk_size_tokens=800,
        overlap_tokens=100,
        top_k=10,
        rewrite=False,
        rerank=False,
        context_budget_tokens=6000,
        memory_blend="docs_only",
    )
    model = CostModel()
    model.record([StageTiming("embed.query", 5.0), StageTiming("retrieve.docs", 10.0), StageTiming("compose", 1.0)])
    assert model.project_plan_ms(build_rag_plan(config)) is None
    model.record([StageTiming("generate", 84.0)])
    assert model.project_plan_ms(build_rag_plan(config)) == pytest.approx(100.0)


def test_concurrent_records_are_all_counted():
    model = CostModel()

    def worker():
        for _ in range(200):
            model.record([StageTiming("generate", 10.0)])

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert model.nodes["generate"].count == 800
    assert model.avg_ms("generate") == pytest.approx(10.0)
