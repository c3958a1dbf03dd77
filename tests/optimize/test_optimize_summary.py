from memrag.optimize.optimizer import ConfigSummary
from memrag.optimize.pareto import ParetoPoint
from memrag.optimize.summary import summarize_optimize_results


def _s(name, stage, score, p95, dollars):
    return ConfigSummary(
        config_hash=name, stage=stage, n=3, avg_score=score, p95_latency_ms=p95, total_tokens=100, dollars=dollars
    )


def test_best_picks_prefer_stage_b():
    results = [
        _s("a", "A", 4.9, 10.0, 0.001),
        _s("b", "A", 4.0, 300.0, 0.2),
        _s("c", "A", 3.0, 200.0, 0.1),
        _s("b", "B", 4.2, 310.0, 0.3),
        _s("c", "B", 3.5, 190.0, 0.12),
    ]
    summary = summarize_optimize_results(results, [])
    assert (summary.config_count, summary.stage_a_count, summary.stage_b_count) == (3, 3, 2)
    assert (summary.best_by_score.config_hash, summary.best_by_score.stage) == ("b", "B")
    assert summary.best_by_latency.config_hash == "c"
    assert summary.best_by_dollars.config_hash == "c"


def test_falls_back_to_stage_a_and_skips_unscored():
    results = [_s("a", "A", None, 5.0, 0.0), _s("b", "A", 2.0, 50.0, 0.5)]
    pareto = [ParetoPoint("b", "A", 2.0, 50.0, 100, 0.5)]
    summary = summarize_optimize_results(results, pareto)
    assert summary.best_by_score.config_hash == "b"
    assert summary.best_by_latency.config_hash == "a"
    payload = summary.to_dict()
    assert payload["pareto"] == [p.to_dict() for p in pareto]
    assert payload["bestByLatency"]["avgScore"] is None


def test_empty_results():
    summary = summarize_optimize_results([], [])
    assert summary.best_by_score is None and summary.best_by_latency is None
    assert summary.to_dict()["configCount"] == 0
