from memrag.config.pipeline import PipelineConfig
from memrag.runtime.rag.plan import build_rag_plan


def _config(**overrides):
    values = dict(
        chunk_size_tokens=800,
        overlap_tokens=100,
        top_k=10,
        rewrite=False,
        rerank=False,
        context_budget_tokens=6000,
        memory_blend="docs_only",
    )
    values.update(overrides)
    return PipelineConfig(**values)


def test_minimal_plan_is_a_chain():
    plan = build_rag_plan(_config())
    assert plan.node_ids() == ["query.embed", "query.retrieve", "query.composeContext", "query.generateAnswer"]
    assert plan.edges == [
        ("query.embed", "query.retrieve"),
        ("query.retrieve", "query.composeContext"),
        ("query.composeContext", "query.generateAnswer"),
    ]
    assert plan.stage_labels() == ["embed.query", "retrieve.docs", "compose", "generate"]


def test_full_plan_includes_optional_stages():
    config = _config(rewrite=True, rerank=True, memory_blend="docs+semantic")
    plan = build_rag_plan(config)
    assert plan.node_ids()[0] == "query.rewrite"
    assert ("query.retrieve", "query.rerank") in plan.edges
    assert ("query.rerank", "query.composeContext") in plan.edges
    assert "retrieve.memory" in plan.stage_labels()
    assert plan.config_hash == config.config_hash()


def test_plan_dict_uses_camel_case():
    payload = build_rag_plan(_config()).to_dict()
    assert set(payload) == {"version", "createdAt", "configHash", "nodes", "edges"}
    retrieve = next(n for n in payload["nodes"] if n["id"] == "query.retrieve")
    assert retrieve["params"] == {"topK": 10, "chunkSizeTokens": 800, "overlapTokens": 100}
    assert payload["edges"][0] == {"from": "query.embed", "to": "query.retrieve"}
