import pytest
from pydantic import ValidationError

from memrag.config.pipeline import DEFAULT_PIPELINE_CONFIG, PipelineConfig

CANONICAL = {
    "chunkSizeTokens": 800,
    "overlapTokens": 100,
    "topK": 10,
    "rewrite": False,
    "rerank": True,
    "contextBudgetTokens": 6000,
    "memoryBlend": "docs+semantic",
}


def test_hash_ignores_key_order():
    shuffled = dict(reversed(list(CANONICAL.items())))
    assert PipelineConfig.from_canonical(CANONICAL).config_hash() == PipelineConfig.from_canonical(shuffled).config_hash()


def test_snake_and_camel_construction_agree():
    by_name = PipelineConfig(
        chunk_size_tokens=800,
        overlap_tokens=100,
        top_k=10,
        rewrite=False,
        rerank=True,
        context_budget_tokens=6000,
        memory_blend="docs+semantic",
    )
    assert by_name.canonical() == CANONICAL
    assert by_name == PipelineConfig.from_canonical(CANONICAL)


def test_distinct_configs_hash_differently():
    other = DEFAULT_PIPELINE_CONFIG.model_copy(update={"top_k": 20})
    assert other.config_hash() != DEFAULT_PIPELINE_CONFIG.config_hash()


@pytest.mark.parametrize(
    "field,value",
    [
        ("chunkSizeTokens", 0),
        ("overlapTokens", -1),
        ("topK", 0),
        ("contextBudgetTokens", 0),
        ("memoryBlend", "semantic_only"),
        ("overlapTokens", 800),
    ],
)
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        PipelineConfig.from_canonical({**CANONICAL, field: value})


def test_unknown_keys_are_rejected():
    with pytest.raises(ValidationError):
        PipelineConfig.from_canonical({**CANONICAL, "temperature": 0.2})


def test_config_is_immutable():
    with pytest.raises(ValidationError):
        DEFAULT_PIPELINE_CONFIG.top_k = 5  # type: ignore[misc]
