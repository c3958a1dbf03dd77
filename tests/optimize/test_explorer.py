import pytest

from memrag.config.pipeline import PipelineConfig
from memrag.optimize.explorer import ConfigSpaceExhaustedError, enumerate_config_space, sample_configs


def test_space_has_216_distinct_configs():
    space = enumerate_config_space()
    assert len(space) == 216
    assert len({c.config_hash() for c in space}) == 216
    assert space[0].canonical() == {
        "chunkSizeTokens": 400,
        "overlapTokens": 50,
        "topK": 5,
        "rewrite": False,
        "rerank": False,
        "contextBudgetTokens": 3000,
        "memoryBlend": "docs_only",
    }
    assert space[1].memory_blend == "docs+semantic"


def test_sampling_is_deterministic_and_unique():
    space = enumerate_config_space()
    a = sample_configs(space, seed=7, warmup=4, min_configs=10)
    b = sample_configs(space, seed=7, warmup=4, min_configs=10)
    assert len(a) == 10
    assert [c.config_hash() for c in a] == [c.config_hash() for c in b]
    assert len({c.config_hash() for c in a}) == 10
    assert [c.config_hash() for c in sample_configs(space, seed=8, warmup=4, min_configs=10)] != [
        c.config_hash() for c in a
    ]


def test_sample_size_is_max_of_warmup_and_min_configs():
    space = enumerate_config_space()
    assert len(sample_configs(space, seed=1, warmup=12, min_configs=3)) == 12


def test_whole_space_can_be_drawn():
    space = enumerate_config_space()[:5]
    assert len(sample_configs(space, seed=3, warmup=5, min_configs=5)) == 5


def test_oversized_request_exhausts_space():
    space = enumerate_config_space()[:3]
    with pytest.raises(ConfigSpaceExhaustedError):
        sample_configs(space, seed=1, warmup=4, min_configs=4)


def test_duplicates_in_input_do_not_count_twice():
    config = enumerate_config_space()[0]
    with pytest.raises(ConfigSpaceExhaustedError):
        sample_configs([config, PipelineConfig.from_canonical(config.canonical())], seed=0, warmup=2, min_configs=2)
