"""Token pricing table and dollar estimates.

The table is a JSON object keyed ``"provider:model"`` or bare ``"model"``:

    {"openrouter:grok-4.1-fast": {"promptPer1M": 0.2, "completionPer1M": 0.5}}

The provider-qualified key wins over the bare model key.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from ..runtime.rag.models import LlmCallRecord, Usage

logger = logging.getLogger(__name__)


class ModelPrice(BaseModel):
    prompt_per_1m: float = Field(alias="promptPer1M", ge=0.0)
    completion_per_1m: float = Field(alias="completionPer1M", ge=0.0)


PricingTable = Dict[str, ModelPrice]


def load_pricing_table(path: str | Path | None) -> PricingTable:
    """Load a pricing table; a missing file or path means no prices."""
    if not path:
        return {}
    file_path = Path(path)
    if not file_path.exists():
        logger.info(f"No pricing table at {file_path}; dollar estimates disabled")
        return {}
    raw = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Pricing table {file_path} must be a JSON object")
    table: PricingTable = {}
    for key, value in raw.items():
        try:
            table[key] = ModelPrice.model_validate(value)
        except ValidationError as exc:
            raise ValueError(f"Invalid pricing entry {key!r} in {file_path}: {exc}") from exc
    return table


def estimate_dollars(
    pricing: PricingTable,
    *,
    provider: str,
    model: str,
    usage: Optional[Usage],
) -> Optional[float]:
    if usage is None:
        return None
    price = pricing.get(f"{provider}:{model}") or pricing.get(model)
    if price is None:
        return None
    prompt = usage.prompt_tokens or 0
    completion = usage.completion_tokens or 0
    return (prompt * price.prompt_per_1m + completion * price.completion_per_1m) / 1_000_000


def estimate_calls_dollars(pricing: PricingTable, calls: Iterable[LlmCallRecord]) -> float:
    """Sum of per-call estimates; calls without a price contribute nothing."""
    total = 0.0
    for call in calls:
        total += estimate_dollars(pricing, provider=call.provider, model=call.model, usage=call.usage) or 0.0
    return total


__all__ = [
    "ModelPrice",
    "PricingTable",
    "estimate_calls_dollars",
    "estimate_dollars",
    "load_pricing_table",
]
