"""
Query Transform - Optional LLM query rewrite and rerank

WHAT: Paraphrase a question into a search query; reorder retrieved candidates by relevance
WHERE: memrag/runtime/rag/query_transform.py - before embedding / after retrieval
WHO: TurnOrchestrator when the pipeline config enables rewrite or rerank
TIME: One support-model call each when enabled; free when disabled

Both transforms degrade to the identity: an empty rewrite keeps the original
question, and an unusable rerank answer keeps retrieval order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Generic, List, Optional, Sequence, TypeVar

from pydantic import Field, TypeAdapter, ValidationError

from .model_engine import ChatClient
from .models import RagSource, Usage
from .parsing import JsonInt, parse_json_array

logger = logging.getLogger(__name__)

REWRITE_SYSTEM_PROMPT = "Rewrite user questions into concise search queries. Output only the query text."
RERANK_SYSTEM_PROMPT = "Output ONLY valid JSON. No markdown."
RERANK_CANDIDATE_CHARS = 500

_RerankIndices = TypeAdapter(
    Annotated[List[Annotated[JsonInt, Field(ge=0)]], Field(min_length=1, max_length=100)]
)

S = TypeVar("S", bound=RagSource)


@dataclass(slots=True)
class RewriteResult:
    query: str
    usage: Optional[Usage] = None
    called: bool = False


@dataclass
class RerankResult(Generic[S]):
    items: List[S]
    usage: Optional[Usage] = None
    called: bool = False


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "…"


def maybe_rewrite_query(chat: ChatClient, *, question: str, enabled: bool) -> RewriteResult:
    if not enabled:
        return RewriteResult(query=question)
    res = chat.complete(
        [
            {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
            {"role": "user", "content": question},
        ],
        temperature=0.0,
        max_tokens=80,
    )
    query = res.text.strip()
    return RewriteResult(query=query or question, usage=res.usage, called=True)


def build_rerank_prompt(question: str, candidates: Sequence[RagSource]) -> str:
    lines = [
        "You are reranking retrieved text chunks for relevance.",
        "Return ONLY JSON: an array of indices in best-to-worst order.",
        "",
        "Question:",
        question,
        "",
        "Candidates:",
    ]
    lines.extend(
        f"({i}) {c.citation}: {truncate(c.text, RERANK_CANDIDATE_CHARS)}" for i, c in enumerate(candidates)
    )
    return "\n".join(lines)


def maybe_rerank(
    chat: ChatClient,
    *,
    question: str,
    candidates: Sequence[S],
    enabled: bool,
    take: int,
) -> RerankResult[S]:
    """Reorder candidates by the model's index list; keep the first ``take``."""
    fallback = list(candidates[:take])
    if not enabled or len(candidates) <= 1:
        return RerankResult(items=fallback)

    res = chat.complete(
        [
            {"role": "system", "content": RERANK_SYSTEM_PROMPT},
            {"role": "user", "content": build_rerank_prompt(question, candidates)},
        ],
        temperature=0.0,
        max_tokens=200,
    )

    parsed = parse_json_array(res.text)
    if parsed is None:
        logger.warning("Rerank response had no JSON array; keeping retrieval order")
        return RerankResult(items=fallback, usage=res.usage, called=True)
    try:
        indices = _RerankIndices.validate_python(parsed)
    except ValidationError:
        logger.warning("Rerank response was not a list of indices; keeping retrieval order")
        return RerankResult(items=fallback, usage=res.usage, called=True)

    seen: set[int] = set()
    ordered: List[S] = []
    for idx in indices:
        if idx >= len(candidates) or idx in seen:
            continue
        seen.add(idx)
        ordered.append(candidates[idx])
        if len(ordered) >= take:
            break
    return RerankResult(items=ordered or fallback, usage=res.usage, called=True)


__all__ = [
    "REWRITE_SYSTEM_PROMPT",
    "RERANK_SYSTEM_PROMPT",
    "RerankResult",
    "RewriteResult",
    "build_rerank_prompt",
    "maybe_rerank",
    "maybe_rewrite_query",
    "truncate",
]
