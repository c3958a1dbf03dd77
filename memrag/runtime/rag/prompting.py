"""
Prompt Engineering - Answer prompt and budgeted context packing

WHAT: System prompt for grounded answers and the MEMORY/SOURCES context block
WHERE: memrag/runtime/rag/prompting.py - prompt generation layer
WHO: TurnOrchestrator building the generate call
TIME: Context assembly <1ms for typical top-K

The context block lists up to ten memories first, then as many sources as fit
the token budget. Token cost is estimated by whitespace splitting. Packing stops
at the first source that would overflow the budget, so the surviving sources
are always a prefix of the ranked list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from .models import RagSource, RetrievedMemory

ANSWER_SYSTEM_PROMPT = "\n".join(
    [
        "You are a personal research assistant. You answer using ONLY the provided SOURCES and MEMORY.",
        "",
        "Rules:",
        '- If the answer is not supported by SOURCES, say: "Not found in corpus."',
        "- When you use a source, cite it inline using [S1], [S2], etc.",
        "- Do not invent citations.",
        "- Prefer concise, high-signal answers.",
        "- If MEMORY conflicts with SOURCES, prefer SOURCES and mention the conflict.",
    ]
)

MAX_CONTEXT_MEMORIES = 10
MIN_CONTEXT_BUDGET = 500


def estimate_tokens(text: str) -> int:
    return len(text.split())


@dataclass(slots=True)
class ComposedContext:
    text: str
    included_citations: List[str] = field(default_factory=list)
    estimated_tokens: int = 0


def format_memory_line(memory: RetrievedMemory) -> str:
    return f"[M{memory.memory_id}] ({memory.kind}) {memory.text}"


def compose_context(
    *,
    memories: Sequence[RetrievedMemory],
    sources: Sequence[RagSource],
    budget_tokens: int,
) -> ComposedContext:
    """Pack memories and sources into one context block under a token budget."""
    lines: List[str] = ["MEMORY:"]
    if memories:
        lines.extend(format_memory_line(m) for m in memories[:MAX_CONTEXT_MEMORIES])
    else:
        lines.append("(none)")
    lines.extend(["", "SOURCES:"])

    budget = max(MIN_CONTEXT_BUDGET, budget_tokens)
    used = estimate_tokens("\n".join(lines))
    included: List[str] = []

    for source in sources:
        head = f"[{source.citation}] {source.header}"
        cost = estimate_tokens("\n".join([head, source.text, ""]))
        if used + cost > budget:
            break
        lines.extend([head, source.text, ""])
        used += cost
        included.append(source.citation)

    return ComposedContext(text="\n".join(lines).strip(), included_citations=included, estimated_tokens=used)


def build_answer_messages(context: ComposedContext, question: str) -> list:
    return [
        {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join([context.text, "", "QUESTION:", question])},
    ]


__all__ = [
    "ANSWER_SYSTEM_PROMPT",
    "ComposedContext",
    "build_answer_messages",
    "compose_context",
    "estimate_tokens",
    "format_memory_line",
]
