"""
LLM Judge - Rubric scoring of answers

WHAT: Asks a judge model for four integer 0-5 rubric scores and derives a weighted score
WHERE: memrag/evaluation/judge.py - evaluation layer
WHO: run_eval and the optimizer, once per (config, question)
TIME: One judge-model call (temperature 0, max 300 tokens)

The judge answer is parsed from the first balanced JSON object in the reply.
Anything that does not validate yields ``None``: an unscored question is a
hole in the data, never a zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..runtime.rag.model_engine import ChatClient
from ..runtime.rag.models import RagSource, Usage
from ..runtime.rag.parsing import JsonInt, parse_json_object
from ..runtime.rag.query_transform import truncate

logger = logging.getLogger(__name__)

JUDGE_SYSTEM_PROMPT = "You are a strict evaluator. Output ONLY JSON. No markdown."
JUDGE_MAX_SOURCES = 6
JUDGE_SOURCE_CHARS = 700


class JudgeScores(BaseModel):
    """Rubric scores; ``memoryUse`` is accepted under its camelCase name."""

    model_config = ConfigDict(populate_by_name=True)

    correctness: JsonInt = Field(ge=0, le=5)
    groundedness: JsonInt = Field(ge=0, le=5)
    memory_use: JsonInt = Field(ge=0, le=5, alias="memoryUse")
    clarity: JsonInt = Field(ge=0, le=5)
    notes: Optional[str] = None

    @property
    def weighted_score(self) -> float:
        return weighted_score(self)


@dataclass(slots=True)
class JudgeResult:
    scores: JudgeScores
    usage: Optional[Usage] = None


def weighted_score(scores: JudgeScores) -> float:
    return 0.4 * scores.correctness + 0.4 * scores.groundedness + 0.2 * scores.memory_use


def build_judge_prompt(question: str, answer: str, sources: Sequence[RagSource]) -> str:
    snippets = "\n\n".join(
        f"[{s.citation}] {truncate(s.text, JUDGE_SOURCE_CHARS)}" for s in sources[:JUDGE_MAX_SOURCES]
    )
    return "\n".join(
        [
            "Grade the assistant answer using the rubric.",
            "",
            "Return ONLY valid JSON:",
            '{ "correctness": 0-5, "groundedness": 0-5, "memoryUse": 0-5, "clarity": 0-5, "notes": "optional" }',
            "",
            "Rubric:",
            "- correctness: factual/technical correctness relative to sources",
            "- groundedness: uses the provided sources; no unsupported claims",
            "- memoryUse: uses relevant preferences/decisions if present (if none, score 0-1 based on neutrality)",
            "- clarity: concise and clear",
            "",
            "Question:",
            question,
            "",
            "Answer:",
            answer,
            "",
            "Sources (snippets):",
            snippets or "(none)",
        ]
    )


def parse_judge_scores(text: str) -> Optional[JudgeScores]:
    parsed = parse_json_object(text)
    if parsed is None:
        logger.warning("Judge response had no JSON object")
        return None
    try:
        return JudgeScores.model_validate(parsed)
    except ValidationError as exc:
        logger.warning(f"Judge response failed validation: {exc.error_count()} errors")
        return None


def judge_answer(
    chat: ChatClient,
    *,
    question: str,
    answer: str,
    sources: Sequence[RagSource],
) -> Optional[JudgeResult]:
    res = chat.complete(
        [
            {"role": "system", "content": JUDGE_SYSTEM_PROMPT},
            {"role": "user", "content": build_judge_prompt(question, answer, sources)},
        ],
        temperature=0.0,
        max_tokens=300,
    )
    scores = parse_judge_scores(res.text)
    if scores is None:
        return None
    return JudgeResult(scores=scores, usage=res.usage)


__all__ = [
    "JUDGE_SYSTEM_PROMPT",
    "JudgeResult",
    "JudgeScores",
    "build_judge_prompt",
    "judge_answer",
    "parse_judge_scores",
    "weighted_score",
]
