"""Evaluation question sets (JSONL, one question per line)."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from ..logging import read_records


class EvalQuestion(BaseModel):
    id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    expected_sources: Optional[List[str]] = None
    notes: Optional[str] = None


def load_questions(path: str | Path, *, limit: int | None = None) -> List[EvalQuestion]:
    questions: List[EvalQuestion] = []
    for record in read_records(Path(path)):
        if limit is not None and len(questions) >= limit:
            break
        questions.append(EvalQuestion.model_validate(record))
    return questions


def recall_at_k(expected_sources: Optional[List[str]], retrieved_paths: List[str]) -> Optional[int]:
    """1 if any expected source is a substring of a retrieved path, else 0; None without expectations."""
    if not expected_sources:
        return None
    hit = any(expected in path for expected in expected_sources for path in retrieved_paths)
    return 1 if hit else 0


__all__ = ["EvalQuestion", "load_questions", "recall_at_k"]
