import json

import pytest
from pydantic import ValidationError

from memrag.evaluation.questions import load_questions, recall_at_k


def test_load_questions_with_limit(tmp_path):
    path = tmp_path / "q.jsonl"
    lines = [json.dumps({"id": f"q{i}", "question": f"question {i}"}) for i in range(5)]
    path.write_text("\n".join(lines[:2]) + "\n\n" + "\n".join(lines[2:]) + "\n")
    assert [q.id for q in load_questions(path)] == ["q0", "q1", "q2", "q3", "q4"]
    assert [q.id for q in load_questions(path, limit=2)] == ["q0", "q1"]


def test_invalid_question_line(tmp_path):
    path = tmp_path / "q.jsonl"
    path.write_text(json.dumps({"id": "q1", "question": ""}) + "\n")
    with pytest.raises(ValidationError):
        load_questions(path)


def test_recall_at_k_substring_match():
    assert recall_at_k(["paper.md"], ["corpus/paper.md", "corpus/other.md"]) == 1
    assert recall_at_k(["missing.md"], ["corpus/paper.md"]) == 0
    assert recall_at_k(None, ["corpus/paper.md"]) is None
    assert recall_at_k([], ["corpus/paper.md"]) is None
