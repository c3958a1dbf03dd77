"""Offline evaluation: LLM judge, pricing, per-question results and summaries."""

from .judge import JudgeResult, JudgeScores, judge_answer, weighted_score  # noqa: F401
from .pricing import estimate_dollars, load_pricing_table  # noqa: F401
from .questions import EvalQuestion, load_questions, recall_at_k  # noqa: F401
from .results import EvalResult  # noqa: F401
from .run_eval import EvalRunOutput, evaluate_question, run_eval  # noqa: F401
from .summary import EvalRunSummary, percentile, summarize_eval_results  # noqa: F401

__all__ = [
    "EvalQuestion",
    "EvalResult",
    "EvalRunOutput",
    "EvalRunSummary",
    "JudgeResult",
    "JudgeScores",
    "estimate_dollars",
    "evaluate_question",
    "judge_answer",
    "load_pricing_table",
    "load_questions",
    "percentile",
    "recall_at_k",
    "run_eval",
    "summarize_eval_results",
    "weighted_score",
]
