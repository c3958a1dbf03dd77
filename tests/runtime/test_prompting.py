from memrag.runtime.rag.models import RagSource, RetrievedMemory
from memrag.runtime.rag.prompting import (
    ANSWER_SYSTEM_PROMPT,
    build_answer_messages,
    compose_context,
    estimate_tokens,
)


def _source(i: int, words: int) -> RagSource:
    return RagSource(
        citation=f"S{i}",
        chunk_id=i,
        document_path=f"docs/{i}.md",
        document_title=f"{i}.md",
        score=1.0 / i,
        text=" ".join(["word"] * words),
    )


def _memory(i: int, kind="fact") -> RetrievedMemory:
    return RetrievedMemory(
        memory_id=i, kind=kind, text=f"memory {i}", importance=0.8, confidence=0.9, supersedes_id=None, score=0.5
    )


def test_empty_memory_section_says_none():
    ctx = compose_context(memories=[], sources=[_source(1, 5)], budget_tokens=3000)
    assert ctx.text.startswith("MEMORY:\n(none)\n\nSOURCES:")
    assert ctx.included_citations == ["S1"]


def test_memories_capped_at_ten():
    ctx = compose_context(memories=[_memory(i) for i in range(1, 15)], sources=[], budget_tokens=3000)
    assert "[M10] (fact) memory 10" in ctx.text
    assert "[M11]" not in ctx.text


def test_sources_stop_at_first_overflow():
    # budget floor is 500 tokens; a 200-word source costs 204
    sources = [_source(1, 200), _source(2, 200), _source(3, 200), _source(4, 10)]
    ctx = compose_context(memories=[], sources=sources, budget_tokens=100)
    assert ctx.included_citations == ["S1", "S2"]
    assert "[S3]" not in ctx.text and "[S4]" not in ctx.text
    assert ctx.estimated_tokens <= 500


def test_included_sources_are_a_prefix():
    sources = [_source(i, 50) for i in range(1, 30)]
    ctx = compose_context(memories=[], sources=sources, budget_tokens=1000)
    assert ctx.included_citations == [f"S{i}" for i in range(1, len(ctx.included_citations) + 1)]
    assert ctx.estimated_tokens <= 1000


def test_answer_messages_layout():
    ctx = compose_context(memories=[_memory(3, kind="preference")], sources=[_source(1, 3)], budget_tokens=3000)
    messages = build_answer_messages(ctx, "What is it?")
    assert messages[0] == {"role": "system", "content": ANSWER_SYSTEM_PROMPT}
    assert messages[1]["content"].endswith("QUESTION:\nWhat is it?")
    assert "[M3] (preference) memory 3" in messages[1]["content"]
    assert "[S1] 1.md (docs/1.md) chunk=1" in messages[1]["content"]


def test_estimate_tokens_counts_words():
    assert estimate_tokens("  a b\n c  ") == 3
    assert estimate_tokens("") == 0
