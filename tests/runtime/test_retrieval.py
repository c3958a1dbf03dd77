import pytest

from memrag.runtime.rag.models import SemanticMemory
from memrag.runtime.rag.retrieval import (
    ChunkSetNotFoundError,
    require_chunk_set_id,
    retrieve_chunks,
    retrieve_memories,
)


def _remember(store, embedder, text, kind="fact", importance=0.7):
    record = embedder.embed_one(text)
    return store.insert_semantic_memory(
        SemanticMemory(text=text, kind=kind, importance=importance, confidence=0.9, embedding_id=record.id)
    )


def test_query_ranks_matching_chunk_first(store, embedder, ingest):
    chunk_set_id = ingest({"notes.md": "alpha beta gamma delta"})
    query = embedder.embed_one("alpha").vector

    hits = retrieve_chunks(store, chunk_set_id=chunk_set_id, query_vector=query, k=2)

    assert [h.text for h in hits] == ["alpha beta", "gamma delta"]
    assert hits[0].score > hits[1].score


def test_equal_scores_break_ties_by_chunk_id(store, embedder, ingest):
    chunk_set_id = ingest({"a.md": "alpha beta", "b.md": "alpha beta", "c.md": "gamma delta"})
    query = embedder.embed_one("alpha").vector

    hits = retrieve_chunks(store, chunk_set_id=chunk_set_id, query_vector=query, k=2)

    assert [h.document_path for h in hits] == ["a.md", "b.md"]
    assert hits[0].chunk_id < hits[1].chunk_id
    assert hits[0].score == pytest.approx(hits[1].score)


def test_k_bounds_result_size(store, embedder, ingest):
    chunk_set_id = ingest({"a.md": "one two three four five six seven eight"})
    query = embedder.embed_one("three").vector
    assert len(retrieve_chunks(store, chunk_set_id=chunk_set_id, query_vector=query, k=3)) == 3
    assert len(retrieve_chunks(store, chunk_set_id=chunk_set_id, query_vector=query, k=50)) == 4


def test_missing_chunk_set_raises(store):
    with pytest.raises(ChunkSetNotFoundError) as err:
        require_chunk_set_id(store, chunk_size=800, overlap=100, embed_model="fake-embed")
    assert err.value.chunk_size == 800
    assert "ingest the corpus" in str(err.value)


def test_preferences_always_returned_first(store, embedder):
    low = _remember(store, embedder, "prefers short answers", kind="preference", importance=0.6)
    high = _remember(store, embedder, "prefers bullet lists", kind="preference", importance=0.9)
    third = _remember(store, embedder, "prefers metric units", kind="preference", importance=0.7)
    fact = _remember(store, embedder, "quantum tunnelling rates", kind="fact")
    _remember(store, embedder, "unrelated gardening note", kind="insight")

    query = embedder.embed_one("quantum tunnelling").vector
    memories = retrieve_memories(store, query_vector=query, k=1)

    assert [m.memory_id for m in memories] == [high, third, low, fact]
    assert all(m.kind == "preference" for m in memories[:3])


def test_superseded_memories_are_still_retrievable(store, embedder):
    old = _remember(store, embedder, "deadline is friday")
    record = embedder.embed_one("deadline is friday noon")
    new = store.insert_semantic_memory(
        SemanticMemory(
            text="deadline is friday noon",
            kind="fact",
            importance=0.8,
            confidence=0.9,
            embedding_id=record.id,
            supersedes_id=old,
        )
    )
    query = embedder.embed_one("deadline friday").vector
    ids = [m.memory_id for m in retrieve_memories(store, query_vector=query, k=5)]
    assert set(ids) == {old, new}
