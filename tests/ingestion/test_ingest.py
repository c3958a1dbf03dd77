from pathlib import Path

from memrag.chunking import ChunkConfig
from memrag.ingestion.ingest import discover_files, ingest_corpus, ingest_document


def _write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_discover_files_filters_extensions_and_dotfiles(tmp_path):
    _write(tmp_path, "a.md", "x")
    _write(tmp_path, "sub/b.txt", "x")
    _write(tmp_path, "sub/c.pdf", "x")
    _write(tmp_path, ".hidden/d.md", "x")
    _write(tmp_path, "e.MARKDOWN", "x")
    found = [p.relative_to(tmp_path).as_posix() for p in discover_files(tmp_path)]
    assert found == ["a.md", "e.MARKDOWN", "sub/b.txt"]


def test_ingest_corpus_skips_unchanged_documents(tmp_path, store, embedder, embeddings_client):
    _write(tmp_path, "a.md", "alpha beta gamma delta")
    _write(tmp_path, "b.txt", "epsilon zeta")

    first = ingest_corpus(store, embedder, corpus_path=tmp_path, chunk_size_tokens=2, overlap_tokens=0)
    assert (first.files_found, first.documents_upserted, first.chunks_written) == (2, 2, 3)
    calls_after_first = len(embeddings_client.calls)

    second = ingest_corpus(store, embedder, corpus_path=tmp_path, chunk_size_tokens=2, overlap_tokens=0)
    assert (second.documents_upserted, second.documents_skipped) == (0, 2)
    assert len(embeddings_client.calls) == calls_after_first
    assert second.chunk_set_id == first.chunk_set_id
    assert second.to_dict()["documentsSkipped"] == 2


def test_changed_document_replaces_its_chunks(store, embedder):
    cs = store.get_or_create_chunk_set(chunk_size=2, overlap=0, embed_model=embedder.model)
    config = ChunkConfig(chunk_size_tokens=2, overlap_tokens=0)

    ingest_document(store, embedder, path="a.md", text="one two three four", chunk_set_id=cs, chunk_config=config)
    result = ingest_document(store, embedder, path="a.md", text="five six", chunk_set_id=cs, chunk_config=config)

    assert result.changed and not result.skipped
    assert [r.text for r in store.iter_chunk_rows(cs)] == ["five six"]


def test_same_document_is_chunked_per_chunk_set(store, embedder):
    small = store.get_or_create_chunk_set(chunk_size=2, overlap=0, embed_model=embedder.model)
    large = store.get_or_create_chunk_set(chunk_size=4, overlap=1, embed_model=embedder.model)
    text = "a b c d e f"

    ingest_document(store, embedder, path="a.md", text=text, chunk_set_id=small, chunk_config=ChunkConfig(2, 0))
    result = ingest_document(store, embedder, path="a.md", text=text, chunk_set_id=large, chunk_config=ChunkConfig(4, 1))

    assert not result.changed and not result.skipped
    assert len(list(store.iter_chunk_rows(small))) == 3
    assert [r.text for r in store.iter_chunk_rows(large)] == ["a b c d", "d e f"]
