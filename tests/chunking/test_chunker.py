import pytest

from memrag.chunking import ChunkConfig, chunk_text, normalize_text


def test_windows_overlap_by_configured_tokens():
    text = " ".join(f"t{i}" for i in range(10))
    chunks = chunk_text(text, ChunkConfig(chunk_size_tokens=4, overlap_tokens=2))
    assert [c.text for c in chunks] == ["t0 t1 t2 t3", "t2 t3 t4 t5", "t4 t5 t6 t7", "t6 t7 t8 t9"]
    assert all(c.token_count == 4 for c in chunks)


def test_last_window_may_be_short():
    chunks = chunk_text("a b c d e", ChunkConfig(chunk_size_tokens=2, overlap_tokens=0))
    assert [c.text for c in chunks] == ["a b", "c d", "e"]
    assert chunks[-1].token_count == 1


def test_overlap_not_smaller_than_size_still_advances():
    chunks = chunk_text("a b c", ChunkConfig(chunk_size_tokens=2, overlap_tokens=5))
    assert [c.text for c in chunks] == ["a b", "b c"]


@pytest.mark.parametrize("text", ["", "   \n\t "])
def test_blank_text_has_no_chunks(text):
    assert chunk_text(text, ChunkConfig(chunk_size_tokens=10, overlap_tokens=2)) == []


def test_normalize_text():
    raw = "title  \n\n\n\nbody\x00 text\t\n"
    assert normalize_text(raw) == "title\n\nbody text"
