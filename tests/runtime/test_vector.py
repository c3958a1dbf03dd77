import numpy as np
import pytest

from memrag.runtime.rag.vector import as_vector, cosine_similarity, decode_vector, encode_vector


def test_cosine_identical_and_orthogonal():
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_is_symmetric():
    a = [0.3, -1.2, 2.5, 0.0]
    b = [1.1, 0.4, -0.7, 2.0]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert cosine_similarity(a, b) != pytest.approx(0.0)


def test_cosine_zero_vector_is_zero():
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_cosine_length_mismatch_raises():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


def test_blob_decodes_to_written_vector():
    vec = np.array([0.1, -2.5, 3.25], dtype=np.float32)
    blob = encode_vector(vec)
    assert len(blob) == 12
    np.testing.assert_array_equal(decode_vector(blob), vec)


def test_decode_rejects_ragged_blob():
    with pytest.raises(ValueError):
        decode_vector(b"\x00\x01\x02")


def test_as_vector_rejects_matrix():
    with pytest.raises(ValueError):
        as_vector(np.zeros((2, 2)))
