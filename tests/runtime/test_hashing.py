from memrag.runtime.rag.hashing import embedding_hash, sha256_hex, stable_json, stable_json_hash


def test_stable_json_sorts_keys_recursively():
    a = {"b": 1, "a": {"y": [1, {"d": 2, "c": 3}], "x": None}}
    b = {"a": {"x": None, "y": [1, {"c": 3, "d": 2}]}, "b": 1}
    assert stable_json(a) == stable_json(b)
    assert stable_json_hash(a) == stable_json_hash(b)
    assert stable_json({"b": 1, "a": 2}) == '{"a":2,"b":1}'


def test_integral_floats_hash_like_ints():
    assert stable_json_hash({"temperature": 0.0}) == stable_json_hash({"temperature": 0})
    assert stable_json_hash({"t": 0.2}) != stable_json_hash({"t": 0})


def test_non_ascii_is_kept():
    assert stable_json({"q": "café"}) == '{"q":"café"}'


def test_embedding_hash_depends_on_model_and_text():
    assert embedding_hash("m1", "hello") == embedding_hash("m1", "hello")
    assert embedding_hash("m1", "hello") != embedding_hash("m2", "hello")
    assert embedding_hash("m1", "hello") != embedding_hash("m1", "hello!")


def test_sha256_hex_accepts_str_and_bytes():
    assert sha256_hex("abc") == sha256_hex(b"abc")
    assert len(sha256_hex("abc")) == 64
