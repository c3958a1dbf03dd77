import pytest

from memrag.runtime.rag.parsing import extract_balanced, parse_json_array, parse_json_object


def test_extracts_array_from_prose():
    assert parse_json_array("Here you go:\n```json\n[1, 2, 3]\n```") == [1, 2, 3]


def test_brackets_inside_strings_are_ignored():
    text = 'noise {"notes": "use [S1] and }", "correctness": 4} trailing'
    assert parse_json_object(text) == {"notes": "use [S1] and }", "correctness": 4}


def test_escaped_quotes_inside_strings():
    assert parse_json_object(r'{"a": "say \"hi\" {"}') == {"a": 'say "hi" {'}


@pytest.mark.parametrize("text", ["", "no json", "[1, 2", "[not json]"])
def test_unparseable_yields_none(text):
    assert parse_json_array(text) is None


def test_object_parser_ignores_arrays():
    assert parse_json_object("[1, 2]") is None
    assert extract_balanced("x [a] y", "[") == "[a]"
