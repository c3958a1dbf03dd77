import pytest
from pydantic import ValidationError

from memrag.runtime.rag.memory_writer import MemoryWriter
from memrag.runtime.rag.tools import ResearchTools, ToolName, describe_tools


@pytest.fixture
def tools(store, embedder, fake_chat):
    return ResearchTools(store=store, embedder=embedder, writer=MemoryWriter(store=store, chat=fake_chat(), embedder=embedder))


def test_search_docs_returns_cited_sources(tools, ingest):
    ingest({"notes.md": "alpha beta gamma delta"}, chunk_size=2, overlap=0)
    out = tools.call("search_docs", {"query": "alpha", "k": 1, "chunk_size_tokens": 2, "overlap_tokens": 0})
    assert [(s["citation"], s["text"]) for s in out["sources"]] == [("S1", "alpha beta")]
    assert out["sources"][0]["documentPath"] == "notes.md"


def test_search_docs_without_chunk_set_is_empty(tools):
    assert tools.call(ToolName.SEARCH_DOCS, {"query": "alpha"}) == {"sources": []}


def test_write_memory_applies_admission_rule(tools, store):
    rejected = tools.call("write_memory", {"text": "maybe", "kind": "fact", "importance": 0.5, "confidence": 0.9})
    assert rejected == {"stored": False}

    stored = tools.call("write_memory", {"text": "prefers tables", "kind": "preference", "importance": 0.8, "confidence": 0.9})
    assert stored["stored"] is True
    assert stored["supersedesId"] is None

    again = tools.call("write_memory", {"text": "prefers tables", "kind": "preference", "importance": 0.9, "confidence": 0.9})
    assert again["supersedesId"] == stored["memoryId"]

    listed = tools.call("inspect_memory", {"limit": 5})["memories"]
    assert [m["id"] for m in listed] == [again["memoryId"], stored["memoryId"]]


def test_search_memory_includes_preferences(tools):
    tools.call("write_memory", {"text": "prefers tables", "kind": "preference", "importance": 0.8, "confidence": 0.9})
    tools.call("write_memory", {"text": "budget is small", "kind": "fact", "importance": 0.8, "confidence": 0.9})
    out = tools.call("search_memory", {"query": "budget", "k": 1})
    assert [m["kind"] for m in out["memories"]] == ["preference", "fact"]


def test_unknown_tool_and_bad_arguments_are_rejected(tools):
    with pytest.raises(ValueError):
        tools.call("delete_everything", {})
    with pytest.raises(ValidationError):
        tools.call("write_memory", {"text": "x", "kind": "opinion"})
    with pytest.raises(ValidationError):
        tools.call("search_docs", {"query": ""})


def test_describe_tools_covers_every_tool():
    full = describe_tools()
    assert set(full) == {t.value for t in ToolName}
    assert full["write_memory"]["parameters"]["kind"]["enum"] == ["preference", "decision", "fact", "insight", "todo"]
    assert isinstance(describe_tools(compact=True)["search_docs"], str)
