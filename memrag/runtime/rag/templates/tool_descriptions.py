"""
Tool descriptions for research-assistant agent tools.

These descriptions are included in agent system prompts so a tool-calling
model can search the corpus and manage long-term memory on its own. Every
tool runs in-process against the local research store.
"""

TOOL_DESCRIPTIONS = {
    "search_docs": {
        "name": "search_docs",
        "description": (
            "Search ingested documents and return the most relevant chunks with citations "
            "(S1, S2, ...). Use this before answering any question about the corpus."
        ),
        "parameters": {
            "query": {
                "type": "string",
                "description": "Natural language search query.",
                "required": True,
            },
            "k": {
                "type": "integer",
                "description": "Number of chunks to return, 1-50 (default: 10).",
                "required": False,
            },
            "chunk_size_tokens": {
                "type": "integer",
                "description": "Chunk size of the ingested chunk set to search (default: 800).",
                "required": False,
            },
            "overlap_tokens": {
                "type": "integer",
                "description": "Overlap of the ingested chunk set to search (default: 100).",
                "required": False,
            },
        },
        "examples": [{"query": "How is nearest-rank percentile defined?", "k": 5}],
    },
    "search_memory": {
        "name": "search_memory",
        "description": (
            "Search long-term semantic memory for preferences, decisions, facts, insights "
            "and TODOs. Preferences are always returned."
        ),
        "parameters": {
            "query": {
                "type": "string",
                "description": "Natural language query describing what to recall.",
                "required": True,
            },
            "k": {
                "type": "integer",
                "description": "Number of non-preference memories to return, 1-20 (default: 5).",
                "required": False,
            },
        },
        "examples": [{"query": "preferred answer format", "k": 3}],
    },
    "write_memory": {
        "name": "write_memory",
        "description": (
            "Store a new semantic memory. Only stable, reusable information is worth "
            "storing; memories with importance or confidence below 0.6 are rejected."
        ),
        "parameters": {
            "text": {
                "type": "string",
                "description": "The memory, stated as a self-contained sentence.",
                "required": True,
            },
            "kind": {
                "type": "string",
                "enum": ["preference", "decision", "fact", "insight", "todo"],
                "description": "Memory category.",
                "required": True,
            },
            "importance": {
                "type": "number",
                "description": "How useful this will be later, 0.0-1.0 (default: 0.6).",
                "required": False,
            },
            "confidence": {
                "type": "number",
                "description": "How certain the memory is, 0.0-1.0 (default: 0.6).",
                "required": False,
            },
        },
        "examples": [
            {
                "text": "User prefers answers with a short bullet summary first.",
                "kind": "preference",
                "importance": 0.8,
                "confidence": 0.9,
            }
        ],
    },
    "inspect_memory": {
        "name": "inspect_memory",
        "description": "List the most recent semantic memories, newest first (debugging aid).",
        "parameters": {
            "limit": {
                "type": "integer",
                "description": "Maximum results, 1-100 (default: 20).",
                "required": False,
            },
        },
        "examples": [{"limit": 10}],
    },
}


# Concise single-line descriptions for compact tool lists
TOOL_DESCRIPTIONS_COMPACT = {
    "search_docs": "Search ingested documents; returns cited chunks.",
    "search_memory": "Search long-term semantic memory; preferences always included.",
    "write_memory": "Store a preference, decision, fact, insight or TODO (importance and confidence >= 0.6).",
    "inspect_memory": "List recent semantic memories.",
}


# Guidelines for when to use memory operations (for system prompt)
USAGE_GUIDELINES = """
Memory Operation Guidelines:

WHEN TO WRITE MEMORY:
- The user states a lasting preference
- A decision is made that future answers should respect
- A fact is verified against the corpus

WHEN NOT TO WRITE:
- Greetings and transient chat
- One-off details of a single question
- Anything you are unsure about

BEFORE ANSWERING:
1. search_docs for supporting sources
2. search_memory for preferences and earlier decisions
3. Cite sources inline as [S1], [S2]
"""
