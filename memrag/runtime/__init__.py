"""
Runtime Orchestration Module

WHAT: Per-turn RAG runtime over the ingested corpus and long-term semantic memory
WHERE: memrag/runtime/ - orchestration layer above storage, embeddings and chat providers
WHO: Interactive sessions, agent tools and the offline eval/optimize harness
TIME: One turn = a handful of sequential provider calls; retrieval is an O(n) scan

Provides the execution layer for a research-assistant turn: query rewrite,
embedding, chunk retrieval, optional LLM rerank, budgeted context packing,
answer generation and long-term memory extraction.

Memory Architecture:
- episodic turns: every user/assistant utterance, keyed by session
- semantic memories: preferences, decisions, facts, insights and todos
- supersession: newer near-duplicate memories point at the row they replace
"""

__all__ = ["rag"]
