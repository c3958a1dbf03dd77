"""
Research Store - SQLite persistence for corpus, embeddings and memory

WHAT: Persistence adapter for chunks, embeddings, sessions, memories and the LLM cache
WHERE: memrag/runtime/rag/store.py - interfaces with a local SQLite file
WHO: Ingestion, retrieval, orchestrator, memory writer and cached providers
TIME: Single-row writes <5ms; retrieval scans stream every row of one scope

Provides a minimal ResearchStore interface with a SQLite implementation.

Tables:
- embeddings: content-addressed float32 blobs, unique by hash(model, text)
- documents / document_texts: one row per source file, change-detected by hash
- chunk_sets / chunks: chunks grouped by (chunk size, overlap, embedding model)
- sessions / episodic_turns: append-only conversation log
- semantic_memories: long-term memories with a supersedes_id revision chain
- llm_cache: responses keyed by hash(provider, model, messages, temperature, max tokens)

Notes:
- Embedding and cache inserts are idempotent (INSERT OR IGNORE on the key),
  so concurrent writers of the same content converge on one row.
- Semantic memories are never updated or deleted; supersession only adds rows.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Protocol, Sequence, Tuple

import numpy as np

from .models import DocumentChunk, EmbeddingRecord, EpisodicTurn, SemanticMemory
from .vector import decode_vector, encode_vector

logger = logging.getLogger(__name__)


class ChunkRow(NamedTuple):
    chunk_id: int
    document_path: str
    document_title: str
    text: str
    vector: np.ndarray


class MemoryRow(NamedTuple):
    memory: SemanticMemory
    vector: np.ndarray


class ResearchStore(Protocol):
    """Abstract interface for memrag persistence."""

    def ensure_schema(self) -> None:
        """Create required tables and indexes if missing (idempotent)."""

    # embeddings
    def find_embeddings(self, model: str, hashes: Sequence[str]) -> Dict[str, EmbeddingRecord]:
        """Return stored embeddings for the given content hashes."""

    def insert_embedding(self, model: str, content_hash: str, vector: np.ndarray) -> EmbeddingRecord:
        """Persist an embedding (no-op if the hash exists) and return the stored record."""

    # corpus
    def upsert_document(self, *, path: str, content_hash: str, text: str, title: str | None = None) -> Tuple[int, bool]:
        """Insert or update a document; returns (document id, changed)."""

    def get_or_create_chunk_set(self, *, chunk_size: int, overlap: int, embed_model: str) -> int:
        """Return the chunk-set id for the triple, creating it if needed."""

    def get_chunk_set_id(self, *, chunk_size: int, overlap: int, embed_model: str) -> Optional[int]:
        """Return the chunk-set id for the triple, or None if never ingested."""

    def count_chunks(self, *, chunk_set_id: int, document_id: int) -> int:
        """Number of chunks stored for one document in one chunk set."""

    def replace_chunks_for_document(self, *, chunk_set_id: int, document_id: int, chunks: Sequence[DocumentChunk]) -> None:
        """Atomically replace a document's chunks within a chunk set."""

    def iter_chunk_rows(self, chunk_set_id: int) -> Iterator[ChunkRow]:
        """Stream every chunk of a chunk set with its decoded vector."""

    # memory
    def insert_semantic_memory(self, memory: SemanticMemory) -> int:
        """Persist a semantic memory; returns its id."""

    def iter_memory_rows(self) -> Iterator[MemoryRow]:
        """Stream every semantic memory with its decoded vector."""

    def list_recent_memories(self, *, limit: int = 20) -> List[SemanticMemory]:
        """Most-recent-first semantic memories."""

    # episodic log
    def create_session(self, session_id: str | None = None) -> str:
        """Create a session row; returns its id."""

    def append_turn(self, turn: EpisodicTurn) -> str:
        """Append an utterance to the episodic log; returns the turn id."""

    def list_recent_turns(self, *, session_id: str, limit: int = 50) -> List[EpisodicTurn]:
        """Most-recent-first episodic turns for a session."""

    # response cache
    def get_cached_response(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a cached response payload, if present."""

    def put_cached_response(self, *, key: str, provider: str, model: str, request: Dict[str, Any], response: Dict[str, Any]) -> None:
        """Store a response payload under its cache key (first write wins)."""


_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents(
    id INTEGER PRIMARY KEY,
    path TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    hash TEXT NOT NULL,
    added_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS document_texts(
    document_id INTEGER PRIMARY KEY REFERENCES documents(id) ON DELETE CASCADE,
    text TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS chunk_sets(
    id INTEGER PRIMARY KEY,
    chunk_size INTEGER NOT NULL,
    overlap INTEGER NOT NULL,
    embed_model TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(chunk_size, overlap, embed_model)
);

CREATE TABLE IF NOT EXISTS embeddings(
    id INTEGER PRIMARY KEY,
    dims INTEGER NOT NULL,
    vector_blob BLOB NOT NULL,
    model TEXT NOT NULL,
    hash TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS chunks(
    id INTEGER PRIMARY KEY,
    chunk_set_id INTEGER NOT NULL REFERENCES chunk_sets(id) ON DELETE CASCADE,
    document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index INTEGER NOT NULL,
    text TEXT NOT NULL,
    token_count INTEGER NOT NULL,
    embedding_id INTEGER NOT NULL REFERENCES embeddings(id) ON DELETE RESTRICT,
    UNIQUE(chunk_set_id, document_id, chunk_index)
);

CREATE INDEX IF NOT EXISTS idx_chunks_chunk_set ON chunks(chunk_set_id);
CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);

CREATE TABLE IF NOT EXISTS sessions(
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    summary TEXT
);

CREATE TABLE IF NOT EXISTS episodic_turns(
    id TEXT PRIMARY KEY,
    seq INTEGER NOT NULL,
    session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    role TEXT NOT NULL CHECK(role IN ('user','assistant','system')),
    text TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_episodic_session ON episodic_turns(session_id, seq);

CREATE TABLE IF NOT EXISTS semantic_memories(
    id INTEGER PRIMARY KEY,
    text TEXT NOT NULL,
    kind TEXT NOT NULL CHECK(kind IN ('preference','decision','fact','insight','todo')),
    importance REAL NOT NULL,
    confidence REAL NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    supersedes_id INTEGER REFERENCES semantic_memories(id),
    embedding_id INTEGER NOT NULL REFERENCES embeddings(id) ON DELETE RESTRICT
);

CREATE INDEX IF NOT EXISTS idx_semantic_kind ON semantic_memories(kind);

CREATE TABLE IF NOT EXISTS llm_cache(
    key TEXT PRIMARY KEY,
    provider TEXT NOT NULL,
    model TEXT NOT NULL,
    request_json TEXT NOT NULL,
    response_json TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SqliteResearchStore(ResearchStore):
    """SQLite-backed implementation; ``:memory:`` gives a throwaway store."""

    conn: sqlite3.Connection

    @staticmethod
    def open(db_path: str | Path = ":memory:", *, auto_init: bool = True) -> "SqliteResearchStore":
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        store = SqliteResearchStore(conn=conn)
        if auto_init:
            store.ensure_schema()
        logger.debug(f"Opened research store: {db_path}")
        return store

    def close(self) -> None:
        self.conn.close()

    # ------------------ schema ------------------
    def ensure_schema(self) -> None:
        with self.conn:
            self.conn.executescript(_SCHEMA)

    # ------------------ embeddings ------------------
    def find_embeddings(self, model: str, hashes: Sequence[str]) -> Dict[str, EmbeddingRecord]:
        if not hashes:
            return {}
        unique = list(dict.fromkeys(hashes))
        placeholders = ",".join("?" for _ in unique)
        rows = self.conn.execute(
            f"SELECT id, hash, vector_blob FROM embeddings WHERE model = ? AND hash IN ({placeholders})",
            (model, *unique),
        ).fetchall()
        return {row["hash"]: EmbeddingRecord(id=row["id"], vector=decode_vector(row["vector_blob"])) for row in rows}

    def insert_embedding(self, model: str, content_hash: str, vector: np.ndarray) -> EmbeddingRecord:
        blob = encode_vector(vector)
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO embeddings(dims, vector_blob, model, hash, created_at) VALUES (?, ?, ?, ?, ?)",
                (len(blob) // 4, blob, model, content_hash, _now()),
            )
        row = self.conn.execute(
            "SELECT id, vector_blob FROM embeddings WHERE hash = ?", (content_hash,)
        ).fetchone()
        return EmbeddingRecord(id=row["id"], vector=decode_vector(row["vector_blob"]))

    # ------------------ corpus ------------------
    def upsert_document(self, *, path: str, content_hash: str, text: str, title: str | None = None) -> Tuple[int, bool]:
        title = title or Path(path).name
        existing = self.conn.execute(
            "SELECT id, hash FROM documents WHERE path = ? LIMIT 1", (path,)
        ).fetchone()

        with self.conn:
            if existing is None:
                now = _now()
                cur = self.conn.execute(
                    "INSERT INTO documents(path, title, hash, added_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                    (path, title, content_hash, now, now),
                )
                document_id = int(cur.lastrowid)
                self.conn.execute(
                    "INSERT INTO document_texts(document_id, text) VALUES (?, ?)", (document_id, text)
                )
                return document_id, True

            document_id = int(existing["id"])
            if existing["hash"] == content_hash:
                has_text = self.conn.execute(
                    "SELECT 1 FROM document_texts WHERE document_id = ? LIMIT 1", (document_id,)
                ).fetchone()
                if has_text:
                    return document_id, False
                self.conn.execute(
                    "INSERT INTO document_texts(document_id, text) VALUES (?, ?)", (document_id, text)
                )
                return document_id, True

            self.conn.execute(
                "UPDATE documents SET hash = ?, title = ?, updated_at = ? WHERE id = ?",
                (content_hash, title, _now(), document_id),
            )
            self.conn.execute(
                "INSERT INTO document_texts(document_id, text) VALUES (?, ?) "
                "ON CONFLICT(document_id) DO UPDATE SET text = excluded.text",
                (document_id, text),
            )
            return document_id, True

    def get_chunk_set_id(self, *, chunk_size: int, overlap: int, embed_model: str) -> Optional[int]:
        row = self.conn.execute(
            "SELECT id FROM chunk_sets WHERE chunk_size = ? AND overlap = ? AND embed_model = ? LIMIT 1",
            (chunk_size, overlap, embed_model),
        ).fetchone()
        return int(row["id"]) if row else None

    def get_or_create_chunk_set(self, *, chunk_size: int, overlap: int, embed_model: str) -> int:
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO chunk_sets(chunk_size, overlap, embed_model, created_at) VALUES (?, ?, ?, ?)",
                (chunk_size, overlap, embed_model, _now()),
            )
        chunk_set_id = self.get_chunk_set_id(chunk_size=chunk_size, overlap=overlap, embed_model=embed_model)
        assert chunk_set_id is not None
        return chunk_set_id

    def count_chunks(self, *, chunk_set_id: int, document_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(1) AS c FROM chunks WHERE chunk_set_id = ? AND document_id = ?",
            (chunk_set_id, document_id),
        ).fetchone()
        return int(row["c"])

    def replace_chunks_for_document(self, *, chunk_set_id: int, document_id: int, chunks: Sequence[DocumentChunk]) -> None:
        with self.conn:
            self.conn.execute(
                "DELETE FROM chunks WHERE chunk_set_id = ? AND document_id = ?", (chunk_set_id, document_id)
            )
            self.conn.executemany(
                "INSERT INTO chunks(chunk_set_id, document_id, chunk_index, text, token_count, embedding_id) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (chunk_set_id, document_id, c.chunk_index, c.text, c.token_count, c.embedding_id)
                    for c in chunks
                ],
            )

    def iter_chunk_rows(self, chunk_set_id: int) -> Iterator[ChunkRow]:
        cursor = self.conn.execute(
            """
            SELECT c.id AS chunk_id, c.text AS chunk_text, d.path AS doc_path,
                   d.title AS doc_title, e.vector_blob AS vector_blob
            FROM chunks c
            JOIN documents d ON d.id = c.document_id
            JOIN embeddings e ON e.id = c.embedding_id
            WHERE c.chunk_set_id = ?
            ORDER BY c.id
            """,
            (chunk_set_id,),
        )
        for row in cursor:
            yield ChunkRow(
                chunk_id=row["chunk_id"],
                document_path=row["doc_path"],
                document_title=row["doc_title"],
                text=row["chunk_text"],
                vector=decode_vector(row["vector_blob"]),
            )

    # ------------------ memory ------------------
    def insert_semantic_memory(self, memory: SemanticMemory) -> int:
        row = memory.to_row()
        with self.conn:
            cur = self.conn.execute(
                "INSERT INTO semantic_memories(text, kind, importance, confidence, created_at, updated_at, "
                "supersedes_id, embedding_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    row["text"],
                    row["kind"],
                    row["importance"],
                    row["confidence"],
                    row["created_at"],
                    row["updated_at"],
                    row["supersedes_id"],
                    row["embedding_id"],
                ),
            )
        return int(cur.lastrowid)

    def iter_memory_rows(self) -> Iterator[MemoryRow]:
        cursor = self.conn.execute(
            """
            SELECT m.*, e.vector_blob AS vector_blob
            FROM semantic_memories m
            JOIN embeddings e ON e.id = m.embedding_id
            ORDER BY m.id
            """
        )
        for row in cursor:
            yield MemoryRow(memory=SemanticMemory.from_row(dict(row)), vector=decode_vector(row["vector_blob"]))

    def list_recent_memories(self, *, limit: int = 20) -> List[SemanticMemory]:
        rows = self.conn.execute(
            "SELECT * FROM semantic_memories ORDER BY created_at DESC, id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [SemanticMemory.from_row(dict(r)) for r in rows]

    def get_memory(self, memory_id: int) -> Optional[SemanticMemory]:
        row = self.conn.execute("SELECT * FROM semantic_memories WHERE id = ?", (memory_id,)).fetchone()
        return SemanticMemory.from_row(dict(row)) if row else None

    # ------------------ episodic log ------------------
    def create_session(self, session_id: str | None = None) -> str:
        sid = session_id or str(uuid.uuid4())
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO sessions(id, created_at) VALUES (?, ?)", (sid, _now())
            )
        return sid

    def append_turn(self, turn: EpisodicTurn) -> str:
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO sessions(id, created_at) VALUES (?, ?)", (turn.session_id, _now())
            )
            (seq,) = self.conn.execute(
                "SELECT COALESCE(MAX(seq), 0) + 1 FROM episodic_turns WHERE session_id = ?",
                (turn.session_id,),
            ).fetchone()
            self.conn.execute(
                "INSERT INTO episodic_turns(id, seq, session_id, role, text, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (turn.turn_id, seq, turn.session_id, turn.role, turn.text, turn.timestamp.isoformat()),
            )
        return turn.turn_id

    def list_recent_turns(self, *, session_id: str, limit: int = 50) -> List[EpisodicTurn]:
        rows = self.conn.execute(
            "SELECT id, session_id, role, text, created_at FROM episodic_turns "
            "WHERE session_id = ? ORDER BY seq DESC LIMIT ?",
            (session_id, limit),
        ).fetchall()
        return [
            EpisodicTurn(
                turn_id=r["id"],
                session_id=r["session_id"],
                role=r["role"],
                text=r["text"],
                timestamp=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    # ------------------ response cache ------------------
    def get_cached_response(self, key: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            "SELECT response_json FROM llm_cache WHERE key = ? LIMIT 1", (key,)
        ).fetchone()
        return json.loads(row["response_json"]) if row else None

    def put_cached_response(self, *, key: str, provider: str, model: str, request: Dict[str, Any], response: Dict[str, Any]) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO llm_cache(key, provider, model, request_json, response_json, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (key, provider, model, json.dumps(request, ensure_ascii=False), json.dumps(response, ensure_ascii=False), _now()),
            )


__all__ = [
    "ChunkRow",
    "MemoryRow",
    "ResearchStore",
    "SqliteResearchStore",
]
