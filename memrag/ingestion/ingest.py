"""
Corpus Ingestion Workflow

WHAT: Discovers text documents, chunks them and stores embedded chunks per chunk set
WHERE: memrag/ingestion/ingest.py - high-level workflow
WHO: CLI ``ingest`` and tests preparing a corpus
TIME: Dominated by embedding calls; unchanged documents cost one hash and one lookup

Documents are keyed by path and change-detected by the SHA-256 of their bytes.
An unchanged document that already has chunks in the target chunk set is
skipped. A new or changed document has its chunks in that chunk set replaced
wholesale. Embeddings are content-addressed, so identical chunk text across
documents or re-runs is embedded once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..chunking import ChunkConfig, chunk_text, normalize_text
from ..runtime.rag.caching import CachedEmbedder
from ..runtime.rag.hashing import sha256_hex
from ..runtime.rag.models import DocumentChunk
from ..runtime.rag.store import ResearchStore

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_EXTS = (".md", ".markdown", ".txt")


@dataclass(slots=True)
class DocumentIngestResult:
    document_id: int
    changed: bool
    skipped: bool
    chunks_written: int


@dataclass(slots=True)
class IngestStats:
    files_found: int = 0
    documents_upserted: int = 0
    documents_skipped: int = 0
    chunks_written: int = 0
    chunk_set_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "filesFound": self.files_found,
            "documentsUpserted": self.documents_upserted,
            "documentsSkipped": self.documents_skipped,
            "chunksWritten": self.chunks_written,
            "chunkSetId": self.chunk_set_id,
        }


def discover_files(root: Path, include_exts: Iterable[str] = DEFAULT_INCLUDE_EXTS) -> List[Path]:
    """Recursively list files with an included extension, skipping dotfiles."""
    exts = {e.lower() for e in include_exts}
    root = Path(root)
    if root.is_file():
        return [root] if root.suffix.lower() in exts else []

    found: List[Path] = []
    for path in root.rglob("*"):
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if path.is_file() and path.suffix.lower() in exts:
            found.append(path)
    return sorted(found)


def ingest_document(
    store: ResearchStore,
    embedder: CachedEmbedder,
    *,
    path: str,
    text: str,
    chunk_set_id: int,
    chunk_config: ChunkConfig,
    content_hash: str | None = None,
    title: str | None = None,
) -> DocumentIngestResult:
    """
    Upsert one document and (re)build its chunks in a chunk set.

    Args:
        store: Research store
        embedder: Content-addressed embedder for chunk text
        path: Document identity (file path)
        text: Raw document text; normalised before chunking
        chunk_set_id: Target chunk set
        chunk_config: Window size and overlap matching the chunk set
        content_hash: Change-detection hash (defaults to hash of ``text``)
        title: Display title (defaults to the file name)

    Returns:
        DocumentIngestResult describing what was written
    """
    normalized = normalize_text(text)
    digest = content_hash or sha256_hex(text)
    document_id, changed = store.upsert_document(path=path, content_hash=digest, text=normalized, title=title)

    if not changed and store.count_chunks(chunk_set_id=chunk_set_id, document_id=document_id) > 0:
        return DocumentIngestResult(document_id=document_id, changed=False, skipped=True, chunks_written=0)

    chunks = chunk_text(normalized, chunk_config)
    records = embedder.get_or_create([c.text for c in chunks])
    store.replace_chunks_for_document(
        chunk_set_id=chunk_set_id,
        document_id=document_id,
        chunks=[
            DocumentChunk(
                chunk_set_id=chunk_set_id,
                document_id=document_id,
                chunk_index=idx,
                text=chunk.text,
                token_count=chunk.token_count,
                embedding_id=record.id,
            )
            for idx, (chunk, record) in enumerate(zip(chunks, records))
        ],
    )
    return DocumentIngestResult(document_id=document_id, changed=changed, skipped=False, chunks_written=len(chunks))


def ingest_corpus(
    store: ResearchStore,
    embedder: CachedEmbedder,
    *,
    corpus_path: Path,
    chunk_size_tokens: int,
    overlap_tokens: int,
    include_exts: Sequence[str] = DEFAULT_INCLUDE_EXTS,
) -> IngestStats:
    files = discover_files(Path(corpus_path), include_exts)
    chunk_set_id = store.get_or_create_chunk_set(
        chunk_size=chunk_size_tokens, overlap=overlap_tokens, embed_model=embedder.model
    )
    config = ChunkConfig(chunk_size_tokens=chunk_size_tokens, overlap_tokens=overlap_tokens)
    stats = IngestStats(files_found=len(files), chunk_set_id=chunk_set_id)

    for file_path in files:
        raw = file_path.read_bytes()
        result = ingest_document(
            store,
            embedder,
            path=str(file_path),
            text=raw.decode("utf-8", errors="replace"),
            chunk_set_id=chunk_set_id,
            chunk_config=config,
            content_hash=sha256_hex(raw),
        )
        if result.skipped:
            stats.documents_skipped += 1
            continue
        stats.documents_upserted += 1
        stats.chunks_written += result.chunks_written
        logger.debug(f"Ingested {file_path} ({result.chunks_written} chunks)")

    logger.info(
        f"Ingest complete: files={stats.files_found} upserted={stats.documents_upserted} "
        f"skipped={stats.documents_skipped} chunks={stats.chunks_written} chunk_set={chunk_set_id}"
    )
    return stats


__all__ = [
    "DEFAULT_INCLUDE_EXTS",
    "DocumentIngestResult",
    "IngestStats",
    "discover_files",
    "ingest_corpus",
    "ingest_document",
]
