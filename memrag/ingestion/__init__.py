"""Corpus ingestion: discover files, chunk them and store embedded chunks."""

from .ingest import (  # noqa: F401
    DEFAULT_INCLUDE_EXTS,
    DocumentIngestResult,
    IngestStats,
    discover_files,
    ingest_corpus,
    ingest_document,
)

__all__ = [
    "DEFAULT_INCLUDE_EXTS",
    "DocumentIngestResult",
    "IngestStats",
    "discover_files",
    "ingest_corpus",
    "ingest_document",
]
