"""Helpers for persisting run artefacts.

Eval and optimize runs produce append-only JSON-lines logs (one record per
question or per config summary) plus a few whole-file JSON documents
(config, RAG plan, Pareto frontier, run summary, cost model).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping


def append_record(output_path: Path, record: Mapping[str, Any]) -> None:
    """Append a record to a JSONL file."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("a", encoding="utf-8") as fh:
        json.dump(record, fh, ensure_ascii=False)
        fh.write("\n")


def read_records(input_path: Path) -> Iterator[Dict[str, Any]]:
    """Yield parsed records from a JSONL file, skipping blank lines."""

    with input_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            stripped = line.strip()
            if not stripped:
                continue
            yield json.loads(stripped)


def write_json(output_path: Path, payload: Any) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)
        fh.write("\n")


def reset_file(path: Path) -> None:
    """Remove a previous run's artefact so appends start from an empty log."""

    path.unlink(missing_ok=True)


__all__ = ["append_record", "read_records", "reset_file", "write_json"]
