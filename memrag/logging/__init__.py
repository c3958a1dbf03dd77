"""Logging utilities for memrag.

`setup_logging` configures the package logger once for CLI entry points;
library modules only ever call ``logging.getLogger(__name__)``. Run artefacts
(JSONL result logs, JSON summaries) are written through `results`.
"""

from __future__ import annotations

import logging
import sys

from .results import append_record, read_records, reset_file, write_json  # noqa: F401

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure and return the root memrag logger."""
    logger = logging.getLogger("memrag")
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger


__all__ = [
    "LOG_FORMAT",
    "append_record",
    "read_records",
    "reset_file",
    "setup_logging",
    "write_json",
]
