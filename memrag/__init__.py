"""memrag research-assistant runtime package."""

__all__ = [
    "chunking",
    "config",
    "evaluation",
    "ingestion",
    "logging",
    "optimize",
    "runtime",
]
