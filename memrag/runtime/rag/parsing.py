"""Defensive JSON extraction from free-form model output.

Models wrap JSON in prose or markdown fences. These helpers locate the first
balanced ``[...]`` or ``{...}`` span (string literals and escapes respected)
and decode it; anything unparseable yields ``None``.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator

_CLOSERS = {"[": "]", "{": "}"}


def extract_balanced(text: str, opener: str) -> Optional[str]:
    """Return the first balanced span starting with ``opener``, or None."""
    closer = _CLOSERS[opener]
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch in "[{":
                depth += 1
            elif ch in "]}":
                depth -= 1
                if depth == 0:
                    if ch == closer:
                        return text[start : pos + 1]
                    break
        # unbalanced from this opener; try the next one
        start = text.find(opener, start + 1)
    return None


def _loads(span: Optional[str]) -> Optional[Any]:
    if span is None:
        return None
    try:
        return json.loads(span)
    except json.JSONDecodeError:
        return None


def parse_json_array(text: str) -> Optional[list]:
    value = _loads(extract_balanced(text, "["))
    return value if isinstance(value, list) else None


def parse_json_object(text: str) -> Optional[dict]:
    value = _loads(extract_balanced(text, "{"))
    return value if isinstance(value, dict) else None


def _integral(value: Any) -> Any:
    # JSON has a single number type, so 4.0 is the integer 4
    if isinstance(value, bool):
        raise ValueError("expected an integer, got a boolean")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    raise ValueError(f"expected an integer, got {value!r}")


JsonInt = Annotated[int, BeforeValidator(_integral)]


__all__ = ["JsonInt", "extract_balanced", "parse_json_array", "parse_json_object"]
