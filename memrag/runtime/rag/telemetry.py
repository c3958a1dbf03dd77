"""
Telemetry Collection - Stage timing for RAG turns

WHAT: Timed spans around pipeline stages, forwarded to a pluggable sink
WHERE: memrag/runtime/rag/telemetry.py - observability layer
WHO: TurnOrchestrator (one span per stage), CLI ``ask --telemetry``
TIME: <0.1ms overhead per span

A span always measures its own wall-clock duration, whatever the client does
with it afterwards. The orchestrator reads stage timings back from finished
spans, so the no-op client still yields complete latency accounting.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TextIO


@dataclass(slots=True)
class TelemetrySpan:
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "durationMs": self.duration_ms,
            "success": self.success,
            "error": self.error,
            "attributes": dict(self.attributes),
        }


class TelemetryClient:
    """Base telemetry client; subclasses implement `emit`."""

    @contextmanager
    def span(self, name: str, *, attributes: Optional[Dict[str, Any]] = None) -> Iterator[TelemetrySpan]:
        span = TelemetrySpan(name=name, attributes=dict(attributes or {}))
        start = time.perf_counter()
        try:
            yield span
        except BaseException as exc:
            span.error = type(exc).__name__
            raise
        finally:
            span.duration_ms = (time.perf_counter() - start) * 1000.0
            self.emit(span)

    def emit(self, span: TelemetrySpan) -> None:
        raise NotImplementedError


class NoOpTelemetryClient(TelemetryClient):
    def emit(self, span: TelemetrySpan) -> None:
        pass


class ConsoleTelemetryClient(TelemetryClient):
    """Writes one line per finished span."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, span: TelemetrySpan) -> None:
        attrs = " ".join(f"{k}={span.attributes[k]}" for k in sorted(span.attributes))
        status = "ok" if span.success else f"error={span.error}"
        line = f"[telemetry] {span.name} {span.duration_ms:.1f}ms {status}"
        print(f"{line} {attrs}".rstrip(), file=self._stream or sys.stdout)


class RecordingTelemetryClient(TelemetryClient):
    """Keeps every finished span in memory."""

    def __init__(self) -> None:
        self.spans: List[TelemetrySpan] = []

    def emit(self, span: TelemetrySpan) -> None:
        self.spans.append(span)

    def names(self) -> List[str]:
        return [span.name for span in self.spans]


__all__ = [
    "ConsoleTelemetryClient",
    "NoOpTelemetryClient",
    "RecordingTelemetryClient",
    "TelemetryClient",
    "TelemetrySpan",
]
