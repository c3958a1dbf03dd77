"""
Model Engine - OpenAI-compatible chat and embedding clients

WHAT: HTTP wrappers for chat completions and embeddings over OpenAI-style APIs
WHERE: memrag/runtime/rag/model_engine.py - provider boundary
WHO: Orchestrator, query transforms, memory writer, judge, ingestion
TIME: Dominated by provider latency; client overhead <1ms

Both OpenRouter and LM Studio speak the same ``/chat/completions`` and
``/embeddings`` dialect, so one client class per capability covers them. The
runtime only depends on the ChatClient / EmbeddingsClient protocols; tests
substitute in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, TypedDict

import httpx
import numpy as np

from ...config.settings import ProviderEndpoint
from .models import Role, Usage

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2


class ProviderError(RuntimeError):
    """Raised when a provider request fails or returns an unusable payload."""


class ChatMessage(TypedDict):
    role: Role
    content: str


@dataclass(slots=True)
class ChatCompletion:
    text: str
    usage: Optional[Usage] = None
    raw: Optional[Dict[str, Any]] = None


class ChatClient(Protocol):
    provider: str
    model: str

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletion:
        """Run a chat completion and return the assistant text."""


class EmbeddingsClient(Protocol):
    model: str

    def embed(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed texts in input order."""


def _auth_headers(endpoint: ProviderEndpoint) -> Dict[str, str]:
    headers = {"Content-Type": "application/json", **dict(endpoint.headers)}
    if endpoint.api_key:
        headers["Authorization"] = f"Bearer {endpoint.api_key}"
    return headers


def _post_json(client: httpx.Client, url: str, body: Dict[str, Any], provider: str) -> Dict[str, Any]:
    try:
        response = client.post(url, json=body)
    except httpx.HTTPError as exc:
        raise ProviderError(f"{provider} request to {url} failed: {exc}") from exc
    if response.status_code >= 400:
        raise ProviderError(f"{provider} {url} returned HTTP {response.status_code}: {response.text[:500]}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError(f"{provider} {url} returned non-JSON body") from exc
    if not isinstance(payload, dict):
        raise ProviderError(f"{provider} {url} returned unexpected payload type {type(payload).__name__}")
    return payload


@dataclass
class OpenAICompatChatClient:
    """Chat completions against an OpenAI-compatible endpoint."""

    endpoint: ProviderEndpoint
    model: str
    timeout_s: float = 120.0
    _http: httpx.Client = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._http = httpx.Client(
            base_url=self.endpoint.base_url.rstrip("/"),
            headers=_auth_headers(self.endpoint),
            timeout=httpx.Timeout(self.timeout_s),
        )

    @property
    def provider(self) -> str:
        return self.endpoint.provider

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletion:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [dict(m) for m in messages],
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens

        payload = _post_json(self._http, "/chat/completions", body, self.provider)
        choices = payload.get("choices") or []
        if not choices:
            raise ProviderError(f"{self.provider} returned no choices for model {self.model}")
        content = (choices[0].get("message") or {}).get("content")
        text = content.strip() if isinstance(content, str) else ""
        usage = Usage.from_payload(payload.get("usage"))
        logger.debug(f"{self.provider}:{self.model} completion chars={len(text)} usage={usage}")
        return ChatCompletion(text=text, usage=usage, raw=payload)

    def close(self) -> None:
        self._http.close()


@dataclass
class OpenAICompatEmbeddingsClient:
    """Embeddings against an OpenAI-compatible endpoint."""

    endpoint: ProviderEndpoint
    model: str
    timeout_s: float = 120.0
    _http: httpx.Client = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._http = httpx.Client(
            base_url=self.endpoint.base_url.rstrip("/"),
            headers=_auth_headers(self.endpoint),
            timeout=httpx.Timeout(self.timeout_s),
        )

    def embed(self, texts: Sequence[str]) -> List[np.ndarray]:
        if not texts:
            return []
        payload = _post_json(
            self._http, "/embeddings", {"model": self.model, "input": list(texts)}, self.endpoint.provider
        )
        data = payload.get("data")
        if not isinstance(data, list) or len(data) != len(texts):
            raise ProviderError(
                f"{self.endpoint.provider} embeddings returned {len(data) if isinstance(data, list) else 0} "
                f"vectors for {len(texts)} inputs"
            )
        ordered = sorted(data, key=lambda item: item.get("index", 0))
        return [np.asarray(item["embedding"], dtype=np.float32) for item in ordered]

    def close(self) -> None:
        self._http.close()


__all__ = [
    "ChatClient",
    "ChatCompletion",
    "ChatMessage",
    "DEFAULT_TEMPERATURE",
    "EmbeddingsClient",
    "OpenAICompatChatClient",
    "OpenAICompatEmbeddingsClient",
    "ProviderError",
]
