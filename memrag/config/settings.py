"""
Runtime settings - provider endpoints, model ids and file locations.

Settings are resolved once by the entry point (CLI or caller) and passed down
explicitly; nothing in the runtime reads the environment on its own.

Environment:
  - MEMRAG_DB_PATH, MEMRAG_RUNS_DIR, PRICING_PATH, COST_MODEL_PATH
  - OPENROUTER_BASE_URL, OPENROUTER_API_KEY, OPENROUTER_REFERRER, OPENROUTER_TITLE
  - CHAT_MODEL, JUDGE_MODEL
  - LMSTUDIO_BASE_URL, LMSTUDIO_API_KEY, LMSTUDIO_CHAT_MODEL, EMBED_MODEL
  - SUPPORT_PROVIDER (lmstudio|openrouter), SUPPORT_MODEL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional

SupportProvider = Literal["lmstudio", "openrouter"]


@dataclass(frozen=True, slots=True)
class ProviderEndpoint:
    provider: str
    base_url: str
    api_key: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    db_path: str = ".data/memrag.sqlite"
    runs_dir: str = "runs"
    pricing_path: str = "pricing.json"
    cost_model_path: Optional[str] = None
    openrouter: ProviderEndpoint = field(
        default_factory=lambda: ProviderEndpoint("openrouter", "https://openrouter.ai/api/v1")
    )
    lmstudio: ProviderEndpoint = field(
        default_factory=lambda: ProviderEndpoint("lmstudio", "http://localhost:1234/v1")
    )
    chat_model: str = "grok-4.1-fast"
    judge_model: str = "grok-4.1-fast"
    embed_model: str = "text-embedding-3-small"
    support_provider: SupportProvider = "lmstudio"
    support_model: str = "qwen/qwen3-coder-next"

    @property
    def support_endpoint(self) -> ProviderEndpoint:
        return self.lmstudio if self.support_provider == "lmstudio" else self.openrouter

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "RuntimeSettings":
        env = os.environ if env is None else env
        chat_model = env.get("CHAT_MODEL", "grok-4.1-fast")
        lmstudio_chat = env.get("LMSTUDIO_CHAT_MODEL", "qwen/qwen3-coder-next")

        support_provider = env.get("SUPPORT_PROVIDER", "lmstudio").strip().lower()
        if support_provider not in {"lmstudio", "openrouter"}:
            raise ValueError(f"SUPPORT_PROVIDER must be 'lmstudio' or 'openrouter', got {support_provider!r}")

        headers = {"X-Title": env.get("OPENROUTER_TITLE") or "memrag"}
        referrer = env.get("OPENROUTER_REFERRER")
        if referrer:
            headers["HTTP-Referer"] = referrer

        return cls(
            db_path=env.get("MEMRAG_DB_PATH", ".data/memrag.sqlite"),
            runs_dir=env.get("MEMRAG_RUNS_DIR", "runs"),
            pricing_path=env.get("PRICING_PATH", "pricing.json"),
            cost_model_path=env.get("COST_MODEL_PATH") or None,
            openrouter=ProviderEndpoint(
                provider="openrouter",
                base_url=env.get("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
                api_key=env.get("OPENROUTER_API_KEY") or None,
                headers=headers,
            ),
            lmstudio=ProviderEndpoint(
                provider="lmstudio",
                base_url=env.get("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
                api_key=env.get("LMSTUDIO_API_KEY") or None,
            ),
            chat_model=chat_model,
            judge_model=env.get("JUDGE_MODEL", chat_model),
            embed_model=env.get("EMBED_MODEL", "text-embedding-3-small"),
            support_provider=support_provider,  # type: ignore[arg-type]
            support_model=env.get(
                "SUPPORT_MODEL",
                lmstudio_chat if support_provider == "lmstudio" else chat_model,
            ),
        )


@dataclass(slots=True)
class EvalOptions:
    questions_path: str
    out_dir: str
    limit: Optional[int] = None
    enable_memory_writes: bool = False
    cost_model_path: Optional[str] = None
    pricing_path: Optional[str] = None


@dataclass(slots=True)
class OptimizeOptions:
    questions_path: str
    out_dir: str
    seed: int = 42
    warmup: int = 8
    min_configs: int = 8
    stage_a_questions: int = 3
    stage_b_questions: int = 10
    top_n: int = 3
    cost_model_path: Optional[str] = None
    pricing_path: Optional[str] = None


__all__ = [
    "EvalOptions",
    "OptimizeOptions",
    "ProviderEndpoint",
    "RuntimeSettings",
    "SupportProvider",
]
