"""Configuration values for memrag: pipeline variants and runtime settings."""

from .pipeline import DEFAULT_PIPELINE_CONFIG, MemoryBlend, PipelineConfig  # noqa: F401
from .settings import (  # noqa: F401
    EvalOptions,
    OptimizeOptions,
    ProviderEndpoint,
    RuntimeSettings,
)

__all__ = [
    "DEFAULT_PIPELINE_CONFIG",
    "EvalOptions",
    "MemoryBlend",
    "OptimizeOptions",
    "PipelineConfig",
    "ProviderEndpoint",
    "RuntimeSettings",
]
