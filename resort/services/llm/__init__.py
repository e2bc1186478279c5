"""Gemini access: REST client and model fallback chain."""

from resort.services.llm.fallback import (
    AllModelsFailedError,
    Generation,
    ModelFallbackService,
    get_fallback_service,
)
from resort.services.llm.gemini_client import GeminiClient

__all__ = [
    "AllModelsFailedError",
    "GeminiClient",
    "Generation",
    "ModelFallbackService",
    "get_fallback_service",
]
