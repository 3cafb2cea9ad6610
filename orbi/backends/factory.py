"""Pick and build the generation backend named by AI_SERVICE."""

from __future__ import annotations

from typing import Optional

from orbi.backends.base import GenerationBackend
from orbi.backends.gemini import GeminiBackend
from orbi.backends.openai_chat import OpenAIChatBackend
from orbi.config import Settings, get_settings
from orbi.exceptions import BackendConfigError
from orbi.infra.logging_config import get_logger

logger = get_logger("backends")


def build_backend_from_env(settings: Optional[Settings] = None) -> GenerationBackend:
    settings = settings or get_settings()
    service = (settings.ai_service or "").strip().lower()
    logger.info("Generation backend: %s", service)

    if service == "google":
        if not settings.gemini_api_key:
            raise BackendConfigError("GEMINI_API_KEY is required for AI_SERVICE=google")
        return GeminiBackend(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            top_k=settings.gemini_top_k,
            top_p=settings.gemini_top_p,
            max_output_tokens=settings.gemini_max_output_tokens,
            timeout=settings.http_timeout_seconds,
        )
    if service == "azure":
        if not settings.azure_openai_api_key:
            raise BackendConfigError(
                "AZURE_OPENAI_API_KEY is required for AI_SERVICE=azure"
            )
        return OpenAIChatBackend(
            api_key=settings.azure_openai_api_key,
            endpoint=settings.azure_openai_endpoint,
            model=settings.azure_openai_model,
            max_tokens=settings.azure_openai_max_tokens,
            temperature=settings.azure_openai_temperature,
        )
    raise BackendConfigError(f"Unknown AI_SERVICE: {settings.ai_service!r}")
