"""Provider factory for the generation capability boundary.

Only `gemini` is implemented at the moment.
"""

from __future__ import annotations

from .config import DocugenConfig
from .llm.generation import GeminiGenerationProvider, GenerationProvider


class ProviderFactory:
    """Factory for provider-backed generation clients used by the session runtime."""

    @staticmethod
    def create_provider(
        provider_id: str,
        config: DocugenConfig,
        *,
        language: str,
        api_key: str | None = None,
    ) -> GenerationProvider:
        """Create a generation provider for a configured provider identifier."""

        if provider_id == "gemini":
            return GeminiGenerationProvider(
                api_key=api_key,
                language=language,
                chapter_count=config.chapter_count,
                outline_model=config.outline_model,
                script_model=config.script_model,
                image_model=config.image_model,
                speech_models=config.speech_models,
                base_url=config.base_url,
                timeout_seconds=config.timeout_seconds,
            )
        raise ValueError(f"Unsupported generation provider `{provider_id}`.")
