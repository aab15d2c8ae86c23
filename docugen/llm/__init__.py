"""Provider-facing abstractions for outline, scene script, and image generation.

This package holds the Gemini HTTP client, prompt library, retry executor,
and the generation provider interface used by the pipeline.
"""

from .gemini_client import GeminiClient
from .prompts import PromptLibrary
from .retry import RetryExecutor, is_rate_limited, retry_operation
from .generation import GeminiGenerationProvider, GenerationProvider

__all__ = [
    "GeminiClient",
    "GeminiGenerationProvider",
    "GenerationProvider",
    "PromptLibrary",
    "RetryExecutor",
    "is_rate_limited",
    "retry_operation",
]
