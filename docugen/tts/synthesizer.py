"""Speech backend interfaces and Gemini-backed implementation.

Responsibilities:
- Define the protocol one speech model must satisfy inside the fallback chain.
- Provide a Gemini-backed backend per speech-capable model.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from ..llm.gemini_client import GeminiClient
from ..llm.prompts import PromptLibrary
from ..models.datatypes import SpeechPayload


class SpeechBackend(Protocol):
    """Protocol for one speech synthesis backend."""

    name: str

    async def synthesize(self, script: str, voice_id: str) -> SpeechPayload:
        """Return the raw speech payload for one script."""


class GeminiSpeechBackend:
    """Gemini model used as one speech backend."""

    def __init__(
        self,
        client: GeminiClient,
        model: str,
        prompts: PromptLibrary | None = None,
    ) -> None:
        """Initialize backend model and shared client."""

        self.client = client
        self.model = model
        self.name = model
        self.prompts = prompts if prompts is not None else PromptLibrary()

    @property
    def is_dedicated_tts(self) -> bool:
        """Return whether the model is a dedicated TTS model."""

        return "tts" in self.model

    async def synthesize(self, script: str, voice_id: str) -> SpeechPayload:
        """Request speech from the model, wrapping the script for general models."""

        text = script if self.is_dedicated_tts else self.prompts.read_aloud_prompt(script)
        return await asyncio.to_thread(
            self.client.generate_speech,
            model=self.model,
            text=text,
            voice=voice_id,
        )
