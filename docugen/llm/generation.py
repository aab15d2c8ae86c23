"""Generation provider interface and Gemini-backed implementation.

Responsibilities:
- Define the capability boundary the orchestration core calls through.
- Validate and normalize structured outline and scene-script responses.
- Expose the ordered speech backends used by the speech fallback chain.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, Sequence

from ..errors import ProviderError
from ..models.datatypes import SCENES_PER_CHAPTER, OutlineEntry, SceneScript
from ..parsing import normalize_optional_string
from ..tts.synthesizer import GeminiSpeechBackend, SpeechBackend
from .gemini_client import GeminiClient
from .prompts import PromptLibrary


class GenerationProvider(Protocol):
    """Protocol for generative-content providers.

    The audio capability, `generate_audio(script, voice_id) -> URI`, is served by
    `SpeechFallbackChain.synthesize` over `speech_backends()`, so every provider gets the
    same ordered fallback, fast-fail retries and WAV packaging.
    """

    async def generate_outline(self, topic: str) -> list[OutlineEntry]:
        """Return ordered chapter stubs for a topic."""

    async def generate_scene_scripts(self, topic: str, chapter_title: str) -> list[SceneScript]:
        """Return exactly `SCENES_PER_CHAPTER` scene scripts for one chapter."""

    async def generate_image(self, prompt: str) -> str:
        """Return an opaque image reference for a prompt."""

    def speech_backends(self) -> Sequence[SpeechBackend]:
        """Return speech backends in priority order, most capable first."""


def parse_outline(payload: Any) -> list[OutlineEntry]:
    """Validate an outline JSON document and return its chapter stubs."""

    chapters = payload.get("chapters") if isinstance(payload, dict) else None
    if not isinstance(chapters, list):
        raise ProviderError(
            "Outline response is missing a `chapters` list.", failure_kind="malformed"
        )

    entries: list[OutlineEntry] = []
    for item in chapters:
        if not isinstance(item, dict):
            continue
        title = normalize_optional_string(item.get("title"))
        if title is None:
            continue
        description = normalize_optional_string(item.get("description")) or ""
        entries.append(OutlineEntry(title=title, description=description))
    if not entries:
        raise ProviderError("Outline response contains no chapters.", failure_kind="malformed")
    return entries


def parse_scene_scripts(payload: Any, scene_count: int = SCENES_PER_CHAPTER) -> list[SceneScript]:
    """Validate a scene-script JSON document and return exactly `scene_count` scripts."""

    scenes = payload.get("scenes") if isinstance(payload, dict) else None
    if not isinstance(scenes, list):
        raise ProviderError(
            "Scene response is missing a `scenes` list.", failure_kind="malformed"
        )

    scripts: list[SceneScript] = []
    for item in scenes:
        if not isinstance(item, dict):
            continue
        script = normalize_optional_string(item.get("script"))
        image_prompt = normalize_optional_string(
            item.get("imagePrompt", item.get("image_prompt"))
        )
        if script is None or image_prompt is None:
            continue
        scripts.append(SceneScript(script=script, image_prompt=image_prompt))
    if len(scripts) < scene_count:
        raise ProviderError(
            f"Scene response has {len(scripts)} usable scenes; expected {scene_count}.",
            failure_kind="malformed",
        )
    return scripts[:scene_count]


class GeminiGenerationProvider:
    """Gemini-backed provider for outline, scene script, image, and speech capabilities."""

    def __init__(
        self,
        *,
        api_key: str | None,
        language: str = "th",
        chapter_count: int = 8,
        outline_model: str = "gemini-2.5-flash",
        script_model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
        speech_models: Sequence[str] = (),
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 120.0,
    ) -> None:
        """Initialize models, prompt library, and the shared HTTP client."""

        self.client = GeminiClient(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self.prompts = PromptLibrary(language=language)
        self.chapter_count = chapter_count
        self.outline_model = outline_model
        self.script_model = script_model
        self.image_model = image_model
        self.speech_models = tuple(speech_models)

    async def generate_outline(self, topic: str) -> list[OutlineEntry]:
        """Generate a chapter outline for a topic."""

        payload = await asyncio.to_thread(
            self.client.generate_json,
            model=self.outline_model,
            prompt=self.prompts.outline_prompt(topic, self.chapter_count),
            response_schema=self.prompts.outline_schema(),
        )
        return parse_outline(payload)

    async def generate_scene_scripts(self, topic: str, chapter_title: str) -> list[SceneScript]:
        """Generate narration scripts and image prompts for one chapter."""

        payload = await asyncio.to_thread(
            self.client.generate_json,
            model=self.script_model,
            prompt=self.prompts.scene_scripts_prompt(topic, chapter_title, SCENES_PER_CHAPTER),
            response_schema=self.prompts.scene_scripts_schema(),
        )
        return parse_scene_scripts(payload)

    async def generate_image(self, prompt: str) -> str:
        """Generate one image and return it as a data URI."""

        mime_type, data = await asyncio.to_thread(
            self.client.generate_image,
            model=self.image_model,
            prompt=prompt,
        )
        return f"data:{mime_type};base64,{data}"

    def speech_backends(self) -> Sequence[SpeechBackend]:
        """Return one Gemini speech backend per configured speech model."""

        return tuple(
            GeminiSpeechBackend(self.client, model, prompts=self.prompts)
            for model in self.speech_models
        )
