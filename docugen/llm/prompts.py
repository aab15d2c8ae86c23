"""Prompt template library for generation stages.

Responsibilities:
- Centralize prompt and response-schema construction for outline, scenes, and speech.
- Keep prompts deterministic for a given topic, chapter, and narration language.
"""

from __future__ import annotations

from typing import Any

_LANGUAGE_NAMES = {
    "th": "Thai",
    "en": "English",
    "cs": "Czech",
    "de": "German",
    "es": "Spanish",
    "fr": "French",
    "ja": "Japanese",
}


def language_name(language: str) -> str:
    """Return a prompt-friendly language name for a short language code."""

    return _LANGUAGE_NAMES.get(language.strip().lower(), language)


class PromptLibrary:
    """Build prompt strings and JSON schemas for supported generation tasks."""

    def __init__(self, language: str = "th") -> None:
        """Initialize the library for one narration language."""

        self.language = language

    def outline_prompt(self, topic: str, chapter_count: int) -> str:
        """Return the outline prompt for a documentary topic."""

        return (
            f"Create a comprehensive documentary outline in {language_name(self.language)} "
            f'about the topic: "{topic}".\n'
            "Designed to be an educational series.\n"
            f"Break it down into {chapter_count} distinct chapters to provide a detailed "
            "narrative.\n"
            "Each chapter should have a compelling title and a short summary of what will "
            "be covered.\n"
            "Return JSON only."
        )

    def outline_schema(self) -> dict[str, Any]:
        """Return the response schema for outline generation."""

        return {
            "type": "OBJECT",
            "properties": {
                "chapters": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "title": {"type": "STRING"},
                            "description": {"type": "STRING"},
                        },
                    },
                }
            },
        }

    def scene_scripts_prompt(self, topic: str, chapter_title: str, scene_count: int) -> str:
        """Return the per-chapter scene script prompt."""

        return (
            f'You are writing a documentary script for the topic "{topic}", specifically '
            f'the chapter "{chapter_title}".\n\n'
            f"Break this chapter into exactly {scene_count} distinct scenes to create visual "
            "variety.\n\n"
            "For each scene, provide:\n"
            f'1. "script": An engaging narration script in {language_name(self.language)} '
            "(approx 60-80 words per scene).\n"
            '2. "imagePrompt": A detailed English prompt to generate a photorealistic image '
            "specifically for this scene.\n\n"
            'Output a JSON object with a "scenes" array.'
        )

    def scene_scripts_schema(self) -> dict[str, Any]:
        """Return the response schema for scene script generation."""

        return {
            "type": "OBJECT",
            "properties": {
                "scenes": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "script": {"type": "STRING"},
                            "imagePrompt": {"type": "STRING"},
                        },
                    },
                }
            },
        }

    def read_aloud_prompt(self, script: str) -> str:
        """Wrap a script so general multimodal models behave like a TTS engine."""

        return (
            "Read the following text aloud exactly as written. Do not add any introductory "
            'or concluding remarks. Do not say "Here is the audio". '
            f'Text: "{script}"'
        )
