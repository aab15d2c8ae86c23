"""Voice preview synthesis with per-process caching."""

from __future__ import annotations

from .fallback import SpeechFallbackChain
from .voices import get_voice


class VoicePreviewer:
    """Synthesize and cache the localized preview phrase of each voice."""

    def __init__(self, speech_chain: SpeechFallbackChain, language: str = "th") -> None:
        self.speech_chain = speech_chain
        self.language = language
        self.preview_audio: dict[tuple[str, str], str] = {}

    async def preview(self, voice_id: str) -> str:
        """Return the preview audio URI for `voice_id`, synthesizing it once per language."""

        phrase = get_voice(voice_id).preview_phrase(self.language)
        key = (voice_id, self.language)
        cached = self.preview_audio.get(key)
        if cached is not None:
            return cached
        audio_url = await self.speech_chain.synthesize(phrase, voice_id)
        self.preview_audio[key] = audio_url
        return audio_url
