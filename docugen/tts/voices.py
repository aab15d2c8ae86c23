"""Narration voice profiles.

Responsibilities:
- Enumerate the supported narration voices and their preview phrases.
- Decouple pipeline logic from provider-specific voice naming.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative narration voice profile.

    Attributes:
        voice_id: Provider-native prebuilt voice name.
        style: Short English style label.
        preview_phrases: Localized preview phrase keyed by language code.
    """

    voice_id: str
    style: str
    preview_phrases: dict[str, str] = field(default_factory=dict)

    def preview_phrase(self, language: str) -> str:
        """Return the preview phrase for `language`, falling back to English or Thai."""

        for key in (language, "en", "th"):
            phrase = self.preview_phrases.get(key)
            if phrase:
                return phrase
        return "Narration voice test."


DEFAULT_VOICE_ID = "Puck"

VOICES: tuple[VoiceProfile, ...] = (
    VoiceProfile(
        voice_id="Puck",
        style="formal",
        preview_phrases={
            "th": "สวัสดีครับ ยินดีต้อนรับสู่ DocuGen สาระคดีเพื่อการเรียนรู้",
            "en": "Hello, and welcome to DocuGen, documentaries for curious minds.",
        },
    ),
    VoiceProfile(
        voice_id="Zephyr",
        style="soft",
        preview_phrases={
            "th": "สวัสดีค่ะ ขอให้เพลิดเพลินกับเรื่องราวที่น่าสนใจนะคะ",
            "en": "Hello, I hope you enjoy the story we are about to share.",
        },
    ),
    VoiceProfile(
        voice_id="Kore",
        style="excited",
        preview_phrases={
            "th": "สวัสดีครับ! พร้อมที่จะไปเปิดโลกกว้างกับเราหรือยัง!",
            "en": "Hi there! Are you ready to explore the world with us?",
        },
    ),
    VoiceProfile(
        voice_id="Charon",
        style="mysterious",
        preview_phrases={
            "th": "สวัสดี... มาร่วมค้นหาคำตอบของปริศนานี้ไปด้วยกัน",
            "en": "Hello... let us search for the answer to this mystery together.",
        },
    ),
)

VOICE_IDS = frozenset(voice.voice_id for voice in VOICES)


def get_voice(voice_id: str) -> VoiceProfile:
    """Return the voice profile for `voice_id`.

    Raises:
        ValueError: If the voice is not one of the supported narration voices.
    """

    for voice in VOICES:
        if voice.voice_id == voice_id:
            return voice
    supported = ", ".join(sorted(VOICE_IDS))
    raise ValueError(f"Unsupported narration voice `{voice_id}`. Supported: {supported}.")
