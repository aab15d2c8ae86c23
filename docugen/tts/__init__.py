"""Speech synthesis: voices, backends, fallback chain, and voice previews."""

from .fallback import SpeechFallbackChain
from .synthesizer import GeminiSpeechBackend, SpeechBackend
from .voices import DEFAULT_VOICE_ID, VOICE_IDS, VOICES, VoiceProfile, get_voice

__all__ = [
    "DEFAULT_VOICE_ID",
    "GeminiSpeechBackend",
    "SpeechBackend",
    "SpeechFallbackChain",
    "VOICES",
    "VOICE_IDS",
    "VoiceProfile",
    "get_voice",
]
