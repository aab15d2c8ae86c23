"""Ordered speech backend fallback chain.

Responsibilities:
- Try speech backends in priority order until one produces audio.
- Give each backend a small fast-fail retry budget of its own.
- Package raw PCM answers as playable WAV data URIs.
"""

from __future__ import annotations

from typing import Sequence

from ..audio.wav import pcm_to_wav_data_uri, to_data_uri
from ..errors import ProviderError
from ..llm.retry import RetryExecutor
from ..models.datatypes import FAST_FAIL_RETRY_POLICY, RetryPolicy
from ..telemetry.logger import RunLogger
from .synthesizer import SpeechBackend

_WAV_MIME_TYPES = frozenset({"audio/wav", "audio/x-wav", "audio/wave"})


class SpeechFallbackChain:
    """Synthesize narration with the first speech backend that succeeds."""

    def __init__(
        self,
        backends: Sequence[SpeechBackend],
        retry_executor: RetryExecutor | None = None,
        policy: RetryPolicy = FAST_FAIL_RETRY_POLICY,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize the fixed backend order and the per-backend retry policy."""

        self.backends = tuple(backends)
        self.retry_executor = retry_executor if retry_executor is not None else RetryExecutor()
        self.policy = policy
        self._run_logger = run_logger if run_logger is not None else RunLogger()

    async def synthesize(self, script: str, voice_id: str) -> str:
        """Return an audio data URI, or raise the last backend error when all fail."""

        if not self.backends:
            raise ProviderError("No speech backends are configured.", failure_kind="config")

        last_error: Exception | None = None
        for backend in self.backends:
            try:
                return await self.retry_executor.execute(
                    lambda backend=backend: self._synthesize_once(backend, script, voice_id),
                    self.policy,
                    label=f"speech:{backend.name}",
                )
            except Exception as exc:
                self._run_logger.log_fallback(backend.name, type(exc).__name__)
                last_error = exc
        if last_error is None:
            raise ProviderError("Unable to generate audio with any available model.")
        raise last_error

    async def _synthesize_once(self, backend: SpeechBackend, script: str, voice_id: str) -> str:
        """Run one backend request and turn its payload into an audio reference."""

        payload = await backend.synthesize(script, voice_id)
        if not payload.audio:
            if payload.text:
                raise ProviderError(
                    f"Model returned text instead of audio: {payload.text}",
                    failure_kind="text_instead_of_audio",
                )
            raise ProviderError("No audio data generated.", failure_kind="malformed")

        base_mime = payload.mime_type.split(";", 1)[0].strip().lower()
        if base_mime in _WAV_MIME_TYPES:
            return to_data_uri(payload.audio, "audio/wav")
        return pcm_to_wav_data_uri(payload.audio, payload.mime_type)
