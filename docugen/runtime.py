"""Session runtime wiring.

Builds one documentary session graph (session, retry executor, speech chain,
chapter orchestrator, outline coordinator, playback sequencer, voice previewer)
around a generation provider.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from .config import DocugenConfig, ProviderRuntimeConfig
from .llm.generation import GenerationProvider
from .llm.retry import RetryExecutor, Sleeper
from .models.datatypes import DEFAULT_RETRY_POLICY, FAST_FAIL_RETRY_POLICY, Chapter, RetryPolicy
from .pipeline.orchestrator import ChapterOrchestrator
from .pipeline.outline import OutlineCoordinator
from .playback.sequencer import PlaybackSequencer
from .provider_factory import ProviderFactory
from .session import DocumentarySession
from .telemetry.logger import RunLogger
from .tts.fallback import SpeechFallbackChain
from .tts.preview import VoicePreviewer
from .tts.voices import DEFAULT_VOICE_ID


class DocumentaryRuntime:
    """One documentary session and the components that act on it."""

    def __init__(
        self,
        provider: GenerationProvider,
        *,
        language: str = "th",
        narration_voice: str = DEFAULT_VOICE_ID,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        speech_retry_policy: RetryPolicy = FAST_FAIL_RETRY_POLICY,
        settle_delay_ms: int = 500,
        sleeper: Sleeper = asyncio.sleep,
        token_factory: Callable[[], str] | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self.provider = provider
        self.language = language
        self.run_logger = run_logger if run_logger is not None else RunLogger()
        self.session = DocumentarySession(narration_voice, run_logger=self.run_logger)
        self.retry_executor = RetryExecutor(
            retry_policy, sleeper=sleeper, run_logger=self.run_logger
        )
        self.speech_chain = SpeechFallbackChain(
            provider.speech_backends(),
            retry_executor=self.retry_executor,
            policy=speech_retry_policy,
            run_logger=self.run_logger,
        )
        self.orchestrator = ChapterOrchestrator(
            self.session,
            provider,
            self.speech_chain,
            self.retry_executor,
            settle_delay_ms=settle_delay_ms,
            sleeper=sleeper,
            language=language,
            run_logger=self.run_logger,
        )
        self.outline = OutlineCoordinator(
            self.session,
            provider,
            self.orchestrator,
            self.retry_executor,
            language=language,
            token_factory=token_factory,
            run_logger=self.run_logger,
        )
        self.sequencer = PlaybackSequencer(
            self.session, self.orchestrator, run_logger=self.run_logger
        )
        self.previewer = VoicePreviewer(self.speech_chain, language=language)

    @classmethod
    def from_config(
        cls,
        config: DocugenConfig,
        runtime_config: ProviderRuntimeConfig,
        provider: GenerationProvider | None = None,
        **overrides: object,
    ) -> "DocumentaryRuntime":
        """Build a runtime from resolved configuration, creating the provider if needed."""

        if provider is None:
            provider = ProviderFactory.create_provider(
                runtime_config.provider,
                config,
                language=runtime_config.language,
                api_key=runtime_config.api_key,
            )
        options: dict[str, object] = {
            "language": runtime_config.language,
            "narration_voice": runtime_config.narration_voice,
            "retry_policy": config.retry_policy(),
            "speech_retry_policy": config.speech_retry_policy(),
            "settle_delay_ms": config.settle_delay_ms,
        }
        options.update(overrides)
        return cls(provider, **options)

    async def start(self, topic: str) -> tuple[Chapter, ...]:
        """Create the outline for `topic` and make its first chapter active."""

        chapters = await self.outline.create(topic)
        if chapters:
            self.sequencer.select(chapters[0].id)
        return chapters

    def reset(self) -> None:
        """Return to topic entry, dropping chapters and the playback cursor."""

        self.session.reset()
        self.sequencer.stop()

    def select_voice(self, voice_id: str) -> None:
        """Change the narration voice for scenes not yet narrated."""

        self.session.select_voice(voice_id)

    async def wait_idle(self) -> None:
        """Wait for every background chapter pipeline to finish."""

        await self.orchestrator.wait_idle()
