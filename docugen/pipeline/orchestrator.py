"""Per-chapter content generation.

Responsibilities:
- Guard chapter generation so at most one pipeline runs per chapter.
- Run the scene-script stage, then image and audio stages for each scene in order.
- Tag stage failures with their failure kind and record them on the chapter.
- Apply every chapter write as a compare-and-swap against the session.

Key types:
- `ChapterOrchestrator`: generation entry point used by outline and playback layers.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from ..errors import AUDIO_ERROR, IMAGE_ERROR, SCRIPT_ERROR, UNKNOWN_ERROR, ChapterStageError
from ..llm.generation import GenerationProvider
from ..llm.retry import RetryExecutor, Sleeper
from ..models.datatypes import (
    SCENES_PER_CHAPTER,
    STATUS_ERROR,
    STATUS_GENERATING,
    STATUS_PENDING,
    STATUS_READY,
    Chapter,
    ChapterContent,
    Scene,
    SceneScript,
)
from ..session import DocumentarySession
from ..telemetry.logger import RunLogger
from ..tts.fallback import SpeechFallbackChain
from .failures import chapter_failure_messages

_STARTABLE_STATUSES = frozenset({STATUS_PENDING, STATUS_ERROR})


class ChapterOrchestrator:
    """Generate chapter content through the script, image, and audio stages."""

    def __init__(
        self,
        session: DocumentarySession,
        provider: GenerationProvider,
        speech_chain: SpeechFallbackChain,
        retry_executor: RetryExecutor | None = None,
        *,
        settle_delay_ms: int = 500,
        sleeper: Sleeper = asyncio.sleep,
        language: str = "th",
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize collaborators and the inter-stage settle delay."""

        self.session = session
        self.provider = provider
        self.speech_chain = speech_chain
        self.retry_executor = retry_executor if retry_executor is not None else RetryExecutor()
        self.settle_delay_ms = settle_delay_ms
        self.language = language
        self._sleeper = sleeper
        self._run_logger = run_logger if run_logger is not None else RunLogger()
        self._tasks: set[asyncio.Task[Chapter | None]] = set()

    @property
    def active_tasks(self) -> int:
        """Return how many scheduled pipelines have not finished yet."""

        return len(self._tasks)

    def begin(self, chapter_id: str) -> Chapter | None:
        """Mark a pending or errored chapter as generating.

        Runs without suspending, so the status check and the `generating` write can
        never interleave with another request for the same chapter.

        Returns:
            The `generating` chapter snapshot, or `None` when the request is ignored.
        """

        chapter = self.session.chapter(chapter_id)
        if chapter is None:
            self._run_logger.log_skipped("chapter", reason="unknown_chapter", chapter=chapter_id)
            return None
        if chapter.status not in _STARTABLE_STATUSES:
            self._run_logger.log_skipped(
                "chapter", reason=chapter.status, chapter=chapter_id
            )
            return None
        return self.session.update_chapter(
            chapter_id,
            {chapter.status},
            status=STATUS_GENERATING,
            content=None,
            error_message=None,
            error_suggestion=None,
        )

    async def generate(self, chapter_id: str) -> Chapter | None:
        """Generate content for `chapter_id` and return its resulting record.

        Requests for chapters that are already generating or ready return the current
        record without starting another pipeline.
        """

        snapshot = self.begin(chapter_id)
        if snapshot is None:
            return self.session.chapter(chapter_id)
        return await self._run(snapshot)

    def schedule(self, chapter_id: str) -> asyncio.Task[Chapter | None] | None:
        """Start generation in the background and return its task, if one was started.

        Must be called while an event loop is running.
        """

        snapshot = self.begin(chapter_id)
        if snapshot is None:
            return None
        task = asyncio.get_running_loop().create_task(self._run(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every scheduled pipeline, including ones started meanwhile, ends."""

        while self._tasks:
            await asyncio.gather(*tuple(self._tasks))

    async def _run(self, chapter: Chapter) -> Chapter | None:
        """Run the stage pipeline and record its outcome on the session."""

        topic = self.session.topic
        self._run_logger.log_stage_start("chapter", chapter=chapter.id)
        try:
            content = await self._build_content(topic, chapter)
        except Exception as exc:
            failure = exc.failure if isinstance(exc, ChapterStageError) else UNKNOWN_ERROR
            message, suggestion = chapter_failure_messages(failure, self.language)
            self._run_logger.log_stage_failure(
                "chapter",
                error_type=type(exc).__name__,
                chapter=chapter.id,
                failure=failure,
            )
            return self.session.update_chapter(
                chapter.id,
                {STATUS_GENERATING},
                status=STATUS_ERROR,
                content=None,
                error_message=message,
                error_suggestion=suggestion,
            )

        updated = self.session.update_chapter(
            chapter.id,
            {STATUS_GENERATING},
            status=STATUS_READY,
            content=content,
        )
        if updated is not None:
            self._run_logger.log_stage_complete(
                "chapter", chapter=chapter.id, scenes=len(content.scenes)
            )
        return updated

    async def _build_content(self, topic: str, chapter: Chapter) -> ChapterContent:
        scripts = await self._stage(
            SCRIPT_ERROR,
            "script",
            lambda: self._generate_scripts(topic, chapter.title),
            chapter=chapter.id,
        )

        scenes: list[Scene] = []
        for index, entry in enumerate(scripts):
            image_url = await self._stage(
                IMAGE_ERROR,
                "image",
                lambda: self.retry_executor.execute(
                    lambda: self.provider.generate_image(entry.image_prompt),
                    label="image",
                ),
                chapter=chapter.id,
                scene=index,
            )
            await self._sleeper(self.settle_delay_ms / 1000.0)

            # Read at stage time so a voice change applies to scenes not yet narrated.
            voice_id = self.session.narration_voice
            audio_url = await self._stage(
                AUDIO_ERROR,
                "audio",
                lambda: self.speech_chain.synthesize(entry.script, voice_id),
                chapter=chapter.id,
                scene=index,
                voice=voice_id,
            )
            scenes.append(
                Scene(
                    script=entry.script,
                    image_prompt=entry.image_prompt,
                    image_url=image_url,
                    audio_url=audio_url,
                )
            )
        return ChapterContent(scenes=tuple(scenes))

    async def _generate_scripts(self, topic: str, chapter_title: str) -> list[SceneScript]:
        scripts = await self.retry_executor.execute(
            lambda: self.provider.generate_scene_scripts(topic, chapter_title),
            label="script",
        )
        if len(scripts) < SCENES_PER_CHAPTER:
            raise ValueError(
                f"Expected {SCENES_PER_CHAPTER} scene scripts, received {len(scripts)}."
            )
        return list(scripts[:SCENES_PER_CHAPTER])

    async def _stage(
        self,
        failure: str,
        stage: str,
        call: Callable[[], Awaitable[Any]],
        **context: object,
    ) -> Any:
        """Await one stage call and re-raise any failure tagged with `failure`."""

        self._run_logger.log_stage_start(stage, **context)
        try:
            result = await call()
        except Exception as exc:
            self._run_logger.log_stage_failure(stage, error_type=type(exc).__name__, **context)
            raise ChapterStageError(failure, detail=str(exc)) from exc
        self._run_logger.log_stage_complete(stage, **context)
        return result
