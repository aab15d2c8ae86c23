"""Outline creation for a new documentary topic."""

from __future__ import annotations

import uuid
from typing import Callable

from ..errors import PipelineStageError
from ..llm.generation import GenerationProvider
from ..llm.retry import RetryExecutor
from ..models.datatypes import Chapter
from ..parsing import normalize_optional_string
from ..session import DocumentarySession
from ..telemetry.logger import RunLogger
from .failures import outline_failure_message
from .orchestrator import ChapterOrchestrator


def _default_token() -> str:
    return uuid.uuid4().hex[:12]


class OutlineCoordinator:
    """Turn a topic into a pending chapter sequence and start the first chapter."""

    def __init__(
        self,
        session: DocumentarySession,
        provider: GenerationProvider,
        orchestrator: ChapterOrchestrator,
        retry_executor: RetryExecutor | None = None,
        *,
        language: str = "th",
        token_factory: Callable[[], str] | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self.session = session
        self.provider = provider
        self.orchestrator = orchestrator
        self.retry_executor = retry_executor if retry_executor is not None else RetryExecutor()
        self.language = language
        self._token_factory = token_factory if token_factory is not None else _default_token
        self._run_logger = run_logger if run_logger is not None else RunLogger()

    async def create(
        self, topic: str, *, start_first_chapter: bool = True
    ) -> tuple[Chapter, ...]:
        """Create the outline for `topic` and, by default, start its first chapter.

        Returns:
            The installed chapters, or an empty tuple when the session was reset while
            the outline request was in flight, whether that request succeeded or failed.

        Raises:
            PipelineStageError: If the topic is empty or the outline cannot be generated.
        """

        normalized = normalize_optional_string(topic)
        if normalized is None:
            raise PipelineStageError(
                stage="outline",
                detail="Topic must not be empty.",
                hint="Provide a documentary topic, for example `docugen outline \"Rome\"`.",
            )

        token = self.session.begin_planning(normalized)
        self._run_logger.log_stage_start("outline", topic_length=len(normalized))
        try:
            entries = await self.retry_executor.execute(
                lambda: self.provider.generate_outline(normalized),
                label="outline",
            )
        except Exception as exc:
            message = outline_failure_message(self.language)
            if not self.session.fail_planning(token, message):
                self._run_logger.log_skipped("outline", reason="session_reset")
                return ()
            self._run_logger.log_stage_failure("outline", error_type=type(exc).__name__)
            raise PipelineStageError(
                stage="outline",
                detail=message,
                hint=str(exc) or None,
            ) from exc

        id_token = self._token_factory()
        chapters = tuple(
            Chapter(
                id=f"ch-{id_token}-{index}",
                title=entry.title,
                description=entry.description,
            )
            for index, entry in enumerate(entries)
        )
        if not self.session.load_outline(token, chapters):
            self._run_logger.log_skipped("outline", reason="session_reset")
            return ()

        self._run_logger.log_stage_complete("outline", chapters=len(chapters))
        if chapters and start_first_chapter:
            self.orchestrator.schedule(chapters[0].id)
        return chapters
