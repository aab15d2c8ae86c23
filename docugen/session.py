"""Documentary session state.

Responsibilities:
- Own the topic, session phase, and the ordered chapter sequence.
- Apply chapter changes by id-matched replacement into a new immutable tuple.
- Guard every chapter write against the current authoritative status.
- Notify subscribers after each applied chapter change.

Key types:
- `DocumentarySession`: single-writer owner of chapter state for one topic.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Collection

from .models.datatypes import STATUS_READY, Chapter
from .telemetry.logger import RunLogger
from .tts.voices import DEFAULT_VOICE_ID, get_voice

PHASE_IDLE = "idle"
PHASE_PLANNING = "planning"
PHASE_READY = "ready"

ChapterListener = Callable[[Chapter], None]


class DocumentarySession:
    """Single-writer session holding the chapter sequence for one documentary."""

    def __init__(
        self,
        narration_voice: str = DEFAULT_VOICE_ID,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize an idle session with the selected narration voice."""

        self.topic = ""
        self.phase = PHASE_IDLE
        self.error: str | None = None
        self._chapters: tuple[Chapter, ...] = ()
        self._narration_voice = get_voice(narration_voice).voice_id
        self._planning_token = 0
        self._listeners: list[ChapterListener] = []
        self._run_logger = run_logger if run_logger is not None else RunLogger()

    @property
    def chapters(self) -> tuple[Chapter, ...]:
        """Return the current immutable chapter sequence."""

        return self._chapters

    @property
    def narration_voice(self) -> str:
        """Return the narration voice selected right now."""

        return self._narration_voice

    def select_voice(self, voice_id: str) -> None:
        """Change the narration voice used by audio stages that have not run yet."""

        self._narration_voice = get_voice(voice_id).voice_id

    @property
    def ready_count(self) -> int:
        """Return how many chapters have finished generating."""

        return sum(1 for chapter in self._chapters if chapter.status == STATUS_READY)

    def chapter(self, chapter_id: str) -> Chapter | None:
        """Return the current record for `chapter_id`, if it exists."""

        for chapter in self._chapters:
            if chapter.id == chapter_id:
                return chapter
        return None

    def index_of(self, chapter_id: str) -> int | None:
        """Return the outline position of `chapter_id`, if it exists."""

        for index, chapter in enumerate(self._chapters):
            if chapter.id == chapter_id:
                return index
        return None

    def begin_planning(self, topic: str) -> int:
        """Enter the planning phase for `topic` and return the planning token."""

        self._planning_token += 1
        self.topic = topic
        self.phase = PHASE_PLANNING
        self.error = None
        return self._planning_token

    def load_outline(self, token: int, chapters: tuple[Chapter, ...]) -> bool:
        """Install an outline if `token` still identifies the active planning request."""

        if token != self._planning_token or self.phase != PHASE_PLANNING:
            return False
        self._chapters = tuple(chapters)
        self.phase = PHASE_READY
        return True

    def fail_planning(self, token: int, message: str) -> bool:
        """Return to topic entry with a user-facing error if `token` is still active."""

        if token != self._planning_token or self.phase != PHASE_PLANNING:
            return False
        self.phase = PHASE_IDLE
        self.error = message
        return True

    def reset(self) -> None:
        """Drop the topic and chapter sequence and return to topic entry."""

        self._planning_token += 1
        self.topic = ""
        self.phase = PHASE_IDLE
        self.error = None
        self._chapters = ()

    def update_chapter(
        self,
        chapter_id: str,
        expected_statuses: Collection[str],
        **changes: object,
    ) -> Chapter | None:
        """Replace a chapter only if its current status is one of `expected_statuses`.

        Returns:
            The new chapter record, or `None` when the chapter no longer exists or its
            status changed since the caller last observed it.
        """

        current = self.chapter(chapter_id)
        if current is None or current.status not in expected_statuses:
            self._run_logger.log_skipped(
                "session",
                reason="stale_write",
                chapter=chapter_id,
                status=current.status if current is not None else "missing",
            )
            return None

        updated = replace(current, **changes)
        self._chapters = tuple(
            updated if chapter.id == chapter_id else chapter for chapter in self._chapters
        )
        for listener in tuple(self._listeners):
            listener(updated)
        return updated

    def subscribe(self, listener: ChapterListener) -> Callable[[], None]:
        """Register a chapter-change listener and return its unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
