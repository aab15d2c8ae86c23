"""Playback sequencing over the chapter sequence.

Responsibilities:
- Track the active chapter and scene cursor.
- Trigger generation when a selected chapter has no content yet.
- Advance scene by scene, then chapter by chapter, stopping after the last chapter.
- Start playback when the chapter it is waiting for becomes ready.

Key types:
- `PlaybackSequencer`: cursor owner driven by selection and playback-ended events.
"""

from __future__ import annotations

from dataclasses import replace

from ..models.datatypes import STATUS_READY, Chapter, PlaybackCursor, Scene
from ..pipeline.orchestrator import ChapterOrchestrator
from ..session import DocumentarySession
from ..telemetry.logger import RunLogger

PLAYBACK_IDLE = "idle"
PLAYBACK_WAITING = "waiting"
PLAYBACK_PLAYING = "playing"
PLAYBACK_STOPPED = "stopped"


class PlaybackSequencer:
    """Move the playback cursor through scenes and chapters."""

    def __init__(
        self,
        session: DocumentarySession,
        orchestrator: ChapterOrchestrator,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize an idle cursor and subscribe to chapter changes."""

        self.session = session
        self.orchestrator = orchestrator
        self.cursor = PlaybackCursor()
        self.state = PLAYBACK_IDLE
        self._run_logger = run_logger if run_logger is not None else RunLogger()
        self._unsubscribe = session.subscribe(self._on_chapter_changed)

    @property
    def active_chapter(self) -> Chapter | None:
        """Return the current record of the active chapter, if any."""

        if self.cursor.active_chapter_id is None:
            return None
        return self.session.chapter(self.cursor.active_chapter_id)

    def current_scene(self) -> Scene | None:
        """Return the scene under the cursor when the active chapter has content."""

        chapter = self.active_chapter
        if chapter is None or chapter.content is None:
            return None
        scenes = chapter.content.scenes
        if 0 <= self.cursor.active_scene_index < len(scenes):
            return scenes[self.cursor.active_scene_index]
        return None

    def select(self, chapter_id: str) -> None:
        """Make `chapter_id` active at scene 0, starting generation if it has no content.

        Raises:
            KeyError: If the chapter is not part of the current outline.
        """

        chapter = self.session.chapter(chapter_id)
        if chapter is None:
            raise KeyError(chapter_id)

        self.cursor = PlaybackCursor(active_chapter_id=chapter_id, active_scene_index=0)
        if chapter.content is None:
            self.orchestrator.schedule(chapter_id)
            self.state = PLAYBACK_WAITING
        else:
            self.state = PLAYBACK_PLAYING
        self._run_logger.log_playback("select", chapter=chapter_id, state=self.state)

    def retry(self) -> None:
        """Re-select the active chapter, restarting generation if it failed."""

        if self.cursor.active_chapter_id is not None:
            self.select(self.cursor.active_chapter_id)

    def advance_scene(self) -> None:
        """Handle the end of the current scene's narration."""

        chapter = self.active_chapter
        if chapter is None or chapter.content is None:
            return
        last_index = len(chapter.content.scenes) - 1
        if self.cursor.active_scene_index < last_index:
            self.cursor = replace(
                self.cursor, active_scene_index=self.cursor.active_scene_index + 1
            )
            self._run_logger.log_playback(
                "scene", chapter=chapter.id, scene=self.cursor.active_scene_index
            )
            return
        self.advance_chapter()

    def advance_chapter(self) -> None:
        """Select the next chapter, or stop after the last one."""

        if self.cursor.active_chapter_id is None:
            return
        index = self.session.index_of(self.cursor.active_chapter_id)
        chapters = self.session.chapters
        if index is not None and index + 1 < len(chapters):
            self.select(chapters[index + 1].id)
            return
        self.state = PLAYBACK_STOPPED
        self._run_logger.log_playback("stopped", chapter=self.cursor.active_chapter_id)

    def stop(self) -> None:
        """Clear the cursor, for example after the session is reset."""

        self.cursor = PlaybackCursor()
        self.state = PLAYBACK_IDLE

    def close(self) -> None:
        """Stop listening to chapter changes."""

        self._unsubscribe()

    def _on_chapter_changed(self, chapter: Chapter) -> None:
        if chapter.id != self.cursor.active_chapter_id or self.state != PLAYBACK_WAITING:
            return
        if chapter.status == STATUS_READY:
            self.cursor = replace(self.cursor, active_scene_index=0)
            self.state = PLAYBACK_PLAYING
            self._run_logger.log_playback("ready", chapter=chapter.id)
