"""Unit tests for playback cursor sequencing across scenes and chapters."""

from __future__ import annotations

import asyncio

import pytest

from docugen.llm.retry import RetryExecutor
from docugen.models.datatypes import (
    STATUS_ERROR,
    STATUS_READY,
    Chapter,
    ChapterContent,
    Scene,
)
from docugen.pipeline.orchestrator import ChapterOrchestrator
from docugen.playback.sequencer import (
    PLAYBACK_IDLE,
    PLAYBACK_PLAYING,
    PLAYBACK_STOPPED,
    PLAYBACK_WAITING,
    PlaybackSequencer,
)
from docugen.session import DocumentarySession
from docugen.tts.fallback import SpeechFallbackChain
from tests.fakes import FakeProvider, RecordingSleeper


def _content(prefix: str) -> ChapterContent:
    return ChapterContent(
        scenes=tuple(
            Scene(
                script=f"{prefix} scene {index}",
                image_prompt=f"{prefix} prompt {index}",
                image_url="data:image/png;base64,AA==",
                audio_url="data:audio/wav;base64,AA==",
            )
            for index in range(3)
        )
    )


class _RecordingOrchestrator:
    """Orchestrator double recording generation requests."""

    def __init__(self) -> None:
        self.scheduled: list[str] = []

    def schedule(self, chapter_id: str) -> None:
        self.scheduled.append(chapter_id)


def _ready_session(count: int = 3) -> DocumentarySession:
    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(
        token,
        tuple(
            Chapter(
                id=f"c{index + 1}",
                title=f"Chapter {index + 1}",
                description="",
                status=STATUS_READY,
                content=_content(f"c{index + 1}"),
            )
            for index in range(count)
        ),
    )
    return session


def test_advance_scene_moves_through_scenes_then_chapters() -> None:
    session = _ready_session()
    sequencer = PlaybackSequencer(session, _RecordingOrchestrator())
    sequencer.select("c1")

    sequencer.advance_scene()
    assert sequencer.current_scene().script == "c1 scene 1"
    sequencer.advance_scene()
    assert sequencer.cursor.active_scene_index == 2

    sequencer.advance_scene()

    assert sequencer.cursor.active_chapter_id == "c2"
    assert sequencer.cursor.active_scene_index == 0
    assert sequencer.state == PLAYBACK_PLAYING


def test_last_scene_of_last_chapter_stops_without_wraparound() -> None:
    session = _ready_session()
    sequencer = PlaybackSequencer(session, _RecordingOrchestrator())
    sequencer.select("c3")
    sequencer.advance_scene()
    sequencer.advance_scene()

    sequencer.advance_scene()

    assert sequencer.state == PLAYBACK_STOPPED
    assert sequencer.cursor.active_chapter_id == "c3"
    assert sequencer.cursor.active_scene_index == 2


def test_selecting_chapter_without_content_requests_generation() -> None:
    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(token, (Chapter(id="c1", title="One", description=""),))
    orchestrator = _RecordingOrchestrator()
    sequencer = PlaybackSequencer(session, orchestrator)

    sequencer.select("c1")

    assert orchestrator.scheduled == ["c1"]
    assert sequencer.state == PLAYBACK_WAITING
    assert sequencer.current_scene() is None


def test_selecting_ready_chapter_does_not_request_generation() -> None:
    session = _ready_session()
    orchestrator = _RecordingOrchestrator()
    sequencer = PlaybackSequencer(session, orchestrator)

    sequencer.select("c2")
    sequencer.select("c2")

    assert orchestrator.scheduled == []
    assert sequencer.cursor.active_scene_index == 0


def test_playback_starts_when_waited_chapter_becomes_ready() -> None:
    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(token, (Chapter(id="c1", title="One", description=""),))
    sequencer = PlaybackSequencer(session, _RecordingOrchestrator())
    sequencer.select("c1")

    session.update_chapter("c1", {"pending"}, status="generating")
    assert sequencer.state == PLAYBACK_WAITING
    session.update_chapter("c1", {"generating"}, status=STATUS_READY, content=_content("c1"))

    assert sequencer.state == PLAYBACK_PLAYING
    assert sequencer.current_scene().script == "c1 scene 0"


def test_retry_reselects_errored_chapter() -> None:
    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(
        token,
        (Chapter(id="c1", title="One", description="", status=STATUS_ERROR),),
    )
    orchestrator = _RecordingOrchestrator()
    sequencer = PlaybackSequencer(session, orchestrator)
    sequencer.select("c1")

    sequencer.retry()

    assert orchestrator.scheduled == ["c1", "c1"]


def test_advance_without_content_is_noop() -> None:
    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(token, (Chapter(id="c1", title="One", description=""),))
    sequencer = PlaybackSequencer(session, _RecordingOrchestrator())

    sequencer.advance_scene()
    assert sequencer.state == PLAYBACK_IDLE
    sequencer.select("c1")
    sequencer.advance_scene()

    assert sequencer.cursor.active_chapter_id == "c1"
    assert sequencer.state == PLAYBACK_WAITING


def test_select_unknown_chapter_raises() -> None:
    sequencer = PlaybackSequencer(_ready_session(), _RecordingOrchestrator())

    with pytest.raises(KeyError):
        sequencer.select("c9")


def test_stop_clears_cursor() -> None:
    sequencer = PlaybackSequencer(_ready_session(), _RecordingOrchestrator())
    sequencer.select("c1")

    sequencer.stop()

    assert sequencer.cursor.active_chapter_id is None
    assert sequencer.active_chapter is None
    assert sequencer.state == PLAYBACK_IDLE


def test_rollover_triggers_generation_of_next_chapter() -> None:
    """Advancing into a pending chapter schedules it through the real event loop."""

    session = DocumentarySession()
    token = session.begin_planning("deep sea")
    session.load_outline(
        token,
        (
            Chapter(
                id="c1", title="One", description="", status=STATUS_READY, content=_content("c1")
            ),
            Chapter(id="c2", title="Two", description=""),
        ),
    )
    provider = FakeProvider()
    sleeper = RecordingSleeper()
    executor = RetryExecutor(sleeper=sleeper)
    orchestrator = ChapterOrchestrator(
        session,
        provider,
        SpeechFallbackChain(provider.speech_backends(), retry_executor=executor),
        executor,
        sleeper=sleeper,
    )
    sequencer = PlaybackSequencer(session, orchestrator)

    async def _run() -> None:
        sequencer.select("c1")
        for _ in range(3):
            sequencer.advance_scene()
        assert sequencer.state == PLAYBACK_WAITING
        await orchestrator.wait_idle()

    asyncio.run(_run())

    assert provider.script_calls == [("deep sea", "Two")]
    assert sequencer.state == PLAYBACK_PLAYING
    assert sequencer.current_scene().script == "Two narration 0"
