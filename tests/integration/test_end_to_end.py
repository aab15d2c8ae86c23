"""End-to-end session tests over the full runtime wiring with a fake provider."""

from __future__ import annotations

import asyncio

from docugen.models.datatypes import STATUS_ERROR, STATUS_PENDING, STATUS_READY
from docugen.playback.sequencer import PLAYBACK_PLAYING, PLAYBACK_STOPPED
from docugen.runtime import DocumentaryRuntime
from docugen.session import PHASE_IDLE, PHASE_READY
from tests.fakes import OCEAN_CHAPTERS, FakeProvider, RecordingSleeper, hard_error


def _runtime(provider: FakeProvider, **options: object) -> DocumentaryRuntime:
    return DocumentaryRuntime(
        provider,
        sleeper=RecordingSleeper(),
        token_factory=lambda: "run",
        **options,  # type: ignore[arg-type]
    )


def test_topic_to_first_playable_chapter() -> None:
    """Starting a topic generates only the first chapter and begins playing it."""

    provider = FakeProvider(chapter_titles=OCEAN_CHAPTERS)
    runtime = _runtime(provider)

    async def _run() -> None:
        await runtime.start("ocean life")
        await runtime.wait_idle()

    asyncio.run(_run())

    session = runtime.session
    assert session.phase == PHASE_READY
    assert len(session.chapters) == 8
    first = session.chapters[0]
    assert first.id == "ch-run-0"
    assert first.status == STATUS_READY
    assert len(first.content.scenes) == 3
    for scene in first.content.scenes:
        assert scene.image_url.startswith("data:image/png;base64,")
        assert scene.audio_url.startswith("data:audio/wav;base64,")
    for chapter in session.chapters[1:]:
        assert chapter.status == STATUS_PENDING
        assert chapter.content is None
    assert provider.script_calls == [("ocean life", "Sunlit Shallows")]
    assert runtime.sequencer.state == PLAYBACK_PLAYING
    assert runtime.sequencer.cursor.active_chapter_id == "ch-run-0"


def test_playing_through_generates_each_chapter_on_demand() -> None:
    provider = FakeProvider(chapter_titles=("One", "Two"))
    runtime = _runtime(provider, settle_delay_ms=0)

    async def _run() -> list[str]:
        await runtime.start("volcanoes")
        await runtime.wait_idle()
        played: list[str] = []
        sequencer = runtime.sequencer
        while sequencer.state != PLAYBACK_STOPPED:
            scene = sequencer.current_scene()
            if scene is None:
                await runtime.wait_idle()
                continue
            played.append(scene.script)
            sequencer.advance_scene()
        return played

    played = asyncio.run(_run())

    assert played == [
        f"{title} narration {index}" for title in ("One", "Two") for index in range(3)
    ]
    assert provider.script_calls == [("volcanoes", "One"), ("volcanoes", "Two")]
    assert runtime.session.ready_count == 2


def test_failed_chapter_recovers_on_retry() -> None:
    provider = FakeProvider(script_errors={"Origins": hard_error()})
    runtime = _runtime(provider, language="en")

    async def _run() -> None:
        await runtime.start("bridges")
        await runtime.wait_idle()
        assert runtime.session.chapters[0].status == STATUS_ERROR
        provider.script_errors.clear()
        runtime.sequencer.retry()
        await runtime.wait_idle()

    asyncio.run(_run())

    assert runtime.session.chapters[0].status == STATUS_READY
    assert runtime.sequencer.state == PLAYBACK_PLAYING


def test_reset_returns_to_topic_entry() -> None:
    runtime = _runtime(FakeProvider())

    async def _run() -> None:
        await runtime.start("bridges")
        await runtime.wait_idle()
        runtime.reset()

    asyncio.run(_run())

    assert runtime.session.phase == PHASE_IDLE
    assert runtime.session.chapters == ()
    assert runtime.sequencer.active_chapter is None
