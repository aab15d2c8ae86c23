"""Unit tests for structured runtime log lines."""

from __future__ import annotations

import io

from docugen.telemetry.logger import RunLogger, configure_logging


def _capture() -> io.StringIO:
    stream = io.StringIO()
    configure_logging(sink=stream, level="DEBUG")
    return stream


def test_stage_lines_sort_and_sanitize_context() -> None:
    stream = _capture()

    RunLogger().log_stage_start("script", chapter="Coral Cities", topic="", id="ch-1")

    assert stream.getvalue().strip() == (
        "[phase] level=INFO stage=script event=start chapter=Coral_Cities id=ch-1 topic=none"
    )


def test_retry_fallback_and_failure_levels() -> None:
    stream = _capture()
    run_logger = RunLogger()

    run_logger.log_retry(attempt=1, remaining=2, delay_ms=2000)
    run_logger.log_fallback("gemini-2.5-flash-preview-tts", "ProviderError")
    run_logger.log_stage_failure("image", "IMAGE_ERROR")

    lines = stream.getvalue().splitlines()
    assert lines == [
        "[phase] level=WARNING stage=retry event=retry attempt=1 delay_ms=2000 remaining=2",
        "[phase] level=WARNING stage=audio event=fallback "
        "backend=gemini-2.5-flash-preview-tts error_type=ProviderError",
        "[phase] level=ERROR stage=image event=failure error_type=IMAGE_ERROR",
    ]


def test_configured_level_filters_debug_lines() -> None:
    stream = io.StringIO()
    configure_logging(sink=stream, level="INFO")

    RunLogger().log_skipped("chapter", "already_generating")
    RunLogger().log_playback("select", chapter=2)

    assert stream.getvalue().splitlines() == [
        "[phase] level=INFO stage=playback event=select chapter=2"
    ]
