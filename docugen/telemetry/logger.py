"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic stage-level runtime logs through `loguru`.
- Keep secrets and provider payloads out of log lines.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> int:
    """Replace loguru handlers with one plain-message sink and return its handler id."""

    logger.remove()
    return logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class RunLogger:
    """Emit deterministic stage logs for generation and playback activity."""

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)

    def log_retry(self, attempt: int, remaining: int, delay_ms: int, **context: object) -> None:
        """Emit one rate-limit retry event."""

        self._emit(
            "WARNING",
            "retry",
            "retry",
            attempt=attempt,
            remaining=remaining,
            delay_ms=delay_ms,
            **context,
        )

    def log_fallback(self, backend: str, error_type: str) -> None:
        """Emit one speech backend fallback event."""

        self._emit("WARNING", "fallback", "audio", backend=backend, error_type=error_type)

    def log_skipped(self, stage: str, reason: str, **context: object) -> None:
        """Emit an event for a request ignored by a guard."""

        self._emit("DEBUG", "skipped", stage, reason=reason, **context)

    def log_playback(self, event: str, **context: object) -> None:
        """Emit one playback sequencing event."""

        self._emit("INFO", event, "playback", **context)
