"""Localized user-facing messages for chapter and outline failures."""

from __future__ import annotations

from ..errors import AUDIO_ERROR, IMAGE_ERROR, SCRIPT_ERROR, UNKNOWN_ERROR

_CHAPTER_FAILURE_MESSAGES: dict[str, dict[str, tuple[str, str]]] = {
    "th": {
        SCRIPT_ERROR: (
            "ไม่สามารถสร้างบทบรรยายได้",
            "ระบบ AI อาจมีปัญหาในการประมวลผลหัวข้อนี้",
        ),
        IMAGE_ERROR: (
            "ไม่สามารถสร้างภาพประกอบได้",
            "คำบรรยายภาพอาจซับซ้อนเกินไป",
        ),
        AUDIO_ERROR: (
            "ไม่สามารถสร้างเสียงบรรยายได้",
            "ระบบแปลงเสียงอาจขัดข้องชั่วคราว (Rate Limit)",
        ),
        UNKNOWN_ERROR: (
            "เกิดข้อผิดพลาดในการสร้างเนื้อหา",
            "กรุณาลองกด 'ลองใหม่อีกครั้ง'",
        ),
    },
    "en": {
        SCRIPT_ERROR: (
            "Could not generate the narration script.",
            "The AI service may have trouble processing this topic.",
        ),
        IMAGE_ERROR: (
            "Could not generate the illustration.",
            "The image description may be too complex.",
        ),
        AUDIO_ERROR: (
            "Could not generate the narration audio.",
            "The speech service may be temporarily unavailable (rate limit).",
        ),
        UNKNOWN_ERROR: (
            "Something went wrong while generating this chapter.",
            "Please select the chapter again to retry.",
        ),
    },
}

_OUTLINE_FAILURE_MESSAGES = {
    "th": "ไม่สามารถสร้างโครงเรื่องได้ กรุณาลองใหม่อีกครั้ง",
    "en": "Could not create the documentary outline. Please try again.",
}


def chapter_failure_messages(failure: str, language: str = "th") -> tuple[str, str]:
    """Return `(error_message, error_suggestion)` for a chapter failure kind."""

    table = _CHAPTER_FAILURE_MESSAGES.get(language, _CHAPTER_FAILURE_MESSAGES["en"])
    return table.get(failure, table[UNKNOWN_ERROR])


def outline_failure_message(language: str = "th") -> str:
    """Return the session-level message shown when outline creation fails."""

    return _OUTLINE_FAILURE_MESSAGES.get(language, _OUTLINE_FAILURE_MESSAGES["en"])
