"""Shared immutable datatypes for chapters, scenes, and generation policies."""

from .datatypes import (
    CHAPTER_STATUSES,
    DEFAULT_RETRY_POLICY,
    FAST_FAIL_RETRY_POLICY,
    SCENES_PER_CHAPTER,
    STATUS_ERROR,
    STATUS_GENERATING,
    STATUS_PENDING,
    STATUS_READY,
    Chapter,
    ChapterContent,
    OutlineEntry,
    PlaybackCursor,
    RetryPolicy,
    Scene,
    SceneScript,
    SpeechPayload,
)

__all__ = [
    "CHAPTER_STATUSES",
    "DEFAULT_RETRY_POLICY",
    "FAST_FAIL_RETRY_POLICY",
    "SCENES_PER_CHAPTER",
    "STATUS_ERROR",
    "STATUS_GENERATING",
    "STATUS_PENDING",
    "STATUS_READY",
    "Chapter",
    "ChapterContent",
    "OutlineEntry",
    "PlaybackCursor",
    "RetryPolicy",
    "Scene",
    "SceneScript",
    "SpeechPayload",
]
