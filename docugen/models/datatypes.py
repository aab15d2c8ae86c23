"""Core datatypes shared across DocuGen modules.

Responsibilities:
- Represent immutable records exchanged between generation stages and playback.
- Keep chapter lifecycle state explicit so updates happen by whole-record replacement.

Key types:
- `OutlineEntry`, `SceneScript`, `Scene`, `ChapterContent`, `Chapter`,
  `RetryPolicy`, `PlaybackCursor`.
"""

from __future__ import annotations

from dataclasses import dataclass


STATUS_PENDING = "pending"
STATUS_GENERATING = "generating"
STATUS_READY = "ready"
STATUS_ERROR = "error"
CHAPTER_STATUSES = frozenset({STATUS_PENDING, STATUS_GENERATING, STATUS_READY, STATUS_ERROR})

SCENES_PER_CHAPTER = 3


@dataclass(frozen=True, slots=True)
class OutlineEntry:
    """One chapter stub returned by outline generation.

    Attributes:
        title: Chapter title.
        description: Short summary of what the chapter covers.
    """

    title: str
    description: str


@dataclass(frozen=True, slots=True)
class SceneScript:
    """Narration script and image prompt for one planned scene."""

    script: str
    image_prompt: str


@dataclass(frozen=True, slots=True)
class Scene:
    """A fully generated scene.

    Attributes:
        script: Narration text read aloud for the scene.
        image_prompt: Prompt used to generate the scene image.
        image_url: Opaque image reference (data URI).
        audio_url: Opaque audio reference (data URI of a WAV payload).
    """

    script: str
    image_prompt: str
    image_url: str
    audio_url: str


@dataclass(frozen=True, slots=True)
class ChapterContent:
    """Ordered scenes of a completed chapter."""

    scenes: tuple[Scene, ...]


@dataclass(frozen=True, slots=True)
class Chapter:
    """One documentary chapter and its generation lifecycle state.

    Attributes:
        id: Unique chapter identifier within one outline.
        title: Chapter title.
        description: Chapter summary.
        status: One of `pending`, `generating`, `ready`, `error`.
        content: Generated content, present only when `ready`.
        error_message: User-facing failure message, present only when `error`.
        error_suggestion: User-facing remediation hint, present only when `error`.
    """

    id: str
    title: str
    description: str
    status: str = STATUS_PENDING
    content: ChapterContent | None = None
    error_message: str | None = None
    error_suggestion: str | None = None

    def __post_init__(self) -> None:
        """Reject unknown lifecycle statuses."""

        if self.status not in CHAPTER_STATUSES:
            raise ValueError(f"Unsupported chapter status `{self.status}`.")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff settings for one retry executor call.

    Attributes:
        max_retries: Retries allowed after the initial attempt.
        initial_delay_ms: Wait before the first retry, in milliseconds.
        backoff_multiplier: Factor applied to the delay after every retry.
    """

    max_retries: int = 3
    initial_delay_ms: int = 2000
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        """Validate retry policy bounds."""

        if self.max_retries < 0:
            raise ValueError("`max_retries` must be zero or positive.")
        if self.initial_delay_ms < 0:
            raise ValueError("`initial_delay_ms` must be zero or positive.")
        if self.backoff_multiplier < 1.0:
            raise ValueError("`backoff_multiplier` must be at least 1.0.")


DEFAULT_RETRY_POLICY = RetryPolicy()
FAST_FAIL_RETRY_POLICY = RetryPolicy(max_retries=1, initial_delay_ms=1000)


@dataclass(frozen=True, slots=True)
class PlaybackCursor:
    """Active chapter and scene position of the playback sequencer."""

    active_chapter_id: str | None = None
    active_scene_index: int = 0


@dataclass(frozen=True, slots=True)
class SpeechPayload:
    """Raw speech backend response before packaging.

    Attributes:
        audio: Raw audio bytes (16-bit PCM unless `mime_type` says otherwise).
        mime_type: Provider-reported audio MIME type.
        text: Text the backend returned instead of audio, if any.
    """

    audio: bytes | None = None
    mime_type: str = "audio/L16;codec=pcm;rate=24000"
    text: str | None = None
