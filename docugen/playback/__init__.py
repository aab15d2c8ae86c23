"""Playback cursor sequencing."""

from .sequencer import (
    PLAYBACK_IDLE,
    PLAYBACK_PLAYING,
    PLAYBACK_STOPPED,
    PLAYBACK_WAITING,
    PlaybackSequencer,
)

__all__ = [
    "PLAYBACK_IDLE",
    "PLAYBACK_PLAYING",
    "PLAYBACK_STOPPED",
    "PLAYBACK_WAITING",
    "PlaybackSequencer",
]
