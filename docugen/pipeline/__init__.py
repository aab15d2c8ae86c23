"""Outline creation and per-chapter content generation."""

from .failures import chapter_failure_messages, outline_failure_message
from .orchestrator import ChapterOrchestrator
from .outline import OutlineCoordinator

__all__ = [
    "ChapterOrchestrator",
    "OutlineCoordinator",
    "chapter_failure_messages",
    "outline_failure_message",
]
