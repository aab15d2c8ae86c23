"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
outline listings, generated chapter content, and voice listings.
"""

from __future__ import annotations

from typing import NoReturn, Sequence

import typer

from .audio.wav import decode_data_uri
from .errors import PipelineStageError
from .models.datatypes import Chapter, Scene
from .tts.voices import VoiceProfile

_EXCERPT_CHARS = 72


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def excerpt(text: str, limit: int = _EXCERPT_CHARS) -> str:
    """Return a single-line excerpt of at most `limit` characters."""

    flattened = " ".join(text.split())
    if len(flattened) <= limit:
        return flattened
    return flattened[: limit - 3].rstrip() + "..."


def describe_reference(uri: str) -> str:
    """Summarize a data URI as its MIME type and payload size."""

    mime_type, payload = decode_data_uri(uri)
    return f"{mime_type}, {len(payload)} bytes"


def echo_chapter_list(chapters: Sequence[Chapter]) -> None:
    """Print 1-based chapter rows with titles and descriptions."""

    for number, chapter in enumerate(chapters, start=1):
        typer.echo(f"{number}. {chapter.title}")
        if chapter.description:
            typer.echo(f"   {excerpt(chapter.description)}")


def echo_scene(number: int, scene: Scene) -> None:
    """Print one scene with its script excerpt and reference summaries."""

    typer.echo(f"  Scene {number}: {excerpt(scene.script)}")
    typer.echo(f"    Image: {describe_reference(scene.image_url)}")
    typer.echo(f"    Audio: {describe_reference(scene.audio_url)}")


def echo_chapter_content(chapter: Chapter) -> None:
    """Print a chapter's status and, when ready, its scenes."""

    typer.echo(f"Chapter: {chapter.title} [{chapter.status}]")
    if chapter.content is not None:
        for number, scene in enumerate(chapter.content.scenes, start=1):
            echo_scene(number, scene)
    if chapter.error_message:
        typer.echo(f"Error: {chapter.error_message}")
    if chapter.error_suggestion:
        typer.echo(f"Suggestion: {chapter.error_suggestion}")


def echo_voice_list(voices: Sequence[VoiceProfile], language: str, selected: str) -> None:
    """Print voice rows, marking the selected narration voice."""

    for voice in voices:
        marker = "*" if voice.voice_id == selected else " "
        typer.echo(
            f"{marker} {voice.voice_id:<8} {voice.style:<11} {voice.preview_phrase(language)}"
        )
