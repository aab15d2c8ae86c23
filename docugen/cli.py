"""Command-line interface for DocuGen.

Responsibilities:
- Expose user-facing commands for outlining, generating, and playing documentaries.
- Convert CLI arguments into `DocugenConfig` runtime sources and build the session.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    describe_reference,
    echo_chapter_content,
    echo_chapter_list,
    echo_voice_list,
    exit_with_command_error,
    excerpt,
)
from .config import ConfigLoader, DocugenConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .models.datatypes import STATUS_ERROR, Chapter
from .parsing import normalize_optional_string
from .playback.sequencer import PLAYBACK_PLAYING, PLAYBACK_STOPPED, PLAYBACK_WAITING
from .runtime import DocumentaryRuntime
from .telemetry.logger import configure_logging
from .tts.voices import VOICES

app = typer.Typer(
    name="docugen",
    no_args_is_help=True,
    help="DocuGen CLI: narrated, illustrated documentaries from a single topic.",
)

ConfigFileOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with session defaults."),
]
VoiceOption = Annotated[
    str | None,
    typer.Option("--voice", help="Narration voice (Puck, Zephyr, Kore, Charon)."),
]
LanguageOption = Annotated[
    str | None,
    typer.Option("--language", help="Narration language code (`th` or `en`)."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Gemini API key override. Prefer `docugen credentials --set-api-key`.",
    ),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Runtime log level written to stderr."),
]


def _load_yaml_config(config_path: Path | None) -> DocugenConfig:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return DocugenConfig()

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except Exception as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify YAML syntax and file permissions.",
        ) from exc


def _runtime_sources(
    voice: str | None, language: str | None, api_key: str | None
) -> RuntimeConfigSources:
    """Assemble CLI, secure-storage, and environment value sources."""

    cli_values: dict[str, str] = {}
    for key, value in (
        ("narration_voice", voice),
        ("language", language),
        ("api_key", api_key),
    ):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            cli_values[key] = normalized

    secure_values: dict[str, str] = {}
    stored_api_key = create_credential_store().get_api_key()
    if stored_api_key is not None:
        secure_values["api_key"] = stored_api_key

    return RuntimeConfigSources(cli=cli_values, secure=secure_values, env=os.environ)


def _build_runtime(
    config_file: Path | None,
    voice: str | None,
    language: str | None,
    api_key: str | None,
) -> DocumentaryRuntime:
    """Resolve configuration and build one documentary session runtime."""

    config = _load_yaml_config(config_file)
    try:
        runtime_config = config.resolved_provider_runtime(
            _runtime_sources(voice, language, api_key)
        )
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Check `--voice`, `--language`, and config values.",
        ) from exc
    if runtime_config.api_key is None:
        raise PipelineStageError(
            stage="credentials",
            detail="No Gemini API key is configured.",
            hint=(
                "Pass `--api-key`, set `GEMINI_API_KEY`, or run "
                "`docugen credentials --set-api-key`."
            ),
        )
    try:
        return DocumentaryRuntime.from_config(config, runtime_config)
    except ValueError as exc:
        raise PipelineStageError(stage="provider", detail=str(exc)) from exc


async def _generate_one(
    runtime: DocumentaryRuntime, topic: str, chapter_number: int
) -> tuple[tuple[Chapter, ...], Chapter | None]:
    chapters = await runtime.outline.create(topic, start_first_chapter=False)
    if not 1 <= chapter_number <= len(chapters):
        raise PipelineStageError(
            stage="chapter",
            detail=f"Chapter {chapter_number} is out of range (1-{len(chapters)}).",
            hint="Run `docugen outline <topic>` to see available chapters.",
        )
    chapter = await runtime.orchestrator.generate(chapters[chapter_number - 1].id)
    return chapters, chapter


async def _play(runtime: DocumentaryRuntime, topic: str, max_chapters: int | None) -> int:
    """Drive the sequencer headlessly and return how many chapters finished playing."""

    chapters = await runtime.start(topic)
    typer.echo(f"Outline: {len(chapters)} chapters")
    sequencer = runtime.sequencer
    finished = 0
    while sequencer.state != PLAYBACK_STOPPED:
        if sequencer.state == PLAYBACK_WAITING:
            await runtime.wait_idle()
            chapter = sequencer.active_chapter
            if chapter is None or chapter.status == STATUS_ERROR:
                if chapter is not None:
                    echo_chapter_content(chapter)
                raise PipelineStageError(
                    stage="chapter",
                    detail="Chapter generation failed; playback stopped.",
                    hint="Rerun the command to retry the failed chapter.",
                )
            if sequencer.state != PLAYBACK_PLAYING:
                break
            continue

        chapter = sequencer.active_chapter
        scene = sequencer.current_scene()
        if chapter is None or chapter.content is None or scene is None:
            break
        scene_index = sequencer.cursor.active_scene_index
        if scene_index == 0:
            typer.echo(
                f"Playing chapter {finished + 1}: {chapter.title} "
                f"({runtime.session.ready_count}/{len(runtime.session.chapters)} ready)"
            )
        typer.echo(f"  Scene {scene_index + 1}: {excerpt(scene.script)}")

        # Audio playback ended for this scene.
        is_last_scene = scene_index == len(chapter.content.scenes) - 1
        if is_last_scene and max_chapters is not None and finished + 1 >= max_chapters:
            finished += 1
            break
        sequencer.advance_scene()
        if is_last_scene:
            finished += 1
    return finished


@app.command("outline")
def outline_command(
    topic: Annotated[str, typer.Argument(help="Documentary topic.")],
    config_file: ConfigFileOption = None,
    voice: VoiceOption = None,
    language: LanguageOption = None,
    api_key: ApiKeyOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Create and print the chapter outline for a topic."""

    configure_logging(level=log_level)
    try:
        runtime = _build_runtime(config_file, voice, language, api_key)
        chapters = asyncio.run(runtime.outline.create(topic, start_first_chapter=False))
    except Exception as exc:
        exit_with_command_error("outline", exc)

    typer.echo(f"Topic: {runtime.session.topic}")
    echo_chapter_list(chapters)


@app.command("generate")
def generate_command(
    topic: Annotated[str, typer.Argument(help="Documentary topic.")],
    chapter_number: Annotated[
        int,
        typer.Option("--chapter", min=1, help="1-based chapter number to generate."),
    ] = 1,
    config_file: ConfigFileOption = None,
    voice: VoiceOption = None,
    language: LanguageOption = None,
    api_key: ApiKeyOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Create the outline, generate one chapter, and print its scenes."""

    configure_logging(level=log_level)
    try:
        runtime = _build_runtime(config_file, voice, language, api_key)
        chapters, chapter = asyncio.run(_generate_one(runtime, topic, chapter_number))
    except Exception as exc:
        exit_with_command_error("generate", exc)

    typer.echo(f"Topic: {runtime.session.topic} ({len(chapters)} chapters)")
    if chapter is None:
        exit_with_command_error(
            "generate",
            PipelineStageError(stage="chapter", detail="The session was reset."),
        )
    echo_chapter_content(chapter)
    if chapter.status == STATUS_ERROR:
        raise typer.Exit(code=1)


@app.command("play")
def play_command(
    topic: Annotated[str, typer.Argument(help="Documentary topic.")],
    max_chapters: Annotated[
        int | None,
        typer.Option("--max-chapters", min=1, help="Stop after this many chapters."),
    ] = None,
    config_file: ConfigFileOption = None,
    voice: VoiceOption = None,
    language: LanguageOption = None,
    api_key: ApiKeyOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Play a documentary headlessly, generating chapters as they are reached."""

    configure_logging(level=log_level)
    try:
        runtime = _build_runtime(config_file, voice, language, api_key)
        finished = asyncio.run(_play(runtime, topic, max_chapters))
    except Exception as exc:
        exit_with_command_error("play", exc)

    typer.echo(f"Chapters played: {finished}")


@app.command("voices")
def voices_command(
    preview: Annotated[
        str | None,
        typer.Option("--preview", help="Synthesize the preview phrase of this voice."),
    ] = None,
    config_file: ConfigFileOption = None,
    voice: VoiceOption = None,
    language: LanguageOption = None,
    api_key: ApiKeyOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """List narration voices and optionally preview one."""

    configure_logging(level=log_level)
    try:
        config = _load_yaml_config(config_file)
        selected = normalize_optional_string(voice) or config.narration_voice
        resolved_language = normalize_optional_string(language) or config.language
    except Exception as exc:
        exit_with_command_error("voices", exc)

    echo_voice_list(VOICES, resolved_language, selected)
    if preview is None:
        return

    try:
        runtime = _build_runtime(config_file, voice, language, api_key)
        audio_url = asyncio.run(runtime.previewer.preview(preview))
    except Exception as exc:
        exit_with_command_error("voices", exc)
    typer.echo(f"Preview {preview}: {describe_reference(audio_url)}")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for the Gemini API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear the stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored Gemini API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "Gemini API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Stored Gemini API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
