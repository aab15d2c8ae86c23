"""Configuration model and loaders for DocuGen.

Responsibilities:
- Define generation, retry, and playback settings as a typed dataclass.
- Resolve runtime provider values with deterministic source precedence.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `DocugenConfig`: normalized settings for one documentary session.
- `ProviderRuntimeConfig`: resolved provider, voice, language, and API key.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `DocugenConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models.datatypes import RetryPolicy
from .parsing import (
    normalize_optional_string,
    parse_name_list,
    parse_positive_int,
)
from .tts.voices import DEFAULT_VOICE_ID, VOICE_IDS

_DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
_DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
_DEFAULT_SPEECH_MODELS = (
    "gemini-2.0-flash-exp",
    "gemini-2.5-flash-preview-tts",
    "gemini-2.5-flash-native-audio-preview-09-2025",
)
_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
_SUPPORTED_PROVIDER_IDS = frozenset({"gemini"})
_SUPPORTED_LANGUAGES = frozenset({"th", "en"})


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved runtime values for one session.

    Attributes:
        provider: Generation provider identifier.
        language: Narration language code.
        narration_voice: Initially selected narration voice.
        api_key: Optional provider API key, never persisted or logged.
    """

    provider: str
    language: str
    narration_voice: str
    api_key: str | None = None


@dataclass(slots=True)
class DocugenConfig:
    """Runtime configuration for one documentary session.

    Attributes:
        language: Narration language code, defaulting to Thai (`th`).
        provider: Generation provider identifier.
        outline_model: Model used for outline generation.
        script_model: Model used for scene-script generation.
        image_model: Model used for scene illustrations.
        speech_models: Speech models in fallback priority order.
        narration_voice: Initially selected narration voice.
        chapter_count: Number of chapters requested from outline generation.
        retry_max_retries: Rate-limit retries for outline, script, and image calls.
        retry_initial_delay_ms: First backoff wait in milliseconds.
        retry_backoff_multiplier: Backoff growth factor per attempt.
        speech_retry_max_retries: Rate-limit retries per speech backend.
        speech_retry_initial_delay_ms: First backoff wait per speech backend.
        settle_delay_ms: Pause between a scene's image and audio stages.
        api_key: Optional API key for provider calls.
        base_url: Provider REST endpoint root.
        timeout_seconds: HTTP timeout per provider request.
        runtime_sources: Optional runtime source overrides injected by CLI.
        extra: Additional metadata for future extensions.
    """

    language: str = "th"
    provider: str = "gemini"
    outline_model: str = _DEFAULT_TEXT_MODEL
    script_model: str = _DEFAULT_TEXT_MODEL
    image_model: str = _DEFAULT_IMAGE_MODEL
    speech_models: tuple[str, ...] = _DEFAULT_SPEECH_MODELS
    narration_voice: str = DEFAULT_VOICE_ID
    chapter_count: int = 8
    retry_max_retries: int = 3
    retry_initial_delay_ms: int = 2000
    retry_backoff_multiplier: float = 2.0
    speech_retry_max_retries: int = 1
    speech_retry_initial_delay_ms: int = 1000
    settle_delay_ms: int = 500
    api_key: str | None = None
    base_url: str = _DEFAULT_BASE_URL
    timeout_seconds: float = 120.0
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate configuration values before a session is built."""

        self._validate_provider_id(self.provider)
        self._validate_language(self.language)
        self._validate_voice(self.narration_voice)
        self._require_non_empty(self.outline_model, "outline_model")
        self._require_non_empty(self.script_model, "script_model")
        self._require_non_empty(self.image_model, "image_model")
        self._require_non_empty(self.base_url, "base_url")
        if not self.speech_models:
            raise ValueError("`speech_models` must list at least one model.")
        for model in self.speech_models:
            self._require_non_empty(model, "speech_models")
        if self.chapter_count <= 0:
            raise ValueError("`chapter_count` must be a positive integer.")
        if self.retry_max_retries < 0 or self.speech_retry_max_retries < 0:
            raise ValueError("Retry counts must not be negative.")
        if self.retry_initial_delay_ms <= 0 or self.speech_retry_initial_delay_ms <= 0:
            raise ValueError("Retry delays must be positive integers.")
        if self.retry_backoff_multiplier < 1:
            raise ValueError("`retry_backoff_multiplier` must be at least 1.")
        if self.settle_delay_ms < 0:
            raise ValueError("`settle_delay_ms` must not be negative.")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be positive.")

    def retry_policy(self) -> RetryPolicy:
        """Return the rate-limit policy for outline, script, and image calls."""

        return RetryPolicy(
            max_retries=self.retry_max_retries,
            initial_delay_ms=self.retry_initial_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    def speech_retry_policy(self) -> RetryPolicy:
        """Return the fast-fail policy applied to each speech backend."""

        return RetryPolicy(
            max_retries=self.speech_retry_max_retries,
            initial_delay_ms=self.speech_retry_initial_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve runtime values with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        provider = self._resolve_runtime_value(
            "provider", "DOCUGEN_PROVIDER", self.provider, resolved_sources
        )
        language = self._resolve_runtime_value(
            "language", "DOCUGEN_LANGUAGE", self.language, resolved_sources
        )
        narration_voice = self._resolve_runtime_value(
            "narration_voice", "DOCUGEN_NARRATION_VOICE", self.narration_voice, resolved_sources
        )
        api_key = self._resolve_optional_runtime_value(
            "api_key", "GEMINI_API_KEY", self.api_key, resolved_sources
        )

        self._validate_provider_id(provider)
        self._validate_language(language)
        self._validate_voice(narration_voice)
        return ProviderRuntimeConfig(
            provider=provider,
            language=language,
            narration_voice=narration_voice,
            api_key=api_key,
        )

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        resolved = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if resolved is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or config."
            )
        return resolved

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            if lookup_key in mapping:
                value = normalize_optional_string(mapping.get(lookup_key))
                if value is not None:
                    return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        if provider_id not in _SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(_SUPPORTED_PROVIDER_IDS))
            raise ValueError(
                f"Unsupported `provider` value `{provider_id}`; supported: {supported}."
            )

    @staticmethod
    def _validate_language(language: str) -> None:
        if language not in _SUPPORTED_LANGUAGES:
            supported = ", ".join(sorted(_SUPPORTED_LANGUAGES))
            raise ValueError(
                f"Unsupported `language` value `{language}`; supported: {supported}."
            )

    @staticmethod
    def _validate_voice(voice_id: str) -> None:
        if voice_id not in VOICE_IDS:
            supported = ", ".join(sorted(VOICE_IDS))
            raise ValueError(
                f"Unknown narration voice `{voice_id}`; supported: {supported}."
            )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `DocugenConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "language",
            "provider",
            "outline_model",
            "script_model",
            "image_model",
            "speech_models",
            "narration_voice",
            "chapter_count",
            "retry_max_retries",
            "retry_initial_delay_ms",
            "retry_backoff_multiplier",
            "speech_retry_max_retries",
            "speech_retry_initial_delay_ms",
            "settle_delay_ms",
            "api_key",
            "base_url",
            "timeout_seconds",
            "extra",
        }
    )
    _STRING_KEYS = (
        "language",
        "provider",
        "outline_model",
        "script_model",
        "image_model",
        "narration_voice",
        "api_key",
        "base_url",
    )
    _POSITIVE_INT_KEYS = (
        "chapter_count",
        "retry_initial_delay_ms",
        "speech_retry_initial_delay_ms",
    )
    _NON_NEGATIVE_INT_KEYS = (
        "retry_max_retries",
        "speech_retry_max_retries",
        "settle_delay_ms",
    )
    _FLOAT_KEYS = ("retry_backoff_multiplier", "timeout_seconds")
    _RUNTIME_ENV_KEYS = frozenset(
        {
            "DOCUGEN_PROVIDER",
            "DOCUGEN_LANGUAGE",
            "DOCUGEN_NARRATION_VOICE",
            "GEMINI_API_KEY",
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> DocugenConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> DocugenConfig:
        """Create a validated config from `DOCUGEN_*` and `GEMINI_API_KEY` variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS - {"extra", "api_key"}:
            value = normalize_optional_string(env_map.get(f"DOCUGEN_{key.upper()}"))
            if value is not None:
                payload[key] = value
        api_key = normalize_optional_string(env_map.get("GEMINI_API_KEY"))
        if api_key is not None:
            payload["api_key"] = api_key

        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(
            env={
                key: value
                for key, value in env_map.items()
                if key in ConfigLoader._RUNTIME_ENV_KEYS
                and normalize_optional_string(value) is not None
            }
        )
        return config

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> DocugenConfig:
        """Build a validated config from a mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(str(key) for key in unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        values: dict[str, Any] = {}
        for key in ConfigLoader._STRING_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = value
        for key in ConfigLoader._POSITIVE_INT_KEYS:
            if payload.get(key) is not None:
                values[key] = ConfigLoader._positive_int(payload[key], key, source_label)
        for key in ConfigLoader._NON_NEGATIVE_INT_KEYS:
            if payload.get(key) is not None:
                values[key] = ConfigLoader._non_negative_int(payload[key], key, source_label)
        for key in ConfigLoader._FLOAT_KEYS:
            if payload.get(key) is not None:
                values[key] = ConfigLoader._positive_float(payload[key], key, source_label)
        if payload.get("speech_models") is not None:
            try:
                values["speech_models"] = parse_name_list(payload["speech_models"])
            except ValueError as exc:
                raise ValueError(f"{source_label} field `speech_models`: {exc}") from exc
        values["extra"] = ConfigLoader._optional_string_map(payload, "extra", source_label)

        config = DocugenConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _positive_int(raw_value: object, key: str, source_label: str) -> int:
        try:
            return parse_positive_int(raw_value, key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.") from exc

    @staticmethod
    def _non_negative_int(raw_value: object, key: str, source_label: str) -> int:
        if isinstance(raw_value, int) and not isinstance(raw_value, bool) and raw_value == 0:
            return 0
        if normalize_optional_string(raw_value) == "0":
            return 0
        try:
            return parse_positive_int(raw_value, key)
        except ValueError as exc:
            raise ValueError(
                f"{source_label} field `{key}` must be a non-negative integer."
            ) from exc

    @staticmethod
    def _positive_float(raw_value: object, key: str, source_label: str) -> float:
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive number.")
        try:
            parsed = float(str(raw_value).strip())
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a positive number.") from exc
        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive number.")
        return parsed

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        raw = payload.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None or value_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key or value.")
            normalized[key_value] = value_value
        return normalized
