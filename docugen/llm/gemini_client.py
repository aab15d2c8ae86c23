"""Gemini HTTP client utilities for outline, script, image, and speech stages.

Responsibilities:
- Send minimal `generateContent` requests to the Gemini REST API.
- Normalize response extraction for text, inline image, and inline audio parts.
- Raise actionable provider exceptions carrying status and provider codes.
"""

from __future__ import annotations

import base64
import json
import re
import socket
from typing import Any

import requests

from ..errors import ProviderError, RateLimitError
from ..models.datatypes import SpeechPayload


class _GeminiBaseClient:
    """Shared Gemini HTTP settings and helpers."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 120.0,
    ) -> None:
        """Initialize Gemini HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _require_api_key(self) -> None:
        """Require API key presence before issuing Gemini requests."""

        if not self.api_key:
            raise ProviderError(
                "Missing Gemini API key. Set `GEMINI_API_KEY`, use `--api-key`, or "
                "store one with `docugen credentials --set-api-key`.",
                failure_kind="invalid_api_key",
            )

    def _post_generate_content(self, *, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a `generateContent` request and return the decoded JSON body."""

        self._require_api_key()
        endpoint = f"{self.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "Gemini request timed out."
            else:
                detail = f"Gemini request transport error: {self._short_message(str(exc))}"
            raise ProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise ProviderError("Gemini request timed out.", failure_kind="timeout") from exc

        try:
            decoded = json.loads(response_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(
                "Gemini returned invalid JSON payload.", failure_kind="malformed"
            ) from exc
        if not isinstance(decoded, dict):
            raise ProviderError("Gemini response is not a JSON object.", failure_kind="malformed")
        return decoded

    @staticmethod
    def _first_candidate_parts(payload: dict[str, Any]) -> list[dict[str, Any]]:
        """Return content parts of the first candidate, or an empty list."""

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return []
        first = candidates[0]
        if not isinstance(first, dict):
            return []
        content = first.get("content")
        if not isinstance(content, dict):
            return []
        parts = content.get("parts")
        if not isinstance(parts, list):
            return []
        return [part for part in parts if isinstance(part, dict)]

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content).decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        return re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", text)

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider message and the provider status string."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                status_value = error_payload.get("status")
                if isinstance(status_value, str) and status_value.strip():
                    provider_code = status_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body

        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify Gemini HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.upper() if provider_code is not None else ""

        if status_code == 429 or normalized_code == "RESOURCE_EXHAUSTED":
            return "rate_limited"
        if status_code in {401, 403} or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 404 or normalized_code == "NOT_FOUND":
            return "invalid_model"
        if status_code in {408, 504} or normalized_code == "DEADLINE_EXCEEDED":
            return "timeout"
        if status_code == 503 or normalized_code == "UNAVAILABLE":
            return "unavailable"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> ProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "rate_limited": "Gemini rate limit or quota exceeded",
            "invalid_api_key": "Gemini authentication failed",
            "invalid_model": "Gemini rejected the selected model",
            "timeout": "Gemini request timed out",
            "unavailable": "Gemini model is temporarily unavailable",
        }.get(failure_kind, "Gemini request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        if failure_kind == "rate_limited":
            return RateLimitError(
                detail,
                status_code=status_code,
                provider_code=provider_code,
            )
        return ProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class GeminiClient(_GeminiBaseClient):
    """Minimal requests-based Gemini `generateContent` client."""

    def generate_json(
        self,
        *,
        model: str,
        prompt: str,
        response_schema: dict[str, Any],
    ) -> Any:
        """Return the parsed JSON document produced for a schema-constrained prompt."""

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        response = self._post_generate_content(model=model, payload=payload)
        text = "".join(
            part["text"]
            for part in self._first_candidate_parts(response)
            if isinstance(part.get("text"), str)
        ).strip()
        if not text:
            raise ProviderError("No text returned from Gemini.", failure_kind="malformed")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProviderError(
                "Gemini returned text that is not valid JSON.", failure_kind="malformed"
            ) from exc

    def generate_image(self, *, model: str, prompt: str) -> tuple[str, str]:
        """Return `(mime_type, base64_data)` of the first inline image part."""

        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        response = self._post_generate_content(model=model, payload=payload)
        for part in self._first_candidate_parts(response):
            inline = part.get("inlineData")
            if isinstance(inline, dict) and isinstance(inline.get("data"), str):
                mime_type = inline.get("mimeType") or "image/png"
                return str(mime_type), inline["data"]
        raise ProviderError("No image data found in Gemini response.", failure_kind="malformed")

    def generate_speech(self, *, model: str, text: str, voice: str) -> SpeechPayload:
        """Return the speech payload (or the text answered instead) for one request."""

        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
                },
            },
        }
        response = self._post_generate_content(model=model, payload=payload)
        parts = self._first_candidate_parts(response)
        if not parts:
            return SpeechPayload()
        first = parts[0]
        inline = first.get("inlineData")
        if isinstance(inline, dict) and isinstance(inline.get("data"), str):
            return SpeechPayload(
                audio=base64.b64decode(inline["data"]),
                mime_type=str(inline.get("mimeType") or "audio/L16;codec=pcm;rate=24000"),
            )
        answered_text = first.get("text")
        if isinstance(answered_text, str) and answered_text.strip():
            return SpeechPayload(text=answered_text.strip())
        return SpeechPayload()
