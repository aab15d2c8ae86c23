"""Unit tests for the Gemini HTTP client, response parsing, and speech backends."""

from __future__ import annotations

import asyncio
import base64
import json

import pytest
import requests

from docugen.errors import ProviderError, RateLimitError
from docugen.llm import gemini_client as gemini_http
from docugen.llm.gemini_client import GeminiClient
from docugen.llm.generation import GeminiGenerationProvider, parse_outline, parse_scene_scripts
from docugen.llm.retry import is_rate_limited
from docugen.tts.synthesizer import GeminiSpeechBackend


class _MockRequestsResponse:
    """Minimal requests response mock for HTTP transport patching."""

    def __init__(self, *, payload: bytes, status_code: int = 200) -> None:
        self.content = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code} error", response=self)


def _json_response(body: object, status_code: int = 200) -> _MockRequestsResponse:
    return _MockRequestsResponse(payload=json.dumps(body).encode("utf-8"), status_code=status_code)


def _parts_response(*parts: dict[str, object]) -> _MockRequestsResponse:
    return _json_response({"candidates": [{"content": {"parts": list(parts)}}]})


def _text_response(payload: object) -> _MockRequestsResponse:
    return _parts_response({"text": json.dumps(payload)})


def test_generate_json_posts_schema_request(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def _mock_post(url: str, **kwargs: object) -> _MockRequestsResponse:
        captured["url"] = url
        captured.update(kwargs)
        return _text_response({"chapters": [{"title": "A", "description": "B"}]})

    monkeypatch.setattr(gemini_http.requests, "post", _mock_post)
    client = GeminiClient(api_key=" key-123 ", base_url="https://gemini.test/v1beta/")

    payload = client.generate_json(
        model="gemini-2.5-flash", prompt="outline", response_schema={"type": "OBJECT"}
    )

    assert payload == {"chapters": [{"title": "A", "description": "B"}]}
    assert captured["url"] == "https://gemini.test/v1beta/models/gemini-2.5-flash:generateContent"
    assert captured["headers"]["x-goog-api-key"] == "key-123"  # type: ignore[index]
    config = captured["json"]["generationConfig"]  # type: ignore[index]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == {"type": "OBJECT"}


def test_missing_api_key_fails_before_request(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unexpected_post(*_args: object, **_kwargs: object) -> None:
        raise AssertionError("requests.post must not be called without an API key")

    monkeypatch.setattr(gemini_http.requests, "post", _unexpected_post)

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key=None).generate_json(model="m", prompt="p", response_schema={})

    assert exc_info.value.failure_kind == "invalid_api_key"


def test_http_429_becomes_retryable_rate_limit_error(monkeypatch: pytest.MonkeyPatch) -> None:
    body = {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
    monkeypatch.setattr(
        gemini_http.requests, "post", lambda *_a, **_k: _json_response(body, status_code=429)
    )

    with pytest.raises(RateLimitError) as exc_info:
        GeminiClient(api_key="k").generate_image(model="img", prompt="p")

    assert exc_info.value.status_code == 429
    assert exc_info.value.provider_code == "RESOURCE_EXHAUSTED"
    assert is_rate_limited(exc_info.value) is True


def test_http_404_is_classified_as_invalid_model(monkeypatch: pytest.MonkeyPatch) -> None:
    body = {"error": {"code": 404, "message": "model not found", "status": "NOT_FOUND"}}
    monkeypatch.setattr(
        gemini_http.requests, "post", lambda *_a, **_k: _json_response(body, status_code=404)
    )

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="k").generate_image(model="missing", prompt="p")

    assert exc_info.value.failure_kind == "invalid_model"
    assert is_rate_limited(exc_info.value) is False


def test_transport_timeout_is_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    def _timeout(*_args: object, **_kwargs: object) -> None:
        raise requests.Timeout("socket timed out")

    monkeypatch.setattr(gemini_http.requests, "post", _timeout)

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="k").generate_image(model="img", prompt="p")

    assert exc_info.value.failure_kind == "timeout"


def test_generate_image_returns_first_inline_part(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        gemini_http.requests,
        "post",
        lambda *_a, **_k: _parts_response(
            {"text": "Here is your image"},
            {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
        ),
    )

    assert GeminiClient(api_key="k").generate_image(model="img", prompt="p") == (
        "image/jpeg",
        "QUJD",
    )


def test_generate_image_without_inline_data_is_malformed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        gemini_http.requests, "post", lambda *_a, **_k: _parts_response({"text": "no image"})
    )

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="k").generate_image(model="img", prompt="p")

    assert exc_info.value.failure_kind == "malformed"


def test_generate_speech_decodes_audio_or_reports_text(monkeypatch: pytest.MonkeyPatch) -> None:
    responses = [
        _parts_response(
            {"inlineData": {"mimeType": "audio/L16;rate=24000", "data": "AAEC"}}
        ),
        _parts_response({"text": "I am a text model"}),
    ]
    captured: list[dict[str, object]] = []

    def _mock_post(_url: str, **kwargs: object) -> _MockRequestsResponse:
        captured.append(kwargs["json"])  # type: ignore[arg-type]
        return responses.pop(0)

    monkeypatch.setattr(gemini_http.requests, "post", _mock_post)
    client = GeminiClient(api_key="k")

    audio = client.generate_speech(model="tts", text="hello", voice="Kore")
    text = client.generate_speech(model="tts", text="hello", voice="Kore")

    assert audio.audio == base64.b64decode("AAEC")
    assert audio.mime_type == "audio/L16;rate=24000"
    assert text.audio is None
    assert text.text == "I am a text model"
    speech_config = captured[0]["generationConfig"]["speechConfig"]  # type: ignore[index]
    assert speech_config["voiceConfig"] == {"prebuiltVoiceConfig": {"voiceName": "Kore"}}


def test_speech_backend_wraps_script_only_for_general_models(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    sent_texts: list[str] = []

    def _mock_post(_url: str, **kwargs: object) -> _MockRequestsResponse:
        sent_texts.append(kwargs["json"]["contents"][0]["parts"][0]["text"])  # type: ignore[index]
        return _parts_response({"inlineData": {"mimeType": "audio/L16", "data": "AAAA"}})

    monkeypatch.setattr(gemini_http.requests, "post", _mock_post)
    client = GeminiClient(api_key="k")

    for model in ("gemini-2.5-flash-preview-tts", "gemini-2.0-flash-exp"):
        asyncio.run(GeminiSpeechBackend(client, model).synthesize("Hi", "Puck"))

    assert sent_texts[0] == "Hi"
    assert sent_texts[1] != "Hi"
    assert "Hi" in sent_texts[1]


def test_provider_outline_and_scenes_use_their_models(monkeypatch: pytest.MonkeyPatch) -> None:
    urls: list[str] = []
    bodies = [
        {"chapters": [{"title": "Reefs", "description": "Coral"}]},
        {
            "scenes": [
                {"script": f"s{index}", "imagePrompt": f"p{index}"} for index in range(4)
            ]
        },
    ]

    def _mock_post(url: str, **_kwargs: object) -> _MockRequestsResponse:
        urls.append(url)
        return _text_response(bodies.pop(0))

    monkeypatch.setattr(gemini_http.requests, "post", _mock_post)
    provider = GeminiGenerationProvider(
        api_key="k",
        outline_model="outline-model",
        script_model="script-model",
        speech_models=("a", "b-tts"),
        base_url="https://gemini.test",
    )

    outline = asyncio.run(provider.generate_outline("ocean"))
    scripts = asyncio.run(provider.generate_scene_scripts("ocean", "Reefs"))

    assert [entry.title for entry in outline] == ["Reefs"]
    assert [script.script for script in scripts] == ["s0", "s1", "s2"]
    assert urls == [
        "https://gemini.test/models/outline-model:generateContent",
        "https://gemini.test/models/script-model:generateContent",
    ]
    assert [backend.name for backend in provider.speech_backends()] == ["a", "b-tts"]


def test_provider_image_is_returned_as_data_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        gemini_http.requests,
        "post",
        lambda *_a, **_k: _parts_response(
            {"inlineData": {"mimeType": "image/png", "data": "QQ=="}}
        ),
    )
    provider = GeminiGenerationProvider(api_key="k")

    assert asyncio.run(provider.generate_image("a reef")) == "data:image/png;base64,QQ=="


def test_parse_outline_skips_untitled_entries() -> None:
    entries = parse_outline(
        {"chapters": [{"title": " Reefs ", "description": "Coral"}, {"description": "x"}, "bad"]}
    )

    assert [(entry.title, entry.description) for entry in entries] == [("Reefs", "Coral")]


@pytest.mark.parametrize("payload", [{}, {"chapters": "none"}, {"chapters": []}, []])
def test_parse_outline_rejects_unusable_payloads(payload: object) -> None:
    with pytest.raises(ProviderError):
        parse_outline(payload)


def test_parse_scene_scripts_requires_three_complete_scenes() -> None:
    with pytest.raises(ProviderError):
        parse_scene_scripts(
            {
                "scenes": [
                    {"script": "a", "imagePrompt": "x"},
                    {"script": "b", "image_prompt": "y"},
                    {"script": "c"},
                ]
            }
        )
