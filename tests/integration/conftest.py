"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

from pathlib import Path

import pytest

from docugen import cli
from docugen.config import DocugenConfig
from docugen.provider_factory import ProviderFactory
from tests.fakes import OCEAN_CHAPTERS, FakeProvider, InMemoryCredentialStore


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop provider variables from the ambient environment."""

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    for key in ("DOCUGEN_PROVIDER", "DOCUGEN_LANGUAGE", "DOCUGEN_NARRATION_VOICE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Route CLI credential operations to an in-memory store."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr(cli, "create_credential_store", lambda: store)
    return store


@pytest.fixture
def fake_provider(monkeypatch: pytest.MonkeyPatch) -> FakeProvider:
    """Make the provider factory return one deterministic fake provider."""

    provider = FakeProvider(chapter_titles=OCEAN_CHAPTERS)
    captured: dict[str, object] = {}

    def _create_provider(
        provider_id: str,
        config: DocugenConfig,
        *,
        language: str,
        api_key: str | None = None,
    ) -> FakeProvider:
        captured.update(provider_id=provider_id, language=language, api_key=api_key)
        return provider

    monkeypatch.setattr(ProviderFactory, "create_provider", staticmethod(_create_provider))
    provider.factory_arguments = captured  # type: ignore[attr-defined]
    return provider


@pytest.fixture
def fast_config(tmp_path: Path) -> Path:
    """Write a config file that removes the per-scene settle pause."""

    config_path = tmp_path / "docugen.yml"
    config_path.write_text("settle_delay_ms: 0\n", encoding="utf-8")
    return config_path
