"""Tests for settings loading and provider credentials."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from tender_rag.config import LLMSettings, ProviderCredentials, Settings, load_settings

_KEY_VARS = ("GROQ_API_KEY", "GEMINI_API_KEY", "HUGGINGFACE_API_KEY", "OPENAI_API_KEY", "GROQ_MODEL")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for var in (*_KEY_VARS, "TENDER_RAG_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadSettings:
    def test_defaults_without_file(self, clean_env: Path):
        settings = load_settings()
        assert settings == Settings()
        assert settings.llm.provider_priority == ["groq", "gemini", "huggingface", "openai"]
        assert settings.chunking.chunk_size == 450
        assert settings.retrieval.absolute_max == 10
        assert settings.evaluation.max_workers == 1

    def test_explicit_path(self, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({
            "embedding": {"provider": "hash", "dimension": 64},
            "llm": {"provider_priority": ["gemini"], "formatting_provider": "groq"},
        }))
        settings = load_settings(path)
        assert settings.embedding.dimension == 64
        assert settings.llm.provider_priority == ["gemini"]
        assert settings.llm.formatting_provider == "groq"
        assert settings.vectorstore.backend == "faiss"

    def test_found_in_parent_directory(self, clean_env: Path, monkeypatch: pytest.MonkeyPatch):
        (clean_env / "settings.yaml").write_text("chunking:\n  chunk_size: 300\n")
        nested = clean_env / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_settings().chunking.chunk_size == 300

    def test_profile_file_preferred(self, clean_env: Path, monkeypatch: pytest.MonkeyPatch):
        (clean_env / "settings.yaml").write_text("chunking:\n  chunk_size: 300\n")
        (clean_env / "settings-dev.yaml").write_text("chunking:\n  chunk_size: 200\n")
        monkeypatch.setenv("TENDER_RAG_PROFILE", "dev")
        assert load_settings().chunking.chunk_size == 200

    def test_llm_section_fields(self):
        assert set(LLMSettings.model_fields) == {
            "provider_priority", "extraction_provider", "formatting_provider", "timeout",
        }

    def test_empty_file(self, clean_env: Path):
        (clean_env / "settings.yaml").write_text("")
        assert load_settings() == Settings()


class TestProviderCredentials:
    def test_from_env(self, clean_env: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.setenv("GROQ_MODEL", "llama-3.1-70b-versatile")
        creds = ProviderCredentials.from_env()
        assert creds.gemini_api_key == "g-key"
        assert creds.groq_api_key is None
        assert creds.groq_model == "llama-3.1-70b-versatile"
        assert creds.any_configured()

    def test_blank_values_ignored(self, clean_env: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GROQ_API_KEY", "")
        assert not ProviderCredentials.from_env().any_configured()
