"""Application settings loaded from YAML, provider credentials from the environment."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "hash"
    model: str | None = None
    dimension: int = 1536


class VectorStoreSettings(BaseModel):
    backend: str = "faiss"
    path: str = "local_data/vectorstore"
    collection: str = "tender_chunks"
    url: str | None = None


class LLMSettings(BaseModel):
    provider_priority: list[str] = Field(
        default_factory=lambda: ["groq", "gemini", "huggingface", "openai"]
    )
    extraction_provider: str | None = None
    formatting_provider: str = "gemini"
    timeout: float = 60.0


class ChunkingSettings(BaseModel):
    chunk_size: int = 450
    overlap: int = 50
    min_chunk_size: int = 200
    sentence_mode: bool = False


class RetrievalSettings(BaseModel):
    session_limits: dict[str, int] = Field(
        default_factory=lambda: {
            "eligibility": 6,
            "technical": 7,
            "financial": 6,
            "risk": 5,
            "evaluation": 6,
            "general": 5,
        }
    )
    global_limits: dict[str, int] = Field(
        default_factory=lambda: {
            "eligibility": 4,
            "technical": 4,
            "financial": 3,
            "risk": 3,
            "evaluation": 4,
            "general": 3,
        }
    )
    session_min: int = 5
    session_max: int = 8
    global_min: int = 3
    global_max: int = 5
    absolute_max: int = 10


class TokenSettings(BaseModel):
    model_limits: dict[str, int] = Field(default_factory=dict)
    fallback_max_tokens: int = 6000


class EvaluationSettings(BaseModel):
    max_workers: int = 1


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    tokens: TokenSettings = Field(default_factory=TokenSettings)
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)


class ProviderCredentials(BaseModel):
    """API keys for the LLM providers. Never read from YAML."""

    groq_api_key: str | None = None
    gemini_api_key: str | None = None
    huggingface_api_key: str | None = None
    openai_api_key: str | None = None
    groq_model: str | None = None

    @classmethod
    def from_env(cls) -> ProviderCredentials:
        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            huggingface_api_key=os.getenv("HUGGINGFACE_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL") or None,
        )

    def any_configured(self) -> bool:
        return any((
            self.groq_api_key,
            self.gemini_api_key,
            self.huggingface_api_key,
            self.openai_api_key,
        ))


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("TENDER_RAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML file, falling back to defaults."""
    settings_path = Path(path) if path else _find_settings_file()
    if settings_path is None:
        return Settings()

    with open(settings_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)
