"""Tests for embedding providers: hash provider plus REST providers over httpx.MockTransport."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import numpy as np
import pytest

from tender_rag.config import EmbeddingSettings, Settings
from tender_rag.embeddings.base import EmbeddingProvider
from tender_rag.embeddings.factory import (
    available_providers,
    build_embedding_provider,
    clear_cache,
    get_embedding_provider,
)
from tender_rag.embeddings.hash_provider import HashEmbeddingProvider
from tender_rag.embeddings.ollama_provider import OllamaEmbeddingProvider
from tender_rag.embeddings.openai_provider import OpenAIEmbeddingProvider

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class TestEmbeddingProviderABC:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            EmbeddingProvider()  # type: ignore[abstract]

    def test_embed_in_batches(self):
        provider = HashEmbeddingProvider(dimension=8)
        with patch.object(provider, "embed_texts", wraps=provider.embed_texts) as spy:
            vectors = provider.embed_in_batches([f"clause {i}" for i in range(5)], batch_size=2)
        assert len(vectors) == 5
        assert [len(c.args[0]) for c in spy.call_args_list] == [2, 2, 1]
        assert vectors[4] == provider.embed_query("clause 4")

    def test_embed_in_batches_rejects_zero(self):
        with pytest.raises(ValueError, match="batch_size"):
            HashEmbeddingProvider(dimension=8).embed_in_batches(["x"], batch_size=0)


# ---------------------------------------------------------------------------
# Hash provider
# ---------------------------------------------------------------------------


class TestHashProvider:
    @pytest.fixture
    def provider(self) -> HashEmbeddingProvider:
        return HashEmbeddingProvider(dimension=32)

    def test_dimension(self, provider: HashEmbeddingProvider):
        assert provider.dimension == 32
        assert len(provider.embed_query("EMD amount")) == 32

    def test_unit_norm(self, provider: HashEmbeddingProvider):
        vec = np.array(provider.embed_query("payment milestones"))
        assert np.linalg.norm(vec) == pytest.approx(1.0, abs=1e-5)

    def test_deterministic(self, provider: HashEmbeddingProvider):
        assert provider.embed_query("same text") == provider.embed_query("same text")
        assert provider.embed_query("same text") == HashEmbeddingProvider(32).embed_query("same text")

    def test_different_inputs_different_outputs(self, provider: HashEmbeddingProvider):
        assert provider.embed_query("text one") != provider.embed_query("text two")

    def test_embed_texts_matches_query(self, provider: HashEmbeddingProvider):
        batch = provider.embed_texts(["a tender", "another tender"])
        assert len(batch) == 2
        assert batch[0] == provider.embed_query("a tender")

    def test_empty_text_raises(self, provider: HashEmbeddingProvider):
        with pytest.raises(ValueError, match="empty text"):
            provider.embed_query("   ")

    def test_invalid_dimension(self):
        with pytest.raises(ValueError):
            HashEmbeddingProvider(dimension=0)


# ---------------------------------------------------------------------------
# Ollama provider
# ---------------------------------------------------------------------------


class TestOllamaProvider:
    def test_batch_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            body = json.loads(request.content)
            assert body["model"] == "nomic-embed-text"
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2], [0.3, 0.4]]})

        provider = OllamaEmbeddingProvider(dimension=2, transport=httpx.MockTransport(handler))
        assert provider.embed_texts(["a", "b"]) == [[0.1, 0.2], [0.3, 0.4]]
        assert seen == ["/api/embed"]

    def test_falls_back_to_single_endpoint(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/embed":
                return httpx.Response(404, json={"error": "not found"})
            prompt = json.loads(request.content)["prompt"]
            return httpx.Response(200, json={"embedding": [float(len(prompt))]})

        provider = OllamaEmbeddingProvider(dimension=1, transport=httpx.MockTransport(handler))
        assert provider.embed_texts(["ab", "abcd"]) == [[2.0], [4.0]]
        assert provider.embed_query("xyz") == [3.0]

    def test_empty_batch(self):
        provider = OllamaEmbeddingProvider(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        assert provider.embed_texts([]) == []

    def test_dimension_mismatch(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]}))
        provider = OllamaEmbeddingProvider(dimension=2, transport=transport)
        with pytest.raises(ValueError, match="expected 2"):
            provider.embed_texts(["a"])

    def test_server_error_raises(self):
        provider = OllamaEmbeddingProvider(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        with pytest.raises(httpx.HTTPStatusError):
            provider.embed_texts(["a"])


# ---------------------------------------------------------------------------
# OpenAI provider
# ---------------------------------------------------------------------------


class TestOpenAIProvider:
    def test_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            OpenAIEmbeddingProvider()

    def test_results_sorted_by_index(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer sk-test"
            return httpx.Response(200, json={"data": [
                {"index": 1, "embedding": [1.0]},
                {"index": 0, "embedding": [0.0]},
            ]})

        provider = OpenAIEmbeddingProvider(api_key="sk-test", transport=httpx.MockTransport(handler))
        assert provider.embed_texts(["first", "second"]) == [[0.0], [1.0]]

    def test_dimension_from_model(self):
        provider = OpenAIEmbeddingProvider(model="text-embedding-3-large", api_key="sk-test")
        assert provider.dimension == 3072

    def test_http_error_propagates(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(401, json={"error": "bad key"}))
        provider = OpenAIEmbeddingProvider(api_key="sk-test", transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            provider.embed_query("x")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestEmbeddingFactory:
    def setup_method(self):
        clear_cache()

    def test_available_providers(self):
        assert available_providers() == ["hash", "ollama", "openai"]

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            get_embedding_provider("nonexistent")

    def test_default_is_cached(self):
        assert get_embedding_provider("hash") is get_embedding_provider("HASH")

    def test_kwargs_bypass_cache(self):
        p1 = get_embedding_provider("hash")
        p2 = get_embedding_provider("hash", dimension=16)
        assert p1 is not p2
        assert p2.dimension == 16

    def test_lazy_import(self):
        with patch("tender_rag.embeddings.factory.importlib") as mock_importlib:
            mock_mod = MagicMock()
            mock_mod.OllamaEmbeddingProvider = HashEmbeddingProvider
            mock_importlib.import_module.return_value = mock_mod

            provider = get_embedding_provider("ollama")
            mock_importlib.import_module.assert_called_once_with(
                "tender_rag.embeddings.ollama_provider"
            )
            assert isinstance(provider, HashEmbeddingProvider)

    def test_build_from_settings(self):
        settings = Settings(embedding=EmbeddingSettings(provider="hash", dimension=24))
        assert build_embedding_provider(settings).dimension == 24

    def test_build_ollama_passes_model(self):
        settings = Settings(
            embedding=EmbeddingSettings(provider="ollama", model="mxbai-embed-large", dimension=1024)
        )
        provider = build_embedding_provider(settings)
        assert isinstance(provider, OllamaEmbeddingProvider)
        assert provider.model == "mxbai-embed-large"
        assert provider.dimension == 1024
