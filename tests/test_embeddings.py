"""Tests for cosine similarity and the embedding providers."""

from dataclasses import FrozenInstanceError
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from skillgraph.retrieval.embeddings import (
    DimensionMismatchError,
    EmbeddingConfig,
    LocalEmbeddings,
    MockEmbeddings,
    OllamaEmbeddings,
    OpenAIEmbeddings,
    cosine_similarity,
    get_embedding_provider,
)


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_symmetry(self):
        a, b = [0.3, -1.2, 2.0], [1.0, 0.5, -0.25]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_self_similarity_is_one(self):
        assert cosine_similarity([3.0, 4.0, 12.0], [3.0, 4.0, 12.0]) == pytest.approx(1.0)

    def test_zero_vector_gives_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert cosine_similarity([1, 0], [-2, 0]) == pytest.approx(-1.0)

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError, match="dimension mismatch"):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_mismatch_is_a_value_error(self):
        with pytest.raises(ValueError):
            cosine_similarity([1.0], [])


class TestMockEmbeddings:
    """Tests for the deterministic fallback provider."""

    def test_deterministic_and_normalised(self):
        m = MockEmbeddings()
        v1, v2 = m.embed("Python"), m.embed("Python")
        assert v1 == v2
        assert len(v1) == 384
        assert np.linalg.norm(v1) == pytest.approx(1.0)
        assert all(-1.0 <= x <= 1.0 for x in v1)

    def test_case_and_whitespace_insensitive(self):
        m = MockEmbeddings()
        assert m.embed("  Machine Learning ") == m.embed("machine learning")

    def test_different_texts_differ(self):
        m = MockEmbeddings(dimensions=16)
        assert m.embed("python") != m.embed("rust")
        assert len(m.embed("rust")) == 16

    def test_batch_matches_single(self):
        m = MockEmbeddings()
        assert m.embed_batch(["a", "b"]) == [m.embed("a"), m.embed("b")]


class TestOpenAIEmbeddings:
    """Tests for the OpenAI provider and its fallback."""

    def test_no_key_falls_back_to_mock(self):
        provider = OpenAIEmbeddings(api_key="")
        assert provider.embed("python") == MockEmbeddings(1536).embed("python")

    def test_batch_ordered_by_index(self):
        client = MagicMock()
        client.embeddings.create.return_value = SimpleNamespace(data=[
            SimpleNamespace(index=1, embedding=[0.0, 1.0]),
            SimpleNamespace(index=0, embedding=[1.0, 0.0]),
        ])
        provider = OpenAIEmbeddings(api_key="sk-test", client=client)

        out = provider.embed_batch(["first", "second"])

        assert out == [[1.0, 0.0], [0.0, 1.0]]
        client.embeddings.create.assert_called_once_with(
            model="text-embedding-3-small", input=["first", "second"]
        )

    def test_api_error_falls_back(self):
        client = MagicMock()
        client.embeddings.create.side_effect = RuntimeError("rate limited")
        provider = OpenAIEmbeddings(api_key="sk-test", client=client)
        assert provider.embed("python") == MockEmbeddings(1536).embed("python")

    def test_empty_batch(self):
        assert OpenAIEmbeddings(api_key="sk-test", client=MagicMock()).embed_batch([]) == []


class TestOllamaEmbeddings:
    """Tests for the Ollama provider."""

    def test_embed_uses_client(self):
        client = MagicMock()
        client.embeddings.return_value = {"embedding": [1, 2, 3]}
        provider = OllamaEmbeddings(model="bge-m3:latest", client=client)

        assert provider.embed("python") == [1.0, 2.0, 3.0]
        client.embeddings.assert_called_once_with(model="bge-m3:latest", prompt="python")

    def test_failure_falls_back_with_declared_dimensions(self):
        client = MagicMock()
        client.embeddings.side_effect = ConnectionError("refused")
        provider = OllamaEmbeddings(dimensions=768, client=client)

        vec = provider.embed("python")

        assert len(vec) == 768
        assert vec == MockEmbeddings(768).embed("python")

    def test_default_dimensions(self):
        assert OllamaEmbeddings(client=MagicMock()).dimensions == 1024


class TestLocalEmbeddings:
    """Tests for the sentence-transformers provider."""

    def test_model_failure_falls_back(self):
        provider = LocalEmbeddings()
        with patch.object(LocalEmbeddings, "_model_once", side_effect=OSError("no model")):
            assert provider.embed("python") == MockEmbeddings(384).embed("python")

    def test_encode_result_is_converted(self):
        provider = LocalEmbeddings()
        model = MagicMock()
        model.encode.return_value = np.array([[0.5, 0.5], [1.0, 0.0]])
        with patch.object(LocalEmbeddings, "_model_once", return_value=model):
            assert provider.embed_batch(["a", "b"]) == [[0.5, 0.5], [1.0, 0.0]]


class TestProviderSelection:
    """Tests for EmbeddingConfig and get_embedding_provider."""

    @pytest.mark.parametrize("name, cls", [
        ("mock", MockEmbeddings),
        ("local", LocalEmbeddings),
        ("openai", OpenAIEmbeddings),
        ("ollama", OllamaEmbeddings),
    ])
    def test_each_variant(self, name, cls):
        assert isinstance(get_embedding_provider(EmbeddingConfig(provider=name)), cls)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            get_embedding_provider(EmbeddingConfig(provider="word2vec"))

    def test_from_settings(self):
        s = SimpleNamespace(
            EMBEDDING_BINDING=" Ollama ", OPENAI_API_KEY="", OPENAI_EMBED_MODEL="",
            LOCAL_EMBED_MODEL="", EMBEDDING_BINDING_HOST="http://gpu:11434",
            EMBEDDING_MODEL="nomic-embed-text", EMBEDDING_DIM=768, EMBEDDING_TIMEOUT=30,
        )
        cfg = EmbeddingConfig.from_settings(s)

        assert cfg.provider == "ollama"
        assert cfg.ollama_host == "http://gpu:11434"
        assert cfg.ollama_model == "nomic-embed-text"
        assert cfg.ollama_dimensions == 768
        assert cfg.ollama_timeout == 30.0
        assert cfg.openai_model == "text-embedding-3-small"

    def test_unknown_binding_in_settings_means_mock(self):
        s = SimpleNamespace(
            EMBEDDING_BINDING="bogus", OPENAI_API_KEY="", OPENAI_EMBED_MODEL="", LOCAL_EMBED_MODEL="",
            EMBEDDING_BINDING_HOST="", EMBEDDING_MODEL="", EMBEDDING_DIM=None, EMBEDDING_TIMEOUT=300,
        )
        assert EmbeddingConfig.from_settings(s).provider == "mock"

    def test_config_is_immutable(self):
        cfg = EmbeddingConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.provider = "openai"
