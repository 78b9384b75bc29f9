# src/skillgraph/retrieval/embeddings.py
"""
Embedding providers behind one small interface.

The provider is chosen from an explicit EmbeddingConfig value; there is no
process-wide "current provider". Every remote/model-backed provider degrades
to the deterministic mock embedding when it cannot produce a vector, so
callers can always compute a similarity score.
"""
from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from skillgraph.utils.config import settings

logger = logging.getLogger(__name__)

PROVIDERS = ("mock", "local", "openai", "ollama")


class DimensionMismatchError(ValueError):
    """Two vectors of different dimensionality were compared."""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 when either vector has zero norm."""
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vector dimension mismatch: {len(a)} vs {len(b)}")
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


@dataclass(frozen=True)
class EmbeddingConfig:
    provider: str = "mock"
    openai_api_key: str = ""
    openai_model: str = "text-embedding-3-small"
    local_model: str = "all-MiniLM-L6-v2"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "bge-m3:latest"
    ollama_dimensions: Optional[int] = None
    ollama_timeout: float = 300.0

    @classmethod
    def from_settings(cls, s=None) -> "EmbeddingConfig":
        s = s or settings
        provider = (s.EMBEDDING_BINDING or "mock").strip().lower()
        return cls(
            provider=provider if provider in PROVIDERS else "mock",
            openai_api_key=s.OPENAI_API_KEY,
            openai_model=s.OPENAI_EMBED_MODEL or "text-embedding-3-small",
            local_model=s.LOCAL_EMBED_MODEL or "all-MiniLM-L6-v2",
            ollama_host=s.EMBEDDING_BINDING_HOST or "http://localhost:11434",
            ollama_model=s.EMBEDDING_MODEL or "bge-m3:latest",
            ollama_dimensions=s.EMBEDDING_DIM,
            ollama_timeout=float(s.EMBEDDING_TIMEOUT),
        )


class EmbeddingProvider(ABC):
    """Capability: text -> dense float vector of a fixed dimensionality."""
    name: str
    dimensions: int

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed a single text."""

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed(t) for t in texts]


class MockEmbeddings(EmbeddingProvider):
    """Deterministic pseudo-embeddings seeded from a hash of the text."""
    name = "Mock Embeddings"

    def __init__(self, dimensions: int = 384):
        self.dimensions = dimensions

    def embed(self, text: str) -> List[float]:
        digest = hashlib.sha256((text or "").strip().lower().encode("utf-8")).digest()
        rng = np.random.default_rng(int.from_bytes(digest[:8], "big"))
        vec = rng.uniform(-1.0, 1.0, self.dimensions)
        norm = np.linalg.norm(vec)
        return (vec / norm).tolist() if norm else vec.tolist()


class LocalEmbeddings(EmbeddingProvider):
    """sentence-transformers model running in-process (install the `local` extra)."""
    name = "Local Embeddings (sentence-transformers)"
    dimensions = 384  # all-MiniLM-L6-v2

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", fallback: Optional[EmbeddingProvider] = None):
        self.model_name = model_name
        self.fallback = fallback or MockEmbeddings(self.dimensions)
        self._model = None

    def _model_once(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        try:
            vecs = self._model_once().encode(list(texts), normalize_embeddings=True)
            return [list(map(float, v)) for v in vecs]
        except Exception as e:
            logger.warning("local embedding failed, using mock: %s: %s", type(e).__name__, e)
            return self.fallback.embed_batch(texts)


class OpenAIEmbeddings(EmbeddingProvider):
    name = "OpenAI Embeddings"
    dimensions = 1536  # text-embedding-3-small

    def __init__(self, api_key: str = "", model: str = "text-embedding-3-small",
                 fallback: Optional[EmbeddingProvider] = None, client=None):
        self.api_key = api_key
        self.model = model
        self.fallback = fallback or MockEmbeddings(self.dimensions)
        self._client = client

    def _client_once(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        if not self.api_key and self._client is None:
            logger.warning("OpenAI API key not configured, falling back to mock")
            return self.fallback.embed_batch(texts)
        try:
            resp = self._client_once().embeddings.create(model=self.model, input=list(texts))
            return [list(d.embedding) for d in sorted(resp.data, key=lambda d: d.index)]
        except Exception as e:
            logger.error("OpenAI embedding generation failed: %s: %s", type(e).__name__, e)
            return self.fallback.embed_batch(texts)


class OllamaEmbeddings(EmbeddingProvider):
    name = "Ollama Embeddings"

    def __init__(self, host: str = "http://localhost:11434", model: str = "bge-m3:latest",
                 dimensions: Optional[int] = None, timeout: float = 300.0,
                 fallback: Optional[EmbeddingProvider] = None, client=None):
        self.host = host
        self.model = model
        self.dimensions = dimensions or 1024  # bge-m3
        self.timeout = timeout
        self.fallback = fallback or MockEmbeddings(self.dimensions)
        self._client = client

    def _client_once(self):
        if self._client is None:
            import ollama
            self._client = ollama.Client(host=self.host, timeout=self.timeout)
        return self._client

    def embed(self, text: str) -> List[float]:
        try:
            resp = self._client_once().embeddings(model=self.model, prompt=text)
            return [float(x) for x in resp["embedding"]]
        except Exception as e:
            logger.error("Ollama embedding generation failed: %s: %s", type(e).__name__, e)
            return self.fallback.embed(text)

    # no batch endpoint: embed_batch stays sequential


def get_embedding_provider(config: Optional[EmbeddingConfig] = None) -> EmbeddingProvider:
    config = config or EmbeddingConfig.from_settings()
    if config.provider == "mock":
        return MockEmbeddings()
    if config.provider == "local":
        return LocalEmbeddings(model_name=config.local_model)
    if config.provider == "openai":
        return OpenAIEmbeddings(api_key=config.openai_api_key, model=config.openai_model)
    if config.provider == "ollama":
        return OllamaEmbeddings(
            host=config.ollama_host, model=config.ollama_model,
            dimensions=config.ollama_dimensions, timeout=config.ollama_timeout,
        )
    raise ValueError(f"Unknown embedding provider: {config.provider!r} (expected one of {PROVIDERS})")
