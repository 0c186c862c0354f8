"""Embedding providers.

Every provider returns L2-normalized float32 rows so that inner product is
cosine similarity; the decision thresholds assume that.
"""

from __future__ import annotations
import hashlib
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "intfloat/multilingual-e5-base"
DEFAULT_DIM = 768


@dataclass(frozen=True)
class EmbeddingBatch:
    """Vectors for a batch of texts, one row per text."""
    vectors: np.ndarray    # shape (n, dim), float32
    dim: int


def normalize_rows(vectors: np.ndarray) -> np.ndarray:
    """L2-normalize each row; zero rows are left as zeros."""
    vectors = np.asarray(vectors, dtype=np.float32)
    if vectors.ndim == 1:
        vectors = vectors.reshape(1, -1)
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return (vectors / norms).astype(np.float32)


class Embedder(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> EmbeddingBatch:
        """Embed texts into normalized vectors."""

    @property
    @abstractmethod
    def dim(self) -> int:
        """Dimension of the vectors this provider produces."""


class SentenceTransformerEmbedder(Embedder):
    """sentence-transformers model, mean pooled and normalized.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL, *, batch_size: int = 16) -> None:
        self.model_name = model_name
        self.batch_size = batch_size
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            logger.info("embeddings.load model=%s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    @property
    def dim(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def embed(self, texts: Sequence[str]) -> EmbeddingBatch:
        vectors = self.model.encode(
            list(texts),
            batch_size=self.batch_size,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        vectors = normalize_rows(vectors)
        return EmbeddingBatch(vectors=vectors, dim=vectors.shape[1])


class HashEmbedder(Embedder):
    """Deterministic hash-seeded embedding for tests and offline runs.

    Identical texts map to identical vectors; different texts are close to
    orthogonal.  Carries no semantics.
    """

    def __init__(self, dim: int = DEFAULT_DIM) -> None:
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def _vector(self, text: str) -> np.ndarray:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "little")
        rng = np.random.default_rng(seed)
        return rng.standard_normal(self._dim)

    def embed(self, texts: Sequence[str]) -> EmbeddingBatch:
        if not texts:
            return EmbeddingBatch(vectors=np.zeros((0, self._dim), dtype=np.float32), dim=self._dim)
        vectors = normalize_rows(np.vstack([self._vector(t) for t in texts]))
        return EmbeddingBatch(vectors=vectors, dim=self._dim)


def embed_with_timeout(
    embedder: Embedder,
    texts: Sequence[str],
    timeout: float | None = None,
    *,
    executor: Executor | None = None,
) -> EmbeddingBatch:
    """Call the embedder, validating its output.

    Any provider failure, a timeout, or a row count that does not match the
    input is raised as EmbeddingError.

    A call that times out cannot be cancelled and keeps running in its worker
    thread.  Pass a single-worker `executor` that outlives the call so later
    calls queue behind it instead of starting a second inference.
    """
    try:
        if timeout is None:
            batch = embedder.embed(texts)
        elif executor is not None:
            batch = executor.submit(embedder.embed, texts).result(timeout=timeout)
        else:
            pool = ThreadPoolExecutor(max_workers=1)
            try:
                batch = pool.submit(embedder.embed, texts).result(timeout=timeout)
            finally:
                pool.shutdown(wait=False)
    except FutureTimeout as e:
        raise EmbeddingError(f"embedding timed out after {timeout}s") from e
    except EmbeddingError:
        raise
    except Exception as e:
        raise EmbeddingError(f"embedding failed: {e}") from e

    vectors = np.asarray(batch.vectors, dtype=np.float32).reshape(-1, batch.dim)
    if vectors.shape[0] != len(texts):
        raise EmbeddingError(
            f"embedder returned {vectors.shape[0]} vectors for {len(texts)} texts"
        )
    return EmbeddingBatch(vectors=vectors, dim=batch.dim)
