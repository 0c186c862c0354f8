"""Nearest-neighbour search backends over normalized vectors.

Both backends score by inner product, so with unit vectors the returned
distances are cosine similarities (higher is closer).
"""

from __future__ import annotations
from abc import ABC, abstractmethod

import numpy as np


class SearchIndex(ABC):
    """Abstract interface for exact/approximate k-NN search."""

    @classmethod
    @abstractmethod
    def create(cls, dim: int) -> "SearchIndex":
        """Create an empty index for vectors of the given dimension."""

    @abstractmethod
    def add(self, vectors: np.ndarray) -> None:
        """Append vectors; labels continue from the current count."""

    @abstractmethod
    def search(self, queries: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
        """Return (distances, labels), each of shape (len(queries), k)."""

    @abstractmethod
    def count(self) -> int:
        """Number of indexed vectors."""


def _as_matrix(vectors: np.ndarray, dim: int) -> np.ndarray:
    arr = np.ascontiguousarray(vectors, dtype=np.float32)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.shape[1] != dim:
        raise ValueError(f"Vector dimension {arr.shape[1]} does not match index dimension {dim}")
    return arr


class FaissSearchIndex(SearchIndex):
    """FAISS flat inner-product index."""

    def __init__(self, dim: int) -> None:
        try:
            import faiss
        except ImportError:
            raise ImportError("FAISS not installed. Please install faiss-cpu package.")
        self.dim = dim
        self.index = faiss.IndexFlatIP(dim)

    @classmethod
    def create(cls, dim: int) -> "FaissSearchIndex":
        return cls(dim)

    def add(self, vectors: np.ndarray) -> None:
        arr = _as_matrix(vectors, self.dim)
        if len(arr):
            self.index.add(arr)

    def search(self, queries: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
        distances, labels = self.index.search(_as_matrix(queries, self.dim), k)
        return distances, labels

    def count(self) -> int:
        return int(self.index.ntotal)


class FlatSearchIndex(SearchIndex):
    """Exact inner-product search in numpy; no native dependency."""

    def __init__(self, dim: int) -> None:
        self.dim = dim
        self._vectors = np.zeros((0, dim), dtype=np.float32)

    @classmethod
    def create(cls, dim: int) -> "FlatSearchIndex":
        return cls(dim)

    def add(self, vectors: np.ndarray) -> None:
        self._vectors = np.vstack([self._vectors, _as_matrix(vectors, self.dim)])

    def search(self, queries: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
        queries = _as_matrix(queries, self.dim)
        k = min(k, len(self._vectors))
        scores = queries @ self._vectors.T
        # Stable sort keeps the lower label first on ties, like FAISS
        labels = np.argsort(-scores, axis=1, kind="stable")[:, :k]
        distances = np.take_along_axis(scores, labels, axis=1)
        return distances, labels.astype(np.int64)

    def count(self) -> int:
        return len(self._vectors)


BACKENDS: dict[str, type[SearchIndex]] = {
    "faiss": FaissSearchIndex,
    "flat": FlatSearchIndex,
}
