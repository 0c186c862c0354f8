"""IndexCorpus — aligned (vector, path) store and its on-disk form.

On disk a corpus is two JSON files in one directory:

    vector_index.json   flat array of every vector component, row after row
    file_map.json       list of document paths, same order as the rows

Both files are rewritten together on every mutation.
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np

from .errors import CorruptIndexError

logger = logging.getLogger(__name__)

VECTOR_FILE = "vector_index.json"
FILE_MAP_FILE = "file_map.json"


@dataclass(frozen=True, eq=False)
class IndexCorpus:
    """Row i of `vectors` is the embedding of `paths[i]`.

    Instances are never mutated; `extend` returns a new corpus.
    """
    vectors: np.ndarray          # shape (n, dim), float32
    paths: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.vectors.ndim != 2:
            raise CorruptIndexError(f"vectors must be 2-D, got shape {self.vectors.shape}")
        if len(self.vectors) != len(self.paths):
            raise CorruptIndexError(
                f"{len(self.vectors)} vectors but {len(self.paths)} paths"
            )

    @classmethod
    def build(cls, vectors: np.ndarray, paths: Iterable[str]) -> "IndexCorpus":
        return cls(vectors=np.asarray(vectors, dtype=np.float32), paths=tuple(paths))

    @classmethod
    def empty(cls, dim: int) -> "IndexCorpus":
        return cls(vectors=np.zeros((0, dim), dtype=np.float32), paths=())

    @property
    def dim(self) -> int:
        return int(self.vectors.shape[1])

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def extend(self, vectors: np.ndarray, paths: Iterable[str]) -> "IndexCorpus":
        """Return a new corpus with rows appended."""
        vectors = np.asarray(vectors, dtype=np.float32)
        if len(self) and vectors.shape[1] != self.dim:
            raise CorruptIndexError(
                f"new vectors have dimension {vectors.shape[1]}, index has {self.dim}"
            )
        return IndexCorpus(
            vectors=np.vstack([self.vectors, vectors]) if len(self) else vectors,
            paths=self.paths + tuple(paths),
        )


# ------------------------------------------------------------------
# Persistence
# ------------------------------------------------------------------

def _write_json(path: Path, data: object, *, indent: int | None = None) -> Path:
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
    return tmp


def save_corpus(corpus: IndexCorpus, save_dir: str | Path) -> None:
    """Write both artifacts; each lands via an atomic rename."""
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    vec_tmp = _write_json(save_dir / VECTOR_FILE, corpus.vectors.reshape(-1).tolist())
    map_tmp = _write_json(save_dir / FILE_MAP_FILE, list(corpus.paths), indent=2)
    os.replace(vec_tmp, save_dir / VECTOR_FILE)
    os.replace(map_tmp, save_dir / FILE_MAP_FILE)
    logger.info("corpus.save dir=%s documents=%d", save_dir, len(corpus))


def _read_json(path: Path) -> object:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise CorruptIndexError(f"cannot read {path}: {e}") from e


def load_corpus(save_dir: str | Path, *, dim: int | None = None) -> IndexCorpus | None:
    """Read a persisted corpus, or None if no vector artifact exists.

    Raises CorruptIndexError when either artifact is unreadable, the
    types are wrong, or vectors and paths do not line up.
    """
    save_dir = Path(save_dir)
    vec_path = save_dir / VECTOR_FILE
    map_path = save_dir / FILE_MAP_FILE
    if not vec_path.exists():
        return None
    if not map_path.exists():
        raise CorruptIndexError(f"{vec_path} exists but {map_path} is missing")

    flat = _read_json(vec_path)
    paths = _read_json(map_path)
    if not isinstance(flat, list) or not isinstance(paths, list):
        raise CorruptIndexError("index artifacts must both be JSON arrays")
    if not all(isinstance(p, str) for p in paths):
        raise CorruptIndexError(f"{map_path} must contain only strings")

    try:
        values = np.asarray(flat, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise CorruptIndexError(f"{vec_path} is not a flat numeric array: {e}") from e
    if values.ndim != 1:
        raise CorruptIndexError(f"{vec_path} is not a flat numeric array")

    if not paths:
        if len(values):
            raise CorruptIndexError(f"{len(values)} vector values but no paths")
        return IndexCorpus.empty(dim or 0)

    row_dim, rest = divmod(len(values), len(paths))
    if rest or row_dim == 0:
        raise CorruptIndexError(
            f"{len(values)} vector values do not split into {len(paths)} rows"
        )
    if dim is not None and row_dim != dim:
        raise CorruptIndexError(f"stored dimension {row_dim} does not match expected {dim}")

    corpus = IndexCorpus.build(values.reshape(len(paths), row_dim), paths)
    logger.info("corpus.load dir=%s documents=%d dim=%d", save_dir, len(corpus), row_dim)
    return corpus
