"""IndexManager: builds, extends and reloads the document corpus.

Usage:
    manager = IndexManager(SentenceTransformerEmbedder(), save_dir="./dictionary")
    manager.init("./sanitized")      # full rebuild from a folder
    manager.add("./incoming")        # embed only files not yet indexed
    manager.load()                   # reload what is on disk

Mutations are serialised by one lock.  Readers use `snapshot`, which is
replaced in a single assignment once a new corpus and its search index are
fully built, so a reader never sees vectors and paths out of step.
"""

from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterator, Sequence

import numpy as np

from .corpus import IndexCorpus, load_corpus, save_corpus
from .embeddings import Embedder, EmbeddingBatch, embed_with_timeout
from .errors import EmbeddingError, EmptyCorpusError, ExtractionError, InvalidInputError
from .extract import extract_text
from .search import FlatSearchIndex, SearchIndex

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DIR = "./dictionary"

# Office lock/temp files, e.g. "~$report.docx"
TRANSIENT_PREFIX = "~$"


def walk_files(root: str | Path) -> Iterator[str]:
    """Yield every regular file under root, depth first, in name order.

    Entries that cannot be inspected are logged and skipped.  Each call
    starts a fresh walk.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning("walk.skip dir=%s error=%s", root, e)
        return
    for entry in entries:
        try:
            if entry.is_file():
                yield entry.path
            elif entry.is_dir():
                yield from walk_files(entry.path)
        except OSError as e:
            logger.warning("walk.skip path=%s error=%s", entry.path, e)


def is_transient(path: str) -> bool:
    return os.path.basename(path).startswith(TRANSIENT_PREFIX)


class IndexManager:
    """Owns the corpus lifecycle and the search index built over it."""

    def __init__(
        self,
        embedder: Embedder,
        *,
        save_dir: str | Path = DEFAULT_SAVE_DIR,
        search_factory: Callable[[int], SearchIndex] = FlatSearchIndex.create,
        extractor: Callable[[str], str] = extract_text,
        embed_timeout: float | None = None,
        dim: int | None = None,
    ) -> None:
        self.embedder = embedder
        self.save_dir = Path(save_dir)
        self.search_factory = search_factory
        self.extractor = extractor
        self.embed_timeout = embed_timeout
        self.dim = dim
        self._lock = threading.RLock()
        # One worker for every timed embedding call; a call left running
        # after a timeout holds it until it finishes.
        self.executor = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="dlp-embed")
            if embed_timeout is not None else None
        )
        self._snapshot: tuple[IndexCorpus, SearchIndex] | None = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> tuple[IndexCorpus, SearchIndex] | None:
        """Current (corpus, search index) pair, or None before init/load."""
        return self._snapshot

    @property
    def corpus(self) -> IndexCorpus | None:
        snap = self._snapshot
        return snap[0] if snap else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, folder: str | Path) -> IndexCorpus:
        """Rebuild the corpus from every usable file under folder."""
        _require_dir(folder)
        with self._lock:
            texts, paths = self._collect(walk_files(folder))
            if not texts:
                raise EmptyCorpusError(f"No valid documents found in {folder}")
            vectors, paths = self._embed(texts, paths)
            if not paths:
                raise EmptyCorpusError(f"No document under {folder} could be embedded")
            self._check_dim(vectors)

            corpus = IndexCorpus.build(vectors, paths)
            save_corpus(corpus, self.save_dir)
            self._install(corpus)
            logger.info("index.init folder=%s documents=%d", folder, len(corpus))
            return corpus

    def add(self, folder: str | Path) -> IndexCorpus | None:
        """Append files under folder that are not indexed yet.

        The persisted corpus is the starting point, not whatever is in
        memory.  Returns the existing corpus unchanged when nothing is new.
        """
        _require_dir(folder)
        with self._lock:
            existing = load_corpus(self.save_dir, dim=self.dim)
            known = set(existing.paths) if existing else set()

            candidates = (
                p for p in walk_files(folder)
                if not is_transient(p) and p not in known
            )
            texts, paths = self._collect(candidates)
            vectors, paths = self._embed(texts, paths) if texts else (None, [])
            if not paths:
                logger.info("index.add folder=%s new=0", folder)
                if existing is not None and self._snapshot is None:
                    self._install(existing)
                return existing

            self._check_dim(vectors)
            if existing is None or not len(existing):
                corpus = IndexCorpus.build(vectors, paths)
            else:
                corpus = existing.extend(vectors, paths)
            save_corpus(corpus, self.save_dir)
            self._install(corpus)
            logger.info("index.add folder=%s new=%d total=%d", folder, len(paths), len(corpus))
            return corpus

    def load(self) -> IndexCorpus | None:
        """Load the persisted corpus into memory; None if there is none."""
        with self._lock:
            corpus = load_corpus(self.save_dir, dim=self.dim)
            if corpus is None:
                logger.info("index.load dir=%s missing", self.save_dir)
                return None
            self._install(corpus)
            return corpus

    def ensure_loaded(self) -> IndexCorpus | None:
        """Lazy load before the first search."""
        if self._snapshot is None:
            return self.load()
        return self.corpus

    def embed(self, texts: Sequence[str], embedder: Embedder | None = None) -> EmbeddingBatch:
        """Embed texts under the configured timeout."""
        return embed_with_timeout(
            embedder or self.embedder, texts, self.embed_timeout, executor=self.executor,
        )

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect(self, candidates: Iterator[str]) -> tuple[list[str], list[str]]:
        texts: list[str] = []
        paths: list[str] = []
        for path in candidates:
            try:
                text = self.extractor(path)
            except ExtractionError as e:
                logger.warning("index.extract.error path=%s error=%s", path, e)
                continue
            if text and text.strip():
                texts.append(text)
                paths.append(path)
        return texts, paths

    def _embed(self, texts: Sequence[str], paths: Sequence[str]) -> tuple[np.ndarray, list[str]]:
        """Embed in one batch; on failure retry per file and drop the failures."""
        try:
            batch = self.embed(texts)
            return batch.vectors, list(paths)
        except EmbeddingError as e:
            logger.warning("index.embed.batch_failed count=%d error=%s", len(texts), e)

        rows: list[np.ndarray] = []
        kept: list[str] = []
        for text, path in zip(texts, paths):
            try:
                batch = self.embed([text])
            except EmbeddingError as e:
                logger.warning("index.embed.error path=%s error=%s", path, e)
                continue
            rows.append(batch.vectors[0])
            kept.append(path)
        if not rows:
            return np.zeros((0, 0), dtype=np.float32), []
        return np.vstack(rows), kept

    def _check_dim(self, vectors: np.ndarray) -> None:
        """Refuse to persist vectors a later load would reject."""
        if self.dim is not None and vectors.shape[1] != self.dim:
            raise EmbeddingError(
                f"embedder produced dimension {vectors.shape[1]}, index expects {self.dim}"
            )

    def _install(self, corpus: IndexCorpus) -> None:
        index = self.search_factory(corpus.dim)
        index.add(corpus.vectors)
        self._snapshot = (corpus, index)


def _require_dir(folder: str | Path) -> None:
    if not os.path.isdir(folder):
        raise InvalidInputError(f"not a directory: {folder}")
