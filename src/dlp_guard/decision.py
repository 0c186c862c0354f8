"""Similarity-based leak decision.

The query is embedded, compared with its nearest corpus documents and the
top similarity decides the action:

    similarity <  0.80          safe      → ALLOW
    0.80 <= similarity < 0.85   danger    → HOLD_FOR_REVIEW
    similarity >= 0.85          critical  → BLOCK
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from .embeddings import Embedder
from .errors import InvalidInputError, UninitializedIndexError
from .index_manager import IndexManager
from .types import Action, Band, DecisionResult, NeighborMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thresholds:
    danger: float = 0.80
    critical: float = 0.85
    top_k: int = 3

    def band(self, similarity: float) -> Band:
        if similarity >= self.critical:
            return Band.CRITICAL
        if similarity >= self.danger:
            return Band.DANGER
        return Band.SAFE

    def action(self, max_similarity: float) -> Action:
        if max_similarity >= self.critical:
            return Action.BLOCK
        if max_similarity >= self.danger:
            return Action.HOLD_FOR_REVIEW
        return Action.ALLOW


class SimilarityEngine:
    """Decides ALLOW / HOLD_FOR_REVIEW / BLOCK for a text."""

    def __init__(
        self,
        manager: IndexManager,
        embedder: Embedder | None = None,
        *,
        thresholds: Thresholds | None = None,
        lazy_load: bool = True,
    ) -> None:
        self.manager = manager
        self.embedder = embedder or manager.embedder
        self.thresholds = thresholds or Thresholds()
        self.lazy_load = lazy_load

    def decide(self, text: str) -> DecisionResult:
        if not isinstance(text, str) or not text:
            raise InvalidInputError("text must be a non-empty string")

        if self.manager.snapshot is None and self.lazy_load:
            self.manager.ensure_loaded()
        snap = self.manager.snapshot
        if snap is None:
            raise UninitializedIndexError("Index not initialized yet")
        corpus, index = snap

        k = min(self.thresholds.top_k, index.count())
        if k == 0:
            return DecisionResult(action=Action.ALLOW)

        batch = self.manager.embed([text], self.embedder)
        distances, labels = index.search(batch.vectors, k)
        sims = [float(s) for s in distances[0]]
        idxs = [int(i) for i in labels[0]]

        matches: list[NeighborMatch] = []
        for sim, i in zip(sims, idxs):
            if i < 0:
                continue
            band = self.thresholds.band(sim)
            if band is Band.SAFE:
                continue
            matches.append(NeighborMatch(file=corpus.paths[i], band=band, similarity=sim))

        action = self.thresholds.action(max(sims))
        logger.info("decision action=%s max=%.4f k=%d flagged=%d",
                    action.value, max(sims), k, len(matches))
        return DecisionResult(action=action, matches=matches)
