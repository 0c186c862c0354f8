"""DlpService — the caller-facing API.

Each operation returns an OperationResult instead of raising, so transports
(CLI, HTTP sidecar) only have to serialise it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any

from .analyzer import Analyzer
from .corpus import IndexCorpus
from .decision import SimilarityEngine
from .errors import (
    CorruptIndexError,
    DlpError,
    EmptyCorpusError,
    InvalidInputError,
    UninitializedIndexError,
)
from .index_manager import IndexManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OperationResult:
    """Success flag, human-readable message and an optional payload."""
    success: bool
    message: str = ""
    files: list[str] | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    error_kind: str | None = None    # exception class name on failure

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.files is not None:
            out["files"] = self.files
        out.update(self.payload)
        if not self.success:
            out["error"] = self.message
        return out


# Status codes the HTTP sidecar uses per failure kind
ERROR_STATUS: dict[str, int] = {
    InvalidInputError.__name__: 400,
    EmptyCorpusError.__name__: 400,
    UninitializedIndexError.__name__: 409,
    CorruptIndexError.__name__: 500,
}


def _failure(e: DlpError) -> OperationResult:
    logger.warning("operation.failed kind=%s error=%s", type(e).__name__, e)
    return OperationResult(success=False, message=str(e), error_kind=type(e).__name__)


def _indexed(corpus: IndexCorpus | None) -> OperationResult:
    files = list(corpus.paths) if corpus is not None else []
    return OperationResult(
        success=True,
        message=f"Indexed {len(files)} documents.",
        files=files,
    )


class DlpService:
    """Pattern analysis plus similarity decisions over one corpus."""

    def __init__(
        self,
        analyzer: Analyzer,
        manager: IndexManager,
        engine: SimilarityEngine | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.manager = manager
        self.engine = engine or SimilarityEngine(manager)

    def init_index(self, folder: str) -> OperationResult:
        try:
            return _indexed(self.manager.init(folder))
        except DlpError as e:
            return _failure(e)

    def add_to_index(self, folder: str) -> OperationResult:
        try:
            return _indexed(self.manager.add(folder))
        except DlpError as e:
            return _failure(e)

    def load_index(self) -> OperationResult:
        try:
            corpus = self.manager.load()
        except DlpError as e:
            return _failure(e)
        if corpus is None:
            return OperationResult(success=True, message="No persisted index found.", files=[])
        return OperationResult(
            success=True,
            message=f"Loaded {len(corpus)} documents.",
            files=list(corpus.paths),
        )

    def analyze_structured(self, text: str) -> OperationResult:
        try:
            result = self.analyzer.analyze(text)
        except DlpError as e:
            return _failure(e)
        return OperationResult(success=True, payload=result.to_dict())

    def decide_similarity(self, text: str) -> OperationResult:
        try:
            decision = self.engine.decide(text)
        except DlpError as e:
            return _failure(e)
        return OperationResult(success=True, payload=decision.to_dict())
