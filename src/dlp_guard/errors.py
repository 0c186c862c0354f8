"""Exception hierarchy.

Per-file problems (ExtractionError, EmbeddingError during indexing) are
recovered by the index manager; everything else reaches the caller.
"""

from __future__ import annotations


class DlpError(Exception):
    """Base class for all dlp-guard errors."""


class InvalidInputError(DlpError, ValueError):
    """Pattern analysis was given an empty or non-string input."""


class EmptyCorpusError(DlpError):
    """No file in the folder yielded usable text."""


class UninitializedIndexError(DlpError):
    """A similarity decision was requested before any init/load."""


class CorruptIndexError(DlpError):
    """Persisted index artifacts are malformed or misaligned."""


class EmbeddingError(DlpError):
    """The embedding collaborator failed or timed out."""


class ExtractionError(DlpError):
    """Text could not be extracted from a file."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
