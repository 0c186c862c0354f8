"""dlp-guard — PII pattern masking and similarity-based leak decisions."""

from .analyzer import Analyzer, AnalyzerConfig, mask
from .address import detect_addresses
from .corpus import IndexCorpus, load_corpus, save_corpus
from .decision import SimilarityEngine, Thresholds
from .embeddings import Embedder, EmbeddingBatch, HashEmbedder, SentenceTransformerEmbedder
from .errors import (
    CorruptIndexError,
    DlpError,
    EmbeddingError,
    EmptyCorpusError,
    ExtractionError,
    InvalidInputError,
    UninitializedIndexError,
)
from .index_manager import IndexManager, walk_files
from .search import FaissSearchIndex, FlatSearchIndex, SearchIndex
from .service import DlpService, OperationResult
from .config import create_service, load_config, load_from_yaml
from .types import Action, AnalysisResult, Band, Category, DecisionResult, NeighborMatch, Status

__all__ = [
    "Analyzer", "AnalyzerConfig", "mask", "detect_addresses",
    "IndexCorpus", "load_corpus", "save_corpus",
    "IndexManager", "walk_files",
    "SimilarityEngine", "Thresholds",
    "Embedder", "EmbeddingBatch", "HashEmbedder", "SentenceTransformerEmbedder",
    "SearchIndex", "FaissSearchIndex", "FlatSearchIndex",
    "DlpService", "OperationResult",
    "create_service", "load_config", "load_from_yaml",
    "Action", "AnalysisResult", "Band", "Category", "DecisionResult", "NeighborMatch", "Status",
    "DlpError", "InvalidInputError", "EmptyCorpusError", "UninitializedIndexError",
    "CorruptIndexError", "EmbeddingError", "ExtractionError",
]
__version__ = "0.1.0"
