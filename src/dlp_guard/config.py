"""YAML/dict config loader for dlp-guard.

Supports loading from a YAML file or a plain dict (for embedding in a
larger service config).

Example YAML:

    dlp_guard:
      save_dir: ./dictionary
      embedder: sentence-transformers   # or "hash" for offline runs
      model_name: intfloat/multilingual-e5-base
      dim: 768
      search_backend: faiss             # or "flat"
      embed_timeout: 60
      mask_token: "***"
      skip_categories:
        - postalCode
      allow_list:
        - help@example.com
      thresholds:
        danger: 0.80
        critical: 0.85
        top_k: 3
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

from .analyzer import MASK_TOKEN, Analyzer, AnalyzerConfig
from .decision import SimilarityEngine, Thresholds
from .embeddings import DEFAULT_DIM, DEFAULT_MODEL, Embedder, HashEmbedder, SentenceTransformerEmbedder
from .index_manager import DEFAULT_SAVE_DIR, IndexManager
from .search import BACKENDS
from .service import DlpService


def load_config(data: dict[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline).

    Threshold settings may be given flat (`danger_threshold`, ...) or under a
    nested `thresholds:` mapping; flat keys win.  The output is itself a
    valid input, so normalizing twice is harmless.
    """
    # Support nested under "dlp_guard" key or flat
    if "dlp_guard" in data:
        data = data["dlp_guard"] or {}

    thresholds = data.get("thresholds") or {}
    return {
        "save_dir": data.get("save_dir", DEFAULT_SAVE_DIR),
        "embedder": data.get("embedder", "sentence-transformers"),
        "model_name": data.get("model_name", DEFAULT_MODEL),
        "dim": int(data.get("dim", DEFAULT_DIM)),
        "search_backend": data.get("search_backend", "faiss"),
        "embed_timeout": data.get("embed_timeout"),
        "mask_token": data.get("mask_token", MASK_TOKEN),
        "skip_categories": set(data.get("skip_categories") or ()),
        "allow_list": set(data.get("allow_list") or ()),
        "danger_threshold": float(data.get("danger_threshold", thresholds.get("danger", 0.80))),
        "critical_threshold": float(data.get("critical_threshold", thresholds.get("critical", 0.85))),
        "top_k": int(data.get("top_k", thresholds.get("top_k", 3))),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml  # optional dependency
    with open(path, encoding="utf-8") as f:
        return load_config(yaml.safe_load(f) or {})


def _build_embedder(cfg: dict[str, Any]) -> Embedder:
    if cfg["embedder"] == "hash":
        return HashEmbedder(dim=cfg["dim"])
    if cfg["embedder"] == "sentence-transformers":
        return SentenceTransformerEmbedder(cfg["model_name"])
    raise ValueError(f"unknown embedder: {cfg['embedder']!r}")


def create_service(
    config: dict[str, Any],
    *,
    embedder: Embedder | None = None,
) -> DlpService:
    """Create a fully wired service from a config dict."""
    cfg = load_config(config)

    if cfg["search_backend"] not in BACKENDS:
        raise ValueError(f"unknown search backend: {cfg['search_backend']!r}")

    analyzer = Analyzer(AnalyzerConfig(
        mask_token=cfg["mask_token"],
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
    ))
    manager = IndexManager(
        embedder or _build_embedder(cfg),
        save_dir=cfg["save_dir"],
        search_factory=BACKENDS[cfg["search_backend"]].create,
        embed_timeout=cfg["embed_timeout"],
        dim=cfg["dim"],
    )
    engine = SimilarityEngine(manager, thresholds=Thresholds(
        danger=cfg["danger_threshold"],
        critical=cfg["critical_threshold"],
        top_k=cfg["top_k"],
    ))
    return DlpService(analyzer, manager, engine)
