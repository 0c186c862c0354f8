"""CLI interface for dlp-guard.

Usage:
    # Pattern analysis (stdin: text, stdout: JSON report)
    echo '내 번호는 010-1234-5678 입니다' | python -m dlp_guard.cli analyze

    # Build the similarity index from a folder, then extend it
    python -m dlp_guard.cli init ./sanitized
    python -m dlp_guard.cli add ./incoming

    # Similarity decision (stdin: text)
    cat draft.txt | python -m dlp_guard.cli compare

    # HTTP sidecar
    python -m dlp_guard.cli serve --port 18792

The index lives in --save-dir (two JSON files) so it survives across calls.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import create_service, load_from_yaml
from .service import DlpService, OperationResult

DEFAULT_SAVE_DIR = os.environ.get("DLP_GUARD_SAVE_DIR", "./dictionary")
DEFAULT_EMBEDDER = os.environ.get("DLP_GUARD_EMBEDDER", "sentence-transformers")
DEFAULT_FOLDER = "./sanitized"


def setup_logging() -> None:
    level = os.environ.get("DLP_GUARD_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        stream=sys.stderr,
    )


def _build_service(args: argparse.Namespace) -> DlpService:
    if args.config:
        cfg = load_from_yaml(args.config)
    else:
        cfg = {
            "save_dir": args.save_dir,
            "embedder": args.embedder,
            "search_backend": args.backend,
        }
        if args.skip_categories:
            cfg["skip_categories"] = args.skip_categories.split(",")
        if args.allow_list:
            cfg["allow_list"] = args.allow_list.split(",")
    return create_service(cfg)


def _emit(result: OperationResult) -> int:
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if result.success else 1


def cmd_analyze(service: DlpService, args: argparse.Namespace) -> int:
    """Detect and mask structured PII in text from stdin."""
    return _emit(service.analyze_structured(sys.stdin.read()))


def cmd_init(service: DlpService, args: argparse.Namespace) -> int:
    """Rebuild the index from a folder."""
    return _emit(service.init_index(args.folder))


def cmd_add(service: DlpService, args: argparse.Namespace) -> int:
    """Index files in a folder that are not indexed yet."""
    return _emit(service.add_to_index(args.folder))


def cmd_load(service: DlpService, args: argparse.Namespace) -> int:
    """Check that the persisted index loads."""
    return _emit(service.load_index())


def cmd_compare(service: DlpService, args: argparse.Namespace) -> int:
    """Similarity decision for text from stdin."""
    return _emit(service.decide_similarity(sys.stdin.read()))


def cmd_serve(service: DlpService, args: argparse.Namespace) -> int:
    """Run the HTTP sidecar."""
    from .server import serve
    serve(service, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dlp_guard",
        description="Data-loss-prevention checks: PII patterns and document similarity",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--save-dir", default=DEFAULT_SAVE_DIR, help="Index directory")
    parser.add_argument("--embedder", default=DEFAULT_EMBEDDER,
                        choices=["sentence-transformers", "hash"], help="Embedding provider")
    parser.add_argument("--backend", default="faiss", choices=["faiss", "flat"],
                        help="Nearest-neighbour backend")
    parser.add_argument("--skip-categories", default="", help="Comma-separated categories to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never flag")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("analyze", help="Pattern analysis (text stdin)")
    p_init = sub.add_parser("init", help="Build the index from a folder")
    p_init.add_argument("folder", nargs="?", default=DEFAULT_FOLDER)
    p_add = sub.add_parser("add", help="Add new files from a folder")
    p_add.add_argument("folder", nargs="?", default=DEFAULT_FOLDER)
    sub.add_parser("load", help="Load the persisted index")
    sub.add_parser("compare", help="Similarity decision (text stdin)")
    p_serve = sub.add_parser("serve", help="Run the HTTP sidecar")
    p_serve.add_argument("--port", type=int,
                         default=int(os.environ.get("DLP_GUARD_PORT", "18792")))

    args = parser.parse_args(argv)
    setup_logging()

    cmds = {
        "analyze": cmd_analyze,
        "init": cmd_init,
        "add": cmd_add,
        "load": cmd_load,
        "compare": cmd_compare,
        "serve": cmd_serve,
    }
    return cmds[args.command](_build_service(args), args)


if __name__ == "__main__":
    sys.exit(main())
