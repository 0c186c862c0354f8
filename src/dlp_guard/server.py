"""HTTP sidecar server for dlp-guard.

A lightweight stdlib HTTP server on localhost, so a gateway can call the
engine without spawning a process per request.

Endpoints:
    POST /analyze         — Pattern analysis   {"text": "..."}
    POST /compare         — Similarity decision {"text": "..."}
    POST /index/init      — Rebuild index      {"path": "./sanitized"}
    POST /index/add       — Add new files      {"path": "./sanitized"}
    POST /index/load      — Reload from disk
    GET  /health          — Health check

All endpoints expect/return JSON.
"""

from __future__ import annotations
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .service import ERROR_STATUS, DlpService, OperationResult

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "./sanitized"


def make_handler(service: DlpService) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to one service."""

    class DlpHandler(BaseHTTPRequestHandler):
        """HTTP request handler for the dlp-guard sidecar."""

        def _read_json(self) -> dict[str, Any]:
            length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(length).decode("utf-8")
            return json.loads(body) if body else {}

        def _respond(self, status: int, data: Any) -> None:
            body = json.dumps(data, ensure_ascii=False).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _respond_result(self, result: OperationResult) -> None:
            status = 200 if result.success else ERROR_STATUS.get(result.error_kind or "", 500)
            self._respond(status, result.to_dict())

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug("http " + format, *args)

        def do_GET(self) -> None:
            if self.path == "/health":
                corpus = service.manager.corpus
                self._respond(200, {
                    "status": "ok",
                    "indexed": len(corpus) if corpus is not None else None,
                })
            else:
                self._respond(404, {"success": False, "error": "not found"})

        def do_POST(self) -> None:
            try:
                body = self._read_json()
            except ValueError as e:
                self._respond(400, {"success": False, "error": f"invalid JSON: {e}"})
                return

            try:
                if self.path == "/analyze":
                    self._respond_result(service.analyze_structured(body.get("text")))
                elif self.path == "/compare":
                    self._respond_result(service.decide_similarity(body.get("text")))
                elif self.path == "/index/init":
                    self._respond_result(service.init_index(body.get("path") or DEFAULT_FOLDER))
                elif self.path == "/index/add":
                    self._respond_result(service.add_to_index(body.get("path") or DEFAULT_FOLDER))
                elif self.path == "/index/load":
                    self._respond_result(service.load_index())
                else:
                    self._respond(404, {"success": False, "error": "not found"})
            except Exception as e:
                logger.exception("http.error path=%s", self.path)
                self._respond(500, {"success": False, "error": str(e)})

    return DlpHandler


def serve(service: DlpService, port: int = 18792, host: str = "127.0.0.1") -> None:
    """Start the dlp-guard HTTP sidecar."""
    result = service.load_index()
    if not result.success:
        logger.warning("server.preload failed: %s", result.message)

    server = ThreadingHTTPServer((host, port), make_handler(service))
    logger.info("dlp-guard sidecar listening on http://%s:%d", host, port)
    logger.info("  index dir: %s", service.manager.save_dir)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()
