"""Tests for the service facade, config wiring, CLI and HTTP sidecar."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json
import threading
import urllib.error
import urllib.request
from http.server import ThreadingHTTPServer

import pytest

from dlp_guard import HashEmbedder, create_service, load_config
from dlp_guard.cli import main
from dlp_guard.search import FlatSearchIndex
from dlp_guard.server import make_handler


@pytest.fixture
def docs(tmp_path):
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.txt").write_text("quarterly revenue forecast", encoding="utf-8")
    (root / "b.txt").write_text("employee salary table", encoding="utf-8")
    return root


@pytest.fixture
def service(tmp_path):
    return create_service({
        "save_dir": str(tmp_path / "dictionary"),
        "embedder": "hash",
        "dim": 32,
        "search_backend": "flat",
    })


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_nested_and_defaults():
    cfg = load_config({"dlp_guard": {"embedder": "hash", "thresholds": {"danger": 0.7}}})
    assert cfg["embedder"] == "hash"
    assert cfg["danger_threshold"] == 0.7
    assert cfg["critical_threshold"] == 0.85
    assert cfg["top_k"] == 3
    assert cfg["save_dir"] == "./dictionary"
    assert cfg["mask_token"] == "***"


def test_load_config_flat_threshold_keys():
    cfg = load_config({"danger_threshold": 0.6, "critical_threshold": 0.9, "top_k": 5,
                       "thresholds": {"danger": 0.7}})
    assert cfg["danger_threshold"] == 0.6
    assert cfg["critical_threshold"] == 0.9
    assert cfg["top_k"] == 5


def test_load_config_null_sections():
    cfg = load_config({"thresholds": None, "skip_categories": None, "allow_list": None})
    assert cfg["danger_threshold"] == 0.80
    assert cfg["skip_categories"] == set()
    assert cfg["allow_list"] == set()


def test_load_config_twice_is_stable():
    cfg = load_config({"embedder": "hash", "thresholds": {"critical": 0.9},
                       "skip_categories": ["email"]})
    assert load_config(cfg) == cfg


def test_create_service_from_flat_dict(tmp_path):
    service = create_service({
        "save_dir": str(tmp_path / "dictionary"),
        "embedder": "hash",
        "search_backend": "flat",
        "skip_categories": ["email"],
        "top_k": 1,
    })
    assert service.engine.thresholds.top_k == 1
    result = service.analyze_structured("연락처 test@example.com")
    assert result.success
    assert result.to_dict()["status"] == "safe"


def test_create_service_wiring(service):
    assert isinstance(service.manager.embedder, HashEmbedder)
    assert service.manager.embedder.dim == 32
    assert isinstance(service.manager.search_factory(4), FlatSearchIndex)
    assert service.engine.thresholds.critical == 0.85


def test_unknown_backend():
    with pytest.raises(ValueError):
        create_service({"search_backend": "annoy", "embedder": "hash"})


def test_load_from_yaml(tmp_path):
    yaml = pytest.importorskip("yaml")
    from dlp_guard import load_from_yaml

    path = tmp_path / "dlp.yaml"
    path.write_text(yaml.safe_dump({"dlp_guard": {
        "embedder": "hash", "skip_categories": ["postalCode"], "mask_token": "#",
    }}), encoding="utf-8")
    cfg = load_from_yaml(path)
    assert cfg["skip_categories"] == {"postalCode"}
    assert cfg["mask_token"] == "#"


# ── Service ──────────────────────────────────────────────────────────

def test_analyze_structured(service):
    result = service.analyze_structured("내 번호는 010-1234-5678 입니다")
    assert result.success
    d = result.to_dict()
    assert d["status"] == "danger"
    assert d["result"] == "내 번호는 *** 입니다"


def test_analyze_structured_invalid(service):
    result = service.analyze_structured("")
    assert not result.success
    assert result.error_kind == "InvalidInputError"
    assert result.to_dict()["error"]


def test_decide_before_init(service):
    result = service.decide_similarity("hello")
    assert not result.success
    assert result.error_kind == "UninitializedIndexError"


def test_init_then_decide(service, docs):
    init = service.init_index(str(docs))
    assert init.success
    assert init.message == "Indexed 2 documents."
    assert len(init.files) == 2

    decision = service.decide_similarity("employee salary table").to_dict()
    assert decision["action"] == "BLOCK"
    assert decision["matches"][0]["file"].endswith("b.txt")
    assert decision["matches"][0]["similarity"] == "critical"

    assert service.decide_similarity("완전히 다른 내용").to_dict()["action"] == "ALLOW"


def test_add_and_load(service, docs):
    service.init_index(str(docs))
    (docs / "c.txt").write_text("board meeting minutes", encoding="utf-8")
    added = service.add_to_index(str(docs))
    assert added.success
    assert len(added.files) == 3

    loaded = service.load_index()
    assert loaded.success
    assert loaded.message == "Loaded 3 documents."


def test_init_empty_folder_reports_failure(service, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = service.init_index(str(empty))
    assert not result.success
    assert result.error_kind == "EmptyCorpusError"


def test_load_missing_index(service):
    result = service.load_index()
    assert result.success
    assert result.files == []


# ── CLI ──────────────────────────────────────────────────────────────

def test_cli_analyze(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("연락처 test@example.com"))
    code = main(["--embedder", "hash", "--backend", "flat",
                 "--save-dir", str(tmp_path), "analyze"])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["detected"]["email"] == ["test@example.com"]


def test_cli_init_and_compare(monkeypatch, capsys, tmp_path, docs):
    common = ["--embedder", "hash", "--backend", "flat", "--save-dir", str(tmp_path / "idx")]
    assert main(common + ["init", str(docs)]) == 0
    assert json.loads(capsys.readouterr().out)["files"]

    monkeypatch.setattr(sys, "stdin", io.StringIO("quarterly revenue forecast"))
    assert main(common + ["compare"]) == 0
    assert json.loads(capsys.readouterr().out)["action"] == "BLOCK"


def test_cli_skip_categories_and_allow_list(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("우편 12345 연락처 test@example.com me@example.com"))
    code = main(["--embedder", "hash", "--backend", "flat", "--save-dir", str(tmp_path),
                 "--skip-categories", "postalCode", "--allow-list", "test@example.com",
                 "analyze"])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["detected"]["postalCode"] == []
    assert out["detected"]["email"] == ["me@example.com"]
    assert out["result"] == "우편 12345 연락처 test@example.com ***"


# ── HTTP sidecar ─────────────────────────────────────────────────────

@pytest.fixture
def server(service):
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), make_handler(service))
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def _post(url, body):
    req = urllib.request.Request(
        url, data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"}, method="POST",
    )
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


def test_http_analyze(server):
    status, body = _post(server + "/analyze", {"text": "연락처 test@example.com"})
    assert status == 200
    assert body["status"] == "danger"


def test_http_compare_uninitialized(server):
    status, body = _post(server + "/compare", {"text": "hello"})
    assert status == 409
    assert body["success"] is False


def test_http_index_and_compare(server, docs):
    status, body = _post(server + "/index/init", {"path": str(docs)})
    assert status == 200
    assert len(body["files"]) == 2

    status, body = _post(server + "/compare", {"text": "quarterly revenue forecast"})
    assert status == 200
    assert body["action"] == "BLOCK"


def test_http_health(server):
    with urllib.request.urlopen(server + "/health") as resp:
        assert json.loads(resp.read())["status"] == "ok"
