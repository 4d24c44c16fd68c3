from __future__ import annotations

import json
import threading
import urllib.error
import urllib.request

import pytest
from conftest import write_record

from jkv.config import load_config
from jkv.web import make_server


@pytest.fixture
def server(tmp_path, store):
    cfg = load_config(tmp_path)
    srv = make_server(cfg, store, "127.0.0.1", 0)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{srv.server_address[1]}"
    srv.shutdown()
    srv.server_close()


def request(url: str, method: str = "GET") -> tuple[int, dict[str, str], bytes]:
    req = urllib.request.Request(url, method=method)
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            return resp.status, dict(resp.headers), resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, dict(exc.headers), exc.read()


def test_root_welcome(server):
    status, headers, body = request(server + "/")
    assert status == 200
    assert body == b"Welcome to my server"
    assert headers["My-custom-header"] == "This is a great API"
    assert headers["Another-header"] == "More meta data"


def test_status_is_json(server):
    status, headers, body = request(server + "/status")
    assert status == 200
    assert headers["Content-Type"].startswith("application/json")
    payload = json.loads(body)
    assert payload["up"] is True
    assert payload["owner"] == "Big Boss"
    assert isinstance(payload["timestamp"], int)


def test_patch_set_persists_value(server, data_dir):
    write_record(data_dir / "t.json", {"a": 1})
    status, _, body = request(server + "/set?file=t.json&key=k&value=v", "PATCH")
    assert status == 200
    assert body == b"value set"
    assert json.loads((data_dir / "t.json").read_text()) == {"a": 1, "k": "v"}


def test_patch_set_accepts_empty_value(server, data_dir):
    write_record(data_dir / "t.json", {})
    status, _, _ = request(server + "/set?file=t.json&key=k&value=", "PATCH")
    assert status == 200
    assert json.loads((data_dir / "t.json").read_text()) == {"k": ""}


def test_patch_set_missing_file_is_404(server, data_dir):
    status, _, body = request(server + "/set?file=ghost.json&key=k&value=v", "PATCH")
    assert status == 404
    assert b"ghost.json" in body
    assert not (data_dir / "ghost.json").exists()


def test_patch_set_malformed_file_is_422(server, data_dir):
    (data_dir / "bad.json").write_text("nope")
    status, _, _ = request(server + "/set?file=bad.json&key=k&value=v", "PATCH")
    assert status == 422


def test_patch_set_missing_param_is_400(server):
    status, _, body = request(server + "/set?file=t.json&key=k", "PATCH")
    assert status == 400
    assert b"value" in body


def test_unknown_path_is_404(server):
    for method in ("GET", "PATCH", "POST", "PUT", "DELETE"):
        status, _, _ = request(server + "/nope", method)
        assert status == 404, method


def test_wrong_method_is_405(server):
    status, headers, _ = request(server + "/set?file=t.json&key=k&value=v")
    assert status == 405
    assert headers["Allow"] == "PATCH"

    status, headers, _ = request(server + "/status", "POST")
    assert status == 405
    assert headers["Allow"] == "GET"


@pytest.mark.parametrize("query", ["file=&key=k&value=v", "file=t.json&key=&value=v"])
def test_patch_set_empty_file_or_key_is_400(server, data_dir, query):
    write_record(data_dir / "t.json", {"a": 1})
    status, _, body = request(server + "/set?" + query, "PATCH")
    assert status == 400
    assert b"empty query parameter" in body
    assert json.loads((data_dir / "t.json").read_text()) == {"a": 1}
